"""
pipeline.py — Orquesta un run completo de publicación.

Flujo:
    1. Validar el input (sin efectos secundarios)
    2. Clonar el base branch en un workspace nuevo
    3. Crear el branch content-publish-{fecha}-{millis}
    4. Ejecutar install && build && script
    5. Detectar archivos cambiados en el content path
       → si no hay, termina con NO_CHANGES
    6. Commit + push del branch
    7. Crear el PR y mergearlo

Cada run devuelve un PublishOutcome: SUCCESS, NO_CHANGES o FAILED con
la etapa donde se detuvo y la causa. Los errores del pipeline no se
propagan; se loguean y quedan en el outcome.

Uso:
    publisher = ContentPublisher(config)
    outcome = publisher.publish(request)
    if not outcome.ok:
        sys.exit(1)
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable

from content_publish.config import AppConfig
from content_publish.errors import ContentPublishError
from content_publish.publishing.build_runner import BuildRunner, ShellBuildRunner, run_build
from content_publish.publishing.diff_detector import DiffDetector
from content_publish.publishing.git_ops import GitOperations
from content_publish.publishing.models import (
    OutcomeStatus,
    PublishOutcome,
    PublishRequest,
    PublishStage,
    RepoIdentity,
)
from content_publish.publishing.pr_manager import PRManager
from content_publish.publishing.repo_identity import authenticated_url, resolve_repo_identity
from content_publish.publishing.validator import InputValidator
from content_publish.publishing.workspace import WorkspaceProvisioner, make_branch_name
from content_publish.utils.logger import get_logger

logger = get_logger("content_publish.pipeline")

TOTAL_STEPS = 7


def default_remote_url(identity: RepoIdentity, request: PublishRequest) -> str:
    return authenticated_url(identity, request.git_username, request.git_password)


class ContentPublisher:
    """
    Pipeline de publicación. Todas las dependencias se inyectan.

    Args:
        config: Configuración de la app.
        build_runner: Runner del script; por defecto ShellBuildRunner(request.script).
        validator: InputValidator a usar (por defecto hace ls-remote real).
        pr_manager: Cliente de la API de PRs; por defecto PRManager(request.git_password).
        remote_url_factory: (identity, request) → URL para clone y push.
        clock: Devuelve el datetime usado para el nombre del branch.
    """

    def __init__(
        self,
        config: AppConfig,
        build_runner: BuildRunner | None = None,
        validator: InputValidator | None = None,
        pr_manager: PRManager | None = None,
        remote_url_factory: Callable[[RepoIdentity, PublishRequest], str] | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self._config = config
        self._build_runner = build_runner
        self._validator = validator or InputValidator()
        self._pr_manager = pr_manager
        self._remote_url = remote_url_factory or default_remote_url
        self._clock = clock
        self._provisioner = WorkspaceProvisioner(config)
        self._detector = DiffDetector()
        self._git = GitOperations(config.git)

    def publish(self, request: PublishRequest) -> PublishOutcome:
        """Ejecuta el pipeline completo. Nunca lanza errores del pipeline."""
        logger.step(1, TOTAL_STEPS, "Validando input...")
        try:
            self._validator.validate(request)
            identity = resolve_repo_identity(request.git_url)
        except ContentPublishError as e:
            logger.error(f"Input inválido: {e}")
            return PublishOutcome(
                status=OutcomeStatus.FAILED,
                stage=PublishStage.VALIDATION,
                error=str(e),
            )

        branch = make_branch_name(self._clock() if self._clock else None)
        outcome = PublishOutcome(
            status=OutcomeStatus.FAILED,
            stage=PublishStage.CLONE,
            branch=branch,
        )

        try:
            self._run(request, identity, outcome)
        except ContentPublishError as e:
            outcome.status = OutcomeStatus.FAILED
            outcome.stage = e.stage
            outcome.error = str(e)
            logger.error(f"Falló la publicación en la etapa '{e.stage.value}': {e}")

        return outcome

    def _run(
        self,
        request: PublishRequest,
        identity: RepoIdentity,
        outcome: PublishOutcome,
    ) -> None:
        remote_url = self._remote_url(identity, request)

        logger.step(2, TOTAL_STEPS, f"Clonando {identity.full_name} ({request.base})...")
        with self._provisioner.provision(
            request, identity, outcome.branch, remote_url
        ) as workspace:
            repo = workspace.repo

            logger.step(3, TOTAL_STEPS, "Ejecutando setup, build y script...")
            outcome.stage = PublishStage.BUILD
            runner = self._build_runner or ShellBuildRunner(request.script, self._config.build)
            run_build(runner, workspace.path)

            logger.step(4, TOTAL_STEPS, f"Buscando cambios en {request.path}...")
            outcome.stage = PublishStage.DIFF
            change_set = self._detector.detect(repo, request.path)
            if not change_set:
                outcome.status = OutcomeStatus.NO_CHANGES
                logger.success("Sin cambios: no se crea commit ni PR.")
                return
            outcome.changed_files = list(change_set)

            logger.step(5, TOTAL_STEPS, "Commit de los archivos modificados...")
            outcome.stage = PublishStage.COMMIT
            outcome.commit_sha = self._git.commit(repo, change_set, request.message)

            logger.step(6, TOTAL_STEPS, f"Push de {outcome.branch}...")
            outcome.stage = PublishStage.PUSH
            self._git.push(repo, outcome.branch, remote_url, secret=request.git_password)

        logger.step(7, TOTAL_STEPS, "Creando y mergeando el PR...")
        pr_manager = self._pr_manager or PRManager(request.git_password, self._config.github)

        outcome.stage = PublishStage.PR_CREATE
        pr = pr_manager.create_pr(
            identity,
            head=outcome.branch,
            base=request.base,
            message=request.message,
            change_set=change_set,
        )
        outcome.pr_number = pr.number
        outcome.pr_url = pr.url
        outcome.pull_request = pr

        outcome.stage = PublishStage.PR_MERGE
        outcome.pull_request = pr_manager.merge_pr(identity, pr, request.message)

        outcome.stage = PublishStage.DONE
        outcome.status = OutcomeStatus.SUCCESS
        logger.success(f"Publicado: {outcome.describe()}")
