"""
workspace.py — Crea el workspace temporal de un run.

Flujo:
    1. Genera {temp_root}/{prefix}{uuid4}
    2. git clone --depth 1 --single-branch --branch {base}
    3. Vuelve a apuntar origin al URL sin credenciales
    4. git checkout -b content-publish-{YYYYMMDD}-{epoch-millis}

El Workspace es un context manager: al salir borra el directorio,
salvo que workspace.keep_workspace esté activo en la config.

Uso:
    provisioner = WorkspaceProvisioner(config)
    branch = make_branch_name()
    with provisioner.provision(request, identity, branch, url) as ws:
        ws.repo.git.status()
"""

from __future__ import annotations

import shutil
import uuid
from datetime import datetime, timezone
from pathlib import Path

import git as gitpython

from content_publish.config import AppConfig
from content_publish.errors import BranchError, CloneError
from content_publish.publishing.models import PublishRequest, RepoIdentity
from content_publish.publishing.repo_identity import redact
from content_publish.publishing.validator import NO_PROMPT_ENV
from content_publish.utils.logger import get_logger

logger = get_logger("content_publish.workspace")

BRANCH_PREFIX = "content-publish"


def make_branch_name(now: datetime | None = None) -> str:
    """
    Nombre del branch de publicación: content-publish-{YYYYMMDD}-{epoch-millis}.

    La fecha es la del día UTC del run.
    """
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    now = now.astimezone(timezone.utc)
    millis = int(now.timestamp() * 1000)
    return f"{BRANCH_PREFIX}-{now:%Y%m%d}-{millis}"


class Workspace:
    """
    Directorio temporal con un clone, de uso exclusivo de un run.

    Args:
        path: Ruta absoluta del workspace.
        repo: Repo de GitPython ya clonado.
        keep: Si es True, no se borra al salir del context manager.
    """

    def __init__(self, path: Path, repo: gitpython.Repo, keep: bool = False):
        self.path = path
        self.repo = repo
        self._keep = keep

    def __enter__(self) -> Workspace:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cleanup()

    def cleanup(self) -> None:
        self.repo.close()
        if self._keep:
            logger.info(f"Workspace conservado en {self.path}")
            return
        shutil.rmtree(self.path, ignore_errors=True)
        logger.debug(f"Workspace borrado: {self.path}")


class WorkspaceProvisioner:
    """Clona el repo en un directorio nuevo y crea el branch de publicación."""

    def __init__(self, config: AppConfig):
        self._config = config

    def new_path(self, temp_root: str) -> Path:
        prefix = self._config.workspace.prefix
        return Path(temp_root).resolve() / f"{prefix}{uuid.uuid4()}"

    def provision(
        self,
        request: PublishRequest,
        identity: RepoIdentity,
        branch: str,
        remote_url: str,
    ) -> Workspace:
        """
        Clona el base branch y hace checkout del branch de publicación.

        remote_url es el URL con credenciales (ver authenticated_url).

        Raises:
            CloneError: Si el clone falla.
            BranchError: Si no se pudo crear o cambiar al branch.
        """
        destino = self.new_path(request.temp_path)
        keep = self._config.workspace.keep_workspace

        try:
            repo = gitpython.Repo.clone_from(
                remote_url,
                destino,
                env=NO_PROMPT_ENV,
                depth=1,
                single_branch=True,
                branch=request.base,
            )
        except gitpython.GitCommandError as e:
            if not keep:
                shutil.rmtree(destino, ignore_errors=True)
            raise CloneError(
                f"Error clonando {identity.clone_url}: {redact(str(e), request.git_password)}"
            ) from None

        workspace = Workspace(destino, repo, keep=keep)
        try:
            # El password no se queda en .git/config
            repo.remote("origin").set_url(identity.clone_url)
            logger.success(f"Clonado {identity.clone_url} en {destino}")

            nuevo = repo.create_head(branch)
            nuevo.checkout()
        except (gitpython.GitCommandError, OSError, ValueError) as e:
            workspace.cleanup()
            raise BranchError(f"Error creando el branch {branch}: {e}") from e

        logger.info(f"Checkout del branch: {branch}")
        return workspace
