"""
models.py — Tipos de datos compartidos por el pipeline de publicación.

Contiene:
- PublishRequest: lo que pide el caller (inmutable)
- RepoIdentity: owner/repo derivados del URL remoto
- ChangeSet: archivos modificados dentro del content path
- PRStatus / PullRequest: el PR creado y su estado
- PublishStage / OutcomeStatus / PublishOutcome: resultado tipado de un run
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class PublishStage(Enum):
    """Etapa del pipeline alcanzada por un run."""
    VALIDATION = "validation"
    CLONE = "clone"
    BRANCH = "branch"
    BUILD = "build"
    DIFF = "diff"
    COMMIT = "commit"
    PUSH = "push"
    PR_CREATE = "pr_create"
    PR_MERGE = "pr_merge"
    DONE = "done"


class OutcomeStatus(Enum):
    """Resultado final de un run."""
    SUCCESS = "success"
    NO_CHANGES = "no_changes"
    FAILED = "failed"


@dataclass(frozen=True)
class PublishRequest:
    """
    Petición de publicación, tal como la arma la CLI.

    Campos:
        base: Branch destino del PR (ej: "main")
        script: Comando que actualiza el contenido
        message: Mensaje del commit
        path: Ruta relativa del contenido a comparar (ej: "src")
        git_url: URL remoto del repositorio
        git_username / git_password: Credenciales (el password también es el token de la API)
        temp_path: Directorio raíz donde se crean los workspaces
    """
    base: str
    script: str
    message: str
    path: str
    git_url: str
    git_username: str
    git_password: str = field(repr=False)
    temp_path: str


@dataclass(frozen=True)
class RepoIdentity:
    """owner/repo de un repositorio más su URL HTTPS canónico."""
    host: str
    owner: str
    repo: str
    clone_url: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"


@dataclass(frozen=True)
class ChangeSet:
    """
    Archivos que cambiaron respecto al último commit.

    Las rutas son relativas al repositorio, en formato POSIX y ordenadas.
    """
    paths: tuple[str, ...] = ()

    def __bool__(self) -> bool:
        return bool(self.paths)

    def __len__(self) -> int:
        return len(self.paths)

    def __iter__(self):
        return iter(self.paths)

    def split(self, working_dir: str | Path) -> tuple[list[str], list[str]]:
        """
        Separa el change set en (a_agregar, a_borrar).

        Un archivo que ya no existe en el working tree se borra del
        índice; el resto se agrega. Un symlink roto sigue existiendo.
        """
        root = Path(working_dir)
        agregar: list[str] = []
        borrar: list[str] = []
        for ruta in self.paths:
            if os.path.lexists(root / ruta):
                agregar.append(ruta)
            else:
                borrar.append(ruta)
        return agregar, borrar


class PRStatus(Enum):
    """Estado de un Pull Request creado por el pipeline."""
    OPEN = "open"
    MERGED = "merged"


@dataclass
class PullRequest:
    """
    Datos de un Pull Request.

    Campos:
        number: Número asignado por la API (requerido para el merge)
        url: URL web del PR
        title: Título del PR
        head / base: Branch fuente y destino
        status: OPEN después de crearlo, MERGED después del merge
        merge_sha: Hash del merge commit
        files: Archivos incluidos
    """
    number: int
    url: str = ""
    title: str = ""
    head: str = ""
    base: str = ""
    status: PRStatus = PRStatus.OPEN
    merge_sha: str = ""
    files: list[str] = field(default_factory=list)


@dataclass
class PublishOutcome:
    """
    Resultado tipado de un run del pipeline.

    stage indica la última etapa alcanzada: DONE si todo salió bien,
    DIFF si no hubo cambios, o la etapa donde falló. pull_request queda
    con el estado final del PR (MERGED y merge_sha si se mergeó).
    """
    status: OutcomeStatus
    stage: PublishStage
    branch: str = ""
    changed_files: list[str] = field(default_factory=list)
    commit_sha: str = ""
    pr_number: int = 0
    pr_url: str = ""
    pull_request: PullRequest | None = None
    error: str = ""

    @property
    def ok(self) -> bool:
        return self.status is not OutcomeStatus.FAILED

    def describe(self) -> str:
        """Resumen de una línea para logs y la CLI."""
        if self.status is OutcomeStatus.SUCCESS:
            return f"PR #{self.pr_number} mergeado desde {self.branch}"
        if self.status is OutcomeStatus.NO_CHANGES:
            return "Sin cambios que publicar"
        return f"Falló en la etapa '{self.stage.value}': {self.error}"
