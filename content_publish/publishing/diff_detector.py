"""
diff_detector.py — Detecta qué archivos cambió el script.

Para cada ruta dentro del content path se arma un vector de estado
de tres posiciones:

    HEAD     → ¿existe en el último commit?
    WORKDIR  → ¿existe en disco? ¿igual al HEAD?
    STAGE    → ¿existe en el índice? ¿igual al HEAD o al working tree?

Una ruta está "sin modificar" solo si existe en HEAD y tanto el working
tree como el índice tienen exactamente el mismo blob. Todo lo demás
(archivos nuevos, borrados o con contenido distinto) va al ChangeSet.

El contenido se compara por object id: los blobs de HEAD y del índice
ya lo tienen, y los archivos en disco se hashean con git hash-object.
Un symlink se compara por el texto del link, igual que lo guarda git.

Uso:
    detector = DiffDetector()
    change_set = detector.detect(repo, "src")
    if not change_set:
        print("Sin cambios")
"""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from enum import Enum
from pathlib import PurePosixPath

import git as gitpython

from content_publish.errors import DiffError
from content_publish.publishing.models import ChangeSet
from content_publish.utils.logger import get_logger

logger = get_logger("content_publish.diff")

# Rutas por llamada a git hash-object
HASH_BATCH_SIZE = 200


class HeadStatus(Enum):
    ABSENT = "absent"
    PRESENT = "present"


class WorkdirStatus(Enum):
    ABSENT = "absent"
    IDENTICAL_TO_HEAD = "identical_to_head"
    MODIFIED = "modified"


class StageStatus(Enum):
    ABSENT = "absent"
    IDENTICAL_TO_HEAD = "identical_to_head"
    IDENTICAL_TO_WORKDIR = "identical_to_workdir"
    MODIFIED = "modified"


@dataclass(frozen=True)
class FileStatus:
    """Vector de estado de una ruta (relativa al repo, formato POSIX)."""
    path: str
    head: HeadStatus
    workdir: WorkdirStatus
    stage: StageStatus

    @property
    def is_unmodified(self) -> bool:
        return (
            self.head is HeadStatus.PRESENT
            and self.workdir is WorkdirStatus.IDENTICAL_TO_HEAD
            and self.stage is StageStatus.IDENTICAL_TO_HEAD
        )


def normalize_scope(content_path: str) -> str:
    """'./src/' → 'src'; '.' o '' → '' (todo el repo)."""
    limpio = PurePosixPath(content_path.replace("\\", "/")).as_posix().strip("/")
    return "" if limpio == "." else limpio


def in_scope(path: str, scope: str) -> bool:
    return not scope or path == scope or path.startswith(scope + "/")


def classify(
    path: str,
    head_sha: str | None,
    workdir_sha: str | None,
    stage_sha: str | None,
) -> FileStatus:
    """Arma el FileStatus a partir de los object ids de cada estado."""
    head = HeadStatus.PRESENT if head_sha else HeadStatus.ABSENT

    if workdir_sha is None:
        workdir = WorkdirStatus.ABSENT
    elif workdir_sha == head_sha:
        workdir = WorkdirStatus.IDENTICAL_TO_HEAD
    else:
        workdir = WorkdirStatus.MODIFIED

    if stage_sha is None:
        stage = StageStatus.ABSENT
    elif stage_sha == head_sha:
        stage = StageStatus.IDENTICAL_TO_HEAD
    elif stage_sha == workdir_sha:
        stage = StageStatus.IDENTICAL_TO_WORKDIR
    else:
        stage = StageStatus.MODIFIED

    return FileStatus(path=path, head=head, workdir=workdir, stage=stage)


def _hash_symlink(repo: gitpython.Repo, path: str) -> str:
    """Object id del blob que git guarda para un symlink (su destino, sin seguirlo)."""
    with tempfile.TemporaryFile() as destino:
        destino.write(os.fsencode(os.readlink(path)))
        destino.seek(0)
        return repo.git.hash_object("--no-filters", "--stdin", istream=destino).strip()


class DiffDetector:
    """Calcula el status matrix y el ChangeSet de un repo."""

    def status_matrix(self, repo: gitpython.Repo, content_path: str) -> list[FileStatus]:
        scope = normalize_scope(content_path)
        try:
            head = self._head_blobs(repo, scope)
            stage = self._index_blobs(repo, scope)
            workdir = self._workdir_blobs(repo, scope, set(head) | set(stage))
        except (gitpython.GitCommandError, OSError) as e:
            raise DiffError(f"Error calculando el status de {scope or '.'}: {e}") from e

        rutas = sorted(set(head) | set(stage) | set(workdir))
        return [
            classify(ruta, head.get(ruta), workdir.get(ruta), stage.get(ruta))
            for ruta in rutas
        ]

    def detect(self, repo: gitpython.Repo, content_path: str) -> ChangeSet:
        """Rutas del content path que no están idénticas en los tres estados."""
        matrix = self.status_matrix(repo, content_path)
        cambiados = tuple(s.path for s in matrix if not s.is_unmodified)
        if cambiados:
            logger.info(f"Archivos modificados: {list(cambiados)}")
        else:
            logger.info("No hay cambios que commitear.")
        return ChangeSet(paths=cambiados)

    # ============================================================
    # Lectura de cada estado
    # ============================================================

    @staticmethod
    def _head_blobs(repo: gitpython.Repo, scope: str) -> dict[str, str]:
        try:
            tree = repo.head.commit.tree
        except ValueError:
            # Repo sin commits: HEAD no apunta a nada
            return {}
        return {
            item.path: item.hexsha
            for item in tree.traverse()
            if item.type == "blob" and in_scope(item.path, scope)
        }

    @staticmethod
    def _index_blobs(repo: gitpython.Repo, scope: str) -> dict[str, str]:
        blobs: dict[str, str] = {}
        for (path, etapa), entry in repo.index.entries.items():
            ruta = PurePosixPath(path).as_posix()
            if etapa == 0 and in_scope(ruta, scope):
                blobs[ruta] = entry.hexsha
        return blobs

    @staticmethod
    def _workdir_blobs(
        repo: gitpython.Repo,
        scope: str,
        tracked: set[str],
    ) -> dict[str, str]:
        raiz = repo.working_tree_dir
        candidatos = set(tracked)
        candidatos.update(
            PurePosixPath(ruta).as_posix()
            for ruta in repo.untracked_files
            if in_scope(PurePosixPath(ruta).as_posix(), scope)
        )

        rutas: list[str] = []
        blobs: dict[str, str] = {}
        for ruta in sorted(candidatos):
            completa = os.path.join(raiz, ruta)
            if os.path.islink(completa):
                # El blob de un symlink es el texto del link, no el archivo apuntado
                blobs[ruta] = _hash_symlink(repo, completa)
            elif os.path.isfile(completa):
                rutas.append(ruta)

        for inicio in range(0, len(rutas), HASH_BATCH_SIZE):
            lote = rutas[inicio:inicio + HASH_BATCH_SIZE]
            salida = repo.git.hash_object("--", *lote)
            blobs.update(zip(lote, salida.split()))
        return blobs
