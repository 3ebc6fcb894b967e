"""
git_ops.py — Commit y push del ChangeSet.

Flujo:
    1. git add de los archivos del ChangeSet que existen en disco
    2. git rm --cached de los que el script borró
    3. git commit con el autor configurado
    4. git push origin {branch}:{branch} con las mismas credenciales del clone

Nunca se hace un "git add -A": lo que el build dejó modificado fuera
del content path no entra al commit.

Uso:
    from content_publish.publishing.git_ops import GitOperations
    git_ops = GitOperations(config.git)
    sha = git_ops.commit(repo, change_set, "Product publish")
    git_ops.push(repo, branch, remote_url)
"""

from __future__ import annotations

import git as gitpython

from content_publish.config import GitConfig
from content_publish.errors import CommitError, PushError
from content_publish.publishing.models import ChangeSet
from content_publish.publishing.repo_identity import redact
from content_publish.publishing.validator import NO_PROMPT_ENV
from content_publish.utils.logger import get_logger

logger = get_logger("content_publish.git")


class GitOperations:
    """
    Operaciones de escritura sobre el clone del workspace.

    Args:
        config: Sección git de la config (autor y password para redactar errores).
    """

    def __init__(self, config: GitConfig):
        self._config = config

    @property
    def author(self) -> gitpython.Actor:
        return gitpython.Actor(self._config.author_name, self._config.author_email)

    def commit(self, repo: gitpython.Repo, change_set: ChangeSet, message: str) -> str:
        """
        Hace staging de exactamente el ChangeSet y crea el commit.

        Returns:
            Hash del commit creado.

        Raises:
            CommitError: Si el staging o el commit fallan.
        """
        if not change_set:
            raise CommitError("No hay archivos para commitear.")

        agregar, borrar = change_set.split(repo.working_tree_dir)
        try:
            index = repo.index
            if agregar:
                index.add(agregar)
            if borrar:
                index.remove(borrar)
            commit = index.commit(
                message,
                author=self.author,
                committer=self.author,
            )
        except (gitpython.GitCommandError, OSError, ValueError) as e:
            logger.error(f"Error commiteando {list(change_set)}: {e}")
            raise CommitError(f"Error en commit: {e}") from e

        logger.success(f"Commit creado: {commit.hexsha[:7]} — {list(change_set)}")
        return commit.hexsha

    def push(
        self,
        repo: gitpython.Repo,
        branch: str,
        remote_url: str,
        secret: str = "",
    ) -> None:
        """
        Pushea el branch de publicación al remoto.

        remote_url lleva las credenciales; no se guarda en el repo.
        secret se borra de cualquier mensaje de error.

        Raises:
            PushError: Si git falla o el remoto rechaza la ref.
        """
        refspec = f"{branch}:{branch}"
        secret = secret or self._config.password
        try:
            salida = repo.git.push(
                "--porcelain", remote_url, refspec, env=NO_PROMPT_ENV
            )
        except gitpython.GitCommandError as e:
            mensaje = redact(str(e), secret)
            logger.error(f"Error en push: {mensaje}")
            raise PushError(f"Git push falló para {branch}: {mensaje}") from None

        # Con --porcelain cada ref viene como "<flag>\t<from>:<to>\t<resumen>"
        for linea in salida.splitlines():
            if linea.startswith("!") and f":refs/heads/{branch}" in linea:
                mensaje = redact(linea, secret)
                raise PushError(f"El remoto rechazó {branch}: {mensaje}")

        logger.success(f"Push exitoso: {branch}")
