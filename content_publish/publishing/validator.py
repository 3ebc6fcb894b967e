"""
validator.py — Valida un PublishRequest antes de tocar nada.

Orden de las verificaciones:
    1. base, url, usuario, password y script no vacíos
    2. message y path no vacíos; path relativo y dentro del repo
    3. git ls-remote --heads: el base branch existe en el remoto
    4. El temp path existe y se puede escribir

Si algo falla se lanza InputValidationError (o BaseBranchNotFound) y el
pipeline termina sin crear workspace, branch ni commit.

Uso:
    from content_publish.publishing.validator import InputValidator
    InputValidator().validate(request)
"""

from __future__ import annotations

import os
from pathlib import PurePosixPath
from typing import Callable

import git as gitpython

from content_publish.errors import BaseBranchNotFound, InputValidationError
from content_publish.publishing.models import PublishRequest
from content_publish.publishing.repo_identity import (
    authenticated_url,
    redact,
    resolve_repo_identity,
)
from content_publish.utils.logger import get_logger

logger = get_logger("content_publish.validator")

HEADS_PREFIX = "refs/heads/"

# git nunca debe quedarse esperando un password en la terminal
NO_PROMPT_ENV = {"GIT_TERMINAL_PROMPT": "0"}


def list_remote_branches(url: str) -> list[str]:
    """
    Lista los branches del remoto (git ls-remote --heads).

    Returns:
        Nombres de branch sin el prefijo refs/heads/.

    Raises:
        git.GitCommandError: Si el remoto no responde o rechaza las credenciales.
    """
    salida = gitpython.cmd.Git().ls_remote("--heads", url, env=NO_PROMPT_ENV)
    branches = []
    for linea in salida.splitlines():
        partes = linea.split("\t", 1)
        if len(partes) == 2 and partes[1].startswith(HEADS_PREFIX):
            branches.append(partes[1][len(HEADS_PREFIX):])
    return branches


def check_content_path(path: str) -> None:
    """El content path debe ser relativo y no salir del repositorio."""
    ruta = PurePosixPath(path.replace("\\", "/"))
    if ruta.is_absolute() or ".." in ruta.parts:
        raise InputValidationError(
            f'El content "path" debe ser relativo al repositorio: {path}'
        )


class InputValidator:
    """
    Valida la petición en el orden definido; falla rápido.

    Args:
        branch_lister: Función url → lista de branches. Por defecto
            list_remote_branches (una llamada de red).
    """

    def __init__(self, branch_lister: Callable[[str], list[str]] | None = None):
        self._list_branches = branch_lister or list_remote_branches

    def validate(self, request: PublishRequest) -> bool:
        if not request.base:
            raise InputValidationError('Falta el nombre del branch "base".')
        if not request.git_url:
            raise InputValidationError('Falta el "url" del repositorio.')
        if not request.git_username:
            raise InputValidationError(
                'Falta "CONTENT_PUBLISH_GIT_USERNAME" en las variables de entorno.'
            )
        if not request.git_password:
            raise InputValidationError(
                'Falta "CONTENT_PUBLISH_GIT_PASSWORD" en las variables de entorno.'
            )
        if not request.script:
            raise InputValidationError('Falta el "script" de actualización de contenido.')
        if not request.message:
            raise InputValidationError('Falta el "message" del commit.')
        if not request.path:
            raise InputValidationError('Falta el content "path".')
        check_content_path(request.path)

        self._check_base_branch(request)
        self._check_temp_path(request.temp_path)

        logger.success(f"Input válido: base={request.base}, path={request.path}")
        return True

    def _check_base_branch(self, request: PublishRequest) -> None:
        identity = resolve_repo_identity(request.git_url)
        url = authenticated_url(identity, request.git_username, request.git_password)

        try:
            branches = self._list_branches(url)
        except gitpython.GitCommandError as e:
            mensaje = redact(str(e), request.git_password)
            raise InputValidationError(
                f"No se pudieron listar los branches de {identity.clone_url}: {mensaje}"
            ) from None

        if request.base not in branches:
            raise BaseBranchNotFound(
                f"El base branch '{request.base}' no existe en {identity.clone_url}."
            )

    @staticmethod
    def _check_temp_path(temp_path: str) -> None:
        if not temp_path:
            raise InputValidationError('Falta el "tempPath".')
        if not os.path.isdir(temp_path):
            raise InputValidationError(f"El temp path {temp_path} no existe.")
        if not os.access(temp_path, os.W_OK):
            raise InputValidationError(f"El temp path {temp_path} no tiene permisos de escritura.")
