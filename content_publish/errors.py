"""
errors.py — Excepciones del pipeline de publicación.

Cada error del pipeline conoce la etapa en la que ocurre, así el
orquestador puede convertirlo en un PublishOutcome sin adivinar.
"""

from __future__ import annotations

from content_publish.publishing.models import PublishStage


class ContentPublishError(Exception):
    """Base de todos los errores de content_publish."""

    stage: PublishStage = PublishStage.VALIDATION


class InvalidRepoURL(ContentPublishError):
    """El URL remoto no es SSH (git@host:owner/repo.git) ni HTTPS."""


class InputValidationError(ContentPublishError):
    """Falta un campo, el base branch no existe o el temp path no sirve."""


class BaseBranchNotFound(InputValidationError):
    """El base branch no aparece en las refs del remoto."""


class CloneError(ContentPublishError):
    stage = PublishStage.CLONE


class BranchError(ContentPublishError):
    stage = PublishStage.BRANCH


class BuildScriptError(ContentPublishError):
    """El script de build/actualización terminó con código distinto de 0."""

    stage = PublishStage.BUILD

    def __init__(self, message: str, exit_code: int = 1, stderr: str = ""):
        super().__init__(message)
        self.exit_code = exit_code
        self.stderr = stderr


class DiffError(ContentPublishError):
    stage = PublishStage.DIFF


class CommitError(ContentPublishError):
    stage = PublishStage.COMMIT


class PushError(ContentPublishError):
    stage = PublishStage.PUSH


class PRCreationError(ContentPublishError):
    stage = PublishStage.PR_CREATE


class PRMergeError(ContentPublishError):
    stage = PublishStage.PR_MERGE
