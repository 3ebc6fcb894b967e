"""
pr_manager.py — Crea y mergea el Pull Request de la publicación.

Ciclo de vida (dos llamadas a la API REST, en orden):
    1. POST /repos/{owner}/{repo}/pulls              → PR abierto (number)
    2. PUT  /repos/{owner}/{repo}/pulls/{n}/merge    → PR mergeado

Si la primera no devuelve number, nunca se intenta el merge.
Si el merge falla, el branch ya está pusheado y el PR queda abierto
para que una persona lo revise; no se reintenta.

Convención de nombres:
    - PR title: "Content publish: {mensaje del commit}"
    - Merge title: "Merge content publish #{n} from {branch}"

Autenticación: Bearer con el mismo token/password usado para git.

Uso:
    from content_publish.publishing.pr_manager import PRManager
    manager = PRManager(token, config.github)
    pr = manager.create_pr(identity, head=branch, base="main", message="...")
    manager.merge_pr(identity, pr, message="...")
"""

from __future__ import annotations

import requests

from content_publish.config import GitHubConfig
from content_publish.errors import PRCreationError, PRMergeError
from content_publish.publishing.models import (
    ChangeSet,
    PRStatus,
    PullRequest,
    RepoIdentity,
)
from content_publish.publishing.repo_identity import api_base_url, redact
from content_publish.utils.logger import get_logger

logger = get_logger("content_publish.pr_manager")

# Máximo de archivos listados en el body del PR
MAX_FILES_IN_BODY = 50


class PRManager:
    """
    Cliente mínimo de la API de Pull Requests.

    Args:
        token: Token (o password) con permisos sobre el repo.
        config: Sección github de la config (api_url, timeout, merge_method).
    """

    def __init__(self, token: str, config: GitHubConfig | None = None):
        self._token = token
        self._config = config or GitHubConfig()

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._token}",
            "Content-Type": "application/json",
            "Accept": "application/vnd.github+json",
        }

    def _pulls_url(self, identity: RepoIdentity) -> str:
        base = api_base_url(identity, self._config.api_url)
        return f"{base}/repos/{identity.owner}/{identity.repo}/pulls"

    def _describe_error(self, response: requests.Response) -> str:
        return redact(f"HTTP {response.status_code}: {response.text}", self._token)

    # ============================================================
    # Operaciones de PR
    # ============================================================

    def create_pr(
        self,
        identity: RepoIdentity,
        head: str,
        base: str,
        message: str,
        change_set: ChangeSet | None = None,
    ) -> PullRequest:
        """
        Abre el PR head → base.

        Raises:
            PRCreationError: Si la API responde con error o sin "number".
        """
        archivos = list(change_set or ())
        title = f"Content publish: {message}"
        payload = {
            "owner": identity.owner,
            "repo": identity.repo,
            "title": title,
            "body": self.generate_pr_body(message, head, archivos),
            "head": head,
            "base": base,
        }

        try:
            response = requests.post(
                self._pulls_url(identity),
                json=payload,
                headers=self._headers(),
                timeout=self._config.timeout,
            )
        except requests.RequestException as e:
            raise PRCreationError(
                f"Error creando el PR {head} → {base}: {redact(str(e), self._token)}"
            ) from None

        if not response.ok:
            raise PRCreationError(
                f"Error creando el PR {head} → {base}: {self._describe_error(response)}"
            )

        try:
            data = response.json()
        except ValueError:
            data = {}
        number = data.get("number") if isinstance(data, dict) else None
        if not number:
            raise PRCreationError("missing PR number")

        pr = PullRequest(
            number=int(number),
            url=data.get("html_url", ""),
            title=title,
            head=head,
            base=base,
            files=archivos,
        )
        logger.success(f"PR creado: #{pr.number} — {title}")
        if pr.url:
            logger.info(f"URL: {pr.url}")
        return pr

    def merge_pr(
        self,
        identity: RepoIdentity,
        pr: PullRequest,
        message: str,
    ) -> PullRequest:
        """
        Mergea un PR ya creado.

        Raises:
            PRMergeError: Si la API responde con error o merged=false.
        """
        payload = {
            "commit_title": f"Merge content publish #{pr.number} from {pr.head}",
            "commit_message": message,
        }
        if self._config.merge_method:
            payload["merge_method"] = self._config.merge_method

        try:
            response = requests.put(
                f"{self._pulls_url(identity)}/{pr.number}/merge",
                json=payload,
                headers=self._headers(),
                timeout=self._config.timeout,
            )
        except requests.RequestException as e:
            raise PRMergeError(
                f"Error mergeando el PR #{pr.number}: {redact(str(e), self._token)}"
            ) from None

        if not response.ok:
            raise PRMergeError(
                f"Error mergeando el PR #{pr.number}: {self._describe_error(response)}"
            )

        try:
            data = response.json()
        except ValueError:
            data = {}
        if isinstance(data, dict) and data.get("merged") is False:
            raise PRMergeError(
                f"El PR #{pr.number} no se mergeó: {data.get('message', '')}"
            )

        pr.status = PRStatus.MERGED
        pr.merge_sha = data.get("sha", "") if isinstance(data, dict) else ""
        logger.success(f"PR #{pr.number} mergeado en {pr.base}")
        return pr

    # ============================================================
    # Utilidades
    # ============================================================

    def generate_pr_body(self, message: str, branch: str, files: list[str]) -> str:
        """Descripción del PR en markdown: mensaje, branch y archivos."""
        listado = "\n".join(f"- `{f}`" for f in files[:MAX_FILES_IN_BODY])
        if len(files) > MAX_FILES_IN_BODY:
            listado += f"\n- ... y {len(files) - MAX_FILES_IN_BODY} más"

        return f"""## Description
{message}

Branch: `{branch}`

## Changes
{listado or "- (sin archivos)"}

---
*PR created automatically by content-publish*
"""
