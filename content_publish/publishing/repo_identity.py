"""
repo_identity.py — Normaliza el URL remoto de un repositorio.

Formatos aceptados:
    git@github.com:acme/site.git      → https://github.com/acme/site.git
    https://github.com/acme/site      → https://github.com/acme/site.git
    https://github.com/acme/site.git  → (sin cambios)

Cualquier otra cosa (ftp://, ssh://, rutas locales...) se rechaza con
InvalidRepoURL. Es parsing puro, no toca la red.

Uso:
    from content_publish.publishing.repo_identity import resolve_repo_identity
    identity = resolve_repo_identity("git@github.com:acme/site.git")
    identity.owner, identity.repo  # ("acme", "site")
"""

from __future__ import annotations

import re
from urllib.parse import quote

from content_publish.errors import InvalidRepoURL
from content_publish.publishing.models import RepoIdentity

# [usuario@]host:owner/repo.git
SSH_PATTERN = re.compile(
    r"^(?:[\w.+-]+@)?(?P<host>[A-Za-z0-9.-]+):(?P<owner>[^/\s:]+)/(?P<repo>[^/\s]+?)\.git$"
)

# https://[credenciales@]host/owner/repo[.git][/]
HTTPS_PATTERN = re.compile(
    r"^https://(?:[^@/\s]+@)?(?P<host>[^/@\s]+)/(?P<owner>[^/\s]+)/(?P<repo>[^/\s]+?)(?:\.git)?/?$",
    re.IGNORECASE,
)

GITHUB_API = "https://api.github.com"
REDACTED = "***"


def resolve_repo_identity(url: str) -> RepoIdentity:
    """
    Deriva host, owner, repo y el URL HTTPS canónico de un URL remoto.

    Raises:
        InvalidRepoURL: Si el URL no coincide con ningún formato aceptado.
    """
    url = (url or "").strip()
    match = SSH_PATTERN.match(url) or HTTPS_PATTERN.match(url)
    if not match:
        raise InvalidRepoURL(f"URL de git inválido: {url!r}")

    host = match.group("host")
    owner = match.group("owner")
    repo = match.group("repo")
    if repo.lower().endswith(".git"):
        repo = repo[:-4]
    if not repo:
        raise InvalidRepoURL(f"URL de git inválido: {url!r}")

    return RepoIdentity(
        host=host,
        owner=owner,
        repo=repo,
        clone_url=f"https://{host}/{owner}/{repo}.git",
    )


def authenticated_url(identity: RepoIdentity, username: str, password: str) -> str:
    """
    URL HTTPS con credenciales embebidas para clone/ls-remote/push.

    Nunca se guarda en disco ni se loguea: el origin del clone se
    vuelve a apuntar al clone_url limpio.
    """
    user = quote(username, safe="")
    secret = quote(password, safe="")
    return f"https://{user}:{secret}@{identity.host}/{identity.owner}/{identity.repo}.git"


def api_base_url(identity: RepoIdentity, override: str = "") -> str:
    """Base de la API REST: api.github.com o /api/v3 en GitHub Enterprise."""
    if override:
        return override.rstrip("/")
    if identity.host.lower() == "github.com":
        return GITHUB_API
    return f"https://{identity.host}/api/v3"


def redact(text: str, *secrets: str) -> str:
    """Reemplaza cada secreto (y su forma url-encoded) por ***."""
    for secret in secrets:
        if not secret:
            continue
        for variante in {secret, quote(secret, safe="")}:
            text = text.replace(variante, REDACTED)
    return text
