"""
config.py — Carga y gestiona la configuración de content_publish.

Se encarga de:
1. Cargar config.yaml (configuración general, opcional)
2. Cargar .env (secretos: usuario y token de git)
3. Resolver variables de entorno en los valores de config (${VAR})
4. Aplicar los overrides CONTENT_PUBLISH_* del entorno

El resultado es un AppConfig explícito que se le pasa al pipeline;
ningún módulo del pipeline lee os.environ por su cuenta.

Uso:
    from content_publish.config import load_config
    config = load_config()
    print(config.git.default_branch)  # "main"
"""

from __future__ import annotations

import os
import re
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

# Variables de entorno reconocidas → (sección, campo)
ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "CONTENT_PUBLISH_GIT_USERNAME": ("git", "username"),
    "CONTENT_PUBLISH_GIT_PASSWORD": ("git", "password"),
    "CONTENT_PUBLISH_BASE_BRANCH": ("git", "default_branch"),
    "CONTENT_PUBLISH_AUTHOR_NAME": ("git", "author_name"),
    "CONTENT_PUBLISH_AUTHOR_EMAIL": ("git", "author_email"),
    "CONTENT_PUBLISH_TEMP_PATH_PREFIX": ("workspace", "prefix"),
}


# ============================================================
# Dataclasses de configuración
# ============================================================

@dataclass
class GitConfig:
    """Credenciales, branch por defecto y autor de los commits."""
    default_branch: str = "main"
    username: str = ""
    password: str = ""
    author_name: str = "john"
    author_email: str = "john@example.com"


@dataclass
class WorkspaceConfig:
    """Dónde y cómo se crean los workspaces temporales."""
    # Vacío = realpath del directorio temporal del sistema
    temp_root: str = ""
    prefix: str = ""
    keep_workspace: bool = False


@dataclass
class BuildConfig:
    """Pasos que se ejecutan antes del script del caller."""
    install_command: str = "npm i"
    build_command: str = "npm run build"


@dataclass
class GitHubConfig:
    """API REST de pull requests."""
    # Vacío = se deriva del host del repo
    api_url: str = ""
    timeout: int = 30
    merge_method: str = "merge"


@dataclass
class PublishDefaults:
    """Valores por defecto de los flags de la CLI."""
    script: str = "echo"
    message: str = "Product publish"
    path: str = "src"


@dataclass
class AppConfig:
    """Configuración completa de la aplicación."""
    git: GitConfig = field(default_factory=GitConfig)
    workspace: WorkspaceConfig = field(default_factory=WorkspaceConfig)
    build: BuildConfig = field(default_factory=BuildConfig)
    github: GitHubConfig = field(default_factory=GitHubConfig)
    publish: PublishDefaults = field(default_factory=PublishDefaults)

    def resolve_temp_root(self) -> str:
        """Directorio raíz de los workspaces, ya resuelto."""
        if self.workspace.temp_root:
            return self.workspace.temp_root
        return os.path.realpath(tempfile.gettempdir())


# ============================================================
# Funciones de carga
# ============================================================

def _resolve_env_vars(value: str) -> str:
    """
    Resuelve variables de entorno en un string.

    Ejemplo:
        "${CI_TOKEN}" → "ghp_..."
    Si la variable no existe se deja el placeholder tal cual.
    """
    patron = re.compile(r"\$\{(\w+)\}")

    def reemplazar(match: re.Match) -> str:
        return os.environ.get(match.group(1), match.group(0))

    return patron.sub(reemplazar, value)


def _resolve_env_recursive(data: Any) -> Any:
    """Resuelve ${VARIABLE} recursivamente en dicts y listas del YAML."""
    if isinstance(data, str):
        return _resolve_env_vars(data)
    elif isinstance(data, dict):
        return {k: _resolve_env_recursive(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [_resolve_env_recursive(item) for item in data]
    return data


def _dict_to_dataclass(data: dict, cls: type) -> Any:
    """Convierte un diccionario a una dataclass, ignorando keys desconocidas."""
    campos_validos = {f.name for f in cls.__dataclass_fields__.values()}
    datos_filtrados = {k: v for k, v in (data or {}).items() if k in campos_validos}
    return cls(**datos_filtrados)


def _find_config_dir() -> Path:
    """
    Busca config.yaml desde el directorio actual hacia arriba.

    Si no lo encuentra, usa el directorio actual.
    """
    current = Path.cwd()
    for parent in [current] + list(current.parents):
        if (parent / "config.yaml").exists():
            return parent
    return current


def _apply_env_overrides(config: AppConfig) -> None:
    """Las variables CONTENT_PUBLISH_* ganan sobre config.yaml."""
    for nombre_var, (seccion, campo) in ENV_OVERRIDES.items():
        valor = os.environ.get(nombre_var)
        if valor:
            setattr(getattr(config, seccion), campo, valor)


def load_config(config_path: Path | None = None) -> AppConfig:
    """
    Carga la configuración completa.

    Pasos:
    1. Carga .env del directorio del proyecto (si existe)
    2. Lee config.yaml (si existe; si no, valores por defecto)
    3. Resuelve ${VARIABLES} en los valores del YAML
    4. Convierte cada sección a su dataclass
    5. Aplica los overrides CONTENT_PUBLISH_* del entorno

    Args:
        config_path: Ruta al config.yaml. Si es None, busca automáticamente.
    """
    proyecto_dir = config_path.parent if config_path else _find_config_dir()
    env_path = proyecto_dir / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    if config_path is None:
        config_path = proyecto_dir / "config.yaml"

    raw_config: dict = {}
    if config_path.exists():
        with open(config_path, "r", encoding="utf-8") as f:
            raw_config = yaml.safe_load(f) or {}

    config_resuelto = _resolve_env_recursive(raw_config)

    app_config = AppConfig(
        git=_dict_to_dataclass(config_resuelto.get("git", {}), GitConfig),
        workspace=_dict_to_dataclass(
            config_resuelto.get("workspace", {}), WorkspaceConfig
        ),
        build=_dict_to_dataclass(config_resuelto.get("build", {}), BuildConfig),
        github=_dict_to_dataclass(config_resuelto.get("github", {}), GitHubConfig),
        publish=_dict_to_dataclass(
            config_resuelto.get("publish", {}), PublishDefaults
        ),
    )

    _apply_env_overrides(app_config)
    return app_config
