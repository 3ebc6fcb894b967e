"""
cli.py — Punto de entrada de content-publish.

Comandos disponibles:
    content-publish publish                       → Publica con los defaults
    content-publish publish -b main -s "npm run fetch-content" -p src
    content-publish config --show                 → Muestra configuración
    content-publish config --validate             → Valida credenciales

Si no se pasa --url, se usa el remote "origin" del repositorio git que
contiene el directorio actual (como en un job de CI).

Códigos de salida:
    0 → publicado o sin cambios
    1 → falló alguna etapa del pipeline
    2 → input inválido (URL, origin inexistente, validación)

Uso desde código (testing):
    from click.testing import CliRunner
    from content_publish.cli import main
    CliRunner().invoke(main, ["publish", "--url", "git@github.com:acme/site.git"])
"""

from __future__ import annotations

import sys
from pathlib import Path

import click
import git as gitpython
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from content_publish import __version__
from content_publish.config import AppConfig, load_config
from content_publish.errors import ContentPublishError, InputValidationError
from content_publish.publishing.models import (
    OutcomeStatus,
    PublishOutcome,
    PublishRequest,
    PublishStage,
)
from content_publish.publishing.pipeline import ContentPublisher
from content_publish.publishing.repo_identity import resolve_repo_identity
from content_publish.utils.logger import get_logger, console as rich_console

logger = get_logger("content_publish.cli")

EXIT_FAILED = 1
EXIT_INVALID_INPUT = 2


@click.group()
@click.version_option(version=__version__, prog_name="content-publish")
def main():
    """Publica cambios de contenido como un Pull Request mergeado."""
    pass


@main.command()
@click.option("--base", "-b", default="", help="Branch destino (default: config o 'main')")
@click.option("--script", "-s", default=None, help="Comando que actualiza el contenido")
@click.option("--message", "-m", default=None, help="Mensaje del commit")
@click.option("--path", "-p", "content_path", default=None, help="Ruta del contenido a comparar")
@click.option("--url", "-u", default=None, help="URL remoto (default: origin del repo actual)")
@click.option(
    "--config", "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Ruta a config.yaml",
)
def publish(
    base: str,
    script: str | None,
    message: str | None,
    content_path: str | None,
    url: str | None,
    config_path: Path | None,
):
    """Clona, ejecuta el script y publica los cambios como PR."""
    cfg = load_config(config_path)

    try:
        request = build_request(cfg, base, script, message, content_path, url)
    except ContentPublishError as e:
        logger.error(str(e))
        sys.exit(EXIT_INVALID_INPUT)

    outcome = ContentPublisher(cfg).publish(request)
    _show_summary(outcome)

    if outcome.status is OutcomeStatus.FAILED:
        if outcome.stage is PublishStage.VALIDATION:
            sys.exit(EXIT_INVALID_INPUT)
        sys.exit(EXIT_FAILED)


@main.command()
@click.option("--show", is_flag=True, help="Muestra la configuración actual")
@click.option("--validate", is_flag=True, help="Valida la configuración")
@click.option(
    "--config", "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Ruta a config.yaml",
)
def config(show: bool, validate: bool, config_path: Path | None):
    """Gestiona la configuración."""
    cfg = load_config(config_path)

    if show:
        tabla = Table(title="Configuración de content-publish")
        tabla.add_column("Parámetro", style="cyan")
        tabla.add_column("Valor", style="green")

        tabla.add_row("Base branch", cfg.git.default_branch)
        tabla.add_row("Usuario git", cfg.git.username or "(no configurado)")
        tabla.add_row("Password git", "✅ Configurado" if cfg.git.password else "❌ Falta")
        tabla.add_row("Autor", f"{cfg.git.author_name} <{cfg.git.author_email}>")
        tabla.add_row("Temp root", cfg.resolve_temp_root())
        tabla.add_row("Prefijo workspace", cfg.workspace.prefix or "(ninguno)")
        tabla.add_row("Conservar workspace", str(cfg.workspace.keep_workspace))
        tabla.add_row("Install", cfg.build.install_command or "(omitido)")
        tabla.add_row("Build", cfg.build.build_command or "(omitido)")
        tabla.add_row("API", cfg.github.api_url or "(según el host)")
        tabla.add_row("Script por defecto", cfg.publish.script)
        tabla.add_row("Path por defecto", cfg.publish.path)

        rich_console.print(tabla)

    if validate:
        if not _validate_config(cfg):
            sys.exit(EXIT_INVALID_INPUT)


# ============================================================
# Funciones auxiliares
# ============================================================

def find_origin_url(start: Path | None = None) -> str:
    """
    URL del remote "origin" del repo git que contiene start (o el cwd).

    Raises:
        InputValidationError: Si no hay repo git o no tiene origin.
    """
    try:
        repo = gitpython.Repo(start or Path.cwd(), search_parent_directories=True)
    except (gitpython.InvalidGitRepositoryError, gitpython.NoSuchPathError):
        raise InputValidationError("No se encontró un repositorio git en el directorio actual.") from None

    with repo:
        origin = next((r for r in repo.remotes if r.name == "origin"), None)
        if origin is None:
            raise InputValidationError("No se encontró el remote origin.")
        return origin.url


def build_request(
    cfg: AppConfig,
    base: str = "",
    script: str | None = None,
    message: str | None = None,
    content_path: str | None = None,
    url: str | None = None,
) -> PublishRequest:
    """
    Arma el PublishRequest a partir de flags + config.

    El URL se normaliza a HTTPS; si es inválido lanza InvalidRepoURL.
    """
    identity = resolve_repo_identity(url or find_origin_url())

    return PublishRequest(
        base=base or cfg.git.default_branch or "main",
        script=script if script is not None else cfg.publish.script,
        message=message if message is not None else cfg.publish.message,
        path=content_path if content_path is not None else cfg.publish.path,
        git_url=identity.clone_url,
        git_username=cfg.git.username,
        git_password=cfg.git.password,
        temp_path=cfg.resolve_temp_root(),
    )


def _show_summary(outcome: PublishOutcome) -> None:
    """Muestra el resultado final del run."""
    if outcome.status is OutcomeStatus.SUCCESS:
        rich_console.print(Panel(
            f"[bold]Branch:[/bold] {outcome.branch}\n"
            f"[bold]Commit:[/bold] {outcome.commit_sha[:7]}\n"
            f"[bold]PR:[/bold] #{outcome.pr_number} {outcome.pr_url}\n"
            f"[bold]Archivos:[/bold] {len(outcome.changed_files)}",
            title="Contenido publicado",
            border_style="green",
        ))
    elif outcome.status is OutcomeStatus.NO_CHANGES:
        rich_console.print(Panel(
            "No hay cambios en el contenido. No se creó commit ni PR.",
            title="Sin cambios",
            border_style="cyan",
        ))
    else:
        rich_console.print(Panel(
            f"[bold]Etapa:[/bold] {outcome.stage.value}\n"
            f"[bold]Branch:[/bold] {outcome.branch or '(no creado)'}\n"
            f"[bold]Error:[/bold] {escape(outcome.error)}",
            title="Publicación fallida",
            border_style="red",
        ))


def _validate_config(cfg: AppConfig) -> bool:
    """Valida la configuración y muestra resultado."""
    problemas = []

    if not cfg.git.username:
        problemas.append("CONTENT_PUBLISH_GIT_USERNAME no configurada")
    if not cfg.git.password:
        problemas.append("CONTENT_PUBLISH_GIT_PASSWORD no configurada")
    if not Path(cfg.resolve_temp_root()).is_dir():
        problemas.append(f"El temp root no existe: {cfg.resolve_temp_root()}")

    if problemas:
        for p in problemas:
            logger.error(p)
        return False

    logger.success("Configuración válida")
    return True


if __name__ == "__main__":
    main()
