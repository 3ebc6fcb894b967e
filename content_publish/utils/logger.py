"""
logger.py — Logging para el pipeline de publicación usando Rich + archivo.

Dual output:
- Rich console: colores y formato para la salida del job (CI o terminal)
- Archivo rotativo: logs/content-publish.log para diagnóstico post-mortem

Uso:
    from content_publish.utils.logger import get_logger, console
    logger = get_logger("content_publish.git")
    logger.info("Clonando repositorio...")
    logger.success("Push exitoso")
    logger.error("Error al crear el PR")
"""

from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.theme import Theme

# No escribir archivos de log dentro de pytest
_in_pytest = "pytest" in sys.modules or "PYTEST_CURRENT_TEST" in os.environ

publish_theme = Theme({
    "info": "cyan",
    "success": "bold green",
    "warning": "bold yellow",
    "error": "bold red",
    "step": "bold magenta",
})

# Consola global — se usa en todo el proyecto
console = Console(theme=publish_theme)

LOG_DIR_ENV = "CONTENT_PUBLISH_LOG_DIR"

# ================================================================
# File logging setup
# ================================================================

_file_logger: logging.Logger | None = None


def _setup_file_logger() -> logging.Logger:
    """Configura el logger de archivo con rotación."""
    global _file_logger
    if _file_logger is not None:
        return _file_logger

    if _in_pytest:
        _file_logger = logging.getLogger("content_publish.null")
        _file_logger.addHandler(logging.NullHandler())
        return _file_logger

    log_dir = Path(os.environ.get(LOG_DIR_ENV, "logs"))
    log_dir.mkdir(parents=True, exist_ok=True)

    _file_logger = logging.getLogger("content_publish.file")
    _file_logger.setLevel(logging.DEBUG)

    # Evitar handlers duplicados
    if not _file_logger.handlers:
        handler = RotatingFileHandler(
            log_dir / "content-publish.log",
            maxBytes=5 * 1024 * 1024,  # 5 MB
            backupCount=5,
            encoding="utf-8",
        )
        handler.setFormatter(logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
        _file_logger.addHandler(handler)

    return _file_logger


class PublishLogger:
    """
    Logger que usa Rich para la consola + archivo para el historial.

    Cada módulo crea su propio logger con un nombre para
    identificar de dónde viene cada mensaje.

    Args:
        name: Nombre del módulo (ej: "content_publish.pipeline")
    """

    def __init__(self, name: str):
        self._name = name
        self._file = _setup_file_logger()

    def debug(self, message: str) -> None:
        """Solo va al archivo, no a la consola."""
        self._file.debug(f"[{self._name}] {message}")

    def info(self, message: str) -> None:
        """Mensaje informativo (cyan)."""
        console.print(f"[info]i  {escape(message)}[/info]", highlight=False)
        self._file.info(f"[{self._name}] {message}")

    def success(self, message: str) -> None:
        """Mensaje de éxito (verde)."""
        console.print(f"[success][OK] {escape(message)}[/success]", highlight=False)
        self._file.info(f"[{self._name}] OK: {message}")

    def warning(self, message: str) -> None:
        """Mensaje de advertencia (amarillo)."""
        console.print(f"[warning][!] {escape(message)}[/warning]", highlight=False)
        self._file.warning(f"[{self._name}] {message}")

    def error(self, message: str) -> None:
        """Mensaje de error (rojo)."""
        console.print(f"[error][X] {escape(message)}[/error]", highlight=False)
        self._file.error(f"[{self._name}] {message}")

    def step(self, number: int, total: int, message: str) -> None:
        """Mensaje de paso en un proceso."""
        console.print(f"[step]  [{number}/{total}] {escape(message)}[/step]", highlight=False)
        self._file.info(f"[{self._name}] [{number}/{total}] {message}")


def get_logger(name: str = "content_publish") -> PublishLogger:
    """
    Obtiene un logger para el módulo especificado.

    Ejemplo:
        logger = get_logger("content_publish.workspace")
        logger.info("Clonando...")
    """
    return PublishLogger(name)
