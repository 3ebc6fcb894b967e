"""
build_runner.py — Ejecuta el script de actualización de contenido.

El script es una caja negra: se corre dentro del workspace y lo único
que importa es el exit code y los archivos que deja modificados.
El comando real es:

    {install_command} && {build_command} && {script}

Con la config por defecto: npm i && npm run build && {script}.

Cualquier objeto con execute(working_directory) -> BuildResult sirve
como runner (ver BuildRunner), así el pipeline no depende del shell.
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from content_publish.config import BuildConfig
from content_publish.errors import BuildScriptError
from content_publish.utils.logger import get_logger

logger = get_logger("content_publish.build")


@dataclass
class BuildResult:
    """Resultado de ejecutar el script."""
    exit_code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


class BuildRunner(Protocol):
    def execute(self, working_directory: Path) -> BuildResult:
        ...


def compose_command(script: str, build: BuildConfig) -> str:
    """Une install, build y el script del caller con &&, saltando los vacíos."""
    pasos = [build.install_command, build.build_command, script]
    return " && ".join(p.strip() for p in pasos if p and p.strip())


class ShellBuildRunner:
    """
    Corre el comando compuesto con el shell del sistema.

    Args:
        script: Comando del caller (ej: "npm run fetch-content").
        build: Comandos de install/build de la config.
    """

    def __init__(self, script: str, build: BuildConfig | None = None):
        self.command = compose_command(script, build or BuildConfig())

    def execute(self, working_directory: Path) -> BuildResult:
        logger.info(f"Ejecutando: {self.command}")
        try:
            resultado = subprocess.run(
                self.command,
                shell=True,
                cwd=working_directory,
                capture_output=True,
                # El script puede escribir bytes que no son UTF-8
                encoding="utf-8",
                errors="replace",
            )
        except OSError as e:
            return BuildResult(exit_code=127, stderr=str(e))

        return BuildResult(
            exit_code=resultado.returncode,
            stdout=resultado.stdout,
            stderr=resultado.stderr,
        )


def run_build(runner: BuildRunner, working_directory: Path) -> BuildResult:
    """
    Ejecuta el runner y convierte un exit code != 0 en BuildScriptError.

    El stderr capturado va tal cual en el error.
    """
    resultado = runner.execute(working_directory)
    if not resultado.ok:
        raise BuildScriptError(
            f"Error en setup y build (exit {resultado.exit_code}): {resultado.stderr}",
            exit_code=resultado.exit_code,
            stderr=resultado.stderr,
        )
    logger.success("Setup y build completados")
    return resultado
