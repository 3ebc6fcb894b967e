"""
conftest.py — Fixtures compartidas.

Los tests de git usan repositorios reales en tmp_path:
- "seed": repo de trabajo con el commit inicial
- "remote.git": repo bare que hace de servidor remoto
"""

from __future__ import annotations

import os
from pathlib import Path

import git as gitpython
import pytest

from content_publish.config import AppConfig, BuildConfig
from content_publish.publishing.models import PublishRequest

TEST_AUTHOR = gitpython.Actor("Test", "test@example.com")

INITIAL_FILES = {
    "src/a.txt": "alpha\n",
    "src/b.txt": "beta\n",
    "src/nested/d.txt": "delta\n",
    "other/c.txt": "gamma\n",
    "README.md": "# site\n",
}


def write_files(root: Path, files: dict[str, str]) -> None:
    for ruta, contenido in files.items():
        destino = root / ruta
        destino.parent.mkdir(parents=True, exist_ok=True)
        destino.write_text(contenido, encoding="utf-8")


def commit_symlink(repo: gitpython.Repo, link: str, target: str) -> None:
    """Crea link -> target en el working tree y lo commitea."""
    destino = Path(repo.working_tree_dir) / link
    destino.parent.mkdir(parents=True, exist_ok=True)
    os.symlink(target, destino)
    repo.git.add("--", link)
    repo.index.commit(f"link {link}", author=TEST_AUTHOR, committer=TEST_AUTHOR)


@pytest.fixture
def remote_repo(tmp_path) -> Path:
    """Repo bare con un branch main que contiene INITIAL_FILES."""
    seed_dir = tmp_path / "seed"
    seed = gitpython.Repo.init(seed_dir)
    write_files(seed_dir, INITIAL_FILES)
    seed.index.add(list(INITIAL_FILES))
    seed.index.commit("init", author=TEST_AUTHOR, committer=TEST_AUTHOR)
    seed.git.branch("-M", "main")

    bare_dir = tmp_path / "remote.git"
    gitpython.Repo.init(bare_dir, bare=True)
    seed.create_remote("origin", str(bare_dir))
    seed.git.push("origin", "main:main")
    seed.close()
    return bare_dir


@pytest.fixture
def local_clone(tmp_path, remote_repo) -> gitpython.Repo:
    """Clone de trabajo del remoto (para tests de diff y commit)."""
    repo = gitpython.Repo.clone_from(str(remote_repo), tmp_path / "work", branch="main")
    yield repo
    repo.close()


@pytest.fixture
def scratch_dir(tmp_path) -> Path:
    scratch = tmp_path / "scratch"
    scratch.mkdir()
    return scratch


@pytest.fixture
def app_config(scratch_dir) -> AppConfig:
    """Config sin install/build (solo corre el script del test)."""
    config = AppConfig(build=BuildConfig(install_command="", build_command=""))
    config.workspace.temp_root = str(scratch_dir)
    config.git.username = "bot"
    config.git.password = "s3cr3t-token"
    config.git.author_name = "Content Bot"
    config.git.author_email = "bot@example.com"
    return config


@pytest.fixture
def publish_request(scratch_dir) -> PublishRequest:
    return PublishRequest(
        base="main",
        script="echo",
        message="Product publish",
        path="src",
        git_url="https://github.com/acme/site.git",
        git_username="bot",
        git_password="s3cr3t-token",
        temp_path=str(scratch_dir),
    )
