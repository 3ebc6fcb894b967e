"""
test_cli.py — Tests para la CLI de content-publish.

El pipeline se mockea; aquí solo importa cómo la CLI arma el request
y qué código de salida devuelve.
"""

from __future__ import annotations

from unittest.mock import patch

import git as gitpython
import pytest
from click.testing import CliRunner

from content_publish.cli import build_request, find_origin_url, main
from content_publish.config import AppConfig
from content_publish.errors import InputValidationError, InvalidRepoURL
from content_publish.publishing.models import OutcomeStatus, PublishOutcome, PublishStage

URL = "git@github.com:acme/site.git"


@pytest.fixture
def cfg(tmp_path) -> AppConfig:
    config = AppConfig()
    config.git.username = "bot"
    config.git.password = "s3cr3t-token"
    config.workspace.temp_root = str(tmp_path)
    return config


def _invoke(cfg, outcome, args):
    with patch("content_publish.cli.load_config", return_value=cfg), \
         patch("content_publish.cli.ContentPublisher") as publisher_cls:
        publisher_cls.return_value.publish.return_value = outcome
        result = CliRunner().invoke(main, args)
    return result, publisher_cls


class TestPublishCommand:
    def test_exito_sale_con_cero(self, cfg):
        outcome = PublishOutcome(
            status=OutcomeStatus.SUCCESS,
            stage=PublishStage.DONE,
            branch="content-publish-20240307-1",
            commit_sha="abcdef1234",
            pr_number=7,
        )
        result, publisher_cls = _invoke(cfg, outcome, ["publish", "--url", URL])

        assert result.exit_code == 0
        request = publisher_cls.return_value.publish.call_args[0][0]
        assert request.git_url == "https://github.com/acme/site.git"

    def test_sin_cambios_sale_con_cero(self, cfg):
        outcome = PublishOutcome(status=OutcomeStatus.NO_CHANGES, stage=PublishStage.DIFF)
        result, _ = _invoke(cfg, outcome, ["publish", "-u", URL])
        assert result.exit_code == 0

    def test_fallo_del_pipeline_sale_con_uno(self, cfg):
        outcome = PublishOutcome(
            status=OutcomeStatus.FAILED, stage=PublishStage.PUSH, error="rechazado"
        )
        result, _ = _invoke(cfg, outcome, ["publish", "-u", URL])
        assert result.exit_code == 1

    def test_resumen_de_fallo_incluye_la_causa(self, cfg):
        outcome = PublishOutcome(
            status=OutcomeStatus.FAILED,
            stage=PublishStage.PUSH,
            branch="content-publish-20240307-1",
            error="[rejected] no fast-forward",
        )
        result, _ = _invoke(cfg, outcome, ["publish", "-u", URL])

        assert result.exit_code == 1
        assert "Error:" in result.output
        assert "[rejected] no fast-forward" in result.output

    def test_validacion_fallida_sale_con_dos(self, cfg):
        outcome = PublishOutcome(
            status=OutcomeStatus.FAILED, stage=PublishStage.VALIDATION, error="x"
        )
        result, _ = _invoke(cfg, outcome, ["publish", "-u", URL])
        assert result.exit_code == 2

    def test_url_invalido_no_corre_el_pipeline(self, cfg):
        outcome = PublishOutcome(status=OutcomeStatus.SUCCESS, stage=PublishStage.DONE)
        result, publisher_cls = _invoke(cfg, outcome, ["publish", "-u", "ftp://x/y/z"])

        assert result.exit_code == 2
        publisher_cls.assert_not_called()

    def test_flags_llegan_al_request(self, cfg):
        outcome = PublishOutcome(status=OutcomeStatus.NO_CHANGES, stage=PublishStage.DIFF)
        result, publisher_cls = _invoke(cfg, outcome, [
            "publish", "-u", URL,
            "-b", "develop",
            "-s", "npm run fetch-content",
            "-m", "Update products",
            "-p", "content",
        ])

        assert result.exit_code == 0
        request = publisher_cls.return_value.publish.call_args[0][0]
        assert request.base == "develop"
        assert request.script == "npm run fetch-content"
        assert request.message == "Update products"
        assert request.path == "content"


class TestBuildRequest:
    def test_defaults(self, cfg, tmp_path):
        request = build_request(cfg, url=URL)

        assert request.base == "main"
        assert request.script == "echo"
        assert request.message == "Product publish"
        assert request.path == "src"
        assert request.git_username == "bot"
        assert request.git_password == "s3cr3t-token"
        assert request.temp_path == str(tmp_path)

    def test_base_de_la_config(self, cfg):
        cfg.git.default_branch = "production"
        assert build_request(cfg, url=URL).base == "production"

    def test_password_no_aparece_en_repr(self, cfg):
        assert "s3cr3t-token" not in repr(build_request(cfg, url=URL))

    def test_url_invalido(self, cfg):
        with pytest.raises(InvalidRepoURL):
            build_request(cfg, url="/var/repos/site")

    def test_usa_origin_si_no_hay_url(self, cfg, tmp_path, monkeypatch):
        repo = gitpython.Repo.init(tmp_path / "proyecto")
        repo.create_remote("origin", "https://github.com/acme/blog")
        repo.close()
        monkeypatch.chdir(tmp_path / "proyecto")

        assert build_request(cfg).git_url == "https://github.com/acme/blog.git"


class TestFindOriginUrl:
    def test_desde_subdirectorio(self, tmp_path):
        repo = gitpython.Repo.init(tmp_path / "proyecto")
        repo.create_remote("origin", URL)
        repo.close()
        sub = tmp_path / "proyecto" / "src" / "content"
        sub.mkdir(parents=True)

        assert find_origin_url(sub) == URL

    def test_sin_origin(self, tmp_path):
        gitpython.Repo.init(tmp_path / "proyecto").close()
        with pytest.raises(InputValidationError, match="origin"):
            find_origin_url(tmp_path / "proyecto")

    def test_sin_repo(self, tmp_path):
        with pytest.raises(InputValidationError):
            find_origin_url(tmp_path / "no-existe")


class TestConfigCommand:
    def test_show_no_muestra_el_password(self, cfg):
        with patch("content_publish.cli.load_config", return_value=cfg):
            result = CliRunner().invoke(main, ["config", "--show"])

        assert result.exit_code == 0
        assert "s3cr3t-token" not in result.output

    def test_validate_sin_credenciales(self, tmp_path):
        cfg = AppConfig()
        cfg.workspace.temp_root = str(tmp_path)
        with patch("content_publish.cli.load_config", return_value=cfg):
            result = CliRunner().invoke(main, ["config", "--validate"])
        assert result.exit_code == 2

    def test_validate_ok(self, cfg):
        with patch("content_publish.cli.load_config", return_value=cfg):
            result = CliRunner().invoke(main, ["config", "--validate"])
        assert result.exit_code == 0

    def test_version(self):
        result = CliRunner().invoke(main, ["--version"])
        assert "content-publish" in result.output
