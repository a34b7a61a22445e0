"""Tests for the command-line entry point."""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from omnisearch import __version__
from omnisearch.cli import CONFIG_ENV_VAR, build_parser, main


class TestParser:
    def test_defaults(self) -> None:
        args = build_parser().parse_args([])
        assert args.config is None
        assert args.port is None
        assert args.reload is False

    def test_overrides(self) -> None:
        args = build_parser().parse_args(["-c", "conf.yaml", "--host", "127.0.0.1", "-p", "9000", "--log-level", "debug"])
        assert args.config == "conf.yaml"
        assert args.host == "127.0.0.1"
        assert args.port == 9000
        assert args.log_level == "debug"

    def test_version(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--version"])
        assert __version__ in capsys.readouterr().out


class TestMain:
    def test_missing_config_exits(self, tmp_path: Path) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["--config", str(tmp_path / "missing.yaml")])
        assert exc_info.value.code == 1

    def test_runs_uvicorn_factory(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        config = tmp_path / "omnisearch-config.yaml"
        config.write_text("server:\n  port: 8181\n")
        monkeypatch.setenv(CONFIG_ENV_VAR, "")
        monkeypatch.setenv("OMNISEARCH_OBSERVABILITY__LOG_LEVEL", "info")

        with (
            patch("omnisearch.cli._check_port") as check_port,
            patch("omnisearch.observability.logging.setup_logging"),
            patch("uvicorn.run") as run,
        ):
            main(["--config", str(config), "--log-level", "warning"])

        check_port.assert_called_once_with("0.0.0.0", 8181)
        kwargs = run.call_args.kwargs
        assert run.call_args.args[0] == "omnisearch.api.app:create_app"
        assert kwargs["factory"] is True
        assert kwargs["port"] == 8181
        assert kwargs["log_level"] == "warning"
        assert Path(os.environ[CONFIG_ENV_VAR]) == config.resolve()
