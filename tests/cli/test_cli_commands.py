"""Tests for the tripguard CLI: limits, config and serve commands."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from loguru import logger
from typer.testing import CliRunner

from tripguard.cli.app import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def _drop_cli_log_sinks():
    """The CLI callback installs sinks on the runner's streams; remove them afterwards."""
    yield
    logger.remove()


def _invoke(config_path: Path, tmp_path: Path, *args: str):
    return runner.invoke(
        app,
        ["--quiet", "--log-dir", str(tmp_path / "logs"), "--config", str(config_path), *args],
    )


class TestLimitsCommand:
    def test_prints_default_table(self, config_path: Path, tmp_path: Path):
        result = _invoke(config_path, tmp_path, "limits")
        assert result.exit_code == 0, result.output
        for category in ("auth", "read", "write", "sensitive"):
            assert category in result.output
        assert "60s" in result.output

    def test_reflects_config_file(self, config_path: Path, tmp_path: Path):
        config_path.write_text(
            json.dumps({"rate_limits": {"sensitive": {"max_requests": 3, "window_seconds": 900}}}),
            encoding="utf-8",
        )
        result = _invoke(config_path, tmp_path, "limits")
        assert result.exit_code == 0, result.output
        assert "900s" in result.output

    def test_sweep_interval_shown_as_enforced(self, config_path: Path, tmp_path: Path):
        config_path.write_text(
            json.dumps(
                {
                    "rate_limits": {
                        "sensitive": {"max_requests": 3, "window_seconds": 900},
                        "sweep_interval_seconds": 60,
                    }
                }
            ),
            encoding="utf-8",
        )
        result = _invoke(config_path, tmp_path, "limits")
        assert result.exit_code == 0, result.output
        assert "Sweep interval: 900s." in result.output

    def test_longer_sweep_interval_kept(self, config_path: Path, tmp_path: Path):
        config_path.write_text(
            json.dumps({"rate_limits": {"sweep_interval_seconds": 300}}), encoding="utf-8"
        )
        result = _invoke(config_path, tmp_path, "limits")
        assert result.exit_code == 0, result.output
        assert "Sweep interval: 300s." in result.output

    def test_writes_log_file(self, config_path: Path, tmp_path: Path):
        _invoke(config_path, tmp_path, "limits")
        assert (tmp_path / "logs").is_dir()


class TestConfigCommands:
    def test_path(self, config_path: Path, tmp_path: Path):
        result = _invoke(config_path, tmp_path, "config", "path")
        assert result.exit_code == 0
        assert str(config_path) in result.output.replace("\n", "")

    def test_show(self, config_path: Path, tmp_path: Path):
        result = _invoke(config_path, tmp_path, "config", "show")
        assert result.exit_code == 0, result.output
        assert "rate_limits" in result.output

    def test_set_int(self, config_path: Path, tmp_path: Path):
        result = _invoke(
            config_path, tmp_path, "config", "set", "rate_limits.auth.max_requests", "20"
        )
        assert result.exit_code == 0, result.output

        saved = json.loads(config_path.read_text(encoding="utf-8"))
        assert saved["rate_limits"]["auth"]["max_requests"] == 20

    def test_set_bool(self, config_path: Path, tmp_path: Path):
        result = _invoke(config_path, tmp_path, "config", "set", "gateway.api.hsts", "true")
        assert result.exit_code == 0, result.output

        saved = json.loads(config_path.read_text(encoding="utf-8"))
        assert saved["gateway"]["api"]["hsts"] is True

    def test_set_list(self, config_path: Path, tmp_path: Path):
        result = _invoke(
            config_path,
            tmp_path,
            "config",
            "set",
            "gateway.api.cors_allowed_origins",
            "https://a.example, https://b.example",
        )
        assert result.exit_code == 0, result.output

        saved = json.loads(config_path.read_text(encoding="utf-8"))
        assert saved["gateway"]["api"]["cors_allowed_origins"] == [
            "https://a.example",
            "https://b.example",
        ]

    def test_set_rejects_invalid_budget(self, config_path: Path, tmp_path: Path):
        result = _invoke(
            config_path, tmp_path, "config", "set", "rate_limits.auth.max_requests", "0"
        )
        assert result.exit_code == 1
        assert json.loads(config_path.read_text(encoding="utf-8")) == {}

    def test_set_rejects_non_numeric(self, config_path: Path, tmp_path: Path):
        result = _invoke(config_path, tmp_path, "config", "set", "gateway.port", "eighty")
        assert result.exit_code == 1

    def test_set_rejects_unknown_path(self, config_path: Path, tmp_path: Path):
        result = _invoke(
            config_path, tmp_path, "config", "set", "rate_limits.admin.max_requests", "5"
        )
        assert result.exit_code == 1
        assert "admin" in result.output


class TestServeCommand:
    def test_runs_uvicorn_with_overrides(self, config_path: Path, tmp_path: Path, monkeypatch):
        calls: list[dict] = []

        def fake_run(app, **kwargs):
            calls.append({"app": app, **kwargs})

        monkeypatch.setattr("uvicorn.run", fake_run)

        result = _invoke(config_path, tmp_path, "serve", "--host", "0.0.0.0", "--port", "9000")

        assert result.exit_code == 0, result.output
        assert len(calls) == 1
        assert calls[0]["host"] == "0.0.0.0"
        assert calls[0]["port"] == 9000
        assert calls[0]["app"].state.rate_limiter is not None

    def test_uses_config_defaults(self, config_path: Path, tmp_path: Path, monkeypatch):
        calls: list[dict] = []
        monkeypatch.setattr("uvicorn.run", lambda app, **kwargs: calls.append(kwargs))

        result = _invoke(config_path, tmp_path, "serve")

        assert result.exit_code == 0, result.output
        assert calls[0]["host"] == "127.0.0.1"
        assert calls[0]["port"] == 8080
