"""Tests for CLI commands."""

from __future__ import annotations

import logging
from pathlib import Path
from unittest.mock import MagicMock, patch

from typer.testing import CliRunner

from tgdocs.cli import _build_engine, _setup_logging, app


runner = CliRunner()


def offline_args(tmp_path: Path) -> list[str]:
    return ["--offline", "--cache-dir", str(tmp_path / "cache")]


class TestSetupLogging:
    """Tests for _setup_logging helper."""

    def test_setup_logging_verbose(self) -> None:
        """Verbose mode sets DEBUG level."""
        with patch("tgdocs.cli.logging.basicConfig") as mock_config:
            _setup_logging(verbose=True)
            mock_config.assert_called_once()
            assert mock_config.call_args[1]["level"] == logging.DEBUG

    def test_setup_logging_normal(self) -> None:
        """Normal mode sets INFO level."""
        with patch("tgdocs.cli.logging.basicConfig") as mock_config:
            _setup_logging(verbose=False)
            assert mock_config.call_args[1]["level"] == logging.INFO


class TestBuildEngine:
    """Tests for _build_engine helper."""

    def test_offline_engine(self, tmp_path: Path) -> None:
        engine = _build_engine(tmp_path / "cache", offline=True)
        assert engine.store.cache_dir == tmp_path / "cache"
        assert engine.refresh() is False


class TestLookupCommands:
    """Lookup commands against the packaged offline bundle."""

    def test_search(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["search", "remote_state", *offline_args(tmp_path)])
        assert result.exit_code == 0
        assert "matches." in result.stdout

    def test_search_no_results(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["search", "zzz-no-such-topic", *offline_args(tmp_path)])
        assert result.exit_code == 0
        assert "No matches found" in result.stdout

    def test_sections(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["sections", *offline_args(tmp_path)])
        assert result.exit_code == 0
        assert "getting-started" in result.stdout
        assert "4 sections, 18 pages." in result.stdout

    def test_section(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["section", "community", *offline_args(tmp_path)])
        assert result.exit_code == 0
        assert "Contributing" in result.stdout

    def test_unknown_section(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["section", "nope", *offline_args(tmp_path)])
        assert result.exit_code == 0
        assert "No documentation found for section: nope" in result.stdout
        assert "Available sections:" in result.stdout

    def test_command(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["command", "plan", *offline_args(tmp_path)])
        assert result.exit_code == 0
        assert "Run terragrunt plan" in result.stdout

    def test_unknown_command(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["command", "nope", *offline_args(tmp_path)])
        assert result.exit_code == 0
        assert "No documentation found for command: nope" in result.stdout
        assert "Available commands include" in result.stdout

    def test_config(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["config", "dependency", *offline_args(tmp_path)])
        assert result.exit_code == 0
        assert "dependency" in result.stdout

    def test_examples(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["examples", "hclfmt", *offline_args(tmp_path)])
        assert result.exit_code == 0
        assert "terragrunt hclfmt --terragrunt-check" in result.stdout

    def test_status(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["status", *offline_args(tmp_path)])
        assert result.exit_code == 0
        assert "Source: bundle" in result.stdout
        assert "Documents: 18" in result.stdout
        assert "Last fetch: never" in result.stdout


class TestCacheCommands:
    """Tests for refresh and clear-cache."""

    @patch("tgdocs.cli._build_engine")
    def test_refresh_failure_exits_non_zero(self, mock_build: MagicMock) -> None:
        mock_build.return_value.refresh.return_value = False

        result = runner.invoke(app, ["refresh"])

        assert result.exit_code == 1
        assert "Refresh failed" in result.stdout

    @patch("tgdocs.cli._build_engine")
    def test_refresh_success(self, mock_build: MagicMock) -> None:
        engine = mock_build.return_value
        engine.refresh.return_value = True
        engine.status.return_value.document_count = 42

        result = runner.invoke(app, ["refresh"])

        assert result.exit_code == 0
        assert "Refreshed 42 documentation pages." in result.stdout

    def test_clear_cache(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["clear-cache", "--cache-dir", str(tmp_path)])
        assert result.exit_code == 0
        assert "Removed 0 cache files." in result.stdout


class TestWebCommand:
    """Tests for the web command."""

    def test_web_starts_server(self, tmp_path: Path) -> None:
        """Starts uvicorn server with correct parameters."""
        with patch("uvicorn.run") as mock_uvicorn_run, patch(
            "tgdocs.cli.configure_engine"
        ) as mock_configure:
            result = runner.invoke(
                app, ["web", "--port", "9001", "--offline", "--cache-dir", str(tmp_path)]
            )

        assert result.exit_code == 0
        mock_configure.assert_called_once()
        call_kwargs = mock_uvicorn_run.call_args[1]
        assert call_kwargs["port"] == 9001
        assert call_kwargs["host"] == "127.0.0.1"
        assert call_kwargs["reload"] is False
