"""Unit tests for the command line interface."""

import os
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from conftest import FakeSystem
from rich.console import Console
from typer.testing import CliRunner

from dotstrap.cli.app import EXIT_FATAL_ACTION, EXIT_INVALID_SETUP, app, split_comma_list
from dotstrap.cli.commands.bootstrap import run_bootstrap
from dotstrap.config.models import ConfigOverrides
from dotstrap.core.errors import (
    ActionFailure,
    FatalActionError,
    InvalidManifestError,
    UnsupportedPlatformError,
)

runner = CliRunner()


@pytest.fixture
def mock_bootstrap():
    with (
        patch("dotstrap.cli.app.run_bootstrap", new_callable=AsyncMock) as mock,
        patch("dotstrap.cli.app.setup_logging"),
        patch.dict(os.environ, {}, clear=True),
    ):
        yield mock


class TestSplitCommaList:
    """Tests for split_comma_list function."""

    def test_split(self) -> None:
        """Test flattening repeated and comma-separated values."""
        assert split_comma_list(["jq,htop", " tmux ", ""]) == ["jq", "htop", "tmux"]


class TestMain:
    """Tests for the dotstrap command."""

    def test_defaults(self, mock_bootstrap: AsyncMock) -> None:
        """Test running without options."""
        result = runner.invoke(app, [])

        assert result.exit_code == 0
        args, kwargs = mock_bootstrap.call_args
        assert args == ("", "", ConfigOverrides())
        assert kwargs == {"dry_run": False, "trace": False}

    def test_options(self, mock_bootstrap: AsyncMock) -> None:
        """Test passing every option."""
        result = runner.invoke(
            app,
            [
                "--manifest",
                "machine.yaml",
                "--extra-packages",
                "jq,htop",
                "--extra-packages",
                "tmux",
                "--skip-users",
                "--skip-ssh",
                "--dry-run",
            ],
        )

        assert result.exit_code == 0
        args, kwargs = mock_bootstrap.call_args
        assert args[0] == "machine.yaml"
        assert args[2] == ConfigOverrides(
            extra_packages=["jq", "htop", "tmux"], skip_users=True, skip_ssh=True
        )
        assert kwargs["dry_run"] is True

    def test_environment(self, mock_bootstrap: AsyncMock) -> None:
        """Test reading the manifest source and overrides from the environment."""
        env = {
            "DOTSTRAP_PRESET": "minimal",
            "DOTSTRAP_EXTRA_PACKAGES": "jq",
            "DOTSTRAP_SKIP_SSH": "yes",
        }
        with patch.dict(os.environ, env):
            result = runner.invoke(app, ["--extra-packages", "htop"])

        assert result.exit_code == 0
        args, _ = mock_bootstrap.call_args
        assert args[1] == "minimal"
        assert args[2].extra_packages == ["htop", "jq"]
        assert args[2].skip_ssh is True

    def test_unknown_preset(self, mock_bootstrap: AsyncMock) -> None:
        """Test that an unknown preset exits before doing anything."""
        result = runner.invoke(app, ["--preset", "server"])

        assert result.exit_code == EXIT_INVALID_SETUP
        mock_bootstrap.assert_not_called()

    @pytest.mark.parametrize(
        "error",
        [UnsupportedPlatformError("SunOS"), InvalidManifestError("Manifest file not found")],
    )
    def test_invalid_setup(self, mock_bootstrap: AsyncMock, error: Exception) -> None:
        """Test exit status for platform and manifest problems."""
        mock_bootstrap.side_effect = error

        result = runner.invoke(app, [])
        assert result.exit_code == EXIT_INVALID_SETUP

    def test_fatal_action(self, mock_bootstrap: AsyncMock) -> None:
        """Test exit status when a fatal action fails."""
        mock_bootstrap.side_effect = FatalActionError(
            ActionFailure("bootstrap-package-manager homebrew", "Need sudo access")
        )

        result = runner.invoke(app, [])
        assert result.exit_code == EXIT_FATAL_ACTION


class TestRunBootstrap:
    """Tests for run_bootstrap function."""

    @pytest.mark.asyncio
    async def test_run(self, tmp_path: Path, fake_system: FakeSystem) -> None:
        """Test a run from a manifest file and its report."""
        manifest_file = tmp_path / "dotstrap.yaml"
        manifest_file.write_text("packages: [vim]\n")
        console = Console(record=True, width=120)

        summary = await run_bootstrap(
            str(manifest_file), "", ConfigOverrides(), console=console, system=fake_system
        )
        assert summary is not None
        assert summary.applied == 1
        assert "Applied 1" in console.export_text()

    @pytest.mark.asyncio
    async def test_dry_run(self, tmp_path: Path, fake_system: FakeSystem) -> None:
        """Test that a dry run prints the plan and changes nothing."""
        manifest_file = tmp_path / "dotstrap.yaml"
        manifest_file.write_text("packages: [vim]\n")
        console = Console(record=True, width=120)

        summary = await run_bootstrap(
            str(manifest_file),
            "",
            ConfigOverrides(),
            dry_run=True,
            console=console,
            system=fake_system,
        )
        assert summary is None
        assert "install-package vim" in console.export_text()
        assert fake_system.packages == {}

    @pytest.mark.asyncio
    async def test_dry_run_with_failing_check(self, tmp_path: Path, fake_system: FakeSystem) -> None:
        """Test that a dry run survives a precondition that errors out."""
        fake_system.packages["vim"] = "9.0"
        fake_system.failing[("yum", "check-update")] = "Cannot retrieve repository metadata"
        manifest_file = tmp_path / "dotstrap.yaml"
        manifest_file.write_text("packages: [{name: vim, upgrade: true}]\n")
        console = Console(record=True, width=120)

        await run_bootstrap(
            str(manifest_file),
            "",
            ConfigOverrides(),
            dry_run=True,
            console=console,
            system=fake_system,
        )
        assert "Cannot retrieve repository metadata" in console.export_text()
