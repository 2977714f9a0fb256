"""Unit tests for the install command."""

from collections.abc import Callable
from pathlib import Path
from unittest.mock import patch

from dotstrap.cli.main import app
from dotstrap.scanners.memory import InMemoryPackageQuery
from typer.testing import CliRunner

runner = CliRunner()


class TestInstallCommand:
    """Tests for dotstrap install."""

    def test_installs_missing(
        self, write_manifest: Callable[[object], Path], recording_operator: type
    ) -> None:
        """Missing packages are installed; present ones are not."""
        path = write_manifest(["Git.Git", "Neovim.Neovim"])
        query = InMemoryPackageQuery({"Git.Git": "2.45.1"})
        operator = recording_operator(query)

        with (
            patch("dotstrap.cli.commands.install.get_query", return_value=query),
            patch("dotstrap.cli.commands.install.get_operator", return_value=operator),
        ):
            result = runner.invoke(app, ["install", "--manifest", str(path)])

        assert result.exit_code == 0
        assert [call[1] for call in operator.calls] == ["Neovim.Neovim"]
        assert "All 2 package(s) reconciled" in result.stdout

    def test_failures_do_not_change_exit_code(
        self, write_manifest: Callable[[object], Path], recording_operator: type
    ) -> None:
        """Per-package failures are warnings."""
        path = write_manifest(["Broken.Pkg", "Neovim.Neovim"])
        query = InMemoryPackageQuery()
        operator = recording_operator(query, failing={"Broken.Pkg"})

        with (
            patch("dotstrap.cli.commands.install.get_query", return_value=query),
            patch("dotstrap.cli.commands.install.get_operator", return_value=operator),
        ):
            result = runner.invoke(app, ["install", "--manifest", str(path)])

        assert result.exit_code == 0
        assert "1 of 2 package(s) failed" in result.output
        assert query.is_installed("Neovim.Neovim")

    def test_dry_run(
        self, write_manifest: Callable[[object], Path], recording_operator: type
    ) -> None:
        """--dry-run installs nothing."""
        path = write_manifest(["Neovim.Neovim"])
        query = InMemoryPackageQuery()

        with (
            patch("dotstrap.cli.commands.install.get_query", return_value=query),
            patch(
                "dotstrap.cli.commands.install.get_operator",
                side_effect=lambda dry_run=False: recording_operator(query, dry_run=dry_run),
            ),
        ):
            result = runner.invoke(app, ["install", "--dry-run", "--manifest", str(path)])

        assert result.exit_code == 0
        assert "Would install Neovim.Neovim" in result.stdout
        assert not query.is_installed("Neovim.Neovim")

    def test_operator_unavailable(self, write_manifest: Callable[[object], Path]) -> None:
        """Without winget the command exits 1."""
        path = write_manifest(["Git.Git"])
        with patch("dotstrap.cli.commands.install.get_operator") as mock_operator:
            mock_operator.return_value.is_available.return_value = False
            mock_operator.return_value.name = "winget"
            result = runner.invoke(app, ["install", "--manifest", str(path)])

        assert result.exit_code == 1
