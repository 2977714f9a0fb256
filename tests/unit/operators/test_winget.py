"""Unit tests for the winget operator."""

from unittest.mock import patch

import pytest
from dotstrap.models.package import PackageScope
from dotstrap.operators.winget import (
    NO_APPLICABLE_INSTALLER,
    PACKAGE_ALREADY_INSTALLED,
    WingetOperator,
)
from dotstrap.utils.shell import CommandResult


def _signed(code: int) -> int:
    """HRESULT as a negative exit code, the way some shells report it."""
    return code - 0x1_0000_0000


class TestWingetOperator:
    """Tests for WingetOperator."""

    def test_install_passes_scope(self) -> None:
        """The requested scope is passed to winget."""
        with (
            patch("dotstrap.operators.winget.command_exists", return_value=True),
            patch(
                "dotstrap.operators.winget.run_command",
                return_value=CommandResult("", "", 0),
            ) as mock_run,
        ):
            result = WingetOperator().install("Git.Git", PackageScope.USER)

        assert result.success
        args = mock_run.call_args.args[0]
        assert args[:5] == ["winget", "install", "--id", "Git.Git", "--exact"]
        assert args[-2:] == ["--scope", "user"]
        assert "--silent" in args

    def test_install_default_scope(self) -> None:
        """No scope flag for winget's default scope."""
        with (
            patch("dotstrap.operators.winget.command_exists", return_value=True),
            patch(
                "dotstrap.operators.winget.run_command",
                return_value=CommandResult("", "", 0),
            ) as mock_run,
        ):
            WingetOperator().install("Git.Git")

        assert "--scope" not in mock_run.call_args.args[0]

    @pytest.mark.parametrize("code", [NO_APPLICABLE_INSTALLER, _signed(NO_APPLICABLE_INSTALLER)])
    def test_no_applicable_installer_flagged(self, code: int) -> None:
        """The scope fallback signal is recognised for signed and unsigned codes."""
        with (
            patch("dotstrap.operators.winget.command_exists", return_value=True),
            patch(
                "dotstrap.operators.winget.run_command",
                return_value=CommandResult("", "", code),
            ),
        ):
            result = WingetOperator().install("Foo.Bar", PackageScope.USER)

        assert result.failed
        assert result.no_applicable_installer
        assert result.error == "winget exited with 0x8A150014"

    def test_no_applicable_installer_text(self) -> None:
        """The fallback signal is also read from winget's message."""
        with (
            patch("dotstrap.operators.winget.command_exists", return_value=True),
            patch(
                "dotstrap.operators.winget.run_command",
                return_value=CommandResult("No applicable installer found; see logs", "", 1),
            ),
        ):
            result = WingetOperator().install("Foo.Bar", PackageScope.USER)

        assert result.no_applicable_installer

    def test_already_installed_is_success(self) -> None:
        """winget's already-installed code counts as success."""
        with (
            patch("dotstrap.operators.winget.command_exists", return_value=True),
            patch(
                "dotstrap.operators.winget.run_command",
                return_value=CommandResult("", "", PACKAGE_ALREADY_INSTALLED),
            ),
        ):
            result = WingetOperator().install("Git.Git")

        assert result.success
        assert result.message == "Already installed"

    def test_dry_run_runs_nothing(self) -> None:
        """Dry-run never invokes winget."""
        with (
            patch("dotstrap.operators.winget.command_exists", return_value=True),
            patch("dotstrap.operators.winget.run_command") as mock_run,
        ):
            result = WingetOperator(dry_run=True).uninstall("Git.Git")

        mock_run.assert_not_called()
        assert result.success
        assert result.message == "Dry-run: would uninstall"

    def test_unavailable_raises(self) -> None:
        """Without winget the operator raises."""
        with (
            patch("dotstrap.operators.winget.command_exists", return_value=False),
            pytest.raises(RuntimeError, match="not available"),
        ):
            WingetOperator().install("Git.Git")

    def test_uninstall_failure(self) -> None:
        """Uninstall errors carry winget's output."""
        with (
            patch("dotstrap.operators.winget.command_exists", return_value=True),
            patch(
                "dotstrap.operators.winget.run_command",
                return_value=CommandResult("", "Uninstall failed with exit code 1603", 1),
            ),
        ):
            result = WingetOperator().uninstall("Foo.Bar")

        assert result.failed
        assert "1603" in (result.error or "")
