"""winget package operator implementation.

Installs and uninstalls packages one at a time with ``winget``.
"""

import logging

from dotstrap.models.action import Action, ActionResult, ActionType
from dotstrap.models.package import PackageScope
from dotstrap.operators.base import Operator
from dotstrap.utils.shell import CommandResult, command_exists, run_command

logger = logging.getLogger(__name__)

# HRESULTs winget exits with, as Python sees them (unsigned 32-bit)
NO_APPLICABLE_INSTALLER = 0x8A150014
UPDATE_NOT_APPLICABLE = 0x8A15002B
PACKAGE_ALREADY_INSTALLED = 0x8A150061

_NO_INSTALLER_TEXT = "no applicable installer"


class WingetOperator(Operator):
    """Operator for winget packages.

    Installs are silent and non-interactive; scope is passed through so
    per-user installs never trigger an elevation prompt.
    """

    # Timeout for a single install/uninstall (10 minutes)
    _WINGET_TIMEOUT: float = 600.0

    @property
    def name(self) -> str:
        """Return 'winget' as the package manager name."""
        return "winget"

    def is_available(self) -> bool:
        """Check if winget is on PATH."""
        return command_exists("winget")

    def install(self, package: str, scope: PackageScope | None = None) -> ActionResult:
        """Install a package with ``winget install --exact``.

        Args:
            package: Identifier of the package to install.
            scope: Requested scope, or None for winget's default.

        Returns:
            ActionResult; ``no_applicable_installer`` is set when winget has
            no installer for the requested scope.

        Raises:
            RuntimeError: If winget is not available.
        """
        action = Action(action_type=ActionType.INSTALL, package=package, scope=scope)
        args = [
            "winget",
            "install",
            "--id",
            package,
            "--exact",
            "--silent",
            "--accept-package-agreements",
            "--accept-source-agreements",
            "--disable-interactivity",
        ]
        if scope is not None:
            args.extend(["--scope", scope.value])
        return self._execute(action, args)

    def uninstall(self, package: str) -> ActionResult:
        """Uninstall a package with ``winget uninstall --exact``.

        Raises:
            RuntimeError: If winget is not available.
        """
        action = Action(action_type=ActionType.UNINSTALL, package=package)
        args = [
            "winget",
            "uninstall",
            "--id",
            package,
            "--exact",
            "--silent",
            "--accept-source-agreements",
            "--disable-interactivity",
        ]
        return self._execute(action, args)

    def _execute(self, action: Action, args: list[str]) -> ActionResult:
        """Run one winget command (or simulate it in dry-run mode)."""
        if not self.is_available():
            msg = "winget is not available on this system"
            raise RuntimeError(msg)

        if self.dry_run:
            logger.info("Dry-run: would run %s", " ".join(args))
            return ActionResult(
                action=action,
                success=True,
                message=f"Dry-run: would {action.action_type.value}",
            )

        logger.info(
            "winget %s %s (scope=%s)",
            action.action_type.value,
            action.package,
            action.scope.value if action.scope else "default",
        )
        result = run_command(args, timeout=self._WINGET_TIMEOUT)
        return self._create_result(action, result)

    def _create_result(self, action: Action, result: CommandResult) -> ActionResult:
        """Create an ActionResult from a CommandResult.

        Args:
            action: The action that was executed.
            result: The command execution result.

        Returns:
            ActionResult with appropriate success/error info.
        """
        code = result.returncode & 0xFFFFFFFF

        if result.success:
            return ActionResult(action=action, success=True, message="Operation completed")

        if action.is_install and code in (PACKAGE_ALREADY_INSTALLED, UPDATE_NOT_APPLICABLE):
            return ActionResult(action=action, success=True, message="Already installed")

        error_msg = result.output or f"winget exited with 0x{code:08X}"
        no_installer = code == NO_APPLICABLE_INSTALLER or _NO_INSTALLER_TEXT in error_msg.lower()
        return ActionResult(
            action=action,
            success=False,
            error=error_msg,
            no_applicable_installer=no_installer,
        )
