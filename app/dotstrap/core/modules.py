"""PowerShell module installation.

Modules are installed with ``Install-Module -Scope CurrentUser`` so no
elevation is needed. Failures are reported per module and never abort
the caller.
"""

from __future__ import annotations

import logging
import subprocess
from typing import TYPE_CHECKING

from dotstrap.models.action import Action, ActionResult, ActionType
from dotstrap.utils.shell import command_exists, ps_quote, run_command

if TYPE_CHECKING:
    from collections.abc import Sequence

    from dotstrap.utils.formatting import Reporter

logger = logging.getLogger(__name__)

SHELL_MODULES: tuple[str, ...] = ("PSReadLine", "Terminal-Icons")

MODULE_TIMEOUT = 600.0


def find_powershell() -> str | None:
    """Return the PowerShell executable to use, preferring PowerShell 7."""
    for candidate in ("pwsh", "powershell.exe", "powershell"):
        if command_exists(candidate):
            return candidate
    return None


def _run_script(shell: str, script: str, timeout: float) -> tuple[bool, str]:
    try:
        result = run_command(
            [shell, "-NoProfile", "-NonInteractive", "-Command", script],
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        return False, f"Timed out after {timeout:.0f}s"
    except OSError as e:
        return False, str(e)
    return result.success, result.output


def is_module_installed(shell: str, name: str) -> bool:
    """Check if a module is available to the given PowerShell."""
    ok, output = _run_script(
        shell,
        f"Get-Module -ListAvailable -Name {ps_quote(name)} "
        "| Select-Object -First 1 -ExpandProperty Name",
        60.0,
    )
    return ok and name.lower() in output.lower()


def install_shell_modules(
    reporter: Reporter,
    *,
    modules: Sequence[str] = SHELL_MODULES,
    dry_run: bool = False,
) -> list[ActionResult]:
    """Install missing PowerShell modules for the current user.

    Returns:
        One ActionResult per module attempted. An unavailable PowerShell
        yields a failed result per module.
    """
    shell = find_powershell()
    results: list[ActionResult] = []
    for name in modules:
        action = Action(action_type=ActionType.INSTALL, package=name)
        if shell is None:
            results.append(ActionResult(action=action, success=False, error="PowerShell not found"))
            reporter.warn(f"Cannot install module {name}: PowerShell not found")
            continue

        if is_module_installed(shell, name):
            reporter.ok(f"Module {name} already installed")
            results.append(ActionResult(action=action, success=True, message="Already installed"))
            continue

        if dry_run:
            reporter.info(f"Would install module {name}")
            results.append(ActionResult(action=action, success=True, message="Dry-run"))
            continue

        script = (
            f"Install-Module -Name {ps_quote(name)} -Scope CurrentUser "
            "-Force -AllowClobber -ErrorAction Stop"
        )
        ok, output = _run_script(shell, script, MODULE_TIMEOUT)
        if ok:
            reporter.ok(f"Installed module {name}")
            results.append(ActionResult(action=action, success=True))
        else:
            reporter.warn(f"Module {name} failed to install: {output}")
            results.append(ActionResult(action=action, success=False, error=output))
    return results


def uninstall_shell_modules(
    reporter: Reporter,
    *,
    modules: Sequence[str] = SHELL_MODULES,
    dry_run: bool = False,
) -> list[ActionResult]:
    """Uninstall modules previously installed for the current user.

    Modules that are not installed are reported as successful no-ops.
    """
    shell = find_powershell()
    results: list[ActionResult] = []
    for name in reversed(modules):
        action = Action(action_type=ActionType.UNINSTALL, package=name)
        if shell is None:
            results.append(ActionResult(action=action, success=False, error="PowerShell not found"))
            reporter.warn(f"Cannot uninstall module {name}: PowerShell not found")
            continue

        if not is_module_installed(shell, name):
            reporter.info(f"Module {name} not installed")
            results.append(ActionResult(action=action, success=True, message="Not installed"))
            continue

        if dry_run:
            reporter.info(f"Would uninstall module {name}")
            results.append(ActionResult(action=action, success=True, message="Dry-run"))
            continue

        ok, output = _run_script(
            shell,
            f"Uninstall-Module -Name {ps_quote(name)} -AllVersions -Force -ErrorAction Stop",
            MODULE_TIMEOUT,
        )
        if ok:
            reporter.ok(f"Uninstalled module {name}")
            results.append(ActionResult(action=action, success=True))
        else:
            reporter.warn(f"Module {name} failed to uninstall: {output}")
            results.append(ActionResult(action=action, success=False, error=output))
    return results
