"""Elevated link helper.

When the current process may not create symlinks, the same link
reconciliation is re-run in a separate elevated process. The parent has
no channel to read the helper's output: it waits for the helper to exit
and then re-checks the filesystem itself.
"""

from __future__ import annotations

import logging
import subprocess
import sys
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from dotstrap.core.errors import ElevationError
from dotstrap.core.paths import is_windows
from dotstrap.links.reconciler import plan_links, verify_links
from dotstrap.utils.shell import ps_quote, run_command, run_interactive

if TYPE_CHECKING:
    from dotstrap.links.models import LinkMapping
    from dotstrap.utils.formatting import Reporter

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class LinkRequest:
    """Command description sent to the elevated helper.

    Attributes:
        source_root: Repository config tree.
        target_root: Home config root.
        force: Replace real directories occupying a target.
    """

    source_root: Path
    target_root: Path
    force: bool = False

    def to_cli_args(self) -> list[str]:
        """Arguments for ``python -m dotstrap`` that replay this request."""
        args = [
            "--quiet",
            "link",
            "--source-root",
            str(self.source_root),
            "--target-root",
            str(self.target_root),
            "--no-elevate",
            "--no-git-include",
        ]
        if self.force:
            args.append("--force")
        return args

    def helper_command(self) -> list[str]:
        """Full command line of the helper process."""
        return [sys.executable, "-m", "dotstrap", *self.to_cli_args()]


class PrivilegedMutator(ABC):
    """Applies a LinkRequest with elevated privileges.

    Implementations block until the privileged work has finished. They
    report nothing about the outcome; callers verify the filesystem.
    """

    @abstractmethod
    def apply(self, request: LinkRequest) -> None:
        """Run the request elevated and wait for it to finish.

        Raises:
            ElevationError: If the elevated process could not be started.
        """


class ElevatedProcessMutator(PrivilegedMutator):
    """Re-invokes dotstrap in an elevated child process.

    Windows: ``Start-Process -Verb RunAs -Wait`` through PowerShell, which
    shows the UAC prompt. Elsewhere: ``sudo``.
    """

    def apply(self, request: LinkRequest) -> None:
        """Spawn the elevated helper and wait for it to exit."""
        command = request.helper_command()
        logger.info("Spawning elevated link helper: %s", subprocess.list2cmdline(command))

        try:
            if is_windows():
                self._apply_windows(command)
            else:
                exit_code = run_interactive(["sudo", *command])
                logger.debug("sudo helper exited with %d", exit_code)
        except (OSError, subprocess.SubprocessError) as e:
            msg = f"Could not start elevated helper: {e}"
            raise ElevationError(msg) from e

    def _apply_windows(self, command: list[str]) -> None:
        executable, *arguments = command
        argument_line = subprocess.list2cmdline(arguments)
        script = (
            f"Start-Process -FilePath {ps_quote(executable)} "
            f"-ArgumentList {ps_quote(argument_line)} "
            "-Verb RunAs -Wait -WindowStyle Hidden"
        )
        result = run_command(
            ["powershell.exe", "-NoProfile", "-NonInteractive", "-Command", script],
            timeout=None,
        )
        if not result.success:
            # Start-Process fails when UAC is declined; the helper never ran
            msg = result.output or f"Start-Process exited with {result.returncode}"
            raise ElevationError(msg)


@dataclass(frozen=True, slots=True)
class ElevationReport:
    """What the parent observed after the elevated helper ran.

    Attributes:
        spawned: Whether the helper process could be started.
        verified: Mappings whose target is now a link.
        missing: Mappings whose target is still not a link.
        error: Spawn error message, if any.
    """

    spawned: bool
    verified: tuple[LinkMapping, ...] = field(default_factory=tuple)
    missing: tuple[LinkMapping, ...] = field(default_factory=tuple)
    error: str | None = None

    @property
    def success(self) -> bool:
        """Check if the helper ran and every link verified."""
        return self.spawned and not self.missing

    @property
    def partial(self) -> bool:
        """Check if some but not all links verified."""
        return self.spawned and bool(self.verified) and bool(self.missing)


def escalate_links(request: LinkRequest, mutator: PrivilegedMutator) -> ElevationReport:
    """Run link reconciliation elevated and verify the result.

    Args:
        request: Roots and force flag to replay.
        mutator: Privileged executor (real process or test fake).

    Returns:
        ElevationReport built from re-checking the filesystem.
    """
    expected = plan_links(request.source_root, request.target_root)
    try:
        mutator.apply(request)
    except ElevationError as e:
        logger.warning("Elevation failed: %s", e)
        _, missing = verify_links(expected)
        return ElevationReport(spawned=False, missing=tuple(missing), error=str(e))

    verified, missing = verify_links(expected)
    return ElevationReport(spawned=True, verified=tuple(verified), missing=tuple(missing))


def remediation_command(request: LinkRequest) -> str:
    """Command a user can run by hand to finish linking."""
    helper = subprocess.list2cmdline(request.helper_command())
    if is_windows():
        return f"From an elevated terminal (or with Developer Mode enabled): {helper}"
    return f"sudo {helper}"


def report_elevation(report: ElevationReport, request: LinkRequest, reporter: Reporter) -> None:
    """Print the elevation outcome with manual remediation when needed."""
    if report.success:
        reporter.ok(f"Elevated helper linked {len(report.verified)} config folder(s).")
        return

    if not report.spawned:
        reporter.error(f"Elevated link helper could not be started: {report.error}")
    else:
        names = ", ".join(m.name for m in report.missing)
        reporter.warn(
            f"Linked {len(report.verified)} of {len(report.verified) + len(report.missing)} "
            f"config folder(s); still missing: {names}"
        )
    reporter.warn(f"To finish linking, run: {remediation_command(request)}")
