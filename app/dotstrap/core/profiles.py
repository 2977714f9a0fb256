"""PowerShell profile stubs.

Each known profile location gets a two-line stub that dot-sources the
profile kept in the repository. Stubs are recognised by a sentinel line;
a profile without it belongs to the user and is never written or deleted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from dotstrap.core.paths import PROFILE_RELPATH, get_profile_paths

if TYPE_CHECKING:
    from dotstrap.utils.formatting import Reporter

logger = logging.getLogger(__name__)

PROFILE_SENTINEL = "# dotstrap: managed profile stub"


class StubOutcome(Enum):
    """What happened to one profile path."""

    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    SKIPPED = "skipped"
    REMOVED = "removed"
    ABSENT = "absent"


@dataclass(frozen=True, slots=True)
class StubResult:
    """Outcome for a single profile path.

    Attributes:
        path: Profile file.
        outcome: What was (or would be) done.
        dry_run: Whether the filesystem was left untouched.
    """

    path: Path
    outcome: StubOutcome
    dry_run: bool = False

    @property
    def changed(self) -> bool:
        """Check if the file was (or would be) written or deleted."""
        return self.outcome in (StubOutcome.CREATED, StubOutcome.UPDATED, StubOutcome.REMOVED)


def render_stub(repo_root: Path) -> str:
    """Render the stub that dot-sources the repository profile."""
    profile = (repo_root / PROFILE_RELPATH).absolute()
    escaped = str(profile).replace("'", "''")
    return f"{PROFILE_SENTINEL}\n. '{escaped}'\n"


def is_managed(path: Path) -> bool:
    """Check if a profile file carries the stub sentinel."""
    try:
        text = path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError):
        return False
    return any(line.strip() == PROFILE_SENTINEL for line in text.splitlines())


def install_profile_stubs(
    repo_root: Path,
    reporter: Reporter,
    *,
    home: Path | None = None,
    dry_run: bool = False,
) -> list[StubResult]:
    """Write the stub into every known profile path.

    Existing stubs are refreshed when the repository moved; profiles
    without the sentinel are left untouched with a warning.
    """
    stub = render_stub(repo_root)
    if not (repo_root / PROFILE_RELPATH).is_file():
        reporter.warn(f"{repo_root / PROFILE_RELPATH} not found; stubs will source a missing file")

    results: list[StubResult] = []
    for path in get_profile_paths(home):
        if path.exists():
            if not is_managed(path):
                reporter.warn(f"{path} is a user profile; left untouched")
                results.append(StubResult(path, StubOutcome.SKIPPED, dry_run))
                continue
            if path.read_text(encoding="utf-8-sig") == stub:
                results.append(StubResult(path, StubOutcome.UNCHANGED, dry_run))
                continue
            outcome = StubOutcome.UPDATED
        else:
            outcome = StubOutcome.CREATED

        if dry_run:
            reporter.info(f"Would write profile stub {path}")
        else:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(stub, encoding="utf-8")
            reporter.ok(f"Profile stub {outcome.value}: {path}")
        results.append(StubResult(path, outcome, dry_run))
    return results


def remove_profile_stubs(
    reporter: Reporter,
    *,
    home: Path | None = None,
    dry_run: bool = False,
) -> list[StubResult]:
    """Delete profile files that carry the sentinel; keep everything else."""
    results: list[StubResult] = []
    for path in get_profile_paths(home):
        if not path.exists():
            results.append(StubResult(path, StubOutcome.ABSENT, dry_run))
            continue
        if not is_managed(path):
            reporter.warn(f"{path} was not written by dotstrap; left untouched")
            results.append(StubResult(path, StubOutcome.SKIPPED, dry_run))
            continue
        if dry_run:
            reporter.info(f"Would remove profile stub {path}")
        else:
            path.unlink()
            reporter.ok(f"Removed profile stub {path}")
        results.append(StubResult(path, StubOutcome.REMOVED, dry_run))
    return results
