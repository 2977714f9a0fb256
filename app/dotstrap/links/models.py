"""Link models for config directory reconciliation.

This module defines the mapping between a repository config directory and
its link in the home config root, and the outcome of reconciling it.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class LinkOutcome(Enum):
    """What reconciling one mapping did (or would do in dry-run mode).

    Attributes:
        CREATED: Target did not exist; link created.
        REPLACED: Target was a link elsewhere (or forced real dir); relinked.
        ALREADY_LINKED: Target already links to the source; nothing to do.
        SKIPPED_EXISTING: Target is a real file/directory and force is off.
        REMOVED: Link removed (revert).
        NOT_A_LINK: Revert left a non-link target untouched.
        ABSENT: Revert found nothing at the target.
        ERROR: The filesystem operation failed.
    """

    CREATED = "Created"
    REPLACED = "Replaced"
    ALREADY_LINKED = "AlreadyLinked"
    SKIPPED_EXISTING = "SkippedExisting"
    REMOVED = "Removed"
    NOT_A_LINK = "NotALink"
    ABSENT = "Absent"
    ERROR = "Error"


@dataclass(frozen=True, slots=True)
class LinkMapping:
    """One declared directory link.

    Attributes:
        source: Directory inside the repository config tree.
        target: Link path inside the home config root (same basename).
    """

    source: Path
    target: Path

    @property
    def name(self) -> str:
        """Shared basename of source and target."""
        return self.source.name


@dataclass(frozen=True, slots=True)
class LinkResult:
    """Result of reconciling a single LinkMapping.

    Attributes:
        mapping: The mapping that was processed.
        outcome: What happened.
        dry_run: Whether the outcome was only simulated.
        error: Error message when outcome is ERROR.
        permission_denied: The failure was a privilege problem that an
            elevated retry may fix.
    """

    mapping: LinkMapping
    outcome: LinkOutcome
    dry_run: bool = False
    error: str | None = None
    permission_denied: bool = False

    @property
    def failed(self) -> bool:
        """Check if the mapping could not be reconciled."""
        return self.outcome == LinkOutcome.ERROR

    @property
    def changed(self) -> bool:
        """Check if the filesystem was (or would be) modified."""
        return self.outcome in (LinkOutcome.CREATED, LinkOutcome.REPLACED, LinkOutcome.REMOVED)
