"""Reconciliation result models.

A ReconciliationResult is the per-package record produced by the package
reconciler and the audit; it drives both the tables and the exit code.
"""

from dataclasses import dataclass
from enum import Enum


class ReconcileStatus(Enum):
    """Outcome of comparing one declared entry with the machine.

    Attributes:
        OK: Observed state matches the declaration.
        MISSING: Declared package is not installed.
        DRIFT: Installed, but not at the pinned version.
        ERROR: The entry could not be reconciled.
    """

    OK = "ok"
    MISSING = "missing"
    DRIFT = "drift"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class ReconciliationResult:
    """Comparison (and optional action) outcome for one manifest entry.

    Attributes:
        id: Package identifier.
        status: Reconciliation status.
        observed: Observed state (installed version, or None).
        expected: Expected state (pinned version, or None).
        note: Human-readable detail.
    """

    id: str
    status: ReconcileStatus
    observed: str | None = None
    expected: str | None = None
    note: str | None = None

    @property
    def ok(self) -> bool:
        """Check if the entry is in the declared state."""
        return self.status == ReconcileStatus.OK

    @property
    def label(self) -> str:
        """Display label: Installed, Missing, Drift or Error."""
        if self.status == ReconcileStatus.OK:
            return "Installed"
        return self.status.value.capitalize()

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "status": self.label,
            "ok": self.ok,
            "installed_version": self.observed,
            "expected_version": self.expected,
            "note": self.note,
        }
