"""Audit engine for comparing the manifest with installed packages.

The audit is a pure read: it reads one full listing, queries any declared
package the listing does not show, and reports whether each entry is
installed, missing or drifted from its pinned version.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from dotstrap.models.result import ReconciliationResult, ReconcileStatus

if TYPE_CHECKING:
    from dotstrap.models.manifest import Manifest, PackageEntry
    from dotstrap.scanners.base import PackageQuery

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_DRIFT = 1
EXIT_MANIFEST_ERROR = 2


@dataclass(frozen=True, slots=True)
class AuditReport:
    """Result of auditing the manifest against the machine.

    Attributes:
        results: One result per manifest entry, in manifest order.
    """

    results: tuple[ReconciliationResult, ...]

    @property
    def is_clean(self) -> bool:
        """Check if every entry is OK."""
        return all(r.ok for r in self.results)

    @property
    def exit_code(self) -> int:
        """0 when every entry is OK, 1 otherwise."""
        return EXIT_OK if self.is_clean else EXIT_DRIFT

    @property
    def missing(self) -> list[ReconciliationResult]:
        """Entries that are not installed."""
        return [r for r in self.results if r.status == ReconcileStatus.MISSING]

    @property
    def drifted(self) -> list[ReconciliationResult]:
        """Entries installed at the wrong pinned version."""
        return [r for r in self.results if r.status == ReconcileStatus.DRIFT]

    @property
    def errors(self) -> list[ReconciliationResult]:
        """Entries that could not be queried."""
        return [r for r in self.results if r.status == ReconcileStatus.ERROR]

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary for JSON serialization."""
        return {
            "ok": self.is_clean,
            "exit_code": self.exit_code,
            "summary": {
                "total": len(self.results),
                "missing": len(self.missing),
                "drift": len(self.drifted),
                "error": len(self.errors),
            },
            "results": [r.to_dict() for r in self.results],
        }


def resolve_status(entry: PackageEntry, installed_version: str | None) -> ReconciliationResult:
    """Classify one manifest entry against its observed version.

    Args:
        entry: Declared package.
        installed_version: Observed version, or None if not installed.

    Returns:
        Missing when not installed; Drift when pinned to a different
        version; OK otherwise.
    """
    expected = entry.expected_version if entry.is_pinned else None

    if installed_version is None:
        return ReconciliationResult(
            id=entry.id,
            status=ReconcileStatus.MISSING,
            expected=expected,
            note="Not installed",
        )

    if entry.is_pinned and installed_version != entry.expected_version:
        return ReconciliationResult(
            id=entry.id,
            status=ReconcileStatus.DRIFT,
            observed=installed_version,
            expected=expected,
            note=f"Expected {entry.expected_version}",
        )

    return ReconciliationResult(
        id=entry.id,
        status=ReconcileStatus.OK,
        observed=installed_version,
        expected=expected,
    )


def audit(manifest: Manifest, query: PackageQuery) -> AuditReport:
    """Compare every manifest entry with the installed state.

    Never installs or changes anything. Versions come from one full listing
    where possible; entries the listing does not show (truncated ids, or a
    listing that could not be read) are looked up individually. A query
    failure for one entry is reported as an Error result for that entry.

    Args:
        manifest: Declared packages.
        query: Installed-state backend.

    Returns:
        AuditReport with one result per entry.
    """
    listed = listed_versions(query)
    results: list[ReconciliationResult] = []
    for entry in manifest:
        version = listed.get(entry.id.lower())
        if version is not None:
            results.append(resolve_status(entry, version))
            continue
        try:
            version = query.installed_version(entry.id)
        except (RuntimeError, OSError) as e:
            results.append(
                ReconciliationResult(id=entry.id, status=ReconcileStatus.ERROR, note=str(e))
            )
            continue
        results.append(resolve_status(entry, version))
    return AuditReport(results=tuple(results))


def listed_versions(query: PackageQuery) -> dict[str, str]:
    """Read installed versions from one full listing, keyed by lower-cased id.

    Returns an empty mapping when the listing cannot be read.
    """
    try:
        return {package.id.lower(): package.version for package in query.scan()}
    except (RuntimeError, OSError) as e:
        logger.debug("Full listing unavailable, querying packages one by one: %s", e)
        return {}
