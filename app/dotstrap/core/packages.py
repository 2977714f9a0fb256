"""Package reconciliation.

Installs every manifest entry that is not yet present. The installed
listing is snapshotted once per run; each install is confirmed with a
live exact-id query so a stale snapshot never counts as success.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from dotstrap.models.package import PackageScope
from dotstrap.models.result import ReconciliationResult, ReconcileStatus

if TYPE_CHECKING:
    from dotstrap.models.action import ActionResult
    from dotstrap.models.manifest import Manifest, PackageEntry
    from dotstrap.operators.base import Operator
    from dotstrap.scanners.base import PackageQuery
    from dotstrap.utils.formatting import Reporter

logger = logging.getLogger(__name__)


class PackageReconciler:
    """Brings installed packages in line with the manifest.

    Entries are processed serially in manifest order; package manager
    calls are never overlapped.

    Example:
        >>> reconciler = PackageReconciler(WingetQuery(), WingetOperator(), Reporter())
        >>> results = reconciler.install(load_manifest())
    """

    def __init__(self, query: PackageQuery, operator: Operator, reporter: Reporter) -> None:
        """Initialize the reconciler.

        Args:
            query: Installed-state backend.
            operator: Package manager used for installs.
            reporter: Status output.
        """
        self.query = query
        self.operator = operator
        self.reporter = reporter
        self._snapshot = ""

    def install(self, manifest: Manifest) -> list[ReconciliationResult]:
        """Install every missing manifest entry.

        A failing entry is reported as a warning and does not stop the
        batch.

        Args:
            manifest: Declared packages.

        Returns:
            One ReconciliationResult per entry, in manifest order.

        Raises:
            RuntimeError: If the installed-package snapshot cannot be taken.
        """
        self._snapshot = self.query.snapshot()
        results: list[ReconciliationResult] = []

        for entry in manifest:
            try:
                result = self._reconcile_entry(entry, self._snapshot)
            except (RuntimeError, OSError) as e:
                logger.warning("Reconciling %s failed: %s", entry.id, e)
                result = ReconciliationResult(
                    id=entry.id, status=ReconcileStatus.ERROR, note=str(e)
                )
            if result.status == ReconcileStatus.ERROR:
                self.reporter.warn(f"{entry.id}: {result.note}")
            results.append(result)

        return results

    def _reconcile_entry(self, entry: PackageEntry, snapshot: str) -> ReconciliationResult:
        """Check one entry against the snapshot and install it if missing."""
        if self.query.snapshot_contains(snapshot, entry.id):
            self.reporter.ok(f"{entry.id} already installed")
            return ReconciliationResult(
                id=entry.id, status=ReconcileStatus.OK, note="Already installed"
            )

        if self.operator.dry_run:
            self.reporter.info(f"Would install {entry.id} ({entry.scope} scope)")
            return ReconciliationResult(
                id=entry.id, status=ReconcileStatus.MISSING, note="Would install"
            )

        self.reporter.info(f"Installing {entry.id} ({entry.scope} scope)")
        action_result = self._install_with_fallback(entry)
        if action_result.failed:
            return ReconciliationResult(
                id=entry.id,
                status=ReconcileStatus.ERROR,
                note=action_result.error or "Install failed",
            )

        # Refresh the cached listing, then confirm with the exact query
        self._snapshot = self.query.snapshot()
        version = self.query.installed_version(entry.id)
        if version is None:
            return ReconciliationResult(
                id=entry.id,
                status=ReconcileStatus.ERROR,
                note="Installer finished but the package is not listed as installed",
            )

        self.reporter.ok(f"Installed {entry.id} {version}")
        return ReconciliationResult(
            id=entry.id, status=ReconcileStatus.OK, observed=version, note="Installed"
        )

    def _install_with_fallback(self, entry: PackageEntry) -> ActionResult:
        """Install at the declared scope, retrying user scope at default scope."""
        result = self.operator.install(entry.id, entry.package_scope)
        if (
            result.failed
            and result.no_applicable_installer
            and entry.package_scope == PackageScope.USER
        ):
            logger.info("No user-scope installer for %s, retrying at default scope", entry.id)
            self.reporter.info(f"No user-scope installer for {entry.id}; retrying default scope")
            result = self.operator.install(entry.id, None)
        return result


def uninstall_packages(
    manifest: Manifest,
    operator: Operator,
    reporter: Reporter,
    query: PackageQuery | None = None,
) -> list[ReconciliationResult]:
    """Uninstall manifest packages best-effort, in reverse manifest order.

    Packages the query reports as absent are skipped. Failures are
    collected and never stop the batch.

    Args:
        manifest: Declared packages.
        operator: Package manager used for removal.
        reporter: Status output.
        query: Optional installed-state backend used to skip absent packages.

    Returns:
        One result per entry; OK means removed (or already absent).
    """
    results: list[ReconciliationResult] = []
    for entry in reversed(list(manifest)):
        if query is not None and not query.is_installed(entry.id):
            reporter.info(f"{entry.id} not installed, skipping")
            results.append(
                ReconciliationResult(id=entry.id, status=ReconcileStatus.OK, note="Not installed")
            )
            continue

        action_result = operator.uninstall(entry.id)
        if action_result.success:
            reporter.ok(f"{action_result.message or 'Uninstalled'}: {entry.id}")
            results.append(
                ReconciliationResult(
                    id=entry.id, status=ReconcileStatus.OK, note=action_result.message
                )
            )
        else:
            reporter.warn(f"Failed to uninstall {entry.id}: {action_result.error}")
            results.append(
                ReconciliationResult(
                    id=entry.id, status=ReconcileStatus.ERROR, note=action_result.error
                )
            )
    return results


def summarize_failures(results: list[ReconciliationResult], reporter: Reporter) -> None:
    """Print every failing entry of a batch at the end of the run."""
    failures = [r for r in results if r.status == ReconcileStatus.ERROR]
    if not failures:
        reporter.ok(f"All {len(results)} package(s) reconciled.")
        return
    reporter.warn(f"{len(failures)} of {len(results)} package(s) failed:")
    for failure in failures:
        reporter.warn(f"  {failure.id}: {failure.note}")
