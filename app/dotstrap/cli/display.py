"""Shared Rich display functions for reconciliation results.

Provides the table builders and summary printers used by the audit,
install, link and revert commands.
"""

from rich.table import Table

from dotstrap.core.audit import AuditReport
from dotstrap.core.revert import RevertReport, RevertStatus
from dotstrap.links.models import LinkOutcome, LinkResult
from dotstrap.models.result import ReconciliationResult, ReconcileStatus
from dotstrap.utils.formatting import Reporter

_STATUS_STYLES: dict[ReconcileStatus, str] = {
    ReconcileStatus.OK: "success",
    ReconcileStatus.MISSING: "warning",
    ReconcileStatus.DRIFT: "drift",
    ReconcileStatus.ERROR: "error",
}

_REVERT_STYLES: dict[RevertStatus, str] = {
    RevertStatus.DONE: "success",
    RevertStatus.DRY_RUN: "info",
    RevertStatus.SKIPPED: "muted",
    RevertStatus.FAILED: "error",
}


def create_results_table(results: list[ReconciliationResult], title: str = "Packages") -> Table:
    """Create a Rich table with one row per manifest entry.

    Args:
        results: Reconciliation or audit results.
        title: Table title.

    Returns:
        Rich Table with Id, Status, Installed, Expected and Note columns.
    """
    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Id", no_wrap=True)
    table.add_column("Status", width=9)
    table.add_column("Installed")
    table.add_column("Expected")
    table.add_column("Note")

    for result in results:
        style = _STATUS_STYLES[result.status]
        table.add_row(
            result.id,
            f"[{style}]{result.label}[/{style}]",
            result.observed or "",
            result.expected or "",
            f"[muted]{result.note or ''}[/muted]",
        )

    return table


def print_audit_summary(report: AuditReport, reporter: Reporter) -> None:
    """Print the one-line audit verdict."""
    if report.is_clean:
        reporter.ok(f"All {len(report.results)} package(s) match the manifest.")
        return
    reporter.render(
        f"\n[warning]{len(report.missing)} missing[/warning], "
        f"[drift]{len(report.drifted)} drifted[/drift], "
        f"[error]{len(report.errors)} error(s)[/error]"
    )


def print_link_summary(results: list[LinkResult], reporter: Reporter) -> None:
    """Print counts of link outcomes."""
    counts: dict[LinkOutcome, int] = {}
    for result in results:
        counts[result.outcome] = counts.get(result.outcome, 0) + 1
    if not counts:
        reporter.info("No config folders to link.")
        return
    parts = [f"{count} {outcome.value}" for outcome, count in counts.items()]
    reporter.info("Links: " + ", ".join(parts))


def create_revert_table(report: RevertReport) -> Table:
    """Create a Rich table listing every revert action."""
    table = Table(
        title="Revert",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Operation", no_wrap=True)
    table.add_column("Target")
    table.add_column("Status", width=8)
    table.add_column("Detail")

    for action in report.actions:
        style = _REVERT_STYLES[action.status]
        table.add_row(
            action.operation,
            action.target,
            f"[{style}]{action.status.value}[/{style}]",
            f"[muted]{action.detail or ''}[/muted]",
        )

    return table
