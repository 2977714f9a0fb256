"""Config directory link reconciliation.

Every immediate subdirectory of the repository config tree is linked into
the home config root under the same name. Links are always reconcilable;
real files and directories are only replaced when forced.
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path
from typing import TYPE_CHECKING

from dotstrap.core.errors import LinkReconcileError, RepositoryLayoutError
from dotstrap.links.models import LinkMapping, LinkOutcome, LinkResult

if TYPE_CHECKING:
    from dotstrap.utils.formatting import Reporter

logger = logging.getLogger(__name__)

# ERROR_PRIVILEGE_NOT_HELD: symlink creation without SeCreateSymbolicLinkPrivilege
_WINERROR_PRIVILEGE_NOT_HELD = 1314

_OUTCOME_STYLES: dict[LinkOutcome, str] = {
    LinkOutcome.CREATED: "created",
    LinkOutcome.REPLACED: "replaced",
    LinkOutcome.REMOVED: "replaced",
    LinkOutcome.ALREADY_LINKED: "muted",
    LinkOutcome.ABSENT: "muted",
    LinkOutcome.SKIPPED_EXISTING: "skipped",
    LinkOutcome.NOT_A_LINK: "skipped",
    LinkOutcome.ERROR: "error",
}


def plan_links(source_root: Path, target_root: Path) -> list[LinkMapping]:
    """Derive the desired links from the repository config tree.

    Args:
        source_root: Repository config tree (``<repo>/.config``).
        target_root: Home config root (``<home>/.config``).

    Returns:
        One mapping per immediate subdirectory, sorted by name.

    Raises:
        RepositoryLayoutError: If source_root is not a directory, or if it is
            the home config root or lies inside it.
    """
    if not source_root.is_dir():
        msg = f"Repository config tree not found: {source_root}"
        raise RepositoryLayoutError(msg)

    resolved_source = source_root.resolve()
    resolved_target = target_root.resolve()
    if resolved_source == resolved_target or resolved_source.is_relative_to(resolved_target):
        msg = (
            f"Refusing to link {source_root} into {target_root}: "
            "the repository config tree is the home config root or lies inside it"
        )
        raise RepositoryLayoutError(msg)

    source_root = source_root.absolute()
    return [
        LinkMapping(source=child, target=target_root / child.name)
        for child in sorted(source_root.iterdir(), key=lambda p: p.name.lower())
        if child.is_dir()
    ]


def is_link(path: Path) -> bool:
    """Check if a path is a symlink or a Windows junction (reparse point)."""
    return path.is_symlink() or path.is_junction()


def points_to(target: Path, source: Path) -> bool:
    """Check if the link at ``target`` resolves to ``source``."""
    try:
        return target.resolve() == source.resolve()
    except (OSError, RuntimeError):
        return False


def _is_same_or_parent(target: Path, source: Path) -> bool:
    if not target.exists():
        return False
    try:
        resolved_source = source.resolve()
        resolved_target = target.resolve()
    except (OSError, RuntimeError):
        return False
    return resolved_source == resolved_target or resolved_source.is_relative_to(resolved_target)


def reconcile_links(
    source_root: Path,
    target_root: Path,
    *,
    force: bool = False,
    dry_run: bool = False,
    reporter: Reporter | None = None,
) -> list[LinkResult]:
    """Make the home config root match the repository config tree.

    A failure on one mapping is recorded and the remaining mappings are
    still processed.

    Args:
        source_root: Repository config tree.
        target_root: Home config root.
        force: Replace real files/directories occupying a target.
        dry_run: Report what would happen without touching the filesystem.
        reporter: Optional status output, one line per mapping.

    Returns:
        One LinkResult per mapping.

    Raises:
        RepositoryLayoutError: If source_root is missing or overlaps target_root.
    """
    results: list[LinkResult] = []
    for mapping in plan_links(source_root, target_root):
        result = reconcile_link(mapping, force=force, dry_run=dry_run)
        if reporter is not None:
            report_link_result(result, reporter)
        results.append(result)
    return results


def ensure_links(
    source_root: Path,
    target_root: Path,
    *,
    force: bool = False,
    dry_run: bool = False,
    reporter: Reporter | None = None,
) -> list[LinkResult]:
    """Reconcile links and raise if any mapping failed.

    Raises:
        LinkReconcileError: After all mappings were processed, if any failed.
        RepositoryLayoutError: If source_root is missing or overlaps target_root.
    """
    results = reconcile_links(
        source_root, target_root, force=force, dry_run=dry_run, reporter=reporter
    )
    failures = [r for r in results if r.failed]
    if failures:
        names = ", ".join(r.mapping.name for r in failures)
        raise LinkReconcileError(f"Could not link: {names}", results)
    return results


def reconcile_link(mapping: LinkMapping, *, force: bool, dry_run: bool) -> LinkResult:
    """Reconcile a single mapping.

    Args:
        mapping: Source/target pair.
        force: Replace a real file/directory at the target.
        dry_run: Only report the outcome.

    Returns:
        LinkResult describing the outcome.
    """
    target = mapping.target

    if is_link(target):
        if points_to(target, mapping.source):
            return LinkResult(mapping=mapping, outcome=LinkOutcome.ALREADY_LINKED, dry_run=dry_run)
        outcome = LinkOutcome.REPLACED
    elif _is_same_or_parent(target, mapping.source):
        # Replacing the target would delete the source.
        logger.warning("Target %s is the source directory itself; skipping", target)
        return LinkResult(
            mapping=mapping,
            outcome=LinkOutcome.SKIPPED_EXISTING,
            dry_run=dry_run,
            error="Target is the source directory",
        )
    elif target.exists():
        if not force:
            return LinkResult(
                mapping=mapping, outcome=LinkOutcome.SKIPPED_EXISTING, dry_run=dry_run
            )
        outcome = LinkOutcome.REPLACED
    else:
        outcome = LinkOutcome.CREATED

    if dry_run:
        logger.info("Dry-run: would link %s -> %s", target, mapping.source)
        return LinkResult(mapping=mapping, outcome=outcome, dry_run=True)

    try:
        if outcome == LinkOutcome.REPLACED:
            remove_path(target)
        target.parent.mkdir(parents=True, exist_ok=True)
        os.symlink(mapping.source, target, target_is_directory=True)
    except OSError as e:
        logger.warning("Linking %s -> %s failed: %s", target, mapping.source, e)
        return LinkResult(
            mapping=mapping,
            outcome=LinkOutcome.ERROR,
            error=str(e),
            permission_denied=_is_permission_error(e),
        )

    logger.info("%s %s -> %s", outcome.value, target, mapping.source)
    return LinkResult(mapping=mapping, outcome=outcome)


def remove_links(
    mappings: list[LinkMapping],
    *,
    dry_run: bool = False,
    reporter: Reporter | None = None,
) -> list[LinkResult]:
    """Remove targets that are actual links; never touch real directories.

    Args:
        mappings: Expected links.
        dry_run: Only report what would be removed.
        reporter: Optional status output.

    Returns:
        One LinkResult per mapping (REMOVED, NOT_A_LINK, ABSENT or ERROR).
    """
    results: list[LinkResult] = []
    for mapping in mappings:
        target = mapping.target
        if is_link(target):
            if dry_run:
                result = LinkResult(mapping=mapping, outcome=LinkOutcome.REMOVED, dry_run=True)
            else:
                try:
                    remove_path(target)
                    result = LinkResult(mapping=mapping, outcome=LinkOutcome.REMOVED)
                except OSError as e:
                    result = LinkResult(
                        mapping=mapping,
                        outcome=LinkOutcome.ERROR,
                        error=str(e),
                        permission_denied=_is_permission_error(e),
                    )
        elif target.exists():
            result = LinkResult(mapping=mapping, outcome=LinkOutcome.NOT_A_LINK, dry_run=dry_run)
        else:
            result = LinkResult(mapping=mapping, outcome=LinkOutcome.ABSENT, dry_run=dry_run)

        if reporter is not None:
            report_link_result(result, reporter)
        results.append(result)
    return results


def verify_links(mappings: list[LinkMapping]) -> tuple[list[LinkMapping], list[LinkMapping]]:
    """Check that every expected target exists and is a link.

    Args:
        mappings: Expected links.

    Returns:
        Tuple of (verified, missing) mappings.
    """
    verified: list[LinkMapping] = []
    missing: list[LinkMapping] = []
    for mapping in mappings:
        if is_link(mapping.target) and mapping.target.exists():
            verified.append(mapping)
        else:
            missing.append(mapping)
    return verified, missing


def remove_path(path: Path) -> None:
    """Remove a link, file or directory tree at ``path``.

    Links are removed without following them. On Windows a directory link
    must be removed with rmdir.
    """
    if is_link(path):
        if os.name == "nt" and path.is_dir():
            os.rmdir(path)
        else:
            path.unlink()
    elif path.is_dir():
        shutil.rmtree(path)
    else:
        path.unlink()


def report_link_result(result: LinkResult, reporter: Reporter) -> None:
    """Print a one-line status for a link result."""
    style = _OUTCOME_STYLES[result.outcome]
    prefix = "[muted](dry-run)[/] " if result.dry_run else ""
    line = (
        f"{prefix}[{style}]{result.outcome.value:<15}[/] "
        f"{result.mapping.target} -> {result.mapping.source}"
    )
    if result.failed:
        reporter.error(f"{result.mapping.target}: {result.error}")
    elif result.outcome in (LinkOutcome.SKIPPED_EXISTING, LinkOutcome.NOT_A_LINK):
        reporter.warn(f"{result.mapping.target} exists and is not a link; left untouched")
    elif not reporter.quiet:
        reporter.out.print(line)


def _is_permission_error(error: OSError) -> bool:
    """Check if an OSError is a missing-privilege failure."""
    return (
        isinstance(error, PermissionError)
        or getattr(error, "winerror", None) == _WINERROR_PRIVILEGE_NOT_HELD
    )
