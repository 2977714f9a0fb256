"""Revert orchestration.

Selectively undoes what bootstrap set up. Each sub-operation only touches
what dotstrap itself created (links, sentinel-marked profile stubs, the
managed git include block, known font files, the toolkit's own
environment value) and is safe to run repeatedly. Sub-operations are
best effort: a failure is recorded and the next one still runs.
"""

from __future__ import annotations

import logging
import os
import subprocess
from collections.abc import Callable
from dataclasses import dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from dotstrap.core.environment import EnvironmentStore, reset_base_environment
from dotstrap.core.errors import DotstrapError
from dotstrap.core.fonts import FontRegistry, find_installed_fonts, remove_fonts
from dotstrap.core.manifest import load_manifest
from dotstrap.core.modules import uninstall_shell_modules
from dotstrap.core.packages import uninstall_packages
from dotstrap.core.paths import (
    get_gitconfig_path,
    get_home_config_root,
    get_manifest_path,
    get_repo_config_root,
)
from dotstrap.core.profiles import remove_profile_stubs
from dotstrap.core.repository import remove_repository_cache
from dotstrap.links.gitconfig import remove_git_include
from dotstrap.links.models import LinkMapping, LinkOutcome
from dotstrap.links.reconciler import is_link, plan_links, remove_links

if TYPE_CHECKING:
    from dotstrap.operators.base import Operator
    from dotstrap.scanners.base import PackageQuery
    from dotstrap.utils.formatting import Reporter

logger = logging.getLogger(__name__)


class RevertStatus(Enum):
    """Status of one revert action."""

    DONE = "done"
    DRY_RUN = "dry-run"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class RevertOptions:
    """Which sub-operations to run.

    Attributes:
        remove_links: Remove config links and the managed git include.
        uninstall_packages: Uninstall manifest packages.
        remove_fonts: Delete the Nerd Font files.
        remove_profiles: Delete PowerShell profile stubs.
        uninstall_modules: Uninstall the PowerShell modules.
        reset_env: Unset XDG_CONFIG_HOME if dotstrap set it.
        remove_repo: Delete the repository cache.
        dry_run: Only report what would be done.
    """

    remove_links: bool = False
    uninstall_packages: bool = False
    remove_fonts: bool = False
    remove_profiles: bool = False
    uninstall_modules: bool = False
    reset_env: bool = False
    remove_repo: bool = False
    dry_run: bool = False

    @classmethod
    def everything(cls, *, dry_run: bool = False) -> RevertOptions:
        """Select every sub-operation."""
        selected = {f.name: True for f in fields(cls) if f.name != "dry_run"}
        return cls(**selected, dry_run=dry_run)

    @property
    def any_selected(self) -> bool:
        """Check if at least one sub-operation is selected."""
        return any(getattr(self, f.name) for f in fields(self) if f.name != "dry_run")


@dataclass(frozen=True, slots=True)
class RevertAction:
    """One thing revert did, skipped, or failed to do.

    Attributes:
        operation: Sub-operation name (e.g. ``remove_links``).
        target: What was acted on (path, package id, variable name).
        status: Outcome.
        detail: Optional human-readable detail.
    """

    operation: str
    target: str
    status: RevertStatus
    detail: str | None = None


@dataclass
class RevertReport:
    """Every action taken by a revert run."""

    actions: list[RevertAction] = field(default_factory=list)

    def add(
        self, operation: str, target: str, status: RevertStatus, detail: str | None = None
    ) -> None:
        self.actions.append(RevertAction(operation, target, status, detail))

    @property
    def failed(self) -> list[RevertAction]:
        """Actions that failed."""
        return [a for a in self.actions if a.status == RevertStatus.FAILED]

    @property
    def ok(self) -> bool:
        """Check if no action failed."""
        return not self.failed


@dataclass
class RevertContext:
    """Collaborators used by the revert sub-operations."""

    reporter: Reporter
    operator: Operator
    query: PackageQuery | None
    env_store: EnvironmentStore
    repo_root: Path
    font_registry: FontRegistry | None = None
    manifest_path: Path | None = None
    home: Path | None = None
    cache_dir: Path | None = None
    fonts_dir: Path | None = None


def _status(changed: bool, dry_run: bool) -> RevertStatus:
    if not changed:
        return RevertStatus.SKIPPED
    return RevertStatus.DRY_RUN if dry_run else RevertStatus.DONE


def expected_link_mappings(repo_root: Path, target_root: Path) -> list[LinkMapping]:
    """Mappings bootstrap would have created.

    Without a repository checkout, the links currently in ``target_root``
    that point into the repository config tree are used instead.
    """
    source_root = get_repo_config_root(repo_root)
    if source_root.is_dir():
        return plan_links(source_root, target_root)
    if not target_root.is_dir():
        return []

    mappings: list[LinkMapping] = []
    prefix = os.path.normcase(str(source_root.absolute()))
    for entry in sorted(target_root.iterdir()):
        if not is_link(entry):
            continue
        destination = os.path.normcase(os.readlink(entry))
        if destination.startswith(prefix):
            mappings.append(LinkMapping(source=Path(os.readlink(entry)), target=entry))
    return mappings


def _revert_links(ctx: RevertContext, report: RevertReport, dry_run: bool) -> None:
    target_root = get_home_config_root(ctx.home)
    for result in remove_links(
        expected_link_mappings(ctx.repo_root, target_root), dry_run=dry_run, reporter=ctx.reporter
    ):
        target = str(result.mapping.target)
        if result.outcome == LinkOutcome.REMOVED:
            report.add("remove_links", target, _status(True, dry_run))
        elif result.failed:
            report.add("remove_links", target, RevertStatus.FAILED, result.error)
        else:
            report.add("remove_links", target, RevertStatus.SKIPPED, result.outcome.value)

    gitconfig = get_gitconfig_path(ctx.home)
    changed = remove_git_include(gitconfig, dry_run=dry_run)
    report.add("remove_links", str(gitconfig), _status(changed, dry_run), "git include")


def _revert_packages(ctx: RevertContext, report: RevertReport, dry_run: bool) -> None:
    manifest = load_manifest(ctx.manifest_path or get_manifest_path(ctx.repo_root))
    if dry_run:
        for entry in reversed(list(manifest)):
            ctx.reporter.info(f"Would uninstall {entry.id}")
            report.add("uninstall_packages", entry.id, RevertStatus.DRY_RUN)
        return

    for result in uninstall_packages(manifest, ctx.operator, ctx.reporter, ctx.query):
        if not result.ok:
            report.add("uninstall_packages", result.id, RevertStatus.FAILED, result.note)
        elif result.note == "Not installed":
            report.add("uninstall_packages", result.id, RevertStatus.SKIPPED, result.note)
        else:
            report.add("uninstall_packages", result.id, RevertStatus.DONE, result.note)


def _revert_fonts(ctx: RevertContext, report: RevertReport, dry_run: bool) -> None:
    candidates = find_installed_fonts(ctx.fonts_dir)
    removed = set(
        remove_fonts(
            ctx.reporter, registry=ctx.font_registry, fonts_dir=ctx.fonts_dir, dry_run=dry_run
        )
    )
    if not candidates:
        report.add("remove_fonts", "Nerd Font", RevertStatus.SKIPPED, "Not installed")
    for font in candidates:
        if font in removed:
            report.add("remove_fonts", str(font), _status(True, dry_run))
        else:
            report.add("remove_fonts", str(font), RevertStatus.FAILED, "File in use")


def _revert_profiles(ctx: RevertContext, report: RevertReport, dry_run: bool) -> None:
    for result in remove_profile_stubs(ctx.reporter, home=ctx.home, dry_run=dry_run):
        report.add(
            "remove_profiles",
            str(result.path),
            _status(result.changed, dry_run),
            result.outcome.value,
        )


def _revert_modules(ctx: RevertContext, report: RevertReport, dry_run: bool) -> None:
    for result in uninstall_shell_modules(ctx.reporter, dry_run=dry_run):
        name = result.action.package
        if result.failed:
            report.add("uninstall_modules", name, RevertStatus.FAILED, result.error)
        elif result.message == "Not installed":
            report.add("uninstall_modules", name, RevertStatus.SKIPPED, result.message)
        else:
            report.add("uninstall_modules", name, _status(True, dry_run))


def _revert_env(ctx: RevertContext, report: RevertReport, dry_run: bool) -> None:
    change = reset_base_environment(ctx.env_store, ctx.reporter, home=ctx.home, dry_run=dry_run)
    report.add("reset_env", change.name, _status(change.changed, dry_run), change.note)


def _revert_repo(ctx: RevertContext, report: RevertReport, dry_run: bool) -> None:
    changed = remove_repository_cache(ctx.reporter, cache_dir=ctx.cache_dir, dry_run=dry_run)
    report.add("remove_repo", "repository cache", _status(changed, dry_run))


# Inverse of the bootstrap order
_OPERATIONS: list[tuple[str, Callable[[RevertContext, RevertReport, bool], None]]] = [
    ("remove_profiles", _revert_profiles),
    ("remove_links", _revert_links),
    ("remove_fonts", _revert_fonts),
    ("uninstall_modules", _revert_modules),
    ("uninstall_packages", _revert_packages),
    ("reset_env", _revert_env),
    ("remove_repo", _revert_repo),
]


def run_revert(options: RevertOptions, ctx: RevertContext) -> RevertReport:
    """Run the selected sub-operations.

    Args:
        options: Selected sub-operations and dry-run flag.
        ctx: Collaborators.

    Returns:
        RevertReport listing every action with its status.
    """
    report = RevertReport()
    for name, operation in _OPERATIONS:
        if not getattr(options, name):
            continue
        logger.info("Running revert operation %s", name)
        ctx.reporter.info(f"==> {name}")
        try:
            operation(ctx, report, options.dry_run)
        except (DotstrapError, OSError, RuntimeError, subprocess.SubprocessError) as e:
            ctx.reporter.warn(f"{name} failed: {e}")
            report.add(name, "-", RevertStatus.FAILED, str(e))
    return report
