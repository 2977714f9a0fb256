"""Bootstrap orchestration.

Runs the fixed sequence of provisioning steps in order. Every step is
idempotent, so re-running bootstrap on a provisioned machine only reports
what is already in place. The first step that raises aborts the run; the
error is wrapped in a BootstrapStepError naming the step.
"""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from dotstrap.core.audit import AuditReport, audit
from dotstrap.core.environment import EnvironmentStore, configure_base_environment
from dotstrap.core.errors import (
    BootstrapStepError,
    DotstrapError,
    LinkReconcileError,
    ManifestNotFoundError,
    ProvisioningEnvironmentError,
)
from dotstrap.core.fonts import FontRegistry, install_font
from dotstrap.core.manifest import load_manifest
from dotstrap.core.modules import install_shell_modules
from dotstrap.core.packages import PackageReconciler, summarize_failures
from dotstrap.core.paths import (
    get_gitconfig_path,
    get_home_config_root,
    get_manifest_path,
    get_repo_config_root,
)
from dotstrap.core.probe import probe_symlink_capability
from dotstrap.core.profiles import install_profile_stubs
from dotstrap.core.repository import acquire_repository
from dotstrap.links.elevation import (
    LinkRequest,
    PrivilegedMutator,
    escalate_links,
    remediation_command,
    report_elevation,
)
from dotstrap.links.gitconfig import ensure_git_include
from dotstrap.links.reconciler import ensure_links, plan_links, verify_links

if TYPE_CHECKING:
    from dotstrap.links.elevation import ElevationReport
    from dotstrap.links.models import LinkResult
    from dotstrap.models.manifest import Manifest
    from dotstrap.models.result import ReconciliationResult
    from dotstrap.operators.base import Operator
    from dotstrap.scanners.base import PackageQuery
    from dotstrap.utils.formatting import Reporter

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class BootstrapOptions:
    """User choices for a bootstrap run.

    Attributes:
        repo_root: Local checkout to provision from.
        repo_archive_url: Zip archive to fetch when no checkout is usable.
        manifest_path: Manifest override (default: inside the repository).
        elevate_link_on_failure: Re-run linking elevated if it fails.
        self_test: Audit packages and verify links at the end.
        force_links: Replace real directories occupying link targets.
        home: Home directory override.
    """

    repo_root: Path | None = None
    repo_archive_url: str | None = None
    manifest_path: Path | None = None
    elevate_link_on_failure: bool = False
    self_test: bool = False
    force_links: bool = False
    home: Path | None = None


@dataclass
class BootstrapContext:
    """Collaborators and state shared by the bootstrap steps.

    The first block is injected by the caller; the second block is
    filled in by steps as the run progresses.
    """

    options: BootstrapOptions
    reporter: Reporter
    query: PackageQuery
    operator: Operator
    mutator: PrivilegedMutator
    env_store: EnvironmentStore
    font_registry: FontRegistry | None = None
    cache_dir: Path | None = None
    fonts_dir: Path | None = None

    symlink_capable: bool | None = None
    repo_root: Path | None = None
    manifest: Manifest | None = None
    package_results: list[ReconciliationResult] = field(default_factory=list)
    link_results: list[LinkResult] = field(default_factory=list)
    elevation: ElevationReport | None = None
    audit_report: AuditReport | None = None

    @property
    def acquired_repo_root(self) -> Path:
        """Repository root set by the acquire step."""
        if self.repo_root is None:
            msg = "Repository has not been acquired yet"
            raise ProvisioningEnvironmentError(msg)
        return self.repo_root

    @property
    def source_root(self) -> Path:
        """Repository config tree."""
        return get_repo_config_root(self.acquired_repo_root)

    @property
    def target_root(self) -> Path:
        """Home config root links are created in."""
        return get_home_config_root(self.options.home)


class Step(Protocol):
    """A single idempotent bootstrap step."""

    name: str

    def run(self, ctx: BootstrapContext) -> None: ...


@dataclass(frozen=True, slots=True)
class FunctionStep:
    """Step backed by a plain function."""

    name: str
    func: Callable[[BootstrapContext], None]

    def run(self, ctx: BootstrapContext) -> None:
        self.func(ctx)


@dataclass(frozen=True, slots=True)
class BootstrapResult:
    """Outcome of a completed bootstrap run.

    Attributes:
        completed: Names of the steps that ran, in order.
        context: Final shared state.
    """

    completed: tuple[str, ...]
    context: BootstrapContext


def probe_symlink_support(ctx: BootstrapContext) -> None:
    ctx.symlink_capable = probe_symlink_capability()
    if ctx.symlink_capable:
        ctx.reporter.ok("Symlinks can be created without elevation")
    elif ctx.options.elevate_link_on_failure:
        ctx.reporter.info("Symlinks need elevation; linking will escalate if required")
    else:
        ctx.reporter.warn(
            "This process cannot create symlinks; linking will likely fail. "
            "Enable Developer Mode or pass --elevate-link-on-failure."
        )


def configure_environment(ctx: BootstrapContext) -> None:
    configure_base_environment(ctx.env_store, ctx.reporter, home=ctx.options.home)


def verify_package_manager(ctx: BootstrapContext) -> None:
    if not ctx.operator.is_available():
        msg = f"{ctx.operator.name} is not available; install App Installer from the Store"
        raise ProvisioningEnvironmentError(msg)
    ctx.reporter.ok(f"{ctx.operator.name} is available")


def acquire_repo(ctx: BootstrapContext) -> None:
    ctx.repo_root = acquire_repository(
        ctx.reporter,
        repo_root=ctx.options.repo_root,
        archive_url=ctx.options.repo_archive_url,
        cache_dir=ctx.cache_dir,
        home=ctx.options.home,
    )


def install_packages(ctx: BootstrapContext) -> None:
    path = ctx.options.manifest_path or get_manifest_path(ctx.acquired_repo_root)
    try:
        ctx.manifest = load_manifest(path)
    except ManifestNotFoundError:
        ctx.reporter.warn(f"No manifest at {path}; skipping package installation")
        return

    reconciler = PackageReconciler(ctx.query, ctx.operator, ctx.reporter)
    ctx.package_results = reconciler.install(ctx.manifest)
    summarize_failures(ctx.package_results, ctx.reporter)


def install_modules(ctx: BootstrapContext) -> None:
    install_shell_modules(ctx.reporter)


def install_fonts(ctx: BootstrapContext) -> None:
    try:
        install_font(ctx.reporter, registry=ctx.font_registry, fonts_dir=ctx.fonts_dir)
    except ProvisioningEnvironmentError as e:
        ctx.reporter.warn(f"Font installation failed: {e}")


def reconcile_links(ctx: BootstrapContext) -> None:
    source_root, target_root = ctx.source_root, ctx.target_root
    try:
        ctx.link_results = ensure_links(
            source_root,
            target_root,
            force=ctx.options.force_links,
            reporter=ctx.reporter,
        )
    except LinkReconcileError as e:
        ctx.link_results = e.results
        request = LinkRequest(source_root, target_root, force=ctx.options.force_links)
        if ctx.options.elevate_link_on_failure:
            ctx.reporter.info("Retrying link creation in an elevated helper")
            ctx.elevation = escalate_links(request, ctx.mutator)
            report_elevation(ctx.elevation, request, ctx.reporter)
        else:
            ctx.reporter.warn(f"{e}. To finish linking, run: {remediation_command(request)}")

    if (source_root / "git").is_dir():
        gitconfig = get_gitconfig_path(ctx.options.home)
        if ensure_git_include(gitconfig, target_root / "git" / "config"):
            ctx.reporter.ok(f"Added git include to {gitconfig}")
        else:
            ctx.reporter.ok(f"{gitconfig} already includes the repository git config")


def install_profiles(ctx: BootstrapContext) -> None:
    install_profile_stubs(ctx.acquired_repo_root, ctx.reporter, home=ctx.options.home)


def self_test(ctx: BootstrapContext) -> None:
    problems: list[str] = []

    if ctx.manifest is not None:
        ctx.audit_report = audit(ctx.manifest, ctx.query)
        problems.extend(
            f"{r.id}: {r.note or r.label}" for r in ctx.audit_report.results if not r.ok
        )

    _, missing = verify_links(plan_links(ctx.source_root, ctx.target_root))
    problems.extend(f"link {m.target} missing" for m in missing)

    if problems:
        for problem in problems:
            ctx.reporter.warn(problem)
        msg = f"Self-test found {len(problems)} problem(s)"
        raise DotstrapError(msg)
    ctx.reporter.ok("Self-test passed")


def build_steps(options: BootstrapOptions) -> list[Step]:
    """Return the ordered bootstrap steps for the given options."""
    steps: list[Step] = [
        FunctionStep("probe_symlink_support", probe_symlink_support),
        FunctionStep("configure_base_environment", configure_environment),
        FunctionStep("verify_package_manager", verify_package_manager),
        FunctionStep("acquire_repository", acquire_repo),
        FunctionStep("install_packages", install_packages),
        FunctionStep("install_shell_modules", install_modules),
        FunctionStep("install_font", install_fonts),
        FunctionStep("reconcile_links", reconcile_links),
        FunctionStep("install_profile_stubs", install_profiles),
    ]
    if options.self_test:
        steps.append(FunctionStep("self_test", self_test))
    return steps


def run_bootstrap(ctx: BootstrapContext, steps: Sequence[Step] | None = None) -> BootstrapResult:
    """Run the bootstrap steps in order, aborting on the first failure.

    Args:
        ctx: Collaborators and options.
        steps: Step sequence override (default: build_steps(ctx.options)).

    Returns:
        BootstrapResult listing the completed steps.

    Raises:
        BootstrapStepError: If a step raised; the remaining steps are skipped.
    """
    completed: list[str] = []
    for step in steps if steps is not None else build_steps(ctx.options):
        logger.info("Running step %s", step.name)
        ctx.reporter.info(f"==> {step.name}")
        try:
            step.run(ctx)
        except BootstrapStepError:
            raise
        except (DotstrapError, OSError, RuntimeError, subprocess.SubprocessError) as e:
            logger.debug("Step %s failed", step.name, exc_info=True)
            raise BootstrapStepError(step.name, str(e)) from e
        completed.append(step.name)
    return BootstrapResult(completed=tuple(completed), context=ctx)
