"""Unit tests for bootstrap orchestration."""

from collections.abc import Callable
from pathlib import Path
from unittest.mock import patch

import pytest
from dotstrap.core.bootstrap import (
    BootstrapContext,
    BootstrapOptions,
    FunctionStep,
    build_steps,
    install_profiles,
    run_bootstrap,
)
from dotstrap.core.environment import XDG_CONFIG_HOME, ProcessEnvironmentStore
from dotstrap.core.errors import (
    BootstrapStepError,
    ManifestParseError,
    ProvisioningEnvironmentError,
)
from dotstrap.core.profiles import PROFILE_SENTINEL
from dotstrap.links.reconciler import is_link
from dotstrap.scanners.memory import InMemoryPackageQuery
from dotstrap.utils.formatting import Reporter


@pytest.fixture
def make_context(
    reporter: Reporter,
    repo: Path,
    home: Path,
    recording_operator: type,
    fake_mutator: type,
) -> Callable[..., BootstrapContext]:
    """Build a BootstrapContext wired to in-memory collaborators."""

    def _make(query: InMemoryPackageQuery | None = None, **option_overrides: object):
        query = query if query is not None else InMemoryPackageQuery()
        options = BootstrapOptions(**{"repo_root": repo, "home": home, **option_overrides})
        return BootstrapContext(
            options=options,
            reporter=reporter,
            query=query,
            operator=recording_operator(query),
            mutator=fake_mutator(),
            env_store=ProcessEnvironmentStore({}),
        )

    return _make


def _quiet_side_steps():
    return (
        patch("dotstrap.core.bootstrap.probe_symlink_capability", return_value=True),
        patch("dotstrap.core.bootstrap.install_shell_modules", return_value=[]),
        patch("dotstrap.core.bootstrap.install_font", return_value=[]),
    )


class TestBuildSteps:
    """Tests for the step sequence."""

    def test_fixed_order(self) -> None:
        """Steps run in the documented order."""
        names = [step.name for step in build_steps(BootstrapOptions())]
        assert names == [
            "probe_symlink_support",
            "configure_base_environment",
            "verify_package_manager",
            "acquire_repository",
            "install_packages",
            "install_shell_modules",
            "install_font",
            "reconcile_links",
            "install_profile_stubs",
        ]

    def test_self_test_appended(self) -> None:
        """--self-test adds a final verification step."""
        steps = build_steps(BootstrapOptions(self_test=True))
        assert steps[-1].name == "self_test"


class TestRunBootstrap:
    """Tests for run_bootstrap."""

    def test_repository_steps_need_acquired_repository(
        self, make_context: Callable[..., BootstrapContext]
    ) -> None:
        """Steps that read the repository refuse to run before it is acquired."""
        ctx = make_context()

        with pytest.raises(ProvisioningEnvironmentError, match="not been acquired"):
            install_profiles(ctx)
        with pytest.raises(ProvisioningEnvironmentError, match="not been acquired"):
            _ = ctx.source_root

    def test_runs_steps_in_order(self, make_context: Callable[..., BootstrapContext]) -> None:
        """Custom steps run in sequence."""
        seen: list[str] = []
        steps = [FunctionStep(name, lambda ctx, n=name: seen.append(n)) for name in "abc"]

        result = run_bootstrap(make_context(), steps)

        assert seen == ["a", "b", "c"]
        assert result.completed == ("a", "b", "c")

    def test_first_failure_aborts(self, make_context: Callable[..., BootstrapContext]) -> None:
        """A raising step stops the run and names the step."""
        seen: list[str] = []

        def boom(ctx: BootstrapContext) -> None:
            raise ManifestParseError("bad json")

        steps = [
            FunctionStep("first", lambda ctx: seen.append("first")),
            FunctionStep("broken", boom),
            FunctionStep("never", lambda ctx: seen.append("never")),
        ]

        with pytest.raises(BootstrapStepError) as exc_info:
            run_bootstrap(make_context(), steps)

        assert exc_info.value.step == "broken"
        assert "bad json" in str(exc_info.value)
        assert seen == ["first"]

    def test_full_run_provisions_machine(
        self,
        make_context: Callable[..., BootstrapContext],
        write_manifest: Callable[[object], Path],
        home: Path,
    ) -> None:
        """A full run installs packages, links config and writes profile stubs."""
        manifest_path = write_manifest(["Git.Git", {"id": "Neovim.Neovim", "scope": "machine"}])
        query = InMemoryPackageQuery({"Git.Git": "2.45.1"})
        ctx = make_context(query, manifest_path=manifest_path, self_test=True)

        probe, modules, font = _quiet_side_steps()
        with probe, modules, font:
            result = run_bootstrap(ctx)

        assert result.completed[-1] == "self_test"
        assert [call[1] for call in ctx.operator.calls] == ["Neovim.Neovim"]
        assert is_link(home / ".config" / "git")
        assert is_link(home / ".config" / "nvim")
        assert ctx.env_store.get(XDG_CONFIG_HOME) == str(home / ".config")
        assert "path = " in (home / ".gitconfig").read_text()
        profile = home / "Documents" / "PowerShell" / "Microsoft.PowerShell_profile.ps1"
        assert profile.read_text().startswith(PROFILE_SENTINEL)
        assert ctx.audit_report is not None and ctx.audit_report.is_clean

    def test_second_run_is_idempotent(
        self,
        make_context: Callable[..., BootstrapContext],
        write_manifest: Callable[[object], Path],
        home: Path,
    ) -> None:
        """Re-running changes nothing and installs nothing."""
        manifest_path = write_manifest(["Git.Git"])
        query = InMemoryPackageQuery()
        first = make_context(query, manifest_path=manifest_path)
        probe, modules, font = _quiet_side_steps()
        with probe, modules, font:
            run_bootstrap(first)
            gitconfig = (home / ".gitconfig").read_text()
            second = make_context(query, manifest_path=manifest_path)
            run_bootstrap(second)

        assert second.operator.calls == []
        assert (home / ".gitconfig").read_text() == gitconfig
        assert {r.outcome.value for r in second.link_results} == {"AlreadyLinked"}

    def test_missing_manifest_is_skipped(
        self, make_context: Callable[..., BootstrapContext], tmp_path: Path
    ) -> None:
        """Without a manifest the package step warns and the run continues."""
        ctx = make_context(manifest_path=tmp_path / "nope.json")
        probe, modules, font = _quiet_side_steps()
        with probe, modules, font:
            result = run_bootstrap(ctx)

        assert "install_profile_stubs" in result.completed
        assert ctx.manifest is None

    def test_unavailable_package_manager_aborts(
        self, make_context: Callable[..., BootstrapContext]
    ) -> None:
        """Bootstrap stops before touching the repository without winget."""
        ctx = make_context()
        probe, modules, font = _quiet_side_steps()
        with (
            probe,
            modules,
            font,
            patch.object(type(ctx.operator), "is_available", return_value=False),
            pytest.raises(BootstrapStepError) as exc_info,
        ):
            run_bootstrap(ctx)

        assert exc_info.value.step == "verify_package_manager"
        assert ctx.repo_root is None

    def test_link_failure_escalates_when_allowed(
        self, make_context: Callable[..., BootstrapContext], fake_mutator: type
    ) -> None:
        """A failed link run is retried through the privileged mutator."""
        ctx = make_context(elevate_link_on_failure=True)
        ctx.mutator = fake_mutator(skip={"git", "nvim"})
        probe, modules, font = _quiet_side_steps()
        with (
            probe,
            modules,
            font,
            patch("dotstrap.links.reconciler.os.symlink", side_effect=PermissionError("denied")),
        ):
            run_bootstrap(ctx)

        assert len(ctx.mutator.requests) == 1
        assert ctx.elevation is not None
        assert ctx.elevation.spawned
        assert {m.name for m in ctx.elevation.missing} == {"git", "nvim"}

    def test_link_failure_without_elevation_warns(
        self,
        make_context: Callable[..., BootstrapContext],
        read_output: Callable[[Reporter], tuple[str, str]],
        reporter: Reporter,
    ) -> None:
        """Without elevation the remediation command is printed."""
        ctx = make_context()
        probe, modules, font = _quiet_side_steps()
        with (
            probe,
            modules,
            font,
            patch("dotstrap.links.reconciler.os.symlink", side_effect=PermissionError("denied")),
        ):
            run_bootstrap(ctx)

        assert ctx.mutator.requests == []
        _, err = read_output(reporter)
        assert "To finish linking" in err

    def test_self_test_fails_on_missing_package(
        self,
        make_context: Callable[..., BootstrapContext],
        write_manifest: Callable[[object], Path],
    ) -> None:
        """Self-test reports packages the installer did not deliver."""
        manifest_path = write_manifest(["Broken.Pkg"])
        ctx = make_context(manifest_path=manifest_path, self_test=True)
        ctx.operator.failing.add("Broken.Pkg")

        probe, modules, font = _quiet_side_steps()
        with probe, modules, font, pytest.raises(BootstrapStepError) as exc_info:
            run_bootstrap(ctx)

        assert exc_info.value.step == "self_test"
