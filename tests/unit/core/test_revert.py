"""Unit tests for revert orchestration."""

from collections.abc import Callable
from pathlib import Path
from unittest.mock import patch

import pytest
from dotstrap.core.environment import XDG_CONFIG_HOME, ProcessEnvironmentStore
from dotstrap.core.profiles import install_profile_stubs
from dotstrap.core.revert import (
    RevertContext,
    RevertOptions,
    RevertStatus,
    expected_link_mappings,
    run_revert,
)
from dotstrap.links.gitconfig import ensure_git_include
from dotstrap.links.reconciler import reconcile_links
from dotstrap.scanners.memory import InMemoryPackageQuery
from dotstrap.utils.formatting import Reporter


@pytest.fixture
def provisioned(repo: Path, home: Path, reporter: Reporter) -> Path:
    """Home directory with links, git include and profile stubs in place."""
    reconcile_links(repo / ".config", home / ".config")
    ensure_git_include(home / ".gitconfig", home / ".config" / "git" / "config")
    install_profile_stubs(repo, reporter, home=home)
    return home


@pytest.fixture
def make_context(
    reporter: Reporter, repo: Path, home: Path, recording_operator: type, tmp_path: Path
) -> Callable[..., RevertContext]:
    """Build a RevertContext wired to in-memory collaborators."""

    def _make(**overrides: object) -> RevertContext:
        query = overrides.pop("query", InMemoryPackageQuery())
        values: dict[str, object] = {
            "reporter": reporter,
            "operator": recording_operator(query),
            "query": query,
            "env_store": ProcessEnvironmentStore({}),
            "repo_root": repo,
            "home": home,
            "cache_dir": tmp_path / "cache" / "repo",
            "fonts_dir": tmp_path / "fonts",
        }
        values.update(overrides)
        return RevertContext(**values)  # type: ignore[arg-type]

    return _make


class TestRevertOptions:
    """Tests for RevertOptions."""

    def test_nothing_selected_by_default(self) -> None:
        """No sub-operation runs unless selected."""
        assert not RevertOptions().any_selected
        assert not RevertOptions(dry_run=True).any_selected

    def test_everything_selects_all(self) -> None:
        """everything() selects every sub-operation and keeps dry-run."""
        options = RevertOptions.everything(dry_run=True)
        assert options.any_selected
        assert options.remove_links and options.remove_repo
        assert options.dry_run


class TestRunRevert:
    """Tests for run_revert."""

    def test_remove_links_only_touches_links(
        self, make_context: Callable[..., RevertContext], provisioned: Path
    ) -> None:
        """Links and the git include go; a real directory stays."""
        (provisioned / ".config" / "other").mkdir()
        report = run_revert(RevertOptions(remove_links=True), make_context())

        assert report.ok
        assert not (provisioned / ".config" / "git").exists()
        assert not (provisioned / ".config" / "nvim").exists()
        assert (provisioned / ".config" / "other").is_dir()
        assert "dotstrap: managed include" not in (provisioned / ".gitconfig").read_text()

    def test_real_directory_at_link_target_is_skipped(
        self, make_context: Callable[..., RevertContext], home: Path
    ) -> None:
        """A user-owned folder at a link target is never deleted."""
        (home / ".config" / "nvim").mkdir(parents=True)
        (home / ".config" / "nvim" / "init.lua").write_text("-- mine\n")

        report = run_revert(RevertOptions(remove_links=True), make_context())

        assert (home / ".config" / "nvim" / "init.lua").exists()
        statuses = {a.target: a.status for a in report.actions}
        assert statuses[str(home / ".config" / "nvim")] == RevertStatus.SKIPPED

    def test_dry_run_changes_nothing(
        self, make_context: Callable[..., RevertContext], provisioned: Path
    ) -> None:
        """Dry-run reports actions without removing anything."""
        report = run_revert(
            RevertOptions(remove_links=True, remove_profiles=True, dry_run=True), make_context()
        )

        assert (provisioned / ".config" / "git").is_symlink()
        profile = provisioned / "Documents" / "PowerShell" / "Microsoft.PowerShell_profile.ps1"
        assert profile.exists()
        assert any(a.status == RevertStatus.DRY_RUN for a in report.actions)
        assert all(a.status != RevertStatus.DONE for a in report.actions)

    def test_profiles_keep_user_files(
        self, make_context: Callable[..., RevertContext], provisioned: Path
    ) -> None:
        """Only sentinel-marked profiles are removed."""
        user_profile = (
            provisioned / "Documents" / "WindowsPowerShell" / "Microsoft.PowerShell_profile.ps1"
        )
        user_profile.write_text("Write-Host 'mine'\n")

        run_revert(RevertOptions(remove_profiles=True), make_context())

        assert user_profile.exists()
        assert not (
            provisioned / "Documents" / "PowerShell" / "Microsoft.PowerShell_profile.ps1"
        ).exists()

    def test_uninstall_packages_reverse_order(
        self,
        make_context: Callable[..., RevertContext],
        write_manifest: Callable[[object], Path],
    ) -> None:
        """Packages are uninstalled in reverse manifest order; absent ones skipped."""
        manifest_path = write_manifest(["A.One", "B.Two", "C.Three"])
        query = InMemoryPackageQuery({"A.One": "1", "C.Three": "3"})
        ctx = make_context(query=query, manifest_path=manifest_path)

        report = run_revert(RevertOptions(uninstall_packages=True), ctx)

        assert [c[1] for c in ctx.operator.calls] == ["C.Three", "A.One"]
        statuses = {a.target: a.status for a in report.actions}
        assert statuses["B.Two"] == RevertStatus.SKIPPED

    def test_failure_does_not_stop_later_operations(
        self,
        make_context: Callable[..., RevertContext],
        tmp_path: Path,
        home: Path,
    ) -> None:
        """A failing sub-operation is recorded and the next one still runs."""
        store = ProcessEnvironmentStore({XDG_CONFIG_HOME: str(home / ".config")})
        ctx = make_context(env_store=store, manifest_path=tmp_path / "missing.json")

        report = run_revert(RevertOptions(uninstall_packages=True, reset_env=True), ctx)

        assert not report.ok
        assert report.failed[0].operation == "uninstall_packages"
        assert store.get(XDG_CONFIG_HOME) is None

    def test_reset_env_keeps_user_value(
        self, make_context: Callable[..., RevertContext]
    ) -> None:
        """A user-chosen XDG_CONFIG_HOME is left alone."""
        store = ProcessEnvironmentStore({XDG_CONFIG_HOME: "D:/cfg"})
        report = run_revert(RevertOptions(reset_env=True), make_context(env_store=store))

        assert store.get(XDG_CONFIG_HOME) == "D:/cfg"
        assert report.actions[0].status == RevertStatus.SKIPPED

    def test_remove_repo_cache(
        self, make_context: Callable[..., RevertContext], tmp_path: Path
    ) -> None:
        """The repository cache is deleted."""
        cache = tmp_path / "cache" / "repo"
        (cache / ".config").mkdir(parents=True)

        report = run_revert(RevertOptions(remove_repo=True), make_context())

        assert not cache.exists()
        assert report.actions[0].status == RevertStatus.DONE

    def test_modules_use_uninstaller(self, make_context: Callable[..., RevertContext]) -> None:
        """Module removal delegates to the PowerShell uninstaller."""
        with patch("dotstrap.core.revert.uninstall_shell_modules", return_value=[]) as mock:
            run_revert(RevertOptions(uninstall_modules=True, dry_run=True), make_context())
        assert mock.call_args.kwargs["dry_run"] is True


class TestExpectedLinkMappings:
    """Tests for expected_link_mappings."""

    def test_falls_back_to_existing_links(self, repo: Path, home: Path, tmp_path: Path) -> None:
        """Without a config tree, links pointing into it are still found."""
        reconcile_links(repo / ".config", home / ".config")
        (home / ".config" / "unrelated").symlink_to(tmp_path, target_is_directory=True)
        (repo / ".config").rename(tmp_path / "moved-config")

        mappings = expected_link_mappings(repo, home / ".config")

        assert {m.name for m in mappings} == {"git", "nvim"}

    def test_no_repository_no_links(self, home: Path, tmp_path: Path) -> None:
        """Nothing is expected when neither the repo nor links exist."""
        assert expected_link_mappings(tmp_path / "gone", home / ".config") == []
