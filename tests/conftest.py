"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

import io
import json
from collections.abc import Callable
from pathlib import Path

import pytest
from dotstrap.core.theme import get_theme
from dotstrap.links.elevation import LinkRequest, PrivilegedMutator
from dotstrap.links.reconciler import reconcile_links
from dotstrap.models.action import Action, ActionResult, ActionType
from dotstrap.models.package import PackageScope
from dotstrap.operators.base import Operator
from dotstrap.scanners.memory import InMemoryPackageQuery
from dotstrap.utils.formatting import Reporter
from rich.console import Console


class RecordingOperator(Operator):
    """Operator double that records calls and updates an in-memory query."""

    def __init__(
        self,
        query: InMemoryPackageQuery | None = None,
        *,
        dry_run: bool = False,
        failing: set[str] | None = None,
        no_user_installer: set[str] | None = None,
        silent: set[str] | None = None,
    ) -> None:
        super().__init__(dry_run=dry_run)
        self.query = query
        self.failing = failing or set()
        self.no_user_installer = no_user_installer or set()
        self.silent = silent or set()
        self.calls: list[tuple[str, str, PackageScope | None]] = []

    @property
    def name(self) -> str:
        return "recording"

    def is_available(self) -> bool:
        return True

    def install(self, package: str, scope: PackageScope | None = None) -> ActionResult:
        self.calls.append(("install", package, scope))
        action = Action(action_type=ActionType.INSTALL, package=package, scope=scope)
        if package in self.no_user_installer and scope == PackageScope.USER:
            return ActionResult(
                action=action,
                success=False,
                error="No applicable installer found",
                no_applicable_installer=True,
            )
        if package in self.failing:
            return ActionResult(action=action, success=False, error="installer exploded")
        if self.query is not None and package not in self.silent:
            self.query.add(package, "1.0.0")
        return ActionResult(action=action, success=True)

    def uninstall(self, package: str) -> ActionResult:
        self.calls.append(("uninstall", package, None))
        action = Action(action_type=ActionType.UNINSTALL, package=package)
        if package in self.failing:
            return ActionResult(action=action, success=False, error="uninstaller exploded")
        if self.query is not None:
            self.query.remove(package)
        return ActionResult(action=action, success=True)


class FakeMutator(PrivilegedMutator):
    """Mutator double standing in for the elevated helper process.

    By default it performs the link reconciliation in-process; ``skip``
    leaves named folders unlinked and ``fail`` simulates a spawn failure.
    """

    def __init__(self, *, skip: set[str] | None = None, fail: Exception | None = None) -> None:
        self.skip = skip or set()
        self.fail = fail
        self.requests: list[LinkRequest] = []

    def apply(self, request: LinkRequest) -> None:
        self.requests.append(request)
        if self.fail is not None:
            raise self.fail
        for result in reconcile_links(
            request.source_root, request.target_root, force=request.force, dry_run=True
        ):
            if result.mapping.name in self.skip:
                continue
            result.mapping.target.parent.mkdir(parents=True, exist_ok=True)
            if not result.mapping.target.is_symlink():
                result.mapping.target.symlink_to(result.mapping.source, target_is_directory=True)


def _capture_console() -> Console:
    return Console(file=io.StringIO(), width=200, theme=get_theme(), color_system=None)


@pytest.fixture
def reporter() -> Reporter:
    """Reporter writing into in-memory consoles."""
    return Reporter(out=_capture_console(), err=_capture_console())


@pytest.fixture
def quiet_reporter() -> Reporter:
    """Quiet reporter writing into in-memory consoles."""
    return Reporter(quiet=True, out=_capture_console(), err=_capture_console())


def output_of(console: Console) -> str:
    """Text written to a capture console."""
    return console.file.getvalue()  # type: ignore[attr-defined]


@pytest.fixture
def read_output() -> Callable[[Reporter], tuple[str, str]]:
    """Return (stdout, stderr) text captured by a reporter."""

    def _read(rep: Reporter) -> tuple[str, str]:
        return output_of(rep.out), output_of(rep.err)

    return _read


@pytest.fixture
def recording_operator() -> type[RecordingOperator]:
    """The RecordingOperator class."""
    return RecordingOperator


@pytest.fixture
def fake_mutator() -> type[FakeMutator]:
    """The FakeMutator class."""
    return FakeMutator


@pytest.fixture
def write_manifest(tmp_path: Path) -> Callable[[object], Path]:
    """Write a manifest JSON document and return its path."""

    def _write(data: object) -> Path:
        path = tmp_path / "manifest" / "packages.json"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def repo(tmp_path: Path) -> Path:
    """Repository checkout with ``.config/git`` and ``.config/nvim``."""
    root = tmp_path / "repo"
    (root / ".config" / "git").mkdir(parents=True)
    (root / ".config" / "git" / "config").write_text("[core]\n\tautocrlf = false\n")
    (root / ".config" / "nvim").mkdir()
    (root / ".config" / "nvim" / "init.lua").write_text("require('config')\n")
    (root / "powershell").mkdir()
    (root / "powershell" / "profile.ps1").write_text("Set-PSReadLineOption -EditMode Emacs\n")
    return root


@pytest.fixture
def home(tmp_path: Path) -> Path:
    """Empty home directory."""
    path = tmp_path / "home"
    path.mkdir()
    return path


@pytest.fixture
def mock_winget_list_output() -> str:
    """Sample ``winget list`` output, including progress noise."""
    return (
        "   - \\ | \n"
        "Name                 Id                       Version      Available  Source\n"
        "-------------------------------------------------------------------------------\n"
        "Git                  Git.Git                  2.45.1       2.46.0     winget\n"
        "Neovim               Neovim.Neovim            0.10.0                  winget\n"
        "WezTerm              wez.wezterm              20240203                winget\n"
        "Git LFS              GitHub.GitLFS            3.5.1                   winget\n"
        "Microsoft Edge       Microsoft.Edge           < 126.0                 winget\n"
    )
