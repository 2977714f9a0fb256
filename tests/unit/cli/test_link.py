"""Unit tests for the link command."""

from pathlib import Path
from unittest.mock import patch

from dotstrap.cli.main import app
from dotstrap.core.errors import ElevationError
from dotstrap.links.reconciler import is_link
from typer.testing import CliRunner

runner = CliRunner()


def _link_args(repo: Path, home: Path, *extra: str) -> list[str]:
    return ["link", "--source-root", str(repo / ".config"), "--target-home", str(home), *extra]


class TestLinkCommand:
    """Tests for dotstrap link."""

    def test_links_and_patches_gitconfig(self, repo: Path, home: Path) -> None:
        """Folders are linked and the git include is added once."""
        result = runner.invoke(app, _link_args(repo, home))

        assert result.exit_code == 0
        assert is_link(home / ".config" / "git")
        assert is_link(home / ".config" / "nvim")
        assert "Links: 2 Created" in result.stdout

        again = runner.invoke(app, _link_args(repo, home))
        assert again.exit_code == 0
        assert "2 AlreadyLinked" in again.stdout
        assert (home / ".gitconfig").read_text().count("[include]") == 1

    def test_dry_run(self, repo: Path, home: Path) -> None:
        """--dry-run creates nothing."""
        result = runner.invoke(app, _link_args(repo, home, "--dry-run"))

        assert result.exit_code == 0
        assert not (home / ".config").exists()
        assert not (home / ".gitconfig").exists()

    def test_missing_config_tree(self, tmp_path: Path, home: Path) -> None:
        """A repository without .config exits 1."""
        result = runner.invoke(app, _link_args(tmp_path / "nothing", home))
        assert result.exit_code == 1
        assert "Repository config tree not found" in result.output

    def test_home_as_repository_is_refused(self, home: Path) -> None:
        """Using the home directory as repository never touches its config folders."""
        (home / ".config" / "nvim").mkdir(parents=True)
        (home / ".config" / "nvim" / "init.lua").write_text("mine")

        result = runner.invoke(app, _link_args(home, home, "--force"))

        assert result.exit_code == 1
        assert "Refusing to link" in result.output
        assert (home / ".config" / "nvim" / "init.lua").read_text() == "mine"

    def test_no_elevate_fails(self, repo: Path, home: Path) -> None:
        """--no-elevate reports the failure and exits 1."""
        with (
            patch("dotstrap.links.reconciler.os.symlink", side_effect=PermissionError("denied")),
            patch("dotstrap.cli.commands.link.get_mutator") as mock_mutator,
        ):
            result = runner.invoke(app, _link_args(repo, home, "--no-elevate"))

        assert result.exit_code == 1
        mock_mutator.assert_not_called()

    def test_escalates_on_failure(self, repo: Path, home: Path, fake_mutator: type) -> None:
        """Failed links are retried through the elevated helper."""
        mutator = fake_mutator(skip={"git", "nvim"})
        with (
            patch("dotstrap.links.reconciler.os.symlink", side_effect=PermissionError("denied")),
            patch("dotstrap.cli.commands.link.get_mutator", return_value=mutator),
        ):
            result = runner.invoke(app, _link_args(repo, home))

        assert result.exit_code == 0
        assert len(mutator.requests) == 1
        assert "still missing: git, nvim" in result.output

    def test_spawn_failure_exits_one(self, repo: Path, home: Path, fake_mutator: type) -> None:
        """A helper that could not start exits 1."""
        mutator = fake_mutator(fail=ElevationError("UAC declined"))
        with (
            patch("dotstrap.links.reconciler.os.symlink", side_effect=PermissionError("denied")),
            patch("dotstrap.cli.commands.link.get_mutator", return_value=mutator),
        ):
            result = runner.invoke(app, _link_args(repo, home))

        assert result.exit_code == 1
        assert "UAC declined" in result.output
