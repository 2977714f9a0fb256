"""Unit tests for user environment configuration."""

from collections.abc import Callable
from pathlib import Path

from dotstrap.core.environment import (
    XDG_CONFIG_HOME,
    ProcessEnvironmentStore,
    configure_base_environment,
    desired_config_home,
    reset_base_environment,
)
from dotstrap.utils.formatting import Reporter


class TestProcessEnvironmentStore:
    """Tests for the in-process environment store."""

    def test_get_set_unset(self) -> None:
        """Values round-trip through the backing mapping."""
        environ: dict[str, str] = {}
        store = ProcessEnvironmentStore(environ)

        store.set("A", "1")
        assert store.get("A") == "1"
        store.unset("A")
        store.unset("A")
        assert store.get("A") is None


class TestConfigureBaseEnvironment:
    """Tests for configure_base_environment."""

    def test_sets_when_unset(self, home: Path, reporter: Reporter) -> None:
        """An unset variable is set to <home>/.config."""
        environ: dict[str, str] = {}

        change = configure_base_environment(ProcessEnvironmentStore(environ), reporter, home=home)

        assert change.changed
        assert environ[XDG_CONFIG_HOME] == str(home / ".config")

    def test_idempotent(self, home: Path, reporter: Reporter) -> None:
        """A second run changes nothing."""
        store = ProcessEnvironmentStore({})
        configure_base_environment(store, reporter, home=home)

        change = configure_base_environment(store, reporter, home=home)

        assert not change.changed
        assert change.note == "Already set"

    def test_never_overwrites_user_value(
        self,
        home: Path,
        reporter: Reporter,
        read_output: Callable[[Reporter], tuple[str, str]],
    ) -> None:
        """A different existing value is kept with a warning."""
        environ = {XDG_CONFIG_HOME: "D:/xdg"}

        change = configure_base_environment(ProcessEnvironmentStore(environ), reporter, home=home)

        assert not change.changed
        assert environ[XDG_CONFIG_HOME] == "D:/xdg"
        assert "leaving it" in read_output(reporter)[1]

    def test_dry_run(self, home: Path, reporter: Reporter) -> None:
        """Dry-run reports the change without making it."""
        environ: dict[str, str] = {}

        change = configure_base_environment(
            ProcessEnvironmentStore(environ), reporter, home=home, dry_run=True
        )

        assert change.changed
        assert environ == {}


class TestResetBaseEnvironment:
    """Tests for reset_base_environment."""

    def test_unsets_own_value(self, home: Path, reporter: Reporter) -> None:
        """The toolkit's own value is removed."""
        environ = {XDG_CONFIG_HOME: desired_config_home(home)}

        change = reset_base_environment(ProcessEnvironmentStore(environ), reporter, home=home)

        assert change.changed
        assert XDG_CONFIG_HOME not in environ

    def test_keeps_foreign_value(self, home: Path, reporter: Reporter) -> None:
        """A value the toolkit did not set is left alone."""
        environ = {XDG_CONFIG_HOME: "D:/xdg"}

        change = reset_base_environment(ProcessEnvironmentStore(environ), reporter, home=home)

        assert not change.changed
        assert environ[XDG_CONFIG_HOME] == "D:/xdg"

    def test_not_set(self, home: Path, reporter: Reporter) -> None:
        """Nothing to do when unset."""
        change = reset_base_environment(ProcessEnvironmentStore({}), reporter, home=home)
        assert not change.changed
