"""User environment variables.

Bootstrap points ``XDG_CONFIG_HOME`` at ``<home>/.config`` so tools that
honour it find the linked configuration on Windows too. On Windows the
value is persisted in ``HKCU\\Environment``; elsewhere only the current
process is affected.
"""

from __future__ import annotations

import logging
import os
from abc import ABC, abstractmethod
from collections.abc import MutableMapping
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from dotstrap.core.paths import get_home_config_root, is_windows

if TYPE_CHECKING:
    from dotstrap.utils.formatting import Reporter

logger = logging.getLogger(__name__)

XDG_CONFIG_HOME = "XDG_CONFIG_HOME"


class EnvironmentStore(ABC):
    """Persistent per-user environment variables."""

    @abstractmethod
    def get(self, name: str) -> str | None:
        """Return the stored value, or None if unset."""

    @abstractmethod
    def set(self, name: str, value: str) -> None:
        """Store a value."""

    @abstractmethod
    def unset(self, name: str) -> None:
        """Remove a value; unknown names are ignored."""


class RegistryEnvironmentStore(EnvironmentStore):
    """User environment in ``HKCU\\Environment`` (Windows only)."""

    _KEY = "Environment"

    def get(self, name: str) -> str | None:
        import winreg

        try:
            with winreg.OpenKey(winreg.HKEY_CURRENT_USER, self._KEY) as key:
                value, _ = winreg.QueryValueEx(key, name)
        except FileNotFoundError:
            return None
        return str(value)

    def set(self, name: str, value: str) -> None:
        import winreg

        with winreg.OpenKey(winreg.HKEY_CURRENT_USER, self._KEY, 0, winreg.KEY_SET_VALUE) as key:
            winreg.SetValueEx(key, name, 0, winreg.REG_EXPAND_SZ, value)
        os.environ[name] = value

    def unset(self, name: str) -> None:
        import winreg

        try:
            with winreg.OpenKey(
                winreg.HKEY_CURRENT_USER, self._KEY, 0, winreg.KEY_SET_VALUE
            ) as key:
                winreg.DeleteValue(key, name)
        except FileNotFoundError:
            pass
        os.environ.pop(name, None)


class ProcessEnvironmentStore(EnvironmentStore):
    """Environment of the current process (non-Windows fallback)."""

    def __init__(self, environ: MutableMapping[str, str] | None = None) -> None:
        self._environ: MutableMapping[str, str] = environ if environ is not None else os.environ

    def get(self, name: str) -> str | None:
        return self._environ.get(name)

    def set(self, name: str, value: str) -> None:
        self._environ[name] = value

    def unset(self, name: str) -> None:
        self._environ.pop(name, None)


def get_environment_store() -> EnvironmentStore:
    """Return the store for the current platform."""
    if is_windows():
        return RegistryEnvironmentStore()
    return ProcessEnvironmentStore()


@dataclass(frozen=True, slots=True)
class EnvChange:
    """Outcome of configuring or resetting one variable.

    Attributes:
        name: Variable name.
        value: Value set (or that would have been reset).
        changed: Whether the store was (or would be) modified.
        note: Human-readable detail.
    """

    name: str
    value: str | None
    changed: bool
    note: str


def desired_config_home(home: Path | None = None) -> str:
    """Value the toolkit sets for ``XDG_CONFIG_HOME``."""
    return str(get_home_config_root(home))


def configure_base_environment(
    store: EnvironmentStore,
    reporter: Reporter,
    *,
    home: Path | None = None,
    dry_run: bool = False,
) -> EnvChange:
    """Set ``XDG_CONFIG_HOME`` unless the user already chose a value.

    Args:
        store: Environment backend.
        reporter: Status output.
        home: Home directory override.
        dry_run: Only report the change.

    Returns:
        EnvChange describing what happened.
    """
    wanted = desired_config_home(home)
    current = store.get(XDG_CONFIG_HOME)

    if current == wanted:
        reporter.ok(f"{XDG_CONFIG_HOME} already set to {wanted}")
        return EnvChange(XDG_CONFIG_HOME, wanted, False, "Already set")

    if current:
        reporter.warn(f"{XDG_CONFIG_HOME} is {current}; leaving it (toolkit default: {wanted})")
        return EnvChange(XDG_CONFIG_HOME, current, False, "User value kept")

    if dry_run:
        reporter.info(f"Would set {XDG_CONFIG_HOME}={wanted}")
        return EnvChange(XDG_CONFIG_HOME, wanted, True, "Dry-run")

    store.set(XDG_CONFIG_HOME, wanted)
    reporter.ok(f"Set {XDG_CONFIG_HOME}={wanted}")
    return EnvChange(XDG_CONFIG_HOME, wanted, True, "Set")


def reset_base_environment(
    store: EnvironmentStore,
    reporter: Reporter,
    *,
    home: Path | None = None,
    dry_run: bool = False,
) -> EnvChange:
    """Unset ``XDG_CONFIG_HOME`` only if it holds the toolkit's own value."""
    wanted = desired_config_home(home)
    current = store.get(XDG_CONFIG_HOME)

    if current is None:
        reporter.info(f"{XDG_CONFIG_HOME} not set")
        return EnvChange(XDG_CONFIG_HOME, None, False, "Not set")

    if current != wanted:
        reporter.warn(f"{XDG_CONFIG_HOME}={current} was not set by dotstrap; leaving it")
        return EnvChange(XDG_CONFIG_HOME, current, False, "User value kept")

    if dry_run:
        reporter.info(f"Would unset {XDG_CONFIG_HOME}")
        return EnvChange(XDG_CONFIG_HOME, current, True, "Dry-run")

    store.unset(XDG_CONFIG_HOME)
    reporter.ok(f"Unset {XDG_CONFIG_HOME}")
    return EnvChange(XDG_CONFIG_HOME, current, True, "Unset")
