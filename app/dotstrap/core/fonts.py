"""Nerd Font installation.

The terminal and editor configs expect CaskaydiaCove Nerd Font. The
release zip is downloaded, its TrueType files are copied into the per-user
font directory and registered for the current user, then running
applications are told that the font table changed.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
import zipfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING

from dotstrap.core.errors import ProvisioningEnvironmentError
from dotstrap.core.paths import get_user_fonts_dir, is_windows
from dotstrap.utils.download import DownloadError, download_file

if TYPE_CHECKING:
    from dotstrap.utils.formatting import Reporter

logger = logging.getLogger(__name__)

FONT_ARCHIVE_URL = (
    "https://github.com/ryanoasis/nerd-fonts/releases/latest/download/CascadiaCode.zip"
)

# Files shipped by the CascadiaCode Nerd Font release
FONT_PATTERNS = ("CaskaydiaCove*NerdFont*.ttf",)

_FONTS_KEY = r"Software\Microsoft\Windows NT\CurrentVersion\Fonts"

# Win32 constants for the font change broadcast
_HWND_BROADCAST = 0xFFFF
_WM_FONTCHANGE = 0x001D
_SMTO_ABORTIFHUNG = 0x0002
BROADCAST_TIMEOUT_MS = 5000


class FontRegistry(ABC):
    """Per-user font registration."""

    @abstractmethod
    def register(self, font: Path) -> None:
        """Register an installed font file."""

    @abstractmethod
    def unregister(self, font: Path) -> None:
        """Remove the registration of a font file."""

    @abstractmethod
    def broadcast_change(self) -> None:
        """Notify running applications that fonts changed."""


def registry_value_name(font: Path) -> str:
    """Registry value name Windows uses for a TrueType font file."""
    return f"{font.stem} (TrueType)"


class WindowsFontRegistry(FontRegistry):
    """Fonts registered under ``HKCU`` (no elevation required)."""

    def register(self, font: Path) -> None:
        import winreg

        with winreg.CreateKey(winreg.HKEY_CURRENT_USER, _FONTS_KEY) as key:
            winreg.SetValueEx(key, registry_value_name(font), 0, winreg.REG_SZ, str(font))

    def unregister(self, font: Path) -> None:
        import winreg

        try:
            with winreg.OpenKey(
                winreg.HKEY_CURRENT_USER, _FONTS_KEY, 0, winreg.KEY_SET_VALUE
            ) as key:
                winreg.DeleteValue(key, registry_value_name(font))
        except FileNotFoundError:
            pass

    def broadcast_change(self) -> None:
        import ctypes
        from ctypes import wintypes

        result = wintypes.DWORD()
        sent = ctypes.windll.user32.SendMessageTimeoutW(  # type: ignore[attr-defined]
            _HWND_BROADCAST,
            _WM_FONTCHANGE,
            0,
            0,
            _SMTO_ABORTIFHUNG,
            BROADCAST_TIMEOUT_MS,
            ctypes.byref(result),
        )
        if not sent:
            logger.warning("WM_FONTCHANGE broadcast timed out")


class NullFontRegistry(FontRegistry):
    """Registry for platforms where the font directory is all that matters."""

    def register(self, font: Path) -> None:
        logger.debug("No font registry on this platform: %s", font.name)

    def unregister(self, font: Path) -> None:
        logger.debug("No font registry on this platform: %s", font.name)

    def broadcast_change(self) -> None:
        logger.debug("No font change broadcast on this platform")


def get_font_registry() -> FontRegistry:
    """Return the font registry for the current platform."""
    if is_windows():
        return WindowsFontRegistry()
    return NullFontRegistry()


def find_installed_fonts(fonts_dir: Path | None = None) -> list[Path]:
    """List font files in the user font directory matching the known patterns."""
    directory = fonts_dir or get_user_fonts_dir()
    if not directory.is_dir():
        return []
    found: set[Path] = set()
    for pattern in FONT_PATTERNS:
        found.update(directory.glob(pattern))
    return sorted(found)


def install_font(
    reporter: Reporter,
    *,
    registry: FontRegistry | None = None,
    fonts_dir: Path | None = None,
    url: str = FONT_ARCHIVE_URL,
    dry_run: bool = False,
) -> list[Path]:
    """Install the Nerd Font unless it is already present.

    Args:
        reporter: Status output.
        registry: Registration backend (platform default if None).
        fonts_dir: Per-user font directory override.
        url: Font archive URL.
        dry_run: Only report what would be done.

    Returns:
        The font files that were installed (empty when skipped).

    Raises:
        ProvisioningEnvironmentError: If the archive cannot be fetched or
            holds no TrueType files.
    """
    directory = fonts_dir or get_user_fonts_dir()
    present = find_installed_fonts(directory)
    if present:
        reporter.ok(f"Nerd Font already installed ({len(present)} file(s))")
        return []

    if dry_run:
        reporter.info(f"Would download and install fonts from {url}")
        return []

    registry = registry or get_font_registry()
    installed: list[Path] = []
    with tempfile.TemporaryDirectory(prefix="dotstrap-font-") as tmp:
        archive = Path(tmp) / "font.zip"
        try:
            download_file(url, archive)
        except DownloadError as e:
            raise ProvisioningEnvironmentError(str(e)) from e

        try:
            with zipfile.ZipFile(archive) as zf:
                members = [
                    name
                    for name in zf.namelist()
                    if name.lower().endswith(".ttf") and not name.endswith("/")
                ]
                if not members:
                    msg = f"No TrueType fonts in {url}"
                    raise ProvisioningEnvironmentError(msg)

                directory.mkdir(parents=True, exist_ok=True)
                for name in members:
                    dest = directory / Path(name).name
                    with zf.open(name) as src, dest.open("wb") as out:
                        shutil.copyfileobj(src, out)
                    registry.register(dest)
                    installed.append(dest)
        except zipfile.BadZipFile as e:
            msg = f"Font archive is corrupt: {e}"
            raise ProvisioningEnvironmentError(msg) from e

    registry.broadcast_change()
    reporter.ok(f"Installed {len(installed)} font file(s) into {directory}")
    return installed


def remove_fonts(
    reporter: Reporter,
    *,
    registry: FontRegistry | None = None,
    fonts_dir: Path | None = None,
    dry_run: bool = False,
) -> list[Path]:
    """Delete font files matching the known patterns and their registrations.

    Returns:
        The font files that were (or would be) removed.
    """
    fonts = find_installed_fonts(fonts_dir)
    if not fonts:
        reporter.info("No Nerd Font files found")
        return []

    if dry_run:
        for font in fonts:
            reporter.info(f"Would remove {font}")
        return fonts

    registry = registry or get_font_registry()
    removed: list[Path] = []
    for font in fonts:
        registry.unregister(font)
        try:
            font.unlink()
        except OSError as e:
            # Loaded fonts stay locked until the session ends
            reporter.warn(f"Could not remove {font}: {e}")
            continue
        removed.append(font)
    registry.broadcast_change()
    reporter.ok(f"Removed {len(removed)} font file(s)")
    return removed
