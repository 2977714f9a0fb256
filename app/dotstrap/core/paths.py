"""Path management for dotstrap.

Resolves the directories the toolkit reads from and writes to. On Windows
the cache lives under ``%LOCALAPPDATA%``; elsewhere the XDG Base Directory
defaults apply:

- Config: ~/.config/dotstrap/
- Cache: ~/.cache/dotstrap/

The repository location and the home directory used as link target can be
overridden with ``DOTSTRAP_REPO`` and ``DOTSTRAP_HOME``.
"""

import os
import sys
from pathlib import Path

# Application identifier for directory naming
APP_NAME = "dotstrap"

# Name of the config tree inside the repository and below the home directory
CONFIG_TREE = ".config"

# Manifest location relative to the repository root
MANIFEST_RELPATH = Path("manifest") / "packages.json"

# Repository-side PowerShell profile the stubs dot-source
PROFILE_RELPATH = Path("powershell") / "profile.ps1"


def is_windows() -> bool:
    """Check whether the toolkit runs on Windows."""
    return sys.platform == "win32"


def _get_xdg_dir(env_var: str, default_subdir: str) -> Path:
    """Get XDG directory respecting environment variable override.

    Args:
        env_var: XDG environment variable name (e.g., "XDG_CONFIG_HOME").
        default_subdir: Default subdirectory under home (e.g., ".config").

    Returns:
        Path to the application-specific directory.
    """
    base = os.environ.get(env_var)
    if base:
        return Path(base) / APP_NAME
    return get_home_dir() / default_subdir / APP_NAME


def get_home_dir() -> Path:
    """Get the home directory links and profiles are written below.

    Returns:
        ``DOTSTRAP_HOME`` if set, otherwise the user's home directory.
    """
    override = os.environ.get("DOTSTRAP_HOME")
    if override:
        return Path(override).expanduser()
    return Path.home()


def get_home_config_root(home: Path | None = None) -> Path:
    """Get the directory repository config folders are linked into.

    Args:
        home: Home directory override.

    Returns:
        Path to ``<home>/.config``.
    """
    return (home or get_home_dir()) / CONFIG_TREE


def get_config_dir() -> Path:
    """Get the dotstrap configuration directory path.

    Returns:
        Path to ~/.config/dotstrap/ (or XDG_CONFIG_HOME/dotstrap/).
    """
    return _get_xdg_dir("XDG_CONFIG_HOME", CONFIG_TREE)


def get_cache_dir() -> Path:
    """Get the cache directory path.

    Returns:
        ``%LOCALAPPDATA%\\dotstrap`` on Windows, ~/.cache/dotstrap/ elsewhere.
    """
    if is_windows():
        local_app_data = os.environ.get("LOCALAPPDATA")
        if local_app_data:
            return Path(local_app_data) / APP_NAME
    return _get_xdg_dir("XDG_CACHE_HOME", ".cache")


def get_repo_cache_dir() -> Path:
    """Get the fixed directory downloaded repository archives are unpacked into."""
    return get_cache_dir() / "repo"


def get_default_repo_root() -> Path:
    """Get the repository root used when none is given on the command line.

    Resolution order: ``DOTSTRAP_REPO``, the repository cache if it holds a
    config tree, then the current working directory.
    """
    override = os.environ.get("DOTSTRAP_REPO")
    if override:
        return Path(override).expanduser()
    cached = get_repo_cache_dir()
    if (cached / CONFIG_TREE).is_dir():
        return cached
    return Path.cwd()


def get_repo_config_root(repo_root: Path) -> Path:
    """Get the config tree inside a repository checkout."""
    return repo_root / CONFIG_TREE


def get_manifest_path(repo_root: Path | None = None) -> Path:
    """Get the default manifest file path.

    Returns:
        Path to ``<repo>/manifest/packages.json``.
    """
    return (repo_root or get_default_repo_root()) / MANIFEST_RELPATH


def get_gitconfig_path(home: Path | None = None) -> Path:
    """Get the global git configuration file path."""
    return (home or get_home_dir()) / ".gitconfig"


def get_user_fonts_dir() -> Path:
    """Get the per-user font directory.

    Returns:
        ``%LOCALAPPDATA%\\Microsoft\\Windows\\Fonts`` on Windows,
        ~/.local/share/fonts elsewhere.
    """
    if is_windows():
        local_app_data = os.environ.get("LOCALAPPDATA")
        if local_app_data:
            return Path(local_app_data) / "Microsoft" / "Windows" / "Fonts"
    return get_home_dir() / ".local" / "share" / "fonts"


def get_profile_paths(home: Path | None = None) -> list[Path]:
    """Get the PowerShell profile locations stubs are written to.

    Returns:
        Profile paths for PowerShell 7 and Windows PowerShell 5.1.
    """
    documents = (home or get_home_dir()) / "Documents"
    return [
        documents / "PowerShell" / "Microsoft.PowerShell_profile.ps1",
        documents / "WindowsPowerShell" / "Microsoft.PowerShell_profile.ps1",
    ]

