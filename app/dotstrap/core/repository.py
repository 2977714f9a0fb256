"""Dotfiles repository acquisition.

Bootstrap needs a checkout of the dotfiles repository that holds the
``.config`` tree. A local checkout is reused as is; otherwise a zip archive
(e.g. a GitHub "Download ZIP" URL) is fetched and unpacked into the fixed
repository cache.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
import zipfile
from pathlib import Path
from typing import TYPE_CHECKING

from dotstrap.core.errors import RepositoryArchiveError, RepositoryLayoutError
from dotstrap.core.paths import (
    CONFIG_TREE,
    get_home_config_root,
    get_repo_cache_dir,
    get_repo_config_root,
)
from dotstrap.utils.download import DownloadError, download_file

if TYPE_CHECKING:
    from dotstrap.utils.formatting import Reporter

logger = logging.getLogger(__name__)


def has_config_tree(path: Path) -> bool:
    """Check if ``path`` is a repository checkout with a config tree."""
    return (path / CONFIG_TREE).is_dir()


def overlaps_home_config(path: Path, home: Path | None = None) -> bool:
    """Check if the config tree of ``path`` is, or lies inside, the home config root."""
    config_tree = get_repo_config_root(path).resolve()
    home_config = get_home_config_root(home).resolve()
    return config_tree == home_config or config_tree.is_relative_to(home_config)


def is_usable_checkout(path: Path, home: Path | None = None) -> bool:
    """Check if ``path`` can be provisioned from."""
    return has_config_tree(path) and not overlaps_home_config(path, home)


def acquire_repository(
    reporter: Reporter,
    *,
    repo_root: Path | None = None,
    archive_url: str | None = None,
    cache_dir: Path | None = None,
    home: Path | None = None,
) -> Path:
    """Locate or fetch the repository to provision from.

    Resolution order:
        1. ``repo_root`` (given explicitly) if it is a usable checkout
        2. ``archive_url`` downloaded and unpacked into ``cache_dir``
        3. a previously unpacked repository cache
        4. the current working directory

    A checkout whose config tree is the home config root is never used.

    Args:
        reporter: Status output.
        repo_root: Local checkout to prefer.
        archive_url: Zip archive to fetch when no checkout is usable.
        cache_dir: Unpack destination (defaults to the repository cache).
        home: Home directory the config tree is linked into.

    Returns:
        The repository root.

    Raises:
        RepositoryArchiveError: If the archive cannot be fetched or unpacked.
        RepositoryLayoutError: If the only candidate left is the home directory.
    """
    if repo_root is not None:
        if is_usable_checkout(repo_root, home):
            reporter.ok(f"Using repository at {repo_root}")
            return repo_root
        reporter.warn(f"{repo_root} is not a usable repository checkout")

    destination = cache_dir or get_repo_cache_dir()
    if archive_url:
        fetch_repository_archive(archive_url, destination)
        reporter.ok(f"Repository unpacked to {destination}")
        return destination

    if is_usable_checkout(destination, home):
        reporter.ok(f"Using cached repository at {destination}")
        return destination

    cwd = Path.cwd()
    if has_config_tree(cwd) and overlaps_home_config(cwd, home):
        msg = (
            f"{cwd} is the home directory, not a repository checkout; "
            "pass --repo or --repo-archive-url"
        )
        raise RepositoryLayoutError(msg)
    reporter.info(f"Using current directory {cwd} as repository")
    return cwd


def fetch_repository_archive(url: str, destination: Path) -> Path:
    """Download a zip archive and unpack its single top-level directory.

    The previous contents of ``destination`` are replaced.

    Raises:
        RepositoryArchiveError: On download failure, a corrupt archive, or
            an archive without exactly one top-level directory.
    """
    with tempfile.TemporaryDirectory(prefix="dotstrap-repo-") as tmp:
        workdir = Path(tmp)
        archive = workdir / "repository.zip"
        try:
            download_file(url, archive)
        except DownloadError as e:
            raise RepositoryArchiveError(str(e)) from e

        extract_dir = workdir / "extract"
        extract_zip(archive, extract_dir)
        root = single_top_level_dir(extract_dir)

        if destination.exists():
            shutil.rmtree(destination)
        destination.parent.mkdir(parents=True, exist_ok=True)
        shutil.copytree(root, destination)

    logger.info("Unpacked %s into %s", url, destination)
    return destination


def extract_zip(archive: Path, extract_dir: Path) -> None:
    """Extract a zip archive, rejecting non-zip files.

    Raises:
        RepositoryArchiveError: If the file is not a valid zip archive.
    """
    if not zipfile.is_zipfile(archive):
        msg = f"Not a zip archive: {archive}"
        raise RepositoryArchiveError(msg)
    try:
        with zipfile.ZipFile(archive) as zf:
            zf.extractall(extract_dir)
    except (zipfile.BadZipFile, OSError) as e:
        msg = f"Cannot extract {archive}: {e}"
        raise RepositoryArchiveError(msg) from e


def single_top_level_dir(extract_dir: Path) -> Path:
    """Return the only top-level directory of an extracted archive.

    Raises:
        RepositoryArchiveError: If there is not exactly one entry, or it is
            not a directory.
    """
    entries = [p for p in extract_dir.iterdir() if p.name != "__MACOSX"]
    if len(entries) != 1 or not entries[0].is_dir():
        names = ", ".join(sorted(p.name for p in entries)) or "nothing"
        msg = f"Expected exactly one top-level directory in archive, found: {names}"
        raise RepositoryArchiveError(msg)
    return entries[0]


def remove_repository_cache(
    reporter: Reporter,
    *,
    cache_dir: Path | None = None,
    dry_run: bool = False,
) -> bool:
    """Delete the repository cache directory.

    Returns:
        True if the directory was (or would be) removed.
    """
    target = cache_dir or get_repo_cache_dir()
    if not target.exists():
        reporter.info(f"No repository cache at {target}")
        return False
    if dry_run:
        reporter.info(f"Would remove {target}")
        return True
    shutil.rmtree(target)
    reporter.ok(f"Removed {target}")
    return True
