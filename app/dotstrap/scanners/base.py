"""Abstract base class for installed-package queries.

This module defines the PackageQuery interface the reconciler and the
audit use to observe what is installed, so neither depends on a specific
package manager's output format.
"""

import re
from abc import ABC, abstractmethod
from collections.abc import Iterator

from dotstrap.models.package import InstalledPackage


def contains_package_token(snapshot: str, package_id: str) -> bool:
    """Check whether a listing contains an identifier as a whole token.

    The match is case-insensitive and refuses partial hits, so ``Git.Git``
    does not match ``Git.GitLFS`` and ``Vim`` does not match ``Neovim``.

    Args:
        snapshot: Raw listing text from the package manager.
        package_id: Identifier to look for.

    Returns:
        True if the identifier occurs as a whole token.
    """
    pattern = rf"(?<![\w.\-]){re.escape(package_id)}(?![\w.\-])"
    return re.search(pattern, snapshot, flags=re.IGNORECASE) is not None


class PackageQuery(ABC):
    """Abstract base class for all installed-package queries.

    Two levels of precision are offered: a cheap ``snapshot()`` of the whole
    listing, taken once per run, and a live ``installed_version()`` lookup
    for a single exact identifier.

    Example:
        >>> query = WingetQuery()
        >>> if query.is_available():
        ...     print(query.installed_version("Git.Git"))
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the backend name (e.g., 'winget')."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the backing package manager can be queried.

        Returns:
            True if the package manager can be used, False otherwise.
        """

    @abstractmethod
    def snapshot(self) -> str:
        """Return the full installed-package listing as text.

        Raises:
            RuntimeError: If the package manager cannot be queried.
        """

    @abstractmethod
    def installed_version(self, package_id: str) -> str | None:
        """Look up the installed version of one exact identifier.

        Args:
            package_id: Identifier to query.

        Returns:
            Installed version string, or None if not installed.

        Raises:
            RuntimeError: If the package manager cannot be queried.
        """

    @abstractmethod
    def scan(self) -> Iterator[InstalledPackage]:
        """Yield every installed package the backend can identify."""

    def is_installed(self, package_id: str) -> bool:
        """Check if an exact identifier is installed (live query)."""
        return self.installed_version(package_id) is not None

    def snapshot_contains(self, snapshot: str, package_id: str) -> bool:
        """Check a previously taken snapshot for an identifier."""
        return contains_package_token(snapshot, package_id)
