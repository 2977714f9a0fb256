"""Package models for installed-state queries.

This module defines the data structures describing packages reported by
the package manager and the installation scopes a manifest may request.
"""

from dataclasses import dataclass, field
from enum import Enum


class PackageScope(Enum):
    """Installation privilege level requested for a package.

    Attributes:
        USER: Per-user install, no elevation required.
        MACHINE: Machine-wide install, may trigger a UAC prompt.
    """

    USER = "user"
    MACHINE = "machine"


@dataclass(frozen=True, slots=True)
class InstalledPackage:
    """A package reported as installed by the package manager.

    Attributes:
        id: Package identifier (e.g., 'Git.Git').
        version: Installed version string.
        name: Human-readable display name (if available).
        source: Repository the package came from (e.g., 'winget').
    """

    id: str
    version: str
    name: str | None = field(default=None)
    source: str | None = field(default=None)

    def __post_init__(self) -> None:
        """Validate package data after initialization."""
        if not self.id:
            msg = "Package id cannot be empty"
            raise ValueError(msg)
