"""Abstract base class for package operators.

This module defines the Operator interface that package manager backends
implement to install and uninstall single packages.
"""

from abc import ABC, abstractmethod

from dotstrap.models.action import ActionResult
from dotstrap.models.package import PackageScope


class Operator(ABC):
    """Abstract base class for all package operators.

    Operators work on one package per call so that a failing package
    never takes the rest of a batch down with it.

    Attributes:
        dry_run: If True, only simulate actions without executing them.

    Example:
        >>> operator = WingetOperator(dry_run=True)
        >>> if operator.is_available():
        ...     result = operator.install("Git.Git", PackageScope.USER)
        ...     print(result.success)
    """

    def __init__(self, dry_run: bool = False) -> None:
        """Initialize the operator.

        Args:
            dry_run: If True, only simulate actions without executing them.
        """
        self._dry_run = dry_run

    @property
    def dry_run(self) -> bool:
        """Check if operator is in dry-run mode."""
        return self._dry_run

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the package manager name."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if this package manager is available on the system."""

    @abstractmethod
    def install(self, package: str, scope: PackageScope | None = None) -> ActionResult:
        """Install a single package.

        Args:
            package: Identifier of the package to install.
            scope: Requested scope, or None for the package manager default.

        Returns:
            ActionResult describing the outcome.

        Raises:
            RuntimeError: If the package manager is not available.
        """

    @abstractmethod
    def uninstall(self, package: str) -> ActionResult:
        """Uninstall a single package.

        Args:
            package: Identifier of the package to remove.

        Returns:
            ActionResult describing the outcome.

        Raises:
            RuntimeError: If the package manager is not available.
        """
