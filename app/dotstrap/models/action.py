"""Action models for package operations.

This module defines data structures for package manager invocations
(install, uninstall) and their outcomes.
"""

from dataclasses import dataclass
from enum import Enum

from dotstrap.models.package import PackageScope


class ActionType(Enum):
    """Type of package management action."""

    INSTALL = "install"
    UNINSTALL = "uninstall"


@dataclass(frozen=True, slots=True)
class Action:
    """A single package manager invocation.

    Attributes:
        action_type: Install or uninstall.
        package: Identifier of the package to operate on.
        scope: Requested scope, or None for the package manager default.
    """

    action_type: ActionType
    package: str
    scope: PackageScope | None = None

    def __post_init__(self) -> None:
        """Validate action data after initialization."""
        if not self.package:
            msg = "Package name cannot be empty"
            raise ValueError(msg)

    @property
    def is_install(self) -> bool:
        """Check if this is an install action."""
        return self.action_type == ActionType.INSTALL


@dataclass(frozen=True, slots=True)
class ActionResult:
    """Result of executing a package management action.

    Attributes:
        action: The action that was executed.
        success: Whether the action completed successfully.
        message: Optional success message or additional information.
        error: Optional error message if the action failed.
        no_applicable_installer: The package manager had no installer for
            the requested scope; a retry at the default scope may succeed.
    """

    action: Action
    success: bool
    message: str | None = None
    error: str | None = None
    no_applicable_installer: bool = False

    @property
    def failed(self) -> bool:
        """Check if the action failed."""
        return not self.success
