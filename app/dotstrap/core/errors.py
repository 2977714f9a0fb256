"""Exception hierarchy for dotstrap.

Tooling errors (a broken manifest) are kept apart from environment errors
(missing package manager, missing repository layout) so the CLI can map
them to distinct exit codes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from dotstrap.links.models import LinkResult


class DotstrapError(Exception):
    """Base exception for all dotstrap errors."""


class ManifestError(DotstrapError):
    """Base exception for manifest-related errors."""


class ManifestNotFoundError(ManifestError):
    """Raised when manifest file is not found."""


class ManifestParseError(ManifestError):
    """Raised when manifest file is not valid JSON."""


class ManifestValidationError(ManifestError):
    """Raised when manifest content is invalid."""


class ProvisioningEnvironmentError(DotstrapError):
    """Raised when the machine lacks something a step requires."""


class RepositoryLayoutError(ProvisioningEnvironmentError):
    """Raised when the repository has no config tree to link from."""


class RepositoryArchiveError(ProvisioningEnvironmentError):
    """Raised when a repository archive cannot be fetched or unpacked."""


class LinkReconcileError(DotstrapError):
    """Raised when one or more links could not be created.

    Attributes:
        results: Every per-link result of the failed run.
    """

    def __init__(self, message: str, results: list[LinkResult]) -> None:
        super().__init__(message)
        self.results = results

    @property
    def failures(self) -> list[LinkResult]:
        """Results that ended in an error."""
        return [r for r in self.results if r.failed]


class BootstrapStepError(DotstrapError):
    """Raised when a bootstrap step fails and the run is aborted.

    Attributes:
        step: Name of the failing step.
    """

    def __init__(self, step: str, message: str) -> None:
        super().__init__(f"{step}: {message}")
        self.step = step


class ElevationError(DotstrapError):
    """Raised when the elevated helper process could not be started."""
