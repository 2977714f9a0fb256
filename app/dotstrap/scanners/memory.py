"""In-memory package query.

Holds installed packages in a dictionary. Used for dry runs against a
recorded state and as the test double for the reconciler and the audit.
"""

from collections.abc import Iterator

from dotstrap.models.package import InstalledPackage
from dotstrap.scanners.base import PackageQuery


class InMemoryPackageQuery(PackageQuery):
    """Package query over a mutable id -> version mapping.

    Lookups are case-insensitive, like winget's.

    Example:
        >>> query = InMemoryPackageQuery({"Foo.Bar": "3.1"})
        >>> query.installed_version("foo.bar")
        '3.1'
    """

    def __init__(self, installed: dict[str, str] | None = None) -> None:
        self._installed: dict[str, str] = dict(installed or {})

    @property
    def name(self) -> str:
        """Return 'memory' as the backend name."""
        return "memory"

    def is_available(self) -> bool:
        """The in-memory backend is always available."""
        return True

    def snapshot(self) -> str:
        """Render the installed packages as a ``winget list``-style table."""
        lines = ["Name Id Version", "-" * 40]
        lines.extend(f"{pkg_id} {pkg_id} {version}" for pkg_id, version in self._installed.items())
        return "\n".join(lines)

    def installed_version(self, package_id: str) -> str | None:
        """Return the recorded version for an identifier, ignoring case."""
        key = self._find(package_id)
        return self._installed[key] if key is not None else None

    def scan(self) -> Iterator[InstalledPackage]:
        """Yield the recorded packages."""
        for pkg_id, version in self._installed.items():
            yield InstalledPackage(id=pkg_id, version=version, source=self.name)

    def add(self, package_id: str, version: str) -> None:
        """Record a package as installed."""
        self.remove(package_id)
        self._installed[package_id] = version

    def remove(self, package_id: str) -> None:
        """Forget a package; unknown ids are ignored."""
        key = self._find(package_id)
        if key is not None:
            del self._installed[key]

    def _find(self, package_id: str) -> str | None:
        lowered = package_id.lower()
        for key in self._installed:
            if key.lower() == lowered:
                return key
        return None
