"""winget package query implementation.

Reads installed packages from ``winget list``. The listing is a fixed-width
table (Name, Id, Version, Available, Source) preceded by progress noise.
"""

import logging
import re
from collections.abc import Iterator

from dotstrap.models.package import InstalledPackage
from dotstrap.scanners.base import PackageQuery, contains_package_token
from dotstrap.utils.shell import command_exists, run_command

logger = logging.getLogger(__name__)

# Flags shared by every listing call; keep winget from prompting
_LIST_FLAGS = ["--accept-source-agreements", "--disable-interactivity"]

# Header separator row: a run of dashes spanning the table width
_SEPARATOR_RE = re.compile(r"^-{10,}\s*$")


class WingetQuery(PackageQuery):
    """Package query backed by the winget CLI."""

    # winget refreshes its source index on first use; allow for a slow start
    _LIST_TIMEOUT: float = 60.0

    @property
    def name(self) -> str:
        """Return 'winget' as the backend name."""
        return "winget"

    def is_available(self) -> bool:
        """Check if winget is on PATH."""
        return command_exists("winget")

    def snapshot(self) -> str:
        """Return the full ``winget list`` output.

        Raises:
            RuntimeError: If winget is missing or the listing fails.
        """
        if not self.is_available():
            msg = "winget is not available on this system"
            raise RuntimeError(msg)

        result = run_command(["winget", "list", *_LIST_FLAGS], timeout=self._LIST_TIMEOUT)
        if not result.success:
            msg = f"winget list failed: {result.output or f'exit code {result.returncode}'}"
            raise RuntimeError(msg)
        return result.stdout

    def installed_version(self, package_id: str) -> str | None:
        """Query winget for one exact identifier.

        ``winget list --id X --exact`` exits non-zero when nothing matches,
        which is reported as not installed rather than as an error.

        Args:
            package_id: Identifier to query.

        Returns:
            Installed version string, or None if not installed.
        """
        if not self.is_available():
            msg = "winget is not available on this system"
            raise RuntimeError(msg)

        result = run_command(
            ["winget", "list", "--id", package_id, "--exact", *_LIST_FLAGS],
            timeout=self._LIST_TIMEOUT,
        )
        if not result.success:
            logger.debug("winget list --id %s: exit %d", package_id, result.returncode)
            return None

        return parse_version_for_id(result.stdout, package_id)

    def scan(self) -> Iterator[InstalledPackage]:
        """Yield every package from the full listing."""
        yield from parse_list_output(self.snapshot())


def parse_version_for_id(output: str, package_id: str) -> str | None:
    """Extract the installed version of ``package_id`` from a listing.

    Tokenizes the row holding the identifier instead of relying on column
    offsets, which drift when display names contain wide characters.

    Args:
        output: ``winget list`` output.
        package_id: Identifier whose row to read.

    Returns:
        Version string, or None if no row carries the identifier.
    """
    for line in output.splitlines():
        if not contains_package_token(line, package_id):
            continue
        tokens = line.split()
        for index, token in enumerate(tokens):
            if token.lower() != package_id.lower():
                continue
            rest = tokens[index + 1 :]
            if not rest:
                return None
            # winget prints ranges such as "< 1.2.3" for unversioned installs
            if rest[0] in ("<", ">") and len(rest) > 1:
                return f"{rest[0]} {rest[1]}"
            return rest[0]
    return None


def parse_list_output(output: str) -> list[InstalledPackage]:
    """Parse the fixed-width ``winget list`` table.

    Args:
        output: Raw ``winget list`` output.

    Returns:
        InstalledPackage for every data row that has an Id and a Version.
    """
    lines = output.splitlines()
    header_index = _find_header(lines)
    if header_index is None:
        logger.debug("No table header found in winget output")
        return []

    header = lines[header_index]
    columns = _column_offsets(header)
    if "Id" not in columns or "Version" not in columns:
        return []

    packages: list[InstalledPackage] = []
    for line in lines[header_index + 2 :]:
        if not line.strip():
            continue
        row = {name: _slice_column(line, name, columns) for name in columns}
        package_id = row.get("Id", "")
        version = row.get("Version", "")
        if not package_id or not version:
            logger.debug("Skipping malformed winget row: %r", line[:100])
            continue
        packages.append(
            InstalledPackage(
                id=package_id,
                version=version,
                name=row.get("Name") or None,
                source=row.get("Source") or None,
            )
        )
    return packages


def _find_header(lines: list[str]) -> int | None:
    """Return the index of the header row (the line above the dashes)."""
    for index in range(1, len(lines)):
        if _SEPARATOR_RE.match(lines[index].strip()) and "Id" in lines[index - 1]:
            return index - 1
    return None


def _column_offsets(header: str) -> dict[str, int]:
    """Map column names to their start offsets in the header row."""
    return {match.group(0): match.start() for match in re.finditer(r"\S+", header)}


def _slice_column(line: str, name: str, columns: dict[str, int]) -> str:
    """Cut a single column out of a fixed-width row."""
    starts = sorted(columns.values())
    start = columns[name]
    following = [offset for offset in starts if offset > start]
    end = following[0] if following else len(line)
    return line[start:end].strip()
