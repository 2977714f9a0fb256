"""Manifest file I/O operations.

This module loads the JSON package manifest and validates it with the
Pydantic models. The manifest is read fresh on every invocation and is
never written back.
"""

import json
from pathlib import Path

from pydantic import ValidationError

from dotstrap.core.errors import (
    ManifestError,
    ManifestNotFoundError,
    ManifestParseError,
    ManifestValidationError,
)
from dotstrap.core.paths import get_manifest_path
from dotstrap.models.manifest import Manifest

__all__ = [
    "ManifestError",
    "ManifestNotFoundError",
    "ManifestParseError",
    "ManifestValidationError",
    "load_manifest",
    "manifest_exists",
    "require_manifest",
]

# Exit code reserved for manifest problems (tooling error, not drift)
MANIFEST_ERROR_EXIT_CODE = 2


def load_manifest(path: Path | None = None) -> Manifest:
    """Load and validate a manifest from a JSON file.

    Args:
        path: Path to the manifest file. If None, uses default manifest path.

    Returns:
        Validated Manifest object.

    Raises:
        ManifestNotFoundError: If the manifest file doesn't exist.
        ManifestParseError: If the JSON syntax is invalid.
        ManifestValidationError: If the content doesn't match the schema.
    """
    manifest_path = path or get_manifest_path()

    if not manifest_path.exists():
        raise ManifestNotFoundError(f"Manifest not found: {manifest_path}")

    try:
        # utf-8-sig: manifests saved by Windows editors often carry a BOM
        with open(manifest_path, encoding="utf-8-sig") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ManifestParseError(f"Invalid JSON syntax: {e}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise ManifestError(f"Failed to read manifest: {e}") from e

    if not isinstance(data, list):
        raise ManifestValidationError("Invalid manifest content: top level must be a JSON array")

    try:
        return Manifest.model_validate(data)
    except ValidationError as e:
        raise ManifestValidationError(f"Invalid manifest content: {e}") from e


def require_manifest(manifest_path: Path | None = None) -> Manifest:
    """Load manifest or exit with a helpful error message.

    Convenience wrapper around load_manifest() for CLI commands. Manifest
    problems exit with code 2 so scripts can tell them apart from drift.

    Args:
        manifest_path: Optional custom manifest path.

    Returns:
        Loaded and validated Manifest.

    Raises:
        typer.Exit: If manifest cannot be loaded.
    """
    import typer

    from dotstrap.utils.formatting import print_error, print_info

    path = manifest_path or get_manifest_path()
    try:
        return load_manifest(path)
    except ManifestNotFoundError as e:
        print_error(f"Manifest not found: {path}")
        print_info("Pass --manifest or set DOTSTRAP_REPO to the repository checkout.")
        raise typer.Exit(code=MANIFEST_ERROR_EXIT_CODE) from e
    except ManifestError as e:
        print_error(f"Failed to load manifest: {e}")
        raise typer.Exit(code=MANIFEST_ERROR_EXIT_CODE) from e
