"""Shared types and utilities for CLI commands.

This module provides the common options and backend factories used
across multiple CLI command modules to avoid code duplication.
"""

from pathlib import Path
from typing import Annotated

import typer

from dotstrap.core.environment import EnvironmentStore, get_environment_store
from dotstrap.core.fonts import FontRegistry, get_font_registry
from dotstrap.links.elevation import ElevatedProcessMutator, PrivilegedMutator
from dotstrap.operators.base import Operator
from dotstrap.operators.winget import WingetOperator
from dotstrap.scanners.base import PackageQuery
from dotstrap.scanners.winget import WingetQuery
from dotstrap.utils.formatting import Reporter

QuietOption = Annotated[
    bool,
    typer.Option(
        "--quiet",
        "-q",
        help="Only print warnings and errors.",
    ),
]

DryRunOption = Annotated[
    bool,
    typer.Option(
        "--dry-run",
        "-n",
        help="Show what would be done without making changes.",
    ),
]

ManifestOption = Annotated[
    Path | None,
    typer.Option(
        "--manifest",
        "-m",
        help="Manifest file (default: <repo>/manifest/packages.json).",
        dir_okay=False,
    ),
]


def get_reporter(ctx: typer.Context, quiet: bool = False) -> Reporter:
    """Build the reporter for a command.

    Quiet mode is on if either the global or the command-level flag is set.
    """
    obj = ctx.obj or {}
    return Reporter(quiet=quiet or bool(obj.get("quiet", False)))


def get_query() -> PackageQuery:
    """Installed-state backend for the current platform."""
    return WingetQuery()


def get_operator(dry_run: bool = False) -> Operator:
    """Package manager operator for the current platform."""
    return WingetOperator(dry_run=dry_run)


def get_mutator() -> PrivilegedMutator:
    """Privileged executor used for elevated linking."""
    return ElevatedProcessMutator()


def get_env_store() -> EnvironmentStore:
    """User environment backend for the current platform."""
    return get_environment_store()


def get_fonts() -> FontRegistry:
    """Font registration backend for the current platform."""
    return get_font_registry()
