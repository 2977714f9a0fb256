"""CLI package for dotstrap.

This package contains the Typer application and all subcommands.
"""

from dotstrap.cli.main import app

__all__ = ["app"]
