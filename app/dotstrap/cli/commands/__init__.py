"""CLI commands for dotstrap.

This package contains all subcommand implementations.
"""

from dotstrap.cli.commands import audit, bootstrap, install, link, probe, revert

__all__ = ["audit", "bootstrap", "install", "link", "probe", "revert"]
