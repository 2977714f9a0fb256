"""Installed-package queries.

This module exports the PackageQuery interface and its backends.
"""

from dotstrap.scanners.base import PackageQuery, contains_package_token
from dotstrap.scanners.memory import InMemoryPackageQuery
from dotstrap.scanners.winget import WingetQuery

__all__ = ["InMemoryPackageQuery", "PackageQuery", "WingetQuery", "contains_package_token"]
