"""Data models for dotstrap.

This module exports the core data structures used throughout the application.
"""

from dotstrap.models.action import Action, ActionResult, ActionType
from dotstrap.models.manifest import Manifest, PackageEntry
from dotstrap.models.package import InstalledPackage, PackageScope
from dotstrap.models.result import ReconcileStatus, ReconciliationResult

__all__ = [
    "Action",
    "ActionResult",
    "ActionType",
    "InstalledPackage",
    "Manifest",
    "PackageEntry",
    "PackageScope",
    "ReconcileStatus",
    "ReconciliationResult",
]
