"""Config directory linking.

Reconciles links from the repository config tree into the home config
root, patches the global git config, and escalates to an elevated helper
when links cannot be created unprivileged.
"""

from dotstrap.links.elevation import (
    ElevatedProcessMutator,
    ElevationReport,
    LinkRequest,
    PrivilegedMutator,
    escalate_links,
)
from dotstrap.links.gitconfig import ensure_git_include, remove_git_include
from dotstrap.links.models import LinkMapping, LinkOutcome, LinkResult
from dotstrap.links.reconciler import (
    ensure_links,
    plan_links,
    reconcile_links,
    remove_links,
    verify_links,
)

__all__ = [
    "ElevatedProcessMutator",
    "ElevationReport",
    "LinkMapping",
    "LinkOutcome",
    "LinkRequest",
    "LinkResult",
    "PrivilegedMutator",
    "ensure_git_include",
    "ensure_links",
    "escalate_links",
    "plan_links",
    "reconcile_links",
    "remove_git_include",
    "remove_links",
    "verify_links",
]
