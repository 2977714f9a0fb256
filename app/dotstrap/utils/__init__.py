"""Utility modules for dotstrap.

This module exports commonly used utility functions.
"""

from dotstrap.utils.formatting import (
    Reporter,
    console,
    err_console,
    print_error,
    print_info,
)
from dotstrap.utils.shell import CommandResult, command_exists, run_command

__all__ = [
    "CommandResult",
    "Reporter",
    "command_exists",
    "console",
    "err_console",
    "print_error",
    "print_info",
    "run_command",
]
