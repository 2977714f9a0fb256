"""Package operators for executing install and uninstall actions.

This module provides the abstract operator and the winget implementation.
"""

from dotstrap.operators.base import Operator
from dotstrap.operators.winget import WingetOperator

__all__ = ["Operator", "WingetOperator"]
