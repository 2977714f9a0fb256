"""dotstrap - declarative workstation bootstrap and drift audit.

Installs manifest packages, links repository config directories into the
home config root and reports drift between the manifest and the machine.
"""

__version__ = "0.4.0"
