"""Scanners for locally installed games.

This module exports the install root scanner.
"""

from gamectl.scanners.install_root import InstallRootScanner, ScannedInstall

__all__ = ["InstallRootScanner", "ScannedInstall"]
