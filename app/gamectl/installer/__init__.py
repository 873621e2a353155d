"""Install, update, and repair of game packages.

This module exports the pipeline that publishes archives and the managers
built on top of it.
"""

from gamectl.installer.backup import BackupManager, UpdateCheck, UpdateManager, UpdateResult
from gamectl.installer.disk import DiskSpaceGuard
from gamectl.installer.pipeline import InstalledPaths, InstallPipeline
from gamectl.installer.repair import RepairEngine, RepairReport
from gamectl.installer.runner import PackageInstaller

__all__ = [
    "BackupManager",
    "DiskSpaceGuard",
    "InstallPipeline",
    "InstalledPaths",
    "PackageInstaller",
    "RepairEngine",
    "RepairReport",
    "UpdateCheck",
    "UpdateManager",
    "UpdateResult",
]
