"""Data models for gamectl.

This module exports the core data structures used throughout the application.
"""

from gamectl.models.catalog import Catalog, CatalogEntry, CatalogStatus, Mirror
from gamectl.models.events import EventStatus, ProgressEvent
from gamectl.models.history import (
    HistoryActionType,
    HistoryEntry,
    HistoryItem,
    create_history_entry,
)
from gamectl.models.installed import (
    MAX_BACKUPS,
    BackupSnapshot,
    InstalledRecord,
    create_installed_record,
)
from gamectl.models.session import (
    DownloadSession,
    MirrorAttempt,
    SessionKind,
    SessionState,
)

__all__ = [
    "MAX_BACKUPS",
    "BackupSnapshot",
    "Catalog",
    "CatalogEntry",
    "CatalogStatus",
    "DownloadSession",
    "EventStatus",
    "HistoryActionType",
    "HistoryEntry",
    "HistoryItem",
    "InstalledRecord",
    "Mirror",
    "MirrorAttempt",
    "ProgressEvent",
    "SessionKind",
    "SessionState",
    "create_history_entry",
    "create_installed_record",
]
