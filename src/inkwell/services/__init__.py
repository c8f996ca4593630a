"""Service layer helpers (settings, persistence, notifications, import/export)."""

from .notifications import LoggingNotifier, NotificationKind, NotificationSink
from .persistence import ContentStore, FileContentStore
from .settings import EditorSettings, SettingsStore

__all__ = [
    "ContentStore",
    "EditorSettings",
    "FileContentStore",
    "LoggingNotifier",
    "NotificationKind",
    "NotificationSink",
    "SettingsStore",
]
