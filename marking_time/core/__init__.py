"""Session clock, timestamp ledger, export and persistence."""

from .config import TrackingConfig
from .constants import TimestampKind
from .context import ActionResult, SessionContext
from .errors import MarkingTimeError, NoData, NotReady, PersistFailed, ValidationFailed
from .export import CSV_HEADER, export_csv, export_filename, write_export
from .notifications import Notification, NotificationLevel, Notifier, SyncMarker
from .session_clock import ClockState, SessionClock
from .settings_store import InMemorySettingsStore, JsonSettingsStore, SettingsStore
from .timestamps import TimestampLedger, TimestampRecord, format_elapsed

__all__ = [
    "ActionResult",
    "ClockState",
    "CSV_HEADER",
    "InMemorySettingsStore",
    "JsonSettingsStore",
    "MarkingTimeError",
    "NoData",
    "NotReady",
    "Notification",
    "NotificationLevel",
    "Notifier",
    "PersistFailed",
    "SessionClock",
    "SessionContext",
    "SettingsStore",
    "SyncMarker",
    "TimestampKind",
    "TimestampLedger",
    "TimestampRecord",
    "TrackingConfig",
    "ValidationFailed",
    "export_csv",
    "export_filename",
    "format_elapsed",
    "write_export",
]
