"""
Session Context - the single owner of the session clock and ledger.

One context exists per host process: it is opened once the host is ready
(restoring any persisted session) and closed at host shutdown. Its actions
are the user-facing surface: every failure is logged, turned into a
notification and reported through an ActionResult, so no exception reaches
an event source or a UI callback.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Optional

from .constants import TimestampKind
from .errors import NoData, NotReady, PersistFailed, ValidationFailed
from .export import export_filename, write_export
from .logging_utils import get_module_logger
from .notifications import NotificationLevel, Notifier, SyncMarkerAnnouncer
from .session_clock import SessionClock
from .settings_store import SettingsStore
from .timestamps import TimestampLedger, TimestampRecord, format_elapsed

logger = get_module_logger("SessionContext")


def _require_description(description: Optional[str]) -> str:
    text = (description or "").strip()
    if not text:
        raise ValidationFailed("Description is required")
    return text


@dataclass(frozen=True, slots=True)
class ActionResult:
    """Outcome of a user action, suitable for a transient confirmation."""

    success: bool
    message: str
    level: NotificationLevel = NotificationLevel.INFO
    filename: Optional[str] = None
    content: Optional[str] = None
    path: Optional[Path] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "success": self.success,
            "message": self.message,
            "level": self.level.value,
        }
        if self.filename:
            result["filename"] = self.filename
        if self.path is not None:
            result["path"] = str(self.path)
        return result


class SessionContext:
    """Owns SessionClock and TimestampLedger for the lifetime of the host."""

    def __init__(
        self,
        store: SettingsStore,
        *,
        now: Optional[Callable[[], datetime]] = None,
        notifier: Optional[Notifier] = None,
        announcer: Optional[SyncMarkerAnnouncer] = None,
        ready: bool = True,
    ) -> None:
        self.store = store
        self.notifier = notifier or Notifier()
        self._now = now or datetime.now
        self._ready = ready
        self.ledger = TimestampLedger(store)
        self.clock = SessionClock(
            store,
            self.ledger,
            now=self._now,
            is_ready=lambda: self._ready,
            announcer=announcer,
        )

    @classmethod
    def open(cls, store: SettingsStore, **kwargs: Any) -> "SessionContext":
        """Build a context and recover any session persisted in ``store``."""
        context = cls(store, **kwargs)
        context.restore()
        return context

    # ------------------------------------------------------------------
    # Lifecycle

    @property
    def ready(self) -> bool:
        return self._ready

    @property
    def tracking(self) -> bool:
        return self.clock.tracking

    def use_viewer(self, provider: Callable[[], str]) -> None:
        """Address the sync marker to whoever ``provider`` names at start time."""
        self.clock.viewer_id = provider

    def mark_ready(self) -> None:
        self._ready = True
        logger.info("Host ready")

    def restore(self) -> None:
        self.ledger.load()
        self.clock.restore()

    def close(self) -> None:
        """Detach from the host; later actions report NotReady."""
        self._ready = False
        logger.info("Session context closed (state=%s, %d timestamps)", self.clock.state.value, len(self.ledger))

    # ------------------------------------------------------------------
    # Clock actions

    async def start(self) -> ActionResult:
        return await self._transition("start", self.clock.start)

    async def stop(self) -> ActionResult:
        return await self._transition("stop", self.clock.stop)

    async def toggle(self) -> ActionResult:
        if self.clock.tracking:
            return await self.stop()
        return await self.start()

    async def _transition(self, action: str, operation: Callable[[], Awaitable[bool]]) -> ActionResult:
        done = "started" if action == "start" else "ended"
        verb = "starting" if action == "start" else "stopping"

        try:
            changed = await operation()
        except NotReady:
            return self._report(False, NotificationLevel.ERROR, f"Cannot {action} tracking until game is fully loaded")
        except PersistFailed as exc:
            logger.error("Session tracking %s without durable state: %s", done, exc)
            return self._report(
                True,
                NotificationLevel.ERROR,
                f"Session tracking {done}, but {', '.join(exc.keys)} could not be saved",
            )
        except Exception:
            logger.exception("Error %s tracking", verb)
            return self._report(False, NotificationLevel.ERROR, f"Error {verb} session tracking")

        if not changed:
            state = "already active" if action == "start" else "not active"
            return self._report(False, NotificationLevel.WARNING, f"Session tracking is {state}")
        return self._report(True, NotificationLevel.INFO, f"Session tracking {done}")

    # ------------------------------------------------------------------
    # Recording

    async def record_event(
        self,
        kind: TimestampKind | str,
        description: str,
        details: str = "",
    ) -> Optional[TimestampRecord]:
        """Entry point for event sources. Never raises."""
        try:
            return await self.clock.record_event(kind, description, details)
        except PersistFailed as exc:
            logger.error("Timestamp kept in memory only: %s", exc)
            self.notifier.error("Timestamp recorded but could not be saved")
            return self.ledger.last
        except Exception:
            logger.exception("Error recording %s timestamp", kind)
            self.notifier.error("Error recording timestamp")
            return None

    async def add_marker(self, description: Optional[str], details: Optional[str] = "") -> ActionResult:
        """Manual marker entry; a blank description is rejected."""
        try:
            text = _require_description(description)
        except ValidationFailed as exc:
            return self._report(False, NotificationLevel.WARNING, str(exc))
        if not self._ready:
            return self._report(False, NotificationLevel.ERROR, "Cannot mark moment until game is fully loaded")
        if not self.clock.tracking:
            return self._report(False, NotificationLevel.WARNING, "Cannot mark moment - tracking is not active")

        before = len(self.ledger)
        record = await self.record_event(TimestampKind.MANUAL_MARKER, text, details or "")
        if record is None or len(self.ledger) == before:
            return ActionResult(False, "Could not mark moment", NotificationLevel.ERROR)
        return self._report(True, NotificationLevel.INFO, f'Moment marked - "{text}"')

    # ------------------------------------------------------------------
    # Export

    def export_csv(self, *, include_header: bool = False) -> ActionResult:
        """Build the export document in memory (no file written)."""
        try:
            content = self.ledger.export_csv(include_header=include_header)
        except NoData:
            return self._report(False, NotificationLevel.WARNING, "No timestamps to export")

        filename = export_filename(self._now())
        return self._report(
            True,
            NotificationLevel.INFO,
            f"Exported {len(self.ledger)} timestamps to {filename}",
            filename=filename,
            content=content,
        )

    async def export(self, directory: Path, *, include_header: bool = False) -> ActionResult:
        """Write the export document into ``directory``."""
        records = self.ledger.records
        try:
            path = await write_export(records, Path(directory), at=self._now(), include_header=include_header)
        except NoData:
            return self._report(False, NotificationLevel.WARNING, "No timestamps to export")
        except OSError as exc:
            logger.error("Export to %s failed: %s", directory, exc)
            return self._report(False, NotificationLevel.ERROR, "Error exporting timestamps")

        return self._report(
            True,
            NotificationLevel.INFO,
            f"Exported {len(records)} timestamps to {path.name}",
            filename=path.name,
            path=path,
        )

    # ------------------------------------------------------------------
    # Status

    def status(self) -> Dict[str, Any]:
        origin = self.clock.origin
        elapsed = None
        if self.clock.tracking:
            elapsed = format_elapsed(self.clock.elapsed_ms())
        return {
            "ready": self._ready,
            "state": self.clock.state.value,
            "tracking": self.clock.tracking,
            "origin_ms": self.clock.origin_ms,
            "origin": origin.isoformat(timespec="seconds") if origin else None,
            "elapsed": elapsed,
            "timestamp_count": len(self.ledger),
        }

    def _report(self, success: bool, level: NotificationLevel, message: str, **extra: Any) -> ActionResult:
        notification = {
            NotificationLevel.INFO: self.notifier.info,
            NotificationLevel.WARNING: self.notifier.warning,
            NotificationLevel.ERROR: self.notifier.error,
        }[level](message)
        return ActionResult(success, notification.message, level, **extra)


__all__ = ["ActionResult", "SessionContext"]
