"""
Session Clock - tracking state machine and elapsed-time source.

The clock is IDLE until start() captures an origin instant, and TRACKING
until stop(). While TRACKING, record_event() stamps each event with the
time elapsed since the origin and appends it to the ledger; while IDLE it
silently does nothing, which is the gate every event source relies on.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Callable, List, Optional

from .constants import (
    ABSOLUTE_TIME_FORMAT,
    CLOCK_TIME_FORMAT,
    IS_TRACKING,
    SESSION_START_TIME,
    VIEWER_USER_ID,
    TimestampKind,
)
from .errors import NotReady, PersistFailed
from .logging_utils import get_module_logger
from .notifications import SyncMarker, SyncMarkerAnnouncer, announce
from .settings_store import SettingsStore
from .timestamps import TimestampLedger, TimestampRecord, format_elapsed

SYNC_POINT_DESCRIPTION = "Session tracking started"
SYNC_POINT_DETAILS = "Reference point for timeline sync"
SESSION_END_DESCRIPTION = "Session tracking ended"
SESSION_END_DETAILS = "Final timestamp"


class ClockState(Enum):
    IDLE = "idle"
    TRACKING = "tracking"


def to_epoch_ms(instant: datetime) -> int:
    return int(round(instant.timestamp() * 1000))


class SessionClock:
    """
    Owns the tracking flag and the session origin.

    Responsibilities:
    - Gate recording on tracking state
    - Convert wall-clock deltas into elapsed-time strings
    - Run the start/stop/toggle protocol and persist each transition

    Persistence failures never roll a transition back. The transition
    completes in memory and PersistFailed is raised afterwards, naming the
    keys whose writes failed.
    """

    def __init__(
        self,
        store: SettingsStore,
        ledger: TimestampLedger,
        *,
        now: Optional[Callable[[], datetime]] = None,
        is_ready: Optional[Callable[[], bool]] = None,
        announcer: Optional[SyncMarkerAnnouncer] = None,
        viewer_id: Optional[Callable[[], str]] = None,
    ) -> None:
        self.logger = get_module_logger("SessionClock")
        self._store = store
        self._ledger = ledger
        self._now = now or datetime.now
        self._is_ready = is_ready or (lambda: True)
        self._announcer = announcer
        self.viewer_id = viewer_id or (lambda: self._store.read(VIEWER_USER_ID))
        self._state = ClockState.IDLE
        self._origin_ms = 0

    # ------------------------------------------------------------------
    # State accessors

    @property
    def state(self) -> ClockState:
        return self._state

    @property
    def tracking(self) -> bool:
        return self._state is ClockState.TRACKING

    @property
    def origin_ms(self) -> int:
        return self._origin_ms

    @property
    def origin(self) -> Optional[datetime]:
        if self._origin_ms <= 0:
            return None
        return datetime.fromtimestamp(self._origin_ms / 1000)

    def elapsed_ms(self, at: Optional[datetime] = None) -> int:
        return to_epoch_ms(at or self._now()) - self._origin_ms

    def restore(self) -> ClockState:
        """Recover origin and tracking flag from the store after a restart."""
        raw_origin = self._store.read(SESSION_START_TIME)
        try:
            origin_ms = int(raw_origin or 0)
        except (TypeError, ValueError):
            self.logger.warning("Ignoring unreadable session origin %r", raw_origin)
            origin_ms = 0

        self._origin_ms = max(origin_ms, 0)
        tracking = bool(self._store.read(IS_TRACKING))

        if tracking and self._origin_ms == 0:
            self.logger.warning("Stored state says tracking but no session origin was recorded; staying idle")
            self._state = ClockState.IDLE
        elif tracking:
            self._state = ClockState.TRACKING
        else:
            self._state = ClockState.IDLE

        self.logger.info("Restored clock: state=%s origin=%d", self._state.value, self._origin_ms)
        return self._state

    # ------------------------------------------------------------------
    # Transitions

    async def start(self) -> bool:
        """Begin a new session; returns False when already tracking."""
        if not self._is_ready():
            raise NotReady("start tracking")
        if self.tracking:
            self.logger.warning("Already tracking, ignoring start")
            return False

        failed: List[str] = []
        started_at = self._now()
        self._origin_ms = to_epoch_ms(started_at)
        await self._write(SESSION_START_TIME, self._origin_ms, failed)

        try:
            await self._ledger.reset()
        except PersistFailed as exc:
            failed.extend(exc.keys)

        self._state = ClockState.TRACKING
        await self._write(IS_TRACKING, True, failed)

        viewer = str(self.viewer_id() or "").strip()
        marker = SyncMarker(
            started_at=started_at,
            clock_time=started_at.strftime(CLOCK_TIME_FORMAT),
            recipients=(viewer,) if viewer else (),
        )
        await announce(self._announcer, marker)

        try:
            await self.record_event(TimestampKind.SYNC_POINT, SYNC_POINT_DESCRIPTION, SYNC_POINT_DETAILS)
        except PersistFailed as exc:
            failed.extend(exc.keys)

        self.logger.info("Session tracking started at %s", marker.clock_time)
        if failed:
            raise PersistFailed(failed)
        return True

    async def stop(self) -> bool:
        """End the session; returns False when not tracking. Origin is kept."""
        if not self._is_ready():
            raise NotReady("stop tracking")
        if not self.tracking:
            self.logger.warning("Not tracking, ignoring stop")
            return False

        failed: List[str] = []
        try:
            await self.record_event(TimestampKind.SESSION_END, SESSION_END_DESCRIPTION, SESSION_END_DETAILS)
        except PersistFailed as exc:
            failed.extend(exc.keys)

        self._state = ClockState.IDLE
        await self._write(IS_TRACKING, False, failed)

        self.logger.info("Session tracking ended with %d timestamp(s)", len(self._ledger))
        if failed:
            raise PersistFailed(failed)
        return True

    async def toggle(self) -> bool:
        if self.tracking:
            return await self.stop()
        return await self.start()

    # ------------------------------------------------------------------
    # Recording

    async def record_event(
        self,
        kind: TimestampKind | str,
        description: str,
        details: str = "",
    ) -> Optional[TimestampRecord]:
        """Append a record stamped against the current origin.

        Returns None without touching the ledger while idle or before the
        host is ready. Raises PersistFailed after the record was appended
        in memory when the store write fails.
        """
        if not self.tracking or not self._is_ready():
            return None

        at = self._now()
        elapsed = self.elapsed_ms(at)
        if elapsed < 0:
            self.logger.warning(
                "Session origin is %d ms in the future; clamping elapsed time to zero", -elapsed
            )

        record = TimestampRecord(
            kind=TimestampKind.parse(kind),
            absolute_time=at.strftime(ABSOLUTE_TIME_FORMAT),
            elapsed_time=format_elapsed(elapsed),
            description=description,
            details=details or "",
        )
        return await self._ledger.append(record)

    async def _write(self, key: str, value, failed: List[str]) -> None:
        try:
            success = await self._store.write(key, value)
        except Exception as exc:
            self.logger.error("PERSIST FAILED: %s: %s", key, exc)
            success = False
        if not success:
            failed.append(key)


__all__ = [
    "ClockState",
    "SessionClock",
    "to_epoch_ms",
    "SYNC_POINT_DESCRIPTION",
    "SESSION_END_DESCRIPTION",
]
