"""Timestamp records and the append-only ledger that persists them."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator, List, Mapping, Tuple

from .constants import TIMESTAMPS, TimestampKind
from .errors import NoData, PersistFailed
from .export import export_csv
from .logging_utils import get_module_logger
from .settings_store import SettingsStore

logger = get_module_logger("TimestampLedger")

ZERO_ELAPSED = "00:00:00"


def format_elapsed(milliseconds: float) -> str:
    """Format a duration as ``HH:MM:SS``; hours are not wrapped at 24.

    Negative durations render as ``00:00:00``.
    """
    if milliseconds < 0:
        return ZERO_ELAPSED
    seconds = int(milliseconds // 1000)
    minutes, seconds = divmod(seconds, 60)
    hours, minutes = divmod(minutes, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


@dataclass(frozen=True, slots=True)
class TimestampRecord:
    """One logged event. Immutable once created."""

    kind: TimestampKind
    absolute_time: str
    elapsed_time: str
    description: str
    details: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", TimestampKind.parse(self.kind))
        if self.details is None:
            object.__setattr__(self, "details", "")

    def as_row(self) -> Tuple[str, str, str, str, str]:
        return (
            self.kind.value,
            self.absolute_time,
            self.elapsed_time,
            self.description,
            self.details,
        )

    def to_dict(self) -> dict[str, str]:
        return {
            "type": self.kind.value,
            "absoluteTime": self.absolute_time,
            "elapsedTime": self.elapsed_time,
            "description": self.description,
            "details": self.details,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TimestampRecord":
        return cls(
            kind=TimestampKind.parse(data["type"]),
            absolute_time=str(data["absoluteTime"]),
            elapsed_time=str(data["elapsedTime"]),
            description=str(data["description"]),
            details=str(data.get("details") or ""),
        )


class TimestampLedger:
    """
    Ordered, append-only sequence of timestamp records.

    The in-memory sequence is authoritative. Each append writes the complete
    sequence to the settings store; a failed write raises PersistFailed but
    the record stays appended so the next successful write carries it.
    """

    def __init__(self, store: SettingsStore, *, key: str = TIMESTAMPS) -> None:
        self._store = store
        self._key = key
        self._records: List[TimestampRecord] = []

    @property
    def records(self) -> Tuple[TimestampRecord, ...]:
        return tuple(self._records)

    @property
    def last(self) -> TimestampRecord | None:
        return self._records[-1] if self._records else None

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[TimestampRecord]:
        return iter(tuple(self._records))

    def load(self) -> int:
        """Replace the in-memory sequence with the persisted one."""
        stored = self._store.read(self._key) or []
        if not isinstance(stored, list):
            logger.warning("Persisted %s is not a list, starting empty", self._key)
            stored = []

        loaded: List[TimestampRecord] = []
        for index, entry in enumerate(stored):
            try:
                loaded.append(TimestampRecord.from_dict(entry))
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping malformed timestamp #%d: %s", index, exc)

        self._records = loaded
        logger.info("Loaded %d timestamp(s)", len(loaded))
        return len(loaded)

    async def reset(self) -> None:
        self._records = []
        await self._persist()

    async def append(self, record: TimestampRecord) -> TimestampRecord:
        self._records.append(record)
        logger.debug("Recorded %s at %s: %s", record.kind.value, record.elapsed_time, record.description)
        await self._persist()
        return record

    def export_csv(self, *, include_header: bool = False) -> str:
        if not self._records:
            raise NoData()
        return export_csv(self._records, include_header=include_header)

    async def _persist(self) -> None:
        snapshot = [record.to_dict() for record in self._records]
        try:
            success = await self._store.write(self._key, snapshot)
        except Exception as exc:
            raise PersistFailed([self._key], exc) from exc
        if not success:
            raise PersistFailed([self._key])


__all__ = ["ZERO_ELAPSED", "format_elapsed", "TimestampRecord", "TimestampLedger"]
