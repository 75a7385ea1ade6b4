"""Failure conditions raised by the session clock, ledger and export."""

from __future__ import annotations

from typing import Iterable, Tuple


class MarkingTimeError(Exception):
    """Base class for Marking Time failures."""


class NotReady(MarkingTimeError):
    """The host environment has not finished initializing."""

    def __init__(self, action: str = "continue") -> None:
        super().__init__(f"Cannot {action} until the host is fully loaded")
        self.action = action


class PersistFailed(MarkingTimeError):
    """A settings store write failed; in-memory state was kept."""

    def __init__(self, keys: Iterable[str], cause: BaseException | None = None) -> None:
        self.keys: Tuple[str, ...] = tuple(dict.fromkeys(keys))
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"Failed to persist {', '.join(self.keys)}{detail}")


class NoData(MarkingTimeError):
    """Export requested with an empty record sequence."""

    def __init__(self, message: str = "No timestamps to export") -> None:
        super().__init__(message)


class ValidationFailed(MarkingTimeError):
    """User input rejected before anything was recorded."""


__all__ = [
    "MarkingTimeError",
    "NotReady",
    "PersistFailed",
    "NoData",
    "ValidationFailed",
]
