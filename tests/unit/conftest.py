"""Pytest fixtures for Marking Time unit tests.

Provides a controllable clock, in-memory and failing settings stores, and
ready-to-use session contexts so tests never depend on wall-clock time or
the user's state directory.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta
from typing import Any, Coroutine, Dict, Iterable, Optional, TypeVar

import pytest

from marking_time.core.context import SessionContext
from marking_time.core.notifications import Notifier
from marking_time.core.settings_store import InMemorySettingsStore


T = TypeVar("T")

SESSION_START = datetime(2024, 3, 9, 19, 30, 0)


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """Run an async coroutine synchronously for testing."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


class FakeClock:
    """Callable wall clock that only moves when told to."""

    def __init__(self, start: datetime = SESSION_START):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, seconds: float = 0, **kwargs: float) -> datetime:
        self.current = self.current + timedelta(seconds=seconds, **kwargs)
        return self.current

    def set(self, instant: datetime) -> datetime:
        self.current = instant
        return self.current


class FailingStore(InMemorySettingsStore):
    """In-memory store whose writes fail for selected keys."""

    def __init__(
        self,
        initial: Optional[Dict[str, Any]] = None,
        *,
        failing_keys: Iterable[str] = (),
        raise_error: bool = False,
    ):
        super().__init__(initial)
        self.failing_keys = set(failing_keys)
        self.raise_error = raise_error
        self.attempts: list[str] = []

    async def write(self, key: str, value: Any) -> bool:
        self.attempts.append(key)
        if key in self.failing_keys:
            if self.raise_error:
                raise OSError(f"disk full writing {key}")
            return False
        return await super().write(key, value)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> InMemorySettingsStore:
    return InMemorySettingsStore()


@pytest.fixture
def failing_store_factory():
    """Build a FailingStore: ``failing_store_factory("timestamps")``."""

    def factory(*keys: str, raise_error: bool = False, initial: Optional[Dict[str, Any]] = None) -> FailingStore:
        return FailingStore(initial, failing_keys=keys, raise_error=raise_error)

    return factory


@pytest.fixture
def notifier() -> Notifier:
    return Notifier()


@pytest.fixture
def context(store: InMemorySettingsStore, clock: FakeClock, notifier: Notifier) -> SessionContext:
    """A ready, idle session context on an in-memory store."""
    return SessionContext(store, now=clock, notifier=notifier)


@pytest.fixture
def tracking_context(context: SessionContext) -> SessionContext:
    """A context already tracking, with its sync point recorded."""
    result = run_async(context.start())
    assert result.success
    return context
