"""Tests for the notifier and sync-marker announcement."""

from __future__ import annotations

from datetime import datetime

import pytest

from marking_time.core.notifications import (
    NotificationLevel,
    Notifier,
    SyncMarker,
    announce,
)


class TestNotifier:

    def test_messages_are_prefixed(self):
        notification = Notifier().info("Session tracking started")
        assert notification.message == "Marking Time: Session tracking started"
        assert notification.level is NotificationLevel.INFO

    def test_history_is_bounded(self):
        notifier = Notifier(history_limit=2)
        for text in ("one", "two", "three"):
            notifier.warning(text)
        assert [n.message for n in notifier.history] == ["Marking Time: two", "Marking Time: three"]

    def test_listeners_receive_messages(self):
        notifier = Notifier(prefix="")
        received = []
        notifier.subscribe(received.append)

        notifier.error("disk full")

        assert [(n.level, n.message) for n in received] == [(NotificationLevel.ERROR, "disk full")]

    def test_failing_listener_does_not_break_publish(self):
        notifier = Notifier()

        def broken(notification):
            raise RuntimeError("ui gone")

        notifier.subscribe(broken)

        assert notifier.info("still delivered").message.endswith("still delivered")
        assert len(notifier.history) == 1

    def test_to_dict(self):
        data = Notifier().warning("careful").to_dict()
        assert data["level"] == "warning"
        assert data["message"] == "Marking Time: careful"
        assert "created_at" in data


class TestAnnounce:

    @pytest.fixture
    def marker(self):
        return SyncMarker(datetime(2024, 3, 9, 19, 30), "19:30:00", ("viewer",))

    def test_content(self, marker):
        assert marker.content == "TIMESTAMP TRACKING STARTED | Clock Time: 19:30:00"

    @pytest.mark.asyncio
    async def test_without_announcer(self, marker):
        assert await announce(None, marker) is True

    @pytest.mark.asyncio
    async def test_sync_and_async_announcers(self, marker):
        seen = []

        async def async_announcer(m):
            seen.append(("async", m.clock_time))

        assert await announce(seen.append, marker) is True
        assert await announce(async_announcer, marker) is True
        assert seen == [marker, ("async", "19:30:00")]

    @pytest.mark.asyncio
    async def test_failure_reported(self, marker):
        async def broken(m):
            raise ConnectionError("chat offline")

        assert await announce(broken, marker) is False
