"""Unit tests for REST API endpoints.

Tests all API routes against a real controller to verify:
- Correct HTTP methods and status codes
- Request/response JSON structure
- Error handling for invalid requests
- Parameter validation
"""

from __future__ import annotations

import csv
import io

import pytest
from aiohttp.test_utils import TestClient, TestServer

from marking_time.api.controller import APIController
from marking_time.api.server import APIServer, create_app
from marking_time.core.config import TrackingConfig
from marking_time.core.constants import TRACK_COMBAT, TimestampKind
from marking_time.core.context import SessionContext
from marking_time.core.export import export_filename


# =============================================================================
# System Routes Tests
# =============================================================================


class TestSystemRoutes:

    @pytest.mark.asyncio
    async def test_health_check(self, app):
        """GET /api/v1/health returns healthy status."""
        async with TestClient(TestServer(app)) as client:
            resp = await client.get("/api/v1/health")
            assert resp.status == 200
            data = await resp.json()
            assert data["status"] == "healthy"
            assert data["ready"] is True
            assert "version" in data

    @pytest.mark.asyncio
    async def test_notifications(self, app):
        """GET /api/v1/notifications returns recent messages."""
        async with TestClient(TestServer(app)) as client:
            await client.post("/api/v1/session/start")
            await client.post("/api/v1/session/start")

            resp = await client.get("/api/v1/notifications?limit=1")
            assert resp.status == 200
            data = await resp.json()
            assert len(data["notifications"]) == 1
            assert data["notifications"][0]["level"] == "warning"

    @pytest.mark.asyncio
    async def test_invalid_limit(self, app):
        """Non-integer limit is rejected."""
        async with TestClient(TestServer(app)) as client:
            resp = await client.get("/api/v1/notifications?limit=abc")
            assert resp.status == 400
            data = await resp.json()
            assert data["error"]["code"] == "INVALID_PARAMETER"


# =============================================================================
# Session Routes Tests
# =============================================================================


class TestSessionRoutes:

    @pytest.mark.asyncio
    async def test_session_lifecycle(self, app):
        """Start, inspect, stop."""
        async with TestClient(TestServer(app)) as client:
            resp = await client.get("/api/v1/session")
            assert (await resp.json())["state"] == "idle"

            resp = await client.post("/api/v1/session/start")
            assert resp.status == 200
            data = await resp.json()
            assert data["success"] is True
            assert data["session"]["tracking"] is True
            assert data["session"]["timestamp_count"] == 1

            resp = await client.post("/api/v1/session/stop")
            assert resp.status == 200
            data = await resp.json()
            assert data["session"]["state"] == "idle"
            assert data["session"]["timestamp_count"] == 2

    @pytest.mark.asyncio
    async def test_start_twice(self, app):
        """Second start is reported as a client error."""
        async with TestClient(TestServer(app)) as client:
            await client.post("/api/v1/session/start")
            resp = await client.post("/api/v1/session/start")
            assert resp.status == 400
            data = await resp.json()
            assert data["level"] == "warning"

    @pytest.mark.asyncio
    async def test_sync_marker_uses_configured_viewer(self, store, clock):
        """A viewer passed in the controller config addresses the sync marker."""
        received = []

        async def announcer(marker):
            received.append(marker)

        context = SessionContext(store, now=clock, announcer=announcer)
        controller = APIController(context, config=TrackingConfig(viewer_user_id="gm-screen"))

        async with TestClient(TestServer(create_app(controller))) as client:
            resp = await client.post("/api/v1/session/start")
            assert resp.status == 200

        assert [marker.recipients for marker in received] == [("gm-screen",)]

    @pytest.mark.asyncio
    async def test_sync_marker_follows_config_update(self, store, clock):
        received = []

        async def announcer(marker):
            received.append(marker)

        context = SessionContext(store, now=clock, announcer=announcer)

        async with TestClient(TestServer(create_app(APIController(context)))) as client:
            resp = await client.put("/api/v1/config", json={"viewer_user_id": " table-tv "})
            assert resp.status == 200
            await client.post("/api/v1/session/start")

        assert [marker.recipients for marker in received] == [("table-tv",)]

    @pytest.mark.asyncio
    async def test_toggle(self, app):
        async with TestClient(TestServer(app)) as client:
            resp = await client.post("/api/v1/session/toggle")
            assert (await resp.json())["session"]["tracking"] is True
            resp = await client.post("/api/v1/session/toggle")
            assert (await resp.json())["session"]["tracking"] is False


# =============================================================================
# Marker and Timestamp Routes Tests
# =============================================================================


class TestMarkerRoutes:

    @pytest.mark.asyncio
    async def test_add_marker(self, app, clock):
        """POST /api/v1/markers stamps a manual marker."""
        async with TestClient(TestServer(app)) as client:
            await client.post("/api/v1/session/start")
            clock.advance(90)

            resp = await client.post("/api/v1/markers", json={"description": "Ambush"})
            assert resp.status == 201
            data = await resp.json()
            assert data["timestamp"]["type"] == TimestampKind.MANUAL_MARKER.value
            assert data["timestamp"]["elapsedTime"] == "00:01:30"

            resp = await client.get("/api/v1/timestamps?limit=1")
            data = await resp.json()
            assert data["count"] == 2
            assert [t["description"] for t in data["timestamps"]] == ["Ambush"]

    @pytest.mark.asyncio
    async def test_blank_description(self, app):
        async with TestClient(TestServer(app)) as client:
            await client.post("/api/v1/session/start")
            resp = await client.post("/api/v1/markers", json={"description": "   "})
            assert resp.status == 400
            data = await resp.json()
            assert data["message"].endswith("Description is required")

    @pytest.mark.asyncio
    async def test_marker_while_idle(self, app):
        async with TestClient(TestServer(app)) as client:
            resp = await client.post("/api/v1/markers", json={"description": "Ambush"})
            assert resp.status == 400
            assert "timestamp" not in await resp.json()

    @pytest.mark.asyncio
    async def test_empty_body(self, app):
        async with TestClient(TestServer(app)) as client:
            resp = await client.post("/api/v1/markers", json={})
            assert resp.status == 400
            data = await resp.json()
            assert data["error"]["code"] == "EMPTY_BODY"

    @pytest.mark.asyncio
    async def test_invalid_json(self, app):
        async with TestClient(TestServer(app)) as client:
            resp = await client.post(
                "/api/v1/markers",
                data="not json",
                headers={"Content-Type": "application/json"},
            )
            assert resp.status == 400
            data = await resp.json()
            assert data["error"]["code"] == "INVALID_BODY"


# =============================================================================
# Export Route Tests
# =============================================================================


class TestExportRoute:

    @pytest.mark.asyncio
    async def test_export_without_data(self, app):
        async with TestClient(TestServer(app)) as client:
            resp = await client.get("/api/v1/export")
            assert resp.status == 404
            data = await resp.json()
            assert data["error"]["code"] == "NO_DATA"

    @pytest.mark.asyncio
    async def test_export_download(self, app, clock):
        async with TestClient(TestServer(app)) as client:
            await client.post("/api/v1/session/start")
            await client.post("/api/v1/markers", json={"description": 'Say "hi", bard'})

            resp = await client.get("/api/v1/export")
            assert resp.status == 200
            assert resp.content_type == "text/csv"
            assert resp.headers["Content-Disposition"] == (
                f'attachment; filename="{export_filename(clock())}"'
            )
            rows = list(csv.reader(io.StringIO(await resp.text())))
            assert [row[0] for row in rows] == ["SYNC_POINT", "MANUAL_MARKER"]
            assert rows[1][3] == 'Say "hi", bard'

    @pytest.mark.asyncio
    async def test_export_with_header(self, app):
        async with TestClient(TestServer(app)) as client:
            await client.post("/api/v1/session/start")
            resp = await client.get("/api/v1/export?header=1")
            text = await resp.text()
            assert text.startswith('"Type","AbsoluteTime","ElapsedTime","Description","Details"\n')


# =============================================================================
# Event Route Tests
# =============================================================================


class TestEventRoutes:

    @pytest.mark.asyncio
    async def test_event_while_idle(self, app):
        async with TestClient(TestServer(app)) as client:
            resp = await client.post("/api/v1/events/sceneChange", json={"scene": "Tavern"})
            assert resp.status == 200
            data = await resp.json()
            assert data["tracked"] is True
            assert data["recorded"] is False
            assert data["timestamp"] is None

    @pytest.mark.asyncio
    async def test_event_recorded(self, app):
        async with TestClient(TestServer(app)) as client:
            await client.post("/api/v1/session/start")
            resp = await client.post("/api/v1/events/combatRound", json={"round": 2})
            data = await resp.json()
            assert data["recorded"] is True
            assert data["timestamp"]["description"] == "Combat round 2"

    @pytest.mark.asyncio
    async def test_event_without_body(self, app):
        async with TestClient(TestServer(app)) as client:
            await client.post("/api/v1/session/start")
            resp = await client.post("/api/v1/events/combatEnd")
            data = await resp.json()
            assert data["recorded"] is True
            assert data["timestamp"]["details"] == "Duration: 0 rounds"


# =============================================================================
# Config Route Tests
# =============================================================================


class TestConfigRoutes:

    @pytest.mark.asyncio
    async def test_get_config(self, app):
        async with TestClient(TestServer(app)) as client:
            resp = await client.get("/api/v1/config")
            data = await resp.json()
            assert data["config"]["track_combat"] is True
            assert "combatStart" in data["bound_events"]

    @pytest.mark.asyncio
    async def test_disable_combat_tracking(self, app, store):
        async with TestClient(TestServer(app)) as client:
            resp = await client.put("/api/v1/config", json={"track_combat": False, "bogus": 1})
            assert resp.status == 200
            data = await resp.json()
            assert data["updated"] == ["track_combat"]
            assert store.read(TRACK_COMBAT) is False

            await client.post("/api/v1/session/start")
            resp = await client.post("/api/v1/events/combatStart", json={"combatants": ["Mira"]})
            data = await resp.json()
            assert data["tracked"] is False
            assert data["recorded"] is False

    @pytest.mark.asyncio
    async def test_no_valid_keys(self, app):
        async with TestClient(TestServer(app)) as client:
            resp = await client.put("/api/v1/config", json={"bogus": 1})
            assert resp.status == 400
            assert (await resp.json())["error"] == "no_valid_updates"


# =============================================================================
# Server Lifecycle Tests
# =============================================================================


class TestAPIServer:

    @pytest.mark.asyncio
    async def test_start_and_stop(self, controller):
        server = APIServer(controller, host="127.0.0.1", port=0)

        await server.start()
        try:
            assert server.is_running
        finally:
            await server.stop()

        assert not server.is_running
        await server.stop()
