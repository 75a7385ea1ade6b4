"""Pytest fixtures for API unit tests.

Builds a real APIController over an in-memory SessionContext so the routes
are exercised end to end without touching disk or the network.
"""

from __future__ import annotations

import pytest
from aiohttp import web

from marking_time.api.controller import APIController
from marking_time.api.server import create_app


@pytest.fixture
def controller(context) -> APIController:
    return APIController(context)


@pytest.fixture
def app(controller: APIController) -> web.Application:
    return create_app(controller)
