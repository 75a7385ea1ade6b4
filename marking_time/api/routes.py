"""
API routes - session control, manual markers, export and host event delivery.
"""

from aiohttp import web

from .controller import APIController
from .middleware import create_error_response, parse_json_body


def setup_routes(app: web.Application, controller: APIController) -> None:
    """Register all API routes."""
    app.router.add_get("/api/v1/health", health_handler)
    app.router.add_get("/api/v1/notifications", notifications_handler)

    app.router.add_get("/api/v1/session", get_session_handler)
    app.router.add_post("/api/v1/session/start", start_session_handler)
    app.router.add_post("/api/v1/session/stop", stop_session_handler)
    app.router.add_post("/api/v1/session/toggle", toggle_session_handler)

    app.router.add_get("/api/v1/timestamps", get_timestamps_handler)
    app.router.add_post("/api/v1/markers", add_marker_handler)
    app.router.add_get("/api/v1/export", export_handler)

    app.router.add_post("/api/v1/events/{name}", event_handler)

    app.router.add_get("/api/v1/config", get_config_handler)
    app.router.add_put("/api/v1/config", update_config_handler)


def _success_status(result: dict) -> int:
    return 200 if result.get("success") else 400


def _parse_limit(request: web.Request):
    """Returns (limit, error_response)."""
    limit = request.query.get("limit")
    if not limit:
        return None, None
    try:
        value = int(limit)
    except ValueError:
        return None, create_error_response("INVALID_PARAMETER", "limit must be a valid integer", status=400)
    if value < 1:
        return None, create_error_response("INVALID_PARAMETER", "limit must be a positive integer", status=400)
    return value, None


async def health_handler(request: web.Request) -> web.Response:
    """GET /api/v1/health - Health check."""
    controller: APIController = request.app["controller"]
    return web.json_response(await controller.health_check())


async def notifications_handler(request: web.Request) -> web.Response:
    """GET /api/v1/notifications - Recent transient messages."""
    controller: APIController = request.app["controller"]
    limit, err = _parse_limit(request)
    if err:
        return err
    return web.json_response(await controller.get_notifications(limit))


async def get_session_handler(request: web.Request) -> web.Response:
    """GET /api/v1/session - Tracking state, origin and timestamp count."""
    controller: APIController = request.app["controller"]
    return web.json_response(await controller.get_session())


async def start_session_handler(request: web.Request) -> web.Response:
    """POST /api/v1/session/start - Start tracking."""
    controller: APIController = request.app["controller"]
    result = await controller.start_session()
    return web.json_response(result, status=_success_status(result))


async def stop_session_handler(request: web.Request) -> web.Response:
    """POST /api/v1/session/stop - Stop tracking."""
    controller: APIController = request.app["controller"]
    result = await controller.stop_session()
    return web.json_response(result, status=_success_status(result))


async def toggle_session_handler(request: web.Request) -> web.Response:
    """POST /api/v1/session/toggle - Start if idle, stop if tracking."""
    controller: APIController = request.app["controller"]
    result = await controller.toggle_session()
    return web.json_response(result, status=_success_status(result))


async def get_timestamps_handler(request: web.Request) -> web.Response:
    """GET /api/v1/timestamps - Recorded timestamps in order."""
    controller: APIController = request.app["controller"]
    limit, err = _parse_limit(request)
    if err:
        return err
    return web.json_response(await controller.get_timestamps(limit))


async def add_marker_handler(request: web.Request) -> web.Response:
    """POST /api/v1/markers - Mark an important moment."""
    controller: APIController = request.app["controller"]
    body, err = await parse_json_body(request)
    if err:
        return err

    result = await controller.add_marker(body.get("description"), body.get("details") or "")
    return web.json_response(result, status=201 if result.get("success") else 400)


async def export_handler(request: web.Request) -> web.Response:
    """GET /api/v1/export - Download the CSV export."""
    controller: APIController = request.app["controller"]
    include_header = request.query.get("header", "").lower() in {"1", "true", "yes"}
    result = controller.export_csv(include_header=include_header)
    if not result.success:
        return create_error_response("NO_DATA", result.message, status=404)

    return web.Response(
        text=result.content,
        content_type="text/csv",
        charset="utf-8",
        headers={"Content-Disposition": f'attachment; filename="{result.filename}"'},
    )


async def event_handler(request: web.Request) -> web.Response:
    """POST /api/v1/events/{name} - Deliver a host event."""
    controller: APIController = request.app["controller"]
    body, err = await parse_json_body(request, required=False)
    if err:
        return err
    result = await controller.handle_event(request.match_info["name"], body)
    return web.json_response(result)


async def get_config_handler(request: web.Request) -> web.Response:
    """GET /api/v1/config - Tracking flags and bound events."""
    controller: APIController = request.app["controller"]
    return web.json_response(await controller.get_config())


async def update_config_handler(request: web.Request) -> web.Response:
    """PUT /api/v1/config - Update tracking flags."""
    controller: APIController = request.app["controller"]
    body, err = await parse_json_body(request)
    if err:
        return err
    result = await controller.update_config(body)
    if not result.get("success"):
        status = 500 if result.get("error") == "persist_failed" else 400
        return web.json_response(result, status=status)
    return web.json_response(result)
