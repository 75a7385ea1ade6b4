"""
API Controller - Business logic behind the REST endpoints.

Wraps the SessionContext and EventRegistry, returning plain dicts that the
route handlers serialize as JSON.
"""

from typing import Any, Dict, Optional

from marking_time import __version__
from marking_time.core.config import TrackingConfig
from marking_time.core.context import ActionResult, SessionContext
from marking_time.core.logging_utils import get_module_logger
from marking_time.events.handlers import TrackingEventHandlers
from marking_time.events.registry import EventRegistry


class APIController:
    """Bridges HTTP requests to the session context."""

    def __init__(
        self,
        context: SessionContext,
        registry: Optional[EventRegistry] = None,
        config: Optional[TrackingConfig] = None,
    ):
        self.logger = get_module_logger("APIController")
        self.context = context
        self.config = config or TrackingConfig.from_store(context.store)
        self.registry = registry or EventRegistry(TrackingEventHandlers(context), self.config)
        context.use_viewer(lambda: self.config.viewer_user_id)

    # =========================================================================
    # System
    # =========================================================================

    async def health_check(self) -> Dict[str, Any]:
        return {"status": "healthy", "version": __version__, "ready": self.context.ready}

    async def get_notifications(self, limit: Optional[int] = None) -> Dict[str, Any]:
        history = self.context.notifier.history
        if limit:
            history = history[-limit:]
        return {"notifications": [n.to_dict() for n in history]}

    # =========================================================================
    # Session
    # =========================================================================

    async def get_session(self) -> Dict[str, Any]:
        return self.context.status()

    async def start_session(self) -> Dict[str, Any]:
        return self._with_session(await self.context.start())

    async def stop_session(self) -> Dict[str, Any]:
        return self._with_session(await self.context.stop())

    async def toggle_session(self) -> Dict[str, Any]:
        return self._with_session(await self.context.toggle())

    def _with_session(self, result: ActionResult) -> Dict[str, Any]:
        payload = result.to_dict()
        payload["session"] = self.context.status()
        return payload

    # =========================================================================
    # Timestamps
    # =========================================================================

    async def get_timestamps(self, limit: Optional[int] = None) -> Dict[str, Any]:
        records = self.context.ledger.records
        if limit:
            records = records[-limit:]
        return {
            "count": len(self.context.ledger),
            "timestamps": [record.to_dict() for record in records],
        }

    async def add_marker(self, description: Optional[str], details: Optional[str] = "") -> Dict[str, Any]:
        result = await self.context.add_marker(description, details)
        payload = result.to_dict()
        if result.success and self.context.ledger.last is not None:
            payload["timestamp"] = self.context.ledger.last.to_dict()
        return payload

    def export_csv(self, include_header: bool = False) -> ActionResult:
        return self.context.export_csv(include_header=include_header)

    # =========================================================================
    # Host events
    # =========================================================================

    async def handle_event(self, name: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        record = await self.registry.dispatch(name, payload)
        return {
            "event": name,
            "tracked": self.registry.is_bound(name),
            "recorded": record is not None,
            "timestamp": record.to_dict() if record is not None else None,
        }

    # =========================================================================
    # Configuration
    # =========================================================================

    async def get_config(self) -> Dict[str, Any]:
        return {"config": self.config.to_dict(), "bound_events": list(self.registry.bound_events)}

    async def update_config(self, updates: Dict[str, Any]) -> Dict[str, Any]:
        valid_keys = set(self.config.to_dict())
        invalid_keys = set(updates) - valid_keys
        if invalid_keys:
            self.logger.warning("Ignoring invalid config keys: %s", sorted(invalid_keys))
            updates = {k: v for k, v in updates.items() if k in valid_keys}

        if not updates:
            return {
                "success": False,
                "error": "no_valid_updates",
                "message": "No valid configuration keys provided",
            }

        values = self.config.to_dict()
        for key, value in updates.items():
            if key == "viewer_user_id":
                values[key] = "" if value is None else str(value).strip()
            elif isinstance(value, bool):
                values[key] = value
            else:
                values[key] = str(value).strip().lower() in {"true", "1", "yes", "on"}
        new_config = TrackingConfig(**values)

        failed = []
        previous = self.config.to_store_values()
        for key, value in new_config.to_store_values().items():
            if previous.get(key) == value:
                continue
            try:
                saved = await self.context.store.write(key, value)
            except Exception as exc:
                self.logger.error("PERSIST FAILED: %s: %s", key, exc)
                saved = False
            if not saved:
                failed.append(key)

        self.config = new_config
        self.registry.configure(new_config)

        if failed:
            self.logger.error("Config applied but not saved: %s", failed)
            return {
                "success": False,
                "error": "persist_failed",
                "message": f"Could not save {', '.join(failed)}",
                "config": new_config.to_dict(),
            }
        return {"success": True, "updated": sorted(updates), "config": new_config.to_dict()}
