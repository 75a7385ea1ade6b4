"""Named host events dispatched to the inbound port, wired per TrackingConfig."""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Tuple

from ..core.config import TrackingConfig
from ..core.logging_utils import get_module_logger
from ..core.timestamps import TimestampRecord
from .handlers import ChatMessage, TrackingEventHandlers

COMBAT_START = "combatStart"
COMBAT_END = "combatEnd"
COMBAT_ROUND = "combatRound"
SCENE_CHANGE = "sceneChange"
CHAT_MESSAGE = "createChatMessage"

COMBAT_EVENTS = (COMBAT_START, COMBAT_END, COMBAT_ROUND)
SCENE_EVENTS = (SCENE_CHANGE,)
ROLL_EVENTS = (CHAT_MESSAGE,)
KNOWN_EVENTS = COMBAT_EVENTS + SCENE_EVENTS + ROLL_EVENTS

Dispatcher = Callable[[Mapping[str, Any]], Awaitable[Optional[TimestampRecord]]]


class EventRegistry:
    """
    Routes named host events to TrackingEventHandlers.

    A disabled event group is simply never bound: its events are dropped at
    dispatch without reaching the handlers. Dispatch never raises; a bad
    payload or a failing handler is logged and reported as None.
    """

    def __init__(self, handlers: TrackingEventHandlers, config: Optional[TrackingConfig] = None) -> None:
        self.logger = get_module_logger("EventRegistry")
        self._handlers = handlers
        self._bindings: Dict[str, Dispatcher] = {}
        self.configure(config or TrackingConfig())

    @property
    def bound_events(self) -> Tuple[str, ...]:
        return tuple(self._bindings)

    def is_bound(self, name: str) -> bool:
        return name in self._bindings

    def configure(self, config: TrackingConfig) -> None:
        """Rebuild the bindings for the given tracking flags."""
        self._bindings.clear()
        if config.track_combat:
            self._bindings[COMBAT_START] = self._combat_start
            self._bindings[COMBAT_END] = self._combat_end
            self._bindings[COMBAT_ROUND] = self._combat_round
        if config.track_scene_changes:
            self._bindings[SCENE_CHANGE] = self._scene_change
        if config.track_dice_rolls:
            self._bindings[CHAT_MESSAGE] = self._chat_message
        self.logger.info("Registered event hooks: %s", ", ".join(self._bindings) or "none")

    async def dispatch(self, name: str, payload: Optional[Mapping[str, Any]] = None) -> Optional[TimestampRecord]:
        dispatcher = self._bindings.get(name)
        if dispatcher is None:
            if name not in KNOWN_EVENTS:
                self.logger.warning("Unknown event %s", name)
            else:
                self.logger.debug("Event %s not tracked", name)
            return None

        try:
            return await dispatcher(payload or {})
        except Exception as exc:
            self.logger.error("Error handling %s: %s", name, exc)
            return None

    # ------------------------------------------------------------------
    # Payload adapters

    async def _combat_start(self, payload: Mapping[str, Any]) -> Optional[TimestampRecord]:
        combatants = payload.get("combatants") or ()
        names = [c.get("name", "") if isinstance(c, Mapping) else str(c) for c in combatants]
        return await self._handlers.on_combat_start(names)

    async def _combat_end(self, payload: Mapping[str, Any]) -> Optional[TimestampRecord]:
        rounds = payload.get("round", payload.get("rounds", 0))
        return await self._handlers.on_combat_end(int(rounds or 0))

    async def _combat_round(self, payload: Mapping[str, Any]) -> Optional[TimestampRecord]:
        return await self._handlers.on_combat_round(payload["round"])

    async def _scene_change(self, payload: Mapping[str, Any]) -> Optional[TimestampRecord]:
        scene = payload.get("scene", payload.get("name"))
        if isinstance(scene, Mapping):
            scene = scene.get("name")
        return await self._handlers.on_scene_change(scene)

    async def _chat_message(self, payload: Mapping[str, Any]) -> Optional[TimestampRecord]:
        return await self._handlers.on_chat_message(ChatMessage.from_dict(payload))


__all__ = [
    "EventRegistry",
    "COMBAT_START",
    "COMBAT_END",
    "COMBAT_ROUND",
    "SCENE_CHANGE",
    "CHAT_MESSAGE",
    "KNOWN_EVENTS",
]
