"""
Inbound port - the calls a host adapter makes when something noteworthy happens.

Each handler turns one host notification into at most one timestamp and
hands it to the recorder (normally the SessionContext), which silently
ignores it while no session is being tracked.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional, Protocol, Tuple

from ..core.constants import TimestampKind
from ..core.logging_utils import get_module_logger
from ..core.timestamps import TimestampRecord
from .classify import RollResult, classify_roll, should_record_round

DEFAULT_SPEAKER = "Someone"


class EventRecorder(Protocol):
    async def record_event(
        self,
        kind: TimestampKind | str,
        description: str,
        details: str = "",
    ) -> Optional[TimestampRecord]:
        ...


@dataclass(frozen=True, slots=True)
class ChatMessage:
    """The parts of a host chat message the roll handler looks at."""

    is_roll: bool = False
    rolls: Tuple[RollResult, ...] = field(default_factory=tuple)
    speaker_alias: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ChatMessage":
        rolls = tuple(RollResult.from_dict(roll) for roll in data.get("rolls") or ())
        speaker = data.get("speaker") or {}
        alias = speaker.get("alias") if isinstance(speaker, Mapping) else speaker
        is_roll = data.get("isRoll", data.get("is_roll"))
        return cls(
            is_roll=bool(rolls) if is_roll is None else bool(is_roll),
            rolls=rolls,
            speaker_alias=str(alias or ""),
        )


class TrackingEventHandlers:
    """Translate host notifications into timestamp records."""

    def __init__(self, recorder: EventRecorder) -> None:
        self.logger = get_module_logger("EventHandlers")
        self._recorder = recorder

    async def on_combat_start(self, combatants: Iterable[str] = ()) -> Optional[TimestampRecord]:
        names = ", ".join(str(name) for name in combatants)
        return await self._recorder.record_event(
            TimestampKind.COMBAT_START, "Combat started", f"Combatants: {names}"
        )

    async def on_combat_end(self, rounds: int = 0) -> Optional[TimestampRecord]:
        return await self._recorder.record_event(
            TimestampKind.COMBAT_END, "Combat ended", f"Duration: {rounds} rounds"
        )

    async def on_combat_round(self, round_number: int) -> Optional[TimestampRecord]:
        if not should_record_round(round_number):
            self.logger.debug("Skipping combat round %s", round_number)
            return None
        return await self._recorder.record_event(
            TimestampKind.COMBAT_ROUND, f"Combat round {int(round_number)}", "New round started"
        )

    async def on_scene_change(self, scene_name: Optional[str]) -> Optional[TimestampRecord]:
        if not scene_name:
            return None
        return await self._recorder.record_event(
            TimestampKind.SCENE_CHANGE, f"Scene changed to {scene_name}", "New scene activated"
        )

    async def on_roll_recorded(self, roll: RollResult, speaker: str = "") -> Optional[TimestampRecord]:
        kind = classify_roll(roll)
        if kind is None:
            return None

        who = speaker or DEFAULT_SPEAKER
        natural = 20 if kind is TimestampKind.CRITICAL_SUCCESS else 1
        return await self._recorder.record_event(
            kind,
            f"{who} rolled a natural {natural}",
            f"Roll: {roll.formula} = {roll.total}",
        )

    async def on_chat_message(self, message: ChatMessage) -> Optional[TimestampRecord]:
        """Only the first roll of a roll message is considered."""
        if not message.is_roll or not message.rolls:
            return None
        return await self.on_roll_recorded(message.rolls[0], message.speaker_alias)


__all__ = ["ChatMessage", "EventRecorder", "TrackingEventHandlers", "DEFAULT_SPEAKER"]
