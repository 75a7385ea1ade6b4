"""Host event classification and dispatch."""

from .classify import DiceTerm, RollResult, classify_roll, should_record_round
from .handlers import ChatMessage, TrackingEventHandlers
from .registry import EventRegistry

__all__ = [
    "ChatMessage",
    "DiceTerm",
    "EventRegistry",
    "RollResult",
    "TrackingEventHandlers",
    "classify_roll",
    "should_record_round",
]
