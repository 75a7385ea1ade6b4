"""Store keys, defaults and the timestamp kinds recorded by Marking Time."""

from __future__ import annotations

import re
from enum import Enum
from typing import Any, Dict

MODULE_NAME = "marking-time"
NOTIFICATION_PREFIX = "Marking Time"

# Persisted session keys
SESSION_START_TIME = "sessionStartTime"
TIMESTAMPS = "timestamps"
IS_TRACKING = "isTracking"

# User-facing settings
VIEWER_USER_ID = "viewerUserId"
TRACK_COMBAT = "trackCombat"
TRACK_SCENE_CHANGES = "trackSceneChanges"
TRACK_DICE_ROLLS = "trackDiceRolls"

DEFAULT_SETTINGS: Dict[str, Any] = {
    SESSION_START_TIME: 0,
    TIMESTAMPS: [],
    IS_TRACKING: False,
    VIEWER_USER_ID: "",
    TRACK_COMBAT: True,
    TRACK_SCENE_CHANGES: True,
    TRACK_DICE_ROLLS: True,
}

ABSOLUTE_TIME_FORMAT = "%x %X"
CLOCK_TIME_FORMAT = "%X"
EXPORT_FILENAME_PREFIX = "marking-time"

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


class TimestampKind(Enum):
    """Tag carried by every timestamp record."""

    SYNC_POINT = "SYNC_POINT"
    SESSION_END = "SESSION_END"
    MANUAL_MARKER = "MANUAL_MARKER"
    COMBAT_START = "COMBAT_START"
    COMBAT_END = "COMBAT_END"
    COMBAT_ROUND = "COMBAT_ROUND"
    SCENE_CHANGE = "SCENE_CHANGE"
    CRITICAL_SUCCESS = "CRITICAL_SUCCESS"
    CRITICAL_FAILURE = "CRITICAL_FAILURE"

    @classmethod
    def parse(cls, value: "TimestampKind | str") -> "TimestampKind":
        if isinstance(value, cls):
            return value
        # accepts "SYNC_POINT", "sync_point" and "SyncPoint"
        text = _CAMEL_BOUNDARY.sub("_", str(value).strip())
        return cls(text.upper())


__all__ = [
    "MODULE_NAME",
    "NOTIFICATION_PREFIX",
    "SESSION_START_TIME",
    "TIMESTAMPS",
    "IS_TRACKING",
    "VIEWER_USER_ID",
    "TRACK_COMBAT",
    "TRACK_SCENE_CHANGES",
    "TRACK_DICE_ROLLS",
    "DEFAULT_SETTINGS",
    "ABSOLUTE_TIME_FORMAT",
    "CLOCK_TIME_FORMAT",
    "EXPORT_FILENAME_PREFIX",
    "TimestampKind",
]
