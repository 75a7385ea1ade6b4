"""Typed configuration for event tracking."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

from .constants import (
    DEFAULT_SETTINGS,
    TRACK_COMBAT,
    TRACK_DICE_ROLLS,
    TRACK_SCENE_CHANGES,
    VIEWER_USER_ID,
)
from .settings_store import SettingsStore

_TRUTHY = {"true", "1", "yes", "on"}


def _coerce_bool(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUTHY


def _coerce_str(value: Any, default: str) -> str:
    if value is None:
        return default
    return str(value).strip()


@dataclass(slots=True, frozen=True)
class TrackingConfig:
    """Which host event groups are wired, and who sees the sync marker."""

    track_combat: bool = DEFAULT_SETTINGS[TRACK_COMBAT]
    track_scene_changes: bool = DEFAULT_SETTINGS[TRACK_SCENE_CHANGES]
    track_dice_rolls: bool = DEFAULT_SETTINGS[TRACK_DICE_ROLLS]
    viewer_user_id: str = DEFAULT_SETTINGS[VIEWER_USER_ID]

    @classmethod
    def from_store(cls, store: SettingsStore, args: Any = None) -> "TrackingConfig":
        """Build config from the settings store with optional CLI overrides."""
        defaults = cls()

        config = cls(
            track_combat=_coerce_bool(store.read(TRACK_COMBAT), defaults.track_combat),
            track_scene_changes=_coerce_bool(store.read(TRACK_SCENE_CHANGES), defaults.track_scene_changes),
            track_dice_rolls=_coerce_bool(store.read(TRACK_DICE_ROLLS), defaults.track_dice_rolls),
            viewer_user_id=_coerce_str(store.read(VIEWER_USER_ID), defaults.viewer_user_id),
        )

        if args is not None:
            config = config._apply_args_override(args)

        return config

    def _apply_args_override(self, args: Any) -> "TrackingConfig":
        values = asdict(self)

        for key in values:
            val = getattr(args, key, None)
            if val is not None:
                values[key] = val

        return TrackingConfig(**values)

    def to_store_values(self) -> dict[str, Any]:
        """Config values keyed the way the settings store persists them."""
        return {
            TRACK_COMBAT: self.track_combat,
            TRACK_SCENE_CHANGES: self.track_scene_changes,
            TRACK_DICE_ROLLS: self.track_dice_rolls,
            VIEWER_USER_ID: self.viewer_user_id,
        }

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


__all__ = ["TrackingConfig"]
