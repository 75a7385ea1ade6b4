"""Centralized path constants for Marking Time."""

from __future__ import annotations

import os
from pathlib import Path

# User-specific state (allows running from read-only project directories)
_USER_STATE_ENV = os.environ.get("MARKING_TIME_STATE_DIR")
USER_STATE_DIR = Path(_USER_STATE_ENV).expanduser() if _USER_STATE_ENV else (Path.home() / ".marking_time")

SETTINGS_FILE = USER_STATE_DIR / "settings.json"
LOGS_DIR = USER_STATE_DIR / "logs"
MASTER_LOG_FILE = LOGS_DIR / "marking_time.log"
EXPORTS_DIR = USER_STATE_DIR / "exports"


__all__ = [
    "USER_STATE_DIR",
    "SETTINGS_FILE",
    "LOGS_DIR",
    "MASTER_LOG_FILE",
    "EXPORTS_DIR",
]
