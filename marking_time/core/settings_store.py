"""
Settings store - persisted key-value mapping used by the session clock and ledger.

Reads are synchronous and served from an in-memory cache; writes are
coroutines that report success as a bool. Every write carries the complete
value for its key, so the last completed write wins.
"""

from __future__ import annotations

import asyncio
import copy
import json
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Protocol, Union, runtime_checkable

import aiofiles

from .constants import DEFAULT_SETTINGS, MODULE_NAME
from .logging_utils import get_module_logger

logger = get_module_logger("SettingsStore")


@runtime_checkable
class SettingsStore(Protocol):
    """Contract the core depends on for persistence."""

    def read(self, key: str) -> Any:
        ...

    async def write(self, key: str, value: Any) -> bool:
        ...


class InMemorySettingsStore:
    """Dict-backed store for embedding and tests."""

    def __init__(
        self,
        initial: Optional[Mapping[str, Any]] = None,
        *,
        defaults: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self._defaults: Dict[str, Any] = dict(DEFAULT_SETTINGS if defaults is None else defaults)
        self._values: Dict[str, Any] = copy.deepcopy(dict(initial or {}))

    def read(self, key: str) -> Any:
        if key in self._values:
            return copy.deepcopy(self._values[key])
        return copy.deepcopy(self._defaults.get(key))

    async def write(self, key: str, value: Any) -> bool:
        self._values[key] = copy.deepcopy(value)
        return True

    def snapshot(self) -> Dict[str, Any]:
        return copy.deepcopy(self._values)


class JsonSettingsStore:
    """Store persisted as one JSON document keyed by namespace.

    The file is loaded once at construction; writes go to a sibling temp file
    which then replaces the target, so readers never observe a partial
    document.
    """

    def __init__(
        self,
        path: Union[str, Path],
        *,
        namespace: str = MODULE_NAME,
        defaults: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self._path = Path(path)
        self._namespace = namespace
        self._defaults: Dict[str, Any] = dict(DEFAULT_SETTINGS if defaults is None else defaults)
        self._document: Dict[str, Any] = {}
        self._write_lock = asyncio.Lock()
        self.reload()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def namespace(self) -> str:
        return self._namespace

    def _values(self) -> Dict[str, Any]:
        return self._document.setdefault(self._namespace, {})

    def reload(self) -> Dict[str, Any]:
        """Re-read the backing file, keeping an empty namespace on failure."""
        self._document = {}
        if not self._path.exists():
            logger.debug("No settings file at %s, using defaults", self._path)
            return {}

        try:
            with open(self._path, "r", encoding="utf-8") as fh:
                loaded = json.load(fh)
        except (OSError, ValueError) as exc:
            logger.error("Failed to read settings %s: %s", self._path, exc)
            return {}

        if not isinstance(loaded, dict):
            logger.warning("Settings file %s is not a JSON object, ignoring", self._path)
            return {}

        self._document = loaded
        scoped = self._values()
        if not isinstance(scoped, dict):
            logger.warning("Namespace %s in %s is not an object, ignoring", self._namespace, self._path)
            self._document[self._namespace] = {}
            return {}
        return copy.deepcopy(scoped)

    def read(self, key: str) -> Any:
        values = self._values()
        if key in values:
            return copy.deepcopy(values[key])
        return copy.deepcopy(self._defaults.get(key))

    async def write(self, key: str, value: Any) -> bool:
        async with self._write_lock:
            document = copy.deepcopy(self._document)
            document.setdefault(self._namespace, {})[key] = copy.deepcopy(value)

            try:
                payload = json.dumps(document, indent=2, sort_keys=True)
            except (TypeError, ValueError) as exc:
                logger.error("PERSIST FAILED: %s is not serializable: %s", key, exc)
                return False

            tmp_path = self._path.with_name(f"{self._path.name}.tmp")
            try:
                await asyncio.to_thread(self._path.parent.mkdir, parents=True, exist_ok=True)
                async with aiofiles.open(tmp_path, "w", encoding="utf-8") as fh:
                    await fh.write(payload)
                    await fh.flush()
                await asyncio.to_thread(os.replace, tmp_path, self._path)
            except OSError as exc:
                logger.error("PERSIST FAILED: %s -> %s: %s", key, self._path, exc)
                return False

            self._document = document
            logger.debug("PERSIST: %s", key)
            return True


__all__ = ["SettingsStore", "InMemorySettingsStore", "JsonSettingsStore"]
