"""Component-tagged loggers for Marking Time."""

from __future__ import annotations

import logging
from typing import Optional

MODULE_LOGGER_NAMESPACE = "marking_time"


class StructuredLogger:
    """Prefixes each message with ``[Component]`` before handing it to ``logging``.

    Badly matched format arguments are appended to the message instead of
    raising, so a logging slip never interrupts a session action.
    """

    __slots__ = ("_logger", "_component")

    def __init__(self, logger: logging.Logger, component: str) -> None:
        self._logger = logger
        self._component = component

    @property
    def name(self) -> str:
        return self._logger.name

    @property
    def component(self) -> str:
        return self._component

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    def _compose(self, message: object, args: tuple) -> str:
        text = str(message)
        if args:
            try:
                text = text % args
            except (TypeError, ValueError):
                text = f"{text} | args={' '.join(str(arg) for arg in args)}"
        return f"[{self._component}] {text}"

    def log(self, level: int, message: object, *args, **kwargs) -> None:
        self._logger.log(level, self._compose(message, args), **kwargs)

    def debug(self, message: object, *args, **kwargs) -> None:
        self.log(logging.DEBUG, message, *args, **kwargs)

    def info(self, message: object, *args, **kwargs) -> None:
        self.log(logging.INFO, message, *args, **kwargs)

    def warning(self, message: object, *args, **kwargs) -> None:
        self.log(logging.WARNING, message, *args, **kwargs)

    def error(self, message: object, *args, **kwargs) -> None:
        self.log(logging.ERROR, message, *args, **kwargs)

    def exception(self, message: object, *args, **kwargs) -> None:
        kwargs.setdefault("exc_info", True)
        self.log(logging.ERROR, message, *args, **kwargs)


def get_module_logger(component: Optional[str] = None) -> StructuredLogger:
    """Logger named ``marking_time.<component>`` tagging its output with the component."""
    component = component or "Core"
    return StructuredLogger(logging.getLogger(f"{MODULE_LOGGER_NAMESPACE}.{component}"), component)


__all__ = ["StructuredLogger", "get_module_logger"]
