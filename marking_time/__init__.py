"""Marking Time - session timestamps for syncing tabletop recordings with a video editor."""

__version__ = "0.3.0"

__all__ = ["__version__"]
