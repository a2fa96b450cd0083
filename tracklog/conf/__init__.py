"""Configuration for recording and playback."""

from .settings import Settings, settings

__all__ = ["Settings", "settings"]
