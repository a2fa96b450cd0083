"""Playback of recorded event logs."""

from .consumer import EventConsumer, LoggingConsumer
from .registry import DeviceRegistry, REPLAY_DRIVER
from .scheduler import (
    PlaybackScheduler,
    PlaybackState,
    PlaybackStats,
    install_playback,
)

__all__ = [
    # Consumer interface
    "EventConsumer",
    "LoggingConsumer",
    # Devices
    "DeviceRegistry",
    "REPLAY_DRIVER",
    # Scheduler
    "PlaybackScheduler",
    "PlaybackState",
    "PlaybackStats",
    "install_playback",
]
