"""Event and session schemas for recording and playback."""

from .events import (
    Pose,
    Velocity,
    Event,
    ConfigEvent,
    LighthousePoseEvent,
    VelocityEvent,
    PoseEvent,
    ExternalPoseEvent,
    ExternalVelocityEvent,
    InfoEvent,
    SyncEvent,
    SweepEvent,
    SweepAngleEvent,
    AngleEvent,
    LightCapEvent,
    LightCodeEvent,
    ImuEvent,
)
from .session import CategoryMask, Device, LogRecord

__all__ = [
    # Geometry
    "Pose",
    "Velocity",
    # Events
    "Event",
    "ConfigEvent",
    "LighthousePoseEvent",
    "VelocityEvent",
    "PoseEvent",
    "ExternalPoseEvent",
    "ExternalVelocityEvent",
    "InfoEvent",
    "SyncEvent",
    "SweepEvent",
    "SweepAngleEvent",
    "AngleEvent",
    "LightCapEvent",
    "LightCodeEvent",
    "ImuEvent",
    # Sessions
    "CategoryMask",
    "Device",
    "LogRecord",
]
