"""Recording and playback session schemas."""

from dataclasses import dataclass
from typing import Optional
from pydantic import BaseModel, Field

from .events import Event


class CategoryMask(BaseModel):
    """Per-category enables for the high-rate event kinds.

    Every other event kind is always recorded while a sink exists.
    """

    raw_light: bool = Field(True, description="Record raw lightcap samples (C)")
    imu_raw: bool = Field(True, description="Record raw IMU samples (i)")
    imu_cal: bool = Field(False, description="Record calibrated IMU samples (I)")
    angle: bool = Field(True, description="Record angle and legacy light code lines")

    class Config:
        json_schema_extra = {
            "example": {
                "raw_light": True,
                "imu_raw": True,
                "imu_cal": False,
                "angle": True,
            }
        }


@dataclass
class Device:
    """Handle for a tracked device known to the playback session."""

    name: str
    driver: str = "replay"
    config_text: Optional[str] = None


@dataclass
class LogRecord:
    """A decoded log line: record timestamp plus event."""

    timestamp: float
    event: Event
