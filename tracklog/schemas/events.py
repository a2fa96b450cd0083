"""Tracking event schemas.

Each event kind maps to exactly one protocol line. Models are frozen so a
decoded event can be shared between consumers without copying.
"""

from typing import Annotated, Literal, Tuple, Union
from pydantic import BaseModel, ConfigDict, Field

Vec3 = Tuple[float, float, float]
Quat = Tuple[float, float, float, float]
Imu9 = Tuple[float, float, float, float, float, float, float, float, float]


class Pose(BaseModel):
    """Rigid pose: position plus rotation quaternion (w, x, y, z)."""

    model_config = ConfigDict(frozen=True)

    position: Vec3 = Field((0.0, 0.0, 0.0), description="Position (meters)")
    rotation: Quat = Field((1.0, 0.0, 0.0, 0.0), description="Rotation quaternion")


class Velocity(BaseModel):
    """Linear velocity plus angular velocity as an axis-angle vector."""

    model_config = ConfigDict(frozen=True)

    position: Vec3 = Field((0.0, 0.0, 0.0), description="Linear velocity (m/s)")
    axis_angle: Vec3 = Field((0.0, 0.0, 0.0), description="Angular velocity (rad/s)")


class _Event(BaseModel):
    model_config = ConfigDict(frozen=True)


class ConfigEvent(_Event):
    """Opaque device configuration blob."""

    kind: Literal["config"] = "config"
    device: str = Field(..., description="Device codename")
    config_text: str = Field("", description="Raw configuration text")


class LighthousePoseEvent(_Event):
    """Solved pose of a beacon (base station)."""

    kind: Literal["lighthouse_pose"] = "lighthouse_pose"
    beacon_id: int = Field(..., ge=0)
    pose: Pose


class VelocityEvent(_Event):
    kind: Literal["velocity"] = "velocity"
    device: str
    velocity: Velocity


class PoseEvent(_Event):
    kind: Literal["pose"] = "pose"
    device: str
    pose: Pose


class ExternalPoseEvent(_Event):
    """Pose supplied from outside the solver, keyed by name."""

    kind: Literal["external_pose"] = "external_pose"
    name: str
    pose: Pose


class ExternalVelocityEvent(_Event):
    kind: Literal["external_velocity"] = "external_velocity"
    name: str
    velocity: Velocity


class InfoEvent(_Event):
    """Free-text diagnostic message."""

    kind: Literal["info"] = "info"
    message: str = ""


class SyncEvent(_Event):
    """Sync pulse seen by a device."""

    kind: Literal["sync"] = "sync"
    device: str
    channel: int = Field(..., ge=0)
    timecode: int = Field(..., ge=0)
    ootx: bool = False
    gen: bool = False


class SweepEvent(_Event):
    kind: Literal["sweep"] = "sweep"
    device: str
    channel: int = Field(..., ge=0)
    sensor_id: int
    timecode: int = Field(..., ge=0)
    flag: bool = False


class SweepAngleEvent(_Event):
    kind: Literal["sweep_angle"] = "sweep_angle"
    device: str
    channel: int = Field(..., ge=0)
    sensor_id: int
    timecode: int = Field(..., ge=0)
    plane: int
    angle: float


class AngleEvent(_Event):
    """Derived per-sensor incidence angle."""

    kind: Literal["angle"] = "angle"
    device: str
    sensor_id: int
    axis_code: int
    timecode: int = Field(..., ge=0)
    length: float
    angle: float
    beacon_id: int = Field(..., ge=0)


class LightCapEvent(_Event):
    """Raw optical pulse sample prior to angle derivation."""

    kind: Literal["light_cap"] = "light_cap"
    device: str
    sensor_id: int = Field(..., ge=0)
    timestamp: int = Field(..., ge=0, description="Device-local pulse start")
    length: int = Field(..., ge=0, description="Pulse length in ticks")


class LightCodeEvent(_Event):
    """Legacy decoded light pulse.

    ``beacon_label``/``axis_label`` are derived from ``axis_code`` when
    encoding; they are carried on the event so a decoded line can be
    re-encoded verbatim.
    """

    kind: Literal["light_code"] = "light_code"
    device: str
    beacon_label: str = ""
    axis_label: str = ""
    sensor_id: int
    axis_code: int
    time_in_sweep: int
    timecode: int = Field(..., ge=0)
    length: int = Field(..., ge=0)
    beacon_id: int = Field(..., ge=0)


class ImuEvent(_Event):
    """Accelerometer, gyro and magnetometer sample (calibrated or raw)."""

    kind: Literal["imu"] = "imu"
    device: str
    calibrated: bool = False
    mask: int = 0
    values: Imu9 = Field((0.0,) * 9, description="accel xyz, gyro xyz, mag xyz")
    timecode: int = Field(..., ge=0)
    imu_id: int = 0


Event = Annotated[
    Union[
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
    ],
    Field(discriminator="kind"),
]
