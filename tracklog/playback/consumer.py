"""Event-consumer interface fed by playback and by the live pipeline."""

import logging

from tracklog.schemas.events import (
    AngleEvent,
    ExternalPoseEvent,
    ExternalVelocityEvent,
    ImuEvent,
    InfoEvent,
    LightCapEvent,
    LightCodeEvent,
    LighthousePoseEvent,
    PoseEvent,
    SweepAngleEvent,
    SweepEvent,
    SyncEvent,
    VelocityEvent,
)
from tracklog.schemas.session import Device
from tracklog.utils.logging_utils import get_logger

logger = get_logger(__name__)


class EventConsumer:
    """Callbacks a tracking pipeline exposes to an event source.

    Every callback is a no-op here; pipelines override the ones they use.
    Device-scoped callbacks receive the device handle resolved by name.
    """

    def ingest_config(self, device: Device, config_text: str) -> bool:
        """Accept or reject a device configuration blob.

        Returns:
            True if the device can be tracked with this configuration
        """
        return True

    def add_device(self, device: Device) -> None:
        pass

    def on_lighthouse_pose(self, event: LighthousePoseEvent) -> None:
        pass

    def on_velocity(self, device: Device, event: VelocityEvent) -> None:
        pass

    def on_pose(self, device: Device, event: PoseEvent) -> None:
        pass

    def on_external_pose(self, event: ExternalPoseEvent) -> None:
        pass

    def on_external_velocity(self, event: ExternalVelocityEvent) -> None:
        pass

    def on_info(self, event: InfoEvent) -> None:
        pass

    def on_sync(self, device: Device, event: SyncEvent) -> None:
        pass

    def on_sweep(self, device: Device, event: SweepEvent) -> None:
        pass

    def on_sweep_angle(self, device: Device, event: SweepAngleEvent) -> None:
        pass

    def on_angle(self, device: Device, event: AngleEvent) -> None:
        pass

    def on_light_cap(self, device: Device, event: LightCapEvent) -> None:
        pass

    def on_light_code(self, device: Device, event: LightCodeEvent) -> None:
        pass

    def on_imu(self, device: Device, event: ImuEvent) -> None:
        pass


class LoggingConsumer(EventConsumer):
    """Accepts every device and logs each event it receives."""

    def __init__(self, level: str = "INFO"):
        number = logging.getLevelName(level.upper())
        self.level = number if isinstance(number, int) else logging.INFO
        self.event_count = 0

    def _log(self, message: str) -> None:
        self.event_count += 1
        logger.log(self.level, message)

    def ingest_config(self, device: Device, config_text: str) -> bool:
        device.config_text = config_text
        return True

    def add_device(self, device: Device) -> None:
        logger.info(f"Replaying device {device.name} ({len(device.config_text or '')} config bytes)")

    def on_lighthouse_pose(self, event):
        self._log(f"beacon {event.beacon_id} pose {event.pose.position}")

    def on_velocity(self, device, event):
        self._log(f"{device.name} velocity {event.velocity.position}")

    def on_pose(self, device, event):
        self._log(f"{device.name} pose {event.pose.position}")

    def on_external_pose(self, event):
        self._log(f"{event.name} external pose {event.pose.position}")

    def on_external_velocity(self, event):
        self._log(f"{event.name} external velocity {event.velocity.position}")

    def on_info(self, event):
        self._log(f"info: {event.message}")

    def on_sync(self, device, event):
        self._log(f"{device.name} sync ch={event.channel} tc={event.timecode}")

    def on_sweep(self, device, event):
        self._log(f"{device.name} sweep ch={event.channel} sensor={event.sensor_id}")

    def on_sweep_angle(self, device, event):
        self._log(f"{device.name} sweep angle sensor={event.sensor_id} angle={event.angle:.6f}")

    def on_angle(self, device, event):
        self._log(f"{device.name} angle sensor={event.sensor_id} angle={event.angle:.6f}")

    def on_light_cap(self, device, event):
        self._log(f"{device.name} lightcap sensor={event.sensor_id} len={event.length}")

    def on_light_code(self, device, event):
        self._log(f"{device.name} light {event.beacon_label}{event.axis_label} sensor={event.sensor_id}")

    def on_imu(self, device, event):
        kind = "imu" if event.calibrated else "raw imu"
        self._log(f"{device.name} {kind} tc={event.timecode}")
