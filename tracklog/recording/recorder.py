"""Recording of live tracking events to a log file and/or an echo stream."""

import sys
from pathlib import Path
from typing import IO, Callable, Optional, Tuple

from tracklog.conf.settings import Settings, settings as default_settings
from tracklog.errors import StreamError
from tracklog.playback.consumer import EventConsumer
from tracklog.protocol.codec import encode
from tracklog.schemas.events import AngleEvent, ConfigEvent, Event, ImuEvent, LightCapEvent, LightCodeEvent
from tracklog.schemas.session import CategoryMask, Device
from tracklog.utils.io_utils import is_compressed_path, open_log_sink
from tracklog.utils.logging_utils import get_logger
from tracklog.utils.time_utils import process_clock

logger = get_logger(__name__)


class Recorder(EventConsumer):
    """Timestamps, filters and encodes events into zero, one or two sinks.

    With no sink configured ``on_event`` returns immediately, so a pipeline
    can call it unconditionally. When both sinks exist they receive the same
    encoded line, keeping a capture file and its console trace identical.

    A recorder is also an ``EventConsumer``: a playback session can drive it
    directly to re-record a capture with a different category mask.
    """

    def __init__(
        self,
        category_mask: Optional[CategoryMask] = None,
        file_sink: Optional[IO[str]] = None,
        echo_sink: Optional[IO[str]] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.clock = clock or process_clock
        self.lines_written = 0
        self.events_filtered = 0
        self.category_mask = CategoryMask()
        self.file_sink: Optional[IO[str]] = None
        self.echo_sink: Optional[IO[str]] = None
        self._sinks: Tuple[IO[str], ...] = ()
        self.configure(category_mask, file_sink, echo_sink)

    @classmethod
    def open(
        cls,
        path: str | Path,
        echo: bool = False,
        category_mask: Optional[CategoryMask] = None,
        clock: Optional[Callable[[], float]] = None,
    ) -> "Recorder":
        """Create a recorder writing to a file (gzip when the path ends in .gz).

        Raises:
            StreamError: If the file cannot be opened
        """
        file_sink = open_log_sink(path)
        logger.info(f"Recording to '{path}' Compression: {is_compressed_path(path)}")
        return cls(
            category_mask=category_mask,
            file_sink=file_sink,
            echo_sink=sys.stdout if echo else None,
            clock=clock,
        )

    @property
    def enabled(self) -> bool:
        return bool(self._sinks)

    def configure(
        self,
        category_mask: Optional[CategoryMask] = None,
        file_sink: Optional[IO[str]] = None,
        echo_sink: Optional[IO[str]] = None,
    ) -> None:
        """Replace the category mask and sinks.

        A file sink that is being replaced is closed first.
        """
        if self.file_sink is not None and self.file_sink is not file_sink:
            self.file_sink.close()

        self.category_mask = category_mask or CategoryMask()
        self.file_sink = file_sink
        self.echo_sink = echo_sink
        self._sinks = tuple(s for s in (file_sink, echo_sink) if s is not None)

    def accepts(self, event: Event) -> bool:
        """Whether the category mask lets this event through."""
        mask = self.category_mask
        if isinstance(event, LightCapEvent):
            return mask.raw_light
        if isinstance(event, ImuEvent):
            return mask.imu_cal if event.calibrated else mask.imu_raw
        if isinstance(event, (AngleEvent, LightCodeEvent)):
            return mask.angle
        return True

    def on_event(self, event: Event) -> None:
        """Record one live event."""
        sinks = self._sinks
        if not sinks:
            return

        if not self.accepts(event):
            self.events_filtered += 1
            return

        line = encode(event, self.clock())
        try:
            for sink in sinks:
                sink.write(line)
        except (OSError, ValueError) as e:
            logger.error(f"Recording stopped, write failed: {e}")
            self.close()
            return

        self.lines_written += 1

    def close(self) -> None:
        """Flush and release the sinks. Safe to call more than once.

        The file sink is closed; the echo sink is only flushed since it is
        usually stdout.
        """
        file_sink, echo_sink = self.file_sink, self.echo_sink
        self.file_sink = None
        self.echo_sink = None
        self._sinks = ()

        try:
            if echo_sink is not None:
                echo_sink.flush()
        finally:
            if file_sink is not None:
                file_sink.close()

    def __enter__(self) -> "Recorder":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # EventConsumer callbacks

    def ingest_config(self, device: Device, config_text: str) -> bool:
        self.on_event(ConfigEvent(device=device.name, config_text=config_text))
        return True

    def on_lighthouse_pose(self, event):
        self.on_event(event)

    def on_velocity(self, device, event):
        self.on_event(event)

    def on_pose(self, device, event):
        self.on_event(event)

    def on_external_pose(self, event):
        self.on_event(event)

    def on_external_velocity(self, event):
        self.on_event(event)

    def on_info(self, event):
        self.on_event(event)

    def on_sync(self, device, event):
        self.on_event(event)

    def on_sweep(self, device, event):
        self.on_event(event)

    def on_sweep_angle(self, device, event):
        self.on_event(event)

    def on_angle(self, device, event):
        self.on_event(event)

    def on_light_cap(self, device, event):
        self.on_event(event)

    def on_light_code(self, device, event):
        self.on_event(event)

    def on_imu(self, device, event):
        self.on_event(event)


def category_mask_from_settings(config: Settings) -> CategoryMask:
    return CategoryMask(
        raw_light=config.record_rawlight,
        imu_raw=config.record_imu,
        imu_cal=config.record_cal_imu,
        angle=config.record_angle,
    )


def install_recording(
    config: Optional[Settings] = None,
    echo_sink: Optional[IO[str]] = None,
    clock: Optional[Callable[[], float]] = None,
) -> Optional[Recorder]:
    """Create the recorder a host should feed, if recording is configured.

    Recording is enabled by a ``record`` path, ``record_stdout``, or both. If
    the file cannot be opened no recorder is installed at all.

    Args:
        config: Settings (defaults to the global settings)
        echo_sink: Stream for the live echo (defaults to stdout)
        clock: Timestamp clock (defaults to the process clock)

    Returns:
        Recorder, or None when recording is disabled or failed to start
    """
    config = config or default_settings

    if not config.record and not config.record_stdout:
        return None

    file_sink = None
    if config.record:
        try:
            file_sink = open_log_sink(config.record)
        except StreamError as e:
            logger.error(str(e))
            return None
        logger.info(f"Recording to '{config.record}' Compression: {is_compressed_path(config.record)}")

    echo = None
    if config.record_stdout:
        echo = echo_sink or sys.stdout
        logger.info("Recording to stdout")

    return Recorder(
        category_mask=category_mask_from_settings(config),
        file_sink=file_sink,
        echo_sink=echo,
        clock=clock,
    )
