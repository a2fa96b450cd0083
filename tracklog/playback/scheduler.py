"""Poll-driven playback of a recorded event log.

The scheduler is cooperative: the host calls ``poll()`` on every tick of its
own loop, and each call consumes at most one line. A line's timestamp is read
first and held as pending until ``timestamp * rate_factor`` has elapsed on the
playback clock, so a not-yet-due line never blocks the host and the log is
consumed with one line of lookahead.
"""

import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import IO, Callable, Dict, Optional, Set, Tuple

from tracklog.conf.settings import Settings, settings as default_settings
from tracklog.errors import (
    ConfigIngestFailure,
    DecodeError,
    EndOfStream,
    MalformedRecord,
    SourceUnavailable,
    StreamError,
    UnknownDevice,
    UnrecognizedOpcode,
)
from tracklog.ingestion.reader import DelimitedReader, strip_line
from tracklog.protocol.codec import (
    CONFIG,
    LIGHT_CAP,
    LIGHT_CODE_OPCODES,
    POSE,
    REPLAY_IGNORED_OPCODES,
    decode,
    split_head,
)
from tracklog.schemas.events import (
    AngleEvent,
    ConfigEvent,
    Event,
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
from tracklog.utils.io_utils import open_log_source
from tracklog.utils.logging_utils import get_logger
from tracklog.utils.time_utils import ElapsedClock, parse_elapsed
from .consumer import EventConsumer
from .registry import REPLAY_DRIVER, DeviceRegistry

logger = get_logger(__name__)

REPLAYED_POSE_PREFIX = "replay_"

# event type -> (consumer callback, resolves a device)
_HANDLERS: Dict[type, Tuple[str, bool]] = {
    LighthousePoseEvent: ("on_lighthouse_pose", False),
    VelocityEvent: ("on_velocity", True),
    ExternalPoseEvent: ("on_external_pose", False),
    ExternalVelocityEvent: ("on_external_velocity", False),
    InfoEvent: ("on_info", False),
    SyncEvent: ("on_sync", True),
    SweepEvent: ("on_sweep", True),
    SweepAngleEvent: ("on_sweep_angle", True),
    AngleEvent: ("on_angle", True),
    LightCapEvent: ("on_light_cap", True),
    LightCodeEvent: ("on_light_code", True),
    ImuEvent: ("on_imu", True),
}


class PlaybackState(str, Enum):
    """Lifecycle of a playback session."""

    IDLE = "idle"
    PRESCANNING = "prescanning"
    ARMED = "armed"
    DISPATCHING = "dispatching"
    EXHAUSTED = "exhausted"  # End of stream or stream error
    CLOSED = "closed"  # Closed by the host


TERMINAL_STATES = frozenset({PlaybackState.EXHAUSTED, PlaybackState.CLOSED})


@dataclass
class PlaybackStats:
    """Counters for one playback session."""

    devices_registered: int = 0
    devices_rejected: int = 0
    lines_read: int = 0
    events_dispatched: int = 0
    lines_ignored: int = 0
    decode_errors: int = 0
    unknown_device_lines: int = 0


class PlaybackScheduler:
    """Replays a recorded log into an event consumer."""

    def __init__(
        self,
        stream: IO[bytes],
        consumer: EventConsumer,
        rate_factor: Optional[float] = None,
        replay_pose: Optional[bool] = None,
        clock: Optional[Callable[[], float]] = None,
        prescan_horizon_sec: Optional[float] = None,
        grow_by: Optional[int] = None,
        source_name: str = "<stream>",
        config: Optional[Settings] = None,
    ):
        """Initialize scheduler over an already-open binary stream.

        Args:
            stream: Seekable binary stream positioned at the start of the log
            consumer: Receives ingested configs and replayed events
            rate_factor: Recorded-time multiplier (0 = as fast as polled)
            replay_pose: Replay recorded POSE lines as external poses
            clock: Elapsed playback seconds (defaults to a clock started on first poll)
            prescan_horizon_sec: Recorded time after which pre-scan stops
            grow_by: Reader buffer growth increment
            source_name: Name used in log messages
            config: Settings supplying any omitted option
        """
        config = config or default_settings

        self.reader = DelimitedReader(stream, grow_by or config.reader_grow_by)
        self.consumer = consumer
        self.rate_factor = config.playback_factor if rate_factor is None else rate_factor
        self.replay_pose = config.playback_replay_pose if replay_pose is None else replay_pose
        self.clock = clock or ElapsedClock()
        self.prescan_horizon_sec = (
            config.prescan_horizon_sec if prescan_horizon_sec is None else prescan_horizon_sec
        )
        self.poll_interval_sec = config.poll_interval_sec
        self.source_name = source_name

        self.state = PlaybackState.IDLE
        self.pending_timestamp: Optional[float] = None
        self.line_no = 0
        self.registry = DeviceRegistry()
        self.raw_light_seen = False
        self.warned_missing: Set[str] = set()
        self.stats = PlaybackStats()

    @classmethod
    def open(
        cls,
        path: str | Path,
        consumer: EventConsumer,
        **kwargs,
    ) -> "PlaybackScheduler":
        """Open a recorded log and run its pre-scan.

        Args:
            path: Plain or gzip-compressed log file
            consumer: Receives ingested configs and replayed events
            **kwargs: Passed to the constructor

        Returns:
            Armed scheduler

        Raises:
            SourceUnavailable: If the log cannot be opened or rewound
        """
        stream = open_log_source(path)
        scheduler = cls(stream, consumer, source_name=str(path), **kwargs)

        try:
            scheduler.start()
        except StreamError as e:
            scheduler.close()
            raise SourceUnavailable(f"Could not prepare playback of {path}: {e}") from e
        except Exception:
            scheduler.close()
            raise

        logger.info(
            f"Using playback file '{path}' with timefactor of {scheduler.rate_factor:f}"
        )
        return scheduler

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def finished(self) -> bool:
        return self.state in TERMINAL_STATES

    def start(self) -> None:
        """Pre-scan device declarations and arm the scheduler."""
        if self.state != PlaybackState.IDLE:
            return
        self.prescan()
        self.state = PlaybackState.ARMED

    def prescan(self) -> int:
        """Register devices declared by CONFIG lines near the start of the log.

        Scanning stops at the first line whose timestamp exceeds the horizon
        or does not parse, so huge captures are not read twice. The stream is
        rewound afterwards.

        Returns:
            Number of devices registered

        Raises:
            StreamError: If the stream cannot be rewound
        """
        self.state = PlaybackState.PRESCANNING
        registered = 0

        while True:
            try:
                record = self.reader.read_line()
            except EndOfStream:
                break
            except StreamError as e:
                logger.error(f"Stream error while pre-scanning {self.source_name}: {e}")
                break

            line = strip_line(record)
            if not line.strip():
                continue

            head, _, payload = line.lstrip().partition(" ")
            try:
                timestamp = parse_elapsed(head)
            except ValueError:
                logger.warning(f"Pre-scan stopped at line without a timestamp: '{line}'")
                break

            if timestamp > self.prescan_horizon_sec:
                break

            try:
                _, opcode = split_head(payload)
                if opcode != CONFIG:
                    continue
                event = decode(payload)
            except DecodeError as e:
                logger.warning(f"Skipping undecodable line during pre-scan: {e}")
                continue

            if self._register_device(event):
                registered += 1

        self.reader.rewind()
        logger.info(f"Pre-scan of {self.source_name} registered {registered} device(s)")
        return registered

    def _register_device(self, event: ConfigEvent) -> bool:
        name = event.device
        known = name in self.registry
        device = self.registry.get_or_create(name, driver=REPLAY_DRIVER)

        try:
            accepted = self.consumer.ingest_config(device, event.config_text)
            if not accepted:
                raise ConfigIngestFailure(f"configuration for {name} was rejected")
        except ConfigIngestFailure as e:
            logger.warning(
                f"Found {name} in playback file, but could not read config description ({e})"
            )
            self.stats.devices_rejected += 1
            if not known:
                self.registry.remove(name)
            return False

        device.config_text = event.config_text
        if known:
            return False

        self.consumer.add_device(device)
        self.stats.devices_registered += 1
        logger.info(f"Found {name} in playback file...")
        return True

    def close(self) -> None:
        """Release the stream. Safe to call at any time, more than once."""
        if not self.finished:
            self.state = PlaybackState.CLOSED
        self.reader.close()
        self.pending_timestamp = None

    def _finish(self, reason: str) -> None:
        logger.info(f"Playback of {self.source_name} finished after {self.line_no} lines ({reason})")
        self.reader.close()
        self.pending_timestamp = None
        self.state = PlaybackState.EXHAUSTED

    def __enter__(self) -> "PlaybackScheduler":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------

    def poll(self) -> bool:
        """Advance playback by at most one line.

        Returns:
            True if a line was consumed (dispatched or skipped), False if the
            next line is not yet due or playback has ended
        """
        if self.finished:
            return False
        if self.state == PlaybackState.IDLE:
            self.start()

        if self.pending_timestamp is None:
            try:
                token = self.reader.read_until(b" ")
                # Leading blanks and empty lines
                while not token.strip():
                    token = self.reader.read_until(b" ")
            except EndOfStream:
                self._finish("end of stream")
                return False
            except StreamError as e:
                self._finish(f"stream error: {e}")
                return False

            try:
                self.pending_timestamp = parse_elapsed(token)
            except ValueError:
                self._finish(f"unreadable timestamp {token!r}")
                return False

        if self.rate_factor > 0 and self.pending_timestamp * self.rate_factor > self.clock():
            return False

        self.pending_timestamp = None

        try:
            record = self.reader.read_line()
        except EndOfStream:
            self._finish("end of stream")
            return False
        except StreamError as e:
            self._finish(f"stream error: {e}")
            return False

        self.line_no += 1
        self.stats.lines_read += 1
        self.state = PlaybackState.DISPATCHING
        try:
            self._dispatch(strip_line(record))
        finally:
            if self.state == PlaybackState.DISPATCHING:
                self.state = PlaybackState.ARMED
        return True

    def drain(self) -> int:
        """Poll until nothing more is due.

        Returns:
            Number of lines consumed
        """
        count = 0
        while self.poll():
            count += 1
        return count

    def run(self) -> int:
        """Replay to the end of the log, sleeping between drains.

        Returns:
            Number of lines consumed
        """
        if self.state == PlaybackState.IDLE:
            self.start()

        count = 0
        while not self.finished:
            consumed = self.drain()
            count += consumed
            if not consumed and not self.finished:
                time.sleep(self.poll_interval_sec)
        return count

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _dispatch(self, line: str) -> None:
        try:
            _, opcode = split_head(line)
        except MalformedRecord:
            logger.warning(f"On line {self.line_no}, could not read device and op: '{line}'")
            self.stats.decode_errors += 1
            return

        if opcode == CONFIG or opcode in REPLAY_IGNORED_OPCODES:
            self.stats.lines_ignored += 1
            return

        if opcode == LIGHT_CAP:
            self.raw_light_seen = True
        elif opcode in LIGHT_CODE_OPCODES and self.raw_light_seen:
            self.stats.lines_ignored += 1
            return

        if opcode == POSE and not self.replay_pose:
            self.stats.lines_ignored += 1
            return

        try:
            event = decode(line)
        except UnrecognizedOpcode:
            logger.warning(f"Playback doesn't understand '{opcode}' op in '{line}'")
            self.stats.decode_errors += 1
            return
        except DecodeError as e:
            logger.warning(f"On line {self.line_no}, {e}: '{line}'")
            self.stats.decode_errors += 1
            return

        if event is None:
            self.stats.lines_ignored += 1
            return

        try:
            self._deliver(event)
        except UnknownDevice as e:
            self.stats.unknown_device_lines += 1
            if e.name not in self.warned_missing:
                self.warned_missing.add(e.name)
                logger.warning(str(e))
            return

        self.stats.events_dispatched += 1

    def _resolve(self, name: str) -> Device:
        device = self.registry.get(name)
        if device is None:
            raise UnknownDevice(name, self.line_no)
        return device

    def _deliver(self, event: Event) -> None:
        if isinstance(event, PoseEvent):
            replayed = ExternalPoseEvent(name=f"{REPLAYED_POSE_PREFIX}{event.device}", pose=event.pose)
            self.consumer.on_external_pose(replayed)
            return

        callback_name, scoped = _HANDLERS[type(event)]
        callback = getattr(self.consumer, callback_name)
        if scoped:
            callback(self._resolve(event.device), event)
        else:
            callback(event)


def install_playback(
    consumer: EventConsumer,
    config: Optional[Settings] = None,
    clock: Optional[Callable[[], float]] = None,
) -> Optional[PlaybackScheduler]:
    """Open the configured playback source for a host.

    Failures are reported and return None; they never propagate to the host.

    Args:
        consumer: Pipeline receiving replayed events
        config: Settings (defaults to the global settings)
        clock: Optional playback clock

    Returns:
        Armed scheduler, or None if playback is not possible
    """
    config = config or default_settings

    if not config.playback:
        logger.warning("The playback argument requires a filename")
        return None

    try:
        return PlaybackScheduler.open(config.playback, consumer, clock=clock, config=config)
    except SourceUnavailable as e:
        logger.error(str(e))
        return None
