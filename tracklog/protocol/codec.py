"""Line protocol: encode events to log lines and decode them back.

Grammar (whitespace-delimited, newline-terminated)::

    <elapsed_seconds> <device_or_name> <OPCODE> <args...>

Floats are written with six decimals so values survive a round trip to that
precision. Config and info text are the only free-text fields; newlines in
them are replaced by spaces because the framing relies on newline-exclusivity.
"""

import re
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from tracklog.errors import MalformedRecord, UnrecognizedOpcode
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
    Pose,
    PoseEvent,
    SweepAngleEvent,
    SweepEvent,
    SyncEvent,
    Velocity,
    VelocityEvent,
)
from tracklog.schemas.session import LogRecord
from tracklog.utils.time_utils import parse_elapsed

# Opcodes
CONFIG = "CONFIG"
LH_POSE = "LH_POSE"
VELOCITY = "VELOCITY"
POSE = "POSE"
EXTERNAL_POSE = "EXTERNAL_POSE"
EXTERNAL_VELOCITY = "EXTERNAL_VELOCITY"
INFO = "LOG"
SYNC = "Y"
SWEEP = "W"
SWEEP_ANGLE = "B"
ANGLE = "A"
LIGHT_CAP = "C"
LIGHT_CODE_LEFT = "L"
LIGHT_CODE_RIGHT = "R"
LIGHT_CODE_SYNC = "S"
IMU_CALIBRATED = "I"
IMU_RAW = "i"

INFO_NAME = "INFO"

LIGHT_CODE_OPCODES = frozenset({LIGHT_CODE_LEFT, LIGHT_CODE_RIGHT, LIGHT_CODE_SYNC})

# Superseded forms that decode to nothing
LEGACY_IGNORED_OPCODES = frozenset({"V"})

# Opcodes skipped on replay
REPLAY_IGNORED_OPCODES = frozenset({ANGLE, "V"})

# axis code -> (beacon label, axis label)
LIGHT_CODE_LABELS: Dict[int, Tuple[str, str]] = {
    0: ("L", "X"),
    2: ("L", "X"),
    1: ("L", "Y"),
    3: ("L", "Y"),
    4: ("R", "X"),
    6: ("R", "X"),
    5: ("R", "Y"),
    7: ("R", "Y"),
}

_TEXT_AFTER_OPCODE = re.compile(r"\s*\S+\s+\S+ ?(.*)\Z", re.DOTALL)


def _f(value: float) -> str:
    return f"{value:0.6f}"


def _floats(values: Sequence[float]) -> str:
    return " ".join(_f(v) for v in values)


def _flag(value: bool) -> str:
    return "1" if value else "0"


def sanitize_text(text: str) -> str:
    """Replace line breaks so free text stays on one line."""
    return text.replace("\r", " ").replace("\n", " ")


def light_code_labels(axis_code: int) -> Tuple[str, str]:
    """Beacon/axis label pair for a light code axis code.

    Codes outside the table give empty labels.
    """
    if axis_code == -1:
        return LIGHT_CODE_SYNC, ""
    return LIGHT_CODE_LABELS.get(axis_code, ("", ""))


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


def _encode_pose(pose: Pose) -> str:
    return f"{_floats(pose.position)} {_floats(pose.rotation)}"


def _encode_velocity(velocity: Velocity) -> str:
    return f"{_floats(velocity.position)} {_floats(velocity.axis_angle)}"


def _encode_light_code(e: LightCodeEvent) -> str:
    beacon_label, axis_label = light_code_labels(e.axis_code)
    tail = f"{e.sensor_id} {e.axis_code} {e.time_in_sweep} {e.timecode} {e.length} {e.beacon_id}"
    if beacon_label == LIGHT_CODE_SYNC:
        return f"{e.device} {LIGHT_CODE_SYNC} {tail}"
    return f"{e.device} {beacon_label} {axis_label} {tail}"


def _encode_imu(e: ImuEvent) -> str:
    opcode = IMU_CALIBRATED if e.calibrated else IMU_RAW
    return f"{e.device} {opcode} {e.mask} {e.timecode} {_floats(e.values)} {e.imu_id}"


_ENCODERS: Dict[type, Callable[..., str]] = {
    ConfigEvent: lambda e: f"{e.device} {CONFIG} {sanitize_text(e.config_text)}",
    LighthousePoseEvent: lambda e: f"{e.beacon_id} {LH_POSE} {_encode_pose(e.pose)}",
    VelocityEvent: lambda e: f"{e.device} {VELOCITY} {_encode_velocity(e.velocity)}",
    PoseEvent: lambda e: f"{e.device} {POSE} {_encode_pose(e.pose)}",
    ExternalPoseEvent: lambda e: f"{e.name} {EXTERNAL_POSE} {_encode_pose(e.pose)}",
    ExternalVelocityEvent: lambda e: f"{e.name} {EXTERNAL_VELOCITY} {_encode_velocity(e.velocity)}",
    InfoEvent: lambda e: f"{INFO_NAME} {INFO} {sanitize_text(e.message)}",
    SyncEvent: lambda e: (
        f"{e.device} {SYNC} {e.channel} {e.timecode} {_flag(e.ootx)} {_flag(e.gen)}"
    ),
    SweepEvent: lambda e: (
        f"{e.device} {SWEEP} {e.channel} {e.sensor_id} {e.timecode} {_flag(e.flag)}"
    ),
    SweepAngleEvent: lambda e: (
        f"{e.device} {SWEEP_ANGLE} {e.channel} {e.sensor_id} {e.timecode} {e.plane} {_f(e.angle)}"
    ),
    AngleEvent: lambda e: (
        f"{e.device} {ANGLE} {e.sensor_id} {e.axis_code} {e.timecode} "
        f"{_f(e.length)} {_f(e.angle)} {e.beacon_id}"
    ),
    LightCapEvent: lambda e: f"{e.device} {LIGHT_CAP} {e.sensor_id} {e.timestamp} {e.length}",
    LightCodeEvent: _encode_light_code,
    ImuEvent: _encode_imu,
}


def encode_payload(event: Event) -> str:
    """Encode an event without its timestamp prefix or newline."""
    encoder = _ENCODERS.get(type(event))
    if encoder is None:
        raise TypeError(f"Cannot encode {type(event).__name__}")
    return encoder(event)


def encode(event: Event, elapsed_seconds: float) -> str:
    """Encode an event as one complete, newline-terminated log line.

    Args:
        event: Event to encode
        elapsed_seconds: Record timestamp

    Returns:
        Log line
    """
    return f"{_f(elapsed_seconds)} {encode_payload(event)}\n"


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def _expect(args: List[str], count: int, opcode: str) -> None:
    if len(args) != count:
        raise MalformedRecord(f"Only got {len(args)} values for '{opcode}', expected {count}")


def _parse_pose(args: List[str]) -> Pose:
    values = [float(v) for v in args]
    return Pose(position=tuple(values[0:3]), rotation=tuple(values[3:7]))


def _parse_velocity(args: List[str]) -> Velocity:
    values = [float(v) for v in args]
    return Velocity(position=tuple(values[0:3]), axis_angle=tuple(values[3:6]))


def _text_after_opcode(payload: str) -> str:
    match = _TEXT_AFTER_OPCODE.match(payload)
    return match.group(1) if match else ""


def _decode_config(name: str, args: List[str], payload: str) -> Event:
    return ConfigEvent(device=name, config_text=_text_after_opcode(payload))


def _decode_info(name: str, args: List[str], payload: str) -> Event:
    return InfoEvent(message=_text_after_opcode(payload))


def _decode_lighthouse_pose(name: str, args: List[str], payload: str) -> Event:
    _expect(args, 7, LH_POSE)
    return LighthousePoseEvent(beacon_id=int(name), pose=_parse_pose(args))


def _decode_velocity(name: str, args: List[str], payload: str) -> Event:
    _expect(args, 6, VELOCITY)
    return VelocityEvent(device=name, velocity=_parse_velocity(args))


def _decode_pose(name: str, args: List[str], payload: str) -> Event:
    _expect(args, 7, POSE)
    return PoseEvent(device=name, pose=_parse_pose(args))


def _decode_external_pose(name: str, args: List[str], payload: str) -> Event:
    _expect(args, 7, EXTERNAL_POSE)
    return ExternalPoseEvent(name=name, pose=_parse_pose(args))


def _decode_external_velocity(name: str, args: List[str], payload: str) -> Event:
    _expect(args, 6, EXTERNAL_VELOCITY)
    return ExternalVelocityEvent(name=name, velocity=_parse_velocity(args))


def _decode_sync(name: str, args: List[str], payload: str) -> Event:
    _expect(args, 4, SYNC)
    channel, timecode, ootx, gen = (int(v) for v in args)
    return SyncEvent(device=name, channel=channel, timecode=timecode, ootx=bool(ootx), gen=bool(gen))


def _decode_sweep(name: str, args: List[str], payload: str) -> Event:
    _expect(args, 4, SWEEP)
    channel, sensor_id, timecode, flag = (int(v) for v in args)
    return SweepEvent(
        device=name, channel=channel, sensor_id=sensor_id, timecode=timecode, flag=bool(flag)
    )


def _decode_sweep_angle(name: str, args: List[str], payload: str) -> Event:
    _expect(args, 5, SWEEP_ANGLE)
    return SweepAngleEvent(
        device=name,
        channel=int(args[0]),
        sensor_id=int(args[1]),
        timecode=int(args[2]),
        plane=int(args[3]),
        angle=float(args[4]),
    )


def _decode_angle(name: str, args: List[str], payload: str) -> Event:
    _expect(args, 6, ANGLE)
    return AngleEvent(
        device=name,
        sensor_id=int(args[0]),
        axis_code=int(args[1]),
        timecode=int(args[2]),
        length=float(args[3]),
        angle=float(args[4]),
        beacon_id=int(args[5]),
    )


def _decode_light_cap(name: str, args: List[str], payload: str) -> Event:
    _expect(args, 3, LIGHT_CAP)
    sensor_id, timestamp, length = (int(v) for v in args)
    return LightCapEvent(device=name, sensor_id=sensor_id, timestamp=timestamp, length=length)


def _light_code(name: str, beacon_label: str, axis_label: str, args: List[str]) -> Event:
    sensor_id, axis_code, time_in_sweep, timecode, length, beacon_id = (int(v) for v in args)
    return LightCodeEvent(
        device=name,
        beacon_label=beacon_label,
        axis_label=axis_label,
        sensor_id=sensor_id,
        axis_code=axis_code,
        time_in_sweep=time_in_sweep,
        timecode=timecode,
        length=length,
        beacon_id=beacon_id,
    )


def _decode_light_code(beacon_label: str) -> Callable[[str, List[str], str], Event]:
    def decode_labelled(name: str, args: List[str], payload: str) -> Event:
        _expect(args, 7, beacon_label)
        return _light_code(name, beacon_label, args[0], args[1:])

    return decode_labelled


def _decode_light_code_sync(name: str, args: List[str], payload: str) -> Event:
    _expect(args, 6, LIGHT_CODE_SYNC)
    return _light_code(name, LIGHT_CODE_SYNC, "", args)


def _decode_imu(calibrated: bool) -> Callable[[str, List[str], str], Event]:
    opcode = IMU_CALIBRATED if calibrated else IMU_RAW

    def decode_imu(name: str, args: List[str], payload: str) -> Event:
        if len(args) == 12:
            values = [float(v) for v in args[2:11]]
            imu_id = int(args[11])
        elif len(args) == 9:
            # Older captures carry no magnetometer values
            values = [float(v) for v in args[2:8]] + [0.0, 0.0, 0.0]
            imu_id = int(float(args[8]))
        else:
            raise MalformedRecord(f"Only got {len(args)} values for '{opcode}', expected 12")

        return ImuEvent(
            device=name,
            calibrated=calibrated,
            mask=int(args[0]),
            timecode=int(args[1]),
            values=tuple(values),
            imu_id=imu_id,
        )

    return decode_imu


_DECODERS: Dict[str, Callable[[str, List[str], str], Event]] = {
    CONFIG: _decode_config,
    LH_POSE: _decode_lighthouse_pose,
    VELOCITY: _decode_velocity,
    POSE: _decode_pose,
    EXTERNAL_POSE: _decode_external_pose,
    EXTERNAL_VELOCITY: _decode_external_velocity,
    INFO: _decode_info,
    SYNC: _decode_sync,
    SWEEP: _decode_sweep,
    SWEEP_ANGLE: _decode_sweep_angle,
    ANGLE: _decode_angle,
    LIGHT_CAP: _decode_light_cap,
    LIGHT_CODE_LEFT: _decode_light_code(LIGHT_CODE_LEFT),
    LIGHT_CODE_RIGHT: _decode_light_code(LIGHT_CODE_RIGHT),
    LIGHT_CODE_SYNC: _decode_light_code_sync,
    IMU_CALIBRATED: _decode_imu(calibrated=True),
    IMU_RAW: _decode_imu(calibrated=False),
}


def split_head(payload: str) -> Tuple[str, str]:
    """Return the (device_or_name, opcode) tokens of a payload.

    Raises:
        MalformedRecord: If the payload has fewer than two tokens
    """
    tokens = payload.split(None, 2)
    if len(tokens) < 2:
        raise MalformedRecord(f"Expected '<device> <opcode>', got '{payload}'", payload)
    return tokens[0], tokens[1]


def decode(payload: str) -> Optional[Event]:
    """Decode a line payload (everything after the timestamp).

    Args:
        payload: ``<device_or_name> <opcode> <args...>``

    Returns:
        Decoded event, or None for intentionally ignored legacy opcodes

    Raises:
        UnrecognizedOpcode: If the opcode is not part of the protocol
        MalformedRecord: If the fields do not match the opcode's layout
    """
    payload = payload.rstrip("\r\n")
    name, opcode = split_head(payload)

    if opcode in LEGACY_IGNORED_OPCODES:
        return None

    decoder = _DECODERS.get(opcode)
    if decoder is None:
        raise UnrecognizedOpcode(opcode, payload)

    args = payload.split()[2:]
    try:
        return decoder(name, args, payload)
    except MalformedRecord as e:
        e.line = e.line or payload
        raise
    except ValueError as e:
        # int()/float() failures and pydantic validation errors
        raise MalformedRecord(f"Bad values for '{opcode}': {e}", payload) from e


def decode_line(line: str) -> Optional[LogRecord]:
    """Decode a complete log line including its timestamp.

    Returns:
        LogRecord, or None for intentionally ignored legacy opcodes

    Raises:
        DecodeError: If the timestamp or payload cannot be decoded
    """
    line = line.rstrip("\r\n")
    head, _, payload = line.lstrip().partition(" ")
    try:
        timestamp = parse_elapsed(head)
    except ValueError as e:
        raise MalformedRecord(f"Bad timestamp '{head}'", line) from e

    event = decode(payload)
    if event is None:
        return None
    return LogRecord(timestamp=timestamp, event=event)
