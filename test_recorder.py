"""Tests for event recording."""

import gzip
import io
import sys
from pathlib import Path

import pytest

# Add repository root to path
sys.path.insert(0, str(Path(__file__).parent))

from tracklog.conf.settings import Settings
from tracklog.recording.recorder import Recorder, install_recording
from tracklog.schemas.events import (
    AngleEvent,
    ConfigEvent,
    ImuEvent,
    InfoEvent,
    LightCapEvent,
    LightCodeEvent,
    Pose,
    PoseEvent,
    SweepAngleEvent,
    SweepEvent,
    SyncEvent,
)
from tracklog.schemas.session import CategoryMask
from tracklog.utils.time_utils import ElapsedClock

CONFIG = ConfigEvent(device="HMD", config_text="{}")
POSE = PoseEvent(device="HMD", pose=Pose())
SYNC = SyncEvent(device="HMD", channel=1, timecode=100, ootx=False, gen=True)
SWEEP = SweepEvent(device="HMD", channel=1, sensor_id=3, timecode=110, flag=False)
SWEEP_ANGLE = SweepAngleEvent(device="HMD", channel=1, sensor_id=3, timecode=110, plane=0, angle=0.5)
LIGHT_CAP = LightCapEvent(device="HMD", sensor_id=3, timestamp=1000, length=200)
RAW_IMU = ImuEvent(device="HMD", calibrated=False, timecode=1)
CAL_IMU = ImuEvent(device="HMD", calibrated=True, timecode=1)
ANGLE = AngleEvent(device="HMD", sensor_id=3, axis_code=0, timecode=1, length=0.1, angle=0.2, beacon_id=0)
LIGHT_CODE = LightCodeEvent(
    device="HMD", sensor_id=3, axis_code=0, time_in_sweep=10, timecode=1, length=5, beacon_id=0
)


def fixed_clock(value: float = 1.5):
    return lambda: value


def opcodes(text: str):
    return [line.split()[2] for line in text.splitlines()]


def test_disabled_recorder_does_nothing():
    def clock():
        raise AssertionError("clock read while recording is disabled")

    recorder = Recorder(clock=clock)
    recorder.on_event(CONFIG)
    recorder.on_event(LIGHT_CAP)

    assert not recorder.enabled
    assert recorder.lines_written == 0
    recorder.close()


def test_rawlight_disabled_never_emits_lightcap():
    sink = io.StringIO()
    recorder = Recorder(CategoryMask(raw_light=False), file_sink=sink, clock=fixed_clock())

    for event in (CONFIG, LIGHT_CAP, POSE, SYNC, LIGHT_CAP, SWEEP):
        recorder.on_event(event)

    assert opcodes(sink.getvalue()) == ["CONFIG", "POSE", "Y", "W"]
    assert recorder.events_filtered == 2


def test_always_recorded_kinds_ignore_mask():
    sink = io.StringIO()
    mask = CategoryMask(raw_light=False, imu_raw=False, imu_cal=False, angle=False)
    recorder = Recorder(mask, file_sink=sink, clock=fixed_clock())

    for event in (CONFIG, POSE, SYNC, SWEEP, SWEEP_ANGLE, InfoEvent(message="hi")):
        recorder.on_event(event)
    for event in (LIGHT_CAP, RAW_IMU, CAL_IMU, ANGLE, LIGHT_CODE):
        recorder.on_event(event)

    assert opcodes(sink.getvalue()) == ["CONFIG", "POSE", "Y", "W", "B", "LOG"]


def test_default_mask_records_raw_imu_only():
    sink = io.StringIO()
    recorder = Recorder(file_sink=sink, clock=fixed_clock())

    recorder.on_event(RAW_IMU)
    recorder.on_event(CAL_IMU)
    recorder.on_event(ANGLE)
    recorder.on_event(LIGHT_CODE)

    assert opcodes(sink.getvalue()) == ["i", "A", "L"]


def test_calibrated_imu_toggle():
    sink = io.StringIO()
    recorder = Recorder(CategoryMask(imu_raw=False, imu_cal=True), file_sink=sink, clock=fixed_clock())

    recorder.on_event(RAW_IMU)
    recorder.on_event(CAL_IMU)

    assert opcodes(sink.getvalue()) == ["I"]


def test_both_sinks_receive_identical_lines():
    file_sink, echo_sink = io.StringIO(), io.StringIO()
    ticks = iter([0.25, 0.5, 0.75])
    recorder = Recorder(file_sink=file_sink, echo_sink=echo_sink, clock=lambda: next(ticks))

    recorder.on_event(CONFIG)
    recorder.on_event(SYNC)
    recorder.on_event(LIGHT_CAP)

    assert file_sink.getvalue() == echo_sink.getvalue()
    assert file_sink.getvalue().splitlines()[0] == "0.250000 HMD CONFIG {}"
    assert recorder.lines_written == 3


def test_timestamps_come_from_elapsed_clock():
    now = [100.0]
    clock = ElapsedClock(source=lambda: now[0])
    sink = io.StringIO()
    recorder = Recorder(file_sink=sink, clock=clock)

    recorder.on_event(SYNC)
    now[0] = 102.5
    recorder.on_event(SYNC)

    times = [line.split()[0] for line in sink.getvalue().splitlines()]
    assert times == ["0.000000", "2.500000"]


def test_close_closes_file_and_flushes_echo():
    file_sink, echo_sink = io.StringIO(), io.StringIO()
    recorder = Recorder(file_sink=file_sink, echo_sink=echo_sink, clock=fixed_clock())
    recorder.on_event(SYNC)

    recorder.close()
    recorder.close()

    assert file_sink.closed
    assert not echo_sink.closed
    assert not recorder.enabled
    recorder.on_event(SYNC)


def test_context_manager_closes_on_error(tmp_path):
    path = tmp_path / "capture.log"

    with pytest.raises(RuntimeError):
        with Recorder.open(path, clock=fixed_clock()) as recorder:
            recorder.on_event(SYNC)
            raise RuntimeError("pipeline crashed")

    assert recorder.file_sink is None
    assert path.read_text() == "1.500000 HMD Y 1 100 0 1\n"


def test_configure_replaces_sinks():
    first, second = io.StringIO(), io.StringIO()
    recorder = Recorder(file_sink=first, clock=fixed_clock())

    recorder.configure(CategoryMask(), file_sink=second)
    recorder.on_event(SYNC)

    assert first.closed
    assert second.getvalue().startswith("1.500000 HMD Y")


def test_open_gzip_recording(tmp_path):
    path = tmp_path / "capture.log.gz"

    with Recorder.open(path, clock=fixed_clock(0.0)) as recorder:
        recorder.on_event(CONFIG)

    with gzip.open(path, "rt") as f:
        assert f.read() == "0.000000 HMD CONFIG {}\n"


def test_install_recording_disabled():
    assert install_recording(Settings(record="", record_stdout=False)) is None


def test_install_recording_unwritable_path(tmp_path):
    assert install_recording(Settings(record=str(tmp_path), record_stdout=True)) is None


def test_install_recording_echo_and_mask(tmp_path):
    echo = io.StringIO()
    config = Settings.from_options(
        {
            "record": str(tmp_path / "capture.log"),
            "record-stdout": True,
            "record-rawlight": False,
        }
    )

    recorder = install_recording(config, echo_sink=echo, clock=fixed_clock())
    recorder.on_event(LIGHT_CAP)
    recorder.on_event(SYNC)
    recorder.close()

    assert echo.getvalue() == "1.500000 HMD Y 1 100 0 1\n"
    assert (tmp_path / "capture.log").read_text() == echo.getvalue()


def test_settings_from_host_option_names():
    config = Settings.from_options({"playback-factor": 0, "playback-replay-pose": True})

    assert config.playback_factor == 0.0
    assert config.playback_replay_pose is True
    assert config.record_cal_imu is False


def test_externally_closed_sink_stops_recording():
    sink = io.StringIO()
    recorder = Recorder(file_sink=sink, clock=fixed_clock())
    sink.close()

    recorder.on_event(SYNC)

    assert not recorder.enabled
    assert recorder.lines_written == 0
