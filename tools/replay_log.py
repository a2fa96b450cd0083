"""Replay a recorded capture.

Replays a log to the console, or re-records it through the category mask
(e.g. to strip raw light data from a capture).

Usage:
    python tools/replay_log.py capture.log.gz --factor 0
    python tools/replay_log.py capture.log.gz --factor 0 --record stripped.log.gz --no-rawlight
"""

import argparse
import sys
from pathlib import Path

# Add repository root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from tracklog.conf.settings import settings
from tracklog.errors import SourceUnavailable, StreamError
from tracklog.playback import LoggingConsumer, PlaybackScheduler
from tracklog.recording import Recorder, category_mask_from_settings
from tracklog.utils.logging_utils import get_logger

logger = get_logger("replay_log")


def main() -> int:
    parser = argparse.ArgumentParser(description="Replay a recorded tracking capture")

    parser.add_argument("playback", type=Path, help="Log file (plain or .gz)")
    parser.add_argument(
        "--factor",
        type=float,
        default=settings.playback_factor,
        help="Time factor: 1 = original timing, 0 = as fast as possible (default: %(default)s)",
    )
    parser.add_argument(
        "--replay-pose",
        action="store_true",
        default=settings.playback_replay_pose,
        help="Replay recorded POSE lines as external poses",
    )
    parser.add_argument("--record", type=Path, help="Re-record the replayed events to this file")
    parser.add_argument("--no-rawlight", action="store_true", help="Drop raw light lines when re-recording")
    parser.add_argument("--no-imu", action="store_true", help="Drop raw IMU lines when re-recording")
    parser.add_argument("--cal-imu", action="store_true", help="Keep calibrated IMU lines when re-recording")
    parser.add_argument("--no-angle", action="store_true", help="Drop angle lines when re-recording")

    args = parser.parse_args()

    recorder = None
    if args.record:
        config = settings.model_copy(
            update={
                "record_rawlight": not args.no_rawlight,
                "record_imu": not args.no_imu,
                "record_cal_imu": args.cal_imu,
                "record_angle": not args.no_angle,
            }
        )
        try:
            recorder = Recorder.open(args.record, category_mask=category_mask_from_settings(config))
        except StreamError as e:
            logger.error(str(e))
            return 1
        consumer = recorder
    else:
        consumer = LoggingConsumer()

    try:
        with PlaybackScheduler.open(
            args.playback,
            consumer,
            rate_factor=args.factor,
            replay_pose=args.replay_pose,
        ) as scheduler:
            lines = scheduler.run()
            stats = scheduler.stats
    except SourceUnavailable as e:
        logger.error(str(e))
        return 1
    finally:
        if recorder is not None:
            recorder.close()

    print("\n" + "=" * 80)
    print("REPLAY COMPLETE")
    print("=" * 80)
    print(f"  Lines read: {lines:,}")
    print(f"  Devices registered: {stats.devices_registered}")
    print(f"  Events dispatched: {stats.events_dispatched:,}")
    print(f"  Lines ignored: {stats.lines_ignored:,}")
    print(f"  Decode errors: {stats.decode_errors:,}")
    print(f"  Unknown-device lines: {stats.unknown_device_lines:,}")
    if recorder is not None:
        print(f"  Lines re-recorded: {recorder.lines_written:,} -> {args.record}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
