"""Summarize a recorded capture.

Usage:
    python tools/summarize_log.py capture.log.gz
    python tools/summarize_log.py capture.log.gz --output reports/capture_summary.json
"""

import argparse
import sys
from pathlib import Path

# Add repository root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from tracklog.analysis.summary import save_summary, summarize_log
from tracklog.conf.settings import settings
from tracklog.errors import SourceUnavailable
from tracklog.utils.logging_utils import get_logger

logger = get_logger("summarize_log")


def main() -> int:
    parser = argparse.ArgumentParser(description="Summarize a recorded tracking capture")

    parser.add_argument("log", type=Path, help="Log file (plain or .gz)")
    parser.add_argument(
        "--output",
        type=Path,
        help="Output path for summary JSON (default: <reports_path>/<log name>_summary.json)",
    )

    args = parser.parse_args()

    try:
        summary = summarize_log(args.log)
    except SourceUnavailable as e:
        logger.error(str(e))
        return 1

    output = args.output or Path(settings.reports_path) / f"{args.log.name}_summary.json"
    save_summary(summary, output)

    print("\n" + "=" * 80)
    print("LOG SUMMARY")
    print("=" * 80)
    print(f"\nFile: {summary.file_path} ({summary.file_size_mb:.2f} MB)")
    print(f"Duration: {summary.duration_sec:.3f} s")
    print(f"Lines: {summary.total_lines:,} ({summary.malformed_lines:,} malformed)")
    print(f"Devices: {', '.join(summary.devices) or '-'}")
    print("\nOpcodes:")
    for opcode, count in sorted(summary.opcode_counts.items(), key=lambda kv: -kv[1]):
        print(f"  {opcode:<18} {count:,}")
    if summary.imu_rate_hz:
        print("\nIMU rate:")
        for device, rate in sorted(summary.imu_rate_hz.items()):
            print(f"  {device:<18} {rate:.1f} Hz")
    return 0


if __name__ == "__main__":
    sys.exit(main())
