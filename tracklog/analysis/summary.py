"""Summaries of recorded logs for inspection and regression checks."""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterator, List

import numpy as np
import pandas as pd

from tracklog.errors import DecodeError, EndOfStream
from tracklog.ingestion.reader import DelimitedReader, strip_line
from tracklog.protocol.codec import decode_line, split_head
from tracklog.schemas.session import LogRecord
from tracklog.utils.io_utils import compute_file_hash, get_file_size_mb, open_log_source, save_json
from tracklog.utils.logging_utils import get_logger

logger = get_logger(__name__)

FRAME_COLUMNS = ["line_no", "timestamp", "device", "opcode", "kind"]

# Event kinds whose first token names a tracked device
DEVICE_KINDS = frozenset(
    {
        "config",
        "velocity",
        "pose",
        "sync",
        "sweep",
        "sweep_angle",
        "angle",
        "light_cap",
        "light_code",
        "imu",
    }
)


@dataclass
class LogSummary:
    """Statistics for one recorded log."""

    file_path: str
    file_size_mb: float
    input_hash: str
    total_lines: int
    decoded_lines: int
    malformed_lines: int
    ignored_lines: int
    duration_sec: float
    devices: List[str] = field(default_factory=list)
    opcode_counts: Dict[str, int] = field(default_factory=dict)
    imu_rate_hz: Dict[str, float] = field(default_factory=dict)
    processing_time_sec: float = 0.0
    timestamp: str = ""


def iter_lines(path: str | Path) -> Iterator[str]:
    """Yield the non-empty lines of a plain or compressed log."""
    reader = DelimitedReader(open_log_source(path))
    try:
        while True:
            try:
                record = reader.read_line()
            except EndOfStream:
                return
            line = strip_line(record)
            if line.strip():
                yield line
    finally:
        reader.close()


def iter_records(path: str | Path) -> Iterator[LogRecord]:
    """Yield decoded records, skipping lines that do not decode."""
    for line in iter_lines(path):
        try:
            record = decode_line(line)
        except DecodeError as e:
            logger.debug(f"Skipping line: {e}")
            continue
        if record is not None:
            yield record


def load_log_frame(path: str | Path) -> pd.DataFrame:
    """Load a log into a DataFrame with one row per line.

    Lines that fail to decode keep their device/opcode tokens where readable
    and get kind ``None``; lines without a readable timestamp get NaN.

    Args:
        path: Log file

    Returns:
        DataFrame with columns line_no, timestamp, device, opcode, kind
    """
    rows = []
    for line_no, line in enumerate(iter_lines(path), start=1):
        head, _, payload = line.lstrip().partition(" ")
        try:
            device, opcode = split_head(payload)
        except DecodeError:
            device, opcode = None, None

        try:
            record = decode_line(line)
            timestamp = record.timestamp if record is not None else float(head)
            kind = record.event.kind if record is not None else "ignored"
        except (DecodeError, ValueError):
            try:
                timestamp = float(head)
            except ValueError:
                timestamp = np.nan
            kind = None

        rows.append(
            {
                "line_no": line_no,
                "timestamp": timestamp,
                "device": device,
                "opcode": opcode,
                "kind": kind,
            }
        )

    return pd.DataFrame(rows, columns=FRAME_COLUMNS)


def compute_imu_rates(df: pd.DataFrame) -> Dict[str, float]:
    """Median IMU sample rate per device.

    Args:
        df: Frame from load_log_frame

    Returns:
        Dict mapping device -> rate in Hz (devices with < 2 samples omitted)
    """
    rates = {}
    imu = df[df["kind"] == "imu"]

    for device, group in imu.groupby("device"):
        times = np.sort(group["timestamp"].to_numpy(dtype=float))
        if len(times) < 2:
            continue
        dt = np.diff(times)
        dt = dt[dt > 0]
        if len(dt) == 0:
            continue
        rates[str(device)] = float(1.0 / np.median(dt))

    return rates


def summarize_log(path: str | Path) -> LogSummary:
    """Summarize a recorded log.

    Args:
        path: Plain or compressed log file

    Returns:
        LogSummary
    """
    start_time = datetime.now()
    path = Path(path)

    logger.info(f"Summarizing {path}")
    df = load_log_frame(path)

    decoded = df[df["kind"].notna() & (df["kind"] != "ignored")]
    times = df["timestamp"].dropna()
    duration = float(times.max() - times.min()) if len(times) > 0 else 0.0

    device_rows = decoded[decoded["kind"].isin(DEVICE_KINDS)]
    opcode_counts = df["opcode"].dropna().value_counts()

    summary = LogSummary(
        file_path=str(path),
        file_size_mb=get_file_size_mb(path),
        input_hash=compute_file_hash(path),
        total_lines=len(df),
        decoded_lines=len(decoded),
        malformed_lines=int(df["kind"].isna().sum()),
        ignored_lines=int((df["kind"] == "ignored").sum()),
        duration_sec=duration,
        devices=sorted(str(d) for d in device_rows["device"].unique()),
        opcode_counts={str(k): int(v) for k, v in opcode_counts.items()},
        imu_rate_hz=compute_imu_rates(decoded),
        processing_time_sec=(datetime.now() - start_time).total_seconds(),
        timestamp=datetime.now().isoformat(),
    )

    logger.info("=" * 60)
    logger.info("Log Summary:")
    logger.info(f"  Lines: {summary.total_lines:,}")
    logger.info(f"  Decoded: {summary.decoded_lines:,}")
    logger.info(f"  Malformed: {summary.malformed_lines:,}")
    logger.info(f"  Duration: {summary.duration_sec:.3f}s")
    logger.info(f"  Devices: {', '.join(summary.devices) or '-'}")
    logger.info("=" * 60)

    return summary


def save_summary(summary: LogSummary, output_path: str | Path) -> Path:
    """Write a summary as JSON."""
    output_path = Path(output_path)
    save_json(asdict(summary), output_path, pretty=False)
    logger.info(f"Saved log summary to {output_path}")
    return output_path
