"""Tests for log summaries."""

import gzip
import sys
from pathlib import Path

import pandas as pd
import pytest

# Add repository root to path
sys.path.insert(0, str(Path(__file__).parent))

from tracklog.analysis.summary import (
    FRAME_COLUMNS,
    compute_imu_rates,
    iter_records,
    load_log_frame,
    save_summary,
    summarize_log,
)
from tracklog.utils.io_utils import load_json


def imu_line(t: float, device: str = "HMD") -> str:
    values = " ".join("0.000000" for _ in range(9))
    return f"{t:0.6f} {device} i 3 {int(t * 1e6)} {values} 1"


LOG_LINES = (
    ["0.000000 HMD CONFIG {}", "0.020000 INFO LOG started", "0.030000 WM0 C 1 2 3"]
    + [imu_line(i * 0.01) for i in range(11)]
    + ["0.050000 HMD V 1 2 3", "0.060000 HMD ZZ 1", "garbage"]
)


@pytest.fixture
def log_path(tmp_path):
    path = tmp_path / "capture.log"
    path.write_text("\n".join(LOG_LINES) + "\n\n")
    return path


def test_summary_counts(log_path):
    summary = summarize_log(log_path)

    assert summary.total_lines == 17
    assert summary.decoded_lines == 14
    assert summary.malformed_lines == 2
    assert summary.ignored_lines == 1
    assert summary.devices == ["HMD", "WM0"]
    assert summary.opcode_counts["i"] == 11
    assert summary.opcode_counts["ZZ"] == 1
    assert summary.duration_sec == pytest.approx(0.1)
    assert len(summary.input_hash) == 64


def test_imu_rate(log_path):
    summary = summarize_log(log_path)

    assert summary.imu_rate_hz == {"HMD": pytest.approx(100.0, rel=1e-3)}


def test_imu_rate_needs_two_samples():
    df = pd.DataFrame(
        [
            {"line_no": 1, "timestamp": 0.0, "device": "WM0", "opcode": "i", "kind": "imu"},
            {"line_no": 2, "timestamp": 0.0, "device": "HMD", "opcode": "i", "kind": "imu"},
            {"line_no": 3, "timestamp": 0.5, "device": "HMD", "opcode": "i", "kind": "imu"},
        ]
    )

    assert compute_imu_rates(df) == {"HMD": pytest.approx(2.0)}


def test_load_log_frame(log_path):
    df = load_log_frame(log_path)

    assert list(df.columns) == FRAME_COLUMNS
    assert df.iloc[0]["kind"] == "config"
    assert df.iloc[-3]["kind"] == "ignored"
    assert df.iloc[-2]["opcode"] == "ZZ"
    assert pd.isna(df.iloc[-1]["timestamp"])
    assert pd.isna(df.iloc[-1]["device"])


def test_iter_records_skips_bad_lines(log_path):
    kinds = [record.event.kind for record in iter_records(log_path)]

    assert kinds[:3] == ["config", "info", "light_cap"]
    assert len(kinds) == 14


def test_summarizes_compressed_log(tmp_path, log_path):
    compressed = tmp_path / "capture.log.gz"
    compressed.write_bytes(gzip.compress(log_path.read_bytes()))

    summary = summarize_log(compressed)

    assert summary.total_lines == 17
    assert summary.devices == ["HMD", "WM0"]


def test_save_summary(tmp_path, log_path):
    summary = summarize_log(log_path)
    output = save_summary(summary, tmp_path / "reports" / "capture_summary.json")

    data = load_json(output)
    assert data["total_lines"] == 17
    assert data["opcode_counts"]["CONFIG"] == 1
    assert data["file_path"] == str(log_path)
