"""Analysis of recorded logs."""

from .summary import (
    LogSummary,
    iter_lines,
    iter_records,
    load_log_frame,
    compute_imu_rates,
    summarize_log,
    save_summary,
)

__all__ = [
    "LogSummary",
    "iter_lines",
    "iter_records",
    "load_log_frame",
    "compute_imu_rates",
    "summarize_log",
    "save_summary",
]
