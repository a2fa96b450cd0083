"""Utility modules for recording and playback."""

from .logging_utils import setup_logger, get_logger
from .time_utils import ElapsedClock, process_clock, parse_elapsed
from .io_utils import (
    ensure_dir,
    compute_file_hash,
    is_compressed_path,
    open_log_source,
    open_log_sink,
    save_json,
    load_json,
    get_file_size_mb,
)

__all__ = [
    # Logging
    "setup_logger",
    "get_logger",
    # Time
    "ElapsedClock",
    "process_clock",
    "parse_elapsed",
    # IO
    "ensure_dir",
    "compute_file_hash",
    "is_compressed_path",
    "open_log_source",
    "open_log_sink",
    "save_json",
    "load_json",
    "get_file_size_mb",
]
