"""IO utilities for log streams and JSON artifacts."""

import gzip
import hashlib
import json
from pathlib import Path
from typing import IO, Any, Dict
import orjson

from tracklog.errors import SourceUnavailable, StreamError

GZIP_MAGIC = b"\x1f\x8b"


def ensure_dir(path: str | Path) -> Path:
    """Ensure directory exists, create if needed.

    Args:
        path: Directory path

    Returns:
        Path object
    """
    path_obj = Path(path)
    path_obj.mkdir(parents=True, exist_ok=True)
    return path_obj


def compute_file_hash(file_path: str | Path, algorithm: str = "sha256") -> str:
    """Compute hash of file contents.

    Args:
        file_path: Path to file
        algorithm: Hash algorithm ('sha256', 'md5', etc.)

    Returns:
        Hex digest of file hash
    """
    hasher = hashlib.new(algorithm)

    with open(file_path, "rb") as f:
        for chunk in iter(lambda: f.read(8192), b""):
            hasher.update(chunk)

    return hasher.hexdigest()


def is_compressed_path(path: str | Path) -> bool:
    """Whether a recording path selects gzip compression."""
    return str(path).endswith(".gz")


def open_log_source(path: str | Path) -> IO[bytes]:
    """Open a recorded log for binary reading.

    Compressed and plain logs are both accepted; gzip is detected from the
    file's magic bytes rather than its suffix.

    Args:
        path: Log file path

    Returns:
        Seekable binary stream

    Raises:
        SourceUnavailable: If the path is empty or cannot be opened
    """
    if not str(path):
        raise SourceUnavailable("The playback source requires a filename")

    try:
        with open(path, "rb") as probe:
            magic = probe.read(2)

        if magic == GZIP_MAGIC:
            return gzip.open(path, "rb")
        return open(path, "rb")
    except OSError as e:
        raise SourceUnavailable(f"Could not open playback events file {path}: {e}") from e


def open_log_sink(path: str | Path) -> IO[str]:
    """Open a recording file for text writing.

    Args:
        path: Output path; a .gz suffix writes gzip

    Returns:
        Text stream

    Raises:
        StreamError: If the file cannot be created
    """
    path_obj = Path(path)
    try:
        if path_obj.parent != Path("."):
            ensure_dir(path_obj.parent)
        if is_compressed_path(path_obj):
            return gzip.open(path_obj, "wt", encoding="utf-8", newline="\n")
        return open(path_obj, "w", encoding="utf-8", newline="\n")
    except OSError as e:
        raise StreamError(f"Could not open {path} for writing: {e}") from e


def save_json(data: Dict[str, Any], file_path: str | Path, pretty: bool = True) -> None:
    """Save data as JSON file.

    Args:
        data: Data to save
        file_path: Output file path
        pretty: Whether to pretty-print (indent)
    """
    path_obj = Path(file_path)
    ensure_dir(path_obj.parent)

    if pretty:
        with open(path_obj, "w") as f:
            json.dump(data, f, indent=2, default=str)
    else:
        with open(path_obj, "wb") as f:
            f.write(orjson.dumps(data, option=orjson.OPT_SERIALIZE_NUMPY))


def load_json(file_path: str | Path) -> Dict[str, Any]:
    """Load JSON file.

    Args:
        file_path: Path to JSON file

    Returns:
        Loaded data
    """
    with open(file_path, "rb") as f:
        return orjson.loads(f.read())


def get_file_size_mb(file_path: str | Path) -> float:
    """Get file size in megabytes."""
    size_bytes = Path(file_path).stat().st_size
    return size_bytes / (1024 * 1024)
