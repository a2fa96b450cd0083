"""Tests for the delimited reader and log stream opening."""

import gzip
import io
import sys
from pathlib import Path

import pytest

# Add repository root to path
sys.path.insert(0, str(Path(__file__).parent))

from tracklog.errors import EndOfStream, SourceUnavailable, StreamError
from tracklog.ingestion.reader import DelimitedReader, strip_line
from tracklog.utils.io_utils import open_log_sink, open_log_source


class FailingStream(io.RawIOBase):
    """Stream that yields some bytes, then fails."""

    def __init__(self, data: bytes):
        self._data = io.BytesIO(data)

    def readable(self):
        return True

    def read(self, size=-1):
        chunk = self._data.read(size)
        if not chunk:
            raise OSError("device unplugged")
        return chunk


def test_reads_lines_including_delimiter():
    reader = DelimitedReader(io.BytesIO(b"0.1 HMD W 1 2 3 0\n0.2 HMD Y 1 2 0 0\n"))

    assert reader.read_line() == b"0.1 HMD W 1 2 3 0\n"
    assert reader.read_line() == b"0.2 HMD Y 1 2 0 0\n"
    with pytest.raises(EndOfStream):
        reader.read_line()


def test_last_record_without_delimiter_is_returned():
    reader = DelimitedReader(io.BytesIO(b"first\nsecond"))

    assert reader.read_line() == b"first\n"
    assert reader.read_line() == b"second"
    with pytest.raises(EndOfStream):
        reader.read_line()


def test_empty_stream_is_end_of_stream():
    with pytest.raises(EndOfStream):
        DelimitedReader(io.BytesIO(b"")).read_line()


def test_read_until_custom_delimiter():
    reader = DelimitedReader(io.BytesIO(b"12.500000 HMD C 1 2 3\n"))

    assert reader.read_until(b" ") == b"12.500000 "
    assert reader.read_line() == b"HMD C 1 2 3\n"


def test_buffer_grows_by_fixed_increments_and_is_reused():
    long_line = b"x" * 300 + b"\n"
    reader = DelimitedReader(io.BytesIO(long_line + b"short\n"), grow_by=128)
    assert reader.capacity == 128

    assert reader.read_line() == long_line
    # 128 -> 256 -> 384, never doubled past what was needed
    assert reader.capacity == 384

    assert reader.read_line() == b"short\n"
    assert reader.capacity == 384


def test_stream_error_is_reported():
    reader = DelimitedReader(FailingStream(b"0.1 HMD"))

    with pytest.raises(StreamError):
        reader.read_line()


def test_reads_gzip_stream_like_plain_stream():
    data = b"0.000000 HMD CONFIG {}\n0.100000 HMD C 1 2 3\n"
    stream = gzip.GzipFile(fileobj=io.BytesIO(gzip.compress(data)))
    reader = DelimitedReader(stream)

    assert reader.read_line() == b"0.000000 HMD CONFIG {}\n"
    assert reader.read_line() == b"0.100000 HMD C 1 2 3\n"

    reader.rewind()
    assert reader.read_line() == b"0.000000 HMD CONFIG {}\n"


def test_close_is_idempotent():
    reader = DelimitedReader(io.BytesIO(b"a\n"))
    reader.close()
    reader.close()

    with pytest.raises(StreamError):
        reader.read_line()


def test_strip_line_removes_crlf():
    assert strip_line(b"0.1 HMD W 1 2 3 0\r\n") == "0.1 HMD W 1 2 3 0"


def test_open_log_source_detects_compression_from_content(tmp_path):
    plain = tmp_path / "capture.log"
    plain.write_bytes(b"0.1 HMD W 1 2 3 0\n")
    # Compressed content behind a misleading suffix
    compressed = tmp_path / "capture.txt"
    compressed.write_bytes(gzip.compress(b"0.1 HMD W 1 2 3 0\n"))

    for path in (plain, compressed):
        with open_log_source(path) as stream:
            assert DelimitedReader(stream).read_line() == b"0.1 HMD W 1 2 3 0\n"


def test_open_log_source_missing_file(tmp_path):
    with pytest.raises(SourceUnavailable):
        open_log_source(tmp_path / "missing.log")

    with pytest.raises(SourceUnavailable):
        open_log_source("")


def test_open_log_sink_compresses_by_suffix(tmp_path):
    path = tmp_path / "out" / "capture.log.gz"
    with open_log_sink(path) as sink:
        sink.write("0.000000 INFO LOG hello\n")

    assert path.read_bytes()[:2] == b"\x1f\x8b"
    with gzip.open(path, "rt") as f:
        assert f.read() == "0.000000 INFO LOG hello\n"


def test_open_log_sink_failure_is_stream_error(tmp_path):
    with pytest.raises(StreamError):
        open_log_sink(tmp_path)
