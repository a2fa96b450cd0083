"""Delimiter-terminated record reader over plain or compressed byte streams."""

import sys
import zlib
from typing import IO

from tracklog.errors import EndOfStream, RecordOverflow, StreamError
from tracklog.utils.logging_utils import get_logger

logger = get_logger(__name__)

GROW_BY = 128  # Buffer growth increment (bytes)
MIN_LEN = 4  # Minimum buffer size


class DelimitedReader:
    """Reads one delimiter-terminated record at a time.

    The buffer is owned by the reader and reused across calls, so logs with
    similar line lengths stop reallocating after the first few records. It
    grows by fixed increments rather than doubling.
    """

    def __init__(self, stream: IO[bytes], grow_by: int = GROW_BY):
        """Initialize reader.

        Args:
            stream: Binary stream with ``read(1)`` (plain file, GzipFile, BytesIO)
            grow_by: Buffer growth increment in bytes
        """
        self.stream = stream
        self.grow_by = max(grow_by, MIN_LEN)
        self._buffer = bytearray(self.grow_by)

    @property
    def capacity(self) -> int:
        """Current buffer size in bytes."""
        return len(self._buffer)

    def read_until(self, delimiter: bytes = b"\n") -> bytes:
        """Read up to and including the next delimiter.

        Args:
            delimiter: Single delimiter byte

        Returns:
            Record bytes including the delimiter. The last record of a stream
            is returned without one if the stream does not end with it.

        Raises:
            EndOfStream: If the stream ended before any byte was read
            StreamError: If the underlying stream failed
            RecordOverflow: If the record would exceed sys.maxsize bytes
        """
        if len(delimiter) != 1:
            raise ValueError(f"Delimiter must be a single byte, got {delimiter!r}")

        if self.stream is None:
            raise StreamError("Reader has no stream")

        buf = self._buffer
        count = 0

        while True:
            try:
                c = self.stream.read(1)
            except (OSError, EOFError, ValueError, zlib.error) as e:
                raise StreamError(f"Error reading stream after {count} bytes: {e}") from e

            if not c:
                break

            if count + 1 >= sys.maxsize:
                raise RecordOverflow(f"Record exceeds {sys.maxsize} bytes")

            if count >= len(buf) - 1:
                buf.extend(bytes(self.grow_by))

            buf[count] = c[0]
            count += 1

            if c == delimiter:
                break

        if count == 0:
            raise EndOfStream("End of stream")

        return bytes(buf[:count])

    def read_line(self) -> bytes:
        """Read one newline-terminated record."""
        return self.read_until(b"\n")

    def rewind(self) -> None:
        """Seek the underlying stream back to its start.

        Raises:
            StreamError: If the stream cannot seek
        """
        try:
            self.stream.seek(0)
        except (OSError, ValueError, AttributeError) as e:
            raise StreamError(f"Could not rewind stream: {e}") from e

    def close(self) -> None:
        """Close the underlying stream. Safe to call more than once."""
        if self.stream is not None:
            try:
                self.stream.close()
            except OSError as e:
                logger.warning(f"Error closing stream: {e}")
            self.stream = None


def strip_line(record: bytes) -> str:
    """Decode a record and strip trailing newline/carriage-return characters."""
    return record.decode("utf-8", errors="replace").rstrip("\r\n")
