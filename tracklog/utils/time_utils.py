"""Elapsed-time clocks and timestamp parsing."""

import time
from typing import Callable, Optional, Union


class ElapsedClock:
    """Monotonic seconds elapsed since the first reading.

    The start point is established lazily, so a clock created at import
    time reads 0.0 on its first call, not the import-to-first-use delay.
    """

    def __init__(self, source: Callable[[], float] = time.monotonic):
        self._source = source
        self._start: Optional[float] = None

    def __call__(self) -> float:
        now = self._source()
        if self._start is None:
            self._start = now
        return now - self._start


# Process-wide recording clock
process_clock = ElapsedClock()


def parse_elapsed(token: Union[str, bytes]) -> float:
    """Parse a record timestamp token.

    Args:
        token: Leading token of a log line (surrounding whitespace allowed)

    Returns:
        Elapsed seconds

    Raises:
        ValueError: If the token is not a finite decimal number
    """
    if isinstance(token, bytes):
        token = token.decode("ascii", errors="replace")

    value = float(token.strip())
    if value != value or value in (float("inf"), float("-inf")):
        raise ValueError(f"Non-finite timestamp: {token!r}")
    return value
