"""Ingestion of recorded logs."""

from .reader import DelimitedReader, strip_line

__all__ = [
    "DelimitedReader",
    "strip_line",
]
