"""Recording and playback of motion-tracking event streams."""

__version__ = "0.1.0"
