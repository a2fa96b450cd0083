"""Error taxonomy for recording and playback."""


class TrackLogError(Exception):
    """Base class for recording/playback errors."""
    pass


class StreamError(TrackLogError):
    """Raised when a log source or sink cannot be read, written or opened."""
    pass


class SourceUnavailable(StreamError):
    """Raised when a playback source cannot be opened."""
    pass


class EndOfStream(TrackLogError):
    """Raised when a stream ends before any byte of a record was read."""
    pass


class RecordOverflow(TrackLogError):
    """Raised when a record would exceed the representable length."""
    pass


class DecodeError(TrackLogError):
    """Raised when a log line cannot be decoded into an event."""

    def __init__(self, message: str, line: str = ""):
        super().__init__(message)
        self.line = line


class UnrecognizedOpcode(DecodeError):
    """Raised for lines whose opcode is not part of the protocol."""

    def __init__(self, opcode: str, line: str = ""):
        super().__init__(f"Unrecognized opcode '{opcode}'", line)
        self.opcode = opcode


class MalformedRecord(DecodeError):
    """Raised for lines with the wrong number of fields or bad numbers."""
    pass


class UnknownDevice(TrackLogError):
    """Raised when a line references a device missing from the registry."""

    def __init__(self, name: str, line_no: int = 0):
        super().__init__(f"Could not find device named {name} from lineno {line_no}")
        self.name = name
        self.line_no = line_no


class ConfigIngestFailure(TrackLogError):
    """Raised when the pipeline rejects a device configuration blob."""
    pass
