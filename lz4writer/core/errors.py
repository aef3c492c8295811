# Author: Futhark1393
# Description: Exception hierarchy for the LZ4 frame writer.
# Every fallible operation reports a two-part record: (operation, message).


class LZ4WriterError(Exception):
    """Base error: names the failing operation and carries a readable message."""

    def __init__(self, op: str, message: str):
        super().__init__(f"{op}: {message}")
        self.op = op
        self.message = message

    @property
    def err(self) -> tuple[str, str]:
        return self.op, self.message


class ChannelError(LZ4WriterError):
    """Raised when the output channel fails (write, tell, seek)."""

    def __init__(self, op: str, message: str, errno: int | None = None):
        super().__init__(op, message)
        self.errno = errno


class EngineError(LZ4WriterError):
    """Raised when the compress engine reports a failure."""
    pass


class HeaderFormatError(LZ4WriterError):
    """Raised when the buffered frame header cannot be patched."""
    pass


class PreviousWriteError(LZ4WriterError):
    """Raised on any call made after the session was poisoned by a failure."""
    pass


class FrameStateError(Exception):
    """Raised when an illegal frame session transition is attempted."""
    pass
