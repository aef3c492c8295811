# Author: Futhark1393
# Description: Streaming LZ4 frame writer.
# Compresses arbitrary-length writes in 256 KiB chunks and, on a seekable
# channel, patches the real content size into the frame header on close.
# States: OPEN → WRITING → (ERROR | CLOSED)

from enum import Enum, auto

from lz4writer.core.engine import LZ4Engine
from lz4writer.core.errors import (
    ChannelError,
    EngineError,
    FrameStateError,
    HeaderFormatError,
    LZ4WriterError,
    PreviousWriteError,
)
from lz4writer.core.header import HEADER_SIZE, fix_frame_header
from lz4writer.core.xwrite import write_fully

# Big inputs are processed in 256K chunks.
CHUNK_SIZE = 256 << 10


class FrameState(Enum):
    OPEN = auto()
    WRITING = auto()
    ERROR = auto()
    CLOSED = auto()


# Valid transitions: from_state → set of allowed to_states
_TRANSITIONS: dict[FrameState, set[FrameState]] = {
    FrameState.OPEN: {FrameState.WRITING, FrameState.ERROR, FrameState.CLOSED},
    FrameState.WRITING: {FrameState.WRITING, FrameState.ERROR, FrameState.CLOSED},
    FrameState.ERROR: {FrameState.CLOSED},
    FrameState.CLOSED: set(),
}


class FrameWriter:
    """
    Writes a single LZ4 frame to an output channel.

    Usage::

        channel = FdChannel(fd)
        zw = FrameWriter(channel, compression_level=1,
                         write_content_size=channel.seekable())
        zw.write(b"hello ")
        zw.write(b"world")
        zw.close()

    The session takes ownership of *channel* once construction succeeds;
    close() always releases the engine and closes the channel exactly once.
    If construction fails the channel is left open for the caller.

    Any failure in write() poisons the session: later writes raise
    PreviousWriteError without touching the engine or the channel, and
    close() only releases resources. Not safe for concurrent use.
    """

    def __init__(
        self,
        channel,
        compression_level: int = 1,
        write_content_size: bool = False,
        write_checksum: bool = False,
        engine_factory=LZ4Engine,
    ):
        self._channel = channel
        self._state = FrameState.OPEN
        self.write_content_size = write_content_size
        self.write_checksum = write_checksum
        self.content_size = 0
        self._pos0 = None
        self._header = bytearray(HEADER_SIZE)

        self._engine = engine_factory(
            compression_level=compression_level, content_checksum=write_checksum
        )
        try:
            self.buffer_size = self._engine.bound(CHUNK_SIZE)

            if write_content_size:
                try:
                    self._pos0 = channel.tell()
                except OSError as e:
                    raise ChannelError("tell", e.strerror or str(e), errno=e.errno) from e

            frame_header = self._engine.begin()
            # Content size is not known yet.
            if len(frame_header) != HEADER_SIZE - 8:
                raise EngineError(
                    "compress_begin",
                    f"unexpected frame header size {len(frame_header)}",
                )
            self._header[: len(frame_header)] = frame_header

            size = len(frame_header) + (8 if write_content_size else 0)
            write_fully(channel, self._header[:size])
        except LZ4WriterError:
            self._engine.release()
            self._engine = None
            raise

    # ── State ───────────────────────────────────────────────────────────

    @property
    def state(self) -> FrameState:
        return self._state

    @property
    def failed(self) -> bool:
        return self._state is FrameState.ERROR

    @property
    def header(self) -> bytes:
        """Snapshot of the buffered frame header (final form after close)."""
        return bytes(self._header)

    def _transition(self, target: FrameState) -> None:
        allowed = _TRANSITIONS.get(self._state, set())
        if target not in allowed:
            raise FrameStateError(
                f"Illegal transition: {self._state.name} → {target.name}. "
                f"Allowed: {', '.join(s.name for s in allowed) or 'NONE'}"
            )
        self._state = target

    def _release(self, primary_failure: bool) -> None:
        """Free the engine and close the channel. Runs once per session."""
        self._transition(FrameState.CLOSED)
        engine, self._engine = self._engine, None
        channel, self._channel = self._channel, None
        if engine is not None:
            engine.release()
        try:
            channel.close()
        except OSError as e:
            # Never mask the primary failure with a close error.
            if not primary_failure:
                raise ChannelError("close", e.strerror or str(e), errno=e.errno) from e

    # ── Public API ──────────────────────────────────────────────────────

    def write(self, data) -> None:
        """Compress *data* and write the produced blocks to the channel."""
        if self._state is FrameState.ERROR:
            raise PreviousWriteError("write", "previous write failed")
        self._transition(FrameState.WRITING)

        view = memoryview(data).cast("B")
        self.content_size += len(view)

        try:
            while view:
                chunk, view = view[:CHUNK_SIZE], view[CHUNK_SIZE:]
                compressed = self._engine.update(chunk)
                if not compressed:
                    continue
                if len(compressed) > self.buffer_size:
                    raise EngineError(
                        "compress_update",
                        f"{len(compressed)} bytes exceeds bound {self.buffer_size}",
                    )
                write_fully(self._channel, compressed)
        except BaseException:
            # A partially written frame cannot be continued.
            self._state = FrameState.ERROR
            raise

    def close(self) -> None:
        """
        Finish the frame and release the session.

        Writes the end mark (and content checksum), then, if a content size
        was requested, seeks back to the frame start and rewrites the header
        with the real size. Raises on the first failure; resources are
        released on every path.
        """
        if self._state is FrameState.ERROR:
            self._release(primary_failure=True)
            raise PreviousWriteError("close", "previous write failed")
        if self._state is FrameState.CLOSED:
            self._transition(FrameState.CLOSED)  # raises FrameStateError

        try:
            trailer = self._engine.end()
            if len(trailer) > self.buffer_size:
                raise EngineError(
                    "compress_end",
                    f"{len(trailer)} bytes exceeds bound {self.buffer_size}",
                )
            write_fully(self._channel, trailer)

            if self.write_content_size:
                try:
                    self._channel.seek(self._pos0)
                except OSError as e:
                    raise ChannelError("seek", e.strerror or str(e), errno=e.errno) from e
                except ValueError as e:
                    raise ChannelError("seek", str(e)) from e

                if not fix_frame_header(self._header, self.content_size):
                    raise HeaderFormatError("close", "cannot fix lz4 frame header")

                write_fully(self._channel, self._header)
        except BaseException:
            self._state = FrameState.ERROR
            self._release(primary_failure=True)
            raise

        self._release(primary_failure=False)
