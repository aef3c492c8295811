# Author: Futhark1393
# Description: LZ4 frame compress engine.
# Thin wrapper over lz4.frame.LZ4FrameCompressor exposing the four
# operations the frame writer relies on: begin, update, end, bound.
# Requires: lz4 (pip install lz4>=4.0.0).

from lz4writer.core.errors import EngineError

LZ4_AVAILABLE = False
_LZ4_IMPORT_ERROR = ""

try:
    import lz4.frame
    LZ4_AVAILABLE = True
except ImportError as _e:
    _LZ4_IMPORT_ERROR = str(_e)

# Maximum block size (lz4frame.h block size ID 5).
BLOCK_SIZE = 256 * 1024

_BLOCK_HEADER_SIZE = 4
_CHECKSUM_SIZE = 4


class LZ4Engine:
    """
    Incremental LZ4 frame compressor with a fixed 256 KiB maximum block size.

    begin() returns the frame header (no content size, no dictionary ID),
    update() returns zero or more bytes of compressed blocks, end() returns
    the remaining blocks plus the end mark and optional content checksum.
    lz4 failures are reported as EngineError.
    """

    def __init__(self, compression_level: int = 1, content_checksum: bool = False):
        """
        Args:
            compression_level: lz4 compression level (0..16, HC from 3).
            content_checksum: append an XXH32 of the whole content to the frame.

        Raises:
            ImportError: If lz4 is not installed.
        """
        if not LZ4_AVAILABLE:
            raise ImportError(
                "lz4 is not installed.\n"
                "Install with: pip install lz4>=4.0.0\n"
                f"Details: {_LZ4_IMPORT_ERROR}"
            )
        self.compression_level = compression_level
        self.content_checksum = content_checksum
        try:
            self._compressor = lz4.frame.LZ4FrameCompressor(
                block_size=lz4.frame.BLOCKSIZE_MAX256KB,
                compression_level=compression_level,
                content_checksum=content_checksum,
                auto_flush=False,
            )
        except (RuntimeError, ValueError) as e:
            raise EngineError("create_compression_context", str(e)) from e

    @property
    def block_size(self) -> int:
        return BLOCK_SIZE

    def bound(self, src_size: int) -> int:
        """
        Worst-case output size of a single update() or end() call fed
        *src_size* bytes (mirrors LZ4F_compressBound without auto-flush).
        """
        block_size = self.block_size
        max_src = src_size + (block_size - 1)
        full_blocks = max_src // block_size
        last_block = max_src % block_size if src_size == 0 else 0
        blocks = full_blocks + (1 if last_block else 0)
        frame_end = _BLOCK_HEADER_SIZE + (_CHECKSUM_SIZE if self.content_checksum else 0)
        return (
            _BLOCK_HEADER_SIZE * blocks
            + block_size * full_blocks
            + last_block
            + frame_end
        )

    def begin(self) -> bytes:
        try:
            return self._compressor.begin(source_size=0)
        except RuntimeError as e:
            raise EngineError("compress_begin", str(e)) from e

    def update(self, chunk) -> bytes:
        try:
            return self._compressor.compress(chunk)
        except RuntimeError as e:
            raise EngineError("compress_update", str(e)) from e

    def end(self) -> bytes:
        try:
            return self._compressor.flush()
        except RuntimeError as e:
            raise EngineError("compress_end", str(e)) from e

    def release(self) -> None:
        """Drop the compression context."""
        self._compressor = None
