# Author: Futhark1393
# Description: Output channels for the frame writer.
# A channel exposes write/close, plus tell/seek when the destination is
# repositionable. Seekability is probed once via seekable().

import os


class FdChannel:
    """
    Wraps a raw OS file descriptor.

    write() returns the byte count reported by os.write(), which may be
    short. The descriptor is owned by the channel and closed by close().
    """

    def __init__(self, fd: int):
        self._fd = fd
        self._closed = False

    @property
    def fd(self) -> int:
        return self._fd

    def seekable(self) -> bool:
        """Return True if the descriptor reports a current position (regular file)."""
        try:
            os.lseek(self._fd, 0, os.SEEK_CUR)
        except OSError:
            return False
        return True

    def write(self, data) -> int:
        return os.write(self._fd, data)

    def tell(self) -> int:
        return os.lseek(self._fd, 0, os.SEEK_CUR)

    def seek(self, pos: int) -> int:
        return os.lseek(self._fd, pos, os.SEEK_SET)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        os.close(self._fd)


class StreamChannel:
    """
    Wraps a binary file object (open(..., "wb"), io.BytesIO, a raw socket file).

    Writes go through the object's write(); buffered objects report the
    full length, raw ones may report short writes or None.
    """

    def __init__(self, fileobj, close_fileobj: bool = True):
        self._fh = fileobj
        self._close_fileobj = close_fileobj
        self._closed = False

    def seekable(self) -> bool:
        try:
            if not self._fh.seekable():
                return False
            self._fh.tell()
        except (AttributeError, OSError, ValueError):
            return False
        return True

    def write(self, data) -> int | None:
        return self._fh.write(data)

    def tell(self) -> int:
        return self._fh.tell()

    def seek(self, pos: int) -> int:
        return self._fh.seek(pos, os.SEEK_SET)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if getattr(self._fh, "closed", False) is True:
            return
        if hasattr(self._fh, "flush"):
            self._fh.flush()
        if self._close_fileobj:
            self._fh.close()
