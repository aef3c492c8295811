# Author: Futhark1393
# Description: Full-length channel writes.
# Retries interrupted writes and tolerates a single zero-progress write;
# two zero-progress writes in a row are treated as a stalled channel.

import errno
import os

from lz4writer.core.errors import ChannelError


def write_fully(channel, data) -> None:
    """
    Write every byte of *data* to *channel* or raise ChannelError.

    ``channel.write`` may return a short count, 0, or None (no progress).
    InterruptedError is retried indefinitely. Any other OSError is raised
    immediately with the errno captured at the point of failure; a negative
    count or a write on a closed file object is a ChannelError too.
    """
    view = memoryview(data).cast("B")
    zero = False
    while view:
        try:
            ret = channel.write(view)
        except InterruptedError:
            continue
        except OSError as e:
            raise ChannelError(
                "write", e.strerror or str(e), errno=e.errno
            ) from e
        except ValueError as e:
            # io raises ValueError for operations on a closed file
            raise ChannelError("write", str(e)) from e

        if not ret:
            if zero:
                # write keeps returning zero
                raise ChannelError(
                    "write", os.strerror(errno.EAGAIN), errno=errno.EAGAIN
                )
            zero = True
            continue

        zero = False
        if ret < 0:
            raise ChannelError("write", f"channel reported a negative write count {ret}")
        if ret > len(view):
            raise ChannelError(
                "write", f"channel reported {ret} bytes written, only {len(view)} requested"
            )
        view = view[ret:]
