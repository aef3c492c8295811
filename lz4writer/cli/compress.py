#!/usr/bin/env python3
# Author: Futhark1393
# Description: lz4writer CLI. Compresses stdin into a single LZ4 frame on stdout.
# Input is read in randomly sized pieces to exercise the streaming writer.
# The content size is stored in the frame header whenever stdout is seekable.
#
# Usage:  lz4writer -9 < input > output.lz4
#         cat input | lz4writer --checksum --audit-log run.jsonl > output.lz4

import argparse
import os
import random
import re
import sys

from lz4writer import __version__
from lz4writer.audit.logger import AuditLogger, AuditLoggerError
from lz4writer.core.channel import FdChannel
from lz4writer.core.errors import LZ4WriterError
from lz4writer.core.frame_writer import FrameState, FrameWriter
from lz4writer.core.hashing import StreamHasher

PROG = "lz4writer"
DEFAULT_LEVEL = 1
READ_BUFFER_SIZE = 512 << 10

_LEVEL_RE = re.compile(r"^-(\d+)")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    if argv is None:
        argv = sys.argv[1:]

    # Only a leading "-<digits>" selects the compression level; argparse
    # cannot express it.
    level = DEFAULT_LEVEL
    rest = list(argv)
    if rest:
        m = _LEVEL_RE.match(rest[0])
        if m:
            level = int(m.group(1))
            del rest[0]

    p = argparse.ArgumentParser(
        prog=PROG,
        description="Compress standard input into an LZ4 frame on standard output.",
        epilog="Use -<N> (e.g. -1, -9) to select the compression level (default: 1).",
    )
    p.add_argument("--checksum", action="store_true",
                   help="Append a content checksum to the frame")
    p.add_argument("--no-content-size", action="store_true",
                   help="Never store the content size, even when stdout is seekable")
    p.add_argument("--seed", type=int, default=None,
                   help="Seed for the random read sizes (reproducible runs)")
    p.add_argument("--audit-log", default="",
                   help="Write a hash-chained JSONL audit trail to this path")
    p.add_argument("--version", action="version", version=f"{PROG} {__version__}")

    args = p.parse_args(rest)
    args.level = level
    return args


def _error(func: str, e: LZ4WriterError) -> None:
    """Print ``prog: op: message`` or ``prog: func: op: message``."""
    op, message = e.err
    if func == op:
        print(f"{PROG}: {op}: {message}", file=sys.stderr)
    else:
        print(f"{PROG}: {func}: {op}: {message}", file=sys.stderr)


def _audit(audit: AuditLogger | None, message: str, level: str, event_type: str,
           context: dict | None = None) -> None:
    if audit is not None:
        audit.log(message, level, event_type, source_module="cli", context=context)


def _compress(args: argparse.Namespace, audit: AuditLogger | None) -> int:
    sys.stdout.flush()
    channel = FdChannel(os.dup(sys.stdout.fileno()))
    write_content_size = not args.no_content_size and channel.seekable()

    try:
        zw = FrameWriter(
            channel,
            compression_level=args.level,
            write_content_size=write_content_size,
            write_checksum=args.checksum,
        )
    except LZ4WriterError as e:
        channel.close()
        _error("open", e)
        _audit(audit, f"Frame open failed: {e}", "ERROR", "FRAME_FAILED",
               {"op": e.op, "message": e.message})
        return 1
    except ImportError as e:
        channel.close()
        print(f"{PROG}: {e}", file=sys.stderr)
        return 1

    try:
        _audit(audit, "Frame opened.", "INFO", "FRAME_OPENED", {
            "compression_level": args.level,
            "content_size_field": write_content_size,
            "content_checksum": args.checksum,
        })
        return _pump(zw, args, audit)
    finally:
        if zw.state is not FrameState.CLOSED:
            # releases the engine and the duplicated stdout fd; the first
            # failure is the one reported
            try:
                zw.close()
            except LZ4WriterError:
                pass


def _pump(zw: FrameWriter, args: argparse.Namespace, audit: AuditLogger | None) -> int:
    """Feed stdin to *zw* in random-sized reads, then finish the frame."""
    hasher = StreamHasher()
    rng = random.Random(args.seed)
    stdin = sys.stdin.buffer
    stdin_error = None

    while True:
        size = 1 + rng.randrange(READ_BUFFER_SIZE)
        try:
            buf = stdin.read(size)
        except OSError as e:
            stdin_error = e
            break
        if not buf:
            break
        hasher.update(buf)
        try:
            zw.write(buf)
        except LZ4WriterError as e:
            _error("write", e)
            _audit(audit, f"Frame write failed: {e}", "ERROR", "FRAME_FAILED",
                   {"op": e.op, "message": e.message, "content_size": zw.content_size})
            return 1

    try:
        zw.close()
    except LZ4WriterError as e:
        _error("close", e)
        _audit(audit, f"Frame close failed: {e}", "ERROR", "FRAME_FAILED",
               {"op": e.op, "message": e.message, "content_size": zw.content_size})
        return 1

    context = {"content_size": zw.content_size}
    context.update(hasher.as_context())
    _audit(audit, "Frame closed.", "INFO", "FRAME_CLOSED", context)

    if stdin_error is not None:
        print(f"{PROG}: stdin error", file=sys.stderr)
        _audit(audit, f"stdin error: {stdin_error}", "ERROR", "INPUT_FAILED")
        return 1

    return 0


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    if os.isatty(sys.stdout.fileno()):
        print(f"{PROG}: compressed data cannot be written to a terminal", file=sys.stderr)
        return 1
    if os.isatty(sys.stdin.fileno()):
        print(f"{PROG}: reading input from a terminal", file=sys.stderr)

    audit = None
    try:
        if args.audit_log:
            audit = AuditLogger(args.audit_log)
        rc = _compress(args, audit)
        if audit is not None:
            audit.seal()
    except AuditLoggerError as e:
        print(f"{PROG}: audit: {e}", file=sys.stderr)
        return 1

    return rc


if __name__ == "__main__":
    raise SystemExit(main())
