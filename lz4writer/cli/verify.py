#!/usr/bin/env python3
# Author: Futhark1393
# Description: lz4writer-verify. Standalone check of an lz4writer audit trail.
# Verifies the JSONL hash chain and reports how each recorded frame ended.
#
# Usage:
#   lz4writer-verify run.jsonl
#   lz4writer-verify run.jsonl --require-sealed
#   lz4writer-verify run.jsonl --json
#   lz4writer-verify run.jsonl --quiet

import argparse
import json
import os
import sys

from lz4writer.audit.verify import AuditChainVerifier

PROG = "lz4writer-verify"


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog=PROG,
        description="Verify an lz4writer JSONL audit trail (prev_hash → entry_hash).",
    )
    p.add_argument("audit_file", help="Path to the audit trail written with --audit-log")
    p.add_argument("--require-sealed", action="store_true",
                   help="Fail unless the trail ends with its seal record.")
    p.add_argument("--quiet", action="store_true",
                   help="Only print PASS/FAIL.")
    p.add_argument("--json", dest="json_output", action="store_true",
                   help="Output results as JSON (machine-readable).")
    return p.parse_args(argv)


def _print_frames(report) -> None:
    for event, context in report.frames:
        if event == "FRAME_CLOSED":
            print(f"  frame closed: {context.get('content_size', '?')} bytes, "
                  f"sha256 {context.get('input_sha256', '?')}")
        else:
            print(f"  frame failed: {context.get('op', '?')}: {context.get('message', '?')}")


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    path = args.audit_file

    if not os.path.exists(path):
        if args.json_output:
            print(json.dumps({"audit_file": path, "ok": False,
                              "message": f"file not found: {path}"}, indent=2))
        elif args.quiet:
            print("FAIL")
        else:
            print(f"FAIL: file not found: {path}")
        return 2

    report = AuditChainVerifier.verify(path, require_sealed=args.require_sealed)

    if args.json_output:
        result = {"audit_file": path}
        result.update(report.to_dict())
        print(json.dumps(result, indent=2))
    elif args.quiet:
        print("PASS" if report.ok else "FAIL")
    elif report.ok:
        print(f"PASS: {report.message}")
        print(f"  sealed: {'yes' if report.sealed else 'no'}")
        _print_frames(report)
    else:
        print(f"FAIL: {report.message}")

    return 0 if report.ok else 2


if __name__ == "__main__":
    raise SystemExit(main())
