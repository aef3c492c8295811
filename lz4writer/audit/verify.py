# Author: Futhark1393
# Description: Audit trail verifier for lz4writer runs.
# Walks the JSONL hash chain and summarises the recorded frame sessions:
# whether the trail was sealed, and how each frame ended.

import hashlib
import json
import os
from dataclasses import asdict, dataclass, field

from lz4writer.audit.logger import GENESIS_HASH

# Event types that end a frame session.
FRAME_OUTCOMES = ("FRAME_CLOSED", "FRAME_FAILED")


@dataclass
class ChainReport:
    """Outcome of verifying one audit trail."""
    ok: bool
    message: str
    records: int = 0
    sealed: bool = False
    session_ids: list = field(default_factory=list)
    frames: list = field(default_factory=list)  # (event_type, context) per outcome

    @property
    def frames_closed(self) -> int:
        return sum(1 for event, _ in self.frames if event == "FRAME_CLOSED")

    @property
    def frames_failed(self) -> int:
        return sum(1 for event, _ in self.frames if event == "FRAME_FAILED")

    def to_dict(self) -> dict:
        d = asdict(self)
        d["frames"] = [{"event_type": e, "context": c} for e, c in self.frames]
        return d


class AuditChainVerifier:
    @staticmethod
    def verify(filepath: str, require_sealed: bool = False) -> ChainReport:
        """
        Recompute every entry hash, check each record links to the previous
        one, and collect the frame outcomes recorded along the way.

        With *require_sealed*, a trail whose last record is not AUDIT_SEALED
        fails: records may have been cut off the end.
        """
        if not os.path.exists(filepath):
            return ChainReport(False, "File not found.")

        report = ChainReport(False, "")
        prev_hash = GENESIS_HASH
        last_event = None
        line_number = 0

        try:
            with open(filepath, "r", encoding="utf-8") as f:
                for line in f:
                    line_number += 1
                    if not line.strip():
                        continue

                    entry = json.loads(line)
                    claimed_entry = entry.pop("entry_hash", None)
                    if not claimed_entry:
                        report.message = f"'entry_hash' missing at line {line_number}."
                        return report

                    if entry.get("prev_hash") != prev_hash:
                        report.message = (
                            f"Chain broken at line {line_number}. "
                            f"Expected prev: {prev_hash}, found: {entry.get('prev_hash')}"
                        )
                        return report

                    digest = hashlib.sha256(
                        json.dumps(entry, sort_keys=True).encode("utf-8")
                    ).hexdigest()
                    if digest != claimed_entry:
                        report.message = (
                            f"Entry manipulation detected at line {line_number}. Hash mismatch."
                        )
                        return report

                    if last_event == "AUDIT_SEALED":
                        report.message = f"Record after seal at line {line_number}."
                        return report

                    prev_hash = claimed_entry
                    last_event = entry.get("event_type")
                    report.records += 1
                    session_id = entry.get("session_id")
                    if session_id and session_id not in report.session_ids:
                        report.session_ids.append(session_id)
                    if last_event in FRAME_OUTCOMES:
                        report.frames.append((last_event, entry.get("context", {})))
        except (OSError, ValueError) as e:
            report.message = f"Verification error at line {line_number}: {e}"
            return report

        report.sealed = last_event == "AUDIT_SEALED"
        if require_sealed and not report.sealed:
            report.message = "Audit trail is not sealed."
            return report

        report.ok = True
        report.message = f"Chain verified successfully. {report.records} records intact."
        return report

    @staticmethod
    def verify_chain(filepath: str) -> tuple[bool, str]:
        report = AuditChainVerifier.verify(filepath)
        return report.ok, report.message
