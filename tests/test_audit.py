# Tests for the audit trail: AuditLogger hash chaining, sealing, and
# AuditChainVerifier tamper detection.

import hashlib
import json
import os
import tempfile
import threading

import pytest

from lz4writer.audit.logger import GENESIS_HASH, AuditLogger, AuditLoggerError
from lz4writer.audit.verify import AuditChainVerifier, ChainReport


def _read_entries(path: str) -> list[dict]:
    with open(path, "r", encoding="utf-8") as f:
        return [json.loads(line) for line in f if line.strip()]


class TestAuditLogger:
    def test_entries_are_chained(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "audit.jsonl")
            logger = AuditLogger(path)
            logger.log("first", "INFO", "FRAME_OPENED")
            logger.log("second", "INFO", "FRAME_CLOSED", context={"content_size": 11})

            entries = _read_entries(path)
        assert len(entries) == 2
        assert entries[0]["prev_hash"] == GENESIS_HASH
        assert entries[1]["prev_hash"] == entries[0]["entry_hash"]
        assert entries[1]["context"] == {"content_size": 11}
        assert entries[0]["session_id"] == entries[1]["session_id"]
        assert "context" not in entries[0]

    def test_entry_hash_covers_record(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "audit.jsonl")
            AuditLogger(path).log("msg")
            entry = _read_entries(path)[0]
        claimed = entry.pop("entry_hash")
        assert hashlib.sha256(json.dumps(entry, sort_keys=True).encode("utf-8")).hexdigest() == claimed

    def test_log_returns_display_line(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            line = AuditLogger(os.path.join(tmpdir, "a.jsonl")).log("hello", "WARNING")
        assert line.endswith("[WARNING] hello")

    def test_seal_blocks_further_entries(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "audit.jsonl")
            logger = AuditLogger(path)
            logger.log("one")
            final_hash = logger.seal()
            assert logger.is_sealed

            with open(path, "rb") as f:
                assert hashlib.sha256(f.read()).hexdigest() == final_hash
            assert not os.access(path, os.W_OK) or os.geteuid() == 0

            with pytest.raises(AuditLoggerError, match="sealed"):
                logger.log("two")
            os.chmod(path, 0o644)

    def test_missing_directory_rejected(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            with pytest.raises(AuditLoggerError, match="does not exist"):
                AuditLogger(os.path.join(tmpdir, "nope", "audit.jsonl"))

    def test_existing_file_rejected(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "audit.jsonl")
            with open(path, "w") as f:
                f.write("{}\n")
            with pytest.raises(AuditLoggerError, match="already exists"):
                AuditLogger(path)

    def test_concurrent_writes_keep_chain_intact(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "audit.jsonl")
            logger = AuditLogger(path)

            def _worker(n):
                for i in range(20):
                    logger.log(f"worker {n} entry {i}")

            threads = [threading.Thread(target=_worker, args=(n,)) for n in range(4)]
            for t in threads:
                t.start()
            for t in threads:
                t.join()

            ok, msg = AuditChainVerifier.verify_chain(path)
            assert ok, msg
            assert len(_read_entries(path)) == 80


class TestAuditChainVerifier:
    def _make_log(self, tmpdir: str) -> str:
        path = os.path.join(tmpdir, "audit.jsonl")
        logger = AuditLogger(path)
        for i in range(3):
            logger.log(f"event {i}", context={"i": i})
        return path

    def test_valid_chain(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            ok, msg = AuditChainVerifier.verify_chain(self._make_log(tmpdir))
        assert ok
        assert "3 records intact" in msg

    def test_missing_file(self):
        ok, msg = AuditChainVerifier.verify_chain("/nonexistent/audit.jsonl")
        assert not ok
        assert msg == "File not found."

    def test_modified_entry_detected(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = self._make_log(tmpdir)
            entries = _read_entries(path)
            entries[1]["message"] = "forged"
            with open(path, "w", encoding="utf-8") as f:
                for e in entries:
                    f.write(json.dumps(e, sort_keys=True) + "\n")
            ok, msg = AuditChainVerifier.verify_chain(path)
        assert not ok
        assert "line 2" in msg

    def test_removed_entry_detected(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = self._make_log(tmpdir)
            entries = _read_entries(path)
            del entries[1]
            with open(path, "w", encoding="utf-8") as f:
                for e in entries:
                    f.write(json.dumps(e, sort_keys=True) + "\n")
            ok, msg = AuditChainVerifier.verify_chain(path)
        assert not ok
        assert "Chain broken" in msg

    def test_missing_entry_hash_detected(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = self._make_log(tmpdir)
            entries = _read_entries(path)
            del entries[0]["entry_hash"]
            with open(path, "w", encoding="utf-8") as f:
                for e in entries:
                    f.write(json.dumps(e, sort_keys=True) + "\n")
            ok, msg = AuditChainVerifier.verify_chain(path)
        assert not ok
        assert "entry_hash" in msg

    def test_garbage_line_reported(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = self._make_log(tmpdir)
            with open(path, "a", encoding="utf-8") as f:
                f.write("not json\n")
            ok, msg = AuditChainVerifier.verify_chain(path)
        assert not ok
        assert "Verification error at line 4" in msg

    def test_require_sealed(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = self._make_log(tmpdir)
            report = AuditChainVerifier.verify(path, require_sealed=True)
            assert not report.ok
            assert report.message == "Audit trail is not sealed."
            assert report.records == 3

    def test_record_after_seal_detected(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "audit.jsonl")
            logger = AuditLogger(path)
            logger.log("one")
            logger.seal()
            os.chmod(path, 0o644)
            # Reopen the chain at its current head and append one more record.
            logger._is_sealed = False
            logger.log("smuggled")
            ok, msg = AuditChainVerifier.verify_chain(path)
        assert not ok
        assert msg == "Record after seal at line 3."


class TestChainReport:
    def test_frame_outcomes_collected(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "audit.jsonl")
            logger = AuditLogger(path)
            logger.log("Frame opened.", "INFO", "FRAME_OPENED", context={"compression_level": 1})
            logger.log("Frame closed.", "INFO", "FRAME_CLOSED", context={"content_size": 11})
            logger.log("Frame write failed.", "ERROR", "FRAME_FAILED",
                       context={"op": "write", "message": "Broken pipe"})
            logger.seal()
            report = AuditChainVerifier.verify(path, require_sealed=True)
            os.chmod(path, 0o644)

        assert report.ok, report.message
        assert report.sealed
        assert report.records == 4
        assert report.frames_closed == 1
        assert report.frames_failed == 1
        assert report.frames[0] == ("FRAME_CLOSED", {"content_size": 11})
        assert report.session_ids == [logger.session_id]

    def test_to_dict(self):
        report = ChainReport(True, "fine", records=1,
                             frames=[("FRAME_CLOSED", {"content_size": 0})])
        d = report.to_dict()
        assert d["frames"] == [{"event_type": "FRAME_CLOSED", "context": {"content_size": 0}}]
        assert json.loads(json.dumps(d))["records"] == 1
