# Author: Futhark1393
# Description: Structured audit trail for frame-writing sessions.
# Features: JSONL records, SHA-256 hash chaining, thread-safety,
#          fsync on every record, and sealing.

import hashlib
import json
import os
import threading
import uuid
from datetime import datetime, timezone

GENESIS_HASH = hashlib.sha256(b"LZ4WRITER_GENESIS_BLOCK").hexdigest()


class AuditLoggerError(Exception):
    pass


class AuditLogger:
    """
    Appends hash-chained JSON records to *log_file_path*.

    Each record stores the hash of the previous one (``prev_hash``) and its
    own hash (``entry_hash``), computed over the record serialised with
    sorted keys. Once sealed, further appends raise AuditLoggerError.
    """

    def __init__(self, log_file_path: str):
        self.session_id = str(uuid.uuid4())
        self.log_file_path = log_file_path

        self._lock = threading.Lock()
        self.prev_hash = GENESIS_HASH
        self._is_sealed = False

        parent = os.path.dirname(os.path.abspath(log_file_path))
        if not os.path.isdir(parent):
            raise AuditLoggerError(f"Audit log directory does not exist: {parent}")
        if os.path.exists(log_file_path):
            raise AuditLoggerError(f"Audit log already exists: {log_file_path}")

    @property
    def is_sealed(self) -> bool:
        return self._is_sealed

    def log(
        self,
        message: str,
        level: str = "INFO",
        event_type: str = "GENERAL",
        source_module: str = "core",
        context: dict | None = None,
    ) -> str:
        with self._lock:
            return self._internal_log_unlocked(message, level, event_type, source_module, context)

    def _internal_log_unlocked(
        self,
        message: str,
        level: str,
        event_type: str,
        source_module: str,
        context: dict | None = None,
    ) -> str:
        if self._is_sealed:
            raise AuditLoggerError(f"Audit log is sealed. Attempted to append: {message}")

        timestamp_iso = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")

        log_entry = {
            "timestamp": timestamp_iso,
            "session_id": self.session_id,
            "event_id": str(uuid.uuid4()),
            "event_type": event_type,
            "severity": level,
            "source_module": source_module,
            "message": message,
        }
        if context:
            log_entry["context"] = context

        self._write_to_file(log_entry)
        return f"[{timestamp_iso}] [{level}] {message}"

    def _write_to_file(self, log_entry: dict) -> None:
        try:
            log_entry["prev_hash"] = self.prev_hash

            entry_json = json.dumps(log_entry, sort_keys=True)
            entry_hash = hashlib.sha256(entry_json.encode("utf-8")).hexdigest()
            log_entry["entry_hash"] = entry_hash

            with open(self.log_file_path, "a", encoding="utf-8") as f:
                f.write(json.dumps(log_entry, sort_keys=True) + "\n")
                f.flush()
                os.fsync(f.fileno())
        except OSError as e:
            raise AuditLoggerError(f"Audit log write error: {e}") from e

        self.prev_hash = entry_hash

    def seal(self) -> str:
        """
        Append a closing record, stop accepting records, make the file
        read-only, and return the SHA-256 of the whole file.
        """
        with self._lock:
            self._internal_log_unlocked(
                "Sealing audit trail.", "INFO", "AUDIT_SEALED", source_module="audit"
            )
            self._is_sealed = True

            hasher = hashlib.sha256()
            try:
                with open(self.log_file_path, "rb") as f:
                    for chunk in iter(lambda: f.read(4096), b""):
                        hasher.update(chunk)
                os.chmod(self.log_file_path, 0o444)
            except OSError as e:
                raise AuditLoggerError(f"Failed to seal audit trail: {e}") from e
            return hasher.hexdigest()
