# Author: Futhark1393
# Description: Incremental digest of the uncompressed input stream.
# Recorded in the audit trail so a frame can be tied back to its source bytes.

import hashlib


class StreamHasher:
    """SHA-256 + MD5 of everything fed to a frame, with a running byte count."""

    def __init__(self):
        self._sha256 = hashlib.sha256()
        self._md5 = hashlib.md5()
        self.total_bytes = 0

    def update(self, data) -> None:
        self._sha256.update(data)
        self._md5.update(data)
        self.total_bytes += len(data)

    @property
    def sha256_hex(self) -> str:
        return self._sha256.hexdigest()

    @property
    def md5_hex(self) -> str:
        return self._md5.hexdigest()

    def as_context(self) -> dict:
        return {
            "input_sha256": self.sha256_hex,
            "input_md5": self.md5_hex,
            "input_bytes": self.total_bytes,
        }
