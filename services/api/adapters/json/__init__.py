"""
JSON-lines file audit store.
Simple file-based storage for quick demos and testing.
One record per line; appends are serialised with a process-local lock and
fsync'ed before returning. Not suitable for multiple processes sharing a file.
"""
import os
import json
import threading
from typing import List
from pathlib import Path

from adapters.base import AuditStoreError
from models import AuditRecord
from models.converters import audit_record_from_storage


class JsonAuditStore:
    """
    JSON-lines audit store.
    The file is only ever opened in append mode for writes.
    """

    def __init__(self, path: str = "data/audit_log.jsonl"):
        """
        Initialize the JSON-lines store.

        Args:
            path: File holding the audit log (created if missing)
        """
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.touch(exist_ok=True)
        self._lock = threading.Lock()

    def _read_rows(self) -> List[dict]:
        """Read and parse every line; a torn trailing line is skipped."""
        rows = []
        with open(self.path, "r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                try:
                    rows.append(json.loads(line))
                except json.JSONDecodeError:
                    continue
        return rows

    def append(self, record: AuditRecord) -> None:
        line = json.dumps(record.to_storage(), ensure_ascii=False, sort_keys=True)
        try:
            with self._lock:
                with open(self.path, "a", encoding="utf-8") as f:
                    f.write(line + "\n")
                    f.flush()
                    os.fsync(f.fileno())
        except OSError as e:
            raise AuditStoreError(f"Failed to append audit record: {e}") from e

    def list_records(self, document_id: str) -> List[AuditRecord]:
        try:
            with self._lock:
                rows = self._read_rows()
        except OSError as e:
            raise AuditStoreError(f"Failed to read audit records: {e}") from e

        records = [
            audit_record_from_storage(r) for r in rows if r.get("document_id") == document_id
        ]
        records.sort(key=lambda r: (r.timestamp, r.record_id))
        return records

    def ping(self) -> None:
        if not os.access(self.path, os.W_OK):
            raise AuditStoreError(f"Audit log {self.path} is not writable")
