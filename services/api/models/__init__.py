from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _gen_record_id() -> str:
    return f"a-{uuid4().hex[:12]}"


class AuditRecord(BaseModel):
    """
    Domain model for one row of the append-only audit log.

    Links the SHA-256 of a document immediately before and immediately
    after a signature was burned into it. Never updated or deleted.
    """
    model_config = ConfigDict(frozen=True)

    record_id: str = Field(default_factory=_gen_record_id)
    document_id: str
    hash_before: str
    hash_after: str
    timestamp: datetime = Field(default_factory=_utcnow)

    def to_api(self) -> Dict[str, Any]:
        return {
            "recordId": self.record_id,
            "documentId": self.document_id,
            "hashBefore": self.hash_before,
            "hashAfter": self.hash_after,
            "timestamp": self.timestamp.isoformat(),
        }

    def to_storage(self) -> Dict[str, Any]:
        return {
            "record_id": self.record_id,
            "document_id": self.document_id,
            "hash_before": self.hash_before,
            "hash_after": self.hash_after,
            "timestamp": self.timestamp.isoformat(),
        }
