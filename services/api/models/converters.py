from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict

from . import AuditRecord


def _datetime_from_storage(v: Any) -> datetime:
    """
    Convert a stored timestamp back to an aware UTC datetime.
    Accepts: datetime (SQLite hands back naive values) or ISO-8601 strings.
    """
    if isinstance(v, datetime):
        dt = v
    else:
        dt = datetime.fromisoformat(str(v).strip())
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def audit_record_from_storage(row: Dict[str, Any]) -> AuditRecord:
    """
    Convert a raw row (SQL mapping or JSON line) into an AuditRecord.
    """
    return AuditRecord(
        record_id=str(row.get("record_id", "")),
        document_id=str(row.get("document_id", "")),
        hash_before=str(row.get("hash_before", "")),
        hash_after=str(row.get("hash_after", "")),
        timestamp=_datetime_from_storage(row.get("timestamp")),
    )
