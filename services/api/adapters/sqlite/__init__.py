# services/api/adapters/sqlite/__init__.py
from __future__ import annotations

import os
import sqlite3
from dataclasses import dataclass
from typing import List

from sqlalchemy import (
    Column,
    DateTime,
    Index,
    MetaData,
    String,
    Table,
    create_engine,
    insert,
    select,
    text,
    event,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from adapters.base import AuditStoreError
from models import AuditRecord
from models.converters import audit_record_from_storage

# ---- Engine (SQLite) with WAL & pragmas -------------------------------------

def _ensure_dir(path: str):
    d = os.path.dirname(path)
    if d and not os.path.isdir(d):
        os.makedirs(d, exist_ok=True)

def make_engine(db_url: str) -> Engine:
    # Create data dir if sqlite file
    if db_url.startswith("sqlite:///"):
        file_path = db_url.replace("sqlite:///", "", 1)
        _ensure_dir(file_path)

    engine = create_engine(db_url, future=True, pool_pre_ping=True)

    # Apply pragmas per-connection
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):  # type: ignore
        if isinstance(dbapi_connection, sqlite3.Connection):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL;")
            cursor.execute("PRAGMA synchronous=FULL;")
            cursor.close()

    return engine

# ---- Schema via SQLAlchemy Core ---------------------------------------------

metadata = MetaData()

audit_log = Table(
    "audit_log",
    metadata,
    Column("record_id", String, primary_key=True),
    Column("document_id", String, nullable=False),
    Column("hash_before", String(64), nullable=False),
    Column("hash_after", String(64), nullable=False),
    Column("timestamp", DateTime(timezone=True), nullable=False),
)

Index("idx_audit_document", audit_log.c.document_id)
Index("idx_audit_document_ts", audit_log.c.document_id, audit_log.c.timestamp)

# ---- Adapter implementation --------------------------------------------------

@dataclass(frozen=True)
class SqlAuditStore:
    """
    Audit store on any SQLAlchemy URL (SQLite file by default).
    Insert-only; one transaction per append.
    """
    engine: Engine

    @classmethod
    def from_url(cls, db_url: str = "sqlite:///data/audit.db") -> "SqlAuditStore":
        eng = make_engine(db_url)
        metadata.create_all(eng)
        return cls(engine=eng)

    def append(self, record: AuditRecord) -> None:
        try:
            with self.engine.begin() as conn:
                conn.execute(
                    insert(audit_log).values(
                        record_id=record.record_id,
                        document_id=record.document_id,
                        hash_before=record.hash_before,
                        hash_after=record.hash_after,
                        timestamp=record.timestamp,
                    )
                )
        except SQLAlchemyError as e:
            raise AuditStoreError(f"Failed to append audit record: {e}") from e

    def list_records(self, document_id: str) -> List[AuditRecord]:
        try:
            with self.engine.begin() as conn:
                q = (
                    select(audit_log)
                    .where(audit_log.c.document_id == document_id)
                    .order_by(audit_log.c.timestamp.asc(), audit_log.c.record_id.asc())
                )
                rows = conn.execute(q).mappings().all()
        except SQLAlchemyError as e:
            raise AuditStoreError(f"Failed to read audit records: {e}") from e
        return [audit_record_from_storage(dict(row)) for row in rows]

    def ping(self) -> None:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            raise AuditStoreError(f"Audit database unreachable: {e}") from e

    def dispose(self) -> None:
        self.engine.dispose()
