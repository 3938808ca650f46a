"""
DI helpers used by routers/*.

Each collaborator is built once from Settings on first use and injected
with FastAPI's Depends. Tests swap them via app.dependency_overrides.
"""
from __future__ import annotations

import logging
import threading
from typing import Optional

from fastapi import Depends

from adapters.base import AuditStore
from core.audit import AuditRecorder
from core.documents import ArtifactStore, DocumentSource
from settings import Settings, get_settings

logger = logging.getLogger(__name__)

_audit_store: Optional[AuditStore] = None
_audit_store_lock = threading.Lock()


def build_audit_store(settings: Settings) -> AuditStore:
    """Instantiate the configured audit backend."""
    backend = settings.storage_backend.lower()

    if backend == "sqlite":
        from adapters.sqlite import SqlAuditStore

        logger.info(f"Initializing SQL audit store ({settings.db_url.split('://')[0]})")
        return SqlAuditStore.from_url(settings.db_url)

    if backend == "json":
        from adapters.json import JsonAuditStore

        logger.info(f"Initializing JSON-lines audit store at {settings.audit_json_path}")
        return JsonAuditStore(settings.audit_json_path)

    raise ValueError(f"Unknown STORAGE_BACKEND: {settings.storage_backend}")


def get_audit_store(settings: Settings = Depends(get_settings)) -> AuditStore:
    global _audit_store
    if _audit_store is None:
        # sync routes run in the threadpool; build exactly one store
        with _audit_store_lock:
            if _audit_store is None:
                _audit_store = build_audit_store(settings)
    return _audit_store


def get_document_source(settings: Settings = Depends(get_settings)) -> DocumentSource:
    return DocumentSource(
        settings.documents_dir,
        default_document_id=settings.default_document_id,
        default_path=settings.pdf_path,
    )


def get_artifact_store(settings: Settings = Depends(get_settings)) -> ArtifactStore:
    return ArtifactStore(settings.signed_dir)


def get_audit_recorder(
    store: AuditStore = Depends(get_audit_store),
    settings: Settings = Depends(get_settings),
) -> AuditRecorder:
    return AuditRecorder(store, max_attempts=settings.audit_write_attempts)


def shutdown_audit_store() -> None:
    """Release engine connections on shutdown."""
    global _audit_store
    with _audit_store_lock:
        dispose = getattr(_audit_store, "dispose", None)
        if callable(dispose):
            dispose()
        _audit_store = None
