# services/api/routers/audit.py
from __future__ import annotations

import base64
import binascii
import logging

from fastapi import APIRouter, Depends

from adapters.base import AuditStore, AuditStoreError
from core.documents import validate_document_id
from core.errors import DocumentLoadError, InternalError
from core.hashing import sha256_hex
from dependencies import get_audit_store
from schemas.audit import AuditRecordOut, AuditTrailOut, VerifyRequest, VerifyResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/audit", tags=["audit"])


def _load_trail(store: AuditStore, document_id: str):
    try:
        return store.list_records(document_id)
    except AuditStoreError as e:
        logger.error(f"Reading audit trail for {document_id} failed: {e}")
        raise InternalError("Audit trail is unavailable") from e


@router.get("/{document_id}", response_model=AuditTrailOut)
def get_audit_trail(document_id: str, store: AuditStore = Depends(get_audit_store)) -> AuditTrailOut:
    """
    Every audit record for a document, oldest first.
    Retried appends can leave duplicate rows; they are returned as stored.
    """
    doc_id = validate_document_id(document_id)
    records = _load_trail(store, doc_id)
    return AuditTrailOut(
        documentId=doc_id,
        count=len(records),
        records=[AuditRecordOut(**r.to_api()) for r in records],
    )


@router.post("/verify", response_model=VerifyResponse)
def verify_document(body: VerifyRequest, store: AuditStore = Depends(get_audit_store)) -> VerifyResponse:
    """
    Hash an uploaded PDF and look it up in the document's trail.

    matchesSigned   → the bytes are an artifact this service produced
    matchesOriginal → the bytes are a source that was signed at some point
    """
    doc_id = validate_document_id(body.documentId)
    try:
        pdf_bytes = base64.b64decode(body.documentBase64, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DocumentLoadError(f"documentBase64 is not valid base64: {e}") from e
    if not pdf_bytes:
        raise DocumentLoadError("documentBase64 decodes to an empty document")

    digest = sha256_hex(pdf_bytes)
    records = _load_trail(store, doc_id)

    signed_match = next((r for r in records if r.hash_after == digest), None)
    original_match = next((r for r in records if r.hash_before == digest), None)
    match = signed_match or original_match

    return VerifyResponse(
        documentId=doc_id,
        sha256=digest,
        matchesSigned=signed_match is not None,
        matchesOriginal=original_match is not None,
        recordId=match.record_id if match else None,
    )
