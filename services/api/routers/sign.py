# services/api/routers/sign.py
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from core.audit import AuditRecorder
from core.documents import ArtifactStore, DocumentSource
from core.pipeline import decode_signature_image, sign_document
from dependencies import get_artifact_store, get_audit_recorder, get_document_source
from schemas.sign import SignRequest, SignResponse
from settings import Settings, get_settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["sign"])


@router.post("/sign-pdf", response_model=SignResponse)
def sign_pdf(
    body: SignRequest,
    settings: Settings = Depends(get_settings),
    source: DocumentSource = Depends(get_document_source),
    recorder: AuditRecorder = Depends(get_audit_recorder),
    artifacts: ArtifactStore = Depends(get_artifact_store),
) -> SignResponse:
    """
    Burn a signature PNG into a page of the source PDF and record the audit trail.

    Expects:
    {
      "field": { "page": 1, "xPct": 0.25, "yPct": 0.25, "wPct": 0.3, "hPct": 0.08 },
      "signatureBase64": "<png, base64>",
      "documentId": "contract.pdf"        # optional
    }

    Plain `def` on purpose: FastAPI runs it in the threadpool, so pdfium and
    file I/O for one request never block another.
    """
    document_id = body.documentId or settings.default_document_id
    field = body.field.to_domain()
    image_bytes = decode_signature_image(body.signatureBase64)

    result = sign_document(
        document_id=document_id,
        field=field,
        image_bytes=image_bytes,
        source=source,
        recorder=recorder,
        artifacts=artifacts,
    )

    record = result.record
    logger.info(f"[sign-pdf] signed {record.document_id} page {field.page} → {result.artifact}")
    return SignResponse(
        documentId=record.document_id,
        recordId=record.record_id,
        hashBefore=record.hash_before,
        hashAfter=record.hash_after,
        timestamp=record.timestamp.isoformat(),
        artifact=result.artifact,
    )
