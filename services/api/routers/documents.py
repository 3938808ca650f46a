# services/api/routers/documents.py
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from core.documents import ArtifactStore
from dependencies import get_artifact_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/documents", tags=["documents"])


@router.get("/{document_id}/signed/{artifact}")
def download_signed(
    document_id: str,
    artifact: str,
    artifacts: ArtifactStore = Depends(get_artifact_store),
) -> Response:
    """
    Download a signed PDF published by /sign-pdf.
    Only artifacts whose audit record was committed are ever published.
    """
    data = artifacts.open(document_id, artifact)
    return Response(
        content=data,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="{artifact}"',
            "Cache-Control": "no-store",
        },
    )
