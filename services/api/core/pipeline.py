# services/api/core/pipeline.py

from __future__ import annotations

import base64
import binascii
import logging
from dataclasses import dataclass

from core.audit import AuditRecorder
from core.compositor import compose
from core.documents import ArtifactStore, DocumentSource, validate_document_id
from core.errors import ImageDecodeError, InternalError, SignError
from core.validation import validate_placement_field
from models import AuditRecord
from models.placement import PlacementField

logger = logging.getLogger(__name__)

_DATA_URL_PREFIX = "data:"


@dataclass(frozen=True)
class SignResult:
    """Outcome of one committed signing run."""
    record: AuditRecord
    artifact: str


def decode_signature_image(payload: str) -> bytes:
    """
    Decode a base64 signature (optionally a `data:image/png;base64,` URL).

    Raises:
        ImageDecodeError: payload is empty or not valid base64
    """
    data = (payload or "").strip()
    if data.startswith(_DATA_URL_PREFIX):
        _, _, data = data.partition(",")
    if not data:
        raise ImageDecodeError("Signature image is empty")
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ImageDecodeError(f"Signature image is not valid base64: {e}") from e


def sign_document(
    *,
    document_id: str,
    field: PlacementField,
    image_bytes: bytes,
    source: DocumentSource,
    recorder: AuditRecorder,
    artifacts: ArtifactStore,
) -> SignResult:
    """
    Resolve → compose → record, then publish the signed PDF.

    Steps run strictly in order and each one's output feeds the next.
    The artifact is published only after the audit record was appended, so
    a failure before that point leaves no artifact. If publishing itself
    fails, the already appended record remains in the trail and is logged
    at ERROR with its record id.

    Raises:
        SignError: the most specific kind for the failing step; anything
            unexpected is wrapped as InternalError.
    """
    try:
        # Eager input validation: a bad field never touches the document
        validate_placement_field(field)
        document_id = validate_document_id(document_id)

        original = source.read(document_id)
        signed = compose(original, field.page_index, field, image_bytes)
        record = recorder.record(document_id, original, signed)

        try:
            artifact = artifacts.publish(document_id, signed, record_id=record.record_id)
        except Exception:
            # The record stays in the append-only trail without a stored artifact
            logger.error(
                f"Audit record {record.record_id} for {document_id} is orphaned: "
                f"signed artifact {record.hash_after} was not stored"
            )
            raise
        return SignResult(record=record, artifact=artifact)

    except SignError as e:
        logger.warning(f"Signing {document_id} failed: {e.kind}: {e.message}")
        raise
    except Exception as e:
        logger.error(f"Unexpected error signing {document_id}: {e}", exc_info=True)
        raise InternalError(f"Unexpected error: {e}") from e
