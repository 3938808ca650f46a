"""
File-system collaborators for the signing pipeline:
- DocumentSource: read-only access to the original PDFs
- ArtifactStore: where signed PDFs are published once audited
"""
from __future__ import annotations

import logging
import os
import re
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional
from uuid import uuid4

from core.errors import InternalError, InvalidField, NotFound

logger = logging.getLogger(__name__)

# Document ids double as file names; no separators, no leading dot.
_DOC_ID_RE = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9_.\-]{0,199}$")


def validate_document_id(document_id: str) -> str:
    """Reject ids that could escape the configured directory."""
    doc_id = (document_id or "").strip()
    if not _DOC_ID_RE.match(doc_id) or ".." in doc_id:
        raise InvalidField(f"Invalid documentId: {document_id!r}")
    return doc_id


class DocumentSource:
    """
    Reads original PDFs from `documents_dir/<documentId>`.

    `default_path` (optional) is served for `default_document_id`, so a
    single configured PDF keeps working exactly like a one-file deployment.
    """

    def __init__(
        self,
        documents_dir: str,
        *,
        default_document_id: Optional[str] = None,
        default_path: Optional[str] = None,
    ) -> None:
        self.documents_dir = Path(documents_dir)
        self.default_document_id = default_document_id
        self.default_path = Path(default_path) if default_path else None

    def path_for(self, document_id: str) -> Path:
        doc_id = validate_document_id(document_id)
        if self.default_path is not None and doc_id == self.default_document_id:
            return self.default_path
        return self.documents_dir / doc_id

    def read(self, document_id: str) -> bytes:
        """
        Return the full bytes of a source document.

        Raises:
            NotFound: no such document
        """
        path = self.path_for(document_id)
        try:
            with open(path, "rb") as f:
                return f.read()
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError) as e:
            logger.warning(f"Source document {document_id} not found at {path}")
            raise NotFound(f"Document {document_id} not found") from e


class ArtifactStore:
    """
    Publishes signed PDFs under `signed_dir/<documentId>/`.

    Every publish gets its own file name, so concurrent requests for the same
    source never overwrite each other. Files are written to a temp file in the
    same directory and renamed into place, so a reader never sees a partial
    artifact.
    """

    def __init__(self, signed_dir: str) -> None:
        self.signed_dir = Path(signed_dir)

    def _dir_for(self, document_id: str) -> Path:
        return self.signed_dir / validate_document_id(document_id)

    def publish(self, document_id: str, data: bytes, *, record_id: Optional[str] = None) -> str:
        """
        Store `data` and return the artifact name.

        Raises:
            InternalError: the file could not be written
        """
        target_dir = self._dir_for(document_id)
        stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")
        name = f"signed-{stamp}-{record_id or uuid4().hex[:12]}.pdf"
        target = target_dir / name

        tmp_path = None
        try:
            target_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=target_dir, suffix=".tmp")
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, target)
            tmp_path = None
        except OSError as e:
            raise InternalError(f"Failed to store signed document: {e}") from e
        finally:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)

        logger.info(f"Published signed artifact {name} for {document_id} ({len(data)} bytes)")
        return name

    def open(self, document_id: str, name: str) -> bytes:
        """
        Read back a published artifact.

        Raises:
            NotFound: unknown artifact
        """
        if not name.endswith(".pdf") or os.path.basename(name) != name or name.startswith("."):
            raise NotFound(f"Artifact {name} not found")
        path = self._dir_for(document_id) / name
        try:
            with open(path, "rb") as f:
                return f.read()
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError) as e:
            raise NotFound(f"Artifact {name} not found") from e
