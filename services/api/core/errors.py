"""
Error taxonomy for the signing pipeline.

Every failure surfaces to the caller as one of these kinds. The HTTP layer
maps them to a JSON body `{success: false, error: {kind, message}}` using
`status_code`.
"""
from __future__ import annotations

from typing import Any, Dict


class SignError(Exception):
    """Base class for all pipeline failures."""

    kind = "InternalError"
    status_code = 500

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.kind)
        self.message = message or self.kind

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "message": self.message}


class InvalidField(SignError):
    """Malformed or out-of-range placement field (or request body)."""
    kind = "InvalidField"
    status_code = 400


class DocumentLoadError(SignError):
    """Source bytes are not a loadable PDF, or the page index is out of range."""
    kind = "DocumentLoadError"
    status_code = 400


class ImageDecodeError(SignError):
    """Signature bytes are not a supported raster image (PNG only)."""
    kind = "ImageDecodeError"
    status_code = 400


class NotFound(SignError):
    kind = "NotFound"
    status_code = 404


class AuditWriteError(SignError):
    """The audit record could not be persisted."""
    kind = "AuditWriteError"
    status_code = 500


class InternalError(SignError):
    kind = "InternalError"
    status_code = 500
