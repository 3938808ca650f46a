"""
Pydantic schemas for audit trail reads and verification.
"""
from typing import List, Optional
from pydantic import BaseModel, Field


class AuditRecordOut(BaseModel):
    """One audit log entry."""
    recordId: str
    documentId: str
    hashBefore: str = Field(..., description="SHA-256 (hex) of the document before signing")
    hashAfter: str = Field(..., description="SHA-256 (hex) of the document after signing")
    timestamp: str


class AuditTrailOut(BaseModel):
    documentId: str
    count: int
    records: List[AuditRecordOut]


class VerifyRequest(BaseModel):
    """Check a PDF against a document's audit trail."""
    documentId: str = Field(..., min_length=1)
    documentBase64: str = Field(..., min_length=1, description="PDF bytes, base64")


class VerifyResponse(BaseModel):
    documentId: str
    sha256: str
    matchesSigned: bool = Field(..., description="Equals hashAfter of some record")
    matchesOriginal: bool = Field(..., description="Equals hashBefore of some record")
    recordId: Optional[str] = Field(None, description="First matching record, if any")
