"""
Pydantic schemas for API request/response validation.
"""
from .sign import PlacementFieldIn, SignRequest, SignResponse
from .audit import AuditRecordOut, AuditTrailOut, VerifyRequest, VerifyResponse

__all__ = [
    "PlacementFieldIn",
    "SignRequest",
    "SignResponse",
    "AuditRecordOut",
    "AuditTrailOut",
    "VerifyRequest",
    "VerifyResponse",
]
