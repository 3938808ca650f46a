"""
Pydantic schemas for the signing endpoint.
Field names are camelCase to match what the browser sends.
"""

from typing import Optional
from pydantic import AliasChoices, BaseModel, Field, model_validator

from models.placement import PlacementField


class PlacementFieldIn(BaseModel):
    """
    Signature box as fractions of the page (origin top-left).
    Off-page boxes are rejected, never clamped.
    """
    page: int = Field(..., ge=1, description="Target page (1-based)")

    xPct: float = Field(..., ge=0.0, le=1.0, description="Left edge, fraction of page width")
    yPct: float = Field(..., ge=0.0, le=1.0, description="Top edge, fraction of page height")
    wPct: float = Field(..., gt=0.0, le=1.0, description="Width, fraction of page width")
    hPct: float = Field(..., gt=0.0, le=1.0, description="Height, fraction of page height")

    @model_validator(mode="after")
    def validate_bounds(self) -> "PlacementFieldIn":
        """Ensure the box lies on the page."""
        if self.xPct + self.wPct > 1.0 + 1e-9:
            raise ValueError(
                f"Box extends beyond page width: xPct({self.xPct}) + wPct({self.wPct}) > 1.0"
            )
        if self.yPct + self.hPct > 1.0 + 1e-9:
            raise ValueError(
                f"Box extends beyond page height: yPct({self.yPct}) + hPct({self.hPct}) > 1.0"
            )
        return self

    def to_domain(self) -> PlacementField:
        return PlacementField(
            page=self.page,
            x_pct=self.xPct,
            y_pct=self.yPct,
            w_pct=self.wPct,
            h_pct=self.hPct,
        )


class SignRequest(BaseModel):
    """Request body for POST /sign-pdf."""
    field: PlacementFieldIn
    signatureBase64: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("signatureBase64", "signatureImage"),
        description="PNG bytes, base64 (a data: URL prefix is accepted)",
    )
    documentId: Optional[str] = Field(
        default=None,
        description="Source document id; defaults to the configured document",
    )


class SignResponse(BaseModel):
    """Successful signing run."""
    success: bool = True
    documentId: str
    recordId: str
    hashBefore: str
    hashAfter: str
    timestamp: str
    artifact: str = Field(..., description="Name of the stored signed PDF")
