"""
Pydantic models for X handle analysis requests and their accounting blocks.
"""

from datetime import date
from typing import Any, Optional

from pydantic import BaseModel, Field


class AnalysisRequest(BaseModel):
    """Inbound payload asking for an analysis of one handle over a date range."""

    x_handle: Optional[str] = Field(
        None, description="X handle to analyse; a leading '@' is accepted."
    )
    from_date: Optional[str] = Field(None, description="Start date (YYYY-MM-DD).")
    to_date: Optional[str] = Field(None, description="End date (YYYY-MM-DD).")

    def missing_fields(self) -> list[str]:
        """Return the names of required fields that are absent or blank."""
        missing = []
        for name in ("x_handle", "from_date", "to_date"):
            value = getattr(self, name)
            if value is None or not str(value).strip():
                missing.append(name)
        return missing


class ValidatedAnalysisRequest(BaseModel):
    """Analysis request after validation and handle normalization."""

    handle: str = Field(..., min_length=1)
    from_date: date
    to_date: date

    @property
    def from_date_iso(self) -> str:
        return self.from_date.isoformat()

    @property
    def to_date_iso(self) -> str:
        return self.to_date.isoformat()


class TokenUsage(BaseModel):
    """Token and search accounting copied from the provider usage report."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    search_sources_used: int = 0
    estimated_cost_usd: float = 0.0


class ErrorResponse(BaseModel):
    """Shape of JSON error documents returned to callers."""

    error: str
    details: Optional[Any] = None
    message: Optional[str] = None
    raw_response: Optional[Any] = None


__all__ = [
    "AnalysisRequest",
    "ErrorResponse",
    "TokenUsage",
    "ValidatedAnalysisRequest",
]
