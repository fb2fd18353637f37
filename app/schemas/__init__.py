"""Public schema exports."""

from .analysis import (
    AnalysisRequest,
    ErrorResponse,
    TokenUsage,
    ValidatedAnalysisRequest,
)

__all__ = [
    "AnalysisRequest",
    "ErrorResponse",
    "TokenUsage",
    "ValidatedAnalysisRequest",
]
