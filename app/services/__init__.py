"""Service layer exports."""

from .handle_analysis import (
    AnalysisError,
    BadRequestError,
    HandleAnalysisService,
    InternalError,
    InvalidResponseShapeError,
    ProviderError,
    ProviderTimeoutError,
)
from .request_handler import AnalysisRequestHandler, HandlerResponse

__all__ = [
    "AnalysisError",
    "AnalysisRequestHandler",
    "BadRequestError",
    "HandleAnalysisService",
    "HandlerResponse",
    "InternalError",
    "InvalidResponseShapeError",
    "ProviderError",
    "ProviderTimeoutError",
]
