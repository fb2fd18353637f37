"""
FastAPI routes for the X handle analysis service.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response

from app.core.config import AppSettings
from app.dependencies import SettingsDependency, get_analysis_request_handler
from app.services import AnalysisRequestHandler

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck(
    settings: AppSettings = SettingsDependency,
) -> dict:
    """Simple health endpoint for monitoring."""
    return {"status": "ok", "environment": settings.environment}


@router.post(
    "/analysis/x-handle",
    responses={
        400: {"description": "Missing or invalid parameters."},
        401: {"description": "Authorization header missing."},
        504: {"description": "Grok did not answer in time."},
    },
)
async def analyze_x_handle(
    request: Request,
    handler: Annotated[AnalysisRequestHandler, Depends(get_analysis_request_handler)],
) -> Response:
    """
    Analyse an X handle over a date range using Grok live search.

    The body is read raw so that missing fields produce the documented
    ``{"error": "Missing required parameters"}`` document instead of a
    framework validation error.
    """
    body = await request.body()
    result = await handler.handle(request.headers, body)
    return Response(
        content=result.body,
        status_code=result.status_code,
        media_type=result.media_type,
    )


__all__ = ["router"]
