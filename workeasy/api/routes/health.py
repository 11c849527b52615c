"""
Health Check API Routes
"""

from typing import Any

from fastapi import APIRouter

from workeasy import __version__
from workeasy.core.config import settings

router = APIRouter(tags=["health"])


@router.get("/health", summary="Service liveness")
def health() -> dict[str, Any]:
    return {
        "status": "ok",
        "environment": settings.ENVIRONMENT,
        "version": __version__,
    }
