"""
Liveness endpoint for the hosting platform.
"""

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_class=PlainTextResponse)
async def health():
    """Basic health check - always returns 200 if app is running."""
    return "ok"
