"""Health check endpoint.

Always returns 200 so load balancers keep routing; reports which design
service backs new sessions and how many sessions/images are held in memory.
"""

from __future__ import annotations

from fastapi import APIRouter

from tilevision.config import settings
from tilevision.session import store

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check() -> dict:
    return {
        "status": "ok",
        "version": "0.1.0",
        "environment": settings.environment,
        "design_service": type(store.get_design_service()).__name__,
        "sessions": store.session_count(),
        "images": len(store.images),
    }
