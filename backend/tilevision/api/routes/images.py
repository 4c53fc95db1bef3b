"""Serves image buffers referenced by ``ImageRef.url``."""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import JSONResponse, Response

from tilevision.models.contracts import ErrorResponse
from tilevision.session import store

router = APIRouter(tags=["images"])


@router.get("/images/{image_id}", responses={404: {"model": ErrorResponse}})
async def get_image(image_id: str):
    stored = store.images.get(image_id)
    if stored is None:
        return JSONResponse(
            status_code=404,
            content=ErrorResponse(
                error="image_not_found", message="Image not found", retryable=False
            ).model_dump(),
        )
    # Ids are random per buffer and buffers never change
    return Response(
        content=stored.data,
        media_type=stored.mime_type,
        headers={"Cache-Control": "private, max-age=3600"},
    )
