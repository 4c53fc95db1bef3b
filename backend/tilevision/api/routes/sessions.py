"""Edit session endpoints.

Every mutating endpoint returns the session snapshot so the client can render
from a single shape. Design-service failures during an edit are not HTTP
errors: they land in ``error`` on the snapshot and the step returns to
``editing``. Requests the session cannot accept raise SessionError, mapped
to 409/422 in main.py.
"""

from __future__ import annotations

import io
import re
import zipfile
from typing import Annotated

import structlog
from fastapi import APIRouter, Body, Form, Query, UploadFile
from fastapi.responses import JSONResponse, Response

from tilevision.config import settings
from tilevision.errors import InvalidInputError
from tilevision.models.contracts import (
    ActionResponse,
    CreateSessionRequest,
    CreateSessionResponse,
    CustomPromptDraft,
    EditRequest,
    ErrorResponse,
    GeneratedDesign,
    Product,
    SelectColorRequest,
    SelectionToggleResponse,
    SelectObjectsRequest,
    SessionState,
)
from tilevision.session import store
from tilevision.session.controller import EditSession
from tilevision.session.intents import resolve_intent
from tilevision.utils.http import download_image
from tilevision.utils.image import validate_upload

logger = structlog.get_logger()

router = APIRouter(tags=["sessions"])

_NOT_FOUND = ("session_not_found", "Session not found")

_ERRORS = {
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
}

_EXTENSIONS = {"image/png": "png", "image/jpeg": "jpg", "image/webp": "webp", "image/gif": "gif"}


def _error(status: int, code: str, message: str, *, retryable: bool = False) -> JSONResponse:
    return JSONResponse(
        status_code=status,
        content=ErrorResponse(error=code, message=message, retryable=retryable).model_dump(),
    )


def _session(session_id: str) -> EditSession | None:
    session = store.get_session(session_id)
    if session is not None:
        structlog.contextvars.bind_contextvars(session_id=session_id)
    return session


async def _read_upload(file: UploadFile) -> bytes | JSONResponse:
    """Stream-read an upload, stopping as soon as it exceeds the size limit."""
    chunks: list[bytes] = []
    total = 0
    while chunk := await file.read(65_536):
        total += len(chunk)
        if total > settings.max_upload_bytes:
            mb = settings.max_upload_bytes // (1024 * 1024)
            return _error(413, "file_too_large", f"Image exceeds {mb} MB limit")
        chunks.append(chunk)
    return b"".join(chunks)


def _design_filename(design: GeneratedDesign, used: set[str]) -> str:
    """Zip member name for a design, suffixed ``_2``, ``_3``... on collision."""
    stem = re.sub(r"\s+", "_", design.tile_name) + f"_{design.tile_code}"
    name = f"{stem}.png"
    n = 2
    while name in used:
        name = f"{stem}_{n}.png"
        n += 1
    used.add(name)
    return name


# --- Lifecycle ---


@router.post("/sessions", status_code=201, response_model=CreateSessionResponse)
async def create_session(body: CreateSessionRequest) -> CreateSessionResponse:
    session = store.create_session(body.room_type)
    return CreateSessionResponse(session_id=session.session_id)


@router.get("/sessions/{session_id}", response_model=SessionState, responses=_ERRORS)
async def get_session_state(session_id: str):
    session = _session(session_id)
    if session is None:
        return _error(404, *_NOT_FOUND)
    return session.snapshot()


@router.delete("/sessions/{session_id}", status_code=204, responses=_ERRORS)
async def delete_session(session_id: str):
    if not store.delete_session(session_id):
        return _error(404, *_NOT_FOUND)
    return Response(status_code=204)


# --- Upload & detection ---


@router.post(
    "/sessions/{session_id}/image",
    response_model=SessionState,
    responses={**_ERRORS, 413: {"model": ErrorResponse}},
)
async def upload_image(session_id: str, file: UploadFile):
    """Upload the room photo and run detection. Returns the state afterwards."""
    session = _session(session_id)
    if session is None:
        return _error(404, *_NOT_FOUND)
    data = await _read_upload(file)
    if isinstance(data, JSONResponse):
        return data
    mime_type = validate_upload(data, file.content_type)
    await session.upload(data, mime_type)
    return session.snapshot()


@router.post("/sessions/{session_id}/themes", response_model=SessionState, responses=_ERRORS)
async def regenerate_themes(session_id: str):
    session = _session(session_id)
    if session is None:
        return _error(404, *_NOT_FOUND)
    await session.generate_themes()
    return session.snapshot()


# --- Edits ---


@router.post("/sessions/{session_id}/edits", response_model=SessionState, responses=_ERRORS)
async def apply_edit(session_id: str, body: Annotated[EditRequest, Body()]):
    """Apply one edit described by catalog ids. Service failures land in ``error``."""
    session = _session(session_id)
    if session is None:
        return _error(404, *_NOT_FOUND)
    intent = resolve_intent(
        body,
        session.config,
        themes=session.design_themes,
        products=session.products,
    )
    await session.apply_edit(intent)
    return session.snapshot()


@router.post(
    "/sessions/{session_id}/selections/{registry}/apply",
    response_model=SessionState,
    responses=_ERRORS,
)
async def apply_selection(session_id: str, registry: str):
    session = _session(session_id)
    if session is None:
        return _error(404, *_NOT_FOUND)
    await session.apply_selection(registry)
    return session.snapshot()


@router.post(
    "/sessions/{session_id}/selections/{registry}/{item_id}",
    response_model=SelectionToggleResponse,
    responses=_ERRORS,
)
async def toggle_selection(session_id: str, registry: str, item_id: str):
    session = _session(session_id)
    if session is None:
        return _error(404, *_NOT_FOUND)
    selected = session.toggle_selection(registry, item_id)
    return SelectionToggleResponse(
        registry=registry,
        item_id=item_id,
        selected=selected,
        selection=session.registry(registry).ids(),
    )


@router.put("/sessions/{session_id}/objects", response_model=SessionState, responses=_ERRORS)
async def select_objects(session_id: str, body: SelectObjectsRequest):
    session = _session(session_id)
    if session is None:
        return _error(404, *_NOT_FOUND)
    session.select_objects(body.object_names)
    return session.snapshot()


@router.put("/sessions/{session_id}/color", response_model=SessionState, responses=_ERRORS)
async def select_color(session_id: str, body: SelectColorRequest):
    session = _session(session_id)
    if session is None:
        return _error(404, *_NOT_FOUND)
    session.select_color(body.hex)
    return session.snapshot()


@router.put("/sessions/{session_id}/prompt", response_model=SessionState, responses=_ERRORS)
async def set_custom_prompt(session_id: str, body: CustomPromptDraft):
    session = _session(session_id)
    if session is None:
        return _error(404, *_NOT_FOUND)
    session.set_custom_prompt(body.text)
    return session.snapshot()


@router.post(
    "/sessions/{session_id}/products",
    status_code=201,
    response_model=Product,
    responses={**_ERRORS, 413: {"model": ErrorResponse}},
)
async def add_product(
    session_id: str,
    name: Annotated[str, Form(min_length=1, max_length=200)],
    file: UploadFile | None = None,
    image_url: Annotated[str | None, Form()] = None,
):
    """Register a product image from an upload or an http(s)/data URL."""
    session = _session(session_id)
    if session is None:
        return _error(404, *_NOT_FOUND)
    if file is not None:
        data = await _read_upload(file)
        if isinstance(data, JSONResponse):
            return data
        mime_type = validate_upload(data, file.content_type)
    elif image_url:
        data, content_type = await download_image(image_url)
        mime_type = validate_upload(data, content_type)
    else:
        raise InvalidInputError("Provide a product image file or image_url")
    return session.add_product(name, data, mime_type)


# --- History ---


@router.post("/sessions/{session_id}/undo", response_model=SessionState, responses=_ERRORS)
async def undo(session_id: str):
    session = _session(session_id)
    if session is None:
        return _error(404, *_NOT_FOUND)
    session.undo()
    return session.snapshot()


@router.post("/sessions/{session_id}/redo", response_model=SessionState, responses=_ERRORS)
async def redo(session_id: str):
    session = _session(session_id)
    if session is None:
        return _error(404, *_NOT_FOUND)
    session.redo()
    return session.snapshot()


@router.post(
    "/sessions/{session_id}/history/{index}", response_model=SessionState, responses=_ERRORS
)
async def select_history(session_id: str, index: int):
    session = _session(session_id)
    if session is None:
        return _error(404, *_NOT_FOUND)
    session.select_history(index)
    return session.snapshot()


@router.post("/sessions/{session_id}/reset", response_model=ActionResponse, responses=_ERRORS)
async def reset(session_id: str):
    """Start over. Allowed while a call is in flight; its result is discarded."""
    session = _session(session_id)
    if session is None:
        return _error(404, *_NOT_FOUND)
    session.reset()
    return ActionResponse()


# --- Downloads & gallery ---


@router.get("/sessions/{session_id}/download", responses=_ERRORS)
async def download_current(session_id: str):
    session = _session(session_id)
    if session is None:
        return _error(404, *_NOT_FOUND)
    current = session.history.current()
    if current is None:
        return _error(409, "no_image", "No image to download yet")
    stored = store.images.get(current.image_id)
    if stored is None:
        return _error(404, "image_not_found", "Image not found")
    ext = _EXTENSIONS.get(stored.mime_type, "png")
    filename = f"{session.config.room_type}-design.{ext}"
    return Response(
        content=stored.data,
        media_type=stored.mime_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get(
    "/sessions/{session_id}/gallery",
    response_model=list[GeneratedDesign],
    responses=_ERRORS,
)
async def list_gallery(session_id: str):
    session = _session(session_id)
    if session is None:
        return _error(404, *_NOT_FOUND)
    return session.gallery


@router.get("/sessions/{session_id}/gallery/download", responses=_ERRORS)
async def download_gallery(
    session_id: str,
    ids: Annotated[list[str] | None, Query()] = None,
):
    """Zip the selected designs (all designs when no ids are given)."""
    session = _session(session_id)
    if session is None:
        return _error(404, *_NOT_FOUND)
    designs = session.gallery
    if ids:
        wanted = set(ids)
        designs = [d for d in designs if d.design_id in wanted]
    if not designs:
        return _error(409, "gallery_empty", "No designs to download")

    buf = io.BytesIO()
    used: set[str] = set()
    with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED) as archive:
        for design in designs:
            archive.writestr(_design_filename(design, used), store.images.data(design.image))
    logger.info("gallery_downloaded", count=len(designs))
    return Response(
        content=buf.getvalue(),
        media_type="application/zip",
        headers={"Content-Disposition": 'attachment; filename="tile-designs.zip"'},
    )
