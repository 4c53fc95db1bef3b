"""Read-only catalog endpoints: rooms, tiles, floor textures and palettes."""

from __future__ import annotations

from fastapi import APIRouter

from tilevision.catalog import FLOOR_TEXTURES, ROOM_CONFIGS, STANDARD_PALETTES, get_room_config
from tilevision.models.contracts import (
    ColorPalette,
    ErrorResponse,
    FloorCategory,
    RoomCatalog,
    RoomSummary,
)

router = APIRouter(prefix="/catalog", tags=["catalog"])


@router.get("/rooms", response_model=list[RoomSummary])
async def list_rooms() -> list[RoomSummary]:
    return [config.summary() for config in ROOM_CONFIGS.values()]


@router.get(
    "/rooms/{room_type}",
    response_model=RoomCatalog,
    responses={422: {"model": ErrorResponse}},
)
async def get_room_catalog(room_type: str) -> RoomCatalog:
    """Tiles, sets and parking tiles offered for one room type."""
    return get_room_config(room_type).catalog()


@router.get("/floor-textures", response_model=list[FloorCategory])
async def list_floor_textures() -> list[FloorCategory]:
    return FLOOR_TEXTURES


@router.get("/palettes", response_model=list[ColorPalette])
async def list_palettes() -> list[ColorPalette]:
    return STANDARD_PALETTES
