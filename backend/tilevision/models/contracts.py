"""TileVision contract models.

Shared by the session controller, the design service clients and the API.
Catalog models are static data; detection/theme models are produced by the
design service and never mutated afterwards.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from tilevision.utils.color import normalize_hex

RoomType = Literal["hall-bedroom", "bathroom", "kitchen", "god-room", "parking"]
SessionStep = Literal["initial", "detecting", "editing", "generating"]
ErrorKind = Literal["service_unavailable", "invalid_input", "content_rejected", "unknown"]


# === Detection & Themes ===


class BoundingBox(BaseModel):
    x_min: float = Field(ge=0, le=1)
    y_min: float = Field(ge=0, le=1)
    x_max: float = Field(ge=0, le=1)
    y_max: float = Field(ge=0, le=1)

    @model_validator(mode="after")
    def _check_order(self) -> BoundingBox:
        if self.x_min > self.x_max or self.y_min > self.y_max:
            raise ValueError("bounding box min must not exceed max")
        return self


class DetectedObject(BaseModel):
    name: str
    bounding_box: BoundingBox
    is_primary: bool = False
    category: Literal["interior", "furniture"] = "furniture"


class DetectedFurnitureSet(BaseModel):
    name: str
    description: str = ""
    bounding_box: BoundingBox
    is_primary: bool = False
    category: str = "furniture"
    set_type: Literal["furniture_set", "single_piece", "decor_group"] = "furniture_set"


class ColorSuggestion(BaseModel):
    object_name: str
    color_name: str
    hex: str

    @field_validator("hex")
    @classmethod
    def _hex(cls, value: str) -> str:
        return normalize_hex(value)


class DesignTheme(BaseModel):
    name: str
    description: str
    suggestions: list[ColorSuggestion] = []


# === Catalog ===


class Tile(BaseModel):
    id: str
    name: str
    series: str
    code: str
    size: str
    room_types: list[str] = []
    image_url: str | None = None
    type: Literal["floor", "wall", "both"]


class TileSet(BaseModel):
    id: str
    name: str
    floor_tile: Tile
    wall_tile: Tile | None = None
    room_types: list[str] = []


class SinkSpecs(BaseModel):
    material: str
    size: str
    type: str
    description: str


class GraniteRecommendation(BaseModel):
    color: str
    pattern: str
    description: str
    note: str


class KitchenModularSet(BaseModel):
    id: str
    name: str
    backsplash_tile: Tile
    sink_specs: SinkSpecs
    granite_recommendation: GraniteRecommendation
    room_types: list[str] = []


class ParkingTile(BaseModel):
    id: str
    name: str
    product_code: str
    url: str
    category: str
    material: str
    finish: str
    size: str
    slip_rating: str


class FloorTexture(BaseModel):
    name: str
    prompt: str


class FloorCategory(BaseModel):
    category: str
    textures: list[FloorTexture]


class ColorPalette(BaseModel):
    name: str
    colors: list[str]


class Product(BaseModel):
    id: str
    name: str
    image: ImageRef


# === Images & History ===


class ImageRef(BaseModel):
    """Handle to a buffer held by the image store."""

    image_id: str
    mime_type: str
    url: str


class GeneratedDesign(BaseModel):
    design_id: str
    image: ImageRef
    tile_name: str
    tile_code: str
    tile_series: str


class EditError(BaseModel):
    message: str
    kind: ErrorKind = "unknown"
    retryable: bool = True


# === Session snapshot (returned by GET /sessions/{id}) ===


class SessionState(BaseModel):
    session_id: str
    room_type: RoomType
    step: SessionStep
    version: int = 0
    original_image: ImageRef | None = None
    current_image: ImageRef | None = None
    history: list[ImageRef] = []
    history_index: int = -1
    can_undo: bool = False
    can_redo: bool = False
    detected_objects: list[DetectedObject] = []
    furniture_sets: list[DetectedFurnitureSet] = []
    design_themes: list[DesignTheme] = []
    structure_image: ImageRef | None = None
    selected_objects: list[str] = []
    selections: dict[str, list[str]] = {}
    products: list[Product] = []
    selected_product: str | None = None
    custom_prompt: str = ""
    selected_color: str | None = None
    last_modification: str = ""
    last_prompt: str | None = None
    gallery: list[GeneratedDesign] = []
    error: EditError | None = None


# === Catalog responses ===


class RoomSummary(BaseModel):
    room_type: RoomType
    title: str
    description: str


class RoomCatalog(BaseModel):
    room_type: RoomType
    title: str
    description: str
    detection: Literal["objects", "structure"]
    tiles: list[Tile] = []
    tile_sets: list[TileSet] = []
    kitchen_sets: list[KitchenModularSet] = []
    parking_tiles: list[ParkingTile] = []


# === Edit requests (catalog items referenced by id) ===


class _HexMixin(BaseModel):
    hex: str

    @field_validator("hex")
    @classmethod
    def _hex(cls, value: str) -> str:
        return normalize_hex(value)


class ColorChangeRequest(_HexMixin):
    kind: Literal["color_change"] = "color_change"
    object_name: str = Field(min_length=1)


class ColorOnlyRequest(_HexMixin):
    kind: Literal["color_only"] = "color_only"


class CustomPromptRequest(BaseModel):
    kind: Literal["custom_prompt"] = "custom_prompt"
    text: str = Field(min_length=1, max_length=2000)


class ThemeApplyRequest(BaseModel):
    kind: Literal["theme_apply"] = "theme_apply"
    theme_name: str


class ObjectRemoveRequest(BaseModel):
    kind: Literal["object_remove"] = "object_remove"
    object_name: str = Field(min_length=1)


class FloorTextureRequest(BaseModel):
    kind: Literal["floor_texture"] = "floor_texture"
    texture_name: str


class TileApplyRequest(BaseModel):
    kind: Literal["tile_apply"] = "tile_apply"
    tile_ids: list[str] = Field(min_length=1)


class TileSetApplyRequest(BaseModel):
    kind: Literal["tile_set_apply"] = "tile_set_apply"
    tile_set_ids: list[str] = Field(min_length=1)


class KitchenSetApplyRequest(BaseModel):
    kind: Literal["kitchen_set_apply"] = "kitchen_set_apply"
    kitchen_set_ids: list[str] = Field(min_length=1)


class ProductPlaceRequest(BaseModel):
    kind: Literal["product_place"] = "product_place"
    product_id: str
    x: float = Field(ge=0, le=1)
    y: float = Field(ge=0, le=1)
    remove_object: str | None = None


class ParkingTileApplyRequest(BaseModel):
    kind: Literal["parking_tile_apply"] = "parking_tile_apply"
    tile_id: str


EditRequest = Annotated[
    ColorChangeRequest
    | ColorOnlyRequest
    | CustomPromptRequest
    | ThemeApplyRequest
    | ObjectRemoveRequest
    | FloorTextureRequest
    | TileApplyRequest
    | TileSetApplyRequest
    | KitchenSetApplyRequest
    | ProductPlaceRequest
    | ParkingTileApplyRequest,
    Field(discriminator="kind"),
]


# === Session API ===


class CreateSessionRequest(BaseModel):
    room_type: RoomType


class CreateSessionResponse(BaseModel):
    session_id: str


class SelectColorRequest(_HexMixin):
    pass


class SelectObjectsRequest(BaseModel):
    object_names: list[str] = []


class CustomPromptDraft(BaseModel):
    text: str = Field(default="", max_length=2000)


class SelectionToggleResponse(BaseModel):
    registry: str
    item_id: str
    selected: bool
    selection: list[str]


class ActionResponse(BaseModel):
    status: Literal["ok"] = "ok"


class ErrorResponse(BaseModel):
    error: str
    message: str
    retryable: bool
    detail: str | None = None


Product.model_rebuild()
