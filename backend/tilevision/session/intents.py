"""Edit intents: the closed set of modifications a session can apply.

Each variant carries a fully resolved payload (catalog items, not ids) and
renders to exactly one natural-language prompt. That prompt is the whole
protocol spoken to the design service; the structured fields ride along for
logging and the gallery only.
"""

from __future__ import annotations

from typing import Annotated, ClassVar, Literal

from pydantic import BaseModel, Field

from tilevision.catalog import (
    RoomConfig,
    find_floor_texture,
    find_kitchen_set,
    find_parking_tile,
    find_tile,
    find_tile_set,
)
from tilevision.errors import InvalidInputError
from tilevision.models.contracts import (
    ColorChangeRequest,
    ColorOnlyRequest,
    CustomPromptRequest,
    DesignTheme,
    EditRequest,
    FloorTexture,
    FloorTextureRequest,
    KitchenModularSet,
    KitchenSetApplyRequest,
    ObjectRemoveRequest,
    ParkingTile,
    ParkingTileApplyRequest,
    Product,
    ProductPlaceRequest,
    ThemeApplyRequest,
    Tile,
    TileApplyRequest,
    TileSet,
    TileSetApplyRequest,
)
from tilevision.services.prompts import load_prompt

ServiceCall = Literal["change_color", "modify_image"]

PARKING_ELEVATION_INSTRUCTION = (
    "Change the building elevation and wall colors in this exterior/parking space to {color}. "
    "Apply this color to building facades, walls, and architectural elements while preserving "
    "parking surfaces, landscaping, and lighting exactly as they are."
)


class _Intent(BaseModel):
    service: ClassVar[ServiceCall] = "change_color"
    # Tile-like edits are recorded in the design gallery
    records_design: ClassVar[bool] = False


class ColorChange(_Intent):
    kind: Literal["color_change"] = "color_change"
    object_name: str
    hex: str


class CustomPrompt(_Intent):
    kind: Literal["custom_prompt"] = "custom_prompt"
    text: str


class ThemeApply(_Intent):
    kind: Literal["theme_apply"] = "theme_apply"
    theme: DesignTheme


class ColorOnly(_Intent):
    kind: Literal["color_only"] = "color_only"
    hex: str


class ObjectRemove(_Intent):
    kind: Literal["object_remove"] = "object_remove"
    object_name: str


class FloorTextureSwap(_Intent):
    service: ClassVar[ServiceCall] = "modify_image"
    kind: Literal["floor_texture"] = "floor_texture"
    texture: FloorTexture


class TileApply(_Intent):
    service: ClassVar[ServiceCall] = "modify_image"
    records_design: ClassVar[bool] = True
    kind: Literal["tile_apply"] = "tile_apply"
    tiles: list[Tile] = Field(min_length=1)


class TileSetApply(_Intent):
    service: ClassVar[ServiceCall] = "modify_image"
    records_design: ClassVar[bool] = True
    kind: Literal["tile_set_apply"] = "tile_set_apply"
    tile_sets: list[TileSet] = Field(min_length=1)


class KitchenSetApply(_Intent):
    service: ClassVar[ServiceCall] = "modify_image"
    records_design: ClassVar[bool] = True
    kind: Literal["kitchen_set_apply"] = "kitchen_set_apply"
    kitchen_sets: list[KitchenModularSet] = Field(min_length=1)


class ProductPlace(_Intent):
    service: ClassVar[ServiceCall] = "modify_image"
    kind: Literal["product_place"] = "product_place"
    product: Product
    x: float = Field(ge=0, le=1)
    y: float = Field(ge=0, le=1)
    remove_object: str | None = None


class ParkingTileApply(_Intent):
    service: ClassVar[ServiceCall] = "modify_image"
    records_design: ClassVar[bool] = True
    kind: Literal["parking_tile_apply"] = "parking_tile_apply"
    tile: ParkingTile


EditIntent = Annotated[
    ColorChange
    | CustomPrompt
    | ThemeApply
    | ColorOnly
    | ObjectRemove
    | FloorTextureSwap
    | TileApply
    | TileSetApply
    | KitchenSetApply
    | ProductPlace
    | ParkingTileApply,
    Field(discriminator="kind"),
]


# === Rendering ===


def _wrap(instruction: str) -> str:
    return load_prompt("edit_wrapper").format(instruction=instruction)


def _custom(text: str) -> str:
    return f'Apply the following change: "{text}".'


def _recolor(object_name: str, color: str) -> str:
    return f"Change the color of the **{object_name}** to **{color}**."


def _theme_instruction(theme: DesignTheme) -> str:
    clauses = [f'Apply the "{theme.name}" design theme: {theme.description}']
    clauses.extend(
        _recolor(s.object_name, f"{s.color_name} ({s.hex})") for s in theme.suggestions
    )
    return " ".join(clauses)


def _tile_set_sentence(tile_set: TileSet) -> str:
    if tile_set.wall_tile is None:
        return f"Apply {tile_set.floor_tile.name} to the floor"
    return f"Apply {tile_set.floor_tile.name} to the floor and {tile_set.wall_tile.name} to the walls"


def _kitchen_set_sentence(kitchen_set: KitchenModularSet) -> str:
    sink = kitchen_set.sink_specs
    granite = kitchen_set.granite_recommendation
    return (
        f"Apply {kitchen_set.backsplash_tile.name} as backsplash tiles, "
        f"place a {sink.material} {sink.type} sink, "
        f"and suggest {granite.color} {granite.pattern} countertops"
    )


def _placement(intent: ProductPlace) -> str:
    removal = ""
    if intent.remove_object:
        removal = load_prompt("place_object_removal").format(object_name=intent.remove_object)
    return load_prompt("place_object").format(
        x_percent=_percent(intent.x),
        y_percent=_percent(intent.y),
        removal=removal,
    )


def _percent(value: float) -> int:
    # Round half up, 0.125 -> 13
    return int(value * 100 + 0.5)


def render_prompt(intent: EditIntent) -> str:
    """Render the exact prompt sent to the design service for ``intent``."""
    if isinstance(intent, ColorChange):
        return _wrap(_recolor(intent.object_name, intent.hex))
    if isinstance(intent, CustomPrompt):
        return _wrap(_custom(intent.text))
    if isinstance(intent, ThemeApply):
        return _wrap(_theme_instruction(intent.theme))
    if isinstance(intent, ColorOnly):
        return _wrap(_custom(PARKING_ELEVATION_INSTRUCTION.format(color=intent.hex)))
    if isinstance(intent, ObjectRemove):
        return _wrap(
            f"Remove the **{intent.object_name}** from the room. Reconstruct the background "
            "area using surrounding patterns and textures so that no trace of the object remains."
        )
    if isinstance(intent, FloorTextureSwap):
        return (
            f"Replace the floor in this room with {intent.texture.prompt}. "
            "Keep the walls, furniture and lighting unchanged. "
            "Make it look realistic with proper lighting and perspective."
        )
    if isinstance(intent, TileApply):
        tiles = ", ".join(f"{tile.name} ({tile.size})" for tile in intent.tiles)
        return (
            f"Apply these tiles to the floor: {tiles}. "
            "Make it look realistic with proper lighting and perspective."
        )
    if isinstance(intent, TileSetApply):
        return ". ".join(_tile_set_sentence(s) for s in intent.tile_sets)
    if isinstance(intent, KitchenSetApply):
        return ". ".join(_kitchen_set_sentence(s) for s in intent.kitchen_sets)
    if isinstance(intent, ProductPlace):
        return _placement(intent)
    if isinstance(intent, ParkingTileApply):
        return load_prompt("parking_tile_try_on")
    raise TypeError(f"Unknown edit intent: {type(intent).__name__}")


def describe(intent: EditIntent) -> str:
    """Short label used in "Applied ... successfully" and failure messages."""
    if isinstance(intent, ColorChange):
        return f"{intent.hex} to {intent.object_name}"
    if isinstance(intent, CustomPrompt):
        return "custom edit"
    if isinstance(intent, ThemeApply):
        return f"{intent.theme.name} theme"
    if isinstance(intent, ColorOnly):
        return f"building color {intent.hex}"
    if isinstance(intent, ObjectRemove):
        return f"removal of {intent.object_name}"
    if isinstance(intent, FloorTextureSwap):
        return f"{intent.texture.name} floor"
    if isinstance(intent, TileApply):
        return f"{len(intent.tiles)} selected tile(s)"
    if isinstance(intent, TileSetApply):
        return f"{len(intent.tile_sets)} bathroom set(s)"
    if isinstance(intent, KitchenSetApply):
        return f"{len(intent.kitchen_sets)} kitchen set(s)"
    if isinstance(intent, ProductPlace):
        return f"{intent.product.name} placement"
    if isinstance(intent, ParkingTileApply):
        return intent.tile.name
    raise TypeError(f"Unknown edit intent: {type(intent).__name__}")


def color_target(intent: EditIntent) -> tuple[str | None, str | None]:
    """Structured (object, hex) arguments for ``change_color``; the prompt stays authoritative."""
    if isinstance(intent, ColorChange):
        return intent.object_name, intent.hex
    if isinstance(intent, ColorOnly):
        return None, intent.hex
    if isinstance(intent, ObjectRemove):
        return intent.object_name, None
    return None, None


def design_source(intent: EditIntent) -> tuple[str, str, str] | None:
    """(name, code, series) of the first catalog item, for gallery entries."""
    if isinstance(intent, TileApply):
        tile = intent.tiles[0]
    elif isinstance(intent, TileSetApply):
        tile = intent.tile_sets[0].floor_tile
    elif isinstance(intent, KitchenSetApply):
        tile = intent.kitchen_sets[0].backsplash_tile
    elif isinstance(intent, ParkingTileApply):
        return intent.tile.name, intent.tile.product_code, intent.tile.category
    else:
        return None
    return tile.name, tile.code, tile.series


# === Resolution from API requests ===


def _find_theme(themes: list[DesignTheme], name: str) -> DesignTheme:
    for theme in themes:
        if theme.name == name:
            return theme
    raise InvalidInputError(f"Unknown design theme: {name}")


def _find_product(products: list[Product], product_id: str) -> Product:
    for product in products:
        if product.id == product_id:
            return product
    raise InvalidInputError(f"Unknown product: {product_id}")


def resolve_intent(
    request: EditRequest,
    config: RoomConfig,
    *,
    themes: list[DesignTheme],
    products: list[Product],
) -> EditIntent:
    """Turn an id-based request into a fully resolved intent.

    Raises InvalidInputError for ids the room does not offer.
    """
    if isinstance(request, ColorChangeRequest):
        return ColorChange(object_name=request.object_name, hex=request.hex)
    if isinstance(request, ColorOnlyRequest):
        return ColorOnly(hex=request.hex)
    if isinstance(request, CustomPromptRequest):
        text = request.text.strip()
        if not text:
            raise InvalidInputError("Custom prompt is empty")
        return CustomPrompt(text=text)
    if isinstance(request, ThemeApplyRequest):
        return ThemeApply(theme=_find_theme(themes, request.theme_name))
    if isinstance(request, ObjectRemoveRequest):
        return ObjectRemove(object_name=request.object_name)
    if isinstance(request, FloorTextureRequest):
        return FloorTextureSwap(texture=find_floor_texture(request.texture_name))
    if isinstance(request, TileApplyRequest):
        return TileApply(tiles=[find_tile(config, i) for i in request.tile_ids])
    if isinstance(request, TileSetApplyRequest):
        return TileSetApply(tile_sets=[find_tile_set(config, i) for i in request.tile_set_ids])
    if isinstance(request, KitchenSetApplyRequest):
        return KitchenSetApply(
            kitchen_sets=[find_kitchen_set(config, i) for i in request.kitchen_set_ids]
        )
    if isinstance(request, ProductPlaceRequest):
        return ProductPlace(
            product=_find_product(products, request.product_id),
            x=request.x,
            y=request.y,
            remove_object=request.remove_object,
        )
    if isinstance(request, ParkingTileApplyRequest):
        return ParkingTileApply(tile=find_parking_tile(config, request.tile_id))
    raise InvalidInputError(f"Unsupported edit: {type(request).__name__}")
