"""Static catalog data and per-room configuration.

Everything here is built once at import time and never mutated. Sessions
hold references to these objects in their selection registries.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from tilevision.errors import InvalidInputError
from tilevision.models.contracts import (
    ColorPalette,
    FloorCategory,
    FloorTexture,
    GraniteRecommendation,
    KitchenModularSet,
    ParkingTile,
    RoomCatalog,
    RoomSummary,
    SinkSpecs,
    Tile,
    TileSet,
)

# === Kajaria tiles ===


def _tiles(
    room_type: str,
    rows: list[tuple[str, str, str, str, str, str]],
) -> list[Tile]:
    """Build tiles from (id, name, series, code, size, type) rows."""
    return [
        Tile(
            id=tile_id,
            name=name,
            series=series,
            code=code,
            size=size,
            room_types=[room_type],
            type=tile_type,  # type: ignore[arg-type]
        )
        for tile_id, name, series, code, size, tile_type in rows
    ]


HALL_BEDROOM_TILES = _tiles(
    "hall-bedroom",
    [
        # SOLITAIRE PLUS - 800x1600 mm
        ("solitaire-plus-k16801", "Solitaire Plus", "SOLITAIRE PLUS", "K-16801", "800x1600 mm", "floor"),
        ("solitaire-plus-k16802", "Solitaire Plus", "SOLITAIRE PLUS", "K-16802", "800x1600 mm", "floor"),
        ("solitaire-plus-k16804", "Solitaire Plus", "SOLITAIRE PLUS", "K-16804", "800x1600 mm", "floor"),
        ("solitaire-plus-k16805", "Solitaire Plus", "SOLITAIRE PLUS", "K-16805", "800x1600 mm", "floor"),
        ("solitaire-plus-k16806", "Solitaire Plus", "SOLITAIRE PLUS", "K-16806", "800x1600 mm", "floor"),
        ("solitaire-plus-k16810", "Solitaire Plus", "SOLITAIRE PLUS", "K-16810", "800x1600 mm", "floor"),
        # SOLITAIRE PLUS - 1000x1000 mm
        ("solitaire-plus-k10102", "Solitaire Plus", "SOLITAIRE PLUS", "K 10102", "1000x1000 mm", "floor"),
        ("solitaire-plus-k10104", "Solitaire Plus", "SOLITAIRE PLUS", "K 10104", "1000x1000 mm", "floor"),
        ("solitaire-plus-k10105", "Solitaire Plus", "SOLITAIRE PLUS", "K 10105", "1000x1000 mm", "floor"),
        ("solitaire-plus-k10106", "Solitaire Plus", "SOLITAIRE PLUS", "K 10106", "1000x1000 mm", "floor"),
        ("solitaire-plus-k10107", "Solitaire Plus", "SOLITAIRE PLUS", "K 10107", "1000x1000 mm", "floor"),
        ("solitaire-plus-k10108", "Solitaire Plus", "SOLITAIRE PLUS", "K 10108", "1000x1000 mm", "floor"),
        # SOLITAIRE - 800x800 mm
        ("solitaire-k8401", "Solitaire", "SOLITAIRE", "K 8401", "800x800 mm", "floor"),
        ("solitaire-k8402", "Solitaire", "SOLITAIRE", "K 8402", "800x800 mm", "floor"),
        ("solitaire-k8405", "Solitaire", "SOLITAIRE", "K 8405", "800x800 mm", "floor"),
        ("solitaire-k8409", "Solitaire", "SOLITAIRE", "K 8409", "800x800 mm", "floor"),
        ("solitaire-k8501", "Solitaire", "SOLITAIRE", "K 8501", "800x800 mm", "floor"),
        ("solitaire-k8502", "Solitaire", "SOLITAIRE", "K 8502", "800x800 mm", "floor"),
        ("solitaire-k8503", "Solitaire", "SOLITAIRE", "K 8503", "800x800 mm", "floor"),
        ("solitaire-k8504", "Solitaire", "SOLITAIRE", "K 8504", "800x800 mm", "floor"),
        ("solitaire-k8506", "Solitaire", "SOLITAIRE", "K 8506", "800x800 mm", "floor"),
        ("solitaire-k8800", "Solitaire (Special Plain)", "SOLITAIRE", "K 8800", "800x800 mm", "floor"),
        # SAPPHIRE - 600x1200 mm
        ("sapphire-k12601", "Sapphire", "SAPPHIRE", "K 12601", "600x1200 mm", "floor"),
        ("sapphire-k12602", "Sapphire", "SAPPHIRE", "K 12602", "600x1200 mm", "floor"),
        ("sapphire-k12604", "Sapphire", "SAPPHIRE", "K 12604", "600x1200 mm", "floor"),
        ("sapphire-k12605", "Sapphire", "SAPPHIRE", "K 12605", "600x1200 mm", "floor"),
    ],
)

BATHROOM_TILES = _tiles(
    "bathroom",
    [
        # TERRAZZO - floor
        ("terrazzo-12671", "Terrazzo", "TERRAZZO", "12671", "600x1200 mm", "floor"),
        ("terrazzo-12672", "Terrazzo", "TERRAZZO", "12672", "600x1200 mm", "floor"),
        ("terrazzo-12681", "Terrazzo", "TERRAZZO", "12681", "600x1200 mm", "floor"),
        ("terrazzo-12684", "Terrazzo", "TERRAZZO", "12684", "600x1200 mm", "floor"),
        # STONE ART - wall
        ("stone-art-white", "Stone Art (White)", "STONE ART", "12660", "600x1200 mm", "wall"),
        ("stone-art-crema", "Stone Art (Crema)", "STONE ART", "12661", "600x1200 mm", "wall"),
        ("stone-art-dark-grey", "Stone Art (Dark Grey)", "STONE ART", "12662", "600x1200 mm", "wall"),
        ("stone-art-brown", "Stone Art (Brown)", "STONE ART", "12663", "600x1200 mm", "wall"),
    ],
)

KITCHEN_TILES = _tiles(
    "kitchen",
    [
        ("stonegres-plus-k16851", "StoneGres Plus", "STONEGRES PLUS", "K-16851", "800x1600 mm", "floor"),
        ("stonegres-plus-k16852", "StoneGres Plus", "STONEGRES PLUS", "K-16852", "800x1600 mm", "floor"),
        ("stonegres-plus-12650", "StoneGres Plus", "STONEGRES PLUS", "12650", "600x1200 mm", "floor"),
        ("stonegres-plus-12651", "StoneGres Plus", "STONEGRES PLUS", "12651", "600x1200 mm", "floor"),
        ("stonegres-neo-k6700", "StoneGres Neo", "STONEGRES NEO", "K 6700", "600x600 mm", "both"),
        ("stonegres-neo-k6701", "StoneGres Neo", "STONEGRES NEO", "K 6701", "600x600 mm", "both"),
    ],
)

GOD_ROOM_TILES = _tiles(
    "god-room",
    [
        # Light SOLITAIRE tiles suited to sacred spaces
        ("solitaire-k8501-god", "Solitaire (Light Cream)", "SOLITAIRE", "K 8501", "800x800 mm", "floor"),
        ("solitaire-k8401-god", "Solitaire (White)", "SOLITAIRE", "K 8401", "800x800 mm", "floor"),
        ("solitaire-k8800-god", "Solitaire (Plain)", "SOLITAIRE", "K 8800", "800x800 mm", "floor"),
        # AMAZON light patterns
        ("amazon-k6401-god", "Amazon (Light)", "AMAZON", "K 6401", "600x600 mm", "floor"),
        ("amazon-k6402-god", "Amazon (Light)", "AMAZON", "K 6402", "600x600 mm", "floor"),
    ],
)


def _by_code(tiles: list[Tile], code: str) -> Tile:
    return next(t for t in tiles if t.code == code)


BATHROOM_DESIGN_SETS = [
    TileSet(
        id="terrazzo-white-set",
        name="Terrazzo & White Stone Art Set",
        floor_tile=_by_code(BATHROOM_TILES, "12671"),
        wall_tile=_by_code(BATHROOM_TILES, "12660"),
        room_types=["bathroom"],
    ),
    TileSet(
        id="terrazzo-crema-set",
        name="Terrazzo & Crema Stone Art Set",
        floor_tile=_by_code(BATHROOM_TILES, "12672"),
        wall_tile=_by_code(BATHROOM_TILES, "12661"),
        room_types=["bathroom"],
    ),
]

_GRANITE_NOTE = "Granite/Marble not sold by us - customer procurement required"

KITCHEN_MODULAR_SETS = [
    KitchenModularSet(
        id="stonegres-premium-set-1",
        name="Premium StoneGres Kitchen Set",
        backsplash_tile=_by_code(KITCHEN_TILES, "K-16851"),
        sink_specs=SinkSpecs(
            material="Stainless Steel",
            size='24" x 18" x 8"',
            type="Single Bowl",
            description="Premium gauge stainless steel sink with sound dampening",
        ),
        granite_recommendation=GraniteRecommendation(
            color="Kashmir White",
            pattern="Speckled with cranberry flecks",
            description="Light granite that complements the StoneGres tiles",
            note=_GRANITE_NOTE,
        ),
        room_types=["kitchen"],
    ),
    KitchenModularSet(
        id="stonegres-modern-set-2",
        name="Modern StoneGres Kitchen Set",
        backsplash_tile=_by_code(KITCHEN_TILES, "K-16852"),
        sink_specs=SinkSpecs(
            material="Stainless Steel",
            size='30" x 20" x 9"',
            type="Double Bowl",
            description="Large capacity double bowl with divider for efficient workflow",
        ),
        granite_recommendation=GraniteRecommendation(
            color="Absolute Black",
            pattern="Solid black with minimal variation",
            description="Bold black granite for modern kitchen aesthetics",
            note=_GRANITE_NOTE,
        ),
        room_types=["kitchen"],
    ),
    KitchenModularSet(
        id="stonegres-neo-compact-set",
        name="Compact Neo Kitchen Set",
        backsplash_tile=_by_code(KITCHEN_TILES, "K 6700"),
        sink_specs=SinkSpecs(
            material="Stainless Steel",
            size='22" x 16" x 7"',
            type="Single Bowl Compact",
            description="Space-efficient design perfect for compact Indian kitchens",
        ),
        granite_recommendation=GraniteRecommendation(
            color="Tan Brown",
            pattern="Brown and black speckled pattern",
            description="Warm granite that pairs beautifully with Neo series tiles",
            note=_GRANITE_NOTE,
        ),
        room_types=["kitchen"],
    ),
    KitchenModularSet(
        id="stonegres-neo-elegant-set",
        name="Elegant Neo Kitchen Set",
        backsplash_tile=_by_code(KITCHEN_TILES, "K 6701"),
        sink_specs=SinkSpecs(
            material="Stainless Steel",
            size='28" x 18" x 8"',
            type="Single Bowl with Drainboard",
            description="Traditional Indian kitchen sink with integrated drainboard",
        ),
        granite_recommendation=GraniteRecommendation(
            color="Baltic Brown",
            pattern="Circular brown patterns with gold highlights",
            description="Rich brown granite with distinctive circular patterns",
            note=_GRANITE_NOTE,
        ),
        room_types=["kitchen"],
    ),
]

# === Parking tiles ===

_UNSPLASH = "https://images.unsplash.com/photo-{photo}?w=300&h=300&fit=crop"


def _parking(
    tile_id: str,
    name: str,
    code: str,
    photo: str,
    category: str,
    material: str,
    finish: str,
    size: str,
    slip_rating: str,
) -> ParkingTile:
    return ParkingTile(
        id=tile_id,
        name=name,
        product_code=code,
        url=_UNSPLASH.format(photo=photo),
        category=category,
        material=material,
        finish=finish,
        size=size,
        slip_rating=slip_rating,
    )


PARKING_TILES = [
    _parking("grey-concrete-interlocking", "Grey Concrete Interlocking", "PCT-001",
             "1600585154340-be6161a56a0c", "Concrete", "Concrete", "Textured", "400x400", "R11"),
    _parking("charcoal-paver-stones", "Charcoal Paver Stones", "PCT-002",
             "1589939705384-5185137a7f0f", "Stone", "Natural Stone", "Honed", "300x300", "R12"),
    _parking("red-brick-pavers", "Red Brick Pavers", "PCT-003",
             "1558618666-fcd25c85cd64", "Brick", "Clay Brick", "Natural", "200x100", "R10"),
    _parking("granite-cobblestone", "Granite Cobblestone", "PCT-004",
             "1578662996442-48f60103fc96", "Granite", "Granite", "Textured", "100x100", "R13"),
    _parking("permeable-grass-pavers", "Permeable Grass Pavers", "PCT-005",
             "1570197788417-0e82375c9371", "Eco-Friendly", "Concrete Grid", "Open Grid", "500x500", "R11"),
    _parking("sandstone-pavers", "Sandstone Pavers", "PCT-006",
             "1591857177580-dc82b9ac4e1e", "Stone", "Sandstone", "Natural Cleft", "600x400", "R11"),
    _parking("dark-slate-tiles", "Dark Slate Tiles", "PCT-007",
             "1584464491033-06628f3a6b7b", "Slate", "Natural Slate", "Split Face", "400x400", "R12"),
    _parking("beige-travertine-pavers", "Beige Travertine Pavers", "PCT-008",
             "1600486913747-55e5470d6f40", "Travertine", "Travertine", "Tumbled", "400x600", "R10"),
    _parking("hexagonal-concrete-pavers", "Hexagonal Concrete Pavers", "PCT-009",
             "1600573472550-8090b5e0745e", "Concrete", "Concrete", "Smooth", "250x290", "R11"),
    _parking("brown-clay-bricks", "Brown Clay Bricks", "PCT-010",
             "1600298881974-6be191ceeda1", "Brick", "Clay Brick", "Wire Cut", "230x110", "R10"),
    _parking("limestone-pavers", "Limestone Pavers", "PCT-011",
             "1600573472829-17c7e2e2c816", "Limestone", "Limestone", "Honed", "600x300", "R11"),
    _parking("decorative-stamped-concrete", "Decorative Stamped Concrete", "PCT-012",
             "1600087626014-e652e18bbff2", "Concrete", "Stamped Concrete", "Stamped Pattern", "Custom", "R11"),
]  # fmt: skip

# === Floor textures & palettes ===


def _category(name: str, textures: list[tuple[str, str]]) -> FloorCategory:
    return FloorCategory(
        category=name,
        textures=[FloorTexture(name=n, prompt=p) for n, p in textures],
    )


FLOOR_TEXTURES = [
    _category(
        "Wood Flooring",
        [
            ("Light Oak Planks", "light oak hardwood planks with natural wood grain"),
            ("Dark Walnut", "dark walnut hardwood flooring with rich brown tones"),
            ("Rustic Pine", "rustic pine wood flooring with visible knots and texture"),
            ("Bamboo", "natural bamboo flooring with vertical grain pattern"),
            ("Reclaimed Wood", "reclaimed barn wood flooring with weathered patina"),
            ("Cherry Wood", "cherry wood flooring with warm reddish-brown color"),
        ],
    ),
    _category(
        "Stone & Tile",
        [
            ("Marble Tiles", "white marble tiles with grey veining"),
            ("Slate Stone", "dark slate stone flooring with natural texture"),
            ("Travertine", "beige travertine stone tiles with natural holes"),
            ("Ceramic Subway", "white ceramic subway tiles in herringbone pattern"),
            ("Granite", "polished granite flooring with speckled pattern"),
            ("Limestone", "cream limestone tiles with subtle texture"),
        ],
    ),
    _category(
        "Modern Materials",
        [
            ("Polished Concrete", "smooth polished concrete flooring in grey"),
            ("Luxury Vinyl Plank", "luxury vinyl plank flooring mimicking oak wood"),
            ("Epoxy Resin", "seamless epoxy resin flooring in light grey"),
            ("Industrial Steel", "brushed steel plate flooring with diamond pattern"),
            ("Terrazzo", "terrazzo flooring with colorful aggregate chips"),
            ("Cork", "natural cork flooring with warm honey color"),
        ],
    ),
    _category(
        "Carpet & Soft",
        [
            ("Plush Carpet", "plush wall-to-wall carpet in neutral beige"),
            ("Area Rug", "large Persian-style area rug with intricate patterns"),
            ("Sisal Natural", "natural sisal fiber carpet in light brown"),
            ("Shag Carpet", "thick shag carpet in cream color"),
            ("Berber Carpet", "berber loop carpet in multi-tone grey"),
            ("Jute Rug", "woven jute area rug with natural texture"),
        ],
    ),
]

STANDARD_PALETTES = [
    ColorPalette(
        name="Neutrals",
        colors=["#FFFFFF", "#F5F5F5", "#E5E5E5", "#D4D4D8", "#A1A1AA", "#71717A", "#52525B", "#27272A"],
    ),
    ColorPalette(
        name="Earth Tones",
        colors=["#FEF7ED", "#FDBA74", "#FB923C", "#EA580C", "#9A3412", "#7C2D12", "#451A03", "#292524"],
    ),
    ColorPalette(
        name="Blues",
        colors=["#EFF6FF", "#DBEAFE", "#93C5FD", "#60A5FA", "#3B82F6", "#2563EB", "#1D4ED8", "#1E3A8A"],
    ),
    ColorPalette(
        name="Greens",
        colors=["#F0FDF4", "#DCFCE7", "#86EFAC", "#4ADE80", "#22C55E", "#16A34A", "#15803D", "#14532D"],
    ),
]

# === Room configuration ===


@dataclass(frozen=True)
class RoomConfig:
    """Catalogs and behavior switches for one room type."""

    room_type: str
    title: str
    description: str
    detection: Literal["objects", "structure"] = "objects"
    detect_furniture_sets: bool = False
    generate_themes: bool = True
    history_limit: int | None = None
    tiles: list[Tile] = field(default_factory=list)
    tile_sets: list[TileSet] = field(default_factory=list)
    kitchen_sets: list[KitchenModularSet] = field(default_factory=list)
    parking_tiles: list[ParkingTile] = field(default_factory=list)

    def summary(self) -> RoomSummary:
        return RoomSummary(
            room_type=self.room_type,  # type: ignore[arg-type]
            title=self.title,
            description=self.description,
        )

    def catalog(self) -> RoomCatalog:
        return RoomCatalog(
            room_type=self.room_type,  # type: ignore[arg-type]
            title=self.title,
            description=self.description,
            detection=self.detection,
            tiles=self.tiles,
            tile_sets=self.tile_sets,
            kitchen_sets=self.kitchen_sets,
            parking_tiles=self.parking_tiles,
        )


ROOM_CONFIGS: dict[str, RoomConfig] = {
    "hall-bedroom": RoomConfig(
        room_type="hall-bedroom",
        title="Hall & Bedroom",
        description="Premium tiles for living spaces",
        tiles=HALL_BEDROOM_TILES,
    ),
    "bathroom": RoomConfig(
        room_type="bathroom",
        title="Bathroom",
        description="Water-resistant floor & wall sets",
        tiles=BATHROOM_TILES,
        tile_sets=BATHROOM_DESIGN_SETS,
    ),
    "god-room": RoomConfig(
        room_type="god-room",
        title="God Room",
        description="Sacred space tile designs",
        tiles=GOD_ROOM_TILES,
        tile_sets=BATHROOM_DESIGN_SETS,
    ),
    "kitchen": RoomConfig(
        room_type="kitchen",
        title="Kitchen",
        description="Durable kitchen floor & wall tiles",
        detect_furniture_sets=True,
        tiles=KITCHEN_TILES,
        kitchen_sets=KITCHEN_MODULAR_SETS,
    ),
    "parking": RoomConfig(
        room_type="parking",
        title="Parking Tiles",
        description="Durable exterior tiles for driveways and parking areas",
        detection="structure",
        generate_themes=False,
        history_limit=10,
        parking_tiles=PARKING_TILES,
    ),
}


def get_room_config(room_type: str) -> RoomConfig:
    config = ROOM_CONFIGS.get(room_type)
    if config is None:
        raise InvalidInputError(f"Unknown room type: {room_type}")
    return config


def find_tile(config: RoomConfig, tile_id: str) -> Tile:
    for tile in config.tiles:
        if tile.id == tile_id:
            return tile
    raise InvalidInputError(f"Tile {tile_id} is not offered for {config.room_type}")


def find_tile_set(config: RoomConfig, set_id: str) -> TileSet:
    for tile_set in config.tile_sets:
        if tile_set.id == set_id:
            return tile_set
    raise InvalidInputError(f"Tile set {set_id} is not offered for {config.room_type}")


def find_kitchen_set(config: RoomConfig, set_id: str) -> KitchenModularSet:
    for kitchen_set in config.kitchen_sets:
        if kitchen_set.id == set_id:
            return kitchen_set
    raise InvalidInputError(f"Kitchen set {set_id} is not offered for {config.room_type}")


def find_parking_tile(config: RoomConfig, tile_id: str) -> ParkingTile:
    for tile in config.parking_tiles:
        if tile.id == tile_id:
            return tile
    raise InvalidInputError(f"Parking tile {tile_id} is not offered for {config.room_type}")


def find_floor_texture(name: str) -> FloorTexture:
    for category in FLOOR_TEXTURES:
        for texture in category.textures:
            if texture.name == name:
                return texture
    raise InvalidInputError(f"Unknown floor texture: {name}")
