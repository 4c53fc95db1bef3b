"""Deterministic design service used when no Gemini key is configured.

Returns stub detections and themes, and produces real PNGs by tinting the
input image so the frontend and API tests can exercise the full flow.
"""

from __future__ import annotations

import hashlib
import io

import structlog
from PIL import Image

from tilevision.models.contracts import (
    BoundingBox,
    ColorSuggestion,
    DesignTheme,
    DetectedFurnitureSet,
    DetectedObject,
)
from tilevision.services.base import ImageData, ModifyResult
from tilevision.utils.image import image_to_png

logger = structlog.get_logger()

MOCK_OBJECTS = [
    DetectedObject(
        name="Back wall",
        bounding_box=BoundingBox(x_min=0.0, y_min=0.0, x_max=1.0, y_max=0.6),
        is_primary=True,
        category="interior",
    ),
    DetectedObject(
        name="Floor",
        bounding_box=BoundingBox(x_min=0.0, y_min=0.6, x_max=1.0, y_max=1.0),
        category="interior",
    ),
    DetectedObject(
        name="Window on back wall",
        bounding_box=BoundingBox(x_min=0.35, y_min=0.1, x_max=0.65, y_max=0.4),
        category="interior",
    ),
    DetectedObject(
        name="Sofa",
        bounding_box=BoundingBox(x_min=0.2, y_min=0.5, x_max=0.6, y_max=0.9),
        is_primary=True,
        category="furniture",
    ),
    DetectedObject(
        name="Coffee table",
        bounding_box=BoundingBox(x_min=0.4, y_min=0.7, x_max=0.7, y_max=0.95),
        category="furniture",
    ),
]

MOCK_FURNITURE_SETS = [
    DetectedFurnitureSet(
        name="Modern Sectional Sofa Set",
        description="3-seat sofa and matching coffee table",
        bounding_box=BoundingBox(x_min=0.2, y_min=0.5, x_max=0.7, y_max=0.95),
        is_primary=True,
        set_type="furniture_set",
    ),
]

# (theme name, description, [(color name, hex), ...])
_MOCK_THEMES = [
    (
        "Scandinavian Serenity",
        "Light woods and soft neutrals for a calm, airy room.",
        [("Warm White", "#F5F1E8"), ("Pale Oak", "#D8C3A5"), ("Sage Green", "#B2AC88")],
    ),
    (
        "Industrial Loft",
        "Raw textures and deep charcoal tones with warm metal accents.",
        [("Charcoal", "#36454F"), ("Rust", "#B7410E"), ("Concrete Grey", "#95A5A6")],
    ),
    (
        "Modern Coastal",
        "Breezy blues and sandy whites inspired by the seaside.",
        [("Sea Blue", "#336699"), ("Sand", "#E6D5B8"), ("Driftwood", "#A89F91")],
    ),
]


def _prompt_color(prompt: str) -> tuple[int, int, int]:
    digest = hashlib.sha256(prompt.encode("utf-8")).digest()
    return digest[0], digest[1], digest[2]


def _tint(image: ImageData, color: tuple[int, int, int] | str) -> ImageData:
    with Image.open(io.BytesIO(image.data)) as src:
        base = src.convert("RGB")
    overlay = Image.new("RGB", base.size, color)
    return ImageData(data=image_to_png(Image.blend(base, overlay, 0.35)), mime_type="image/png")


class MockDesignService:
    async def detect_objects(self, image: ImageData) -> list[DetectedObject]:
        return list(MOCK_OBJECTS)

    async def detect_furniture_sets(self, image: ImageData) -> list[DetectedFurnitureSet]:
        return list(MOCK_FURNITURE_SETS)

    async def get_design_themes(
        self, image: ImageData, objects: list[DetectedObject]
    ) -> list[DesignTheme]:
        themes = []
        for name, description, palette in _MOCK_THEMES:
            suggestions = [
                ColorSuggestion(object_name=obj.name, color_name=color_name, hex=hex_color)
                for obj, (color_name, hex_color) in zip(
                    objects, palette * (len(objects) // len(palette) + 1)
                )
            ]
            themes.append(DesignTheme(name=name, description=description, suggestions=suggestions))
        return themes

    async def analyze_structure(self, image: ImageData) -> ImageData:
        return _tint(image, (255, 215, 0))

    async def change_color(
        self,
        image: ImageData,
        target: str | None,
        hex_color: str | None,
        prompt: str,
    ) -> ImageData:
        logger.info("mock_change_color", target=target, hex=hex_color)
        return _tint(image, hex_color or _prompt_color(prompt))

    async def modify_image(
        self,
        image: ImageData,
        prompt: str,
        overlay: ImageData | None = None,
    ) -> ModifyResult:
        logger.info("mock_modify_image", has_overlay=overlay is not None, prompt_chars=len(prompt))
        return ModifyResult(image=_tint(image, _prompt_color(prompt)), prompt=prompt)
