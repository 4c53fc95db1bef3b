"""Contract between the edit session and the external design service."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from tilevision.models.contracts import DesignTheme, DetectedFurnitureSet, DetectedObject


@dataclass(frozen=True)
class ImageData:
    """Raw image bytes passed to or returned by the design service."""

    data: bytes
    mime_type: str


@dataclass(frozen=True)
class ModifyResult:
    image: ImageData
    prompt: str


class DesignService(Protocol):
    """Async design/image service.

    Every method raises DesignServiceError on failure. ``prompt`` arguments are
    fully rendered instructions; structured arguments are informational.
    """

    async def detect_objects(self, image: ImageData) -> list[DetectedObject]: ...

    async def detect_furniture_sets(self, image: ImageData) -> list[DetectedFurnitureSet]: ...

    async def get_design_themes(
        self, image: ImageData, objects: list[DetectedObject]
    ) -> list[DesignTheme]: ...

    async def analyze_structure(self, image: ImageData) -> ImageData: ...

    async def change_color(
        self,
        image: ImageData,
        target: str | None,
        hex_color: str | None,
        prompt: str,
    ) -> ImageData: ...

    async def modify_image(
        self,
        image: ImageData,
        prompt: str,
        overlay: ImageData | None = None,
    ) -> ModifyResult: ...
