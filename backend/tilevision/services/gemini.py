"""Design service backed by the Gemini API (google-genai).

JSON calls (detection, themes) use the text model with response schemas;
image edits use the image model with TEXT+IMAGE response modalities. The SDK
is synchronous, so every call runs in a worker thread.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any

import structlog
from google import genai
from google.genai import types
from pydantic import ValidationError

from tilevision.config import settings
from tilevision.errors import DesignServiceError, classify_error
from tilevision.models.contracts import DesignTheme, DetectedFurnitureSet, DetectedObject
from tilevision.services.base import ImageData, ModifyResult
from tilevision.services.prompts import load_prompt

logger = structlog.get_logger()

IMAGE_CONFIG = types.GenerateContentConfig(
    response_modalities=["TEXT", "IMAGE"],
)

_BOUNDING_BOX = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "x_min": types.Schema(type=types.Type.NUMBER),
        "y_min": types.Schema(type=types.Type.NUMBER),
        "x_max": types.Schema(type=types.Type.NUMBER),
        "y_max": types.Schema(type=types.Type.NUMBER),
    },
    required=["x_min", "y_min", "x_max", "y_max"],
)

OBJECTS_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "objects": types.Schema(
            type=types.Type.ARRAY,
            items=types.Schema(
                type=types.Type.OBJECT,
                properties={
                    "name": types.Schema(type=types.Type.STRING),
                    "is_primary": types.Schema(type=types.Type.BOOLEAN),
                    "category": types.Schema(type=types.Type.STRING),
                    "bounding_box": _BOUNDING_BOX,
                },
                required=["name", "is_primary", "bounding_box", "category"],
            ),
        )
    },
    required=["objects"],
)

FURNITURE_SETS_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "furniture_sets": types.Schema(
            type=types.Type.ARRAY,
            items=types.Schema(
                type=types.Type.OBJECT,
                properties={
                    "name": types.Schema(type=types.Type.STRING),
                    "description": types.Schema(type=types.Type.STRING),
                    "is_primary": types.Schema(type=types.Type.BOOLEAN),
                    "category": types.Schema(type=types.Type.STRING),
                    "set_type": types.Schema(type=types.Type.STRING),
                    "bounding_box": _BOUNDING_BOX,
                },
                required=["name", "description", "is_primary", "set_type", "bounding_box"],
            ),
        )
    },
    required=["furniture_sets"],
)

THEMES_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "themes": types.Schema(
            type=types.Type.ARRAY,
            items=types.Schema(
                type=types.Type.OBJECT,
                properties={
                    "name": types.Schema(
                        type=types.Type.STRING, description="e.g., 'Scandinavian Serenity'"
                    ),
                    "description": types.Schema(
                        type=types.Type.STRING, description="A brief description of the theme."
                    ),
                    "suggestions": types.Schema(
                        type=types.Type.ARRAY,
                        items=types.Schema(
                            type=types.Type.OBJECT,
                            properties={
                                "objectName": types.Schema(
                                    type=types.Type.STRING, description="e.g., 'sofa'"
                                ),
                                "colorName": types.Schema(
                                    type=types.Type.STRING, description="e.g., 'Sage Green'"
                                ),
                                "hex": types.Schema(
                                    type=types.Type.STRING, description="e.g., '#B2AC88'"
                                ),
                            },
                            required=["objectName", "colorName", "hex"],
                        ),
                    ),
                },
                required=["name", "description", "suggestions"],
            ),
        )
    },
    required=["themes"],
)


def get_client() -> genai.Client:
    """Create a Gemini client using the configured API key."""
    return genai.Client(api_key=settings.google_ai_api_key)


def _image_part(image: ImageData) -> types.Part:
    return types.Part.from_bytes(data=image.data, mime_type=image.mime_type)


def extract_text(response: types.GenerateContentResponse) -> str:
    """Join all text parts of the first candidate."""
    if not response.candidates:
        return ""
    content = response.candidates[0].content
    if content is None or content.parts is None:
        return ""
    return "".join(part.text for part in content.parts if part.text)


def extract_image(response: types.GenerateContentResponse) -> ImageData | None:
    """Return the first inline image found in any candidate."""
    for candidate in response.candidates or []:
        if candidate.content is None or candidate.content.parts is None:
            continue
        for part in candidate.content.parts:
            inline = part.inline_data
            if inline is not None and inline.data:
                return ImageData(data=inline.data, mime_type=inline.mime_type or "image/png")
    return None


def _reason(value: Any) -> str:
    return getattr(value, "name", None) or str(value)


def image_from_response(response: types.GenerateContentResponse) -> ImageData:
    """Pull the generated image out of a response or explain why there is none."""
    feedback = response.prompt_feedback
    if feedback is not None and feedback.block_reason:
        message = f"Request was blocked. Reason: {_reason(feedback.block_reason)}. "
        message += feedback.block_reason_message or ""
        raise DesignServiceError(message.strip(), kind="content_rejected", retryable=False)

    image = extract_image(response)
    if image is not None:
        return image

    finish_reason = response.candidates[0].finish_reason if response.candidates else None
    if finish_reason is not None and finish_reason != types.FinishReason.STOP:
        raise DesignServiceError(
            f"Image generation stopped unexpectedly. Reason: {_reason(finish_reason)}. "
            "This often relates to safety settings.",
            kind="content_rejected",
            retryable=False,
        )

    text = extract_text(response).strip()
    if text:
        detail = f'The model responded with text: "{text}"'
    else:
        detail = (
            "This can happen due to safety filters or if the request is too complex. "
            "Please try a different image."
        )
    raise DesignServiceError(f"The AI model did not return an image. {detail}", kind="unknown")


def parse_json(text: str) -> dict[str, Any]:
    """Parse a JSON object, tolerating a surrounding markdown code fence."""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = cleaned.split("\n", 1)[1] if "\n" in cleaned else ""
        if cleaned.rstrip().endswith("```"):
            cleaned = cleaned.rstrip()[:-3]
    data = json.loads(cleaned)
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
    return data


def _validate_items(model: Any, items: Any, event: str) -> list[Any]:
    """Validate a list of raw dicts, dropping (and logging) malformed entries."""
    if not isinstance(items, list):
        logger.warning(event, reason="not_a_list")
        return []
    valid = []
    for raw in items:
        try:
            valid.append(model.model_validate(raw))
        except ValidationError as exc:
            logger.warning(event, reason="invalid_item", error=str(exc)[:200])
    return valid


class GeminiDesignService:
    def __init__(self, client: genai.Client | None = None) -> None:
        self._client = client

    @property
    def client(self) -> genai.Client:
        if self._client is None:
            self._client = get_client()
        return self._client

    async def _generate(
        self,
        operation: str,
        model: str,
        parts: list[types.Part],
        config: types.GenerateContentConfig,
    ) -> types.GenerateContentResponse:
        try:
            return await asyncio.to_thread(
                self.client.models.generate_content,
                model=model,
                contents=parts,
                config=config,
            )
        except Exception as exc:
            error = classify_error(exc)
            logger.error(
                "gemini_call_failed",
                operation=operation,
                error_type=type(exc).__name__,
                kind=error.kind,
            )
            raise error from exc

    async def _generate_json(
        self,
        operation: str,
        prompt: str,
        image: ImageData,
        schema: types.Schema,
        failure_message: str,
    ) -> dict[str, Any]:
        config = types.GenerateContentConfig(
            response_mime_type="application/json",
            response_schema=schema,
        )
        response = await self._generate(
            operation,
            settings.gemini_text_model,
            [types.Part(text=prompt), _image_part(image)],
            config,
        )
        try:
            return parse_json(extract_text(response))
        except ValueError as exc:  # JSONDecodeError is a ValueError
            logger.error("gemini_json_invalid", operation=operation, error=str(exc)[:200])
            raise DesignServiceError(failure_message, kind="unknown") from exc

    async def _generate_image(self, operation: str, parts: list[types.Part]) -> ImageData:
        response = await self._generate(operation, settings.gemini_image_model, parts, IMAGE_CONFIG)
        image = image_from_response(response)
        logger.info(
            "gemini_image_generated",
            operation=operation,
            mime_type=image.mime_type,
            size_bytes=len(image.data),
        )
        return image

    async def detect_objects(self, image: ImageData) -> list[DetectedObject]:
        data = await self._generate_json(
            "detect_objects",
            load_prompt("detect_objects"),
            image,
            OBJECTS_SCHEMA,
            "Failed to parse the scene. The AI could not identify distinct objects.",
        )
        objects = _validate_items(DetectedObject, data.get("objects"), "detected_objects_dropped")
        logger.info("objects_detected", count=len(objects))
        return objects

    async def detect_furniture_sets(self, image: ImageData) -> list[DetectedFurnitureSet]:
        data = await self._generate_json(
            "detect_furniture_sets",
            load_prompt("detect_furniture_sets"),
            image,
            FURNITURE_SETS_SCHEMA,
            "Failed to parse the furniture. The AI could not identify complete furniture sets.",
        )
        sets = _validate_items(
            DetectedFurnitureSet, data.get("furniture_sets"), "furniture_sets_dropped"
        )
        logger.info("furniture_sets_detected", count=len(sets))
        return sets

    async def get_design_themes(
        self, image: ImageData, objects: list[DetectedObject]
    ) -> list[DesignTheme]:
        prompt = load_prompt("design_themes").format(
            object_names=", ".join(obj.name for obj in objects)
        )
        data = await self._generate_json(
            "get_design_themes",
            prompt,
            image,
            THEMES_SCHEMA,
            "Failed to generate design themes.",
        )
        raw_themes = data.get("themes") or []
        themes = []
        for raw in raw_themes if isinstance(raw_themes, list) else []:
            suggestions = [
                {
                    "object_name": s.get("objectName"),
                    "color_name": s.get("colorName"),
                    "hex": s.get("hex"),
                }
                for s in raw.get("suggestions") or []
                if isinstance(s, dict)
            ]
            themes.append({**raw, "suggestions": suggestions})
        return _validate_items(DesignTheme, themes, "design_themes_dropped")

    async def analyze_structure(self, image: ImageData) -> ImageData:
        return await self._generate_image(
            "analyze_structure",
            [_image_part(image), types.Part(text=load_prompt("structure_analysis"))],
        )

    async def change_color(
        self,
        image: ImageData,
        target: str | None,
        hex_color: str | None,
        prompt: str,
    ) -> ImageData:
        logger.info("gemini_change_color", target=target, hex=hex_color)
        return await self._generate_image(
            "change_color",
            [_image_part(image), types.Part(text=prompt)],
        )

    async def modify_image(
        self,
        image: ImageData,
        prompt: str,
        overlay: ImageData | None = None,
    ) -> ModifyResult:
        # Order is [scene, overlay, instruction]; prompts refer to "the second image"
        parts = [_image_part(image)]
        if overlay is not None:
            parts.append(_image_part(overlay))
        parts.append(types.Part(text=prompt))
        result = await self._generate_image("modify_image", parts)
        return ModifyResult(image=result, prompt=prompt)
