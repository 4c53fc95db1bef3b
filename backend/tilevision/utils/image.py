"""In-memory image buffers referenced by session history entries.

Uploaded photos and generated images live here instead of on disk. Each
buffer is reference counted: history entries, the session's original image
and gallery entries each hold one reference, and the buffer is dropped when
the last holder releases it.
"""

from __future__ import annotations

import base64
import io
import uuid
from dataclasses import dataclass

import structlog
from PIL import Image, UnidentifiedImageError

from tilevision.errors import InvalidInputError
from tilevision.models.contracts import ImageRef

logger = structlog.get_logger()

IMAGE_URL_TEMPLATE = "/api/v1/images/{image_id}"

# Pillow format name -> MIME type for the formats we expect from uploads
_FORMAT_MIME = {
    "JPEG": "image/jpeg",
    "PNG": "image/png",
    "WEBP": "image/webp",
    "GIF": "image/gif",
    "BMP": "image/bmp",
    "TIFF": "image/tiff",
}


@dataclass
class StoredImage:
    data: bytes
    mime_type: str
    refcount: int = 1


class ImageStore:
    """Reference-counted store of image bytes keyed by image id."""

    def __init__(self) -> None:
        self._images: dict[str, StoredImage] = {}

    def put(self, data: bytes, mime_type: str) -> ImageRef:
        image_id = uuid.uuid4().hex
        self._images[image_id] = StoredImage(data=data, mime_type=mime_type)
        logger.debug("image_stored", image_id=image_id, size_bytes=len(data))
        return _ref(image_id, mime_type)

    def get(self, image_id: str) -> StoredImage | None:
        return self._images.get(image_id)

    def retain(self, ref: ImageRef) -> ImageRef:
        stored = self._images.get(ref.image_id)
        if stored is None:
            raise KeyError(ref.image_id)
        stored.refcount += 1
        return ref

    def release(self, ref: ImageRef) -> None:
        stored = self._images.get(ref.image_id)
        if stored is None:
            logger.warning("image_release_unknown", image_id=ref.image_id)
            return
        stored.refcount -= 1
        if stored.refcount <= 0:
            del self._images[ref.image_id]
            logger.debug("image_released", image_id=ref.image_id)

    def data(self, ref: ImageRef) -> bytes:
        stored = self._images.get(ref.image_id)
        if stored is None:
            raise KeyError(ref.image_id)
        return stored.data

    def data_url(self, ref: ImageRef) -> str:
        encoded = base64.b64encode(self.data(ref)).decode("ascii")
        return f"data:{ref.mime_type};base64,{encoded}"

    def clear(self) -> None:
        self._images.clear()

    def __contains__(self, image_id: object) -> bool:
        return image_id in self._images

    def __len__(self) -> int:
        return len(self._images)


def _ref(image_id: str, mime_type: str) -> ImageRef:
    return ImageRef(
        image_id=image_id,
        mime_type=mime_type,
        url=IMAGE_URL_TEMPLATE.format(image_id=image_id),
    )


def validate_upload(data: bytes, content_type: str | None) -> str:
    """Check an uploaded file is a decodable image. Returns its MIME type.

    The declared content type only has to start with ``image/``; the bytes
    must decode with Pillow.
    """
    if not content_type or not content_type.startswith("image/"):
        raise InvalidInputError(f"Expected an image upload, got {content_type or 'unknown type'}")
    if not data:
        raise InvalidInputError("Uploaded image is empty")
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()  # Force full decode to catch truncation
            detected = _FORMAT_MIME.get(img.format or "")
    except (UnidentifiedImageError, OSError, SyntaxError) as exc:
        raise InvalidInputError("Uploaded image is corrupt or not a supported format") from exc
    return detected or content_type


def image_to_png(image: Image.Image) -> bytes:
    buf = io.BytesIO()
    image.save(buf, format="PNG")
    return buf.getvalue()


def solid_color_png(color: str, size: tuple[int, int] = (64, 48)) -> bytes:
    """Render a flat PNG; used by the mock design service."""
    return image_to_png(Image.new("RGB", size, color))


def parse_data_url(value: str) -> tuple[bytes, str]:
    """Split a ``data:<mime>;base64,<payload>`` URL into bytes and MIME type."""
    header, sep, payload = value.partition(",")
    if not sep or not header.startswith("data:") or ";base64" not in header:
        raise ValueError("Invalid data URL")
    mime_type = header[len("data:") :].split(";", 1)[0]
    if not mime_type:
        raise ValueError("Could not parse MIME type from data URL")
    return base64.b64decode(payload), mime_type
