"""Image download helper for catalog and product images referenced by URL.

Parking tiles and product templates point at remote images that have to be
sent to the design service as an overlay. ``data:`` URLs are decoded in place.
"""

from __future__ import annotations

import io

import httpx
from PIL import Image

from tilevision.config import settings
from tilevision.errors import DesignServiceError
from tilevision.utils.image import parse_data_url


async def fetch_image(client: httpx.AsyncClient, url: str) -> tuple[bytes, str]:
    """Fetch and validate one image. Returns (bytes, MIME type)."""
    try:
        response = await client.get(url, timeout=settings.http_timeout_seconds)
    except httpx.TimeoutException as exc:
        raise DesignServiceError(
            f"Timeout downloading image: {url[:100]}",
            kind="service_unavailable",
        ) from exc
    except httpx.RequestError as exc:
        raise DesignServiceError(
            f"Network error downloading image: {url[:100]}: {type(exc).__name__}",
            kind="service_unavailable",
        ) from exc

    if response.status_code >= 400:
        # 429 and 5xx can clear up on their own; other 4xx will not
        retryable = response.status_code >= 500 or response.status_code == 429
        raise DesignServiceError(
            f"HTTP {response.status_code} downloading image: {url[:100]}",
            kind="service_unavailable" if retryable else "invalid_input",
            retryable=retryable,
        )

    content_type = response.headers.get("content-type", "").split(";", 1)[0].strip()
    if content_type and not content_type.startswith("image/"):
        raise DesignServiceError(
            f"Expected image content-type, got: {content_type}",
            kind="invalid_input",
            retryable=False,
        )

    try:
        with Image.open(io.BytesIO(response.content)) as img:
            img.load()
    except Exception as exc:
        raise DesignServiceError(
            f"Downloaded image is corrupt: {url[:100]}",
            kind="invalid_input",
            retryable=False,
        ) from exc
    return response.content, content_type or "image/jpeg"


async def download_image(url: str) -> tuple[bytes, str]:
    """Download an image from an http(s) or data URL."""
    if url.startswith("data:"):
        try:
            return parse_data_url(url)
        except ValueError as exc:
            raise DesignServiceError(str(exc), kind="invalid_input", retryable=False) from exc

    async with httpx.AsyncClient(follow_redirects=True) as client:
        return await fetch_image(client, url)
