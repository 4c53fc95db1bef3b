"""Shared fixtures: in-process API client and a clean session store per test."""

import io

import pytest
from httpx import ASGITransport, AsyncClient
from PIL import Image

from tilevision.main import app
from tilevision.services.mock import MockDesignService
from tilevision.session import store


@pytest.fixture(autouse=True)
def clear_sessions():
    """Drop all sessions and image buffers; default to the mock design service."""
    store.clear()
    store.set_design_service(MockDesignService())
    yield
    store.clear()
    store.set_design_service(None)


@pytest.fixture
async def client():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


def make_png(color: str = "#808080", size: tuple[int, int] = (64, 48)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
    return make_png()
