"""Tests verifying the app scaffold: health, request ids and error handlers."""

import uuid
from unittest.mock import patch

import pytest
from httpx import ASGITransport, AsyncClient

from tilevision.main import app
from tilevision.models.contracts import ErrorResponse


class TestHealthEndpoint:
    """Verify the health endpoint returns the expected shape."""

    @pytest.mark.asyncio
    async def test_health_returns_200(self, client):
        resp = await client.get("/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "ok"
        assert body["version"] == "0.1.0"
        assert body["design_service"] == "MockDesignService"
        assert body["sessions"] == 0
        assert body["images"] == 0

    @pytest.mark.asyncio
    async def test_health_counts_sessions(self, client):
        await client.post("/api/v1/sessions", json={"room_type": "kitchen"})
        body = (await client.get("/health")).json()
        assert body["sessions"] == 1


class TestRequestId:
    @pytest.mark.asyncio
    async def test_generated_when_missing(self, client):
        resp = await client.get("/health")
        uuid.UUID(resp.headers["X-Request-ID"])

    @pytest.mark.asyncio
    async def test_echoed_when_provided(self, client):
        resp = await client.get("/health", headers={"X-Request-ID": "req-123"})
        assert resp.headers["X-Request-ID"] == "req-123"

    @pytest.mark.asyncio
    async def test_present_on_error_responses(self, client):
        resp = await client.get("/api/v1/catalog/rooms/garage", headers={"X-Request-ID": "r-9"})
        assert resp.status_code == 422
        assert resp.headers["X-Request-ID"] == "r-9"


class TestExceptionHandler:
    """Verify unhandled exceptions return consistent ErrorResponse JSON."""

    @pytest.mark.asyncio
    @patch(
        "tilevision.session.store.get_session",
        side_effect=RuntimeError("unexpected bug"),
    )
    async def test_unhandled_exception_returns_500_json(self, _mock):
        """Unhandled exception returns 500 with ErrorResponse shape, not HTML."""
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://test") as c:
            resp = await c.get("/api/v1/sessions/some-id")
        assert resp.status_code == 500
        er = ErrorResponse.model_validate(resp.json())
        assert er.error == "internal_error"
        assert er.retryable is True
        assert "unexpected bug" not in er.message
        assert resp.headers["X-Request-ID"] != ""


class TestValidationErrorHandler:
    """Verify Pydantic validation errors return ErrorResponse JSON (not FastAPI's default)."""

    @pytest.mark.asyncio
    async def test_missing_field(self, client):
        resp = await client.post("/api/v1/sessions", json={})
        assert resp.status_code == 422
        er = ErrorResponse.model_validate(resp.json())
        assert er.error == "validation_error"
        assert er.retryable is False
        assert "room_type" in er.message
