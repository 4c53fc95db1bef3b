"""Process-wide in-memory session registry.

Sessions are single-user and non-durable; restarting the process drops them
together with every image buffer. A session untouched for longer than
``SESSION_IDLE_SECONDS`` is closed by the sweep that runs on every new session.
"""

from __future__ import annotations

import time
import uuid

import structlog

from tilevision.catalog import get_room_config
from tilevision.config import settings
from tilevision.services.base import DesignService
from tilevision.session.controller import EditSession
from tilevision.utils.image import ImageStore

logger = structlog.get_logger()

images = ImageStore()
_sessions: dict[str, EditSession] = {}
_last_seen: dict[str, float] = {}
_service: DesignService | None = None


def get_design_service() -> DesignService:
    """Mock service unless a Gemini key is configured and mocks are off."""
    global _service  # noqa: PLW0603
    if _service is None:
        if settings.use_mock_service or not settings.google_ai_api_key:
            from tilevision.services.mock import MockDesignService

            _service = MockDesignService()
        else:
            from tilevision.services.gemini import GeminiDesignService

            _service = GeminiDesignService()
        logger.info("design_service_selected", service=type(_service).__name__)
    return _service


def set_design_service(service: DesignService | None) -> None:
    """Override the service used for new sessions (tests)."""
    global _service  # noqa: PLW0603
    _service = service


def create_session(room_type: str) -> EditSession:
    config = get_room_config(room_type)
    prune_idle()
    session_id = str(uuid.uuid4())
    session = EditSession(session_id, config, get_design_service(), images)
    _sessions[session_id] = session
    _last_seen[session_id] = time.monotonic()
    logger.info("session_created", session_id=session_id, room_type=room_type)
    return session


def get_session(session_id: str) -> EditSession | None:
    session = _sessions.get(session_id)
    if session is not None:
        _last_seen[session_id] = time.monotonic()
    return session


def delete_session(session_id: str) -> bool:
    session = _sessions.pop(session_id, None)
    _last_seen.pop(session_id, None)
    if session is None:
        return False
    session.close()
    logger.info("session_deleted", session_id=session_id)
    return True


def prune_idle(now: float | None = None) -> int:
    """Close sessions idle past the limit. Busy sessions are left alone."""
    now = time.monotonic() if now is None else now
    cutoff = now - settings.session_idle_seconds
    expired = [
        session_id
        for session_id, seen in _last_seen.items()
        if seen < cutoff and not _sessions[session_id].busy
    ]
    for session_id in expired:
        _last_seen.pop(session_id)
        _sessions.pop(session_id).close()
    if expired:
        logger.info("idle_sessions_pruned", count=len(expired))
    return len(expired)


def clear() -> None:
    for session in list(_sessions.values()):
        session.close()
    _sessions.clear()
    _last_seen.clear()
    images.clear()


def session_count() -> int:
    return len(_sessions)
