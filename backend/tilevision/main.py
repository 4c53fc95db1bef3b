import uuid

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from tilevision.api.routes import catalog, health, images, sessions
from tilevision.errors import DesignServiceError, InvalidInputError, SessionError
from tilevision.logging import configure_logging

configure_logging()

logger = structlog.get_logger()

app = FastAPI(
    title="TileVision API",
    version="0.1.0",
    docs_url="/docs",
    redoc_url=None,
)


def _json_error(
    request: Request,
    status: int,
    code: str,
    message: str,
    *,
    retryable: bool,
    detail: str | None = None,
) -> JSONResponse:
    content = {"error": code, "message": message, "retryable": retryable}
    if detail is not None:
        content["detail"] = detail
    response = JSONResponse(status_code=status, content=content)
    response.headers["X-Request-ID"] = getattr(
        request.state, "request_id", request.headers.get("X-Request-ID", "")
    )
    return response


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    """Attach a unique request ID to every request for log correlation.

    Bound into structlog context vars so every log line of the request carries
    it, and echoed in the X-Request-ID response header.
    """
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id)
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Return ErrorResponse JSON for Pydantic validation errors instead of {"detail": [...]}."""
    messages = []
    for err in exc.errors():
        loc = " → ".join(str(part) for part in err["loc"])
        messages.append(f"{loc}: {err['msg']}")
    return _json_error(request, 422, "validation_error", "; ".join(messages), retryable=False)


@app.exception_handler(SessionError)
async def session_exception_handler(request: Request, exc: SessionError) -> JSONResponse:
    """Requests the session cannot accept: bad input is 422, wrong or busy state is 409."""
    status = 422 if isinstance(exc, InvalidInputError) else 409
    logger.info("session_request_rejected", path=request.url.path, code=exc.code, reason=exc.message)
    return _json_error(request, status, exc.code, exc.message, retryable=status == 409)


@app.exception_handler(DesignServiceError)
async def design_service_exception_handler(
    request: Request,
    exc: DesignServiceError,
) -> JSONResponse:
    """Service failures outside an edit (e.g. fetching a product image URL)."""
    logger.warning("design_service_error", path=request.url.path, kind=exc.kind, error=exc.message)
    return _json_error(
        request, 502, "design_service_error", exc.message, retryable=exc.retryable, detail=exc.kind
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Return consistent ErrorResponse JSON for unhandled exceptions instead of bare 500s."""
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        error_type=type(exc).__name__,
        exc_info=exc,
    )
    return _json_error(
        request, 500, "internal_error", "An unexpected error occurred", retryable=True
    )


app.include_router(health.router)
app.include_router(catalog.router, prefix="/api/v1")
app.include_router(sessions.router, prefix="/api/v1")
app.include_router(images.router, prefix="/api/v1")
