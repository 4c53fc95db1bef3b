"""Error types shared by the design service clients and the session controller."""

from __future__ import annotations

from google.genai import errors as genai_errors

from tilevision.models.contracts import EditError, ErrorKind


class DesignServiceError(Exception):
    """A failed call to the external design/image service.

    ``retryable`` tells the user whether trying the same request again can
    succeed; nothing in the service retries automatically.
    """

    def __init__(self, message: str, *, kind: ErrorKind = "unknown", retryable: bool = True):
        super().__init__(message)
        self.message = message
        self.kind: ErrorKind = kind
        self.retryable = retryable

    def to_edit_error(self) -> EditError:
        return EditError(message=self.message, kind=self.kind, retryable=self.retryable)


class SessionError(Exception):
    """Base for errors raised by an edit session for a request it cannot accept."""

    code = "session_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class SessionBusyError(SessionError):
    code = "session_busy"


class InvalidStateError(SessionError):
    code = "wrong_state"


class InvalidInputError(SessionError):
    code = "invalid_input"


def classify_error(exc: BaseException) -> DesignServiceError:
    """Map an arbitrary SDK/HTTP exception onto a DesignServiceError."""
    if isinstance(exc, DesignServiceError):
        return exc

    error_type = type(exc).__name__
    error_msg = str(exc)

    if isinstance(exc, genai_errors.APIError):
        # str(APIError) already carries the code and status, matched below
        if exc.code is not None and exc.code >= 500:
            return DesignServiceError("Design service unavailable", kind="service_unavailable")

    is_rate_limit = (
        "429" in error_msg or "RESOURCE_EXHAUSTED" in error_msg or "ResourceExhausted" in error_type
    )
    if is_rate_limit:
        return DesignServiceError("Gemini rate limited", kind="service_unavailable")

    if isinstance(exc, TimeoutError) or "Timeout" in error_type:
        return DesignServiceError("Design service timed out", kind="service_unavailable")

    if "503" in error_msg or "UNAVAILABLE" in error_msg:
        return DesignServiceError("Design service unavailable", kind="service_unavailable")

    if "SAFETY" in error_msg or "blocked" in error_msg.lower():
        return DesignServiceError(
            f"Content policy violation: {error_msg[:200]}",
            kind="content_rejected",
            retryable=False,
        )

    is_bad_request = (
        isinstance(exc, genai_errors.APIError) and exc.code == 400
    ) or "INVALID_ARGUMENT" in error_msg
    if is_bad_request:
        return DesignServiceError(
            f"Design service rejected the request: {error_msg[:200]}",
            kind="invalid_input",
            retryable=False,
        )

    return DesignServiceError(f"{error_type}: {error_msg[:200]}", kind="unknown")
