"""
Error taxonomy shared by the Lambda handlers and the FastAPI app.

Every error carries the HTTP status it maps to and a short public message.
``detail`` is for logs only and never ends up in a response body.
"""
from typing import Any


class ApiError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(
        self,
        message: str | None = None,
        *,
        status_code: int | None = None,
        detail: str | None = None,
        **extra: Any,
    ):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        self.detail = detail
        self.extra = extra
        super().__init__(detail or self.message)

    def to_body(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.message}
        body.update(self.extra)
        return body


class ValidationError(ApiError):
    status_code = 400
    default_message = "Invalid request"


class ConflictError(ApiError):
    status_code = 400
    default_message = "You have already rated this channel"


class RateLimitedError(ApiError):
    status_code = 429
    default_message = "Rating limit reached for this channel"


class NotFoundError(ApiError):
    status_code = 404
    default_message = "Not found"


class UpstreamError(ApiError):
    status_code = 500
    default_message = "YouTube API error"


class ConfigurationError(ApiError):
    status_code = 500
    default_message = "Server configuration error"


class StorageError(ApiError):
    status_code = 500
    default_message = "Database error"

    def __init__(self, operation: str, *, message: str | None = None, detail: str | None = None, **context: Any):
        # context is logged, never returned
        super().__init__(message, detail=detail)
        self.operation = operation
        self.context = context
