"""Helpers shared by the API routers."""

from fastapi import status
from fastapi.responses import JSONResponse

from discovery_demo.schemas.session import ErrorResponse


def sanitize_for_log(value: str | None, max_length: int = 100) -> str:
    """Sanitize a string for safe logging to prevent log injection."""
    if value is None:
        return ""
    # Remove newlines, carriage returns, and other control characters
    sanitized = "".join(c if c.isprintable() and c not in "\n\r\t" else " " for c in value)
    if len(sanitized) > max_length:
        sanitized = sanitized[:max_length] + "..."
    return sanitized


def error_response(
    error: str,
    exc: Exception | None = None,
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
) -> JSONResponse:
    """Build the ``{success: false, error, details}`` envelope."""
    body = ErrorResponse(error=error, details=str(exc) if exc is not None else None)
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))
