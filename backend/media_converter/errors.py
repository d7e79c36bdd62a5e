"""Application error taxonomy and the JSON envelope every failure is rendered as."""
from datetime import datetime, timezone


class AppError(Exception):
    """Base for failures raised at the failure site and rendered unchanged at the boundary."""

    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BadRequest(AppError):
    """Malformed, missing or invalid-format input."""

    status_code = 400
    code = "BAD_REQUEST"


class ProcessingError(AppError):
    """Decode, encode or transcoder failure on otherwise well-formed input."""

    status_code = 422
    code = "PROCESSING_ERROR"


class InternalError(AppError):
    status_code = 500
    code = "INTERNAL_ERROR"


class NotFound(AppError):
    status_code = 404
    code = "NOT_FOUND"


class PayloadTooLarge(Exception):
    """Raised by the body size guard once a request crosses the upload cap."""

    status_code = 413
    code = "PAYLOAD_TOO_LARGE"

    def __init__(self, limit_bytes: int):
        self.limit_bytes = limit_bytes
        self.message = f"File size too large. Maximum allowed size is {limit_bytes // (1024 * 1024)}MB."
        super().__init__(self.message)


def utc_timestamp() -> str:
    """RFC 3339 timestamp in UTC."""
    return datetime.now(timezone.utc).isoformat()


def error_body(message: str, code: str) -> dict:
    return {
        "success": False,
        "error": message,
        "code": code,
        "timestamp": utc_timestamp(),
    }
