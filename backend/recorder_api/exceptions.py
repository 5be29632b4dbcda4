"""
Custom exceptions for the Screen Recorder API.

Every error carries an HTTP status and a stable error code so the handlers
can turn it into a final JSON response at a single point.
"""

from typing import Any, Dict, Optional

from fastapi import status


class RecorderAPIError(Exception):
    """Base exception for Screen Recorder API errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        self.message = message
        self.details = details or {}
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "success": False,
            "error": self.code,
            "message": self.message,
        }
        payload.update(self.details)
        return payload


class BadRequestError(RecorderAPIError):
    """400 - malformed body, missing or invalid fields, duration over limit."""
    status_code = status.HTTP_400_BAD_REQUEST
    code = "BAD_REQUEST"


class ForbiddenError(RecorderAPIError):
    """403 - license rejected."""
    status_code = status.HTTP_403_FORBIDDEN
    code = "INVALID_LICENSE"


class MethodNotAllowedError(RecorderAPIError):
    """405"""
    status_code = status.HTTP_405_METHOD_NOT_ALLOWED
    code = "METHOD_NOT_ALLOWED"

    def __init__(self, method: str):
        super().__init__("Method not allowed", details={"method": method})


class UpstreamError(RecorderAPIError):
    """Capture provider answered with an error status or an unusable body."""
    code = "UPSTREAM_ERROR"


class UpstreamTimeoutError(RecorderAPIError):
    """504 - capture provider did not answer within the time budget."""
    status_code = status.HTTP_504_GATEWAY_TIMEOUT
    code = "UPSTREAM_TIMEOUT"


class ConfigurationError(RecorderAPIError):
    """Raised when required configuration is missing."""
    code = "MISSING_API_KEY"


class InternalError(RecorderAPIError):
    """500"""
    code = "INTERNAL_ERROR"
