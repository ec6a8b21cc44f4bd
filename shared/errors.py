"""
Shared error handling for the University Directory Gateway.
"""

from typing import Dict, Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class ErrorResponse(BaseModel):
    """Standard error response format."""

    model_config = ConfigDict(populate_by_name=True)

    status: str
    message: str
    request_id: Optional[str] = Field(default=None, alias="requestId")


def status_label(status_code: int) -> str:
    """Return "fail" for client errors and "error" for everything else."""
    return "fail" if 400 <= status_code < 500 else "error"


class DirectoryError(Exception):
    """Base exception for directory gateway failures."""

    status_code: int = 500

    def __init__(
        self,
        code: str,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.code = code
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.details = details or {}
        super().__init__(message)

    @property
    def status(self) -> str:
        return status_label(self.status_code)

    def to_response(self, request_id: Optional[str] = None) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(status=self.status, message=self.message, request_id=request_id)


class InvalidArgument(DirectoryError):
    """Client input violates the request contract."""

    def __init__(self, message: str = "Invalid argument", details: Optional[Dict[str, Any]] = None):
        super().__init__("INVALID_ARGUMENT", message, 400, details)


class UpstreamError(DirectoryError):
    """Base class for failures talking to the upstream directory."""


class UpstreamHTTPError(UpstreamError):
    """Upstream answered with a non-2xx status or an unusable body."""

    def __init__(
        self,
        upstream_status: int,
        message: str = "External API error",
        details: Optional[Dict[str, Any]] = None,
    ):
        self.upstream_status = upstream_status
        # Only error statuses are surfaced as-is; anything else becomes a bad gateway.
        status_code = upstream_status if upstream_status >= 400 else 502
        super().__init__("UPSTREAM_HTTP_ERROR", message, status_code, details)


class UpstreamUnreachable(UpstreamError):
    """The request was sent but no response was received."""

    def __init__(
        self,
        message: str = "No response received from external API",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__("UPSTREAM_UNREACHABLE", message, 504, details)


class UpstreamTimeout(UpstreamError):
    """The upstream call exceeded its deadline."""

    def __init__(
        self,
        message: str = "External API request timed out",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__("UPSTREAM_TIMEOUT", message, 504, details)


class UpstreamRequestSetupError(UpstreamError):
    """The outgoing request could not be built."""

    def __init__(self, message: str = "Failed to build upstream request", details: Optional[Dict[str, Any]] = None):
        super().__init__("UPSTREAM_REQUEST_SETUP_ERROR", message, 500, details)
