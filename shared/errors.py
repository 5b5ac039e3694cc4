"""
Shared error handling for the Sheets Gateway.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel, Field

from shared.logging import get_request_id


class ErrorResponse(BaseModel):
    """Standard error response format."""

    request_id: Optional[str] = None
    error: str
    code: str
    details: Dict[str, Any] = Field(default_factory=dict)


class SheetsGatewayException(Exception):
    """Base exception for Sheets Gateway services."""

    status_code = 400

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            request_id=get_request_id(),
            error=self.message,
            code=self.code,
            details=self.details
        )


class ValidationError(SheetsGatewayException):
    """Malformed input, rejected before any upstream call."""

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details)


class NotFoundError(SheetsGatewayException):
    """A referenced sheet does not exist."""

    status_code = 404

    def __init__(self, message: str = "Not found", details: Optional[Dict[str, Any]] = None):
        super().__init__("NOT_FOUND", message, details)


class UpstreamError(SheetsGatewayException):
    """The spreadsheet service rejected or failed a call.

    The message is the upstream's own human-readable message so callers see
    exactly what Google reported. Reported with status 400 to keep the
    response contract existing clients depend on.
    """

    def __init__(
        self,
        service: str,
        message: str = "Upstream service error",
        *,
        upstream_status: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = dict(details or {})
        details.setdefault("service", service)
        if upstream_status is not None:
            details.setdefault("upstream_status", upstream_status)
        self.service = service
        self.upstream_status = upstream_status
        super().__init__("UPSTREAM_ERROR", message, details)
