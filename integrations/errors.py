"""
Integration Errors - Attributable failures for external-service calls.

Every failure raised by the clients and the manager derives from
IntegrationError and carries a machine-readable ErrorCode, so callers can
tell three situations apart:

- the caller passed bad input (fix and resubmit),
- the upstream could not be reached or kept failing (already retried),
- the upstream was reachable but refused the request.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class ErrorCode(str, Enum):
    """Standardized error codes for integration failures.

    Error codes are prefixed by category:
    - VALIDATION_*: Caller input errors
    - SERVICE_*: Upstream service errors
    """

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Upstream errors
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    SERVICE_TIMEOUT = "SERVICE_TIMEOUT"
    SERVICE_UPSTREAM_REJECTED = "SERVICE_UPSTREAM_REJECTED"
    SERVICE_UPSTREAM_ERROR = "SERVICE_UPSTREAM_ERROR"

    # Single-attempt failures, surfaced as the cause of the errors above
    SERVICE_BAD_STATUS = "SERVICE_BAD_STATUS"
    SERVICE_BAD_RESPONSE = "SERVICE_BAD_RESPONSE"


class ErrorDetail(BaseModel):
    """Serializable view of an IntegrationError.

    Attributes:
        error_code: Machine-readable error code from ErrorCode enum.
        message: Human-readable error description.
        details: Additional context (endpoint, status code, field, ...).
        service: Name of the upstream service, when known.
    """

    error_code: str = Field(..., examples=["SERVICE_UNAVAILABLE"])
    message: str = Field(..., examples=["inventory call to /api/inventory/check failed"])
    details: dict[str, Any] = Field(default_factory=dict)
    service: str | None = None


class IntegrationError(Exception):
    """Base exception for the integration layer.

    Attributes:
        error_code: The ErrorCode describing the failure category.
        message: Human-readable error message.
        details: Additional context for logs and API responses.
        service: Upstream service name, if the error is attributable to one.
    """

    error_code: ErrorCode = ErrorCode.SERVICE_UPSTREAM_ERROR

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        service: str | None = None,
    ):
        self.message = message
        self.details = details or {}
        self.service = service
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a dictionary suitable for a JSON response body."""
        return ErrorDetail(
            error_code=self.error_code.value,
            message=self.message,
            details=self.details,
            service=self.service,
        ).model_dump()


class InputValidationError(IntegrationError):
    """Caller passed malformed or empty arguments. No network call was made."""

    error_code = ErrorCode.VALIDATION_ERROR

    def __init__(self, message: str, field: str | None = None, value: Any = None, service: str | None = None):
        details: dict[str, Any] = {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = value
        super().__init__(message, details=details, service=service)
        self.field = field


class UpstreamError(IntegrationError):
    """A failure attributable to an upstream service."""

    def __init__(
        self,
        message: str,
        endpoint: str | None = None,
        details: dict[str, Any] | None = None,
        service: str | None = None,
    ):
        merged = {"endpoint": endpoint} if endpoint else {}
        if details:
            merged.update(details)
        super().__init__(message, details=merged, service=service)
        self.endpoint = endpoint


class UnexpectedStatusError(UpstreamError):
    """A single attempt received a non-2xx status code."""

    error_code = ErrorCode.SERVICE_BAD_STATUS

    def __init__(self, status_code: int, endpoint: str | None = None, service: str | None = None):
        super().__init__(
            f"unexpected status code: {status_code}",
            endpoint=endpoint,
            details={"status_code": status_code},
            service=service,
        )
        self.status_code = status_code


class ResponseDecodeError(UpstreamError):
    """A single attempt received a 2xx body that could not be decoded."""

    error_code = ErrorCode.SERVICE_BAD_RESPONSE


class UpstreamUnavailableError(UpstreamError):
    """The upstream kept failing until the retry budget was exhausted.

    The last underlying error is chained as ``__cause__``.
    """

    error_code = ErrorCode.SERVICE_UNAVAILABLE

    def __init__(
        self,
        message: str,
        endpoint: str | None = None,
        max_retries: int | None = None,
        attempts: int | None = None,
        service: str | None = None,
    ):
        details: dict[str, Any] = {}
        if max_retries is not None:
            details["max_retries"] = max_retries
        if attempts is not None:
            details["attempts"] = attempts
        super().__init__(message, endpoint=endpoint, details=details, service=service)
        self.max_retries = max_retries
        self.attempts = attempts


class UpstreamTimeoutError(UpstreamUnavailableError):
    """The call deadline elapsed before any attempt succeeded."""

    error_code = ErrorCode.SERVICE_TIMEOUT


class UpstreamRejectedError(UpstreamError):
    """The upstream answered with a 4xx status. Never retried."""

    error_code = ErrorCode.SERVICE_UPSTREAM_REJECTED

    def __init__(self, status_code: int, endpoint: str | None = None, service: str | None = None):
        super().__init__(
            f"request to {endpoint} rejected with status {status_code}",
            endpoint=endpoint,
            details={"status_code": status_code},
            service=service,
        )
        self.status_code = status_code


class UpstreamApplicationError(UpstreamError):
    """The upstream replied 2xx but reported ``success: false`` or no data."""

    error_code = ErrorCode.SERVICE_UPSTREAM_ERROR

    def __init__(
        self,
        message: str,
        endpoint: str | None = None,
        upstream_error: str | None = None,
        service: str | None = None,
    ):
        details = {"upstream_error": upstream_error} if upstream_error else None
        super().__init__(message, endpoint=endpoint, details=details, service=service)
        self.upstream_error = upstream_error
