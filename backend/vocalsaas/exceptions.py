"""
VocalSaaS Backend: Custom Exception Hierarchy
==============================================

What:  Application-specific exceptions for each failure category.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return `{error, details?, request_id}` JSON with the matching status.
Who:   Raised by services and dependencies; caught by global handlers.

Exception Hierarchy:
    VocalSaaSError (base)
    ├── ValidationError          → 400 Bad Request
    ├── UnauthenticatedError     → 401 Unauthorized (no credential)
    ├── InvalidCredentialError   → 403 Forbidden (credential rejected)
    ├── NotFoundError            → 404 Not Found (absent OR not owned)
    ├── RateLimitExceededError   → 429 Too Many Requests
    ├── PersistenceError         → 500 Internal Server Error
    ├── FileStorageError         → 500 Internal Server Error
    ├── UpstreamError            → 502 Bad Gateway
    │   └── UpstreamSynthesisError  (voice vendor rejected the call)
    ├── CircuitBreakerOpenError  → 503 Service Unavailable
    └── UpstreamTimeoutError     → 504 Gateway Timeout

NotFoundError is also raised for records owned by another Principal; the
API never distinguishes "exists but not yours" from "does not exist".
"""

from typing import Any, Dict, Optional


class VocalSaaSError(Exception):
    """
    Base exception for all VocalSaaS application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(VocalSaaSError):
    """
    Raised when client input fails a business rule.

    When:  Missing script / voice reference, empty journal content,
           non-audio upload, oversized upload, illegal status transition.
    HTTP:  400 Bad Request
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class UnauthenticatedError(VocalSaaSError):
    """No bearer credential was supplied. HTTP 401."""

    def __init__(
        self,
        message: str = "Access token required",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class InvalidCredentialError(VocalSaaSError):
    """
    The identity provider rejected the credential (expired, revoked, malformed).
    HTTP 403. Terminal for the request; never retried.
    """

    def __init__(
        self,
        message: str = "Invalid or expired token",
        details: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
        self.details = details


class NotFoundError(VocalSaaSError):
    """
    Raised when a requested resource does not exist for the caller.

    SQLAlchemy returns None for missing records; services convert that into
    NotFoundError. The owner predicate is part of every lookup, so a record
    owned by somebody else is indistinguishable from a missing one.
    HTTP 404.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"{resource.capitalize()} not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)
        self.resource = resource


class PersistenceError(VocalSaaSError):
    """
    Raised when database operations fail unexpectedly.

    The message returned to the client is always generic; SQL details are
    logged server-side only. HTTP 500.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class FileStorageError(VocalSaaSError):
    """
    Raised when reading or writing stored audio fails (disk full, permission
    denied, I/O error). HTTP 500.
    """

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class UpstreamError(VocalSaaSError):
    """
    An external provider (identity provider or voice vendor) answered with an
    error or could not be reached. HTTP 502.

    Attributes:
        upstream_status: HTTP status the provider returned (None if unreachable)
        details:         Provider's own error message, returned to the client
    """

    def __init__(
        self,
        message: str = "Upstream service request failed",
        upstream_status: Optional[int] = None,
        details: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if upstream_status is not None:
            ctx["upstream_status"] = upstream_status
        super().__init__(message=message, context=ctx)
        self.upstream_status = upstream_status
        self.details = details


class UpstreamSynthesisError(UpstreamError):
    """The voice vendor failed a clone or text-to-speech call. HTTP 502."""

    def __init__(
        self,
        message: str = "Voice service request failed",
        upstream_status: Optional[int] = None,
        details: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            upstream_status=upstream_status,
            details=details,
            context=context,
        )


class UpstreamTimeoutError(VocalSaaSError):
    """
    An external call exceeded UPSTREAM_TIMEOUT. Kept distinct from
    UpstreamError: the vendor may still complete (and bill) the request.
    HTTP 504.
    """

    def __init__(
        self,
        service: str = "upstream service",
        timeout: Optional[float] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The {service} did not respond in time. Please try again."
        ctx = context or {}
        ctx["service"] = service
        if timeout is not None:
            ctx["timeout"] = timeout
        super().__init__(message=message, context=ctx)
        self.service = service


class CircuitBreakerOpenError(VocalSaaSError):
    """
    Raised when the vendor circuit breaker is OPEN.

    How circuit breaker works:
        CLOSED (normal) → failures increment counter
        → After N failures → OPEN (reject all calls for M seconds)
        → After M seconds → HALF-OPEN (allow one test call)
        → If test succeeds → CLOSED
        → If test fails → OPEN again
    HTTP 503 with Retry-After.
    """

    def __init__(
        self,
        recovery_time: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Voice service is temporarily unavailable due to repeated failures. "
            f"Please retry in approximately {recovery_time} seconds."
        )
        ctx = context or {}
        ctx["recovery_time"] = recovery_time
        super().__init__(message=message, context=ctx)
        self.recovery_time = recovery_time


class RateLimitExceededError(VocalSaaSError):
    """
    Raised when a client exceeds the per-IP request rate limit.
    HTTP 429 with Retry-After.
    """

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Rate limit exceeded. Please wait {retry_after} seconds before making more requests."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after
