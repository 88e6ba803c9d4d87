"""
VocalSaaS Backend: Shared Pydantic Schemas
===========================================

What:  Base model, pagination, error, health and auth schemas shared by
       every router.
How:   All API models use camelCase on the wire (`createdAt`, `voiceModelId`)
       and snake_case in Python; `populate_by_name` accepts both on input.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for API models: camelCase JSON, ORM-readable."""

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "from_attributes": True,
    }


# ══════════════════════════════════════════════════════════════════════════
# Pagination
# ══════════════════════════════════════════════════════════════════════════


class PaginationMeta(CamelModel):
    """
    Offset pagination metadata returned by list endpoints.

    total is an exact count over the caller's full record set, computed by
    a separate COUNT query, never the size of the current page.
    """
    page: int = Field(description="1-based page number")
    limit: int = Field(description="Page size")
    total: int = Field(description="Total records owned by the caller")


class MessageResponse(CamelModel):
    success: bool = True
    message: str


# ══════════════════════════════════════════════════════════════════════════
# Auth
# ══════════════════════════════════════════════════════════════════════════


class PrincipalResponse(CamelModel):
    """The authenticated caller as reported by the identity provider."""
    id: str = Field(description="Opaque user id")
    email: Optional[str] = Field(default=None)
    created_at: Optional[datetime] = Field(default=None)


class TokenExchangeRequest(CamelModel):
    token: str = Field(min_length=1, description="Identity provider access token")


class TokenExchangeResponse(CamelModel):
    """
    Pass-through token exchange: the provider credential is verified and
    handed back unchanged; there is no internal token layer.
    """
    success: bool = True
    token: str
    user: PrincipalResponse


class ProfileResponse(CamelModel):
    success: bool = True
    user: PrincipalResponse


# ══════════════════════════════════════════════════════════════════════════
# Error / Health
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    Standardized error body for all API errors.

    Example:
        {
            "error": "Voice model not found",
            "details": null,
            "request_id": "a1b2c3d4"
        }
    """
    error: str = Field(description="Human-readable error description")
    details: Optional[str] = Field(default=None, description="Additional context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Returned by GET /api/health for monitoring and load balancer probes."""
    status: str = Field(description="OK, DEGRADED or UNHEALTHY")
    message: str
    version: str
    database: str = Field(description="connected, disconnected")
    vendor: str = Field(description="available, unavailable, circuit_open")
    uptime_seconds: float
