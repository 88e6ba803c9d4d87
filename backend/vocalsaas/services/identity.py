"""
VocalSaaS Backend: Token Verifier
==================================

What:  Validates a bearer credential against the identity provider and
       returns the Principal it belongs to.
How:   GET {SUPABASE_URL}/auth/v1/user with the credential as bearer token
       and the project's anon key as `apikey`.
Who:   `dependencies.get_current_principal` (every protected route) and
       POST /api/auth/token.

Called exactly once per request. There is no cross-request cache and no
retry: a rejected credential is terminal, and a slow provider is reported
as a timeout rather than hidden behind repeated attempts.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import httpx

from vocalsaas.config import settings
from vocalsaas.exceptions import (
    InvalidCredentialError,
    UnauthenticatedError,
    UpstreamError,
    UpstreamTimeoutError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Principal:
    """The authenticated caller. `id` is opaque and owned by the provider."""

    id: str
    email: Optional[str] = None
    created_at: Optional[datetime] = None


def _provider_message(response: httpx.Response) -> Optional[str]:
    try:
        body = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    return body.get("msg") or body.get("error_description") or body.get("message")


def _parse_created_at(value) -> Optional[datetime]:
    if not value:
        return None
    try:
        # The provider uses a trailing Z, which fromisoformat only accepts on 3.11+
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None


class TokenVerifier:
    """
    Verifies bearer credentials with Supabase Auth.

    Outcome mapping:
        200 with a user id    → Principal
        4xx / 200 without id  → InvalidCredentialError (403)
        5xx / unreachable     → UpstreamError (502)
        timeout               → UpstreamTimeoutError (504)
    """

    SERVICE_NAME = "identity provider"

    def __init__(
        self,
        supabase_url: Optional[str] = None,
        anon_key: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.supabase_url = (supabase_url or settings.supabase_url).rstrip("/")
        self.anon_key = anon_key if anon_key is not None else settings.supabase_anon_key
        self.timeout = timeout or settings.upstream_timeout
        self.transport = transport

    async def verify(self, credential: Optional[str]) -> Principal:
        if not credential or not credential.strip():
            raise UnauthenticatedError()

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(
                    f"{self.supabase_url}/auth/v1/user",
                    headers={
                        "Authorization": f"Bearer {credential}",
                        "apikey": self.anon_key,
                    },
                )
        except httpx.TimeoutException:
            logger.warning("Identity provider timed out after %.0fs", self.timeout)
            raise UpstreamTimeoutError(service=self.SERVICE_NAME, timeout=self.timeout)
        except httpx.HTTPError as e:
            logger.error("Identity provider unreachable: %s", str(e))
            raise UpstreamError(
                message="Identity provider is unreachable",
                details=str(e),
            )

        if response.status_code >= 500:
            logger.error("Identity provider error: HTTP %d", response.status_code)
            raise UpstreamError(
                message="Identity provider request failed",
                upstream_status=response.status_code,
                details=_provider_message(response),
            )

        if response.status_code >= 400:
            # Never log the credential itself
            logger.info("Credential rejected by identity provider (HTTP %d)", response.status_code)
            raise InvalidCredentialError(details=_provider_message(response))

        try:
            body = response.json()
        except ValueError:
            body = None
        user_id = body.get("id") if isinstance(body, dict) else None
        if not user_id:
            raise InvalidCredentialError(details="Identity provider returned no user")

        return Principal(
            id=str(user_id),
            email=body.get("email"),
            created_at=_parse_created_at(body.get("created_at")),
        )
