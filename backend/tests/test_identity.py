"""
VocalSaaS Backend: Token Verifier Tests
========================================

What:  TokenVerifier against a mocked identity provider (httpx.MockTransport).
"""

import httpx
import pytest

from vocalsaas.exceptions import (
    InvalidCredentialError,
    UnauthenticatedError,
    UpstreamError,
    UpstreamTimeoutError,
)
from vocalsaas.services.identity import TokenVerifier


def make_verifier(handler) -> TokenVerifier:
    return TokenVerifier(
        supabase_url="https://identity.test/",
        anon_key="anon-key",
        timeout=5,
        transport=httpx.MockTransport(handler),
    )


class TestTokenVerifier:

    @pytest.mark.asyncio
    async def test_valid_token_returns_principal(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["authorization"] = request.headers.get("authorization")
            seen["apikey"] = request.headers.get("apikey")
            return httpx.Response(200, json={
                "id": "user-1",
                "email": "user@example.com",
                "created_at": "2024-05-01T10:00:00Z",
            })

        principal = await make_verifier(handler).verify("good-token")

        assert principal.id == "user-1"
        assert principal.email == "user@example.com"
        assert principal.created_at.year == 2024
        assert seen["url"] == "https://identity.test/auth/v1/user"
        assert seen["authorization"] == "Bearer good-token"
        assert seen["apikey"] == "anon-key"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("credential", [None, "", "   "])
    async def test_missing_token_is_unauthenticated(self, credential):
        def handler(request):
            raise AssertionError("provider must not be called")

        with pytest.raises(UnauthenticatedError):
            await make_verifier(handler).verify(credential)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [401, 403, 422])
    async def test_rejected_token_is_invalid(self, status):
        def handler(request):
            return httpx.Response(status, json={"msg": "invalid JWT: token is expired"})

        with pytest.raises(InvalidCredentialError) as exc_info:
            await make_verifier(handler).verify("expired")

        assert exc_info.value.message == "Invalid or expired token"
        assert "expired" in exc_info.value.details

    @pytest.mark.asyncio
    async def test_response_without_user_id_is_invalid(self):
        with pytest.raises(InvalidCredentialError):
            await make_verifier(lambda r: httpx.Response(200, json={})).verify("token")

    @pytest.mark.asyncio
    async def test_provider_outage_is_upstream_error(self):
        with pytest.raises(UpstreamError) as exc_info:
            await make_verifier(lambda r: httpx.Response(500, text="boom")).verify("token")
        assert exc_info.value.upstream_status == 500

    @pytest.mark.asyncio
    async def test_unreachable_provider_is_upstream_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(UpstreamError):
            await make_verifier(handler).verify("token")

    @pytest.mark.asyncio
    async def test_timeout_is_upstream_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(UpstreamTimeoutError) as exc_info:
            await make_verifier(handler).verify("token")
        assert exc_info.value.service == "identity provider"
