"""
VocalSaaS Backend: Auth Routes
===============================

POST /api/auth/token    verify a provider credential and hand it back
GET  /api/auth/profile  the Principal behind the current bearer credential

There is no internal token layer: the identity provider's credential is the
session credential for every other route.
"""

import logging

from fastapi import APIRouter, Depends

from vocalsaas.dependencies import get_current_principal, get_token_verifier
from vocalsaas.schemas.common import (
    ErrorResponse,
    PrincipalResponse,
    ProfileResponse,
    TokenExchangeRequest,
    TokenExchangeResponse,
)
from vocalsaas.services.identity import Principal, TokenVerifier

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


def _principal_response(principal: Principal) -> PrincipalResponse:
    return PrincipalResponse(
        id=principal.id,
        email=principal.email,
        created_at=principal.created_at,
    )


@router.post(
    "/token",
    response_model=TokenExchangeResponse,
    responses={
        401: {"description": "Token missing", "model": ErrorResponse},
        403: {"description": "Token rejected by the identity provider", "model": ErrorResponse},
    },
    summary="Verify an identity provider token",
)
async def exchange_token(
    body: TokenExchangeRequest,
    verifier: TokenVerifier = Depends(get_token_verifier),
) -> TokenExchangeResponse:
    principal = await verifier.verify(body.token)
    logger.info("Token verified for principal %s", principal.id)
    return TokenExchangeResponse(token=body.token, user=_principal_response(principal))


@router.get(
    "/profile",
    response_model=ProfileResponse,
    responses={
        401: {"description": "Token missing", "model": ErrorResponse},
        403: {"description": "Token rejected", "model": ErrorResponse},
    },
    summary="Current user",
)
async def get_profile(principal: Principal = Depends(get_current_principal)) -> ProfileResponse:
    return ProfileResponse(user=_principal_response(principal))
