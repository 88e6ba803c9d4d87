"""
VocalSaaS Backend: FastAPI Dependencies
========================================

What:  Providers for the authenticated Principal and for every service the
       routes use.
How:   Long-lived collaborators (identity client, vendor client with its
       circuit breaker, storage) are built once per process behind
       lru_cache; services are cheap wrappers assembled per request.
       Tests replace any provider through `app.dependency_overrides`.

Example:
    @router.get("/api/voice/models")
    async def list_models(
        principal: Principal = Depends(get_current_principal),
        registry: VoiceModelRegistry = Depends(get_voice_registry),
        db: AsyncSession = Depends(get_db_session),
    ): ...
"""

from functools import lru_cache
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from vocalsaas.exceptions import UnauthenticatedError
from vocalsaas.services.audio_storage import AudioStorage
from vocalsaas.services.elevenlabs_service import ElevenLabsService
from vocalsaas.services.identity import Principal, TokenVerifier
from vocalsaas.services.record_store import JournalStore, SessionStore
from vocalsaas.services.synthesis_service import SynthesisGateway
from vocalsaas.services.vendor_base import VoiceVendor
from vocalsaas.services.voice_service import VoiceModelRegistry

# auto_error=False: a missing header must become our 401 body, not FastAPI's 403
bearer_scheme = HTTPBearer(auto_error=False)


@lru_cache
def get_token_verifier() -> TokenVerifier:
    return TokenVerifier()


@lru_cache
def get_voice_vendor() -> VoiceVendor:
    # One instance per process: the circuit breaker state must be shared
    return ElevenLabsService()


@lru_cache
def get_audio_storage() -> AudioStorage:
    return AudioStorage()


def get_voice_registry(vendor: VoiceVendor = Depends(get_voice_vendor)) -> VoiceModelRegistry:
    return VoiceModelRegistry(vendor)


def get_session_store(registry: VoiceModelRegistry = Depends(get_voice_registry)) -> SessionStore:
    return SessionStore(registry)


def get_journal_store() -> JournalStore:
    return JournalStore()


def get_synthesis_gateway(
    vendor: VoiceVendor = Depends(get_voice_vendor),
    registry: VoiceModelRegistry = Depends(get_voice_registry),
    sessions: SessionStore = Depends(get_session_store),
    storage: AudioStorage = Depends(get_audio_storage),
) -> SynthesisGateway:
    return SynthesisGateway(vendor, registry, sessions, storage)


async def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    verifier: TokenVerifier = Depends(get_token_verifier),
) -> Principal:
    """
    Resolve the caller for a protected route.

    Raises:
        UnauthenticatedError (401):   no bearer credential
        InvalidCredentialError (403): credential rejected by the provider
    """
    if credentials is None or not credentials.credentials:
        raise UnauthenticatedError()
    return await verifier.verify(credentials.credentials)
