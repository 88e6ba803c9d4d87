"""
VocalSaaS Backend: Synthesis Gateway
=====================================

What:  Turns a script and one of the caller's voices into audio, and records
       the result as a completed session.
Who:   POST /api/voice/generate.

Orchestration Flow:
    ┌──────────┐   ┌───────────────┐   ┌────────────┐   ┌──────────┐   ┌──────────┐
    │ Validate │──▶│ Resolve voice │──▶│ Vendor TTS │──▶│  Store   │──▶│ Session  │
    │  input   │   │ (owner-scoped)│   │            │   │  audio   │   │  (DB)    │
    └──────────┘   └───────────────┘   └────────────┘   └──────────┘   └──────────┘

    Validate / resolve failures stop before any vendor call.
    Storage failure: audio_ref stays NULL, logged, flow continues.
    Session failure: rolled back, logged and the stored file removed; the audio
    is still returned with session=None and a warning. The caller already paid
    for the synthesis.

The call is synchronous from the client's point of view: sessions created
here go straight to 'completed'.
"""

import base64
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from vocalsaas.exceptions import FileStorageError, PersistenceError, ValidationError
from vocalsaas.models.session import AudioSession, SessionStatus
from vocalsaas.services.audio_storage import AudioStorage
from vocalsaas.services.record_store import SessionStore, estimate_duration_seconds
from vocalsaas.services.vendor_base import VoiceVendor
from vocalsaas.services.voice_service import VoiceModelRegistry

logger = logging.getLogger(__name__)

SESSION_NOT_SAVED_WARNING = (
    "Audio was generated but the session could not be saved. "
    "Download the audio now; it will not appear in your history."
)


@dataclass
class GenerationResult:
    audio: bytes
    session: Optional[AudioSession]
    duration_seconds: int
    warning: Optional[str] = None

    @property
    def audio_base64(self) -> str:
        return base64.b64encode(self.audio).decode("ascii")


class SynthesisGateway:
    def __init__(
        self,
        vendor: VoiceVendor,
        registry: VoiceModelRegistry,
        sessions: SessionStore,
        storage: Optional[AudioStorage] = None,
    ):
        self.vendor = vendor
        self.registry = registry
        self.sessions = sessions
        self.storage = storage

    async def generate_audio(
        self,
        db: AsyncSession,
        owner_id: str,
        script: Optional[str],
        voice_ref: Optional[str],
        title: Optional[str] = None,
        session_type: Optional[str] = None,
    ) -> GenerationResult:
        """
        Raises:
            ValidationError:        empty script or voice reference (400)
            NotFoundError:          voice not owned by the caller (404)
            UpstreamSynthesisError: vendor failed (502)
            UpstreamTimeoutError:   vendor timed out (504)
            CircuitBreakerOpenError: vendor circuit open (503)
        """
        if not script or not script.strip():
            raise ValidationError(message="Script is required", field="script")
        if not voice_ref or not voice_ref.strip():
            raise ValidationError(message="Voice id is required", field="voiceId")

        voice_model = await self.registry.resolve_voice_ref(db, owner_id, voice_ref)

        audio = await self.vendor.synthesize(voice_model.external_voice_ref, script)
        duration = estimate_duration_seconds(script)
        logger.info(
            "Synthesized %d bytes for voice model %s (%d chars, ~%ds)",
            len(audio),
            voice_model.id,
            len(script),
            duration,
        )

        audio_ref = await self._store_audio(audio)

        try:
            session = await self.sessions.create(
                db,
                owner_id,
                script=script,
                voice_ref=str(voice_model.id),
                title=title,
                session_type=session_type,
                status=SessionStatus.COMPLETED,
                duration_seconds=duration,
                audio_ref=audio_ref,
            )
        except PersistenceError as e:
            await db.rollback()
            if audio_ref:
                # Nothing will reference the file once the session is gone
                await self.storage.cleanup_file(audio_ref)
            logger.warning(
                "Session not saved after synthesis for owner %s: %s",
                owner_id,
                e.message,
            )
            return GenerationResult(
                audio=audio,
                session=None,
                duration_seconds=duration,
                warning=SESSION_NOT_SAVED_WARNING,
            )

        return GenerationResult(audio=audio, session=session, duration_seconds=duration)

    async def _store_audio(self, audio: bytes) -> Optional[str]:
        if self.storage is None:
            return None
        try:
            return await self.storage.store_audio(audio, content_type="audio/mpeg")
        except FileStorageError as e:
            logger.warning("Generated audio not stored, continuing without audio_ref: %s", e.message)
            return None
