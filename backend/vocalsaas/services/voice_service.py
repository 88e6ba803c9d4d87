"""
VocalSaaS Backend: Voice Model Registry
========================================

What:  Owner-scoped voice model lifecycle, mirrored in the vendor registry.
Who:   /api/voice routes, SynthesisGateway and SessionStore (voice resolution).

Ordering rules:
    create: vendor clone first, then the local row. If the local insert fails
            the new vendor voice is deleted again (best effort); when that
            compensation fails too, the external reference is logged at ERROR
            so it can be reconciled by hand.
    delete: vendor delete first (failure logged and ignored), then the local
            row is always removed. Sessions keep their history with
            voice_model_id set to NULL.

Every lookup carries the owner predicate inside the SQL filter, so a foreign
record and a missing record both surface as NotFoundError.
"""

import logging
import uuid
from typing import List, Optional

from sqlalchemy import or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from vocalsaas.exceptions import (
    NotFoundError,
    PersistenceError,
    ValidationError,
    VocalSaaSError,
)
from vocalsaas.models.session import AudioSession
from vocalsaas.models.voice_model import VoiceModel
from vocalsaas.services.vendor_base import VoiceVendor

logger = logging.getLogger(__name__)

_BYTES_PER_MIB = 1024 * 1024


def parse_record_id(value) -> Optional[uuid.UUID]:
    """Return the UUID for a path/body id, or None when it is not a UUID."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        return None


def classify_recording_quality(size_bytes: int, duration_seconds: float) -> str:
    """
    Rough quality grade for a recorded voice sample.

        < 0.02 MiB and < 5 s   → "poor"
        < 0.05 MiB and < 15 s  → "fair"
        otherwise              → "good"
    """
    size_mib = size_bytes / _BYTES_PER_MIB
    if size_mib < 0.02 and duration_seconds < 5:
        return "poor"
    if size_mib < 0.05 and duration_seconds < 15:
        return "fair"
    return "good"


class VoiceModelRegistry:
    """Business logic for voice models. Stateless apart from the vendor client."""

    def __init__(self, vendor: VoiceVendor):
        self.vendor = vendor

    async def create_voice_model(
        self,
        db: AsyncSession,
        owner_id: str,
        audio: bytes,
        display_name: Optional[str] = None,
        description: Optional[str] = None,
        filename: str = "voice_sample.wav",
        content_type: str = "audio/wav",
    ) -> VoiceModel:
        """
        Clone a voice at the vendor and record it for `owner_id`.

        Raises:
            UpstreamSynthesisError: vendor rejected the sample (no local row is written)
            UpstreamTimeoutError:   vendor timed out
            PersistenceError:       local insert failed after a successful clone
        """
        name = (display_name or "").strip() or f"voice_{owner_id}"
        description = (description or "").strip() or f"Voice model for user {owner_id}"

        external_ref = await self.vendor.clone_voice(
            audio,
            name=name,
            description=description,
            filename=filename,
            content_type=content_type,
        )

        voice_model = VoiceModel(
            owner_id=owner_id,
            display_name=name,
            description=description,
            external_voice_ref=external_ref,
        )
        try:
            db.add(voice_model)
            await db.flush()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(
                "Saving voice model failed after vendor clone (external_voice_ref=%s): %s",
                external_ref,
                str(e),
            )
            await self._compensate_clone(external_ref)
            raise PersistenceError(
                message="Voice model could not be saved. Please try again.",
                context={"external_voice_ref": external_ref},
            )

        logger.info("Voice model %s created for owner %s", voice_model.id, owner_id)
        return voice_model

    async def _compensate_clone(self, external_ref: str) -> None:
        try:
            await self.vendor.delete_voice(external_ref)
            logger.info("Orphaned vendor voice %s deleted", external_ref)
        except VocalSaaSError as e:
            logger.error(
                "Orphaned vendor voice needs reconciliation: external_voice_ref=%s (%s)",
                external_ref,
                e.message,
            )

    async def list_voice_models(self, db: AsyncSession, owner_id: str) -> List[VoiceModel]:
        try:
            result = await db.execute(
                select(VoiceModel)
                .where(VoiceModel.owner_id == owner_id)
                .order_by(VoiceModel.created_at.desc(), VoiceModel.id.desc())
            )
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error listing voice models: %s", str(e))
            raise PersistenceError(message="Could not retrieve voice models. Please try again.")

    async def get_voice_model(self, db: AsyncSession, owner_id: str, voice_model_id) -> VoiceModel:
        parsed = parse_record_id(voice_model_id)
        if parsed is None:
            raise NotFoundError(resource="voice model", resource_id=str(voice_model_id))

        try:
            result = await db.execute(
                select(VoiceModel).where(
                    VoiceModel.id == parsed,
                    VoiceModel.owner_id == owner_id,
                )
            )
            voice_model = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error fetching voice model %s: %s", parsed, str(e))
            raise PersistenceError(message="Could not retrieve the voice model. Please try again.")

        if voice_model is None:
            raise NotFoundError(resource="voice model", resource_id=str(parsed))
        return voice_model

    async def resolve_voice_ref(self, db: AsyncSession, owner_id: str, ref: Optional[str]) -> VoiceModel:
        """
        Find the caller's voice model by internal id OR vendor voice id.

        Clients historically send the vendor id (`voiceId`) to /generate and
        the internal id (`voiceModelId`) to /sessions; both are accepted.
        """
        ref = (ref or "").strip()
        if not ref:
            raise ValidationError(message="Voice model reference is required", field="voiceId")

        matches = [VoiceModel.external_voice_ref == ref]
        parsed = parse_record_id(ref)
        if parsed is not None:
            matches.append(VoiceModel.id == parsed)

        try:
            result = await db.execute(
                select(VoiceModel)
                .where(VoiceModel.owner_id == owner_id, or_(*matches))
                .limit(1)
            )
            voice_model = result.scalars().first()
        except SQLAlchemyError as e:
            logger.error("Database error resolving voice reference: %s", str(e))
            raise PersistenceError(message="Could not retrieve the voice model. Please try again.")

        if voice_model is None:
            raise NotFoundError(resource="voice model", resource_id=ref)
        return voice_model

    async def delete_voice_model(self, db: AsyncSession, owner_id: str, voice_model_id) -> None:
        voice_model = await self.get_voice_model(db, owner_id, voice_model_id)

        try:
            await self.vendor.delete_voice(voice_model.external_voice_ref)
        except VocalSaaSError as e:
            # The local row goes regardless; a stale vendor voice is harmless
            logger.warning(
                "Vendor deletion failed for %s, removing local record anyway: %s",
                voice_model.external_voice_ref,
                e.message,
            )

        try:
            await db.execute(
                update(AudioSession)
                .where(AudioSession.voice_model_id == voice_model.id)
                .values(voice_model_id=None)
            )
            await db.delete(voice_model)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error deleting voice model %s: %s", voice_model.id, str(e))
            raise PersistenceError(message="Could not delete the voice model. Please try again.")

        logger.info("Voice model %s deleted for owner %s", voice_model.id, owner_id)
