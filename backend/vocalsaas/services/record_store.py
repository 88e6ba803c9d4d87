"""
VocalSaaS Backend: Session and Journal Stores
==============================================

What:  Owner-scoped CRUD with offset pagination for audio sessions and
       journal entries.
Who:   /api/sessions and /api/journal routes; SynthesisGateway writes
       completed sessions through SessionStore.

Pagination:
    1-based pages, offset = (page - 1) * limit.
    ORDER BY created_at DESC, id DESC; the id tie-break keeps pages disjoint
    when several rows share a timestamp.
    total comes from an independent COUNT(*) over the same owner-scoped set,
    never from the length of the page.

Partial updates:
    Only keys present in the request are applied (callers pass
    `model_dump(exclude_unset=True)`); updated_at is refreshed on every
    update, even an empty one.

Query plan (list):
    SELECT ... WHERE owner_id = :owner ORDER BY created_at DESC, id DESC
    LIMIT :limit OFFSET :offset
    → idx_<table>_owner_created
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from vocalsaas.exceptions import NotFoundError, PersistenceError, ValidationError
from vocalsaas.models.journal import JournalEntry
from vocalsaas.models.session import AudioSession, SessionStatus
from vocalsaas.services.voice_service import VoiceModelRegistry, parse_record_id

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10

# Average speaking rate used to estimate session length
CHARS_PER_SECOND = 20

DEFAULT_SESSION_TITLE = "Untitled Session"
DEFAULT_SESSION_TYPE = "custom"
DEFAULT_ENTRY_TITLE = "Untitled Entry"

RecordT = TypeVar("RecordT")


def estimate_duration_seconds(script: str) -> int:
    """ceil(len(script) / 20): a length-based estimate, not a measurement."""
    return math.ceil(len(script) / CHARS_PER_SECOND)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Page(Generic[RecordT]):
    items: List[RecordT]
    total: int
    page: int
    limit: int


class _OwnedRecordStore(Generic[RecordT]):
    """Shared owner-scoped get / list / delete for a single table."""

    model: Type[Any]
    resource: str

    async def get(self, db: AsyncSession, owner_id: str, record_id) -> RecordT:
        parsed = parse_record_id(record_id)
        if parsed is None:
            raise NotFoundError(resource=self.resource, resource_id=str(record_id))

        try:
            result = await db.execute(
                select(self.model).where(
                    self.model.id == parsed,
                    self.model.owner_id == owner_id,
                )
            )
            record = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error fetching %s %s: %s", self.resource, parsed, str(e))
            raise PersistenceError(message=f"Could not retrieve the {self.resource}. Please try again.")

        if record is None:
            raise NotFoundError(resource=self.resource, resource_id=str(parsed))
        return record

    async def list(
        self,
        db: AsyncSession,
        owner_id: str,
        page: int = DEFAULT_PAGE,
        limit: int = DEFAULT_LIMIT,
    ) -> Page[RecordT]:
        if page < 1:
            raise ValidationError(message="page must be at least 1", field="page")
        if limit < 1:
            raise ValidationError(message="limit must be at least 1", field="limit")

        owned = self.model.owner_id == owner_id
        try:
            result = await db.execute(
                select(self.model)
                .where(owned)
                .order_by(self.model.created_at.desc(), self.model.id.desc())
                .offset((page - 1) * limit)
                .limit(limit)
            )
            items = list(result.scalars().all())

            total = await db.scalar(
                select(func.count()).select_from(self.model).where(owned)
            )
        except SQLAlchemyError as e:
            logger.error("Database error listing %s records: %s", self.resource, str(e))
            raise PersistenceError(message=f"Could not retrieve {self.resource} records. Please try again.")

        return Page(items=items, total=total or 0, page=page, limit=limit)

    async def delete(self, db: AsyncSession, owner_id: str, record_id) -> RecordT:
        """Delete an owned record and return the deleted instance."""
        record = await self.get(db, owner_id, record_id)
        try:
            await db.delete(record)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error deleting %s %s: %s", self.resource, record.id, str(e))
            raise PersistenceError(message=f"Could not delete the {self.resource}. Please try again.")

        logger.info("Deleted %s %s for owner %s", self.resource, record.id, owner_id)
        return record

    async def _save(self, db: AsyncSession, record: RecordT, action: str) -> RecordT:
        try:
            db.add(record)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error on %s %s: %s", self.resource, action, str(e))
            raise PersistenceError(message=f"Could not save the {self.resource}. Please try again.")
        return record


class SessionStore(_OwnedRecordStore[AudioSession]):
    """
    Audio sessions. Creation resolves the voice model through the registry,
    so a session can only point at one of the caller's own voices.
    """

    model = AudioSession
    resource = "session"

    def __init__(self, registry: VoiceModelRegistry):
        self.registry = registry

    async def create(
        self,
        db: AsyncSession,
        owner_id: str,
        script: Optional[str],
        voice_ref: Optional[str],
        title: Optional[str] = None,
        session_type: Optional[str] = None,
        status: SessionStatus = SessionStatus.PENDING,
        duration_seconds: Optional[int] = None,
        audio_ref: Optional[str] = None,
    ) -> AudioSession:
        if not script or not script.strip():
            raise ValidationError(message="Script is required", field="script")
        if not voice_ref or not str(voice_ref).strip():
            raise ValidationError(message="Voice model id is required", field="voiceModelId")

        voice_model = await self.registry.resolve_voice_ref(db, owner_id, voice_ref)

        session = AudioSession(
            owner_id=owner_id,
            voice_model_id=voice_model.id,
            title=(title or "").strip() or DEFAULT_SESSION_TITLE,
            script=script,
            session_type=(session_type or "").strip() or DEFAULT_SESSION_TYPE,
            status=SessionStatus(status).value,
            duration_seconds=duration_seconds,
            audio_ref=audio_ref,
        )
        await self._save(db, session, "create")
        logger.info("Session %s created (status=%s)", session.id, session.status)
        return session

    async def update(
        self,
        db: AsyncSession,
        owner_id: str,
        record_id,
        changes: Dict[str, Any],
    ) -> AudioSession:
        session = await self.get(db, owner_id, record_id)

        if "title" in changes:
            session.title = (changes["title"] or "").strip() or DEFAULT_SESSION_TITLE
        if "script" in changes:
            script = changes["script"]
            if not script or not script.strip():
                raise ValidationError(message="Script cannot be empty", field="script")
            session.script = script
        if "status" in changes and changes["status"] is not None:
            current = SessionStatus(session.status)
            target = SessionStatus(changes["status"])
            if not current.can_transition(target):
                raise ValidationError(
                    message=f"Cannot change session status from {current.value} to {target.value}",
                    field="status",
                    context={"from": current.value, "to": target.value},
                )
            session.status = target.value

        session.updated_at = _utcnow()
        return await self._save(db, session, "update")


class JournalStore(_OwnedRecordStore[JournalEntry]):
    model = JournalEntry
    resource = "journal entry"

    async def create(
        self,
        db: AsyncSession,
        owner_id: str,
        content: Optional[str],
        title: Optional[str] = None,
        mood: Optional[str] = None,
        tags: Optional[List[str]] = None,
    ) -> JournalEntry:
        if not content or not content.strip():
            raise ValidationError(message="Content is required", field="content")

        entry = JournalEntry(
            owner_id=owner_id,
            title=(title or "").strip() or DEFAULT_ENTRY_TITLE,
            content=content,
            mood=mood,
            tags=tags,
        )
        await self._save(db, entry, "create")
        logger.info("Journal entry %s created", entry.id)
        return entry

    async def update(
        self,
        db: AsyncSession,
        owner_id: str,
        record_id,
        changes: Dict[str, Any],
    ) -> JournalEntry:
        entry = await self.get(db, owner_id, record_id)

        if "content" in changes:
            content = changes["content"]
            if not content or not content.strip():
                raise ValidationError(message="Content cannot be empty", field="content")
            entry.content = content
        if "title" in changes:
            entry.title = (changes["title"] or "").strip() or DEFAULT_ENTRY_TITLE
        if "mood" in changes:
            entry.mood = changes["mood"]
        if "tags" in changes:
            entry.tags = changes["tags"]

        entry.updated_at = _utcnow()
        return await self._save(db, entry, "update")
