"""
VocalSaaS Backend: AudioSession SQLAlchemy Model
=================================================

What:  ORM model for the `audio_sessions` table.
Who:   Used by SynthesisGateway (completed sessions) and SessionStore (CRUD).

Status values: 'pending' → 'processing' → 'completed' | 'failed'.
The sequence is monotonic; SessionStatus.can_transition() is the single
source of truth for allowed moves.

duration_seconds is an estimate derived from the script length, never a
measurement of the audio.
"""

import enum
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from vocalsaas.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionStatus(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def rank(self) -> int:
        return _STATUS_RANK[self]

    def can_transition(self, target: "SessionStatus") -> bool:
        """True if moving from self to target keeps the sequence monotonic."""
        if target == self:
            return True
        return target.rank > self.rank


_STATUS_RANK = {
    SessionStatus.PENDING: 0,
    SessionStatus.PROCESSING: 1,
    SessionStatus.COMPLETED: 2,
    SessionStatus.FAILED: 2,
}


class AudioSession(Base):
    """
    A synthesized (or to-be-synthesized) guided audio session.

    voice_model_id is set to NULL when the voice model is deleted; the
    session history survives its voice.
    """

    __tablename__ = "audio_sessions"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    owner_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Principal id from the identity provider",
    )

    voice_model_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("voice_models.id", ondelete="SET NULL"),
        nullable=True,
    )

    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        default="Untitled Session",
    )

    script: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Text sent to the vendor for synthesis",
    )

    session_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default="custom",
        comment="meditation, affirmation, custom, ...",
    )

    audio_ref: Mapped[Optional[str]] = mapped_column(
        String(512),
        nullable=True,
        default=None,
        comment="Storage path of the generated audio, relative to STORAGE_ROOT",
    )

    duration_seconds: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        default=None,
        comment="Estimated duration: ceil(len(script) / 20)",
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=SessionStatus.PENDING.value,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )

    __table_args__ = (
        Index("idx_audio_sessions_owner_created", "owner_id", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<AudioSession(id={self.id}, status='{self.status}', "
            f"created_at='{self.created_at}')>"
        )
