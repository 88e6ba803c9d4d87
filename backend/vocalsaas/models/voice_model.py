"""
VocalSaaS Backend: VoiceModel SQLAlchemy Model
===============================================

What:  ORM model for the `voice_models` table.
Who:   Used by VoiceModelRegistry and by Alembic.

Table Design:
    - owner_id: opaque Principal id from the identity provider (not a FK;
      users live in the provider's own store)
    - external_voice_ref: the vendor's voice_id; unique across the table
    - audio_ref: storage path of the original sample (nullable, unused by
      the upload flow today)

Index on (owner_id, created_at): every query is owner-scoped.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from vocalsaas.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class VoiceModel(Base):
    """
    A cloned voice belonging to one Principal.

    Lifecycle:
        1. Created after the vendor accepted the voice sample
        2. Referenced by audio sessions (by internal id or external ref)
        3. Deleted at the vendor first (best effort), then locally
    """

    __tablename__ = "voice_models"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        comment="Unique identifier",
    )

    owner_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Principal id from the identity provider",
    )

    display_name: Mapped[str] = mapped_column(
        "name",
        String(255),
        nullable=False,
        comment="Display name chosen by the user",
    )

    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        default=None,
    )

    external_voice_ref: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        comment="Vendor voice identifier (ElevenLabs voice_id)",
    )

    audio_ref: Mapped[Optional[str]] = mapped_column(
        String(512),
        nullable=True,
        default=None,
        comment="Storage path of the voice sample, if kept",
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
        Index("idx_voice_models_owner_created", "owner_id", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<VoiceModel(id={self.id}, owner_id='{self.owner_id}', "
            f"external_voice_ref='{self.external_voice_ref}')>"
        )
