"""
VocalSaaS Backend: JournalEntry SQLAlchemy Model
=================================================

What:  ORM model for the `journal_entries` table.

tags is a JSON list of unique strings (JSON rather than a PostgreSQL ARRAY
so the same model runs on SQLite in tests).
"""

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import JSON, DateTime, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from vocalsaas.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JournalEntry(Base):
    __tablename__ = "journal_entries"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    owner_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        default="Untitled Entry",
    )

    # Never empty; enforced in JournalStore
    content: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )

    mood: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
        default=None,
    )

    tags: Mapped[Optional[List[str]]] = mapped_column(
        JSON,
        nullable=True,
        default=None,
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
        Index("idx_journal_entries_owner_created", "owner_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<JournalEntry(id={self.id}, title='{self.title}')>"
