"""
VocalSaaS Backend: Journal Schemas
===================================

What:  Request/response contracts for /api/journal/entries.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from vocalsaas.schemas.common import CamelModel, PaginationMeta


def _dedupe_tags(tags: Optional[List[str]]) -> Optional[List[str]]:
    """Strip, drop blanks and de-duplicate while keeping first-seen order."""
    if tags is None:
        return None
    seen = []
    for tag in tags:
        tag = tag.strip()
        if tag and tag not in seen:
            seen.append(tag)
    return seen


class JournalEntryResponse(CamelModel):
    id: uuid.UUID
    owner_id: str
    title: str
    content: str
    mood: Optional[str] = None
    tags: Optional[List[str]] = None
    created_at: datetime
    updated_at: datetime


class JournalEntryCreateRequest(CamelModel):
    # Blank content is rejected by JournalStore with a 400
    content: str
    title: Optional[str] = Field(default=None, max_length=255)
    mood: Optional[str] = Field(default=None, max_length=50)
    tags: Optional[List[str]] = None

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return _dedupe_tags(v)


class JournalEntryUpdateRequest(CamelModel):
    title: Optional[str] = Field(default=None, max_length=255)
    content: Optional[str] = None
    mood: Optional[str] = Field(default=None, max_length=50)
    tags: Optional[List[str]] = None

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return _dedupe_tags(v)


class JournalEntryEnvelope(CamelModel):
    success: bool = True
    journal_entry: JournalEntryResponse
    message: Optional[str] = None


class JournalEntryListResponse(CamelModel):
    success: bool = True
    journal_entries: List[JournalEntryResponse]
    pagination: PaginationMeta
