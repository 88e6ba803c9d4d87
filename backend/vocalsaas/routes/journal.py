"""
VocalSaaS Backend: Journal Route Handlers
==========================================

    POST   /api/journal/entries
    GET    /api/journal/entries?page=&limit=
    GET    /api/journal/entries/{id}
    PUT    /api/journal/entries/{id}
    DELETE /api/journal/entries/{id}
"""

import logging

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from vocalsaas.database import get_db_session
from vocalsaas.dependencies import get_current_principal, get_journal_store
from vocalsaas.schemas.common import ErrorResponse, MessageResponse, PaginationMeta
from vocalsaas.schemas.journal import (
    JournalEntryCreateRequest,
    JournalEntryEnvelope,
    JournalEntryListResponse,
    JournalEntryResponse,
    JournalEntryUpdateRequest,
)
from vocalsaas.services.identity import Principal
from vocalsaas.services.record_store import DEFAULT_LIMIT, JournalStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/journal", tags=["Journal"])


@router.post(
    "/entries",
    status_code=201,
    response_model=JournalEntryEnvelope,
    responses={400: {"description": "Content is required", "model": ErrorResponse}},
    summary="Create a journal entry",
)
async def create_entry(
    body: JournalEntryCreateRequest,
    principal: Principal = Depends(get_current_principal),
    store: JournalStore = Depends(get_journal_store),
    db: AsyncSession = Depends(get_db_session),
) -> JournalEntryEnvelope:
    entry = await store.create(
        db,
        principal.id,
        content=body.content,
        title=body.title,
        mood=body.mood,
        tags=body.tags,
    )
    return JournalEntryEnvelope(
        journal_entry=JournalEntryResponse.model_validate(entry),
        message="Journal entry created successfully",
    )


@router.get(
    "/entries",
    response_model=JournalEntryListResponse,
    summary="List your journal entries, newest first",
)
async def list_entries(
    response: Response,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_LIMIT, ge=1),
    principal: Principal = Depends(get_current_principal),
    store: JournalStore = Depends(get_journal_store),
    db: AsyncSession = Depends(get_db_session),
) -> JournalEntryListResponse:
    result = await store.list(db, principal.id, page=page, limit=limit)

    response.headers["X-Total-Count"] = str(result.total)
    return JournalEntryListResponse(
        journal_entries=[JournalEntryResponse.model_validate(e) for e in result.items],
        pagination=PaginationMeta(page=result.page, limit=result.limit, total=result.total),
    )


@router.get(
    "/entries/{entry_id}",
    response_model=JournalEntryEnvelope,
    responses={404: {"description": "Journal entry not found", "model": ErrorResponse}},
)
async def get_entry(
    entry_id: str,
    principal: Principal = Depends(get_current_principal),
    store: JournalStore = Depends(get_journal_store),
    db: AsyncSession = Depends(get_db_session),
) -> JournalEntryEnvelope:
    entry = await store.get(db, principal.id, entry_id)
    return JournalEntryEnvelope(journal_entry=JournalEntryResponse.model_validate(entry))


@router.put(
    "/entries/{entry_id}",
    response_model=JournalEntryEnvelope,
    responses={
        400: {"description": "Content cannot be empty", "model": ErrorResponse},
        404: {"description": "Journal entry not found", "model": ErrorResponse},
    },
)
async def update_entry(
    entry_id: str,
    body: JournalEntryUpdateRequest,
    principal: Principal = Depends(get_current_principal),
    store: JournalStore = Depends(get_journal_store),
    db: AsyncSession = Depends(get_db_session),
) -> JournalEntryEnvelope:
    entry = await store.update(db, principal.id, entry_id, body.model_dump(exclude_unset=True))
    return JournalEntryEnvelope(
        journal_entry=JournalEntryResponse.model_validate(entry),
        message="Journal entry updated successfully",
    )


@router.delete(
    "/entries/{entry_id}",
    response_model=MessageResponse,
    responses={404: {"description": "Journal entry not found", "model": ErrorResponse}},
)
async def delete_entry(
    entry_id: str,
    principal: Principal = Depends(get_current_principal),
    store: JournalStore = Depends(get_journal_store),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await store.delete(db, principal.id, entry_id)
    return MessageResponse(message="Journal entry deleted successfully")
