"""
VocalSaaS Backend: Audio Session Route Handlers
================================================

    POST   /api/sessions             create a pending session
    GET    /api/sessions?page=&limit=
    GET    /api/sessions/{id}
    PUT    /api/sessions/{id}        partial update: title, script, status
    DELETE /api/sessions/{id}
    GET    /api/sessions/{id}/audio  stored audio of a generated session

Ids that are not UUIDs are answered with 404, the same as unknown ids.
"""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from vocalsaas.database import get_db_session
from vocalsaas.dependencies import get_audio_storage, get_current_principal, get_session_store
from vocalsaas.exceptions import NotFoundError
from vocalsaas.schemas.common import ErrorResponse, MessageResponse, PaginationMeta
from vocalsaas.schemas.session import (
    SessionCreateRequest,
    SessionEnvelope,
    SessionListResponse,
    SessionResponse,
    SessionUpdateRequest,
)
from vocalsaas.services.audio_storage import AudioStorage
from vocalsaas.services.identity import Principal
from vocalsaas.services.record_store import DEFAULT_LIMIT, SessionStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sessions", tags=["Sessions"])


@router.post(
    "",
    status_code=201,
    response_model=SessionEnvelope,
    responses={
        400: {"description": "Missing script or voice model id", "model": ErrorResponse},
        404: {"description": "Voice model not found", "model": ErrorResponse},
    },
    summary="Create a session",
)
async def create_session(
    body: SessionCreateRequest,
    principal: Principal = Depends(get_current_principal),
    store: SessionStore = Depends(get_session_store),
    db: AsyncSession = Depends(get_db_session),
) -> SessionEnvelope:
    session = await store.create(
        db,
        principal.id,
        script=body.script,
        voice_ref=body.voice_model_id,
        title=body.title,
        session_type=body.session_type,
    )
    return SessionEnvelope(
        session=SessionResponse.model_validate(session),
        message="Session created successfully",
    )


@router.get(
    "",
    response_model=SessionListResponse,
    summary="List your sessions, newest first",
)
async def list_sessions(
    response: Response,
    page: int = Query(default=1, ge=1, description="1-based page number"),
    limit: int = Query(default=DEFAULT_LIMIT, ge=1, description="Items per page"),
    principal: Principal = Depends(get_current_principal),
    store: SessionStore = Depends(get_session_store),
    db: AsyncSession = Depends(get_db_session),
) -> SessionListResponse:
    result = await store.list(db, principal.id, page=page, limit=limit)

    response.headers["X-Total-Count"] = str(result.total)
    return SessionListResponse(
        sessions=[SessionResponse.model_validate(s) for s in result.items],
        pagination=PaginationMeta(page=result.page, limit=result.limit, total=result.total),
    )


@router.get(
    "/{session_id}",
    response_model=SessionEnvelope,
    responses={404: {"description": "Session not found", "model": ErrorResponse}},
    summary="Get a session",
)
async def get_session(
    session_id: str,
    principal: Principal = Depends(get_current_principal),
    store: SessionStore = Depends(get_session_store),
    db: AsyncSession = Depends(get_db_session),
) -> SessionEnvelope:
    session = await store.get(db, principal.id, session_id)
    return SessionEnvelope(session=SessionResponse.model_validate(session))


@router.put(
    "/{session_id}",
    response_model=SessionEnvelope,
    responses={
        400: {"description": "Illegal status change or empty script", "model": ErrorResponse},
        404: {"description": "Session not found", "model": ErrorResponse},
    },
    summary="Update a session (only the fields sent are changed)",
)
async def update_session(
    session_id: str,
    body: SessionUpdateRequest,
    principal: Principal = Depends(get_current_principal),
    store: SessionStore = Depends(get_session_store),
    db: AsyncSession = Depends(get_db_session),
) -> SessionEnvelope:
    session = await store.update(
        db,
        principal.id,
        session_id,
        body.model_dump(exclude_unset=True),
    )
    return SessionEnvelope(
        session=SessionResponse.model_validate(session),
        message="Session updated successfully",
    )


@router.delete(
    "/{session_id}",
    response_model=MessageResponse,
    responses={404: {"description": "Session not found", "model": ErrorResponse}},
    summary="Delete a session",
)
async def delete_session(
    session_id: str,
    background_tasks: BackgroundTasks,
    principal: Principal = Depends(get_current_principal),
    store: SessionStore = Depends(get_session_store),
    storage: AudioStorage = Depends(get_audio_storage),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    session = await store.delete(db, principal.id, session_id)
    if session.audio_ref:
        background_tasks.add_task(storage.cleanup_file, session.audio_ref)
    return MessageResponse(message="Session deleted successfully")


@router.get(
    "/{session_id}/audio",
    response_class=Response,
    responses={
        200: {"content": {"audio/mpeg": {}}, "description": "Generated audio"},
        404: {"description": "Session or audio not found", "model": ErrorResponse},
    },
    summary="Download the generated audio of a session",
)
async def get_session_audio(
    session_id: str,
    principal: Principal = Depends(get_current_principal),
    store: SessionStore = Depends(get_session_store),
    storage: AudioStorage = Depends(get_audio_storage),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    session = await store.get(db, principal.id, session_id)
    if not session.audio_ref:
        raise NotFoundError(resource="audio", resource_id=str(session.id))

    audio = await storage.read_audio(session.audio_ref)
    return Response(
        content=audio,
        media_type="audio/mpeg",
        headers={"Cache-Control": "private, max-age=3600"},
    )
