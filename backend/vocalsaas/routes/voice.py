"""
VocalSaaS Backend: Voice Route Handlers
========================================

What:  Voice cloning, synthesis and voice model management.

    POST   /api/voice/upload        multipart: audio, name?, description?, duration?
    POST   /api/voice/generate      json: script, voiceId, title?, sessionType?
    GET    /api/voice/models
    GET    /api/voice/models/{id}
    DELETE /api/voice/models/{id}

Upload Flow:
    1. Declared content type must be audio/* (checked before reading)
    2. Body read in bounded chunks (MAX_UPLOAD_SIZE)
    3. VoiceModelRegistry clones at the vendor, then stores the row
    4. 201 with the voice model (and a quality grade when duration was sent)
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from vocalsaas.database import get_db_session
from vocalsaas.dependencies import (
    get_audio_storage,
    get_current_principal,
    get_synthesis_gateway,
    get_voice_registry,
)
from vocalsaas.exceptions import ValidationError
from vocalsaas.schemas.common import ErrorResponse, MessageResponse
from vocalsaas.schemas.session import SessionResponse
from vocalsaas.schemas.voice import (
    GenerateAudioRequest,
    GenerateAudioResponse,
    VoiceModelEnvelope,
    VoiceModelListResponse,
    VoiceModelResponse,
    VoiceUploadResponse,
)
from vocalsaas.services.audio_storage import AudioStorage
from vocalsaas.services.identity import Principal
from vocalsaas.services.synthesis_service import SynthesisGateway
from vocalsaas.services.voice_service import VoiceModelRegistry, classify_recording_quality

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/voice", tags=["Voice"])


@router.post(
    "/upload",
    status_code=201,
    response_model=VoiceUploadResponse,
    responses={
        400: {"description": "Missing, non-audio or oversized file", "model": ErrorResponse},
        502: {"description": "Voice vendor rejected the sample", "model": ErrorResponse},
        504: {"description": "Voice vendor timed out", "model": ErrorResponse},
    },
    summary="Clone a voice from an audio sample",
)
async def upload_voice(
    audio: Optional[UploadFile] = File(default=None, description="Voice sample (audio/*, max 50MB)"),
    name: Optional[str] = Form(default=None),
    description: Optional[str] = Form(default=None),
    duration: Optional[float] = Form(default=None, ge=0, description="Recording length in seconds"),
    principal: Principal = Depends(get_current_principal),
    registry: VoiceModelRegistry = Depends(get_voice_registry),
    storage: AudioStorage = Depends(get_audio_storage),
    db: AsyncSession = Depends(get_db_session),
) -> VoiceUploadResponse:
    if audio is None:
        raise ValidationError(message="No audio file provided", field="audio")

    try:
        content, content_type = await storage.read_upload(audio)
    finally:
        await audio.close()

    logger.info(
        "Voice upload from %s: %s (%d bytes)",
        principal.id,
        content_type,
        len(content),
    )

    voice_model = await registry.create_voice_model(
        db,
        principal.id,
        content,
        display_name=name,
        description=description,
        filename=audio.filename or "voice_sample.wav",
        content_type=content_type,
    )

    quality = None
    if duration is not None:
        quality = classify_recording_quality(len(content), duration)

    return VoiceUploadResponse(
        voice_model=VoiceModelResponse.model_validate(voice_model),
        recording_quality=quality,
    )


@router.post(
    "/generate",
    response_model=GenerateAudioResponse,
    responses={
        400: {"description": "Missing script or voice id", "model": ErrorResponse},
        404: {"description": "Voice model not found", "model": ErrorResponse},
        502: {"description": "Voice vendor failed", "model": ErrorResponse},
        503: {"description": "Voice vendor circuit open", "model": ErrorResponse},
        504: {"description": "Voice vendor timed out", "model": ErrorResponse},
    },
    summary="Synthesize a script with one of your voices",
)
async def generate_audio(
    body: GenerateAudioRequest,
    principal: Principal = Depends(get_current_principal),
    gateway: SynthesisGateway = Depends(get_synthesis_gateway),
    db: AsyncSession = Depends(get_db_session),
) -> GenerateAudioResponse:
    result = await gateway.generate_audio(
        db,
        principal.id,
        script=body.script,
        voice_ref=body.voice_id,
        title=body.title,
        session_type=body.session_type,
    )

    return GenerateAudioResponse(
        session=SessionResponse.model_validate(result.session) if result.session else None,
        audio_data=result.audio_base64,
        duration_seconds=result.duration_seconds,
        warning=result.warning,
    )


@router.get(
    "/models",
    response_model=VoiceModelListResponse,
    summary="List your voice models",
)
async def list_voice_models(
    principal: Principal = Depends(get_current_principal),
    registry: VoiceModelRegistry = Depends(get_voice_registry),
    db: AsyncSession = Depends(get_db_session),
) -> VoiceModelListResponse:
    voice_models = await registry.list_voice_models(db, principal.id)
    return VoiceModelListResponse(
        voice_models=[VoiceModelResponse.model_validate(v) for v in voice_models],
    )


@router.get(
    "/models/{voice_model_id}",
    response_model=VoiceModelEnvelope,
    responses={404: {"description": "Voice model not found", "model": ErrorResponse}},
    summary="Get one of your voice models",
)
async def get_voice_model(
    voice_model_id: str,
    principal: Principal = Depends(get_current_principal),
    registry: VoiceModelRegistry = Depends(get_voice_registry),
    db: AsyncSession = Depends(get_db_session),
) -> VoiceModelEnvelope:
    voice_model = await registry.get_voice_model(db, principal.id, voice_model_id)
    return VoiceModelEnvelope(voice_model=VoiceModelResponse.model_validate(voice_model))


@router.delete(
    "/models/{voice_model_id}",
    response_model=MessageResponse,
    responses={404: {"description": "Voice model not found", "model": ErrorResponse}},
    summary="Delete one of your voice models",
)
async def delete_voice_model(
    voice_model_id: str,
    principal: Principal = Depends(get_current_principal),
    registry: VoiceModelRegistry = Depends(get_voice_registry),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await registry.delete_voice_model(db, principal.id, voice_model_id)
    return MessageResponse(message="Voice model deleted successfully")
