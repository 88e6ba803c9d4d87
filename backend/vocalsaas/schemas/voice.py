"""
VocalSaaS Backend: Voice Schemas
=================================

What:  Request/response contracts for /api/voice/*.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import Field

from vocalsaas.schemas.common import CamelModel
from vocalsaas.schemas.session import SessionResponse


class VoiceModelResponse(CamelModel):
    """A cloned voice as returned to its owner."""
    id: uuid.UUID
    owner_id: str
    display_name: str
    description: Optional[str] = None
    external_voice_ref: str = Field(description="Vendor voice id; also accepted as voiceId by /generate")
    audio_ref: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class VoiceUploadResponse(CamelModel):
    success: bool = True
    voice_model: VoiceModelResponse
    message: str = "Voice model created successfully"
    recording_quality: Optional[str] = Field(
        default=None,
        description="poor, fair or good; present when the client sent the recording duration",
    )


class VoiceModelEnvelope(CamelModel):
    success: bool = True
    voice_model: VoiceModelResponse


class VoiceModelListResponse(CamelModel):
    success: bool = True
    voice_models: List[VoiceModelResponse]


class GenerateAudioRequest(CamelModel):
    """
    Body of POST /api/voice/generate.

    voice_id accepts either the internal voice model id or the vendor voice id.
    """
    script: str = Field(description="Text to synthesize")
    voice_id: str = Field(description="Voice model id or external voice reference")
    title: Optional[str] = Field(default=None, max_length=255)
    session_type: Optional[str] = Field(default=None, max_length=50)


class GenerateAudioResponse(CamelModel):
    """
    Result of a synthesis call.

    session is null when the session record could not be saved; the audio is
    still returned in that case and `warning` explains what happened.
    """
    success: bool = True
    session: Optional[SessionResponse] = None
    audio_data: str = Field(description="Base64-encoded audio (audio/mpeg)")
    duration_seconds: int = Field(description="Estimated length, also present when session is null")
    duration_is_estimate: bool = Field(
        default=True,
        description="durationSeconds is derived from script length, not measured",
    )
    message: str = "Audio generated successfully"
    warning: Optional[str] = None
