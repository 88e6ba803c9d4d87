"""
VocalSaaS Backend: Audio Session Schemas
=========================================

What:  Request/response contracts for /api/sessions.

Update models rely on Pydantic's "fields set" tracking: only keys present in
the JSON body end up in `model_dump(exclude_unset=True)`, so absent fields are
left untouched instead of being nulled.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import Field

from vocalsaas.models.session import SessionStatus
from vocalsaas.schemas.common import CamelModel, PaginationMeta


class SessionResponse(CamelModel):
    id: uuid.UUID
    owner_id: str
    voice_model_id: Optional[uuid.UUID] = None
    title: str
    script: str
    session_type: str
    audio_ref: Optional[str] = None
    duration_seconds: Optional[int] = Field(
        default=None,
        description="Estimated from script length (about 20 characters per second)",
    )
    status: str
    created_at: datetime
    updated_at: datetime


class SessionCreateRequest(CamelModel):
    script: str
    voice_model_id: str = Field(description="Voice model id or external voice reference")
    title: Optional[str] = Field(default=None, max_length=255)
    session_type: Optional[str] = Field(default=None, max_length=50)


class SessionUpdateRequest(CamelModel):
    title: Optional[str] = Field(default=None, max_length=255)
    script: Optional[str] = None
    status: Optional[SessionStatus] = None


class SessionEnvelope(CamelModel):
    success: bool = True
    session: SessionResponse
    message: Optional[str] = None


class SessionListResponse(CamelModel):
    success: bool = True
    sessions: List[SessionResponse]
    pagination: PaginationMeta
