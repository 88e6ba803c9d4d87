"""
VocalSaaS Backend: Audio Storage Service
=========================================

What:  Upload validation for voice samples and on-disk persistence of
       generated audio.
How:   Validates the declared content type before touching the body, bounds
       the read by MAX_UPLOAD_SIZE, and writes generated audio into
       date-organized directories with UUID filenames.
Who:   Upload route (validation), SynthesisGateway (store), sessions route
       (read back via audio_ref).

Directory Structure:
    storage/
    └── 2024/
        └── 01/
            └── 15/
                └── a1b2c3d4-5678-....mp3

audio_ref values are always relative to the storage root. Reads resolve the
path and refuse anything that escapes the root.
"""

import logging
import os
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Tuple

import aiofiles
from fastapi import UploadFile

from vocalsaas.config import settings
from vocalsaas.exceptions import FileStorageError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

# Extension used when storing audio of a given content type
AUDIO_EXTENSIONS = {
    "audio/mpeg": ".mp3",
    "audio/mp3": ".mp3",
    "audio/wav": ".wav",
    "audio/x-wav": ".wav",
    "audio/webm": ".webm",
    "audio/ogg": ".ogg",
    "audio/mp4": ".m4a",
}

_READ_CHUNK = 1024 * 1024


class AudioStorage:
    """
    Manages uploaded voice samples and generated audio files.

    Upload validation order:
        1. Declared content type must start with audio/ (no body read yet)
        2. Declared size, when the client sent one
        3. Actual size, enforced while reading in chunks
    """

    def __init__(self, storage_root: Optional[str] = None, max_upload_size: Optional[int] = None):
        self.storage_root = Path(storage_root or settings.storage_root).resolve()
        self.max_upload_size = max_upload_size or settings.max_upload_size
        self.storage_root.mkdir(parents=True, exist_ok=True)
        logger.info("AudioStorage initialized with storage_root=%s", self.storage_root)

    # ── Validation ────────────────────────────────────────────────────────

    def validate_content_type(self, content_type: Optional[str]) -> str:
        normalized = (content_type or "").split(";")[0].strip().lower()
        if not normalized.startswith("audio/"):
            raise ValidationError(
                message="Only audio files are allowed",
                field="audio",
                context={"content_type": content_type},
            )
        return normalized

    def validate_size(self, size: Optional[int]) -> None:
        if size is not None and size > self.max_upload_size:
            max_mb = self.max_upload_size / (1024 * 1024)
            raise ValidationError(
                message=f"File size exceeds maximum of {max_mb:.0f}MB. Please upload a smaller recording.",
                field="audio",
                context={"max_size": self.max_upload_size, "size": size},
            )

    async def read_upload(self, upload: UploadFile) -> Tuple[bytes, str]:
        """
        Validate and read an uploaded voice sample.

        Returns:
            (content, normalized_content_type)

        Raises:
            ValidationError: non-audio type, too large, or empty.
        """
        content_type = self.validate_content_type(upload.content_type)
        self.validate_size(upload.size)

        chunks = []
        total = 0
        while True:
            chunk = await upload.read(_READ_CHUNK)
            if not chunk:
                break
            total += len(chunk)
            self.validate_size(total)
            chunks.append(chunk)

        if total == 0:
            raise ValidationError(message="Audio file is empty", field="audio")

        return b"".join(chunks), content_type

    # ── Generated audio ───────────────────────────────────────────────────

    def _generate_storage_path(self, extension: str) -> Tuple[Path, str]:
        now = datetime.now(timezone.utc)
        relative_path = f"{now.strftime('%Y/%m/%d')}/{uuid.uuid4()}{extension}"
        return self.storage_root / relative_path, relative_path

    def _resolve(self, audio_ref: str) -> Path:
        path = (self.storage_root / audio_ref).resolve()
        if path != self.storage_root and self.storage_root not in path.parents:
            raise NotFoundError(resource="audio", resource_id=audio_ref)
        return path

    async def store_audio(self, content: bytes, content_type: str = "audio/mpeg") -> str:
        """
        Write audio to disk and return its audio_ref (relative path).

        Raises:
            FileStorageError if the directory or file cannot be written.
        """
        extension = AUDIO_EXTENSIONS.get(content_type, ".bin")
        absolute_path, relative_path = self._generate_storage_path(extension)

        try:
            absolute_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(absolute_path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store audio at %s: %s", absolute_path, str(e))
            raise FileStorageError(
                message="Failed to save generated audio.",
                context={"path": str(absolute_path), "os_error": str(e)},
            )

        logger.info("Audio stored: %s (%d bytes)", relative_path, len(content))
        return relative_path

    async def read_audio(self, audio_ref: str) -> bytes:
        path = self._resolve(audio_ref)
        if not path.is_file():
            raise NotFoundError(resource="audio", resource_id=audio_ref)
        try:
            async with aiofiles.open(path, "rb") as f:
                return await f.read()
        except OSError as e:
            logger.error("Failed to read audio %s: %s", audio_ref, str(e))
            raise FileStorageError(
                message="Failed to read stored audio.",
                context={"audio_ref": audio_ref, "os_error": str(e)},
            )

    async def cleanup_file(self, audio_ref: str) -> None:
        """Best-effort removal; a file that cannot be removed is only logged."""
        try:
            path = self._resolve(audio_ref)
            if path.exists():
                os.remove(path)
                logger.info("Cleaned up audio: %s", audio_ref)
        except (OSError, NotFoundError) as e:
            logger.warning("Failed to clean up audio %s: %s", audio_ref, str(e))
