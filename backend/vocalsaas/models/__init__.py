# Models package init
"""
VocalSaaS Backend: ORM Models
==============================

Importing this package registers every table on `Base.metadata`
(used by Alembic --autogenerate and by the test suite's create_all()).

Tables:
    - voice_models:    VoiceModel    (cloned voices, mirrored at the vendor)
    - audio_sessions:  AudioSession  (synthesized guided sessions)
    - journal_entries: JournalEntry  (free-text journal)
"""

from vocalsaas.models.voice_model import VoiceModel
from vocalsaas.models.session import AudioSession, SessionStatus
from vocalsaas.models.journal import JournalEntry

__all__ = ["VoiceModel", "AudioSession", "SessionStatus", "JournalEntry"]
