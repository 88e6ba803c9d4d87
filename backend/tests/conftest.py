"""
VocalSaaS Backend: Test Configuration (conftest.py)
====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Environment variables are set before anything from `vocalsaas` is
       imported, so Settings() and the module-level engine pick up test
       values. Store tests run against an in-memory aiosqlite database;
       external providers are replaced by AsyncMock / httpx.MockTransport.

Fixture Hierarchy (all function-scoped):
    ├── db_engine / db_session: fresh in-memory schema per test
    ├── vendor:                 AsyncMock(spec=VoiceVendor)
    ├── registry / session_store / journal_store
    ├── storage:                AudioStorage on a tmp_path
    ├── mock_db_session:        AsyncMock session for pure unit tests
    └── api_client:             httpx AsyncClient against create_app() with
                                every external dependency overridden
"""

import os
import tempfile

# Override settings for testing BEFORE any vocalsaas imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///" + os.path.join(
    tempfile.mkdtemp(prefix="vocalsaas_db_"), "test.db"
)
os.environ["SUPABASE_URL"] = "https://identity.test"
os.environ["SUPABASE_ANON_KEY"] = "test-anon-key"
os.environ["ELEVENLABS_API_KEY"] = "test-key-not-real"
os.environ["ELEVENLABS_BASE_URL"] = "https://vendor.test/v1"
os.environ["STORAGE_ROOT"] = tempfile.mkdtemp(prefix="vocalsaas_test_")
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RETRY_MAX_ATTEMPTS"] = "2"
os.environ["RETRY_MIN_WAIT"] = "1"
os.environ["RETRY_MAX_WAIT"] = "1"

from typing import Dict, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from vocalsaas.database import Base, get_db_session
from vocalsaas.dependencies import get_audio_storage, get_token_verifier, get_voice_vendor
from vocalsaas.exceptions import InvalidCredentialError, UnauthenticatedError
from vocalsaas.models import AudioSession, VoiceModel  # noqa: F401  (registers tables)
from vocalsaas.services.audio_storage import AudioStorage
from vocalsaas.services.identity import Principal
from vocalsaas.services.record_store import JournalStore, SessionStore
from vocalsaas.services.vendor_base import VoiceVendor
from vocalsaas.services.voice_service import VoiceModelRegistry

OWNER_A = "user-alice"
OWNER_B = "user-bob"
TOKEN_A = "token-alice"
TOKEN_B = "token-bob"

FAKE_MP3 = b"ID3\x04\x00fake-mp3-frames" * 8


class FakeTokenVerifier:
    """Maps known bearer tokens to principals; anything else is rejected."""

    def __init__(self, principals: Dict[str, Principal]):
        self.principals = principals
        self.calls = 0

    async def verify(self, credential: Optional[str]) -> Principal:
        self.calls += 1
        if not credential:
            raise UnauthenticatedError()
        principal = self.principals.get(credential)
        if principal is None:
            raise InvalidCredentialError(details="Token is not valid")
        return principal


# ══════════════════════════════════════════════════════════════════════════
# Database
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine():
    """In-memory SQLite shared by every session of one test (StaticPool)."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def mock_db_session():
    """
    AsyncMock standing in for AsyncSession when no real query is needed.

    Usage:
        mock_db_session.execute.return_value.scalar_one_or_none.return_value = model
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


# ══════════════════════════════════════════════════════════════════════════
# Services
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def vendor():
    """A voice vendor that always succeeds unless a test says otherwise."""
    mock = AsyncMock(spec=VoiceVendor)
    mock.clone_voice.return_value = "ext-voice-1"
    mock.synthesize.return_value = FAKE_MP3
    mock.delete_voice.return_value = None
    mock.health_check.return_value = True
    return mock


@pytest.fixture
def registry(vendor):
    return VoiceModelRegistry(vendor)


@pytest.fixture
def session_store(registry):
    return SessionStore(registry)


@pytest.fixture
def journal_store():
    return JournalStore()


@pytest.fixture
def storage(tmp_path):
    return AudioStorage(storage_root=str(tmp_path / "storage"))


@pytest.fixture
def sample_wav_bytes():
    """A RIFF/WAVE header followed by silence; enough for upload validation."""
    return b"RIFF\x24\x08\x00\x00WAVEfmt " + b"\x00" * 2048


@pytest_asyncio.fixture
async def voice_model(db_session, registry):
    """A voice model owned by OWNER_A with external ref ext-voice-1."""
    model = await registry.create_voice_model(db_session, OWNER_A, b"sample-audio", "Calm voice")
    await db_session.commit()
    return model


# ══════════════════════════════════════════════════════════════════════════
# API
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def token_verifier():
    return FakeTokenVerifier({
        TOKEN_A: Principal(id=OWNER_A, email="alice@example.com"),
        TOKEN_B: Principal(id=OWNER_B, email="bob@example.com"),
    })


@pytest.fixture
def auth_a():
    return {"Authorization": f"Bearer {TOKEN_A}"}


@pytest.fixture
def auth_b():
    return {"Authorization": f"Bearer {TOKEN_B}"}


@pytest_asyncio.fixture
async def api_client(session_factory, vendor, storage, token_verifier):
    """
    HTTPX AsyncClient talking to a fresh app instance.

    The database dependency mirrors get_db_session (commit on success,
    rollback on error) but uses the in-memory test engine.
    """
    from vocalsaas.main import create_app

    app = create_app()

    async def override_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_db_session
    app.dependency_overrides[get_voice_vendor] = lambda: vendor
    app.dependency_overrides[get_audio_storage] = lambda: storage
    app.dependency_overrides[get_token_verifier] = lambda: token_verifier

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
