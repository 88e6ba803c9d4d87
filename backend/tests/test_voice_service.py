"""
VocalSaaS Backend: Voice Model Registry Tests
==============================================

What:  VoiceModelRegistry against an in-memory database and a mocked vendor.

What we test:
    ✅ Create clones at the vendor first, then stores the row
    ✅ Vendor failure leaves no local row
    ✅ Local insert failure triggers a compensating vendor delete
    ✅ Lookups are owner-scoped (foreign == missing)
    ✅ resolve_voice_ref accepts internal id or external ref
    ✅ Vendor deletion failure still removes the local row
    ✅ Recording quality grades
"""

import uuid

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from vocalsaas.exceptions import (
    NotFoundError,
    PersistenceError,
    UpstreamSynthesisError,
    ValidationError,
)
from vocalsaas.models import AudioSession, VoiceModel
from vocalsaas.services.voice_service import (
    VoiceModelRegistry,
    classify_recording_quality,
    parse_record_id,
)

from conftest import OWNER_A, OWNER_B


async def count_voice_models(db) -> int:
    return await db.scalar(select(func.count()).select_from(VoiceModel))


class TestCreateVoiceModel:

    @pytest.mark.asyncio
    async def test_create_persists_vendor_reference(self, db_session, registry, vendor):
        model = await registry.create_voice_model(
            db_session, OWNER_A, b"sample", display_name="Calm voice", description="Mornings",
        )

        assert model.id is not None
        assert model.owner_id == OWNER_A
        assert model.display_name == "Calm voice"
        assert model.external_voice_ref == "ext-voice-1"
        vendor.clone_voice.assert_awaited_once()
        assert await count_voice_models(db_session) == 1

    @pytest.mark.asyncio
    async def test_create_uses_default_name_and_description(self, db_session, registry, vendor):
        model = await registry.create_voice_model(db_session, OWNER_A, b"sample")

        assert model.display_name == f"voice_{OWNER_A}"
        assert model.description == f"Voice model for user {OWNER_A}"
        assert vendor.clone_voice.await_args.kwargs["name"] == f"voice_{OWNER_A}"

    @pytest.mark.asyncio
    async def test_vendor_failure_writes_nothing(self, db_session, registry, vendor):
        vendor.clone_voice.side_effect = UpstreamSynthesisError(upstream_status=400, details="bad sample")

        with pytest.raises(UpstreamSynthesisError):
            await registry.create_voice_model(db_session, OWNER_A, b"sample")

        assert await count_voice_models(db_session) == 0

    @pytest.mark.asyncio
    async def test_insert_failure_deletes_vendor_voice(self, mock_db_session, vendor):
        mock_db_session.flush.side_effect = IntegrityError("INSERT", {}, Exception("duplicate"))
        registry = VoiceModelRegistry(vendor)

        with pytest.raises(PersistenceError):
            await registry.create_voice_model(mock_db_session, OWNER_A, b"sample")

        mock_db_session.rollback.assert_awaited_once()
        vendor.delete_voice.assert_awaited_once_with("ext-voice-1")

    @pytest.mark.asyncio
    async def test_failed_compensation_still_raises_persistence_error(self, mock_db_session, vendor):
        mock_db_session.flush.side_effect = IntegrityError("INSERT", {}, Exception("duplicate"))
        vendor.delete_voice.side_effect = UpstreamSynthesisError(upstream_status=500)
        registry = VoiceModelRegistry(vendor)

        with pytest.raises(PersistenceError) as exc_info:
            await registry.create_voice_model(mock_db_session, OWNER_A, b"sample")
        assert exc_info.value.context["external_voice_ref"] == "ext-voice-1"


class TestLookup:

    @pytest.mark.asyncio
    async def test_get_own_model(self, db_session, registry, voice_model):
        found = await registry.get_voice_model(db_session, OWNER_A, str(voice_model.id))
        assert found.id == voice_model.id

    @pytest.mark.asyncio
    async def test_get_foreign_model_is_not_found(self, db_session, registry, voice_model):
        with pytest.raises(NotFoundError, match="Voice model not found"):
            await registry.get_voice_model(db_session, OWNER_B, str(voice_model.id))

    @pytest.mark.asyncio
    @pytest.mark.parametrize("bad_id", ["not-a-uuid", "", "123"])
    async def test_malformed_id_is_not_found(self, db_session, registry, bad_id):
        with pytest.raises(NotFoundError):
            await registry.get_voice_model(db_session, OWNER_A, bad_id)

    @pytest.mark.asyncio
    async def test_list_is_owner_scoped(self, db_session, registry, vendor, voice_model):
        vendor.clone_voice.return_value = "ext-voice-bob"
        await registry.create_voice_model(db_session, OWNER_B, b"sample")

        alice_models = await registry.list_voice_models(db_session, OWNER_A)
        assert [m.id for m in alice_models] == [voice_model.id]

    @pytest.mark.asyncio
    async def test_resolve_by_internal_id_or_external_ref(self, db_session, registry, voice_model):
        by_id = await registry.resolve_voice_ref(db_session, OWNER_A, str(voice_model.id))
        by_ref = await registry.resolve_voice_ref(db_session, OWNER_A, "ext-voice-1")

        assert by_id.id == by_ref.id == voice_model.id

    @pytest.mark.asyncio
    async def test_resolve_foreign_ref_is_not_found(self, db_session, registry, voice_model):
        with pytest.raises(NotFoundError):
            await registry.resolve_voice_ref(db_session, OWNER_B, "ext-voice-1")

    @pytest.mark.asyncio
    async def test_resolve_empty_ref_is_validation_error(self, db_session, registry):
        with pytest.raises(ValidationError):
            await registry.resolve_voice_ref(db_session, OWNER_A, "  ")


class TestDeleteVoiceModel:

    @pytest.mark.asyncio
    async def test_delete_removes_vendor_and_local(self, db_session, registry, vendor, voice_model):
        await registry.delete_voice_model(db_session, OWNER_A, str(voice_model.id))

        vendor.delete_voice.assert_awaited_once_with("ext-voice-1")
        assert await count_voice_models(db_session) == 0

    @pytest.mark.asyncio
    async def test_vendor_failure_still_removes_local_row(self, db_session, registry, vendor, voice_model):
        vendor.delete_voice.side_effect = UpstreamSynthesisError(upstream_status=500)

        await registry.delete_voice_model(db_session, OWNER_A, str(voice_model.id))

        assert await count_voice_models(db_session) == 0

    @pytest.mark.asyncio
    async def test_delete_keeps_sessions_and_clears_reference(
        self, db_session, registry, session_store, voice_model,
    ):
        session = await session_store.create(db_session, OWNER_A, "A script", str(voice_model.id))
        session_id = session.id

        await registry.delete_voice_model(db_session, OWNER_A, str(voice_model.id))
        db_session.expire_all()

        remaining = await db_session.get(AudioSession, session_id)
        assert remaining is not None
        assert remaining.voice_model_id is None

    @pytest.mark.asyncio
    async def test_delete_foreign_model_is_not_found(self, db_session, registry, vendor, voice_model):
        with pytest.raises(NotFoundError):
            await registry.delete_voice_model(db_session, OWNER_B, str(voice_model.id))

        vendor.delete_voice.assert_not_awaited()
        assert await count_voice_models(db_session) == 1


class TestHelpers:

    @pytest.mark.parametrize("size_bytes, duration, expected", [
        (10_000, 3, "poor"),
        (10_000, 10, "fair"),
        (40_000, 10, "fair"),
        (10_000, 20, "good"),
        (100_000, 3, "good"),
    ])
    def test_classify_recording_quality(self, size_bytes, duration, expected):
        assert classify_recording_quality(size_bytes, duration) == expected

    def test_parse_record_id(self):
        value = uuid.uuid4()
        assert parse_record_id(str(value)) == value
        assert parse_record_id(value) is value
        assert parse_record_id("nope") is None
        assert parse_record_id(None) is None
