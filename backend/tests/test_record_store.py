"""
VocalSaaS Backend: Session and Journal Store Tests
===================================================

What:  SessionStore / JournalStore against an in-memory database.

What we test:
    ✅ Pagination: disjoint pages, union equals the full set, total from COUNT
    ✅ page / limit bounds
    ✅ Owner isolation on get / update / delete
    ✅ Partial updates touch only the given fields (plus updated_at)
    ✅ Session status never moves backwards
    ✅ Journal content cannot be blanked
"""

from datetime import datetime, timezone

import pytest

from vocalsaas.exceptions import NotFoundError, ValidationError
from vocalsaas.models.session import SessionStatus
from vocalsaas.services.record_store import (
    DEFAULT_ENTRY_TITLE,
    DEFAULT_SESSION_TITLE,
    estimate_duration_seconds,
)

from conftest import OWNER_A, OWNER_B


async def add_entries(db, store, owner_id, count):
    entries = []
    for i in range(count):
        entries.append(await store.create(db, owner_id, content=f"Entry number {i}"))
    await db.commit()
    return entries


class TestPagination:

    @pytest.mark.asyncio
    async def test_pages_are_disjoint_and_cover_everything(self, db_session, journal_store):
        await add_entries(db_session, journal_store, OWNER_A, 7)

        pages = [await journal_store.list(db_session, OWNER_A, page=p, limit=3) for p in (1, 2, 3)]
        everything = await journal_store.list(db_session, OWNER_A, page=1, limit=7)

        ids = [entry.id for page in pages for entry in page.items]
        assert [len(page.items) for page in pages] == [3, 3, 1]
        assert len(set(ids)) == 7
        assert ids == [entry.id for entry in everything.items]
        assert all(page.total == 7 for page in pages)

    @pytest.mark.asyncio
    async def test_limit_equal_to_total_returns_everything(self, db_session, journal_store):
        await add_entries(db_session, journal_store, OWNER_A, 105)

        first = await journal_store.list(db_session, OWNER_A, page=1, limit=10)
        second = await journal_store.list(db_session, OWNER_A, page=2, limit=10)
        everything = await journal_store.list(db_session, OWNER_A, page=1, limit=first.total)

        assert first.total == 105
        assert len(everything.items) == 105
        paged_ids = [entry.id for entry in first.items + second.items]
        assert paged_ids == [entry.id for entry in everything.items[:20]]

    @pytest.mark.asyncio
    async def test_session_list_newest_first_with_total(self, db_session, session_store, voice_model):
        created = []
        for day in range(1, 5):
            session = await session_store.create(db_session, OWNER_A, f"Script {day}", "ext-voice-1")
            session.created_at = datetime(2030, 1, day, tzinfo=timezone.utc)
            created.append(session)
        await db_session.commit()

        page_one = await session_store.list(db_session, OWNER_A, page=1, limit=3)
        page_two = await session_store.list(db_session, OWNER_A, page=2, limit=3)

        assert page_one.total == page_two.total == 4
        listed = [s.id for s in page_one.items + page_two.items]
        assert listed == [s.id for s in reversed(created)]

    @pytest.mark.asyncio
    async def test_page_past_the_end_is_empty_with_total(self, db_session, journal_store):
        await add_entries(db_session, journal_store, OWNER_A, 2)

        page = await journal_store.list(db_session, OWNER_A, page=5, limit=10)

        assert page.items == []
        assert page.total == 2

    @pytest.mark.asyncio
    async def test_total_counts_only_the_owner(self, db_session, journal_store):
        await add_entries(db_session, journal_store, OWNER_A, 3)
        await add_entries(db_session, journal_store, OWNER_B, 4)

        page = await journal_store.list(db_session, OWNER_A)
        assert page.total == 3
        assert {entry.owner_id for entry in page.items} == {OWNER_A}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("page, limit", [(0, 10), (-1, 10), (1, 0), (1, -5)])
    async def test_out_of_range_page_or_limit(self, db_session, journal_store, page, limit):
        with pytest.raises(ValidationError):
            await journal_store.list(db_session, OWNER_A, page=page, limit=limit)


class TestSessionStore:

    @pytest.mark.asyncio
    async def test_create_defaults(self, db_session, session_store, voice_model):
        session = await session_store.create(db_session, OWNER_A, "Relax your shoulders.", str(voice_model.id))

        assert session.title == DEFAULT_SESSION_TITLE
        assert session.session_type == "custom"
        assert session.status == SessionStatus.PENDING.value
        assert session.voice_model_id == voice_model.id

    @pytest.mark.asyncio
    async def test_create_with_foreign_voice_is_not_found(self, db_session, session_store, voice_model):
        with pytest.raises(NotFoundError):
            await session_store.create(db_session, OWNER_B, "Hello", str(voice_model.id))

    @pytest.mark.asyncio
    @pytest.mark.parametrize("script, voice_ref, message", [
        ("", "ext-voice-1", "Script is required"),
        ("   ", "ext-voice-1", "Script is required"),
        ("Hello", "", "Voice model id is required"),
        ("Hello", None, "Voice model id is required"),
    ])
    async def test_create_requires_script_and_voice(
        self, db_session, session_store, voice_model, script, voice_ref, message,
    ):
        with pytest.raises(ValidationError, match=message):
            await session_store.create(db_session, OWNER_A, script, voice_ref)

    @pytest.mark.asyncio
    async def test_status_moves_forward(self, db_session, session_store, voice_model):
        session = await session_store.create(db_session, OWNER_A, "Hello", "ext-voice-1")

        await session_store.update(db_session, OWNER_A, session.id, {"status": SessionStatus.PROCESSING})
        updated = await session_store.update(db_session, OWNER_A, session.id, {"status": "completed"})

        assert updated.status == "completed"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("start, target", [
        (SessionStatus.COMPLETED, SessionStatus.PENDING),
        (SessionStatus.PROCESSING, SessionStatus.PENDING),
        (SessionStatus.FAILED, SessionStatus.COMPLETED),
    ])
    async def test_status_never_regresses(self, db_session, session_store, voice_model, start, target):
        session = await session_store.create(db_session, OWNER_A, "Hello", "ext-voice-1", status=start)

        with pytest.raises(ValidationError, match="Cannot change session status"):
            await session_store.update(db_session, OWNER_A, session.id, {"status": target})

    @pytest.mark.asyncio
    async def test_empty_update_only_refreshes_updated_at(
        self, db_session, session_store, voice_model, monkeypatch,
    ):
        session = await session_store.create(
            db_session, OWNER_A, "Hello", "ext-voice-1", title="Morning",
        )
        stamp = datetime(2030, 1, 1, tzinfo=timezone.utc)
        monkeypatch.setattr("vocalsaas.services.record_store._utcnow", lambda: stamp)

        updated = await session_store.update(db_session, OWNER_A, session.id, {})

        assert updated.updated_at == stamp
        assert updated.title == "Morning"
        assert updated.script == "Hello"
        assert updated.status == SessionStatus.PENDING.value

    @pytest.mark.asyncio
    async def test_update_rejects_blank_script(self, db_session, session_store, voice_model):
        session = await session_store.create(db_session, OWNER_A, "Hello", "ext-voice-1")

        with pytest.raises(ValidationError, match="Script cannot be empty"):
            await session_store.update(db_session, OWNER_A, session.id, {"script": " "})

    @pytest.mark.asyncio
    async def test_foreign_session_is_invisible(self, db_session, session_store, voice_model):
        session = await session_store.create(db_session, OWNER_A, "Hello", "ext-voice-1")
        await db_session.commit()

        with pytest.raises(NotFoundError):
            await session_store.get(db_session, OWNER_B, session.id)
        with pytest.raises(NotFoundError):
            await session_store.update(db_session, OWNER_B, session.id, {"title": "Mine now"})
        with pytest.raises(NotFoundError):
            await session_store.delete(db_session, OWNER_B, session.id)

        assert (await session_store.get(db_session, OWNER_A, session.id)).title == DEFAULT_SESSION_TITLE


class TestJournalStore:

    @pytest.mark.asyncio
    async def test_create_and_get(self, db_session, journal_store):
        entry = await journal_store.create(
            db_session, OWNER_A, content="Slept well.", mood="calm", tags=["sleep"],
        )

        fetched = await journal_store.get(db_session, OWNER_A, str(entry.id))
        assert fetched.title == DEFAULT_ENTRY_TITLE
        assert fetched.mood == "calm"
        assert fetched.tags == ["sleep"]

    @pytest.mark.asyncio
    async def test_create_requires_content(self, db_session, journal_store):
        with pytest.raises(ValidationError, match="Content is required"):
            await journal_store.create(db_session, OWNER_A, content="  ")

    @pytest.mark.asyncio
    async def test_update_cannot_blank_content(self, db_session, journal_store):
        entry = await journal_store.create(db_session, OWNER_A, content="Original")

        with pytest.raises(ValidationError, match="Content cannot be empty"):
            await journal_store.update(db_session, OWNER_A, entry.id, {"content": ""})

    @pytest.mark.asyncio
    async def test_partial_update_keeps_other_fields(self, db_session, journal_store):
        entry = await journal_store.create(
            db_session, OWNER_A, content="Original", title="Day one", mood="tired",
        )

        updated = await journal_store.update(db_session, OWNER_A, entry.id, {"mood": "rested"})

        assert updated.mood == "rested"
        assert updated.title == "Day one"
        assert updated.content == "Original"

    @pytest.mark.asyncio
    async def test_delete_returns_record_and_removes_it(self, db_session, journal_store):
        entry = await journal_store.create(db_session, OWNER_A, content="Bye")

        deleted = await journal_store.delete(db_session, OWNER_A, entry.id)

        assert deleted.id == entry.id
        with pytest.raises(NotFoundError):
            await journal_store.get(db_session, OWNER_A, entry.id)


@pytest.mark.parametrize("script, expected", [
    ("", 0),
    ("a" * 20, 1),
    ("a" * 21, 2),
    ("Breathe in, breathe out.", 2),
])
def test_estimate_duration_seconds(script, expected):
    assert estimate_duration_seconds(script) == expected
