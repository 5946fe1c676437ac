"""Draft persistence tests: stores, round trips, failure toasts."""

import json
from datetime import datetime, timezone

import pytest
import redis.asyncio as redis

from app.schemas.membership import ApplicationDraft, Gender
from app.wizard import notifications
from app.wizard.persistence import (
    DraftPersistence,
    DraftStoreError,
    FileDraftStore,
    MemoryDraftStore,
    RedisDraftStore,
    restore_fields,
    serialize_draft,
)
from app.wizard.steps import Step

KEY = "membershipFormProgress"


class BrokenStore:
    """Every operation fails like a full or unavailable storage backend."""

    async def get(self, key):
        raise DraftStoreError("unavailable")

    async def set(self, key, value):
        raise DraftStoreError("quota exceeded")

    async def delete(self, key):
        raise DraftStoreError("unavailable")


class FakeRedis:
    """The slice of redis.asyncio.Redis the draft store uses."""

    def __init__(self, fail: bool = False):
        self.data: dict[str, str] = {}
        self.expiry: dict[str, int] = {}
        self.fail = fail

    def _check(self):
        if self.fail:
            raise redis.RedisError("connection refused")

    async def get(self, key):
        self._check()
        return self.data.get(key)

    async def set(self, key, value):
        self._check()
        self.data[key] = value

    async def setex(self, key, ttl, value):
        self._check()
        self.data[key] = value
        self.expiry[key] = ttl

    async def delete(self, key):
        self._check()
        self.data.pop(key, None)


@pytest.mark.unit
class TestSerialization:
    def test_serialized_shape(self, valid_draft):
        saved_at = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        data = json.loads(serialize_draft(valid_draft, Step.PREFERENCES, saved_at))
        assert data["firstName"] == "Jane"
        assert data["preferredGenres"] == ["Fiction", "History"]
        assert data["gender"] == "female"
        assert data["currentStep"] == 4
        assert data["lastSaved"] == "2026-01-02T03:04:05+00:00"
        assert "idDocument" not in data

    def test_restore_skips_unknown_and_invalid(self):
        draft = restore_fields({
            "firstName": "Jane",
            "gender": "robot",
            "favouriteColour": "blue",
            "applicationFee": 33.33,
        })
        assert draft.first_name == "Jane"
        assert draft.gender is None
        assert draft.application_fee == 33.33

    def test_restore_accepts_snake_case(self):
        assert restore_fields({"last_name": "Doe"}).last_name == "Doe"


@pytest.mark.unit
class TestDraftPersistence:
    async def test_round_trip(self, store, toasts):
        persistence = DraftPersistence(store, KEY, toasts)
        draft = ApplicationDraft(
            first_name="Jane", preferred_genres=["Fiction", "History"], gender="female"
        )

        assert await persistence.save(draft, Step.PREFERENCES)
        loaded = await DraftPersistence(store, KEY, toasts).load()

        assert loaded.draft == draft
        assert loaded.current_step == Step.PREFERENCES
        assert loaded.draft.gender is Gender.FEMALE
        assert loaded.last_saved == persistence.last_saved
        assert toasts.titles() == ["Progress Saved!", "Progress Loaded!"]

    async def test_fee_survives_reload(self, store, toasts):
        draft = ApplicationDraft()
        await DraftPersistence(store, KEY, toasts).save(draft, 1)
        loaded = await DraftPersistence(store, KEY, toasts).load()
        assert loaded.draft.application_fee == draft.application_fee

    async def test_save_is_idempotent(self, store, toasts, valid_draft):
        persistence = DraftPersistence(store, KEY, toasts)
        await persistence.save(valid_draft, 3)
        first = json.loads(store.data[KEY])
        await persistence.save(valid_draft, 3)
        second = json.loads(store.data[KEY])
        first.pop("lastSaved")
        second.pop("lastSaved")
        assert first == second

    async def test_load_missing_is_silent_by_default(self, store, toasts):
        persistence = DraftPersistence(store, KEY, toasts)
        assert await persistence.load() is None
        assert toasts.toasts == []
        assert await persistence.load(notify_missing=True) is None
        assert toasts.last == notifications.NO_SAVED_PROGRESS

    async def test_corrupt_slot(self, store, toasts):
        store.data[KEY] = "{not json"
        assert await DraftPersistence(store, KEY, toasts).load() is None
        assert toasts.last == notifications.LOAD_FAILED

    async def test_non_object_slot(self, store, toasts):
        store.data[KEY] = "[1, 2, 3]"
        assert await DraftPersistence(store, KEY, toasts).load() is None
        assert toasts.last.is_error

    async def test_out_of_range_step_restores_to_first(self, store, toasts):
        store.data[KEY] = json.dumps({"firstName": "Jane", "currentStep": 9})
        loaded = await DraftPersistence(store, KEY, toasts).load()
        assert loaded.current_step == Step.PERSONAL
        assert loaded.draft.first_name == "Jane"

    async def test_save_failure_toast(self, toasts, valid_draft):
        persistence = DraftPersistence(BrokenStore(), KEY, toasts)
        assert not await persistence.save(valid_draft, 2)
        assert toasts.last == notifications.SAVE_FAILED
        assert persistence.last_saved is None

    async def test_load_and_clear_failures(self, toasts):
        persistence = DraftPersistence(BrokenStore(), KEY, toasts)
        assert await persistence.load() is None
        assert toasts.last == notifications.LOAD_FAILED
        assert not await persistence.clear()
        assert toasts.last == notifications.CLEAR_FAILED

    async def test_clear(self, store, toasts, valid_draft):
        persistence = DraftPersistence(store, KEY, toasts)
        await persistence.save(valid_draft, 6)
        assert await persistence.clear()
        assert KEY not in store.data


@pytest.mark.unit
class TestStores:
    async def test_memory_store_shared(self):
        shared = MemoryDraftStore()
        await shared.set(KEY, "a")
        await shared.set(KEY, "b")
        assert await shared.get(KEY) == "b"

    async def test_file_store(self, tmp_path):
        store = FileDraftStore(tmp_path / "drafts")
        assert await store.get(KEY) is None
        await store.set(KEY, '{"firstName": "Jane"}')
        assert (tmp_path / "drafts" / f"{KEY}.json").exists()
        assert await store.get(KEY) == '{"firstName": "Jane"}'
        await store.delete(KEY)
        await store.delete(KEY)
        assert await store.get(KEY) is None

    async def test_file_store_write_error(self, tmp_path):
        blocker = tmp_path / "drafts"
        blocker.write_text("not a directory")
        with pytest.raises(DraftStoreError):
            await FileDraftStore(blocker).set(KEY, "{}")

    async def test_redis_store(self):
        client = FakeRedis()
        store = RedisDraftStore(client)
        await store.set(KEY, "{}")
        assert client.data == {f"draft:{KEY}": "{}"}
        assert await store.get(KEY) == "{}"
        await store.delete(KEY)
        assert client.data == {}

    async def test_redis_store_ttl(self):
        client = FakeRedis()
        await RedisDraftStore(client, ttl=3600).set(KEY, "{}")
        assert client.expiry == {f"draft:{KEY}": 3600}

    async def test_redis_errors_become_store_errors(self, toasts, valid_draft):
        store = RedisDraftStore(FakeRedis(fail=True))
        with pytest.raises(DraftStoreError):
            await store.get(KEY)
        persistence = DraftPersistence(store, KEY, toasts)
        assert not await persistence.save(valid_draft, 1)
        assert toasts.last == notifications.SAVE_FAILED
