"""Draft save/resume against an injected key-value store.

The slot holds one JSON object: every draft field (camelCase) plus
`lastSaved` (ISO-8601) and `currentStep` (1-6). Saving overwrites the slot;
there is no versioning, so fields added or removed between releases
restore partially.

Stores raise DraftStoreError; DraftPersistence turns every store or decode
failure into a destructive toast and a soft "nothing restored" result, so
callers never see an exception from save/load.

Last write wins when two wizards share a store and key.
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

import redis.asyncio as redis
from pydantic import ValidationError

from app.schemas.membership import ApplicationDraft, field_names
from app.wizard import notifications
from app.wizard.notifications import Notifier
from app.wizard.steps import FIRST_STEP, Step, clamp_step

logger = logging.getLogger(__name__)

METADATA_KEYS = ("lastSaved", "currentStep")


class DraftStoreError(Exception):
    """Storage unavailable, full, or refused the operation."""


class DraftStore(Protocol):
    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str) -> None: ...

    async def delete(self, key: str) -> None: ...


# ── Stores ──────────────────────────────────────────────────

class MemoryDraftStore:
    """Process-local store; share one instance to simulate shared storage."""

    def __init__(self) -> None:
        self.data: dict[str, str] = {}

    async def get(self, key: str) -> str | None:
        return self.data.get(key)

    async def set(self, key: str, value: str) -> None:
        self.data[key] = value

    async def delete(self, key: str) -> None:
        self.data.pop(key, None)


class FileDraftStore:
    """One JSON file per key under `directory`."""

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    async def get(self, key: str) -> str | None:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8") if path.exists() else None
        except OSError as e:
            raise DraftStoreError(f"Cannot read {path}: {e}") from e

    async def set(self, key: str, value: str) -> None:
        path = self._path(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(value, encoding="utf-8")
        except OSError as e:
            raise DraftStoreError(f"Cannot write {path}: {e}") from e

    async def delete(self, key: str) -> None:
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as e:
            raise DraftStoreError(f"Cannot remove draft {key}: {e}") from e


class RedisDraftStore:
    """Redis-backed store for hosted front ends.

    Keys are namespaced under `draft:`. `ttl` (seconds) is optional; drafts
    do not expire by default.
    """

    def __init__(self, client: redis.Redis, ttl: int | None = None, prefix: str = "draft"):
        self.client = client
        self.ttl = ttl
        self.prefix = prefix

    @classmethod
    def from_url(cls, url: str, ttl: int | None = None) -> "RedisDraftStore":
        client = redis.from_url(url, encoding="utf-8", decode_responses=True)
        return cls(client, ttl=ttl)

    def _key(self, key: str) -> str:
        return f"{self.prefix}:{key}"

    async def get(self, key: str) -> str | None:
        try:
            return await self.client.get(self._key(key))
        except redis.RedisError as e:
            raise DraftStoreError(f"Redis read failed: {e}") from e

    async def set(self, key: str, value: str) -> None:
        try:
            if self.ttl:
                await self.client.setex(self._key(key), self.ttl, value)
            else:
                await self.client.set(self._key(key), value)
        except redis.RedisError as e:
            raise DraftStoreError(f"Redis write failed: {e}") from e

    async def delete(self, key: str) -> None:
        try:
            await self.client.delete(self._key(key))
        except redis.RedisError as e:
            raise DraftStoreError(f"Redis delete failed: {e}") from e


# ── Serialization ───────────────────────────────────────────

def serialize_draft(draft: ApplicationDraft, current_step: int, saved_at: datetime) -> str:
    data = draft.model_dump(mode="json", by_alias=True)
    data["lastSaved"] = saved_at.isoformat()
    data["currentStep"] = int(current_step)
    return json.dumps(data)


def restore_fields(data: dict) -> ApplicationDraft:
    """Apply stored values field by field onto a fresh draft.

    Unknown keys are skipped; a value that no longer fits its field is
    dropped and the field keeps its default.
    """
    names = field_names(ApplicationDraft)
    values = {
        names[k]: v
        for k, v in data.items()
        if k in names and k not in METADATA_KEYS
    }
    while True:
        try:
            return ApplicationDraft.model_validate(values)
        except ValidationError as exc:
            locs = {names.get(str(err["loc"][0])) for err in exc.errors() if err["loc"]}
            bad = {name for name in locs if name in values}
            if not bad:
                return ApplicationDraft()
            logger.warning("Dropping unreadable draft fields: %s", ", ".join(sorted(bad)))
            for name in bad:
                values.pop(name)


def restore_step(value) -> Step:
    if isinstance(value, bool):
        return FIRST_STEP
    return clamp_step(value) if value is not None else FIRST_STEP


@dataclass
class LoadedDraft:
    draft: ApplicationDraft
    current_step: Step
    last_saved: str | None = None


# ── Persistence ─────────────────────────────────────────────

class DraftPersistence:
    def __init__(self, store: DraftStore, key: str, notifier: Notifier):
        self.store = store
        self.key = key
        self.notifier = notifier
        self.last_saved: str | None = None

    async def save(self, draft: ApplicationDraft, current_step: int) -> bool:
        saved_at = datetime.now(timezone.utc)
        payload = serialize_draft(draft, current_step, saved_at)
        try:
            await self.store.set(self.key, payload)
        except DraftStoreError:
            logger.exception("Failed to save draft %s", self.key)
            self.notifier.notify(notifications.SAVE_FAILED)
            return False
        self.last_saved = saved_at.isoformat()
        logger.info("Saved draft %s at step %d", self.key, current_step)
        self.notifier.notify(notifications.PROGRESS_SAVED)
        return True

    async def load(self, notify_missing: bool = False) -> LoadedDraft | None:
        """Restore the saved draft, or None if absent or unreadable.

        `notify_missing` announces an empty slot (explicit "load" actions);
        silent otherwise so a fresh wizard can check for a draft.
        """
        try:
            raw = await self.store.get(self.key)
        except DraftStoreError:
            logger.exception("Failed to read draft %s", self.key)
            self.notifier.notify(notifications.LOAD_FAILED)
            return None
        if raw is None:
            if notify_missing:
                self.notifier.notify(notifications.NO_SAVED_PROGRESS)
            return None

        try:
            data = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("Draft %s is not valid JSON", self.key)
            self.notifier.notify(notifications.LOAD_FAILED)
            return None
        if not isinstance(data, dict):
            logger.warning("Draft %s is not a JSON object", self.key)
            self.notifier.notify(notifications.LOAD_FAILED)
            return None

        loaded = LoadedDraft(
            draft=restore_fields(data),
            current_step=restore_step(data.get("currentStep")),
            last_saved=data.get("lastSaved"),
        )
        logger.info("Loaded draft %s at step %d", self.key, loaded.current_step)
        self.notifier.notify(notifications.PROGRESS_LOADED)
        return loaded

    async def clear(self) -> bool:
        try:
            await self.store.delete(self.key)
        except DraftStoreError:
            logger.exception("Failed to clear draft %s", self.key)
            self.notifier.notify(notifications.CLEAR_FAILED)
            return False
        return True
