"""MembershipWizard: one in-progress application and everything it drives.

Usage:
    async with httpx.AsyncClient(base_url=settings.api_base_url) as client:
        wizard = MembershipWizard.create(client, store=FileDraftStore(".drafts"))
        await wizard.start()             # resume a saved draft if there is one
        wizard.update(first_name="Jane", last_name="Doe", ...)
        wizard.next_step()
        ...
        await wizard.submit()

The wizard owns its draft exclusively. Field edits apply immediately;
inline errors are recomputed on navigation, toasts go to the notifier.
"""

import logging
from typing import Any

import httpx

from app.config import settings
from app.schemas.membership import ApplicationDraft
from app.wizard.documents import DocumentSlots, FileHandle
from app.wizard.notifications import Notifier, ToastLog
from app.wizard.persistence import DraftPersistence, DraftStore, MemoryDraftStore
from app.wizard.steps import Step, StepController, StepResult
from app.wizard.submission import SubmissionPipeline, SubmissionResult
from app.wizard.validation import validate_draft

logger = logging.getLogger(__name__)

# Drawn once per draft, never edited
READ_ONLY_FIELDS = frozenset({"application_fee"})


class MembershipWizard:
    def __init__(
        self,
        persistence: DraftPersistence,
        pipeline: SubmissionPipeline,
        notifier: Notifier,
    ):
        self.persistence = persistence
        self.pipeline = pipeline
        self.notifier = notifier
        self.draft = ApplicationDraft()
        self.documents = DocumentSlots()
        self.steps = StepController(self._validate_fields)
        # Inline messages for the fields of the step last checked
        self.errors: dict[str, str] = {}
        self.last_saved: str | None = None

    @classmethod
    def create(
        cls,
        client: httpx.AsyncClient,
        store: DraftStore | None = None,
        notifier: Notifier | None = None,
        endpoint: str | None = None,
    ) -> "MembershipWizard":
        """Wire a wizard from settings; defaults suit tests and demos."""
        notifier = notifier or ToastLog()
        persistence = DraftPersistence(
            store or MemoryDraftStore(), settings.draft_slot_key, notifier
        )
        pipeline = SubmissionPipeline(
            client,
            endpoint or settings.membership_apply_path,
            notifier,
            timeout=settings.submission_timeout_seconds,
            followup_delay=settings.followup_notice_delay_seconds,
        )
        return cls(persistence, pipeline, notifier)

    # ── State ───────────────────────────────────────────────

    def _validate_fields(self, fields: tuple[str, ...]) -> dict[str, str]:
        return validate_draft(self.draft, self.documents, fields)

    @property
    def current_step(self) -> Step:
        return self.steps.current

    @property
    def is_submitting(self) -> bool:
        return self.pipeline.is_submitting

    def update(self, **fields: Any) -> ApplicationDraft:
        """Apply field edits; values are coerced by the draft model.

        Raises KeyError for unknown or read-only fields and
        pydantic.ValidationError for values of the wrong shape
        (e.g. an unknown gender); rule violations surface on navigation.
        """
        unknown = set(fields) - set(ApplicationDraft.model_fields)
        if unknown:
            raise KeyError(f"Unknown field(s): {', '.join(sorted(unknown))}")
        read_only = READ_ONLY_FIELDS.intersection(fields)
        if read_only:
            raise KeyError(f"Read-only field(s): {', '.join(sorted(read_only))}")
        data = self.draft.model_dump()
        data.update(fields)
        self.draft = ApplicationDraft.model_validate(data)
        for name in fields:
            self.errors.pop(name, None)
        return self.draft

    def attach(self, slot: str, handle: FileHandle) -> None:
        self.documents.attach(slot, handle)
        self.errors.pop(slot, None)

    def detach(self, slot: str, index: int) -> FileHandle:
        return self.documents.detach(slot, index)

    def reset(self) -> None:
        """Back to an empty draft at step 1 with a newly drawn fee."""
        self.draft = ApplicationDraft()
        self.documents.clear()
        self.steps.reset()
        self.errors = {}
        self.last_saved = None
        self.persistence.last_saved = None

    # ── Navigation ──────────────────────────────────────────

    def next_step(self) -> StepResult:
        result = self.steps.advance()
        self.errors = dict(result.errors)
        return result

    def previous_step(self) -> bool:
        self.errors = {}
        return self.steps.retreat()

    def progress_percent(self) -> int:
        return self.steps.progress_percent()

    # ── Save / load ─────────────────────────────────────────

    async def save_progress(self) -> bool:
        saved = await self.persistence.save(self.draft, self.current_step)
        if saved:
            self.last_saved = self.persistence.last_saved
        return saved

    async def load_progress(self, announce_missing: bool = True) -> bool:
        """Replace the draft with the saved one; attached files are kept.

        On a missing or unreadable slot the current draft stays as it is.
        """
        loaded = await self.persistence.load(notify_missing=announce_missing)
        if loaded is None:
            return False
        self.draft = loaded.draft
        self.steps.go_to(loaded.current_step)
        self.last_saved = loaded.last_saved
        self.errors = {}
        return True

    async def start(self) -> bool:
        """Resume a saved draft if one exists, otherwise keep the fresh one."""
        return await self.load_progress(announce_missing=False)

    # ── Submit ──────────────────────────────────────────────

    async def submit(self) -> SubmissionResult:
        result = await self.pipeline.submit(self.draft, self.documents)
        if result.blocked:
            self.errors = dict(result.field_errors)
            return result
        if result.ok:
            if await self.persistence.clear():
                logger.info("Draft cleared after successful submission")
            self.reset()
        return result
