"""Turn a completed draft into one POST to the membership endpoint.

The payload mirrors the draft (camelCase) and replaces each document slot
with DOCUMENT_SENTINEL or None; file contents travel through the separate
upload channel. All six steps are validated again right before sending,
whatever the navigation history says.

There is no automatic retry. A failed submit leaves everything as it was
so the applicant can press submit again.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

import httpx
from pydantic.alias_generators import to_camel

from app.schemas.membership import DOCUMENT_SENTINEL, ApplicationDraft
from app.wizard import notifications
from app.wizard.documents import SLOT_LABELS, DocumentSlots, missing_documents
from app.wizard.notifications import Notifier
from app.wizard.validation import validate_draft

logger = logging.getLogger(__name__)


def build_payload(draft: ApplicationDraft, documents: DocumentSlots) -> dict[str, Any]:
    payload = draft.model_dump(mode="json", by_alias=True)
    for slot in SLOT_LABELS:
        payload[to_camel(slot)] = DOCUMENT_SENTINEL if documents.slot(slot) else None
    return payload


def error_message(response: httpx.Response) -> str:
    """Server-provided `error` text, or the generic failure message."""
    try:
        body = response.json()
    except ValueError:
        return notifications.GENERIC_SUBMIT_FAILURE
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, str) and error:
            return error
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
    return notifications.GENERIC_SUBMIT_FAILURE


@dataclass
class SubmissionResult:
    ok: bool
    status_code: int | None = None
    data: dict = field(default_factory=dict)
    error: str | None = None
    field_errors: dict[str, str] = field(default_factory=dict)

    @property
    def blocked(self) -> bool:
        """True when validation stopped the submit before any request."""
        return bool(self.field_errors)


class SubmissionPipeline:
    def __init__(
        self,
        client: httpx.AsyncClient,
        endpoint: str,
        notifier: Notifier,
        timeout: float | None = 30.0,
        followup_delay: float = 2.0,
    ):
        self.client = client
        self.endpoint = endpoint
        self.notifier = notifier
        self.timeout = timeout
        self.followup_delay = followup_delay
        self.is_submitting = False
        self._followups: set[asyncio.Task] = set()

    async def submit(self, draft: ApplicationDraft, documents: DocumentSlots) -> SubmissionResult:
        if self.is_submitting:
            return SubmissionResult(ok=False, error="Submission already in progress")

        field_errors = validate_draft(draft, documents)
        missing = missing_documents(documents)
        for slot in missing:
            field_errors.setdefault(slot, f"{SLOT_LABELS[slot]} is required")
        if field_errors:
            logger.info("Submission blocked by %d invalid field(s)", len(field_errors))
            return SubmissionResult(ok=False, field_errors=field_errors)

        payload = build_payload(draft, documents)
        self.is_submitting = True
        try:
            response = await self.client.post(
                self.endpoint, json=payload, timeout=self.timeout
            )
        except httpx.HTTPError as e:
            logger.warning("Submission to %s failed: %s", self.endpoint, e)
            self.notifier.notify(notifications.submission_failed(notifications.NETWORK_FAILURE))
            return SubmissionResult(ok=False, error=notifications.NETWORK_FAILURE)
        finally:
            self.is_submitting = False

        if not response.is_success:
            message = error_message(response)
            logger.warning(
                "Submission rejected with HTTP %d: %s", response.status_code, message
            )
            self.notifier.notify(notifications.submission_failed(message))
            return SubmissionResult(
                ok=False, status_code=response.status_code, error=message
            )

        try:
            data = response.json()
        except ValueError:
            data = {}
        logger.info("Application submitted (HTTP %d)", response.status_code)
        self.notifier.notify(notifications.SUBMITTED)
        self._schedule_followup()
        return SubmissionResult(
            ok=True,
            status_code=response.status_code,
            data=data if isinstance(data, dict) else {},
        )

    def _schedule_followup(self) -> None:
        task = asyncio.get_running_loop().create_task(self._followup())
        self._followups.add(task)
        task.add_done_callback(self._followups.discard)

    async def _followup(self) -> None:
        await asyncio.sleep(self.followup_delay)
        self.notifier.notify(notifications.NEXT_STEPS)

    async def drain(self) -> None:
        """Wait for any scheduled follow-up notices."""
        if self._followups:
            await asyncio.gather(*list(self._followups))
