"""Toast notifications raised by the wizard.

Front ends implement Notifier to display toasts; ToastLog keeps them in
memory (terminal front end, tests).
"""

import logging
from dataclasses import dataclass
from typing import Literal, Protocol

logger = logging.getLogger(__name__)

Variant = Literal["default", "destructive"]


@dataclass(frozen=True)
class Toast:
    title: str
    description: str | None = None
    variant: Variant = "default"

    @property
    def is_error(self) -> bool:
        return self.variant == "destructive"


class Notifier(Protocol):
    def notify(self, toast: Toast) -> None: ...


class ToastLog:
    """Collects toasts in order of emission."""

    def __init__(self) -> None:
        self.toasts: list[Toast] = []

    def notify(self, toast: Toast) -> None:
        level = logging.WARNING if toast.is_error else logging.INFO
        logger.log(level, "Toast %s: %s", toast.title, toast.description or "")
        self.toasts.append(toast)

    @property
    def last(self) -> Toast | None:
        return self.toasts[-1] if self.toasts else None

    def titles(self) -> list[str]:
        return [t.title for t in self.toasts]

    def clear(self) -> None:
        self.toasts.clear()


# ── Message catalogue ───────────────────────────────────────

PROGRESS_SAVED = Toast(
    "Progress Saved!",
    "Your application progress has been saved. You can continue later.",
)
SAVE_FAILED = Toast(
    "Error", "Failed to save progress. Please try again.", "destructive"
)
PROGRESS_LOADED = Toast(
    "Progress Loaded!", "Your saved application progress has been restored."
)
NO_SAVED_PROGRESS = Toast(
    "No Saved Progress", "There is no saved application to restore."
)
LOAD_FAILED = Toast("Error", "Failed to load saved progress.", "destructive")
CLEAR_FAILED = Toast(
    "Error",
    "Your application was sent, but the saved progress could not be removed.",
    "destructive",
)
SUBMITTED = Toast(
    "🎉 Application Submitted Successfully!",
    "Thank you for applying! We'll review your application and get back to "
    "you within 2-3 business days. Check your email for confirmation.",
)
NEXT_STEPS = Toast(
    "📧 Next Steps",
    "You will receive an email confirmation shortly. Please check your spam "
    "folder if you don't see it.",
)
GENERIC_SUBMIT_FAILURE = "Failed to submit application"
NETWORK_FAILURE = (
    "Failed to submit application. Please check your internet connection "
    "and try again."
)


def submission_failed(message: str) -> Toast:
    return Toast("❌ Submission Failed", message, "destructive")
