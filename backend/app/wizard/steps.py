"""Six-step linear state machine for the membership wizard.

States are the Step members; the initial state is PERSONAL. Moving forward
requires every field of the current step to pass validation; moving back
is always allowed. Submission from REVIEW is the terminal action and is
not itself a step.
"""

import enum
import logging
from dataclasses import dataclass, field
from typing import Callable

logger = logging.getLogger(__name__)


class Step(enum.IntEnum):
    PERSONAL = 1
    CONTACT = 2
    ADDRESS = 3
    PREFERENCES = 4
    DOCUMENTS = 5
    REVIEW = 6

    @property
    def title(self) -> str:
        return STEP_INFO[self][0]

    @property
    def description(self) -> str:
        return STEP_INFO[self][1]

    @property
    def icon(self) -> str:
        return STEP_INFO[self][2]

    @property
    def fields(self) -> tuple[str, ...]:
        return STEP_FIELDS[self]


STEP_INFO: dict[Step, tuple[str, str, str]] = {
    Step.PERSONAL: ("Personal Information", "Basic details about you", "👤"),
    Step.CONTACT: ("Contact Details", "How we can reach you", "📞"),
    Step.ADDRESS: ("Address", "Your location information", "📍"),
    Step.PREFERENCES: ("Preferences", "Your reading preferences", "📚"),
    Step.DOCUMENTS: ("Documents", "Upload required documents", "📄"),
    Step.REVIEW: ("Review & Submit", "Confirm your application", "✅"),
}

# Fields that must validate before leaving each step (in focus order)
STEP_FIELDS: dict[Step, tuple[str, ...]] = {
    Step.PERSONAL: ("first_name", "last_name", "date_of_birth", "gender"),
    Step.CONTACT: ("email", "phone"),
    Step.ADDRESS: ("street", "city", "state", "zip_code", "country"),
    Step.PREFERENCES: ("preferred_genres", "reading_frequency"),
    Step.DOCUMENTS: ("id_document", "proof_of_address"),
    Step.REVIEW: ("agree_to_terms",),
}

TOTAL_STEPS = len(Step)
FIRST_STEP = Step.PERSONAL
LAST_STEP = Step.REVIEW


@dataclass
class StepResult:
    ok: bool
    step: Step
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def first_invalid_field(self) -> str | None:
        return next(iter(self.errors), None)


def clamp_step(step) -> Step:
    """Coerce a stored step index; anything outside 1-6 falls back to step 1."""
    try:
        return Step(int(step))
    except (TypeError, ValueError):
        return FIRST_STEP


# Validator signature: fields of a step → {field: message} for failures
StepValidator = Callable[[tuple[str, ...]], dict[str, str]]


class StepController:
    """Tracks the current step and gates forward movement.

    The validator is called with the field group of the step being left,
    so the controller stays independent of how the form is stored.
    """

    def __init__(self, validator: StepValidator, start: int = FIRST_STEP):
        self._validate = validator
        self.current = clamp_step(start)

    def errors_for(self, step: int | None = None) -> dict[str, str]:
        target = self.current if step is None else Step(step)
        return self._validate(target.fields)

    def can_advance(self, step: int | None = None) -> bool:
        return not self.errors_for(step)

    def advance(self) -> StepResult:
        errors = self.errors_for()
        if errors:
            logger.debug(
                "Step %d blocked on %s", self.current, ", ".join(errors)
            )
            return StepResult(ok=False, step=self.current, errors=errors)
        if self.current < LAST_STEP:
            self.current = Step(self.current + 1)
            return StepResult(ok=True, step=self.current)
        # Valid but already on the last step: nothing to advance to
        return StepResult(ok=False, step=self.current)

    def retreat(self) -> bool:
        if self.current > FIRST_STEP:
            self.current = Step(self.current - 1)
            return True
        return False

    def go_to(self, step: int) -> Step:
        """Jump to a step without validation (used when restoring a draft)."""
        self.current = clamp_step(step)
        return self.current

    def reset(self) -> None:
        self.current = FIRST_STEP

    def progress_percent(self) -> int:
        return round(self.current / TOTAL_STEPS * 100)

    @property
    def is_last(self) -> bool:
        return self.current == LAST_STEP
