"""Presentational state of the wizard, ready for any front end to render."""

from datetime import date

from pydantic import BaseModel
from pydantic.alias_generators import to_camel

from app.schemas.membership import ApplicationDraft
from app.wizard.documents import DocumentSlots
from app.wizard.steps import LAST_STEP, TOTAL_STEPS, Step

FEE_NOTE = "This fee is non-refundable and covers processing costs"


class StepView(BaseModel):
    id: int
    title: str
    description: str
    icon: str
    status: str  # complete | current | upcoming


class ReviewSummary(BaseModel):
    name: str
    email: str
    phone: str
    address: str
    date_of_birth: str
    gender: str
    has_disability: str
    disability_details: str | None = None
    preferred_genres: str
    reading_frequency: str
    subscribe_newsletter: str
    application_fee: str
    documents: str


class WizardView(BaseModel):
    steps: list[StepView]
    current_step: int
    total_steps: int
    progress_percent: int
    step_title: str
    application_fee: str
    fee_note: str = FEE_NOTE
    # Inline errors keyed by form control id (camelCase)
    errors: dict[str, str] = {}
    focus_field: str | None = None
    can_go_back: bool
    is_last_step: bool
    is_submitting: bool
    submit_label: str
    last_saved: str | None = None
    review: ReviewSummary


def format_fee(amount: float) -> str:
    return f"R{amount:.2f}"


def _title_words(value: str) -> str:
    return " ".join(w.capitalize() for w in value.replace("-", " ").split())


def _format_dob(value: str) -> str:
    if not value:
        return "N/A"
    try:
        d = date.fromisoformat(value)
    except ValueError:
        return value
    return f"{d.strftime('%B')} {d.day}, {d.year}"


def format_address(draft: ApplicationDraft) -> str:
    text = draft.street
    if draft.city:
        text += f", {draft.city}"
    if draft.state:
        text += f", {draft.state}"
    if draft.zip_code:
        text += f" {draft.zip_code}"
    if draft.country:
        text += f", {draft.country}"
    return text


def format_documents(documents: DocumentSlots) -> str:
    counts = documents.counts()
    text = (
        f"ID: {counts['id_document']} file(s), "
        f"Address: {counts['proof_of_address']} file(s)"
    )
    if counts["additional_documents"]:
        text += f", Additional: {counts['additional_documents']} file(s)"
    return text


def build_review(draft: ApplicationDraft, documents: DocumentSlots) -> ReviewSummary:
    return ReviewSummary(
        name=f"{draft.first_name} {draft.last_name}".strip(),
        email=draft.email,
        phone=draft.phone,
        address=format_address(draft),
        date_of_birth=_format_dob(draft.date_of_birth),
        gender=_title_words(draft.gender.value) if draft.gender else "N/A",
        has_disability="Yes" if draft.has_disability else "No",
        disability_details=(
            draft.disability_details
            if draft.has_disability and draft.disability_details
            else None
        ),
        preferred_genres=", ".join(draft.preferred_genres) or "None selected",
        reading_frequency=(
            draft.reading_frequency.value.capitalize()
            if draft.reading_frequency
            else "N/A"
        ),
        subscribe_newsletter="Yes" if draft.subscribe_newsletter else "No",
        application_fee=format_fee(draft.application_fee),
        documents=format_documents(documents),
    )


def build_view(wizard) -> WizardView:
    current = wizard.current_step
    steps = [
        StepView(
            id=step.value,
            title=step.title,
            description=step.description,
            icon=step.icon,
            status=(
                "complete" if step < current
                else "current" if step == current
                else "upcoming"
            ),
        )
        for step in Step
    ]
    errors = {to_camel(name): message for name, message in wizard.errors.items()}
    return WizardView(
        steps=steps,
        current_step=int(current),
        total_steps=TOTAL_STEPS,
        progress_percent=wizard.progress_percent(),
        step_title=current.title,
        application_fee=format_fee(wizard.draft.application_fee),
        errors=errors,
        focus_field=next(iter(errors), None),
        can_go_back=current > Step.PERSONAL,
        is_last_step=current == LAST_STEP,
        is_submitting=wizard.is_submitting,
        submit_label="Submitting..." if wizard.is_submitting else "Submit Application",
        last_saved=wizard.last_saved,
        review=build_review(wizard.draft, wizard.documents),
    )
