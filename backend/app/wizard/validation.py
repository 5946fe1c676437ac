"""Run the strict form rules over a draft plus its attached documents."""

from app.schemas.membership import (
    ApplicationDraft,
    MembershipApplicationForm,
    collect_errors,
)
from app.wizard.documents import DocumentSlots


def form_data(draft: ApplicationDraft, documents: DocumentSlots) -> dict:
    data = draft.model_dump()
    data["id_document"] = list(documents.id_document)
    data["proof_of_address"] = list(documents.proof_of_address)
    data["additional_documents"] = list(documents.additional_documents)
    return data


def validate_draft(
    draft: ApplicationDraft,
    documents: DocumentSlots,
    fields: tuple[str, ...] | None = None,
) -> dict[str, str]:
    """Return {field: message} for failing fields, optionally limited to `fields`.

    Ordered by `fields` when given so callers can pick the first failure.
    """
    errors = collect_errors(MembershipApplicationForm, form_data(draft, documents))
    if fields is None:
        return errors
    return {name: errors[name] for name in fields if name in errors}
