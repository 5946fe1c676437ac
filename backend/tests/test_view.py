"""Wizard view model tests."""

import pytest

from app.schemas.membership import ApplicationDraft
from app.wizard.documents import DocumentSlots, FileHandle
from app.wizard.view import build_review, build_view, format_address, format_fee
from app.wizard.wizard import MembershipWizard

from conftest import fill_wizard, mock_client


def make_wizard(store, toasts):
    return MembershipWizard.create(
        mock_client(lambda request: None), store=store, notifier=toasts
    )


@pytest.mark.unit
class TestView:
    def test_initial_view(self, store, toasts):
        wizard = make_wizard(store, toasts)
        view = build_view(wizard)
        assert view.current_step == 1
        assert view.total_steps == 6
        assert view.progress_percent == 17
        assert view.step_title == "Personal Information"
        assert [s.status for s in view.steps] == ["current"] + ["upcoming"] * 5
        assert not view.can_go_back
        assert not view.is_last_step
        assert view.submit_label == "Submit Application"
        assert view.application_fee == format_fee(wizard.draft.application_fee)

    def test_errors_keyed_by_control_id(self, store, toasts):
        wizard = make_wizard(store, toasts)
        wizard.update(first_name="Jane", last_name="Doe")
        wizard.next_step()
        view = build_view(wizard)
        assert view.errors == {
            "dateOfBirth": "Date of birth is required",
            "gender": "Please select a gender",
        }
        assert view.focus_field == "dateOfBirth"

    async def test_review_step(self, store, toasts):
        wizard = make_wizard(store, toasts)
        await fill_wizard(wizard)
        view = build_view(wizard)
        assert view.is_last_step
        assert view.progress_percent == 100
        assert [s.status for s in view.steps] == ["complete"] * 5 + ["current"]
        assert view.review.name == "Jane Doe"
        assert view.review.date_of_birth == "January 1, 1990"
        assert view.review.gender == "Female"
        assert view.review.reading_frequency == "Weekly"
        assert view.review.documents == "ID: 1 file(s), Address: 1 file(s)"

    def test_submitting_label(self, store, toasts):
        wizard = make_wizard(store, toasts)
        wizard.pipeline.is_submitting = True
        assert build_view(wizard).submit_label == "Submitting..."


@pytest.mark.unit
class TestReviewFormatting:
    def test_empty_draft(self):
        review = build_review(ApplicationDraft(), DocumentSlots())
        assert review.date_of_birth == "N/A"
        assert review.gender == "N/A"
        assert review.preferred_genres == "None selected"
        assert review.has_disability == "No"
        assert review.subscribe_newsletter == "Yes"

    def test_prefer_not_to_say(self):
        review = build_review(ApplicationDraft(gender="prefer-not-to-say"), DocumentSlots())
        assert review.gender == "Prefer Not To Say"

    def test_disability_details_only_when_flagged(self):
        draft = ApplicationDraft(disability_details="Large print")
        assert build_review(draft, DocumentSlots()).disability_details is None
        draft = draft.model_copy(update={"has_disability": True})
        assert build_review(draft, DocumentSlots()).disability_details == "Large print"

    def test_additional_documents_count(self):
        docs = DocumentSlots()
        docs.attach("additional_documents", FileHandle("a.pdf"))
        docs.attach("additional_documents", FileHandle("b.pdf"))
        review = build_review(ApplicationDraft(), docs)
        assert review.documents == "ID: 0 file(s), Address: 0 file(s), Additional: 2 file(s)"

    def test_address(self):
        draft = ApplicationDraft(
            street="12 Long Street", city="Cape Town", state="WC", zip_code="8001", country="ZA"
        )
        assert format_address(draft) == "12 Long Street, Cape Town, WC 8001, ZA"

    def test_fee_format(self):
        assert format_fee(42.5) == "R42.50"
