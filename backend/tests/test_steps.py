"""Step controller tests."""

import pytest

from app.wizard.steps import (
    FIRST_STEP,
    LAST_STEP,
    Step,
    StepController,
    clamp_step,
)


def always_valid(fields):
    return {}


def fail_on(*names):
    def validator(fields):
        return {f: f"{f} is bad" for f in fields if f in names}
    return validator


@pytest.mark.unit
class TestStepController:
    def test_starts_on_first_step(self):
        controller = StepController(always_valid)
        assert controller.current == Step.PERSONAL
        assert controller.progress_percent() == 17

    def test_advance_when_valid(self):
        controller = StepController(always_valid)
        result = controller.advance()
        assert result.ok
        assert controller.current == Step.CONTACT
        assert result.errors == {}

    def test_advance_blocked_keeps_step(self):
        controller = StepController(fail_on("last_name", "gender"))
        result = controller.advance()
        assert not result.ok
        assert controller.current == Step.PERSONAL
        assert result.first_invalid_field == "last_name"
        assert set(result.errors) == {"last_name", "gender"}

    def test_validator_receives_current_step_fields(self):
        seen = []

        def validator(fields):
            seen.append(fields)
            return {}

        controller = StepController(validator, start=Step.ADDRESS)
        controller.advance()
        assert seen == [("street", "city", "state", "zip_code", "country")]

    def test_never_advances_past_last_step(self):
        controller = StepController(always_valid, start=LAST_STEP)
        result = controller.advance()
        assert not result.ok
        assert result.errors == {}
        assert controller.current == LAST_STEP
        assert controller.progress_percent() == 100

    def test_retreat_bounded_at_first_step(self):
        controller = StepController(fail_on("first_name"), start=Step.CONTACT)
        assert controller.retreat()
        assert controller.current == FIRST_STEP
        assert not controller.retreat()
        assert controller.current == FIRST_STEP

    def test_retreat_needs_no_validation(self):
        controller = StepController(fail_on("email"), start=Step.CONTACT)
        assert controller.retreat()

    def test_walk_through_all_steps(self):
        controller = StepController(always_valid)
        visited = [controller.current]
        while controller.advance().ok:
            visited.append(controller.current)
        assert visited == list(Step)
        assert controller.is_last

    def test_go_to_and_reset(self):
        controller = StepController(always_valid)
        assert controller.go_to(4) == Step.PREFERENCES
        controller.reset()
        assert controller.current == FIRST_STEP

    @pytest.mark.parametrize("value", [0, 7, -1, "x", None])
    def test_out_of_range_start_falls_back(self, value):
        assert clamp_step(value) == FIRST_STEP
        assert StepController(always_valid, start=value).current == FIRST_STEP


@pytest.mark.unit
def test_step_metadata():
    assert Step.DOCUMENTS.title == "Documents"
    assert Step.REVIEW.fields == ("agree_to_terms",)
    assert Step.PERSONAL.icon == "👤"
    assert [round(s / 6 * 100) for s in Step] == [17, 33, 50, 67, 83, 100]
