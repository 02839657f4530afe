import pytest
from coding_jojo_app.core.exceptions import InvalidTransition
from coding_jojo_app.verification.models.verification_models import StepStates
from coding_jojo_app.verification.utils.state_machine import (
    can_move_record, completed_steps_from, missing_steps, move_record, move_step
)
from coding_jojo_app.verification.utils.verification_enums import RecordStatus, StepName, StepState


class FakeRecord:
    id = "record"

    def __init__(self, status):
        self.verification_status = status


def test_fresh_steps_are_all_incomplete():
    completed = completed_steps_from(StepStates())
    assert list(completed) == [
        "email", "phone", "personal_info", "id_document", "selfie", "education_certificate"
    ]
    assert not any(completed.values())


def test_submitted_and_verified_count_as_complete():
    states = StepStates(email=StepState.VERIFIED, personal_info=StepState.SUBMITTED, selfie=StepState.REJECTED)
    completed = completed_steps_from(states)
    assert completed["email"] is True
    assert completed["personal_info"] is True
    assert completed["selfie"] is False
    assert missing_steps(states) == ["phone", "id_document", "selfie", "education_certificate"]


def test_moving_to_the_same_state_is_a_noop():
    states = StepStates(personal_info=StepState.SUBMITTED)
    assert move_step(states, StepName.PERSONAL_INFO, StepState.SUBMITTED) is False
    assert states.personal_info == StepState.SUBMITTED


@pytest.mark.parametrize("current,target", [
    (StepState.NOT_STARTED, StepState.SUBMITTED),
    (StepState.NOT_STARTED, StepState.VERIFIED),
    (StepState.SUBMITTED, StepState.REJECTED),
    (StepState.VERIFIED, StepState.SUBMITTED),
    (StepState.REJECTED, StepState.NOT_STARTED),
])
def test_allowed_step_moves(current, target):
    states = StepStates(selfie=current)
    assert move_step(states, StepName.SELFIE, target) is True
    assert states.selfie == target


@pytest.mark.parametrize("current,target", [
    (StepState.NOT_STARTED, StepState.REJECTED),
    (StepState.VERIFIED, StepState.NOT_STARTED),
])
def test_illegal_step_moves_raise(current, target):
    states = StepStates(selfie=current)
    with pytest.raises(InvalidTransition) as exc:
        move_step(states, StepName.SELFIE, target)
    assert exc.value.status_code == 409
    assert states.selfie == current


def test_record_only_reaches_review_from_in_progress():
    assert can_move_record(RecordStatus.IN_PROGRESS, RecordStatus.UNDER_REVIEW)
    assert not can_move_record(RecordStatus.PENDING, RecordStatus.UNDER_REVIEW)
    assert not can_move_record(RecordStatus.APPROVED, RecordStatus.UNDER_REVIEW)


def test_suspended_is_terminal():
    for target in RecordStatus:
        if target != RecordStatus.SUSPENDED:
            assert not can_move_record(RecordStatus.SUSPENDED, target)


def test_move_record_rejects_illegal_edges():
    record = FakeRecord(RecordStatus.APPROVED)
    with pytest.raises(InvalidTransition):
        move_record(record, RecordStatus.IN_PROGRESS)
    move_record(record, RecordStatus.SUSPENDED)
    assert record.verification_status == RecordStatus.SUSPENDED
