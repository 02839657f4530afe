"""
Step and record state machines for instructor verification.

Every step of a record is one of four states and the record itself has an
overall status. Both only move along the edges listed in the transition
tables below; moving to the current state is a no-op.
"""
import logging
from typing import Dict, List
from coding_jojo_app.core.exceptions import InvalidTransition
from coding_jojo_app.verification.utils.verification_enums import (
    STEP_NAMES, RecordStatus, StepName, StepState
)

logger = logging.getLogger(__name__)

STEP_TRANSITIONS: Dict[StepState, frozenset] = {
    StepState.NOT_STARTED: frozenset({StepState.SUBMITTED, StepState.VERIFIED}),
    StepState.SUBMITTED: frozenset({StepState.VERIFIED, StepState.REJECTED, StepState.NOT_STARTED}),
    StepState.VERIFIED: frozenset({StepState.SUBMITTED, StepState.REJECTED}),
    StepState.REJECTED: frozenset({StepState.SUBMITTED, StepState.VERIFIED, StepState.NOT_STARTED}),
}

RECORD_TRANSITIONS: Dict[RecordStatus, frozenset] = {
    RecordStatus.PENDING: frozenset({RecordStatus.IN_PROGRESS, RecordStatus.REJECTED, RecordStatus.SUSPENDED}),
    RecordStatus.IN_PROGRESS: frozenset({RecordStatus.UNDER_REVIEW, RecordStatus.REJECTED, RecordStatus.SUSPENDED}),
    RecordStatus.UNDER_REVIEW: frozenset({
        RecordStatus.APPROVED, RecordStatus.REJECTED, RecordStatus.IN_PROGRESS, RecordStatus.SUSPENDED,
    }),
    RecordStatus.APPROVED: frozenset({RecordStatus.SUSPENDED}),
    RecordStatus.REJECTED: frozenset({RecordStatus.IN_PROGRESS, RecordStatus.SUSPENDED}),
    RecordStatus.SUSPENDED: frozenset(),
}

# A step counts towards progress once something has been handed in for it
COMPLETE_STATES = frozenset({StepState.SUBMITTED, StepState.VERIFIED})


def is_complete(state: StepState) -> bool:
    return state in COMPLETE_STATES


def can_move_step(current: StepState, target: StepState) -> bool:
    return current == target or target in STEP_TRANSITIONS[current]


def move_step(step_states, step: StepName, target: StepState) -> bool:
    """
    Move one step of a StepStates object. Returns True when the state changed.
    """
    current = getattr(step_states, step.value)
    if current == target:
        return False
    if not can_move_step(current, target):
        raise InvalidTransition(f"step '{step.value}'", current.value, target.value)
    setattr(step_states, step.value, target)
    logger.debug(f"Step {step.value}: {current.value} -> {target.value}")
    return True


def can_move_record(current: RecordStatus, target: RecordStatus) -> bool:
    return target in RECORD_TRANSITIONS[current]


def move_record(record, target: RecordStatus):
    current = record.verification_status
    if current == target:
        return
    if not can_move_record(current, target):
        raise InvalidTransition("verification status", current.value, target.value)
    record.verification_status = target
    logger.info(f"Verification {record.id}: {current.value} -> {target.value}")


def completed_steps_from(step_states) -> Dict[str, bool]:
    return {name: is_complete(getattr(step_states, name)) for name in STEP_NAMES}


def missing_steps(step_states) -> List[str]:
    return [name for name in STEP_NAMES if not is_complete(getattr(step_states, name))]
