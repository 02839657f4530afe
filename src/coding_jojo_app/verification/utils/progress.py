import math
from typing import Mapping, NamedTuple
from coding_jojo_app.verification.utils.verification_enums import STEP_NAMES


class StepProgress(NamedTuple):
    completed_count: int
    total_steps: int
    percentage: int


def evaluate_progress(completed_steps: Mapping[str, bool]) -> StepProgress:
    """
    Count the six canonical steps that are done.
    Unknown keys are ignored and missing keys count as not done.
    """
    total = len(STEP_NAMES)
    completed = sum(1 for name in STEP_NAMES if completed_steps.get(name))
    # round half up
    percentage = math.floor(completed * 100 / total + 0.5)
    return StepProgress(completed, total, percentage)
