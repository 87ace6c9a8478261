from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Tuple, Union

from core.services.snapshots import (
    STATUS_COMPLETED,
    STATUS_IN_PROGRESS,
    STATUS_NOT_STARTED,
    TaskSnapshot,
)
from core.utils.dates import days_between

MIN_COMPLETION_SCORE = 0
MAX_COMPLETION_SCORE = 120

# Completed tasks, by whole days between deadline and completion
EARLY_OVER_A_WEEK_SCORE = 120
EARLY_SCORE = 110
ON_TIME_SCORE = 100
SLIGHTLY_LATE_SCORE = 90
LATE_SCORE = 80
EARLY_OVER_A_WEEK_DAYS = -7
SLIGHTLY_LATE_MAX_DAYS = 3

MISSING_COMPLETION_DATE_SCORE = 100
UNKNOWN_STATUS_SCORE = 50

ACTIVE_BASE_SCORE = 50
IN_PROGRESS_PROGRESS_DIVISOR = 2
NOT_STARTED_DECAY_PER_DAY = 2

# (threshold, strictly greater, cap, explanation), checked top to bottom
LEADERSHIP_CAP_BANDS: Tuple[Tuple[int, bool, int, str], ...] = (
    (110, False, 10, "Completed at least one day early - maximum score: 10"),
    (100, False, 8, "Completed on the deadline - maximum score: 8"),
    (90, False, 6, "Completed 1-3 days late - maximum score: 6"),
    (80, False, 4, "Completed more than 3 days late - maximum score: 4"),
    (0, True, 2, "In progress but behind schedule - maximum score: 2"),
)
LEADERSHIP_CAP_FLOOR = 1
LEADERSHIP_CAP_FLOOR_EXPLANATION = "Overdue or not started - maximum score: 1"


@dataclass(frozen=True)
class ScoreResult:
    completion_score: int
    leadership_cap: int
    explanation: str


def _completed_score(task: TaskSnapshot) -> int:
    if task.completed_at is None:
        return MISSING_COMPLETION_DATE_SCORE
    delta = days_between(task.deadline, task.completed_at)
    if delta < EARLY_OVER_A_WEEK_DAYS:
        return EARLY_OVER_A_WEEK_SCORE
    if delta < 0:
        return EARLY_SCORE
    if delta == 0:
        return ON_TIME_SCORE
    if delta <= SLIGHTLY_LATE_MAX_DAYS:
        return SLIGHTLY_LATE_SCORE
    return LATE_SCORE


def compute_completion_score(task: TaskSnapshot, now: Union[date, datetime]) -> int:
    """
    Completion score (0-120) of a task as of ``now``.

    Completed tasks are scored on how early or late they finished; open tasks
    on their progress and the time left before the deadline. Any status the
    engine does not know gets the neutral score instead of an error.
    """
    if task.status == STATUS_COMPLETED:
        return _completed_score(task)

    if task.status == STATUS_IN_PROGRESS:
        if days_between(task.deadline, now) > 0:
            return MIN_COMPLETION_SCORE
        progress = min(max(task.progress or 0, 0), 100)
        return ACTIVE_BASE_SCORE + progress // IN_PROGRESS_PROGRESS_DIVISOR

    if task.status == STATUS_NOT_STARTED:
        days_past_due = days_between(task.deadline, now)
        if days_past_due > 0:
            return MIN_COMPLETION_SCORE
        return max(MIN_COMPLETION_SCORE, ACTIVE_BASE_SCORE + NOT_STARTED_DECAY_PER_DAY * days_past_due)

    return UNKNOWN_STATUS_SCORE


def _cap_band(completion_score: float) -> Tuple[int, str]:
    for threshold, strict, cap, explanation in LEADERSHIP_CAP_BANDS:
        if completion_score > threshold if strict else completion_score >= threshold:
            return cap, explanation
    return LEADERSHIP_CAP_FLOOR, LEADERSHIP_CAP_FLOOR_EXPLANATION


def compute_leadership_cap(completion_score: float) -> int:
    return _cap_band(completion_score)[0]


def leadership_cap_explanation(completion_score: float) -> str:
    return _cap_band(completion_score)[1]


def score_task(task: TaskSnapshot, now: Union[date, datetime]) -> ScoreResult:
    completion_score = compute_completion_score(task, now)
    cap, explanation = _cap_band(completion_score)
    return ScoreResult(
        completion_score=completion_score,
        leadership_cap=cap,
        explanation=explanation,
    )
