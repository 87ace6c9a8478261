from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional, Union

from django.core.exceptions import ValidationError
from django.utils import timezone

from core.services.scoring import compute_completion_score, compute_leadership_cap
from core.services.snapshots import TaskSnapshot

audit_logger = logging.getLogger('core.audit')

SCORE_QUANTUM = Decimal('0.1')


class ScoreOutOfRangeError(ValidationError):
    """Raised for a leadership score below zero (or not a number at all)."""

    def __init__(self, score):
        super().__init__(
            'score out of range',
            code='score_out_of_range',
            params={'score': score},
        )
        self.score = score


def _to_decimal(value) -> Decimal:
    try:
        score = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise ScoreOutOfRangeError(value)
    if not score.is_finite():
        raise ScoreOutOfRangeError(value)
    return score


def submit_leadership_score(
    task: TaskSnapshot,
    proposed_score,
    now: Union[date, datetime],
) -> Decimal:
    """
    Score to persist for ``proposed_score`` given the task's current state.

    The cap is recomputed from the task as it is at ``now``, so evaluating the
    same task later can yield a different cap. Scores above the cap are
    silently lowered to it; negative scores are rejected.
    """
    score = _to_decimal(proposed_score)
    if score < 0:
        raise ScoreOutOfRangeError(proposed_score)
    cap = compute_leadership_cap(compute_completion_score(task, now))
    return min(score, Decimal(cap)).quantize(SCORE_QUANTUM, rounding=ROUND_HALF_UP)


def evaluate_task(task, proposed_score, evaluator=None, now: Optional[datetime] = None) -> Decimal:
    """
    Validate, clamp and store a leadership score on a ``core.models.Task``.

    Submissions for the same task are not coordinated: two reviewers saving
    at the same time both succeed and the later write is the one kept.
    """
    now = now or timezone.now()
    snapshot = task.to_snapshot()
    persisted = submit_leadership_score(snapshot, proposed_score, now)
    previous = task.leadership_score

    task.leadership_score = persisted
    task.evaluated_by = evaluator
    task.evaluated_at = now
    task.save(update_fields=['leadership_score', 'evaluated_by', 'evaluated_at', 'updated_at'])

    audit_logger.info(
        'task_leadership_scored task_id=%s evaluator_id=%s proposed=%s persisted=%s previous=%s '
        'status=%s deadline=%s completed_at=%s progress=%s',
        task.pk,
        getattr(evaluator, 'pk', None),
        proposed_score,
        persisted,
        previous,
        snapshot.status,
        snapshot.deadline,
        snapshot.completed_at,
        snapshot.progress,
    )
    return persisted
