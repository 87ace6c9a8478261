from datetime import date, datetime, timedelta, timezone as dt_timezone

import pytest

from core.services.scoring import (
    LEADERSHIP_CAP_FLOOR_EXPLANATION,
    compute_completion_score,
    compute_leadership_cap,
    leadership_cap_explanation,
    score_task,
)
from tests.factories import NOW, make_task

DEADLINE = date(2025, 3, 10)


def completed_on(day, deadline=DEADLINE):
    completed_at = datetime(day.year, day.month, day.day, 15, 0, tzinfo=dt_timezone.utc)
    return make_task(status='completed', deadline=deadline, completed_at=completed_at, progress=100)


@pytest.mark.parametrize('completed, expected_score, expected_cap', [
    (date(2025, 3, 1), 120, 10),
    (date(2025, 3, 3), 110, 10),
    (date(2025, 3, 9), 110, 10),
    (date(2025, 3, 10), 100, 8),
    (date(2025, 3, 11), 90, 6),
    (date(2025, 3, 13), 90, 6),
    (date(2025, 3, 14), 80, 4),
    (date(2025, 4, 30), 80, 4),
])
def test_completed_task_bands(completed, expected_score, expected_cap):
    result = score_task(completed_on(completed), NOW)
    assert result.completion_score == expected_score
    assert result.leadership_cap == expected_cap


def test_completed_one_day_early_allows_full_leadership_score():
    result = score_task(completed_on(date(2025, 3, 9)), NOW)
    assert (result.completion_score, result.leadership_cap) == (110, 10)
    assert result.explanation == "Completed at least one day early - maximum score: 10"


def test_completed_without_completion_time_scores_as_on_time():
    task = make_task(status='completed', deadline=DEADLINE, completed_at=None)
    assert compute_completion_score(task, NOW) == 100


def test_completion_day_is_taken_in_utc():
    # 01:00 on the 11th at UTC+7 is still the 10th in UTC
    local = dt_timezone(timedelta(hours=7))
    task = make_task(status='completed', deadline=DEADLINE, completed_at=datetime(2025, 3, 11, 1, 0, tzinfo=local))
    assert compute_completion_score(task, NOW) == 100


def test_naive_completion_time_is_read_as_utc():
    task = make_task(status='completed', deadline=DEADLINE, completed_at=datetime(2025, 3, 10, 23, 30))
    assert compute_completion_score(task, NOW) == 100


@pytest.mark.parametrize('progress, expected', [
    (0, 50),
    (40, 70),
    (45, 72),
    (100, 100),
])
def test_in_progress_before_deadline_uses_progress(progress, expected):
    task = make_task(status='in_progress', deadline=date(2025, 3, 20), progress=progress)
    assert compute_completion_score(task, NOW) == expected


def test_in_progress_due_today_is_not_late():
    task = make_task(status='in_progress', deadline=date(2025, 3, 15), progress=20)
    assert compute_completion_score(task, NOW) == 60


def test_in_progress_past_deadline_scores_zero_with_floor_cap():
    task = make_task(status='in_progress', deadline=date(2025, 3, 14), progress=90)
    result = score_task(task, NOW)
    assert (result.completion_score, result.leadership_cap) == (0, 1)
    assert result.explanation == LEADERSHIP_CAP_FLOOR_EXPLANATION


def test_not_started_ten_days_ahead():
    task = make_task(status='not_started', deadline=NOW.date() + timedelta(days=10))
    result = score_task(task, NOW)
    assert (result.completion_score, result.leadership_cap) == (30, 2)


def test_not_started_far_ahead_never_goes_negative():
    task = make_task(status='not_started', deadline=NOW.date() + timedelta(days=40))
    assert compute_completion_score(task, NOW) == 0


def test_not_started_past_deadline_scores_zero():
    task = make_task(status='not_started', deadline=date(2025, 3, 1))
    assert compute_completion_score(task, NOW) == 0


@pytest.mark.parametrize('status', ['overdue', 'paused', ''])
def test_overdue_and_unknown_statuses_get_neutral_score(status):
    task = make_task(status=status, deadline=date(2025, 3, 1))
    result = score_task(task, NOW)
    assert (result.completion_score, result.leadership_cap) == (50, 2)


@pytest.mark.parametrize('score, cap', [
    (120, 10), (110, 10), (109, 8), (100, 8), (99, 6), (90, 6),
    (89, 4), (80, 4), (79, 2), (1, 2), (0.5, 2), (0, 1),
])
def test_leadership_cap_thresholds(score, cap):
    assert compute_leadership_cap(score) == cap


def test_leadership_cap_never_decreases_as_score_rises():
    caps = [compute_leadership_cap(score) for score in range(0, 121)]
    assert caps == sorted(caps)


def test_explanation_matches_cap_band():
    assert leadership_cap_explanation(95) == "Completed 1-3 days late - maximum score: 6"
    assert leadership_cap_explanation(0) == LEADERSHIP_CAP_FLOOR_EXPLANATION


def test_scoring_is_repeatable_for_the_same_inputs():
    task = make_task(status='in_progress', deadline=date(2025, 3, 20), progress=33)
    assert score_task(task, NOW) == score_task(task, NOW)
