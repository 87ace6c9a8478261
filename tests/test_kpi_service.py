from datetime import date, datetime, timedelta, timezone as dt_timezone
from decimal import Decimal

import pytest

from core.services.kpi_service import (
    Period,
    ScoredTask,
    TaskActivity,
    aggregate,
    compute_quality_score,
)
from tests.factories import NOW

MARCH = Period.for_month(2025, 3)


def row(task_id, user_id, score, department_id=10, status='in_progress', deadline=date(2025, 3, 20), **kwargs):
    # completion and quality equal, so the realized score is ``score``
    return ScoredTask(
        task_id=task_id,
        user_id=user_id,
        department_id=department_id,
        status=status,
        deadline=deadline,
        completion_score=score,
        quality_score=score,
        **kwargs,
    )


def test_realized_score_weights_completion_and_quality():
    scored = ScoredTask(task_id=1, user_id=1, department_id=None, status='completed',
                        deadline=date(2025, 3, 10), completion_score=100, quality_score=50)
    assert scored.realized_score == pytest.approx(85)


def test_department_average_is_mean_of_member_averages():
    busy = [row(task_id, user_id=1, score=90) for task_id in range(1, 11)]
    light = [row(100, user_id=2, score=70)]
    report = aggregate(busy + light, MARCH)

    department = report.by_department[0]
    assert department.average_kpi == pytest.approx(80)
    assert department.member_count == 2
    assert department.task_count == 11


def test_users_are_ranked_by_average_with_ties_in_input_order():
    report = aggregate([
        row(1, user_id=7, score=60),
        row(2, user_id=5, score=80),
        row(3, user_id=9, score=80),
    ], MARCH)
    assert [(s.key, s.rank) for s in report.by_user] == [(5, 1), (9, 2), (7, 3)]


def test_departments_are_ranked():
    report = aggregate([
        row(1, user_id=1, score=50, department_id=10),
        row(2, user_id=2, score=95, department_id=20),
    ], MARCH)
    assert [(s.key, s.rank) for s in report.by_department] == [(20, 1), (10, 2)]


def test_users_without_department_count_overall_but_not_per_department():
    report = aggregate([
        row(1, user_id=1, score=60, department_id=None),
        row(2, user_id=2, score=80),
    ], MARCH)
    assert report.overall.member_count == 2
    assert report.overall.average_kpi == pytest.approx(70)
    assert [s.key for s in report.by_department] == [10]


def test_completion_counts_and_rate():
    report = aggregate([
        row(1, user_id=1, score=100, status='completed',
            completed_at=datetime(2025, 3, 5, tzinfo=dt_timezone.utc)),
        row(2, user_id=1, score=50),
        row(2, user_id=2, score=50),
    ], MARCH)
    assert report.overall.task_count == 2
    assert report.overall.completed_count == 1
    assert report.overall.completion_rate == pytest.approx(0.5)
    user = next(s for s in report.by_user if s.key == 1)
    assert (user.task_count, user.completed_count) == (2, 1)


def test_repeated_user_task_pairs_count_once():
    report = aggregate([row(1, user_id=1, score=90), row(1, user_id=1, score=10)], MARCH)
    assert report.by_user[0].task_count == 1
    assert report.by_user[0].average_kpi == pytest.approx(90)


def test_completed_tasks_belong_to_the_month_they_were_completed():
    finished_in_march = row(1, user_id=1, score=100, status='completed', deadline=date(2025, 2, 25),
                            completed_at=datetime(2025, 3, 2, tzinfo=dt_timezone.utc))
    due_in_april = row(2, user_id=1, score=40, deadline=date(2025, 4, 2))
    report = aggregate([finished_in_march, due_in_april], MARCH)
    assert report.overall.task_count == 1
    assert report.by_user[0].average_kpi == pytest.approx(100)


def test_empty_input_gives_zeroed_report():
    report = aggregate([], Period.for_year(2025))
    assert report.overall.average_kpi == 0
    assert report.overall.task_count == 0
    assert report.overall.completion_rate == 0
    assert report.by_user == []
    assert report.by_department == []
    assert [p.average_kpi for p in report.monthly_trend] == [0] * 12


def test_monthly_trend_covers_every_month_of_the_period():
    report = aggregate([
        row(1, user_id=1, score=80, deadline=date(2025, 1, 15)),
        row(2, user_id=2, score=60, deadline=date(2025, 1, 20)),
        row(3, user_id=1, score=90, deadline=date(2025, 3, 3)),
    ], Period.for_year(2025))

    labels = [p.label for p in report.monthly_trend]
    assert labels == [f'2025-{month:02d}' for month in range(1, 13)]
    assert report.monthly_trend[0].average_kpi == pytest.approx(70)
    assert report.monthly_trend[1].average_kpi == 0
    assert report.monthly_trend[2].average_kpi == pytest.approx(90)


def test_period_boundaries_are_inclusive():
    assert MARCH.contains(date(2025, 3, 1))
    assert MARCH.contains(datetime(2025, 3, 31, 23, 59, tzinfo=dt_timezone.utc))
    assert not MARCH.contains(date(2025, 4, 1))
    assert not MARCH.contains(None)


class TestQualityScore:
    def busy_activity(self):
        return TaskActivity(
            progress_updates=(
                (NOW - timedelta(days=20), 'Kick-off'),
                (NOW - timedelta(days=3), 'Drafted the first two sections and sent them for review'),
                (NOW - timedelta(days=1), 'Review comments addressed'),
            ),
            comment_dates=(NOW - timedelta(days=5), NOW - timedelta(days=4), NOW - timedelta(days=2)),
        )

    def test_full_activity_and_capped_leadership(self):
        score = compute_quality_score(self.busy_activity(), Decimal('8'), 100, NOW)
        assert score == pytest.approx(30 + 56)

    def test_leadership_above_current_cap_is_capped_again(self):
        score = compute_quality_score(TaskActivity(), Decimal('9'), 80, NOW)
        assert score == pytest.approx(28)

    def test_no_activity_and_no_evaluation(self):
        assert compute_quality_score(TaskActivity(), None, 100, NOW) == 0

    def test_activity_outside_period_is_ignored(self):
        february = Period.for_month(2025, 2)
        assert compute_quality_score(self.busy_activity(), None, 100, NOW, february) == 0

    def test_quality_score_stays_within_bounds(self):
        score = compute_quality_score(self.busy_activity(), Decimal('10'), 120, NOW)
        assert 0 <= score <= 100
