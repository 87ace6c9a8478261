from __future__ import annotations

from calendar import monthrange
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from core.services.scoring import compute_leadership_cap
from core.services.snapshots import STATUS_COMPLETED
from core.utils.dates import add_months, months_in_range, within

# Realized task score = completion share + quality share
COMPLETION_WEIGHT = 0.7
QUALITY_WEIGHT = 0.3

# Quality score: activity base (max 30) + capped leadership score scaled to 70
ACTIVITY_POINTS = 10
ACTIVITY_BASE_MAX = 30
LEADERSHIP_CONTRIBUTION = 70
MIN_UPDATES_FOR_CADENCE = 3
MIN_RECENT_UPDATES = 2
RECENT_WINDOW = timedelta(days=7)
DETAILED_UPDATE_LENGTH = 50
MIN_COMMENTS = 3


@dataclass(frozen=True)
class Period:
    """Inclusive date range a KPI report covers."""
    start: date
    end: date

    @classmethod
    def for_month(cls, year: int, month: int) -> 'Period':
        return cls(date(year, month, 1), date(year, month, monthrange(year, month)[1]))

    @classmethod
    def for_year(cls, year: int) -> 'Period':
        return cls(date(year, 1, 1), date(year, 12, 31))

    def contains(self, value: Optional[Union[date, datetime]]) -> bool:
        return within(value, self.start, self.end)


@dataclass(frozen=True)
class ScoredTask:
    task_id: int
    user_id: int
    department_id: Optional[int]
    status: str
    deadline: Union[date, datetime]
    completion_score: float
    quality_score: float = 0.0
    completed_at: Optional[Union[date, datetime]] = None

    @property
    def is_completed(self) -> bool:
        return self.status == STATUS_COMPLETED

    @property
    def realized_score(self) -> float:
        return self.completion_score * COMPLETION_WEIGHT + self.quality_score * QUALITY_WEIGHT

    @property
    def reference_date(self) -> Union[date, datetime]:
        """Completion date for finished tasks, deadline for everything else."""
        if self.is_completed and self.completed_at is not None:
            return self.completed_at
        return self.deadline


@dataclass
class KpiSummary:
    key: Optional[int]
    average_kpi: float = 0.0
    task_count: int = 0
    completed_count: int = 0
    completion_rate: float = 0.0
    rank: int = 0
    member_count: int = 0


@dataclass(frozen=True)
class MonthlyPoint:
    month: date
    average_kpi: float

    @property
    def label(self) -> str:
        return self.month.strftime('%Y-%m')


@dataclass
class KpiReport:
    period: Period
    overall: KpiSummary
    by_user: List[KpiSummary] = field(default_factory=list)
    by_department: List[KpiSummary] = field(default_factory=list)
    monthly_trend: List[MonthlyPoint] = field(default_factory=list)


@dataclass(frozen=True)
class TaskActivity:
    """Progress updates as (created_at, content) pairs and comment timestamps."""
    progress_updates: Tuple[Tuple[datetime, str], ...] = ()
    comment_dates: Tuple[datetime, ...] = ()


def compute_quality_score(
    activity: TaskActivity,
    leadership_score: Optional[Decimal],
    completion_score: float,
    now: datetime,
    period: Optional[Period] = None,
) -> float:
    """
    Quality score (0-100) from reporting activity and the reviewer's score.

    Activity only counts inside ``period`` when one is given. The reviewer's
    score is capped again with the current completion score, so a score
    stored under an older, higher cap cannot inflate the result.
    """
    def in_period(value: datetime) -> bool:
        return period is None or period.contains(value)

    updates = [(created, content) for created, content in activity.progress_updates if in_period(created)]
    comments = [created for created in activity.comment_dates if in_period(created)]

    base = 0
    if len(updates) >= MIN_UPDATES_FOR_CADENCE:
        recent = [created for created, _ in updates if created >= now - RECENT_WINDOW]
        if len(recent) >= MIN_RECENT_UPDATES:
            base += ACTIVITY_POINTS
    if any(content and len(content) > DETAILED_UPDATE_LENGTH for _, content in updates):
        base += ACTIVITY_POINTS
    if len(comments) >= MIN_COMMENTS:
        base += ACTIVITY_POINTS
    base = min(base, ACTIVITY_BASE_MAX)

    leadership = float(leadership_score) if leadership_score is not None else 0.0
    capped = min(leadership, compute_leadership_cap(completion_score))
    return base + capped / 10 * LEADERSHIP_CONTRIBUTION


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _dedupe(scored_tasks: Iterable[ScoredTask]) -> List[ScoredTask]:
    seen = set()
    rows = []
    for row in scored_tasks:
        key = (row.user_id, row.task_id)
        if key in seen:
            continue
        seen.add(key)
        rows.append(row)
    return rows


def _rank(summaries: List[KpiSummary]) -> List[KpiSummary]:
    # sorted() is stable, so equal scores keep their input order
    ordered = sorted(summaries, key=lambda s: s.average_kpi, reverse=True)
    for position, summary in enumerate(ordered, start=1):
        summary.rank = position
    return ordered


def _task_totals(rows: Iterable[ScoredTask]) -> Tuple[int, int]:
    tasks: Dict[int, bool] = {}
    for row in rows:
        tasks[row.task_id] = row.is_completed
    completed = sum(1 for done in tasks.values() if done)
    return len(tasks), completed


def summarize_users(rows: Sequence[ScoredTask]) -> List[KpiSummary]:
    """Per-user summaries, ranked by average KPI."""
    grouped: Dict[int, List[ScoredTask]] = {}
    for row in rows:
        grouped.setdefault(row.user_id, []).append(row)

    summaries = []
    for user_id, user_rows in grouped.items():
        completed = sum(1 for row in user_rows if row.is_completed)
        summaries.append(KpiSummary(
            key=user_id,
            average_kpi=_mean([row.realized_score for row in user_rows]),
            task_count=len(user_rows),
            completed_count=completed,
            completion_rate=completed / len(user_rows),
        ))
    return _rank(summaries)


def summarize_departments(rows: Sequence[ScoredTask], users: Sequence[KpiSummary]) -> List[KpiSummary]:
    """
    Per-department summaries. The average is the plain mean of member
    averages, so a very busy member does not outweigh a lightly loaded one.
    """
    department_of: Dict[int, Optional[int]] = {}
    rows_by_department: Dict[int, List[ScoredTask]] = {}
    for row in rows:
        department_of.setdefault(row.user_id, row.department_id)
        if row.department_id is not None:
            rows_by_department.setdefault(row.department_id, []).append(row)

    members: Dict[int, List[float]] = {}
    for summary in users:
        department_id = department_of.get(summary.key)
        if department_id is not None:
            members.setdefault(department_id, []).append(summary.average_kpi)

    summaries = []
    for department_id, department_rows in rows_by_department.items():
        task_count, completed = _task_totals(department_rows)
        member_scores = members.get(department_id, [])
        summaries.append(KpiSummary(
            key=department_id,
            average_kpi=_mean(member_scores),
            task_count=task_count,
            completed_count=completed,
            completion_rate=completed / task_count if task_count else 0.0,
            member_count=len(member_scores),
        ))
    return _rank(summaries)


def monthly_trend(rows: Sequence[ScoredTask], period: Period) -> List[MonthlyPoint]:
    """One point per calendar month of ``period``; empty months report 0."""
    points = []
    for month in months_in_range(period.start, period.end):
        month_period = Period(month, add_months(month, 1) - timedelta(days=1))
        month_rows = [row for row in rows if month_period.contains(row.reference_date)]
        users = summarize_users(month_rows)
        points.append(MonthlyPoint(month=month, average_kpi=_mean([u.average_kpi for u in users])))
    return points


def aggregate(scored_tasks: Iterable[ScoredTask], period: Period) -> KpiReport:
    """
    Fold scored tasks into user, department and overall KPI summaries.

    scored_tasks: one row per (user, task) pair; repeated pairs are ignored.
    Only rows whose reference date falls inside ``period`` are counted.
    """
    rows = [row for row in _dedupe(scored_tasks) if period.contains(row.reference_date)]

    by_user = summarize_users(rows)
    by_department = summarize_departments(rows, by_user)

    task_count, completed = _task_totals(rows)
    overall = KpiSummary(
        key=None,
        average_kpi=_mean([summary.average_kpi for summary in by_user]),
        task_count=task_count,
        completed_count=completed,
        completion_rate=completed / task_count if task_count else 0.0,
        rank=1,
        member_count=len(by_user),
    )

    return KpiReport(
        period=period,
        overall=overall,
        by_user=by_user,
        by_department=by_department,
        monthly_trend=monthly_trend(rows, period),
    )
