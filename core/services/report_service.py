from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from django.db.models import Prefetch
from django.utils import timezone

from core.models import Comment, CustomUser, Department, ProgressUpdate, Task
from core.services.kpi_service import (
    KpiReport,
    KpiSummary,
    Period,
    ScoredTask,
    TaskActivity,
    aggregate,
    compute_quality_score,
)
from core.services.scoring import compute_completion_score


def _activity(task: Task) -> TaskActivity:
    return TaskActivity(
        progress_updates=tuple((u.created_at, u.content or '') for u in task.progress_updates.all()),
        comment_dates=tuple(c.created_at for c in task.comments.all()),
    )


def scored_tasks_for_period(
    period: Period,
    department_id: Optional[int] = None,
    now: Optional[datetime] = None,
) -> List[ScoredTask]:
    """
    Load the non-deleted tasks of ``period`` and score them once per assignee.

    With ``department_id`` only the members of that department are scored.
    """
    now = now or timezone.now()
    tasks = (
        Task.objects.alive()
        .in_period(period.start, period.end)
        .prefetch_related(
            Prefetch('assignments__user', queryset=CustomUser.objects.only('id', 'department_id', 'role')),
            Prefetch('progress_updates', queryset=ProgressUpdate.objects.only('task_id', 'created_at', 'content')),
            Prefetch('comments', queryset=Comment.objects.only('task_id', 'created_at')),
        )
        .order_by('deadline', 'id')
    )
    if department_id is not None:
        tasks = tasks.for_department(department_id)

    rows = []
    for task in tasks:
        snapshot = task.to_snapshot()
        completion_score = compute_completion_score(snapshot, now)
        quality_score = compute_quality_score(
            _activity(task), task.leadership_score, completion_score, now, period
        )
        for assignment in task.assignments.all():
            user = assignment.user
            if department_id is not None and user.department_id != department_id:
                continue
            rows.append(ScoredTask(
                task_id=task.pk,
                user_id=user.pk,
                department_id=user.department_id,
                status=task.status,
                deadline=task.deadline,
                completed_at=task.completed_at,
                completion_score=completion_score,
                quality_score=quality_score,
            ))
    return rows


def build_kpi_report(period: Period, department_id: Optional[int] = None, now: Optional[datetime] = None) -> KpiReport:
    return aggregate(scored_tasks_for_period(period, department_id, now), period)


def _summary_dict(summary: KpiSummary, name: Optional[str] = None) -> Dict[str, Any]:
    return {
        'id': summary.key,
        'name': name,
        'rank': summary.rank,
        'average_kpi': round(summary.average_kpi, 1),
        'task_count': summary.task_count,
        'completed_count': summary.completed_count,
        'completion_rate': round(summary.completion_rate * 100, 1),
        'member_count': summary.member_count,
    }


def serialize_report(report: KpiReport) -> Dict[str, Any]:
    """JSON-ready form of a report, with user and department names filled in."""
    user_names = {
        u.pk: str(u) for u in CustomUser.objects.filter(pk__in=[s.key for s in report.by_user])
    }
    department_names = dict(
        Department.objects.filter(pk__in=[s.key for s in report.by_department]).values_list('pk', 'name')
    )
    return {
        'period': {'start': report.period.start.isoformat(), 'end': report.period.end.isoformat()},
        'overall': _summary_dict(report.overall),
        'by_user': [_summary_dict(s, user_names.get(s.key)) for s in report.by_user],
        'by_department': [_summary_dict(s, department_names.get(s.key)) for s in report.by_department],
        'monthly_trend': [
            {'month': point.label, 'average_kpi': round(point.average_kpi, 1)}
            for point in report.monthly_trend
        ],
    }
