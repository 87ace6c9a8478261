"""
Rule-based dashboard suggestions.

Each role gets its own set of hints built from the tasks it can see. Every
suggestion carries a ``type`` that doubles as its dismissal category, so the
caller can drop categories the user keeps dismissing with
``DismissalThrottle.filter_suggestions``.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date, datetime
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Union

from core.services.snapshots import (
    ROLE_COLLABORATE,
    ROLE_DEPARTMENT_HEAD,
    ROLE_DEPUTY_DIRECTOR,
    ROLE_DIRECT,
    ROLE_DIRECTOR,
    ROLE_LEAD,
    TaskSnapshot,
    UserSnapshot,
)
from core.utils.dates import as_utc_date, days_between

PRIORITY_HIGH = 'high'
PRIORITY_MEDIUM = 'medium'
PRIORITY_LOW = 'low'
PRIORITY_ORDER = {PRIORITY_HIGH: 0, PRIORITY_MEDIUM: 1, PRIORITY_LOW: 2}

NEAR_DEADLINE_DAYS = 3
SLOW_PROGRESS_PERCENT = 30
SLOW_PROGRESS_WINDOW_DAYS = 5
LOW_DEPARTMENT_COMPLETION_RATE = 70
LOW_DIRECTIVE_PROGRESS = 50
MAX_DETAIL_LINES = 5


@dataclass(frozen=True)
class Suggestion:
    type: str
    priority: str
    title: str
    content: str
    actionable: bool = True
    details: str = ''

    def as_dict(self) -> Dict[str, Union[str, bool]]:
        return asdict(self)


def _days_until(task: TaskSnapshot, now: Union[date, datetime]) -> int:
    return days_between(now, task.deadline)


def _label(task: TaskSnapshot) -> str:
    return task.title or f"Task #{task.id}"


def _overdue(tasks: Iterable[TaskSnapshot], now) -> List[TaskSnapshot]:
    late = [t for t in tasks if not t.is_completed and _days_until(t, now) < 0]
    return sorted(late, key=lambda t: (as_utc_date(t.deadline), t.id))


def _detail_lines(tasks: Sequence[TaskSnapshot], now) -> str:
    lines = []
    for task in tasks[:MAX_DETAIL_LINES]:
        days = _days_until(task, now)
        when = f"{-days} days overdue" if days < 0 else f"{days} days left"
        lines.append(f"- {_label(task)}: {task.progress}% ({when})")
    return '\n'.join(lines)


def _completion_rate(tasks: Sequence[TaskSnapshot]) -> int:
    if not tasks:
        return 0
    return round(sum(1 for t in tasks if t.is_completed) / len(tasks) * 100)


def _assignee_suggestions(user: UserSnapshot, tasks: Sequence[TaskSnapshot], now) -> List[Suggestion]:
    mine = [t for t in tasks if t.assignments_for(user.id)]
    active = [t for t in mine if not t.is_completed]
    suggestions = []

    near = [t for t in active if 0 <= _days_until(t, now) <= NEAR_DEADLINE_DAYS]
    if near:
        first = near[0]
        suggestions.append(Suggestion(
            type='deadline_warning',
            priority=PRIORITY_HIGH,
            title=f'"{_label(first)}" is due in {_days_until(first, now)} days',
            content=f"{len(near)} of your open tasks are due within {NEAR_DEADLINE_DAYS} days.",
            details=_detail_lines(near, now),
        ))

    overdue = _overdue(active, now)
    if overdue:
        oldest = overdue[0]
        suggestions.append(Suggestion(
            type='overdue_alert',
            priority=PRIORITY_HIGH,
            title=f'"{_label(oldest)}" is {-_days_until(oldest, now)} days overdue',
            content=f"You have {len(overdue)} overdue tasks. Update their progress or report the delay.",
            details=_detail_lines(overdue, now),
        ))

    slow = [
        t for t in active
        if t.progress < SLOW_PROGRESS_PERCENT and 0 < _days_until(t, now) <= SLOW_PROGRESS_WINDOW_DAYS
    ]
    if slow:
        suggestions.append(Suggestion(
            type='progress_slow',
            priority=PRIORITY_MEDIUM,
            title=f'"{_label(slow[0])}" is at {slow[0].progress}% with the deadline close',
            content=f"{len(slow)} tasks are below {SLOW_PROGRESS_PERCENT}% progress and due within "
                    f"{SLOW_PROGRESS_WINDOW_DAYS} days.",
            details=_detail_lines(slow, now),
        ))

    roles = [a.role for t in mine for a in t.assignments_for(user.id)]
    lead_count = roles.count(ROLE_LEAD)
    collaborate_count = roles.count(ROLE_COLLABORATE)
    if lead_count + collaborate_count:
        suggestions.append(Suggestion(
            type='kpi_improvement',
            priority=PRIORITY_LOW,
            title=f"{lead_count} lead and {collaborate_count} collaboration tasks",
            content=f"Completion rate: {_completion_rate(mine)}%. Finishing lead tasks ahead of the deadline "
                    f"raises both your completion score and your leadership cap.",
            actionable=False,
        ))
    return suggestions


def _department_suggestions(
    user: UserSnapshot,
    tasks: Sequence[TaskSnapshot],
    users: Mapping[int, UserSnapshot],
    now,
) -> List[Suggestion]:
    if user.department_id is None:
        return []

    def in_department(task: TaskSnapshot) -> bool:
        return any(
            users.get(a.user_id) is not None and users[a.user_id].department_id == user.department_id
            for a in task.assignments
        )

    department_tasks = [t for t in tasks if in_department(t)]
    suggestions = []

    overdue = _overdue(department_tasks, now)
    if overdue:
        suggestions.append(Suggestion(
            type='dept_overdue',
            priority=PRIORITY_HIGH,
            title=f'"{_label(overdue[0])}" is {-_days_until(overdue[0], now)} days overdue',
            content=f"The department has {len(overdue)} overdue tasks. Meet with the assignees to clear them.",
            details=_detail_lines(overdue, now),
        ))

    rate = _completion_rate(department_tasks)
    if department_tasks and rate < LOW_DEPARTMENT_COMPLETION_RATE:
        completed = sum(1 for t in department_tasks if t.is_completed)
        suggestions.append(Suggestion(
            type='dept_performance',
            priority=PRIORITY_MEDIUM,
            title=f"Department completion rate is {rate}%",
            content=f"{completed} of {len(department_tasks)} tasks are done and {len(overdue)} are overdue. "
                    f"Consider rebalancing the workload.",
        ))
    return suggestions


def _directive_suggestions(user: UserSnapshot, tasks: Sequence[TaskSnapshot], now) -> List[Suggestion]:
    directed = [
        t for t in tasks
        if any(a.role == ROLE_DIRECT for a in t.assignments_for(user.id))
    ]
    active = [t for t in directed if not t.is_completed]
    suggestions = []

    overdue = _overdue(active, now)
    if overdue:
        suggestions.append(Suggestion(
            type='directive_overdue',
            priority=PRIORITY_HIGH,
            title=f'Directed task "{_label(overdue[0])}" is overdue',
            content=f"{len(overdue)} tasks you direct are past their deadline. Follow up with the assignees.",
            details=_detail_lines(overdue, now),
        ))

    if active:
        lagging = [t for t in active if t.progress < LOW_DIRECTIVE_PROGRESS]
        completed = len(directed) - len(active)
        suggestions.append(Suggestion(
            type='directive_supervision',
            priority=PRIORITY_MEDIUM,
            title=f"Supervising {len(directed)} tasks ({completed} completed)",
            content=f"{len(lagging)} open tasks are below {LOW_DIRECTIVE_PROGRESS}% progress."
            if lagging else "All directed tasks are progressing.",
            actionable=bool(lagging),
            details=_detail_lines(lagging, now),
        ))
    return suggestions


def _organization_suggestions(tasks: Sequence[TaskSnapshot], now) -> List[Suggestion]:
    suggestions = []
    overdue = _overdue(tasks, now)
    if overdue:
        suggestions.append(Suggestion(
            type='org_overdue',
            priority=PRIORITY_HIGH,
            title=f"{len(overdue)} overdue tasks across the organization",
            content="Review the overdue work with the department heads concerned.",
            details=_detail_lines(overdue, now),
        ))
    if tasks:
        completed = sum(1 for t in tasks if t.is_completed)
        suggestions.append(Suggestion(
            type='org_progress',
            priority=PRIORITY_MEDIUM,
            title=f"Organization completion rate: {_completion_rate(tasks)}% ({completed}/{len(tasks)})",
            content=f"{len(tasks) - completed} tasks are still open, {len(overdue)} of them overdue.",
            actionable=False,
        ))
    return suggestions


def build_suggestions(
    user: UserSnapshot,
    tasks: Iterable[TaskSnapshot],
    now: Union[date, datetime],
    users: Optional[Mapping[int, UserSnapshot]] = None,
) -> List[Suggestion]:
    """
    Suggestions for ``user`` as of ``now``, most urgent first.

    Deleted tasks are ignored. ``users`` is only needed for department heads,
    whose hints cover every task assigned to a member of their department.
    """
    tasks = [t for t in tasks if not t.is_deleted]
    if user.role == ROLE_DIRECTOR:
        suggestions = _organization_suggestions(tasks, now)
    elif user.role == ROLE_DEPUTY_DIRECTOR:
        suggestions = _directive_suggestions(user, tasks, now)
    elif user.role == ROLE_DEPARTMENT_HEAD:
        suggestions = _department_suggestions(user, tasks, users or {}, now)
    else:
        suggestions = _assignee_suggestions(user, tasks, now)
    return sorted(suggestions, key=lambda s: PRIORITY_ORDER[s.priority])
