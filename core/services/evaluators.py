"""Who reviews whom: evaluator lookup for task assignments."""
from __future__ import annotations

from typing import Mapping, Optional

from core.services.snapshots import (
    ROLE_COLLABORATE,
    ROLE_DEPARTMENT_HEAD,
    ROLE_DEPUTY_DIRECTOR,
    ROLE_DIRECT,
    ROLE_DIRECTOR,
    ROLE_STAFF,
    AssignmentSnapshot,
    DepartmentSnapshot,
    TaskSnapshot,
    UserSnapshot,
)


def _first_with_role(users: Mapping[int, UserSnapshot], role: str, department_id: Optional[int] = None) -> Optional[int]:
    for user in users.values():
        if user.role != role:
            continue
        if department_id is not None and user.department_id != department_id:
            continue
        return user.id
    return None


def resolve_evaluator(
    task: TaskSnapshot,
    assignment: AssignmentSnapshot,
    users: Mapping[int, UserSnapshot],
    departments: Mapping[int, DepartmentSnapshot],
) -> Optional[int]:
    """
    Return the id of the user who evaluates ``assignment`` on ``task``.

    Collaborators are reviewed by the task lead. Anyone else is reviewed by
    the task's directing user when there is one (never themselves), and
    otherwise by the next level up the organization chart.
    """
    if assignment.role == ROLE_COLLABORATE:
        lead = task.lead
        return lead.user_id if lead else None

    for other in task.assignments:
        if other.role == ROLE_DIRECT and other.user_id != assignment.user_id:
            return other.user_id

    assignee = users.get(assignment.user_id)
    if assignee is None:
        return None

    if assignee.role == ROLE_STAFF:
        if assignee.department_id is None:
            return None
        return _first_with_role(users, ROLE_DEPARTMENT_HEAD, assignee.department_id)

    if assignee.role == ROLE_DEPARTMENT_HEAD:
        if assignee.department_id is None:
            return None
        department = departments.get(assignee.department_id)
        deputy_id = department.assigned_deputy_director_id if department else None
        if deputy_id is not None and deputy_id in users:
            return deputy_id
        return _first_with_role(users, ROLE_DEPUTY_DIRECTOR) or _first_with_role(users, ROLE_DIRECTOR)

    if assignee.role == ROLE_DEPUTY_DIRECTOR:
        return _first_with_role(users, ROLE_DIRECTOR)

    return None


def can_user_evaluate(
    user_id: int,
    task: TaskSnapshot,
    users: Mapping[int, UserSnapshot],
    departments: Mapping[int, DepartmentSnapshot],
) -> bool:
    """True when ``user_id`` is the evaluator of the task's lead assignment."""
    lead = task.lead
    if lead is None:
        return False
    return resolve_evaluator(task, lead, users, departments) == user_id
