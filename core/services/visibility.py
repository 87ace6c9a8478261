"""
Role-based pending and visibility rules for task lists and badges.

Every organizational role maps to one ``VisibilityRule`` in
``VISIBILITY_POLICY``. Badge counts and list filters both read the same rule,
so a task that counts as pending for a user is always visible to that user.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, List, Mapping, Optional

from core.services.snapshots import (
    ROLE_COLLABORATE,
    ROLE_DEPARTMENT_HEAD,
    ROLE_DEPUTY_DIRECTOR,
    ROLE_DIRECT,
    ROLE_DIRECTOR,
    ROLE_LEAD,
    ROLE_STAFF,
    AssignmentSnapshot,
    TaskSnapshot,
    UserSnapshot,
)

PendingCheck = Callable[[TaskSnapshot, Optional[AssignmentSnapshot]], bool]


def _task_open(task: TaskSnapshot, assignment: Optional[AssignmentSnapshot]) -> bool:
    return not task.is_completed


def _collaboration_open(task: TaskSnapshot, assignment: Optional[AssignmentSnapshot]) -> bool:
    return assignment is not None and not assignment.collaboration_completed


def _never(task: TaskSnapshot, assignment: Optional[AssignmentSnapshot]) -> bool:
    return False


# Pending as long as the task itself is open, whatever the assignment role
TASK_STATUS_PENDING: Mapping[str, PendingCheck] = {
    ROLE_LEAD: _task_open,
    ROLE_DIRECT: _task_open,
    ROLE_COLLABORATE: _task_open,
}

# Leads wait on the task, collaborators on their own part, directors on nothing
ASSIGNMENT_PENDING: Mapping[str, PendingCheck] = {
    ROLE_LEAD: _task_open,
    ROLE_COLLABORATE: _collaboration_open,
    ROLE_DIRECT: _never,
}


@dataclass(frozen=True)
class VisibilityRule:
    organization_wide: bool
    pending_checks: Mapping[str, PendingCheck]
    sees_all_deleted: bool


STAFF_RULE = VisibilityRule(
    organization_wide=False,
    pending_checks=ASSIGNMENT_PENDING,
    sees_all_deleted=False,
)

VISIBILITY_POLICY: Mapping[str, VisibilityRule] = {
    ROLE_DIRECTOR: VisibilityRule(
        organization_wide=True,
        pending_checks=TASK_STATUS_PENDING,
        sees_all_deleted=True,
    ),
    ROLE_DEPUTY_DIRECTOR: VisibilityRule(
        organization_wide=False,
        pending_checks=TASK_STATUS_PENDING,
        sees_all_deleted=True,
    ),
    ROLE_DEPARTMENT_HEAD: STAFF_RULE,
    ROLE_STAFF: STAFF_RULE,
}


def rule_for(user: UserSnapshot) -> VisibilityRule:
    # Unknown roles get the narrowest view
    return VISIBILITY_POLICY.get(user.role, STAFF_RULE)


def is_pending(user: UserSnapshot, task: TaskSnapshot) -> bool:
    """True when ``task`` counts once toward ``user``'s outstanding-work badge."""
    if task.is_deleted:
        return False
    rule = rule_for(user)
    if rule.organization_wide:
        return _task_open(task, None)
    for assignment in task.assignments_for(user.id):
        check = rule.pending_checks.get(assignment.role)
        if check is not None and check(task, assignment):
            return True
    return False


def is_visible(user: UserSnapshot, assignment_role: Optional[str], task: TaskSnapshot) -> bool:
    """True when ``task`` belongs in ``user``'s default list through ``assignment_role``."""
    if task.is_deleted:
        return False
    rule = rule_for(user)
    if rule.organization_wide:
        return True
    return assignment_role in rule.pending_checks


def is_task_visible(user: UserSnapshot, task: TaskSnapshot) -> bool:
    rule = rule_for(user)
    if rule.organization_wide:
        return is_visible(user, None, task)
    return any(is_visible(user, a.role, task) for a in task.assignments_for(user.id))


def pending_count(user: UserSnapshot, tasks: Iterable[TaskSnapshot]) -> int:
    return sum(1 for task in tasks if is_pending(user, task))


def visible_task_ids(user: UserSnapshot, tasks: Iterable[TaskSnapshot]) -> List[int]:
    return [task.id for task in tasks if is_task_visible(user, task)]


def recoverable_task_ids(user: UserSnapshot, tasks: Iterable[TaskSnapshot]) -> List[int]:
    """Deleted tasks shown to ``user`` in the trash view."""
    rule = rule_for(user)
    recoverable = []
    for task in tasks:
        if not task.is_deleted:
            continue
        if rule.sees_all_deleted or task.created_by_id == user.id or task.assignments_for(user.id):
            recoverable.append(task.id)
    return recoverable
