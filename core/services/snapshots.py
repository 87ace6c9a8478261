"""
Plain read-only snapshots of the records the evaluation engine works on.

Models in ``core.models`` build these through ``to_snapshot()`` so that the
scoring, visibility and aggregation services stay free of ORM access and can
be exercised with hand-built values.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Tuple, Union

# Task status values
STATUS_NOT_STARTED = 'not_started'
STATUS_IN_PROGRESS = 'in_progress'
STATUS_COMPLETED = 'completed'
STATUS_OVERDUE = 'overdue'

# Assignment roles
ROLE_LEAD = 'lead'
ROLE_COLLABORATE = 'collaborate'
ROLE_DIRECT = 'direct'

# Organizational roles
ROLE_DIRECTOR = 'director'
ROLE_DEPUTY_DIRECTOR = 'deputy_director'
ROLE_DEPARTMENT_HEAD = 'department_head'
ROLE_STAFF = 'staff'

ASSIGNMENT_ROLES = (ROLE_LEAD, ROLE_COLLABORATE, ROLE_DIRECT)


@dataclass(frozen=True)
class AssignmentSnapshot:
    user_id: int
    role: str
    collaboration_completed: bool = False
    id: Optional[int] = None


@dataclass(frozen=True)
class TaskSnapshot:
    id: int
    status: str
    deadline: Union[date, datetime]
    completed_at: Optional[Union[date, datetime]] = None
    progress: int = 0
    leadership_score: Optional[Decimal] = None
    deleted_at: Optional[datetime] = None
    assignments: Tuple[AssignmentSnapshot, ...] = field(default_factory=tuple)
    created_by_id: Optional[int] = None
    title: str = ''

    @property
    def is_completed(self) -> bool:
        return self.status == STATUS_COMPLETED

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    @property
    def is_evaluated(self) -> bool:
        return self.leadership_score is not None

    def assignments_for(self, user_id: int) -> Tuple[AssignmentSnapshot, ...]:
        return tuple(a for a in self.assignments if a.user_id == user_id)

    @property
    def lead(self) -> Optional[AssignmentSnapshot]:
        for assignment in self.assignments:
            if assignment.role == ROLE_LEAD:
                return assignment
        return None


@dataclass(frozen=True)
class UserSnapshot:
    id: int
    role: str
    department_id: Optional[int] = None


@dataclass(frozen=True)
class DepartmentSnapshot:
    id: int
    assigned_deputy_director_id: Optional[int] = None
