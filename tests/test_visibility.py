from datetime import date, datetime, timezone as dt_timezone

import pytest

from core.services.snapshots import AssignmentSnapshot, UserSnapshot
from core.services.visibility import (
    is_pending,
    is_task_visible,
    is_visible,
    pending_count,
    recoverable_task_ids,
    visible_task_ids,
)
from tests.factories import make_task

DIRECTOR = UserSnapshot(id=1, role='director')
DEPUTY = UserSnapshot(id=2, role='deputy_director')
HEAD = UserSnapshot(id=3, role='department_head', department_id=10)
STAFF = UserSnapshot(id=4, role='staff', department_id=10)
DELETED_AT = datetime(2025, 3, 1, tzinfo=dt_timezone.utc)


def task(task_id, status='in_progress', assignments=(), **kwargs):
    return make_task(task_id=task_id, status=status, deadline=date(2025, 3, 20), assignments=assignments, **kwargs)


def test_director_counts_every_open_task():
    tasks = [
        task(1, assignments=[(4, 'lead')]),
        task(2, status='not_started'),
        task(3, status='completed'),
        task(4, deleted_at=DELETED_AT),
    ]
    assert pending_count(DIRECTOR, tasks) == 2
    assert visible_task_ids(DIRECTOR, tasks) == [1, 2, 3]


@pytest.mark.parametrize('role', ['lead', 'direct', 'collaborate'])
def test_deputy_director_pending_follows_task_status(role):
    open_task = task(1, assignments=[(2, role)])
    done_task = task(2, status='completed', assignments=[(2, role)])
    assert is_pending(DEPUTY, open_task)
    assert not is_pending(DEPUTY, done_task)
    assert is_task_visible(DEPUTY, done_task)


def test_deputy_director_does_not_see_unrelated_tasks():
    assert not is_task_visible(DEPUTY, task(1, assignments=[(4, 'lead')]))


def test_staff_lead_is_pending_until_task_completed():
    assert is_pending(STAFF, task(1, assignments=[(4, 'lead')]))
    assert not is_pending(STAFF, task(2, status='completed', assignments=[(4, 'lead')]))


def test_collaborator_is_pending_until_own_part_done():
    open_part = task(1, assignments=[(3, 'lead'), (4, 'collaborate')])
    done_part = task(2, assignments=[
        (3, 'lead'),
        AssignmentSnapshot(user_id=4, role='collaborate', collaboration_completed=True),
    ])
    assert is_pending(STAFF, open_part)
    assert not is_pending(STAFF, done_part)
    assert is_task_visible(STAFF, done_part)


def test_direct_assignment_is_visible_but_never_pending_for_staff_and_heads():
    directed = task(1, assignments=[(4, 'lead'), (3, 'direct')])
    assert not is_pending(HEAD, directed)
    assert is_visible(HEAD, 'direct', directed)


def test_task_counts_once_with_several_assignments():
    both = task(1, assignments=[(4, 'lead'), (4, 'collaborate')])
    assert pending_count(STAFF, [both]) == 1


def test_deleted_tasks_are_never_pending_or_visible():
    deleted = task(1, assignments=[(4, 'lead')], deleted_at=DELETED_AT)
    for user in (DIRECTOR, DEPUTY, HEAD, STAFF):
        assert not is_pending(user, deleted)
        assert not is_visible(user, 'lead', deleted)


def test_unknown_role_falls_back_to_assignment_rules():
    intern = UserSnapshot(id=9, role='intern')
    assert is_pending(intern, task(1, assignments=[(9, 'lead')]))
    assert not is_task_visible(intern, task(2, assignments=[(4, 'lead')]))


def test_pending_tasks_are_always_visible():
    tasks = [
        task(1, assignments=[(4, 'lead'), (3, 'direct')]),
        task(2, assignments=[(3, 'lead'), (4, 'collaborate')]),
        task(3, status='completed', assignments=[(4, 'lead'), (2, 'direct')]),
        task(4, status='overdue', assignments=[(2, 'collaborate'), (3, 'lead')]),
        task(5, assignments=[(1, 'lead')], deleted_at=DELETED_AT),
    ]
    for user in (DIRECTOR, DEPUTY, HEAD, STAFF):
        visible = set(visible_task_ids(user, tasks))
        pending = {t.id for t in tasks if is_pending(user, t)}
        assert pending <= visible


def test_trash_shows_all_deleted_tasks_to_directors_and_deputies():
    tasks = [
        task(1, deleted_at=DELETED_AT, created_by_id=4),
        task(2, deleted_at=DELETED_AT),
        task(3),
    ]
    assert recoverable_task_ids(DIRECTOR, tasks) == [1, 2]
    assert recoverable_task_ids(DEPUTY, tasks) == [1, 2]


def test_trash_shows_staff_only_their_own_deleted_tasks():
    tasks = [
        task(1, deleted_at=DELETED_AT, created_by_id=4),
        task(2, deleted_at=DELETED_AT, assignments=[(4, 'collaborate')]),
        task(3, deleted_at=DELETED_AT, created_by_id=3),
    ]
    assert recoverable_task_ids(STAFF, tasks) == [1, 2]
