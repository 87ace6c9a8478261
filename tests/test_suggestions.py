from datetime import date, timedelta

from core.services.snapshots import AssignmentSnapshot, UserSnapshot
from core.services.suggestions import build_suggestions
from tests.factories import NOW, make_task

TODAY = NOW.date()
STAFF = UserSnapshot(id=4, role='staff', department_id=10)


def types(suggestions):
    return [s.type for s in suggestions]


def test_staff_gets_deadline_overdue_and_slow_progress_hints():
    tasks = [
        make_task(1, deadline=TODAY + timedelta(days=2), progress=50, assignments=[(4, 'lead')], title='Minutes'),
        make_task(2, deadline=TODAY - timedelta(days=4), progress=70, assignments=[(4, 'lead')]),
        make_task(3, deadline=TODAY + timedelta(days=5), progress=10, assignments=[(4, 'collaborate')]),
    ]
    suggestions = build_suggestions(STAFF, tasks, NOW)

    assert types(suggestions) == ['deadline_warning', 'overdue_alert', 'progress_slow', 'kpi_improvement']
    assert suggestions[0].title == '"Minutes" is due in 2 days'
    assert suggestions[1].title == '"Task #2" is 4 days overdue'


def test_completed_and_deleted_tasks_raise_no_alerts():
    tasks = [
        make_task(1, status='completed', deadline=TODAY - timedelta(days=4), assignments=[(4, 'lead')]),
        make_task(2, deadline=TODAY - timedelta(days=4), assignments=[(4, 'lead')], deleted_at=NOW),
    ]
    assert types(build_suggestions(STAFF, tasks, NOW)) == ['kpi_improvement']


def test_department_head_sees_department_wide_hints():
    head = UserSnapshot(id=3, role='department_head', department_id=10)
    users = {3: head, 4: STAFF, 8: UserSnapshot(id=8, role='staff', department_id=20)}
    tasks = [
        make_task(1, deadline=TODAY - timedelta(days=1), assignments=[(4, 'lead')]),
        make_task(2, deadline=TODAY + timedelta(days=9), assignments=[(4, 'lead')]),
        make_task(3, deadline=TODAY - timedelta(days=9), assignments=[(8, 'lead')]),
    ]
    suggestions = build_suggestions(head, tasks, NOW, users)

    assert types(suggestions) == ['dept_overdue', 'dept_performance']
    assert 'The department has 1 overdue tasks' in suggestions[0].content


def test_deputy_director_supervises_directed_tasks():
    deputy = UserSnapshot(id=2, role='deputy_director')
    tasks = [
        make_task(1, deadline=TODAY - timedelta(days=2), progress=30, assignments=[(4, 'lead'), (2, 'direct')]),
        make_task(2, status='completed', deadline=date(2025, 3, 1), assignments=[(4, 'lead'), (2, 'direct')]),
        make_task(3, deadline=TODAY - timedelta(days=2), assignments=[(4, 'lead')]),
    ]
    suggestions = build_suggestions(deputy, tasks, NOW)

    assert types(suggestions) == ['directive_overdue', 'directive_supervision']
    assert suggestions[1].title == 'Supervising 2 tasks (1 completed)'
    assert suggestions[1].actionable


def test_director_gets_organization_summary():
    director = UserSnapshot(id=1, role='director')
    tasks = [
        make_task(1, deadline=TODAY - timedelta(days=2)),
        make_task(2, status='completed', deadline=TODAY),
    ]
    suggestions = build_suggestions(director, tasks, NOW)

    assert types(suggestions) == ['org_overdue', 'org_progress']
    assert suggestions[1].title == 'Organization completion rate: 50% (1/2)'


def test_collaboration_completion_does_not_hide_task_alerts():
    task = make_task(1, deadline=TODAY + timedelta(days=1), assignments=[
        (3, 'lead'), AssignmentSnapshot(user_id=4, role='collaborate', collaboration_completed=True),
    ])
    assert 'deadline_warning' in types(build_suggestions(STAFF, [task], NOW))


def test_suggestions_serialize_with_their_category():
    task = make_task(1, deadline=TODAY - timedelta(days=1), assignments=[(4, 'lead')])
    data = build_suggestions(STAFF, [task], NOW)[0].as_dict()
    assert data['type'] == 'overdue_alert'
    assert data['priority'] == 'high'
