from datetime import timedelta

from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from core.models import Comment, CustomUser, Department, ProgressUpdate, Task, TaskAssignment
from core.services.snapshots import (
    ROLE_COLLABORATE,
    ROLE_DEPARTMENT_HEAD,
    ROLE_DEPUTY_DIRECTOR,
    ROLE_DIRECT,
    ROLE_DIRECTOR,
    ROLE_LEAD,
    ROLE_STAFF,
    STATUS_COMPLETED,
    STATUS_IN_PROGRESS,
    STATUS_NOT_STARTED,
    STATUS_OVERDUE,
)
from core.utils.dates import business_localdate

DEPARTMENTS = [
    ('ADM', 'Administration'),
    ('FIN', 'Finance'),
]

# username, first name, role, department code
USERS = [
    ('director', 'Diana', ROLE_DIRECTOR, None),
    ('deputy', 'Duc', ROLE_DEPUTY_DIRECTOR, None),
    ('adm_head', 'Hana', ROLE_DEPARTMENT_HEAD, 'ADM'),
    ('adm_staff1', 'Son', ROLE_STAFF, 'ADM'),
    ('adm_staff2', 'Linh', ROLE_STAFF, 'ADM'),
    ('fin_head', 'Phuong', ROLE_DEPARTMENT_HEAD, 'FIN'),
    ('fin_staff1', 'Minh', ROLE_STAFF, 'FIN'),
]

# title, status, deadline offset (days from today), completion offset (days from deadline), progress,
# [(username, assignment role)]
TASKS = [
    ('Prepare annual budget draft', STATUS_COMPLETED, -20, -2, 100,
     [('fin_staff1', ROLE_LEAD), ('fin_head', ROLE_DIRECT)]),
    ('Archive signed contracts', STATUS_COMPLETED, -15, 0, 100,
     [('adm_staff1', ROLE_LEAD), ('adm_staff2', ROLE_COLLABORATE)]),
    ('Reconcile petty cash', STATUS_COMPLETED, -10, 5, 100,
     [('fin_staff1', ROLE_LEAD)]),
    ('Update staff handbook', STATUS_IN_PROGRESS, 7, None, 60,
     [('adm_staff2', ROLE_LEAD), ('adm_staff1', ROLE_COLLABORATE), ('adm_head', ROLE_DIRECT)]),
    ('Collect supplier quotes', STATUS_IN_PROGRESS, -3, None, 40,
     [('adm_staff1', ROLE_LEAD)]),
    ('Plan quarterly review meeting', STATUS_NOT_STARTED, 12, None, 0,
     [('adm_head', ROLE_LEAD), ('deputy', ROLE_DIRECT)]),
    ('Audit travel expenses', STATUS_OVERDUE, -5, None, 20,
     [('fin_head', ROLE_LEAD), ('deputy', ROLE_DIRECT)]),
]


class Command(BaseCommand):
    help = 'Create a small demo organization with departments, users and tasks.'

    def add_arguments(self, parser):
        parser.add_argument('--password', default='demo12345', help='Password for every demo user')

    @transaction.atomic
    def handle(self, *args, **options):
        departments = {}
        for code, name in DEPARTMENTS:
            departments[code], created = Department.objects.get_or_create(code=code, defaults={'name': name})
            if created:
                self.stdout.write(f'Created department: {name}')

        users = {}
        for username, first_name, role, department_code in USERS:
            user, created = CustomUser.objects.get_or_create(
                username=username,
                defaults={
                    'first_name': first_name,
                    'role': role,
                    'department': departments.get(department_code),
                },
            )
            if created:
                user.set_password(options['password'])
                user.save(update_fields=['password'])
                self.stdout.write(f'Created user: {username} ({role})')
            users[username] = user

        for department in departments.values():
            if department.assigned_deputy_director_id is None:
                department.assigned_deputy_director = users['deputy']
                department.save(update_fields=['assigned_deputy_director'])

        today = business_localdate()
        now = timezone.now()
        for title, status, deadline_offset, completion_offset, progress, assignees in TASKS:
            if Task.objects.filter(title=title).exists():
                self.stdout.write(f'Task already exists: {title}')
                continue
            deadline = today + timedelta(days=deadline_offset)
            completed_at = None
            if completion_offset is not None:
                completed_at = now + timedelta(days=deadline_offset + completion_offset)
            task = Task.objects.create(
                title=title,
                status=status,
                deadline=deadline,
                completed_at=completed_at,
                progress=progress,
                created_by=users['director'],
            )
            for username, role in assignees:
                TaskAssignment.objects.create(task=task, user=users[username], role=role)

            lead = users[assignees[0][0]]
            ProgressUpdate.objects.create(
                task=task, user=lead, progress_percent=progress,
                content=f'Progress on "{title}" is now {progress}%.',
                created_at=now - timedelta(days=1),
            )
            Comment.objects.create(task=task, user=users['director'], content='Please keep this updated.')
            self.stdout.write(f'Created task: {title}')

        self.stdout.write(self.style.SUCCESS('Demo data ready.'))
