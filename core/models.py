from django.db import models
from django.contrib.auth.models import AbstractUser
from django.core.validators import MaxValueValidator, MinValueValidator
from django.utils import timezone

from .managers import TaskQuerySet
from .services.snapshots import (
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
    AssignmentSnapshot,
    DepartmentSnapshot,
    TaskSnapshot,
    UserSnapshot,
)

USER_ROLE_CHOICES = [
    (ROLE_DIRECTOR, 'Director'),
    (ROLE_DEPUTY_DIRECTOR, 'Deputy Director'),
    (ROLE_DEPARTMENT_HEAD, 'Department Head'),
    (ROLE_STAFF, 'Staff'),
]

TASK_STATUS_CHOICES = [
    (STATUS_NOT_STARTED, 'Not started'),
    (STATUS_IN_PROGRESS, 'In progress'),
    (STATUS_COMPLETED, 'Completed'),
    (STATUS_OVERDUE, 'Overdue'),
]

ASSIGNMENT_ROLE_CHOICES = [
    (ROLE_LEAD, 'Lead'),
    (ROLE_COLLABORATE, 'Collaborate'),
    (ROLE_DIRECT, 'Direct'),
]


class Department(models.Model):
    name = models.CharField(max_length=150)
    code = models.CharField(max_length=20, unique=True)
    assigned_deputy_director = models.ForeignKey(
        'CustomUser',
        on_delete=models.SET_NULL,
        null=True, blank=True,
        related_name='supervised_departments',
        verbose_name="Assigned Deputy Director",
        help_text="Deputy director who reviews this department's head"
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['name']

    def __str__(self):
        return self.name

    def to_snapshot(self) -> DepartmentSnapshot:
        return DepartmentSnapshot(id=self.pk, assigned_deputy_director_id=self.assigned_deputy_director_id)


class CustomUser(AbstractUser):
    """
    Office user with an organizational role:
    - Director: sees and counts every task in the organization.
    - Deputy Director: sees tasks they lead, direct or collaborate on.
    - Department Head / Staff: see tasks they are assigned to; pending work
      is counted per assignment.
    Directors and deputy directors may have no department.
    """
    role = models.CharField(max_length=20, choices=USER_ROLE_CHOICES, default=ROLE_STAFF, db_index=True)
    department = models.ForeignKey(
        Department,
        on_delete=models.SET_NULL,
        null=True, blank=True,
        related_name='members',
    )
    position = models.CharField(max_length=100, blank=True, null=True)

    def __str__(self):
        return self.get_full_name() or self.username

    def to_snapshot(self) -> UserSnapshot:
        return UserSnapshot(id=self.pk, role=self.role, department_id=self.department_id)


class Task(models.Model):
    """
    A unit of work with one lead and any number of collaborators or directors.

    completed_at is kept in step with status on save: it is set when the task
    becomes Completed and cleared otherwise. leadership_score stays empty
    until a reviewer scores the task.
    """
    title = models.CharField(max_length=500)
    description = models.TextField(blank=True, null=True)
    status = models.CharField(
        max_length=20,
        choices=TASK_STATUS_CHOICES,
        default=STATUS_NOT_STARTED,
        db_index=True
    )
    deadline = models.DateField(db_index=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    progress = models.IntegerField(
        validators=[MinValueValidator(0), MaxValueValidator(100)],
        default=0,
        verbose_name="Progress (%)"
    )
    leadership_score = models.DecimalField(
        max_digits=3, decimal_places=1,
        validators=[MinValueValidator(0), MaxValueValidator(10)],
        null=True, blank=True,
        verbose_name="Leadership Score (0-10)"
    )
    evaluated_by = models.ForeignKey(
        CustomUser,
        on_delete=models.SET_NULL,
        null=True, blank=True,
        related_name='evaluated_tasks',
    )
    evaluated_at = models.DateTimeField(null=True, blank=True)
    created_by = models.ForeignKey(
        CustomUser,
        on_delete=models.SET_NULL,
        null=True, blank=True,
        related_name='created_tasks',
    )
    deleted_at = models.DateTimeField(null=True, blank=True, db_index=True)
    deleted_by = models.ForeignKey(
        CustomUser,
        on_delete=models.SET_NULL,
        null=True, blank=True,
        related_name='deleted_tasks',
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = TaskQuerySet.as_manager()

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', 'deadline'], name='task_status_deadline_idx'),
        ]

    def __str__(self):
        return self.title

    def save(self, *args, **kwargs):
        if self.status == STATUS_COMPLETED:
            if self.completed_at is None:
                self.completed_at = timezone.now()
            self.progress = 100
        else:
            self.completed_at = None
        super().save(*args, **kwargs)

    @property
    def is_deleted(self):
        return self.deleted_at is not None

    @property
    def is_evaluated(self):
        return self.leadership_score is not None

    def soft_delete(self, user=None):
        self.deleted_at = timezone.now()
        self.deleted_by = user
        self.save(update_fields=['deleted_at', 'deleted_by', 'updated_at'])

    def restore(self):
        self.deleted_at = None
        self.deleted_by = None
        self.save(update_fields=['deleted_at', 'deleted_by', 'updated_at'])

    def to_snapshot(self) -> TaskSnapshot:
        # Uses the prefetched assignments when the queryset was built with with_assignments()
        return TaskSnapshot(
            id=self.pk,
            status=self.status,
            deadline=self.deadline,
            completed_at=self.completed_at,
            progress=self.progress,
            leadership_score=self.leadership_score,
            deleted_at=self.deleted_at,
            assignments=tuple(a.to_snapshot() for a in self.assignments.all()),
            created_by_id=self.created_by_id,
            title=self.title,
        )


class TaskAssignment(models.Model):
    task = models.ForeignKey(Task, on_delete=models.CASCADE, related_name='assignments')
    user = models.ForeignKey(CustomUser, on_delete=models.CASCADE, related_name='task_assignments')
    role = models.CharField(max_length=20, choices=ASSIGNMENT_ROLE_CHOICES, db_index=True)
    collaboration_completed = models.BooleanField(
        default=False,
        help_text="Set by a collaborator once their part is done"
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['created_at', 'id']
        constraints = [
            models.UniqueConstraint(fields=['task', 'user', 'role'], name='unique_task_user_role'),
        ]

    def __str__(self):
        return f"{self.user} - {self.get_role_display()} - {self.task}"

    def to_snapshot(self) -> AssignmentSnapshot:
        return AssignmentSnapshot(
            id=self.pk,
            user_id=self.user_id,
            role=self.role,
            collaboration_completed=self.collaboration_completed,
        )


class ProgressUpdate(models.Model):
    task = models.ForeignKey(Task, on_delete=models.CASCADE, related_name='progress_updates')
    user = models.ForeignKey(CustomUser, on_delete=models.CASCADE, related_name='progress_updates')
    content = models.TextField(blank=True, null=True)
    progress_percent = models.IntegerField(
        validators=[MinValueValidator(0), MaxValueValidator(100)],
        null=True, blank=True
    )
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"Update on {self.task} by {self.user}"


class Comment(models.Model):
    task = models.ForeignKey(Task, on_delete=models.CASCADE, related_name='comments')
    user = models.ForeignKey(CustomUser, on_delete=models.CASCADE, related_name='task_comments')
    content = models.TextField()
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.user}: {self.content[:40]}"
