from __future__ import annotations

from datetime import datetime, time, timedelta, timezone as dt_timezone

from django.db import models
from django.db.models import Q

from .services.snapshots import STATUS_COMPLETED


def _utc_midnight(day):
    return datetime.combine(day, time.min, tzinfo=dt_timezone.utc)


class TaskQuerySet(models.QuerySet):
    def alive(self):
        return self.filter(deleted_at__isnull=True)

    def deleted(self):
        return self.filter(deleted_at__isnull=False)

    def with_assignments(self):
        return self.prefetch_related('assignments')

    def for_user(self, user):
        return self.filter(assignments__user=user).distinct()

    def for_department(self, department_id):
        return self.filter(assignments__user__department_id=department_id).distinct()

    def in_period(self, start, end):
        # Completed tasks by UTC completion date, the rest (and completed ones
        # missing a completion time) by deadline
        by_completion = Q(
            status=STATUS_COMPLETED,
            completed_at__gte=_utc_midnight(start),
            completed_at__lt=_utc_midnight(end + timedelta(days=1)),
        )
        by_deadline = Q(deadline__gte=start, deadline__lte=end) & (
            ~Q(status=STATUS_COMPLETED) | Q(completed_at__isnull=True)
        )
        return self.filter(by_completion | by_deadline)
