"""
Shared fixtures.

Engine tests build snapshots with ``tests.factories`` and need no database;
model and view tests use the organization fixtures below.
"""
from __future__ import annotations

import pytest

from core.services.snapshots import (
    ROLE_DEPARTMENT_HEAD,
    ROLE_DEPUTY_DIRECTOR,
    ROLE_DIRECTOR,
    ROLE_STAFF,
)
from tests.factories import NOW


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def department(db):
    from core.models import Department
    return Department.objects.create(name='Administration', code='ADM')


@pytest.fixture
def make_user(db):
    from core.models import CustomUser

    def _make_user(username, role=ROLE_STAFF, department=None, **kwargs):
        return CustomUser.objects.create_user(
            username=username, password='secret123', role=role, department=department, **kwargs
        )
    return _make_user


@pytest.fixture
def org(department, make_user):
    """A director, a deputy, one department head and two staff members."""
    director = make_user('director', ROLE_DIRECTOR)
    deputy = make_user('deputy', ROLE_DEPUTY_DIRECTOR)
    department.assigned_deputy_director = deputy
    department.save(update_fields=['assigned_deputy_director'])
    return {
        'department': department,
        'director': director,
        'deputy': deputy,
        'head': make_user('head', ROLE_DEPARTMENT_HEAD, department),
        'staff': make_user('staff', ROLE_STAFF, department),
        'staff2': make_user('staff2', ROLE_STAFF, department),
    }
