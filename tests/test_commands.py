import json
from io import StringIO

import pytest
from django.core.management import CommandError, call_command

from core.models import CustomUser, Department, Task

pytestmark = pytest.mark.django_db


def run(*args, **kwargs):
    out = StringIO()
    call_command(*args, stdout=out, **kwargs)
    return out.getvalue()


def test_seed_demo_data_is_idempotent():
    run('seed_demo_data')
    counts = (Department.objects.count(), CustomUser.objects.count(), Task.objects.count())

    output = run('seed_demo_data')

    assert (Department.objects.count(), CustomUser.objects.count(), Task.objects.count()) == counts
    assert 'Task already exists' in output
    assert Department.objects.get(code='ADM').assigned_deputy_director.username == 'deputy'


def test_kpi_report_prints_sections():
    run('seed_demo_data')
    output = run('kpi_report', '--department', 'ADM')
    assert 'Overall:' in output
    assert 'By department:' in output
    assert 'Administration' in output


def test_kpi_report_rejects_unknown_department():
    with pytest.raises(CommandError):
        run('kpi_report', '--department', 'NOPE')


def test_kpi_report_rejects_bad_month():
    with pytest.raises(CommandError):
        run('kpi_report', '--month', '13')


def test_suggestions_command_records_dismissals(tmp_path):
    state = tmp_path / 'dismissals.json'
    for _ in range(3):
        output = run('suggestions', 'adm_staff1', '--dismiss', 'overdue_alert', '--state-file', str(state))
    assert 'hidden from now on' in output
    assert json.loads(state.read_text()) == {'overdue_alert': 3}


def test_suggestions_command_hides_blacklisted_categories(tmp_path):
    run('seed_demo_data')
    state = tmp_path / 'dismissals.json'
    state.write_text(json.dumps({'overdue_alert': 3}))

    output = run('suggestions', 'adm_staff1', '--state-file', str(state))

    assert 'overdue_alert' not in output
    assert 'kpi_improvement' in output


def test_createsu_uses_environment(monkeypatch):
    monkeypatch.setenv('DJANGO_SUPERUSER_USERNAME', 'root')
    monkeypatch.setenv('DJANGO_SUPERUSER_EMAIL', 'root@example.com')
    monkeypatch.setenv('DJANGO_SUPERUSER_PASSWORD', 'pass12345')

    assert 'Superuser created.' in run('createsu')
    assert 'Superuser already exists.' in run('createsu')
    assert CustomUser.objects.get(username='root').is_superuser
