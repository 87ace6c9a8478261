import json
import logging

from django.contrib.auth.mixins import LoginRequiredMixin
from django.http import JsonResponse, QueryDict
from django.shortcuts import get_object_or_404
from django.utils import timezone
from django.views import View

from .forms import KpiFilterForm, LeadershipScoreForm
from .models import CustomUser, Department, Task, TaskAssignment
from .services.dismissals import DismissalThrottle, SessionDismissalStore
from .services.evaluation_service import ScoreOutOfRangeError, evaluate_task
from .services.evaluators import can_user_evaluate, resolve_evaluator
from .services.report_service import build_kpi_report, serialize_report
from .services.scoring import score_task
from .services.snapshots import ROLE_COLLABORATE, ROLE_DEPARTMENT_HEAD, ROLE_DEPUTY_DIRECTOR, ROLE_DIRECTOR
from .services.suggestions import build_suggestions
from .services.visibility import pending_count, recoverable_task_ids, rule_for, visible_task_ids

logger = logging.getLogger(__name__)


def _request_data(request):
    """Form or JSON payload, for POST as well as PATCH requests."""
    if request.method == 'POST' and request.content_type != 'application/json':
        return request.POST
    if request.content_type == 'application/json':
        try:
            payload = json.loads(request.body or b'{}')
        except ValueError:
            return None
        return payload if isinstance(payload, dict) else None
    return QueryDict(request.body)


def _organization():
    users = {u.pk: u.to_snapshot() for u in CustomUser.objects.only('id', 'role', 'department_id').order_by('id')}
    departments = {d.pk: d.to_snapshot() for d in Department.objects.all()}
    return users, departments


def _tasks_for(user, queryset):
    """Task rows a user's badge and lists are computed from."""
    if rule_for(user.to_snapshot()).organization_wide:
        return queryset
    return queryset.for_user(user)


class KpiStatsView(LoginRequiredMixin, View):
    """KPI statistics for a month or year, optionally for one department."""

    def get(self, request):
        form = KpiFilterForm(request.GET)
        if not form.is_valid():
            return JsonResponse({'errors': form.errors}, status=400)
        department = form.cleaned_data.get('department')
        report = build_kpi_report(
            form.get_period(),
            department_id=department.pk if department else None,
            now=timezone.now(),
        )
        return JsonResponse(serialize_report(report))


class TaskEvaluationView(LoginRequiredMixin, View):
    """
    Read the current completion score and cap of a task, or submit a
    leadership score for it. Only the evaluator of the task's lead may submit.
    """

    def get(self, request, task_id):
        task = get_object_or_404(Task.objects.alive().with_assignments(), pk=task_id)
        result = score_task(task.to_snapshot(), timezone.now())
        return JsonResponse({
            'task_id': task.pk,
            'leadership_score': str(task.leadership_score) if task.is_evaluated else None,
            'completion_score': result.completion_score,
            'leadership_cap': result.leadership_cap,
            'explanation': result.explanation,
        })

    def patch(self, request, task_id):
        task = get_object_or_404(Task.objects.alive().with_assignments(), pk=task_id)
        users, departments = _organization()
        if not can_user_evaluate(request.user.pk, task.to_snapshot(), users, departments):
            return JsonResponse({'error': 'You do not have permission to evaluate this task.'}, status=403)

        data = _request_data(request)
        if data is None:
            return JsonResponse({'error': 'Malformed request body.'}, status=400)
        form = LeadershipScoreForm(data)
        if not form.is_valid():
            return JsonResponse({'errors': form.errors}, status=400)

        now = timezone.now()
        try:
            persisted = evaluate_task(task, form.cleaned_data['score'], evaluator=request.user, now=now)
        except ScoreOutOfRangeError as exc:
            return JsonResponse({'error': exc.messages[0], 'code': exc.code}, status=400)

        result = score_task(task.to_snapshot(), now)
        return JsonResponse({
            'task_id': task.pk,
            'leadership_score': str(persisted),
            'completion_score': result.completion_score,
            'leadership_cap': result.leadership_cap,
            'explanation': result.explanation,
        })

    def post(self, request, task_id):
        return self.patch(request, task_id)


class AssignmentEvaluatorsView(LoginRequiredMixin, View):
    def get(self, request, task_id):
        task = get_object_or_404(Task.objects.alive().with_assignments(), pk=task_id)
        snapshot = task.to_snapshot()
        users, departments = _organization()
        return JsonResponse({
            'task_id': task.pk,
            'evaluators': [
                {
                    'assignment_id': assignment.id,
                    'user_id': assignment.user_id,
                    'role': assignment.role,
                    'evaluator_id': resolve_evaluator(snapshot, assignment, users, departments),
                }
                for assignment in snapshot.assignments
            ],
        })


class TaskBadgeView(LoginRequiredMixin, View):
    """Pending-work count and visible task ids for the navigation badge."""

    def get(self, request):
        user = request.user.to_snapshot()
        tasks = [t.to_snapshot() for t in _tasks_for(request.user, Task.objects.alive().with_assignments())]
        return JsonResponse({
            'pending_count': pending_count(user, tasks),
            'visible_task_ids': visible_task_ids(user, tasks),
        })


class TrashView(LoginRequiredMixin, View):
    def get(self, request):
        user = request.user.to_snapshot()
        tasks = [t.to_snapshot() for t in Task.objects.deleted().with_assignments()]
        return JsonResponse({'task_ids': recoverable_task_ids(user, tasks)})


def _can_delete(user, task):
    return task.created_by_id == user.pk or user.role in (ROLE_DIRECTOR, ROLE_DEPUTY_DIRECTOR)


class DeleteTaskView(LoginRequiredMixin, View):
    def post(self, request, task_id):
        task = get_object_or_404(Task.objects.alive(), pk=task_id)
        if not _can_delete(request.user, task):
            return JsonResponse({'error': 'You do not have permission to delete this task.'}, status=403)
        task.soft_delete(request.user)
        logger.info("Task %s moved to trash by user %s", task.pk, request.user.pk)
        return JsonResponse({'success': True, 'task_id': task.pk})


class RestoreTaskView(LoginRequiredMixin, View):
    def post(self, request, task_id):
        task = get_object_or_404(Task.objects.deleted(), pk=task_id)
        if not _can_delete(request.user, task):
            return JsonResponse({'error': 'You do not have permission to restore this task.'}, status=403)
        task.restore()
        logger.info("Task %s restored by user %s", task.pk, request.user.pk)
        return JsonResponse({'success': True, 'task_id': task.pk})


class CollaborationCompleteView(LoginRequiredMixin, View):
    """Lets a collaborator mark (or unmark) their own part of a task as done."""

    def post(self, request, task_id, assignment_id):
        assignment = get_object_or_404(TaskAssignment, pk=assignment_id, task_id=task_id)
        if assignment.user_id != request.user.pk:
            return JsonResponse({'error': 'You do not have permission to update this assignment.'}, status=403)
        if assignment.role != ROLE_COLLABORATE:
            return JsonResponse({'error': 'Only collaborators can mark collaboration complete.'}, status=400)
        data = _request_data(request)
        if data is None:
            return JsonResponse({'error': 'Malformed request body.'}, status=400)
        value = data.get('collaboration_completed', True)
        if isinstance(value, str):
            value = value.lower() in ('1', 'true', 'on', 'yes')
        assignment.collaboration_completed = bool(value)
        assignment.save(update_fields=['collaboration_completed'])
        return JsonResponse({
            'assignment_id': assignment.pk,
            'collaboration_completed': assignment.collaboration_completed,
        })


class SuggestionBlacklistView(LoginRequiredMixin, View):
    def get(self, request):
        throttle = DismissalThrottle(SessionDismissalStore(request.session))
        return JsonResponse({'blacklist': sorted(throttle.current_blacklist())})


class DismissSuggestionView(LoginRequiredMixin, View):
    def post(self, request, category):
        throttle = DismissalThrottle(SessionDismissalStore(request.session))
        count = throttle.record_dismissal(category)
        return JsonResponse({
            'category': category,
            'dismiss_count': count,
            'blacklisted': throttle.is_blacklisted(category),
        })


class SuggestionsView(LoginRequiredMixin, View):
    """Dashboard suggestions for the current user, minus blacklisted categories."""

    def get(self, request):
        user = request.user.to_snapshot()
        tasks = Task.objects.alive().with_assignments()
        if user.role == ROLE_DEPARTMENT_HEAD and user.department_id is not None:
            tasks = tasks.for_department(user.department_id)
        else:
            tasks = _tasks_for(request.user, tasks)
        users, _ = _organization()
        suggestions = build_suggestions(user, [t.to_snapshot() for t in tasks], timezone.now(), users)
        throttle = DismissalThrottle(SessionDismissalStore(request.session))
        return JsonResponse({
            'suggestions': throttle.filter_suggestions(s.as_dict() for s in suggestions),
        })
