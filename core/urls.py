from django.urls import path
from . import views

app_name = 'core'

urlpatterns = [
    # --- KPI ---
    path('kpi/stats/', views.KpiStatsView.as_view(), name='kpi-stats'),

    # --- Tasks ---
    path('tasks/badge/', views.TaskBadgeView.as_view(), name='task-badge'),
    path('tasks/trash/', views.TrashView.as_view(), name='task-trash'),
    path('tasks/<int:task_id>/evaluation/', views.TaskEvaluationView.as_view(), name='task-evaluation'),
    path('tasks/<int:task_id>/evaluators/', views.AssignmentEvaluatorsView.as_view(), name='task-evaluators'),
    path('tasks/<int:task_id>/delete/', views.DeleteTaskView.as_view(), name='delete-task'),
    path('tasks/<int:task_id>/restore/', views.RestoreTaskView.as_view(), name='restore-task'),
    path(
        'tasks/<int:task_id>/assignments/<int:assignment_id>/collaboration-complete/',
        views.CollaborationCompleteView.as_view(),
        name='collaboration-complete',
    ),

    # --- Suggestions ---
    path('suggestions/', views.SuggestionsView.as_view(), name='suggestions'),
    path('suggestions/blacklist/', views.SuggestionBlacklistView.as_view(), name='suggestion-blacklist'),
    path('suggestions/<slug:category>/dismiss/', views.DismissSuggestionView.as_view(), name='dismiss-suggestion'),
]
