from core.models import Comment, CustomUser, Department, ProgressUpdate, Task, TaskAssignment
from core.services.scoring import score_task
from django.contrib import admin
from django.contrib.auth.admin import UserAdmin
from django.utils import timezone

# Register your models here.

class CustomUserAdmin(UserAdmin):
    list_display = ['username', 'email', 'first_name', 'last_name', 'role', 'department', 'position', 'is_active']
    list_filter = ['role', 'department', 'is_active']
    search_fields = ['username', 'email', 'first_name', 'last_name']
    ordering = ['username']
    list_select_related = ('department',)

    fieldsets = UserAdmin.fieldsets + (
        ('Organization', {'fields': ('role', 'department', 'position')}),
    )

    add_fieldsets = UserAdmin.add_fieldsets + (
        ('Organization', {'fields': ('role', 'department', 'position', 'email')}),
    )


class DepartmentAdmin(admin.ModelAdmin):
    list_display = ['name', 'code', 'assigned_deputy_director', 'created_at']
    search_fields = ['name', 'code']
    readonly_fields = ['created_at']
    ordering = ['name']
    list_select_related = ('assigned_deputy_director',)


class TaskAssignmentInline(admin.TabularInline):
    model = TaskAssignment
    extra = 0
    fields = ['user', 'role', 'collaboration_completed']


class TaskAdmin(admin.ModelAdmin):
    list_display = [
        'title', 'status', 'deadline', 'completed_at', 'progress',
        'completion_score', 'leadership_cap', 'leadership_score', 'evaluated_by', 'deleted_at',
    ]
    search_fields = ['title', 'created_by__username']
    list_filter = ['status', 'deadline', 'deleted_at']
    readonly_fields = [
        'completed_at', 'completion_score', 'leadership_cap', 'cap_explanation',
        'evaluated_by', 'evaluated_at', 'deleted_at', 'deleted_by', 'created_at', 'updated_at',
    ]
    list_select_related = ('evaluated_by', 'created_by')
    inlines = [TaskAssignmentInline]
    date_hierarchy = 'deadline'

    fieldsets = (
        ('Task', {
            'fields': ('title', 'description', 'created_by')
        }),
        ('Progress', {
            'fields': ('status', 'deadline', 'progress', 'completed_at')
        }),
        ('Evaluation', {
            'fields': ('completion_score', 'leadership_cap', 'cap_explanation',
                       'leadership_score', 'evaluated_by', 'evaluated_at')
        }),
        ('Metadata', {
            'fields': ('deleted_at', 'deleted_by', 'created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    def get_queryset(self, request):
        return super().get_queryset(request).prefetch_related('assignments')

    def _score(self, obj):
        return score_task(obj.to_snapshot(), timezone.now())

    @admin.display(description='Completion score')
    def completion_score(self, obj):
        if obj.pk is None:
            return '-'
        return self._score(obj).completion_score

    @admin.display(description='Leadership cap')
    def leadership_cap(self, obj):
        if obj.pk is None:
            return '-'
        return self._score(obj).leadership_cap

    @admin.display(description='Cap')
    def cap_explanation(self, obj):
        if obj.pk is None:
            return '-'
        return self._score(obj).explanation


class ProgressUpdateAdmin(admin.ModelAdmin):
    list_display = ['task', 'user', 'progress_percent', 'created_at']
    search_fields = ['task__title', 'user__username', 'content']
    date_hierarchy = 'created_at'
    list_select_related = ('task', 'user')


class CommentAdmin(admin.ModelAdmin):
    list_display = ['task', 'user', 'created_at']
    search_fields = ['task__title', 'user__username', 'content']
    date_hierarchy = 'created_at'
    list_select_related = ('task', 'user')


admin.site.register(CustomUser, CustomUserAdmin)
admin.site.register(Department, DepartmentAdmin)
admin.site.register(Task, TaskAdmin)
admin.site.register(TaskAssignment)
admin.site.register(ProgressUpdate, ProgressUpdateAdmin)
admin.site.register(Comment, CommentAdmin)
