from django.contrib import admin
from .models import Task, TaskWorkLog


@admin.register(Task)
class TaskAdmin(admin.ModelAdmin):
    list_display = ("id", "customer", "title", "status", "created_at")
    list_filter = ("status",)
    search_fields = ("title", "customer__email")


@admin.register(TaskWorkLog)
class TaskWorkLogAdmin(admin.ModelAdmin):
    list_display = ("id", "task", "action", "at")
    list_filter = ("action",)
    readonly_fields = ("task", "action", "at")
