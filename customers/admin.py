from django.contrib import admin
from .models import Customer, Plan


@admin.register(Plan)
class PlanAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "slug", "active", "monthly_price", "currency", "quota_hours", "created_at")
    list_filter = ("active", "currency")
    search_fields = ("name", "slug")
    readonly_fields = ("created_at",)


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ("id", "email", "user", "status", "created_at", "updated_at")
    list_filter = ("status",)
    search_fields = ("email", "user__username")
    readonly_fields = ("created_at", "updated_at")
