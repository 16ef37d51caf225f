from django.contrib import admin
from .models import BillingCycle, Order


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ("id", "customer", "plan", "purpose", "status", "amount", "currency", "gateway_order_id", "paid_at")
    list_filter = ("status", "purpose", "currency")
    search_fields = ("gateway_order_id", "payment_id", "customer__email")
    readonly_fields = ("created_at", "updated_at", "paid_at")


@admin.register(BillingCycle)
class BillingCycleAdmin(admin.ModelAdmin):
    list_display = ("id", "customer", "plan", "status", "started_at", "expires_at",
                    "included_hours", "rollover_hours_applied", "topup_hours")
    list_filter = ("status", "plan")
    search_fields = ("customer__email",)
    readonly_fields = ("created_at",)
