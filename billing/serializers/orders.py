from decimal import Decimal

from rest_framework import serializers

from ..models import BillingCycle, Order


class CreateOrderInputSerializer(serializers.Serializer):
    plan_id = serializers.IntegerField(required=False)
    plan_slug = serializers.SlugField(required=False)
    plan_name = serializers.CharField(required=False, max_length=100)

    def validate(self, attrs):
        if not any(attrs.get(k) for k in ("plan_id", "plan_slug", "plan_name")):
            raise serializers.ValidationError("Provide plan_id, plan_slug or plan_name")
        return attrs


class CreateTopupInputSerializer(serializers.Serializer):
    hours = serializers.DecimalField(max_digits=6, decimal_places=2, min_value=Decimal("0.01"))


class VerifyPaymentInputSerializer(serializers.Serializer):
    internal_order_id = serializers.IntegerField()
    gateway_order_id = serializers.CharField(max_length=64)
    payment_id = serializers.CharField(max_length=64)
    signature = serializers.CharField(max_length=256)


class OrderOutSerializer(serializers.ModelSerializer):
    class Meta:
        model = Order
        fields = ("id", "customer", "plan", "gateway_order_id", "payment_id", "amount", "currency",
                  "status", "purpose", "paid_at", "created_at")
        read_only_fields = fields


class BillingCycleOutSerializer(serializers.ModelSerializer):
    class Meta:
        model = BillingCycle
        fields = ("id", "customer", "plan", "order", "status", "started_at", "expires_at", "ended_at",
                  "included_hours", "hourly_rate_snapshot", "addl_hourly_rate_snapshot",
                  "rollover_percent_snapshot", "rollover_hours_applied", "topup_hours")
        read_only_fields = fields
