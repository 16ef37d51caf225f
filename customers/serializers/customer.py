from rest_framework import serializers
from ..models import Customer


class CustomerOutSerializer(serializers.ModelSerializer):
    active_cycle = serializers.SerializerMethodField()

    class Meta:
        model = Customer
        fields = ("id", "user", "email", "status", "metadata", "active_cycle", "created_at", "updated_at")
        read_only_fields = fields

    def get_active_cycle(self, obj: Customer):
        from billing.models import BillingCycle

        cycle = BillingCycle.objects.active_for(obj.pk)
        if cycle is None:
            return None
        return {
            "id": cycle.id,
            "plan_id": cycle.plan_id,
            "started_at": cycle.started_at,
            "expires_at": cycle.expires_at,
        }


class CustomerUpdateSerializer(serializers.ModelSerializer):
    class Meta:
        model = Customer
        fields = ("email", "metadata", "status")
