from rest_framework import serializers
from ..models import Plan


class PlanOutSerializer(serializers.ModelSerializer):
    class Meta:
        model = Plan
        fields = (
            "id", "name", "slug", "active",
            "monthly_price", "currency", "quota_hours",
            "features", "created_at",
        )
        read_only_fields = ("id", "created_at")


class PlanCreateUpdateSerializer(serializers.ModelSerializer):
    class Meta:
        model = Plan
        fields = (
            "name", "slug", "active",
            "monthly_price", "currency", "quota_hours",
            "features",
        )

    def validate_features(self, value):
        pct = value.get("rollover_percent")
        if pct is not None and not (isinstance(pct, (int, float)) and 0 <= pct <= 100):
            raise serializers.ValidationError("rollover_percent must be a number between 0 and 100")
        return value
