from rest_framework import serializers

from audit.models import AuditLog


class AuditLogOutSerializer(serializers.ModelSerializer):
    class Meta:
        model = AuditLog
        fields = ("id", "actor", "action", "entity_type", "entity_id", "meta", "created_at")
        read_only_fields = fields
