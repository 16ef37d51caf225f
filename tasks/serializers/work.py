from rest_framework import serializers

from ..models import Task, TaskWorkLog


class TaskCreateSerializer(serializers.ModelSerializer):
    class Meta:
        model = Task
        fields = ("title", "description")


class TaskOutSerializer(serializers.ModelSerializer):
    class Meta:
        model = Task
        fields = ("id", "title", "description", "status", "created_at", "updated_at")
        read_only_fields = fields


class WorkActionInputSerializer(serializers.Serializer):
    action = serializers.ChoiceField(choices=[c for c, _ in TaskWorkLog.ACTION_CHOICES])


class TaskWorkLogOutSerializer(serializers.ModelSerializer):
    class Meta:
        model = TaskWorkLog
        fields = ("id", "task", "action", "at")
        read_only_fields = fields
