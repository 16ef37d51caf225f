from django.shortcuts import get_object_or_404
from rest_framework import status, viewsets, mixins
from rest_framework.decorators import action
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema, OpenApiResponse

from core.errors import error_response
from .models import Task
from .serializers.work import (
    TaskCreateSerializer, TaskOutSerializer, WorkActionInputSerializer, TaskWorkLogOutSerializer,
)
from .services.work import InvalidTransition, record_work


class TaskViewSet(viewsets.GenericViewSet,
                  mixins.ListModelMixin,
                  mixins.RetrieveModelMixin):
    """
    Tâches du client courant + journal de travail (start/pause/resume/complete).
    """
    serializer_class = TaskOutSerializer

    def get_queryset(self):
        return Task.objects.filter(customer=self.request.customer).order_by("-created_at")

    @extend_schema(request=TaskCreateSerializer, responses={201: TaskOutSerializer})
    def create(self, request):
        ser = TaskCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        task = ser.save(customer=request.customer)
        return Response(TaskOutSerializer(task).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        request=WorkActionInputSerializer,
        responses={
            201: OpenApiResponse(response=TaskWorkLogOutSerializer),
            409: OpenApiResponse(description="INVALID_TRANSITION"),
        },
    )
    @action(detail=True, methods=["post"])
    def work(self, request, pk=None):
        task = get_object_or_404(self.get_queryset(), pk=pk)
        ser = WorkActionInputSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        try:
            log = record_work(task, ser.validated_data["action"])
        except InvalidTransition as e:
            return error_response("INVALID_TRANSITION", str(e), status.HTTP_409_CONFLICT)
        return Response(TaskWorkLogOutSerializer(log).data, status=status.HTTP_201_CREATED)
