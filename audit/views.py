from rest_framework import viewsets, mixins
from rest_framework.permissions import IsAdminUser

from .models import AuditLog
from .serializers.audit import AuditLogOutSerializer


class AuditLogAdminViewSet(viewsets.GenericViewSet, mixins.ListModelMixin, mixins.RetrieveModelMixin):
    """
    Super-admin: lecture du journal d'audit (filtrable par action/acteur/entité).
    """
    permission_classes = [IsAdminUser]
    serializer_class = AuditLogOutSerializer
    queryset = AuditLog.objects.all().order_by("-created_at")
    filterset_fields = ("action", "actor", "entity_type", "entity_id")
