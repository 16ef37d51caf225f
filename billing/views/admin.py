from rest_framework import viewsets, mixins
from rest_framework.permissions import IsAdminUser

from ..models import BillingCycle, Order
from ..serializers.orders import BillingCycleOutSerializer, OrderOutSerializer


class OrderAdminViewSet(viewsets.GenericViewSet, mixins.ListModelMixin, mixins.RetrieveModelMixin):
    """
    Super-admin: lecture des commandes (réconciliation manuelle).
    """
    permission_classes = [IsAdminUser]
    serializer_class = OrderOutSerializer
    queryset = Order.objects.select_related("customer", "plan").order_by("-created_at")
    filterset_fields = ("customer", "status", "purpose", "gateway_order_id")


class BillingCycleAdminViewSet(viewsets.GenericViewSet, mixins.ListModelMixin, mixins.RetrieveModelMixin):
    """
    Super-admin: lecture des cycles de facturation.
    """
    permission_classes = [IsAdminUser]
    serializer_class = BillingCycleOutSerializer
    queryset = BillingCycle.objects.select_related("customer", "plan").order_by("-started_at")
    filterset_fields = ("customer", "status", "plan")
