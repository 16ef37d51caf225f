from django.shortcuts import get_object_or_404
from django.db import transaction
from rest_framework import viewsets, status, mixins
from rest_framework.permissions import IsAdminUser
from rest_framework.decorators import action
from rest_framework.response import Response

from ..models import Customer, Plan
from ..serializers.customer import CustomerOutSerializer, CustomerUpdateSerializer
from ..serializers.plan import PlanOutSerializer, PlanCreateUpdateSerializer


class CustomerAdminViewSet(viewsets.GenericViewSet,
                           mixins.ListModelMixin,
                           mixins.RetrieveModelMixin):
    """
    Super-admin: consultation des clients + actions (suspend/resume).
    """
    permission_classes = [IsAdminUser]
    serializer_class = CustomerOutSerializer
    queryset = Customer.objects.select_related("user").all().order_by("-created_at")

    @transaction.atomic
    def partial_update(self, request, pk=None):
        customer = get_object_or_404(Customer, pk=pk)
        ser = CustomerUpdateSerializer(instance=customer, data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        ser.save()
        return Response(CustomerOutSerializer(customer).data, status=status.HTTP_200_OK)

    @action(detail=True, methods=["post"])
    def suspend(self, request, pk=None):
        customer = get_object_or_404(Customer, pk=pk)
        customer.status = Customer.STATUS_SUSPENDED
        customer.save(update_fields=["status", "updated_at"])
        return Response({"detail": "customer suspended"}, status=status.HTTP_200_OK)

    @action(detail=True, methods=["post"])
    def resume(self, request, pk=None):
        customer = get_object_or_404(Customer, pk=pk)
        customer.status = Customer.STATUS_ACTIVE
        customer.save(update_fields=["status", "updated_at"])
        return Response({"detail": "customer resumed"}, status=status.HTTP_200_OK)


class PlanAdminViewSet(viewsets.GenericViewSet,
                       mixins.ListModelMixin,
                       mixins.RetrieveModelMixin):
    """
    Super-admin: gestion du catalogue de plans.
    Les cycles en cours ne sont pas affectés: leurs termes sont figés à l'activation.
    """
    permission_classes = [IsAdminUser]
    queryset = Plan.objects.all().order_by("monthly_price")

    def list(self, request, *args, **kwargs):
        qs = self.get_queryset()
        return Response(PlanOutSerializer(qs, many=True).data)

    def retrieve(self, request, pk=None):
        p = get_object_or_404(self.get_queryset(), pk=pk)
        return Response(PlanOutSerializer(p).data)

    @transaction.atomic
    def create(self, request):
        ser = PlanCreateUpdateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        p = ser.save()
        return Response(PlanOutSerializer(p).data, status=status.HTTP_201_CREATED)

    @transaction.atomic
    def partial_update(self, request, pk=None):
        p = get_object_or_404(Plan, pk=pk)
        ser = PlanCreateUpdateSerializer(instance=p, data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        ser.save()
        return Response(PlanOutSerializer(p).data, status=status.HTTP_200_OK)
