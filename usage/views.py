import math

from django.utils.timezone import now
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView
from drf_spectacular.utils import extend_schema, OpenApiExample, OpenApiResponse

from billing.models import BillingCycle
from core.errors import error_response
from limits.throttling import CustomerBurstThrottle
from .services.quota import cycle_usage


@extend_schema(
    tags=["Billing"],
    responses={
        200: OpenApiResponse(description="Consommation du cycle courant"),
        404: OpenApiResponse(description="NO_ACTIVE_PLAN"),
        429: OpenApiResponse(description="Throttled"),
    },
    examples=[
        OpenApiExample(
            "Réponse",
            value={
                "ok": True,
                "period": {"start": "2026-10-01T00:00:00Z", "end": "2026-11-01T00:00:00Z", "days_left": 12},
                "usage": {
                    "included_hours": 10.0, "rollover_hours_applied": 2.0, "topup_hours": 0.0,
                    "used_hours": 9.0, "remaining_hours": 3.0, "overage_hours": 0.0,
                    "addl_hourly_rate": 15.0, "overage_cost_usd": 0.0,
                },
            },
            response_only=True,
        ),
    ],
)
class UsageSummaryView(APIView):
    """
    GET /billing/usage
    Heures consommées sur le cycle actif, recalculées depuis le journal de travail.
    """
    throttle_classes = [CustomerBurstThrottle]

    def get(self, request):
        cycle = BillingCycle.objects.active_for(request.customer.id)
        if cycle is None:
            return error_response("NO_ACTIVE_PLAN", "No active plan", status.HTTP_404_NOT_FOUND)

        current = now()
        summary = cycle_usage(cycle, current).rounded()
        days_left = max(0, math.ceil((cycle.expires_at - current).total_seconds() / 86400))

        return Response({
            "ok": True,
            "period": {"start": cycle.started_at, "end": cycle.expires_at, "days_left": days_left},
            "usage": {
                "included_hours": float(cycle.included_hours),
                "rollover_hours_applied": float(cycle.rollover_hours_applied),
                "topup_hours": float(cycle.topup_hours),
                "used_hours": summary["used_hours"],
                "remaining_hours": summary["remaining_hours"],
                "overage_hours": summary["overage_hours"],
                "addl_hourly_rate": round(float(cycle.addl_hourly_rate_snapshot), 2),
                "overage_cost_usd": summary["overage_cost"],
            },
        }, status=status.HTTP_200_OK)
