import json
import logging

from django.conf import settings
from django.http import Http404
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView
from drf_spectacular.utils import extend_schema, OpenApiExample, OpenApiResponse

from audit.models import record as audit
from core.errors import error_response
from customers.models import Plan
from limits.throttling import CustomerBurstThrottle
from ..exceptions import GatewayError, GatewayNotConfigured, OrderNotPayable
from ..models import BillingCycle, Order
from ..serializers.orders import (
    CreateOrderInputSerializer, CreateTopupInputSerializer, VerifyPaymentInputSerializer,
)
from ..services.activation import confirm_order_paid, mark_order_failed
from ..services.checkout import NoActiveCycle, RateNotConfigured, create_plan_order, create_topup_order
from ..services.gateway import HDR_WEBHOOK_SIGN, verify_payment_signature, verify_webhook_signature

log = logging.getLogger("assistdesk.billing.views")

SUCCESS_EVENTS = {"payment.captured", "order.paid"}
FAILURE_EVENTS = {"payment.failed"}


def _gateway_error(e: Exception) -> Response:
    if isinstance(e, GatewayNotConfigured):
        return error_response("CONFIG_MISSING", "Payment gateway keys missing", status.HTTP_500_INTERNAL_SERVER_ERROR)
    return error_response("GATEWAY_UNAVAILABLE", "Payment gateway error, try again",
                          status.HTTP_503_SERVICE_UNAVAILABLE)


@extend_schema(
    tags=["Billing"],
    request=CreateOrderInputSerializer,
    responses={
        201: OpenApiResponse(description="Commande passerelle créée (pending)"),
        404: OpenApiResponse(description="PLAN_NOT_FOUND"),
        503: OpenApiResponse(description="GATEWAY_UNAVAILABLE"),
    },
    examples=[OpenApiExample("Requête", value={"plan_slug": "starter"}, request_only=True)],
)
class CreateOrderView(APIView):
    """
    POST /billing/orders → commande Razorpay + Order pending (purpose=plan)
    """
    def post(self, request):
        ser = CreateOrderInputSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        plans = Plan.objects.filter(active=True)
        if data.get("plan_id"):
            plan = plans.filter(pk=data["plan_id"]).first()
        elif data.get("plan_slug"):
            plan = plans.filter(slug=data["plan_slug"]).first()
        else:
            plan = plans.filter(name__iexact=data["plan_name"]).first()
        if plan is None:
            return error_response("PLAN_NOT_FOUND", "Plan not found", status.HTTP_404_NOT_FOUND)

        try:
            order = create_plan_order(request.customer, plan)
        except (GatewayError, GatewayNotConfigured) as e:
            return _gateway_error(e)

        return Response({
            "ok": True,
            "order_id": order.gateway_order_id,
            "internal_order_id": order.id,
            "amount": order.amount,
            "currency": order.currency,
            "key_id": settings.RAZORPAY_KEY_ID,
            "customer": {"id": request.customer.id, "email": request.customer.email},
            "plan": {"id": plan.id, "name": plan.name},
        }, status=status.HTTP_201_CREATED)


@extend_schema(
    tags=["Billing"],
    request=CreateTopupInputSerializer,
    responses={
        201: OpenApiResponse(description="Commande de top-up créée (pending)"),
        400: OpenApiResponse(description="NO_ACTIVE_PLAN"),
        429: OpenApiResponse(description="Throttled"),
    },
    examples=[OpenApiExample("Requête", value={"hours": 5}, request_only=True)],
)
class CreateTopupView(APIView):
    """
    POST /billing/topups → heures supplémentaires au tarif additionnel du cycle courant
    """
    throttle_classes = [CustomerBurstThrottle]

    def post(self, request):
        ser = CreateTopupInputSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        hours = ser.validated_data["hours"]

        try:
            order = create_topup_order(request.customer, hours)
        except NoActiveCycle as e:
            return error_response("NO_ACTIVE_PLAN", str(e), status.HTTP_400_BAD_REQUEST)
        except RateNotConfigured as e:
            return error_response("RATE_NOT_CONFIGURED", str(e), status.HTTP_500_INTERNAL_SERVER_ERROR)
        except (GatewayError, GatewayNotConfigured) as e:
            return _gateway_error(e)

        return Response({
            "ok": True,
            "internal_order_id": order.id,
            "gateway": {"order_id": order.gateway_order_id, "amount": order.amount, "currency": order.currency},
            "description": f"Top-up {hours}h @ ${order.raw['addl_rate']}/h ({order.currency})",
        }, status=status.HTTP_201_CREATED)


@extend_schema(
    tags=["Billing"],
    request=VerifyPaymentInputSerializer,
    responses={
        200: OpenApiResponse(description="Paiement confirmé, cycle actif renvoyé"),
        400: OpenApiResponse(description="ORDER_MISMATCH | INVALID_SIGNATURE"),
        403: OpenApiResponse(description="FORBIDDEN"),
        404: OpenApiResponse(description="ORDER_NOT_FOUND"),
    },
)
class VerifyPaymentView(APIView):
    """
    POST /billing/verify-payment : confirmation côté client après checkout.
    Idempotent: un second appel renvoie le même résultat sans nouvelle activation.
    """
    def post(self, request):
        ser = VerifyPaymentInputSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        secret = settings.RAZORPAY_KEY_SECRET
        if not secret:
            return error_response("CONFIG_MISSING", "Payment gateway secret missing",
                                  status.HTTP_500_INTERNAL_SERVER_ERROR)

        order = Order.objects.select_related("plan").filter(pk=data["internal_order_id"]).first()
        if order is None:
            return error_response("ORDER_NOT_FOUND", "Order not found", status.HTTP_404_NOT_FOUND)
        if order.customer_id != request.customer.id:
            return error_response("FORBIDDEN", "Order does not belong to this customer", status.HTTP_403_FORBIDDEN)
        if order.gateway_order_id != data["gateway_order_id"]:
            return error_response("ORDER_MISMATCH", "Order mismatch", status.HTTP_400_BAD_REQUEST)

        if not verify_payment_signature(data["gateway_order_id"], data["payment_id"], data["signature"], secret):
            log.warning("billing.invalid_payment_signature order=%s customer=%s", order.id, order.customer_id)
            return error_response("INVALID_SIGNATURE", "Invalid signature", status.HTTP_400_BAD_REQUEST)

        try:
            result = confirm_order_paid(order, payment_id=data["payment_id"], source="client")
        except OrderNotPayable as e:
            return error_response("ORDER_NOT_PAYABLE", str(e), status.HTTP_409_CONFLICT)

        return Response({"ok": True, **result.to_dict()}, status=status.HTTP_200_OK)


@extend_schema(tags=["Billing"], responses={200: OpenApiResponse(description="Statut de la commande")})
class OrderStatusView(APIView):
    """
    GET /billing/orders/{id}/status : interrogé en boucle par le client pendant la confirmation.
    """
    def get(self, request, pk: int):
        order = get_object_or_404(Order, pk=pk)
        if order.customer_id != request.customer.id:
            return error_response("FORBIDDEN", "Order does not belong to this customer", status.HTTP_403_FORBIDDEN)

        active_plan = None
        if order.status == Order.STATUS_PAID:
            cycle = BillingCycle.objects.active_for(order.customer_id)
            if cycle is not None:
                active_plan = {"plan_id": cycle.plan_id, "cycle_id": cycle.id}

        return Response({
            "ok": True,
            "status": order.status,
            "paid_at": order.paid_at,
            "active_plan": active_plan,
        }, status=status.HTTP_200_OK)

    def handle_exception(self, exc):
        if isinstance(exc, (APIException, Http404)):
            return super().handle_exception(exc)
        # Les erreurs inattendues restent "douces" pour que le client continue d'interroger
        log.exception("billing.order_status_failed")
        return Response({"ok": False, "status": "unknown", "error": "temporarily unavailable"},
                        status=status.HTTP_200_OK)


def _object(value) -> dict:
    return value if isinstance(value, dict) else {}


def _extract_webhook_ids(payload: dict):
    # payment.* => payload.payment.entity.order_id ; order.paid => payload.order.entity.id
    inner = _object(payload.get("payload"))
    payment = _object(_object(inner.get("payment")).get("entity"))
    order = _object(_object(inner.get("order")).get("entity"))
    payment_id = payment.get("id")
    return payment.get("order_id") or order.get("id"), payment_id if isinstance(payment_id, str) else ""


@extend_schema(tags=["Billing"], request=None, responses={200: OpenApiResponse(description="ok")})
class GatewayWebhookView(APIView):
    """
    POST /billing/webhook : callback signé de la passerelle (X-Razorpay-Signature).
    Pas d'auth session: seule la signature HMAC du corps brut fait foi.
    """
    authentication_classes = []
    permission_classes = [AllowAny]

    def post(self, request):
        secret = settings.RAZORPAY_WEBHOOK_SECRET
        if not secret:
            return error_response("CONFIG_MISSING", "Webhook secret missing", status.HTTP_500_INTERNAL_SERVER_ERROR)

        body = request.body
        if not verify_webhook_signature(body, request.META.get(HDR_WEBHOOK_SIGN), secret):
            log.warning("billing.invalid_webhook_signature")
            return error_response("INVALID_SIGNATURE", "Invalid signature", status.HTTP_400_BAD_REQUEST)

        try:
            payload = json.loads(body)
        except ValueError:
            return error_response("INVALID_PAYLOAD", "Body is not valid JSON", status.HTTP_400_BAD_REQUEST)
        if not isinstance(payload, dict):
            return error_response("INVALID_PAYLOAD", "Body must be a JSON object", status.HTTP_400_BAD_REQUEST)

        event = payload.get("event")
        gateway_order_id, payment_id = _extract_webhook_ids(payload)
        if not gateway_order_id or not isinstance(gateway_order_id, str):
            return error_response("INVALID_PAYLOAD", "order_id not found in webhook", status.HTTP_400_BAD_REQUEST)

        order = Order.objects.select_related("plan").filter(gateway_order_id=gateway_order_id).first()
        if order is None:
            audit("gateway_webhook_unknown_order", entity_type="order",
                  meta={"gateway_order_id": gateway_order_id, "event": event})
            return Response({"ok": True})

        if event in SUCCESS_EVENTS:
            try:
                confirm_order_paid(order, payment_id=payment_id, payload=payload, source="webhook")
            except OrderNotPayable:
                log.warning("billing.webhook_paid_for_failed_order order=%s event=%s", order.id, event)
                audit("paid_after_failure", actor_id=order.customer_id, entity_type="order", entity_id=order.id,
                      meta={"gateway_order_id": gateway_order_id, "payment_id": payment_id, "event": event})
        elif event in FAILURE_EVENTS:
            mark_order_failed(order, payload=payload, reason=event)
        else:
            log.info("billing.webhook_ignored order=%s event=%s", order.id, event)

        return Response({"ok": True})
