import logging
from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings

from customers.models import Customer, Plan
from ..exceptions import BillingError
from ..models import BillingCycle, Order
from .gateway import GatewayClient, build_receipt

log = logging.getLogger("assistdesk.billing.checkout")


class NoActiveCycle(BillingError):
    pass


class RateNotConfigured(BillingError):
    pass


def to_minor_units(amount_major) -> int:
    """Montant majeur (Decimal/float) -> unités mineures entières (x100, arrondi)."""
    return int((Decimal(str(amount_major)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def create_plan_order(customer: Customer, plan: Plan, client: GatewayClient | None = None) -> Order:
    client = client or GatewayClient()
    amount = to_minor_units(plan.monthly_price or 0)
    currency = plan.currency or settings.BILLING_PLAN_CURRENCY
    gw = client.create_order(
        amount=amount,
        currency=currency,
        receipt=build_receipt("p", customer.pk, tag=plan.name or "plan"),
        notes={"plan_id": str(plan.pk), "plan_name": plan.name, "customer_id": str(customer.pk)},
    )
    order = Order.objects.create(
        customer=customer,
        plan=plan,
        gateway_order_id=gw.id,
        amount=gw.amount,
        currency=gw.currency,
        status=Order.STATUS_PENDING,
        purpose=Order.PURPOSE_PLAN,
    )
    log.info("billing.order_created order=%s customer=%s plan=%s amount=%s %s",
             order.id, customer.pk, plan.pk, order.amount, order.currency)
    return order


def topup_rate(cycle: BillingCycle) -> Decimal:
    """Tarif horaire additionnel: snapshot du cycle, sinon plan.features (repli)."""
    rate = Decimal(cycle.addl_hourly_rate_snapshot or 0)
    if rate <= 0:
        rate = cycle.plan.additional_hourly_rate
    return rate


def create_topup_order(customer: Customer, hours, client: GatewayClient | None = None) -> Order:
    cycle = BillingCycle.objects.select_related("plan").filter(
        customer=customer, status=BillingCycle.STATUS_ACTIVE).order_by("-started_at").first()
    if cycle is None:
        raise NoActiveCycle("No active plan to top up")

    rate = topup_rate(cycle)
    if rate <= 0:
        raise RateNotConfigured("Additional hourly rate is not configured")

    client = client or GatewayClient()
    amount = to_minor_units(rate * Decimal(str(hours)))
    gw = client.create_order(
        amount=amount,
        currency=settings.BILLING_TOPUP_CURRENCY,
        receipt=build_receipt("topup", customer.pk),
    )
    order = Order.objects.create(
        customer=customer,
        plan_id=cycle.plan_id,
        gateway_order_id=gw.id,
        amount=gw.amount,
        currency=gw.currency,
        status=Order.STATUS_PENDING,
        purpose=Order.PURPOSE_TOPUP,
        raw={"hours": str(hours), "addl_rate": str(rate), "expires_at": cycle.expires_at.isoformat()},
    )
    log.info("billing.topup_created order=%s customer=%s hours=%s rate=%s", order.id, customer.pk, hours, rate)
    return order
