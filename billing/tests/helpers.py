import hashlib
import hmac
from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.utils import timezone

from billing.models import BillingCycle, Order
from customers.models import Customer, Plan
from tasks.models import Task, TaskWorkLog


def make_plan(slug="starter", name="Starter", quota_hours=10, **features):
    base = {"hourly_rate": 12, "additional_hourly_rate": 15, "rollover_percent": 20}
    base.update(features)
    return Plan.objects.create(name=name, slug=slug, monthly_price=Decimal("4999.00"),
                               currency="INR", quota_hours=quota_hours, features=base)


def make_customer(username="acme", email="ops@acme.test"):
    user = get_user_model().objects.create_user(username=username, password="pw-not-used")
    return Customer.objects.create(user=user, email=email)


def make_order(customer, plan, gateway_order_id="order_TEST123", purpose=Order.PURPOSE_PLAN, **extra):
    return Order.objects.create(customer=customer, plan=plan, gateway_order_id=gateway_order_id,
                                amount=499900, currency="INR", purpose=purpose, **extra)


def make_cycle(customer, plan, started_at=None, included_hours=10, rollover_percent=20, **extra):
    started_at = started_at or timezone.now() - timedelta(days=5)
    return BillingCycle.objects.create(
        customer=customer, plan=plan, status=BillingCycle.STATUS_ACTIVE,
        started_at=started_at, expires_at=started_at + timedelta(days=30),
        included_hours=Decimal(included_hours), rollover_percent_snapshot=Decimal(rollover_percent),
        addl_hourly_rate_snapshot=Decimal("15.00"), hourly_rate_snapshot=Decimal("12.00"),
        **extra,
    )


def log_work(customer, start, hours, title="Inbox triage"):
    """Une tâche travaillée `hours` heures à partir de `start`."""
    task = Task.objects.create(customer=customer, title=title)
    TaskWorkLog.objects.create(task=task, action=TaskWorkLog.ACTION_START, at=start)
    TaskWorkLog.objects.create(task=task, action=TaskWorkLog.ACTION_COMPLETE, at=start + timedelta(hours=hours))
    return task


def checkout_signature(order_id: str, payment_id: str, secret: str = "test_key_secret") -> str:
    return hmac.new(secret.encode(), f"{order_id}|{payment_id}".encode(), hashlib.sha256).hexdigest()


def webhook_signature(body: bytes, secret: str = "test_webhook_secret") -> str:
    return hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()
