from datetime import datetime, timedelta, timezone as dt_timezone
from decimal import Decimal
from unittest import mock

from django.db import IntegrityError
from django.test import SimpleTestCase, TestCase
from django.utils import timezone

from audit.models import AuditLog
from billing.exceptions import OrderNotPayable
from billing.models import BillingCycle, Order
from billing.services.activation import (
    activate_cycle, add_one_month, confirm_order_paid, mark_order_failed,
)
from billing.tests.helpers import log_work, make_customer, make_cycle, make_order, make_plan


class AddOneMonthTest(SimpleTestCase):
    def test_regular(self):
        d = datetime(2026, 3, 15, 10, 0, tzinfo=dt_timezone.utc)
        self.assertEqual(add_one_month(d), datetime(2026, 4, 15, 10, 0, tzinfo=dt_timezone.utc))

    def test_end_of_month_is_clamped(self):
        d = datetime(2026, 1, 31, tzinfo=dt_timezone.utc)
        self.assertEqual(add_one_month(d), datetime(2026, 2, 28, tzinfo=dt_timezone.utc))

    def test_december(self):
        d = datetime(2026, 12, 5, tzinfo=dt_timezone.utc)
        self.assertEqual(add_one_month(d), datetime(2027, 1, 5, tzinfo=dt_timezone.utc))


class ConfirmOrderPaidTest(TestCase):
    def setUp(self):
        self.plan = make_plan()
        self.customer = make_customer()
        self.order = make_order(self.customer, self.plan)

    def test_first_purchase(self):
        result = confirm_order_paid(self.order, payment_id="pay_1")
        self.assertTrue(result.applied)

        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.STATUS_PAID)
        self.assertEqual(self.order.payment_id, "pay_1")
        self.assertIsNotNone(self.order.paid_at)

        cycle = BillingCycle.objects.get(pk=result.cycle_id)
        self.assertEqual(cycle.status, BillingCycle.STATUS_ACTIVE)
        self.assertEqual(cycle.order_id, self.order.id)
        self.assertEqual(cycle.rollover_hours_applied, Decimal("0"))
        self.assertEqual(cycle.included_hours, Decimal("10"))
        self.assertEqual(cycle.addl_hourly_rate_snapshot, Decimal("15"))
        self.assertEqual(cycle.rollover_percent_snapshot, Decimal("20"))
        self.assertEqual(AuditLog.objects.filter(action="plan_purchase").count(), 1)

    def test_second_confirmation_is_a_noop(self):
        first = confirm_order_paid(self.order, payment_id="pay_1", source="webhook")
        second = confirm_order_paid(self.order, payment_id="pay_1", source="client")

        self.assertFalse(second.applied)
        self.assertEqual(first.to_dict(), second.to_dict())
        self.assertEqual(BillingCycle.objects.filter(customer=self.customer).count(), 1)
        self.assertEqual(AuditLog.objects.filter(action="plan_purchase").count(), 1)

    def test_failed_order_is_not_payable(self):
        self.assertTrue(mark_order_failed(self.order, reason="payment.failed"))
        with self.assertRaises(OrderNotPayable):
            confirm_order_paid(self.order, payment_id="pay_1")
        self.assertFalse(BillingCycle.objects.filter(customer=self.customer).exists())

    def test_mark_failed_only_once(self):
        self.assertTrue(mark_order_failed(self.order, reason="payment.failed"))
        self.assertFalse(mark_order_failed(self.order, reason="payment.failed"))
        self.assertEqual(AuditLog.objects.filter(action="order_failed").count(), 1)

    def test_paid_order_cannot_fail(self):
        confirm_order_paid(self.order, payment_id="pay_1")
        self.assertFalse(mark_order_failed(self.order, reason="payment.failed"))
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.STATUS_PAID)

    def test_webhook_payload_is_kept(self):
        confirm_order_paid(self.order, payment_id="pay_1", payload={"event": "order.paid"}, source="webhook")
        self.order.refresh_from_db()
        self.assertEqual(self.order.raw["webhook"]["event"], "order.paid")


class RenewalTest(TestCase):
    def setUp(self):
        self.plan = make_plan()
        self.customer = make_customer()
        self.now = timezone.now()
        self.previous = make_cycle(self.customer, self.plan, started_at=self.now - timedelta(days=5))

    def test_renewal_carries_unused_hours(self):
        log_work(self.customer, self.now - timedelta(days=3), hours=3)
        order = make_order(self.customer, self.plan)

        cycle = activate_cycle(order, self.now)

        self.previous.refresh_from_db()
        self.assertEqual(self.previous.status, BillingCycle.STATUS_CANCELLED)
        self.assertEqual(self.previous.ended_at, self.now)
        # 7h restantes, plafond 20% de 10h
        self.assertEqual(cycle.rollover_hours_applied, Decimal("2.00"))
        self.assertEqual(BillingCycle.objects.active().filter(customer=self.customer).count(), 1)
        self.assertEqual(AuditLog.objects.filter(action="plan_renewal").count(), 1)

    def test_renewal_after_heavy_use_carries_less(self):
        log_work(self.customer, self.now - timedelta(days=3), hours=9.5)
        cycle = activate_cycle(make_order(self.customer, self.plan), self.now)
        self.assertEqual(cycle.rollover_hours_applied, Decimal("0.50"))

    def test_upgrade_is_audited(self):
        essential = make_plan(slug="essential", name="Essential", quota_hours=40, rollover_percent=25)
        cycle = activate_cycle(make_order(self.customer, essential), self.now)

        self.assertEqual(cycle.plan_id, essential.id)
        self.assertEqual(cycle.included_hours, Decimal("40"))
        entry = AuditLog.objects.get(action="plan_upgrade")
        self.assertEqual(entry.meta["from_plan_id"], self.plan.id)
        self.assertEqual(entry.meta["to_plan_id"], essential.id)

    def test_plan_change_does_not_touch_running_cycle(self):
        self.plan.quota_hours = 99
        self.plan.features["additional_hourly_rate"] = 50
        self.plan.save()
        self.previous.refresh_from_db()
        self.assertEqual(self.previous.included_hours, Decimal("10"))
        self.assertEqual(self.previous.addl_hourly_rate_snapshot, Decimal("15"))

    def test_insert_failure_on_renewal_propagates(self):
        order = make_order(self.customer, self.plan)
        failure = IntegrityError("NOT NULL constraint failed: customer_plans.expires_at")
        with mock.patch("billing.services.activation.BillingCycle.objects.create", side_effect=failure):
            with self.assertLogs("assistdesk.billing.activation", level="ERROR"):
                with self.assertRaises(IntegrityError):
                    activate_cycle(order, self.now)

        self.previous.refresh_from_db()
        self.assertEqual(self.previous.status, BillingCycle.STATUS_ACTIVE)
        self.assertIsNone(self.previous.ended_at)
        self.assertFalse(AuditLog.objects.filter(action__startswith="plan_").exists())

    def test_paid_order_stays_paid_when_activation_fails(self):
        order = make_order(self.customer, self.plan)
        failure = IntegrityError("NOT NULL constraint failed: customer_plans.expires_at")
        with mock.patch("billing.services.activation.BillingCycle.objects.create", side_effect=failure):
            with self.assertLogs("assistdesk.billing.activation", level="ERROR"):
                with self.assertRaises(IntegrityError):
                    confirm_order_paid(order, payment_id="pay_1")

        order.refresh_from_db()
        self.assertEqual(order.status, Order.STATUS_PAID)
        self.assertEqual(BillingCycle.objects.get(customer=self.customer).pk, self.previous.pk)


class ActivationConflictTest(TestCase):
    def setUp(self):
        self.plan = make_plan()
        self.customer = make_customer()
        self.now = timezone.now()

    def test_concurrent_activation_returns_winner(self):
        # une activation concurrente valide son cycle entre notre lecture et notre insertion
        rival_order = make_order(self.customer, self.plan, gateway_order_id="order_RIVAL")
        rival = make_cycle(self.customer, self.plan, order=rival_order)

        order = make_order(self.customer, self.plan)
        with mock.patch("billing.services.activation._lock_active_cycle", return_value=None):
            with self.assertLogs("assistdesk.billing.activation", level="INFO") as logs:
                cycle = activate_cycle(order, self.now)

        self.assertEqual(cycle.pk, rival.pk)
        self.assertEqual(cycle.order_id, rival_order.id)
        self.assertIn("billing.activation_conflict", logs.output[0])
        self.assertEqual(BillingCycle.objects.active().filter(customer=self.customer).count(), 1)
        self.assertFalse(AuditLog.objects.filter(action__startswith="plan_").exists())

    def test_insert_failure_without_active_cycle_propagates(self):
        order = make_order(self.customer, self.plan)
        failure = IntegrityError("NOT NULL constraint failed: customer_plans.started_at")
        with mock.patch("billing.services.activation.BillingCycle.objects.create", side_effect=failure):
            with self.assertLogs("assistdesk.billing.activation", level="ERROR"):
                with self.assertRaises(IntegrityError):
                    activate_cycle(order, self.now)
        self.assertFalse(BillingCycle.objects.exists())


class TopupTest(TestCase):
    def setUp(self):
        self.plan = make_plan()
        self.customer = make_customer()
        self.cycle = make_cycle(self.customer, self.plan)

    def test_topup_credits_active_cycle(self):
        order = make_order(self.customer, self.plan, gateway_order_id="order_TOP1",
                           purpose=Order.PURPOSE_TOPUP, raw={"hours": "5", "addl_rate": "15"})
        result = confirm_order_paid(order, payment_id="pay_t1")

        self.cycle.refresh_from_db()
        self.assertEqual(self.cycle.topup_hours, Decimal("5"))
        self.assertEqual(result.cycle_id, self.cycle.id)
        self.assertEqual(AuditLog.objects.filter(action="hours_topup").count(), 1)

        confirm_order_paid(order, payment_id="pay_t1")
        self.cycle.refresh_from_db()
        self.assertEqual(self.cycle.topup_hours, Decimal("5"))
