"""
Activation idempotente d'un cycle de facturation sur paiement confirmé.

Deux chemins concurrents confirment le même paiement: le webhook de la passerelle
et le client (verify-payment après checkout). Aucun verrou applicatif ne les
coordonne; la base fait foi:

1. Commande: UPDATE ... WHERE status='pending' -> un seul gagnant. Le perdant
   relit l'état et renvoie le cycle actif courant sans rien modifier.
2. Cycle: index unique partiel "un cycle actif par client". Un IntegrityError à
   l'insertion ne vaut course perdue que si un autre cycle actif que celui lu
   sous verrou existe: on le renvoie comme un succès. Toute autre erreur
   d'intégrité est journalisée et propagée.

Une commande marquée payée n'est jamais repassée en pending si l'activation
échoue ensuite (l'argent est encaissé: réconciliation manuelle).
"""

import calendar
import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from django.db import IntegrityError, transaction
from django.db.models import F
from django.utils.timezone import now

from audit.models import record as audit
from usage.services.quota import used_hours_for_cycle
from ..exceptions import OrderNotPayable
from ..models import BillingCycle, Order
from .policy import resolve_rollover_percent
from .rollover import compute_rollover

log = logging.getLogger("assistdesk.billing.activation")

TWO_PLACES = Decimal("0.01")


@dataclass
class ActivationResult:
    order_id: int
    order_status: str
    active_plan_id: Optional[int]
    cycle_id: Optional[int]
    applied: bool  # True si cet appel a effectué la transition

    def to_dict(self) -> dict:
        return {
            "order_id": self.order_id,
            "status": self.order_status,
            "active_plan_id": self.active_plan_id,
            "cycle_id": self.cycle_id,
        }


def add_one_month(dt: datetime) -> datetime:
    """dt + 1 mois calendaire (jour borné à la longueur du mois cible)."""
    year, month = (dt.year + 1, 1) if dt.month == 12 else (dt.year, dt.month + 1)
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)


def snapshot_plan(plan, at: datetime) -> dict:
    """Termes du plan figés pour le nouveau cycle."""
    return {
        "started_at": at,
        "expires_at": add_one_month(at),
        "included_hours": Decimal(plan.quota_hours or 0),
        "hourly_rate_snapshot": plan.hourly_rate,
        "addl_hourly_rate_snapshot": plan.additional_hourly_rate,
        "rollover_percent_snapshot": resolve_rollover_percent(plan),
    }


def _lock_active_cycle(customer_id: int) -> Optional[BillingCycle]:
    return (BillingCycle.objects.select_for_update()
            .filter(customer_id=customer_id, status=BillingCycle.STATUS_ACTIVE)
            .order_by("-started_at")
            .first())


def activate_cycle(order: Order, at: Optional[datetime] = None) -> BillingCycle:
    """
    Annule le cycle actif éventuel (en calculant le report d'heures) et active
    un nouveau cycle pour la commande. Tolère une activation concurrente.
    """
    at = at or now()
    snapshot = snapshot_plan(order.plan, at)
    previous = None

    try:
        with transaction.atomic():
            previous = _lock_active_cycle(order.customer_id)
            rollover = 0.0
            if previous is not None:
                used = used_hours_for_cycle(previous, at)
                rollover = compute_rollover(previous, used)
                previous.status = BillingCycle.STATUS_CANCELLED
                previous.ended_at = at
                previous.save(update_fields=["status", "ended_at"])

            cycle = BillingCycle.objects.create(
                customer_id=order.customer_id,
                plan_id=order.plan_id,
                order=order,
                status=BillingCycle.STATUS_ACTIVE,
                rollover_hours_applied=Decimal(str(rollover)).quantize(TWO_PLACES),
                **snapshot,
            )
    except IntegrityError:
        # Course perdue seulement si un autre cycle actif est apparu depuis notre lecture
        winner = BillingCycle.objects.active_for(order.customer_id)
        if winner is None or (previous is not None and winner.pk == previous.pk):
            log.error("billing.activation_failed order=%s customer=%s", order.id, order.customer_id)
            raise
        log.info("billing.activation_conflict order=%s customer=%s winner_cycle=%s",
                 order.id, order.customer_id, winner.id)
        return winner

    if previous is None:
        action, meta = "plan_purchase", {}
    elif previous.plan_id != order.plan_id:
        action, meta = "plan_upgrade", {"from_plan_id": previous.plan_id, "to_plan_id": order.plan_id}
    else:
        action, meta = "plan_renewal", {"plan_id": order.plan_id}
    meta.update({"gateway_order_id": order.gateway_order_id, "cycle_id": cycle.id,
                 "rollover_hours_applied": str(cycle.rollover_hours_applied)})
    audit(action, actor_id=order.customer_id, entity_type="order", entity_id=order.id, meta=meta)

    log.info("billing.cycle_activated order=%s customer=%s plan=%s cycle=%s rollover=%s",
             order.id, order.customer_id, order.plan_id, cycle.id, cycle.rollover_hours_applied)
    return cycle


def apply_topup(order: Order) -> Optional[BillingCycle]:
    """Crédite les heures d'un top-up payé sur le cycle actif."""
    hours = Decimal(str((order.raw or {}).get("hours", 0)))
    updated = (BillingCycle.objects
               .filter(customer_id=order.customer_id, status=BillingCycle.STATUS_ACTIVE)
               .update(topup_hours=F("topup_hours") + hours))
    if not updated:
        log.warning("billing.topup_without_active_cycle order=%s customer=%s", order.id, order.customer_id)
    audit("hours_topup", actor_id=order.customer_id, entity_type="order", entity_id=order.id,
          meta={"hours": str(hours), "credited": bool(updated), "gateway_order_id": order.gateway_order_id})
    return BillingCycle.objects.active_for(order.customer_id)


def current_result(order: Order, applied: bool = False) -> ActivationResult:
    cycle = BillingCycle.objects.active_for(order.customer_id)
    return ActivationResult(
        order_id=order.id,
        order_status=order.status,
        active_plan_id=cycle.plan_id if cycle else order.plan_id,
        cycle_id=cycle.id if cycle else None,
        applied=applied,
    )


def confirm_order_paid(order: Order, *, payment_id: str = "", payload: dict | None = None,
                       source: str = "client") -> ActivationResult:
    """
    pending -> paid (une seule fois), puis activation du cycle (purpose=plan)
    ou crédit d'heures (purpose=topup).
    Appelé après vérification de signature par le webhook comme par le client.
    """
    at = now()
    updates = {"status": Order.STATUS_PAID, "paid_at": at, "updated_at": at}
    if payment_id:
        updates["payment_id"] = payment_id
    if payload is not None:
        updates["raw"] = {**(order.raw or {}), "webhook": payload}

    won = Order.objects.filter(pk=order.pk, status=Order.STATUS_PENDING).update(**updates)
    order.refresh_from_db()

    if not won:
        if order.status == Order.STATUS_PAID:
            log.info("billing.order_already_paid order=%s source=%s", order.id, source)
            return current_result(order)
        raise OrderNotPayable(f"order {order.id} is {order.status}")

    log.info("billing.order_paid order=%s customer=%s purpose=%s source=%s",
             order.id, order.customer_id, order.purpose, source)

    if order.purpose == Order.PURPOSE_TOPUP:
        apply_topup(order)
    else:
        activate_cycle(order, at)
    return current_result(order, applied=True)


def mark_order_failed(order: Order, *, payload: dict | None = None, reason: str = "") -> bool:
    """pending -> failed, au plus une fois. Retourne True si la transition a eu lieu."""
    updates = {"status": Order.STATUS_FAILED, "updated_at": now()}
    if payload is not None:
        updates["raw"] = {**(order.raw or {}), "webhook": payload}
    won = Order.objects.filter(pk=order.pk, status=Order.STATUS_PENDING).update(**updates)
    order.refresh_from_db()
    if won:
        audit("order_failed", actor_id=order.customer_id, entity_type="order", entity_id=order.id,
              meta={"reason": reason, "gateway_order_id": order.gateway_order_id})
        log.info("billing.order_failed order=%s reason=%s", order.id, reason)
    return bool(won)
