import logging
from datetime import timedelta

from celery import shared_task
from django.conf import settings
from django.utils import timezone

from .models import Order
from .services.activation import mark_order_failed

log = logging.getLogger("assistdesk.billing.tasks")


@shared_task
def expire_stale_orders(ttl_hours: int | None = None) -> int:
    """
    Passe en failed les commandes restées pending au-delà du TTL.
    Une confirmation tardive est alors refusée (OrderNotPayable) et relève
    de la réconciliation manuelle.
    """
    ttl = ttl_hours if ttl_hours is not None else settings.BILLING_PENDING_ORDER_TTL_HOURS
    cutoff = timezone.now() - timedelta(hours=ttl)
    expired = 0
    for order in Order.objects.filter(status=Order.STATUS_PENDING, created_at__lt=cutoff).iterator():
        if mark_order_failed(order, reason="expired"):
            expired += 1
    if expired:
        log.info("billing.orders_expired count=%s ttl_hours=%s", expired, ttl)
    return expired
