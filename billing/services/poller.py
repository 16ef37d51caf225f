import logging
import time
from typing import Callable, Optional

import httpx
from django.conf import settings

log = logging.getLogger("assistdesk.billing.poller")

TERMINAL_STATUSES = frozenset({"paid", "failed"})


def wait_for_payment(client: httpx.Client, internal_order_id: int, *,
                     interval_s: Optional[float] = None, timeout_s: Optional[float] = None,
                     sleep: Callable[[float], None] = time.sleep,
                     clock: Callable[[], float] = time.monotonic) -> str:
    """
    Interroge /billing/orders/<id>/status jusqu'à un statut terminal ou l'échéance.
    Retourne le dernier statut observé ("pending"/"unknown" si délai écoulé):
    un délai dépassé n'est pas un échec, le webhook peut encore activer le cycle.
    `client`: httpx.Client déjà authentifié (base_url = racine de l'API).
    """
    interval_s = settings.BILLING_POLL_INTERVAL_S if interval_s is None else interval_s
    timeout_s = settings.BILLING_POLL_TIMEOUT_S if timeout_s is None else timeout_s
    deadline = clock() + timeout_s
    last = "unknown"

    while clock() < deadline:
        try:
            resp = client.get(f"/api/v1/billing/orders/{internal_order_id}/status")
            if resp.is_success:
                last = resp.json().get("status") or last
                if last in TERMINAL_STATUSES:
                    return last
        except httpx.HTTPError as e:
            log.debug("order status poll failed: %s", e)
        sleep(interval_s)

    log.info("billing.poll_timeout order=%s last_status=%s", internal_order_id, last)
    return last
