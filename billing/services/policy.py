import logging
from decimal import Decimal

from django.conf import settings

log = logging.getLogger("assistdesk.billing.policy")


def _legacy_percent(plan):
    table = {str(k).lower(): v for k, v in (settings.BILLING_ROLLOVER_PERCENT_BY_PLAN or {}).items()}
    for key in (plan.slug, plan.name):
        if key and key.lower() in table:
            return Decimal(str(table[key.lower()]))
    return None


def resolve_rollover_percent(plan) -> Decimal:
    """
    % de report du plan, figé dans le snapshot du cycle.
    features.rollover_percent fait foi; la table BILLING_ROLLOVER_PERCENT_BY_PLAN
    n'est qu'un repli pour les plans qui ne le déclarent pas. Un désaccord est signalé.
    """
    explicit = plan.feature("rollover_percent")
    legacy = _legacy_percent(plan)

    if explicit is not None:
        pct = Decimal(str(explicit))
        if legacy is not None and legacy != pct:
            log.warning(
                "billing.rollover_percent_divergence plan=%s explicit=%s legacy=%s",
                plan.slug, pct, legacy,
            )
        return pct

    return legacy if legacy is not None else Decimal("0")
