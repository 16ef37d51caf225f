from rest_framework.throttling import SimpleRateThrottle

# Compteurs dans le cache Django (Redis en prod), partagés entre instances.

PERIODS = {"s": 1, "sec": 1, "second": 1, "m": 60, "min": 60, "minute": 60,
           "h": 3600, "hour": 3600, "d": 86400, "day": 86400}


def _customer_cache_key(prefix: str, customer_id: int) -> str:
    return f"{prefix}:{customer_id}"


def _rate_to_tuple(rate: str):
    # "5/10s" -> (5, 10) ; "1000/day" -> (1000, 86400)
    num, period = rate.split("/")
    digits = "".join(ch for ch in period if ch.isdigit())
    unit = period[len(digits):]
    return int(num), int(digits or 1) * PERIODS[unit]


class CustomerBurstThrottle(SimpleRateThrottle):
    """
    Limite courte par client (défaut "5/10s"), clé = id client (sinon id utilisateur).
    À poser sur les endpoints coûteux (top-up, résumé de consommation).
    """
    scope = "customer_burst"

    def parse_rate(self, rate):
        if rate is None:
            return (None, None)
        return _rate_to_tuple(rate)

    def get_cache_key(self, request, view):
        customer = getattr(request, "customer", None)
        if customer is not None:
            ident = customer.pk
        elif request.user and request.user.is_authenticated:
            ident = f"u{request.user.pk}"
        else:
            return None
        return _customer_cache_key(f"throttle:{self.scope}:{view.__class__.__name__}", ident)
