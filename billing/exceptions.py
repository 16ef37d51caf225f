class BillingError(Exception):
    """Erreur métier de facturation."""


class OrderNotPayable(BillingError):
    """La commande est dans un état terminal incompatible (ex: failed)."""


class GatewayNotConfigured(BillingError):
    """Clés de la passerelle de paiement absentes."""


class GatewayError(BillingError):
    """Appel à la passerelle de paiement en échec."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
