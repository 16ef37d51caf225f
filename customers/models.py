from decimal import Decimal

from django.conf import settings
from django.db import models


class Plan(models.Model):
    """
    Offre d'abonnement (Lite/Starter/Essential, etc.)
    - slug: identifiant stable
    - monthly_price: prix mensuel en unités majeures (ex: 4999.00 INR)
    - quota_hours: heures incluses par cycle (None => plan purement horaire)
    - features: JSON (ex: {"hourly_rate": 12, "additional_hourly_rate": 15,
      "rollover_percent": 20, "description": "...", "sort_index": 1})
    """
    name = models.CharField(max_length=100)
    slug = models.SlugField(max_length=100, unique=True, db_index=True)
    active = models.BooleanField(default=True)

    monthly_price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    currency = models.CharField(max_length=3, default="INR")
    quota_hours = models.PositiveIntegerField(null=True, blank=True)
    features = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "plans"
        ordering = ["monthly_price"]

    def __str__(self) -> str:
        return f"{self.slug} ({'active' if self.active else 'inactive'})"

    def feature(self, key: str, default=None):
        return (self.features or {}).get(key, default)

    @property
    def hourly_rate(self) -> Decimal:
        return Decimal(str(self.feature("hourly_rate") or 0))

    @property
    def additional_hourly_rate(self) -> Decimal:
        return Decimal(str(self.feature("additional_hourly_rate") or 0))


class Customer(models.Model):
    """
    Client (tenant) multi-tenant logique.
    - user: compte Django ouvert par la couche identité (1:1)
    - status: ACTIVE|SUSPENDED
    - metadata: JSON libre (référent, tags, ...)
    """
    STATUS_ACTIVE = "active"
    STATUS_SUSPENDED = "suspended"
    STATUS_CHOICES = [
        (STATUS_ACTIVE, "Active"),
        (STATUS_SUSPENDED, "Suspended"),
    ]

    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="customer")
    email = models.EmailField(blank=True, default="")
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_ACTIVE)
    metadata = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "customers"
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return self.email or f"customer#{self.pk}"

    @property
    def is_active(self) -> bool:
        return self.status == self.STATUS_ACTIVE
