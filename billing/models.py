from decimal import Decimal

from django.db import models
from django.db.models import Q


class Order(models.Model):
    """
    Tentative de paiement unique.
    - amount: unités mineures (paise/cents), telles qu'envoyées à la passerelle
    - status: pending -> paid|failed, une seule fois (cf. billing.services.activation)
    - purpose: plan (active un cycle) | topup (heures supplémentaires)
    - raw: JSON libre (détails du top-up, payload webhook)
    """
    STATUS_PENDING = "pending"
    STATUS_PAID = "paid"
    STATUS_FAILED = "failed"
    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_PAID, "Paid"),
        (STATUS_FAILED, "Failed"),
    ]

    PURPOSE_PLAN = "plan"
    PURPOSE_TOPUP = "topup"
    PURPOSE_CHOICES = [
        (PURPOSE_PLAN, "Plan"),
        (PURPOSE_TOPUP, "Top-up"),
    ]

    customer = models.ForeignKey("customers.Customer", on_delete=models.CASCADE, related_name="orders")
    plan = models.ForeignKey("customers.Plan", on_delete=models.PROTECT, related_name="orders")
    gateway_order_id = models.CharField(max_length=64, unique=True, db_index=True)
    payment_id = models.CharField(max_length=64, blank=True, default="")
    amount = models.PositiveIntegerField()
    currency = models.CharField(max_length=3)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_PENDING)
    purpose = models.CharField(max_length=16, choices=PURPOSE_CHOICES, default=PURPOSE_PLAN)
    raw = models.JSONField(default=dict, blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        indexes = [models.Index(fields=["customer", "status"])]

    def __str__(self) -> str:
        return f"Order#{self.id}({self.purpose}:{self.status})"

    @property
    def amount_major(self) -> Decimal:
        return Decimal(self.amount) / 100


class BillingCycleQuerySet(models.QuerySet):
    def active(self):
        return self.filter(status=BillingCycle.STATUS_ACTIVE)

    def active_for(self, customer_id: int):
        return self.active().filter(customer_id=customer_id).order_by("-started_at").first()


class BillingCycle(models.Model):
    """
    Période d'abonnement (table customer_plans).
    Tous les termes monétaires/quotas sont figés à l'activation: une modification
    ultérieure du catalogue de plans ne touche pas un cycle en cours.
    Invariant: au plus un cycle actif par client (index unique partiel).
    """
    STATUS_ACTIVE = "active"
    STATUS_CANCELLED = "cancelled"
    STATUS_CHOICES = [
        (STATUS_ACTIVE, "Active"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    customer = models.ForeignKey("customers.Customer", on_delete=models.CASCADE, related_name="billing_cycles")
    plan = models.ForeignKey("customers.Plan", on_delete=models.PROTECT, related_name="billing_cycles")
    order = models.ForeignKey(Order, on_delete=models.SET_NULL, null=True, blank=True, related_name="activated_cycles")
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_ACTIVE)

    started_at = models.DateTimeField()
    expires_at = models.DateTimeField()
    ended_at = models.DateTimeField(null=True, blank=True)

    included_hours = models.DecimalField(max_digits=8, decimal_places=2, default=0)
    hourly_rate_snapshot = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    addl_hourly_rate_snapshot = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    rollover_percent_snapshot = models.DecimalField(max_digits=5, decimal_places=2, default=0)
    rollover_hours_applied = models.DecimalField(max_digits=8, decimal_places=2, default=0)
    topup_hours = models.DecimalField(max_digits=8, decimal_places=2, default=0)

    created_at = models.DateTimeField(auto_now_add=True)

    objects = BillingCycleQuerySet.as_manager()

    class Meta:
        db_table = "customer_plans"
        ordering = ["-started_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["customer"],
                condition=Q(status="active"),
                name="unique_active_cycle_per_customer",
            ),
        ]

    def __str__(self) -> str:
        return f"BillingCycle(c={self.customer_id}, plan={self.plan_id}, {self.status})"

    @property
    def is_active(self) -> bool:
        return self.status == self.STATUS_ACTIVE
