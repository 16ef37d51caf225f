from django.db import models


class AuditLog(models.Model):
    """
    Journal append-only des transitions de facturation.
    - actor: client concerné (null si inconnu, ex: webhook pour une commande inconnue)
    - action: plan_purchase | plan_upgrade | plan_renewal | hours_topup | order_failed | ...
    - entity_type / entity_id: objet concerné (ex: "order", 42)
    - meta: JSON libre
    """
    actor = models.ForeignKey("customers.Customer", on_delete=models.SET_NULL, null=True, blank=True,
                              related_name="audit_logs")
    action = models.CharField(max_length=64, db_index=True)
    entity_type = models.CharField(max_length=64, blank=True, default="")
    entity_id = models.CharField(max_length=64, null=True, blank=True)
    meta = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "audit_logs"
        ordering = ["-created_at"]
        indexes = [models.Index(fields=["entity_type", "entity_id"])]

    def __str__(self) -> str:
        return f"{self.action}:{self.entity_type}#{self.entity_id}"


def record(action: str, *, actor_id: int | None = None, entity_type: str = "",
           entity_id=None, meta: dict | None = None) -> AuditLog:
    return AuditLog.objects.create(
        actor_id=actor_id,
        action=action,
        entity_type=entity_type,
        entity_id=str(entity_id) if entity_id is not None else None,
        meta=meta or {},
    )
