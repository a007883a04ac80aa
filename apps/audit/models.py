import uuid

from django.conf import settings
from django.db import models


class AuditEntity(models.TextChoices):
    CATEGORY = "category", "Category"
    PRODUCT = "product", "Product"
    SUPPLIER = "supplier", "Supplier"
    ORDER = "order", "Order"
    WARRANTY = "warranty", "Warranty"
    WARRANTY_PAYMENT = "warranty_payment", "Warranty payment"


class AuditLog(models.Model):
    """One row per write made through the API or a management command."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="audit_entries",
    )
    action = models.CharField(max_length=64)
    entity_type = models.CharField(max_length=32, choices=AuditEntity.choices)
    entity_id = models.CharField(max_length=64)
    payload = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["entity_type", "entity_id", "created_at"], name="audit_entity_history_idx"),
            models.Index(fields=["action"], name="audit_action_idx"),
        ]

    def __str__(self):
        actor = self.actor.username if self.actor_id else "system"
        return f"{self.action} {self.entity_type}:{self.entity_id} by {actor}"
