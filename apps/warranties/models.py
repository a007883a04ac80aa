import calendar
import uuid
from datetime import date

from django.db import models


def add_months(start: date, months: int) -> date:
    """Calendar month arithmetic; the day is clamped to the target month's length."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return start.replace(year=year, month=month, day=day)


class WarrantyStatus(models.TextChoices):
    ACTIVE = "active", "Active"
    EXPIRED = "expired", "Expired"
    CLAIMED = "claimed", "Claimed"
    VOID = "void", "Void"


class PaymentMethod(models.TextChoices):
    CREDIT_CARD = "credit_card", "Credit Card"
    DEBIT_CARD = "debit_card", "Debit Card"
    PAYPAL = "paypal", "PayPal"
    BANK_TRANSFER = "bank_transfer", "Bank Transfer"
    CASH = "cash", "Cash"


class PaymentStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    COMPLETED = "completed", "Completed"
    FAILED = "failed", "Failed"
    REFUNDED = "refunded", "Refunded"


class Warranty(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    product = models.ForeignKey("catalog.Product", on_delete=models.PROTECT, related_name="warranties")
    customer_name = models.CharField(max_length=255)
    customer_email = models.EmailField(blank=True)
    customer_phone = models.CharField(max_length=50, blank=True)
    purchase_date = models.DateField()
    warranty_period_months = models.PositiveIntegerField()
    expiry_date = models.DateField(editable=False)
    status = models.CharField(max_length=16, choices=WarrantyStatus.choices, default=WarrantyStatus.ACTIVE)
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name_plural = "warranties"
        indexes = [
            models.Index(fields=["status", "expiry_date"], name="warranty_status_expiry_idx"),
            models.Index(fields=["product", "status"], name="warranty_product_status_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(warranty_period_months__gt=0),
                name="warranty_period_gt_zero",
            ),
        ]

    def save(self, *args, **kwargs):
        self.expiry_date = add_months(self.purchase_date, self.warranty_period_months)
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "expiry_date" not in update_fields:
            kwargs["update_fields"] = [*update_fields, "expiry_date"]
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.customer_name} - {self.product_id} ({self.status})"


class WarrantyPayment(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    warranty = models.ForeignKey(Warranty, on_delete=models.CASCADE, related_name="payments")
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    payment_method = models.CharField(max_length=20, choices=PaymentMethod.choices)
    transaction_id = models.CharField(max_length=120, blank=True)
    payment_date = models.DateTimeField()
    status = models.CharField(max_length=16, choices=PaymentStatus.choices, default=PaymentStatus.COMPLETED)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-payment_date"]
        indexes = [
            models.Index(fields=["warranty", "payment_date"], name="wpayment_warranty_date_idx"),
        ]
        constraints = [
            models.CheckConstraint(condition=models.Q(amount__gt=0), name="warranty_payment_amount_gt_zero"),
        ]
