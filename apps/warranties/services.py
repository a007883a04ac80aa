import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import NotFound, ValidationError

from apps.audit.services import record_audit
from apps.warranties.models import PaymentStatus, Warranty, WarrantyPayment, WarrantyStatus

logger = logging.getLogger(__name__)

WRITABLE_FIELDS = (
    "product",
    "customer_name",
    "customer_email",
    "customer_phone",
    "purchase_date",
    "warranty_period_months",
    "status",
    "notes",
)

TEXT_FIELDS = ("customer_email", "customer_phone", "notes")


def warranty_queryset():
    return Warranty.objects.select_related("product").prefetch_related("payments")


def get_warranty(warranty_id) -> Warranty:
    try:
        return warranty_queryset().get(pk=warranty_id)
    except (Warranty.DoesNotExist, DjangoValidationError, ValueError):
        raise NotFound("Warranty not found")


def _snapshot(warranty):
    return {
        "product_id": str(warranty.product_id),
        "customer_name": warranty.customer_name,
        "purchase_date": str(warranty.purchase_date),
        "warranty_period_months": warranty.warranty_period_months,
        "expiry_date": str(warranty.expiry_date),
        "status": warranty.status,
    }


def register_warranty(*, product, customer_name, purchase_date, warranty_period_months, actor=None, **fields):
    """First phase of a registration: persist an active warranty with its expiry date.

    A warranty may stay without any payment; the payment is a separate call.
    """
    if product is None:
        raise ValidationError({"product_id": "Product is required"})
    customer_name = (customer_name or "").strip()
    if not customer_name:
        raise ValidationError({"customer_name": "Customer name is required"})

    attrs = {
        key: value
        for key, value in fields.items()
        if key in WRITABLE_FIELDS and key != "status" and value is not None
    }

    with transaction.atomic():
        warranty = Warranty.objects.create(
            product=product,
            customer_name=customer_name,
            purchase_date=purchase_date,
            warranty_period_months=warranty_period_months,
            status=WarrantyStatus.ACTIVE,
            **attrs,
        )
        record_audit(
            actor=actor,
            action="warranties.create",
            entity_type="warranty",
            entity_id=warranty.id,
            payload=_snapshot(warranty),
        )

    logger.info("Registered warranty %s for %s, expires %s", warranty.id, customer_name, warranty.expiry_date)
    return get_warranty(warranty.pk)


def register_payment(warranty_id, *, amount, payment_method, transaction_id=None, status=None, actor=None):
    """Second phase: attach a payment to an existing warranty.

    ``payment_date`` is always the server clock at insert time.
    """
    with transaction.atomic():
        try:
            warranty = Warranty.objects.select_for_update().get(pk=warranty_id)
        except (Warranty.DoesNotExist, DjangoValidationError, ValueError):
            raise NotFound("Warranty not found")

        payment = WarrantyPayment.objects.create(
            warranty=warranty,
            amount=amount,
            payment_method=payment_method,
            transaction_id=transaction_id or "",
            payment_date=timezone.now(),
            status=status or PaymentStatus.COMPLETED,
        )
        record_audit(
            actor=actor,
            action="warranties.payment.create",
            entity_type="warranty_payment",
            entity_id=payment.id,
            payload={
                "warranty_id": str(warranty.id),
                "amount": str(payment.amount),
                "payment_method": payment.payment_method,
                "status": payment.status,
            },
        )

    logger.info("Recorded %s payment of %s for warranty %s", payment.payment_method, payment.amount, warranty.id)
    return payment


def update_warranty(warranty_id, *, fields, actor=None) -> Warranty:
    attrs = {key: value for key, value in (fields or {}).items() if key in WRITABLE_FIELDS}
    if "product" in attrs and attrs["product"] is None:
        raise ValidationError({"product_id": "Product is required"})
    if "customer_name" in attrs:
        attrs["customer_name"] = (attrs["customer_name"] or "").strip()
        if not attrs["customer_name"]:
            raise ValidationError({"customer_name": "Customer name is required"})

    with transaction.atomic():
        try:
            warranty = Warranty.objects.select_for_update().get(pk=warranty_id)
        except (Warranty.DoesNotExist, DjangoValidationError, ValueError):
            raise NotFound("Warranty not found")
        before = _snapshot(warranty)
        for key, value in attrs.items():
            if value is None:
                if key not in TEXT_FIELDS:
                    continue
                value = ""
            setattr(warranty, key, value)
        warranty.save()
        record_audit(
            actor=actor,
            action="warranties.update",
            entity_type="warranty",
            entity_id=warranty.id,
            payload={"before": before, "after": _snapshot(warranty)},
        )

    logger.info("Updated warranty %s", warranty.id)
    return get_warranty(warranty.pk)


def delete_warranty(warranty_id, *, actor=None) -> None:
    with transaction.atomic():
        try:
            warranty = Warranty.objects.select_for_update().get(pk=warranty_id)
        except (Warranty.DoesNotExist, DjangoValidationError, ValueError):
            raise NotFound("Warranty not found")
        snapshot = _snapshot(warranty)
        removed_payments, _ = warranty.payments.all().delete()
        warranty.delete()
        record_audit(
            actor=actor,
            action="warranties.delete",
            entity_type="warranty",
            entity_id=warranty_id,
            payload={**snapshot, "payments_removed": removed_payments},
        )
    logger.info("Deleted warranty %s and %s payments", warranty_id, removed_payments)


def expire_overdue_warranties(today=None) -> int:
    """Mark active warranties past their expiry date as expired."""
    today = today or timezone.localdate()
    expired_count = 0
    for warranty_id in Warranty.objects.filter(status=WarrantyStatus.ACTIVE, expiry_date__lt=today).values_list(
        "pk", flat=True
    ):
        with transaction.atomic():
            locked = Warranty.objects.select_for_update().get(pk=warranty_id)
            if locked.status != WarrantyStatus.ACTIVE or locked.expiry_date >= today:
                continue
            locked.status = WarrantyStatus.EXPIRED
            locked.save(update_fields=["status", "updated_at"])
            record_audit(
                actor=None,
                action="warranties.expire.auto",
                entity_type="warranty",
                entity_id=locked.id,
                payload={"expiry_date": str(locked.expiry_date)},
            )
            expired_count += 1
    if expired_count:
        logger.info("Expired %s warranties", expired_count)
    return expired_count
