import logging
import secrets
import string
import time
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from django.db.models import Prefetch
from rest_framework.exceptions import NotFound, ValidationError

from apps.audit.services import record_audit
from apps.common.exceptions import StorageError
from apps.orders.models import Order, OrderItem, OrderStatus

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
ORDER_NUMBER_ALPHABET = string.ascii_uppercase + string.digits
ORDER_NUMBER_SUFFIX_LENGTH = 5

WRITABLE_FIELDS = (
    "supplier",
    "status",
    "order_date",
    "expected_delivery_date",
    "actual_delivery_date",
    "notes",
)


def to_money(value) -> Decimal:
    try:
        return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)
    except (InvalidOperation, TypeError) as exc:
        raise ValueError(f"Invalid amount: {value!r}") from exc


def line_total(quantity, unit_price) -> Decimal:
    """Return ``quantity * unit_price`` rounded to cents.

    Zero or negative quantities and negative prices are rejected with
    ``ValueError``.
    """
    try:
        quantity = Decimal(str(quantity))
    except (InvalidOperation, TypeError) as exc:
        raise ValueError(f"Invalid quantity: {quantity!r}") from exc
    if quantity != quantity.to_integral_value():
        raise ValueError("quantity must be a whole number")
    if quantity <= 0:
        raise ValueError("quantity must be greater than 0")

    unit_price = to_money(unit_price)
    if unit_price < 0:
        raise ValueError("unit_price must be >= 0")
    return (quantity * unit_price).quantize(CENT, rounding=ROUND_HALF_UP)


def calculate_total(items) -> Decimal:
    """Sum of the line totals of ``items`` (mappings with quantity and unit_price)."""
    total = Decimal("0.00")
    for item in items:
        total += line_total(item["quantity"], item["unit_price"])
    return total.quantize(CENT)


def generate_order_number(prefix=None) -> str:
    prefix = prefix or settings.ORDER_NUMBER_PREFIX
    suffix = "".join(secrets.choice(ORDER_NUMBER_ALPHABET) for _ in range(ORDER_NUMBER_SUFFIX_LENGTH))
    return f"{prefix}-{int(time.time() * 1000)}-{suffix}"


def order_queryset():
    return Order.objects.select_related("supplier").prefetch_related(
        Prefetch("items", queryset=OrderItem.objects.select_related("product").order_by("created_at", "pk"))
    )


def get_order(order_id) -> Order:
    try:
        return order_queryset().get(pk=order_id)
    except (Order.DoesNotExist, DjangoValidationError, ValueError):
        raise NotFound("Order not found")


def _lock_order(order_id) -> Order:
    try:
        return Order.objects.select_for_update().get(pk=order_id)
    except (Order.DoesNotExist, DjangoValidationError, ValueError):
        raise NotFound("Order not found")


def _order_total(items, field_name):
    try:
        return calculate_total(items)
    except (KeyError, ValueError) as exc:
        raise ValidationError({field_name: str(exc)})


def _product_id(item):
    product = item.get("product")
    if product is not None:
        return product.pk
    return item["product_id"]


def _build_items(order, items):
    return [
        OrderItem(
            order=order,
            product_id=_product_id(item),
            quantity=int(item["quantity"]),
            unit_price=to_money(item["unit_price"]),
            total_price=line_total(item["quantity"], item["unit_price"]),
        )
        for item in items
    ]


def _insert_order(*, supplier, total_amount, attrs) -> Order:
    max_attempts = max(1, settings.ORDER_NUMBER_MAX_ATTEMPTS)
    for attempt in range(1, max_attempts + 1):
        order_number = generate_order_number()
        try:
            with transaction.atomic():
                return Order.objects.create(
                    order_number=order_number,
                    supplier=supplier,
                    total_amount=total_amount,
                    **attrs,
                )
        except IntegrityError:
            if not Order.objects.filter(order_number=order_number).exists():
                raise
            logger.warning("Order number %s already taken (attempt %s/%s)", order_number, attempt, max_attempts)
    raise StorageError(f"Could not allocate a unique order number after {max_attempts} attempts")


def _snapshot(order):
    return {
        "order_number": order.order_number,
        "supplier_id": str(order.supplier_id),
        "status": order.status,
        "total_amount": str(order.total_amount),
        "expected_delivery_date": str(order.expected_delivery_date) if order.expected_delivery_date else None,
        "actual_delivery_date": str(order.actual_delivery_date) if order.actual_delivery_date else None,
    }


def create_order(*, supplier, items, actor=None, **fields) -> Order:
    """Create an order and its items in one transaction.

    ``items`` are mappings with ``product`` (or ``product_id``), ``quantity``
    and ``unit_price``. Only the writable order fields are taken from
    ``fields``; the number, total and timestamps are always computed here.
    """
    if supplier is None:
        raise ValidationError({"supplier_id": "Supplier is required"})
    items = list(items or [])
    if not items:
        raise ValidationError({"items": "At least one order item is required"})

    total_amount = _order_total(items, "items")
    attrs = {key: value for key, value in fields.items() if key in WRITABLE_FIELDS and key != "supplier"}
    if attrs.get("status") is None:
        attrs["status"] = OrderStatus.PENDING
    if attrs.get("order_date") is None:
        attrs.pop("order_date", None)
    if attrs.get("notes") is None:
        attrs.pop("notes", None)

    with transaction.atomic():
        order = _insert_order(supplier=supplier, total_amount=total_amount, attrs=attrs)
        OrderItem.objects.bulk_create(_build_items(order, items))
        record_audit(
            actor=actor,
            action="orders.create",
            entity_type="order",
            entity_id=order.id,
            payload={**_snapshot(order), "items_count": len(items)},
        )

    logger.info("Created order %s with %s items, total %s", order.order_number, len(items), total_amount)
    return get_order(order.pk)


def update_order(order_id, *, fields=None, new_items=None, actor=None) -> Order:
    """Apply allow-listed ``fields`` and, when given, replace the item set.

    With ``new_items`` every existing item is deleted and the total is
    recomputed from the new set; without it the total is left untouched.
    """
    attrs = {key: value for key, value in (fields or {}).items() if key in WRITABLE_FIELDS}
    if "supplier" in attrs and attrs["supplier"] is None:
        raise ValidationError({"supplier_id": "Supplier is required"})
    if "status" in attrs and attrs["status"] is None:
        attrs.pop("status")
    if "notes" in attrs and attrs["notes"] is None:
        attrs["notes"] = ""

    new_total = None
    if new_items is not None:
        new_items = list(new_items)
        if not new_items:
            raise ValidationError({"newItems": "At least one order item is required"})
        new_total = _order_total(new_items, "newItems")

    with transaction.atomic():
        order = _lock_order(order_id)
        before = _snapshot(order)
        for key, value in attrs.items():
            setattr(order, key, value)

        if new_items is not None:
            order.items.all().delete()
            OrderItem.objects.bulk_create(_build_items(order, new_items))
            order.total_amount = new_total

        order.save()
        payload = {"before": before, "after": _snapshot(order)}
        if new_items is not None:
            payload["items_replaced"] = len(new_items)
        record_audit(actor=actor, action="orders.update", entity_type="order", entity_id=order.id, payload=payload)

    if before["status"] != order.status:
        logger.info("Order %s status %s -> %s", order.order_number, before["status"], order.status)
    logger.info("Updated order %s", order.order_number)
    return get_order(order.pk)


def delete_order(order_id, *, actor=None) -> None:
    with transaction.atomic():
        order = _lock_order(order_id)
        snapshot = _snapshot(order)
        removed_items, _ = order.items.all().delete()
        order.delete()
        record_audit(
            actor=actor,
            action="orders.delete",
            entity_type="order",
            entity_id=order_id,
            payload={**snapshot, "items_removed": removed_items},
        )
    logger.info("Deleted order %s and %s items", snapshot["order_number"], removed_items)
