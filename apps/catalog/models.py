import uuid
from decimal import Decimal

from django.db import models


class Category(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=120, unique=True)
    description = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        verbose_name_plural = "categories"

    def save(self, *args, **kwargs):
        self.name = (self.name or "").strip()
        super().save(*args, **kwargs)

    def __str__(self):
        return self.name


class Product(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255, db_index=True)
    sku = models.CharField(max_length=64, unique=True, null=True, blank=True)
    description = models.TextField(blank=True)
    category = models.ForeignKey(Category, on_delete=models.PROTECT, related_name="products")
    supplier = models.ForeignKey(
        "suppliers.Supplier",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="products",
    )
    real_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    purchase_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    selling_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    price_correction = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    total_profit = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"), editable=False)
    stock_quantity = models.IntegerField(default=0)
    min_stock_level = models.IntegerField(default=0)
    max_stock_level = models.IntegerField(null=True, blank=True)
    is_active = models.BooleanField(default=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        constraints = [
            models.CheckConstraint(condition=models.Q(stock_quantity__gte=0), name="product_stock_gte_zero"),
            models.CheckConstraint(condition=models.Q(min_stock_level__gte=0), name="product_min_stock_gte_zero"),
        ]

    @property
    def final_price(self):
        return self.selling_price + self.price_correction

    @property
    def is_low_stock(self):
        return self.stock_quantity <= self.min_stock_level

    def save(self, *args, **kwargs):
        self.total_profit = (self.final_price - self.purchase_price).quantize(Decimal("0.01"))
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "total_profit" not in update_fields:
            kwargs["update_fields"] = [*update_fields, "total_profit"]
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.sku} - {self.name}" if self.sku else self.name
