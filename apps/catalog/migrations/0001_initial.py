import uuid
from decimal import Decimal

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("suppliers", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Category",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=120, unique=True)),
                ("description", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["name"],
                "verbose_name_plural": "categories",
            },
        ),
        migrations.CreateModel(
            name="Product",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(db_index=True, max_length=255)),
                ("sku", models.CharField(blank=True, max_length=64, null=True, unique=True)),
                ("description", models.TextField(blank=True)),
                ("real_price", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("purchase_price", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("selling_price", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("price_correction", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                (
                    "total_profit",
                    models.DecimalField(decimal_places=2, default=Decimal("0.00"), editable=False, max_digits=12),
                ),
                ("stock_quantity", models.IntegerField(default=0)),
                ("min_stock_level", models.IntegerField(default=0)),
                ("max_stock_level", models.IntegerField(blank=True, null=True)),
                ("is_active", models.BooleanField(db_index=True, default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "category",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="products",
                        to="catalog.category",
                    ),
                ),
                (
                    "supplier",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="products",
                        to="suppliers.supplier",
                    ),
                ),
            ],
            options={
                "ordering": ["name"],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(stock_quantity__gte=0), name="product_stock_gte_zero"),
                    models.CheckConstraint(
                        condition=models.Q(min_stock_level__gte=0), name="product_min_stock_gte_zero"
                    ),
                ],
            },
        ),
    ]
