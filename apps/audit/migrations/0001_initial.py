import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="AuditLog",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("action", models.CharField(max_length=64)),
                (
                    "entity_type",
                    models.CharField(
                        choices=[
                            ("category", "Category"),
                            ("product", "Product"),
                            ("supplier", "Supplier"),
                            ("order", "Order"),
                            ("warranty", "Warranty"),
                            ("warranty_payment", "Warranty payment"),
                        ],
                        max_length=32,
                    ),
                ),
                ("entity_id", models.CharField(max_length=64)),
                ("payload", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                (
                    "actor",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="audit_entries",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["entity_type", "entity_id", "created_at"], name="audit_entity_history_idx"),
                    models.Index(fields=["action"], name="audit_action_idx"),
                ],
            },
        ),
    ]
