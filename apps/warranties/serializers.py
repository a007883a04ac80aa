from decimal import Decimal

from rest_framework import serializers

from apps.catalog.models import Product
from apps.catalog.serializers import ProductSummarySerializer
from apps.warranties.models import PaymentMethod, PaymentStatus, Warranty, WarrantyPayment, WarrantyStatus


class WarrantyPaymentSerializer(serializers.ModelSerializer):
    warranty_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = WarrantyPayment
        fields = [
            "id",
            "warranty_id",
            "amount",
            "payment_method",
            "transaction_id",
            "payment_date",
            "status",
            "created_at",
        ]
        read_only_fields = fields


class WarrantyPaymentInputSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    payment_method = serializers.ChoiceField(choices=PaymentMethod.choices)
    transaction_id = serializers.CharField(max_length=120, required=False, allow_blank=True, allow_null=True)
    status = serializers.ChoiceField(choices=PaymentStatus.choices, required=False)

    def validate_amount(self, value):
        if value <= Decimal("0.00"):
            raise serializers.ValidationError("Amount must be greater than 0")
        return value


class WarrantySerializer(serializers.ModelSerializer):
    product_id = serializers.UUIDField(read_only=True)
    product = ProductSummarySerializer(read_only=True)
    payments = WarrantyPaymentSerializer(many=True, read_only=True)

    class Meta:
        model = Warranty
        fields = [
            "id",
            "product_id",
            "product",
            "customer_name",
            "customer_email",
            "customer_phone",
            "purchase_date",
            "warranty_period_months",
            "expiry_date",
            "status",
            "notes",
            "payments",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class WarrantyFieldsSerializer(serializers.Serializer):
    product_id = serializers.PrimaryKeyRelatedField(
        source="product",
        queryset=Product.objects.all(),
        required=False,
        allow_null=True,
    )
    customer_name = serializers.CharField(max_length=255, required=False, allow_blank=True, allow_null=True)
    customer_email = serializers.EmailField(required=False, allow_blank=True, allow_null=True)
    customer_phone = serializers.CharField(max_length=50, required=False, allow_blank=True, allow_null=True)
    purchase_date = serializers.DateField(required=False)
    warranty_period_months = serializers.IntegerField(min_value=1, required=False)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class WarrantyWriteSerializer(WarrantyFieldsSerializer):
    status = serializers.ChoiceField(choices=WarrantyStatus.choices, required=False)


class WarrantyCreateSerializer(WarrantyFieldsSerializer):
    """Registration input; a new warranty always starts active."""

    def validate(self, attrs):
        errors = {}
        if not attrs.get("product"):
            errors["product_id"] = "Product is required"
        if not (attrs.get("customer_name") or "").strip():
            errors["customer_name"] = "Customer name is required"
        if not attrs.get("purchase_date"):
            errors["purchase_date"] = "Purchase date is required"
        if not attrs.get("warranty_period_months"):
            errors["warranty_period_months"] = "Warranty period is required"
        if errors:
            raise serializers.ValidationError(errors)
        return attrs
