from collections.abc import Mapping
from decimal import Decimal

from rest_framework import serializers

from apps.catalog.models import Product
from apps.catalog.serializers import ProductSummarySerializer
from apps.orders.models import Order, OrderItem, OrderStatus
from apps.suppliers.models import Supplier
from apps.suppliers.serializers import SupplierSummarySerializer


class OrderItemInputSerializer(serializers.Serializer):
    product_id = serializers.PrimaryKeyRelatedField(source="product", queryset=Product.objects.all())
    quantity = serializers.IntegerField(min_value=1)
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal("0.00"))


class OrderItemSerializer(serializers.ModelSerializer):
    product_id = serializers.UUIDField(read_only=True)
    product = ProductSummarySerializer(read_only=True)

    class Meta:
        model = OrderItem
        fields = ["id", "product_id", "product", "quantity", "unit_price", "total_price", "created_at"]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    supplier_id = serializers.UUIDField(read_only=True)
    supplier = SupplierSummarySerializer(read_only=True)
    items = OrderItemSerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "supplier_id",
            "supplier",
            "status",
            "order_date",
            "expected_delivery_date",
            "actual_delivery_date",
            "notes",
            "total_amount",
            "items",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class OrderWriteSerializer(serializers.Serializer):
    supplier_id = serializers.PrimaryKeyRelatedField(
        source="supplier",
        queryset=Supplier.objects.all(),
        required=False,
        allow_null=True,
    )
    status = serializers.ChoiceField(choices=OrderStatus.choices, required=False)
    order_date = serializers.DateTimeField(required=False, allow_null=True)
    expected_delivery_date = serializers.DateField(required=False, allow_null=True)
    actual_delivery_date = serializers.DateField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class OrderCreateSerializer(OrderWriteSerializer):
    items = OrderItemInputSerializer(many=True, required=False)

    def validate(self, attrs):
        if not attrs.get("supplier"):
            raise serializers.ValidationError({"supplier_id": "Supplier is required"})
        if not attrs.get("items"):
            raise serializers.ValidationError({"items": "At least one order item is required"})
        return attrs


class OrderUpdateSerializer(OrderWriteSerializer):
    new_items = OrderItemInputSerializer(many=True, required=False)

    def to_internal_value(self, data):
        if isinstance(data, Mapping) and "newItems" in data and "new_items" not in data:
            data = {key: data[key] for key in data}
            data["new_items"] = data.pop("newItems")
        return super().to_internal_value(data)

    def validate_new_items(self, value):
        if not value:
            raise serializers.ValidationError("At least one order item is required")
        return value
