from rest_framework import serializers

from apps.catalog.models import Category, Product
from apps.suppliers.models import Supplier


class CategorySerializer(serializers.ModelSerializer):
    product_count = serializers.IntegerField(read_only=True)

    class Meta:
        model = Category
        fields = ["id", "name", "description", "product_count", "created_at", "updated_at"]
        read_only_fields = ["id", "product_count", "created_at", "updated_at"]
        extra_kwargs = {"name": {"error_messages": {"required": "Category name is required"}}}

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Category name is required")
        return value


class CategorySummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Category
        fields = ["id", "name"]
        read_only_fields = fields


class ProductSerializer(serializers.ModelSerializer):
    category_id = serializers.PrimaryKeyRelatedField(
        source="category",
        queryset=Category.objects.all(),
        error_messages={"required": "Category is required", "null": "Category is required"},
    )
    supplier_id = serializers.PrimaryKeyRelatedField(
        source="supplier",
        queryset=Supplier.objects.all(),
        required=False,
        allow_null=True,
    )
    category = CategorySummarySerializer(read_only=True)
    supplier_name = serializers.CharField(source="supplier.name", read_only=True, allow_null=True)
    final_price = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    is_low_stock = serializers.BooleanField(read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "name",
            "sku",
            "description",
            "category_id",
            "category",
            "supplier_id",
            "supplier_name",
            "real_price",
            "purchase_price",
            "selling_price",
            "price_correction",
            "total_profit",
            "final_price",
            "stock_quantity",
            "min_stock_level",
            "max_stock_level",
            "is_low_stock",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "total_profit", "created_at", "updated_at"]
        extra_kwargs = {"name": {"error_messages": {"required": "Name is required"}}}

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Name is required")
        return value

    def validate_sku(self, value):
        if value is None:
            return None
        return value.strip() or None

    def validate(self, attrs):
        for field in ("real_price", "purchase_price", "selling_price"):
            if field in attrs and attrs[field] < 0:
                raise serializers.ValidationError({field: f"{field} must be >= 0"})
        for field in ("stock_quantity", "min_stock_level"):
            if field in attrs and attrs[field] < 0:
                raise serializers.ValidationError({field: f"{field} must be >= 0"})

        min_level = attrs.get("min_stock_level", getattr(self.instance, "min_stock_level", 0))
        max_level = attrs.get("max_stock_level", getattr(self.instance, "max_stock_level", None))
        if max_level is not None and max_level < min_level:
            raise serializers.ValidationError({"max_stock_level": "max_stock_level must be >= min_stock_level"})
        return attrs


class ProductSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Product
        fields = ["id", "name", "sku", "selling_price"]
        read_only_fields = fields
