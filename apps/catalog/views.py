from django.db.models import Count, F, ProtectedError, Q
from rest_framework import status
from rest_framework.response import Response

from apps.audit.services import record_audit
from apps.catalog.models import Category, Product
from apps.catalog.serializers import CategorySerializer, ProductSerializer
from apps.common.viewsets import EnvelopeModelViewSet


def _truthy(value):
    return value.strip().lower() in {"1", "true", "yes"}


def _falsy(value):
    return value.strip().lower() in {"0", "false", "no"}


def product_snapshot(product):
    return {
        "sku": product.sku,
        "name": product.name,
        "category_id": str(product.category_id),
        "purchase_price": str(product.purchase_price),
        "selling_price": str(product.selling_price),
        "price_correction": str(product.price_correction),
        "stock_quantity": product.stock_quantity,
        "is_active": product.is_active,
    }


class ProductViewSet(EnvelopeModelViewSet):
    serializer_class = ProductSerializer
    entity_label = "Product"
    sort_fields = (
        "name",
        "sku",
        "selling_price",
        "purchase_price",
        "total_profit",
        "stock_quantity",
        "created_at",
        "updated_at",
    )
    default_sort = "name"
    default_order = "asc"
    capability_map = {
        "list": ["catalog.view"],
        "retrieve": ["catalog.view"],
        "create": ["catalog.manage"],
        "partial_update": ["catalog.manage"],
        "update": ["catalog.manage"],
        "destroy": ["catalog.delete"],
    }

    def get_queryset(self):
        queryset = Product.objects.select_related("category", "supplier")
        params = self.request.query_params

        search = params.get("search")
        if search:
            search = search.strip()
            queryset = queryset.filter(
                Q(name__icontains=search) | Q(description__icontains=search) | Q(sku__icontains=search)
            )

        category_id = self.uuid_param("categoryId")
        if category_id:
            queryset = queryset.filter(category_id=category_id)

        supplier_id = self.uuid_param("supplierId")
        if supplier_id:
            queryset = queryset.filter(supplier_id=supplier_id)

        is_active = params.get("isActive")
        if is_active is not None:
            if _truthy(is_active):
                queryset = queryset.filter(is_active=True)
            elif _falsy(is_active):
                queryset = queryset.filter(is_active=False)

        low_stock = params.get("lowStock")
        if low_stock is not None and _truthy(low_stock):
            queryset = queryset.filter(stock_quantity__lte=F("min_stock_level"))
        return self.apply_sorting(queryset)

    def perform_create(self, serializer):
        product = serializer.save()
        record_audit(
            actor=self.request.user,
            action="catalog.product.create",
            entity_type="product",
            entity_id=product.id,
            payload=product_snapshot(product),
        )

    def perform_update(self, serializer):
        before = product_snapshot(serializer.instance)
        product = serializer.save()
        record_audit(
            actor=self.request.user,
            action="catalog.product.update",
            entity_type="product",
            entity_id=product.id,
            payload={"before": before, "after": product_snapshot(product)},
        )

    def destroy(self, request, *args, **kwargs):
        product = self.get_object()
        snapshot = product_snapshot(product)
        try:
            product.delete()
        except ProtectedError:
            return Response(
                {
                    "success": False,
                    "error": "Product is referenced by orders or warranties and cannot be deleted.",
                    "code": "product_in_use",
                    "fields": {},
                },
                status=status.HTTP_400_BAD_REQUEST,
            )
        record_audit(
            actor=request.user,
            action="catalog.product.delete",
            entity_type="product",
            entity_id=kwargs.get("pk"),
            payload=snapshot,
        )
        return self.envelope(message="Product deleted successfully")


class CategoryViewSet(EnvelopeModelViewSet):
    serializer_class = CategorySerializer
    entity_label = "Category"
    sort_fields = ("name", "created_at", "updated_at")
    default_sort = "name"
    default_order = "asc"
    capability_map = {
        "list": ["catalog.view"],
        "retrieve": ["catalog.view"],
        "create": ["catalog.manage"],
        "partial_update": ["catalog.manage"],
        "update": ["catalog.manage"],
        "destroy": ["catalog.delete"],
    }

    def get_queryset(self):
        queryset = Category.objects.annotate(product_count=Count("products"))
        search = self.request.query_params.get("search")
        if search:
            search = search.strip()
            queryset = queryset.filter(Q(name__icontains=search) | Q(description__icontains=search))
        return self.apply_sorting(queryset)

    def perform_create(self, serializer):
        category = serializer.save()
        record_audit(
            actor=self.request.user,
            action="catalog.category.create",
            entity_type="category",
            entity_id=category.id,
            payload={"name": category.name},
        )

    def perform_update(self, serializer):
        before = {"name": serializer.instance.name, "description": serializer.instance.description}
        category = serializer.save()
        record_audit(
            actor=self.request.user,
            action="catalog.category.update",
            entity_type="category",
            entity_id=category.id,
            payload={"before": before, "after": {"name": category.name, "description": category.description}},
        )

    def destroy(self, request, *args, **kwargs):
        category = self.get_object()
        try:
            category.delete()
        except ProtectedError:
            return Response(
                {
                    "success": False,
                    "error": "Category still has products assigned.",
                    "code": "category_in_use",
                    "fields": {},
                },
                status=status.HTTP_400_BAD_REQUEST,
            )
        record_audit(
            actor=request.user,
            action="catalog.category.delete",
            entity_type="category",
            entity_id=kwargs.get("pk"),
            payload={"name": category.name},
        )
        return self.envelope(message="Category deleted successfully")
