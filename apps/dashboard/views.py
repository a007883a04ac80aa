from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.core.cache import cache
from django.db.models import Count, DecimalField, ExpressionWrapper, F, Sum, Value
from django.db.models.functions import Coalesce
from django.utils import timezone
from rest_framework import generics
from rest_framework.response import Response

from apps.catalog.models import Category, Product
from apps.common.permissions import RolePermission
from apps.orders.models import Order, OrderStatus
from apps.suppliers.models import Supplier
from apps.warranties.models import PaymentStatus, Warranty, WarrantyPayment, WarrantyStatus

STATS_CACHE_KEY = "dashboard:stats"
MONEY = DecimalField(max_digits=16, decimal_places=2)
ZERO = Value(Decimal("0.00"))
EXPIRING_SOON_DAYS = 30


class DashboardStatsView(generics.GenericAPIView):
    """Aggregated counts for the dashboard landing page."""

    permission_classes = [RolePermission]
    capability_map = {"get": ["dashboard.view"]}

    @staticmethod
    def _product_stats():
        products = Product.objects.filter(is_active=True)
        stock_value = ExpressionWrapper(F("stock_quantity") * F("purchase_price"), output_field=MONEY)
        stats = products.aggregate(
            total_products=Count("id"),
            total_stock_units=Coalesce(Sum("stock_quantity"), 0),
            inventory_value=Coalesce(Sum(stock_value), ZERO, output_field=MONEY),
        )
        stats["low_stock_products"] = products.filter(stock_quantity__lte=F("min_stock_level")).count()
        stats["total_categories"] = Category.objects.count()
        stats["active_suppliers"] = Supplier.objects.filter(is_active=True).count()
        return stats

    @staticmethod
    def _order_stats():
        rows = {
            row["status"]: row
            for row in Order.objects.values("status").annotate(
                count=Count("id"),
                amount=Coalesce(Sum("total_amount"), ZERO, output_field=MONEY),
            )
        }
        by_status = [
            {
                "status": value,
                "count": rows.get(value, {}).get("count", 0),
                "amount": rows.get(value, {}).get("amount", Decimal("0.00")),
            }
            for value in OrderStatus.values
        ]
        open_statuses = {OrderStatus.PENDING, OrderStatus.CONFIRMED, OrderStatus.SHIPPED}
        return {
            "total_orders": sum(entry["count"] for entry in by_status),
            "open_orders": sum(entry["count"] for entry in by_status if entry["status"] in open_statuses),
            "total_order_amount": sum((entry["amount"] for entry in by_status), Decimal("0.00")),
            "orders_by_status": by_status,
        }

    @staticmethod
    def _warranty_stats():
        counts = dict(Warranty.objects.values_list("status").annotate(count=Count("id")))
        today = timezone.localdate()
        expiring_soon = Warranty.objects.filter(
            status=WarrantyStatus.ACTIVE,
            expiry_date__gte=today,
            expiry_date__lte=today + timedelta(days=EXPIRING_SOON_DAYS),
        ).count()
        payments_total = WarrantyPayment.objects.filter(status=PaymentStatus.COMPLETED).aggregate(
            total=Coalesce(Sum("amount"), ZERO, output_field=MONEY)
        )["total"]
        return {
            "total_warranties": sum(counts.values()),
            "warranties_by_status": [{"status": value, "count": counts.get(value, 0)} for value in WarrantyStatus.values],
            "warranties_expiring_soon": expiring_soon,
            "warranty_payments_total": payments_total,
        }

    def _collect(self):
        return {
            "products": self._product_stats(),
            "orders": self._order_stats(),
            "warranties": self._warranty_stats(),
        }

    def get(self, request):
        data = cache.get_or_set(STATS_CACHE_KEY, self._collect, settings.DASHBOARD_STATS_CACHE_TTL_SECONDS)
        return Response({"success": True, "data": data})
