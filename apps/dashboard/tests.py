from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.test import APITestCase

from apps.catalog.models import Category, Product
from apps.orders import services as order_services
from apps.suppliers.models import Supplier
from apps.warranties.models import Warranty, WarrantyPayment

User = get_user_model()


class DashboardStatsTests(APITestCase):
    def setUp(self):
        self.viewer = User.objects.create_user(username="viewer_dash", password="viewer123", role="VIEWER")
        self.supplier = Supplier.objects.create(name="TechSupply Co.")
        category = Category.objects.create(name="Electronics")
        self.mouse = Product.objects.create(
            name="Wireless Mouse",
            sku="DB-1",
            category=category,
            purchase_price=Decimal("10.00"),
            stock_quantity=3,
            min_stock_level=5,
        )
        self.stand = Product.objects.create(
            name="Laptop Stand",
            sku="DB-2",
            category=category,
            purchase_price=Decimal("20.00"),
            stock_quantity=10,
            min_stock_level=2,
        )

    def auth_as(self, username, password):
        token = self.client.post(
            "/api/v1/auth/token/",
            {"username": username, "password": password},
            format="json",
        ).data["access"]
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")

    def test_stats_aggregate_products_orders_and_warranties(self):
        order_services.create_order(
            supplier=self.supplier,
            items=[{"product": self.mouse, "quantity": 2, "unit_price": Decimal("10.00")}],
        )
        confirmed = order_services.create_order(
            supplier=self.supplier,
            items=[{"product": self.stand, "quantity": 1, "unit_price": Decimal("30.00")}],
        )
        order_services.update_order(confirmed.id, fields={"status": "delivered"})

        today = timezone.localdate()
        warranty = Warranty.objects.create(
            product=self.mouse,
            customer_name="Jane Cooper",
            purchase_date=today - timedelta(days=350),
            warranty_period_months=12,
        )
        WarrantyPayment.objects.create(
            warranty=warranty,
            amount=Decimal("19.99"),
            payment_method="cash",
            payment_date=timezone.now(),
        )

        self.auth_as("viewer_dash", "viewer123")
        response = self.client.get("/api/v1/dashboard/stats/")
        self.assertEqual(response.status_code, 200)
        data = response.data["data"]

        self.assertEqual(data["products"]["total_products"], 2)
        self.assertEqual(data["products"]["low_stock_products"], 1)
        self.assertEqual(data["products"]["inventory_value"], Decimal("230.00"))

        self.assertEqual(data["orders"]["total_orders"], 2)
        self.assertEqual(data["orders"]["open_orders"], 1)
        self.assertEqual(data["orders"]["total_order_amount"], Decimal("50.00"))
        by_status = {entry["status"]: entry["count"] for entry in data["orders"]["orders_by_status"]}
        self.assertEqual(by_status["pending"], 1)
        self.assertEqual(by_status["delivered"], 1)
        self.assertEqual(by_status["cancelled"], 0)

        self.assertEqual(data["warranties"]["total_warranties"], 1)
        self.assertEqual(data["warranties"]["warranties_expiring_soon"], 1)
        self.assertEqual(data["warranties"]["warranty_payments_total"], Decimal("19.99"))

    def test_stats_require_authentication(self):
        response = self.client.get("/api/v1/dashboard/stats/")
        self.assertEqual(response.status_code, 401)
