import uuid
from datetime import date, timedelta
from decimal import Decimal
from io import StringIO

from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.test import SimpleTestCase
from django.utils import timezone
from rest_framework.test import APITestCase

from apps.audit.models import AuditLog
from apps.catalog.models import Category, Product
from apps.warranties.models import Warranty, WarrantyPayment, add_months

User = get_user_model()


class AddMonthsTests(SimpleTestCase):
    def test_plain_month_arithmetic(self):
        self.assertEqual(add_months(date(2024, 1, 1), 12), date(2025, 1, 1))
        self.assertEqual(add_months(date(2024, 3, 15), 6), date(2024, 9, 15))
        self.assertEqual(add_months(date(2024, 11, 10), 3), date(2025, 2, 10))

    def test_clamps_to_month_end(self):
        self.assertEqual(add_months(date(2024, 1, 31), 1), date(2024, 2, 29))
        self.assertEqual(add_months(date(2023, 1, 31), 1), date(2023, 2, 28))
        self.assertEqual(add_months(date(2024, 2, 29), 12), date(2025, 2, 28))
        self.assertEqual(add_months(date(2024, 8, 31), 1), date(2024, 9, 30))


class WarrantyApiTests(APITestCase):
    def setUp(self):
        self.manager = User.objects.create_user(username="manager_war", password="manager123", role="MANAGER")
        self.admin = User.objects.create_user(username="admin_war", password="admin123", role="ADMIN")
        self.viewer = User.objects.create_user(username="viewer_war", password="viewer123", role="VIEWER")
        category = Category.objects.create(name="Electronics")
        self.product = Product.objects.create(name="Bluetooth Headphones", sku="WAR-P1", category=category)
        self.other_product = Product.objects.create(name="Smart Watch", sku="WAR-P2", category=category)

    def auth_as(self, username, password):
        token = self.client.post(
            "/api/v1/auth/token/",
            {"username": username, "password": password},
            format="json",
        ).data["access"]
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")

    def register(self, product=None, **extra):
        payload = {
            "product_id": str((product or self.product).id),
            "customer_name": "Jane Cooper",
            "customer_email": "jane@example.com",
            "purchase_date": "2024-01-01",
            "warranty_period_months": 12,
            **extra,
        }
        return self.client.post("/api/v1/warranties/", payload, format="json")

    def test_register_warranty_computes_expiry(self):
        self.auth_as("manager_war", "manager123")
        response = self.register(expiry_date="2099-12-31")
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.data["success"])
        data = response.data["data"]
        self.assertEqual(data["expiry_date"], "2025-01-01")
        self.assertEqual(data["status"], "active")
        self.assertEqual(data["product"]["name"], "Bluetooth Headphones")
        self.assertEqual(data["payments"], [])
        self.assertTrue(AuditLog.objects.filter(action="warranties.create", entity_id=data["id"]).exists())

    def test_register_requires_product_and_customer(self):
        self.auth_as("manager_war", "manager123")
        response = self.client.post(
            "/api/v1/warranties/",
            {"purchase_date": "2024-01-01", "warranty_period_months": 12},
            format="json",
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("product_id", response.data["fields"])
        self.assertIn("customer_name", response.data["fields"])
        self.assertEqual(Warranty.objects.count(), 0)

        blank_name = self.register(customer_name="   ")
        self.assertEqual(blank_name.status_code, 400)
        self.assertEqual(blank_name.data["error"], "Customer name is required")

    def test_register_payment_stamps_server_time(self):
        self.auth_as("manager_war", "manager123")
        warranty_id = self.register().data["data"]["id"]
        before = timezone.now()
        response = self.client.post(
            f"/api/v1/warranties/{warranty_id}/payments/",
            {
                "amount": "49.99",
                "payment_method": "credit_card",
                "transaction_id": "txn_123",
                "payment_date": "2000-01-01T00:00:00Z",
            },
            format="json",
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["data"]["amount"], "49.99")
        self.assertEqual(response.data["data"]["status"], "completed")

        payment = WarrantyPayment.objects.get(warranty_id=warranty_id)
        self.assertGreaterEqual(payment.payment_date, before)
        self.assertLessEqual(payment.payment_date, timezone.now())
        self.assertEqual(payment.amount, Decimal("49.99"))

        listed = self.client.get(f"/api/v1/warranties/{warranty_id}/payments/")
        self.assertEqual(listed.status_code, 200)
        self.assertEqual(len(listed.data["data"]), 1)
        self.assertEqual(listed.data["data"][0]["transaction_id"], "txn_123")

    def test_payment_for_missing_warranty_returns_404(self):
        self.auth_as("manager_war", "manager123")
        response = self.client.post(
            f"/api/v1/warranties/{uuid.uuid4()}/payments/",
            {"amount": "10.00", "payment_method": "cash"},
            format="json",
        )
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.data["error"], "Warranty not found")
        self.assertEqual(WarrantyPayment.objects.count(), 0)

        invalid_body = self.client.post(
            f"/api/v1/warranties/{uuid.uuid4()}/payments/",
            {"amount": "0.00", "payment_method": "cheque"},
            format="json",
        )
        self.assertEqual(invalid_body.status_code, 404)

    def test_payment_requires_positive_amount(self):
        self.auth_as("manager_war", "manager123")
        warranty_id = self.register().data["data"]["id"]
        response = self.client.post(
            f"/api/v1/warranties/{warranty_id}/payments/",
            {"amount": "0.00", "payment_method": "paypal"},
            format="json",
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("amount", response.data["fields"])

    def test_update_recomputes_expiry(self):
        self.auth_as("manager_war", "manager123")
        warranty_id = self.register().data["data"]["id"]
        response = self.client.patch(
            f"/api/v1/warranties/{warranty_id}/",
            {"purchase_date": "2024-01-31", "warranty_period_months": 1},
            format="json",
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["data"]["expiry_date"], "2024-02-29")
        self.assertEqual(response.data["data"]["customer_name"], "Jane Cooper")

    def test_delete_removes_warranty_and_payments(self):
        self.auth_as("manager_war", "manager123")
        warranty_id = self.register().data["data"]["id"]
        self.client.post(
            f"/api/v1/warranties/{warranty_id}/payments/",
            {"amount": "20.00", "payment_method": "cash"},
            format="json",
        )

        self.auth_as("admin_war", "admin123")
        response = self.client.delete(f"/api/v1/warranties/{warranty_id}/")
        self.assertEqual(response.status_code, 200)
        self.assertFalse(Warranty.objects.filter(id=warranty_id).exists())
        self.assertEqual(WarrantyPayment.objects.count(), 0)

        again = self.client.delete(f"/api/v1/warranties/{warranty_id}/")
        self.assertEqual(again.status_code, 404)

    def test_list_filters(self):
        self.auth_as("manager_war", "manager123")
        self.register()
        self.register(customer_name="Robert Fox", customer_email="robert@example.com")
        claimed_id = self.register(product=self.other_product, customer_name="Wade Warren").data["data"]["id"]
        self.client.patch(f"/api/v1/warranties/{claimed_id}/", {"status": "claimed"}, format="json")

        self.auth_as("viewer_war", "viewer123")
        response = self.client.get("/api/v1/warranties/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["total"], 3)

        by_product = self.client.get("/api/v1/warranties/", {"productId": str(self.other_product.id)})
        self.assertEqual(by_product.data["total"], 1)

        by_status = self.client.get("/api/v1/warranties/", {"status": "active"})
        self.assertEqual(by_status.data["total"], 2)

        by_search = self.client.get("/api/v1/warranties/", {"search": "robert"})
        self.assertEqual(by_search.data["total"], 1)
        self.assertEqual(by_search.data["data"][0]["customer_name"], "Robert Fox")

        past_end = self.client.get("/api/v1/warranties/", {"page": 5, "limit": 10})
        self.assertEqual(past_end.status_code, 200)
        self.assertEqual(past_end.data["data"], [])
        self.assertEqual(past_end.data["total"], 3)
        self.assertEqual(past_end.data["page"], 5)
        self.assertEqual(past_end.data["limit"], 10)

    def test_registration_ignores_client_status(self):
        self.auth_as("manager_war", "manager123")
        response = self.register(status="void")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["data"]["status"], "active")
        self.assertEqual(response.data["data"]["expiry_date"], "2025-01-01")
        self.assertEqual(Warranty.objects.get(id=response.data["data"]["id"]).status, "active")

    def test_viewer_cannot_register(self):
        self.auth_as("viewer_war", "viewer123")
        response = self.register()
        self.assertEqual(response.status_code, 403)
        self.assertEqual(Warranty.objects.count(), 0)


class ExpireWarrantiesCommandTests(APITestCase):
    def setUp(self):
        category = Category.objects.create(name="Sports")
        self.product = Product.objects.create(name="Yoga Mat", sku="EXP-P1", category=category)

    def test_expires_only_overdue_active_warranties(self):
        today = timezone.localdate()
        overdue = Warranty.objects.create(
            product=self.product,
            customer_name="Overdue",
            purchase_date=today - timedelta(days=400),
            warranty_period_months=12,
        )
        current = Warranty.objects.create(
            product=self.product,
            customer_name="Current",
            purchase_date=today,
            warranty_period_months=12,
        )
        claimed = Warranty.objects.create(
            product=self.product,
            customer_name="Claimed",
            purchase_date=today - timedelta(days=400),
            warranty_period_months=12,
            status="claimed",
        )

        out = StringIO()
        call_command("expire_warranties", stdout=out)

        overdue.refresh_from_db()
        current.refresh_from_db()
        claimed.refresh_from_db()
        self.assertEqual(overdue.status, "expired")
        self.assertEqual(current.status, "active")
        self.assertEqual(claimed.status, "claimed")
        self.assertIn("Expired warranties: 1", out.getvalue())
        self.assertTrue(AuditLog.objects.filter(action="warranties.expire.auto", entity_id=str(overdue.id)).exists())
