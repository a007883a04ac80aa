from decimal import Decimal
from unittest import mock

from django.contrib.auth import get_user_model
from django.db import OperationalError
from django.db.models import Sum
from django.test import SimpleTestCase, TestCase, override_settings
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.test import APITestCase

from apps.audit.models import AuditLog
from apps.catalog.models import Category, Product
from apps.common.exceptions import StorageError
from apps.orders import services
from apps.orders.models import Order, OrderItem
from apps.suppliers.models import Supplier

User = get_user_model()


class OrderCalculatorTests(SimpleTestCase):
    def test_line_total_rounds_to_cents(self):
        self.assertEqual(services.line_total(3, "0.33"), Decimal("0.99"))
        self.assertEqual(services.line_total(1, "10.005"), Decimal("10.01"))
        self.assertEqual(services.line_total(2, "10.00"), Decimal("20.00"))

    def test_calculate_total_sums_lines(self):
        items = [
            {"quantity": 2, "unit_price": Decimal("10.00")},
            {"quantity": 1, "unit_price": Decimal("5.00")},
        ]
        self.assertEqual(services.calculate_total(items), Decimal("25.00"))
        self.assertEqual(services.calculate_total([]), Decimal("0.00"))

    def test_rejects_non_positive_quantity_and_negative_price(self):
        with self.assertRaises(ValueError):
            services.line_total(0, "10.00")
        with self.assertRaises(ValueError):
            services.line_total(-1, "10.00")
        with self.assertRaises(ValueError):
            services.line_total(1.5, "10.00")
        with self.assertRaises(ValueError):
            services.line_total(1, "-0.01")

    def test_zero_price_is_allowed(self):
        self.assertEqual(services.line_total(4, "0"), Decimal("0.00"))

    @override_settings(ORDER_NUMBER_PREFIX="PO")
    def test_order_number_format(self):
        prefix, millis, suffix = services.generate_order_number().split("-")
        self.assertEqual(prefix, "PO")
        self.assertTrue(millis.isdigit())
        self.assertEqual(len(suffix), 5)
        self.assertTrue(suffix.isalnum())


class OrderServiceTests(TestCase):
    def setUp(self):
        self.supplier = Supplier.objects.create(name="TechSupply Co.")
        category = Category.objects.create(name="Electronics")
        self.p1 = Product.objects.create(name="Wireless Mouse", sku="ORD-P1", category=category)
        self.p2 = Product.objects.create(name="USB Cable", sku="ORD-P2", category=category)

    def items(self):
        return [
            {"product": self.p1, "quantity": 2, "unit_price": Decimal("10.00")},
            {"product": self.p2, "quantity": 1, "unit_price": Decimal("5.00")},
        ]

    def test_create_persists_total_and_items(self):
        order = services.create_order(supplier=self.supplier, items=self.items())
        self.assertEqual(order.total_amount, Decimal("25.00"))
        self.assertEqual(order.items.aggregate(total=Sum("total_price"))["total"], order.total_amount)
        self.assertEqual(order.status, "pending")
        self.assertTrue(order.order_number.startswith("ORD-"))
        self.assertEqual(
            sorted(item.total_price for item in order.items.all()),
            [Decimal("5.00"), Decimal("20.00")],
        )

    def test_create_without_items_persists_nothing(self):
        with self.assertRaises(ValidationError):
            services.create_order(supplier=self.supplier, items=[])
        self.assertEqual(Order.objects.count(), 0)
        self.assertEqual(OrderItem.objects.count(), 0)

    def test_create_retries_on_order_number_collision(self):
        existing = services.create_order(supplier=self.supplier, items=self.items())
        with mock.patch(
            "apps.orders.services.generate_order_number",
            side_effect=[existing.order_number, "ORD-1700000000000-ZZZZZ"],
        ):
            order = services.create_order(supplier=self.supplier, items=self.items())
        self.assertEqual(order.order_number, "ORD-1700000000000-ZZZZZ")
        self.assertEqual(Order.objects.count(), 2)

    @override_settings(ORDER_NUMBER_MAX_ATTEMPTS=2)
    def test_create_gives_up_after_max_attempts(self):
        existing = services.create_order(supplier=self.supplier, items=self.items())
        with mock.patch("apps.orders.services.generate_order_number", return_value=existing.order_number):
            with self.assertRaises(StorageError):
                services.create_order(supplier=self.supplier, items=self.items())
        self.assertEqual(Order.objects.count(), 1)
        self.assertEqual(OrderItem.objects.count(), 2)

    def test_failed_item_insert_rolls_back_order(self):
        with mock.patch.object(OrderItem.objects, "bulk_create", side_effect=OperationalError("disk full")):
            with self.assertRaises(OperationalError):
                services.create_order(supplier=self.supplier, items=self.items())
        self.assertEqual(Order.objects.count(), 0)
        self.assertEqual(OrderItem.objects.count(), 0)
        self.assertFalse(AuditLog.objects.filter(action="orders.create").exists())

    def test_failed_item_replacement_keeps_original_items(self):
        order = services.create_order(supplier=self.supplier, items=self.items())
        original_ids = set(order.items.values_list("id", flat=True))
        with mock.patch.object(OrderItem.objects, "bulk_create", side_effect=OperationalError("disk full")):
            with self.assertRaises(OperationalError):
                services.update_order(
                    order.id,
                    fields={"status": "confirmed"},
                    new_items=[{"product": self.p1, "quantity": 5, "unit_price": Decimal("10.00")}],
                )
        order.refresh_from_db()
        self.assertEqual(order.total_amount, Decimal("25.00"))
        self.assertEqual(order.status, "pending")
        self.assertEqual(set(order.items.values_list("id", flat=True)), original_ids)
        self.assertFalse(AuditLog.objects.filter(action="orders.update").exists())

    def test_update_without_items_keeps_total(self):
        order = services.create_order(supplier=self.supplier, items=self.items())
        updated = services.update_order(order.id, fields={"status": "confirmed", "notes": "Call before delivery"})
        self.assertEqual(updated.status, "confirmed")
        self.assertEqual(updated.total_amount, Decimal("25.00"))
        self.assertEqual(updated.items.count(), 2)

    def test_update_ignores_computed_fields(self):
        order = services.create_order(supplier=self.supplier, items=self.items())
        updated = services.update_order(
            order.id,
            fields={"total_amount": Decimal("999.00"), "order_number": "HACKED", "notes": "ok"},
        )
        self.assertEqual(updated.total_amount, Decimal("25.00"))
        self.assertEqual(updated.order_number, order.order_number)

    def test_update_with_empty_items_is_rejected(self):
        order = services.create_order(supplier=self.supplier, items=self.items())
        with self.assertRaises(ValidationError):
            services.update_order(order.id, new_items=[])
        self.assertEqual(OrderItem.objects.filter(order=order).count(), 2)

    def test_missing_order_raises_not_found(self):
        with self.assertRaises(NotFound):
            services.get_order("00000000-0000-0000-0000-000000000000")
        with self.assertRaises(NotFound):
            services.update_order("not-a-uuid", fields={"notes": "x"})


class OrderApiTests(APITestCase):
    def setUp(self):
        self.manager = User.objects.create_user(username="manager_ord", password="manager123", role="MANAGER")
        self.admin = User.objects.create_user(username="admin_ord", password="admin123", role="ADMIN")
        self.viewer = User.objects.create_user(username="viewer_ord", password="viewer123", role="VIEWER")
        self.supplier = Supplier.objects.create(name="TechSupply Co.", email="orders@techsupply.com")
        self.other_supplier = Supplier.objects.create(name="Fashion Wholesale")
        category = Category.objects.create(name="Electronics")
        self.p1 = Product.objects.create(name="Wireless Mouse", sku="API-P1", category=category)
        self.p2 = Product.objects.create(name="USB Cable", sku="API-P2", category=category)

    def auth_as(self, username, password):
        token = self.client.post(
            "/api/v1/auth/token/",
            {"username": username, "password": password},
            format="json",
        ).data["access"]
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")

    def create_order(self, supplier=None, **extra):
        payload = {
            "supplier_id": str((supplier or self.supplier).id),
            "items": [
                {"product_id": str(self.p1.id), "quantity": 2, "unit_price": "10.00"},
                {"product_id": str(self.p2.id), "quantity": 1, "unit_price": "5.00"},
            ],
            **extra,
        }
        return self.client.post("/api/v1/orders/", payload, format="json")

    def test_create_order_computes_total(self):
        self.auth_as("manager_ord", "manager123")
        response = self.create_order(expected_delivery_date="2024-02-01")
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.data["success"])
        self.assertEqual(response.data["message"], "Order created successfully")
        data = response.data["data"]
        self.assertEqual(data["total_amount"], "25.00")
        self.assertEqual(data["status"], "pending")
        self.assertEqual(data["supplier"]["name"], "TechSupply Co.")
        self.assertEqual(len(data["items"]), 2)
        self.assertEqual({item["product"]["name"] for item in data["items"]}, {"Wireless Mouse", "USB Cable"})
        self.assertTrue(AuditLog.objects.filter(action="orders.create", entity_id=data["id"]).exists())

    def test_client_cannot_set_total_or_number(self):
        self.auth_as("manager_ord", "manager123")
        response = self.create_order(total_amount="1.00", order_number="MINE")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["data"]["total_amount"], "25.00")
        self.assertNotEqual(response.data["data"]["order_number"], "MINE")

    def test_create_order_requires_items(self):
        self.auth_as("manager_ord", "manager123")
        response = self.client.post(
            "/api/v1/orders/",
            {"supplier_id": str(self.supplier.id), "items": []},
            format="json",
        )
        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.data["success"])
        self.assertEqual(response.data["error"], "At least one order item is required")
        self.assertEqual(Order.objects.count(), 0)

    def test_create_order_requires_supplier(self):
        self.auth_as("manager_ord", "manager123")
        response = self.client.post(
            "/api/v1/orders/",
            {"items": [{"product_id": str(self.p1.id), "quantity": 1, "unit_price": "1.00"}]},
            format="json",
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("supplier_id", response.data["fields"])
        self.assertEqual(Order.objects.count(), 0)

    def test_create_order_rejects_negative_price(self):
        self.auth_as("manager_ord", "manager123")
        response = self.client.post(
            "/api/v1/orders/",
            {
                "supplier_id": str(self.supplier.id),
                "items": [{"product_id": str(self.p1.id), "quantity": 1, "unit_price": "-1.00"}],
            },
            format="json",
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(Order.objects.count(), 0)

    def test_update_with_new_items_replaces_items(self):
        self.auth_as("manager_ord", "manager123")
        created = self.create_order().data["data"]
        old_item_ids = [item["id"] for item in created["items"]]

        response = self.client.put(
            f"/api/v1/orders/{created['id']}/",
            {"newItems": [{"product_id": str(self.p1.id), "quantity": 5, "unit_price": "10.00"}]},
            format="json",
        )
        self.assertEqual(response.status_code, 200)
        data = response.data["data"]
        self.assertEqual(data["total_amount"], "50.00")
        self.assertEqual(len(data["items"]), 1)
        self.assertEqual(data["items"][0]["quantity"], 5)
        self.assertFalse(OrderItem.objects.filter(id__in=old_item_ids).exists())
        self.assertEqual(OrderItem.objects.filter(order_id=created["id"]).count(), 1)

    def test_partial_update_changes_only_sent_fields(self):
        self.auth_as("manager_ord", "manager123")
        created = self.create_order(notes="Initial").data["data"]
        response = self.client.patch(
            f"/api/v1/orders/{created['id']}/",
            {"status": "shipped"},
            format="json",
        )
        self.assertEqual(response.status_code, 200)
        data = response.data["data"]
        self.assertEqual(data["status"], "shipped")
        self.assertEqual(data["notes"], "Initial")
        self.assertEqual(data["total_amount"], "25.00")
        log = AuditLog.objects.filter(action="orders.update", entity_id=created["id"]).latest("created_at")
        self.assertEqual(log.payload["before"]["status"], "pending")
        self.assertEqual(log.payload["after"]["status"], "shipped")

    def test_update_with_empty_new_items_is_rejected(self):
        self.auth_as("manager_ord", "manager123")
        created = self.create_order().data["data"]
        response = self.client.put(f"/api/v1/orders/{created['id']}/", {"newItems": []}, format="json")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(OrderItem.objects.filter(order_id=created["id"]).count(), 2)

    def test_delete_twice_returns_not_found(self):
        self.auth_as("manager_ord", "manager123")
        order_id = self.create_order().data["data"]["id"]

        self.auth_as("admin_ord", "admin123")
        first = self.client.delete(f"/api/v1/orders/{order_id}/")
        self.assertEqual(first.status_code, 200)
        self.assertEqual(first.data["message"], "Order deleted successfully")
        self.assertFalse(OrderItem.objects.filter(order_id=order_id).exists())

        second = self.client.delete(f"/api/v1/orders/{order_id}/")
        self.assertEqual(second.status_code, 404)
        self.assertEqual(second.data["code"], "not_found")

    def test_retrieve_missing_order_returns_404(self):
        self.auth_as("viewer_ord", "viewer123")
        response = self.client.get("/api/v1/orders/00000000-0000-0000-0000-000000000000/")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.data["error"], "Order not found")

    def test_list_filters_and_paginates(self):
        self.auth_as("manager_ord", "manager123")
        self.create_order()
        self.create_order()
        self.create_order(supplier=self.other_supplier, status="confirmed")

        self.auth_as("viewer_ord", "viewer123")
        response = self.client.get("/api/v1/orders/", {"limit": 2, "page": 1})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["total"], 3)
        self.assertEqual(response.data["limit"], 2)
        self.assertEqual(len(response.data["data"]), 2)

        by_supplier = self.client.get("/api/v1/orders/", {"supplierId": str(self.other_supplier.id)})
        self.assertEqual(by_supplier.data["total"], 1)
        self.assertEqual(by_supplier.data["data"][0]["status"], "confirmed")

        by_status = self.client.get("/api/v1/orders/", {"status": "pending", "sortBy": "total_amount", "order": "asc"})
        self.assertEqual(by_status.data["total"], 2)

        bad_id = self.client.get("/api/v1/orders/", {"supplierId": "nope"})
        self.assertEqual(bad_id.status_code, 400)

    def test_page_past_the_end_is_empty(self):
        self.auth_as("viewer_ord", "viewer123")
        empty = self.client.get("/api/v1/orders/", {"page": 5, "limit": 10})
        self.assertEqual(empty.status_code, 200)
        self.assertEqual(
            dict(empty.data),
            {"success": True, "data": [], "total": 0, "page": 5, "limit": 10},
        )

        self.auth_as("manager_ord", "manager123")
        self.create_order()
        self.create_order()
        self.create_order()
        last = self.client.get("/api/v1/orders/", {"page": 2, "limit": 2})
        self.assertEqual(len(last.data["data"]), 1)
        self.assertEqual(last.data["total"], 3)
        beyond = self.client.get("/api/v1/orders/", {"page": 3, "limit": 2})
        self.assertEqual(beyond.status_code, 200)
        self.assertEqual(beyond.data["data"], [])
        self.assertEqual(beyond.data["page"], 3)

    def test_update_missing_order_with_invalid_body_returns_404(self):
        self.auth_as("manager_ord", "manager123")
        response = self.client.put(
            "/api/v1/orders/00000000-0000-0000-0000-000000000000/",
            {"newItems": [], "status": "not-a-status"},
            format="json",
        )
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.data["error"], "Order not found")

    def test_viewer_cannot_write_orders(self):
        self.auth_as("viewer_ord", "viewer123")
        response = self.create_order()
        self.assertEqual(response.status_code, 403)
        self.assertEqual(Order.objects.count(), 0)

    def test_manager_cannot_delete_orders(self):
        self.auth_as("manager_ord", "manager123")
        order_id = self.create_order().data["data"]["id"]
        response = self.client.delete(f"/api/v1/orders/{order_id}/")
        self.assertEqual(response.status_code, 403)
        self.assertTrue(Order.objects.filter(id=order_id).exists())

    def test_requires_authentication(self):
        response = self.client.get("/api/v1/orders/")
        self.assertEqual(response.status_code, 401)
