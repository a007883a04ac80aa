from decimal import Decimal

from django.contrib.auth import get_user_model
from rest_framework.test import APITestCase

from apps.audit.models import AuditLog
from apps.catalog.models import Category, Product
from apps.orders import services as order_services
from apps.suppliers.models import Supplier

User = get_user_model()


class SupplierApiTests(APITestCase):
    def setUp(self):
        self.admin = User.objects.create_user(username="admin_sup", password="admin123", role="ADMIN")
        self.manager = User.objects.create_user(username="manager_sup", password="manager123", role="MANAGER")

    def auth_as(self, username, password):
        token = self.client.post(
            "/api/v1/auth/token/",
            {"username": username, "password": password},
            format="json",
        ).data["access"]
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")

    def test_create_update_and_search_suppliers(self):
        self.auth_as("manager_sup", "manager123")
        created = self.client.post(
            "/api/v1/suppliers/",
            {
                "name": "HomeGoods Direct",
                "contact_person": "Mike Johnson",
                "email": "mike@homegoods.com",
                "phone": "+1-555-0125",
                "address": "789 Home St, Garden City, GC 13579",
            },
            format="json",
        )
        self.assertEqual(created.status_code, 201)
        supplier_id = created.data["data"]["id"]
        self.assertTrue(created.data["data"]["is_active"])

        updated = self.client.patch(f"/api/v1/suppliers/{supplier_id}/", {"is_active": False}, format="json")
        self.assertEqual(updated.status_code, 200)
        self.assertFalse(updated.data["data"]["is_active"])
        self.assertEqual(updated.data["data"]["email"], "mike@homegoods.com")

        Supplier.objects.create(name="TechSupply Co.", email="john@techsupply.com")
        found = self.client.get("/api/v1/suppliers/", {"search": "garden"})
        self.assertEqual(found.data["total"], 1)
        inactive = self.client.get("/api/v1/suppliers/", {"isActive": "false"})
        self.assertEqual(inactive.data["total"], 1)
        self.assertEqual(inactive.data["data"][0]["name"], "HomeGoods Direct")

        actions = set(AuditLog.objects.filter(entity_id=supplier_id).values_list("action", flat=True))
        self.assertEqual(actions, {"suppliers.create", "suppliers.update"})

    def test_supplier_name_is_required(self):
        self.auth_as("manager_sup", "manager123")
        response = self.client.post("/api/v1/suppliers/", {"email": "x@example.com"}, format="json")
        self.assertEqual(response.status_code, 400)
        self.assertIn("name", response.data["fields"])

    def test_supplier_with_orders_cannot_be_deleted(self):
        supplier = Supplier.objects.create(name="Fashion Wholesale")
        category = Category.objects.create(name="Clothing")
        product = Product.objects.create(name="Cotton T-Shirt", sku="CT-1", category=category, supplier=supplier)
        order_services.create_order(
            supplier=supplier,
            items=[{"product": product, "quantity": 3, "unit_price": Decimal("8.50")}],
        )

        self.auth_as("admin_sup", "admin123")
        response = self.client.delete(f"/api/v1/suppliers/{supplier.id}/")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["code"], "supplier_in_use")

    def test_delete_unused_supplier(self):
        supplier = Supplier.objects.create(name="Sports Depot")
        self.auth_as("manager_sup", "manager123")
        forbidden = self.client.delete(f"/api/v1/suppliers/{supplier.id}/")
        self.assertEqual(forbidden.status_code, 403)

        self.auth_as("admin_sup", "admin123")
        response = self.client.delete(f"/api/v1/suppliers/{supplier.id}/")
        self.assertEqual(response.status_code, 200)
        self.assertFalse(Supplier.objects.filter(id=supplier.id).exists())
