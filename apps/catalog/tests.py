from decimal import Decimal
from io import StringIO

from django.contrib.auth import get_user_model
from django.core.management import call_command
from rest_framework.test import APITestCase

from apps.audit.models import AuditLog
from apps.catalog.models import Category, Product
from apps.orders import services as order_services
from apps.suppliers.models import Supplier

User = get_user_model()


class CatalogApiTests(APITestCase):
    def setUp(self):
        self.admin = User.objects.create_user(username="admin_cat", password="admin123", role="ADMIN")
        self.manager = User.objects.create_user(username="manager_cat", password="manager123", role="MANAGER")
        self.viewer = User.objects.create_user(username="viewer_cat", password="viewer123", role="VIEWER")
        self.electronics = Category.objects.create(name="Electronics", description="Electronic devices")
        self.books = Category.objects.create(name="Books")
        self.supplier = Supplier.objects.create(name="TechSupply Co.")

    def auth_as(self, username, password):
        token = self.client.post(
            "/api/v1/auth/token/",
            {"username": username, "password": password},
            format="json",
        ).data["access"]
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")

    def product_payload(self, **extra):
        return {
            "name": "Wireless Bluetooth Headphones",
            "sku": "WBH-001",
            "category_id": str(self.electronics.id),
            "supplier_id": str(self.supplier.id),
            "real_price": "45.00",
            "purchase_price": "50.00",
            "selling_price": "79.99",
            "price_correction": "-5.00",
            "stock_quantity": 25,
            "min_stock_level": 10,
            "max_stock_level": 100,
            **extra,
        }

    def test_create_product_derives_profit(self):
        self.auth_as("manager_cat", "manager123")
        response = self.client.post("/api/v1/products/", self.product_payload(total_profit="1000.00"), format="json")
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["message"], "Product created successfully")
        data = response.data["data"]
        self.assertEqual(data["total_profit"], "24.99")
        self.assertEqual(data["final_price"], "74.99")
        self.assertEqual(data["category"]["name"], "Electronics")
        self.assertEqual(data["supplier_name"], "TechSupply Co.")
        self.assertFalse(data["is_low_stock"])
        self.assertTrue(AuditLog.objects.filter(action="catalog.product.create", entity_id=data["id"]).exists())

    def test_update_recomputes_profit(self):
        self.auth_as("manager_cat", "manager123")
        product_id = self.client.post("/api/v1/products/", self.product_payload(), format="json").data["data"]["id"]
        response = self.client.put(f"/api/v1/products/{product_id}/", {"selling_price": "90.00"}, format="json")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["data"]["total_profit"], "35.00")
        self.assertEqual(response.data["data"]["name"], "Wireless Bluetooth Headphones")
        self.assertEqual(Product.objects.get(id=product_id).total_profit, Decimal("35.00"))

    def test_create_product_requires_name_and_category(self):
        self.auth_as("manager_cat", "manager123")
        payload = self.product_payload()
        payload.pop("name")
        payload.pop("category_id")
        response = self.client.post("/api/v1/products/", payload, format="json")
        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.data["success"])
        self.assertIn("name", response.data["fields"])
        self.assertIn("category_id", response.data["fields"])
        self.assertEqual(Product.objects.count(), 0)

    def test_rejects_negative_prices_and_inverted_stock_levels(self):
        self.auth_as("manager_cat", "manager123")
        negative = self.client.post("/api/v1/products/", self.product_payload(selling_price="-1.00"), format="json")
        self.assertEqual(negative.status_code, 400)
        inverted = self.client.post(
            "/api/v1/products/",
            self.product_payload(min_stock_level=20, max_stock_level=5),
            format="json",
        )
        self.assertEqual(inverted.status_code, 400)
        self.assertIn("max_stock_level", inverted.data["fields"])

    def test_list_filters_low_stock_and_category(self):
        Product.objects.create(name="USB Cable", sku="USB-1", category=self.electronics, stock_quantity=2, min_stock_level=5)
        Product.objects.create(name="Laptop Stand", sku="LS-1", category=self.electronics, stock_quantity=50, min_stock_level=5)
        Product.objects.create(name="Novel", sku="BK-1", category=self.books, stock_quantity=5, min_stock_level=5)

        self.auth_as("viewer_cat", "viewer123")
        response = self.client.get("/api/v1/products/", {"lowStock": "true"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["total"], 2)
        self.assertEqual({item["sku"] for item in response.data["data"]}, {"USB-1", "BK-1"})

        by_category = self.client.get("/api/v1/products/", {"categoryId": str(self.books.id)})
        self.assertEqual(by_category.data["total"], 1)

        sorted_desc = self.client.get("/api/v1/products/", {"sortBy": "stock_quantity", "order": "desc"})
        self.assertEqual(sorted_desc.data["data"][0]["sku"], "LS-1")

        unknown_sort = self.client.get("/api/v1/products/", {"sortBy": "password"})
        self.assertEqual(unknown_sort.status_code, 200)
        self.assertEqual(unknown_sort.data["data"][0]["name"], "Laptop Stand")

    def test_viewer_cannot_create_product(self):
        self.auth_as("viewer_cat", "viewer123")
        response = self.client.post("/api/v1/products/", self.product_payload(), format="json")
        self.assertEqual(response.status_code, 403)

    def test_product_used_by_order_cannot_be_deleted(self):
        product = Product.objects.create(name="Desk Lamp", sku="DL-1", category=self.electronics)
        order_services.create_order(
            supplier=self.supplier,
            items=[{"product": product, "quantity": 1, "unit_price": Decimal("12.00")}],
        )
        self.auth_as("admin_cat", "admin123")
        response = self.client.delete(f"/api/v1/products/{product.id}/")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["code"], "product_in_use")
        self.assertTrue(Product.objects.filter(id=product.id).exists())

    def test_category_crud_and_product_count(self):
        Product.objects.create(name="Tablet", sku="TB-1", category=self.electronics)
        self.auth_as("manager_cat", "manager123")
        created = self.client.post(
            "/api/v1/categories/",
            {"name": "  Home & Garden ", "description": "Home improvement"},
            format="json",
        )
        self.assertEqual(created.status_code, 201)
        self.assertEqual(created.data["data"]["name"], "Home & Garden")

        listed = self.client.get("/api/v1/categories/", {"search": "electr"})
        self.assertEqual(listed.data["total"], 1)
        self.assertEqual(listed.data["data"][0]["product_count"], 1)

        self.auth_as("admin_cat", "admin123")
        in_use = self.client.delete(f"/api/v1/categories/{self.electronics.id}/")
        self.assertEqual(in_use.status_code, 400)
        self.assertEqual(in_use.data["code"], "category_in_use")

        removed = self.client.delete(f"/api/v1/categories/{created.data['data']['id']}/")
        self.assertEqual(removed.status_code, 200)
        self.assertEqual(removed.data["message"], "Category deleted successfully")

    def test_category_name_is_required(self):
        self.auth_as("manager_cat", "manager123")
        response = self.client.post("/api/v1/categories/", {"description": "No name"}, format="json")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["error"], "Category name is required")


class SeedDemoCatalogCommandTests(APITestCase):
    def test_seed_is_idempotent(self):
        out = StringIO()
        call_command("seed_demo_catalog", stdout=out)
        call_command("seed_demo_catalog", stdout=out)

        self.assertEqual(Category.objects.count(), 5)
        self.assertEqual(Supplier.objects.count(), 3)
        self.assertEqual(Product.objects.count(), 5)
        self.assertEqual(Product.objects.get(sku="WBH-001").total_profit, Decimal("44.99"))
        self.assertTrue(Product.objects.get(sku="BB-OFF-001").is_low_stock)
        self.assertIn("products_created=0", out.getvalue())
