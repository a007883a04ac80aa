from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction

from apps.catalog.models import Category, Product
from apps.suppliers.models import Supplier

CATEGORIES = [
    ("Electronics", "Electronic devices and accessories"),
    ("Clothing", "Apparel and fashion items"),
    ("Home & Garden", "Home improvement and garden supplies"),
    ("Books", "Books and educational materials"),
    ("Sports", "Sports equipment and accessories"),
]

SUPPLIERS = [
    ("TechSupply Co.", "John Smith", "john@techsupply.com", "+1-555-0101", "123 Tech Street, Silicon Valley, CA"),
    ("Fashion Wholesale", "Maria Garcia", "maria@fashionwholesale.com", "+1-555-0102", "456 Fashion Ave, New York, NY"),
    ("HomeGoods Direct", "David Johnson", "david@homegoods.com", "+1-555-0103", "789 Home Blvd, Chicago, IL"),
]

# sku, name, category, supplier, real, purchase, selling, stock, min, max
PRODUCTS = [
    ("WBH-001", "Wireless Bluetooth Headphones", "Electronics", "TechSupply Co.", "79.99", "45.00", "89.99", 25, 5, 100),
    ("CTS-BLU-001", "Cotton T-Shirt - Blue", "Clothing", "Fashion Wholesale", "12.99", "8.00", "19.99", 50, 10, 200),
    ("GH-50-001", "Garden Hose 50ft", "Home & Garden", "HomeGoods Direct", "29.99", "18.00", "39.99", 15, 3, 50),
    ("PFB-001", "Programming Fundamentals Book", "Books", "HomeGoods Direct", "34.99", "20.00", "49.99", 30, 5, 100),
    ("BB-OFF-001", "Basketball Official Size", "Sports", "TechSupply Co.", "24.99", "15.00", "34.99", 2, 5, 30),
]


class Command(BaseCommand):
    help = "Seed demo categories, suppliers and products."

    @transaction.atomic
    def handle(self, *args, **options):
        categories = {}
        created_categories = 0
        for name, description in CATEGORIES:
            categories[name], created = Category.objects.get_or_create(name=name, defaults={"description": description})
            created_categories += int(created)

        suppliers = {}
        created_suppliers = 0
        for name, contact_person, email, phone, address in SUPPLIERS:
            suppliers[name], created = Supplier.objects.get_or_create(
                name=name,
                defaults={"contact_person": contact_person, "email": email, "phone": phone, "address": address},
            )
            created_suppliers += int(created)

        created_products = 0
        for sku, name, category, supplier, real, purchase, selling, stock, min_level, max_level in PRODUCTS:
            _, created = Product.objects.get_or_create(
                sku=sku,
                defaults={
                    "name": name,
                    "category": categories[category],
                    "supplier": suppliers[supplier],
                    "real_price": Decimal(real),
                    "purchase_price": Decimal(purchase),
                    "selling_price": Decimal(selling),
                    "stock_quantity": stock,
                    "min_stock_level": min_level,
                    "max_stock_level": max_level,
                },
            )
            created_products += int(created)

        self.stdout.write(
            self.style.SUCCESS(
                "Seed demo catalog completed. "
                f"categories_created={created_categories} suppliers_created={created_suppliers} "
                f"products_created={created_products}"
            )
        )
