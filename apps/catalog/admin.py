from django.contrib import admin

from apps.catalog.models import Category, Product


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("sku", "name", "category", "supplier", "selling_price", "stock_quantity", "is_active", "updated_at")
    list_filter = ("is_active", "category", "supplier")
    search_fields = ("sku", "name", "description")
    readonly_fields = ("total_profit",)


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ("name", "updated_at")
    search_fields = ("name", "description")
