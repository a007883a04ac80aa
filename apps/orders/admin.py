from django.contrib import admin

from apps.orders.models import Order, OrderItem


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    can_delete = False
    readonly_fields = ("product", "quantity", "unit_price", "total_price", "created_at")

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = (
        "order_number",
        "supplier",
        "status",
        "order_date",
        "expected_delivery_date",
        "total_amount",
        "created_at",
    )
    list_filter = ("status", "supplier")
    search_fields = ("order_number", "notes", "supplier__name")
    readonly_fields = ("order_number", "supplier", "total_amount", "created_at", "updated_at")
    inlines = [OrderItemInline]

    def has_add_permission(self, request):
        return False
