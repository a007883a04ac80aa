from django.contrib import admin

from apps.warranties.models import Warranty, WarrantyPayment


class WarrantyPaymentInline(admin.TabularInline):
    model = WarrantyPayment
    extra = 0
    can_delete = False
    readonly_fields = ("amount", "payment_method", "transaction_id", "payment_date", "status", "created_at")

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Warranty)
class WarrantyAdmin(admin.ModelAdmin):
    list_display = ("customer_name", "product", "purchase_date", "warranty_period_months", "expiry_date", "status")
    list_filter = ("status",)
    search_fields = ("customer_name", "customer_email", "customer_phone", "product__name")
    readonly_fields = ("expiry_date", "created_at", "updated_at")
    inlines = [WarrantyPaymentInline]


@admin.register(WarrantyPayment)
class WarrantyPaymentAdmin(admin.ModelAdmin):
    list_display = ("warranty", "amount", "payment_method", "status", "payment_date")
    list_filter = ("payment_method", "status")
    search_fields = ("transaction_id", "warranty__customer_name")
    readonly_fields = ("payment_date", "created_at")

    def has_add_permission(self, request):
        return False
