"""
Django admin configuration for sales models.
"""

from django.contrib import admin

from .models import HeldCart, Payment, Sale, SaleItem


class SaleItemInline(admin.TabularInline):
    """Inline admin for SaleItem model."""

    model = SaleItem
    extra = 0
    can_delete = False
    fields = [
        "product_name",
        "barcode",
        "quantity",
        "unit_price",
        "discount_percent",
        "discount_amount",
        "line_total",
    ]
    readonly_fields = fields


class PaymentInline(admin.TabularInline):
    model = Payment
    extra = 0
    fields = ["method", "amount", "card_type", "last4", "auth_code", "batch", "status"]
    readonly_fields = ["method", "amount", "card_type", "last4", "auth_code", "batch"]


@admin.register(Sale)
class SaleAdmin(admin.ModelAdmin):
    """
    Sales are written by checkout; only the notes and card payment
    status are edited here.
    """

    list_display = [
        "invoice_number",
        "organization",
        "customer",
        "cashier",
        "payment_method",
        "net_total",
        "status",
        "created_at",
    ]
    list_filter = ["status", "payment_method", "is_wholesale", "organization", "created_at"]
    search_fields = ["invoice_number", "customer__name", "customer__phone"]
    date_hierarchy = "created_at"
    inlines = [SaleItemInline, PaymentInline]
    readonly_fields = [
        "organization",
        "invoice_number",
        "customer",
        "branch",
        "cashier",
        "sold_by",
        "is_wholesale",
        "subtotal",
        "item_discount",
        "wholesale_discount_rate",
        "wholesale_discount",
        "discount",
        "tax_rate",
        "tax",
        "grand_total",
        "adjustment",
        "net_total",
        "cash_in",
        "balance",
        "payment_method",
        "status",
        "refund_reason",
        "refunded_by",
        "refunded_at",
        "created_at",
        "updated_at",
    ]

    fieldsets = (
        (
            "Sale",
            {
                "fields": (
                    "organization",
                    "invoice_number",
                    "branch",
                    "customer",
                    "cashier",
                    "sold_by",
                    "status",
                )
            },
        ),
        (
            "Amounts",
            {
                "fields": (
                    "is_wholesale",
                    "subtotal",
                    "item_discount",
                    "wholesale_discount_rate",
                    "wholesale_discount",
                    "discount",
                    "tax_rate",
                    "tax",
                    "grand_total",
                    "adjustment",
                    "net_total",
                )
            },
        ),
        ("Payment", {"fields": ("payment_method", "cash_in", "balance")}),
        ("Refund", {"fields": ("refund_reason", "refunded_by", "refunded_at")}),
        ("Notes", {"fields": ("notes",)}),
        ("Timestamps", {"fields": ("created_at", "updated_at"), "classes": ("collapse",)}),
    )

    def has_add_permission(self, request):
        return False


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ["sale", "method", "amount", "card_type", "last4", "auth_code", "status"]
    list_filter = ["method", "card_type", "status"]
    search_fields = ["sale__invoice_number", "last4", "auth_code", "batch"]
    list_editable = ["status"]

    def has_add_permission(self, request):
        return False


@admin.register(HeldCart)
class HeldCartAdmin(admin.ModelAdmin):
    list_display = ["__str__", "organization", "user", "created_at"]
    list_filter = ["organization"]
    readonly_fields = ["snapshot", "created_at"]
