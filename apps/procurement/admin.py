"""
Admin configuration for procurement models.
"""

from django.contrib import admin

from import_export import resources
from import_export.admin import ImportExportModelAdmin

from .models import (
    GoodsReceivedNote,
    GoodsReceivedNoteItem,
    PurchaseOrder,
    PurchaseOrderItem,
    Supplier,
    SupplierBankAccount,
)


class SupplierResource(resources.ModelResource):
    class Meta:
        model = Supplier
        import_id_fields = ("organization", "code")
        fields = (
            "organization",
            "code",
            "name",
            "company_name",
            "contact_person_name",
            "contact_person_phone",
            "email",
            "phone",
            "address",
            "city",
            "country",
            "tax_id",
            "status",
        )
        skip_unchanged = True


class SupplierBankAccountInline(admin.TabularInline):
    model = SupplierBankAccount
    extra = 0


@admin.register(Supplier)
class SupplierAdmin(ImportExportModelAdmin):
    """Admin interface for Supplier model."""

    resource_classes = [SupplierResource]
    list_display = [
        "code",
        "name",
        "contact_person_name",
        "phone",
        "email",
        "organization",
        "status",
    ]
    list_filter = ["status", "organization", "created_at"]
    search_fields = ["code", "name", "company_name", "contact_person_name", "email", "phone"]
    readonly_fields = ["created_at", "updated_at"]
    inlines = [SupplierBankAccountInline]

    fieldsets = (
        (
            "Basic Information",
            {"fields": ("organization", "code", "name", "company_name", "status")},
        ),
        (
            "Contact Information",
            {
                "fields": (
                    "contact_person_name",
                    "contact_person_phone",
                    "email",
                    "phone",
                    "fax",
                    "website",
                )
            },
        ),
        ("Address", {"fields": ("address", "city", "state", "country")}),
        ("Business Information", {"fields": ("tax_id", "description")}),
        ("Timestamps", {"fields": ("created_at", "updated_at"), "classes": ("collapse",)}),
    )


class PurchaseOrderItemInline(admin.TabularInline):
    """Inline admin for PurchaseOrderItem."""

    model = PurchaseOrderItem
    extra = 0
    fields = ["product", "quantity", "received_quantity", "unit_cost", "line_total"]
    readonly_fields = ["line_total"]
    raw_id_fields = ["product"]


@admin.register(PurchaseOrder)
class PurchaseOrderAdmin(admin.ModelAdmin):
    """Admin interface for PurchaseOrder model."""

    list_display = [
        "po_number",
        "supplier",
        "status",
        "total_amount",
        "order_date",
        "expected_date",
        "organization",
    ]
    list_filter = ["status", "order_date", "organization"]
    search_fields = ["po_number", "supplier__name", "reference"]
    readonly_fields = [
        "po_number",
        "status",
        "created_at",
        "updated_at",
        "approved_at",
        "sent_at",
        "completed_at",
    ]
    inlines = [PurchaseOrderItemInline]

    fieldsets = (
        ("Order Information", {"fields": ("organization", "po_number", "supplier", "branch")}),
        ("Financial Information", {"fields": ("subtotal", "tax_amount", "total_amount")}),
        ("Status", {"fields": ("status",)}),
        ("Dates", {"fields": ("order_date", "expected_date")}),
        ("Additional Information", {"fields": ("reference", "notes")}),
        (
            "Audit Information",
            {
                "fields": (
                    "created_by",
                    "created_at",
                    "updated_at",
                    "approved_by",
                    "approved_at",
                    "sent_at",
                    "completed_at",
                ),
                "classes": ("collapse",),
            },
        ),
    )

    actions = ["approve_orders", "send_to_supplier"]

    @admin.action(description="Approve selected orders")
    def approve_orders(self, request, queryset):
        """Bulk approve purchase orders."""
        count = 0
        for order in queryset.filter(status=PurchaseOrder.DRAFT):
            order.approve(request.user)
            order.save()
            count += 1

        self.message_user(request, f"{count} purchase orders were approved.")

    @admin.action(description="Send selected orders to suppliers")
    def send_to_supplier(self, request, queryset):
        """Bulk send orders to suppliers."""
        count = 0
        for order in queryset.filter(status=PurchaseOrder.APPROVED):
            order.send_to_supplier()
            order.save()
            count += 1

        self.message_user(request, f"{count} purchase orders were sent to suppliers.")


class GoodsReceivedNoteItemInline(admin.TabularInline):
    model = GoodsReceivedNoteItem
    extra = 0
    readonly_fields = [
        "purchase_order_item",
        "received_quantity",
        "free_quantity",
        "unit_cost",
        "selling_price",
        "expiry_date",
        "batch_number",
    ]
    can_delete = False


@admin.register(GoodsReceivedNote)
class GoodsReceivedNoteAdmin(admin.ModelAdmin):
    """GRNs are read-only here; stock is only changed through the receiving service."""

    list_display = ["grn_number", "purchase_order", "invoice_number", "grn_date", "total_value"]
    list_filter = ["grn_date", "organization"]
    search_fields = ["grn_number", "purchase_order__po_number", "invoice_number"]
    readonly_fields = [
        "organization",
        "grn_number",
        "purchase_order",
        "grn_date",
        "invoice_number",
        "total_value",
        "received_by",
        "created_at",
        "updated_at",
    ]
    inlines = [GoodsReceivedNoteItemInline]

    def has_add_permission(self, request):
        return False
