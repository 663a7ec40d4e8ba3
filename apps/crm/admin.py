"""
Admin configuration for customers.
"""

from django.contrib import admin

from import_export import resources
from import_export.admin import ImportExportModelAdmin

from .models import Customer


class CustomerResource(resources.ModelResource):
    class Meta:
        model = Customer
        import_id_fields = ("organization", "phone")
        fields = (
            "organization",
            "name",
            "phone",
            "email",
            "address",
            "customer_type",
            "credit_limit",
            "status",
            "notes",
        )
        skip_unchanged = True


@admin.register(Customer)
class CustomerAdmin(ImportExportModelAdmin):
    """Admin interface for Customer model."""

    resource_classes = [CustomerResource]
    list_display = [
        "customer_number",
        "name",
        "phone",
        "customer_type",
        "total_purchases",
        "loyalty_points",
        "organization",
        "status",
    ]
    list_filter = ["customer_type", "status", "organization", "created_at"]
    search_fields = ["customer_number", "name", "phone", "email"]
    readonly_fields = [
        "customer_number",
        "total_purchases",
        "loyalty_points",
        "last_purchase_at",
        "created_at",
        "updated_at",
    ]

    fieldsets = (
        (
            "Customer",
            {"fields": ("organization", "customer_number", "name", "customer_type", "status")},
        ),
        ("Contact", {"fields": ("phone", "email", "address")}),
        (
            "Purchases",
            {"fields": ("credit_limit", "total_purchases", "loyalty_points", "last_purchase_at")},
        ),
        ("Notes", {"fields": ("notes",)}),
        ("Timestamps", {"fields": ("created_at", "updated_at"), "classes": ("collapse",)}),
    )
