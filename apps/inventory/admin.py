"""
Admin configuration for inventory models.
"""

from django.contrib import admin

from import_export import fields, resources
from import_export.admin import ImportExportModelAdmin
from import_export.widgets import ForeignKeyWidget

from .models import Brand, Category, Container, MeasurementUnit, Product, StockMovement


class ProductResource(resources.ModelResource):
    """Spreadsheet import/export of products, matched on organization and code."""

    main_category = fields.Field(
        column_name="main_category",
        attribute="main_category",
        widget=ForeignKeyWidget(Category, "name"),
    )
    brand = fields.Field(
        column_name="brand", attribute="brand", widget=ForeignKeyWidget(Brand, "name")
    )

    class Meta:
        model = Product
        import_id_fields = ("organization", "code")
        fields = (
            "organization",
            "code",
            "name",
            "barcode",
            "brand",
            "main_category",
            "size",
            "cost_price",
            "retail_price",
            "wholesale_price",
            "quantity",
            "reorder_level",
            "status",
        )
        skip_unchanged = True


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    """Admin interface for Category."""

    list_display = ["name", "code", "parent", "organization", "status", "created_at"]
    list_filter = ["status", "organization"]
    search_fields = ["name", "code", "description"]
    readonly_fields = ["created_at", "updated_at"]
    fieldsets = (
        (
            "Basic Information",
            {
                "fields": ("organization", "name", "code", "parent", "description", "status"),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("created_at", "updated_at"),
                "classes": ("collapse",),
            },
        ),
    )


@admin.register(Brand)
class BrandAdmin(admin.ModelAdmin):
    list_display = ["name", "code", "organization", "status"]
    list_filter = ["status", "organization"]
    search_fields = ["name", "code"]


@admin.register(MeasurementUnit)
class MeasurementUnitAdmin(admin.ModelAdmin):
    list_display = ["name", "symbol", "organization", "status"]
    list_filter = ["status", "organization"]
    search_fields = ["name", "symbol"]


@admin.register(Container)
class ContainerAdmin(admin.ModelAdmin):
    list_display = ["name", "capacity", "measurement_unit", "organization", "status"]
    list_filter = ["status", "organization"]
    search_fields = ["name"]


@admin.register(Product)
class ProductAdmin(ImportExportModelAdmin):
    """Admin interface for Product."""

    resource_classes = [ProductResource]

    list_display = [
        "code",
        "name",
        "barcode",
        "main_category",
        "retail_price",
        "quantity",
        "organization",
        "status",
    ]
    list_filter = ["status", "track_quantity", "taxable", "organization", "main_category"]
    search_fields = ["code", "name", "barcode"]
    readonly_fields = ["id", "created_at", "updated_at"]
    fieldsets = (
        (
            "Basic Information",
            {
                "fields": ("id", "organization", "code", "name", "barcode", "size", "description"),
            },
        ),
        (
            "Classification",
            {
                "fields": (
                    "brand",
                    "main_category",
                    "sub_category",
                    "measurement_unit",
                    "container",
                    "supplier",
                ),
            },
        ),
        (
            "Pricing",
            {
                "fields": ("cost_price", "retail_price", "wholesale_price", "taxable"),
            },
        ),
        (
            "Inventory",
            {
                "fields": ("quantity", "reorder_level", "track_quantity", "is_variant"),
            },
        ),
        (
            "Status",
            {
                "fields": ("status", "image_url"),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("created_at", "updated_at"),
                "classes": ("collapse",),
            },
        ),
    )


@admin.register(StockMovement)
class StockMovementAdmin(admin.ModelAdmin):
    list_display = [
        "product",
        "movement_type",
        "quantity_change",
        "quantity_after",
        "reference",
        "created_at",
    ]
    list_filter = ["movement_type", "organization"]
    search_fields = ["product__name", "product__code", "reference", "reason"]
    readonly_fields = [field.name for field in StockMovement._meta.fields]
