import uuid
from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

STATUS_CHOICES = [("active", "Active"), ("pending", "Pending"), ("inactive", "Inactive")]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("core", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Category",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for the category",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("name", models.CharField(help_text="Category name (e.g., Beverages)", max_length=100)),
                ("code", models.CharField(blank=True, help_text="Short category code", max_length=50)),
                ("description", models.TextField(blank=True)),
                ("status", models.CharField(choices=STATUS_CHOICES, default="active", max_length=20)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "organization",
                    models.ForeignKey(
                        help_text="Organization that owns this category",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="categories",
                        to="core.organization",
                    ),
                ),
                (
                    "parent",
                    models.ForeignKey(
                        blank=True,
                        help_text="Main category of a sub-category",
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="subcategories",
                        to="inventory.category",
                    ),
                ),
            ],
            options={
                "verbose_name": "Category",
                "verbose_name_plural": "Categories",
                "db_table": "inventory_categories",
                "ordering": ["name"],
                "indexes": [
                    models.Index(fields=["organization", "parent"], name="cat_org_parent_idx")
                ],
            },
        ),
        migrations.CreateModel(
            name="Brand",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=100)),
                ("code", models.CharField(blank=True, max_length=50)),
                ("description", models.TextField(blank=True)),
                ("status", models.CharField(choices=STATUS_CHOICES, default="active", max_length=20)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "organization",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="brands",
                        to="core.organization",
                    ),
                ),
            ],
            options={"db_table": "inventory_brands", "ordering": ["name"]},
        ),
        migrations.CreateModel(
            name="MeasurementUnit",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=50)),
                ("symbol", models.CharField(max_length=10)),
                ("status", models.CharField(choices=STATUS_CHOICES, default="active", max_length=20)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "organization",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="measurement_units",
                        to="core.organization",
                    ),
                ),
            ],
            options={"db_table": "inventory_measurement_units", "ordering": ["name"]},
        ),
        migrations.CreateModel(
            name="Container",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=100)),
                (
                    "capacity",
                    models.DecimalField(
                        decimal_places=3,
                        help_text="Amount held, in the measurement unit",
                        max_digits=10,
                        validators=[django.core.validators.MinValueValidator(Decimal("0"))],
                    ),
                ),
                ("description", models.TextField(blank=True)),
                ("status", models.CharField(choices=STATUS_CHOICES, default="active", max_length=20)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "measurement_unit",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="containers",
                        to="inventory.measurementunit",
                    ),
                ),
                (
                    "organization",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="containers",
                        to="core.organization",
                    ),
                ),
            ],
            options={"db_table": "inventory_containers", "ordering": ["name"]},
        ),
        migrations.CreateModel(
            name="Product",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for the product",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "code",
                    models.CharField(help_text="Product code (SKU), unique per organization", max_length=100),
                ),
                ("name", models.CharField(help_text="Product name", max_length=255)),
                (
                    "barcode",
                    models.CharField(
                        blank=True,
                        help_text="Barcode for scanning, generated as EAN-13 when left blank",
                        max_length=50,
                    ),
                ),
                ("size", models.CharField(blank=True, help_text="Size label, e.g. 500ml", max_length=50)),
                ("description", models.TextField(blank=True)),
                (
                    "cost_price",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        help_text="Cost price (what we paid)",
                        max_digits=12,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.00"))],
                    ),
                ),
                (
                    "retail_price",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        help_text="Price charged to retail customers",
                        max_digits=12,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.00"))],
                    ),
                ),
                (
                    "wholesale_price",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        help_text="Price charged in wholesale mode, never above retail",
                        max_digits=12,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.00"))],
                    ),
                ),
                ("quantity", models.IntegerField(default=0, help_text="Current quantity in stock")),
                (
                    "reorder_level",
                    models.IntegerField(
                        default=0,
                        help_text="Quantity at or below which the product counts as low stock",
                        validators=[django.core.validators.MinValueValidator(0)],
                    ),
                ),
                (
                    "track_quantity",
                    models.BooleanField(default=True, help_text="Whether sales check and deduct stock"),
                ),
                ("taxable", models.BooleanField(default=True)),
                ("is_variant", models.BooleanField(default=False)),
                ("image_url", models.URLField(blank=True)),
                ("status", models.CharField(choices=STATUS_CHOICES, default="active", max_length=20)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "brand",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="products",
                        to="inventory.brand",
                    ),
                ),
                (
                    "container",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="products",
                        to="inventory.container",
                    ),
                ),
                (
                    "main_category",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="main_products",
                        to="inventory.category",
                    ),
                ),
                (
                    "measurement_unit",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="products",
                        to="inventory.measurementunit",
                    ),
                ),
                (
                    "organization",
                    models.ForeignKey(
                        help_text="Organization that owns this product",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="products",
                        to="core.organization",
                    ),
                ),
                (
                    "sub_category",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="sub_products",
                        to="inventory.category",
                    ),
                ),
            ],
            options={
                "verbose_name": "Product",
                "verbose_name_plural": "Products",
                "db_table": "inventory_products",
                "ordering": ["name"],
                "unique_together": {("organization", "code"), ("organization", "barcode")},
                "indexes": [
                    models.Index(fields=["organization", "status"], name="product_org_status_idx"),
                    models.Index(
                        fields=["organization", "main_category"], name="product_org_category_idx"
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="StockMovement",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "movement_type",
                    models.CharField(
                        choices=[
                            ("ADD", "Manual Addition"),
                            ("DEDUCT", "Manual Deduction"),
                            ("SET", "Stock Count"),
                            ("SALE", "Sale"),
                            ("REFUND", "Refund"),
                            ("GRN", "Goods Received"),
                        ],
                        max_length=10,
                    ),
                ),
                (
                    "quantity_change",
                    models.IntegerField(help_text="Signed change applied to the stock level"),
                ),
                ("quantity_after", models.IntegerField(help_text="Stock level after the change")),
                ("reason", models.CharField(blank=True, max_length=255)),
                (
                    "reference",
                    models.CharField(
                        blank=True,
                        help_text="Document number (invoice, GRN) behind the change",
                        max_length=50,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "organization",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="stock_movements",
                        to="core.organization",
                    ),
                ),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="movements",
                        to="inventory.product",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="stock_movements",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "inventory_stock_movements",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["product", "created_at"], name="movement_product_date_idx")
                ],
            },
        ),
    ]
