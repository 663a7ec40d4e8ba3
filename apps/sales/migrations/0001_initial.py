import uuid
from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


def money(help_text="", default=None, minimum=False, max_digits=12):
    kwargs = {"decimal_places": 2, "max_digits": max_digits}
    if help_text:
        kwargs["help_text"] = help_text
    if default is not None:
        kwargs["default"] = default
    if minimum:
        kwargs["validators"] = [django.core.validators.MinValueValidator(Decimal("0.00"))]
    return models.DecimalField(**kwargs)


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("core", "0001_initial"),
        ("crm", "0001_initial"),
        ("inventory", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Sale",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for the sale",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "invoice_number",
                    models.CharField(
                        editable=False,
                        help_text="Invoice number within the organization (e.g., 'INV-00001')",
                        max_length=50,
                    ),
                ),
                ("is_wholesale", models.BooleanField(default=False)),
                ("subtotal", money("Sum of line amounts before discounts", minimum=True)),
                ("item_discount", money("Sum of line discounts", Decimal("0.00"))),
                (
                    "wholesale_discount_rate",
                    money("Wholesale discount percentage", Decimal("0.00"), max_digits=5),
                ),
                ("wholesale_discount", money("Wholesale discount amount", Decimal("0.00"))),
                (
                    "discount",
                    money("Total discount (line plus wholesale)", Decimal("0.00"), minimum=True),
                ),
                ("tax_rate", money(default=Decimal("0.00"), max_digits=5)),
                ("tax", money("Tax amount", Decimal("0.00"), minimum=True)),
                ("grand_total", money("Subtotal minus discount plus tax")),
                ("adjustment", money("Manual rounding adjustment", Decimal("0.00"))),
                ("net_total", money("Amount payable (grand total plus adjustment)")),
                ("cash_in", money("Cash handed over by the customer", Decimal("0.00"))),
                ("balance", money("Change given back", Decimal("0.00"))),
                (
                    "payment_method",
                    models.CharField(
                        choices=[("CASH", "Cash"), ("CARD", "Card"), ("SPLIT", "Split Payment")],
                        help_text="Primary payment method used",
                        max_length=20,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[("COMPLETED", "Completed"), ("REFUNDED", "Refunded")],
                        default="COMPLETED",
                        help_text="Current status of the sale",
                        max_length=20,
                    ),
                ),
                ("notes", models.TextField(blank=True)),
                ("refund_reason", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("refunded_at", models.DateTimeField(blank=True, null=True)),
                (
                    "branch",
                    models.ForeignKey(
                        blank=True,
                        help_text="Branch where the sale was made",
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="sales",
                        to="core.branch",
                    ),
                ),
                (
                    "cashier",
                    models.ForeignKey(
                        help_text="User who processed the sale",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="sales_processed",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "customer",
                    models.ForeignKey(
                        blank=True,
                        help_text="Customer who made the purchase (optional for walk-in sales)",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="sales",
                        to="crm.customer",
                    ),
                ),
                (
                    "organization",
                    models.ForeignKey(
                        help_text="Organization that owns this sale",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="sales",
                        to="core.organization",
                    ),
                ),
                (
                    "refunded_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="sales_refunded",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "sold_by",
                    models.ForeignKey(
                        blank=True,
                        help_text="Sales person credited with the sale",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="sales_made",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Sale",
                "verbose_name_plural": "Sales",
                "db_table": "sales",
                "ordering": ["-created_at"],
                "unique_together": {("organization", "invoice_number")},
                "indexes": [
                    models.Index(fields=["organization", "-created_at"], name="sale_org_date_idx"),
                    models.Index(fields=["organization", "status"], name="sale_org_status_idx"),
                    models.Index(
                        fields=["organization", "branch", "-created_at"],
                        name="sale_branch_date_idx",
                    ),
                    models.Index(fields=["customer", "-created_at"], name="sale_cust_date_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="SaleItem",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4, editable=False, primary_key=True, serialize=False
                    ),
                ),
                ("product_name", models.CharField(max_length=255)),
                ("barcode", models.CharField(blank=True, max_length=64)),
                ("size", models.CharField(blank=True, max_length=50)),
                (
                    "quantity",
                    models.IntegerField(
                        help_text="Quantity sold",
                        validators=[django.core.validators.MinValueValidator(1)],
                    ),
                ),
                ("unit_price", money("Unit price at time of sale", minimum=True)),
                (
                    "cost_price",
                    money("Unit cost at time of sale, for profit reporting", Decimal("0.00")),
                ),
                ("discount_percent", money(default=Decimal("0.00"), max_digits=5)),
                ("discount_amount", money(default=Decimal("0.00"))),
                ("line_total", money("quantity * unit_price less the line discount")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "product",
                    models.ForeignKey(
                        help_text="Product that was sold",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="sale_items",
                        to="inventory.product",
                    ),
                ),
                (
                    "sale",
                    models.ForeignKey(
                        help_text="Sale that this item belongs to",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="sales.sale",
                    ),
                ),
            ],
            options={
                "verbose_name": "Sale Item",
                "verbose_name_plural": "Sale Items",
                "db_table": "sale_items",
                "ordering": ["created_at"],
                "indexes": [
                    models.Index(fields=["sale"], name="saleitem_sale_idx"),
                    models.Index(fields=["product"], name="saleitem_product_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Payment",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4, editable=False, primary_key=True, serialize=False
                    ),
                ),
                (
                    "method",
                    models.CharField(choices=[("CASH", "Cash"), ("CARD", "Card")], max_length=20),
                ),
                ("amount", money("Amount tendered; negative for refunds")),
                (
                    "card_type",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("Visa", "Visa"),
                            ("MasterCard", "MasterCard"),
                            ("Amex", "Amex"),
                            ("Other", "Other"),
                        ],
                        max_length=20,
                    ),
                ),
                ("last4", models.CharField(blank=True, max_length=4)),
                ("auth_code", models.CharField(blank=True, max_length=20)),
                ("batch", models.CharField(blank=True, max_length=20)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("Pending", "Pending"),
                            ("Matched", "Matched"),
                            ("Failed", "Failed"),
                            ("Refunded", "Refunded"),
                        ],
                        default="Matched",
                        max_length=20,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                (
                    "sale",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="payments",
                        to="sales.sale",
                    ),
                ),
            ],
            options={
                "db_table": "sale_payments",
                "ordering": ["created_at"],
                "indexes": [
                    models.Index(fields=["method", "status"], name="payment_method_status_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="HeldCart",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4, editable=False, primary_key=True, serialize=False
                    ),
                ),
                ("label", models.CharField(blank=True, max_length=100)),
                ("snapshot", models.JSONField(default=dict, help_text="Serialized cart state")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "organization",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="held_carts",
                        to="core.organization",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="held_carts",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "sale_held_carts",
                "ordering": ["-created_at"],
            },
        ),
    ]
