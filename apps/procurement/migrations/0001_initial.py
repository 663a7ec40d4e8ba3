import uuid
from decimal import Decimal

import django.core.validators
import django.db.models.deletion
import django.utils.timezone
import django_fsm
from django.conf import settings
from django.db import migrations, models

STATUS_CHOICES = [("active", "Active"), ("pending", "Pending"), ("inactive", "Inactive")]

phone_validator = django.core.validators.RegexValidator(
    message="Enter a valid phone number (7-20 digits, spaces, dashes or brackets).",
    regex="^\\+?[0-9\\s\\-()]{7,20}$",
)


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("core", "0001_initial"),
        ("inventory", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Supplier",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(help_text="Supplier display name", max_length=255)),
                ("code", models.CharField(help_text="Supplier code, unique per organization", max_length=50)),
                (
                    "company_name",
                    models.CharField(blank=True, help_text="Registered company name", max_length=255),
                ),
                (
                    "contact_person_name",
                    models.CharField(blank=True, help_text="Primary contact person name", max_length=255),
                ),
                (
                    "contact_person_phone",
                    models.CharField(blank=True, max_length=20, validators=[phone_validator]),
                ),
                ("email", models.EmailField(blank=True, help_text="Primary email address", max_length=254)),
                (
                    "phone",
                    models.CharField(
                        help_text="Primary phone number", max_length=20, validators=[phone_validator]
                    ),
                ),
                ("fax", models.CharField(blank=True, max_length=20, validators=[phone_validator])),
                ("website", models.URLField(blank=True)),
                ("address", models.TextField(blank=True, help_text="Street address")),
                ("city", models.CharField(blank=True, max_length=100)),
                ("state", models.CharField(blank=True, max_length=100)),
                ("country", models.CharField(blank=True, max_length=100)),
                ("tax_id", models.CharField(blank=True, help_text="Tax identification number", max_length=50)),
                ("description", models.TextField(blank=True)),
                ("status", models.CharField(choices=STATUS_CHOICES, default="active", max_length=20)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "organization",
                    models.ForeignKey(
                        help_text="Organization that owns this supplier",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="suppliers",
                        to="core.organization",
                    ),
                ),
            ],
            options={
                "db_table": "procurement_suppliers",
                "ordering": ["name"],
                "unique_together": {("organization", "code")},
                "indexes": [
                    models.Index(fields=["organization", "status"], name="supplier_org_status_idx")
                ],
            },
        ),
        migrations.CreateModel(
            name="SupplierBankAccount",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "bank_name",
                    models.CharField(
                        max_length=100, validators=[django.core.validators.MinLengthValidator(2)]
                    ),
                ),
                ("branch_name", models.CharField(blank=True, max_length=100)),
                ("account_name", models.CharField(blank=True, max_length=255)),
                (
                    "account_number",
                    models.CharField(
                        max_length=50, validators=[django.core.validators.MinLengthValidator(5)]
                    ),
                ),
                ("is_default", models.BooleanField(default=False)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "supplier",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="bank_accounts",
                        to="procurement.supplier",
                    ),
                ),
            ],
            options={
                "db_table": "procurement_supplier_bank_accounts",
                "ordering": ["-is_default", "bank_name"],
            },
        ),
        migrations.CreateModel(
            name="PurchaseOrder",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "po_number",
                    models.CharField(
                        editable=False,
                        help_text="Purchase order number, e.g. PO-2026-00001",
                        max_length=50,
                    ),
                ),
                (
                    "subtotal",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        help_text="Subtotal before tax",
                        max_digits=12,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.00"))],
                    ),
                ),
                (
                    "tax_amount",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        help_text="Tax amount",
                        max_digits=12,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.00"))],
                    ),
                ),
                (
                    "total_amount",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        help_text="Total amount including tax",
                        max_digits=12,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.00"))],
                    ),
                ),
                (
                    "status",
                    django_fsm.FSMField(
                        choices=[
                            ("DRAFT", "Draft"),
                            ("APPROVED", "Approved"),
                            ("SENT", "Sent to Supplier"),
                            ("PARTIALLY_RECEIVED", "Partially Received"),
                            ("COMPLETED", "Completed"),
                            ("CANCELLED", "Cancelled"),
                        ],
                        default="DRAFT",
                        help_text="Current status of the purchase order",
                        max_length=50,
                    ),
                ),
                (
                    "order_date",
                    models.DateField(default=django.utils.timezone.localdate, help_text="Date of the order"),
                ),
                (
                    "expected_date",
                    models.DateField(blank=True, help_text="Expected delivery date", null=True),
                ),
                (
                    "reference",
                    models.CharField(
                        blank=True, help_text="Supplier's reference number for this order", max_length=100
                    ),
                ),
                (
                    "notes",
                    models.TextField(blank=True, help_text="Internal notes about this purchase order"),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("approved_at", models.DateTimeField(blank=True, null=True)),
                ("sent_at", models.DateTimeField(blank=True, null=True)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                (
                    "approved_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="approved_purchase_orders",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "branch",
                    models.ForeignKey(
                        blank=True,
                        help_text="Branch that will receive the goods",
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="purchase_orders",
                        to="core.branch",
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="created_purchase_orders",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "organization",
                    models.ForeignKey(
                        help_text="Organization that owns this purchase order",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="purchase_orders",
                        to="core.organization",
                    ),
                ),
                (
                    "supplier",
                    models.ForeignKey(
                        help_text="Supplier for this purchase order",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="purchase_orders",
                        to="procurement.supplier",
                    ),
                ),
            ],
            options={
                "db_table": "procurement_purchase_orders",
                "ordering": ["-order_date", "-created_at"],
                "unique_together": {("organization", "po_number")},
                "indexes": [
                    models.Index(fields=["organization", "status"], name="po_org_status_idx"),
                    models.Index(fields=["organization", "order_date"], name="po_org_date_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="PurchaseOrderItem",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "quantity",
                    models.IntegerField(
                        help_text="Ordered quantity",
                        validators=[django.core.validators.MinValueValidator(1)],
                    ),
                ),
                (
                    "received_quantity",
                    models.IntegerField(
                        default=0,
                        help_text="Quantity received so far",
                        validators=[django.core.validators.MinValueValidator(0)],
                    ),
                ),
                (
                    "unit_cost",
                    models.DecimalField(
                        decimal_places=2,
                        help_text="Cost per unit",
                        max_digits=12,
                        validators=[django.core.validators.MinValueValidator(Decimal("1.00"))],
                    ),
                ),
                (
                    "line_total",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        help_text="Total cost for this line item",
                        max_digits=12,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="purchase_order_items",
                        to="inventory.product",
                    ),
                ),
                (
                    "purchase_order",
                    models.ForeignKey(
                        help_text="Purchase order this item belongs to",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="procurement.purchaseorder",
                    ),
                ),
            ],
            options={"db_table": "procurement_purchase_order_items", "ordering": ["created_at"]},
        ),
        migrations.CreateModel(
            name="GoodsReceivedNote",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "grn_number",
                    models.CharField(
                        editable=False, help_text="GRN number, e.g. GRN-2026-00001", max_length=50
                    ),
                ),
                (
                    "grn_date",
                    models.DateField(
                        default=django.utils.timezone.localdate, help_text="Date goods were received"
                    ),
                ),
                ("invoice_number", models.CharField(help_text="Supplier's invoice number", max_length=100)),
                (
                    "invoice_file",
                    models.FileField(
                        blank=True,
                        help_text="Scanned supplier invoice",
                        null=True,
                        upload_to="grn_invoices/%Y/%m/",
                    ),
                ),
                ("remarks", models.TextField(blank=True)),
                (
                    "total_value",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        help_text="Value of the received (paid) quantities",
                        max_digits=12,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "organization",
                    models.ForeignKey(
                        help_text="Organization that owns this GRN",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="goods_received_notes",
                        to="core.organization",
                    ),
                ),
                (
                    "purchase_order",
                    models.ForeignKey(
                        help_text="Related purchase order",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="goods_received_notes",
                        to="procurement.purchaseorder",
                    ),
                ),
                (
                    "received_by",
                    models.ForeignKey(
                        blank=True,
                        help_text="User who received the goods",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="received_goods",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "procurement_goods_received_notes",
                "ordering": ["-grn_date", "-created_at"],
                "unique_together": {("organization", "grn_number")},
                "indexes": [
                    models.Index(fields=["organization", "grn_date"], name="grn_org_date_idx")
                ],
            },
        ),
        migrations.CreateModel(
            name="GoodsReceivedNoteItem",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "received_quantity",
                    models.IntegerField(
                        default=0, validators=[django.core.validators.MinValueValidator(0)]
                    ),
                ),
                (
                    "free_quantity",
                    models.IntegerField(
                        default=0,
                        help_text="Bonus units not charged for",
                        validators=[django.core.validators.MinValueValidator(0)],
                    ),
                ),
                (
                    "unit_cost",
                    models.DecimalField(
                        decimal_places=2,
                        max_digits=12,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.00"))],
                    ),
                ),
                (
                    "selling_price",
                    models.DecimalField(
                        decimal_places=2,
                        help_text="New retail price of the product",
                        max_digits=12,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.00"))],
                    ),
                ),
                ("expiry_date", models.DateField(blank=True, null=True)),
                ("batch_number", models.CharField(blank=True, max_length=50)),
                (
                    "grn",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="procurement.goodsreceivednote",
                    ),
                ),
                (
                    "purchase_order_item",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="receipts",
                        to="procurement.purchaseorderitem",
                    ),
                ),
            ],
            options={"db_table": "procurement_goods_received_note_items"},
        ),
    ]
