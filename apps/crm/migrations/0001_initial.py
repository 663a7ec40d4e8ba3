import uuid
from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.db import migrations, models

STATUS_CHOICES = [("active", "Active"), ("pending", "Pending"), ("inactive", "Inactive")]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("core", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Customer",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for the customer",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "customer_number",
                    models.CharField(
                        editable=False,
                        help_text="Sequential number, e.g. CUS-00001",
                        max_length=20,
                    ),
                ),
                ("name", models.CharField(help_text="Customer's full name", max_length=255)),
                (
                    "phone",
                    models.CharField(
                        help_text="Customer's primary phone number",
                        max_length=20,
                        validators=[
                            django.core.validators.RegexValidator(
                                message="Enter a valid phone number (7-20 digits, spaces, dashes or brackets).",
                                regex="^\\+?[0-9\\s\\-()]{7,20}$",
                            )
                        ],
                    ),
                ),
                ("email", models.EmailField(blank=True, help_text="Customer's email address", max_length=254)),
                ("address", models.TextField(blank=True)),
                (
                    "customer_type",
                    models.CharField(
                        choices=[("retail", "Retail"), ("wholesale", "Wholesale")],
                        default="retail",
                        max_length=20,
                    ),
                ),
                (
                    "credit_limit",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        help_text="Maximum outstanding credit allowed",
                        max_digits=12,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.00"))],
                    ),
                ),
                (
                    "total_purchases",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        help_text="Total lifetime purchase amount",
                        max_digits=14,
                    ),
                ),
                (
                    "loyalty_points",
                    models.IntegerField(
                        default=0,
                        help_text="Current loyalty points balance",
                        validators=[django.core.validators.MinValueValidator(0)],
                    ),
                ),
                ("status", models.CharField(choices=STATUS_CHOICES, default="active", max_length=20)),
                ("notes", models.TextField(blank=True, help_text="Internal notes about the customer")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "last_purchase_at",
                    models.DateTimeField(
                        blank=True, help_text="When the customer made their last purchase", null=True
                    ),
                ),
                (
                    "organization",
                    models.ForeignKey(
                        help_text="Organization that owns this customer",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="customers",
                        to="core.organization",
                    ),
                ),
            ],
            options={
                "verbose_name": "Customer",
                "verbose_name_plural": "Customers",
                "db_table": "crm_customers",
                "ordering": ["-created_at"],
                "unique_together": {("organization", "customer_number")},
                "indexes": [
                    models.Index(fields=["organization", "phone"], name="crm_cust_org_phone_idx"),
                    models.Index(fields=["organization", "name"], name="crm_cust_org_name_idx"),
                ],
            },
        ),
    ]
