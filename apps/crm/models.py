"""
Customer relationship models.
"""

import uuid
from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from apps.core.models import STATUS_ACTIVE, STATUS_CHOICES, Organization
from apps.core.utils import next_sequence_number
from apps.core.validators import phone_validator

# One loyalty point per this much spent
LOYALTY_POINT_VALUE = Decimal("100")


class Customer(models.Model):
    """
    Customer profile with purchase totals and loyalty points.
    """

    RETAIL = "retail"
    WHOLESALE = "wholesale"

    CUSTOMER_TYPE_CHOICES = [
        (RETAIL, "Retail"),
        (WHOLESALE, "Wholesale"),
    ]

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for the customer",
    )

    organization = models.ForeignKey(
        Organization,
        on_delete=models.CASCADE,
        related_name="customers",
        help_text="Organization that owns this customer",
    )

    customer_number = models.CharField(
        max_length=20, editable=False, help_text="Sequential number, e.g. CUS-00001"
    )

    name = models.CharField(max_length=255, help_text="Customer's full name")

    phone = models.CharField(
        max_length=20, validators=[phone_validator], help_text="Customer's primary phone number"
    )

    email = models.EmailField(blank=True, help_text="Customer's email address")

    address = models.TextField(blank=True)

    customer_type = models.CharField(
        max_length=20, choices=CUSTOMER_TYPE_CHOICES, default=RETAIL
    )

    credit_limit = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text="Maximum outstanding credit allowed",
    )

    total_purchases = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Total lifetime purchase amount",
    )

    loyalty_points = models.IntegerField(
        default=0, validators=[MinValueValidator(0)], help_text="Current loyalty points balance"
    )

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ACTIVE)

    notes = models.TextField(blank=True, help_text="Internal notes about the customer")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    last_purchase_at = models.DateTimeField(
        null=True, blank=True, help_text="When the customer made their last purchase"
    )

    class Meta:
        db_table = "crm_customers"
        ordering = ["-created_at"]
        verbose_name = "Customer"
        verbose_name_plural = "Customers"
        unique_together = [["organization", "customer_number"]]
        indexes = [
            models.Index(fields=["organization", "phone"], name="crm_cust_org_phone_idx"),
            models.Index(fields=["organization", "name"], name="crm_cust_org_name_idx"),
        ]

    def __str__(self):
        return f"{self.customer_number} - {self.name}"

    def save(self, *args, **kwargs):
        if not self.customer_number:
            self.customer_number = next_sequence_number(
                Customer, self.organization, "customer_number", "CUS-"
            )
        super().save(*args, **kwargs)

    @property
    def is_wholesale(self):
        return self.customer_type == self.WHOLESALE

    def record_purchase(self, amount):
        """
        Add a sale to the purchase total and award loyalty points.

        Negative amounts (refunds) reduce the total and take back points.
        """
        self.total_purchases += amount
        points = int(abs(amount) // LOYALTY_POINT_VALUE)
        if amount >= 0:
            self.loyalty_points += points
            self.last_purchase_at = timezone.now()
        else:
            self.loyalty_points = max(self.loyalty_points - points, 0)
        self.save(
            update_fields=["total_purchases", "loyalty_points", "last_purchase_at", "updated_at"]
        )
