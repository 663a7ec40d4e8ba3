"""
Sales models for the point of sale.

A ``Sale`` is written once at checkout from the cart, with one ``SaleItem``
per cart line and one ``Payment`` per tender. Refunds restock the items and
add negative card payments so card reconciliation nets out.
"""

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from apps.core.models import Branch, Organization
from apps.core.utils import next_sequence_number
from apps.crm.models import Customer
from apps.inventory.models import Product


class Sale(models.Model):
    """
    A completed POS transaction.
    """

    # Payment method choices
    CASH = "CASH"
    CARD = "CARD"
    SPLIT = "SPLIT"

    PAYMENT_METHOD_CHOICES = [
        (CASH, "Cash"),
        (CARD, "Card"),
        (SPLIT, "Split Payment"),
    ]

    # Status choices
    COMPLETED = "COMPLETED"
    REFUNDED = "REFUNDED"

    STATUS_CHOICES = [
        (COMPLETED, "Completed"),
        (REFUNDED, "Refunded"),
    ]

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for the sale",
    )

    organization = models.ForeignKey(
        Organization,
        on_delete=models.CASCADE,
        related_name="sales",
        help_text="Organization that owns this sale",
    )

    invoice_number = models.CharField(
        max_length=50,
        editable=False,
        help_text="Invoice number within the organization (e.g., 'INV-00001')",
    )

    # Relationships
    customer = models.ForeignKey(
        Customer,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="sales",
        help_text="Customer who made the purchase (optional for walk-in sales)",
    )

    branch = models.ForeignKey(
        Branch,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="sales",
        help_text="Branch where the sale was made",
    )

    cashier = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="sales_processed",
        help_text="User who processed the sale",
    )

    sold_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="sales_made",
        help_text="Sales person credited with the sale",
    )

    is_wholesale = models.BooleanField(default=False)

    # Financial details
    subtotal = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text="Sum of line amounts before discounts",
    )

    item_discount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Sum of line discounts",
    )

    wholesale_discount_rate = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Wholesale discount percentage",
    )

    wholesale_discount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Wholesale discount amount",
    )

    discount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text="Total discount (line plus wholesale)",
    )

    tax_rate = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal("0.00"))

    tax = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text="Tax amount",
    )

    grand_total = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="Subtotal minus discount plus tax",
    )

    adjustment = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Manual rounding adjustment",
    )

    net_total = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="Amount payable (grand total plus adjustment)",
    )

    cash_in = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Cash handed over by the customer",
    )

    balance = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Change given back",
    )

    payment_method = models.CharField(
        max_length=20,
        choices=PAYMENT_METHOD_CHOICES,
        help_text="Primary payment method used",
    )

    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=COMPLETED,
        help_text="Current status of the sale",
    )

    notes = models.TextField(blank=True)

    refund_reason = models.TextField(blank=True)

    refunded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="sales_refunded",
    )

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)
    refunded_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "sales"
        ordering = ["-created_at"]
        verbose_name = "Sale"
        verbose_name_plural = "Sales"
        unique_together = [["organization", "invoice_number"]]
        indexes = [
            models.Index(fields=["organization", "-created_at"], name="sale_org_date_idx"),
            models.Index(fields=["organization", "status"], name="sale_org_status_idx"),
            models.Index(
                fields=["organization", "branch", "-created_at"], name="sale_branch_date_idx"
            ),
            models.Index(fields=["customer", "-created_at"], name="sale_cust_date_idx"),
        ]

    def __str__(self):
        return f"{self.invoice_number} - {self.net_total}"

    def save(self, *args, **kwargs):
        if not self.invoice_number:
            self.invoice_number = next_sequence_number(
                Sale, self.organization, "invoice_number", "INV-"
            )
        super().save(*args, **kwargs)

    def can_be_refunded(self):
        return self.status == self.COMPLETED

    def mark_as_refunded(self, user=None, reason=""):
        if not self.can_be_refunded():
            raise ValueError("This sale cannot be refunded")
        self.status = self.REFUNDED
        self.refunded_at = timezone.now()
        self.refunded_by = user
        self.refund_reason = reason
        self.save(
            update_fields=["status", "refunded_at", "refunded_by", "refund_reason", "updated_at"]
        )

    @property
    def amount_paid(self):
        return sum((payment.amount for payment in self.payments.all()), Decimal("0.00"))


class SaleItem(models.Model):
    """
    One cart line of a sale, with the price and cost at the time of sale.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    sale = models.ForeignKey(
        Sale,
        on_delete=models.CASCADE,
        related_name="items",
        help_text="Sale that this item belongs to",
    )

    product = models.ForeignKey(
        Product,
        on_delete=models.PROTECT,
        related_name="sale_items",
        help_text="Product that was sold",
    )

    product_name = models.CharField(max_length=255)
    barcode = models.CharField(max_length=64, blank=True)
    size = models.CharField(max_length=50, blank=True)

    quantity = models.IntegerField(validators=[MinValueValidator(1)], help_text="Quantity sold")

    unit_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text="Unit price at time of sale",
    )

    cost_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Unit cost at time of sale, for profit reporting",
    )

    discount_percent = models.DecimalField(
        max_digits=5, decimal_places=2, default=Decimal("0.00")
    )

    discount_amount = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )

    line_total = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="quantity * unit_price less the line discount",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "sale_items"
        ordering = ["created_at"]
        verbose_name = "Sale Item"
        verbose_name_plural = "Sale Items"
        indexes = [
            models.Index(fields=["sale"], name="saleitem_sale_idx"),
            models.Index(fields=["product"], name="saleitem_product_idx"),
        ]

    def __str__(self):
        return f"{self.product_name} x {self.quantity}"

    @property
    def gross(self):
        return self.unit_price * self.quantity

    @property
    def profit(self):
        return self.line_total - self.cost_price * self.quantity


class Payment(models.Model):
    """
    A tender against a sale. Card payments carry the terminal slip details
    used for reconciliation.
    """

    CASH = Sale.CASH
    CARD = Sale.CARD

    METHOD_CHOICES = [
        (CASH, "Cash"),
        (CARD, "Card"),
    ]

    VISA = "Visa"
    MASTERCARD = "MasterCard"
    AMEX = "Amex"
    OTHER = "Other"

    CARD_TYPE_CHOICES = [
        (VISA, "Visa"),
        (MASTERCARD, "MasterCard"),
        (AMEX, "Amex"),
        (OTHER, "Other"),
    ]

    PENDING = "Pending"
    MATCHED = "Matched"
    FAILED = "Failed"
    REFUNDED = "Refunded"

    STATUS_CHOICES = [
        (PENDING, "Pending"),
        (MATCHED, "Matched"),
        (FAILED, "Failed"),
        (REFUNDED, "Refunded"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    sale = models.ForeignKey(Sale, on_delete=models.CASCADE, related_name="payments")

    method = models.CharField(max_length=20, choices=METHOD_CHOICES)

    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="Amount tendered; negative for refunds",
    )

    card_type = models.CharField(max_length=20, choices=CARD_TYPE_CHOICES, blank=True)
    last4 = models.CharField(max_length=4, blank=True)
    auth_code = models.CharField(max_length=20, blank=True)
    batch = models.CharField(max_length=20, blank=True)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=MATCHED)

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        db_table = "sale_payments"
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["method", "status"], name="payment_method_status_idx"),
        ]

    def __str__(self):
        return f"{self.get_method_display()} {self.amount}"

    @property
    def is_card(self):
        return self.method == self.CARD


class HeldCart(models.Model):
    """
    A cart parked by a cashier to be resumed later.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    organization = models.ForeignKey(
        Organization, on_delete=models.CASCADE, related_name="held_carts"
    )

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="held_carts"
    )

    label = models.CharField(max_length=100, blank=True)

    snapshot = models.JSONField(default=dict, help_text="Serialized cart state")

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "sale_held_carts"
        ordering = ["-created_at"]

    def __str__(self):
        return self.label or f"Held cart {self.created_at:%Y-%m-%d %H:%M}"

    @property
    def item_count(self):
        return sum(int(item.get("quantity") or 0) for item in self.snapshot.get("items", []))
