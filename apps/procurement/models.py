"""
Procurement models for supplier and purchase order management.

This module contains models for managing suppliers and their bank accounts,
purchase orders and their line items, and goods received notes (GRNs)
recording deliveries against purchase orders.
"""

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.validators import MinLengthValidator, MinValueValidator
from django.db import models
from django.utils import timezone

from django_fsm import FSMField, transition

from apps.core.models import STATUS_ACTIVE, STATUS_CHOICES, Branch, Organization
from apps.core.utils import next_sequence_number, yearly_prefix
from apps.core.validators import phone_validator


class Supplier(models.Model):
    """
    Supplier model for managing vendor relationships.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    organization = models.ForeignKey(
        Organization,
        on_delete=models.CASCADE,
        related_name="suppliers",
        help_text="Organization that owns this supplier",
    )

    # Basic Information
    name = models.CharField(max_length=255, help_text="Supplier display name")
    code = models.CharField(max_length=50, help_text="Supplier code, unique per organization")
    company_name = models.CharField(max_length=255, blank=True, help_text="Registered company name")

    # Contact Information
    contact_person_name = models.CharField(
        max_length=255, blank=True, help_text="Primary contact person name"
    )
    contact_person_phone = models.CharField(
        max_length=20, blank=True, validators=[phone_validator]
    )
    email = models.EmailField(blank=True, help_text="Primary email address")
    phone = models.CharField(
        max_length=20, validators=[phone_validator], help_text="Primary phone number"
    )
    fax = models.CharField(max_length=20, blank=True, validators=[phone_validator])
    website = models.URLField(blank=True)
    address = models.TextField(blank=True, help_text="Street address")
    city = models.CharField(max_length=100, blank=True)
    state = models.CharField(max_length=100, blank=True)
    country = models.CharField(max_length=100, blank=True)

    # Business Information
    tax_id = models.CharField(max_length=50, blank=True, help_text="Tax identification number")
    description = models.TextField(blank=True)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ACTIVE)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "procurement_suppliers"
        unique_together = [["organization", "code"]]
        indexes = [
            models.Index(fields=["organization", "status"], name="supplier_org_status_idx"),
        ]
        ordering = ["name"]

    def __str__(self):
        return f"{self.name}"

    def get_total_orders(self):
        """Get total number of purchase orders for this supplier."""
        return self.purchase_orders.count()

    def get_total_order_value(self):
        """Get total value of all non-cancelled purchase orders for this supplier."""
        return self.purchase_orders.exclude(status=PurchaseOrder.CANCELLED).aggregate(
            total=models.Sum("total_amount")
        )["total"] or Decimal("0.00")

    @property
    def default_bank_account(self):
        return self.bank_accounts.filter(is_default=True).first()


class SupplierBankAccount(models.Model):
    """
    Bank account a supplier is paid into. At most one per supplier is the default.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    supplier = models.ForeignKey(
        Supplier, on_delete=models.CASCADE, related_name="bank_accounts"
    )

    bank_name = models.CharField(max_length=100, validators=[MinLengthValidator(2)])
    branch_name = models.CharField(max_length=100, blank=True)
    account_name = models.CharField(max_length=255, blank=True)
    account_number = models.CharField(max_length=50, validators=[MinLengthValidator(5)])
    is_default = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "procurement_supplier_bank_accounts"
        ordering = ["-is_default", "bank_name"]

    def __str__(self):
        return f"{self.bank_name} {self.account_number}"

    def save(self, *args, **kwargs):
        super().save(*args, **kwargs)
        if self.is_default:
            SupplierBankAccount.objects.filter(
                supplier_id=self.supplier_id, is_default=True
            ).exclude(pk=self.pk).update(is_default=False)


class PurchaseOrder(models.Model):
    """
    Purchase Order model with Finite State Machine for workflow management.

    DRAFT -> APPROVED -> SENT -> PARTIALLY_RECEIVED -> COMPLETED, and
    DRAFT or APPROVED -> CANCELLED. Goods may be received once the order is
    approved.
    """

    DRAFT = "DRAFT"
    APPROVED = "APPROVED"
    SENT = "SENT"
    PARTIALLY_RECEIVED = "PARTIALLY_RECEIVED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    STATUS_CHOICES = [
        (DRAFT, "Draft"),
        (APPROVED, "Approved"),
        (SENT, "Sent to Supplier"),
        (PARTIALLY_RECEIVED, "Partially Received"),
        (COMPLETED, "Completed"),
        (CANCELLED, "Cancelled"),
    ]

    RECEIVABLE_STATUSES = [APPROVED, SENT, PARTIALLY_RECEIVED]

    TAX_RATE = Decimal("0.00")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    organization = models.ForeignKey(
        Organization,
        on_delete=models.CASCADE,
        related_name="purchase_orders",
        help_text="Organization that owns this purchase order",
    )

    # Order Information
    po_number = models.CharField(
        max_length=50, editable=False, help_text="Purchase order number, e.g. PO-2026-00001"
    )
    supplier = models.ForeignKey(
        Supplier,
        on_delete=models.PROTECT,
        related_name="purchase_orders",
        help_text="Supplier for this purchase order",
    )
    branch = models.ForeignKey(
        Branch,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="purchase_orders",
        help_text="Branch that will receive the goods",
    )

    # Financial Information
    subtotal = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text="Subtotal before tax",
    )
    tax_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text="Tax amount",
    )
    total_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text="Total amount including tax",
    )

    # Workflow and Status
    status = FSMField(
        default=DRAFT, choices=STATUS_CHOICES, help_text="Current status of the purchase order"
    )

    # Dates
    order_date = models.DateField(default=timezone.localdate, help_text="Date of the order")
    expected_date = models.DateField(null=True, blank=True, help_text="Expected delivery date")

    reference = models.CharField(
        max_length=100, blank=True, help_text="Supplier's reference number for this order"
    )
    notes = models.TextField(blank=True, help_text="Internal notes about this purchase order")

    # Audit Fields
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_purchase_orders",
    )
    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="approved_purchase_orders",
    )
    approved_at = models.DateTimeField(null=True, blank=True)
    sent_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "procurement_purchase_orders"
        unique_together = [["organization", "po_number"]]
        indexes = [
            models.Index(fields=["organization", "status"], name="po_org_status_idx"),
            models.Index(fields=["organization", "order_date"], name="po_org_date_idx"),
        ]
        ordering = ["-order_date", "-created_at"]

    def __str__(self):
        return f"PO {self.po_number} - {self.supplier.name}"

    def save(self, *args, **kwargs):
        if not self.po_number:
            self.po_number = next_sequence_number(
                PurchaseOrder, self.organization, "po_number", yearly_prefix("PO")
            )
        super().save(*args, **kwargs)

    # FSM Transitions
    @transition(field=status, source=DRAFT, target=APPROVED)
    def approve(self, user):
        """Approve the purchase order."""
        self.approved_by = user
        self.approved_at = timezone.now()

    @transition(field=status, source=APPROVED, target=SENT)
    def send_to_supplier(self):
        """Mark order as sent to supplier."""
        self.sent_at = timezone.now()

    @transition(field=status, source=RECEIVABLE_STATUSES, target=PARTIALLY_RECEIVED)
    def mark_partially_received(self):
        """Mark order as partially received."""

    @transition(field=status, source=RECEIVABLE_STATUSES, target=COMPLETED)
    def mark_completed(self):
        """Mark order as completed."""
        self.completed_at = timezone.now()

    @transition(field=status, source=[DRAFT, APPROVED], target=CANCELLED)
    def cancel(self):
        """Cancel the purchase order."""

    @property
    def is_editable(self):
        return self.status == self.DRAFT

    @property
    def can_receive(self):
        return self.status in self.RECEIVABLE_STATUSES

    def calculate_totals(self):
        """Calculate subtotal, tax, and total from line items."""
        self.subtotal = sum((item.line_total for item in self.items.all()), Decimal("0.00"))
        self.tax_amount = (self.subtotal * self.TAX_RATE / 100).quantize(Decimal("0.01"))
        self.total_amount = self.subtotal + self.tax_amount
        self.save(update_fields=["subtotal", "tax_amount", "total_amount", "updated_at"])

    def get_received_percentage(self):
        """Percentage of ordered units received so far."""
        ordered = sum(item.quantity for item in self.items.all())
        if ordered == 0:
            return 0
        received = sum(min(item.received_quantity, item.quantity) for item in self.items.all())
        return round(received * 100 / ordered, 2)

    def is_fully_received(self):
        return all(item.is_fully_received for item in self.items.all())


class PurchaseOrderItem(models.Model):
    """
    Line items for purchase orders.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    purchase_order = models.ForeignKey(
        PurchaseOrder,
        on_delete=models.CASCADE,
        related_name="items",
        help_text="Purchase order this item belongs to",
    )
    product = models.ForeignKey(
        "inventory.Product",
        on_delete=models.PROTECT,
        related_name="purchase_order_items",
    )

    # Quantities
    quantity = models.IntegerField(validators=[MinValueValidator(1)], help_text="Ordered quantity")
    received_quantity = models.IntegerField(
        default=0, validators=[MinValueValidator(0)], help_text="Quantity received so far"
    )

    # Pricing
    unit_cost = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("1.00"))],
        help_text="Cost per unit",
    )
    line_total = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Total cost for this line item",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "procurement_purchase_order_items"
        ordering = ["created_at"]

    def __str__(self):
        return f"{self.product.name} - {self.quantity} units"

    def save(self, *args, **kwargs):
        """Auto-calculate line total on save."""
        self.line_total = self.quantity * self.unit_cost
        super().save(*args, **kwargs)

    @property
    def remaining_quantity(self):
        """Calculate remaining quantity to be received."""
        return max(self.quantity - self.received_quantity, 0)

    @property
    def is_fully_received(self):
        """Check if item is fully received."""
        return self.received_quantity >= self.quantity


class GoodsReceivedNote(models.Model):
    """
    Goods Received Note recording a delivery against a purchase order.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    organization = models.ForeignKey(
        Organization,
        on_delete=models.CASCADE,
        related_name="goods_received_notes",
        help_text="Organization that owns this GRN",
    )

    grn_number = models.CharField(
        max_length=50, editable=False, help_text="GRN number, e.g. GRN-2026-00001"
    )
    purchase_order = models.ForeignKey(
        PurchaseOrder,
        on_delete=models.PROTECT,
        related_name="goods_received_notes",
        help_text="Related purchase order",
    )

    grn_date = models.DateField(default=timezone.localdate, help_text="Date goods were received")
    invoice_number = models.CharField(max_length=100, help_text="Supplier's invoice number")
    invoice_file = models.FileField(
        upload_to="grn_invoices/%Y/%m/", null=True, blank=True, help_text="Scanned supplier invoice"
    )
    remarks = models.TextField(blank=True)

    total_value = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Value of the received (paid) quantities",
    )

    received_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="received_goods",
        help_text="User who received the goods",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "procurement_goods_received_notes"
        unique_together = [["organization", "grn_number"]]
        indexes = [
            models.Index(fields=["organization", "grn_date"], name="grn_org_date_idx"),
        ]
        ordering = ["-grn_date", "-created_at"]

    def __str__(self):
        return f"GRN {self.grn_number} - PO {self.purchase_order.po_number}"

    def save(self, *args, **kwargs):
        if not self.grn_number:
            self.grn_number = next_sequence_number(
                GoodsReceivedNote, self.organization, "grn_number", yearly_prefix("GRN")
            )
        super().save(*args, **kwargs)


class GoodsReceivedNoteItem(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    grn = models.ForeignKey(GoodsReceivedNote, on_delete=models.CASCADE, related_name="items")
    purchase_order_item = models.ForeignKey(
        PurchaseOrderItem, on_delete=models.PROTECT, related_name="receipts"
    )

    received_quantity = models.IntegerField(default=0, validators=[MinValueValidator(0)])
    free_quantity = models.IntegerField(
        default=0, validators=[MinValueValidator(0)], help_text="Bonus units not charged for"
    )
    unit_cost = models.DecimalField(
        max_digits=12, decimal_places=2, validators=[MinValueValidator(Decimal("0.00"))]
    )
    selling_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text="New retail price of the product",
    )
    expiry_date = models.DateField(null=True, blank=True)
    batch_number = models.CharField(max_length=50, blank=True)

    class Meta:
        db_table = "procurement_goods_received_note_items"

    def __str__(self):
        return f"{self.purchase_order_item.product.name} x {self.received_quantity}"

    @property
    def line_total(self):
        return self.received_quantity * self.unit_cost
