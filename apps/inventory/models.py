"""
Inventory models: catalogue structure, products and stock movements.

Products belong to a main category and optionally a sub-category of it,
and carry a brand, a measurement unit and a container. Stock levels change
only through ``Product.add_quantity`` / ``deduct_quantity`` / ``set_quantity``,
each of which records a ``StockMovement``.
"""

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

from apps.core.models import STATUS_ACTIVE, STATUS_CHOICES, Organization


class Category(models.Model):
    """
    Product category.

    Categories without a parent are main categories; categories with one are
    sub-categories. Only one level of nesting is allowed.
    """

    LEVEL_MAIN = "main"
    LEVEL_SUB = "sub"

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for the category",
    )

    organization = models.ForeignKey(
        Organization,
        on_delete=models.CASCADE,
        related_name="categories",
        help_text="Organization that owns this category",
    )

    name = models.CharField(max_length=100, help_text="Category name (e.g., Beverages)")

    code = models.CharField(max_length=50, blank=True, help_text="Short category code")

    parent = models.ForeignKey(
        "self",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="subcategories",
        help_text="Main category of a sub-category",
    )

    description = models.TextField(blank=True)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ACTIVE)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "inventory_categories"
        ordering = ["name"]
        verbose_name = "Category"
        verbose_name_plural = "Categories"
        indexes = [
            models.Index(fields=["organization", "parent"], name="cat_org_parent_idx"),
        ]

    def __str__(self):
        if self.parent_id:
            return f"{self.parent.name} > {self.name}"
        return self.name

    @property
    def level(self):
        return self.LEVEL_SUB if self.parent_id else self.LEVEL_MAIN

    @property
    def is_main(self):
        return self.parent_id is None


class Brand(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    organization = models.ForeignKey(
        Organization, on_delete=models.CASCADE, related_name="brands"
    )

    name = models.CharField(max_length=100)
    code = models.CharField(max_length=50, blank=True)
    description = models.TextField(blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ACTIVE)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "inventory_brands"
        ordering = ["name"]

    def __str__(self):
        return self.name


class MeasurementUnit(models.Model):
    """Unit of measure, e.g. Kilogram (kg) or Litre (l)."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    organization = models.ForeignKey(
        Organization, on_delete=models.CASCADE, related_name="measurement_units"
    )

    name = models.CharField(max_length=50)
    symbol = models.CharField(max_length=10)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ACTIVE)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "inventory_measurement_units"
        ordering = ["name"]

    def __str__(self):
        return f"{self.name} ({self.symbol})"


class Container(models.Model):
    """Packaging a product is sold in, e.g. a 500 ml bottle."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    organization = models.ForeignKey(
        Organization, on_delete=models.CASCADE, related_name="containers"
    )

    name = models.CharField(max_length=100)

    capacity = models.DecimalField(
        max_digits=10,
        decimal_places=3,
        validators=[MinValueValidator(Decimal("0"))],
        help_text="Amount held, in the measurement unit",
    )

    measurement_unit = models.ForeignKey(
        MeasurementUnit, on_delete=models.PROTECT, related_name="containers"
    )

    description = models.TextField(blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ACTIVE)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "inventory_containers"
        ordering = ["name"]

    def __str__(self):
        return f"{self.name} ({self.capacity.normalize()} {self.measurement_unit.symbol})"


class Product(models.Model):
    """
    Sellable product with pricing and stock level.
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for the product",
    )

    organization = models.ForeignKey(
        Organization,
        on_delete=models.CASCADE,
        related_name="products",
        help_text="Organization that owns this product",
    )

    code = models.CharField(max_length=100, help_text="Product code (SKU), unique per organization")

    name = models.CharField(max_length=255, help_text="Product name")

    barcode = models.CharField(
        max_length=50,
        blank=True,
        help_text="Barcode for scanning, generated as EAN-13 when left blank",
    )

    brand = models.ForeignKey(
        Brand, on_delete=models.PROTECT, null=True, blank=True, related_name="products"
    )

    main_category = models.ForeignKey(
        Category, on_delete=models.PROTECT, related_name="main_products"
    )

    sub_category = models.ForeignKey(
        Category,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="sub_products",
    )

    measurement_unit = models.ForeignKey(
        MeasurementUnit, on_delete=models.PROTECT, null=True, blank=True, related_name="products"
    )

    container = models.ForeignKey(
        Container, on_delete=models.PROTECT, null=True, blank=True, related_name="products"
    )

    supplier = models.ForeignKey(
        "procurement.Supplier",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="products",
        help_text="Usual supplier of the product",
    )

    size = models.CharField(max_length=50, blank=True, help_text="Size label, e.g. 500ml")

    description = models.TextField(blank=True)

    # Pricing
    cost_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text="Cost price (what we paid)",
    )

    retail_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text="Price charged to retail customers",
    )

    wholesale_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text="Price charged in wholesale mode, never above retail",
    )

    # Inventory tracking
    quantity = models.IntegerField(default=0, help_text="Current quantity in stock")

    reorder_level = models.IntegerField(
        default=0,
        validators=[MinValueValidator(0)],
        help_text="Quantity at or below which the product counts as low stock",
    )

    track_quantity = models.BooleanField(
        default=True, help_text="Whether sales check and deduct stock"
    )

    taxable = models.BooleanField(default=True)
    is_variant = models.BooleanField(default=False)
    image_url = models.URLField(blank=True)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ACTIVE)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "inventory_products"
        ordering = ["name"]
        verbose_name = "Product"
        verbose_name_plural = "Products"
        unique_together = [["organization", "code"], ["organization", "barcode"]]
        indexes = [
            models.Index(fields=["organization", "status"], name="product_org_status_idx"),
            models.Index(fields=["organization", "main_category"], name="product_org_category_idx"),
        ]

    def __str__(self):
        return f"{self.code} - {self.name}"

    def save(self, *args, **kwargs):
        if not self.barcode:
            from .barcode_utils import next_product_barcode

            self.barcode = next_product_barcode(self.organization)
        super().save(*args, **kwargs)

    @property
    def is_low_stock(self):
        return self.track_quantity and self.quantity <= self.reorder_level

    @property
    def margin(self):
        """Profit margin on the retail price, in percent."""
        if not self.retail_price:
            return Decimal("0.00")
        return ((self.retail_price - self.cost_price) / self.retail_price * 100).quantize(
            Decimal("0.01")
        )

    def price_for(self, wholesale=False):
        return self.wholesale_price if wholesale else self.retail_price

    def can_deduct_quantity(self, quantity):
        return not self.track_quantity or self.quantity >= quantity

    def _record(self, movement_type, change, reason, user, reference):
        StockMovement.objects.create(
            organization_id=self.organization_id,
            product=self,
            movement_type=movement_type,
            quantity_change=change,
            quantity_after=self.quantity,
            reason=reason,
            reference=reference,
            user=user,
        )

    def deduct_quantity(self, quantity, reason="", user=None, movement_type=None, reference=""):
        """
        Deduct quantity from stock.

        Raises:
            ValueError: If insufficient quantity
        """
        if not self.can_deduct_quantity(quantity):
            raise ValueError(
                f"Insufficient stock for {self.name}. "
                f"Available: {self.quantity}, Requested: {quantity}"
            )
        self.quantity -= quantity
        self.save(update_fields=["quantity", "updated_at"])
        self._record(movement_type or StockMovement.DEDUCT, -quantity, reason, user, reference)

    def add_quantity(self, quantity, reason="", user=None, movement_type=None, reference=""):
        self.quantity += quantity
        self.save(update_fields=["quantity", "updated_at"])
        self._record(movement_type or StockMovement.ADD, quantity, reason, user, reference)

    def set_quantity(self, quantity, reason="", user=None):
        if quantity < 0:
            raise ValueError("Stock quantity cannot be negative.")
        change = quantity - self.quantity
        self.quantity = quantity
        self.save(update_fields=["quantity", "updated_at"])
        self._record(StockMovement.SET, change, reason, user, "")


class StockMovement(models.Model):
    """
    Audit trail of every stock level change.
    """

    ADD = "ADD"
    DEDUCT = "DEDUCT"
    SET = "SET"
    SALE = "SALE"
    REFUND = "REFUND"
    GRN = "GRN"

    MOVEMENT_CHOICES = [
        (ADD, "Manual Addition"),
        (DEDUCT, "Manual Deduction"),
        (SET, "Stock Count"),
        (SALE, "Sale"),
        (REFUND, "Refund"),
        (GRN, "Goods Received"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    organization = models.ForeignKey(
        Organization, on_delete=models.CASCADE, related_name="stock_movements"
    )

    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name="movements")

    movement_type = models.CharField(max_length=10, choices=MOVEMENT_CHOICES)

    quantity_change = models.IntegerField(help_text="Signed change applied to the stock level")

    quantity_after = models.IntegerField(help_text="Stock level after the change")

    reason = models.CharField(max_length=255, blank=True)

    reference = models.CharField(
        max_length=50, blank=True, help_text="Document number (invoice, GRN) behind the change"
    )

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="stock_movements",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "inventory_stock_movements"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["product", "created_at"], name="movement_product_date_idx"),
        ]

    def __str__(self):
        return f"{self.get_movement_type_display()} {self.quantity_change:+d} {self.product.name}"
