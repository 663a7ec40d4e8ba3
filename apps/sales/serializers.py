"""
Serializers for the POS cart, checkout and sales.
"""

from decimal import Decimal

from django.contrib.auth import get_user_model

from rest_framework import serializers

from apps.inventory.models import Product

from .cart import ACTION_TYPES
from .models import HeldCart, Payment, Sale, SaleItem

User = get_user_model()


class PosProductSerializer(serializers.ModelSerializer):
    """Product as shown on the POS product grid."""

    category = serializers.CharField(source="main_category.name", read_only=True, default=None)
    brand = serializers.CharField(source="brand.name", read_only=True, default=None)

    class Meta:
        model = Product
        fields = [
            "id",
            "code",
            "barcode",
            "name",
            "size",
            "category",
            "brand",
            "retail_price",
            "wholesale_price",
            "quantity",
            "track_quantity",
            "image_url",
        ]


class SellerSerializer(serializers.ModelSerializer):
    name = serializers.CharField(read_only=True)

    class Meta:
        model = User
        fields = ["id", "name", "email"]


class CartActionSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=ACTION_TYPES)
    payload = serializers.DictField(required=False, default=dict)


class UpdateItemPayloadSerializer(serializers.Serializer):
    """
    ``UPDATE_ITEM`` payload. Out of range values are clamped by the cart
    (quantity at 0, discount to 0-100), non-numeric ones are rejected here.
    """

    product_id = serializers.CharField()
    quantity = serializers.IntegerField(required=False, allow_null=True)
    discount = serializers.DecimalField(
        max_digits=None, decimal_places=None, required=False, allow_null=True
    )


class CartTotalsSerializer(serializers.Serializer):
    wholesale_discount = serializers.DecimalField(
        max_digits=5,
        decimal_places=2,
        min_value=Decimal("0"),
        max_value=Decimal("100"),
        default=Decimal("0"),
    )
    adjustment = serializers.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"))
    cash_in = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=Decimal("0"), default=Decimal("0")
    )


class CardDetailsSerializer(serializers.Serializer):
    card_type = serializers.ChoiceField(choices=Payment.CARD_TYPE_CHOICES, default=Payment.OTHER)
    last4 = serializers.RegexField(r"^\d{4}$", required=False, allow_blank=True, default="")
    auth_code = serializers.CharField(max_length=20, required=False, allow_blank=True, default="")
    batch = serializers.CharField(max_length=20, required=False, allow_blank=True, default="")


class SplitPaymentSerializer(CardDetailsSerializer):
    method = serializers.ChoiceField(choices=Payment.METHOD_CHOICES)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal("0"))


class CheckoutSerializer(CartTotalsSerializer):
    payment_method = serializers.ChoiceField(choices=Sale.PAYMENT_METHOD_CHOICES)
    sold_by = serializers.PrimaryKeyRelatedField(
        queryset=User.objects.all(), required=False, allow_null=True
    )
    card = CardDetailsSerializer(required=False)
    payments = SplitPaymentSerializer(many=True, required=False)
    notes = serializers.CharField(required=False, allow_blank=True, default="")

    def validate_sold_by(self, value):
        organization = self.context.get("organization")
        if value is None or organization is None:
            return value
        if value.organization_id != organization.pk:
            raise serializers.ValidationError("Select a sales person from your own organization.")
        return value

    def validate(self, attrs):
        method = attrs["payment_method"]
        if method == Sale.SPLIT and not attrs.get("payments"):
            raise serializers.ValidationError({"payments": ["Enter the split payments."]})
        if method == Sale.CARD and "card" not in attrs:
            attrs["card"] = {"card_type": Payment.OTHER, "last4": "", "auth_code": "", "batch": ""}
        return attrs


class HoldCartSerializer(serializers.Serializer):
    label = serializers.CharField(max_length=100, required=False, allow_blank=True, default="")


class HeldCartSerializer(serializers.ModelSerializer):
    item_count = serializers.IntegerField(read_only=True)
    user_name = serializers.CharField(source="user.name", read_only=True)

    class Meta:
        model = HeldCart
        fields = ["id", "label", "item_count", "user_name", "snapshot", "created_at"]


class SaleItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = SaleItem
        fields = [
            "id",
            "product",
            "product_name",
            "barcode",
            "size",
            "quantity",
            "unit_price",
            "discount_percent",
            "discount_amount",
            "line_total",
        ]


class PaymentSerializer(serializers.ModelSerializer):
    method_display = serializers.CharField(source="get_method_display", read_only=True)

    class Meta:
        model = Payment
        fields = [
            "id",
            "method",
            "method_display",
            "amount",
            "card_type",
            "last4",
            "auth_code",
            "batch",
            "status",
            "created_at",
        ]


class SaleSerializer(serializers.ModelSerializer):
    """
    Read-only representation of a sale. Sales are only created by checkout.
    """

    items = SaleItemSerializer(many=True, read_only=True)
    payments = PaymentSerializer(many=True, read_only=True)
    customer_name = serializers.CharField(source="customer.name", read_only=True, default=None)
    branch_name = serializers.CharField(source="branch.name", read_only=True, default=None)
    cashier_name = serializers.CharField(source="cashier.name", read_only=True)
    sold_by_name = serializers.CharField(source="sold_by.name", read_only=True, default=None)
    status_display = serializers.CharField(source="get_status_display", read_only=True)

    class Meta:
        model = Sale
        fields = [
            "id",
            "invoice_number",
            "customer",
            "customer_name",
            "branch",
            "branch_name",
            "cashier",
            "cashier_name",
            "sold_by",
            "sold_by_name",
            "is_wholesale",
            "subtotal",
            "item_discount",
            "wholesale_discount_rate",
            "wholesale_discount",
            "discount",
            "tax_rate",
            "tax",
            "grand_total",
            "adjustment",
            "net_total",
            "cash_in",
            "balance",
            "payment_method",
            "status",
            "status_display",
            "notes",
            "refund_reason",
            "refunded_at",
            "items",
            "payments",
            "created_at",
        ]
        read_only_fields = fields


class RefundSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")
