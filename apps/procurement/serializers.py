"""
Serializers for suppliers, purchase orders and goods received notes.
"""

from django.db import transaction

from rest_framework import serializers

from apps.core.serializers import OrganizationScopedSerializer
from apps.inventory.models import Product

from .models import (
    GoodsReceivedNote,
    GoodsReceivedNoteItem,
    PurchaseOrder,
    PurchaseOrderItem,
    Supplier,
    SupplierBankAccount,
)


class SupplierBankAccountSerializer(serializers.ModelSerializer):
    id = serializers.UUIDField(required=False)

    class Meta:
        model = SupplierBankAccount
        fields = [
            "id",
            "bank_name",
            "branch_name",
            "account_name",
            "account_number",
            "is_default",
            "is_active",
        ]
        extra_kwargs = {
            "bank_name": {"min_length": 2},
            "account_number": {"min_length": 5},
        }


class SupplierSerializer(OrganizationScopedSerializer):
    """
    Supplier with nested bank accounts.

    Accounts sent with an ``id`` update that account, accounts without one
    are added, and existing accounts missing from an update are removed.
    """

    bank_accounts = SupplierBankAccountSerializer(many=True, required=False)
    total_orders = serializers.IntegerField(source="get_total_orders", read_only=True)

    class Meta:
        model = Supplier
        fields = [
            "id",
            "organization",
            "name",
            "code",
            "company_name",
            "contact_person_name",
            "contact_person_phone",
            "email",
            "phone",
            "fax",
            "website",
            "address",
            "city",
            "state",
            "country",
            "tax_id",
            "description",
            "status",
            "bank_accounts",
            "total_orders",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "organization", "created_at", "updated_at"]
        extra_kwargs = {"name": {"min_length": 2}}

    def validate_code(self, value):
        return self.check_unique_in_organization(
            "code", value, "A supplier with this code already exists."
        )

    def validate_bank_accounts(self, value):
        if sum(1 for account in value if account.get("is_default")) > 1:
            raise serializers.ValidationError("Only one bank account can be the default.")
        return value

    def _save_bank_accounts(self, supplier, accounts):
        existing = {account.pk: account for account in supplier.bank_accounts.all()}
        keep = set()
        # Defaults are applied last so the single-default rule in save() wins
        for data in sorted(accounts, key=lambda account: bool(account.get("is_default"))):
            data = dict(data)
            account_id = data.pop("id", None)
            account = existing.get(account_id)
            if account is None:
                account = SupplierBankAccount(supplier=supplier)
            for attr, value in data.items():
                setattr(account, attr, value)
            account.save()
            keep.add(account.pk)
        supplier.bank_accounts.exclude(pk__in=keep).delete()

    @transaction.atomic
    def create(self, validated_data):
        accounts = validated_data.pop("bank_accounts", [])
        supplier = super().create(validated_data)
        self._save_bank_accounts(supplier, accounts)
        return supplier

    @transaction.atomic
    def update(self, instance, validated_data):
        accounts = validated_data.pop("bank_accounts", None)
        supplier = super().update(instance, validated_data)
        if accounts is not None:
            self._save_bank_accounts(supplier, accounts)
        return supplier


class PurchaseOrderItemSerializer(serializers.ModelSerializer):
    product = serializers.PrimaryKeyRelatedField(queryset=Product.objects.all())
    product_name = serializers.CharField(source="product.name", read_only=True)
    product_code = serializers.CharField(source="product.code", read_only=True)
    remaining_quantity = serializers.IntegerField(read_only=True)

    class Meta:
        model = PurchaseOrderItem
        fields = [
            "id",
            "product",
            "product_name",
            "product_code",
            "quantity",
            "unit_cost",
            "line_total",
            "received_quantity",
            "remaining_quantity",
        ]
        read_only_fields = ["id", "line_total", "received_quantity"]
        extra_kwargs = {
            "quantity": {"min_value": 1},
            "unit_cost": {"min_value": 1},
        }


class PurchaseOrderSerializer(OrganizationScopedSerializer):
    """
    Purchase order with its line items. Only draft orders can be edited.
    """

    items = PurchaseOrderItemSerializer(many=True)
    supplier_name = serializers.CharField(source="supplier.name", read_only=True)
    branch_name = serializers.CharField(source="branch.name", read_only=True, default=None)
    status_display = serializers.CharField(source="get_status_display", read_only=True)
    received_percentage = serializers.FloatField(
        source="get_received_percentage", read_only=True
    )

    class Meta:
        model = PurchaseOrder
        fields = [
            "id",
            "organization",
            "po_number",
            "supplier",
            "supplier_name",
            "branch",
            "branch_name",
            "order_date",
            "expected_date",
            "reference",
            "notes",
            "status",
            "status_display",
            "subtotal",
            "tax_amount",
            "total_amount",
            "received_percentage",
            "items",
            "approved_at",
            "sent_at",
            "completed_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "id",
            "organization",
            "po_number",
            "status",
            "subtotal",
            "tax_amount",
            "total_amount",
            "approved_at",
            "sent_at",
            "completed_at",
            "created_at",
            "updated_at",
        ]

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError("Add at least one item to the purchase order.")
        organization = self.get_organization()
        if organization is not None:
            for item in value:
                if item["product"].organization_id != organization.pk:
                    raise serializers.ValidationError("Select products from your own organization.")
        return value

    def validate(self, attrs):
        attrs = super().validate(attrs)
        if self.instance is not None and not self.instance.is_editable:
            status_label = self.instance.get_status_display().lower()
            raise serializers.ValidationError(
                {"status": [f"Cannot edit a purchase order in {status_label} status."]}
            )
        order_date = attrs.get("order_date") or getattr(self.instance, "order_date", None)
        expected = attrs.get("expected_date")
        if order_date and expected and expected < order_date:
            raise serializers.ValidationError(
                {"expected_date": ["Expected date cannot be before the order date."]}
            )
        return attrs

    def _save_items(self, order, items):
        order.items.all().delete()
        for item in items:
            PurchaseOrderItem.objects.create(purchase_order=order, **item)
        order.calculate_totals()

    @transaction.atomic
    def create(self, validated_data):
        items = validated_data.pop("items")
        request = self.context.get("request")
        if request is not None:
            validated_data.setdefault("created_by", request.user)
        order = super().create(validated_data)
        self._save_items(order, items)
        return order

    @transaction.atomic
    def update(self, instance, validated_data):
        items = validated_data.pop("items", None)
        order = super().update(instance, validated_data)
        if items is not None:
            self._save_items(order, items)
        return order


class GoodsReceivedNoteItemSerializer(serializers.ModelSerializer):
    purchase_order_item = serializers.PrimaryKeyRelatedField(
        queryset=PurchaseOrderItem.objects.select_related("product")
    )
    product_name = serializers.CharField(
        source="purchase_order_item.product.name", read_only=True
    )
    line_total = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = GoodsReceivedNoteItem
        fields = [
            "id",
            "purchase_order_item",
            "product_name",
            "received_quantity",
            "free_quantity",
            "unit_cost",
            "selling_price",
            "expiry_date",
            "batch_number",
            "line_total",
        ]
        read_only_fields = ["id"]
        extra_kwargs = {
            "received_quantity": {"min_value": 0},
            "free_quantity": {"min_value": 0},
        }


class GoodsReceivedNoteSerializer(OrganizationScopedSerializer):
    """
    GRN representation, and input validation for receiving goods.

    Saving goes through ``GoodsReceiptService.receive``.
    """

    items = GoodsReceivedNoteItemSerializer(many=True)
    po_number = serializers.CharField(source="purchase_order.po_number", read_only=True)
    supplier_name = serializers.CharField(
        source="purchase_order.supplier.name", read_only=True
    )
    received_by_name = serializers.CharField(
        source="received_by.name", read_only=True, default=None
    )

    class Meta:
        model = GoodsReceivedNote
        fields = [
            "id",
            "organization",
            "grn_number",
            "purchase_order",
            "po_number",
            "supplier_name",
            "grn_date",
            "invoice_number",
            "invoice_file",
            "remarks",
            "total_value",
            "received_by",
            "received_by_name",
            "items",
            "created_at",
        ]
        read_only_fields = [
            "id",
            "organization",
            "grn_number",
            "total_value",
            "received_by",
            "created_at",
        ]
        extra_kwargs = {"invoice_number": {"min_length": 1}}

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError("Add at least one item to the GRN.")
        return value

    def validate(self, attrs):
        attrs = super().validate(attrs)
        order = attrs.get("purchase_order")
        for item in attrs.get("items", []):
            if order is not None and item["purchase_order_item"].purchase_order_id != order.pk:
                raise serializers.ValidationError(
                    {"items": ["Every item must belong to the selected purchase order."]}
                )
        return attrs
