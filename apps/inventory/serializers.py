"""
Serializers for the product catalogue.
"""

from decimal import Decimal

from rest_framework import serializers

from apps.core.serializers import OrganizationScopedSerializer

from .models import Brand, Category, Container, MeasurementUnit, Product, StockMovement


class CategorySerializer(OrganizationScopedSerializer):
    level = serializers.CharField(read_only=True)
    parent_name = serializers.CharField(source="parent.name", read_only=True, default=None)
    product_count = serializers.SerializerMethodField()

    class Meta:
        model = Category
        fields = [
            "id",
            "organization",
            "name",
            "code",
            "parent",
            "parent_name",
            "level",
            "description",
            "status",
            "product_count",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "organization", "created_at", "updated_at"]
        extra_kwargs = {"name": {"min_length": 2}}

    def get_product_count(self, obj):
        if obj.parent_id:
            return obj.sub_products.count()
        return obj.main_products.count()

    def validate_code(self, value):
        return self.check_unique_in_organization(
            "code", value, "A category with this code already exists."
        )

    def validate_parent(self, value):
        if value is None:
            return value
        if value.parent_id is not None:
            raise serializers.ValidationError(
                "Sub-categories can only be added under a main category."
            )
        if self.instance is not None:
            if value.pk == self.instance.pk:
                raise serializers.ValidationError("A category cannot be its own parent.")
            if self.instance.subcategories.exists():
                raise serializers.ValidationError(
                    "A main category with sub-categories cannot become a sub-category."
                )
        return value


class BrandSerializer(OrganizationScopedSerializer):
    class Meta:
        model = Brand
        fields = [
            "id",
            "organization",
            "name",
            "code",
            "description",
            "status",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "organization", "created_at", "updated_at"]
        extra_kwargs = {"name": {"min_length": 2}}

    def validate_name(self, value):
        return self.check_unique_in_organization(
            "name", value, "A brand with this name already exists."
        )


class MeasurementUnitSerializer(OrganizationScopedSerializer):
    class Meta:
        model = MeasurementUnit
        fields = ["id", "organization", "name", "symbol", "status", "created_at", "updated_at"]
        read_only_fields = ["id", "organization", "created_at", "updated_at"]

    def validate_symbol(self, value):
        return self.check_unique_in_organization(
            "symbol", value, "A unit with this symbol already exists."
        )


class ContainerSerializer(OrganizationScopedSerializer):
    measurement_unit_symbol = serializers.CharField(
        source="measurement_unit.symbol", read_only=True
    )

    class Meta:
        model = Container
        fields = [
            "id",
            "organization",
            "name",
            "capacity",
            "measurement_unit",
            "measurement_unit_symbol",
            "description",
            "status",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "organization", "created_at", "updated_at"]


class ProductSerializer(OrganizationScopedSerializer):
    """
    Product with display names of its references and derived stock figures.
    """

    brand_name = serializers.CharField(source="brand.name", read_only=True, default=None)
    main_category_name = serializers.CharField(source="main_category.name", read_only=True)
    sub_category_name = serializers.CharField(
        source="sub_category.name", read_only=True, default=None
    )
    supplier_name = serializers.CharField(source="supplier.name", read_only=True, default=None)
    unit_symbol = serializers.CharField(
        source="measurement_unit.symbol", read_only=True, default=None
    )
    is_low_stock = serializers.BooleanField(read_only=True)
    margin = serializers.DecimalField(max_digits=7, decimal_places=2, read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "organization",
            "code",
            "name",
            "barcode",
            "brand",
            "brand_name",
            "main_category",
            "main_category_name",
            "sub_category",
            "sub_category_name",
            "measurement_unit",
            "unit_symbol",
            "container",
            "supplier",
            "supplier_name",
            "size",
            "description",
            "cost_price",
            "retail_price",
            "wholesale_price",
            "quantity",
            "reorder_level",
            "track_quantity",
            "taxable",
            "is_variant",
            "image_url",
            "status",
            "is_low_stock",
            "margin",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "organization", "created_at", "updated_at"]
        extra_kwargs = {
            "name": {"min_length": 2},
            "barcode": {"required": False, "allow_blank": True},
        }

    def validate_code(self, value):
        return self.check_unique_in_organization(
            "code", value, "A product with this code already exists."
        )

    def validate_barcode(self, value):
        return self.check_unique_in_organization(
            "barcode", value, "A product with this barcode already exists."
        )

    def validate_quantity(self, value):
        if value < 0:
            raise serializers.ValidationError("Stock quantity cannot be negative.")
        return value

    def validate_main_category(self, value):
        if value.parent_id is not None:
            raise serializers.ValidationError("Select a main category.")
        return value

    def validate(self, attrs):
        attrs = super().validate(attrs)

        def current(name):
            if name in attrs:
                return attrs[name]
            return getattr(self.instance, name, None)

        main_category = current("main_category")
        sub_category = current("sub_category")
        if sub_category is not None and (
            main_category is None or sub_category.parent_id != main_category.pk
        ):
            raise serializers.ValidationError(
                {"sub_category": ["Sub-category must belong to the selected main category."]}
            )

        retail = current("retail_price") or Decimal("0")
        wholesale = current("wholesale_price") or Decimal("0")
        if wholesale > retail:
            raise serializers.ValidationError(
                {"wholesale_price": ["Wholesale price cannot be higher than the retail price."]}
            )
        return attrs


class StockAdjustmentSerializer(serializers.Serializer):
    adjustment_type = serializers.ChoiceField(
        choices=[StockMovement.ADD, StockMovement.DEDUCT, StockMovement.SET]
    )
    quantity = serializers.IntegerField(min_value=0)
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")

    def validate(self, attrs):
        if attrs["adjustment_type"] != StockMovement.SET and attrs["quantity"] == 0:
            raise serializers.ValidationError({"quantity": ["Quantity must be at least 1."]})
        return attrs


class LabelItemSerializer(serializers.Serializer):
    product = serializers.UUIDField()
    copies = serializers.IntegerField(min_value=1, max_value=500, default=1)


class LabelRequestSerializer(serializers.Serializer):
    """``{"items": [{"product": <id>, "copies": 2}, ...]}``"""

    items = LabelItemSerializer(many=True, allow_empty=False)


class StockMovementSerializer(serializers.ModelSerializer):
    user_email = serializers.CharField(source="user.email", read_only=True, default=None)

    class Meta:
        model = StockMovement
        fields = [
            "id",
            "movement_type",
            "quantity_change",
            "quantity_after",
            "reason",
            "reference",
            "user_email",
            "created_at",
        ]
