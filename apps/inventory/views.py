"""
Views for the product catalogue.

Categories, brands, measurement units, containers and products are managed
through the generic entity screens. Products additionally expose barcode and
label images, a PDF label sheet, stock adjustment and their stock history.
"""

import logging

from django.db import transaction
from django.db.models import F, Q
from django.http import HttpResponse
from django.shortcuts import get_object_or_404

from rest_framework import status
from rest_framework.response import Response

from apps.core.entities import EntityViewSet
from apps.core.resource_views import view_and_manage

from .barcode_utils import (
    generate_barcode_image,
    generate_labels_pdf,
    generate_product_label,
    generate_qr_label,
)
from .models import Brand, Category, Container, MeasurementUnit, Product, StockMovement
from .serializers import (
    BrandSerializer,
    CategorySerializer,
    ContainerSerializer,
    LabelRequestSerializer,
    MeasurementUnitSerializer,
    ProductSerializer,
    StockAdjustmentSerializer,
    StockMovementSerializer,
)

logger = logging.getLogger(__name__)

PRODUCT_PERMISSIONS = {
    **view_and_manage("view_products", "manage_products"),
    "barcode": ["view_products", "manage_products"],
    "label": ["view_products", "manage_products"],
    "labels": ["view_products", "manage_products"],
    "movements": ["view_products", "manage_products"],
    "adjust_stock": "manage_products",
}


class CategoryViewSet(EntityViewSet):
    """
    Main categories and sub-categories.

    Query parameters:
    - level: ``main`` or ``sub``
    - parent: only sub-categories of this main category
    """

    queryset = Category.objects.select_related("parent")
    serializer_class = CategorySerializer
    entity_name = "category"
    entity_name_plural = "categories"
    sortable_fields = ("name", "code", "parent_name", "level", "status", "created_at")
    required_permissions = view_and_manage("view_categories", "manage_categories")

    def filter_queryset(self, queryset):
        queryset = super().filter_queryset(queryset)
        level = self.request.query_params.get("level")
        if level == Category.LEVEL_MAIN:
            queryset = queryset.filter(parent__isnull=True)
        elif level == Category.LEVEL_SUB:
            queryset = queryset.filter(parent__isnull=False)

        parent = self.request.query_params.get("parent")
        if parent:
            queryset = queryset.filter(parent_id=parent)
        return queryset


class BrandViewSet(EntityViewSet):
    queryset = Brand.objects.all()
    serializer_class = BrandSerializer
    entity_name = "brand"
    entity_name_plural = "brands"
    sortable_fields = ("name", "code", "status", "created_at")
    required_permissions = view_and_manage("view_products", "manage_products")


class MeasurementUnitViewSet(EntityViewSet):
    queryset = MeasurementUnit.objects.all()
    serializer_class = MeasurementUnitSerializer
    entity_name = "measurement unit"
    entity_name_plural = "measurement-units"
    sortable_fields = ("name", "symbol", "status")
    required_permissions = view_and_manage("view_products", "manage_products")


class ContainerViewSet(EntityViewSet):
    queryset = Container.objects.select_related("measurement_unit")
    serializer_class = ContainerSerializer
    entity_name = "container"
    entity_name_plural = "containers"
    sortable_fields = ("name", "capacity", "status")
    required_permissions = view_and_manage("view_products", "manage_products")


class ProductViewSet(EntityViewSet):
    """
    Products.

    Query parameters on the list, besides the common ones:
    - category: main or sub-category id
    - brand, supplier: reference ids
    - low_stock: ``true`` for products at or below their reorder level
    """

    queryset = Product.objects.select_related(
        "brand", "main_category", "sub_category", "measurement_unit", "container", "supplier"
    )
    serializer_class = ProductSerializer
    entity_name = "product"
    entity_name_plural = "products"
    sortable_fields = (
        "code",
        "name",
        "barcode",
        "brand_name",
        "main_category_name",
        "supplier_name",
        "cost_price",
        "retail_price",
        "wholesale_price",
        "quantity",
        "margin",
        "status",
        "created_at",
    )
    required_permissions = PRODUCT_PERMISSIONS
    csv_fields = [
        "code",
        "name",
        "barcode",
        "brand_name",
        "main_category_name",
        "sub_category_name",
        "supplier_name",
        "cost_price",
        "retail_price",
        "wholesale_price",
        "quantity",
        "reorder_level",
        "status",
    ]

    def filter_queryset(self, queryset):
        queryset = super().filter_queryset(queryset)
        params = self.request.query_params

        category = params.get("category")
        if category:
            queryset = queryset.filter(Q(main_category_id=category) | Q(sub_category_id=category))
        if params.get("brand"):
            queryset = queryset.filter(brand_id=params["brand"])
        if params.get("supplier"):
            queryset = queryset.filter(supplier_id=params["supplier"])
        if params.get("low_stock", "").lower() == "true":
            queryset = queryset.filter(track_quantity=True, quantity__lte=F("reorder_level"))
        return queryset

    def get_currency(self):
        organization = self.request.user.organization
        return organization.get_settings().currency if organization else ""

    def barcode(self, request, pk=None):
        """
        Barcode image of the product.

        Query parameters:
        - type: ``code128`` (default) or ``ean13``
        """
        product = self.get_object()
        barcode_format = request.query_params.get("type", "code128")
        if barcode_format not in ("code128", "ean13"):
            return Response(
                {"detail": "Unsupported barcode format."}, status=status.HTTP_400_BAD_REQUEST
            )
        data = product.barcode[:12] if barcode_format == "ean13" else product.barcode

        image = generate_barcode_image(data, barcode_format)
        response = HttpResponse(image, content_type="image/png")
        response["Content-Disposition"] = f'inline; filename="{product.code}_barcode.png"'
        return response

    def label(self, request, pk=None):
        """
        Printable product label with name, price and barcode.

        Query parameters:
        - style: ``barcode`` (default) or ``qr``
        - price: ``retail`` (default) or ``wholesale``
        """
        product = self.get_object()
        wholesale = request.query_params.get("price") == "wholesale"
        price = f"{product.price_for(wholesale):,.2f}"
        currency = self.get_currency()

        if request.query_params.get("style") == "qr":
            image = generate_qr_label(product.name, product.code, price, product.barcode, currency)
        else:
            image = generate_product_label(
                product.name, product.code, price, product.barcode, currency
            )

        response = HttpResponse(image, content_type="image/png")
        response["Content-Disposition"] = f'inline; filename="{product.code}_label.png"'
        return response

    def labels(self, request):
        """
        PDF sheet of labels.

        Request body:
        {
            "items": [{"product": "<id>", "copies": 2}, ...]
        }
        """
        serializer = LabelRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        items = serializer.validated_data["items"]
        products = self.get_queryset().in_bulk([item["product"] for item in items])
        missing = [str(item["product"]) for item in items if item["product"] not in products]
        if missing:
            return Response(
                {"detail": f"Products not found: {', '.join(missing)}"},
                status=status.HTTP_404_NOT_FOUND,
            )

        entries = [(products[item["product"]], item["copies"]) for item in items]
        response = HttpResponse(
            generate_labels_pdf(entries, self.get_currency()), content_type="application/pdf"
        )
        response["Content-Disposition"] = 'inline; filename="product_labels.pdf"'
        return response

    def adjust_stock(self, request, pk=None):
        """
        Adjust the stock level.

        Request body:
        {
            "adjustment_type": "ADD|DEDUCT|SET",
            "quantity": <number>,
            "reason": "<optional reason>"
        }
        """
        serializer = StockAdjustmentSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        data = serializer.validated_data

        with transaction.atomic():
            product = get_object_or_404(
                self.get_queryset().select_for_update(of=("self",)), pk=pk
            )
            try:
                if data["adjustment_type"] == StockMovement.ADD:
                    product.add_quantity(data["quantity"], data["reason"], request.user)
                elif data["adjustment_type"] == StockMovement.DEDUCT:
                    if product.quantity < data["quantity"]:
                        raise ValueError(
                            f"Insufficient stock for {product.name}. "
                            f"Available: {product.quantity}, Requested: {data['quantity']}"
                        )
                    product.deduct_quantity(data["quantity"], data["reason"], request.user)
                else:
                    product.set_quantity(data["quantity"], data["reason"], request.user)
            except ValueError as e:
                logger.warning("Stock adjustment rejected for product %s: %s", product.pk, e)
                return Response({"detail": str(e)}, status=status.HTTP_400_BAD_REQUEST)

        logger.info(
            "Stock of product %s adjusted (%s %s) by %s",
            product.pk,
            data["adjustment_type"],
            data["quantity"],
            request.user,
        )
        return Response(
            {
                "detail": "Stock adjusted successfully.",
                "data": self.get_serializer(product).data,
            },
            status=status.HTTP_200_OK,
        )

    def movements(self, request, pk=None):
        product = self.get_object()
        movements = product.movements.select_related("user")[:100]
        return Response(StockMovementSerializer(movements, many=True).data)
