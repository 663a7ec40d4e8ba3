"""
Views for the POS screen and the sales history.

The POS endpoints work on the cart kept in the session: cart actions go
through ``reduce_cart`` and checkout turns the cart into a ``Sale``.
"""

import logging

from django.contrib.auth import get_user_model
from django.db.models import Q
from django.http import HttpResponse
from django.shortcuts import get_object_or_404

from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.core.entities import DESC, EntityViewSet, SortConfig
from apps.core.exceptions import DomainError
from apps.core.models import STATUS_ACTIVE
from apps.core.permissions import HasModulePermission, HasOrganizationAccess
from apps.crm.models import Customer
from apps.crm.serializers import CustomerLookupSerializer
from apps.inventory.models import Product

from . import cart as cart_actions
from .cart import calculate_totals, reduce_cart
from .models import HeldCart, Sale
from .receipt_service import RECEIPT_FORMATS, STANDARD, ReceiptService
from .serializers import (
    CartActionSerializer,
    CartTotalsSerializer,
    CheckoutSerializer,
    HeldCartSerializer,
    HoldCartSerializer,
    PosProductSerializer,
    RefundSerializer,
    SaleSerializer,
    SellerSerializer,
    UpdateItemPayloadSerializer,
)
from .services import CheckoutService, RefundService
from .session_cart import clear_cart, load_cart, save_cart

User = get_user_model()
logger = logging.getLogger(__name__)

SEARCH_LIMIT = 20


class PosView(APIView):
    """
    Base for POS endpoints: the user needs ``process_sales`` and an
    organization to sell for.
    """

    permission_classes = [permissions.IsAuthenticated, HasOrganizationAccess, HasModulePermission]
    required_permissions = {"*": "process_sales"}

    def initial(self, request, *args, **kwargs):
        super().initial(request, *args, **kwargs)
        if not request.user.organization_id:
            raise DomainError("The POS is only available to users of an organization.")

    @property
    def organization(self):
        return self.request.user.organization

    def cart_response(self, state, totals_input=None, status_code=status.HTTP_200_OK):
        totals_input = totals_input or {}
        totals = calculate_totals(
            state,
            self.organization.get_settings().tax_rate,
            totals_input.get("wholesale_discount", 0),
            totals_input.get("adjustment", 0),
            totals_input.get("cash_in", 0),
        )
        return Response({"cart": state.to_dict(), "totals": totals.to_dict()}, status=status_code)


class CartView(PosView):
    def get(self, request):
        return self.cart_response(load_cart(request))

    def delete(self, request):
        return self.cart_response(clear_cart(request))


class CartActionView(PosView):
    """
    Apply one cart action, ``{"type": "ADD_ITEM", "payload": {...}}``.

    ``ADD_ITEM`` takes a ``product_id`` or a scanned ``barcode`` and
    ``SET_CUSTOMER`` a ``customer`` id (or null); the view looks the records
    up and hands them to the reducer.
    """

    def _find_product(self, payload):
        products = Product.objects.filter(organization=self.organization, status=STATUS_ACTIVE)
        if payload.get("product_id"):
            return products.filter(pk=payload["product_id"]).first()
        if payload.get("barcode"):
            return products.filter(barcode=str(payload["barcode"]).strip()).first()
        return None

    def _insufficient_stock(self, product, wanted):
        if product.can_deduct_quantity(wanted):
            return None
        return Response(
            {"detail": f"Insufficient stock for {product.name}. Available: {product.quantity}"},
            status=status.HTTP_400_BAD_REQUEST,
        )

    def post(self, request):
        serializer = CartActionSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        action_type = serializer.validated_data["type"]
        payload = dict(serializer.validated_data["payload"])
        state = load_cart(request)
        catalog = {}

        if action_type == cart_actions.ADD_ITEM:
            product = self._find_product(payload)
            if product is None:
                return Response({"detail": "Product not found."}, status=status.HTTP_404_NOT_FOUND)
            line = state.find(product.pk)
            error = self._insufficient_stock(product, (line.quantity if line else 0) + 1)
            if error is not None:
                return error
            payload = {"product": product}

        elif action_type == cart_actions.UPDATE_ITEM:
            item_serializer = UpdateItemPayloadSerializer(data=payload)
            if not item_serializer.is_valid():
                return Response(item_serializer.errors, status=status.HTTP_400_BAD_REQUEST)
            payload = item_serializer.validated_data
            line = state.find(payload["product_id"])
            quantity = payload.get("quantity")
            if line is not None and quantity is not None and quantity > line.quantity:
                product = Product.objects.filter(
                    organization=self.organization, pk=line.product_id
                ).first()
                if product is not None:
                    error = self._insufficient_stock(product, quantity)
                    if error is not None:
                        return error

        elif action_type == cart_actions.SET_CUSTOMER:
            customer_id = payload.get("customer")
            if isinstance(customer_id, dict):
                customer_id = customer_id.get("id")
            customer = None
            if customer_id:
                customer = Customer.objects.filter(
                    organization=self.organization, pk=customer_id
                ).first()
                if customer is None:
                    return Response(
                        {"detail": "Customer not found."}, status=status.HTTP_404_NOT_FOUND
                    )
            snapshot = dict(CustomerLookupSerializer(customer).data) if customer else None
            payload = {"customer": snapshot}

        elif action_type == cart_actions.TOGGLE_WHOLESALE:
            ids = [item.product_id for item in state.items]
            catalog = {
                str(pk): product
                for pk, product in Product.objects.filter(
                    organization=self.organization, pk__in=ids
                ).in_bulk().items()
            }

        state = reduce_cart(state, {"type": action_type, "payload": payload}, catalog)
        save_cart(request, state)
        return self.cart_response(state)


class CartTotalsView(PosView):
    def post(self, request):
        serializer = CartTotalsSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        return self.cart_response(load_cart(request), serializer.validated_data)


class ProductSearchView(PosView):
    """
    Product lookup for the POS. A scanned barcode that matches exactly
    returns just that product with ``exact`` set.
    """

    def get(self, request):
        query = request.query_params.get("q", "").strip()
        products = Product.objects.filter(
            organization=self.organization, status=STATUS_ACTIVE
        ).select_related("main_category", "brand")

        if query:
            exact = products.filter(barcode=query).first()
            if exact is not None:
                return Response({"results": [PosProductSerializer(exact).data], "exact": True})
            products = products.filter(
                Q(name__icontains=query) | Q(code__icontains=query) | Q(barcode__icontains=query)
            )

        category = request.query_params.get("category")
        if category:
            products = products.filter(Q(main_category_id=category) | Q(sub_category_id=category))

        results = PosProductSerializer(products.order_by("name")[:SEARCH_LIMIT], many=True).data
        return Response({"results": results, "exact": False})


class CustomerSearchView(PosView):
    def get(self, request):
        query = request.query_params.get("q", "").strip()
        if not query:
            return Response({"results": []})
        customers = Customer.objects.filter(
            organization=self.organization, status=STATUS_ACTIVE
        ).filter(Q(name__icontains=query) | Q(phone__icontains=query))[:SEARCH_LIMIT]
        return Response({"results": CustomerLookupSerializer(customers, many=True).data})


class SellerListView(PosView):
    """Users of the organization, for the "sold by" picker."""

    def get(self, request):
        sellers = User.objects.filter(organization=self.organization, is_active=True).order_by(
            "first_name", "last_name", "email"
        )
        return Response({"results": SellerSerializer(sellers, many=True).data})


class CheckoutView(PosView):
    def post(self, request):
        serializer = CheckoutSerializer(
            data=request.data, context={"organization": self.organization}
        )
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        data = serializer.validated_data
        try:
            sale = CheckoutService.checkout(
                request.user,
                self.organization,
                load_cart(request),
                data["payment_method"],
                cash_in=data["cash_in"],
                adjustment=data["adjustment"],
                wholesale_discount=data["wholesale_discount"],
                sold_by=data.get("sold_by"),
                card=data.get("card"),
                payments=data.get("payments"),
                notes=data["notes"],
            )
        except DomainError as e:
            logger.warning("Checkout rejected for %s: %s", request.user, e)
            return Response({"detail": str(e)}, status=status.HTTP_400_BAD_REQUEST)

        clear_cart(request)
        return Response(
            {"detail": f"Sale {sale.invoice_number} completed", "data": SaleSerializer(sale).data},
            status=status.HTTP_201_CREATED,
        )


class HoldCartView(PosView):
    def post(self, request):
        state = load_cart(request)
        if state.is_empty:
            return Response({"detail": "Cart is empty."}, status=status.HTTP_400_BAD_REQUEST)
        serializer = HoldCartSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        held = HeldCart.objects.create(
            organization=self.organization,
            user=request.user,
            label=serializer.validated_data["label"],
            snapshot=state.to_dict(),
        )
        clear_cart(request)
        logger.info("Cart held as %s by %s", held.pk, request.user)
        return Response(
            {"detail": "Cart held", "data": HeldCartSerializer(held).data},
            status=status.HTTP_201_CREATED,
        )


class HeldCartListView(PosView):
    def get(self, request):
        held = HeldCart.objects.filter(organization=self.organization).select_related("user")
        return Response({"results": HeldCartSerializer(held, many=True).data})


class ResumeCartView(PosView):
    """Restore a held cart into the session; the held copy is removed."""

    def post(self, request, pk):
        held = get_object_or_404(HeldCart, pk=pk, organization=self.organization)
        if not load_cart(request).is_empty:
            return Response(
                {"detail": "Hold or clear the current cart before resuming another one."},
                status=status.HTTP_400_BAD_REQUEST,
            )
        state = save_cart(request, cart_actions.CartState.from_dict(held.snapshot))
        held.delete()
        logger.info("Held cart %s resumed by %s", pk, request.user)
        return self.cart_response(state)


class SaleViewSet(EntityViewSet):
    """
    Sales history with refund and receipt reprints. Sales are read-only
    apart from refunds.
    """

    queryset = Sale.objects.select_related(
        "customer", "branch", "cashier", "sold_by", "organization"
    ).prefetch_related("items", "payments")
    serializer_class = SaleSerializer
    entity_name = "sale"
    entity_name_plural = "sales"
    sortable_fields = (
        "invoice_number",
        "created_at",
        "customer_name",
        "cashier_name",
        "payment_method",
        "net_total",
        "status",
    )
    default_sort = SortConfig("created_at", DESC)
    status_options = ["all", Sale.COMPLETED, Sale.REFUNDED]
    required_permissions = {
        "list": ["process_sales", "view_reports"],
        "retrieve": ["process_sales", "view_reports"],
        "receipt": ["process_sales", "view_reports"],
        "receipt_pdf": ["process_sales", "view_reports"],
        "refund": "process_sales",
    }
    csv_fields = [
        "invoice_number",
        "created_at",
        "customer_name",
        "cashier_name",
        "payment_method",
        "subtotal",
        "discount",
        "tax",
        "net_total",
        "status",
    ]

    def filter_queryset(self, queryset):
        queryset = super().filter_queryset(queryset)
        params = self.request.query_params
        if params.get("date_from"):
            queryset = queryset.filter(created_at__date__gte=params["date_from"])
        if params.get("date_to"):
            queryset = queryset.filter(created_at__date__lte=params["date_to"])
        if params.get("payment_method"):
            queryset = queryset.filter(payment_method=params["payment_method"])
        if params.get("customer"):
            queryset = queryset.filter(customer_id=params["customer"])
        if params.get("branch"):
            queryset = queryset.filter(branch_id=params["branch"])
        return queryset

    def refund(self, request, pk=None):
        sale = self.get_object()
        serializer = RefundSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            sale = RefundService.refund(sale, request.user, serializer.validated_data["reason"])
        except DomainError as e:
            logger.warning("Refund of sale %s rejected: %s", pk, e)
            return self.failure_response("refund", [str(e)])
        return Response(
            {
                "detail": f"Sale {sale.invoice_number} refunded",
                "data": self.get_serializer(sale).data,
            }
        )

    def _layout(self, request):
        layout = request.query_params.get("layout", STANDARD)
        return layout if layout in RECEIPT_FORMATS else STANDARD

    def receipt(self, request, pk=None):
        sale = self.get_object()
        html = ReceiptService.generate_receipt(sale, self._layout(request), "html")
        return HttpResponse(html, content_type="text/html")

    def receipt_pdf(self, request, pk=None):
        sale = self.get_object()
        layout = self._layout(request)
        pdf_bytes = ReceiptService.generate_receipt(sale, layout, "pdf")
        response = HttpResponse(pdf_bytes, content_type="application/pdf")
        response["Content-Disposition"] = (
            f'inline; filename="receipt_{sale.invoice_number}_{layout}.pdf"'
        )
        return response
