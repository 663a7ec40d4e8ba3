"""
Views for suppliers, purchase orders and goods received notes.
"""

import logging

from django.http import HttpResponse
from django.utils import timezone

from django_fsm import TransitionNotAllowed
from rest_framework import status
from rest_framework.response import Response

from apps.core.entities import EntityViewSet, SortConfig
from apps.core.exceptions import DomainError
from apps.core.resource_views import view_and_manage

from .documents import generate_purchase_order_pdf, render_purchase_order_html
from .models import GoodsReceivedNote, PurchaseOrder, Supplier
from .serializers import GoodsReceivedNoteSerializer, PurchaseOrderSerializer, SupplierSerializer
from .services import GoodsReceiptService

logger = logging.getLogger(__name__)

PURCHASE_READERS = ["view_purchases", "manage_purchases"]


class SupplierViewSet(EntityViewSet):
    queryset = Supplier.objects.prefetch_related("bank_accounts")
    serializer_class = SupplierSerializer
    entity_name = "supplier"
    entity_name_plural = "suppliers"
    sortable_fields = ("name", "code", "company_name", "city", "phone", "status", "created_at")
    required_permissions = view_and_manage("view_suppliers", "manage_suppliers")
    csv_fields = [
        "code",
        "name",
        "company_name",
        "contact_person_name",
        "phone",
        "email",
        "city",
        "country",
        "status",
    ]


class PurchaseOrderViewSet(EntityViewSet):
    """
    Purchase orders.

    Besides the entity actions: ``approve``, ``send`` and ``cancel`` move the
    order through its workflow, ``print`` and ``pdf`` render it.
    """

    queryset = PurchaseOrder.objects.select_related(
        "supplier", "branch", "organization"
    ).prefetch_related("items__product")
    serializer_class = PurchaseOrderSerializer
    entity_name = "purchase order"
    entity_name_plural = "purchase-orders"
    sortable_fields = (
        "po_number",
        "supplier_name",
        "order_date",
        "expected_date",
        "total_amount",
        "status",
        "created_at",
    )
    default_sort = SortConfig("order_date", "desc")
    status_options = ["all"] + [value for value, _ in PurchaseOrder.STATUS_CHOICES]
    required_permissions = {
        **view_and_manage("view_purchases", "manage_purchases"),
        "approve": "manage_purchases",
        "send": "manage_purchases",
        "cancel": "manage_purchases",
        "print_order": PURCHASE_READERS,
        "pdf": PURCHASE_READERS,
    }

    def filter_queryset(self, queryset):
        queryset = super().filter_queryset(queryset)
        supplier = self.request.query_params.get("supplier")
        if supplier:
            queryset = queryset.filter(supplier_id=supplier)
        return queryset

    def perform_destroy(self, instance):
        if not instance.is_editable:
            raise DomainError(
                f"Cannot delete a purchase order in {instance.get_status_display().lower()} status."
            )
        instance.delete()

    def _transition(self, request, action_label, apply):
        order = self.get_object()
        try:
            apply(order)
        except TransitionNotAllowed:
            logger.warning(
                "Rejected %s of purchase order %s in status %s",
                action_label,
                order.pk,
                order.status,
            )
            return Response(
                {
                    "detail": f"Cannot {action_label} a purchase order in "
                    f"{order.get_status_display().lower()} status."
                },
                status=status.HTTP_400_BAD_REQUEST,
            )
        order.save()
        logger.info("Purchase order %s: %s by %s", order.po_number, action_label, request.user)
        return Response(
            {
                "detail": f"Purchase order {order.po_number} updated successfully.",
                "data": self.get_serializer(order).data,
            }
        )

    def approve(self, request, pk=None):
        return self._transition(request, "approve", lambda order: order.approve(request.user))

    def send(self, request, pk=None):
        return self._transition(request, "send", lambda order: order.send_to_supplier())

    def cancel(self, request, pk=None):
        return self._transition(request, "cancel", lambda order: order.cancel())

    def print_order(self, request, pk=None):
        return HttpResponse(render_purchase_order_html(self.get_object()))

    def pdf(self, request, pk=None):
        order = self.get_object()
        response = HttpResponse(generate_purchase_order_pdf(order), content_type="application/pdf")
        response["Content-Disposition"] = f'inline; filename="PO_{order.po_number}.pdf"'
        return response


class GoodsReceivedNoteViewSet(EntityViewSet):
    """
    Goods received notes. GRNs are created and read, never edited.
    """

    queryset = GoodsReceivedNote.objects.select_related(
        "purchase_order__supplier", "received_by"
    ).prefetch_related("items__purchase_order_item__product")
    serializer_class = GoodsReceivedNoteSerializer
    entity_name = "GRN"
    entity_name_plural = "grns"
    sortable_fields = ("grn_number", "po_number", "supplier_name", "grn_date", "total_value")
    default_sort = SortConfig("grn_date", "desc")
    status_options = ["all"]
    required_permissions = {
        "list": PURCHASE_READERS,
        "retrieve": PURCHASE_READERS,
        "create": "manage_purchases",
    }

    def filter_queryset(self, queryset):
        queryset = super().filter_queryset(queryset)
        order = self.request.query_params.get("purchase_order")
        if order:
            queryset = queryset.filter(purchase_order_id=order)
        return queryset

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        if not serializer.is_valid():
            logger.warning("Failed to add GRN: %s", serializer.errors)
            return self.failure_response("add", serializer.errors)

        data = serializer.validated_data
        order = data["purchase_order"]
        try:
            grn = GoodsReceiptService.receive(
                order,
                request.user,
                data["items"],
                data["invoice_number"],
                grn_date=data.get("grn_date") or timezone.localdate(),
                invoice_file=data.get("invoice_file"),
                remarks=data.get("remarks", ""),
            )
        except DomainError as e:
            logger.warning("Failed to add GRN for PO %s: %s", order.pk, e)
            return self.failure_response("add", [str(e)])

        return Response(
            {"detail": "GRN added successfully", "data": self.get_serializer(grn).data},
            status=status.HTTP_201_CREATED,
        )
