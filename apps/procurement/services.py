"""
Procurement services.

Receiving goods touches the purchase order, its line items, the products'
stock and prices and the GRN itself, so it runs as one transaction here
rather than in a view or serializer.
"""

import logging
from decimal import Decimal

from django.db import transaction

from apps.core.exceptions import DomainError
from apps.inventory.models import Product, StockMovement

from .models import GoodsReceivedNote, GoodsReceivedNoteItem, PurchaseOrder, PurchaseOrderItem

logger = logging.getLogger(__name__)


class GoodsReceiptService:
    """
    Service class for receiving goods against purchase orders.
    """

    @staticmethod
    def receive(purchase_order, user, items, invoice_number, **grn_fields):
        """
        Create a GRN for ``purchase_order``.

        Args:
            purchase_order: Order the goods were delivered for
            user: User receiving the goods
            items: List of dicts with ``purchase_order_item``, ``received_quantity``,
                ``free_quantity``, ``unit_cost``, ``selling_price`` and optionally
                ``expiry_date`` and ``batch_number``
            invoice_number: Supplier's invoice number
            grn_fields: Other GRN fields (``grn_date``, ``invoice_file``, ``remarks``)

        Returns:
            The saved GoodsReceivedNote

        Raises:
            DomainError: If the order cannot receive goods or a line is over-received
        """
        with transaction.atomic():
            order = PurchaseOrder.objects.select_for_update().get(pk=purchase_order.pk)
            if not order.can_receive:
                raise DomainError(
                    f"Cannot receive goods against a purchase order in "
                    f"{order.get_status_display().lower()} status."
                )

            if not any(
                item.get("received_quantity", 0) + item.get("free_quantity", 0) > 0
                for item in items
            ):
                raise DomainError("Enter a received quantity for at least one item.")

            grn = GoodsReceivedNote.objects.create(
                organization_id=order.organization_id,
                purchase_order=order,
                invoice_number=invoice_number,
                received_by=user,
                **grn_fields,
            )

            total_value = Decimal("0.00")
            for line in items:
                po_item = PurchaseOrderItem.objects.select_for_update().get(
                    pk=line["purchase_order_item"].pk
                )
                if po_item.purchase_order_id != order.pk:
                    raise DomainError("Item does not belong to this purchase order.")

                received = line.get("received_quantity", 0)
                free = line.get("free_quantity", 0)
                if received > po_item.remaining_quantity:
                    raise DomainError(
                        f"Cannot receive {received} of {po_item.product.name}. "
                        f"Remaining: {po_item.remaining_quantity}"
                    )
                if received + free == 0:
                    continue

                grn_item = GoodsReceivedNoteItem.objects.create(
                    grn=grn,
                    purchase_order_item=po_item,
                    received_quantity=received,
                    free_quantity=free,
                    unit_cost=line["unit_cost"],
                    selling_price=line["selling_price"],
                    expiry_date=line.get("expiry_date"),
                    batch_number=line.get("batch_number", ""),
                )
                total_value += grn_item.line_total

                po_item.received_quantity += received
                po_item.save(update_fields=["received_quantity", "updated_at"])

                product = Product.objects.select_for_update().get(pk=po_item.product_id)
                product.cost_price = grn_item.unit_cost
                product.retail_price = grn_item.selling_price
                product.wholesale_price = min(product.wholesale_price, product.retail_price)
                product.save(
                    update_fields=["cost_price", "retail_price", "wholesale_price", "updated_at"]
                )
                product.add_quantity(
                    received + free,
                    reason=f"Received on {grn.grn_number}",
                    user=user,
                    movement_type=StockMovement.GRN,
                    reference=grn.grn_number,
                )

            grn.total_value = total_value
            grn.save(update_fields=["total_value", "updated_at"])

            if order.is_fully_received():
                order.mark_completed()
            else:
                order.mark_partially_received()
            order.save()

        logger.info(
            "GRN %s created for PO %s by %s (value %s)",
            grn.grn_number,
            order.po_number,
            user,
            total_value,
        )
        return grn
