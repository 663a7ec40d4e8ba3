"""
Checkout and refund of POS sales.
"""

import logging

from django.db import transaction

from apps.core.exceptions import DomainError
from apps.crm.models import Customer
from apps.inventory.models import Product, StockMovement

from .cart import ZERO, CartState, calculate_totals, money, to_decimal
from .models import Payment, Sale, SaleItem

logger = logging.getLogger(__name__)


def card_payment_status(card):
    """Card slips with an authorization code are matched, the rest wait for reconciliation."""
    return Payment.MATCHED if card.get("auth_code") else Payment.PENDING


class CheckoutService:
    """
    Turn a cart into a sale.

    Everything happens in one transaction: products are locked, stock is
    checked and deducted, and the sale with its items and payments is
    written. Any failure raises ``DomainError`` and leaves nothing behind.
    """

    @staticmethod
    def _lock_products(organization, state):
        ids = [item.product_id for item in state.items]
        products = Product.objects.select_for_update().filter(organization=organization, pk__in=ids)
        by_id = {str(product.pk): product for product in products}
        for item in state.items:
            product = by_id.get(item.product_id)
            if product is None:
                raise DomainError(f"{item.name or 'A product'} is no longer available.")
            if not product.can_deduct_quantity(item.quantity):
                raise DomainError(
                    f"Insufficient stock for {product.name}. "
                    f"Available: {product.quantity}, Requested: {item.quantity}"
                )
        return by_id

    @staticmethod
    def _build_payments(payment_method, totals, card, split_payments):
        """
        Payments to record, and the amount tendered.

        Cash sales record the net total as paid; the cash handed over only
        determines the change.
        """
        net_total = totals.net_total
        if payment_method == Sale.CASH:
            if totals.cash_in < net_total:
                raise DomainError("Cash received is less than the net total.")
            return [{"method": Payment.CASH, "amount": net_total}]

        if payment_method == Sale.CARD:
            card = card or {}
            return [
                {
                    "method": Payment.CARD,
                    "amount": net_total,
                    "card_type": card.get("card_type") or Payment.OTHER,
                    "last4": card.get("last4", ""),
                    "auth_code": card.get("auth_code", ""),
                    "batch": card.get("batch", ""),
                    "status": card_payment_status(card),
                }
            ]

        if payment_method == Sale.SPLIT:
            payments = []
            for entry in split_payments or []:
                amount = money(entry.get("amount"))
                if amount <= ZERO:
                    continue
                payment = {"method": entry.get("method"), "amount": amount}
                if payment["method"] == Payment.CARD:
                    payment.update(
                        card_type=entry.get("card_type") or Payment.OTHER,
                        last4=entry.get("last4", ""),
                        auth_code=entry.get("auth_code", ""),
                        batch=entry.get("batch", ""),
                        status=card_payment_status(entry),
                    )
                payments.append(payment)
            if len(payments) < 2:
                raise DomainError("A split payment needs at least two payments.")
            paid = sum((payment["amount"] for payment in payments), ZERO)
            if paid < net_total:
                raise DomainError(f"Payments total {paid} but the net total is {net_total}.")
            card_paid = sum(
                (p["amount"] for p in payments if p["method"] == Payment.CARD), ZERO
            )
            if card_paid > net_total:
                raise DomainError("Card payments cannot exceed the net total.")
            return payments

        raise DomainError(f"Unsupported payment method: {payment_method}")

    @classmethod
    @transaction.atomic
    def checkout(
        cls,
        user,
        organization,
        state: CartState,
        payment_method,
        cash_in=ZERO,
        adjustment=ZERO,
        wholesale_discount=ZERO,
        sold_by=None,
        card=None,
        payments=None,
        branch=None,
        notes="",
    ) -> Sale:
        if state.is_empty:
            raise DomainError("Cart is empty.")

        products = cls._lock_products(organization, state)
        tax_rate = organization.get_settings().tax_rate
        totals = calculate_totals(state, tax_rate, wholesale_discount, adjustment, cash_in)
        if totals.net_total < ZERO:
            raise DomainError("The net total cannot be negative.")
        payment_rows = cls._build_payments(payment_method, totals, card, payments)

        balance = totals.balance
        if payment_method == Sale.SPLIT:
            balance = sum((p["amount"] for p in payment_rows), ZERO) - totals.net_total

        customer = None
        if state.customer and state.customer.get("id"):
            customer = Customer.objects.filter(
                organization=organization, pk=state.customer["id"]
            ).first()

        sale = Sale.objects.create(
            organization=organization,
            branch=branch or getattr(user, "branch", None),
            customer=customer,
            cashier=user,
            sold_by=sold_by or user,
            is_wholesale=state.is_wholesale,
            subtotal=totals.subtotal,
            item_discount=totals.item_discount,
            wholesale_discount_rate=to_decimal(wholesale_discount) if state.is_wholesale else ZERO,
            wholesale_discount=totals.wholesale_discount,
            discount=totals.total_discount,
            tax_rate=tax_rate,
            tax=totals.tax,
            grand_total=totals.grand_total,
            adjustment=totals.adjustment,
            net_total=totals.net_total,
            cash_in=totals.cash_in,
            balance=money(balance),
            payment_method=payment_method,
            notes=notes,
        )

        for item in state.items:
            product = products[item.product_id]
            SaleItem.objects.create(
                sale=sale,
                product=product,
                product_name=item.name or product.name,
                barcode=item.barcode or product.barcode,
                size=item.size,
                quantity=item.quantity,
                unit_price=money(item.price),
                cost_price=product.cost_price,
                discount_percent=item.discount,
                discount_amount=money(item.discount_amount),
                line_total=money(item.net),
            )
            product.deduct_quantity(
                item.quantity,
                reason=f"Sale {sale.invoice_number}",
                user=user,
                movement_type=StockMovement.SALE,
                reference=sale.invoice_number,
            )

        for payment in payment_rows:
            Payment.objects.create(sale=sale, **payment)

        if customer is not None:
            customer.record_purchase(sale.net_total)

        logger.info(
            "Sale %s completed by %s: %s %s",
            sale.invoice_number,
            user,
            payment_method,
            sale.net_total,
        )
        return sale


class RefundService:
    @staticmethod
    @transaction.atomic
    def refund(sale: Sale, user, reason="") -> Sale:
        """
        Refund a completed sale in full.

        Stock goes back on the shelf, card payments are reversed with a
        negative ``Refunded`` payment and the customer's purchase total is
        reduced.
        """
        sale = Sale.objects.select_for_update().get(pk=sale.pk)
        if not sale.can_be_refunded():
            raise DomainError(f"Sale {sale.invoice_number} has already been refunded.")

        for item in sale.items.select_related("product"):
            product = Product.objects.select_for_update().get(pk=item.product_id)
            product.add_quantity(
                item.quantity,
                reason=f"Refund {sale.invoice_number}",
                user=user,
                movement_type=StockMovement.REFUND,
                reference=sale.invoice_number,
            )

        for payment in list(sale.payments.filter(method=Payment.CARD, amount__gt=0)):
            Payment.objects.create(
                sale=sale,
                method=Payment.CARD,
                amount=-payment.amount,
                card_type=payment.card_type,
                last4=payment.last4,
                auth_code=payment.auth_code,
                batch=payment.batch,
                status=Payment.REFUNDED,
            )

        if sale.customer_id:
            sale.customer.record_purchase(-sale.net_total)

        sale.mark_as_refunded(user, reason)
        logger.info("Sale %s refunded by %s", sale.invoice_number, user)
        return sale

