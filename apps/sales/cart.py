"""
POS cart state and totals.

The cart is a plain value: ``reduce_cart`` takes the current state and an
action and returns the next state without touching the database, so the
same rules serve the session cart API, held carts and checkout.
"""

from dataclasses import dataclass, field, replace
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, List, Mapping, Optional

ADD_ITEM = "ADD_ITEM"
REMOVE_ITEM = "REMOVE_ITEM"
UPDATE_ITEM = "UPDATE_ITEM"
SET_CUSTOMER = "SET_CUSTOMER"
TOGGLE_WHOLESALE = "TOGGLE_WHOLESALE"
CLEAR_CART = "CLEAR_CART"

ACTION_TYPES = [ADD_ITEM, REMOVE_ITEM, UPDATE_ITEM, SET_CUSTOMER, TOGGLE_WHOLESALE, CLEAR_CART]

ZERO = Decimal("0")
HUNDRED = Decimal("100")
CENT = Decimal("0.01")


def to_decimal(value, default=ZERO) -> Decimal:
    if value is None or value == "":
        return default
    try:
        number = Decimal(str(value))
    except InvalidOperation:
        return default
    return number if number.is_finite() else default


def money(value) -> Decimal:
    """Round half-up to cents."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def _product_value(product, name, default=None):
    if isinstance(product, Mapping):
        return product.get(name, default)
    return getattr(product, name, default)


def product_price(product, wholesale: bool) -> Decimal:
    if wholesale:
        return to_decimal(_product_value(product, "wholesale_price"))
    return to_decimal(_product_value(product, "retail_price"))


@dataclass(frozen=True)
class CartItem:
    product_id: str
    barcode: str = ""
    name: str = ""
    size: str = ""
    quantity: int = 1
    price: Decimal = ZERO
    discount: Decimal = ZERO

    @property
    def gross(self) -> Decimal:
        return self.price * self.quantity

    @property
    def discount_amount(self) -> Decimal:
        return self.gross * self.discount / HUNDRED

    @property
    def net(self) -> Decimal:
        return self.gross - self.discount_amount

    def to_dict(self) -> Dict[str, Any]:
        return {
            "product_id": self.product_id,
            "barcode": self.barcode,
            "name": self.name,
            "size": self.size,
            "quantity": self.quantity,
            "price": str(self.price),
            "discount": str(self.discount),
            "line_total": str(money(self.net)),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CartItem":
        return cls(
            product_id=str(data["product_id"]),
            barcode=data.get("barcode") or "",
            name=data.get("name") or "",
            size=data.get("size") or "",
            quantity=int(data.get("quantity") or 0),
            price=to_decimal(data.get("price")),
            discount=to_decimal(data.get("discount")),
        )


@dataclass(frozen=True)
class CartState:
    items: List[CartItem] = field(default_factory=list)
    customer: Optional[Dict[str, Any]] = None
    is_wholesale: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.items

    def find(self, product_id) -> Optional[CartItem]:
        product_id = str(product_id)
        for item in self.items:
            if item.product_id == product_id:
                return item
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "items": [item.to_dict() for item in self.items],
            "customer": self.customer,
            "is_wholesale": self.is_wholesale,
        }

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "CartState":
        if not data:
            return cls()
        return cls(
            items=[CartItem.from_dict(item) for item in data.get("items") or []],
            customer=data.get("customer"),
            is_wholesale=bool(data.get("is_wholesale")),
        )


def _add_item(state: CartState, payload) -> CartState:
    product = payload.get("product")
    if product is None:
        return state
    product_id = str(_product_value(product, "id"))
    existing = state.find(product_id)
    if existing is not None:
        items = [
            replace(item, quantity=item.quantity + 1) if item is existing else item
            for item in state.items
        ]
        return replace(state, items=items)

    new_item = CartItem(
        product_id=product_id,
        barcode=_product_value(product, "barcode") or "",
        name=_product_value(product, "name") or "",
        size=_product_value(product, "size") or "",
        quantity=1,
        price=product_price(product, state.is_wholesale),
        discount=ZERO,
    )
    return replace(state, items=[*state.items, new_item])


def _update_item(state: CartState, payload) -> CartState:
    product_id = str(payload.get("product_id"))
    items = []
    for item in state.items:
        if item.product_id != product_id:
            items.append(item)
            continue
        if payload.get("quantity") is not None:
            item = replace(item, quantity=max(0, int(payload["quantity"])))
        if payload.get("discount") is not None:
            discount = min(max(to_decimal(payload["discount"]), ZERO), HUNDRED)
            item = replace(item, discount=discount)
        if item.quantity > 0:
            items.append(item)
    return replace(state, items=items)


def _toggle_wholesale(state: CartState, payload, catalog) -> CartState:
    is_wholesale = bool(payload.get("is_wholesale"))
    items = []
    for item in state.items:
        product = catalog.get(item.product_id)
        if product is not None:
            item = replace(item, price=product_price(product, is_wholesale))
        items.append(item)
    return replace(state, items=items, is_wholesale=is_wholesale)


def reduce_cart(
    state: CartState, action: Mapping[str, Any], catalog: Optional[Mapping[str, Any]] = None
) -> CartState:
    """
    Apply ``action`` (``{"type": ..., "payload": {...}}``) to ``state``.

    ``catalog`` maps product ids to products (models or dicts with
    ``retail_price`` and ``wholesale_price``) and is only read when
    switching between retail and wholesale pricing. Unknown actions leave
    the state unchanged.
    """
    action_type = action.get("type")
    payload = action.get("payload") or {}
    catalog = catalog or {}

    if action_type == ADD_ITEM:
        return _add_item(state, payload)
    if action_type == REMOVE_ITEM:
        product_id = str(payload.get("product_id"))
        return replace(state, items=[i for i in state.items if i.product_id != product_id])
    if action_type == UPDATE_ITEM:
        return _update_item(state, payload)
    if action_type == SET_CUSTOMER:
        return replace(state, customer=payload.get("customer"))
    if action_type == TOGGLE_WHOLESALE:
        return _toggle_wholesale(state, payload, catalog)
    if action_type == CLEAR_CART:
        return CartState()
    return state


@dataclass(frozen=True)
class CartTotals:
    subtotal: Decimal
    item_discount: Decimal
    wholesale_discount: Decimal
    total_discount: Decimal
    tax: Decimal
    grand_total: Decimal
    adjustment: Decimal
    net_total: Decimal
    cash_in: Decimal
    balance: Decimal
    item_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subtotal": str(self.subtotal),
            "item_discount": str(self.item_discount),
            "wholesale_discount": str(self.wholesale_discount),
            "total_discount": str(self.total_discount),
            "tax": str(self.tax),
            "grand_total": str(self.grand_total),
            "adjustment": str(self.adjustment),
            "net_total": str(self.net_total),
            "cash_in": str(self.cash_in),
            "balance": str(self.balance),
            "item_count": self.item_count,
        }


def calculate_totals(
    state: CartState,
    tax_rate=ZERO,
    wholesale_discount_pct=ZERO,
    adjustment=ZERO,
    cash_in=ZERO,
) -> CartTotals:
    """
    Money totals of the cart.

    Tax is charged on the subtotal after item and wholesale discounts; the
    wholesale discount only applies to wholesale carts. The balance (change
    due) is only worked out once cash has been entered.
    """
    tax_rate = to_decimal(tax_rate)
    adjustment = to_decimal(adjustment)
    cash_in = to_decimal(cash_in)

    subtotal = sum((item.gross for item in state.items), ZERO)
    item_discount = sum((item.discount_amount for item in state.items), ZERO)
    wholesale_discount = ZERO
    if state.is_wholesale:
        wholesale_discount = subtotal * to_decimal(wholesale_discount_pct) / HUNDRED
    total_discount = item_discount + wholesale_discount
    tax = (subtotal - total_discount) * tax_rate / HUNDRED
    grand_total = subtotal - total_discount + tax
    net_total = grand_total + adjustment
    balance = cash_in - money(net_total) if cash_in > 0 else ZERO

    return CartTotals(
        subtotal=money(subtotal),
        item_discount=money(item_discount),
        wholesale_discount=money(wholesale_discount),
        total_discount=money(total_discount),
        tax=money(tax),
        grand_total=money(grand_total),
        adjustment=money(adjustment),
        net_total=money(net_total),
        cash_in=money(cash_in),
        balance=money(balance),
        item_count=sum(item.quantity for item in state.items),
    )
