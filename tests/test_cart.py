"""
Tests for the POS cart reducer and totals.
"""

from decimal import Decimal

from apps.sales.cart import (
    ADD_ITEM,
    CLEAR_CART,
    REMOVE_ITEM,
    SET_CUSTOMER,
    TOGGLE_WHOLESALE,
    UPDATE_ITEM,
    CartState,
    calculate_totals,
    money,
    reduce_cart,
)

GINGER_BEER = {
    "id": "p-1",
    "barcode": "8901234567890",
    "name": "Ginger Beer",
    "size": "500ml",
    "retail_price": "120.00",
    "wholesale_price": "100.00",
}
ORANGE_JUICE = {
    "id": "p-2",
    "barcode": "8901234567891",
    "name": "Orange Juice",
    "size": "1l",
    "retail_price": "400.00",
    "wholesale_price": "350.00",
}
CATALOG = {"p-1": GINGER_BEER, "p-2": ORANGE_JUICE}


def _apply(state, *actions):
    for action_type, payload in actions:
        state = reduce_cart(state, {"type": action_type, "payload": payload}, CATALOG)
    return state


def _filled_cart():
    return _apply(
        CartState(),
        (ADD_ITEM, {"product": GINGER_BEER}),
        (ADD_ITEM, {"product": GINGER_BEER}),
        (ADD_ITEM, {"product": ORANGE_JUICE}),
    )


class TestCartReducer:
    def test_adding_same_product_increments_quantity(self):
        state = _filled_cart()
        assert [(item.product_id, item.quantity) for item in state.items] == [
            ("p-1", 2),
            ("p-2", 1),
        ]
        assert state.items[0].price == Decimal("120.00")

    def test_reducer_does_not_mutate_state(self):
        before = _filled_cart()
        after = _apply(before, (REMOVE_ITEM, {"product_id": "p-1"}))
        assert len(before.items) == 2
        assert [item.product_id for item in after.items] == ["p-2"]

    def test_update_quantity_and_discount(self):
        state = _apply(
            _filled_cart(), (UPDATE_ITEM, {"product_id": "p-1", "quantity": 5, "discount": 10})
        )
        item = state.find("p-1")
        assert item.quantity == 5
        assert item.discount == Decimal("10")

    def test_discount_is_clamped(self):
        state = _apply(_filled_cart(), (UPDATE_ITEM, {"product_id": "p-2", "discount": 150}))
        assert state.find("p-2").discount == Decimal("100")
        state = _apply(state, (UPDATE_ITEM, {"product_id": "p-2", "discount": -5}))
        assert state.find("p-2").discount == Decimal("0")

    def test_zero_quantity_removes_line(self):
        state = _apply(_filled_cart(), (UPDATE_ITEM, {"product_id": "p-2", "quantity": 0}))
        assert state.find("p-2") is None

    def test_toggle_wholesale_reprices_lines(self):
        state = _apply(_filled_cart(), (TOGGLE_WHOLESALE, {"is_wholesale": True}))
        assert state.is_wholesale
        assert [item.price for item in state.items] == [Decimal("100.00"), Decimal("350.00")]

        # Items added while wholesale use the wholesale price
        state = _apply(CartState(is_wholesale=True), (ADD_ITEM, {"product": ORANGE_JUICE}))
        assert state.items[0].price == Decimal("350.00")

        state = _apply(state, (TOGGLE_WHOLESALE, {"is_wholesale": False}))
        assert state.items[0].price == Decimal("400.00")

    def test_set_customer_and_clear(self):
        customer = {"id": "c-1", "name": "Kamal Fernando"}
        state = _apply(_filled_cart(), (SET_CUSTOMER, {"customer": customer}))
        assert state.customer == customer

        state = _apply(state, (TOGGLE_WHOLESALE, {"is_wholesale": True}), (CLEAR_CART, {}))
        assert state == CartState()

    def test_unknown_action_leaves_state_alone(self):
        state = _filled_cart()
        assert reduce_cart(state, {"type": "APPLY_COUPON", "payload": {}}) is state

    def test_session_round_trip(self):
        state = _apply(
            _filled_cart(),
            (UPDATE_ITEM, {"product_id": "p-1", "discount": "12.5"}),
            (SET_CUSTOMER, {"customer": {"id": "c-1"}}),
        )
        assert CartState.from_dict(state.to_dict()) == state


class TestCartTotals:
    def test_retail_totals(self):
        state = _apply(_filled_cart(), (UPDATE_ITEM, {"product_id": "p-1", "discount": 10}))
        totals = calculate_totals(state, tax_rate=8, adjustment="-0.28", cash_in=1000)

        assert totals.subtotal == Decimal("640.00")
        assert totals.item_discount == Decimal("24.00")
        assert totals.wholesale_discount == Decimal("0.00")
        assert totals.tax == Decimal("49.28")
        assert totals.grand_total == Decimal("665.28")
        assert totals.net_total == Decimal("665.00")
        assert totals.balance == Decimal("335.00")
        assert totals.item_count == 3

    def test_wholesale_discount_only_for_wholesale_carts(self):
        retail = calculate_totals(_filled_cart(), tax_rate=0, wholesale_discount_pct=5)
        assert retail.wholesale_discount == Decimal("0.00")

        state = _apply(
            _filled_cart(),
            (TOGGLE_WHOLESALE, {"is_wholesale": True}),
            (UPDATE_ITEM, {"product_id": "p-1", "discount": 10}),
        )
        totals = calculate_totals(state, tax_rate=8, wholesale_discount_pct=5)
        assert totals.subtotal == Decimal("550.00")
        assert totals.wholesale_discount == Decimal("27.50")
        assert totals.total_discount == Decimal("47.50")
        assert totals.tax == Decimal("40.20")
        assert totals.grand_total == Decimal("542.70")

    def test_no_balance_without_cash(self):
        totals = calculate_totals(_filled_cart(), tax_rate=8)
        assert totals.cash_in == Decimal("0.00")
        assert totals.balance == Decimal("0.00")

    def test_short_cash_gives_negative_balance(self):
        totals = calculate_totals(_filled_cart(), tax_rate=0, cash_in=500)
        assert totals.balance == Decimal("-140.00")

    def test_empty_cart(self):
        totals = calculate_totals(CartState(), tax_rate=8)
        assert totals.net_total == Decimal("0.00")
        assert totals.item_count == 0

    def test_money_rounds_half_up(self):
        assert money("2.345") == Decimal("2.35")
        assert money("2.344") == Decimal("2.34")
        assert money(None) == Decimal("0.00")
