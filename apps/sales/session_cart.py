"""
The POS cart kept in the Django session, one per user.
"""

from .cart import CartState

CART_SESSION_KEY = "pos_cart"


def _key(request):
    return f"{CART_SESSION_KEY}:{request.user.pk}"


def load_cart(request) -> CartState:
    return CartState.from_dict(request.session.get(_key(request)))


def save_cart(request, state: CartState) -> CartState:
    request.session[_key(request)] = state.to_dict()
    request.session.modified = True
    return state


def clear_cart(request) -> CartState:
    request.session.pop(_key(request), None)
    request.session.modified = True
    return CartState()
