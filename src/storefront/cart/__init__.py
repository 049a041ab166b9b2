"""Cart store registry. Defaults to the in-memory store."""

from storefront.cart.memory import InMemoryCartStore
from storefront.cart.port import CartStore

_current_cart_store: CartStore | None = None


def get_cart_store() -> CartStore:
    global _current_cart_store
    if _current_cart_store is None:
        _current_cart_store = InMemoryCartStore()
    return _current_cart_store


def set_cart_store(store: CartStore) -> None:
    global _current_cart_store
    _current_cart_store = store


def reset_cart_store() -> None:
    global _current_cart_store
    _current_cart_store = None
