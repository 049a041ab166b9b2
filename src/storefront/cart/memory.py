"""In-memory cart store for development and testing."""

import threading

from storefront.cart.port import CartLine, CartStore


class InMemoryCartStore(CartStore):
    def __init__(self) -> None:
        self._carts: dict[str, dict[str, int]] = {}
        self._lock = threading.Lock()

    def add_item(self, user_id: str, product_id: str, quantity: int = 1) -> None:
        """Add ``quantity`` of a product, merging with an existing line."""
        with self._lock:
            cart = self._carts.setdefault(user_id, {})
            cart[product_id] = cart.get(product_id, 0) + quantity

    def read_cart(self, user_id: str) -> list[CartLine]:
        with self._lock:
            cart = dict(self._carts.get(user_id, {}))
        return [CartLine(product_id=pid, quantity=qty) for pid, qty in cart.items()]

    def clear_cart(self, user_id: str) -> None:
        with self._lock:
            self._carts.pop(user_id, None)
