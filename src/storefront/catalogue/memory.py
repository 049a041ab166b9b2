"""Thread-safe in-memory catalog store for development and testing."""

from dataclasses import replace
from decimal import Decimal

import structlog

from storefront.catalogue.port import CatalogProduct, CatalogStore, ProductStatus
from storefront.utils.locks import KeyedLocks

logger = structlog.get_logger(__name__)


class InMemoryCatalogStore(CatalogStore):
    """Catalog held in a dict, with one lock per product.

    The product lock is held across the availability check and the decrement,
    so two concurrent orders can never both see the last unit as available.
    """

    def __init__(self) -> None:
        self._products: dict[str, CatalogProduct] = {}
        self._locks = KeyedLocks("product")

    def add_product(
        self,
        product_id: str,
        title: str,
        price: Decimal | float | int | str,
        quantity: int = 0,
        track_inventory: bool = True,
        status: str = ProductStatus.ACTIVE.value,
    ) -> CatalogProduct:
        product = CatalogProduct(
            product_id=product_id,
            title=title,
            price=Decimal(str(price)),
            quantity=quantity,
            track_inventory=track_inventory,
            status=status,
        )
        with self._locks.hold(product_id):
            self._products[product_id] = product
        return product

    def get_product(self, product_id: str) -> CatalogProduct | None:
        """Return the product regardless of status."""
        return self._products.get(product_id)

    def set_status(self, product_id: str, status: str) -> None:
        with self._locks.hold(product_id):
            self._products[product_id] = replace(self._products[product_id], status=status)

    def set_price(self, product_id: str, price: Decimal | float | int | str) -> None:
        with self._locks.hold(product_id):
            self._products[product_id] = replace(self._products[product_id], price=Decimal(str(price)))

    def get_active_product(self, product_id: str) -> CatalogProduct | None:
        product = self._products.get(product_id)
        if product is None or not product.is_active:
            return None
        return product

    def try_decrement_stock(self, product_id: str, quantity: int) -> bool:
        with self._locks.hold(product_id):
            product = self._products.get(product_id)
            if product is None:
                return False
            if not product.track_inventory:
                return True
            if product.quantity < quantity:
                return False
            self._products[product_id] = replace(product, quantity=product.quantity - quantity)
            return True

    def restore_stock(self, product_id: str, quantity: int) -> None:
        with self._locks.hold(product_id):
            product = self._products.get(product_id)
            if product is None:
                logger.warning("stock_restore_skipped", product_id=product_id, quantity=quantity)
                return
            if not product.track_inventory:
                return
            self._products[product_id] = replace(product, quantity=product.quantity + quantity)
