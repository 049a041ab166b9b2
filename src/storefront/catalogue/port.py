"""Catalog store port — the product records orders are priced and stocked from."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum


class ProductStatus(Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


@dataclass(frozen=True)
class CatalogProduct:
    """Point-in-time snapshot of a catalog product."""

    product_id: str
    title: str
    price: Decimal
    quantity: int = 0
    track_inventory: bool = True
    status: str = ProductStatus.ACTIVE.value

    @property
    def is_active(self) -> bool:
        return self.status == ProductStatus.ACTIVE.value

    def has_stock_for(self, quantity: int) -> bool:
        return not self.track_inventory or self.quantity >= quantity


class CatalogStore(ABC):
    """Abstract interface for catalog adapters.

    Stock mutation is exclusive to the order ledger: nothing else calls
    ``try_decrement_stock`` or ``restore_stock``.
    """

    @abstractmethod
    def get_active_product(self, product_id: str) -> CatalogProduct | None:
        """Return the product if it exists and is active, else None."""
        ...

    @abstractmethod
    def try_decrement_stock(self, product_id: str, quantity: int) -> bool:
        """Atomically decrement tracked stock if enough is available.

        Returns True when the decrement was applied (always for untracked
        products) and False when the product is missing or short. Tracked
        quantity never goes negative.
        """
        ...

    @abstractmethod
    def restore_stock(self, product_id: str, quantity: int) -> None:
        """Give back previously decremented stock. No-op for untracked products."""
        ...
