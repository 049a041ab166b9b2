"""Cart store port — per-user product quantities consulted at checkout."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class CartLine:
    product_id: str
    quantity: int


class CartStore(ABC):
    """Abstract interface for cart adapters."""

    @abstractmethod
    def read_cart(self, user_id: str) -> list[CartLine]:
        """Return the user's cart lines, empty if there is no cart."""
        ...

    @abstractmethod
    def clear_cart(self, user_id: str) -> None:
        """Remove every line from the user's cart."""
        ...
