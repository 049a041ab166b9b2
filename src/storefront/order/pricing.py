"""Pricing calculator — pure functions deriving order totals from catalog snapshots.

The ledger re-derives prices here at commit time instead of trusting totals
sent by the client. Nothing in this module reads or writes shared state.

    subtotal = sum(unit_price * quantity)
    tax      = subtotal * tax_rate                      (rounded half-up to 0.01)
    shipping = 0 if subtotal > free_shipping_threshold else flat_shipping_fee
    total    = subtotal + tax + shipping
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from protean.exceptions import ValidationError

from storefront.catalogue.port import CatalogProduct
from storefront.config import Settings
from storefront.errors import InsufficientStock, ProductUnavailable

CENTS = Decimal("0.01")


def to_money(value: Decimal | float | int | str) -> Decimal:
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class PricingPolicy:
    tax_rate: Decimal = Decimal("0.075")
    flat_shipping_fee: Decimal = Decimal("2500")
    free_shipping_threshold: Decimal = Decimal("50000")

    @classmethod
    def from_settings(cls, settings: Settings) -> "PricingPolicy":
        return cls(
            tax_rate=Decimal(str(settings.tax_rate)),
            flat_shipping_fee=Decimal(str(settings.flat_shipping_fee)),
            free_shipping_threshold=Decimal(str(settings.free_shipping_threshold)),
        )


@dataclass(frozen=True)
class RequestedItem:
    product_id: str
    quantity: int


@dataclass(frozen=True)
class PricedLine:
    product_id: str
    title: str
    unit_price: Decimal
    quantity: int
    line_total: Decimal

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "title": self.title,
            "unit_price": float(self.unit_price),
            "quantity": self.quantity,
            "line_total": float(self.line_total),
        }


@dataclass(frozen=True)
class PricingBreakdown:
    subtotal: Decimal
    tax: Decimal
    shipping: Decimal
    total: Decimal

    @classmethod
    def zero(cls) -> "PricingBreakdown":
        nothing = Decimal("0.00")
        return cls(subtotal=nothing, tax=nothing, shipping=nothing, total=nothing)

    def to_dict(self) -> dict:
        return {
            "subtotal": float(self.subtotal),
            "tax": float(self.tax),
            "shipping": float(self.shipping),
            "total": float(self.total),
        }


@dataclass(frozen=True)
class PricedOrder:
    lines: tuple[PricedLine, ...]
    pricing: PricingBreakdown


def normalize_items(items: Iterable[RequestedItem]) -> list[RequestedItem]:
    """Validate quantities and merge repeated products into a single line.

    Order of first appearance is preserved.
    """
    merged: dict[str, int] = {}
    for item in items:
        if not item.product_id:
            raise ValidationError({"product_id": ["Product id is required"]})
        if isinstance(item.quantity, bool) or not isinstance(item.quantity, int) or item.quantity < 1:
            raise ValidationError({"quantity": [f"Quantity for {item.product_id} must be a positive integer"]})
        merged[item.product_id] = merged.get(item.product_id, 0) + item.quantity
    return [RequestedItem(product_id=pid, quantity=qty) for pid, qty in merged.items()]


def calculate_pricing(subtotal: Decimal, policy: PricingPolicy) -> PricingBreakdown:
    subtotal = to_money(subtotal)
    tax = to_money(subtotal * policy.tax_rate)
    shipping = Decimal("0.00") if subtotal > policy.free_shipping_threshold else to_money(policy.flat_shipping_fee)
    return PricingBreakdown(
        subtotal=subtotal,
        tax=tax,
        shipping=shipping,
        total=subtotal + tax + shipping,
    )


def price_items(
    items: Iterable[RequestedItem],
    products: Mapping[str, CatalogProduct | None],
    policy: PricingPolicy,
) -> PricedOrder:
    """Price requested items against catalog snapshots.

    ``products`` maps each requested product id to its active catalog
    snapshot, or None when the product is missing or inactive.

    Raises:
        ProductUnavailable: a product is missing or not active.
        InsufficientStock: tracked stock is below the requested quantity.
    """
    lines = []
    for item in items:
        product = products.get(item.product_id)
        if product is None or not product.is_active:
            raise ProductUnavailable(item.product_id)
        if not product.has_stock_for(item.quantity):
            raise InsufficientStock(
                item.product_id,
                requested=item.quantity,
                available=product.quantity,
                title=product.title,
            )
        unit_price = to_money(product.price)
        lines.append(
            PricedLine(
                product_id=item.product_id,
                title=product.title,
                unit_price=unit_price,
                quantity=item.quantity,
                line_total=unit_price * item.quantity,
            )
        )

    subtotal = sum((line.line_total for line in lines), Decimal("0"))
    return PricedOrder(lines=tuple(lines), pricing=calculate_pricing(subtotal, policy))
