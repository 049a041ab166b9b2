"""Order aggregate (CQRS) — a priced, immutable-once-created purchase record.

Line items and pricing are snapshotted from the catalog when the order is
placed; later catalog edits never alter an existing order. After creation
the order only changes through its status transitions.

State Machine:
    PENDING → PROCESSING → SHIPPED → DELIVERED
    PENDING → CANCELLED
    PROCESSING → CANCELLED
"""

import json
import re
import secrets
import string
import time
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, Text, ValueObject

from storefront.domain import storefront
from storefront.errors import InvalidTransition
from storefront.order.events import OrderCancelled, OrderPlaced, OrderStatusChanged


class OrderStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentMethodType(Enum):
    CARD = "card"
    BANK_TRANSFER = "bank_transfer"
    FLUTTERWAVE = "flutterwave"
    PAYSTACK = "paystack"


_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}

DEFAULT_CANCELLATION_REASON = "Cancelled by user"

_ORDER_SUFFIX_ALPHABET = string.ascii_uppercase + string.digits
_PHONE_PATTERN = re.compile(r"^\+?[\d\s\-()]+$")


def generate_order_number() -> str:
    """Human-referenceable order number, e.g. ``ORD-1718000000000-7QX2K``."""
    suffix = "".join(secrets.choice(_ORDER_SUFFIX_ALPHABET) for _ in range(5))
    return f"ORD-{int(time.time() * 1000)}-{suffix}"


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@storefront.value_object(part_of="Order")
class Address:
    """Contact and delivery details snapshotted onto the order."""

    first_name = String(required=True, max_length=50)
    last_name = String(required=True, max_length=50)
    email = String(required=True, max_length=254)
    phone = String(required=True, min_length=10, max_length=15)
    address = String(required=True, min_length=5, max_length=200)
    city = String(required=True, max_length=50)
    state = String(required=True, max_length=50)
    postal_code = String(max_length=10)

    @invariant.post
    def email_must_be_well_formed(self):
        local_part, _, domain_part = self.email.partition("@")
        if (
            not local_part
            or "@" in domain_part
            or "." not in domain_part
            or domain_part.startswith(".")
            or domain_part.endswith(".")
            or ".." in self.email
            or any(ch.isspace() for ch in self.email)
        ):
            raise ValidationError({"email": [f"Invalid email address: {self.email!r}"]})

    @invariant.post
    def phone_must_be_dialable(self):
        if not _PHONE_PATTERN.match(self.phone):
            raise ValidationError({"phone": [f"Invalid phone number: {self.phone!r}"]})


@storefront.value_object(part_of="Order")
class OrderPricing:
    """Derived totals. Never mutated independently of the line items."""

    subtotal = Float(required=True)
    tax = Float(required=True)
    shipping = Float(required=True)
    total = Float(required=True)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@storefront.entity(part_of="Order")
class OrderItem:
    product_id = Identifier(required=True)
    title = String(required=True, max_length=255)
    unit_price = Float(required=True)
    quantity = Integer(required=True, min_value=1)
    line_total = Float(required=True)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@storefront.aggregate
class Order:
    order_number = String(required=True, max_length=50)
    customer_id = Identifier(required=True)
    items = HasMany(OrderItem)
    pricing = ValueObject(OrderPricing)
    currency = String(max_length=3, default="NGN")
    shipping_address = ValueObject(Address)
    billing_address = ValueObject(Address)
    payment_method = String(choices=PaymentMethodType, required=True)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    tracking_number = String(max_length=100)
    notes = Text()
    cancellation_reason = String(max_length=500)
    shipped_at = DateTime()
    delivered_at = DateTime()
    cancelled_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def total_must_equal_sum_of_components(self):
        if self.pricing is None:
            return
        components = sum(
            Decimal(str(value)) for value in (self.pricing.subtotal, self.pricing.tax, self.pricing.shipping)
        )
        if Decimal(str(self.pricing.total)) != components:
            raise ValidationError({"pricing": ["Total must equal subtotal + tax + shipping"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        customer_id: str,
        lines: list[dict],
        pricing: dict,
        shipping_address: dict,
        payment_method: str,
        billing_address: dict | None = None,
        currency: str = "NGN",
        notes: str | None = None,
    ):
        """Create a pending order from already-priced line items."""
        if not lines:
            raise ValidationError({"items": ["An order needs at least one line item"]})

        subtotal = sum(Decimal(str(line["line_total"])) for line in lines)
        if subtotal != Decimal(str(pricing["subtotal"])):
            raise ValidationError({"pricing": ["Subtotal must equal the sum of line totals"]})

        now = datetime.now(UTC)
        order = cls(
            order_number=generate_order_number(),
            customer_id=customer_id,
            pricing=OrderPricing(
                subtotal=pricing["subtotal"],
                tax=pricing["tax"],
                shipping=pricing["shipping"],
                total=pricing["total"],
            ),
            currency=currency,
            shipping_address=Address(**shipping_address),
            billing_address=Address(**(billing_address or shipping_address)),
            payment_method=payment_method,
            notes=notes,
            created_at=now,
            updated_at=now,
        )
        for line in lines:
            order.add_items(
                OrderItem(
                    product_id=line["product_id"],
                    title=line["title"],
                    unit_price=line["unit_price"],
                    quantity=line["quantity"],
                    line_total=line["line_total"],
                )
            )

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order.order_number,
                customer_id=str(customer_id),
                items=json.dumps(lines),
                subtotal=pricing["subtotal"],
                tax=pricing["tax"],
                shipping=pricing["shipping"],
                total=pricing["total"],
                currency=currency,
                payment_method=payment_method,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def reserved_quantities(self) -> list[tuple[str, int]]:
        """(product_id, quantity) for every line, as reserved at placement."""
        return [(str(item.product_id), item.quantity) for item in self.items]

    @property
    def is_cancellable(self) -> bool:
        return OrderStatus.CANCELLED in _VALID_TRANSITIONS[OrderStatus(self.status)]

    # -------------------------------------------------------------------
    # State transitions
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status: OrderStatus) -> None:
        current = OrderStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise InvalidTransition("Order", current.value, target_status.value)

    def change_status(
        self,
        new_status: OrderStatus,
        tracking_number: str | None = None,
        notes: str | None = None,
    ) -> None:
        """Move to ``new_status``, or refresh tracking/notes when already there.

        Shipped/delivered timestamps are only set the first time the status
        is reached. Cancellation goes through ``cancel``.
        """
        if new_status == OrderStatus.CANCELLED:
            raise InvalidTransition("Order", self.status, new_status.value, reason="Use cancel() to cancel an order")

        current = OrderStatus(self.status)
        if new_status != current:
            self._assert_can_transition(new_status)

        now = datetime.now(UTC)
        if new_status == OrderStatus.SHIPPED and self.shipped_at is None:
            self.shipped_at = now
        if new_status == OrderStatus.DELIVERED and self.delivered_at is None:
            self.delivered_at = now
        if tracking_number:
            self.tracking_number = tracking_number
        if notes:
            self.notes = notes
        self.updated_at = now

        if new_status != current:
            self.status = new_status.value
            self.raise_(
                OrderStatusChanged(
                    order_id=str(self.id),
                    previous_status=current.value,
                    new_status=new_status.value,
                    tracking_number=self.tracking_number,
                    changed_at=now,
                )
            )

    def mark_processing(self) -> None:
        """Payment confirmed: move a pending order to processing."""
        current = OrderStatus(self.status)
        if current != OrderStatus.PENDING:
            raise InvalidTransition("Order", current.value, OrderStatus.PROCESSING.value)
        self.change_status(OrderStatus.PROCESSING)

    def cancel(self, reason: str | None, cancelled_by: str) -> None:
        current = OrderStatus(self.status)
        self._assert_can_transition(OrderStatus.CANCELLED)

        now = datetime.now(UTC)
        self.status = OrderStatus.CANCELLED.value
        self.cancellation_reason = reason or DEFAULT_CANCELLATION_REASON
        if self.cancelled_at is None:
            self.cancelled_at = now
        self.updated_at = now
        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                previous_status=current.value,
                reason=self.cancellation_reason,
                cancelled_by=str(cancelled_by),
                cancelled_at=now,
            )
        )
