"""Order ledger — application service owning order creation and status changes.

The ledger is the only component that mutates catalog stock: it decrements on
placement and restores on cancellation. Every call takes the caller's
``RequestContext`` explicitly.

Placement is all-or-nothing. Each line's decrement is an atomic conditional
update on the catalog; if a later line cannot be reserved, or the order
cannot be persisted, every decrement already applied is restored before the
error propagates.

Mutations of an existing order run under ``order_locks`` so that
cancellation, admin transitions and payment confirmation for the same order
never interleave.
"""

import json
from collections.abc import Iterable
from dataclasses import dataclass, field

from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from storefront.cart import get_cart_store
from storefront.cart.port import CartStore
from storefront.catalogue import get_catalog
from storefront.catalogue.port import CatalogStore
from storefront.config import Settings, get_settings
from storefront.context import RequestContext
from storefront.domain import logger
from storefront.errors import EmptyCart, InsufficientStock, InvalidTransition, NotFound, ProductUnavailable
from storefront.notifications import get_notification_sink
from storefront.notifications.sink import NotificationSink
from storefront.order.cancellation import CancelOrder
from storefront.order.order import Address, Order, OrderStatus, PaymentMethodType
from storefront.order.placement import PlaceOrder
from storefront.order.pricing import (
    PricedLine,
    PricedOrder,
    PricingBreakdown,
    PricingPolicy,
    RequestedItem,
    normalize_items,
    price_items,
)
from storefront.order.status import ChangeOrderStatus, MarkOrderProcessing
from storefront.utils.locks import order_locks

ADMIN_CANCELLATION_REASON = "Cancelled by admin"


@dataclass(frozen=True)
class CartQuote:
    """Priced view of a cart; unavailable lines are listed, not priced."""

    lines: tuple[PricedLine, ...]
    pricing: PricingBreakdown
    unavailable: list[dict] = field(default_factory=list)


class OrderLedger:
    def __init__(
        self,
        catalog: CatalogStore | None = None,
        carts: CartStore | None = None,
        notifier: NotificationSink | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.catalog = catalog or get_catalog()
        self.carts = carts or get_cart_store()
        self.notifier = notifier or get_notification_sink()
        self.settings = settings or get_settings()
        self.policy = PricingPolicy.from_settings(self.settings)

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def get_order(self, ctx: RequestContext, order_id: str) -> Order:
        order = self.find_order(order_id)
        ctx.require_owner_or_admin(order.customer_id, "order")
        return order

    def quote_cart(self, ctx: RequestContext) -> CartQuote:
        """Price the caller's cart without reserving anything."""
        requested = normalize_items(
            RequestedItem(product_id=line.product_id, quantity=line.quantity)
            for line in self.carts.read_cart(ctx.user_id)
        )

        products = {}
        available = []
        unavailable = []
        for item in requested:
            product = self.catalog.get_active_product(item.product_id)
            if product is None:
                unavailable.append({"product_id": item.product_id, "reason": ProductUnavailable.kind})
            elif not product.has_stock_for(item.quantity):
                unavailable.append(
                    {
                        "product_id": item.product_id,
                        "reason": InsufficientStock.kind,
                        "available": product.quantity,
                    }
                )
            else:
                products[item.product_id] = product
                available.append(item)

        if not available:
            return CartQuote(lines=(), pricing=PricingBreakdown.zero(), unavailable=unavailable)

        priced = price_items(available, products, self.policy)
        return CartQuote(lines=priced.lines, pricing=priced.pricing, unavailable=unavailable)

    # -------------------------------------------------------------------
    # Placement
    # -------------------------------------------------------------------
    def create_order(
        self,
        ctx: RequestContext,
        shipping_address: dict,
        payment_method: str,
        items: Iterable[RequestedItem] | None = None,
        billing_address: dict | None = None,
        notes: str | None = None,
    ) -> Order:
        """Price, reserve and persist a new pending order.

        Items default to the caller's cart. Raises EmptyCart,
        ProductUnavailable, InsufficientStock or ValidationError; on any
        failure catalog stock is left exactly as it was.
        """
        _validate_payment_method(payment_method)
        Address(**shipping_address)
        if billing_address:
            Address(**billing_address)

        requested = self._requested_items(ctx, items)
        products = {item.product_id: self.catalog.get_active_product(item.product_id) for item in requested}
        priced = price_items(requested, products, self.policy)

        reserved = self._reserve_stock(priced)
        try:
            order_id = current_domain.process(
                PlaceOrder(
                    customer_id=ctx.user_id,
                    lines=json.dumps([line.to_dict() for line in priced.lines]),
                    pricing=json.dumps(priced.pricing.to_dict()),
                    shipping_address=json.dumps(shipping_address),
                    billing_address=json.dumps(billing_address) if billing_address else None,
                    payment_method=payment_method,
                    currency=self.settings.currency,
                    notes=notes,
                ),
                asynchronous=False,
            )
        except Exception:
            self._release_stock(reserved)
            raise

        order = self.find_order(order_id)
        logger.info(
            "order_created",
            order_id=order_id,
            order_number=order.order_number,
            customer_id=ctx.user_id,
            total=order.pricing.total,
        )

        self._clear_cart(ctx)
        self._notify_order_created(order, ctx)
        return order

    def _requested_items(self, ctx: RequestContext, items: Iterable[RequestedItem] | None) -> list[RequestedItem]:
        if items is None:
            items = [
                RequestedItem(product_id=line.product_id, quantity=line.quantity)
                for line in self.carts.read_cart(ctx.user_id)
            ]
        requested = normalize_items(items)
        if not requested:
            raise EmptyCart(ctx.user_id)
        return requested

    def _reserve_stock(self, priced: PricedOrder) -> list[tuple[str, int]]:
        reserved: list[tuple[str, int]] = []
        for line in priced.lines:
            if self.catalog.try_decrement_stock(line.product_id, line.quantity):
                reserved.append((line.product_id, line.quantity))
                continue

            self._release_stock(reserved)
            current = self.catalog.get_active_product(line.product_id)
            if current is None:
                raise ProductUnavailable(line.product_id)
            raise InsufficientStock(
                line.product_id,
                requested=line.quantity,
                available=current.quantity,
                title=line.title,
            )
        return reserved

    def _release_stock(self, reserved: Iterable[tuple[str, int]]) -> None:
        for product_id, quantity in reserved:
            self.catalog.restore_stock(product_id, quantity)

    def _clear_cart(self, ctx: RequestContext) -> None:
        try:
            self.carts.clear_cart(ctx.user_id)
        except Exception as e:
            logger.error("cart_clear_failed", user_id=ctx.user_id, error=str(e))

    def _notify_order_created(self, order: Order, ctx: RequestContext) -> None:
        try:
            self.notifier.notify_order_created(order, ctx)
        except Exception as e:
            logger.error("order_notification_failed", order_id=str(order.id), error=str(e))

    # -------------------------------------------------------------------
    # Status changes
    # -------------------------------------------------------------------
    def cancel_order(self, ctx: RequestContext, order_id: str, reason: str | None = None) -> Order:
        """Owner cancellation of a pending or processing order."""
        with order_locks.hold(order_id):
            order = self.find_order(order_id)
            ctx.require_owner(order.customer_id, "order")
            return self._cancel(order, reason, cancelled_by=ctx.user_id)

    def transition_status(
        self,
        ctx: RequestContext,
        order_id: str,
        new_status: str,
        tracking_number: str | None = None,
        notes: str | None = None,
    ) -> Order:
        """Administrative status change. Cancelling here also restores stock."""
        ctx.require_admin()
        try:
            target = OrderStatus(new_status)
        except ValueError:
            raise ValidationError({"status": [f"Unknown order status: {new_status}"]}) from None

        with order_locks.hold(order_id):
            order = self.find_order(order_id)
            if target == OrderStatus.CANCELLED:
                return self._cancel(order, notes or ADMIN_CANCELLATION_REASON, cancelled_by=ctx.user_id)

            current_domain.process(
                ChangeOrderStatus(
                    order_id=order_id,
                    status=target.value,
                    tracking_number=tracking_number,
                    notes=notes,
                ),
                asynchronous=False,
            )
            logger.info("order_status_changed", order_id=order_id, previous=order.status, status=target.value)
            return self.find_order(order_id)

    def confirm_payment(self, order_id: str, payment_id: str) -> bool:
        """Advance a pending order to processing once its payment completed.

        Returns False, without raising, when the order has already moved on
        (a redelivered confirmation, or an order cancelled while the payment
        was in flight).
        """
        with order_locks.hold(order_id):
            order = self.find_order(order_id)
            if order.status != OrderStatus.PENDING.value:
                logger.warning(
                    "order_not_advanced",
                    order_id=order_id,
                    payment_id=payment_id,
                    status=order.status,
                )
                return False

            current_domain.process(
                MarkOrderProcessing(order_id=order_id, payment_id=payment_id),
                asynchronous=False,
            )
            logger.info("order_payment_confirmed", order_id=order_id, payment_id=payment_id)
            return True

    def _cancel(self, order: Order, reason: str | None, cancelled_by: str) -> Order:
        if not order.is_cancellable:
            raise InvalidTransition("Order", order.status, OrderStatus.CANCELLED.value)

        current_domain.process(
            CancelOrder(order_id=str(order.id), reason=reason, cancelled_by=cancelled_by),
            asynchronous=False,
        )
        self._release_stock(order.reserved_quantities)
        logger.info("order_cancelled", order_id=str(order.id), cancelled_by=cancelled_by)
        return self.find_order(order.id)

    def find_order(self, order_id) -> Order:
        """Load an order without any ownership check."""
        try:
            return current_domain.repository_for(Order).get(str(order_id))
        except ObjectNotFoundError:
            raise NotFound("Order", str(order_id)) from None


def _validate_payment_method(payment_method: str) -> None:
    allowed = [m.value for m in PaymentMethodType]
    if payment_method not in allowed:
        raise ValidationError({"payment_method": [f"Payment method must be one of {', '.join(allowed)}"]})
