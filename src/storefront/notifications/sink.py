"""Notification sink — order-created notifications.

Delivery is best-effort. Sinks raise ``NotificationFailed`` when delivery
fails and the ledger logs and swallows it; a notification problem never
undoes or fails an order.
"""

from abc import ABC, abstractmethod

import structlog

from storefront.config import get_settings
from storefront.context import RequestContext
from storefront.errors import NotificationFailed
from storefront.notifications.channel import get_email_channel
from storefront.notifications.channel.email_port import EmailPort
from storefront.notifications.templates import NewOrderTemplate

logger = structlog.get_logger(__name__)


class NotificationSink(ABC):
    @abstractmethod
    def notify_order_created(self, order, user: RequestContext) -> None: ...


class EmailNotificationSink(NotificationSink):
    """Emails a summary of every new order to the store admin."""

    def __init__(self, channel: EmailPort | None = None, recipient: str | None = None) -> None:
        self._channel = channel
        self._recipient = recipient

    @property
    def channel(self) -> EmailPort:
        return self._channel or get_email_channel()

    @property
    def recipient(self) -> str:
        return self._recipient or get_settings().admin_notification_email

    def notify_order_created(self, order, user: RequestContext) -> None:
        rendered = NewOrderTemplate.render(_order_context(order, user))
        receipt = self.channel.send(to=self.recipient, subject=rendered["subject"], body=rendered["body"])
        if not receipt.delivered:
            raise NotificationFailed(receipt.error or "Email delivery failed")

        logger.info(
            "order_notification_sent",
            order_id=str(order.id),
            message_id=receipt.message_id,
        )


def _order_context(order, user: RequestContext) -> dict:
    address = order.shipping_address
    return {
        "order_number": order.order_number,
        "currency": order.currency,
        "customer_name": user.name,
        "customer_email": user.email,
        "items": [
            {
                "title": item.title,
                "quantity": item.quantity,
                "unit_price": item.unit_price,
                "line_total": item.line_total,
            }
            for item in order.items
        ],
        "subtotal": order.pricing.subtotal,
        "tax": order.pricing.tax,
        "shipping": order.pricing.shipping,
        "total": order.pricing.total,
        "payment_method": order.payment_method,
        "shipping_address": {
            "address": address.address,
            "city": address.city,
            "state": address.state,
        }
        if address
        else {},
    }
