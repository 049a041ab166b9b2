"""Domain events for the Payment aggregate."""

from protean.fields import DateTime, Float, Identifier, String

from storefront.domain import storefront


@storefront.event(part_of="Payment")
class PaymentInitiated:
    """A payment attempt was created and handed to a gateway."""

    __version__ = 1

    payment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    amount = Float(required=True)
    currency = String(required=True)
    method = String(required=True)
    gateway = String(required=True)
    gateway_reference = String(required=True)
    status = String(required=True)
    initiated_at = DateTime(required=True)


@storefront.event(part_of="Payment")
class PaymentCompleted:
    """The gateway confirmed the funds were collected."""

    __version__ = 1

    payment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    amount = Float(required=True)
    gateway_transaction_id = String()
    completed_at = DateTime(required=True)


@storefront.event(part_of="Payment")
class PaymentFailed:
    """The gateway definitively reported the payment as not collected."""

    __version__ = 1

    payment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    code = String(required=True)
    message = String(required=True)
    failed_at = DateTime(required=True)


@storefront.event(part_of="Payment")
class PaymentRefunded:
    """Part or all of a completed payment was refunded."""

    __version__ = 1

    payment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    refund_id = Identifier(required=True)
    amount = Float(required=True)
    total_refunded = Float(required=True)
    status = String(required=True)
    refunded_at = DateTime(required=True)
