"""Payment coordinator — application service owning payment attempts.

Picks the gateway for the customer's payment method, creates the Payment,
and reconciles provider confirmations back into payment and order state,
either through a direct verification call or a webhook delivery.

Concurrency:
    Creating a payment (duplicate check + create) and applying a
    confirmation (status check + transition) both run under the order's
    lock from ``order_locks``. Provider HTTP calls run outside the lock; the
    apply step re-reads the payment under the lock and only transitions it
    if it is still awaiting confirmation, so redelivered or concurrent
    confirmations complete a payment at most once.
"""

import json
from dataclasses import dataclass, field
from decimal import Decimal
from uuid import uuid4

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from storefront.context import RequestContext
from storefront.errors import DuplicatePayment, GatewayRejected, InvalidSignature, InvalidTransition, NotFound
from storefront.gateway import gateway_for_method, get_gateway
from storefront.gateway.client import VERIFICATION_FAILED_MESSAGE
from storefront.gateway.port import CustomerInfo, PaymentRequest, WebhookEvent
from storefront.order.ledger import OrderLedger
from storefront.order.order import OrderStatus
from storefront.payment.initiation import InitiatePayment
from storefront.payment.payment import Payment, PaymentErrorCode, PaymentStatus
from storefront.payment.reconciliation import CompletePayment, FailPayment
from storefront.payment.refund import AddRefund
from storefront.utils.locks import order_locks

logger = structlog.get_logger(__name__)

UNDERPAID_MESSAGE = "Confirmed amount is less than the payment amount"


@dataclass(frozen=True)
class PaymentInitiation:
    """What the client needs to complete the payment with the provider."""

    payment: Payment
    gateway: str
    reference: str
    payload: dict = field(default_factory=dict)


@dataclass(frozen=True)
class WebhookAck:
    """Always acknowledged to the provider; ``outcome`` is for logs and tests."""

    outcome: str
    status: str = "success"


class PaymentCoordinator:
    def __init__(self, ledger: OrderLedger | None = None) -> None:
        self.ledger = ledger or OrderLedger()

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def get_payment(self, ctx: RequestContext, payment_id: str) -> Payment:
        payment = self._load(payment_id)
        ctx.require_owner_or_admin(payment.customer_id, "payment")
        return payment

    # -------------------------------------------------------------------
    # Initiation
    # -------------------------------------------------------------------
    def initiate_payment(self, ctx: RequestContext, order_id: str, method: str) -> PaymentInitiation:
        """Create a payment for a pending order and build the gateway payload.

        Raises NotFound, Forbidden, InvalidTransition (order not pending) or
        DuplicatePayment (the order already has a payment that has not failed).
        """
        gateway = gateway_for_method(method)

        with order_locks.hold(order_id):
            order = self.ledger.find_order(order_id)
            ctx.require_owner(order.customer_id, "order")
            if order.status != OrderStatus.PENDING.value:
                raise InvalidTransition("Order", order.status, reason="Order is not eligible for payment")

            existing = self._repository().find_active_for_order(order_id)
            if existing is not None:
                raise DuplicatePayment(str(order_id), str(existing.id))

            payment_id = str(uuid4())
            result = gateway.initiate(
                PaymentRequest(
                    payment_id=payment_id,
                    order_id=str(order.id),
                    order_number=order.order_number,
                    amount=order.pricing.total,
                    currency=order.currency,
                    method=method,
                    customer=CustomerInfo(user_id=ctx.user_id, email=ctx.email, name=ctx.name, phone=ctx.phone),
                )
            )
            current_domain.process(
                InitiatePayment(
                    payment_id=payment_id,
                    order_id=str(order.id),
                    order_number=order.order_number,
                    customer_id=ctx.user_id,
                    amount=order.pricing.total,
                    currency=order.currency,
                    method=method,
                    gateway=gateway.name,
                    gateway_reference=result.reference,
                    status=result.status,
                ),
                asynchronous=False,
            )

        logger.info(
            "payment_initiated",
            payment_id=payment_id,
            order_id=str(order_id),
            gateway=gateway.name,
            reference=result.reference,
        )
        return PaymentInitiation(
            payment=self._load(payment_id),
            gateway=gateway.name,
            reference=result.reference,
            payload=result.payload,
        )

    # -------------------------------------------------------------------
    # Reconciliation
    # -------------------------------------------------------------------
    def verify_payment(self, ctx: RequestContext, payment_id: str) -> Payment:
        """Ask the gateway about a payment and record the answer.

        Raises GatewayUnavailable (payment untouched, retry later) or
        GatewayRejected (payment now failed).
        """
        payment = self._load(payment_id)
        ctx.require_owner(payment.customer_id, "payment")
        if not payment.is_awaiting_confirmation:
            return self._already_reconciled(payment)

        gateway = get_gateway(payment.gateway)
        result = gateway.verify(payment.gateway_reference)

        with order_locks.hold(payment.order_id):
            payment = self._load(payment_id)
            if not payment.is_awaiting_confirmation:
                return self._already_reconciled(payment)

            failure = self._apply_confirmation(
                payment,
                verified=result.verified,
                confirmed_amount=result.confirmed_amount,
                transaction_id=result.transaction_id,
                metadata=result.metadata,
                gateway_fee=result.gateway_fee,
                failure_message=result.message,
            )

        if failure:
            raise GatewayRejected(gateway.name, failure, payment_id=str(payment_id))
        return self._load(payment_id)

    def handle_webhook(self, gateway_name: str, raw_payload: bytes, signature: str | None) -> WebhookAck:
        """Reconcile a provider callback. Safe to call repeatedly with the same event.

        Only a bad signature raises (InvalidSignature); everything after the
        signature check is acknowledged so providers do not keep retrying.
        """
        gateway = get_gateway(gateway_name)
        if not gateway.verify_webhook_signature(raw_payload, signature):
            logger.warning("webhook_signature_rejected", gateway=gateway_name)
            raise InvalidSignature(gateway_name)

        try:
            event = gateway.parse_webhook(raw_payload)
        except (ValueError, TypeError) as e:
            logger.warning("webhook_malformed", gateway=gateway_name, error=str(e))
            return WebhookAck(outcome="ignored")

        if not event.charge_succeeded or not isinstance(event.reference, str) or not event.reference:
            logger.info("webhook_ignored", gateway=gateway_name, event_type=event.event_type)
            return WebhookAck(outcome="ignored")

        try:
            return self._reconcile_webhook(gateway.name, event)
        except Exception as e:
            logger.exception(
                "webhook_processing_failed",
                gateway=gateway_name,
                reference=event.reference,
                error=str(e),
            )
            return WebhookAck(outcome="error")

    def _reconcile_webhook(self, gateway_name: str, event: WebhookEvent) -> WebhookAck:
        found = self._repository().find_by_reference(gateway_name, event.reference)
        if found is None:
            logger.warning("webhook_unknown_reference", gateway=gateway_name, reference=event.reference)
            return WebhookAck(outcome="unknown_reference")

        with order_locks.hold(found.order_id):
            payment = self._load(found.id)
            if payment.status != PaymentStatus.PENDING.value:
                logger.info(
                    "webhook_duplicate",
                    gateway=gateway_name,
                    payment_id=str(payment.id),
                    status=payment.status,
                )
                return WebhookAck(outcome="duplicate")

            failure = self._apply_confirmation(
                payment,
                verified=True,
                confirmed_amount=event.amount,
                transaction_id=event.transaction_id,
                metadata=event.metadata,
            )

        return WebhookAck(outcome="rejected" if failure else "processed")

    def _apply_confirmation(
        self,
        payment: Payment,
        verified: bool,
        confirmed_amount: float | None,
        transaction_id: str | None,
        metadata: dict,
        gateway_fee: float | None = None,
        failure_message: str | None = None,
    ) -> str | None:
        """Record a gateway verdict. Caller holds the order lock.

        Returns the failure message when the payment was marked failed.
        """
        payment_id = str(payment.id)
        if not verified:
            message = failure_message or VERIFICATION_FAILED_MESSAGE
            self._fail(payment, PaymentErrorCode.VERIFICATION_FAILED, message)
            return message

        if confirmed_amount is not None and Decimal(str(confirmed_amount)) < Decimal(str(payment.amount)):
            self._fail(payment, PaymentErrorCode.UNDERPAID, UNDERPAID_MESSAGE)
            return UNDERPAID_MESSAGE

        current_domain.process(
            CompletePayment(
                payment_id=payment_id,
                gateway_transaction_id=transaction_id,
                metadata=json.dumps(metadata or {}, default=str),
                gateway_fee=gateway_fee,
            ),
            asynchronous=False,
        )
        logger.info("payment_completed", payment_id=payment_id, order_id=str(payment.order_id))
        self.ledger.confirm_payment(str(payment.order_id), payment_id)
        return None

    def _fail(self, payment: Payment, code: PaymentErrorCode, message: str) -> None:
        current_domain.process(
            FailPayment(payment_id=str(payment.id), code=code.value, message=message),
            asynchronous=False,
        )
        logger.warning("payment_failed", payment_id=str(payment.id), code=code.value, message=message)

    def _already_reconciled(self, payment: Payment) -> Payment:
        if payment.status == PaymentStatus.FAILED.value:
            raise InvalidTransition(
                "Payment",
                payment.status,
                reason="Payment has already failed; start a new payment for the order",
            )
        # Completed earlier; make sure the order caught up.
        if payment.status == PaymentStatus.COMPLETED.value:
            order = self.ledger.find_order(payment.order_id)
            if order.status == OrderStatus.PENDING.value:
                self.ledger.confirm_payment(str(payment.order_id), str(payment.id))
        return payment

    # -------------------------------------------------------------------
    # Refunds
    # -------------------------------------------------------------------
    def add_refund(self, ctx: RequestContext, payment_id: str, amount: float, reason: str) -> Payment:
        """Record an admin refund against a completed payment."""
        ctx.require_admin()
        if not reason:
            raise ValidationError({"reason": ["Refund reason is required"]})

        payment = self._load(payment_id)
        with order_locks.hold(payment.order_id):
            refund_id = current_domain.process(
                AddRefund(payment_id=str(payment_id), amount=amount, reason=reason, processed_by=ctx.user_id),
                asynchronous=False,
            )

        logger.info("payment_refunded", payment_id=str(payment_id), refund_id=refund_id, amount=amount)
        return self._load(payment_id)

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    def _repository(self):
        return current_domain.repository_for(Payment)

    def _load(self, payment_id) -> Payment:
        try:
            return self._repository().get(str(payment_id))
        except ObjectNotFoundError:
            raise NotFound("Payment", str(payment_id)) from None
