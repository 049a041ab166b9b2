"""Payment aggregate (CQRS) — one attempt to collect funds for an order.

A failed payment is terminal and stays on record; a new attempt for the
same order is a new Payment. Refunds accumulate against completed payments
and can never exceed the amount collected.

State Machine:
    PENDING → PROCESSING → COMPLETED
    PENDING → COMPLETED
    PENDING | PROCESSING → FAILED
    COMPLETED → PARTIALLY_REFUNDED → REFUNDED
    COMPLETED → REFUNDED
"""

import json
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum
from uuid import uuid4

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, String, Text, ValueObject

from storefront.domain import storefront
from storefront.errors import InvalidTransition
from storefront.order.order import PaymentMethodType
from storefront.payment.events import PaymentCompleted, PaymentFailed, PaymentInitiated, PaymentRefunded


class PaymentStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    PARTIALLY_REFUNDED = "partially_refunded"
    REFUNDED = "refunded"


class PaymentErrorCode(Enum):
    VERIFICATION_FAILED = "VERIFICATION_FAILED"
    UNDERPAID = "UNDERPAID"


_VALID_TRANSITIONS = {
    PaymentStatus.PENDING: {PaymentStatus.PROCESSING, PaymentStatus.COMPLETED, PaymentStatus.FAILED},
    PaymentStatus.PROCESSING: {PaymentStatus.COMPLETED, PaymentStatus.FAILED},
    PaymentStatus.COMPLETED: {PaymentStatus.PARTIALLY_REFUNDED, PaymentStatus.REFUNDED},
    PaymentStatus.PARTIALLY_REFUNDED: {PaymentStatus.PARTIALLY_REFUNDED, PaymentStatus.REFUNDED},
    PaymentStatus.FAILED: set(),  # Terminal
    PaymentStatus.REFUNDED: set(),  # Terminal
}

AWAITING_CONFIRMATION = {PaymentStatus.PENDING.value, PaymentStatus.PROCESSING.value}
REFUNDABLE = {PaymentStatus.COMPLETED.value, PaymentStatus.PARTIALLY_REFUNDED.value}


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@storefront.value_object(part_of="Payment")
class PaymentFees:
    gateway = Float(default=0.0)
    processing = Float(default=0.0)
    total = Float(default=0.0)

    @classmethod
    def of(cls, gateway: float | None = None, processing: float | None = None) -> "PaymentFees":
        gateway = gateway or 0.0
        processing = processing or 0.0
        total = float(Decimal(str(gateway)) + Decimal(str(processing)))
        return cls(gateway=gateway, processing=processing, total=total)


@storefront.value_object(part_of="Payment")
class PaymentError:
    code = String(max_length=50)
    message = String(max_length=500)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@storefront.entity(part_of="Payment")
class Refund:
    amount = Float(required=True)
    reason = String(required=True, max_length=500)
    processed_by = String(required=True, max_length=255)
    refunded_at = DateTime(required=True)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@storefront.aggregate
class Payment:
    order_id = Identifier(required=True)
    order_number = String(max_length=50)
    customer_id = Identifier(required=True)
    amount = Float(required=True)
    currency = String(max_length=3, default="NGN")
    method = String(choices=PaymentMethodType, required=True)
    gateway = String(required=True, max_length=50)
    gateway_reference = String(required=True, max_length=255)
    gateway_transaction_id = String(max_length=255)
    status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    refunds = HasMany(Refund)
    total_refunded = Float(default=0.0)
    fees = ValueObject(PaymentFees)
    error = ValueObject(PaymentError)
    metadata = Text()  # JSON: raw gateway confirmation data
    initiated_at = DateTime()
    completed_at = DateTime()
    failed_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def initiate(
        cls,
        payment_id: str,
        order_id: str,
        order_number: str,
        customer_id: str,
        amount: float,
        currency: str,
        method: str,
        gateway: str,
        gateway_reference: str,
        status: str = PaymentStatus.PENDING.value,
    ):
        if amount is None or amount <= 0:
            raise ValidationError({"amount": ["Payment amount must be positive"]})
        if status not in AWAITING_CONFIRMATION:
            raise ValidationError({"status": [f"A new payment cannot start as {status}"]})

        now = datetime.now(UTC)
        payment = cls(
            id=payment_id,
            order_id=order_id,
            order_number=order_number,
            customer_id=customer_id,
            amount=amount,
            currency=currency,
            method=method,
            gateway=gateway,
            gateway_reference=gateway_reference,
            status=status,
            fees=PaymentFees.of(),
            initiated_at=now,
            updated_at=now,
        )
        payment.raise_(
            PaymentInitiated(
                payment_id=str(payment.id),
                order_id=str(order_id),
                customer_id=str(customer_id),
                amount=amount,
                currency=currency,
                method=method,
                gateway=gateway,
                gateway_reference=gateway_reference,
                status=status,
                initiated_at=now,
            )
        )
        return payment

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def is_awaiting_confirmation(self) -> bool:
        return self.status in AWAITING_CONFIRMATION

    @property
    def is_active(self) -> bool:
        """Anything but a failed attempt blocks a new payment for the order."""
        return self.status != PaymentStatus.FAILED.value

    # -------------------------------------------------------------------
    # State transitions
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status: PaymentStatus) -> None:
        current = PaymentStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise InvalidTransition("Payment", current.value, target_status.value)

    def mark_completed(
        self,
        transaction_id: str | None = None,
        metadata: dict | None = None,
        gateway_fee: float | None = None,
    ) -> None:
        self._assert_can_transition(PaymentStatus.COMPLETED)
        now = datetime.now(UTC)
        self.status = PaymentStatus.COMPLETED.value
        if transaction_id:
            self.gateway_transaction_id = transaction_id
        self.metadata = json.dumps(metadata or {}, default=str)
        self.fees = PaymentFees.of(gateway=gateway_fee)
        self.completed_at = now
        self.updated_at = now
        self.raise_(
            PaymentCompleted(
                payment_id=str(self.id),
                order_id=str(self.order_id),
                amount=self.amount,
                gateway_transaction_id=self.gateway_transaction_id,
                completed_at=now,
            )
        )

    def mark_failed(self, code: str, message: str) -> None:
        self._assert_can_transition(PaymentStatus.FAILED)
        now = datetime.now(UTC)
        self.status = PaymentStatus.FAILED.value
        self.error = PaymentError(code=code, message=message)
        self.failed_at = now
        self.updated_at = now
        self.raise_(
            PaymentFailed(
                payment_id=str(self.id),
                order_id=str(self.order_id),
                code=code,
                message=message,
                failed_at=now,
            )
        )

    def add_refund(self, amount: float, reason: str, processed_by: str) -> str:
        """Record a refund and return its id."""
        if self.status not in REFUNDABLE:
            raise InvalidTransition("Payment", self.status, reason="Only completed payments can be refunded")
        if amount is None or amount <= 0:
            raise ValidationError({"amount": ["Refund amount must be positive"]})

        new_total = Decimal(str(self.total_refunded or 0.0)) + Decimal(str(amount))
        if new_total > Decimal(str(self.amount)):
            raise ValidationError({"amount": [f"Refund would exceed payment amount of {self.amount}"]})

        target = PaymentStatus.REFUNDED if new_total >= Decimal(str(self.amount)) else PaymentStatus.PARTIALLY_REFUNDED
        self._assert_can_transition(target)

        now = datetime.now(UTC)
        refund_id = str(uuid4())
        self.add_refunds(
            Refund(
                id=refund_id,
                amount=amount,
                reason=reason,
                processed_by=str(processed_by),
                refunded_at=now,
            )
        )
        self.total_refunded = float(new_total)
        self.status = target.value
        self.updated_at = now
        self.raise_(
            PaymentRefunded(
                payment_id=str(self.id),
                order_id=str(self.order_id),
                refund_id=refund_id,
                amount=amount,
                total_refunded=self.total_refunded,
                status=self.status,
                refunded_at=now,
            )
        )
        return refund_id
