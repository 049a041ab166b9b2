"""Payment gateway port (abstract interface).

Each provider integration implements this contract; the payment coordinator
only ever talks to a ``PaymentGateway`` looked up by name, so adding a
provider means adding an adapter, not another branch in the coordinator.
"""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field


def parse_amount(value, scale: int = 1) -> float | None:
    """Read a provider amount field. Raises ValueError for anything but a finite number."""
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int | float | str):
        raise ValueError(f"Amount must be a number, got {type(value).__name__}")
    amount = float(value)
    if not math.isfinite(amount):
        raise ValueError(f"Amount must be finite, got {value!r}")
    return amount / scale


@dataclass(frozen=True)
class CustomerInfo:
    user_id: str
    email: str | None = None
    name: str | None = None
    phone: str | None = None


@dataclass(frozen=True)
class PaymentRequest:
    """Generic "charge this amount for this order" intent."""

    payment_id: str
    order_id: str
    order_number: str
    amount: float
    currency: str
    method: str
    customer: CustomerInfo


@dataclass(frozen=True)
class InitiationResult:
    """Correlation reference plus the provider payload handed to the client."""

    reference: str
    status: str
    payload: dict = field(default_factory=dict)


@dataclass(frozen=True)
class VerificationResult:
    verified: bool
    confirmed_amount: float | None = None
    transaction_id: str | None = None
    metadata: dict = field(default_factory=dict)
    message: str | None = None
    gateway_fee: float | None = None


@dataclass(frozen=True)
class WebhookEvent:
    """A provider callback normalized to what reconciliation needs."""

    event_type: str
    charge_succeeded: bool
    reference: str | None = None
    amount: float | None = None
    transaction_id: str | None = None
    metadata: dict = field(default_factory=dict)


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    name: str = ""
    signature_header: str = ""

    @abstractmethod
    def initiate(self, request: PaymentRequest) -> InitiationResult:
        """Build the provider-specific initiation payload for a payment."""
        ...

    @abstractmethod
    def verify(self, reference: str) -> VerificationResult:
        """Ask the provider whether the payment with ``reference`` succeeded.

        Raises GatewayUnavailable when the provider cannot be reached within
        the configured timeout. A definitive "no" is a result, not an error.
        """
        ...

    @abstractmethod
    def verify_webhook_signature(self, payload: bytes, signature: str | None) -> bool:
        """Verify that a webhook payload is authentically from the provider."""
        ...

    @abstractmethod
    def parse_webhook(self, payload: bytes) -> WebhookEvent:
        """Normalize a verified webhook body. Raises ValueError when malformed."""
        ...
