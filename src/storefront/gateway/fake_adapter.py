"""Configurable fake payment gateway for development and testing.

Simulates a provider without external calls. Verification outcomes and the
webhook secret can be configured at runtime, and every call is recorded.
"""

import hashlib
import hmac
import json
from uuid import uuid4

from storefront.errors import GatewayUnavailable
from storefront.gateway.port import (
    InitiationResult,
    PaymentGateway,
    PaymentRequest,
    VerificationResult,
    WebhookEvent,
    parse_amount,
)


class FakeGateway(PaymentGateway):
    signature_header = "x-fake-signature"

    def __init__(self, name: str = "fake", webhook_secret: str = "test-secret") -> None:
        self.name = name
        self.webhook_secret = webhook_secret
        self.should_verify: bool = True
        self.confirmed_amount: float | None = None
        self.unavailable: bool = False
        self.failure_message: str = "Payment verification failed"
        self.gateway_fee: float | None = None
        self.initial_status: str = "pending"
        self.calls: list[dict] = []
        self._amounts: dict[str, float] = {}

    def configure(
        self,
        should_verify: bool = True,
        confirmed_amount: float | None = None,
        unavailable: bool = False,
        failure_message: str = "Payment verification failed",
        gateway_fee: float | None = None,
    ) -> None:
        """Configure verification behavior. ``confirmed_amount=None`` echoes the charged amount."""
        self.should_verify = should_verify
        self.confirmed_amount = confirmed_amount
        self.unavailable = unavailable
        self.failure_message = failure_message
        self.gateway_fee = gateway_fee

    def initiate(self, request: PaymentRequest) -> InitiationResult:
        self.calls.append({"method": "initiate", "payment_id": request.payment_id, "amount": request.amount})
        reference = f"fake-{request.order_id}-{uuid4().hex[:8]}"
        self._amounts[reference] = request.amount
        return InitiationResult(
            reference=reference,
            status=self.initial_status,
            payload={"fake": {"reference": reference, "amount": request.amount}},
        )

    def verify(self, reference: str) -> VerificationResult:
        self.calls.append({"method": "verify", "reference": reference})
        if self.unavailable:
            raise GatewayUnavailable(self.name, "configured unavailable")
        if not self.should_verify:
            return VerificationResult(verified=False, message=self.failure_message)

        amount = self.confirmed_amount
        if amount is None:
            amount = self._amounts.get(reference, 0.0)
        return VerificationResult(
            verified=True,
            confirmed_amount=amount,
            transaction_id=f"fake_txn_{uuid4().hex[:12]}",
            metadata={"reference": reference, "amount": amount},
            gateway_fee=self.gateway_fee,
        )

    def sign(self, payload: bytes) -> str:
        return hmac.new(self.webhook_secret.encode(), payload, hashlib.sha256).hexdigest()

    def verify_webhook_signature(self, payload: bytes, signature: str | None) -> bool:
        self.calls.append({"method": "verify_webhook_signature"})
        if not signature:
            return False
        return hmac.compare_digest(self.sign(payload), signature)

    def parse_webhook(self, payload: bytes) -> WebhookEvent:
        self.calls.append({"method": "parse_webhook"})
        body = json.loads(payload)
        if not isinstance(body, dict):
            raise ValueError("Webhook body must be an object")
        return WebhookEvent(
            event_type=str(body.get("event", "")),
            charge_succeeded=body.get("event") == "charge.succeeded",
            reference=body.get("reference"),
            amount=parse_amount(body.get("amount")),
            transaction_id=body.get("transaction_id"),
            metadata=body,
        )
