"""Manual bank transfer — instructions only, confirmed by staff out of band."""

import secrets
import time

from storefront.config import Settings, get_settings
from storefront.gateway.port import (
    InitiationResult,
    PaymentGateway,
    PaymentRequest,
    VerificationResult,
    WebhookEvent,
)

MANUAL_VERIFICATION_MESSAGE = "Bank transfer payments require manual verification"


class ManualTransferGateway(PaymentGateway):
    name = "manual"
    signature_header = ""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()

    def initiate(self, request: PaymentRequest) -> InitiationResult:
        reference = f"TXN-{int(time.time() * 1000)}-{secrets.token_hex(3).upper()}"
        payload = {
            "bank_name": self.settings.bank_name,
            "account_number": self.settings.bank_account_number,
            "account_name": self.settings.bank_account_name,
            "reference": reference,
            "amount": request.amount,
            "currency": request.currency,
            "instructions": "Please include the reference number in your transfer description",
        }
        # No provider round trip: the payment waits in processing for staff.
        return InitiationResult(reference=reference, status="processing", payload={"bank_transfer": payload})

    def verify(self, reference: str) -> VerificationResult:
        return VerificationResult(verified=False, message=MANUAL_VERIFICATION_MESSAGE)

    def verify_webhook_signature(self, payload: bytes, signature: str | None) -> bool:
        return False

    def parse_webhook(self, payload: bytes) -> WebhookEvent:
        raise ValueError("Bank transfers do not send webhooks")
