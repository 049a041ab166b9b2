"""Paystack adapter — amounts travel in kobo (1/100 of the currency unit)."""

import hashlib
import hmac
import json
import time

import httpx
import structlog

from storefront.config import Settings, get_settings
from storefront.errors import GatewayUnavailable
from storefront.gateway.client import VERIFICATION_FAILED_MESSAGE, HttpGatewayMixin
from storefront.gateway.port import (
    InitiationResult,
    PaymentGateway,
    PaymentRequest,
    VerificationResult,
    WebhookEvent,
    parse_amount,
)

logger = structlog.get_logger(__name__)


def _from_kobo(value) -> float | None:
    return parse_amount(value, scale=100)


class PaystackGateway(HttpGatewayMixin, PaymentGateway):
    name = "paystack"
    signature_header = "x-paystack-signature"

    def __init__(self, settings: Settings | None = None, transport: httpx.BaseTransport | None = None) -> None:
        self.settings = settings or get_settings()
        self.base_url = self.settings.paystack_base_url
        self.secret_key = self.settings.paystack_secret_key
        self.timeout = self.settings.gateway_timeout_seconds
        self.transport = transport

    def initiate(self, request: PaymentRequest) -> InitiationResult:
        reference = f"shopease-{request.order_id}-{int(time.time() * 1000)}"
        payload = {
            "key": self.settings.paystack_public_key,
            "email": request.customer.email or "",
            "amount": int(round(request.amount * 100)),
            "currency": request.currency,
            "ref": reference,
            "callback_url": f"{self.settings.frontend_url}/payment/callback?paymentId={request.payment_id}",
            "metadata": {"order_number": request.order_number, "payment_id": request.payment_id},
        }
        return InitiationResult(reference=reference, status="pending", payload={"paystack": payload})

    def verify(self, reference: str) -> VerificationResult:
        response = self._get(f"/transaction/verify/{reference}")
        body = self._json(response) or {}
        data = body.get("data") if isinstance(body.get("data"), dict) else {}

        if response.is_error or body.get("status") is not True or data.get("status") != "success":
            logger.info(
                "paystack_verification_rejected",
                reference=reference,
                status_code=response.status_code,
                status=data.get("status"),
            )
            return VerificationResult(verified=False, message=VERIFICATION_FAILED_MESSAGE, metadata=data)

        try:
            amount = _from_kobo(data.get("amount"))
            fee = _from_kobo(data.get("fees"))
        except ValueError as e:
            logger.warning("paystack_malformed_verification", reference=reference, error=str(e))
            raise GatewayUnavailable(self.name, str(e)) from e

        return VerificationResult(
            verified=True,
            confirmed_amount=amount or 0.0,
            transaction_id=str(data["id"]) if data.get("id") is not None else None,
            metadata={"paystack_data": data, "amount": amount, "currency": data.get("currency")},
            gateway_fee=fee,
        )

    def verify_webhook_signature(self, payload: bytes, signature: str | None) -> bool:
        if not self.settings.paystack_secret_key or not signature:
            return False
        expected = hmac.new(self.settings.paystack_secret_key.encode(), payload, hashlib.sha512).hexdigest()
        return hmac.compare_digest(expected, signature)

    def parse_webhook(self, payload: bytes) -> WebhookEvent:
        body = json.loads(payload)
        if not isinstance(body, dict) or not isinstance(body.get("data"), dict):
            raise ValueError("Paystack webhook has no data object")

        data = body["data"]
        event_type = str(body.get("event") or "")
        amount = _from_kobo(data.get("amount"))
        return WebhookEvent(
            event_type=event_type,
            charge_succeeded=event_type == "charge.success",
            reference=data.get("reference"),
            amount=amount,
            transaction_id=str(data["id"]) if data.get("id") is not None else None,
            metadata={"paystack_data": data, "amount": amount, "currency": data.get("currency")},
        )
