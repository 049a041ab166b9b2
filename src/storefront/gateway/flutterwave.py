"""Flutterwave adapter — inline checkout, transaction verification and webhooks.

Card payments are also routed through Flutterwave, restricted to the card
payment option.
"""

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

_PAYMENT_OPTIONS = {
    "card": "card",
    "flutterwave": "card,mobilemoney,ussd",
}


class FlutterwaveGateway(HttpGatewayMixin, PaymentGateway):
    name = "flutterwave"
    signature_header = "verif-hash"

    def __init__(self, settings: Settings | None = None, transport: httpx.BaseTransport | None = None) -> None:
        self.settings = settings or get_settings()
        self.base_url = self.settings.flutterwave_base_url
        self.secret_key = self.settings.flutterwave_secret_key
        self.timeout = self.settings.gateway_timeout_seconds
        self.transport = transport

    def initiate(self, request: PaymentRequest) -> InitiationResult:
        reference = f"shopease-{request.order_id}-{int(time.time() * 1000)}"
        frontend = self.settings.frontend_url
        customer = request.customer
        payload = {
            "public_key": self.settings.flutterwave_public_key,
            "tx_ref": reference,
            "amount": request.amount,
            "currency": request.currency,
            "payment_options": _PAYMENT_OPTIONS.get(request.method, "card"),
            "customer": {
                "email": customer.email or "",
                "phone_number": customer.phone or "",
                "name": customer.name or "",
            },
            "customizations": {
                "title": f"{self.settings.store_name} Payment",
                "description": f"Payment for Order {request.order_number}",
                "logo": self.settings.logo_url,
            },
            "callback": f"{frontend}/payment/callback?paymentId={request.payment_id}",
            "redirect_url": f"{frontend}/payment/success?paymentId={request.payment_id}",
            "meta": {"order_id": request.order_id, "payment_id": request.payment_id},
        }
        return InitiationResult(reference=reference, status="pending", payload={"flutterwave": payload})

    def verify(self, reference: str) -> VerificationResult:
        response = self._get(f"/transactions/{reference}/verify")
        body = self._json(response)
        data = (body or {}).get("data") or {}

        if response.is_error or data.get("status") != "successful":
            logger.info(
                "flutterwave_verification_rejected",
                reference=reference,
                status_code=response.status_code,
                status=data.get("status"),
            )
            return VerificationResult(verified=False, message=VERIFICATION_FAILED_MESSAGE, metadata=data)

        try:
            amount = parse_amount(data.get("amount"))
            fee = parse_amount(data.get("app_fee"))
        except ValueError as e:
            logger.warning("flutterwave_malformed_verification", reference=reference, error=str(e))
            raise GatewayUnavailable(self.name, str(e)) from e

        return VerificationResult(
            verified=True,
            confirmed_amount=amount or 0.0,
            transaction_id=str(data["id"]) if data.get("id") is not None else None,
            metadata={"flutterwave_data": data, "amount": data.get("amount"), "currency": data.get("currency")},
            gateway_fee=fee,
        )

    def verify_webhook_signature(self, payload: bytes, signature: str | None) -> bool:
        secret_hash = self.settings.flutterwave_secret_hash
        if not secret_hash or not signature:
            return False
        return hmac.compare_digest(signature, secret_hash)

    def parse_webhook(self, payload: bytes) -> WebhookEvent:
        body = json.loads(payload)
        data = body.get("data") if isinstance(body, dict) else None
        if not isinstance(data, dict):
            raise ValueError("Flutterwave webhook has no data object")

        return WebhookEvent(
            event_type=str(body.get("event") or "charge.completed"),
            charge_succeeded=data.get("status") == "successful",
            reference=data.get("tx_ref"),
            amount=parse_amount(data.get("amount")),
            transaction_id=str(data["id"]) if data.get("id") is not None else None,
            metadata={"flutterwave_data": data, "amount": data.get("amount"), "currency": data.get("currency")},
        )
