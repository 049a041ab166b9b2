"""Integration tests for the payment endpoints via TestClient."""

import hashlib
import hmac
import json

import pytest

from storefront.config import Settings
from storefront.gateway import register_gateway
from storefront.gateway.paystack import PaystackGateway

CUSTOMER = {"X-User-Id": "user-ada", "X-User-Email": "ada@example.com"}
OTHER = {"X-User-Id": "user-bola"}
ADMIN = {"X-User-Id": "admin-1", "X-User-Role": "admin"}


def _initiate(client, order_id, method="card", headers=CUSTOMER):
    return client.post("/payments", json={"order_id": order_id, "method": method}, headers=headers)


def _paid(client, order):
    payment_id = _initiate(client, order.id).json()["payment"]["id"]
    client.post(f"/payments/{payment_id}/verify", headers=CUSTOMER)
    return payment_id


class TestInitiatePaymentAPI:
    def test_returns_201_with_gateway_payload(self, client, order):
        response = _initiate(client, order.id)

        assert response.status_code == 201
        data = response.json()
        assert data["gateway"] == "flutterwave"
        assert data["payment"]["status"] == "pending"
        assert data["payment"]["amount"] == 24000.0
        assert data["payment"]["gateway_reference"] == data["reference"]
        assert "fake" in data["payload"]

    def test_duplicate_is_409(self, client, order):
        _initiate(client, order.id)

        response = _initiate(client, order.id)

        assert response.status_code == 409
        assert response.json()["error"] == "duplicate_payment"

    def test_other_customer_is_403(self, client, order):
        assert _initiate(client, order.id, headers=OTHER).status_code == 403

    def test_missing_order_is_404(self, client):
        assert _initiate(client, "no-such-order").status_code == 404


class TestVerifyPaymentAPI:
    def test_verify_completes(self, client, order, ledger):
        payment_id = _initiate(client, order.id).json()["payment"]["id"]

        response = client.post(f"/payments/{payment_id}/verify", headers=CUSTOMER)

        assert response.status_code == 200
        assert response.json()["status"] == "completed"
        assert response.json()["completed_at"] is not None
        assert ledger.find_order(order.id).status == "processing"

    def test_rejected_is_402_and_failed(self, client, order, fake_gateway):
        payment_id = _initiate(client, order.id).json()["payment"]["id"]
        fake_gateway.configure(should_verify=False)

        response = client.post(f"/payments/{payment_id}/verify", headers=CUSTOMER)

        assert response.status_code == 402
        assert response.json()["message"] == "Payment verification failed"
        payment = client.get(f"/payments/{payment_id}", headers=CUSTOMER).json()
        assert payment["status"] == "failed"
        assert payment["error"]["code"] == "VERIFICATION_FAILED"

    def test_gateway_down_is_503(self, client, order, fake_gateway):
        payment_id = _initiate(client, order.id).json()["payment"]["id"]
        fake_gateway.configure(unavailable=True)

        response = client.post(f"/payments/{payment_id}/verify", headers=CUSTOMER)

        assert response.status_code == 503
        assert response.json()["message"] == "Payment verification service unavailable"
        assert client.get(f"/payments/{payment_id}", headers=CUSTOMER).json()["status"] == "pending"


class TestWebhookAPI:
    def test_fake_webhook_completes_payment(self, client, order, fake_gateway):
        initiation = _initiate(client, order.id).json()
        body = json.dumps(
            {"event": "charge.succeeded", "reference": initiation["reference"], "amount": 24000.0}
        ).encode()

        response = client.post(
            "/payments/webhooks/flutterwave",
            content=body,
            headers={"x-fake-signature": fake_gateway.sign(body), "Content-Type": "application/json"},
        )

        assert response.status_code == 200
        assert response.json() == {"status": "success"}
        payment = client.get(f"/payments/{initiation['payment']['id']}", headers=CUSTOMER).json()
        assert payment["status"] == "completed"

    def test_bad_signature_is_401(self, client, order):
        response = client.post(
            "/payments/webhooks/flutterwave",
            content=b'{"event": "charge.succeeded"}',
            headers={"x-fake-signature": "forged"},
        )
        assert response.status_code == 401
        assert response.json()["error"] == "invalid_signature"

    def test_unknown_reference_is_acknowledged(self, client, fake_gateway):
        body = b'{"event": "charge.succeeded", "reference": "nobody", "amount": 1}'
        response = client.post(
            "/payments/webhooks/flutterwave",
            content=body,
            headers={"x-fake-signature": fake_gateway.sign(body)},
        )
        assert response.status_code == 200

    def test_non_numeric_amount_is_acknowledged(self, client, order, fake_gateway):
        initiation = _initiate(client, order.id).json()
        body = json.dumps({"event": "charge.succeeded", "reference": initiation["reference"], "amount": [1]}).encode()

        response = client.post(
            "/payments/webhooks/flutterwave",
            content=body,
            headers={"x-fake-signature": fake_gateway.sign(body)},
        )

        assert response.status_code == 200
        assert response.json() == {"status": "success"}
        payment = client.get(f"/payments/{initiation['payment']['id']}", headers=CUSTOMER).json()
        assert payment["status"] == "pending"

    def test_paystack_webhook_with_real_signature(self, client, order):
        register_gateway(PaystackGateway(Settings(paystack_secret_key="sk_test_api")))
        initiation = _initiate(client, order.id, method="paystack").json()
        body = json.dumps(
            {"event": "charge.success", "data": {"id": 8, "reference": initiation["reference"], "amount": 2400000}}
        ).encode()
        signature = hmac.new(b"sk_test_api", body, hashlib.sha512).hexdigest()

        response = client.post(
            "/payments/webhooks/paystack",
            content=body,
            headers={"x-paystack-signature": signature},
        )

        assert response.status_code == 200
        payment = client.get(f"/payments/{initiation['payment']['id']}", headers=CUSTOMER).json()
        assert payment["status"] == "completed"
        assert payment["gateway_transaction_id"] == "8"

    def test_unknown_gateway_is_404(self, client):
        assert client.post("/payments/webhooks/stripe", content=b"{}").status_code == 404


class TestRefundAPI:
    def test_admin_refunds(self, client, order):
        payment_id = _paid(client, order)

        response = client.post(
            f"/payments/{payment_id}/refunds",
            json={"amount": 4000.0, "reason": "Damaged"},
            headers=ADMIN,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "partially_refunded"
        assert data["total_refunded"] == 4000.0
        assert data["refunds"][0]["processed_by"] == "admin-1"

    def test_over_refund_is_400(self, client, order):
        payment_id = _paid(client, order)

        response = client.post(
            f"/payments/{payment_id}/refunds",
            json={"amount": 24000.01, "reason": "Too much"},
            headers=ADMIN,
        )

        assert response.status_code == 400
        assert "amount" in response.json()["details"]

    def test_customer_is_403(self, client, order):
        payment_id = _paid(client, order)
        response = client.post(
            f"/payments/{payment_id}/refunds",
            json={"amount": 10.0, "reason": "Please"},
            headers=CUSTOMER,
        )
        assert response.status_code == 403

    @pytest.mark.parametrize("body", [{"amount": 0, "reason": "x"}, {"amount": 10.0, "reason": ""}])
    def test_invalid_body_is_422(self, client, order, body):
        payment_id = _paid(client, order)
        assert client.post(f"/payments/{payment_id}/refunds", json=body, headers=ADMIN).status_code == 422
