import json

import pytest


@pytest.fixture()
def order(place_order):
    """A pending 24,000 NGN card order owned by ``customer``."""
    return place_order()


@pytest.fixture()
def initiated(coordinator, customer, order):
    return coordinator.initiate_payment(customer, order.id, "card")


@pytest.fixture()
def fake_webhook(fake_gateway):
    """Build a signed FakeGateway webhook body and its signature."""

    def _build(reference, amount=24000.0, event="charge.succeeded", transaction_id="txn-wh-1"):
        body = json.dumps(
            {"event": event, "reference": reference, "amount": amount, "transaction_id": transaction_id}
        ).encode()
        return body, fake_gateway.sign(body)

    return _build
