"""Shared BDD fixtures and step definitions for payments."""

import json

import pytest
from pytest_bdd import given, parsers, then


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def outcome():
    """Captures the result of the last When step."""
    return {"ack": None, "exc": None}


@pytest.fixture()
def signed_success(fake_gateway):
    """Build a signed charge-succeeded webhook for a payment."""

    def _build(payment):
        body = json.dumps(
            {
                "event": "charge.succeeded",
                "reference": payment.gateway_reference,
                "amount": payment.amount,
                "transaction_id": "txn-bdd",
            }
        ).encode()
        return body, fake_gateway.sign(body)

    return _build


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse("a pending order for {total:f}"), target_fixture="order")
def _(place_order, total):
    order = place_order([("prod-a", 2)])
    assert order.pricing.total == total
    return order


@given("a card payment has been started", target_fixture="payment")
def _(coordinator, customer, order):
    return coordinator.initiate_payment(customer, order.id, "card").payment


@given("the customer verified the payment")
def _(coordinator, customer, payment):
    coordinator.verify_payment(customer, payment.id)


@given("the gateway sent a signed success webhook")
def _(coordinator, signed_success, payment):
    body, signature = signed_success(payment)
    coordinator.handle_webhook("flutterwave", body, signature)


@given(parsers.cfparse("the gateway confirms only {amount:f}"))
def _(fake_gateway, amount):
    fake_gateway.configure(confirmed_amount=amount)


@given("the gateway is unavailable")
def _(fake_gateway):
    fake_gateway.configure(unavailable=True)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the payment status is "{status}"'))
def _(coordinator, admin, payment, status):
    assert coordinator.get_payment(admin, payment.id).status == status


@then(parsers.cfparse('the payment error is "{code}"'))
def _(coordinator, admin, payment, code):
    assert coordinator.get_payment(admin, payment.id).error.code == code


@then(parsers.cfparse('the order status is "{status}"'))
def _(ledger, order, status):
    assert ledger.find_order(order.id).status == status


@then(parsers.cfparse('the webhook outcome is "{expected}"'))
def _(outcome, expected):
    assert outcome["ack"].outcome == expected


@then(parsers.cfparse("the gateway was asked to verify {count:d} times"))
def _(fake_gateway, count):
    assert [call["method"] for call in fake_gateway.calls].count("verify") == count


@then(parsers.cfparse('verification fails with "{kind}"'))
def _(outcome, kind):
    assert outcome["exc"] is not None
    assert outcome["exc"].kind == kind
