"""Shared BDD fixtures and step definitions for orders."""

import pytest
from pytest_bdd import given, parsers, then

from storefront.errors import StorefrontError
from storefront.order.pricing import RequestedItem


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def error():
    """Container for the error raised by the last When step."""
    return {"exc": None}


@pytest.fixture()
def attempt(error):
    """Run a step action, capturing a storefront error instead of raising."""

    def _attempt(action, *args, **kwargs):
        try:
            return action(*args, **kwargs)
        except StorefrontError as exc:
            error["exc"] = exc
            return None

    return _attempt


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('the catalog has "{product_id}" priced at {price:d} with {quantity:d} in stock'))
def _(catalog, product_id, price, quantity):
    catalog.add_product(product_id, f"Product {product_id}", price=price, quantity=quantity)


@given(parsers.cfparse('"{product_id}" is no longer active'))
def _(catalog, product_id):
    catalog.set_status(product_id, "inactive")


@given(parsers.cfparse('a pending order for {quantity:d} of "{product_id}"'), target_fixture="order")
def _(ledger, customer, shipping_address, quantity, product_id):
    return ledger.create_order(
        customer,
        shipping_address=shipping_address,
        payment_method="card",
        items=[RequestedItem(product_id, quantity)],
    )


@given("the order has been shipped", target_fixture="order")
def _(ledger, admin, order):
    ledger.transition_status(admin, order.id, "processing")
    return ledger.transition_status(admin, order.id, "shipped")


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order status is "{status}"'))
def _(ledger, order, status):
    assert ledger.find_order(order.id).status == status


@then(parsers.cfparse("the order {component} is {amount:f}"))
def _(ledger, order, component, amount):
    pricing = ledger.find_order(order.id).pricing
    assert getattr(pricing, component) == amount


@then(parsers.cfparse('"{product_id}" has {quantity:d} in stock'))
def _(catalog, product_id, quantity):
    assert catalog.get_product(product_id).quantity == quantity


@then(parsers.cfparse('the request fails with "{kind}"'))
def _(error, kind):
    assert error["exc"] is not None
    assert error["exc"].kind == kind
