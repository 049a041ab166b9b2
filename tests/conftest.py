import os
from pathlib import Path

import pytest
from protean.integrations.pytest import DomainFixture

SHIPPING_ADDRESS = {
    "first_name": "Ada",
    "last_name": "Obi",
    "email": "ada@example.com",
    "phone": "+2348000000000",
    "address": "12 Marina Road",
    "city": "Lagos",
    "state": "Lagos",
    "postal_code": "101001",
}


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Select the Protean environment before any domain module is imported."""
    os.environ["PROTEAN_ENV"] = session.config.option.env


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = str(Path(item.fspath))

        if "/domain/" in test_path:
            item.add_marker(pytest.mark.domain)
        elif "/application/" in test_path:
            item.add_marker(pytest.mark.application)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)
        elif "/bdd/" in test_path:
            item.add_marker(pytest.mark.bdd)


# ---------------------------------------------------------------------------
# Domain
# ---------------------------------------------------------------------------
@pytest.fixture(scope="session")
def storefront_bed():
    from storefront.domain import storefront

    bed = DomainFixture(storefront)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(storefront_bed):
    with storefront_bed.domain_context():
        yield


@pytest.fixture(autouse=True)
def run_around_tests(_ctx):
    """Reset in-process adapters after every test. Stores are reset by the domain fixture."""
    yield

    from storefront.cart import reset_cart_store
    from storefront.catalogue import reset_catalog
    from storefront.config import reset_settings
    from storefront.gateway import reset_gateways
    from storefront.notifications import reset_notification_sink
    from storefront.notifications.channel import reset_channels

    reset_catalog()
    reset_cart_store()
    reset_gateways()
    reset_notification_sink()
    reset_channels()
    reset_settings()


# ---------------------------------------------------------------------------
# Callers
# ---------------------------------------------------------------------------
@pytest.fixture()
def customer():
    from storefront.context import RequestContext

    return RequestContext(user_id="user-ada", email="ada@example.com", name="Ada Obi", phone="+2348000000000")


@pytest.fixture()
def other_customer():
    from storefront.context import RequestContext

    return RequestContext(user_id="user-bola", email="bola@example.com", name="Bola Ade")


@pytest.fixture()
def admin():
    from storefront.context import RequestContext

    return RequestContext(user_id="admin-1", role="admin", email="admin@example.com", name="Store Admin")


# ---------------------------------------------------------------------------
# Adapters
# ---------------------------------------------------------------------------
@pytest.fixture()
def catalog():
    from storefront.catalogue import set_catalog
    from storefront.catalogue.memory import InMemoryCatalogStore

    store = InMemoryCatalogStore()
    store.add_product("prod-a", "Ankara Tote", price=10000, quantity=10)
    store.add_product("prod-b", "Leather Sandals", price=15000, quantity=5)
    store.add_product("prod-c", "Gift Card", price=5000, quantity=0, track_inventory=False)
    set_catalog(store)
    return store


@pytest.fixture()
def carts():
    from storefront.cart import set_cart_store
    from storefront.cart.memory import InMemoryCartStore

    store = InMemoryCartStore()
    set_cart_store(store)
    return store


@pytest.fixture()
def email():
    from storefront.notifications.channel import set_email_channel
    from storefront.notifications.channel.fake_email import FakeEmailAdapter

    adapter = FakeEmailAdapter()
    set_email_channel(adapter)
    return adapter


@pytest.fixture()
def fake_gateway():
    """A FakeGateway standing in for Flutterwave (card and flutterwave methods)."""
    from storefront.gateway import register_gateway
    from storefront.gateway.fake_adapter import FakeGateway

    gateway = FakeGateway(name="flutterwave")
    register_gateway(gateway)
    return gateway


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------
@pytest.fixture()
def ledger(catalog, carts, email):
    from storefront.order.ledger import OrderLedger

    return OrderLedger()


@pytest.fixture()
def coordinator(ledger, fake_gateway):
    from storefront.payment.coordinator import PaymentCoordinator

    return PaymentCoordinator(ledger=ledger)


@pytest.fixture()
def shipping_address():
    return dict(SHIPPING_ADDRESS)


@pytest.fixture()
def place_order(ledger, customer, shipping_address):
    """Factory placing an order for ``customer`` (2 x prod-a by default)."""
    from storefront.order.pricing import RequestedItem

    def _place(items=None, ctx=None, payment_method="card"):
        items = items or [("prod-a", 2)]
        return ledger.create_order(
            ctx or customer,
            shipping_address=shipping_address,
            payment_method=payment_method,
            items=[RequestedItem(product_id=pid, quantity=qty) for pid, qty in items],
        )

    return _place


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------
@pytest.fixture()
def client(ledger, fake_gateway):
    """TestClient over the storefront routers, wired like ``app.py``."""
    from fastapi import FastAPI, Request
    from fastapi.testclient import TestClient

    from storefront.api import cart_router, order_router, payment_router, register_exception_handlers
    from storefront.domain import storefront

    app = FastAPI()

    @app.middleware("http")
    async def domain_context_middleware(request: Request, call_next):
        with storefront.domain_context():
            return await call_next(request)

    register_exception_handlers(app)
    app.include_router(order_router)
    app.include_router(cart_router)
    app.include_router(payment_router)
    return TestClient(app)

