"""Concurrent placement against limited stock."""

import threading

from protean import current_domain

from storefront.context import RequestContext
from storefront.domain import storefront
from storefront.errors import InsufficientStock
from storefront.order.order import Order
from storefront.order.pricing import RequestedItem


def _race(ledger, shipping_address, buyers, items):
    outcomes = {}
    barrier = threading.Barrier(len(buyers))

    def _buy(user_id):
        with storefront.domain_context():
            barrier.wait()
            try:
                order = ledger.create_order(
                    RequestContext(user_id=user_id),
                    shipping_address=shipping_address,
                    payment_method="card",
                    items=items,
                )
                outcomes[user_id] = str(order.id)
            except InsufficientStock as exc:
                outcomes[user_id] = exc

    threads = [threading.Thread(target=_buy, args=(user_id,)) for user_id in buyers]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    return outcomes


class TestConcurrentPlacement:
    def test_last_unit_sold_once(self, ledger, catalog, shipping_address):
        catalog.add_product("prod-last", "Last One", price=1000, quantity=1)

        outcomes = _race(ledger, shipping_address, ["buyer-1", "buyer-2"], [RequestedItem("prod-last", 1)])

        winners = [v for v in outcomes.values() if isinstance(v, str)]
        losers = [v for v in outcomes.values() if isinstance(v, InsufficientStock)]
        assert len(winners) == 1
        assert len(losers) == 1
        assert catalog.get_product("prod-last").quantity == 0

    def test_stock_never_goes_negative(self, ledger, catalog, shipping_address):
        catalog.add_product("prod-few", "Few Left", price=1000, quantity=3)
        buyers = [f"buyer-{n}" for n in range(8)]

        outcomes = _race(ledger, shipping_address, buyers, [RequestedItem("prod-few", 1)])

        winners = [v for v in outcomes.values() if isinstance(v, str)]
        assert len(winners) == 3
        assert catalog.get_product("prod-few").quantity == 0
        assert current_domain.repository_for(Order)._dao.query.all().total == 3
