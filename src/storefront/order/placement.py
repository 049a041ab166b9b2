"""Order placement — command and handler.

The ledger prices and reserves stock before dispatching this command; the
handler only persists the already-priced order.
"""

import json

from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.order.order import Order


@storefront.command(part_of="Order")
class PlaceOrder:
    customer_id = Identifier(required=True)
    lines = Text(required=True)  # JSON: list of priced line dicts
    pricing = Text(required=True)  # JSON: {subtotal, tax, shipping, total}
    shipping_address = Text(required=True)  # JSON: address dict
    billing_address = Text()  # JSON: address dict, defaults to shipping
    payment_method = String(required=True, max_length=50)
    currency = String(max_length=3, default="NGN")
    notes = Text()


@storefront.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        billing = json.loads(command.billing_address) if command.billing_address else None

        order = Order.place(
            customer_id=command.customer_id,
            lines=json.loads(command.lines),
            pricing=json.loads(command.pricing),
            shipping_address=json.loads(command.shipping_address),
            billing_address=billing,
            payment_method=command.payment_method,
            currency=command.currency,
            notes=command.notes,
        )
        current_domain.repository_for(Order).add(order)
        return str(order.id)
