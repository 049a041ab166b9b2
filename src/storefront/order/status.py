"""Order status transitions — administrative and payment-driven."""

from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.order.order import Order, OrderStatus


@storefront.command(part_of="Order")
class ChangeOrderStatus:
    """Administrative move along the fulfilment state machine."""

    order_id = Identifier(required=True)
    status = String(required=True, choices=OrderStatus)
    tracking_number = String(max_length=100)
    notes = Text()


@storefront.command(part_of="Order")
class MarkOrderProcessing:
    """A payment for the order was confirmed."""

    order_id = Identifier(required=True)
    payment_id = Identifier(required=True)


@storefront.command_handler(part_of=Order)
class OrderStatusHandler:
    @handle(ChangeOrderStatus)
    def change_status(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.change_status(
            OrderStatus(command.status),
            tracking_number=command.tracking_number,
            notes=command.notes,
        )
        repo.add(order)

    @handle(MarkOrderProcessing)
    def mark_processing(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.mark_processing()
        repo.add(order)
