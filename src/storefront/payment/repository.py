"""Repository for the Payment aggregate."""

from storefront.domain import storefront
from storefront.payment.payment import Payment


@storefront.repository(part_of=Payment)
class PaymentRepository:
    def find_by_reference(self, gateway: str, reference: str) -> Payment | None:
        """Find a payment by the correlation reference its gateway assigned."""
        results = self._dao.query.filter(gateway=gateway, gateway_reference=reference).all().items
        return results[0] if results else None

    def find_for_order(self, order_id: str) -> list[Payment]:
        return self._dao.query.filter(order_id=str(order_id)).all().items

    def find_active_for_order(self, order_id: str) -> Payment | None:
        """Any payment for the order that has not failed."""
        for payment in self.find_for_order(order_id):
            if payment.is_active:
                return payment
        return None
