"""Refund recording — command and handler.

Refunds are recorded against the payment here; moving money back through
the provider is done from the provider's dashboard.
"""

from protean import handle
from protean.fields import Float, Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.payment.payment import Payment


@storefront.command(part_of="Payment")
class AddRefund:
    payment_id = Identifier(required=True)
    amount = Float(required=True)
    reason = String(required=True, max_length=500)
    processed_by = String(required=True, max_length=255)


@storefront.command_handler(part_of=Payment)
class RefundPaymentHandler:
    @handle(AddRefund)
    def add_refund(self, command):
        repo = current_domain.repository_for(Payment)
        payment = repo.get(command.payment_id)
        refund_id = payment.add_refund(
            amount=command.amount,
            reason=command.reason,
            processed_by=command.processed_by,
        )
        repo.add(payment)
        return refund_id
