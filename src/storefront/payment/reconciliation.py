"""Payment reconciliation — recording a gateway's verdict on a payment."""

import json

from protean import handle
from protean.fields import Float, Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.payment.payment import Payment


@storefront.command(part_of="Payment")
class CompletePayment:
    payment_id = Identifier(required=True)
    gateway_transaction_id = String(max_length=255)
    metadata = Text()  # JSON: raw gateway data
    gateway_fee = Float()


@storefront.command(part_of="Payment")
class FailPayment:
    payment_id = Identifier(required=True)
    code = String(required=True, max_length=50)
    message = String(required=True, max_length=500)


@storefront.command_handler(part_of=Payment)
class ReconcilePaymentHandler:
    @handle(CompletePayment)
    def complete_payment(self, command):
        repo = current_domain.repository_for(Payment)
        payment = repo.get(command.payment_id)
        payment.mark_completed(
            transaction_id=command.gateway_transaction_id,
            metadata=json.loads(command.metadata) if command.metadata else {},
            gateway_fee=command.gateway_fee,
        )
        repo.add(payment)

    @handle(FailPayment)
    def fail_payment(self, command):
        repo = current_domain.repository_for(Payment)
        payment = repo.get(command.payment_id)
        payment.mark_failed(code=command.code, message=command.message)
        repo.add(payment)
