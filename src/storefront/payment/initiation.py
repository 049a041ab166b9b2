"""Payment initiation — command and handler."""

from protean import handle
from protean.fields import Float, Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.payment.payment import Payment, PaymentStatus


@storefront.command(part_of="Payment")
class InitiatePayment:
    payment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    order_number = String(max_length=50)
    customer_id = Identifier(required=True)
    amount = Float(required=True)
    currency = String(required=True, max_length=3)
    method = String(required=True, max_length=50)
    gateway = String(required=True, max_length=50)
    gateway_reference = String(required=True, max_length=255)
    status = String(max_length=50, default=PaymentStatus.PENDING.value)


@storefront.command_handler(part_of=Payment)
class InitiatePaymentHandler:
    @handle(InitiatePayment)
    def initiate_payment(self, command):
        payment = Payment.initiate(
            payment_id=command.payment_id,
            order_id=command.order_id,
            order_number=command.order_number,
            customer_id=command.customer_id,
            amount=command.amount,
            currency=command.currency,
            method=command.method,
            gateway=command.gateway,
            gateway_reference=command.gateway_reference,
            status=command.status,
        )
        current_domain.repository_for(Payment).add(payment)
        return str(payment.id)
