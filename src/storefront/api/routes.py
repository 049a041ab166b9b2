"""FastAPI routes for orders, carts and payments.

Routes are plain ``def`` so FastAPI runs them in its threadpool: ledger and
coordinator calls block on locks and on gateway HTTP calls.
"""

from fastapi import APIRouter, Depends, Request
from starlette.concurrency import run_in_threadpool

from storefront.api.dependencies import get_request_context
from storefront.api.schemas import (
    AddressSchema,
    CancelOrderRequest,
    CartLineResponse,
    CartQuoteResponse,
    CreateOrderRequest,
    InitiatePaymentRequest,
    OrderItemResponse,
    OrderResponse,
    PaymentErrorSchema,
    PaymentFeesSchema,
    PaymentInitiationResponse,
    PaymentResponse,
    PricingSchema,
    RefundRequest,
    RefundResponse,
    StatusResponse,
    TransitionStatusRequest,
)
from storefront.context import RequestContext
from storefront.gateway import get_gateway
from storefront.order.ledger import OrderLedger
from storefront.order.order import Order
from storefront.order.pricing import RequestedItem
from storefront.payment.coordinator import PaymentCoordinator
from storefront.payment.payment import Payment


def _iso(value) -> str | None:
    return value.isoformat() if value else None


def _address(value) -> AddressSchema | None:
    if value is None:
        return None
    return AddressSchema(
        first_name=value.first_name,
        last_name=value.last_name,
        email=value.email,
        phone=value.phone,
        address=value.address,
        city=value.city,
        state=value.state,
        postal_code=value.postal_code,
    )


def _order_response(order: Order) -> OrderResponse:
    return OrderResponse(
        id=str(order.id),
        order_number=order.order_number,
        customer_id=str(order.customer_id),
        status=order.status,
        items=[
            OrderItemResponse(
                product_id=str(item.product_id),
                title=item.title,
                unit_price=item.unit_price,
                quantity=item.quantity,
                line_total=item.line_total,
            )
            for item in order.items
        ],
        pricing=PricingSchema(
            subtotal=order.pricing.subtotal,
            tax=order.pricing.tax,
            shipping=order.pricing.shipping,
            total=order.pricing.total,
        ),
        currency=order.currency,
        payment_method=order.payment_method,
        shipping_address=_address(order.shipping_address),
        billing_address=_address(order.billing_address),
        tracking_number=order.tracking_number,
        notes=order.notes,
        cancellation_reason=order.cancellation_reason,
        shipped_at=_iso(order.shipped_at),
        delivered_at=_iso(order.delivered_at),
        cancelled_at=_iso(order.cancelled_at),
        created_at=_iso(order.created_at),
    )


def _payment_response(payment: Payment) -> PaymentResponse:
    return PaymentResponse(
        id=str(payment.id),
        order_id=str(payment.order_id),
        order_number=payment.order_number,
        customer_id=str(payment.customer_id),
        amount=payment.amount,
        currency=payment.currency,
        method=payment.method,
        gateway=payment.gateway,
        gateway_reference=payment.gateway_reference,
        gateway_transaction_id=payment.gateway_transaction_id,
        status=payment.status,
        total_refunded=payment.total_refunded or 0.0,
        refunds=[
            RefundResponse(
                id=str(refund.id),
                amount=refund.amount,
                reason=refund.reason,
                processed_by=refund.processed_by,
                refunded_at=_iso(refund.refunded_at),
            )
            for refund in payment.refunds
        ],
        fees=PaymentFeesSchema(
            gateway=payment.fees.gateway or 0.0,
            processing=payment.fees.processing or 0.0,
            total=payment.fees.total or 0.0,
        )
        if payment.fees
        else None,
        error=PaymentErrorSchema(code=payment.error.code, message=payment.error.message) if payment.error else None,
        completed_at=_iso(payment.completed_at),
        failed_at=_iso(payment.failed_at),
    )


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderResponse)
def create_order(body: CreateOrderRequest, ctx: RequestContext = Depends(get_request_context)) -> OrderResponse:
    """Create an order from explicit items, or from the caller's cart when items are omitted."""
    items = None
    if body.items is not None:
        items = [RequestedItem(product_id=item.product_id, quantity=item.quantity) for item in body.items]

    order = OrderLedger().create_order(
        ctx,
        shipping_address=body.shipping_address.model_dump(),
        billing_address=body.billing_address.model_dump() if body.billing_address else None,
        payment_method=body.payment_method,
        items=items,
        notes=body.notes,
    )
    return _order_response(order)


@order_router.get("/{order_id}", response_model=OrderResponse)
def get_order(order_id: str, ctx: RequestContext = Depends(get_request_context)) -> OrderResponse:
    return _order_response(OrderLedger().get_order(ctx, order_id))


@order_router.post("/{order_id}/cancel", response_model=OrderResponse)
def cancel_order(
    order_id: str,
    body: CancelOrderRequest | None = None,
    ctx: RequestContext = Depends(get_request_context),
) -> OrderResponse:
    reason = body.reason if body else None
    return _order_response(OrderLedger().cancel_order(ctx, order_id, reason=reason))


@order_router.put("/{order_id}/status", response_model=OrderResponse)
def transition_status(
    order_id: str,
    body: TransitionStatusRequest,
    ctx: RequestContext = Depends(get_request_context),
) -> OrderResponse:
    """Admin-only status change."""
    order = OrderLedger().transition_status(
        ctx,
        order_id,
        new_status=body.status,
        tracking_number=body.tracking_number,
        notes=body.notes,
    )
    return _order_response(order)


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/cart", tags=["cart"])


@cart_router.get("/quote", response_model=CartQuoteResponse)
def quote_cart(ctx: RequestContext = Depends(get_request_context)) -> CartQuoteResponse:
    quote = OrderLedger().quote_cart(ctx)
    return CartQuoteResponse(
        items=[CartLineResponse(**line.to_dict()) for line in quote.lines],
        pricing=PricingSchema(**quote.pricing.to_dict()),
        unavailable=quote.unavailable,
    )


# ---------------------------------------------------------------------------
# Payment Router
# ---------------------------------------------------------------------------
payment_router = APIRouter(prefix="/payments", tags=["payments"])


@payment_router.post("", status_code=201, response_model=PaymentInitiationResponse)
def initiate_payment(
    body: InitiatePaymentRequest,
    ctx: RequestContext = Depends(get_request_context),
) -> PaymentInitiationResponse:
    initiation = PaymentCoordinator().initiate_payment(ctx, body.order_id, body.method)
    return PaymentInitiationResponse(
        payment=_payment_response(initiation.payment),
        gateway=initiation.gateway,
        reference=initiation.reference,
        payload=initiation.payload,
    )


@payment_router.post("/webhooks/{gateway_name}", response_model=StatusResponse)
async def handle_webhook(gateway_name: str, request: Request) -> StatusResponse:
    """Provider callback. Unauthenticated; integrity comes from the signature header."""
    gateway = get_gateway(gateway_name)
    raw_payload = await request.body()
    signature = request.headers.get(gateway.signature_header) if gateway.signature_header else None

    ack = await run_in_threadpool(PaymentCoordinator().handle_webhook, gateway_name, raw_payload, signature)
    return StatusResponse(status=ack.status)


@payment_router.get("/{payment_id}", response_model=PaymentResponse)
def get_payment(payment_id: str, ctx: RequestContext = Depends(get_request_context)) -> PaymentResponse:
    return _payment_response(PaymentCoordinator().get_payment(ctx, payment_id))


@payment_router.post("/{payment_id}/verify", response_model=PaymentResponse)
def verify_payment(payment_id: str, ctx: RequestContext = Depends(get_request_context)) -> PaymentResponse:
    return _payment_response(PaymentCoordinator().verify_payment(ctx, payment_id))


@payment_router.post("/{payment_id}/refunds", response_model=PaymentResponse)
def add_refund(
    payment_id: str,
    body: RefundRequest,
    ctx: RequestContext = Depends(get_request_context),
) -> PaymentResponse:
    """Admin-only refund record."""
    payment = PaymentCoordinator().add_refund(ctx, payment_id, amount=body.amount, reason=body.reason)
    return _payment_response(payment)
