"""Pydantic request/response schemas for the storefront API."""

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared
# ---------------------------------------------------------------------------
class AddressSchema(BaseModel):
    first_name: str = Field(min_length=1, max_length=50)
    last_name: str = Field(min_length=1, max_length=50)
    email: str = Field(max_length=254)
    phone: str = Field(min_length=10, max_length=15)
    address: str = Field(min_length=5, max_length=200)
    city: str = Field(min_length=1, max_length=50)
    state: str = Field(min_length=1, max_length=50)
    postal_code: str | None = Field(default=None, max_length=10)


class PricingSchema(BaseModel):
    subtotal: float
    tax: float
    shipping: float
    total: float


class StatusResponse(BaseModel):
    status: str


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class OrderItemRequest(BaseModel):
    product_id: str
    quantity: int = Field(ge=1)


class CreateOrderRequest(BaseModel):
    items: list[OrderItemRequest] | None = None  # None → use the caller's cart
    shipping_address: AddressSchema
    billing_address: AddressSchema | None = None
    payment_method: str
    notes: str | None = None


class CancelOrderRequest(BaseModel):
    reason: str | None = None


class TransitionStatusRequest(BaseModel):
    status: str
    tracking_number: str | None = None
    notes: str | None = None


class OrderItemResponse(BaseModel):
    product_id: str
    title: str
    unit_price: float
    quantity: int
    line_total: float


class OrderResponse(BaseModel):
    id: str
    order_number: str
    customer_id: str
    status: str
    items: list[OrderItemResponse]
    pricing: PricingSchema
    currency: str
    payment_method: str
    shipping_address: AddressSchema | None = None
    billing_address: AddressSchema | None = None
    tracking_number: str | None = None
    notes: str | None = None
    cancellation_reason: str | None = None
    shipped_at: str | None = None
    delivered_at: str | None = None
    cancelled_at: str | None = None
    created_at: str | None = None


class CartLineResponse(BaseModel):
    product_id: str
    title: str
    unit_price: float
    quantity: int
    line_total: float


class CartQuoteResponse(BaseModel):
    items: list[CartLineResponse]
    pricing: PricingSchema
    unavailable: list[dict]


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------
class InitiatePaymentRequest(BaseModel):
    order_id: str
    method: str


class RefundRequest(BaseModel):
    amount: float = Field(gt=0)
    reason: str = Field(min_length=1)


class RefundResponse(BaseModel):
    id: str
    amount: float
    reason: str
    processed_by: str
    refunded_at: str | None = None


class PaymentFeesSchema(BaseModel):
    gateway: float = 0.0
    processing: float = 0.0
    total: float = 0.0


class PaymentErrorSchema(BaseModel):
    code: str | None = None
    message: str | None = None


class PaymentResponse(BaseModel):
    id: str
    order_id: str
    order_number: str | None = None
    customer_id: str
    amount: float
    currency: str
    method: str
    gateway: str
    gateway_reference: str
    gateway_transaction_id: str | None = None
    status: str
    total_refunded: float = 0.0
    refunds: list[RefundResponse] = []
    fees: PaymentFeesSchema | None = None
    error: PaymentErrorSchema | None = None
    completed_at: str | None = None
    failed_at: str | None = None


class PaymentInitiationResponse(BaseModel):
    payment: PaymentResponse
    gateway: str
    reference: str
    payload: dict
