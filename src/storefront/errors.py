"""Error taxonomy for the storefront core.

Every error carries a machine-readable ``kind`` and the HTTP status the API
layer renders it with. Malformed input is reported with Protean's
``ValidationError`` instead, the same error the aggregates raise.
"""


class StorefrontError(Exception):
    """Base exception for all storefront errors."""

    kind = "storefront_error"
    status_code = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    @property
    def details(self) -> dict:
        return {}


class NotFound(StorefrontError):
    """Raised when an order or payment does not exist."""

    kind = "not_found"
    status_code = 404

    def __init__(self, entity: str, identifier: str):
        self.entity = entity
        self.identifier = identifier
        super().__init__(f"{entity} {identifier} not found")

    @property
    def details(self) -> dict:
        return {"entity": self.entity, "id": self.identifier}


class Forbidden(StorefrontError):
    """Raised on an ownership or role violation."""

    kind = "forbidden"
    status_code = 403


class InvalidTransition(StorefrontError):
    """Raised when a state machine rejects a transition."""

    kind = "invalid_transition"
    status_code = 409

    def __init__(self, entity: str, current: str, target: str | None = None, reason: str | None = None):
        self.entity = entity
        self.current = current
        self.target = target
        if reason:
            msg = reason
        elif target:
            msg = f"Cannot transition {entity} from {current} to {target}"
        else:
            msg = f"{entity} cannot be changed while {current}"
        super().__init__(msg)

    @property
    def details(self) -> dict:
        return {"entity": self.entity, "current": self.current, "target": self.target}


class EmptyCart(StorefrontError):
    """Raised when an order is requested without any items."""

    kind = "empty_cart"
    status_code = 400

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__("Cart is empty")


class ProductUnavailable(StorefrontError):
    """Raised when a product is missing from the catalog or not active."""

    kind = "product_unavailable"
    status_code = 409

    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__(f"Product {product_id} is not available")

    @property
    def details(self) -> dict:
        return {"product_id": self.product_id}


class InsufficientStock(StorefrontError):
    """Raised when tracked stock is below the requested quantity."""

    kind = "insufficient_stock"
    status_code = 409

    def __init__(self, product_id: str, requested: int, available: int | None = None, title: str | None = None):
        self.product_id = product_id
        self.requested = requested
        self.available = available
        self.title = title
        label = title or product_id
        msg = f"Insufficient stock for {label}"
        if available is not None:
            msg = f"{msg}: requested {requested}, available {available}"
        super().__init__(msg)

    @property
    def details(self) -> dict:
        return {"product_id": self.product_id, "requested": self.requested, "available": self.available}


class DuplicatePayment(StorefrontError):
    """Raised when an order already has an active payment."""

    kind = "duplicate_payment"
    status_code = 409

    def __init__(self, order_id: str, payment_id: str):
        self.order_id = order_id
        self.payment_id = payment_id
        super().__init__(f"Order {order_id} already has an active payment {payment_id}")

    @property
    def details(self) -> dict:
        return {"order_id": self.order_id, "payment_id": self.payment_id}


class InvalidSignature(StorefrontError):
    """Raised when a webhook fails signature verification."""

    kind = "invalid_signature"
    status_code = 401

    def __init__(self, gateway: str):
        self.gateway = gateway
        super().__init__("Invalid webhook signature")


class GatewayUnavailable(StorefrontError):
    """Raised when a payment provider cannot be reached. Safe to retry."""

    kind = "gateway_unavailable"
    status_code = 503

    def __init__(self, gateway: str, reason: str | None = None):
        self.gateway = gateway
        self.reason = reason
        super().__init__("Payment verification service unavailable")

    @property
    def details(self) -> dict:
        return {"gateway": self.gateway}


class GatewayRejected(StorefrontError):
    """Raised when a provider definitively reports the payment as failed."""

    kind = "gateway_rejected"
    status_code = 402

    def __init__(self, gateway: str, message: str, payment_id: str | None = None):
        self.gateway = gateway
        self.payment_id = payment_id
        super().__init__(message)

    @property
    def details(self) -> dict:
        return {"gateway": self.gateway, "payment_id": self.payment_id}


class NotificationFailed(StorefrontError):
    """Raised by a notification sink when delivery fails. Never surfaced to API callers."""

    kind = "notification_failed"
    status_code = 500
