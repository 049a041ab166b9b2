"""Payment gateway registry.

Adapters are keyed by gateway name. The defaults are built lazily from
settings; tests and startup code can swap any of them with
register_gateway().
"""

from protean.exceptions import ValidationError

from storefront.errors import NotFound
from storefront.gateway.port import PaymentGateway

# Payment method chosen by the customer → gateway that processes it.
METHOD_GATEWAYS = {
    "card": "flutterwave",
    "flutterwave": "flutterwave",
    "paystack": "paystack",
    "bank_transfer": "manual",
}

_gateways: dict[str, PaymentGateway] = {}


def _default_gateways() -> dict[str, PaymentGateway]:
    from storefront.gateway.flutterwave import FlutterwaveGateway
    from storefront.gateway.manual import ManualTransferGateway
    from storefront.gateway.paystack import PaystackGateway

    return {
        gateway.name: gateway
        for gateway in (FlutterwaveGateway(), PaystackGateway(), ManualTransferGateway())
    }


def get_gateway(name: str) -> PaymentGateway:
    """Return the adapter registered under ``name``. Raises NotFound if none."""
    if not _gateways:
        _gateways.update(_default_gateways())
    try:
        return _gateways[name]
    except KeyError:
        raise NotFound("Gateway", name) from None


def gateway_for_method(method: str) -> PaymentGateway:
    if method not in METHOD_GATEWAYS:
        allowed = ", ".join(METHOD_GATEWAYS)
        raise ValidationError({"method": [f"Payment method must be one of {allowed}"]})
    return get_gateway(METHOD_GATEWAYS[method])


def register_gateway(gateway: PaymentGateway) -> None:
    """Install or replace the adapter for ``gateway.name``."""
    if not _gateways:
        _gateways.update(_default_gateways())
    _gateways[gateway.name] = gateway


def reset_gateways() -> None:
    _gateways.clear()
