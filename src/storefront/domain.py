"""Storefront bounded context — Orders, Payments and their reconciliation.

Turns carts into priced orders, reserves catalog stock, dispatches payments
to a gateway and reconciles gateway confirmations (direct verification and
webhooks) back into order and payment state.
"""

import structlog
from protean.domain import Domain

storefront = Domain(name="storefront")

logger = structlog.get_logger(__name__)
