"""Request-scoped dependencies for the storefront routes."""

from fastapi import Header, HTTPException

from storefront.context import CUSTOMER_ROLE, RequestContext


def get_request_context(
    x_user_id: str = Header(default=""),
    x_user_role: str = Header(default=CUSTOMER_ROLE),
    x_user_email: str | None = Header(default=None),
    x_user_name: str | None = Header(default=None),
    x_user_phone: str | None = Header(default=None),
) -> RequestContext:
    """Build the caller identity from headers set by the upstream auth layer."""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Authentication required")
    return RequestContext(
        user_id=x_user_id,
        role=x_user_role.lower(),
        email=x_user_email,
        name=x_user_name,
        phone=x_user_phone,
    )
