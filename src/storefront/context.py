"""Per-request caller identity passed into every ledger and coordinator call."""

from dataclasses import dataclass

from storefront.errors import Forbidden

ADMIN_ROLE = "admin"
CUSTOMER_ROLE = "customer"


@dataclass(frozen=True)
class RequestContext:
    """Authenticated caller, as established by the upstream auth layer."""

    user_id: str
    role: str = CUSTOMER_ROLE
    email: str | None = None
    name: str | None = None
    phone: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE

    def require_admin(self) -> None:
        if not self.is_admin:
            raise Forbidden("Admin access required")

    def require_owner_or_admin(self, owner_id: str, entity: str) -> None:
        if self.is_admin:
            return
        self.require_owner(owner_id, entity)

    def require_owner(self, owner_id: str, entity: str) -> None:
        if str(owner_id) != str(self.user_id):
            raise Forbidden(f"Not authorized to access this {entity}")
