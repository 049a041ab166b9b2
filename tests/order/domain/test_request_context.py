import pytest

from storefront.context import RequestContext
from storefront.errors import Forbidden, InvalidTransition, NotFound


class TestRequestContext:
    def test_customer_is_not_admin(self):
        ctx = RequestContext(user_id="user-ada")
        assert not ctx.is_admin
        with pytest.raises(Forbidden):
            ctx.require_admin()

    def test_admin(self):
        ctx = RequestContext(user_id="admin-1", role="admin")
        ctx.require_admin()
        ctx.require_owner_or_admin("someone-else", "order")

    def test_owner(self):
        ctx = RequestContext(user_id="user-ada")
        ctx.require_owner("user-ada", "order")
        with pytest.raises(Forbidden) as exc:
            ctx.require_owner("user-bola", "order")
        assert exc.value.message == "Not authorized to access this order"


class TestErrors:
    def test_not_found_details(self):
        error = NotFound("Order", "ord-1")
        assert error.status_code == 404
        assert error.kind == "not_found"
        assert error.details == {"entity": "Order", "id": "ord-1"}

    def test_invalid_transition_message(self):
        error = InvalidTransition("Order", "shipped", "cancelled")
        assert error.status_code == 409
        assert error.message == "Cannot transition Order from shipped to cancelled"
