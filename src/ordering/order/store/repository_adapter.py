"""Repository order store — persists orders through the domain's Order repository.

Requires an active domain context. Repository errors surface as
``CommitFailure`` so the checkout pipeline treats them like any other
failed commit.
"""

from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from ordering.checkout.errors import CommitFailure
from ordering.order.order import Order
from ordering.order.store.port import OrderStorePort


class RepositoryOrderStore(OrderStorePort):
    async def add(self, order) -> str:
        try:
            current_domain.repository_for(Order).add(order)
        except (ValidationError, ValueError) as exc:
            raise CommitFailure(f"Order {order.id} could not be stored: {exc}") from exc
        return str(order.id)

    async def list_for_user(self, user_id: str) -> list[dict]:
        orders = (
            current_domain.repository_for(Order)
            ._dao.query.filter(user_id=str(user_id))
            .order_by("-created_at")
            .all()
            .items
        )
        return [order.to_document() for order in orders]
