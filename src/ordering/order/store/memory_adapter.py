"""In-memory order store — keeps order documents in a dict.

Used in tests and local development. Configurable failure and latency let
tests exercise the commit-failure and timeout paths.
"""

import asyncio

from ordering.checkout.errors import CommitFailure
from ordering.order.store.port import OrderStorePort


class InMemoryOrderStore(OrderStorePort):
    def __init__(self):
        self.documents = {}
        self.should_succeed = True
        self.failure_reason = "Order store unavailable"
        self.latency = 0.0

    def configure(
        self,
        should_succeed: bool = True,
        failure_reason: str = "Order store unavailable",
        latency: float = 0.0,
    ):
        """Configure the fake store behavior for testing."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.latency = latency

    async def add(self, order) -> str:
        if self.latency:
            await asyncio.sleep(self.latency)
        if not self.should_succeed:
            raise CommitFailure(self.failure_reason)

        order_id = str(order.id)
        self.documents[order_id] = order.to_document()
        return order_id

    def get(self, order_id: str) -> dict | None:
        return self.documents.get(str(order_id))

    async def list_for_user(self, user_id: str) -> list[dict]:
        documents = [doc for doc in self.documents.values() if doc.get("userId") == str(user_id)]
        return sorted(documents, key=lambda doc: doc.get("createdAt") or "", reverse=True)
