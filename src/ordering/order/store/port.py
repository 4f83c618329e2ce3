"""Order store port — abstract interface for persisting and listing committed orders.

A successful ``add`` is the commit point of a checkout: once it returns,
the order exists and the checkout must not be retried.
"""

from abc import ABC, abstractmethod


class OrderStorePort(ABC):
    """Abstract interface for order store adapters."""

    @abstractmethod
    async def add(self, order) -> str:
        """Persist a newly placed order.

        Returns:
            The id the order was stored under.

        Raises:
            CommitFailure: if the write was rejected or lost.
        """
        ...

    @abstractmethod
    async def list_for_user(self, user_id: str) -> list[dict]:
        """Order documents placed by a user, newest first."""
        ...
