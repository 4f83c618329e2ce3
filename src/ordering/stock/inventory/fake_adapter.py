"""Fake inventory adapter — in-memory stock counters for testing and development.

Compare-and-set is atomic because the check and the write happen without an
intervening await on a single event loop. Configurable latency lets tests
interleave concurrent checkouts; configurable failures exercise the outage
and partial-failure paths.
"""

import asyncio

from ordering.checkout.errors import ServiceUnavailable
from ordering.stock.inventory.port import InventoryPort


class FakeInventory(InventoryPort):
    """Fake inventory that always succeeds by default."""

    def __init__(self, levels: dict | None = None):
        self.levels = dict(levels or {})
        self.should_succeed = True
        self.failure_reason = "Inventory unavailable"
        self.failing_products = set()
        self.latency = 0.0
        self.reads = []
        self.writes = []

    def configure(
        self,
        should_succeed: bool = True,
        failure_reason: str = "Inventory unavailable",
        failing_products=(),
        latency: float = 0.0,
    ):
        """Configure the fake inventory behavior for testing.

        ``failing_products`` makes writes fail for those ids only.
        """
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.failing_products = {str(p) for p in failing_products}
        self.latency = latency

    def seed(self, levels: dict):
        self.levels.update({str(k): v for k, v in levels.items()})

    @property
    def touched(self) -> bool:
        return bool(self.reads or self.writes)

    async def _pause(self):
        # Always yield so concurrent callers interleave
        await asyncio.sleep(self.latency)

    async def get_stock(self, product_id: str) -> int | None:
        self.reads.append(str(product_id))
        await self._pause()
        if not self.should_succeed:
            raise ServiceUnavailable("inventory", self.failure_reason)
        return self.levels.get(str(product_id))

    async def set_stock(self, product_id: str, new_stock: int) -> None:
        self.writes.append((str(product_id), new_stock))
        await self._pause()
        self._check_write(product_id)
        self.levels[str(product_id)] = new_stock

    async def compare_and_set(self, product_id: str, expected: int, new_stock: int) -> bool:
        self.writes.append((str(product_id), new_stock))
        await self._pause()
        self._check_write(product_id)
        if self.levels.get(str(product_id)) != expected:
            return False
        self.levels[str(product_id)] = new_stock
        return True

    def _check_write(self, product_id):
        if not self.should_succeed or str(product_id) in self.failing_products:
            raise ServiceUnavailable("inventory", self.failure_reason)
