"""Static settings store — in-memory settings document for tests and development.

Holds a document set in code. Configurable failure and latency let tests
exercise the degraded-config and timeout paths.
"""

import asyncio
import copy

from ordering.checkout.errors import ConfigUnavailable
from ordering.delivery.settings_store.port import SettingsStorePort


class StaticSettingsStore(SettingsStorePort):
    """Settings store that serves a fixed document."""

    def __init__(self, document: dict | None = None):
        self.document = document
        self.should_succeed = True
        self.failure_reason = "Settings store unavailable"
        self.latency = 0.0
        self.fetch_count = 0

    def configure(
        self,
        should_succeed: bool = True,
        failure_reason: str = "Settings store unavailable",
        latency: float = 0.0,
    ):
        """Configure the fake store behavior for testing."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.latency = latency

    def set_document(self, document: dict | None):
        self.document = document

    async def fetch(self) -> dict | None:
        self.fetch_count += 1
        if self.latency:
            await asyncio.sleep(self.latency)
        if not self.should_succeed:
            raise ConfigUnavailable(self.failure_reason)
        return copy.deepcopy(self.document)
