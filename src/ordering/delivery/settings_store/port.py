"""Settings store port — abstract interface for the delivery settings source.

The checkout reads one settings document per attempt. Adapters are swapped
via configuration; the domain code only programs against this port.
"""

from abc import ABC, abstractmethod


class SettingsStorePort(ABC):
    """Abstract interface for settings store adapters."""

    @abstractmethod
    async def fetch(self) -> dict | None:
        """Fetch the delivery settings document.

        Returns:
            dict with camelCase keys (deliveryZones, deliveryFeeGrocery,
            deliveryFeeFood, taxPercentage, groceryMinOrderValue,
            foodMinOrderValue, isGroceryMinOrderEnabled,
            isFoodMinOrderEnabled), or None when no document is stored.

        Raises:
            ConfigUnavailable: the store could not be read.
        """
        ...
