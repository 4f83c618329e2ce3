"""Pricing engine — delivery fee, tax and grand total for a cart.

Amounts are kept unrounded; rounding to two decimals happens only when a
breakdown is displayed.
"""

import structlog
from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Float, String

from ordering.delivery.settings import DeliverySettings, load_settings
from ordering.domain import ordering
from ordering.utils.config import setting

logger = structlog.get_logger(__name__)

_TOTAL_TOLERANCE = 1e-6


@ordering.value_object
class PricingBreakdown:
    """Items total, delivery fee and tax for one checkout.

    Locked into the order snapshot at commit time; later changes to zones
    or settings never alter a placed order.
    """

    items_total = Float(required=True, min_value=0.0)
    delivery_fee = Float(required=True, min_value=0.0)
    tax_amount = Float(required=True, min_value=0.0)
    tax_percentage = Float(required=True, min_value=0.0)
    grand_total = Float(required=True, min_value=0.0)
    currency = String(max_length=3, default="INR")

    @invariant.post
    def grand_total_must_equal_components(self):
        expected = self.items_total + self.delivery_fee + self.tax_amount
        if abs(self.grand_total - expected) > _TOTAL_TOLERANCE:
            raise ValidationError({"grand_total": [f"Grand total {self.grand_total} does not equal {expected}"]})

    def display(self) -> dict:
        return {
            "itemsTotal": round(self.items_total, 2),
            "deliveryFee": round(self.delivery_fee, 2),
            "taxAmount": round(self.tax_amount, 2),
            "taxPercentage": self.tax_percentage,
            "grandTotal": round(self.grand_total, 2),
            "currency": self.currency,
        }

    def to_document(self) -> dict:
        return {
            "itemsTotal": self.items_total,
            "deliveryFee": self.delivery_fee,
            "taxAmount": self.tax_amount,
            "taxPercentage": self.tax_percentage,
            "grandTotal": self.grand_total,
            "currency": self.currency,
        }


class PricingEngine:
    """Derives a ``PricingBreakdown`` from a cart and a zone match."""

    def __init__(self, settings: DeliverySettings | None = None, degraded: bool = False):
        self.settings = settings or DeliverySettings.fallback()
        self.degraded = degraded

    @classmethod
    async def from_store(cls, store, timeout: float | None = None) -> "PricingEngine":
        """Build an engine on the store's settings, or on the defaults if unreadable."""
        settings, degraded = await load_settings(store, timeout=timeout)
        return cls(settings, degraded=degraded)

    def delivery_fee_for(self, order_type, zone_match) -> float:
        if zone_match is not None and zone_match.zone is not None:
            fee = zone_match.zone.fee_for(order_type)
            if fee is not None:
                return fee
        return self.settings.fee_for(order_type)

    def tax_for(self, items_total: float) -> float:
        return items_total * self.settings.effective_tax_percentage / 100

    def price(self, cart, zone_match) -> PricingBreakdown:
        if cart.order_type is None:
            raise ValidationError({"cart": ["Cannot price an empty cart"]})

        items_total = cart.total_amount
        delivery_fee = self.delivery_fee_for(cart.order_type, zone_match)
        tax_amount = self.tax_for(items_total)

        breakdown = PricingBreakdown(
            items_total=items_total,
            delivery_fee=delivery_fee,
            tax_amount=tax_amount,
            tax_percentage=self.settings.effective_tax_percentage,
            grand_total=items_total + delivery_fee + tax_amount,
            currency=setting("CURRENCY"),
        )
        logger.debug(
            "cart_priced",
            order_type=cart.order_type,
            zone=zone_match.zone.name if zone_match is not None and zone_match.zone else None,
            grand_total=breakdown.grand_total,
            degraded=self.degraded,
        )
        return breakdown
