"""Tests for delivery fee, tax and grand total computation."""

import pytest
from ordering.cart.cart import Cart
from ordering.delivery.settings import DeliverySettings
from ordering.delivery.zone import DeliveryZone, MatchType, ZoneMatch
from ordering.pricing.engine import PricingBreakdown, PricingEngine
from protean.exceptions import ValidationError


def _grocery_cart(*lines):
    cart = Cart.create(user_id="user-001")
    for product_id, price, quantity in lines:
        cart.add_item(product_id=product_id, name=product_id, price=price, order_type="grocery", quantity=quantity)
    return cart


def _food_cart(price=200.0):
    cart = Cart.create(user_id="user-001")
    cart.add_item(product_id="thali", name="Thali", price=price, order_type="food", restaurant_id="rest-001")
    return cart


def _match(**zone_fields):
    zone = DeliveryZone(name="Tirupati", zip_codes=["517501"], **zone_fields)
    return ZoneMatch(zone=zone, match_type=MatchType.PINCODE.value)


class TestDeliveryFee:
    def test_zone_fee_wins(self):
        engine = PricingEngine(DeliverySettings.fallback())
        assert engine.delivery_fee_for("grocery", _match(delivery_fee_grocery=12.0)) == 12.0

    def test_zone_fee_of_zero_is_used(self):
        engine = PricingEngine(DeliverySettings.fallback())
        assert engine.delivery_fee_for("grocery", _match(delivery_fee_grocery=0.0)) == 0.0

    def test_missing_zone_fee_falls_back_to_settings(self):
        engine = PricingEngine(DeliverySettings.from_document({"deliveryFeeGrocery": 35}))
        assert engine.delivery_fee_for("grocery", _match(delivery_fee_food=10.0)) == 35.0

    def test_no_zone_uses_settings_fee(self):
        engine = PricingEngine(DeliverySettings.fallback())
        assert engine.delivery_fee_for("food", ZoneMatch.none()) == 30.0
        assert engine.delivery_fee_for("grocery", None) == 20.0


class TestTax:
    def test_default_tax_is_five_percent(self):
        engine = PricingEngine()
        assert engine.tax_for(200.0) == pytest.approx(10.0)

    def test_zero_tax_is_honoured(self):
        engine = PricingEngine(DeliverySettings.from_document({"taxPercentage": 0}))
        assert engine.tax_for(200.0) == 0.0

    def test_unset_tax_uses_default(self):
        engine = PricingEngine(DeliverySettings.from_document({"taxPercentage": None}))
        assert engine.tax_for(100.0) == pytest.approx(5.0)


class TestPrice:
    def test_grocery_breakdown(self):
        engine = PricingEngine(DeliverySettings.fallback())
        breakdown = engine.price(_grocery_cart(("a", 50.0, 1)), _match(delivery_fee_grocery=20.0))
        assert breakdown.items_total == pytest.approx(50.0)
        assert breakdown.delivery_fee == pytest.approx(20.0)
        assert breakdown.tax_amount == pytest.approx(2.5)
        assert breakdown.grand_total == pytest.approx(72.5)
        assert breakdown.currency == "INR"

    def test_food_breakdown_without_zone_fee(self):
        engine = PricingEngine(DeliverySettings.fallback())
        breakdown = engine.price(_food_cart(200.0), _match())
        assert breakdown.delivery_fee == 30.0
        assert breakdown.grand_total == pytest.approx(200.0 + 30.0 + 10.0)

    def test_grand_total_is_sum_of_components(self):
        engine = PricingEngine(DeliverySettings.from_document({"taxPercentage": 18}))
        breakdown = engine.price(_grocery_cart(("a", 33.33, 3), ("b", 0.99, 7)), ZoneMatch.none())
        assert breakdown.grand_total == pytest.approx(
            breakdown.items_total + breakdown.delivery_fee + breakdown.tax_amount
        )

    def test_empty_cart_cannot_be_priced(self):
        engine = PricingEngine()
        with pytest.raises(ValidationError):
            engine.price(Cart.create(), ZoneMatch.none())


class TestPricingBreakdown:
    def test_inconsistent_total_rejected(self):
        with pytest.raises(ValidationError):
            PricingBreakdown(
                items_total=100.0, delivery_fee=20.0, tax_amount=5.0, tax_percentage=5.0, grand_total=130.0
            )

    def test_display_rounds_to_two_decimals(self):
        breakdown = PricingBreakdown(
            items_total=99.999,
            delivery_fee=20.0,
            tax_amount=4.99995,
            tax_percentage=5.0,
            grand_total=99.999 + 20.0 + 4.99995,
        )
        displayed = breakdown.display()
        assert displayed["itemsTotal"] == 100.0
        assert displayed["taxAmount"] == 5.0
        assert displayed["grandTotal"] == 125.0

    def test_document_keeps_unrounded_amounts(self):
        breakdown = PricingBreakdown(
            items_total=10.005, delivery_fee=0.0, tax_amount=0.0, tax_percentage=0.0, grand_total=10.005
        )
        assert breakdown.to_document()["itemsTotal"] == 10.005
