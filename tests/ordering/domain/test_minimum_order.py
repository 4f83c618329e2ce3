"""Tests for the minimum order policy."""

import pytest
from ordering.delivery.settings import DeliverySettings
from ordering.delivery.zone import DeliveryZone, MatchType, ZoneMatch
from ordering.pricing.minimum_order import MinimumOrderValidator


@pytest.fixture
def validator():
    return MinimumOrderValidator()


def _validate(validator, order_type, total, **overrides):
    options = {
        "is_food_min_enabled": True,
        "is_grocery_min_enabled": True,
        "food_min_value": 50.0,
        "grocery_min_value": 100.0,
    }
    options.update(overrides)
    return validator.validate(order_type, total, **options)


class TestValidate:
    def test_below_minimum(self, validator):
        result = _validate(validator, "grocery", 80.0)
        assert not result.valid
        assert result.is_enabled
        assert result.min_value == 100.0
        assert result.current_value == 80.0
        assert result.short_by == pytest.approx(20.0)

    def test_message_names_the_shortfall(self, validator):
        result = _validate(validator, "grocery", 80.0)
        assert result.message == "Minimum order for grocery is ₹100.00. Add ₹20.00 more to place your order."

    def test_exactly_minimum_is_valid(self, validator):
        result = _validate(validator, "food", 50.0)
        assert result.valid
        assert result.short_by == 0.0
        assert result.message == ""

    def test_above_minimum(self, validator):
        result = _validate(validator, "food", 75.0)
        assert result.valid
        assert result.short_by == 0.0

    def test_disabled_always_valid(self, validator):
        result = _validate(validator, "grocery", 1.0, is_grocery_min_enabled=False)
        assert result.valid
        assert not result.is_enabled
        assert result.min_value == 0.0
        assert result.short_by == 0.0

    def test_flags_are_per_order_type(self, validator):
        result = _validate(validator, "food", 10.0, is_grocery_min_enabled=False)
        assert not result.valid

    def test_short_by_never_negative(self, validator):
        for total in (0.0, 99.99, 100.0, 1000.0):
            result = _validate(validator, "grocery", total)
            assert result.short_by == pytest.approx(max(0.0, 100.0 - total))
            assert result.valid is (total >= 100.0)

    def test_document_shape(self, validator):
        doc = _validate(validator, "grocery", 80.0).to_document()
        assert set(doc) == {"valid", "isEnabled", "minValue", "currentValue", "shortBy", "message"}


class TestValidateForZone:
    def test_zone_threshold_overrides_default(self, validator):
        settings = DeliverySettings.fallback()
        match = ZoneMatch(
            zone=DeliveryZone(name="Renigunta", zip_codes=["517520"], min_order_grocery=150.0),
            match_type=MatchType.PINCODE.value,
        )
        result = validator.validate_for_zone("grocery", 120.0, settings, match)
        assert result.min_value == 150.0
        assert not result.valid

    def test_missing_zone_threshold_uses_default(self, validator):
        settings = DeliverySettings.fallback()
        match = ZoneMatch(
            zone=DeliveryZone(name="Renigunta", min_order_food=80.0),
            match_type=MatchType.CITY.value,
        )
        result = validator.validate_for_zone("grocery", 120.0, settings, match)
        assert result.min_value == 100.0
        assert result.valid

    def test_no_zone_uses_settings(self, validator):
        settings = DeliverySettings.from_document({"foodMinOrderValue": 120})
        result = validator.validate_for_zone("food", 100.0, settings, ZoneMatch.none())
        assert result.min_value == 120.0
        assert result.short_by == pytest.approx(20.0)

    def test_global_flag_disables_zone_threshold(self, validator):
        settings = DeliverySettings.from_document({"isGroceryMinOrderEnabled": False})
        match = ZoneMatch(
            zone=DeliveryZone(name="Renigunta", min_order_grocery=500.0),
            match_type=MatchType.CITY.value,
        )
        result = validator.validate_for_zone("grocery", 10.0, settings, match)
        assert result.valid
        assert not result.is_enabled
