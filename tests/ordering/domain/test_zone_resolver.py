"""Tests for delivery zone resolution."""

import pytest
from ordering.delivery.resolver import ZoneResolver, has_location, names_overlap, shares_locality_suffix
from ordering.delivery.settings import DeliverySettings
from ordering.delivery.zone import DeliveryZone, MatchType, ZoneMatch
from protean.exceptions import ValidationError


def _zone(name, zip_codes=(), **overrides):
    return DeliveryZone(name=name, zip_codes=list(zip_codes), **overrides)


@pytest.fixture
def resolver():
    return ZoneResolver(
        [
            _zone("Tirupati", ["517501", "517502"], delivery_time_estimate="40-50 min"),
            _zone("Renigunta", ["517520"], delivery_fee_grocery=15.0),
            _zone("Gandhi Nagar", ["517530"]),
            _zone("Chandragiri", ["517101"], is_active=False),
        ]
    )


class TestNameMatching:
    def test_equal_names_overlap(self):
        assert names_overlap("Renigunta", "renigunta")

    def test_containment_either_direction(self):
        assert names_overlap("Renigunta Town", "Renigunta")
        assert names_overlap("Renigunta", "Renigunta Town")

    def test_unrelated_names(self):
        assert not names_overlap("Renigunta", "Puttur")

    def test_shared_locality_suffix(self):
        assert shares_locality_suffix("Gandhi Nagar", "Nehru Nagar")

    def test_no_shared_suffix(self):
        assert not shares_locality_suffix("Tirupati", "Puttur")

    def test_has_location(self):
        assert has_location(zip_code="517501")
        assert not has_location()
        assert not has_location(zip_code="  ", city="")


class TestTierPriority:
    def test_exact_match(self, resolver):
        match = resolver.resolve(zip_code="517520", village_town="Renigunta")
        assert match.match_type == MatchType.EXACT.value
        assert match.zone.name == "Renigunta"

    def test_exact_wins_over_city(self, resolver):
        match = resolver.resolve(zip_code="517520", city="Tirupati", village_town="Renigunta")
        assert match.match_type == MatchType.EXACT.value
        assert match.zone.name == "Renigunta"

    def test_village_match_without_zip(self, resolver):
        match = resolver.resolve(village_town="renigunta")
        assert match.match_type == MatchType.VILLAGE.value
        assert match.zone.name == "Renigunta"

    def test_village_match_by_suffix(self, resolver):
        match = resolver.resolve(village_town="Nehru Nagar")
        assert match.match_type == MatchType.VILLAGE.value
        assert match.zone.name == "Gandhi Nagar"

    def test_village_wins_over_pincode(self, resolver):
        match = resolver.resolve(zip_code="517501", village_town="Renigunta")
        assert match.match_type == MatchType.VILLAGE.value
        assert match.zone.name == "Renigunta"

    def test_pincode_match(self, resolver):
        match = resolver.resolve(zip_code="517502", city="Chittoor")
        assert match.match_type == MatchType.PINCODE.value
        assert match.zone.name == "Tirupati"

    def test_city_match(self, resolver):
        match = resolver.resolve(zip_code="000000", city="Tirupati")
        assert match.match_type == MatchType.CITY.value
        assert match.zone.name == "Tirupati"

    def test_no_match(self, resolver):
        match = resolver.resolve(zip_code="999999", city="Chennai")
        assert match.match_type == MatchType.NONE.value
        assert match.zone is None
        assert not match.matched

    def test_inactive_zone_ignored(self, resolver):
        match = resolver.resolve(zip_code="517101", city="Chandragiri")
        assert not match.matched

    def test_whitespace_is_trimmed(self, resolver):
        match = resolver.resolve(zip_code=" 517502 ")
        assert match.zone.name == "Tirupati"


class TestTieBreaking:
    def test_first_zone_in_document_order_wins(self):
        resolver = ZoneResolver([_zone("North", ["500001"]), _zone("South", ["500001"])])
        assert resolver.resolve(zip_code="500001").zone.name == "North"

    def test_reordering_zones_changes_the_winner(self):
        resolver = ZoneResolver([_zone("South", ["500001"]), _zone("North", ["500001"])])
        assert resolver.resolve(zip_code="500001").zone.name == "South"


class TestDisplayHelpers:
    def test_delivery_available(self, resolver):
        assert resolver.is_delivery_available(zip_code="517501")

    def test_delivery_unavailable_without_location(self, resolver):
        assert not resolver.is_delivery_available()

    def test_delivery_time_from_zone(self, resolver):
        assert resolver.delivery_time_for(zip_code="517501") == "40-50 min"

    def test_delivery_time_default(self, resolver):
        assert resolver.delivery_time_for(zip_code="517520") == "30-45 min"

    def test_zone_name_default(self, resolver):
        assert resolver.zone_name_for(zip_code="999999") == "Standard Delivery"

    def test_describe_match(self, resolver):
        described = resolver.describe_match(zip_code="517520")
        assert described["name"] == "Renigunta"
        assert described["matchType"] == "pincode"
        assert described["deliveryFeeGrocery"] == 15.0

    def test_describe_no_match(self, resolver):
        assert resolver.describe_match(zip_code="999999") is None


class TestResolverFromSettings:
    def test_zones_from_settings_document(self):
        settings = DeliverySettings.from_document(
            {
                "deliveryZones": [
                    {"name": "Puttur", "zipCodes": ["517583"], "deliveryFeeGrocery": 25, "isActive": True},
                    {"name": "Nagari", "zipCodes": ["517590"], "isActive": False},
                ]
            }
        )
        resolver = ZoneResolver.from_settings(settings)
        assert [z.name for z in resolver.zones] == ["Puttur"]
        assert resolver.resolve(zip_code="517583").zone.delivery_fee_grocery == 25.0


class TestZoneMatch:
    def test_matched_requires_zone(self):
        with pytest.raises(ValidationError):
            ZoneMatch(zone=None, match_type=MatchType.PINCODE.value)

    def test_none_match_cannot_carry_zone(self):
        with pytest.raises(ValidationError):
            ZoneMatch(zone=_zone("Tirupati"), match_type=MatchType.NONE.value)

    def test_default_match(self):
        match = ZoneMatch.default()
        assert match.match_type == "default"
        assert not match.matched
