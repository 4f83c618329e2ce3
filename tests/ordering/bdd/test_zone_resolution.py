"""BDD tests for delivery zone resolution."""

import pytest
from ordering.delivery.resolver import ZoneResolver
from ordering.delivery.zone import DeliveryZone
from pytest_bdd import given, parsers, scenarios, then, when

scenarios("features/zone_resolution.feature")


@pytest.fixture()
def zones():
    return []


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a delivery zone "{name}" serving PIN codes "{zip_codes}"'))
def delivery_zone(zones, name, zip_codes):
    zones.append(DeliveryZone(name=name, zip_codes=zip_codes.split(",")))


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(
    parsers.cfparse('an address with PIN code "{zip_code}" and village "{village_town}" is resolved'),
    target_fixture="match",
)
def resolve_zip_and_village(zones, zip_code, village_town):
    return ZoneResolver(zones).resolve(zip_code=zip_code, village_town=village_town)


@when(parsers.cfparse('an address with village "{village_town}" is resolved'), target_fixture="match")
def resolve_village(zones, village_town):
    return ZoneResolver(zones).resolve(village_town=village_town)


@when(
    parsers.cfparse('an address with PIN code "{zip_code}" and city "{city}" is resolved'),
    target_fixture="match",
)
def resolve_zip_and_city(zones, zip_code, city):
    return ZoneResolver(zones).resolve(zip_code=zip_code, city=city)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the zone is "{name}" by "{match_type}" match'))
def zone_is(match, name, match_type):
    assert match.zone.name == name
    assert match.match_type == match_type


@then("no zone matches")
def no_zone(match):
    assert not match.matched
