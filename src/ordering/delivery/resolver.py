"""Zone resolution — match a delivery address to the best-fitting delivery zone.

Tiers are evaluated in strict priority order and the first hit wins:

    1. exact    zip code served by the zone AND zone name matches the village/town
    2. village  zone name matches the village/town, or both share a locality suffix
    3. pincode  zip code served by the zone
    4. city     zone name matches the city

Name matching is case-insensitive equality or substring containment in either
direction. Within a tier, zones are tried in the order they appear in the
settings document, so that order is part of the configuration contract.
"""

import structlog

from ordering.delivery.zone import DeliveryZone, MatchType, ZoneMatch
from ordering.utils.config import setting

logger = structlog.get_logger(__name__)

LOCALITY_SUFFIXES = ("palli", "palle", "peta", "pet", "pur", "puram", "nagar", "colony")


def _clean(value) -> str | None:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def has_location(zip_code=None, city=None, village_town=None) -> bool:
    """True when at least one address component is supplied."""
    return any(_clean(part) for part in (zip_code, city, village_town))


def names_overlap(zone_name: str, place: str) -> bool:
    zone_name, place = zone_name.lower(), place.lower()
    return zone_name == place or place in zone_name or zone_name in place


def shares_locality_suffix(zone_name: str, place: str) -> bool:
    zone_name, place = zone_name.lower(), place.lower()
    return any(suffix in zone_name and suffix in place for suffix in LOCALITY_SUFFIXES)


class ZoneResolver:
    """Resolves addresses against an ordered list of delivery zones.

    Inactive zones are dropped up front; the remaining order is preserved.
    """

    def __init__(self, zones: list[DeliveryZone]):
        self.zones = [zone for zone in zones if zone.is_active]

    @classmethod
    def from_settings(cls, settings) -> "ZoneResolver":
        return cls(settings.active_zones())

    def resolve(self, zip_code=None, city=None, village_town=None) -> ZoneMatch:
        zip_code, city, village_town = _clean(zip_code), _clean(city), _clean(village_town)

        for match_type, predicate in self._tiers(zip_code, city, village_town):
            zone = next((z for z in self.zones if predicate(z)), None)
            if zone is not None:
                logger.debug("zone_matched", zone=zone.name, match_type=match_type.value)
                return ZoneMatch(zone=zone, match_type=match_type.value)

        logger.debug("zone_not_matched", zip_code=zip_code, city=city, village_town=village_town)
        return ZoneMatch.none()

    def _tiers(self, zip_code, city, village_town):
        if zip_code and village_town:
            yield MatchType.EXACT, lambda z: z.serves_zip(zip_code) and names_overlap(z.name, village_town)
        if village_town:
            yield MatchType.VILLAGE, lambda z: (
                names_overlap(z.name, village_town) or shares_locality_suffix(z.name, village_town)
            )
        if zip_code:
            yield MatchType.PINCODE, lambda z: z.serves_zip(zip_code)
        if city:
            yield MatchType.CITY, lambda z: names_overlap(z.name, city)

    # -------------------------------------------------------------------
    # Display helpers
    # -------------------------------------------------------------------
    def is_delivery_available(self, zip_code=None, city=None, village_town=None) -> bool:
        if not has_location(zip_code, city, village_town):
            return False
        return self.resolve(zip_code, city, village_town).matched

    def delivery_time_for(self, zip_code=None, city=None, village_town=None) -> str:
        match = self.resolve(zip_code, city, village_town)
        if match.matched and match.zone.delivery_time_estimate:
            return match.zone.delivery_time_estimate
        return setting("DEFAULT_DELIVERY_TIME")

    def zone_name_for(self, zip_code=None, city=None, village_town=None) -> str:
        match = self.resolve(zip_code, city, village_town)
        return match.zone.name if match.matched else setting("DEFAULT_ZONE_NAME")

    def describe_match(self, zip_code=None, city=None, village_town=None) -> dict | None:
        """Zone details plus match type, or None when nothing matched."""
        match = self.resolve(zip_code, city, village_town)
        if not match.matched:
            return None
        return {**match.zone.to_document(), "matchType": match.match_type}
