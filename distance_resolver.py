# Turns two free-text locations (addresses, place names or postal codes)
# into a road distance plus a readable summary of what each one resolved to.

import logging

from api_adapters import (POSTAL_CODE_LENGTH, Geocoder, PostalCodeLookup, Router,
                          normalize_postal_code)
from trip_structures import DistanceResult, GeoPoint, ResolutionError, ResolvedAddress

logger = logging.getLogger(__name__)

# Prioritized Nominatim address fields for each ResolvedAddress field.
# More specific sub-locality fields come first and win ties.
NEIGHBORHOOD_FIELDS = ('neighbourhood', 'suburb', 'village', 'hamlet', 'quarter')
CITY_FIELDS = ('city', 'town', 'village', 'county')
REGION_FIELDS = ('state', 'region')
POSTAL_CODE_FIELDS = ('postcode',)


def is_postal_code(query: str | None) -> bool:
    """True when the query holds exactly an 8-digit postal code, hyphenated or not."""
    return len(normalize_postal_code(query)) == POSTAL_CODE_LENGTH


def first_present(address: dict, fields: tuple[str, ...]) -> str:
    """Returns the value of the first non-empty field, or an empty string."""
    for name in fields:
        value = address.get(name)
        if value:
            return str(value)
    return ""


def extract_resolved_address(point: GeoPoint) -> ResolvedAddress:
    """Builds a ResolvedAddress from the structured address of a geocoder match."""
    address = point.raw_address or {}
    neighborhood = first_present(address, NEIGHBORHOOD_FIELDS)
    city = first_present(address, CITY_FIELDS)
    region = first_present(address, REGION_FIELDS)
    postal_code = first_present(address, POSTAL_CODE_FIELDS) or None
    full_text = ", ".join(part for part in (neighborhood, city, region) if part)
    return ResolvedAddress(
        postal_code=postal_code,
        neighborhood=neighborhood,
        city=city,
        region=region,
        full_text=full_text or point.display_name,
    )


def narrow_query(query: str) -> str | None:
    """
    Keeps only the last two comma-separated segments of a query, which for
    typical addresses approximates "city, region". Returns None when the
    query has no comma to narrow on.
    """
    if "," not in query:
        return None
    segments = [segment.strip() for segment in query.split(",")]
    return ", ".join(segments[-2:])


class DistanceResolutionEngine:
    """
    Orchestrates postal-code lookup, geocoding and routing for a pair of
    locations.

    Resolution of both endpoints is a hard requirement: if either one cannot
    be identified the result carries no distance and no addresses. Routing is
    a soft requirement: when it fails, the resolved addresses are still
    returned with `kilometers` left as None.
    """

    def __init__(self, geocoder: Geocoder, postal_lookup: PostalCodeLookup, router: Router):
        self.geocoder = geocoder
        self.postal_lookup = postal_lookup
        self.router = router

    def resolve_distance(self, origin: str, destination: str) -> DistanceResult:
        logger.info("Calculating distance between '%s' and '%s'", origin, destination)

        # 1) Postal codes are replaced by the directory's address text. A postal
        # code the directory cannot explain is unusable, never geocoded raw.
        origin_query, origin_resolved = self._expand_postal_code(origin, "origin")
        if origin_query is None:
            return DistanceResult(error=ResolutionError.POSTAL_CODE_UNRESOLVED)
        destination_query, destination_resolved = self._expand_postal_code(destination, "destination")
        if destination_query is None:
            return DistanceResult(error=ResolutionError.POSTAL_CODE_UNRESOLVED)

        # 2) Geocode both endpoints, narrowing once on failure.
        origin_point = self._locate(origin_query, "origin")
        if origin_point is None:
            return DistanceResult(error=ResolutionError.ADDRESS_UNRESOLVED)
        destination_point = self._locate(destination_query, "destination")
        if destination_point is None:
            return DistanceResult(error=ResolutionError.ADDRESS_UNRESOLVED)

        if origin_resolved is None:
            origin_resolved = extract_resolved_address(origin_point)
        if destination_resolved is None:
            destination_resolved = extract_resolved_address(destination_point)

        # 3) Routing failure still reports what the endpoints resolved to.
        kilometers = self.router.route_distance(origin_point, destination_point)
        if kilometers is None:
            logger.warning("No road route between '%s' and '%s'", origin_query, destination_query)
            return DistanceResult(
                origin_resolved=origin_resolved,
                destination_resolved=destination_resolved,
                error=ResolutionError.ROUTE_UNAVAILABLE,
            )

        return DistanceResult(
            kilometers=kilometers,
            origin_resolved=origin_resolved,
            destination_resolved=destination_resolved,
        )

    def _expand_postal_code(self, query: str, label: str) -> tuple[str | None, ResolvedAddress | None]:
        if not is_postal_code(query):
            return query, None
        resolved = self.postal_lookup.resolve_postal_code(query)
        if resolved is None or not resolved.full_text:
            logger.warning("Could not resolve %s postal code '%s'", label, query)
            return None, None
        return resolved.full_text, resolved

    def _locate(self, query: str, label: str) -> GeoPoint | None:
        point = self.geocoder.geocode(query)
        if point is not None:
            return point

        narrowed = narrow_query(query)
        if narrowed is None:
            logger.warning("Could not locate %s '%s'", label, query)
            return None

        logger.info("Retrying %s with narrowed query '%s'", label, narrowed)
        point = self.geocoder.geocode(narrowed)
        if point is None:
            logger.warning("Could not locate %s '%s' or '%s'", label, query, narrowed)
        return point
