# Contains the adapter classes for communicating with external geocoding,
# postal-code and routing APIs.

import logging
import os
import re
from abc import ABC, abstractmethod

import requests
from dotenv import load_dotenv

from trip_structures import GeoPoint, ResolvedAddress

logger = logging.getLogger(__name__)

# --- API Configuration ---
# Endpoints and limits are read from environment variables so any service
# speaking the same protocol can be substituted.
load_dotenv()
NOMINATIM_URL = os.getenv("NOMINATIM_URL", "https://nominatim.openstreetmap.org/search")
VIACEP_URL = os.getenv("VIACEP_URL", "https://viacep.com.br/ws/{cep}/json/")
OSRM_URL = os.getenv("OSRM_URL", "https://router.project-osrm.org/route/v1/driving/{coordinates}")
GEOCODER_COUNTRY_CODES = os.getenv("GEOCODER_COUNTRY_CODES", "br")
GEOCODER_LANGUAGE = os.getenv("GEOCODER_LANGUAGE", "pt-BR")
HTTP_USER_AGENT = os.getenv("HTTP_USER_AGENT", "TripCostPlanner/1.0")

DEFAULT_TIMEOUT_SEC = 10.0


def _read_timeout() -> float:
    raw = os.getenv("HTTP_TIMEOUT_SEC")
    if not raw:
        return DEFAULT_TIMEOUT_SEC
    try:
        timeout = float(raw)
    except ValueError:
        logger.warning("Ignoring invalid HTTP_TIMEOUT_SEC=%r, using %ss", raw, DEFAULT_TIMEOUT_SEC)
        return DEFAULT_TIMEOUT_SEC
    if timeout <= 0:
        logger.warning("Ignoring non-positive HTTP_TIMEOUT_SEC=%r, using %ss", raw, DEFAULT_TIMEOUT_SEC)
        return DEFAULT_TIMEOUT_SEC
    return timeout


HTTP_TIMEOUT_SEC = _read_timeout()

POSTAL_CODE_LENGTH = 8


def normalize_postal_code(code: str | None) -> str:
    """Strips everything but digits, e.g. '01310-100' -> '01310100'."""
    return re.sub(r"\D", "", code or "")


class Geocoder(ABC):
    """Blueprint for any free-text place search service."""
    @abstractmethod
    def geocode(self, query: str) -> GeoPoint | None:
        """Converts a free-text query into our standard GeoPoint object."""
        pass


class PostalCodeLookup(ABC):
    """Blueprint for any postal-code directory service."""
    @abstractmethod
    def resolve_postal_code(self, code: str) -> ResolvedAddress | None:
        """Converts a postal code into our standard ResolvedAddress object."""
        pass


class Router(ABC):
    """Blueprint for any driving-directions service."""
    @abstractmethod
    def route_distance(self, start: GeoPoint, end: GeoPoint) -> float | None:
        """Returns the road distance between two points in kilometers."""
        pass


class NominatimAdapter(Geocoder):
    """The adapter for the OpenStreetMap Nominatim search API."""

    def __init__(self, url: str = NOMINATIM_URL, country_codes: str = GEOCODER_COUNTRY_CODES,
                 language: str = GEOCODER_LANGUAGE, timeout: float = HTTP_TIMEOUT_SEC):
        if not url:
            raise ValueError("FATAL ERROR: The NOMINATIM_URL environment variable is empty.")
        self.url = url
        self.country_codes = country_codes
        self.language = language
        self.timeout = timeout

    def geocode(self, query: str) -> GeoPoint | None:
        logger.debug("[Nominatim] Geocoding query: '%s'", query)
        params = {
            'q': query,
            'format': 'json',
            'addressdetails': '1',
            'limit': '1',
            'countrycodes': self.country_codes,
        }
        headers = {'Accept-Language': self.language, 'User-Agent': HTTP_USER_AGENT}
        try:
            response = requests.get(self.url, params=params, headers=headers, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
            if not isinstance(data, list) or not data:
                logger.info("[Nominatim] No match for query: '%s'", query)
                return None
            top = data[0]
            # *** NORMALIZATION to our standard GeoPoint object ***
            point = GeoPoint(
                latitude=float(top['lat']),
                longitude=float(top['lon']),
                raw_address=top.get('address') or {},
                display_name=top.get('display_name') or "",
            )
        except requests.exceptions.RequestException as e:
            logger.error("[Nominatim] Request failed for '%s': %s", query, e)
            return None
        except (KeyError, IndexError, TypeError, ValueError) as e:
            logger.error("[Nominatim] Could not parse response for '%s': %s", query, e)
            return None

        if not point.in_range():
            logger.warning("[Nominatim] Out-of-range coordinates for '%s': %s, %s",
                           query, point.latitude, point.longitude)
            return None
        return point


class ViaCepAdapter(PostalCodeLookup):
    """The adapter for the ViaCEP Brazilian postal-code directory."""

    def __init__(self, url: str = VIACEP_URL, timeout: float = HTTP_TIMEOUT_SEC):
        if "{cep}" not in url:
            raise ValueError("FATAL ERROR: VIACEP_URL must contain a '{cep}' placeholder.")
        self.url = url
        self.timeout = timeout

    def resolve_postal_code(self, code: str) -> ResolvedAddress | None:
        digits = normalize_postal_code(code)
        if len(digits) != POSTAL_CODE_LENGTH:
            logger.debug("[ViaCEP] '%s' is not an %d-digit postal code, skipping lookup",
                         code, POSTAL_CODE_LENGTH)
            return None

        logger.debug("[ViaCEP] Looking up postal code: %s", digits)
        try:
            response = requests.get(self.url.format(cep=digits), timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
            if data.get('erro'):
                logger.info("[ViaCEP] Postal code not found: %s", digits)
                return None
            street = data.get('logradouro') or ""
            neighborhood = data.get('bairro') or ""
            city = data.get('localidade') or ""
            region = data.get('uf') or ""
        except requests.exceptions.RequestException as e:
            logger.error("[ViaCEP] Request failed for %s: %s", digits, e)
            return None
        except (AttributeError, TypeError, ValueError) as e:
            logger.error("[ViaCEP] Could not parse response for %s: %s", digits, e)
            return None

        full_text = ", ".join(part for part in (street, neighborhood, city, region) if part)
        if not full_text:
            logger.warning("[ViaCEP] Postal code %s matched but has no address fields", digits)
            return None
        return ResolvedAddress(
            postal_code=digits,
            neighborhood=neighborhood,
            city=city,
            region=region,
            full_text=full_text,
        )


class OsrmAdapter(Router):
    """The adapter for the OSRM driving route service."""

    def __init__(self, url: str = OSRM_URL, timeout: float = HTTP_TIMEOUT_SEC):
        if "{coordinates}" not in url:
            raise ValueError("FATAL ERROR: OSRM_URL must contain a '{coordinates}' placeholder.")
        self.url = url
        self.timeout = timeout

    def route_distance(self, start: GeoPoint, end: GeoPoint) -> float | None:
        # OSRM expects longitude first.
        coordinates = f"{start.longitude},{start.latitude};{end.longitude},{end.latitude}"
        logger.debug("[OSRM] Routing between %s", coordinates)
        try:
            response = requests.get(self.url.format(coordinates=coordinates),
                                    params={'overview': 'false'}, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
            if data.get('code') != 'Ok' or not data.get('routes'):
                logger.warning("[OSRM] No route for %s. Code: %s", coordinates, data.get('code'))
                return None
            meters = float(data['routes'][0]['distance'])
        except requests.exceptions.RequestException as e:
            logger.error("[OSRM] Request failed for %s: %s", coordinates, e)
            return None
        except (AttributeError, KeyError, IndexError, TypeError, ValueError) as e:
            logger.error("[OSRM] Could not parse response for %s: %s", coordinates, e)
            return None

        kilometers = meters / 1000
        logger.info("[OSRM] Road distance: %.1f km", kilometers)
        return kilometers
