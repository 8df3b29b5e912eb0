"""
Address geocoding through OpenStreetMap Nominatim.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

import requests

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 10  # seconds


class GeocodingError(Exception):
    pass


@dataclass
class GeocodeResult:
    lat: float
    lng: float
    display_name: Optional[str] = None

    def as_dict(self) -> dict:
        return {"lat": self.lat, "lng": self.lng, "display_name": self.display_name}


class Geocoder(Protocol):
    def geocode(self, address: str) -> Optional[GeocodeResult]:
        ...


@dataclass
class NominatimGeocoder:
    """
    Resolves free-text addresses with the Nominatim search API.

    Nominatim's usage policy requires an identifying User-Agent.
    """

    url: str
    user_agent: str

    def geocode(self, address: str) -> Optional[GeocodeResult]:
        """
        Look up `address` and return the best match.

        Args:
            address (str): The address to resolve.

        Returns:
            Optional[GeocodeResult]: The first hit, or None when nothing matched.

        Raises:
            GeocodingError: If the service cannot be reached or answers badly.
        """
        query = address.strip()
        if not query:
            return None
        try:
            response = requests.get(
                self.url,
                params={"format": "json", "q": query, "limit": 1},
                headers={"User-Agent": self.user_agent},
                timeout=REQUEST_TIMEOUT,
            )
            response.raise_for_status()
            results = response.json()
        except requests.RequestException as e:
            logger.warning("Geocoding request failed for %r: %s", query, e)
            raise GeocodingError(f"Geocoding failed: {e}") from e
        except ValueError as e:
            raise GeocodingError("Geocoding service returned invalid JSON") from e

        if not results:
            return None
        best = results[0]
        try:
            return GeocodeResult(
                lat=float(best["lat"]),
                lng=float(best["lon"]),
                display_name=best.get("display_name"),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise GeocodingError("Geocoding service returned an invalid result") from e
