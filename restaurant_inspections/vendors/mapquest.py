"""Client for the MapQuest geocoding API."""

import logging
from typing import Any, Dict, Optional, Tuple

import requests

logger = logging.getLogger(__name__)
_BASE_URL = "https://www.mapquestapi.com/geocoding/v1"


class GeocodingError(RuntimeError):
    """Raised when MapQuest cannot resolve an address."""


class MapQuestGeocoder:
    def __init__(
        self,
        api_key: str,
        *,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.api_key = api_key
        self.session = session or requests.Session()
        self.timeout = timeout

    def geocode(self, address: str) -> Tuple[float, float]:
        if not self.api_key:
            raise GeocodingError("MAPQUEST_API_KEY is required to geocode uncached addresses")

        params = {"key": self.api_key, "location": address, "maxResults": 1}
        response = self.session.get(f"{_BASE_URL}/address", params=params, timeout=self.timeout)
        response.raise_for_status()
        payload = response.json()

        info = payload.get("info") or {}
        status = info.get("statuscode", 0)
        if status != 0:
            messages = info.get("messages") or []
            logger.error("geocode failed: status=%s, messages=%s", status, messages)
            raise GeocodingError("; ".join(messages) or f"status {status}")

        lat_lng = _first_lat_lng(payload)
        if lat_lng is None:
            raise GeocodingError(f"no geocoding results for {address!r}")
        return float(lat_lng["lat"]), float(lat_lng["lng"])

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "MapQuestGeocoder":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def _first_lat_lng(payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    for result in payload.get("results") or []:
        for location in result.get("locations") or []:
            lat_lng = location.get("latLng")
            if lat_lng and "lat" in lat_lng and "lng" in lat_lng:
                return lat_lng
    return None
