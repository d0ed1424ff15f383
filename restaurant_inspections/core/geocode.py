"""Address geocoding backed by the store's persistent cache."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Protocol, Sequence, Tuple

from restaurant_inspections.models import Coordinate, Restaurant

logger = logging.getLogger(__name__)


class EmptyAddressError(ValueError):
    """Raised when a blank address is submitted for geocoding."""


class Geocoder(Protocol):
    def geocode(self, address: str) -> Tuple[float, float]: ...


def normalize_address(address: str) -> str:
    """Collapse multi-line site addresses into a single comma separated line."""
    return ", ".join(address.split("\n"))


class GeocodeCache:
    """Memoize geocoder lookups in ``entries`` (normally ``Store.geocode_cache``).

    Entries are never evicted; the mapping is saved together with the store.
    Not thread-safe: only the sequential geocoding pass may call ``resolve``.
    """

    def __init__(self, entries: Dict[str, Coordinate], geocoder: Geocoder) -> None:
        self.entries = entries
        self.geocoder = geocoder
        self.hits = 0
        self.misses = 0

    def resolve(self, address: str) -> Coordinate:
        if not address or not address.strip():
            raise EmptyAddressError("address empty")

        key = normalize_address(address)
        cached = self.entries.get(key)
        if cached is not None:
            self.hits += 1
            return cached

        self.misses += 1
        logger.info("Geocoding %s", key)
        latitude, longitude = self.geocoder.geocode(key)
        coordinate = Coordinate(latitude=float(latitude), longitude=float(longitude))
        self.entries[key] = coordinate
        return coordinate


def geocode_restaurants(
    restaurants: Sequence[Restaurant],
    cache: GeocodeCache,
    communities: Iterable[str] = (),
) -> int:
    """Assign a location to every restaurant in ``communities`` (all when empty).

    The first failure aborts the pass. Returns the number of restaurants coded.
    """
    wanted = set(communities)
    logger.info("Geocoding %d restaurants...", len(restaurants))
    coded = 0
    for index, restaurant in enumerate(restaurants):
        if wanted and restaurant.community not in wanted:
            continue
        logger.debug("Coding %d (%s)", index, restaurant.name)
        restaurant.location = cache.resolve(restaurant.address)
        coded += 1
    logger.info("Geocoded %d restaurants (cache hits=%d misses=%d)", coded, cache.hits, cache.misses)
    return coded
