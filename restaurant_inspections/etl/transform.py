"""Utilities for carrying previously fetched data across a listing refresh."""

import logging
from typing import Dict, Iterable, List

from restaurant_inspections.models import Restaurant

logger = logging.getLogger(__name__)


def index_by_id(restaurants: Iterable[Restaurant]) -> Dict[str, Restaurant]:
    indexed: Dict[str, Restaurant] = {}
    for restaurant in restaurants:
        if not restaurant.id:
            continue
        if restaurant.id in indexed:
            logger.debug("Duplicate restaurant id %s; keeping first record", restaurant.id)
            continue
        indexed[restaurant.id] = restaurant
    return indexed


def merge_listing(previous: Iterable[Restaurant], fresh: List[Restaurant]) -> List[Restaurant]:
    """Return ``fresh`` with detail data and location copied over from ``previous``.

    Records are joined on their stable ``id``. Listing fields always come from
    the fresh record; the inspection history, outstanding counts and location
    come from the old one. Restaurants absent from the fresh listing are dropped.
    """
    known = index_by_id(previous)
    carried = 0
    for restaurant in fresh:
        old = known.get(restaurant.id)
        if old is None:
            continue
        restaurant.inspections = list(old.inspections)
        restaurant.outstanding_noncritical = old.outstanding_noncritical
        restaurant.outstanding_critical = old.outstanding_critical
        if old.address == restaurant.address:
            restaurant.location = old.location
        carried += 1
    logger.info("Listing refresh: %d restaurants, %d carried over from previous store", len(fresh), carried)
    return fresh
