"""Regional selection of restaurants by coordinate."""

from typing import Iterable, List

from restaurant_inspections.models import Restaurant


def select_subset(restaurants: Iterable[Restaurant], threshold: float) -> List[Restaurant]:
    """Restaurants strictly west of ``threshold`` longitude, in input order.

    Ungeocoded restaurants sit at longitude 0 and only pass when 0 does.
    """
    return [restaurant for restaurant in restaurants if restaurant.location.longitude < threshold]


def rank_by_recent_infractions(restaurants: Iterable[Restaurant]) -> List[Restaurant]:
    """Fewest past-year infractions first; ties keep their listing order."""
    return sorted(restaurants, key=lambda restaurant: restaurant.infractions_past_year)
