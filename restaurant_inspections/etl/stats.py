"""Infraction statistics derived from each restaurant's inspection history."""

from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, Optional, Union

from restaurant_inspections.models import Restaurant

INSPECTION_DATE_FORMAT = "%d-%b-%Y"


class DateParseError(ValueError):
    """Raised when an inspection date does not match ``DD-Mon-YYYY``."""


def parse_inspection_date(raw: str) -> datetime:
    try:
        return datetime.strptime(raw, INSPECTION_DATE_FORMAT)
    except (TypeError, ValueError) as exc:
        raise DateParseError(f"cannot parse inspection date {raw!r}") from exc


def one_year_before(moment: datetime) -> datetime:
    # 29 February rolls forward to 1 March.
    try:
        return moment.replace(year=moment.year - 1)
    except ValueError:
        return moment.replace(year=moment.year - 1, month=3, day=1)


def compute_infraction_stats(
    restaurants: Iterable[Restaurant],
    as_of: Optional[Union[datetime, date]] = None,
) -> None:
    """Recompute ``infractions_total`` and ``infractions_past_year`` in place.

    An inspection counts toward the past year when its date is strictly after
    ``as_of`` minus one year. A single unparseable date aborts the whole pass
    with ``DateParseError``.
    """
    if as_of is None:
        as_of = datetime.now()
    elif not isinstance(as_of, datetime):
        as_of = datetime(as_of.year, as_of.month, as_of.day)
    cutoff = one_year_before(as_of.replace(tzinfo=None))

    for restaurant in restaurants:
        past_year = 0
        total = 0
        for inspection in restaurant.inspections:
            inspected_on = parse_inspection_date(inspection.date)
            if inspected_on > cutoff:
                past_year += inspection.infractions
            total += inspection.infractions
        restaurant.infractions_past_year = past_year
        restaurant.infractions_total = total
