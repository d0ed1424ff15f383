"""Markdown rendering of the ranked restaurant table."""

from typing import Iterable, List

from restaurant_inspections.models import Restaurant

HEADER = (
    "|Name|Infractions (Past Year)|Infractions (Total)"
    "|Outstanding Critical Infractions|Outstanding Non-Critical Infractions||"
)
DIVIDER = "|---|---|---|---|---|---|"


def _cell(value: str) -> str:
    return value.replace("|", "\\|").replace("\n", " ")


def format_row(restaurant: Restaurant) -> str:
    return (
        f"|{_cell(restaurant.name)}|{restaurant.infractions_past_year}|{restaurant.infractions_total}"
        f"|{restaurant.outstanding_critical}|{restaurant.outstanding_noncritical}"
        f"|[Details]({restaurant.detail_url})|"
    )


def render_report(restaurants: Iterable[Restaurant]) -> str:
    """Render a table row per restaurant, skipping those without inspections."""
    lines: List[str] = [HEADER, DIVIDER]
    lines.extend(format_row(restaurant) for restaurant in restaurants if restaurant.has_details)
    return "\n".join(lines) + "\n"
