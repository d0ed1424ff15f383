"""Schema driven extraction of listing and detail pages."""

from __future__ import annotations

import logging
import posixpath
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup

from restaurant_inspections.models import Inspection, Restaurant

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FieldSpec:
    """Where a field lives inside a row: a CSS selector and/or an attribute.

    Without a selector the row element itself is read. Without an attribute
    the element text is read.
    """

    selector: Optional[str] = None
    attribute: Optional[str] = None


@dataclass(frozen=True)
class RowSchema:
    row_selector: str
    fields: Mapping[str, FieldSpec] = field(default_factory=dict)


LISTING_SCHEMA = RowSchema(
    row_selector="tr.hovereffect",
    fields={
        "name": FieldSpec(".facilityName"),
        "facility_type": FieldSpec(".facilityType"),
        "community": FieldSpec(".community"),
        "address": FieldSpec(".siteAddress"),
        "phone": FieldSpec(".phoneNumber"),
        "detail_link": FieldSpec(attribute="onclick"),
    },
)

DETAIL_SUMMARY_SCHEMA = RowSchema(
    row_selector="tr.nozebrastripes",
    fields={
        "label": FieldSpec(".display-label"),
        "value": FieldSpec(".display-field"),
    },
)

DETAIL_INSPECTION_SCHEMA = RowSchema(
    row_selector="tr.hovereffect",
    fields={
        "date": FieldSpec(".inspectionDate"),
        "identifier": FieldSpec(".inspectionNumber"),
        "reason": FieldSpec(".inspectionType"),
        "critical": FieldSpec(".criticalInfractionsCount"),
        "noncritical": FieldSpec(".nonCriticalInfractionsCount"),
    },
)

OUTSTANDING_NONCRITICAL_LABEL = "Outstanding Non-Critical Infractions"
OUTSTANDING_CRITICAL_LABEL = "Outstanding Critical Infractions"


class PageParseError(ValueError):
    """Raised when a page row is missing data the pipeline depends on."""


@dataclass(slots=True)
class DetailPage:
    outstanding_noncritical: int = 0
    outstanding_critical: int = 0
    inspections: List[Inspection] = field(default_factory=list)


def parse_rows(soup: BeautifulSoup, schema: RowSchema) -> List[Dict[str, str]]:
    """Return one ``field -> text`` mapping per row matched by ``schema``."""
    rows: List[Dict[str, str]] = []
    for row in soup.select(schema.row_selector):
        values: Dict[str, str] = {}
        for name, spec in schema.fields.items():
            node = row.select_one(spec.selector) if spec.selector else row
            if node is None:
                values[name] = ""
            elif spec.attribute:
                values[name] = str(node.get(spec.attribute) or "").strip()
            else:
                values[name] = node.get_text().strip()
        rows.append(values)
    return rows


def parse_count(raw: str, *, context: str = "") -> int:
    """Interpret an infraction count, logging and returning 0 unless it is a non-negative integer."""
    try:
        count = int(raw.strip())
    except (AttributeError, ValueError):
        count = -1
    if count < 0:
        logger.warning("Invalid infraction count %r%s; using 0", raw, f" ({context})" if context else "")
        return 0
    return count


def extract_detail_path(onclick: str) -> str:
    """Pull the quoted detail URL out of a row's ``onclick`` handler."""
    parts = onclick.split("'")
    if len(parts) < 2 or not parts[1]:
        raise PageParseError(f"no detail link in onclick handler {onclick!r}")
    return parts[1]


def restaurant_id_from_url(url: str) -> str:
    return posixpath.basename(urlparse(url).path.rstrip("/"))


def parse_listing(soup: BeautifulSoup, base_url: str) -> List[Restaurant]:
    """Build restaurant records from the listing table, in page order.

    Rows without a usable detail link are logged and skipped.
    """
    restaurants: List[Restaurant] = []
    for row in parse_rows(soup, LISTING_SCHEMA):
        try:
            path = extract_detail_path(row["detail_link"])
        except PageParseError as exc:
            logger.warning("Skipping listing row %r: %s", row["name"], exc)
            continue
        detail_url = urljoin(base_url, path)
        restaurants.append(
            Restaurant(
                id=restaurant_id_from_url(path),
                name=row["name"],
                facility_type=row["facility_type"],
                community=row["community"],
                address=row["address"],
                phone=row["phone"],
                detail_url=detail_url,
            )
        )
    logger.info("Parsed %d restaurants from listing", len(restaurants))
    return restaurants


def _parse_outstanding(soup: BeautifulSoup) -> Tuple[int, int]:
    noncritical = 0
    critical = 0
    for row in parse_rows(soup, DETAIL_SUMMARY_SCHEMA):
        if row["label"] == OUTSTANDING_NONCRITICAL_LABEL:
            noncritical = parse_count(row["value"], context=row["label"])
        elif row["label"] == OUTSTANDING_CRITICAL_LABEL:
            critical = parse_count(row["value"], context=row["label"])
    return noncritical, critical


def parse_detail(soup: BeautifulSoup) -> DetailPage:
    noncritical, critical = _parse_outstanding(soup)
    inspections = [
        Inspection(
            date=row["date"],
            identifier=row["identifier"],
            reason=row["reason"],
            critical_count=parse_count(row["critical"], context=f"inspection {row['identifier']}"),
            noncritical_count=parse_count(row["noncritical"], context=f"inspection {row['identifier']}"),
        )
        for row in parse_rows(soup, DETAIL_INSPECTION_SCHEMA)
    ]
    return DetailPage(
        outstanding_noncritical=noncritical,
        outstanding_critical=critical,
        inspections=inspections,
    )


def apply_detail(restaurant: Restaurant, detail: DetailPage) -> None:
    """Write a parsed detail page onto its restaurant record."""
    restaurant.outstanding_noncritical = detail.outstanding_noncritical
    restaurant.outstanding_critical = detail.outstanding_critical
    restaurant.inspections = list(detail.inspections)
