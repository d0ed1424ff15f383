"""CLI job that refreshes inspection data and prints the ranked report."""

import argparse
import logging
import sys
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import List, Optional, Protocol, Sequence, Union

from bs4 import BeautifulSoup

from restaurant_inspections.core.config import ConfigError, Settings, get_settings
from restaurant_inspections.core.geocode import GeocodeCache, Geocoder, geocode_restaurants
from restaurant_inspections.core.scheduler import DetailFetchScheduler, FetchSummary
from restaurant_inspections.core.store import load_store, save_store
from restaurant_inspections.etl.filters import rank_by_recent_infractions, select_subset
from restaurant_inspections.etl.parser import apply_detail, parse_detail, parse_listing
from restaurant_inspections.etl.report import render_report
from restaurant_inspections.etl.stats import compute_infraction_stats
from restaurant_inspections.etl.transform import merge_listing
from restaurant_inspections.models import Restaurant, Store
from restaurant_inspections.vendors.mapquest import MapQuestGeocoder
from restaurant_inspections.vendors.vcha import InspectionsClient

logger = logging.getLogger(__name__)


class PageSource(Protocol):
    def get_page(self, url: str) -> BeautifulSoup: ...


@dataclass
class PipelineResult:
    report: str
    store: Store
    subset: List[Restaurant] = field(default_factory=list)
    fetch_summary: FetchSummary = field(default_factory=FetchSummary)


def fetch_listing(client: PageSource, listing_url: str) -> List[Restaurant]:
    return parse_listing(client.get_page(listing_url), listing_url)


def fetch_restaurant_detail(client: PageSource, restaurant: Restaurant) -> None:
    """Fetch and parse a detail page, then write it onto ``restaurant``."""
    detail = parse_detail(client.get_page(restaurant.detail_url))
    apply_detail(restaurant, detail)


def _save_quietly(store: Store, path: str) -> None:
    try:
        save_store(store, path)
    except Exception as exc:  # noqa: BLE001
        logger.error("Failed to save store to %s: %s", path, exc)


def run_pipeline(
    settings: Settings,
    client: PageSource,
    geocoder: Geocoder,
    *,
    force_refetch: bool = False,
    fetch_all_details: bool = False,
    as_of: Optional[Union[datetime, date]] = None,
) -> PipelineResult:
    """Load the store, refresh it, and render the report for the regional subset.

    The store is saved on the way out whether or not a stage failed; a save
    failure is only logged.
    """
    store = load_store(settings.db_path)
    try:
        if not store.restaurants or force_refetch:
            fresh = fetch_listing(client, settings.listing_url)
            store.restaurants = merge_listing(store.restaurants, fresh)

        cache = GeocodeCache(store.geocode_cache, geocoder)
        geocode_restaurants(store.restaurants, cache, settings.geocode_communities)

        subset = select_subset(store.restaurants, settings.border_longitude)
        logger.info("%d of %d restaurants are west of %s", len(subset), len(store.restaurants), settings.border_longitude)

        scheduler = DetailFetchScheduler(
            lambda restaurant: fetch_restaurant_detail(client, restaurant),
            workers=settings.workers,
            stop_worker_on_error=settings.stop_worker_on_error,
        )
        summary = scheduler.run(store.restaurants if fetch_all_details else subset, force_refetch=force_refetch)

        compute_infraction_stats(store.restaurants, as_of)
    finally:
        _save_quietly(store, settings.db_path)

    ranked = rank_by_recent_infractions(subset)
    return PipelineResult(report=render_report(ranked), store=store, subset=ranked, fetch_summary=summary)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Rank restaurants by food safety inspection results")
    parser.add_argument(
        "--refetch",
        action="store_true",
        help="Re-scrape the listing and re-fetch every detail page in scope",
    )
    parser.add_argument(
        "--all-details",
        dest="all_details",
        action="store_true",
        help="Fetch detail pages for every restaurant, not only the regional subset",
    )
    parser.add_argument("--db-path", dest="db_path", help="Store file (default: INSPECTIONS_DB_PATH)")
    parser.add_argument("--workers", type=int, help="Concurrent detail fetches (default: INSPECTIONS_WORKERS)")
    parser.add_argument("--output", help="Write the report to this file instead of stdout")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser


def _apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    overrides = {}
    if args.db_path:
        overrides["db_path"] = args.db_path
    if args.workers is not None:
        if args.workers < 1:
            raise ConfigError(f"--workers must be at least 1, got {args.workers}")
        overrides["workers"] = args.workers
    return replace(settings, **overrides) if overrides else settings


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )

    try:
        settings = _apply_overrides(get_settings(), args)
    except ConfigError as exc:
        logger.error("Configuration error: %s", exc)
        return 2

    client = InspectionsClient(session_cookie=settings.session_cookie, timeout=settings.request_timeout)
    geocoder = MapQuestGeocoder(settings.mapquest_api_key, timeout=settings.request_timeout)
    try:
        with client, geocoder:
            result = run_pipeline(
                settings,
                client,
                geocoder,
                force_refetch=args.refetch,
                fetch_all_details=args.all_details,
            )
    except Exception as exc:  # noqa: BLE001
        logger.error("Inspection run failed: %s", exc, exc_info=True)
        return 1

    if args.output:
        try:
            with open(args.output, "w", encoding="utf-8") as fh:
                fh.write(result.report)
        except OSError as exc:
            logger.error("Could not write report to %s: %s", args.output, exc)
            return 1
        logger.info("Wrote report for %d restaurants to %s", len(result.subset), args.output)
    else:
        sys.stdout.write(result.report)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
