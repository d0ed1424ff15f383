"""Application configuration helpers."""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Tuple

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_LISTING_URL = (
    "https://inspections.vcha.ca/FoodPremises/Table?SortMode=FacilityName&page=1&PageSize=100000"
)
DEFAULT_DB_PATH = "restaurants.json"
DEFAULT_BORDER_LONGITUDE = -123.227883
DEFAULT_WORKERS = 16
DEFAULT_GEOCODE_COMMUNITIES = ("Vancouver - Westside",)


class ConfigError(RuntimeError):
    """Raised when configuration values cannot be interpreted."""


@dataclass(frozen=True)
class Settings:
    listing_url: str = DEFAULT_LISTING_URL
    db_path: str = DEFAULT_DB_PATH
    border_longitude: float = DEFAULT_BORDER_LONGITUDE
    workers: int = DEFAULT_WORKERS
    stop_worker_on_error: bool = True
    geocode_communities: Tuple[str, ...] = DEFAULT_GEOCODE_COMMUNITIES
    session_cookie: str = ""
    request_timeout: Optional[float] = None
    mapquest_api_key: str = ""


def _env_number(name: str, default, cast):
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return cast(raw.strip())
    except ValueError as exc:
        raise ConfigError(f"{name} must be a valid {cast.__name__}, got {raw!r}") from exc


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes"}


def _env_list(name: str, default: Tuple[str, ...]) -> Tuple[str, ...]:
    raw = os.getenv(name)
    if raw is None:
        return default
    return tuple(part.strip() for part in raw.split(",") if part.strip())


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from environment variables with sensible defaults."""
    load_dotenv()

    listing_url = os.getenv("INSPECTIONS_LISTING_URL") or DEFAULT_LISTING_URL
    db_path = os.getenv("INSPECTIONS_DB_PATH") or DEFAULT_DB_PATH
    border_longitude = _env_number("INSPECTIONS_BORDER_LNG", DEFAULT_BORDER_LONGITUDE, float)
    workers = _env_number("INSPECTIONS_WORKERS", DEFAULT_WORKERS, int)
    stop_worker_on_error = _env_flag("INSPECTIONS_STOP_WORKER_ON_ERROR", True)
    geocode_communities = _env_list("INSPECTIONS_GEOCODE_COMMUNITIES", DEFAULT_GEOCODE_COMMUNITIES)
    session_cookie = os.getenv("INSPECTIONS_SESSION_COOKIE", "")
    request_timeout = _env_number("INSPECTIONS_REQUEST_TIMEOUT", None, float)
    mapquest_api_key = os.getenv("MAPQUEST_API_KEY", "")

    if workers < 1:
        raise ConfigError(f"INSPECTIONS_WORKERS must be at least 1, got {workers}")
    if not mapquest_api_key:
        logger.warning("MAPQUEST_API_KEY is not configured; uncached geocoding requests will fail.")

    return Settings(
        listing_url=listing_url,
        db_path=db_path,
        border_longitude=border_longitude,
        workers=workers,
        stop_worker_on_error=stop_worker_on_error,
        geocode_communities=geocode_communities,
        session_cookie=session_cookie,
        request_timeout=request_timeout,
        mapquest_api_key=mapquest_api_key,
    )
