"""HTTP client for the Vancouver Coastal Health food premises site."""

import logging
from typing import Optional

import requests
from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

USER_AGENT = "RestaurantInspectionsBot/1.0"
SESSION_COOKIE_NAME = "ASP.NET_SessionId"


class InspectionsClient:
    """Fetch listing and detail pages and hand them back as parsed documents."""

    def __init__(
        self,
        *,
        session: Optional[requests.Session] = None,
        session_cookie: str = "",
        timeout: Optional[float] = None,
    ) -> None:
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": USER_AGENT, "Accept": "text/html,application/xhtml+xml"})
        if session_cookie:
            self.session.cookies.set(SESSION_COOKIE_NAME, session_cookie)
        self.timeout = timeout

    def get_page(self, url: str) -> BeautifulSoup:
        logger.info("Fetching: %s", url)
        response = self.session.get(url, timeout=self.timeout)
        response.raise_for_status()
        return BeautifulSoup(response.text, "html.parser")

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "InspectionsClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
