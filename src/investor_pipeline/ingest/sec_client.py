"""Throttled access to the SEC EDGAR full-text search and filing archives.

SEC asks automated clients to identify themselves with a User-Agent that
contains contact details and to stay under 10 requests per second. Every
request goes through `SecClient`, which enforces a minimum interval
between consecutive requests; at most one request is in flight.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Callable

import requests  # type: ignore[import-untyped]

log = logging.getLogger(__name__)

SEARCH_URL = "https://efts.sec.gov/LATEST/search-index"
ARCHIVES_BASE = "https://www.sec.gov/Archives/edgar/data"
BROWSE_URL = (
    "https://www.sec.gov/cgi-bin/browse-edgar?action=getcompany"
    "&CIK={cik}&type=D&dateb=&owner=include&count=10"
)
FORM_TYPES = "D,D/A"
PAGE_SIZE = 50
ACCEPT = "application/json,application/xml,text/xml,*/*"


class SecClient:
    """Sequential HTTP client with a floor on time between requests.

    Args:
        user_agent: Identifying User-Agent (name + contact email).
        min_interval: Minimum seconds between the start of two requests.
        timeout: Socket timeout in seconds.
        session: Optional preconfigured `requests.Session`.
    """

    def __init__(
        self,
        user_agent: str,
        min_interval: float = 0.12,
        timeout: float = 30.0,
        session: requests.Session | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.min_interval = min_interval
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": user_agent, "Accept": ACCEPT})
        self._clock = clock
        self._sleep = sleep
        self._last_request: float | None = None

    def __enter__(self) -> "SecClient":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def close(self) -> None:
        self.session.close()

    def _throttle(self) -> None:
        if self._last_request is not None:
            wait = self.min_interval - (self._clock() - self._last_request)
            if wait > 0:
                self._sleep(wait)
        self._last_request = self._clock()

    def get_text(self, url: str, params: dict[str, Any] | None = None) -> str:
        """GET `url` and return the body.

        Raises:
            requests.RequestException: on network errors, timeouts and
                non-2xx responses.
        """
        self._throttle()
        log.debug("GET %s %s", url, params or "")
        r = self.session.get(url, params=params, timeout=self.timeout)
        r.raise_for_status()
        return r.text

    def get_json(self, url: str, params: dict[str, Any] | None = None) -> Any:
        return json.loads(self.get_text(url, params=params))


def primary_doc_url(cik: str, accession_number: str) -> str:
    """Return the Form D primary document URL for a filer/accession pair.

    Args:
        cik: Filer CIK, zero padded or not.
        accession_number: Accession number with or without dashes.
    """
    cik_clean = cik.lstrip("0") or "0"
    return f"{ARCHIVES_BASE}/{cik_clean}/{accession_number.replace('-', '')}/primary_doc.xml"


def company_browse_url(cik: str | None) -> str:
    return BROWSE_URL.format(cik=cik or "")


def search_form_d(
    client: SecClient,
    start_date: str,
    end_date: str,
    max_results: int = 500,
    page_size: int = PAGE_SIZE,
) -> list[dict[str, Any]]:
    """Page through the full-text search index for Form D filings.

    A failing page ends pagination; the hits collected so far are returned.

    Args:
        client: Throttled SEC client.
        start_date: ISO start date (inclusive).
        end_date: ISO end date (inclusive).
        max_results: Cap on the number of hits to request.
        page_size: Hits per page.

    Returns:
        Raw search hits (each with an `_source` mapping).
    """
    hits: list[dict[str, Any]] = []
    offset = 0

    while offset < max_results:
        size = min(page_size, max_results - offset)
        params = {
            "forms": FORM_TYPES,
            "dateRange": "custom",
            "startdt": start_date,
            "enddt": end_date,
            "from": offset,
            "size": size,
        }
        log.info("Fetching search results %d-%d...", offset, offset + size)
        try:
            data = client.get_json(SEARCH_URL, params=params)
        except (requests.RequestException, ValueError) as e:
            log.error("Search error at offset %d: %s", offset, e)
            break

        page = (data.get("hits") or {}).get("hits") or []
        if not page:
            break
        hits.extend(page)
        offset += size

        total = ((data.get("hits") or {}).get("total") or {}).get("value") or 0
        if offset >= total:
            break

    return hits[:max_results]
