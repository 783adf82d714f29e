"""JSearch API (RapidAPI) client."""
from __future__ import annotations

from typing import Any

import requests

from nejobs.errors import (
    AuthenticationError,
    ConfigurationError,
    MalformedResponseError,
    RateLimitedError,
    TransientSearchError,
)
from nejobs.log import get_logger
from nejobs.models import Listing

log = get_logger(__name__)

RATE_LIMIT_STATUS = 429
AUTH_STATUSES = (401, 403)


def parse_listings(payload: Any) -> list[Listing]:
    """Listings under ``data``; anything else is a malformed response."""
    if not isinstance(payload, dict) or not isinstance(payload.get("data"), list):
        raise MalformedResponseError("Response has no 'data' listing array")
    listings: list[Listing] = []
    for hit in payload["data"]:
        if not isinstance(hit, dict) or not hit.get("job_id"):
            log.debug("Skipping hit without job_id")
            continue
        listings.append(Listing.from_api(hit))
    return listings


class JSearchClient:
    BASE = "https://jsearch.p.rapidapi.com"
    HOST = "jsearch.p.rapidapi.com"

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = BASE,
        host: str = HOST,
        timeout: float = 15.0,
        session: requests.Session | None = None,
    ) -> None:
        self.api_key = (api_key or "").strip()
        self.base_url = base_url.rstrip("/")
        self.host = host
        self.timeout = timeout
        self.session = session or requests.Session()

    def fetch(self, endpoint: str, params: dict[str, str]) -> dict[str, Any]:
        """One GET against the API; returns the decoded JSON body."""
        if not self.api_key:
            raise ConfigurationError("API key not configured. Please add your RapidAPI key.")

        url = f"{self.base_url}/{endpoint.strip('/')}"
        try:
            r = self.session.get(
                url,
                params=params,
                headers={
                    "X-RapidAPI-Key": self.api_key,
                    "X-RapidAPI-Host": self.host,
                },
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise TransientSearchError(f"Network error: {exc}") from exc

        if r.status_code == RATE_LIMIT_STATUS:
            raise RateLimitedError("JSearch rate limit reached (HTTP 429).")
        if r.status_code in AUTH_STATUSES:
            log.warning("JSearch %d: check your key at https://rapidapi.com/letscrape-6bRDu3Sgupt/api/jsearch",
                        r.status_code)
            raise AuthenticationError(status_code=r.status_code)
        if not r.ok:
            raise TransientSearchError(
                f"API request failed ({r.status_code}). Please try again.",
                status_code=r.status_code,
            )

        try:
            return r.json()
        except ValueError as exc:
            raise MalformedResponseError(f"Response is not valid JSON: {exc}") from exc

    def search(self, params: dict[str, str]) -> list[Listing]:
        return parse_listings(self.fetch("search", params))
