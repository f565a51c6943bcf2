"""HTTP client for the MusicBrainz web service (version 2, JSON)."""

from __future__ import annotations

import logging
import time
from typing import Any

import requests

from music_matcher import __version__
from music_matcher.catalog.ratelimit import RateLimiter
from music_matcher.exceptions import (
    CatalogConnectionError,
    CatalogError,
    CatalogParseError,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://musicbrainz.org/ws/2"
DEFAULT_USER_AGENT = f"music-matcher/{__version__} ( https://musicbrainz.org )"
DEFAULT_TIMEOUT = 30
DEFAULT_SEARCH_LIMIT = 25

_MAX_RETRIES = 3
_BACKOFF_BASE = 2.0  # seconds

_RELEASE_INCLUDES = "recordings+artist-credits+release-groups"


class MusicBrainzClient:
    """Client for release lookups and recording searches.

    Every request, retries included, passes through the shared rate
    limiter first.

    Args:
        limiter: Request gate shared by all users of the web service.
        base_url: Web service root.
        user_agent: User-Agent header; MusicBrainz requires a meaningful one.
        timeout: Per-request timeout in seconds.
    """

    def __init__(
        self,
        limiter: RateLimiter | None = None,
        base_url: str = DEFAULT_BASE_URL,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._limiter = limiter or RateLimiter()
        self._session = requests.Session()
        self._session.headers.update({"User-Agent": user_agent, "Accept": "application/json"})

    def _request(self, url: str, params: dict[str, Any] | None = None) -> requests.Response:
        """Make a GET request with retry and backoff logic.

        Handles HTTP 429 (rate limited) and 503 (service unavailable)
        with exponential backoff.

        Args:
            url: Request URL.
            params: Optional query parameters.

        Returns:
            The HTTP response.

        Raises:
            CatalogConnectionError: If the service cannot be reached.
            CatalogError: If max retries exceeded or the request is rejected.
        """
        for attempt in range(_MAX_RETRIES):
            self._limiter.wait()
            logger.info("Connecting to MusicBrainz: %s %s", url, params or "")

            try:
                resp = self._session.get(url, params=params, timeout=self.timeout)
            except requests.RequestException as e:
                if attempt == _MAX_RETRIES - 1:
                    raise CatalogConnectionError(
                        f"Request to {url} failed after {_MAX_RETRIES} attempts: {e}"
                    ) from e
                wait = _BACKOFF_BASE * (2**attempt)
                logger.warning("Request failed, retrying in %.1fs: %s", wait, e)
                time.sleep(wait)
                continue

            if resp.status_code in (429, 503):
                if attempt == _MAX_RETRIES - 1:
                    raise CatalogError(
                        f"Rate limited after {_MAX_RETRIES} retries (HTTP {resp.status_code}). "
                        f"Try again later."
                    )
                retry_after = resp.headers.get("Retry-After")
                if retry_after:
                    try:
                        wait = max(float(retry_after), _BACKOFF_BASE)
                    except ValueError:
                        wait = _BACKOFF_BASE * (2**attempt)
                else:
                    wait = _BACKOFF_BASE * (2**attempt)
                logger.warning(
                    "Rate limit detected (HTTP %d), waiting %.1fs...",
                    resp.status_code,
                    wait,
                )
                time.sleep(wait)
                continue

            try:
                resp.raise_for_status()
            except requests.HTTPError as e:
                raise CatalogError(f"Request to {url} failed: {e}") from e
            return resp

        raise CatalogError(f"Request to {url} failed unexpectedly")  # pragma: no cover

    def _get_json(self, url: str, params: dict[str, Any]) -> dict[str, Any]:
        resp = self._request(url, params={**params, "fmt": "json"})
        try:
            data = resp.json()
        except ValueError as e:
            raise CatalogParseError(url, f"Invalid JSON: {e}", resp.text[:500]) from e
        if not isinstance(data, dict):
            raise CatalogParseError(url, "expected a JSON object", resp.text[:500])
        return data

    def lookup_release(self, release_id: str) -> dict[str, Any]:
        """Fetch a release with its tracks, artist credits and release group.

        Args:
            release_id: MusicBrainz release identifier.

        Returns:
            The release JSON object.
        """
        url = f"{self.base_url}/release/{release_id}"
        return self._get_json(url, {"inc": _RELEASE_INCLUDES})

    def search_recordings(self, query: str, limit: int = DEFAULT_SEARCH_LIMIT) -> dict[str, Any]:
        """Run a Lucene recording search.

        Args:
            query: Lucene query string.
            limit: Maximum number of recordings returned.

        Returns:
            The search JSON object with a ``recordings`` list.
        """
        url = f"{self.base_url}/recording"
        return self._get_json(url, {"query": query, "limit": limit})

    def close(self) -> None:
        self._session.close()
