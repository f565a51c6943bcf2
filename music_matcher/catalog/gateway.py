"""Catalog lookups as seen by the matching engine.

The engine only needs two operations: fetch a full album by identifier and
search for track candidates. Both report failures as "no result" so a
network hiccup never aborts a matching run.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Protocol

from music_matcher.catalog.cache import AlbumCache
from music_matcher.catalog.client import DEFAULT_SEARCH_LIMIT, MusicBrainzClient
from music_matcher.catalog.parser import (
    build_recording_query,
    parse_recording_search,
    parse_release,
)
from music_matcher.exceptions import CatalogError

if TYPE_CHECKING:
    from music_matcher.metadata.features import SearchHints
    from music_matcher.metadata.models import Album

logger = logging.getLogger(__name__)


class CatalogGateway(Protocol):
    """Remote catalog operations used by the group matcher."""

    def fetch_album(self, album_id: str) -> Album | None: ...

    def search_tracks(self, hints: SearchHints) -> list[Album]: ...

    def stop(self) -> None: ...


class MusicBrainzGateway:
    """CatalogGateway backed by the MusicBrainz web service.

    Full albums are cached for the lifetime of the gateway. Once
    :meth:`stop` has been called no new remote request is started.

    Args:
        client: Web service client (owns the shared rate limiter).
        cache: Album cache; a fresh one is created if omitted.
        search_limit: Maximum recordings requested per search.
    """

    def __init__(
        self,
        client: MusicBrainzClient,
        cache: AlbumCache | None = None,
        search_limit: int = DEFAULT_SEARCH_LIMIT,
    ) -> None:
        self.client = client
        self.cache = cache if cache is not None else AlbumCache()
        self.search_limit = search_limit
        self._stopped = threading.Event()

    def stop(self) -> None:
        """Decline all further remote requests."""
        self._stopped.set()

    @property
    def stopped(self) -> bool:
        return self._stopped.is_set()

    def _load_album(self, album_id: str) -> Album | None:
        if self.stopped:
            logger.info("Gateway stopped, not loading album %s", album_id)
            return None
        logger.info("Loading album with id %s", album_id)
        try:
            return parse_release(self.client.lookup_release(album_id))
        except CatalogError as e:
            logger.warning("Unable to load album %s: %s", album_id, e)
            return None

    def fetch_album(self, album_id: str) -> Album | None:
        """Return the full album for an identifier, or None on failure."""
        return self.cache.get_or_fetch(album_id, self._load_album)

    def search_tracks(self, hints: SearchHints) -> list[Album]:
        """Search recordings matching the hints.

        Returns:
            Partial albums holding one track each; empty on failure.
        """
        if self.stopped:
            logger.info("Gateway stopped, skipping track search")
            return []
        query = build_recording_query(hints)
        if not query:
            return []
        logger.info("Searching MusicBrainz: %s", query)
        try:
            albums = parse_recording_search(self.client.search_recordings(query, self.search_limit))
        except CatalogError as e:
            logger.warning("Track search failed: %s", e)
            return []
        logger.info("Track search returned %d candidates", len(albums))
        return albums
