"""In-memory album cache shared by all group matchers of a run."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

from music_matcher.metadata.models import Album

logger = logging.getLogger(__name__)


class AlbumCache:
    """Albums by identifier, filled on first lookup.

    Lookup, fetch and insert happen under one lock, so concurrent callers
    asking for the same identifier trigger a single fetch. Failed fetches
    are not cached and will be retried by the next caller.
    """

    def __init__(self) -> None:
        self._albums: dict[str, Album] = {}
        self._lock = threading.Lock()

    def get_or_fetch(self, album_id: str, fetch: Callable[[str], Album | None]) -> Album | None:
        """Return the cached album or fetch and cache it.

        Args:
            album_id: Album identifier.
            fetch: Called with ``album_id`` on a cache miss.

        Returns:
            The album, or None if the fetch produced nothing.
        """
        with self._lock:
            album = self._albums.get(album_id)
            if album is not None:
                logger.debug("Album cache hit: %s", album_id)
                return album
            album = fetch(album_id)
            if album is not None:
                self._albums[album.id] = album
                if album.id != album_id:
                    # Merged releases answer with their new identifier
                    self._albums[album_id] = album
            return album

    def get(self, album_id: str) -> Album | None:
        with self._lock:
            return self._albums.get(album_id)

    def __contains__(self, album_id: object) -> bool:
        with self._lock:
            return album_id in self._albums

    def __len__(self) -> int:
        with self._lock:
            return len(self._albums)
