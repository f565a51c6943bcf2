"""MusicBrainz catalog access: client, parser, cache and gateway."""

from music_matcher.catalog.cache import AlbumCache
from music_matcher.catalog.client import MusicBrainzClient
from music_matcher.catalog.gateway import CatalogGateway, MusicBrainzGateway
from music_matcher.catalog.ratelimit import RateLimiter

__all__ = [
    "AlbumCache",
    "CatalogGateway",
    "MusicBrainzClient",
    "MusicBrainzGateway",
    "RateLimiter",
]
