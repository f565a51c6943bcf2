"""Local file records, catalog entities and feature extraction."""

from music_matcher.metadata.features import SearchHints, build_search_hints, extract_features
from music_matcher.metadata.models import (
    Album,
    Artist,
    AudioMetadata,
    FileRecord,
    Group,
    Track,
)

__all__ = [
    "Album",
    "Artist",
    "AudioMetadata",
    "FileRecord",
    "Group",
    "SearchHints",
    "Track",
    "build_search_hints",
    "extract_features",
]
