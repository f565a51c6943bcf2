"""Matching evidence derived from a single file's tags and path."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from music_matcher.utils.similarity import similarity

if TYPE_CHECKING:
    from collections.abc import Iterable

    from music_matcher.metadata.models import AudioMetadata

# Candidates at least this similar to an existing feature are dropped
DUPLICATE_THRESHOLD = 0.8


@dataclass(frozen=True, slots=True)
class SearchHints:
    """Free-text and numeric hints for a catalog track search."""

    artist_text: str
    title_text: str
    release_text: str
    track_number: str | None = None
    approx_duration_sec: int | None = None


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _path_pieces(text: str) -> list[str]:
    return [piece.replace("_", " ").strip() for piece in text.split("-")]


def directory_pieces(file: AudioMetadata) -> list[str]:
    """Fragments of the parent directory name, split on ``-``."""
    return _path_pieces(file.path.parent.name)


def basename_pieces(file: AudioMetadata) -> list[str]:
    """Fragments of the file name without extension, split on ``-`` then ``.``."""
    pieces: list[str] = []
    for piece in file.path.stem.split("-"):
        pieces.extend(sub.replace("_", " ").strip() for sub in piece.split("."))
    return pieces


def _append_distinct(features: list[str], candidates: Iterable[str | None]) -> None:
    for candidate in candidates:
        if not candidate:
            continue
        if all(similarity(candidate, existing) < DUPLICATE_THRESHOLD for existing in features):
            features.append(candidate)


def extract_features(file: AudioMetadata) -> list[str]:
    """Build the ordered, deduplicated feature list for a file.

    Order: album, album artist, artist, title and track number tags, then
    parent directory fragments, then file name fragments. A candidate is
    kept only if it is less than 80% similar to every feature already in
    the list. The order matters to the track scorer.
    """
    features: list[str] = []
    _append_distinct(
        features,
        (
            _clean(file.album),
            _clean(file.album_artist),
            _clean(file.artist),
            _clean(file.title),
            _clean(file.track_number),
        ),
    )
    _append_distinct(features, directory_pieces(file))
    _append_distinct(features, basename_pieces(file))
    return features


def build_search_hints(file: AudioMetadata) -> SearchHints:
    """Collect search hints for a file from its tags and path.

    The directory and file names are added to every free-text hint since
    poorly tagged files often only carry their metadata in the path.
    """
    directory = file.path.parent.name.replace("_", " ").strip()
    basename = file.path.stem.replace("_", " ").strip()

    def join(*parts: str | None) -> str:
        return " ".join(p for p in (_clean(part) for part in parts) if p)

    approx_duration = None
    if file.length_ms is not None and file.length_ms > 0:
        approx_duration = file.length_ms // 1000

    return SearchHints(
        artist_text=join(file.artist, directory, basename),
        title_text=join(file.title, basename),
        release_text=join(file.album, directory, basename),
        track_number=_clean(file.track_number),
        approx_duration_sec=approx_duration,
    )
