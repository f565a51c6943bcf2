"""Score a local file against a catalog track.

Each feature of the file is compared with the track's album title, artist
name, title and track number. The best assignment of four distinct features
to those four fields is searched exhaustively, then a duration bonus is
added and the sum is normalized over five components.
"""

from __future__ import annotations

import logging
from itertools import permutations
from typing import TYPE_CHECKING

from music_matcher.utils.similarity import similarity

if TYPE_CHECKING:
    from music_matcher.metadata.models import FileRecord, Track

logger = logging.getLogger(__name__)

# album, artist, title, track number, duration
SCORE_COMPONENTS = 5.0

# Durations further apart than this earn no bonus
DURATION_WINDOW_MS = 15000

# The assignment search is O(n^4) in the feature count
MAX_SCORED_FEATURES = 12


def _field_scores(features: list[str], track: Track) -> list[tuple[float, float, float, float]]:
    album_title = track.album.title if track.album is not None else None
    artist_name = track.artist.name if track.artist is not None else None
    number = str(track.number)
    return [
        (
            similarity(value, album_title),
            similarity(value, artist_name),
            similarity(value, track.title),
            1.0 if value == number else 0.0,
        )
        for value in features
    ]


def best_feature_assignment(scores: list[tuple[float, float, float, float]]) -> float:
    """Best sum over assignments of four distinct features to the four fields.

    Args:
        scores: Per feature, its (album, artist, title, track number) scores.

    Returns:
        The maximal sum, or 0.0 if there are fewer than four features.
    """
    best = 0.0
    for album_idx, artist_idx, title_idx, number_idx in permutations(range(len(scores)), 4):
        total = (
            scores[album_idx][0]
            + scores[artist_idx][1]
            + scores[title_idx][2]
            + scores[number_idx][3]
        )
        if total > best:
            best = total
    return best


def duration_score(file_length_ms: int | None, track_length_ms: int | None) -> float:
    """Bonus between 0.0 and 1.0 for similar durations."""
    if file_length_ms is None or track_length_ms is None:
        return 0.0
    diff = abs(file_length_ms - track_length_ms)
    if diff < DURATION_WINDOW_MS:
        return 1.0 - diff / DURATION_WINDOW_MS
    return 0.0


def score(file: FileRecord, track: Track) -> float:
    """Score how well a file matches a track, from 0.0 to 1.0."""
    features = file.features or []
    if not features:
        return 0.0
    if len(features) > MAX_SCORED_FEATURES:
        features = features[:MAX_SCORED_FEATURES]

    total = best_feature_assignment(_field_scores(features, track))
    total += duration_score(file.length_ms, track.length_ms)
    result = total / SCORE_COMPONENTS
    logger.debug("Compared %s with %r, features %s: %.3f", file, track.title, features, result)
    return result
