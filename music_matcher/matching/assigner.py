"""Compare a group of files with candidate albums and pick track owners.

The comparison is a nested mapping ``album -> track -> file -> score`` that
one group matcher fills in while it explores candidate albums. Once all
candidates are compared, every album gets an album-level score, the best
album wins, and an :class:`AssignmentStrategy` decides which file takes
which of its tracks.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING, Protocol

from music_matcher.matching import scorer

if TYPE_CHECKING:
    from music_matcher.metadata.models import Album, FileRecord, Track

logger = logging.getLogger(__name__)

TrackScores = dict["Track", dict["FileRecord", float]]
Comparison = dict["Album", TrackScores]

# Pairs scoring below this are not kept in the comparison
DEFAULT_LOW_RELEVANCE_FLOOR = 0.2

# Files scoring above this against any track leave the search queue
DEFAULT_HIGH_CONFIDENCE_FLOOR = 0.75


class CompareOutcome(enum.Enum):
    """Result of comparing a group with one album."""

    COMPARED = "compared"
    NO_COMPARABLE_TRACKS = "no_comparable_tracks"


def compare_group_with_album(
    files: Iterable[FileRecord],
    album: Album,
    comparison: Comparison,
    queue: list[FileRecord] | None = None,
    *,
    low_floor: float = DEFAULT_LOW_RELEVANCE_FLOOR,
    high_floor: float = DEFAULT_HIGH_CONFIDENCE_FLOOR,
) -> CompareOutcome:
    """Score every file against every track of an album.

    Pairs below ``low_floor`` are discarded. A file scoring above
    ``high_floor`` is removed from ``queue`` when a queue is given, so the
    caller does not search the catalog for it again.

    Args:
        files: Files of the group.
        album: Full album to compare with.
        comparison: Shared comparison state, updated in place.
        queue: Pending search queue, or None when searching is disabled.
        low_floor: Minimum score kept in the comparison.
        high_floor: Score above which a file counts as provisionally resolved.

    Returns:
        NO_COMPARABLE_TRACKS for an album without tracks, else COMPARED.
    """
    if not album.tracks:
        logger.warning("Album %s has no tracks to compare with", album.id)
        return CompareOutcome.NO_COMPARABLE_TRACKS

    for file in files:
        for track in album.tracks:
            value = scorer.score(file, track)
            if value < low_floor:
                continue
            if queue is not None and value > high_floor and file in queue:
                logger.info("Removing %s from queue, match score: %.3f", file, value)
                queue.remove(file)
            comparison.setdefault(album, {}).setdefault(track, {})[file] = value

    return CompareOutcome.COMPARED


# ---------------------------------------------------------------------------
# Album-level scoring
# ---------------------------------------------------------------------------


def best_file_for_track(file_scores: dict[FileRecord, float]) -> tuple[FileRecord | None, float]:
    """Highest-scoring file for one track; the first one wins ties."""
    best_file = None
    best_score = 0.0
    for file, value in file_scores.items():
        if value > best_score:
            best_file = file
            best_score = value
    return best_file, best_score


def album_score(album: Album, track_scores: TrackScores) -> float:
    """Score an album from its per-track comparisons.

    The best file score of every track is summed, then scaled by the share
    of album tracks covered by distinct best files, so a half-matched album
    scores below a fully matched one of similar per-track quality.
    """
    if not album.tracks:
        return 0.0
    total = 0.0
    best_files: set[FileRecord] = set()
    for file_scores in track_scores.values():
        best_file, best_score = best_file_for_track(file_scores)
        if best_file is None:
            continue
        total += best_score
        best_files.add(best_file)
    return total * len(best_files) / len(album.tracks)


def score_albums(comparison: Comparison) -> dict[Album, float]:
    """Album-level score for every compared album, in comparison order."""
    scores: dict[Album, float] = {}
    for album, track_scores in comparison.items():
        scores[album] = album_score(album, track_scores)
        logger.info(
            "Album score for %s: %.3f (%d of %d tracks compared)",
            album,
            scores[album],
            len(track_scores),
            len(album.tracks),
        )
    return scores


def select_best_album(album_scores: dict[Album, float]) -> tuple[Album | None, float]:
    """Pick the highest-scoring album.

    Ties keep the album that was compared first. An album needs a score
    above zero to be selected.
    """
    best_album = None
    best_score = 0.0
    for album, value in album_scores.items():
        if value > best_score:
            best_album = album
            best_score = value
    return best_album, best_score


# ---------------------------------------------------------------------------
# Track assignment
# ---------------------------------------------------------------------------


class AssignmentStrategy(Protocol):
    """Decides which file takes which track of the selected album."""

    def assign(
        self, album: Album, track_scores: TrackScores
    ) -> dict[Track, tuple[FileRecord, float]]: ...


class GreedyTrackAssignment:
    """Give every track its best-scoring file, independently per track.

    This is not a global optimum: one file may be the best match for two
    tracks and is then returned for both. Applying the result in track
    order leaves such a file on the last of those tracks.
    """

    def assign(
        self, album: Album, track_scores: TrackScores
    ) -> dict[Track, tuple[FileRecord, float]]:
        assignments: dict[Track, tuple[FileRecord, float]] = {}
        for track in album.tracks:
            file_scores = track_scores.get(track)
            if not file_scores:
                continue
            best_file, best_score = best_file_for_track(file_scores)
            if best_file is not None:
                assignments[track] = (best_file, best_score)
        return assignments
