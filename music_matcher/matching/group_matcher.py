"""Match one group of files against the catalog.

A group matcher discovers candidate albums, either from release ids
tagged in the files, from track searches, or from a fixed list given by
the caller, compares every candidate with all files of the group and
finally assigns tracks of the best album to the files.
"""

from __future__ import annotations

import enum
import logging
import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from music_matcher.matching import scorer
from music_matcher.matching.assigner import (
    DEFAULT_HIGH_CONFIDENCE_FLOOR,
    DEFAULT_LOW_RELEVANCE_FLOOR,
    AssignmentStrategy,
    Comparison,
    GreedyTrackAssignment,
    compare_group_with_album,
    score_albums,
    select_best_album,
)
from music_matcher.metadata.features import build_search_hints

if TYPE_CHECKING:
    from concurrent.futures import Executor, Future

    from music_matcher.catalog.gateway import CatalogGateway
    from music_matcher.metadata.models import Album, FileRecord, Group, Track

logger = logging.getLogger(__name__)


class MatcherState(enum.Enum):
    """Lifecycle of a group matcher."""

    IDLE = "idle"
    RUNNING = "running"
    FINISHED = "finished"


@dataclass(slots=True)
class GroupMatchResult:
    """Outcome of matching one group."""

    group: Group
    album: Album | None = None
    score: float = 0.0
    album_scores: dict[Album, float] = field(default_factory=dict)
    assignments: dict[Track, tuple[FileRecord, float]] = field(default_factory=dict)

    @property
    def matched(self) -> bool:
        return self.album is not None


class GroupMatcher:
    """Runs the search-and-compare loop for one group.

    The matcher runs once: ``start`` moves it from IDLE to RUNNING, and it
    ends in FINISHED whatever happens. Matching a group again needs a new
    instance.

    Args:
        group: Files to match.
        gateway: Catalog lookups.
        album_ids: If given, only compare with these albums and skip searching.
        strategy: Decides which file takes which track of the best album.
        low_floor: Minimum file/track score kept in the comparison.
        high_floor: Score above which a file needs no further search.
        on_group_matched: Called with the group and its result once assigned.
        on_finished: Called with the matcher when it is done.
    """

    def __init__(
        self,
        group: Group,
        gateway: CatalogGateway,
        album_ids: Sequence[str] | None = None,
        *,
        strategy: AssignmentStrategy | None = None,
        low_floor: float = DEFAULT_LOW_RELEVANCE_FLOOR,
        high_floor: float = DEFAULT_HIGH_CONFIDENCE_FLOOR,
        on_group_matched: Callable[[Group, GroupMatchResult], None] | None = None,
        on_finished: Callable[[GroupMatcher], None] | None = None,
    ) -> None:
        self.group = group
        self.gateway = gateway
        self.album_ids = list(album_ids or [])
        self.strategy = strategy or GreedyTrackAssignment()
        self.low_floor = low_floor
        self.high_floor = high_floor
        self.on_group_matched = on_group_matched
        self.on_finished = on_finished
        self.result: GroupMatchResult | None = None
        self._state = MatcherState.IDLE
        self._state_lock = threading.Lock()
        self._comparison: Comparison = {}
        self._queue: list[FileRecord] | None = None

    def __repr__(self) -> str:
        return f"<GroupMatcher(group='{self.group.name}', state={self._state.value})>"

    @property
    def state(self) -> MatcherState:
        return self._state

    @property
    def active(self) -> bool:
        return self._state is MatcherState.RUNNING

    def _claim(self) -> bool:
        with self._state_lock:
            if self._state is not MatcherState.IDLE:
                return False
            self._state = MatcherState.RUNNING
            return True

    def start(self, executor: Executor | None = None) -> Future | None:
        """Start matching, on ``executor`` if given, else in the calling thread.

        A matcher that is already running or finished is left alone.

        Returns:
            The scheduled future when an executor is used, else None.
        """
        if not self._claim():
            logger.debug("Ignoring start of %r", self)
            return None
        if executor is None:
            self._run()
            return None
        return executor.submit(self._run)

    def run(self) -> GroupMatchResult | None:
        """Match synchronously; same as ``start()`` without an executor."""
        self.start()
        return self.result

    def cancel(self) -> None:
        """Finish a matcher whose scheduled run was cancelled before it began.

        The group is reported without an album. Only call this once the
        future returned by :meth:`start` has been cancelled successfully.
        """
        with self._state_lock:
            if self._state is not MatcherState.RUNNING:
                return
            self._state = MatcherState.FINISHED
        logger.info("Matching group %s cancelled", self.group)
        self.result = GroupMatchResult(group=self.group)
        self._notify()

    def _notify(self) -> None:
        try:
            if self.on_group_matched is not None:
                self.on_group_matched(self.group, self.result)
        finally:
            if self.on_finished is not None:
                self.on_finished(self)

    # -----------------------------------------------------------------------
    # Matching loop
    # -----------------------------------------------------------------------

    def _run(self) -> GroupMatchResult | None:
        logger.info("Matching group %s (%d files)", self.group, len(self.group.files))
        try:
            if self.album_ids:
                self._compare_fixed_albums()
            else:
                self._search_and_compare()
            self.result = self._assign()
        except Exception:
            logger.exception("Matching group %s failed", self.group)
            self.result = GroupMatchResult(group=self.group)
        finally:
            self._comparison = {}
            self._queue = None
            with self._state_lock:
                self._state = MatcherState.FINISHED

        self._notify()
        return self.result

    def _compare(self, album: Album) -> None:
        compare_group_with_album(
            self.group.files,
            album,
            self._comparison,
            self._queue,
            low_floor=self.low_floor,
            high_floor=self.high_floor,
        )

    def _compare_fixed_albums(self) -> None:
        for album_id in self.album_ids:
            album = self.gateway.fetch_album(album_id)
            if album is not None:
                self._compare(album)

    def _search_and_compare(self) -> None:
        self._queue = list(self.group.files)
        while self._queue:
            file = self._queue.pop(0)
            album = None
            if file.release_id:
                album = self.gateway.fetch_album(file.release_id)
            if album is None:
                album = self._search_best_album(file)
            if album is not None:
                logger.info("Comparing all files of %s with album %s", self.group, album)
                self._compare(album)

    def _search_best_album(self, file: FileRecord) -> Album | None:
        candidates = self.gateway.search_tracks(build_search_hints(file))
        best_score = 0.0
        best_candidate = None
        for candidate in candidates:
            if not candidate.tracks:
                continue
            value = scorer.score(file, candidate.tracks[0])
            if value > best_score:
                best_score = value
                best_candidate = candidate
        if best_candidate is None:
            logger.info("No track candidate found for %s", file)
            return None
        return self.gateway.fetch_album(best_candidate.id)

    # -----------------------------------------------------------------------
    # Final assignment
    # -----------------------------------------------------------------------

    def _assign(self) -> GroupMatchResult:
        album_scores = score_albums(self._comparison)
        best_album, best_score = select_best_album(album_scores)
        result = GroupMatchResult(group=self.group, album_scores=album_scores)
        if best_album is None:
            logger.info("No album matched group %s", self.group)
            return result

        result.album = best_album
        result.score = best_score
        result.assignments = self.strategy.assign(best_album, self._comparison[best_album])
        for track, (file, value) in result.assignments.items():
            file.assign(track, value)
        logger.info(
            "Group %s matched %s (score %.3f, %d tracks assigned)",
            self.group,
            best_album,
            best_score,
            len(result.assignments),
        )
        return result
