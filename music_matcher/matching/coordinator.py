"""Group loaded files and run one group matcher per group on a worker pool."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator, Sequence
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import TYPE_CHECKING

from music_matcher.matching.assigner import (
    DEFAULT_HIGH_CONFIDENCE_FLOOR,
    DEFAULT_LOW_RELEVANCE_FLOOR,
    AssignmentStrategy,
)
from music_matcher.matching.group_matcher import GroupMatcher, GroupMatchResult
from music_matcher.metadata.loader import group_name_for
from music_matcher.metadata.models import FileRecord, Group

if TYPE_CHECKING:
    from music_matcher.catalog.gateway import CatalogGateway

logger = logging.getLogger(__name__)

DEFAULT_WORKERS = 4


class GroupRegistry:
    """Groups by name; a group is created with its first file."""

    def __init__(self) -> None:
        self._groups: dict[str, Group] = {}
        self._lock = threading.Lock()

    def add_file(self, name: str, file: FileRecord) -> Group:
        with self._lock:
            group = self._groups.get(name)
            if group is None:
                group = Group(name=name)
                self._groups[name] = group
            group.add(file)
            return group

    def get(self, name: str) -> Group | None:
        with self._lock:
            return self._groups.get(name)

    def __iter__(self) -> Iterator[Group]:
        with self._lock:
            return iter(list(self._groups.values()))

    def __len__(self) -> int:
        with self._lock:
            return len(self._groups)


class MatchCoordinator:
    """Owns the groups of a run and the matchers working on them.

    Files are reported through :meth:`file_loaded`; once loading is done
    :meth:`all_files_loaded` schedules a matcher for every group that has
    not been matched yet. Matchers report back through
    :meth:`matcher_finished`.

    Args:
        gateway: Catalog lookups shared by all matchers.
        workers: Size of the matcher worker pool.
        album_ids: Restrict every group to these albums.
        strategy: Track assignment strategy handed to each matcher.
        low_floor: Minimum file/track score kept in comparisons.
        high_floor: Score above which a file needs no further search.
        group_name: Derives the group name of a file.
        on_file_loaded: Called for every file added to a group.
        on_group_matched: Called when a group's final assignment is done.
    """

    def __init__(
        self,
        gateway: CatalogGateway,
        *,
        workers: int = DEFAULT_WORKERS,
        album_ids: Sequence[str] | None = None,
        strategy: AssignmentStrategy | None = None,
        low_floor: float = DEFAULT_LOW_RELEVANCE_FLOOR,
        high_floor: float = DEFAULT_HIGH_CONFIDENCE_FLOOR,
        group_name: Callable[[FileRecord], str] = group_name_for,
        on_file_loaded: Callable[[FileRecord], None] | None = None,
        on_group_matched: Callable[[Group, GroupMatchResult], None] | None = None,
    ) -> None:
        self.gateway = gateway
        self.groups = GroupRegistry()
        self.album_ids = list(album_ids or [])
        self.strategy = strategy
        self.low_floor = low_floor
        self.high_floor = high_floor
        self.results: dict[str, GroupMatchResult] = {}
        self._group_name = group_name
        self.on_file_loaded = on_file_loaded
        self.on_group_matched = on_group_matched
        self._executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="matcher")
        self._lock = threading.Lock()
        self._matchers: dict[GroupMatcher, Future | None] = {}
        self._futures: list[Future] = []
        self._scheduled: set[str] = set()
        self._stopped = False

    def __enter__(self) -> MatchCoordinator:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        if exc_type is not None:
            self.stop()
        self.shutdown()
        return False

    @property
    def active_matchers(self) -> list[GroupMatcher]:
        with self._lock:
            return list(self._matchers)

    # -----------------------------------------------------------------------
    # Events
    # -----------------------------------------------------------------------

    def file_loaded(self, file: FileRecord) -> Group:
        """Add a freshly loaded file to its group."""
        name = self._group_name(file)
        logger.debug("Adding %s to group %s", file, name)
        group = self.groups.add_file(name, file)
        if self.on_file_loaded is not None:
            self.on_file_loaded(file)
        return group

    def all_files_loaded(self) -> list[GroupMatcher]:
        """Schedule a matcher for every group that has none yet.

        Returns:
            The matchers started by this call.
        """
        logger.info("Done loading files, %d groups", len(self.groups))
        started: list[GroupMatcher] = []
        for group in self.groups:
            with self._lock:
                if self._stopped or group.name in self._scheduled:
                    continue
                self._scheduled.add(group.name)
                matcher = GroupMatcher(
                    group,
                    self.gateway,
                    self.album_ids,
                    strategy=self.strategy,
                    low_floor=self.low_floor,
                    high_floor=self.high_floor,
                    on_group_matched=self._group_matched,
                    on_finished=self.matcher_finished,
                )
                self._matchers[matcher] = None
            future = matcher.start(self._executor)
            if future is not None:
                with self._lock:
                    self._futures.append(future)
                    if matcher in self._matchers:
                        self._matchers[matcher] = future
                future.add_done_callback(
                    lambda f, matcher=matcher: self._matcher_done(matcher, f)
                )
            started.append(matcher)
        return started

    def _matcher_done(self, matcher: GroupMatcher, future: Future) -> None:
        # A cancelled future never ran the matcher, so nothing reported the group
        if future.cancelled():
            matcher.cancel()

    def _group_matched(self, group: Group, result: GroupMatchResult) -> None:
        with self._lock:
            self.results[group.name] = result
        if self.on_group_matched is not None:
            self.on_group_matched(group, result)

    def matcher_finished(self, matcher: GroupMatcher) -> None:
        """Retire a matcher that has completed its run."""
        logger.info("Matcher finished: %r", matcher)
        with self._lock:
            self._matchers.pop(matcher, None)

    # -----------------------------------------------------------------------
    # Lifecycle
    # -----------------------------------------------------------------------

    def wait(self, timeout: float | None = None) -> bool:
        """Block until all scheduled matchers are done.

        Returns:
            True if everything finished within ``timeout``.
        """
        with self._lock:
            futures = list(self._futures)
        done, not_done = wait(futures, timeout=timeout)
        for future in done:
            if not future.cancelled() and future.exception() is not None:
                logger.error("Matcher raised: %s", future.exception())
        return not not_done

    def stop(self) -> None:
        """Stop scheduling work and decline new catalog requests.

        Matchers already talking to the catalog finish their current
        request; pending ones are cancelled and their groups reported
        without an album.
        """
        logger.info("Stopping match coordinator")
        with self._lock:
            self._stopped = True
            futures = list(self._futures)
        self.gateway.stop()
        for future in futures:
            future.cancel()

    def shutdown(self) -> None:
        """Release the worker pool, waiting for running matchers."""
        self._executor.shutdown(wait=True, cancel_futures=self._stopped)
