"""Matching engine: scoring, album comparison, group matching."""

from music_matcher.matching.assigner import (
    AssignmentStrategy,
    CompareOutcome,
    GreedyTrackAssignment,
    album_score,
    compare_group_with_album,
    select_best_album,
)
from music_matcher.matching.coordinator import GroupRegistry, MatchCoordinator
from music_matcher.matching.group_matcher import GroupMatcher, GroupMatchResult, MatcherState
from music_matcher.matching.scorer import score

__all__ = [
    "AssignmentStrategy",
    "CompareOutcome",
    "GreedyTrackAssignment",
    "GroupMatchResult",
    "GroupMatcher",
    "GroupRegistry",
    "MatchCoordinator",
    "MatcherState",
    "album_score",
    "compare_group_with_album",
    "score",
    "select_best_album",
]
