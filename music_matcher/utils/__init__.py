"""Utility modules for music-matcher."""

from music_matcher.utils.output import (
    console,
    error,
    info,
    success,
    warning,
)
from music_matcher.utils.similarity import edit_distance, similarity

__all__ = [
    "console",
    "edit_distance",
    "error",
    "info",
    "similarity",
    "success",
    "warning",
]
