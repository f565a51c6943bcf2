"""Map MusicBrainz web service JSON to catalog records.

Handles release lookups (``/release/{id}?inc=recordings+artist-credits``)
and recording searches (``/recording?query=...``), and builds the Lucene
query used for the search.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from music_matcher.exceptions import CatalogParseError
from music_matcher.metadata.models import Album, Artist, Track

if TYPE_CHECKING:
    from music_matcher.metadata.features import SearchHints

logger = logging.getLogger(__name__)

# Seconds of slack on each side of the duration hint
DURATION_SLACK_SEC = 10

# Lucene characters escaped with a backslash
_LUCENE_SPECIAL = set(':+-!(){}[]^"~*\\/')
# Characters that only act as operators when doubled
_LUCENE_DOUBLED = set("|&")
# Characters replaced by a space
_LUCENE_BLANKED = set("_?;#")


# ---------------------------------------------------------------------------
# Query construction
# ---------------------------------------------------------------------------


def escape_lucene(text: str | None) -> str | None:
    """Escape characters that would break a Lucene query.

    Returns None for missing or blank input.
    """
    if text is None:
        return None
    text = text.strip()
    if not text:
        return None
    out: list[str] = []
    for idx, char in enumerate(text):
        if char in _LUCENE_SPECIAL:
            out.append("\\" + char)
        elif char in _LUCENE_DOUBLED:
            if idx + 1 < len(text) and text[idx + 1] == char:
                out.append("\\")
            out.append(char)
        elif char in _LUCENE_BLANKED:
            out.append(" ")
        else:
            out.append(char)
    return "".join(out).strip() or None


def build_recording_query(hints: SearchHints) -> str:
    """Build a recording search query from file hints.

    Example:
        ``tnum:1 dur:[249000 TO 269000] artist:(The Beatles) recording:(...)``
    """
    parts: list[str] = []
    track_number = escape_lucene(hints.track_number)
    if track_number:
        parts.append(f"tnum:{track_number}")
    if hints.approx_duration_sec:
        lower = max(0, hints.approx_duration_sec - DURATION_SLACK_SEC) * 1000
        upper = (hints.approx_duration_sec + DURATION_SLACK_SEC) * 1000
        parts.append(f"dur:[{lower} TO {upper}]")
    for field_name, text in (
        ("artist", hints.artist_text),
        ("recording", hints.title_text),
        ("release", hints.release_text),
    ):
        escaped = escape_lucene(text)
        if escaped:
            parts.append(f"{field_name}:({escaped})")
    return " ".join(parts)


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------


def _entries(value: Any, context: str) -> list[dict[str, Any]]:
    """The object entries of a JSON list; anything else is logged and dropped."""
    if value is None:
        return []
    if not isinstance(value, list):
        logger.warning("Ignoring malformed %s: %r", context, value)
        return []
    entries = [entry for entry in value if isinstance(entry, dict)]
    if len(entries) != len(value):
        logger.warning("Skipping %d malformed %s entries", len(value) - len(entries), context)
    return entries


def _mapping(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _text(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _parse_length(value: Any, context: str) -> int | None:
    """Track length in milliseconds; unknown or malformed lengths give None."""
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning("Ignoring malformed length %r for %s", value, context)
        return None


def parse_artist_credit(credits: Any) -> Artist | None:
    """Collapse an artist credit list into one Artist.

    The display name joins all credited names with their join phrases; the
    identifier and sort name come from the first credited artist.
    """
    credits = _entries(credits, "artist credit")
    if not credits:
        return None
    name = "".join(
        f"{_text(credit.get('name')) or _text(_mapping(credit.get('artist')).get('name')) or ''}"
        f"{_text(credit.get('joinphrase')) or ''}"
        for credit in credits
    ).strip()
    first = _mapping(credits[0].get("artist"))
    if not name:
        return None
    return Artist(name=name, id=_text(first.get("id")), sort_name=_text(first.get("sort-name")))


def _release_type(data: dict[str, Any]) -> str | None:
    return _text(_mapping(data.get("release-group")).get("primary-type"))


# ---------------------------------------------------------------------------
# Release lookup
# ---------------------------------------------------------------------------


def parse_release(data: Any, url: str = "") -> Album:
    """Build a full Album from a release lookup response.

    Tracks are numbered sequentially across all media so numbers are
    unique within the album and run from 1 to the track count. Malformed
    media and track entries are logged and skipped.

    Raises:
        CatalogParseError: If the response is not an object or the release
            has no identifier or title.
    """
    if not isinstance(data, dict):
        raise CatalogParseError(url, "release is not an object", str(data)[:500])
    album_id = _text(data.get("id"))
    title = _text(data.get("title"))
    if not album_id or title is None:
        raise CatalogParseError(url, "release without id or title", str(data)[:500])

    album_artist = parse_artist_credit(data.get("artist-credit"))
    tracks: list[Track] = []
    for medium in _entries(data.get("media"), f"media of release {album_id}"):
        for entry in _entries(medium.get("tracks"), f"tracks of release {album_id}"):
            recording = _mapping(entry.get("recording"))
            track_id = _text(recording.get("id")) or _text(entry.get("id"))
            if not track_id:
                logger.warning("Skipping track without id on release %s", album_id)
                continue
            track_artist = parse_artist_credit(
                entry.get("artist-credit") or recording.get("artist-credit")
            )
            length = entry.get("length")
            if length is None:
                length = recording.get("length")
            tracks.append(
                Track(
                    artist=track_artist or album_artist,
                    title=_text(entry.get("title")) or _text(recording.get("title")) or "",
                    id=track_id,
                    number=len(tracks) + 1,
                    length_ms=_parse_length(length, f"track {track_id}"),
                )
            )

    album = Album(
        title=title,
        id=album_id,
        tracks=tracks,
        artist=album_artist,
        released=_text(data.get("date")) or None,
        type=_release_type(data),
    )
    logger.info("Album loaded: %s (%d tracks)", album, len(tracks))
    return album


# ---------------------------------------------------------------------------
# Recording search
# ---------------------------------------------------------------------------


def _search_candidate(recording: dict[str, Any], release: dict[str, Any]) -> Album | None:
    release_id = _text(release.get("id"))
    if not release_id:
        return None
    media = _entries(release.get("media"), f"media of release {release_id}")
    medium = media[0] if media else {}
    try:
        number = int(medium.get("track-offset", 0)) + 1
    except (TypeError, ValueError):
        logger.warning(
            "Ignoring release %s with malformed track offset %r",
            release_id,
            medium.get("track-offset"),
        )
        return None

    track = Track(
        artist=parse_artist_credit(recording.get("artist-credit")),
        title=_text(recording.get("title")) or "",
        id=recording["id"],
        number=number,
        length_ms=_parse_length(recording.get("length"), f"recording {recording['id']}"),
    )
    return Album(
        title=_text(release.get("title")) or "",
        id=release_id,
        tracks=[track],
        type=_release_type(release),
    )


def parse_recording_search(data: Any, url: str = "") -> list[Album]:
    """Build partial albums from a recording search response.

    Every (recording, release) pair becomes one Album holding a single
    track. These albums have no artist or release date; fetch the full
    release before comparing a group with it. Malformed recordings and
    releases are logged and skipped.

    Raises:
        CatalogParseError: If the response is not an object.
    """
    if not isinstance(data, dict):
        raise CatalogParseError(url, "search result is not an object", str(data)[:500])
    albums: list[Album] = []
    for recording in _entries(data.get("recordings"), "recordings"):
        if not _text(recording.get("id")):
            continue
        for release in _entries(recording.get("releases"), f"releases of {recording['id']}"):
            candidate = _search_candidate(recording, release)
            if candidate is not None:
                albums.append(candidate)
    return albums
