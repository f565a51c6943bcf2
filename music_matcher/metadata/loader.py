"""Read audio files from disk into file records.

Tags are read through mutagen's "easy" interface so the same keys work for
ID3, Vorbis comments and MP4 atoms.
"""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Any

import mutagen

from music_matcher.metadata.models import FileRecord

logger = logging.getLogger(__name__)

AUDIO_EXTENSIONS = frozenset(
    {
        ".aac",
        ".aif",
        ".aiff",
        ".ape",
        ".flac",
        ".m4a",
        ".mp3",
        ".mp4",
        ".mpc",
        ".oga",
        ".ogg",
        ".opus",
        ".wma",
        ".wv",
    }
)

_TRACK_NUMBER = re.compile(r"^\s*0*(\d+)")


def parse_track_number(value: str | None) -> str | None:
    """Normalize a track number tag like ``"01/12"`` to ``"1"``.

    Returns None when no leading number can be found.
    """
    if not value:
        return None
    m = _TRACK_NUMBER.match(value)
    if not m:
        return None
    return str(int(m.group(1)))


def _first(tags: Any, key: str) -> str | None:
    if tags is None:
        return None
    try:
        values = tags.get(key)
    except (KeyError, ValueError):
        return None
    if not values:
        return None
    value = values[0] if isinstance(values, list) else values
    value = str(value).strip()
    return value or None


def read_file_record(path: Path) -> FileRecord | None:
    """Read tags and stream info of one audio file.

    Returns:
        The file record, or None if the file is not a readable audio file.
    """
    try:
        audio = mutagen.File(str(path), easy=True)
    except (mutagen.MutagenError, OSError) as e:
        logger.warning("Unable to read %s: %s", path, e)
        return None
    if audio is None:
        logger.debug("Not an audio file: %s", path)
        return None

    tags = audio.tags
    info = audio.info
    length = getattr(info, "length", None)
    return FileRecord(
        path=path,
        album=_first(tags, "album"),
        album_artist=_first(tags, "albumartist"),
        artist=_first(tags, "artist"),
        title=_first(tags, "title"),
        track_number=parse_track_number(_first(tags, "tracknumber")),
        release_id=_first(tags, "musicbrainz_albumid"),
        length_ms=int(length * 1000) if length else None,
        format=type(audio).__name__,
        sample_rate=getattr(info, "sample_rate", None),
        channels=getattr(info, "channels", None),
    )


def iter_audio_files(paths: Iterable[Path]) -> Iterator[Path]:
    """Yield audio files below the given files and directories, sorted per directory."""
    for path in paths:
        path = Path(path)
        if path.is_dir():
            for root, dirs, files in os.walk(path):
                dirs.sort()
                for name in sorted(files):
                    candidate = Path(root) / name
                    if candidate.suffix.lower() in AUDIO_EXTENSIONS:
                        yield candidate
        elif path.is_file():
            yield path
        else:
            logger.warning("Neither a file nor a directory: %s", path)


def load_files(paths: Iterable[Path]) -> Iterator[FileRecord]:
    """Read every audio file below ``paths``, skipping unreadable ones."""
    for path in iter_audio_files(paths):
        record = read_file_record(path)
        if record is not None:
            yield record


def group_name_for(file: FileRecord) -> str:
    """Name of the group a file belongs to.

    Files sharing a release id, else an album tag, else a directory, and
    with the same audio format end up in the same group.
    """
    name = file.release_id or file.album or str(file.path.parent) or "<none>"
    return f"{name} ({file.format}, {file.sample_rate}, {file.channels})"
