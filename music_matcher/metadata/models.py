"""Records for local files and catalog entities."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from music_matcher.exceptions import InvalidTrackError


class AudioMetadata(Protocol):
    """The fields of a local audio file the matching engine reads."""

    path: Path
    album: str | None
    album_artist: str | None
    artist: str | None
    title: str | None
    track_number: str | None
    release_id: str | None
    length_ms: int | None


# ---------------------------------------------------------------------------
# Catalog entities
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Artist:
    """A catalog artist."""

    name: str
    id: str | None = None
    sort_name: str | None = None

    def __str__(self) -> str:
        return self.name


@dataclass(eq=False)
class Track:
    """A catalog track.

    The ``album`` back-reference is set by :class:`Album` on construction
    and cannot be changed afterwards.
    """

    artist: Artist | None
    title: str
    id: str
    number: int
    length_ms: int | None = None
    album: Album | None = field(default=None, init=False, repr=False)

    def attach(self, album: Album) -> None:
        """Attach the track to the album that owns it."""
        if self.album is not None and self.album is not album:
            raise InvalidTrackError(self.id, "already belongs to another album")
        self.album = album

    def __str__(self) -> str:
        return f"{self.number}. {self.title}"


@dataclass(eq=False)
class Album:
    """A catalog album (release) owning an ordered track list.

    Albums returned by a track search are partial: they hold a single
    track and may lack artist and release date.
    """

    title: str
    id: str
    tracks: list[Track] = field(default_factory=list)
    artist: Artist | None = None
    released: str | None = None
    type: str | None = None

    def __post_init__(self) -> None:
        for track in self.tracks:
            track.attach(self)

    @property
    def is_partial(self) -> bool:
        return self.artist is None

    def __str__(self) -> str:
        if self.artist is not None:
            return f"{self.artist} - {self.title}"
        return self.title


# ---------------------------------------------------------------------------
# Local files
# ---------------------------------------------------------------------------


@dataclass(eq=False)
class FileRecord:
    """One locally read audio file with its match result.

    Identity is the absolute path. Features are derived from the tags and
    path on construction unless given explicitly.
    """

    path: Path
    album: str | None = None
    album_artist: str | None = None
    artist: str | None = None
    title: str | None = None
    track_number: str | None = None
    release_id: str | None = None
    length_ms: int | None = None
    format: str | None = None
    sample_rate: int | None = None
    channels: int | None = None
    features: list[str] | None = None
    track: Track | None = field(default=None, repr=False)
    score: float = 0.0

    def __post_init__(self) -> None:
        self.path = Path(self.path).absolute()
        if self.features is None:
            from music_matcher.metadata.features import extract_features

            self.features = extract_features(self)

    def assign(self, track: Track, score: float) -> None:
        """Record the matched track and its score."""
        self.track = track
        self.score = score

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FileRecord):
            return NotImplemented
        return self.path == other.path

    def __hash__(self) -> int:
        return hash(self.path)

    def __str__(self) -> str:
        return str(self.path)


@dataclass(eq=False)
class Group:
    """Files believed to come from the same release."""

    name: str
    files: list[FileRecord] = field(default_factory=list)

    def add(self, file: FileRecord) -> None:
        if file not in self.files:
            self.files.append(file)

    def __len__(self) -> int:
        return len(self.files)

    def __str__(self) -> str:
        return self.name
