"""Shared pytest fixtures."""

from __future__ import annotations

import shutil
import tempfile
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from music_matcher.metadata.models import Album, Artist, FileRecord, Track

if TYPE_CHECKING:
    from collections.abc import Generator


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    path = Path(tempfile.mkdtemp())
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)


@pytest.fixture
def sample_config(temp_dir: Path) -> Path:
    """Create a sample config file."""
    config_path = temp_dir / "config.toml"
    config_path.write_text("""[display]
colored_output = false

[catalog]
user_agent = "music-matcher-tests/1.0 ( tests@example.org )"
request_interval = 2.5
search_limit = 10

[matching]
low_relevance_floor = 0.3
high_confidence_floor = 0.9
workers = 2
""")
    return config_path


AlbumFactory = Callable[..., Album]


@pytest.fixture
def make_album() -> AlbumFactory:
    """Build a full album from ``(title, length_ms)`` pairs numbered from 1."""

    def _make(
        title: str,
        album_id: str,
        artist: str | None,
        tracks: Sequence[tuple[str, int | None]],
    ) -> Album:
        album_artist = Artist(name=artist, id=f"{album_id}-artist") if artist else None
        return Album(
            title=title,
            id=album_id,
            artist=album_artist,
            tracks=[
                Track(
                    artist=album_artist,
                    title=track_title,
                    id=f"{album_id}-t{number}",
                    number=number,
                    length_ms=length_ms,
                )
                for number, (track_title, length_ms) in enumerate(tracks, start=1)
            ],
        )

    return _make


@pytest.fixture
def abbey_road(make_album: AlbumFactory) -> Album:
    return make_album(
        "Abbey Road",
        "abbey-road",
        "The Beatles",
        [
            ("Come Together", 259000),
            ("Something", 182000),
            ("Maxwell's Silver Hammer", 207000),
            ("Oh! Darling", 207000),
        ],
    )


@pytest.fixture
def make_file() -> Callable[..., FileRecord]:
    """Build a tagged file record below ``/music/<directory>``."""

    def _make(
        name: str,
        *,
        directory: str = "incoming",
        album: str | None = None,
        artist: str | None = None,
        title: str | None = None,
        track_number: str | None = None,
        release_id: str | None = None,
        length_ms: int | None = None,
        features: list[str] | None = None,
    ) -> FileRecord:
        return FileRecord(
            path=Path("/music") / directory / name,
            album=album,
            artist=artist,
            title=title,
            track_number=track_number,
            release_id=release_id,
            length_ms=length_ms,
            format="FLAC",
            sample_rate=44100,
            channels=2,
            features=features,
        )

    return _make


@pytest.fixture
def abbey_road_files(make_file) -> list[FileRecord]:
    """Well tagged files for the first two tracks of Abbey Road."""
    return [
        make_file(
            "01 - Come Together.flac",
            directory="Abbey Road",
            album="Abbey Road",
            artist="The Beatles",
            title="Come Together",
            track_number="1",
            length_ms=259000,
        ),
        make_file(
            "02 - Something.flac",
            directory="Abbey Road",
            album="Abbey Road",
            artist="The Beatles",
            title="Something",
            track_number="2",
            length_ms=182000,
        ),
    ]
