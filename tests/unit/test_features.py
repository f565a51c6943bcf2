"""Unit tests for feature extraction and search hints."""

from __future__ import annotations

import itertools
from pathlib import Path

import pytest

from music_matcher.metadata.features import (
    DUPLICATE_THRESHOLD,
    basename_pieces,
    build_search_hints,
    directory_pieces,
    extract_features,
)
from music_matcher.metadata.models import FileRecord
from music_matcher.utils.similarity import similarity


def _record(path: str, **tags) -> FileRecord:
    return FileRecord(path=Path(path), **tags)


class TestPathPieces:
    def test_directory_split_on_dash(self) -> None:
        record = _record("/music/The_Beatles - Abbey_Road/x.mp3")
        assert directory_pieces(record) == ["The Beatles", "Abbey Road"]

    def test_basename_split_on_dash_then_dot(self) -> None:
        record = _record("/music/x/01.Come_Together - The_Beatles.mp3")
        assert basename_pieces(record) == ["01", "Come Together", "The Beatles"]


class TestExtractFeatures:
    def test_tag_order(self) -> None:
        record = _record(
            "/music/incoming/track.mp3",
            album="Abbey Road",
            album_artist="The Beatles",
            artist="John Lennon",
            title="Come Together",
            track_number="1",
        )
        assert record.features[:5] == [
            "Abbey Road",
            "The Beatles",
            "John Lennon",
            "Come Together",
            "1",
        ]

    def test_tags_before_directory_before_basename(self) -> None:
        record = _record("/music/Revolver/07 - Taxman.mp3", title="Dr. Robert")
        assert record.features == ["Dr. Robert", "Revolver", "07", "Taxman"]

    def test_duplicates_dropped(self) -> None:
        record = _record(
            "/music/Abbey Road/01 - Come Together.flac",
            album="Abbey Road",
            album_artist="The Beatles",
            artist="The Beatles",
            title="Come Together",
            track_number="1",
        )
        assert record.features == ["Abbey Road", "The Beatles", "Come Together", "1", "01"]

    def test_near_duplicates_dropped_case_insensitively(self) -> None:
        record = _record("/music/ABBEY ROAD/abbey roads.flac", album="Abbey Road")
        assert record.features == ["Abbey Road"]

    def test_blank_values_skipped(self) -> None:
        record = _record("/music/-/ - .mp3", album="  ", title="")
        assert record.features == []

    @pytest.mark.parametrize(
        "path,tags",
        [
            (
                "/music/The Beatles - Abbey Road/01 - The Beatles - Come Together.mp3",
                {"album": "Abbey Road", "artist": "Beatles", "title": "Come Together"},
            ),
            (
                "/music/Various - Now 42/03.Artist_One - Song_Title.ogg",
                {"album": "Now 42", "album_artist": "Various", "artist": "Artist One"},
            ),
            ("/music/aaaa-aaab-aabb-abbb/aaba-abab.mp3", {}),
        ],
    )
    def test_no_two_features_too_similar(self, path: str, tags: dict) -> None:
        features = extract_features(_record(path, **tags))
        for a, b in itertools.combinations(features, 2):
            assert similarity(a, b) < DUPLICATE_THRESHOLD

    def test_explicit_features_kept(self) -> None:
        record = _record("/music/x/y.mp3", album="Abbey Road", features=["custom"])
        assert record.features == ["custom"]


class TestBuildSearchHints:
    def test_hints_from_tags_and_path(self) -> None:
        record = _record(
            "/music/Abbey_Road/01_Come_Together.flac",
            album="Abbey Road",
            artist="The Beatles",
            title="Come Together",
            track_number="1",
            length_ms=259500,
        )
        hints = build_search_hints(record)
        assert hints.artist_text == "The Beatles Abbey Road 01 Come Together"
        assert hints.title_text == "Come Together 01 Come Together"
        assert hints.release_text == "Abbey Road Abbey Road 01 Come Together"
        assert hints.track_number == "1"
        assert hints.approx_duration_sec == 259

    def test_untagged_file(self) -> None:
        hints = build_search_hints(_record("/music/incoming/song.mp3"))
        assert hints.artist_text == "incoming song"
        assert hints.title_text == "song"
        assert hints.track_number is None
        assert hints.approx_duration_sec is None

    def test_zero_length_gives_no_duration(self) -> None:
        hints = build_search_hints(_record("/music/x/song.mp3", length_ms=0))
        assert hints.approx_duration_sec is None
