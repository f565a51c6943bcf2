"""Unit tests for the match coordinator."""

from __future__ import annotations

import threading
import time
from unittest.mock import MagicMock, patch

import pytest
import requests

from music_matcher.catalog import AlbumCache, MusicBrainzClient, MusicBrainzGateway, RateLimiter
from music_matcher.matching.coordinator import GroupRegistry, MatchCoordinator
from music_matcher.matching.group_matcher import MatcherState
from music_matcher.metadata.models import FileRecord


def _release_json(release_id: str, title: str, track_title: str) -> dict:
    credit = [
        {
            "name": "The Beatles",
            "joinphrase": "",
            "artist": {"id": "b10bbbfc", "name": "The Beatles", "sort-name": "Beatles, The"},
        }
    ]
    return {
        "id": release_id,
        "title": title,
        "artist-credit": credit,
        "media": [
            {
                "position": 1,
                "tracks": [
                    {
                        "title": track_title,
                        "length": 259000,
                        "recording": {"id": f"{release_id}-rec", "title": track_title},
                    }
                ],
            }
        ],
    }


@pytest.fixture
def let_it_be_file(make_file) -> FileRecord:
    return make_file(
        "01 - Two of Us.flac",
        directory="Let It Be",
        album="Let It Be",
        artist="The Beatles",
        title="Two of Us",
        track_number="1",
        length_ms=216000,
    )


class TestGroupRegistry:
    def test_groups_by_name(self, make_file) -> None:
        registry = GroupRegistry()
        a = make_file("a.flac", features=["a"])
        b = make_file("b.flac", features=["b"])
        group = registry.add_file("g", a)
        assert registry.add_file("g", b) is group
        assert group.files == [a, b]
        assert len(registry) == 1
        assert registry.get("missing") is None

    def test_same_file_added_once(self, make_file) -> None:
        registry = GroupRegistry()
        a = make_file("a.flac", features=["a"])
        registry.add_file("g", a)
        registry.add_file("g", make_file("a.flac", features=["a"]))
        assert len(registry.get("g")) == 1


class TestMatchCoordinator:
    def test_file_loaded_groups_files(self, abbey_road_files, let_it_be_file) -> None:
        loaded = []
        with MatchCoordinator(MagicMock(), on_file_loaded=loaded.append) as coordinator:
            for file in [*abbey_road_files, let_it_be_file]:
                coordinator.file_loaded(file)

        assert loaded == [*abbey_road_files, let_it_be_file]
        assert len(coordinator.groups) == 2
        names = [group.name for group in coordinator.groups]
        assert names == ["Abbey Road (FLAC, 44100, 2)", "Let It Be (FLAC, 44100, 2)"]

    def test_custom_group_name(self, abbey_road_files, let_it_be_file) -> None:
        with MatchCoordinator(MagicMock(), group_name=lambda f: "all") as coordinator:
            for file in [*abbey_road_files, let_it_be_file]:
                coordinator.file_loaded(file)
        assert len(coordinator.groups.get("all")) == 3

    def test_all_files_loaded_matches_every_group(
        self, abbey_road, abbey_road_files, let_it_be_file
    ) -> None:
        gateway = MagicMock()
        gateway.fetch_album.side_effect = lambda album_id: abbey_road
        matched = []

        with MatchCoordinator(
            gateway,
            workers=2,
            album_ids=["abbey-road"],
            on_group_matched=lambda g, r: matched.append(g),
        ) as coordinator:
            for file in [*abbey_road_files, let_it_be_file]:
                coordinator.file_loaded(file)
            started = coordinator.all_files_loaded()
            assert len(started) == 2
            assert coordinator.wait(timeout=10)

        assert len(matched) == 2
        assert set(coordinator.results) == {group.name for group in coordinator.groups}
        assert coordinator.results["Abbey Road (FLAC, 44100, 2)"].album is abbey_road
        assert coordinator.active_matchers == []

    def test_groups_are_scheduled_once(self, abbey_road, abbey_road_files) -> None:
        gateway = MagicMock()
        gateway.fetch_album.return_value = abbey_road
        with MatchCoordinator(gateway, album_ids=["abbey-road"]) as coordinator:
            for file in abbey_road_files:
                coordinator.file_loaded(file)
            assert len(coordinator.all_files_loaded()) == 1
            coordinator.wait(timeout=10)
            assert coordinator.all_files_loaded() == []
        assert gateway.fetch_album.call_count == 1

    def test_stop(self, abbey_road_files) -> None:
        gateway = MagicMock()
        coordinator = MatchCoordinator(gateway)
        for file in abbey_road_files:
            coordinator.file_loaded(file)
        coordinator.stop()
        assert coordinator.all_files_loaded() == []
        coordinator.shutdown()
        gateway.stop.assert_called_once()

    def test_stop_finishes_cancelled_matchers(
        self, abbey_road, abbey_road_files, let_it_be_file
    ) -> None:
        entered = threading.Event()
        release = threading.Event()

        def fetch_album(album_id):
            entered.set()
            release.wait(timeout=10)
            return abbey_road

        gateway = MagicMock()
        gateway.fetch_album.side_effect = fetch_album
        matched = []

        with MatchCoordinator(
            gateway,
            workers=1,
            album_ids=["abbey-road"],
            on_group_matched=lambda g, r: matched.append(g.name),
        ) as coordinator:
            for file in [*abbey_road_files, let_it_be_file]:
                coordinator.file_loaded(file)
            started = coordinator.all_files_loaded()
            assert entered.wait(timeout=10)

            coordinator.stop()
            release.set()
            assert coordinator.wait(timeout=10)

        assert [m.state for m in started] == [MatcherState.FINISHED, MatcherState.FINISHED]
        assert coordinator.active_matchers == []
        assert sorted(matched) == ["Abbey Road (FLAC, 44100, 2)", "Let It Be (FLAC, 44100, 2)"]
        cancelled = coordinator.results["Let It Be (FLAC, 44100, 2)"]
        assert not cancelled.matched
        assert cancelled.assignments == {}
        assert gateway.fetch_album.call_count == 1

    def test_matchers_share_one_rate_limit(self, abbey_road_files, let_it_be_file) -> None:
        request_times: list[float] = []
        lock = threading.Lock()
        releases = {
            "abbey-road": _release_json("abbey-road", "Abbey Road", "Come Together"),
            "let-it-be": _release_json("let-it-be", "Let It Be", "Two of Us"),
        }

        def fake_get(url, params=None, timeout=None):
            with lock:
                request_times.append(time.monotonic())
            resp = MagicMock(spec=requests.Response)
            resp.status_code = 200
            resp.headers = {}
            resp.json.return_value = releases[url.rsplit("/", 1)[-1]]
            return resp

        client = MusicBrainzClient(RateLimiter(1.0))
        gateway = MusicBrainzGateway(client, AlbumCache())

        with patch.object(client._session, "get", side_effect=fake_get):
            with MatchCoordinator(
                gateway, workers=2, album_ids=["abbey-road", "let-it-be"]
            ) as coordinator:
                for file in [*abbey_road_files, let_it_be_file]:
                    coordinator.file_loaded(file)
                coordinator.all_files_loaded()
                assert coordinator.wait(timeout=30)

        # Two groups, two albums, each fetched once through the shared cache
        assert len(request_times) == 2
        request_times.sort()
        assert request_times[1] - request_times[0] >= 0.95
        assert coordinator.results["Let It Be (FLAC, 44100, 2)"].album.id == "let-it-be"
