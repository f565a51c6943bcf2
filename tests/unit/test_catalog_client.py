"""Unit tests for the MusicBrainz web service client."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
import requests

from music_matcher.catalog.client import MusicBrainzClient
from music_matcher.exceptions import CatalogConnectionError, CatalogError, CatalogParseError


def _make_response(
    json_data: dict | list | None = None,
    status_code: int = 200,
    headers: dict | None = None,
) -> MagicMock:
    """Create a mock requests.Response."""
    resp = MagicMock(spec=requests.Response)
    resp.status_code = status_code
    resp.json.return_value = json_data
    resp.headers = headers or {}
    resp.text = str(json_data)
    resp.raise_for_status = MagicMock()
    if status_code >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(response=resp)
    return resp


@pytest.fixture
def limiter() -> MagicMock:
    return MagicMock()


@pytest.fixture
def client(limiter) -> MusicBrainzClient:
    return MusicBrainzClient(limiter, base_url="https://mb.test/ws/2/", user_agent="tests/1.0")


@pytest.fixture(autouse=True)
def no_sleep():
    with patch("music_matcher.catalog.client.time.sleep") as mock_sleep:
        yield mock_sleep


class TestLookupRelease:
    def test_request(self, client: MusicBrainzClient, limiter: MagicMock) -> None:
        resp = _make_response({"id": "r1", "title": "Abbey Road"})
        with patch.object(client._session, "get", return_value=resp) as mock_get:
            data = client.lookup_release("r1")

        assert data["title"] == "Abbey Road"
        mock_get.assert_called_once()
        url = mock_get.call_args.args[0]
        params = mock_get.call_args.kwargs["params"]
        assert url == "https://mb.test/ws/2/release/r1"
        assert params["fmt"] == "json"
        assert "recordings" in params["inc"]
        assert "artist-credits" in params["inc"]
        limiter.wait.assert_called_once()

    def test_user_agent(self, client: MusicBrainzClient) -> None:
        assert client._session.headers["User-Agent"] == "tests/1.0"

    def test_not_found(self, client: MusicBrainzClient) -> None:
        with patch.object(client._session, "get", return_value=_make_response({}, 404)):
            with pytest.raises(CatalogError):
                client.lookup_release("missing")

    def test_invalid_json(self, client: MusicBrainzClient) -> None:
        resp = _make_response()
        resp.json.side_effect = ValueError("not json")
        with patch.object(client._session, "get", return_value=resp):
            with pytest.raises(CatalogParseError):
                client.lookup_release("r1")

    def test_non_object_json(self, client: MusicBrainzClient) -> None:
        with patch.object(client._session, "get", return_value=_make_response([1, 2])):
            with pytest.raises(CatalogParseError):
                client.lookup_release("r1")


class TestSearchRecordings:
    def test_request(self, client: MusicBrainzClient) -> None:
        resp = _make_response({"recordings": []})
        with patch.object(client._session, "get", return_value=resp) as mock_get:
            data = client.search_recordings("recording:(Something)", limit=5)

        assert data == {"recordings": []}
        assert mock_get.call_args.args[0] == "https://mb.test/ws/2/recording"
        params = mock_get.call_args.kwargs["params"]
        assert params["query"] == "recording:(Something)"
        assert params["limit"] == 5


class TestRetries:
    def test_retries_on_rate_limit(
        self, client: MusicBrainzClient, limiter: MagicMock, no_sleep: MagicMock
    ) -> None:
        responses = [
            _make_response(status_code=503, headers={"Retry-After": "3"}),
            _make_response({"id": "r1", "title": "A"}),
        ]
        with patch.object(client._session, "get", side_effect=responses):
            data = client.lookup_release("r1")

        assert data["id"] == "r1"
        no_sleep.assert_called_once_with(3.0)
        # Every attempt passes the rate limiter
        assert limiter.wait.call_count == 2

    def test_gives_up_after_retries(self, client: MusicBrainzClient) -> None:
        with patch.object(client._session, "get", return_value=_make_response(status_code=429)):
            with pytest.raises(CatalogError, match="Rate limited"):
                client.lookup_release("r1")

    def test_connection_errors(self, client: MusicBrainzClient) -> None:
        error = requests.ConnectionError("refused")
        with patch.object(client._session, "get", side_effect=error) as mock_get:
            with pytest.raises(CatalogConnectionError):
                client.lookup_release("r1")
        assert mock_get.call_count == 3

    def test_recovers_from_one_connection_error(self, client: MusicBrainzClient) -> None:
        side_effect = [requests.Timeout("slow"), _make_response({"id": "r1", "title": "A"})]
        with patch.object(client._session, "get", side_effect=side_effect):
            assert client.lookup_release("r1")["id"] == "r1"
