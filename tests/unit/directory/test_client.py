"""Tests for the directory API client."""

import hashlib
from unittest.mock import Mock

import pytest

from podtracks.config.schema import DirectoryConfig
from podtracks.directory.client import (
    EPISODE_LIST_MAX,
    DirectoryClient,
    compute_auth_headers,
    episode_from_payload,
    feed_from_payload,
)
from podtracks.utils.api_keys import APIKeyError
from podtracks.utils.errors import (
    AuthError,
    MalformedInputError,
    NotFoundError,
    RateLimitedError,
    TransientNetworkError,
)
from podtracks.utils.retry import TEST_RETRY_POLICY

FEED_PAYLOAD = {
    "status": "true",
    "feed": {
        "id": 920666,
        "podcastGuid": "F1",
        "title": "Acme Radio",
        "url": "https://acme.example.com/feed.xml",
        "author": "",
        "ownerName": "Acme Media",
        "artwork": "https://acme.example.com/art.jpg",
        "episodeCount": 42,
        "medium": "music",
        "value": {
            "model": {"type": "lightning", "method": "keysend"},
            "destinations": [
                {"name": "Acme", "type": "node", "address": "02abc", "split": 99},
                {"name": "App", "type": "node", "address": "03def", "split": 1, "fee": True},
            ],
        },
    },
}

EPISODE_PAYLOAD = {
    "status": "true",
    "episode": {
        "id": 1,
        "guid": "I1",
        "title": "Morning Drive",
        "duration": 270,
        "enclosureUrl": "https://acme.example.com/morning.mp3",
        "image": "",
        "datePublished": 1700000000,
    },
}


@pytest.fixture
def session() -> Mock:
    return Mock()


@pytest.fixture
def client(directory_config: DirectoryConfig, session: Mock) -> DirectoryClient:
    return DirectoryClient(
        directory_config, retry_policy=TEST_RETRY_POLICY, session=session, clock=lambda: 1700000000.5
    )


class TestAuthHeaders:
    """Tests for request authentication."""

    def test_compute_auth_headers(self) -> None:
        """Test the Authorization digest is SHA-1 of key + secret + timestamp."""
        headers = compute_auth_headers("KEY", "SECRET", 1700000000, "podtracks/test")

        assert headers["X-Auth-Key"] == "KEY"
        assert headers["X-Auth-Date"] == "1700000000"
        assert headers["Authorization"] == hashlib.sha1(b"KEYSECRET1700000000").hexdigest()
        assert headers["User-Agent"] == "podtracks/test"

    def test_client_uses_clock(self, client: DirectoryClient, session: Mock, make_response) -> None:
        """Test each request is signed with the current whole-second time."""
        session.get.return_value = make_response(200, FEED_PAYLOAD)

        client.feed_by_guid("F1")

        headers = session.get.call_args.kwargs["headers"]
        assert headers["X-Auth-Date"] == "1700000000"
        assert headers["X-Auth-Key"] == client.api_key

    def test_missing_credentials_fail_fast(self) -> None:
        """Test that missing credentials are rejected before any call."""
        with pytest.raises(APIKeyError):
            DirectoryClient(DirectoryConfig())


class TestFeedByGuid:
    """Tests for feed lookups."""

    def test_success(self, client: DirectoryClient, session: Mock, make_response) -> None:
        session.get.return_value = make_response(200, FEED_PAYLOAD)

        feed = client.feed_by_guid("F1")

        assert session.get.call_args.args[0] == "https://api.example.com/api/1.0/podcasts/byguid"
        assert session.get.call_args.kwargs["params"] == {"guid": "F1"}
        assert feed.directory_feed_id == 920666
        assert feed.title == "Acme Radio"
        assert feed.author == "Acme Media"
        assert feed.origin_url == "https://acme.example.com/feed.xml"
        assert len(feed.value_recipients) == 2
        assert feed.value_recipients[1].fee is True

    def test_empty_feed_is_not_found(self, client: DirectoryClient, session: Mock, make_response) -> None:
        """Test the directory's empty-list answer for unknown feeds."""
        session.get.return_value = make_response(200, {"status": "true", "feed": []})

        with pytest.raises(NotFoundError):
            client.feed_by_guid("nope")

    def test_bad_request_is_not_found(self, client: DirectoryClient, session: Mock, make_response) -> None:
        session.get.return_value = make_response(400, {"status": "false"})

        with pytest.raises(NotFoundError):
            client.feed_by_guid("nope")

    def test_rate_limited(self, client: DirectoryClient, session: Mock, make_response) -> None:
        """Test 429 propagates with Retry-After and is not retried here."""
        session.get.return_value = make_response(429, headers={"Retry-After": "7"})

        with pytest.raises(RateLimitedError) as exc_info:
            client.feed_by_guid("F1")

        assert exc_info.value.retry_after == 7
        assert session.get.call_count == 1

    def test_unauthorized(self, client: DirectoryClient, session: Mock, make_response) -> None:
        session.get.return_value = make_response(401)

        with pytest.raises(AuthError):
            client.feed_by_guid("F1")

    def test_server_errors_retried(self, client: DirectoryClient, session: Mock, make_response) -> None:
        """Test 5xx is retried a bounded number of times."""
        session.get.return_value = make_response(502)

        with pytest.raises(TransientNetworkError):
            client.feed_by_guid("F1")

        assert session.get.call_count == TEST_RETRY_POLICY.max_attempts

    def test_non_json(self, client: DirectoryClient, session: Mock, make_response) -> None:
        session.get.return_value = make_response(200, text="<html>")

        with pytest.raises(MalformedInputError):
            client.feed_by_guid("F1")


class TestEpisodes:
    """Tests for episode lookups."""

    def test_episode_by_guid(self, client: DirectoryClient, session: Mock, make_response) -> None:
        session.get.return_value = make_response(200, EPISODE_PAYLOAD)

        episode = client.episode_by_guid("I1", feed_guid="F1", feed_id=920666)

        assert session.get.call_args.kwargs["params"] == {
            "guid": "I1",
            "podcastguid": "F1",
            "feedid": 920666,
        }
        assert episode.title == "Morning Drive"
        assert episode.duration_seconds == 270
        assert episode.artwork_url is None
        assert episode.published_at is not None

    def test_mismatched_guid_is_not_found(
        self, client: DirectoryClient, session: Mock, make_response
    ) -> None:
        """Test that a different GUID in the answer is never accepted."""
        payload = {"episode": {**EPISODE_PAYLOAD["episode"], "guid": "I1-other"}}
        session.get.return_value = make_response(200, payload)

        with pytest.raises(NotFoundError):
            client.episode_by_guid("I1", feed_guid="F1")

    def test_episodes_by_feed_id(self, client: DirectoryClient, session: Mock, make_response) -> None:
        session.get.return_value = make_response(
            200,
            {"items": [{"guid": "A", "title": "One"}, {"title": "no guid"}, {"guid": "B"}]},
        )

        episodes = client.episodes_by_feed_id(920666, max_results=50)

        assert session.get.call_args.kwargs["params"] == {"id": 920666, "max": 50}
        assert [e.item_guid for e in episodes] == ["A", "B"]

    def test_episode_listing_capped_at_directory_max(
        self, client: DirectoryClient, session: Mock, make_response
    ) -> None:
        """Test oversized requests are clamped to what the directory serves."""
        session.get.return_value = make_response(200, {"items": []})

        client.episodes_by_feed_id(920666, max_results=5000)

        assert session.get.call_args.kwargs["params"]["max"] == EPISODE_LIST_MAX

    def test_search_by_term(self, client: DirectoryClient, session: Mock, make_response) -> None:
        session.get.return_value = make_response(
            200, {"feeds": [{"id": 1, "podcastGuid": "G", "title": "Found"}]}
        )

        feeds = client.search_by_term("acme", max_results=5)

        assert session.get.call_args.kwargs["params"] == {"q": "acme", "max": 5}
        assert feeds[0].feed_guid == "G"


class TestPayloadMapping:
    """Tests for payload-to-model mapping."""

    def test_zero_duration_is_unknown(self) -> None:
        """Test the directory's 0 duration becomes unknown."""
        assert episode_from_payload({"duration": 0}, "I").duration_seconds is None

    def test_textual_duration(self) -> None:
        assert episode_from_payload({"duration": "4:30"}, "I").duration_seconds == 270

    def test_feed_guid_fallback(self) -> None:
        """Test the requested GUID is used when the payload lacks one."""
        assert feed_from_payload({"id": 3}, "F9").feed_guid == "F9"
