"""Shared fixtures for Podtracks tests."""

from collections.abc import Callable
from typing import Any
from unittest.mock import Mock

import pytest

from podtracks.config.schema import BatchConfig, DirectoryConfig
from podtracks.feeds.models import RemoteItemReference
from podtracks.utils.retry import BackoffPolicy

TEST_API_KEY = "TESTKEY1234"
TEST_API_SECRET = "testsecret$0123456789"

PLAYLIST_XML = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:podcast="https://podcastindex.org/namespace/1.0">
  <channel>
    <title>Morning Mix</title>
    <podcast:medium>musicL</podcast:medium>
    <podcast:remoteItem feedGuid="F1" itemGuid="I1" medium="music"/>
    <podcast:remoteItem itemGuid="I2" feedGuid="F2"></podcast:remoteItem>
    <podcast:remoteItem feedGuid="F3" itemGuid="I3" feedUrl="https://origin.example.com/f3.xml" />
  </channel>
</rss>
"""

ORIGIN_FEED_XML = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:itunes="http://www.itunes.com/dtds/podcast-1.0.dtd">
  <channel>
    <title>Origin Band</title>
    <itunes:author>Origin Band</itunes:author>
    <itunes:image href="https://origin.example.com/cover.jpg"/>
    <item>
      <title>Other Song</title>
      <guid isPermaLink="false">I-other</guid>
      <enclosure url="https://origin.example.com/other.mp3" type="audio/mpeg" length="1"/>
    </item>
    <item>
      <title>Deep Cut</title>
      <guid isPermaLink="false">I3</guid>
      <itunes:duration>3:45</itunes:duration>
      <enclosure url="https://origin.example.com/deep-cut.mp3" type="audio/mpeg" length="1"/>
    </item>
  </channel>
</rss>
"""


@pytest.fixture
def sample_config_dict() -> dict[str, Any]:
    """Sample configuration dictionary."""
    return {
        "version": "1",
        "log_level": "INFO",
        "directory": {"base_url": "https://api.example.com/api/1.0", "timeout_seconds": 5},
        "batch": {"batch_size": 2, "request_delay_seconds": 0, "batch_delay_seconds": 0},
    }


@pytest.fixture
def directory_config() -> DirectoryConfig:
    """Directory settings with well-formed test credentials."""
    return DirectoryConfig(
        api_key=TEST_API_KEY,
        api_secret=TEST_API_SECRET,
        base_url="https://api.example.com/api/1.0",
    )


@pytest.fixture
def fast_batch_config() -> BatchConfig:
    """Batch settings with no pacing delays."""
    return BatchConfig(
        batch_size=2,
        request_delay_seconds=0,
        batch_delay_seconds=0,
        max_consecutive_rate_limits=3,
    )


@pytest.fixture
def backoff() -> BackoffPolicy:
    return BackoffPolicy(initial_seconds=1, multiplier=2, max_seconds=8)


@pytest.fixture
def make_reference() -> Callable[..., RemoteItemReference]:
    """Factory for RemoteItemReference objects."""

    def _make(feed_guid: str = "F1", item_guid: str = "I1", order: int = 0, **kwargs: Any):
        return RemoteItemReference(
            feed_guid=feed_guid, item_guid=item_guid, declared_order=order, **kwargs
        )

    return _make


@pytest.fixture
def make_response() -> Callable[..., Mock]:
    """Factory for fake requests.Response objects."""

    def _make(
        status_code: int = 200,
        json_data: Any = None,
        text: str = "",
        headers: dict[str, str] | None = None,
    ) -> Mock:
        response = Mock()
        response.status_code = status_code
        response.text = text
        response.content = text.encode("utf-8")
        response.headers = headers or {}
        if json_data is None:
            response.json.side_effect = ValueError("No JSON")
        else:
            response.json.return_value = json_data
        return response

    return _make


@pytest.fixture
def playlist_xml() -> str:
    return PLAYLIST_XML


@pytest.fixture
def origin_feed_xml() -> str:
    return ORIGIN_FEED_XML
