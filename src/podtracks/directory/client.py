"""Authenticated client for the podcast directory API (Podcast Index).

Every request carries three headers: ``X-Auth-Key`` (the API key),
``X-Auth-Date`` (current Unix time) and ``Authorization``, the SHA-1 hex
digest of key + secret + that same timestamp.
"""

import hashlib
import logging
import time
from collections.abc import Callable
from typing import Any

import requests

from podtracks.config.schema import DirectoryConfig
from podtracks.feeds.models import ResolvedEpisode, ResolvedFeed, ValueRecipient
from podtracks.utils.api_keys import validate_directory_credentials
from podtracks.utils.datetime import from_unix
from podtracks.utils.errors import MalformedInputError, NotFoundError
from podtracks.utils.retry import (
    RetryPolicy,
    classify_http_status,
    classify_request_exception,
    parse_retry_after,
    with_network_retry,
)

logger = logging.getLogger(__name__)

# Largest page /episodes/byfeedid will return
EPISODE_LIST_MAX = 1000


def compute_auth_headers(api_key: str, api_secret: str, timestamp: int, user_agent: str) -> dict[str, str]:
    """Build the directory auth headers for a given Unix timestamp.

    Example:
        >>> headers = compute_auth_headers("KEY", "SECRET", 1700000000, "podtracks")
        >>> headers["X-Auth-Date"]
        '1700000000'
    """
    auth_date = str(int(timestamp))
    digest = hashlib.sha1((api_key + api_secret + auth_date).encode("utf-8")).hexdigest()
    return {
        "User-Agent": user_agent,
        "X-Auth-Key": api_key,
        "X-Auth-Date": auth_date,
        "Authorization": digest,
        "Accept": "application/json",
    }


class DirectoryClient:
    """Thin typed wrapper over the directory endpoints the pipeline needs.

    Raises from the resolution taxonomy: NotFoundError, RateLimitedError,
    TransientNetworkError (after bounded retries), MalformedInputError and
    AuthError.
    """

    def __init__(
        self,
        config: DirectoryConfig,
        retry_policy: RetryPolicy | None = None,
        session: requests.Session | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the client.

        Args:
            config: Directory settings (credentials, base URL, timeouts)
            retry_policy: Retry policy for transient failures
            session: Optional requests session (tests inject fakes)
            clock: Source of the current Unix time for auth headers

        Raises:
            AuthError: If credentials are missing or malformed
        """
        self.config = config
        self.api_key, self.api_secret = validate_directory_credentials(
            config.api_key, config.api_secret
        )
        self.session = session or requests.Session()
        self.clock = clock
        self._get_with_retry = with_network_retry(retry_policy)(self._get)

    def auth_headers(self) -> dict[str, str]:
        return compute_auth_headers(
            self.api_key, self.api_secret, int(self.clock()), self.config.user_agent
        )

    def feed_by_guid(self, feed_guid: str) -> ResolvedFeed:
        """GET /podcasts/byguid.

        Raises:
            NotFoundError: If the directory does not know the feed
        """
        payload = self._get_with_retry("/podcasts/byguid", {"guid": feed_guid})
        feed = payload.get("feed")
        if not isinstance(feed, dict) or not feed.get("id"):
            raise NotFoundError(f"Feed {feed_guid} not in directory")
        return feed_from_payload(feed, feed_guid)

    def episode_by_guid(
        self,
        item_guid: str,
        feed_guid: str | None = None,
        feed_id: int | None = None,
    ) -> ResolvedEpisode:
        """GET /episodes/byguid, scoped by feed GUID and/or directory feed id.

        Raises:
            NotFoundError: If no episode with exactly this GUID is returned
        """
        params: dict[str, Any] = {"guid": item_guid}
        if feed_guid:
            params["podcastguid"] = feed_guid
        if feed_id is not None:
            params["feedid"] = feed_id

        payload = self._get_with_retry("/episodes/byguid", params)
        episode = payload.get("episode")
        if not isinstance(episode, dict) or not episode:
            raise NotFoundError(f"Episode {item_guid} not in directory")
        returned_guid = episode.get("guid")
        if returned_guid is not None and str(returned_guid).strip() != item_guid:
            raise NotFoundError(f"Directory returned {returned_guid!r} for {item_guid}")
        return episode_from_payload(episode, item_guid)

    def episodes_by_feed_id(self, feed_id: int, max_results: int) -> list[ResolvedEpisode]:
        """GET /episodes/byfeedid, newest first, capped at ``max_results``.

        The directory returns at most ``EPISODE_LIST_MAX`` episodes per request
        and offers no cursor, so a single request is all that can be listed.
        Older episodes of a larger feed are only reachable by GUID lookup.
        """
        payload = self._get_with_retry(
            "/episodes/byfeedid", {"id": feed_id, "max": min(max_results, EPISODE_LIST_MAX)}
        )
        items = payload.get("items") or []
        if not isinstance(items, list):
            raise MalformedInputError(f"Unexpected episode list for feed {feed_id}")
        return [
            episode_from_payload(item, str(item.get("guid") or "").strip())
            for item in items
            if isinstance(item, dict) and item.get("guid")
        ]

    def search_by_term(self, term: str, max_results: int = 10) -> list[ResolvedFeed]:
        """GET /search/byterm. Discovery aid only, not used by the pipeline."""
        payload = self._get_with_retry("/search/byterm", {"q": term, "max": max_results})
        feeds = payload.get("feeds") or []
        return [
            feed_from_payload(feed, feed.get("podcastGuid") or "")
            for feed in feeds
            if isinstance(feed, dict)
        ]

    def _get(self, path: str, params: dict[str, Any]) -> dict[str, Any]:
        url = self.config.base_url.rstrip("/") + path
        try:
            response = self.session.get(
                url,
                params=params,
                headers=self.auth_headers(),
                timeout=self.config.timeout_seconds,
            )
        except requests.RequestException as e:
            raise classify_request_exception(e, url) from e

        if response.status_code >= 400:
            # Podcast Index answers 400 for GUIDs it has never seen
            if response.status_code == 400:
                raise NotFoundError(f"Directory rejected lookup {path} {params}")
            raise classify_http_status(
                response.status_code,
                f"{path} {params}",
                parse_retry_after(response.headers.get("Retry-After")),
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise MalformedInputError(f"Non-JSON response from {path}: {e}") from e

        if not isinstance(payload, dict):
            raise MalformedInputError(f"Unexpected payload type from {path}")

        logger.debug("Directory %s %s -> %s", path, params, payload.get("status"))
        return payload


def _clean(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _recipients(value_block: Any) -> list[ValueRecipient]:
    if not isinstance(value_block, dict):
        return []
    recipients = []
    for destination in value_block.get("destinations") or []:
        if not isinstance(destination, dict):
            continue
        split = destination.get("split")
        recipients.append(
            ValueRecipient(
                name=_clean(destination.get("name")),
                type=_clean(destination.get("type")),
                address=_clean(destination.get("address")),
                split=float(split) if isinstance(split, int | float) else None,
                custom_key=_clean(destination.get("customKey")),
                custom_value=_clean(destination.get("customValue")),
                fee=bool(destination.get("fee")),
            )
        )
    return recipients


def feed_from_payload(feed: dict[str, Any], feed_guid: str) -> ResolvedFeed:
    """Map a directory feed object to ResolvedFeed."""
    return ResolvedFeed(
        feed_guid=_clean(feed.get("podcastGuid")) or feed_guid,
        directory_feed_id=feed.get("id"),
        title=_clean(feed.get("title")),
        author=_clean(feed.get("author")) or _clean(feed.get("ownerName")),
        artwork_url=_clean(feed.get("artwork")) or _clean(feed.get("image")),
        origin_url=_clean(feed.get("url")) or _clean(feed.get("originalUrl")),
        episode_count=feed.get("episodeCount"),
        medium=_clean(feed.get("medium")),
        value_recipients=_recipients(feed.get("value")),
    )


def episode_from_payload(episode: dict[str, Any], item_guid: str) -> ResolvedEpisode:
    """Map a directory episode object to ResolvedEpisode.

    The directory reports unknown durations as 0; that becomes unknown
    rather than a zero-length track.
    """
    duration = episode.get("duration")
    if duration in (0, "0", ""):
        duration = None
    return ResolvedEpisode(
        item_guid=item_guid,
        title=_clean(episode.get("title")),
        duration_seconds=duration,
        audio_url=_clean(episode.get("enclosureUrl")),
        artwork_url=_clean(episode.get("image")),
        published_at=from_unix(episode.get("datePublished")),
        value_recipients=_recipients(episode.get("value")),
    )
