"""Directory-backed resolution of feed and episode GUIDs."""

import logging

from podtracks.directory.client import DirectoryClient
from podtracks.feeds.models import ResolvedEpisode, ResolvedFeed
from podtracks.utils.errors import MalformedInputError, NotFoundError

logger = logging.getLogger(__name__)


class DirectoryResolver:
    """Resolves GUIDs through the directory, caching per run.

    ``NotFound`` is a normal answer here and comes back as None.
    RateLimitedError, TransientNetworkError and AuthError propagate: the
    caller decides whether to back off, give up on the item, or abort.
    """

    def __init__(self, client: DirectoryClient, episode_scan_limit: int = 1000) -> None:
        """Initialize the resolver.

        Args:
            client: Authenticated directory client
            episode_scan_limit: Maximum episodes listed when scanning a feed
        """
        self.client = client
        self.episode_scan_limit = episode_scan_limit
        self._feeds: dict[str, ResolvedFeed | None] = {}
        self._feed_episodes: dict[int, dict[str, ResolvedEpisode]] = {}

    def resolve_feed(self, feed_guid: str) -> ResolvedFeed | None:
        """Feed metadata for ``feed_guid``, or None if the directory lacks it."""
        if feed_guid in self._feeds:
            return self._feeds[feed_guid]

        try:
            feed = self.client.feed_by_guid(feed_guid)
        except NotFoundError:
            logger.debug("Feed %s not found in directory", feed_guid)
            feed = None
        except MalformedInputError as e:
            logger.warning("Unusable directory answer for feed %s: %s", feed_guid, e)
            feed = None

        self._feeds[feed_guid] = feed
        return feed

    def resolve_episode(self, feed_guid: str, item_guid: str) -> ResolvedEpisode | None:
        """Episode metadata for ``item_guid`` within ``feed_guid``.

        Tries episode-by-GUID first; when that misses and the feed is known
        to the directory, scans the feed's episode list for an exact GUID
        match.
        """
        feed = self.resolve_feed(feed_guid)
        feed_id = feed.directory_feed_id if feed else None

        try:
            return self.client.episode_by_guid(item_guid, feed_guid=feed_guid, feed_id=feed_id)
        except NotFoundError:
            logger.debug("Episode %s not found by GUID", item_guid)
        except MalformedInputError as e:
            logger.warning("Unusable directory answer for episode %s: %s", item_guid, e)

        if feed_id is None:
            return None

        return self._episodes_for(feed_id).get(item_guid)

    def _episodes_for(self, feed_id: int) -> dict[str, ResolvedEpisode]:
        if feed_id not in self._feed_episodes:
            try:
                episodes = self.client.episodes_by_feed_id(feed_id, self.episode_scan_limit)
            except (NotFoundError, MalformedInputError) as e:
                logger.debug("No episode listing for feed %s: %s", feed_id, e)
                episodes = []
            # First occurrence wins when a feed repeats a GUID
            listing: dict[str, ResolvedEpisode] = {}
            for episode in episodes:
                listing.setdefault(episode.item_guid, episode)
            self._feed_episodes[feed_id] = listing
            logger.debug("Listed %d episodes for feed %s", len(listing), feed_id)
        return self._feed_episodes[feed_id]
