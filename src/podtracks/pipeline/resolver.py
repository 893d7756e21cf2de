"""Resolution chain for one reference: directory, then origin feed, then normalize."""

import logging

from podtracks.catalog.models import Track
from podtracks.catalog.normalizer import SOURCE_DIRECTORY, SOURCE_ORIGIN_FEED, normalize
from podtracks.directory.resolver import DirectoryResolver
from podtracks.feeds.models import RemoteItemReference, ResolvedEpisode, ResolvedFeed
from podtracks.feeds.origin import OriginFeedResolver
from podtracks.utils.errors import MalformedInputError, TransientNetworkError

logger = logging.getLogger(__name__)


def _fill_feed(primary: ResolvedFeed, fallback: ResolvedFeed | None) -> ResolvedFeed:
    """``primary`` with empty fields taken from ``fallback``."""
    if fallback is None:
        return primary
    updates = {
        name: getattr(fallback, name)
        for name in ("title", "author", "artwork_url", "medium", "directory_feed_id")
        if getattr(primary, name) is None and getattr(fallback, name) is not None
    }
    if not primary.value_recipients and fallback.value_recipients:
        updates["value_recipients"] = fallback.value_recipients
    return primary.model_copy(update=updates) if updates else primary


class ReferenceResolver:
    """Turns a RemoteItemReference into a normalized Track.

    Returns None when nothing usable was found; the placeholder then stays
    as it is until a later run. RateLimitedError and AuthError propagate to
    the scheduler. A TransientNetworkError that survives the client's
    retries counts as "not found" for this item.
    """

    def __init__(self, directory: DirectoryResolver, origin: OriginFeedResolver) -> None:
        self.directory = directory
        self.origin = origin

    def resolve(self, reference: RemoteItemReference, playlist: str | None = None) -> Track | None:
        """Resolve one reference.

        Args:
            reference: Reference from the playlist
            playlist: Optional label stored on the Track

        Returns:
            Normalized Track, or None if the item could not be found
        """
        feed_guid, item_guid = reference.key
        try:
            return self._resolve(reference, playlist)
        except TransientNetworkError as e:
            logger.warning("Network trouble resolving %s/%s; leaving it pending: %s", feed_guid, item_guid, e)
        except MalformedInputError as e:
            logger.warning("Skipping %s/%s: %s", feed_guid, item_guid, e)
        return None

    def _resolve(self, reference: RemoteItemReference, playlist: str | None) -> Track | None:
        feed_guid, item_guid = reference.key

        feed: ResolvedFeed | None = None
        episode: ResolvedEpisode | None = None
        try:
            feed = self.directory.resolve_feed(feed_guid)
            episode = self.directory.resolve_episode(feed_guid, item_guid)
        except TransientNetworkError as e:
            logger.warning("Directory unreachable for %s/%s: %s", feed_guid, item_guid, e)

        directory_track = None
        if episode is not None:
            directory_track = normalize(
                feed or ResolvedFeed(feed_guid=feed_guid),
                episode,
                reference=reference,
                source=SOURCE_DIRECTORY,
                playlist=playlist,
            )
            if directory_track.resolved:
                logger.debug("Resolved %s/%s via directory", feed_guid, item_guid)
                return directory_track

        origin_url = (feed.origin_url if feed else None) or reference.feed_url
        if origin_url:
            match = self.origin.resolve(origin_url, feed_guid, item_guid)
            if match is not None:
                logger.debug("Resolved %s/%s via origin feed %s", feed_guid, item_guid, origin_url)
                return normalize(
                    _fill_feed(match.feed, feed),
                    match.episode,
                    reference=reference,
                    source=SOURCE_ORIGIN_FEED,
                    playlist=playlist,
                )
        else:
            logger.debug("No origin URL known for %s/%s", feed_guid, item_guid)

        if directory_track is None:
            logger.info("Could not resolve %s/%s", feed_guid, item_guid)
        return directory_track
