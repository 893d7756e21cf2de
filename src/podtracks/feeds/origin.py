"""Origin-feed fallback: find an item by GUID directly in its RSS feed."""

import logging
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime

from pydantic import BaseModel

from podtracks.feeds.fetcher import FeedFetcher
from podtracks.feeds.models import ResolvedEpisode, ResolvedFeed, ValueRecipient
from podtracks.feeds.xml import XmlDocument, XmlNode
from podtracks.utils.errors import MalformedInputError

logger = logging.getLogger(__name__)


class OriginMatch(BaseModel):
    """Channel and item metadata for a GUID found in an origin feed."""

    feed: ResolvedFeed
    episode: ResolvedEpisode


class OriginFeedResolver:
    """Resolves an item by fetching its origin feed and scanning for the GUID.

    Only an exact GUID match counts; titles are never used to guess. When
    the feed cannot be fetched or parsed, or no item matches, the result is
    None and the reference stays a placeholder until a later run.
    """

    def __init__(self, fetcher: FeedFetcher) -> None:
        self.fetcher = fetcher

    def resolve(self, origin_url: str, feed_guid: str, item_guid: str) -> OriginMatch | None:
        """Look up ``item_guid`` in the feed at ``origin_url``.

        Args:
            origin_url: RSS/Atom URL of the feed
            feed_guid: Feed GUID the reference pointed at
            item_guid: Item GUID to match exactly

        Returns:
            OriginMatch, or None if not found
        """
        result = self.fetcher.fetch(origin_url)
        if not result.ok:
            logger.info("Origin feed %s unavailable: %s", origin_url, result.error)
            return None

        try:
            document = XmlDocument.parse(result.body)
        except MalformedInputError as e:
            logger.warning("Origin feed %s is not parseable: %s", origin_url, e)
            return None

        return match_item(document, origin_url, feed_guid, item_guid)


def match_item(
    document: XmlDocument,
    origin_url: str,
    feed_guid: str,
    item_guid: str,
) -> OriginMatch | None:
    """Find the item whose GUID equals ``item_guid`` in a parsed feed."""
    wanted = item_guid.strip()
    for item in document.items():
        guid = item.get_child_text("guid") or item.get_child_text("id")
        if guid is None or guid != wanted:
            continue

        channel = document.channel
        feed = ResolvedFeed(
            feed_guid=feed_guid,
            title=channel.get_child_text("title"),
            author=channel.get_child_text("author") or channel.get_child_text("managingEditor"),
            artwork_url=image_url(channel),
            origin_url=origin_url,
            episode_count=len(document.items()),
            medium=channel.get_child_text("medium"),
            value_recipients=value_recipients(channel),
        )
        episode = ResolvedEpisode(
            item_guid=item_guid,
            title=item.get_child_text("title"),
            author=item.get_child_text("author"),
            duration_seconds=item.get_child_text("duration"),
            audio_url=enclosure_url(item),
            artwork_url=image_url(item),
            published_at=parse_pub_date(item.get_child_text("pubDate") or item.get_child_text("published")),
            value_recipients=value_recipients(item),
        )
        logger.debug("Matched %s in origin feed %s", item_guid, origin_url)
        return OriginMatch(feed=feed, episode=episode)

    logger.info("Item %s not present in origin feed %s", item_guid, origin_url)
    return None


def enclosure_url(item: XmlNode) -> str | None:
    """Audio URL from ``<enclosure url>`` or an Atom ``rel="enclosure"`` link."""
    enclosure = item.find_child("enclosure")
    if enclosure is not None:
        url = enclosure.get_attribute("url")
        if url:
            return url
    for link in item.children("link"):
        if link.get_attribute("rel") == "enclosure":
            return link.get_attribute("href")
    return None


def image_url(node: XmlNode) -> str | None:
    """Artwork from ``itunes:image@href`` or RSS ``<image><url>``."""
    for image in node.children("image"):
        href = image.get_attribute("href")
        if href:
            return href
        url = image.get_child_text("url")
        if url:
            return url
    return None


def value_recipients(node: XmlNode) -> list[ValueRecipient]:
    """V4V recipients declared in ``podcast:value`` (data only)."""
    value = node.find_child("value")
    if value is None:
        return []

    recipients = []
    for recipient in value.children("valueRecipient"):
        split = recipient.get_attribute("split")
        try:
            split_value = float(split) if split else None
        except ValueError:
            split_value = None
        recipients.append(
            ValueRecipient(
                name=recipient.get_attribute("name"),
                type=recipient.get_attribute("type"),
                address=recipient.get_attribute("address"),
                split=split_value,
                custom_key=recipient.get_attribute("customKey"),
                custom_value=recipient.get_attribute("customValue"),
                fee=(recipient.get_attribute("fee") or "").lower() == "true",
            )
        )
    return recipients


def parse_pub_date(value: str | None) -> datetime | None:
    """Parse RFC 822 (RSS) or ISO 8601 (Atom) dates; None if unparseable."""
    if not value:
        return None
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
