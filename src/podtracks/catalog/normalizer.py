"""Track normalization: resolved feed/episode metadata -> catalog Track."""

from datetime import datetime

from podtracks.catalog.models import (
    UNKNOWN_FEED,
    Track,
    is_absolute_url,
    is_placeholder_text,
)
from podtracks.feeds.models import RemoteItemReference, ResolvedEpisode, ResolvedFeed
from podtracks.utils.datetime import now_utc
from podtracks.utils.duration import parse_duration

SOURCE_DIRECTORY = "directory"
SOURCE_ORIGIN_FEED = "origin-feed"
SOURCE_PLACEHOLDER = "placeholder"

__all__ = [
    "SOURCE_DIRECTORY",
    "SOURCE_ORIGIN_FEED",
    "SOURCE_PLACEHOLDER",
    "make_placeholder",
    "normalize",
    "parse_duration",
    "placeholder_title",
]


def placeholder_title(ordinal: int) -> str:
    return f"Track {ordinal}"


def _first_real(*values: str | None) -> str | None:
    for value in values:
        if value and not is_placeholder_text(value):
            return value.strip()
    return None


def make_placeholder(
    reference: RemoteItemReference,
    track_id: str = "",
    playlist: str | None = None,
    now: datetime | None = None,
) -> Track:
    """Unresolved entry created the moment a reference is first seen."""
    return Track(
        id=track_id,
        title=placeholder_title(reference.declared_order + 1),
        album=UNKNOWN_FEED,
        feed_guid=reference.feed_guid,
        item_guid=reference.item_guid,
        feed_url=reference.feed_url,
        medium=reference.medium,
        source=SOURCE_PLACEHOLDER,
        playlist=playlist,
        declared_order=reference.declared_order,
        time_split=reference.time_split,
        resolved=False,
        added_at=now or now_utc(),
    )


def normalize(
    feed: ResolvedFeed,
    episode: ResolvedEpisode | None,
    *,
    reference: RemoteItemReference | None = None,
    ordinal: int = 1,
    source: str = SOURCE_DIRECTORY,
    track_id: str = "",
    playlist: str | None = None,
    now: datetime | None = None,
) -> Track:
    """Build a Track from whatever metadata was resolved.

    Preference orders:
        title: episode title, feed title, then "Track <ordinal>"
        artist: episode author, feed author, then feed title
        artwork: episode image, feed artwork, then nothing

    Duration comes from the episode only; when it is absent the Track
    carries the unknown sentinel (None) rather than a guessed value.

    Args:
        feed: Resolved feed metadata
        episode: Resolved episode metadata, or None if only the feed is known
        reference: Reference the Track came from (order, time split, medium)
        ordinal: 1-based position used for a generated title
        source: Where the metadata came from
        track_id: Catalog id to assign
        playlist: Optional operator-supplied playlist label
        now: Clock override

    Returns:
        Track, resolved only when it has a real title and an absolute audio URL
    """
    now = now or now_utc()
    if reference is not None:
        ordinal = reference.declared_order + 1

    # Identity always follows the reference that asked for the item
    if reference is not None:
        feed_guid, item_guid = reference.key
    else:
        feed_guid, item_guid = feed.feed_guid, (episode.item_guid if episode else "")
    title = _first_real(episode.title if episode else None, feed.title) or placeholder_title(ordinal)
    artist = _first_real(episode.author if episode else None, feed.author, feed.title)
    artwork = (episode.artwork_url if episode else None) or feed.artwork_url or None
    audio = episode.audio_url if episode else None
    if not is_absolute_url(audio):
        audio = None

    recipients = (episode.value_recipients if episode else []) or feed.value_recipients
    feed_url = feed.origin_url or (reference.feed_url if reference else None)
    medium = (reference.medium if reference else None) or feed.medium

    resolved = not is_placeholder_text(title) and audio is not None

    return Track(
        id=track_id,
        title=title,
        artist=artist,
        album=_first_real(feed.title) or UNKNOWN_FEED,
        feed_guid=feed_guid,
        item_guid=item_guid,
        feed_url=feed_url,
        audio_url=audio,
        artwork_url=artwork,
        duration_seconds=episode.duration_seconds if episode else None,
        published_at=episode.published_at if episode else None,
        medium=medium,
        source=source,
        playlist=playlist,
        declared_order=reference.declared_order if reference else None,
        time_split=reference.time_split if reference else None,
        value_recipients=list(recipients),
        resolved=resolved,
        added_at=now,
        resolved_at=now if resolved else None,
    )
