"""Playlist extraction, feed fetching and origin-feed fallback."""

from podtracks.feeds.extractor import ExtractionResult, RemoteItemExtractor
from podtracks.feeds.fetcher import FeedFetcher, load_source
from podtracks.feeds.models import (
    FetchFailure,
    FetchResult,
    RemoteItemReference,
    ResolvedEpisode,
    ResolvedFeed,
    TimeSplit,
    ValueRecipient,
)
from podtracks.feeds.origin import OriginFeedResolver, OriginMatch
from podtracks.feeds.xml import XmlDocument, XmlNode

__all__ = [
    "ExtractionResult",
    "RemoteItemExtractor",
    "FeedFetcher",
    "load_source",
    "FetchFailure",
    "FetchResult",
    "RemoteItemReference",
    "ResolvedEpisode",
    "ResolvedFeed",
    "TimeSplit",
    "ValueRecipient",
    "OriginFeedResolver",
    "OriginMatch",
    "XmlDocument",
    "XmlNode",
]
