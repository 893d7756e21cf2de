"""Extraction of Podcasting 2.0 remote-item references from playlist markup."""

import logging

from pydantic import BaseModel, Field, ValidationError

from podtracks.feeds.models import RemoteItemReference, TimeSplit
from podtracks.feeds.xml import XmlDocument, XmlNode
from podtracks.utils.errors import MalformedInputError

logger = logging.getLogger(__name__)


class ExtractionResult(BaseModel):
    """Ordered references plus anything worth telling the operator."""

    references: list[RemoteItemReference] = Field(default_factory=list)
    diagnostics: list[str] = Field(default_factory=list)
    title: str | None = None  # Playlist/channel title, when present


class RemoteItemExtractor:
    """Walks ``remoteItem`` elements in document order.

    Attribute order, self-closing vs. open/close tags and missing namespace
    declarations are all tolerated. A ``remoteItem`` nested inside a
    ``valueTimeSplit`` picks up that split's start/duration.

    Malformed markup never raises: the result is empty and carries a
    diagnostic, so one broken playlist cannot abort a batch of playlists.
    """

    def extract(self, markup: str | bytes) -> ExtractionResult:
        """Extract references from playlist markup.

        Args:
            markup: RSS/playlist XML text

        Returns:
            ExtractionResult with references in declared order
        """
        try:
            document = XmlDocument.parse(markup)
        except MalformedInputError as e:
            logger.warning("Skipping malformed playlist: %s", e)
            return ExtractionResult(diagnostics=[str(e)])

        result = ExtractionResult(title=document.channel.get_child_text("title"))

        for position, node in enumerate(document.root.iter("remoteItem")):
            feed_guid = node.get_attribute("feedGuid")
            item_guid = node.get_attribute("itemGuid")
            if not feed_guid or not item_guid:
                result.diagnostics.append(
                    f"remoteItem #{position + 1} skipped: missing "
                    f"{'feedGuid' if not feed_guid else 'itemGuid'}"
                )
                continue

            time_split = None
            split_node = node.ancestor("valueTimeSplit")
            if split_node is not None:
                time_split = self._time_split(split_node, result.diagnostics)

            result.references.append(
                RemoteItemReference(
                    feed_guid=feed_guid,
                    item_guid=item_guid,
                    medium=node.get_attribute("medium"),
                    feed_url=node.get_attribute("feedUrl"),
                    declared_order=len(result.references),
                    time_split=time_split,
                )
            )

        logger.debug(
            "Extracted %d references (%d diagnostics)",
            len(result.references),
            len(result.diagnostics),
        )
        return result

    def _time_split(self, node: XmlNode, diagnostics: list[str]) -> TimeSplit | None:
        start = node.get_attribute("startTime")
        duration = node.get_attribute("duration")
        percentage = node.get_attribute("remotePercentage")
        try:
            return TimeSplit(
                start_seconds=float(start or 0),
                duration_seconds=float(duration or 0),
                remote_percentage=float(percentage) if percentage else None,
            )
        except (ValueError, ValidationError):
            diagnostics.append(
                f"valueTimeSplit ignored: startTime={start!r} duration={duration!r} "
                f"remotePercentage={percentage!r}"
            )
            return None
