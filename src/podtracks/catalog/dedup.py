"""Deduplication engine: the one place that decides new / upgrade / duplicate.

Two rules identify the same track:

- identity: same ``(feed_guid, item_guid)`` key
- content: different key, same normalized title and artist, and the
  existing entry already has a usable audio URL

When several existing entries qualify, the keeper is the one with the most
populated optional fields (audio URL, artwork, duration); earlier catalog
position breaks ties. Losers are retired with ``superseded_by``, never
deleted.
"""

import logging
import re
import string
from dataclasses import dataclass, field
from enum import Enum

from podtracks.catalog.models import CatalogSnapshot, Track, is_placeholder_text
from podtracks.catalog.normalizer import SOURCE_PLACEHOLDER
from podtracks.utils.datetime import now_utc

logger = logging.getLogger(__name__)

_VERSION_SUFFIX_RE = re.compile(r"\s*[\(\[]\s*(?:reprise|remix|single|edit)\s*[\)\]]\s*$", re.IGNORECASE)
_TRAILING_SINGLE_RE = re.compile(r"\s+-\s+single\s*$", re.IGNORECASE)
_PUNCTUATION_RE = re.compile(f"[{re.escape(string.punctuation)}‘’“”]")

# Fields that describe the reference rather than the recording
_REFERENCE_FIELDS = ("feed_url", "playlist", "declared_order", "time_split")
_CONTENT_FIELDS = (
    "artist",
    "audio_url",
    "artwork_url",
    "duration_seconds",
    "published_at",
    "medium",
)


def normalize_text(value: str | None) -> str:
    """Lowercase, drop punctuation, collapse whitespace."""
    if not value:
        return ""
    text = _PUNCTUATION_RE.sub("", value.lower())
    return " ".join(text.split())


def match_key(title: str | None) -> str:
    """Comparable form of a title.

    Example:
        >>> match_key("Song (Single)") == match_key("song") == match_key("Song - Single")
        True
    """
    text = (title or "").strip()
    while True:
        stripped = _TRAILING_SINGLE_RE.sub("", _VERSION_SUFFIX_RE.sub("", text))
        if stripped == text:
            break
        text = stripped
    return normalize_text(text)


class DedupOutcome(str, Enum):
    NEW = "new"
    UPGRADE = "upgrade"
    DUPLICATE = "duplicate"


@dataclass
class DedupDecision:
    """What the engine did with one incoming Track.

    Attributes:
        outcome: New, upgrade or duplicate
        track: The catalog entry that now carries the data
        retired: Entries marked superseded by this decision
        changed_fields: Fields filled in on ``track``
    """

    outcome: DedupOutcome
    track: Track
    retired: list[Track] = field(default_factory=list)
    changed_fields: list[str] = field(default_factory=list)


def _is_empty(track: Track, name: str) -> bool:
    value = getattr(track, name)
    if name == "audio_url":
        return not track.has_usable_audio
    if name == "artist":
        return is_placeholder_text(value)
    if isinstance(value, list):
        return not value
    return value is None or value == ""


def merge(target: Track, source: Track, include_reference_fields: bool = True) -> list[str]:
    """Fill gaps in ``target`` from ``source``; populated fields are never overwritten.

    Args:
        target: Entry kept in the catalog (mutated in place)
        source: Entry whose metadata is folded in
        include_reference_fields: Also copy per-reference data (feed URL,
            playlist, order, time split); only meaningful for the same key

    Returns:
        Names of the fields that changed
    """
    changed = []

    if target.is_placeholder and not source.is_placeholder:
        target.title = source.title
        changed.append("title")

    if is_placeholder_text(target.album) and not is_placeholder_text(source.album):
        target.album = source.album
        changed.append("album")

    names = _CONTENT_FIELDS + (_REFERENCE_FIELDS if include_reference_fields else ())
    for name in names:
        if _is_empty(target, name) and not _is_empty(source, name):
            setattr(target, name, getattr(source, name))
            changed.append(name)

    if not target.value_recipients and source.value_recipients:
        target.value_recipients = list(source.value_recipients)
        changed.append("value_recipients")

    if target.source == SOURCE_PLACEHOLDER and source.source != SOURCE_PLACEHOLDER:
        target.source = source.source
        changed.append("source")

    if not target.resolved and not target.is_superseded and target.qualifies_as_resolved():
        target.resolved = True
        target.resolved_at = source.resolved_at or now_utc()
        changed.append("resolved")

    return changed


class DeduplicationEngine:
    """Applies the identity and content rules to a catalog snapshot."""

    def apply(self, incoming: Track, snapshot: CatalogSnapshot) -> DedupDecision:
        """Fold one normalized Track into the catalog.

        Args:
            incoming: Freshly normalized Track
            snapshot: Catalog to mutate

        Returns:
            DedupDecision describing the outcome
        """
        existing = snapshot.find_by_key(incoming.key)

        if existing is not None and existing.is_superseded:
            keeper = self.keeper_of(existing, snapshot)
            changed = merge(keeper, incoming, include_reference_fields=False)
            logger.debug("%s already folded into %s", existing.id, keeper.id)
            return DedupDecision(DedupOutcome.DUPLICATE, keeper, changed_fields=changed)

        rivals = self.find_duplicates(incoming, snapshot)

        if not rivals:
            if existing is not None:
                changed = merge(existing, incoming)
                return DedupDecision(DedupOutcome.UPGRADE, existing, changed_fields=changed)
            track = snapshot.add(incoming)
            logger.debug("Added %s for %s/%s", track.id, *track.key)
            return DedupDecision(DedupOutcome.NEW, track)

        if existing is None:
            keeper = self.select_keeper(rivals, snapshot)
            changed = merge(keeper, incoming, include_reference_fields=False)
            logger.info(
                "'%s' duplicates %s; folded %d field(s)", incoming.title, keeper.id, len(changed)
            )
            return DedupDecision(DedupOutcome.DUPLICATE, keeper, changed_fields=changed)

        # Both rules match: the identity entry absorbs the incoming data first,
        # then competes with the content duplicates on completeness.
        changed = merge(existing, incoming)
        keeper = self.select_keeper([existing, *rivals], snapshot)
        retired = []
        for loser in [existing, *rivals]:
            if loser is not keeper:
                changed.extend(f for f in self.retire(loser, keeper) if f not in changed)
                retired.append(loser)

        outcome = DedupOutcome.UPGRADE if keeper is existing else DedupOutcome.DUPLICATE
        logger.info(
            "Kept %s for '%s'; retired %s",
            keeper.id,
            keeper.title,
            ", ".join(track.id for track in retired),
        )
        return DedupDecision(outcome, keeper, retired=retired, changed_fields=changed)

    def find_duplicates(self, incoming: Track, snapshot: CatalogSnapshot) -> list[Track]:
        """Active entries under other keys that hold the same recording."""
        if incoming.is_placeholder or is_placeholder_text(incoming.artist):
            return []
        title = match_key(incoming.title)
        artist = normalize_text(incoming.artist)
        if not title or not artist:
            return []

        return [
            track
            for track in snapshot.music_tracks
            if track.key != incoming.key
            and not track.is_superseded
            and track.has_usable_audio
            and match_key(track.title) == title
            and normalize_text(track.artist) == artist
        ]

    def select_keeper(self, candidates: list[Track], snapshot: CatalogSnapshot) -> Track:
        """Most complete candidate; earliest catalog position breaks ties."""
        return min(
            candidates,
            key=lambda track: (-track.completeness, snapshot.position(track)),
        )

    def keeper_of(self, track: Track, snapshot: CatalogSnapshot) -> Track:
        """Follow ``superseded_by`` links to the active entry."""
        seen = {track.id}
        current = track
        while current.superseded_by is not None:
            nxt = snapshot.get(current.superseded_by)
            if nxt is None or nxt.id in seen:
                break
            seen.add(nxt.id)
            current = nxt
        return current

    def retire(self, loser: Track, keeper: Track) -> list[str]:
        """Fold ``loser`` into ``keeper`` and mark it superseded."""
        same_key = loser.key == keeper.key
        changed = merge(keeper, loser, include_reference_fields=same_key)
        loser.superseded_by = keeper.id
        loser.resolved = False
        return changed

    def consolidate(self, snapshot: CatalogSnapshot) -> list[DedupDecision]:
        """Fold duplicates already present in the catalog.

        Same-key entries are merged first, then entries whose title and
        artist match. Only entries with a usable audio URL can keep a
        content group.

        Returns:
            One DUPLICATE decision per keeper that absorbed something
        """
        decisions: dict[str, DedupDecision] = {}

        def record(keeper: Track, losers: list[Track]) -> None:
            decision = decisions.setdefault(
                keeper.id, DedupDecision(DedupOutcome.DUPLICATE, keeper)
            )
            for loser in losers:
                for name in self.retire(loser, keeper):
                    if name not in decision.changed_fields:
                        decision.changed_fields.append(name)
                decision.retired.append(loser)

        by_key: dict[tuple[str, str], list[Track]] = {}
        for track in snapshot.active_tracks():
            by_key.setdefault(track.key, []).append(track)
        for group in by_key.values():
            if len(group) > 1:
                keeper = self.select_keeper(group, snapshot)
                record(keeper, [track for track in group if track is not keeper])

        by_content: dict[tuple[str, str], list[Track]] = {}
        for track in snapshot.active_tracks():
            if track.is_placeholder or is_placeholder_text(track.artist):
                continue
            content = (match_key(track.title), normalize_text(track.artist))
            if all(content):
                by_content.setdefault(content, []).append(track)
        for group in by_content.values():
            playable = [track for track in group if track.has_usable_audio]
            if len(group) < 2 or not playable:
                continue
            keeper = self.select_keeper(playable, snapshot)
            record(keeper, [track for track in group if track is not keeper])

        if decisions:
            retired = sum(len(d.retired) for d in decisions.values())
            logger.info("Consolidated %d duplicate(s) into %d track(s)", retired, len(decisions))
        return list(decisions.values())
