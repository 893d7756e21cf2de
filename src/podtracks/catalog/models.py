"""Catalog records: the persisted Track and the whole-file snapshot."""

import logging
import re
from datetime import datetime
from typing import Any
from urllib.parse import urlparse

from pydantic import ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from podtracks.feeds.models import CamelModel, IdentityKey, TimeSplit, ValueRecipient
from podtracks.utils.datetime import now_utc
from podtracks.utils.duration import parse_duration

logger = logging.getLogger(__name__)

UNKNOWN_FEED = "Unknown Feed"
PLACEHOLDER_TEXTS = frozenset({UNKNOWN_FEED, "Unknown Title", "Unknown Artist", "Unknown Album"})
PLACEHOLDER_TITLE_RE = re.compile(r"^Track \d+$")

# Field names used by older writers of the catalog file
LEGACY_FIELDS = {
    "enclosureUrl": "audioUrl",
    "image": "artworkUrl",
    "feedTitle": "album",
}


def is_placeholder_text(value: str | None) -> bool:
    """True for empty values and generated, non-informative titles."""
    if value is None or not value.strip():
        return True
    value = value.strip()
    return value in PLACEHOLDER_TEXTS or bool(PLACEHOLDER_TITLE_RE.match(value))


def is_absolute_url(value: str | None) -> bool:
    if not value:
        return False
    parsed = urlparse(value.strip())
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


class Track(CamelModel):
    """One catalog entry, identified by (feed_guid, item_guid).

    ``duration_seconds`` is None when the duration is unknown; zero is a
    real value and is never used as a stand-in.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    id: str = ""
    title: str
    artist: str | None = None
    album: str | None = None
    feed_guid: str
    item_guid: str
    feed_url: str | None = None
    audio_url: str | None = None
    artwork_url: str | None = None
    duration_seconds: int | None = Field(default=None, ge=0)
    published_at: datetime | None = None
    medium: str | None = None
    source: str = "placeholder"
    playlist: str | None = None
    declared_order: int | None = None
    time_split: TimeSplit | None = None
    value_recipients: list[ValueRecipient] = Field(default_factory=list)
    resolved: bool = False
    added_at: datetime = Field(default_factory=now_utc)
    resolved_at: datetime | None = None
    superseded_by: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _upgrade_legacy_fields(cls, data: Any) -> Any:
        """Accept records written with the older field names."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for legacy, current in LEGACY_FIELDS.items():
            if legacy in data and current not in data:
                data[current] = data.pop(legacy)
        if "duration" in data and "durationSeconds" not in data and "duration_seconds" not in data:
            data["durationSeconds"] = parse_duration(data.pop("duration"))
        return data

    @model_validator(mode="after")
    def _enforce_resolved_invariant(self) -> "Track":
        """A resolved track has a real title and an absolute audio URL."""
        if self.resolved and (is_placeholder_text(self.title) or not is_absolute_url(self.audio_url)):
            logger.debug("Track %s does not qualify as resolved; marking unresolved", self.id)
            self.resolved = False
            self.resolved_at = None
        return self

    @property
    def key(self) -> IdentityKey:
        return (self.feed_guid, self.item_guid)

    @property
    def is_superseded(self) -> bool:
        return self.superseded_by is not None

    @property
    def is_placeholder(self) -> bool:
        return is_placeholder_text(self.title)

    @property
    def has_usable_audio(self) -> bool:
        return is_absolute_url(self.audio_url)

    @property
    def completeness(self) -> int:
        """Number of populated optional fields (audio, artwork, duration)."""
        return sum(
            (
                is_absolute_url(self.audio_url),
                bool(self.artwork_url),
                self.duration_seconds is not None,
            )
        )

    def qualifies_as_resolved(self) -> bool:
        return not is_placeholder_text(self.title) and is_absolute_url(self.audio_url)


class CatalogMetadata(CamelModel):
    """The ``metadata`` block of the catalog file."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    version: str = "1.0.0"
    last_updated: datetime | None = None
    total_tracks: int = 0
    resolved_count: int = 0
    pending_count: int = 0
    superseded_count: int = 0
    last_run: dict[str, Any] | None = None


class CatalogSnapshot(CamelModel):
    """In-memory copy of the whole catalog file.

    Unknown top-level keys (episodes, feeds, ...) are kept so a rewrite
    never drops data owned by other writers of older versions.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    music_tracks: list[Track] = Field(default_factory=list)
    metadata: CatalogMetadata = Field(default_factory=CatalogMetadata)

    def find_by_key(self, key: IdentityKey) -> Track | None:
        """Entry for an identity key, preferring one that is not superseded."""
        fallback = None
        for track in self.music_tracks:
            if track.key == key:
                if not track.is_superseded:
                    return track
                fallback = fallback or track
        return fallback

    def get(self, track_id: str) -> Track | None:
        for track in self.music_tracks:
            if track.id == track_id:
                return track
        return None

    def position(self, track: Track) -> int:
        """Index of ``track`` in catalog order (identity, not equality)."""
        for index, candidate in enumerate(self.music_tracks):
            if candidate is track:
                return index
        return len(self.music_tracks)

    def active_tracks(self) -> list[Track]:
        return [track for track in self.music_tracks if not track.is_superseded]

    def next_track_id(self) -> str:
        highest = 0
        for track in self.music_tracks:
            match = re.fullmatch(r"track-(\d+)", track.id)
            if match:
                highest = max(highest, int(match.group(1)))
        return f"track-{highest + 1}"

    def add(self, track: Track) -> Track:
        if not track.id or self.get(track.id) is not None:
            track.id = self.next_track_id()
        self.music_tracks.append(track)
        return track

    def refresh_metadata(self, last_run: dict[str, Any] | None = None) -> CatalogMetadata:
        active = self.active_tracks()
        self.metadata.last_updated = now_utc()
        self.metadata.total_tracks = len(self.music_tracks)
        self.metadata.resolved_count = sum(1 for track in active if track.resolved)
        self.metadata.pending_count = sum(1 for track in active if not track.resolved)
        self.metadata.superseded_count = len(self.music_tracks) - len(active)
        if last_run is not None:
            self.metadata.last_run = last_run
        return self.metadata
