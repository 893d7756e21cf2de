"""Data models for remote-item references and resolved feed metadata."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from podtracks.utils.duration import parse_duration

IdentityKey = tuple[str, str]


class CamelModel(BaseModel):
    """Base for models persisted in the catalog file with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TimeSplit(CamelModel):
    """Position of a remote item inside the episode that references it."""

    start_seconds: float = Field(ge=0)
    duration_seconds: float = Field(ge=0)
    remote_percentage: float | None = Field(default=None, ge=0, le=100)


class RemoteItemReference(BaseModel):
    """A ``podcast:remoteItem`` pointer found in a playlist.

    Ephemeral: lives for one resolution run only.
    """

    feed_guid: str
    item_guid: str
    medium: str | None = None
    feed_url: str | None = None  # Optional hint declared on the remoteItem
    declared_order: int = Field(ge=0)
    time_split: TimeSplit | None = None

    @property
    def key(self) -> IdentityKey:
        return (self.feed_guid, self.item_guid)


class ValueRecipient(CamelModel):
    """One V4V split recipient. Stored as data only."""

    name: str | None = None
    type: str | None = None
    address: str | None = None
    split: float | None = None
    custom_key: str | None = None
    custom_value: str | None = None
    fee: bool = False


class ResolvedFeed(BaseModel):
    """Feed metadata from the directory or the origin feed itself."""

    feed_guid: str
    directory_feed_id: int | None = None
    title: str | None = None
    author: str | None = None
    artwork_url: str | None = None
    origin_url: str | None = None
    episode_count: int | None = None
    medium: str | None = None
    value_recipients: list[ValueRecipient] = Field(default_factory=list)


class ResolvedEpisode(BaseModel):
    """Episode metadata for a single item GUID."""

    item_guid: str
    title: str | None = None
    author: str | None = None
    duration_seconds: int | None = None
    audio_url: str | None = None
    artwork_url: str | None = None
    published_at: datetime | None = None
    value_recipients: list[ValueRecipient] = Field(default_factory=list)

    @field_validator("duration_seconds", mode="before")
    @classmethod
    def _parse_declared_duration(cls, value: object) -> int | None:
        """Accept integers as well as "SS", "MM:SS" and "HH:MM:SS" text."""
        if isinstance(value, str | int | float) or value is None:
            return parse_duration(value)
        return None


class FetchFailure(str, Enum):
    """Why a feed could not be fetched."""

    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    NETWORK = "network"
    HTTP_ERROR = "http_error"
    INVALID_URL = "invalid_url"


class FetchResult(BaseModel):
    """Raw feed markup, or a typed failure.

    HTTP bodies are kept as bytes in ``content`` so the XML parser can honor
    the document's own encoding declaration; ``text`` holds markup that is
    already decoded.
    """

    url: str
    content: bytes | None = None
    text: str | None = None
    status_code: int | None = None
    failure: FetchFailure | None = None
    error: str | None = None

    @property
    def body(self) -> bytes | str | None:
        return self.content if self.content is not None else self.text

    @property
    def ok(self) -> bool:
        return self.failure is None and self.body is not None
