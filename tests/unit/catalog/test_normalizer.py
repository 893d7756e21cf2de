"""Tests for the Track normalizer."""

from podtracks.catalog.normalizer import (
    SOURCE_ORIGIN_FEED,
    SOURCE_PLACEHOLDER,
    make_placeholder,
    normalize,
)
from podtracks.feeds.models import ResolvedEpisode, ResolvedFeed, TimeSplit, ValueRecipient


class TestNormalize:
    """Tests for normalize."""

    def test_directory_scenario(self, make_reference) -> None:
        """Test feed "Acme Radio" / episode "Morning Drive" at 4:30."""
        feed = ResolvedFeed(feed_guid="F1", title="Acme Radio")
        episode = ResolvedEpisode(
            item_guid="I1",
            title="Morning Drive",
            duration_seconds="4:30",
            audio_url="https://acme.example.com/morning.mp3",
        )

        track = normalize(feed, episode, reference=make_reference("F1", "I1"))

        assert track.title == "Morning Drive"
        assert track.artist == "Acme Radio"
        assert track.duration_seconds == 270
        assert track.resolved is True
        assert track.resolved_at is not None
        assert track.key == ("F1", "I1")

    def test_title_preference(self) -> None:
        """Test episode title, then feed title, then a generated title."""
        feed = ResolvedFeed(feed_guid="F", title="Feed Title")

        assert normalize(feed, ResolvedEpisode(item_guid="I", title="Ep")).title == "Ep"
        assert normalize(feed, ResolvedEpisode(item_guid="I")).title == "Feed Title"
        assert normalize(ResolvedFeed(feed_guid="F"), None, ordinal=4).title == "Track 4"

    def test_artist_preference(self) -> None:
        """Test episode author, then feed author, then feed title."""
        feed = ResolvedFeed(feed_guid="F", title="Feed Title", author="Feed Author")

        assert normalize(feed, ResolvedEpisode(item_guid="I", author="Ep Author")).artist == "Ep Author"
        assert normalize(feed, ResolvedEpisode(item_guid="I")).artist == "Feed Author"
        assert normalize(ResolvedFeed(feed_guid="F", title="Solo"), None).artist == "Solo"

    def test_artwork_preference(self) -> None:
        """Test episode image, then feed artwork, then nothing."""
        feed = ResolvedFeed(feed_guid="F", artwork_url="https://x/feed.jpg")

        assert (
            normalize(feed, ResolvedEpisode(item_guid="I", artwork_url="https://x/ep.jpg")).artwork_url
            == "https://x/ep.jpg"
        )
        assert normalize(feed, ResolvedEpisode(item_guid="I")).artwork_url == "https://x/feed.jpg"
        assert normalize(ResolvedFeed(feed_guid="F"), ResolvedEpisode(item_guid="I")).artwork_url is None

    def test_unknown_duration_is_not_zero(self) -> None:
        track = normalize(ResolvedFeed(feed_guid="F"), ResolvedEpisode(item_guid="I", title="Song"))
        assert track.duration_seconds is None

    def test_relative_audio_not_resolved(self) -> None:
        """Test that a non-absolute enclosure does not count as audio."""
        track = normalize(
            ResolvedFeed(feed_guid="F"),
            ResolvedEpisode(item_guid="I", title="Song", audio_url="/media/song.mp3"),
        )
        assert track.audio_url is None
        assert not track.resolved

    def test_reference_fields_carried(self, make_reference) -> None:
        """Test time split, medium, feed URL hint and value data are kept."""
        reference = make_reference(
            "F", "I", order=2, medium="music", feed_url="https://o/f.xml",
            time_split=TimeSplit(start_seconds=60, duration_seconds=200),
        )
        feed = ResolvedFeed(
            feed_guid="F", value_recipients=[ValueRecipient(name="Band", split=100)]
        )

        track = normalize(
            feed,
            ResolvedEpisode(item_guid="I", title="Song"),
            reference=reference,
            source=SOURCE_ORIGIN_FEED,
            playlist="Mix",
        )

        assert track.declared_order == 2
        assert track.medium == "music"
        assert track.feed_url == "https://o/f.xml"
        assert track.time_split.start_seconds == 60
        assert track.value_recipients[0].name == "Band"
        assert track.source == SOURCE_ORIGIN_FEED
        assert track.playlist == "Mix"


class TestMakePlaceholder:
    """Tests for make_placeholder."""

    def test_placeholder_fields(self, make_reference) -> None:
        track = make_placeholder(make_reference("F", "I", order=4), playlist="Mix")

        assert track.title == "Track 5"
        assert track.album == "Unknown Feed"
        assert track.source == SOURCE_PLACEHOLDER
        assert not track.resolved
        assert track.key == ("F", "I")
        assert track.playlist == "Mix"
