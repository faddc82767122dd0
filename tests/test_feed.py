"""Test parsing the feeds pushed by the hub."""

from datetime import UTC, datetime

import pytest

from tests import EMPTY_FEED_XML, TOMBSTONE_XML, VIDEO_XML, channel_id
from ytrelay.errors import FeedParseError
from ytrelay.feed import parse_feed, parse_timestamp
from ytrelay.models.video import Tombstone, Video


def test_parse_video() -> None:
    """Test parsing a feed with a single entry."""
    videos = parse_feed(VIDEO_XML.encode())

    assert isinstance(videos, list)
    assert len(videos) == 1

    video = videos[0]
    assert isinstance(video, Video)
    assert video.id == "VIDEO_ID"
    assert video.title == "Video title"
    assert video.url == "http://www.youtube.com/watch?v=VIDEO_ID"
    assert video.channel.id == channel_id
    assert video.channel.name == "Channel title"
    assert video.channel.url == f"http://www.youtube.com/channel/{channel_id}"
    assert video.timestamp.published == datetime(2015, 3, 6, 21, 40, 57, tzinfo=UTC)
    assert video.timestamp.updated == datetime(
        2015, 3, 9, 19, 5, 24, 552394, tzinfo=UTC
    )


def test_parse_multiple_links_and_entries() -> None:
    """Test that repeated links and entries are handled."""
    entry = VIDEO_XML.split("<entry>", 1)[1].split("</entry>", 1)[0]
    other = entry.replace("VIDEO_ID", "OTHER")
    doubled = VIDEO_XML.replace("</entry>", f"</entry>\n  <entry>{other}</entry>", 1)
    doubled = doubled.replace(
        '<link rel="alternate" href="http://www.youtube.com/watch?v=VIDEO_ID"/>',
        '<link rel="alternate" href="http://www.youtube.com/watch?v=VIDEO_ID"/>'
        '<link rel="alternate" href="http://www.youtube.com/watch?v=SECOND"/>',
    )

    videos = parse_feed(doubled)

    assert [video.id for video in videos] == ["VIDEO_ID", "OTHER"]
    assert videos[0].url == "http://www.youtube.com/watch?v=VIDEO_ID"


def test_parse_tombstone() -> None:
    """Test parsing a feed reporting a deleted entry."""
    result = parse_feed(TOMBSTONE_XML.encode())

    assert isinstance(result, Tombstone)
    assert result.ref == "yt:video:VIDEO_ID"


@pytest.mark.parametrize(
    "body",
    [
        EMPTY_FEED_XML,
        "Invalid",
        "<feed/>",
        "<rss><entry/></rss>",
        "<feed><entry>x</entry></feed>",
    ],
)
def test_parse_invalid(body: str) -> None:
    """Test parsing bodies without a usable entry."""
    with pytest.raises(FeedParseError):
        parse_feed(body)


def test_parse_invalid_date() -> None:
    """Test that invalid dates do not fail the parsing."""
    videos = parse_feed(
        VIDEO_XML.replace("2015-03-06T21:40:57+00:00", "not a date")
    )

    assert videos[0].timestamp.published is None
    assert videos[0].timestamp.updated is not None


def test_parse_timestamp() -> None:
    """Test parsing timestamps."""
    assert parse_timestamp("2015-04-01T19:05:24.552394234+00:00") == datetime(
        2015, 4, 1, 19, 5, 24, 552394, tzinfo=UTC
    )
    assert parse_timestamp("2015-04-01T19:05:24+00:00") == datetime(
        2015, 4, 1, 19, 5, 24, tzinfo=UTC
    )
    assert parse_timestamp("") is None
    assert parse_timestamp(None) is None
    assert parse_timestamp("2015-13-45") is None
