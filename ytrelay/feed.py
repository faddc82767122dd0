"""Parses the Atom feeds that the hub pushes for YouTube channels."""

__all__ = ["parse_feed", "parse_timestamp"]

import re
from datetime import datetime
from pyexpat import ExpatError
from typing import Any

import xmltodict

from ytrelay.errors import FeedParseError
from ytrelay.models.video import Channel, Timestamp, Tombstone, Video

_EXTRA_FRACTION_DIGITS = re.compile(r"(\.\d{6})\d+")


def parse_feed(body: bytes | str) -> list[Video] | Tombstone:
    """Parse a pushed feed into the videos it announces, or into a tombstone if the
    feed reports a deleted entry.

    :param body: The raw request body.
    :return: The videos of the feed, in document order, or the tombstone.
    :raises FeedParseError: If the body is not XML or the feed has no entry.
    """
    try:
        document = xmltodict.parse(body)
    except ExpatError as ex:
        raise FeedParseError("Notification body is not valid XML") from ex

    feed = document.get("feed")
    if not isinstance(feed, dict):
        raise FeedParseError("Notification body has no feed")

    if "at:deleted-entry" in feed:
        deleted = feed["at:deleted-entry"]
        # deleted-entry can be list of dict or just dict
        if isinstance(deleted, list):
            deleted = deleted[0]
        ref = deleted.get("@ref") if isinstance(deleted, dict) else None
        return Tombstone(ref=ref)

    entries = feed.get("entry")
    if not entries:
        raise FeedParseError("Notification feed has no entry")

    # entry can be list of dict or just dict
    if not isinstance(entries, list):
        entries = [entries]

    try:
        return [_parse_entry(entry) for entry in entries]
    except (TypeError, KeyError, AttributeError) as ex:
        raise FeedParseError(f"Failed to parse feed entry: {ex!r}") from ex


def _parse_entry(entry: dict[str, Any]) -> Video:
    link = entry["link"][0] if isinstance(entry["link"], list) else entry["link"]

    return Video(
        id=entry["yt:videoId"],
        title=_text(entry["title"]),
        url=link["@href"],
        timestamp=Timestamp(
            published=parse_timestamp(entry.get("published")),
            updated=parse_timestamp(entry.get("updated")),
        ),
        channel=Channel(
            id=entry["yt:channelId"],
            name=_text(entry["author"]["name"]),
            url=_text(entry["author"]["uri"]),
        ),
    )


def _text(value: str | dict[str, Any] | None) -> str:
    # xmltodict returns a dict for elements that carry attributes
    if isinstance(value, dict):
        return value.get("#text") or ""

    return value or ""


def parse_timestamp(timestamp: str | None) -> datetime | None:
    """Parse an RFC 3339 timestamp from the feed.

    YouTube sends up to nanosecond precision, so digits past microseconds are
    dropped.

    :param timestamp: The timestamp text, or None if the element was absent.
    :return: The parsed time, or None if the text is not a valid timestamp.
    """
    if not timestamp:
        return None

    try:
        return datetime.fromisoformat(
            _EXTRA_FRACTION_DIGITS.sub(r"\1", timestamp.strip())
        )
    except ValueError:
        return None
