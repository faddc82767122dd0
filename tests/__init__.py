"""Contains fixtures and utility functions."""

import hashlib
import hmac

from ytrelay import Channel, Timestamp, Video

CALLBACK_URL = "http://localhost:8000/youtube"
HUB_URL = "https://pubsubhubbub.appspot.com/subscribe"
TOPIC_URL = "https://www.youtube.com/xml/feeds/videos.xml?channel_id="
SECRET = "s" * 32

channel_ids = [
    "UCPF-oYb2-xN5FbCXy0167Gg",
    "UCuFFtHWoLl5fauMMD5Ww2jA",
    "UCupvZG-5ko_eiXAupbDfxWw",
]

channel_id = channel_ids[0]

# ruff: noqa: E501

VIDEO_XML = f"""<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns:yt="http://www.youtube.com/xml/schemas/2015" xmlns="http://www.w3.org/2005/Atom">
  <link rel="hub" href="https://pubsubhubbub.appspot.com"/>
  <link rel="self" href="https://www.youtube.com/xml/feeds/videos.xml?channel_id={channel_id}"/>
  <title>YouTube video feed</title>
  <updated>2015-04-01T19:05:24.552394234+00:00</updated>
  <entry>
    <id>yt:video:VIDEO_ID</id>
    <yt:videoId>VIDEO_ID</yt:videoId>
    <yt:channelId>{channel_id}</yt:channelId>
    <title>Video title</title>
    <link rel="alternate" href="http://www.youtube.com/watch?v=VIDEO_ID"/>
    <author>
     <name>Channel title</name>
     <uri>http://www.youtube.com/channel/{channel_id}</uri>
    </author>
    <published>2015-03-06T21:40:57+00:00</published>
    <updated>2015-03-09T19:05:24.552394234+00:00</updated>
  </entry>
</feed>
"""

TOMBSTONE_XML = f"""<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns:at="http://purl.org/atompub/tombstones/1.0" xmlns="http://www.w3.org/2005/Atom">
  <at:deleted-entry ref="yt:video:VIDEO_ID" when="2024-09-09T22:34:19.642702+00:00">
    <link href="https://www.youtube.com/watch?v=VIDEO_ID" />
    <at:by>
      <name>Channel title</name>
      <uri>https://www.youtube.com/channel/{channel_id}</uri>
    </at:by>
  </at:deleted-entry>
</feed>
"""

EMPTY_FEED_XML = """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>YouTube video feed</title>
</feed>
"""

# ruff: enable


def sign(body: str | bytes, *, secret: str = SECRET, algorithm: str = "sha1") -> str:
    """Create an X-Hub-Signature header value for a body."""
    if isinstance(body, str):
        body = body.encode()

    digest = hmac.new(secret.encode(), body, getattr(hashlib, algorithm)).hexdigest()
    return f"{algorithm}={digest}"


def verification_params(
    mode: str = "subscribe", *, channel: str = channel_id, **params: str
) -> dict[str, str]:
    """Create the query parameters of a verification request."""
    return {
        "hub.topic": f"{TOPIC_URL}{channel}",
        "hub.mode": mode,
        "hub.challenge": "challenge-1234",
        **params,
    }


def get_video() -> Video:
    """Create a mock video."""
    return Video(
        id="mock_video_id",
        title="Mock Video",
        url="https://www.youtube.com/watch?v=mock_video",
        timestamp=Timestamp(published=None, updated=None),
        channel=Channel(
            id="mock_channel_id",
            name="Mock Channel",
            url="https://www.youtube.com/channel/mock_channel",
        ),
    )
