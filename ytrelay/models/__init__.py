"""Contains the dataclasses used in the YouTubeSubscriber."""

from dataclasses import dataclass


@dataclass
class SubscriberConfig:
    """Represents the configuration of the YouTubeSubscriber."""

    callback_url: str
    """The URL where the hub sends verification and notification requests"""

    secret: str
    """The shared secret the hub uses to sign notifications"""

    hub_url: str = "https://pubsubhubbub.appspot.com/subscribe"
    """The URL of the hub to send subscription requests to"""

    topic_url: str = "https://www.youtube.com/xml/feeds/videos.xml?channel_id="
    """The feed URL prefix that a channel ID is appended to"""

    close_timeout: float = 10.0
    """The seconds to wait for unsubscribe confirmations while closing"""
