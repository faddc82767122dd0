"""Contains the events emitted by the subscriber onto its event queue."""

__all__ = [
    "CloseEvent",
    "ErrorEvent",
    "Event",
    "NotifyEvent",
    "SubscribeEvent",
    "UnsubscribeEvent",
]

from dataclasses import dataclass
from datetime import datetime

from ytrelay.enums import ErrorType
from ytrelay.models.video import Channel, Video


@dataclass(frozen=True)
class SubscribeEvent:
    """The hub confirmed a subscription."""

    channel_id: str
    """The ID of the subscribed channel"""

    lease_seconds: int | None
    """The lease granted by the hub, if any"""


@dataclass(frozen=True)
class UnsubscribeEvent:
    """The hub confirmed an unsubscription."""

    channel_id: str
    """The ID of the unsubscribed channel"""


@dataclass(frozen=True)
class NotifyEvent:
    """The hub pushed a new or updated video."""

    video: Video
    """The pushed video"""

    @property
    def channel(self) -> Channel:
        """The channel that published the video."""
        return self.video.channel

    @property
    def published(self) -> datetime | None:
        """The published time of the video."""
        return self.video.timestamp.published

    @property
    def updated(self) -> datetime | None:
        """The updated time of the video."""
        return self.video.timestamp.updated


@dataclass(frozen=True)
class ErrorEvent:
    """A subscribe or unsubscribe request for a channel failed."""

    type: ErrorType
    """The kind of request that failed"""

    channel: str
    """The ID of the channel the request was for"""

    error: Exception
    """The cause of the failure"""


@dataclass(frozen=True)
class CloseEvent:
    """Every tracked channel was unsubscribed during shutdown."""


Event = SubscribeEvent | UnsubscribeEvent | NotifyEvent | ErrorEvent | CloseEvent
