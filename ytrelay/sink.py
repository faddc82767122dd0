"""Contains the sinks that events of the YouTubeSubscriber are forwarded to."""

__all__ = ["DiscordWebhookSink", "EventRelay", "EventSink", "LoggingSink"]

import asyncio
import logging
from abc import ABC, abstractmethod

from httpx import AsyncClient

from ytrelay.errors import HTTPError
from ytrelay.models.events import (
    CloseEvent,
    ErrorEvent,
    Event,
    NotifyEvent,
    SubscribeEvent,
    UnsubscribeEvent,
)
from ytrelay.models.video import Video


class EventSink(ABC):
    """Represents a destination for pushed videos and failures."""

    @abstractmethod
    async def send_video(self, video: Video) -> None:
        """Deliver a pushed video.

        :param video: The video to deliver.
        """

    @abstractmethod
    async def send_error(self, event: ErrorEvent) -> None:
        """Deliver a failed subscription request.

        :param event: The error to deliver.
        """


class LoggingSink(EventSink):
    """Represents a sink that only writes events to the log."""

    def __init__(self) -> None:
        """Create a new LoggingSink instance."""
        self._logger = logging.getLogger(self.__class__.__name__)

    async def send_video(self, video: Video) -> None:
        self._logger.info("New video from %s: %s", video.channel.name, video.title)

    async def send_error(self, event: ErrorEvent) -> None:
        self._logger.error(
            "Failed to %s channel %s: %s", event.type.value, event.channel, event.error
        )


class DiscordWebhookSink(LoggingSink):
    """Represents a sink that posts new videos to a Discord channel webhook."""

    def __init__(self, webhook_url: str) -> None:
        """Create a new DiscordWebhookSink instance.

        :param webhook_url: The URL of the Discord webhook.
        """
        super().__init__()
        self._webhook_url = webhook_url

    @staticmethod
    def format_video(video: Video) -> str:
        """Get the message posted for a video.

        :param video: The video to format.
        :return: The message in Discord markdown.
        """
        return (
            f"New video from [{video.channel.name}]({video.channel.url})\n"
            f"**{video.title}**\n"
            f"{video.url}"
        )

    async def send_video(self, video: Video) -> None:
        """Post the video to the webhook.

        :param video: The video to post.
        :raises HTTPError: If Discord does not accept the message.
        """
        async with AsyncClient() as client:
            response = await client.post(
                self._webhook_url, json={"content": self.format_video(video)}
            )

        if not response.is_success:
            raise HTTPError(
                f"Failed to post video {video.id} to Discord", response.status_code
            )

        self._logger.debug("Posted video (%s) to Discord", video.id)


class EventRelay:
    """Forwards the events of a YouTubeSubscriber to a sink."""

    def __init__(self, events: asyncio.Queue[Event], sink: EventSink) -> None:
        """Create a new EventRelay instance.

        :param events: The queue to take events from.
        :param sink: The sink to forward pushed videos and errors to.
        """
        self._logger = logging.getLogger(self.__class__.__name__)
        self._events = events
        self._sink = sink

    async def run(self) -> None:
        """Forward events until a CloseEvent is taken from the queue.
        A failure of the sink is logged and does not stop the relay.
        """
        while True:
            event = await self._events.get()
            try:
                if isinstance(event, CloseEvent):
                    self._logger.debug("Received close event, stopping relay")
                    return

                await self.handle(event)
            except Exception:
                self._logger.exception("Failed to forward event: %s", event)
            finally:
                self._events.task_done()

    async def handle(self, event: Event) -> None:
        """Forward a single event to the sink.

        :param event: The event to forward.
        """
        if isinstance(event, SubscribeEvent):
            self._logger.info(
                "Subscribed to %s (lease: %s)", event.channel_id, event.lease_seconds
            )
        elif isinstance(event, UnsubscribeEvent):
            self._logger.info("Unsubscribed from %s", event.channel_id)
        elif isinstance(event, NotifyEvent):
            self._logger.info("Received notification for video: %s", event.video.id)
            await self._sink.send_video(event.video)
        elif isinstance(event, ErrorEvent):
            await self._sink.send_error(event)
