"""Contains the YouTubeSubscriber class which keeps WebSub subscriptions to YouTube
channels alive and turns the hub's callbacks into events.
"""

__all__ = [
    "Channel",
    "CloseEvent",
    "ErrorEvent",
    "ErrorType",
    "Event",
    "HubMode",
    "InMemoryLeaseStore",
    "LeaseStore",
    "NotifyEvent",
    "SqliteLeaseStore",
    "SubscribeEvent",
    "SubscriberConfig",
    "Timestamp",
    "UnsubscribeEvent",
    "Video",
    "YouTubeSubscriber",
]

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Iterable, Mapping
from datetime import timedelta
from http import HTTPStatus
from urllib.parse import urlparse

from fastapi import Request, Response
from fastapi.responses import PlainTextResponse
from httpx import AsyncClient, RequestError

from ytrelay.enums import ErrorType, HubMode, SignatureStatus
from ytrelay.errors import FeedParseError, HTTPError
from ytrelay.feed import parse_feed
from ytrelay.models import SubscriberConfig
from ytrelay.models.events import (
    CloseEvent,
    ErrorEvent,
    Event,
    NotifyEvent,
    SubscribeEvent,
    UnsubscribeEvent,
)
from ytrelay.models.store import InMemoryLeaseStore, LeaseStore, SqliteLeaseStore
from ytrelay.models.video import Channel, Timestamp, Tombstone, Video
from ytrelay.signature import verify_signature


class YouTubeSubscriber:
    """A class that subscribes to YouTube channels through a WebSub hub and handles
    the hub's verification and notification callbacks.

    A channel moves from untracked to pending-subscribe when :meth:`subscribe`
    sends a request, and to subscribed only when the hub confirms it through a
    verification callback. Unsubscribing works the same way in reverse. Every
    outcome is put on :attr:`events` as a typed event.
    """

    def __init__(
        self,
        *,
        callback_url: str,
        secret: str,
        store: LeaseStore | None = None,
        hub_url: str = "https://pubsubhubbub.appspot.com/subscribe",
        close_timeout: float = 10.0,
    ) -> None:
        """Set up the YouTubeSubscriber instance.

        :param callback_url: The public URL that routes to :meth:`dispatch`.
        :param secret: The secret the hub uses to sign notifications.
        :param store: The store to track subscribed channels in. If not provided,
            a new instance of InMemoryLeaseStore will be created and used.
        :param hub_url: The URL of the hub to send subscription requests to.
        :param close_timeout: The seconds :meth:`close` waits for the hub to
            confirm the unsubscriptions.
        """
        self._logger = logging.getLogger(self.__class__.__name__)
        self._config = SubscriberConfig(
            callback_url, secret, hub_url=hub_url, close_timeout=close_timeout
        )
        self._store = store or InMemoryLeaseStore()
        self._events: asyncio.Queue[Event] = asyncio.Queue()
        self._is_closing = False
        self._closed_event = asyncio.Event()

    @property
    def callback_url(self) -> str:
        """Get the callback URL sent to the hub.

        :return: The callback URL.
        """
        return self._config.callback_url

    @property
    def store(self) -> LeaseStore:
        """Get the store of subscribed channels.

        :return: The lease store.
        """
        return self._store

    @property
    def events(self) -> asyncio.Queue[Event]:
        """Get the queue the subscriber puts its events on.

        :return: The event queue.
        """
        return self._events

    @property
    def is_closing(self) -> bool:
        """Check if :meth:`close` has been called and is unsubscribing.

        :return: True if the subscriber is closing, False otherwise.
        """
        return self._is_closing

    def get_topic(self, channel_id: str) -> str:
        """Get the feed URL the hub knows a channel by.

        :param channel_id: The ID of the channel.
        :return: The topic URL.
        """
        return f"{self._config.topic_url}{channel_id}"

    async def subscribe(self, channel_ids: str | Iterable[str]) -> None:
        """Request the hub to subscribe to YouTube channels, one after another.
        The subscriptions take effect when the hub calls back to verify them.
        A failed request is reported as an ErrorEvent and does not stop the others.

        :param channel_ids: The channel ID(s) to subscribe to.
        """
        await self._request(channel_ids, mode=HubMode.SUBSCRIBE)

    async def unsubscribe(self, channel_ids: str | Iterable[str]) -> None:
        """Request the hub to unsubscribe from YouTube channels, one after another.

        :param channel_ids: The channel ID(s) to unsubscribe from.
        """
        await self._request(channel_ids, mode=HubMode.UNSUBSCRIBE)

    async def renew(self, *, within: timedelta = timedelta(hours=1)) -> list[str]:
        """Subscribe again to the channels whose lease is about to expire.

        :param within: How soon a lease must expire to be renewed.
        :return: The IDs of the channels a renewal was requested for.
        """
        if self._is_closing:
            return []

        channel_ids = await self._store.list_expiring_before(
            time.time() + within.total_seconds()
        )
        if channel_ids:
            self._logger.info("Renewing %d expiring subscription(s)", len(channel_ids))
            await self.subscribe(channel_ids)

        return channel_ids

    async def keep_alive(
        self,
        interval: timedelta = timedelta(hours=1),
        predicate: Callable[[], bool] | None = None,
    ) -> None:
        """Renew expiring subscriptions every interval until the predicate is false
        or the subscriber starts closing.

        :param interval: The time between two renewals.
        :param predicate: An optional predicate function that returns True to
            continue.
        """

        async def task() -> None:
            await self.renew(within=max(interval, timedelta(hours=1)))

        await self._repeat_task(
            task,
            interval,
            lambda: not self._is_closing and (not predicate or predicate()),
        )

    async def _repeat_task(
        self,
        task: Callable[[], Awaitable[None]],
        interval: timedelta,
        predicate: Callable[[], bool] | None = None,
    ) -> None:
        """Repeatedly run a task every interval, even if the task fails.

        :param task: The function to repeat
        :param interval: The interval to repeat the task
        :param predicate: An optional predicate function
            that returns True to continue
        """
        while not predicate or predicate():
            try:
                await task()
            except Exception:
                self._logger.exception("Failed to repeat task")

            await asyncio.sleep(interval.total_seconds())

    async def _request(
        self, channel_ids: str | Iterable[str], *, mode: HubMode
    ) -> None:
        """Send a subscribe or unsubscribe request for each channel in turn.

        :param channel_ids: The channel ID(s) to send the request for.
        :param mode: The mode to request.
        """
        if isinstance(channel_ids, str):
            channel_ids = [channel_ids]

        for channel_id in channel_ids:
            try:
                await self._send(channel_id, mode=mode)
            except (HTTPError, RequestError) as ex:
                self._logger.exception(
                    "Failed to %s channel: %s", mode.value, channel_id
                )
                self._emit(ErrorEvent(ErrorType(mode.value), channel_id, ex))

    async def _send(self, channel_id: str, *, mode: HubMode) -> None:
        """Send a single request to the hub.

        :param channel_id: The channel ID to send the request for.
        :param mode: The mode to request.
        :raises HTTPError: If the hub does not accept the request.
        :raises RequestError: If the hub cannot be reached.
        """
        async with AsyncClient() as client:
            self._logger.debug(
                "Sending %s request for channel: %s", mode.value, channel_id
            )

            response = await client.post(
                self._config.hub_url,
                data={
                    "hub.callback": self._config.callback_url,
                    "hub.mode": mode.value,
                    "hub.topic": self.get_topic(channel_id),
                    "hub.verify": "async",
                    "hub.secret": self._config.secret,
                },
                headers={"Content-type": "application/x-www-form-urlencoded"},
            )

        if response.status_code != HTTPStatus.ACCEPTED:
            raise HTTPError(
                f"Failed to {mode.value} channel: {channel_id}", response.status_code
            )

        self._logger.debug(
            "Hub accepted %s request for channel: %s", mode.value, channel_id
        )

    async def close(self) -> None:
        """Unsubscribe from every tracked channel and wait until the hub confirms
        all of them or the close timeout passes, whichever comes first.
        Returns immediately if no channel is tracked or if already closing.
        """
        if self._is_closing:
            self._logger.debug("Already closing, ignoring close request")
            return

        # Set before the first await so that a concurrent close sees it
        self._is_closing = True
        channel_ids = await self._store.list_all()
        if not channel_ids:
            self._is_closing = False
            return

        await self.unsubscribe(channel_ids)

        self._logger.info("Waiting for all subscriptions to close...")
        if not await self._store.list_all():
            self._on_closed()

        try:
            await asyncio.wait_for(
                self._closed_event.wait(), self._config.close_timeout
            )
        except TimeoutError:
            self._logger.warning(
                "Timed out waiting for the hub to confirm unsubscriptions of: %s",
                await self._store.list_all(),
            )

    def _on_closed(self) -> None:
        if self._closed_event.is_set():
            return

        self._logger.debug("All subscriptions are closed")
        self._closed_event.set()
        self._emit(CloseEvent())

    def _emit(self, event: Event) -> None:
        self._events.put_nowait(event)

    async def dispatch(self, request: Request) -> Response:
        """Handle a request from the hub sent to the callback URL."""
        if request.method == "GET":
            return await self.handle_verification(request)

        if request.method == "POST":
            return await self.handle_notification(request)

        return PlainTextResponse("Forbidden", status_code=HTTPStatus.FORBIDDEN)

    async def handle_verification(self, request: Request) -> Response:
        """Handle a verification of intent from the hub."""
        return await self._verify(request.query_params)

    async def handle_notification(self, request: Request) -> Response:
        """Handle a content distribution from the hub."""
        return await self._notify(
            await request.body(), request.headers.get("X-Hub-Signature")
        )

    async def _verify(self, query: Mapping[str, str]) -> Response:
        topic = query.get("hub.topic")
        mode = query.get("hub.mode")
        challenge = query.get("hub.challenge")
        lease_seconds = query.get("hub.lease_seconds") or None

        if topic is None or mode is None or challenge is None or not _is_url(topic):
            self._logger.debug("Received invalid verification request: %s", query)
            return PlainTextResponse("Bad Request", status_code=HTTPStatus.BAD_REQUEST)

        if lease_seconds is not None:
            try:
                lease_seconds = int(float(lease_seconds))
            except (ValueError, OverflowError):
                self._logger.debug("Received invalid lease: %s", lease_seconds)
                return PlainTextResponse(
                    "Bad Request", status_code=HTTPStatus.BAD_REQUEST
                )

        channel_id = self._get_channel_id(topic)

        if channel_id is None:
            self._logger.warning("Ignoring %s verification for topic: %s", mode, topic)
        elif mode == HubMode.SUBSCRIBE:
            self._logger.info("Subscribed to channel: %s", channel_id)
            self._emit(SubscribeEvent(channel_id, lease_seconds))
            await self._store.upsert(channel_id, lease_seconds)
        elif mode == HubMode.UNSUBSCRIBE:
            self._logger.info("Unsubscribed from channel: %s", channel_id)
            self._emit(UnsubscribeEvent(channel_id))
            await self._store.delete(channel_id)
            if self._is_closing and not await self._store.list_all():
                self._on_closed()
        else:
            self._logger.debug("Ignoring verification with mode: %s", mode)

        return PlainTextResponse(challenge)

    def _get_channel_id(self, topic: str) -> str | None:
        """Get the channel ID from a topic URL.

        :param topic: The topic URL sent by the hub.
        :return: The channel ID, or None if the topic is not a channel feed.
        """
        if not topic.startswith(self._config.topic_url):
            return None

        return topic.removeprefix(self._config.topic_url) or None

    async def _notify(self, body: bytes, signature: str | None) -> Response:
        if signature is None:
            self._logger.debug("Received notification without signature")
            return PlainTextResponse("Forbidden", status_code=HTTPStatus.FORBIDDEN)

        try:
            result = parse_feed(body)
        except FeedParseError:
            self._logger.debug("Received invalid notification body: %s", body)
            return PlainTextResponse("Bad Request", status_code=HTTPStatus.BAD_REQUEST)

        if isinstance(result, Tombstone):
            self._logger.debug(
                "Ignoring notification for deleted entry: %s", result.ref
            )
            return PlainTextResponse("OK")

        status = verify_signature(body, signature, self._config.secret)
        if status == SignatureStatus.UNSUPPORTED:
            self._logger.debug("Received unsupported signature: %s", signature)
            return PlainTextResponse("Forbidden", status_code=HTTPStatus.FORBIDDEN)

        if status != SignatureStatus.VALID:
            # The hub would retry on an error status, so the mismatch stays silent
            self._logger.warning("Signature mismatch for notification: %s", signature)
            return PlainTextResponse("OK")

        for video in result:
            self._logger.debug(
                "Received video (%s) from channel: %s", video.id, video.channel.id
            )
            self._emit(NotifyEvent(video))

        return PlainTextResponse("OK")


def _is_url(value: str) -> bool:
    parsed = urlparse(value)
    return bool(parsed.scheme) and bool(parsed.netloc)
