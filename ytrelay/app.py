"""Contains the FastAPI application that exposes the YouTubeSubscriber."""

__all__ = ["create_app", "load_subscriptions"]

import asyncio
import hmac
import json
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager, suppress
from datetime import timedelta
from http import HTTPStatus
from pathlib import Path
from urllib.parse import urlparse

import aiofiles
from aiofiles import ospath
from fastapi import APIRouter, Depends, FastAPI, Header, HTTPException
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

from ytrelay import YouTubeSubscriber
from ytrelay.models.store import SqliteLeaseStore
from ytrelay.settings import Settings
from ytrelay.sink import DiscordWebhookSink, EventRelay, EventSink, LoggingSink

CALLBACK_PATH = "/youtube"

_logger = logging.getLogger(__name__)


class ChannelsRequest(BaseModel):
    """Represents the body of a subscribe or unsubscribe API request."""

    channels: list[str]
    """The IDs of the channels"""


async def load_subscriptions(path: Path) -> list[str]:
    """Read the channel IDs to subscribe to on startup.

    :param path: The path of a JSON file holding a list of channel IDs.
    :return: The channel IDs, or an empty list if the file is missing or invalid.
    """
    if not await ospath.exists(path):
        return []

    async with aiofiles.open(path, encoding="utf-8") as file:
        content = await file.read()

    try:
        channel_ids = json.loads(content)
    except json.JSONDecodeError:
        channel_ids = None

    if not isinstance(channel_ids, list) or not all(
        isinstance(channel_id, str) for channel_id in channel_ids
    ):
        _logger.error("Invalid subscriptions file, ignoring...")
        return []

    return channel_ids


def create_app(
    settings: Settings,
    *,
    callback_url: str | None = None,
    subscriber: YouTubeSubscriber | None = None,
    sink: EventSink | None = None,
) -> FastAPI:
    """Create the application that receives the hub's callbacks and serves the
    management API.

    :param settings: The settings of the relay.
    :param callback_url: The public URL of the callback endpoint. If not provided,
        it is derived from the host URL in the settings.
    :param subscriber: The subscriber to use. If not provided, a new instance
        storing its channels in the SQLite database from the settings will be
        created.
    :param sink: The sink to forward events to. If not provided, the Discord
        webhook from the settings is used, or a LoggingSink when there is none.
    :return: The application.
    :raises ValueError: If neither a callback URL nor a host URL is available.
    """
    owns_store = subscriber is None
    if subscriber is None:
        callback_url = callback_url or (
            None if settings.base_url is None else f"{settings.base_url}{CALLBACK_PATH}"
        )
        if callback_url is None:
            raise ValueError("A callback URL or HOST_URL is required")

        subscriber = YouTubeSubscriber(
            callback_url=callback_url,
            secret=settings.pubsub_secret,
            store=SqliteLeaseStore(path=settings.db_path),
            hub_url=settings.hub_url,
            close_timeout=settings.close_timeout,
        )

    if sink is None:
        sink = (
            LoggingSink()
            if settings.discord_webhook_url is None
            else DiscordWebhookSink(str(settings.discord_webhook_url))
        )

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        relay_task = asyncio.create_task(EventRelay(subscriber.events, sink).run())
        tasks = [
            asyncio.create_task(
                subscriber.keep_alive(timedelta(seconds=settings.renewal_interval))
            )
        ]

        channel_ids = await load_subscriptions(settings.subscriptions_path)
        if channel_ids:
            tasks.append(asyncio.create_task(subscriber.subscribe(channel_ids)))

        try:
            yield
        finally:
            await subscriber.close()

            for task in [*tasks, relay_task]:
                task.cancel()
                with suppress(asyncio.CancelledError):
                    await task

            if owns_store and isinstance(subscriber.store, SqliteLeaseStore):
                subscriber.store.close()

    app = FastAPI(lifespan=lifespan)
    app.state.subscriber = subscriber

    @app.get("/", response_class=PlainTextResponse)
    async def ready() -> str:
        return "Ready!"

    endpoint = urlparse(subscriber.callback_url).path or "/"
    app.add_api_route(
        endpoint,
        subscriber.dispatch,
        methods=["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        include_in_schema=False,
    )

    async def verify_authorization(
        authorization: str | None = Header(default=None),
    ) -> None:
        if authorization is None or not hmac.compare_digest(
            authorization.encode(), settings.pubsub_secret.encode()
        ):
            raise HTTPException(
                status_code=HTTPStatus.UNAUTHORIZED, detail="Unauthorized"
            )

    router = APIRouter(prefix="/api", dependencies=[Depends(verify_authorization)])

    @router.post("/subscribe")
    async def subscribe(request: ChannelsRequest) -> dict[str, str]:
        await subscriber.subscribe(request.channels)
        return {"message": "Subscribed to channels"}

    @router.post("/unsubscribe")
    async def unsubscribe(request: ChannelsRequest) -> dict[str, str]:
        await subscriber.unsubscribe(request.channels)
        return {"message": "Unsubscribed from channels"}

    @router.get("/subscriptions")
    async def subscriptions() -> dict[str, list[str]]:
        return {"channels": await subscriber.store.list_all()}

    app.include_router(router)

    return app
