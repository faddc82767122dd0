"""Contains the tests for the event sinks and the event relay."""

import asyncio
import logging
from http import HTTPStatus
from unittest.mock import AsyncMock

import pytest
import respx
from httpx import Response

from tests import get_video
from ytrelay import (
    CloseEvent,
    ErrorEvent,
    ErrorType,
    NotifyEvent,
    SubscribeEvent,
    UnsubscribeEvent,
)
from ytrelay.errors import HTTPError
from ytrelay.sink import DiscordWebhookSink, EventRelay, EventSink, LoggingSink

WEBHOOK_URL = "https://discord.com/api/webhooks/1/token"


def test_format_video() -> None:
    """Test the message posted for a video."""
    video = get_video()

    assert DiscordWebhookSink.format_video(video) == (
        "New video from [Mock Channel](https://www.youtube.com/channel/mock_channel)\n"
        "**Mock Video**\n"
        "https://www.youtube.com/watch?v=mock_video"
    )


@respx.mock
@pytest.mark.asyncio
async def test_discord_send_video() -> None:
    """Test posting a video to Discord."""
    route = respx.post(WEBHOOK_URL).mock(Response(HTTPStatus.NO_CONTENT))
    sink = DiscordWebhookSink(WEBHOOK_URL)
    video = get_video()

    await sink.send_video(video)

    assert route.call_count == 1
    assert route.calls.last.request.headers["content-type"] == "application/json"
    assert b"Mock Video" in route.calls.last.request.content

    route.mock(Response(HTTPStatus.TOO_MANY_REQUESTS))
    with pytest.raises(HTTPError):
        await sink.send_video(video)


@respx.mock(assert_all_called=False)
@pytest.mark.asyncio
async def test_discord_send_error() -> None:
    """Test that errors are only logged."""
    route = respx.post(WEBHOOK_URL)
    sink = DiscordWebhookSink(WEBHOOK_URL)

    await sink.send_error(ErrorEvent(ErrorType.SUBSCRIBE, "channel", RuntimeError()))

    assert not route.called


@pytest.mark.asyncio
async def test_relay() -> None:
    """Test forwarding events until the close event."""
    sink = AsyncMock(spec=EventSink)
    events: asyncio.Queue = asyncio.Queue()
    video = get_video()
    error = ErrorEvent(ErrorType.UNSUBSCRIBE, "channel", RuntimeError("failed"))

    for event in [
        SubscribeEvent("channel", 100),
        NotifyEvent(video),
        UnsubscribeEvent("channel"),
        error,
        CloseEvent(),
        NotifyEvent(video),
    ]:
        events.put_nowait(event)

    await asyncio.wait_for(EventRelay(events, sink).run(), 1)

    sink.send_video.assert_awaited_once_with(video)
    sink.send_error.assert_awaited_once_with(error)
    assert events.qsize() == 1, "Should stop at the close event"


@pytest.mark.asyncio
async def test_relay_error_logged_once(caplog: pytest.LogCaptureFixture) -> None:
    """Test that a failed request is logged once when relayed to a sink."""
    events: asyncio.Queue = asyncio.Queue()
    events.put_nowait(ErrorEvent(ErrorType.SUBSCRIBE, "channel", RuntimeError()))
    events.put_nowait(CloseEvent())

    with caplog.at_level(logging.ERROR):
        await asyncio.wait_for(EventRelay(events, LoggingSink()).run(), 1)

    errors = [record for record in caplog.records if record.levelno == logging.ERROR]
    assert len(errors) == 1
    assert "channel" in errors[0].getMessage()


@pytest.mark.asyncio
async def test_relay_sink_failure() -> None:
    """Test that a failing sink does not stop the relay."""
    sink = AsyncMock(spec=EventSink)
    sink.send_video.side_effect = [RuntimeError("down"), None]
    events: asyncio.Queue = asyncio.Queue()

    for event in [NotifyEvent(get_video()), NotifyEvent(get_video()), CloseEvent()]:
        events.put_nowait(event)

    await asyncio.wait_for(EventRelay(events, sink).run(), 1)

    assert sink.send_video.await_count == 2


@pytest.mark.asyncio
async def test_logging_sink() -> None:
    """Test that the logging sink accepts every event."""
    sink = LoggingSink()

    await sink.send_video(get_video())
    await sink.send_error(ErrorEvent(ErrorType.SUBSCRIBE, "channel", RuntimeError()))
