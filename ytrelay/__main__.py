"""Runs the relay server: ``python -m ytrelay``."""

import asyncio
import logging
from types import FrameType

from pyngrok import ngrok
from uvicorn import Config, Server

from ytrelay import YouTubeSubscriber
from ytrelay.app import CALLBACK_PATH, create_app
from ytrelay.settings import Settings


class RelayServer(Server):
    """A uvicorn server that unsubscribes from every channel before it stops, so
    that it can still answer the hub's verification requests while closing.
    """

    def __init__(self, config: Config, subscriber: YouTubeSubscriber) -> None:
        """Create a new RelayServer instance.

        :param config: The uvicorn configuration.
        :param subscriber: The subscriber to close before stopping.
        """
        super().__init__(config)
        self._subscriber = subscriber
        self._closing_task: asyncio.Task | None = None

    def handle_exit(  # pragma: no cover
        self, sig: int, frame: FrameType | None
    ) -> None:
        if self._closing_task is not None:
            # A second signal stops the server without waiting for the hub
            super().handle_exit(sig, frame)
            return

        loop = asyncio.get_event_loop()
        loop.call_soon_threadsafe(self._start_closing, sig, frame)

    def _start_closing(  # pragma: no cover
        self, sig: int, frame: FrameType | None
    ) -> None:
        async def close() -> None:
            try:
                await self._subscriber.close()
            finally:
                logging.getLogger(self.__class__.__name__).info("Closing server...")
                super(RelayServer, self).handle_exit(sig, frame)

        if self._closing_task is None:
            self._closing_task = asyncio.create_task(close())


def main() -> None:  # pragma: no cover
    """Run the relay until it receives SIGINT or SIGTERM."""
    settings = Settings()

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    callback_url = None
    if settings.base_url is None:
        callback_url = f"{ngrok.connect(str(settings.port)).public_url}{CALLBACK_PATH}"

    app = create_app(settings, callback_url=callback_url)
    subscriber = app.state.subscriber
    logging.getLogger(__name__).info("Callback URL: %s", subscriber.callback_url)

    server = RelayServer(
        Config(app=app, host="0.0.0.0", port=settings.port),  # noqa: S104
        subscriber,
    )
    try:
        server.run()
    finally:
        if callback_url is not None:
            ngrok.kill()


if __name__ == "__main__":  # pragma: no cover
    main()
