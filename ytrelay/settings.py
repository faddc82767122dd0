"""Contains the settings of the relay, read from the environment and a .env file."""

__all__ = ["Settings"]

from pathlib import Path

from pydantic import Field, HttpUrl
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Represents the settings of the relay."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    host_url: HttpUrl | None = None
    """The public base URL of the relay. If not provided, ngrok will be used to
    create a temporary URL."""

    pubsub_secret: str = Field(min_length=32)
    """The secret shared with the hub, also required by the /api endpoints"""

    discord_webhook_url: HttpUrl | None = None
    """The Discord webhook to post new videos to. If not provided, new videos are
    only logged."""

    db_path: Path = Path("data/db.sqlite")
    """The path of the SQLite database that stores subscribed channels"""

    subscriptions_path: Path = Path("data/subscriptions.json")
    """The path of a JSON list of channel IDs to subscribe to on startup"""

    hub_url: str = "https://pubsubhubbub.appspot.com/subscribe"
    """The URL of the hub"""

    port: int = Field(default=3000, gt=0)
    """The port to run the server on"""

    log_level: str = "INFO"
    """The level of the root logger"""

    close_timeout: float = Field(default=10.0, ge=0)
    """The seconds to wait for unsubscribe confirmations on shutdown"""

    renewal_interval: float = Field(default=3600.0, gt=0)
    """The seconds between two renewals of expiring subscriptions"""

    @property
    def base_url(self) -> str | None:
        """Get the public base URL without a trailing slash.

        :return: The base URL, or None if it was not provided.
        """
        return None if self.host_url is None else str(self.host_url).rstrip("/")
