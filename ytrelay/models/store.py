"""Contains the lease store model which keeps track of subscribed channels."""

__all__ = ["InMemoryLeaseStore", "LeaseRecord", "LeaseStore", "SqliteLeaseStore"]

import asyncio
import logging
import sqlite3
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from threading import Lock


@dataclass
class LeaseRecord:
    """Represents the subscription of a channel."""

    channel_id: str
    """The ID of the subscribed channel"""

    lease_seconds: int | None
    """The lease granted by the hub, or None if no lease is known"""

    expires_at: float | None
    """The UNIX time when the lease expires, or None if no lease is known"""


class LeaseStore(ABC):
    """Represents a store of subscribed channels and their leases."""

    @abstractmethod
    async def list_all(self) -> list[str]:
        """Get the IDs of all tracked channels.

        :return: The channel IDs.
        """

    @abstractmethod
    async def get(self, channel_id: str) -> LeaseRecord | None:
        """Get the record of a channel.

        :param channel_id: The ID of the channel.
        :return: The record, or None if the channel is not tracked.
        """

    @abstractmethod
    async def upsert(self, channel_id: str, lease_seconds: int | None) -> None:
        """Insert a channel or update its lease if it is already tracked.

        :param channel_id: The ID of the channel.
        :param lease_seconds: The lease granted by the hub, or None if no lease is
            known.
        """

    @abstractmethod
    async def delete(self, channel_id: str) -> None:
        """Stop tracking a channel. Does nothing if the channel is not tracked.

        :param channel_id: The ID of the channel.
        """

    @abstractmethod
    async def list_expiring_before(self, timestamp: float) -> list[str]:
        """Get the IDs of the channels whose lease expires before the given time.
        Channels without a known lease are never included.

        :param timestamp: The UNIX time to compare the expiry against.
        :return: The channel IDs.
        """

    @staticmethod
    def _get_expires_at(lease_seconds: int | None) -> float | None:
        return None if lease_seconds is None else time.time() + lease_seconds


class InMemoryLeaseStore(LeaseStore):
    """Represents an in-memory store of subscribed channels."""

    def __init__(self) -> None:
        """Create a new InMemoryLeaseStore instance."""
        self._logger = logging.getLogger(self.__class__.__name__)
        self._records: dict[str, LeaseRecord] = {}
        self._lock = Lock()

    async def list_all(self) -> list[str]:
        with self._lock:
            return list(self._records)

    async def get(self, channel_id: str) -> LeaseRecord | None:
        with self._lock:
            return self._records.get(channel_id)

    async def upsert(self, channel_id: str, lease_seconds: int | None) -> None:
        with self._lock:
            self._logger.debug(
                "Storing channel (%s) with lease: %s", channel_id, lease_seconds
            )
            self._records[channel_id] = LeaseRecord(
                channel_id, lease_seconds, self._get_expires_at(lease_seconds)
            )

    async def delete(self, channel_id: str) -> None:
        with self._lock:
            self._logger.debug("Removing channel (%s)", channel_id)
            self._records.pop(channel_id, None)

    async def list_expiring_before(self, timestamp: float) -> list[str]:
        with self._lock:
            return [
                record.channel_id
                for record in self._records.values()
                if record.expires_at is not None and record.expires_at < timestamp
            ]


class SqliteLeaseStore(LeaseStore):
    """Represents a lease store persisted in an SQLite database."""

    def __init__(self, *, path: Path) -> None:
        """Create a new SqliteLeaseStore instance. The database file and its parent
        directory are created if they do not exist.

        :param path: The path to the database file.
        """
        self._logger = logging.getLogger(self.__class__.__name__)
        self._path = path
        self._lock = Lock()

        path.parent.mkdir(parents=True, exist_ok=True)
        self._connection = sqlite3.connect(path, check_same_thread=False)
        with self._lock, self._connection:
            self._connection.execute(
                "CREATE TABLE IF NOT EXISTS channels ("
                "channel_id TEXT PRIMARY KEY, "
                "lease_seconds INTEGER, "
                "expires_at REAL)"
            )

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            self._connection.close()

    def _execute(self, sql: str, parameters: tuple = ()) -> list[tuple]:
        with self._lock, self._connection:
            return self._connection.execute(sql, parameters).fetchall()

    async def list_all(self) -> list[str]:
        rows = await asyncio.to_thread(self._execute, "SELECT channel_id FROM channels")
        return [channel_id for (channel_id,) in rows]

    async def get(self, channel_id: str) -> LeaseRecord | None:
        rows = await asyncio.to_thread(
            self._execute,
            "SELECT channel_id, lease_seconds, expires_at FROM channels "
            "WHERE channel_id = ?",
            (channel_id,),
        )
        return LeaseRecord(*rows[0]) if rows else None

    async def upsert(self, channel_id: str, lease_seconds: int | None) -> None:
        self._logger.debug(
            "Storing channel (%s) with lease: %s at %s",
            channel_id,
            lease_seconds,
            self._path,
        )
        await asyncio.to_thread(
            self._execute,
            "INSERT INTO channels (channel_id, lease_seconds, expires_at) "
            "VALUES (?, ?, ?) "
            "ON CONFLICT (channel_id) DO UPDATE SET "
            "lease_seconds = excluded.lease_seconds, expires_at = excluded.expires_at",
            (channel_id, lease_seconds, self._get_expires_at(lease_seconds)),
        )

    async def delete(self, channel_id: str) -> None:
        self._logger.debug("Removing channel (%s) from %s", channel_id, self._path)
        await asyncio.to_thread(
            self._execute, "DELETE FROM channels WHERE channel_id = ?", (channel_id,)
        )

    async def list_expiring_before(self, timestamp: float) -> list[str]:
        rows = await asyncio.to_thread(
            self._execute,
            "SELECT channel_id FROM channels "
            "WHERE expires_at IS NOT NULL AND expires_at < ?",
            (timestamp,),
        )
        return [channel_id for (channel_id,) in rows]
