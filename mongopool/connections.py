"""Connector backends that open pooled MongoDB connections."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo.errors import PyMongoError

from .config import ConnectOptions
from .errors import PoolConnectionError

Connection = AsyncIOMotorClient


@runtime_checkable
class Connector(Protocol):
    """Protocol implemented by connection backends."""

    async def connect(self, url: str, options: ConnectOptions) -> Connection:
        """Open a pooled connection, raising ``PoolConnectionError`` on failure."""


class MotorConnector:
    """Connector that opens ``AsyncIOMotorClient`` pools and verifies them with ``ping``."""

    def __init__(self, *, ping: bool = True) -> None:
        self._ping = ping

    async def connect(self, url: str, options: ConnectOptions) -> Connection:
        try:
            client = AsyncIOMotorClient(url, **options.to_client_kwargs())
        except PyMongoError as exc:
            raise PoolConnectionError(f"Invalid MongoDB connection settings: {exc}") from exc
        if not self._ping:
            return client
        try:
            await client.admin.command("ping")
        except PyMongoError as exc:
            client.close()
            raise PoolConnectionError(f"Failed to connect to MongoDB: {exc}") from exc
        return client


__all__ = [
    "Connection",
    "Connector",
    "MotorConnector",
]
