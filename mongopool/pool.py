"""Per-database cache of pooled connections with lazy, de-duplicated setup."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Mapping

from .config import ConnectOptions, ConnectionConfig, build_config
from .connections import Connection, Connector, MotorConnector
from .errors import InvalidArgumentError, PoolConnectionError, require_name

LOG = logging.getLogger(__name__)


class ConnectionPoolCache:
    """Keeps exactly one pooled connection per database name, opened on first use.

    Concurrent ``acquire`` calls for a name that is not connected yet share a
    single in-progress task, so only one connection attempt runs per name and
    every caller receives the same connection (or the same error). Failed
    attempts leave nothing behind; the next call starts over.

    The cache is bound to the event loop it is used on, like the motor clients
    it holds.
    """

    def __init__(self, config: ConnectionConfig, *, connector: Connector | None = None) -> None:
        if not config.url.strip():
            raise InvalidArgumentError("url is a required connection setting")
        self._config = config
        self._connector = connector or MotorConnector()
        self._connections: dict[str, Connection] = {}
        self._pending: dict[str, asyncio.Task[Connection]] = {}
        self._closed = False

    @classmethod
    def from_url(
        cls,
        url: str,
        options: ConnectOptions | Mapping[str, Any] | None = None,
        log_level: int = 1,
        *,
        connector: Connector | None = None,
    ) -> ConnectionPoolCache:
        """Build a cache straight from a URL and raw options."""

        return cls(build_config(url, options, log_level), connector=connector)

    @property
    def config(self) -> ConnectionConfig:
        return self._config

    @property
    def databases(self) -> tuple[str, ...]:
        """Names of the databases with an established connection."""

        return tuple(self._connections)

    @property
    def closed(self) -> bool:
        return self._closed

    def __contains__(self, db_name: object) -> bool:
        return db_name in self._connections

    def __len__(self) -> int:
        return len(self._connections)

    def get(self, db_name: str) -> Connection | None:
        """Return the stored connection for ``db_name`` without connecting."""

        return self._connections.get(db_name)

    async def acquire(self, db_name: str) -> Connection:
        """Return the connection for ``db_name``, establishing it if needed."""

        require_name(db_name, "database name")
        if self._closed:
            raise PoolConnectionError("connection cache is closed", db_name=db_name)
        connection = self._connections.get(db_name)
        if connection is not None:
            return connection
        # No suspension point between the lookup and the registration below.
        task = self._pending.get(db_name)
        if task is None:
            loop = asyncio.get_running_loop()
            task = loop.create_task(self._establish(db_name))
            self._pending[db_name] = task
        return await asyncio.shield(task)

    async def close(self) -> None:
        """Close every stored connection and empty the cache.

        Once called, ``acquire`` raises ``PoolConnectionError``. Attempts already in
        flight are awaited; their connections are closed and their callers get
        ``PoolConnectionError`` instead.
        """

        self._closed = True
        if self._pending:
            await asyncio.gather(*self._pending.values(), return_exceptions=True)
        connections = list(self._connections.items())
        self._connections.clear()
        for db_name, connection in connections:
            LOG.debug("closing mongodb connection pool to database '%s'", db_name)
            connection.close()

    async def _establish(self, db_name: str) -> Connection:
        try:
            if self._config.logs_pool_events:
                LOG.info("creating new mongodb connection pool to database '%s'", db_name)
            try:
                connection = await self._connector.connect(self._config.url, self._config.options)
            except PoolConnectionError as exc:
                if exc.db_name is None:
                    exc.db_name = db_name
                raise
            except Exception as exc:
                raise PoolConnectionError(
                    f"Failed to open connection pool to database '{db_name}': {exc}",
                    db_name=db_name,
                ) from exc
            if self._closed:
                connection.close()
                raise PoolConnectionError(
                    f"Connection cache closed while connecting to database '{db_name}'",
                    db_name=db_name,
                )
            self._connections[db_name] = connection
            return connection
        finally:
            self._pending.pop(db_name, None)


__all__ = ["ConnectionPoolCache"]
