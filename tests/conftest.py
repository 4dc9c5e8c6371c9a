"""Shared fixtures: in-memory stand-ins for motor clients."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Iterable, Mapping

import pytest
from pymongo.errors import BulkWriteError
from pymongo.results import BulkWriteResult

from mongopool.config import ConnectOptions
from mongopool.errors import PoolConnectionError


class FakeCursor:
    def __init__(self, documents: Iterable[dict[str, Any]]) -> None:
        self._documents = list(documents)
        self.sort_spec: Any = None
        self.limit_value: int | None = None

    def sort(self, spec: Any) -> FakeCursor:
        self.sort_spec = spec
        return self

    def limit(self, value: int) -> FakeCursor:
        self.limit_value = value
        return self

    async def to_list(self, length: int | None = None) -> list[dict[str, Any]]:
        documents = self._documents
        if self.limit_value:
            documents = documents[: self.limit_value]
        return list(documents)


class FakeCollection:
    """Records every call; async verbs return (or raise) a configured result."""

    def __init__(self, name: str, documents: Iterable[dict[str, Any]] = ()) -> None:
        self.name = name
        self.documents = list(documents)
        self.results: dict[str, Any] = {}
        self.calls: list[tuple[str, tuple[Any, ...], dict[str, Any]]] = []
        self.cursor: FakeCursor | None = None
        self.failing_requests: set[int] = set()
        self.executed: list[Any] = []

    def find(self, query: Mapping[str, Any], projection: Any = None) -> FakeCursor:
        self.calls.append(("find", (query, projection), {}))
        self.cursor = FakeCursor(self.documents)
        return self.cursor

    async def bulk_write(self, requests: list[Any], ordered: bool = True) -> BulkWriteResult:
        self.calls.append(("bulk_write", (requests,), {"ordered": ordered}))
        errors: list[dict[str, Any]] = []
        for index, request in enumerate(requests):
            if index in self.failing_requests:
                errors.append({"index": index, "code": 11000, "errmsg": "E11000 duplicate key error"})
                if ordered:
                    break
                continue
            self.executed.append(request)
        if errors:
            raise BulkWriteError({"writeErrors": errors, "nInserted": len(self.executed)})
        return BulkWriteResult({"nInserted": len(self.executed)}, True)

    def __getattr__(self, verb: str) -> Any:
        if verb.startswith("_"):
            raise AttributeError(verb)

        async def _call(*args: Any, **kwargs: Any) -> Any:
            self.calls.append((verb, args, kwargs))
            result = self.results.get(verb)
            if isinstance(result, BaseException):
                raise result
            return result

        return _call


class FakeDatabase:
    def __init__(self, name: str) -> None:
        self.name = name
        self.collections: dict[str, FakeCollection] = {}

    def __getitem__(self, name: str) -> FakeCollection:
        return self.collections.setdefault(name, FakeCollection(name))


class FakeClient:
    def __init__(self) -> None:
        self.databases: dict[str, FakeDatabase] = {}
        self.closed = False

    def __getitem__(self, name: str) -> FakeDatabase:
        return self.databases.setdefault(name, FakeDatabase(name))

    def close(self) -> None:
        self.closed = True


class FakeConnector:
    """Connector double that counts attempts and can fail or stall on demand."""

    def __init__(
        self,
        *,
        delay: float = 0.0,
        failures: int = 0,
        error: BaseException | None = None,
        seed: Mapping[tuple[str, str], Iterable[dict[str, Any]]] | None = None,
    ) -> None:
        self.calls: list[tuple[str, ConnectOptions]] = []
        self.clients: list[FakeClient] = []
        self._delay = delay
        self._failures = failures
        self._error = error
        self._seed = dict(seed or {})

    async def connect(self, url: str, options: ConnectOptions) -> FakeClient:
        self.calls.append((url, options))
        await asyncio.sleep(self._delay)
        if self._failures:
            self._failures -= 1
            raise self._error or PoolConnectionError("connection refused")
        client = FakeClient()
        for (db, collection), documents in self._seed.items():
            client[db][collection].documents = list(documents)
        self.clients.append(client)
        return client


@pytest.fixture
def make_connector() -> Callable[..., FakeConnector]:
    """Factory for connector doubles; keyword arguments as for ``FakeConnector``."""

    return FakeConnector
