"""Async CRUD helpers over the per-database connection cache."""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Sequence

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import ReturnDocument
from pymongo.results import BulkWriteResult, DeleteResult, InsertManyResult, InsertOneResult, UpdateResult

from .config import ConnectOptions
from .connections import Connection, Connector
from .errors import InvalidArgumentError, require_name
from .pool import ConnectionPoolCache

Document = Mapping[str, Any]
Projection = Mapping[str, Any] | Sequence[str]
SortSpec = str | Sequence[tuple[str, int]]


class DocumentStore:
    """Thin async facade running one driver call per method.

    Every method acquires the pooled connection for ``db`` from the cache,
    resolves the collection and relays the driver's result or error untouched.
    """

    ObjectId = ObjectId

    def __init__(self, pool: ConnectionPoolCache) -> None:
        self._pool = pool

    @classmethod
    def from_url(
        cls,
        url: str,
        options: ConnectOptions | Mapping[str, Any] | None = None,
        log_level: int = 1,
        *,
        connector: Connector | None = None,
    ) -> DocumentStore:
        return cls(ConnectionPoolCache.from_url(url, options, log_level, connector=connector))

    @property
    def pool(self) -> ConnectionPoolCache:
        return self._pool

    async def get_connection(self, db: str) -> Connection:
        """Return the pooled connection for ``db``."""

        return await self._pool.acquire(db)

    async def collection(self, db: str, collection: str) -> AsyncIOMotorCollection:
        """Return the raw collection handle for operations not wrapped here."""

        require_name(collection, "collection name")
        connection = await self._pool.acquire(db)
        return connection[db][collection]

    async def find(
        self,
        db: str,
        collection: str,
        query: Document | None = None,
        projection: Projection | None = None,
        *,
        sort: SortSpec | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """Return every document matching ``query`` as a list."""

        if limit is not None and (isinstance(limit, bool) or not isinstance(limit, int) or limit < 0):
            raise InvalidArgumentError("limit must be a non-negative integer")
        handle = await self.collection(db, collection)
        cursor = handle.find(query or {}, projection)
        if sort is not None:
            cursor = cursor.sort(sort)
        if limit:
            cursor = cursor.limit(limit)
        return await cursor.to_list(length=None)

    async def find_one(
        self,
        db: str,
        collection: str,
        query: Document | None = None,
        options: Mapping[str, Any] | None = None,
    ) -> dict[str, Any] | None:
        """Return the first matching document, or ``None``."""

        return await self._run(db, collection, "find_one", query or {}, **dict(options or {}))

    async def insert_one(self, db: str, collection: str, document: Document) -> InsertOneResult:
        return await self._run(db, collection, "insert_one", document)

    async def insert_many(
        self,
        db: str,
        collection: str,
        documents: Iterable[Document],
        *,
        ordered: bool = True,
    ) -> InsertManyResult:
        items = list(documents)
        if not items:
            raise InvalidArgumentError("insert_many requires at least one document")
        return await self._run(db, collection, "insert_many", items, ordered=ordered)

    async def upsert(
        self,
        db: str,
        collection: str,
        query: Document,
        document: Document,
    ) -> dict[str, Any] | None:
        """Replace the matching document, inserting it when nothing matches."""

        return await self._run(
            db,
            collection,
            "find_one_and_replace",
            query,
            document,
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )

    async def update_one(self, db: str, collection: str, query: Document, update: Any) -> UpdateResult:
        return await self._run(db, collection, "update_one", query, update)

    async def update_many(self, db: str, collection: str, query: Document, update: Any) -> UpdateResult:
        return await self._run(db, collection, "update_many", query, update)

    async def delete_one(self, db: str, collection: str, query: Document) -> DeleteResult:
        return await self._run(db, collection, "delete_one", query)

    remove_one = delete_one

    async def delete_many(self, db: str, collection: str, query: Document) -> DeleteResult:
        return await self._run(db, collection, "delete_many", query)

    remove_many = delete_many

    async def replace_one(
        self,
        db: str,
        collection: str,
        query: Document,
        document: Document,
    ) -> UpdateResult:
        """Replace one matching document; never inserts."""

        return await self._run(db, collection, "replace_one", query, document)

    async def find_one_and_update(
        self,
        db: str,
        collection: str,
        query: Document,
        update: Any,
        **options: Any,
    ) -> dict[str, Any] | None:
        """Update one document and return it as selected by ``return_document``."""

        return await self._run(db, collection, "find_one_and_update", query, update, **options)

    async def bulk_write(
        self,
        db: str,
        collection: str,
        requests: Iterable[Any],
        *,
        ordered: bool = True,
    ) -> BulkWriteResult:
        """Run a batch of write models; ordered batches stop at the first failure."""

        items = list(requests)
        if not items:
            raise InvalidArgumentError("bulk_write requires at least one request")
        return await self._run(db, collection, "bulk_write", items, ordered=ordered)

    async def _run(self, db: str, collection: str, verb: str, *args: Any, **kwargs: Any) -> Any:
        handle = await self.collection(db, collection)
        return await getattr(handle, verb)(*args, **kwargs)


__all__ = ["DocumentStore"]
