"""Error types raised by the connection cache and document store."""

from __future__ import annotations

from pymongo.errors import PyMongoError


class MongoPoolError(Exception):
    """Base class for errors raised by mongopool itself."""


class InvalidArgumentError(MongoPoolError, ValueError):
    """Raised when a required input is missing or malformed (checked before any I/O)."""


class PoolConnectionError(MongoPoolError, ConnectionError):
    """Raised when a pooled connection to a database cannot be established."""

    def __init__(self, message: str, *, db_name: str | None = None) -> None:
        super().__init__(message)
        self.db_name = db_name


# Driver failures from CRUD calls are propagated unchanged.
OperationError = PyMongoError


def require_name(value: object, label: str) -> str:
    """Return ``value`` if it is a non-empty string, else raise ``InvalidArgumentError``."""

    if not isinstance(value, str) or not value:
        raise InvalidArgumentError(f"{label} is a required parameter")
    return value


__all__ = [
    "InvalidArgumentError",
    "MongoPoolError",
    "OperationError",
    "PoolConnectionError",
    "require_name",
]
