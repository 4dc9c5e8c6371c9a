"""Per-process cache of pooled MongoDB connections with async CRUD helpers."""

from __future__ import annotations

from bson import ObjectId

from .config import ConnectionConfig, ConnectOptions, build_config, load_config, save_config
from .connections import Connection, Connector, MotorConnector
from .errors import InvalidArgumentError, MongoPoolError, OperationError, PoolConnectionError
from .pool import ConnectionPoolCache
from .store import DocumentStore

__version__ = "0.1.0"

__all__ = [
    "Connection",
    "ConnectionConfig",
    "ConnectionPoolCache",
    "ConnectOptions",
    "Connector",
    "DocumentStore",
    "InvalidArgumentError",
    "MongoPoolError",
    "MotorConnector",
    "ObjectId",
    "OperationError",
    "PoolConnectionError",
    "__version__",
    "build_config",
    "load_config",
    "save_config",
]
