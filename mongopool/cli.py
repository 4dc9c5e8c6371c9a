"""Command-line smoke test for a MongoDB deployment (`python -m mongopool`)."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import Any

from bson import json_util
from pymongo.errors import PyMongoError

from .config import URL_ENV_VAR, ConnectionConfig, load_config
from .connections import Connector
from .errors import InvalidArgumentError, MongoPoolError
from .pool import ConnectionPoolCache
from .store import DocumentStore


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="mongopool", description=__doc__)
    parser.add_argument("--config", type=Path, default=None, help="Path to a config.toml file")
    parser.add_argument("--url", default=None, help=f"Connection URL (overrides ${URL_ENV_VAR})")
    parser.add_argument("--log-level", type=int, default=None, help="0 = silent, 1 = log pool creation")
    commands = parser.add_subparsers(dest="command", required=True)

    ping = commands.add_parser("ping", help="Open a connection pool to a database")
    ping.add_argument("database")

    find = commands.add_parser("find", help="Print documents matching a filter as Extended JSON")
    find.add_argument("database")
    find.add_argument("collection")
    find.add_argument("--filter", default=None, help="Query filter as JSON")
    find.add_argument("--projection", default=None, help="Field projection as JSON")
    find.add_argument("--limit", type=int, default=None, help="Maximum number of documents")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None, *, connector: Connector | None = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    try:
        config = _resolve_config(args)
        query = _parse_json(getattr(args, "filter", None), "--filter")
        projection = _parse_json(getattr(args, "projection", None), "--projection")
    except InvalidArgumentError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    store = DocumentStore(ConnectionPoolCache(config, connector=connector))
    try:
        return asyncio.run(_execute(store, args, query, projection))
    except InvalidArgumentError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    except (MongoPoolError, PyMongoError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


async def _execute(
    store: DocumentStore,
    args: argparse.Namespace,
    query: dict[str, Any] | None,
    projection: dict[str, Any] | None,
) -> int:
    try:
        if args.command == "ping":
            await store.get_connection(args.database)
            print(f"connected to database '{args.database}'")
        else:
            documents = await store.find(
                args.database,
                args.collection,
                query,
                projection,
                limit=args.limit,
            )
            print(json_util.dumps(documents, indent=2))
    finally:
        await store.pool.close()
    return 0


def _resolve_config(args: argparse.Namespace) -> ConnectionConfig:
    environ = dict(os.environ)
    if args.url:
        environ[URL_ENV_VAR] = args.url
    config = load_config(args.config, environ=environ)
    if args.log_level is not None:
        if args.log_level < 0:
            raise InvalidArgumentError("--log-level must be zero or positive")
        config = config.model_copy(update={"log_level": args.log_level})
    return config


def _parse_json(raw: str | None, flag: str) -> dict[str, Any] | None:
    if raw is None:
        return None
    try:
        value = json_util.loads(raw)
    except ValueError as exc:
        raise InvalidArgumentError(f"{flag} is not valid JSON: {exc}") from exc
    if not isinstance(value, dict):
        raise InvalidArgumentError(f"{flag} must be a JSON object")
    return value


__all__ = ["main", "parse_args"]
