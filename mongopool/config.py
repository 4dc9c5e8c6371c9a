"""Connection configuration models and loading helpers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Mapping

import tomllib

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import InvalidArgumentError

CONFIG_FILE = Path.home() / ".config" / "mongopool" / "config.toml"
URL_ENV_VAR = "MONGO_URL"


class ConnectOptions(BaseModel):
    """Options applied to every pooled connection.

    Keys other than the recognised ones are kept and handed to the driver as
    keyword options (for example ``serverSelectionTimeoutMS``).
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    pool_size: int = Field(default=5, ge=1)
    use_new_url_parser: bool = True
    use_unified_topology: bool = True

    def to_client_kwargs(self) -> dict[str, Any]:
        """Translate the options into ``AsyncIOMotorClient`` keyword arguments."""

        kwargs: dict[str, Any] = dict(self.model_extra or {})
        kwargs["maxPoolSize"] = self.pool_size
        if not self.use_unified_topology:
            kwargs["directConnection"] = True
        # The driver only ships the modern URI parser; use_new_url_parser has no keyword.
        return kwargs


class ConnectionConfig(BaseModel):
    """Immutable connection settings shared by every pool in a cache."""

    model_config = ConfigDict(frozen=True)

    url: str
    options: ConnectOptions = Field(default_factory=ConnectOptions)
    log_level: int = Field(default=1, ge=0)

    @property
    def logs_pool_events(self) -> bool:
        return self.log_level > 0

    def with_options(self, **updates: object) -> ConnectionConfig:
        """Return a copy with ``updates`` merged over the current options."""

        merged = {**self.options.model_dump(), **updates}
        try:
            options = ConnectOptions(**merged)
        except ValidationError as exc:
            raise InvalidArgumentError(f"Invalid connect options: {exc}") from exc
        return self.model_copy(update={"options": options})


def build_config(
    url: str | None,
    options: ConnectOptions | Mapping[str, Any] | None = None,
    log_level: int = 1,
) -> ConnectionConfig:
    """Validate raw settings and build a :class:`ConnectionConfig`."""

    if not isinstance(url, str) or not url.strip():
        raise InvalidArgumentError("url is a required connection setting")
    try:
        if options is None:
            resolved = ConnectOptions()
        elif isinstance(options, ConnectOptions):
            resolved = options
        else:
            resolved = ConnectOptions(**dict(options))
        return ConnectionConfig(url=url.strip(), options=resolved, log_level=log_level)
    except ValidationError as exc:
        raise InvalidArgumentError(f"Invalid connection settings: {exc}") from exc


def load_config(
    path: Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> ConnectionConfig:
    """Load settings from disk, letting ``MONGO_URL`` override the file's URL."""

    env = os.environ if environ is None else environ
    try:
        data = _read_config_file(path or CONFIG_FILE)
    except FileNotFoundError:
        data = {}
    except (tomllib.TOMLDecodeError, OSError):
        data = {}

    url = env.get(URL_ENV_VAR) or data.get("url")
    log_level = data.get("log_level", ConnectionConfig.model_fields["log_level"].default)
    return build_config(url, data.get("options"), log_level)  # type: ignore[arg-type]


def save_config(config: ConnectionConfig, path: Path | None = None) -> Path:
    """Persist configuration to disk and return the file written."""

    target = path or CONFIG_FILE
    target.parent.mkdir(parents=True, exist_ok=True)
    lines: list[str] = [
        f"url = {_toml_value(config.url)}",
        f"log_level = {config.log_level}",
        "",
        "[options]",
    ]
    for key, value in config.options.model_dump().items():
        if value is not None:
            lines.append(f"{_toml_key(key)} = {_toml_value(value)}")
    target.write_text("\n".join(lines) + "\n")
    return target


def _toml_value(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(_toml_value(item) for item in value if item is not None) + "]"
    if isinstance(value, Mapping):
        pairs = (
            f"{_toml_key(str(key))} = {_toml_value(item)}"
            for key, item in value.items()
            if item is not None
        )
        return "{" + ", ".join(pairs) + "}"
    text = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{text}"'


def _toml_key(key: str) -> str:
    if key and all(char.isascii() and (char.isalnum() or char in "-_") for char in key):
        return key
    return _toml_value(key)


def _read_config_file(path: Path) -> dict[str, object]:
    with path.open("rb") as handle:
        raw = tomllib.load(handle)
    data: dict[str, object] = {}
    url = raw.get("url")
    if isinstance(url, str):
        data["url"] = url
    log_level = raw.get("log_level")
    if isinstance(log_level, int) and not isinstance(log_level, bool):
        data["log_level"] = log_level
    options = raw.get("options")
    if isinstance(options, dict):
        data["options"] = {str(key): value for key, value in options.items()}
    return data


__all__ = [
    "CONFIG_FILE",
    "URL_ENV_VAR",
    "ConnectOptions",
    "ConnectionConfig",
    "build_config",
    "load_config",
    "save_config",
]
