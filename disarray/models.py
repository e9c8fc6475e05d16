from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_SERVER_ICON = "bubble"


def new_id() -> str:
    return uuid.uuid4().hex


def utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


def parse_timestamp(value: object) -> datetime:
    """Parse an ISO-8601 string, treating naive values as UTC."""

    if not isinstance(value, str):
        raise ValueError(f"Timestamp must be an ISO-8601 string, got {value!r}")
    parsed = datetime.fromisoformat(value)
    return as_utc(parsed)


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _require_str(payload: dict, key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str):
        raise ValueError(f"Missing or invalid field: {key}")
    return value


def _decode_id(payload: dict) -> str:
    """Return the stored id, or a fresh one when the record has none.

    Channel ids double as log file names, so an id must be a single plain
    path component.
    """

    value = payload.get("id")
    if value is None or value == "":
        return new_id()
    if isinstance(value, int) and not isinstance(value, bool):
        value = str(value)
    if not isinstance(value, str) or value in (".", "..") or "\\" in value or Path(value).name != value:
        raise ValueError(f"Invalid id: {value!r}")
    return value


def _decode_each(factory, items: list, kind: str) -> list:
    decoded = []
    for item in items:
        try:
            decoded.append(factory(item))
        except (ValueError, TypeError, AttributeError) as exc:
            logger.warning("Skipping malformed %s record: %s", kind, exc)
    return decoded


@dataclass(frozen=True)
class Server:
    name: str
    icon: str = DEFAULT_SERVER_ICON
    id: str = field(default_factory=new_id)

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "icon": self.icon}

    @classmethod
    def from_dict(cls, payload: dict) -> "Server":
        icon = payload.get("icon")
        return cls(
            id=_decode_id(payload),
            name=_require_str(payload, "name"),
            icon=icon if isinstance(icon, str) and icon else DEFAULT_SERVER_ICON,
        )


@dataclass(frozen=True)
class Channel:
    name: str
    id: str = field(default_factory=new_id)

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name}

    @classmethod
    def from_dict(cls, payload: dict) -> "Channel":
        return cls(id=_decode_id(payload), name=_require_str(payload, "name"))


@dataclass(frozen=True)
class Message:
    author: str
    content: str
    timestamp: datetime = field(default_factory=utc_now)
    id: str = field(default_factory=new_id)

    def __post_init__(self) -> None:
        # naive な時刻は UTC とみなし、保存済みデータとの比較を可能にする
        object.__setattr__(self, "timestamp", as_utc(self.timestamp))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "author": self.author,
            "content": self.content,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, payload: dict) -> "Message":
        raw_timestamp = payload.get("timestamp")
        # 古いデータに時刻が無い場合は読み込み時刻で補う
        timestamp = parse_timestamp(raw_timestamp) if raw_timestamp is not None else utc_now()
        return cls(
            id=_decode_id(payload),
            author=_require_str(payload, "author"),
            content=_require_str(payload, "content"),
            timestamp=timestamp,
        )


@dataclass
class AppData:
    """Persisted root: servers plus the server-id -> channels mapping."""

    servers: list[Server] = field(default_factory=list)
    channels: dict[str, list[Channel]] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "servers": [server.to_dict() for server in self.servers],
            "channels": {
                server_id: [channel.to_dict() for channel in channels]
                for server_id, channels in self.channels.items()
            },
        }

    @classmethod
    def from_dict(cls, payload: dict) -> "AppData":
        raw_servers = payload.get("servers", [])
        raw_channels = payload.get("channels", {})
        if not isinstance(raw_servers, list) or not isinstance(raw_channels, dict):
            raise ValueError("Malformed app data")
        servers = _decode_each(Server.from_dict, raw_servers, "server")
        channels = {
            str(server_id): _decode_each(Channel.from_dict, items, "channel")
            for server_id, items in raw_channels.items()
            if isinstance(items, list)
        }
        # チャンネル一覧が無いサーバーにも空リストを用意しておく
        for server in servers:
            channels.setdefault(server.id, [])
        return cls(servers=servers, channels=channels)

    def find_channel_owner(self, channel_id: str) -> str | None:
        for server_id, channels in self.channels.items():
            if any(channel.id == channel_id for channel in channels):
                return server_id
        return None
