from __future__ import annotations

import contextlib
import json
import logging
import os
from pathlib import Path
from typing import Any

from .models import AppData, Channel, Message, Server

logger = logging.getLogger(__name__)

DATA_FILENAME = "data.json"
MESSAGES_DIRNAME = "messages"
DATA_FORMAT_VERSION = 2


class StorageError(Exception):
    """Base class for errors raised by the local data service."""


class StorageWriteError(StorageError):
    """Raised when a change could not be flushed to disk.

    The in-memory state already contains the change when this is raised.
    """


class UnknownServerError(StorageError, LookupError):
    """Raised when a channel is created under a server that does not exist."""


class UnknownChannelError(StorageError, LookupError):
    """Raised when a message is appended to a channel that does not exist."""


def write_json_atomic(path: Path, payload: Any) -> None:
    """Write ``payload`` as JSON so ``path`` is either old or new, never partial."""

    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    try:
        with open(tmp_path, "w", encoding="utf-8") as handle:
            json.dump(payload, handle, ensure_ascii=False, indent=2)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        with contextlib.suppress(OSError):
            tmp_path.unlink(missing_ok=True)
        raise


def create_default_data() -> tuple[AppData, dict[str, list[Message]]]:
    local_gaming = Server(name="Local Gaming", icon="gamecontroller")
    my_projects = Server(name="My Projects", icon="hammer")
    general = Channel(name="general")
    dev_log = Channel(name="dev-log")
    welcome = Message(author="System", content="Welcome! All data is now stored locally.")

    app_data = AppData(
        servers=[local_gaming, my_projects],
        channels={local_gaming.id: [general], my_projects.id: [dev_log]},
    )
    return app_data, {general.id: [welcome]}


class LocalDataService:
    """
    Stores servers, channels and messages as JSON files under ``data_dir``.

    ``data.json`` holds the servers and the server -> channels mapping, and
    every channel gets its own log file in ``messages/``.  Everything is
    cached in memory after the first read; the cache is authoritative for
    the lifetime of the service.
    """

    def __init__(self, data_dir: Path) -> None:
        self._data_dir = Path(data_dir)
        self._data_path = self._data_dir / DATA_FILENAME
        self._messages_dir = self._data_dir / MESSAGES_DIRNAME
        self._app_data = AppData()
        self._messages: dict[str, list[Message]] = {}
        self._initialized = False

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    @property
    def data_path(self) -> Path:
        return self._data_path

    def message_log_path(self, channel_id: str) -> Path:
        return self._messages_dir / f"{channel_id}.json"

    # Lifecycle ----------------------------------------------------------
    def initialize(self) -> None:
        """Load persisted data, seeding defaults on first run or on failure.

        Never raises: every I/O and decode problem is logged and replaced by
        in-memory defaults.
        """

        if self._initialized:
            return
        self._initialized = True

        try:
            self._messages_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            logger.error("Could not create data directory %s: %s", self._data_dir, exc)

        loaded = self._load_root()
        if loaded is not None:
            self._app_data = loaded
            return

        self._app_data, self._messages = create_default_data()
        try:
            self._save_root()
            for channel_id in self._messages:
                self._save_channel_log(channel_id)
        except StorageWriteError:
            # 初回シードの保存失敗はメモリ上のデータで続行する
            logger.warning("Continuing with unsaved default data in %s", self._data_dir)

    # Queries ------------------------------------------------------------
    def list_servers(self) -> list[Server]:
        return list(self._app_data.servers)

    def get_server(self, server_id: str) -> Server | None:
        for server in self._app_data.servers:
            if server.id == server_id:
                return server
        return None

    def list_channels(self, server_id: str) -> list[Channel]:
        return list(self._app_data.channels.get(server_id, []))

    def get_channel(self, channel_id: str) -> Channel | None:
        for channels in self._app_data.channels.values():
            for channel in channels:
                if channel.id == channel_id:
                    return channel
        return None

    def list_messages(self, channel_id: str) -> list[Message]:
        if self.get_channel(channel_id) is None:
            return []
        # sorted は安定ソートなので同時刻のメッセージは追加順のまま
        return sorted(self._channel_log(channel_id), key=lambda message: message.timestamp)

    # Mutations ----------------------------------------------------------
    def create_server(self, server: Server) -> None:
        self._app_data.servers.append(server)
        self._app_data.channels.setdefault(server.id, [])
        self._save_root()

    def create_channel(self, channel: Channel, server_id: str) -> None:
        if self.get_server(server_id) is None:
            raise UnknownServerError(server_id)
        self._app_data.channels.setdefault(server_id, []).append(channel)
        self._messages.setdefault(channel.id, [])
        self._save_root()

    def append_message(self, message: Message, channel_id: str) -> None:
        if self.get_channel(channel_id) is None:
            raise UnknownChannelError(channel_id)
        self._channel_log(channel_id).append(message)
        self._save_channel_log(channel_id)

    # Persistence helpers -------------------------------------------------
    def _load_root(self) -> AppData | None:
        if not self._data_path.exists():
            logger.info("No data file at %s; seeding defaults", self._data_path)
            return None
        try:
            payload = json.loads(self._data_path.read_text(encoding="utf-8"))
            if not isinstance(payload, dict):
                raise ValueError("top level is not an object")
            app_data = AppData.from_dict(payload)
        except (OSError, ValueError, TypeError, AttributeError) as exc:
            # json.JSONDecodeError は ValueError のサブクラス
            logger.warning("Could not load %s (%s); seeding defaults", self._data_path, exc)
            return None

        legacy_messages = payload.get("messages")
        if isinstance(legacy_messages, dict):
            self._migrate_embedded_messages(app_data, legacy_messages)
        return app_data

    def _migrate_embedded_messages(self, app_data: AppData, legacy: dict) -> None:
        """Split the old single-file layout into one log file per channel."""

        logger.info("Migrating embedded messages in %s to per-channel logs", self._data_path)
        self._app_data = app_data
        for channel_id, items in legacy.items():
            if not isinstance(items, list) or app_data.find_channel_owner(str(channel_id)) is None:
                logger.warning("Dropping messages for unknown channel %s", channel_id)
                continue
            existing = self._read_channel_log(str(channel_id))
            # 前回の移行が途中で止まっていた場合、既にログにあるメッセージは追加しない
            seen = {message.id for message in existing}
            migrated = [m for m in self._decode_messages(items, str(channel_id)) if m.id not in seen]
            self._messages[str(channel_id)] = existing + migrated
        try:
            for channel_id in self._messages:
                self._save_channel_log(channel_id)
            self._save_root()
        except StorageWriteError:
            logger.warning("Migration of %s left incomplete; data kept in memory", self._data_path)

    def _channel_log(self, channel_id: str) -> list[Message]:
        if channel_id not in self._messages:
            self._messages[channel_id] = self._read_channel_log(channel_id)
        return self._messages[channel_id]

    def _read_channel_log(self, channel_id: str) -> list[Message]:
        path = self.message_log_path(channel_id)
        if not path.exists():
            return []
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Could not read message log %s: %s", path, exc)
            return []
        items = payload.get("messages") if isinstance(payload, dict) else None
        if not isinstance(items, list):
            logger.warning("Message log %s has no message list", path)
            return []
        return self._decode_messages(items, channel_id)

    @staticmethod
    def _decode_messages(items: list, channel_id: str) -> list[Message]:
        messages: list[Message] = []
        for item in items:
            try:
                messages.append(Message.from_dict(item))
            except (ValueError, TypeError, AttributeError) as exc:
                logger.warning("Skipping malformed message in channel %s: %s", channel_id, exc)
        return messages

    def _save_root(self) -> None:
        payload = {"version": DATA_FORMAT_VERSION, **self._app_data.to_dict()}
        self._write(self._data_path, payload)

    def _save_channel_log(self, channel_id: str) -> None:
        payload = {
            "channel_id": channel_id,
            "messages": [message.to_dict() for message in self._messages.get(channel_id, [])],
        }
        self._write(self.message_log_path(channel_id), payload)

    def _write(self, path: Path, payload: Any) -> None:
        try:
            write_json_atomic(path, payload)
        except (OSError, TypeError, ValueError) as exc:
            logger.error("Error saving %s: %s", path, exc)
            raise StorageWriteError(f"Could not save {path.name}: {exc}") from exc
