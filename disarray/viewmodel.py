from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Union

from .models import Channel, Message, Server, utc_now
from .storage import LocalDataService, StorageWriteError

logger = logging.getLogger(__name__)

DEFAULT_AUTHOR = "LocalUser"


class ViewChange(Enum):
    SERVERS = "servers"
    CHANNELS = "channels"
    MESSAGES = "messages"
    SELECTION = "selection"
    WRITE_FAILED = "write_failed"


@dataclass(frozen=True)
class NoServerSelected:
    pass


@dataclass(frozen=True)
class ServerSelected:
    server_id: str


@dataclass(frozen=True)
class ServerAndChannelSelected:
    server_id: str
    channel_id: str


SelectionState = Union[NoServerSelected, ServerSelected, ServerAndChannelSelected]
Listener = Callable[[ViewChange], None]


class ChatViewModel:
    """
    Mirrors the data service into in-memory lists and tracks the selection.

    Listeners registered with :meth:`subscribe` are called synchronously
    with a :class:`ViewChange` after every state change and read the new
    values back from the view model.
    """

    def __init__(self, backend: LocalDataService, author: str = DEFAULT_AUTHOR) -> None:
        self._backend = backend
        self._author = author
        self._listeners: list[Listener] = []
        self.servers: list[Server] = []
        self.channels: list[Channel] = []
        self.messages: list[Message] = []
        self.selected_server: Server | None = None
        self.selected_channel: Channel | None = None
        self.last_error: str | None = None
        self.fetch_servers()

    # Observation --------------------------------------------------------
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, change: ViewChange) -> None:
        for listener in list(self._listeners):
            listener(change)

    @property
    def state(self) -> SelectionState:
        if self.selected_server is None:
            return NoServerSelected()
        if self.selected_channel is None:
            return ServerSelected(self.selected_server.id)
        return ServerAndChannelSelected(self.selected_server.id, self.selected_channel.id)

    # Loading ------------------------------------------------------------
    def fetch_servers(self) -> None:
        self.servers = self._backend.list_servers()
        self._notify(ViewChange.SERVERS)
        current_id = self.selected_server.id if self.selected_server else None
        if not any(server.id == current_id for server in self.servers):
            self.select_server(self.servers[0].id if self.servers else None)

    def fetch_channels(self) -> None:
        if self.selected_server is None:
            self.channels = []
        else:
            self.channels = self._backend.list_channels(self.selected_server.id)
        self._notify(ViewChange.CHANNELS)
        current_id = self.selected_channel.id if self.selected_channel else None
        if any(channel.id == current_id for channel in self.channels):
            return
        # 選択中のチャンネルが一覧から消えたら先頭にフォールバックする
        self.select_channel(self.channels[0].id if self.channels else None)

    def fetch_messages(self) -> None:
        if self.selected_channel is None:
            self.messages = []
        else:
            self.messages = self._backend.list_messages(self.selected_channel.id)
        self._notify(ViewChange.MESSAGES)

    def refresh(self) -> None:
        previous = self.selected_server
        self.fetch_servers()
        # サーバーが切り替わった場合は select_server 内で読み直し済み
        if previous is None or self.selected_server is not previous:
            return
        channel = self.selected_channel
        self.fetch_channels()
        if channel is not None and self.selected_channel is channel:
            self.fetch_messages()

    # Selection ----------------------------------------------------------
    def select_server(self, server_id: str | None) -> None:
        server = next((s for s in self.servers if s.id == server_id), None)
        self.selected_server = server
        self._notify(ViewChange.SELECTION)
        self.fetch_channels()

    def select_channel(self, channel_id: str | None) -> None:
        channel = next((c for c in self.channels if c.id == channel_id), None)
        self.selected_channel = channel
        self._notify(ViewChange.SELECTION)
        self.fetch_messages()

    # Actions ------------------------------------------------------------
    def add_server(self, name: str, icon: str | None = None) -> Server | None:
        name = name.strip()
        if not name:
            return None
        server = Server(name=name, icon=icon) if icon else Server(name=name)
        try:
            self._backend.create_server(server)
        except StorageWriteError as exc:
            self._report_write_failure(exc)
        self.servers.append(server)
        self._notify(ViewChange.SERVERS)
        self.select_server(server.id)
        return server

    def add_channel(self, name: str) -> Channel | None:
        if self.selected_server is None:
            return None
        name = name.strip()
        if not name:
            return None
        channel = Channel(name=name)
        try:
            self._backend.create_channel(channel, self.selected_server.id)
        except StorageWriteError as exc:
            self._report_write_failure(exc)
        # 全件を読み直さずにメモリ上の一覧へ追加する
        self.channels.append(channel)
        self._notify(ViewChange.CHANNELS)
        self.select_channel(channel.id)
        return channel

    def send_message(self, content: str, author: str | None = None) -> Message | None:
        if self.selected_channel is None:
            return None
        if not content.strip():
            return None
        message = Message(author=author or self._author, content=content, timestamp=utc_now())
        try:
            self._backend.append_message(message, self.selected_channel.id)
        except StorageWriteError as exc:
            self._report_write_failure(exc)
        self.messages.append(message)
        self._notify(ViewChange.MESSAGES)
        return message

    def _report_write_failure(self, exc: StorageWriteError) -> None:
        logger.warning("Change kept in memory only: %s", exc)
        self.last_error = str(exc)
        self._notify(ViewChange.WRITE_FAILED)
