from __future__ import annotations

from PySide6.QtCore import Qt
from PySide6.QtWidgets import QMainWindow, QSplitter

from ..config import AppConfig
from ..viewmodel import ChatViewModel
from .bridge import ViewModelBridge
from .channel_panel import ChannelPanel
from .chat_widget import ChatWidget
from .server_panel import ServerPanel


class MainWindow(QMainWindow):
    """Three-pane window: servers, channels of the selected server, messages."""

    def __init__(self, config: AppConfig, view_model: ChatViewModel) -> None:
        super().__init__()
        self._config = config
        self._view_model = view_model
        self._bridge = ViewModelBridge(view_model, self)

        self.setWindowTitle(config.window_title)
        self.resize(1100, 700)

        self._server_panel = ServerPanel(self)
        self._channel_panel = ChannelPanel(self)
        self._chat_widget = ChatWidget(
            self,
            font_size=config.font_size,
            render_markdown=config.render_markdown,
        )

        splitter = QSplitter(Qt.Horizontal, self)
        splitter.addWidget(self._server_panel)
        splitter.addWidget(self._channel_panel)
        splitter.addWidget(self._chat_widget)
        splitter.setStretchFactor(2, 1)
        splitter.setSizes([220, 220, 660])
        self.setCentralWidget(splitter)

        # UI → ビューモデル
        self._server_panel.server_selected.connect(view_model.select_server)
        self._server_panel.new_server_requested.connect(view_model.add_server)
        self._channel_panel.channel_selected.connect(view_model.select_channel)
        self._channel_panel.new_channel_requested.connect(view_model.add_channel)
        self._chat_widget.message_submitted.connect(self._handle_message_submitted)

        # ビューモデル → UI
        self._bridge.servers_changed.connect(self._render_servers)
        self._bridge.channels_changed.connect(self._render_channels)
        self._bridge.messages_changed.connect(self._render_messages)
        self._bridge.selection_changed.connect(self._render_selection)
        self._bridge.write_failed.connect(self._chat_widget.set_status_text)

        self._render_servers()
        self._render_selection()

    def _handle_message_submitted(self, text: str) -> None:
        self._chat_widget.set_status_text("")
        self._view_model.send_message(text)

    def _render_servers(self) -> None:
        selected = self._view_model.selected_server
        self._server_panel.set_servers(self._view_model.servers, selected.id if selected else None)

    def _render_channels(self) -> None:
        selected = self._view_model.selected_channel
        self._channel_panel.set_channels(self._view_model.channels, selected.id if selected else None)

    def _render_messages(self) -> None:
        self._chat_widget.show_messages(self._view_model.messages)

    def _render_selection(self) -> None:
        server = self._view_model.selected_server
        self._render_servers()
        self._channel_panel.set_server_name(server.name if server else None)
        self._render_channels()
        self._chat_widget.set_channel(self._view_model.selected_channel)
        self._render_messages()

    def closeEvent(self, event) -> None:  # noqa: N802 - Qt override
        self._bridge.detach()
        super().closeEvent(event)
