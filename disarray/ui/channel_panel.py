from __future__ import annotations

from typing import Iterable

from PySide6.QtCore import Qt, Signal
from PySide6.QtWidgets import (
    QInputDialog,
    QLabel,
    QListWidget,
    QListWidgetItem,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from ..models import Channel


class ChannelPanel(QWidget):
    channel_selected = Signal(str)
    new_channel_requested = Signal(str)

    def __init__(self, parent: QWidget | None = None) -> None:
        super().__init__(parent)

        self._title = QLabel("Select a Server", self)
        self._title.setStyleSheet("font-weight: 600; font-size: 14px;")

        self._list = QListWidget(self)
        self._list.itemSelectionChanged.connect(self._on_selection_changed)

        self._add_button = QPushButton("＋ Add channel", self)
        self._add_button.clicked.connect(self._on_add_clicked)
        self._add_button.setEnabled(False)

        layout = QVBoxLayout()
        layout.addWidget(self._title)
        layout.addWidget(self._list, stretch=1)
        layout.addWidget(self._add_button)
        layout.setContentsMargins(4, 4, 4, 4)
        layout.setSpacing(8)
        self.setLayout(layout)

    def set_server_name(self, name: str | None) -> None:
        self._title.setText(name or "Select a Server")
        # サーバー未選択のときはチャンネルを作れない
        self._add_button.setEnabled(name is not None)

    def set_channels(self, channels: Iterable[Channel], selected_id: str | None) -> None:
        self._list.blockSignals(True)
        self._list.clear()
        for channel in channels:
            item = QListWidgetItem(f"# {channel.name}")
            item.setData(Qt.UserRole, channel.id)
            self._list.addItem(item)
            if channel.id == selected_id:
                self._list.setCurrentItem(item)
        self._list.blockSignals(False)

    def _on_selection_changed(self) -> None:
        item = self._list.currentItem()
        if item:
            self.channel_selected.emit(item.data(Qt.UserRole))

    def _on_add_clicked(self) -> None:
        name, accepted = QInputDialog.getText(self, "Create New Channel", "Channel name:")
        if accepted and name.strip():
            self.new_channel_requested.emit(name.strip())
