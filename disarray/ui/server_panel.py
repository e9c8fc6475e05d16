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

from ..models import Server

SERVER_ICONS = {
    "gamecontroller": "🎮",
    "hammer": "🔨",
    "bubble": "💬",
}


def icon_glyph(icon: str, name: str) -> str:
    glyph = SERVER_ICONS.get(icon)
    if glyph:
        return glyph
    # 未知のアイコン名はサーバー名の頭文字で代用する
    return (name[:1] or "?").upper()


class ServerPanel(QWidget):
    server_selected = Signal(str)
    new_server_requested = Signal(str)

    def __init__(self, parent: QWidget | None = None) -> None:
        super().__init__(parent)

        title = QLabel("Servers", self)
        title.setStyleSheet("font-weight: 600; font-size: 14px;")

        self._list = QListWidget(self)
        self._list.itemSelectionChanged.connect(self._on_selection_changed)

        self._new_button = QPushButton("＋ Add server", self)
        self._new_button.clicked.connect(self._on_new_clicked)

        layout = QVBoxLayout()
        layout.addWidget(title)
        layout.addWidget(self._list, stretch=1)
        layout.addWidget(self._new_button)
        layout.setContentsMargins(4, 4, 4, 4)
        layout.setSpacing(8)
        self.setLayout(layout)

    def set_servers(self, servers: Iterable[Server], selected_id: str | None) -> None:
        # リストを再構築する間は選択シグナルを止めてビューモデルへの逆流を防ぐ
        self._list.blockSignals(True)
        self._list.clear()
        for server in servers:
            item = QListWidgetItem(f"{icon_glyph(server.icon, server.name)}  {server.name}")
            item.setData(Qt.UserRole, server.id)
            self._list.addItem(item)
            if server.id == selected_id:
                self._list.setCurrentItem(item)
        self._list.blockSignals(False)

    def _on_selection_changed(self) -> None:
        item = self._list.currentItem()
        if item:
            self.server_selected.emit(item.data(Qt.UserRole))

    def _on_new_clicked(self) -> None:
        name, accepted = QInputDialog.getText(self, "Create New Server", "Server name:")
        if accepted and name.strip():
            self.new_server_requested.emit(name.strip())
