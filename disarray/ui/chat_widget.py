from __future__ import annotations

import html
from datetime import datetime
from typing import Iterable

import markdown
from PySide6.QtCore import Signal
from PySide6.QtGui import QFont, QTextCursor
from PySide6.QtWidgets import (
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QPushButton,
    QTextEdit,
    QVBoxLayout,
    QWidget,
)

from ..models import Channel, Message


def format_time(timestamp: datetime) -> str:
    # 保存は UTC、表示はローカル時刻
    return timestamp.astimezone().strftime("%H:%M")


class ChatWidget(QWidget):
    message_submitted = Signal(str)

    def __init__(
        self,
        parent: QWidget | None = None,
        font_size: int = 13,
        render_markdown: bool = True,
    ) -> None:
        super().__init__(parent)
        self._render_markdown = render_markdown
        self._channel: Channel | None = None

        self._header = QLabel("Select a Channel", self)
        self._header.setStyleSheet("font-weight: 600; font-size: 15px;")

        self._transcript = QTextEdit(self)
        self._transcript.setReadOnly(True)
        font = QFont()
        font.setPointSize(font_size)
        self._transcript.setFont(font)

        self._status_label = QLabel("", self)
        self._status_label.setObjectName("StatusLabel")
        self._status_label.setStyleSheet("color: #b00020;")

        self._input = QLineEdit(self)
        self._input.returnPressed.connect(self._handle_submit)
        self._input.textChanged.connect(lambda _text: self._refresh_controls())

        self._send_button = QPushButton("Send", self)
        self._send_button.clicked.connect(self._handle_submit)

        input_row = QHBoxLayout()
        input_row.addWidget(self._input, stretch=1)
        input_row.addWidget(self._send_button)
        input_row.setSpacing(8)

        layout = QVBoxLayout()
        layout.addWidget(self._header)
        layout.addWidget(self._transcript, stretch=1)
        layout.addWidget(self._status_label)
        layout.addLayout(input_row)
        layout.setContentsMargins(8, 8, 8, 8)
        layout.setSpacing(10)
        self.setLayout(layout)
        self._refresh_controls()

    # Public API ---------------------------------------------------------
    def set_channel(self, channel: Channel | None) -> None:
        self._channel = channel
        if channel is None:
            self._header.setText("Select a Channel")
            self._input.setPlaceholderText("")
        else:
            self._header.setText(f"# {channel.name}")
            self._input.setPlaceholderText(f"Message #{channel.name}")
        self._refresh_controls()

    def show_messages(self, messages: Iterable[Message]) -> None:
        self._transcript.clear()
        for message in messages:
            self._transcript.insertHtml(self._format_message(message))
            self._transcript.insertPlainText("\n")
        # 常に最新メッセージまでスクロールしておく
        self._transcript.moveCursor(QTextCursor.End)

    def set_status_text(self, text: str) -> None:
        self._status_label.setText(text)

    # Internal helpers ---------------------------------------------------
    def _handle_submit(self) -> None:
        text = self._input.text().strip()
        if not text or self._channel is None:
            return
        self._input.clear()
        self.message_submitted.emit(text)

    def _format_message(self, message: Message) -> str:
        if self._render_markdown:
            content = markdown.markdown(message.content, extensions=["fenced_code", "nl2br"])
            # QTextEdit に挿入すると外側の <p> が余白を生むので取り除く
            if content.startswith("<p>") and content.endswith("</p>"):
                content = content[3:-4]
        else:
            content = html.escape(message.content).replace("\n", "<br>")

        header = (
            f'<b>{html.escape(message.author)}</b> '
            f'<span style="color:#888888;">{format_time(message.timestamp)}</span>'
        )
        return f'<div style="margin-bottom: 10px;"><p style="margin-bottom:0px;">{header}</p>{content}</div>'

    def _refresh_controls(self) -> None:
        has_channel = self._channel is not None
        self._input.setEnabled(has_channel)
        self._send_button.setEnabled(has_channel and bool(self._input.text().strip()))
