from __future__ import annotations

from PySide6.QtCore import QObject, Signal

from ..viewmodel import ChatViewModel, ViewChange


class ViewModelBridge(QObject):
    """Re-emits view model changes as Qt signals for the widgets."""

    servers_changed = Signal()
    channels_changed = Signal()
    messages_changed = Signal()
    selection_changed = Signal()
    write_failed = Signal(str)

    def __init__(self, view_model: ChatViewModel, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._view_model = view_model
        self._unsubscribe = view_model.subscribe(self._on_change)

    @property
    def view_model(self) -> ChatViewModel:
        return self._view_model

    def detach(self) -> None:
        self._unsubscribe()

    def _on_change(self, change: ViewChange) -> None:
        if change is ViewChange.SERVERS:
            self.servers_changed.emit()
        elif change is ViewChange.CHANNELS:
            self.channels_changed.emit()
        elif change is ViewChange.MESSAGES:
            self.messages_changed.emit()
        elif change is ViewChange.SELECTION:
            self.selection_changed.emit()
        elif change is ViewChange.WRITE_FAILED:
            self.write_failed.emit(self._view_model.last_error or "")
