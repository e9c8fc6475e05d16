from __future__ import annotations

import logging
import sys

from PySide6.QtWidgets import QApplication

from .config import AppConfig
from .storage import LocalDataService
from .ui import MainWindow
from .viewmodel import ChatViewModel


def main() -> None:
    # Qt アプリのエントリポイント。設定→データ層→ビューモデル→ウィンドウの順に組み立てる。
    config = AppConfig()
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = QApplication(sys.argv)
    backend = LocalDataService(config.paths.data_dir)
    backend.initialize()
    view_model = ChatViewModel(backend, author=config.author)
    window = MainWindow(config, view_model)
    window.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
