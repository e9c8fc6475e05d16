from __future__ import annotations

import os
import sys
from functools import lru_cache
from pathlib import Path

APP_NAME = "Disarray"


@lru_cache(maxsize=1)
def bundle_root() -> Path:
    """Return the directory that ships next to the application code."""

    if getattr(sys, "frozen", False):
        # PyInstaller で固めた場合は実行ファイルの隣に設定ファイルを置く
        return Path(sys.executable).resolve().parent
    return Path(__file__).resolve().parent.parent


def user_data_dir(app_name: str = APP_NAME) -> Path:
    """Resolve the per-user application-private data directory.

    macOS uses ``~/Library/Application Support``, Windows uses ``%APPDATA%``
    and everything else follows the XDG base directory layout.
    """

    home = Path.home()
    if sys.platform == "darwin":
        return home / "Library" / "Application Support" / app_name
    if sys.platform.startswith("win"):
        appdata = os.environ.get("APPDATA")
        base = Path(appdata) if appdata else home / "AppData" / "Roaming"
        return base / app_name
    xdg_data = os.environ.get("XDG_DATA_HOME")
    base = Path(xdg_data).expanduser() if xdg_data else home / ".local" / "share"
    return base / app_name.lower()
