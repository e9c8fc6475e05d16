from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

from .resources import bundle_root, user_data_dir
from .settings import load_settings

DATA_DIR_ENV = "DISARRAY_DATA_DIR"
SETTINGS_DIR_ENV = "DISARRAY_SETTINGS_DIR"

_MISSING = object()


@dataclass(frozen=True)
class AppPaths:
    root: Path
    data_dir: Path


def _resolve_settings_root() -> Path:
    override = os.getenv(SETTINGS_DIR_ENV)
    if override:
        return Path(override).expanduser().resolve()
    return bundle_root()


@dataclass
class AppConfig:
    """Resolved paths plus the merged settings for one application run.

    Settings are read through dotted keys such as ``"ui.font_size"``; a
    missing key or a value of the wrong type yields the given default.
    """

    settings: dict[str, Any] = field(default_factory=dict)
    paths: AppPaths = field(init=False)

    def __post_init__(self) -> None:
        root = _resolve_settings_root()
        if not self.settings:
            self.settings = load_settings(root)
        self.paths = AppPaths(root=root, data_dir=self._resolve_data_dir(root))

    def _lookup(self, dotted_key: str) -> Any:
        node: Any = self.settings
        for part in dotted_key.split("."):
            if not isinstance(node, Mapping):
                return _MISSING
            node = node.get(part, _MISSING)
        return node

    def text(self, dotted_key: str, default: str) -> str:
        value = self._lookup(dotted_key)
        return value.strip() if isinstance(value, str) and value.strip() else default

    def number(self, dotted_key: str, default: int) -> int:
        value = self._lookup(dotted_key)
        # bool は int のサブクラスなので明示的に弾く
        if isinstance(value, bool):
            return default
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    def flag(self, dotted_key: str, default: bool) -> bool:
        value = self._lookup(dotted_key)
        return value if isinstance(value, bool) else default

    def path(self, dotted_key: str, root: Path) -> Path | None:
        value = self.text(dotted_key, "")
        if not value:
            return None
        path = Path(value).expanduser()
        return (path if path.is_absolute() else root / path).resolve()

    def _resolve_data_dir(self, root: Path) -> Path:
        # 優先順位: 環境変数 → 設定ファイル → OS 標準の場所
        override = os.getenv(DATA_DIR_ENV)
        if override:
            return Path(override).expanduser().resolve()
        return self.path("storage.data_dir", root) or user_data_dir()

    @property
    def author(self) -> str:
        return self.text("app.author", "LocalUser")

    @property
    def window_title(self) -> str:
        return self.text("app.window_title", "Disarray")

    @property
    def font_size(self) -> int:
        size = self.number("ui.font_size", 13)
        return size if size > 0 else 13

    @property
    def render_markdown(self) -> bool:
        return self.flag("ui.render_markdown", True)

    @property
    def log_level(self) -> str:
        return self.text("logging.level", "INFO").upper()
