from __future__ import annotations

import json
import logging
from copy import deepcopy
from pathlib import Path
from typing import Any, Mapping

logger = logging.getLogger(__name__)

SETTINGS_FILENAME = "disarray_settings.json"

DEFAULT_SETTINGS: dict[str, Any] = {
    "app": {
        "author": "LocalUser",
        "window_title": "Disarray",
    },
    "storage": {
        # None のときはプラットフォーム標準のアプリ用ディレクトリを使う
        "data_dir": None,
    },
    "ui": {
        "font_size": 13,
        "render_markdown": True,
    },
    "logging": {
        "level": "INFO",
    },
}


def settings_path(root: Path) -> Path:
    return root / SETTINGS_FILENAME


def load_settings(root: Path) -> dict[str, Any]:
    """Load the settings file under ``root`` merged over the defaults.

    A missing, unreadable or malformed file yields a fresh copy of
    ``DEFAULT_SETTINGS``.
    """

    path = settings_path(root)
    if not path.exists():
        return deepcopy(DEFAULT_SETTINGS)

    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Ignoring unreadable settings file %s: %s", path, exc)
        return deepcopy(DEFAULT_SETTINGS)

    if not isinstance(payload, Mapping):
        logger.warning("Ignoring settings file %s: top level is not an object", path)
        return deepcopy(DEFAULT_SETTINGS)
    return merge_settings(DEFAULT_SETTINGS, payload)


def merge_settings(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Overlay ``override`` on ``base``; nested sections merge key by key."""

    merged = deepcopy(dict(base))
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            value = merge_settings(current, value)
        merged[key] = deepcopy(value)
    return merged
