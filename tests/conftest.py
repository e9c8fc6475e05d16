"""
Shared fixtures for the Disarray test suite.

Every test gets its own temporary data directory, so no test ever touches
the real per-user application data.
"""

from pathlib import Path

import pytest

from disarray.storage import LocalDataService


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    return tmp_path / "Disarray"


@pytest.fixture
def service(data_dir: Path) -> LocalDataService:
    backend = LocalDataService(data_dir)
    backend.initialize()
    return backend


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch, tmp_path: Path):
    monkeypatch.delenv("DISARRAY_DATA_DIR", raising=False)
    monkeypatch.delenv("DISARRAY_SETTINGS_DIR", raising=False)
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "xdg"))
