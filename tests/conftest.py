from __future__ import annotations

import json
from pathlib import Path

import pytest
from PySide6.QtCore import QCoreApplication

from usercolors.config.paths import StoragePaths
from usercolors.config.store import ConfigStore


@pytest.fixture(scope="session")
def qapp():
    """Provide a QCoreApplication for QObject-based watcher tests."""
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


@pytest.fixture
def storage(tmp_path: Path) -> StoragePaths:
    return StoragePaths(config_home=tmp_path / "config", data_home=tmp_path / "data")


@pytest.fixture
def store(storage: StoragePaths) -> ConfigStore:
    return ConfigStore(storage)


def write_record(directory: Path, name: str, **colors: str | None) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"{name}.json"
    path.write_text(json.dumps({"name": name, **colors}, indent=2), encoding="utf-8")
    return path
