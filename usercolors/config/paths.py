"""Per-user storage locations following the XDG base directory layout."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

APP_ID = "com.system76.UserColorEditor"
OVERRIDES_DIR_NAME = "color-overrides"
TOOLKIT_DIR_NAME = "gtk-4.0"
CONFIG_FILE_NAME = "config.yaml"
GENERATED_STYLESHEET_NAME = "cosmic.css"
AGGREGATE_STYLESHEET_NAME = "gtk.css"


@dataclass(frozen=True, slots=True)
class StoragePaths:
    """Resolved base directories plus every file location derived from them."""

    config_home: Path
    data_home: Path

    @classmethod
    def from_environment(cls, environ: Mapping[str, str] | None = None) -> StoragePaths:
        """Resolve base directories from XDG_CONFIG_HOME / XDG_DATA_HOME.

        Relative values are ignored, as the XDG base directory rules require.
        """
        env = os.environ if environ is None else environ
        home = Path.home()
        return cls(
            config_home=_xdg_dir(env.get("XDG_CONFIG_HOME"), home / ".config"),
            data_home=_xdg_dir(env.get("XDG_DATA_HOME"), home / ".local" / "share"),
        )

    @property
    def config_dir(self) -> Path:
        return self.config_home / APP_ID

    @property
    def config_file(self) -> Path:
        return self.config_dir / CONFIG_FILE_NAME

    @property
    def app_data_dir(self) -> Path:
        return self.data_home / APP_ID

    @property
    def overrides_dir(self) -> Path:
        return self.app_data_dir / OVERRIDES_DIR_NAME

    @property
    def log_dir(self) -> Path:
        return self.app_data_dir / "logs"

    @property
    def toolkit_dir(self) -> Path:
        return self.config_home / TOOLKIT_DIR_NAME

    @property
    def generated_stylesheet(self) -> Path:
        return self.toolkit_dir / GENERATED_STYLESHEET_NAME

    @property
    def aggregate_stylesheet(self) -> Path:
        return self.toolkit_dir / AGGREGATE_STYLESHEET_NAME


def ensure_storage_dirs(paths: StoragePaths) -> StoragePaths:
    """Create the config and override directories if they are missing."""
    paths.config_dir.mkdir(parents=True, exist_ok=True)
    paths.overrides_dir.mkdir(parents=True, exist_ok=True)
    return paths


def _xdg_dir(raw: str | None, fallback: Path) -> Path:
    if raw:
        candidate = Path(raw)
        if candidate.is_absolute():
            return candidate
    return fallback
