"""Color override discovery and import."""

from __future__ import annotations

from pathlib import Path

from usercolors.errors import UserColorsError
from usercolors.palettes.constants import OVERRIDE_FILE_SUFFIX
from usercolors.palettes.loader import load_override_file, save_override
from usercolors.palettes.models import ColorOverrideSet

_MAX_OVERRIDE_CANDIDATES = 512


class OverrideRegistry:
    """Loads color override records from the per-user storage directory."""

    def __init__(self, overrides_dir: Path) -> None:
        self._overrides_dir = overrides_dir
        self._overrides: dict[str, ColorOverrideSet] = {}
        self._load_errors: list[str] = []

    @property
    def overrides_dir(self) -> Path:
        return self._overrides_dir

    def reload(self) -> None:
        self._overrides = {}
        self._load_errors = []
        for path in self._candidate_files():
            try:
                palette = load_override_file(path)
            except UserColorsError as exc:
                self._load_errors.append(f"{path.name}: {exc.message}")
                continue
            if palette.name != path.stem:
                self._load_errors.append(
                    f"{path.name}: record name {palette.name!r} does not match file name."
                )
            self._overrides[path.stem] = palette

    def list_names(self) -> list[str]:
        return sorted(self._overrides, key=str.lower)

    def get(self, name: str) -> ColorOverrideSet | None:
        palette = self._overrides.get(name)
        return palette.copy() if palette is not None else None

    def load_errors(self) -> list[str]:
        return list(self._load_errors)

    def import_file(self, source: Path) -> ColorOverrideSet:
        """Validate an override file from anywhere and store it under its record name."""
        palette = load_override_file(Path(source))
        save_override(palette, self._overrides_dir)
        self._overrides[palette.name] = palette
        return palette.copy()

    def _candidate_files(self) -> list[Path]:
        if not self._overrides_dir.exists():
            return []
        try:
            all_files = sorted(
                path
                for path in self._overrides_dir.iterdir()
                if path.suffix == OVERRIDE_FILE_SUFFIX and not path.name.startswith(".")
            )
        except OSError as exc:
            self._load_errors.append(f"Failed to list overrides in {self._overrides_dir}: {exc}")
            return []

        candidates: list[Path] = []
        for path in all_files:
            if path.is_symlink() or not path.is_file():
                self._load_errors.append(f"Skipping non-regular override file: {path}")
                continue
            candidates.append(path)
        if len(candidates) > _MAX_OVERRIDE_CANDIDATES:
            self._load_errors.append(
                f"Override limit exceeded in {self._overrides_dir}; "
                f"only first {_MAX_OVERRIDE_CANDIDATES} files were loaded."
            )
            candidates = candidates[:_MAX_OVERRIDE_CANDIDATES]
        return candidates
