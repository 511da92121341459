"""Color override record parsing, validation and storage."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Mapping

from usercolors.config.paths import StoragePaths
from usercolors.errors import (
    InvalidColorError,
    InvalidNameError,
    InvalidSlotError,
    NotFoundError,
    ParseError,
    classify_exception,
)
from usercolors.fileio import atomic_write_text
from usercolors.palettes.constants import OVERRIDE_FILE_SUFFIX, SLOT_NAME_SET, SLOT_NAMES
from usercolors.palettes.models import ColorOverrideSet, validate_override_name

_MAX_RECORD_BYTES = 64 * 1024


def override_path(name: str, overrides_dir: Path) -> Path:
    """Storage path for the override called ``name``."""
    return overrides_dir / f"{validate_override_name(name)}{OVERRIDE_FILE_SUFFIX}"


def load_override_by_name(name: str, paths: StoragePaths) -> ColorOverrideSet:
    try:
        path = override_path(name, paths.overrides_dir)
    except InvalidNameError as exc:
        raise NotFoundError(message=f"No color override named {name!r}.") from exc
    if not path.is_file():
        raise NotFoundError(message=f"No color override named {name!r}.", path=path)
    return load_override_file(path)


def load_override_file(path: Path) -> ColorOverrideSet:
    """Load and validate a single override record file."""
    data = _load_json(path)
    return parse_override_record(data, context=str(path))


def parse_override_record(data: Mapping[str, object], *, context: str) -> ColorOverrideSet:
    _reject_unknown_keys(data, allowed=SLOT_NAME_SET | {"name"}, context=context)
    if "name" not in data:
        raise ParseError(message=f"{context}: missing required field 'name'")

    colors: dict[str, str] = {}
    for slot in SLOT_NAMES:
        value = data.get(slot)
        if value is None:
            continue
        if not isinstance(value, str):
            raise ParseError(message=f"{context}: slot {slot!r} must be a string or null")
        colors[slot] = value

    try:
        return ColorOverrideSet(name=data["name"], colors=colors)
    except (InvalidNameError, InvalidColorError, InvalidSlotError) as exc:
        raise ParseError(message=f"{context}: {exc.message}", details=exc.details) from exc


def save_override(palette: ColorOverrideSet, overrides_dir: Path) -> Path:
    """Serialize ``palette`` to its name-derived path, replacing any previous record."""
    path = override_path(palette.name, overrides_dir)
    text = json.dumps(palette.to_record(), indent=2, ensure_ascii=False) + "\n"
    return atomic_write_text(path, text)


def _load_json(path: Path) -> Mapping[str, object]:
    content = _read_text_limited(path, max_bytes=_MAX_RECORD_BYTES)
    try:
        data = json.loads(content)
    except json.JSONDecodeError as exc:
        raise ParseError(message=f"Invalid JSON in {path}: {exc}", path=path) from exc
    if not isinstance(data, dict):
        raise ParseError(message=f"Expected JSON object in {path}", path=path)
    return data


def _reject_unknown_keys(
    data: Mapping[str, object],
    *,
    allowed: set[str] | frozenset[str],
    context: str,
) -> None:
    unknown = sorted(str(key) for key in data.keys() if key not in allowed)
    if unknown:
        joined = ", ".join(unknown)
        raise ParseError(message=f"{context}: unsupported keys found: {joined}")


def _read_text_limited(path: Path, *, max_bytes: int) -> str:
    try:
        size = path.stat().st_size
    except OSError as exc:
        raise classify_exception(exc, path) from exc
    if size > max_bytes:
        raise ParseError(message=f"{path}: file exceeds max size ({max_bytes} bytes)", path=path)
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise ParseError(message=f"Unable to decode {path}: {exc}", path=path) from exc
    except OSError as exc:
        raise classify_exception(exc, path) from exc
