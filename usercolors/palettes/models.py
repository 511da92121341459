"""Color override set model."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Mapping

from usercolors.config.paths import StoragePaths
from usercolors.errors import InvalidColorError, InvalidNameError, InvalidSlotError
from usercolors.palettes.constants import (
    DARK_DEFAULT_FILE,
    LIGHT_DEFAULT_FILE,
    SLOT_NAME_SET,
    SLOT_NAMES,
)

_MAX_NAME_LEN = 120
_MAX_COLOR_VALUE_LEN = 128
_BLOCKED_VALUE_RE = re.compile(r"(?:@import|url\s*\(|/\*|\*/|[;{}\\])", re.IGNORECASE)
_CONTROL_CHAR_RE = re.compile(r"[\x00-\x1f\x7f]")


def validate_override_name(name: object) -> str:
    """Return the cleaned override name or raise InvalidNameError."""
    if not isinstance(name, str) or not name.strip():
        raise InvalidNameError(message="Override name must be a non-empty string.")
    cleaned = name.strip()
    if len(cleaned) > _MAX_NAME_LEN:
        raise InvalidNameError(message=f"Override name exceeds max length {_MAX_NAME_LEN}.")
    if _CONTROL_CHAR_RE.search(cleaned) or "/" in cleaned or "\\" in cleaned:
        raise InvalidNameError(details={"name": cleaned})
    if cleaned in {".", ".."} or cleaned.startswith("."):
        raise InvalidNameError(message="Override name cannot start with a dot.")
    return cleaned


def validate_color_value(value: object) -> str:
    """Return the cleaned color expression or raise InvalidColorError.

    Any single-line expression the toolkit's ``@define-color`` accepts is
    allowed (hex, names, ``rgba()``, ``mix()``, ``@other_color``), but nothing
    that could end the declaration or pull in another stylesheet.
    """
    if not isinstance(value, str) or not value.strip():
        raise InvalidColorError(message="Color value must be a non-empty string.")
    cleaned = value.strip()
    if len(cleaned) > _MAX_COLOR_VALUE_LEN:
        raise InvalidColorError(details={"value": cleaned[:32] + "..."})
    if _CONTROL_CHAR_RE.search(cleaned) or _BLOCKED_VALUE_RE.search(cleaned):
        raise InvalidColorError(details={"value": cleaned})
    return cleaned


@dataclass(slots=True)
class ColorOverrideSet:
    """A named palette of optional color token overrides.

    ``colors`` only holds slots that are set; every key is a catalog slot.
    Two sets are equal when the name and every slot value match.
    """

    name: str
    colors: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.name = validate_override_name(self.name)
        cleaned: dict[str, str] = {}
        for slot, value in self.colors.items():
            if slot not in SLOT_NAME_SET:
                raise InvalidSlotError(details={"slot": slot})
            cleaned[slot] = validate_color_value(value)
        self.colors = cleaned

    def __hash__(self) -> int:
        # Value hash; do not mutate a set while it is a dict key.
        return hash((self.name, tuple(sorted(self.colors.items()))))

    # -- slot access --

    def get(self, slot: str) -> str | None:
        return self.colors.get(slot)

    def set(self, slot: str, value: str | None) -> None:
        """Set or clear (``None``) one slot."""
        if slot not in SLOT_NAME_SET:
            raise InvalidSlotError(details={"slot": slot})
        if value is None:
            self.colors.pop(slot, None)
            return
        self.colors[slot] = validate_color_value(value)

    def set_slots(self) -> list[str]:
        return [slot for slot in SLOT_NAMES if slot in self.colors]

    def is_empty(self) -> bool:
        return not self.colors

    # -- derived values --

    def copy(self, *, name: str | None = None) -> ColorOverrideSet:
        return ColorOverrideSet(name=self.name if name is None else name, colors=dict(self.colors))

    def merged_with(self, other: ColorOverrideSet) -> ColorOverrideSet:
        """Layer ``other`` on top of this set; the result carries ``other``'s name."""
        colors = dict(self.colors)
        colors.update(other.colors)
        return ColorOverrideSet(name=other.name, colors=colors)

    def to_stylesheet(self) -> str:
        """Emit one ``@define-color`` line per set slot, in catalog order."""
        return "".join(
            f"@define-color {slot} {self.colors[slot]};\n"
            for slot in SLOT_NAMES
            if slot in self.colors
        )

    def to_high_contrast(self) -> ColorOverrideSet:
        from usercolors.palettes.contrast import to_high_contrast

        return to_high_contrast(self)

    def to_record(self) -> dict[str, str | None]:
        """Serializable record holding the name and every catalog slot."""
        record: dict[str, str | None] = {"name": self.name}
        for slot in SLOT_NAMES:
            record[slot] = self.colors.get(slot)
        return record

    @classmethod
    def from_mapping(cls, name: str, colors: Mapping[str, str | None]) -> ColorOverrideSet:
        """Build a set from a mapping where ``None`` values mean unset."""
        return cls(name=name, colors={k: v for k, v in colors.items() if v is not None})

    # -- persistence --

    @classmethod
    def load_by_name(cls, name: str, *, paths: StoragePaths | None = None) -> ColorOverrideSet:
        from usercolors.palettes.loader import load_override_by_name

        return load_override_by_name(name, paths or StoragePaths.from_environment())

    @classmethod
    def load_from_path(cls, path: Path) -> ColorOverrideSet:
        from usercolors.palettes.loader import load_override_file

        return load_override_file(Path(path))

    def save(self, *, paths: StoragePaths | None = None) -> Path:
        """Write this set to the override storage area, replacing any same-name record."""
        from usercolors.palettes.loader import save_override

        return save_override(self, (paths or StoragePaths.from_environment()).overrides_dir)

    # -- baselines --

    @classmethod
    def light_default(cls) -> ColorOverrideSet:
        return _builtin_palette(LIGHT_DEFAULT_FILE).copy()

    @classmethod
    def dark_default(cls) -> ColorOverrideSet:
        return _builtin_palette(DARK_DEFAULT_FILE).copy()

    @classmethod
    def default_for(cls, *, is_dark: bool) -> ColorOverrideSet:
        return cls.dark_default() if is_dark else cls.light_default()


@lru_cache(maxsize=None)
def _builtin_palette(file_name: str) -> ColorOverrideSet:
    from usercolors.palettes.loader import load_override_file
    from usercolors.runtime_paths import builtin_palette_file

    return load_override_file(builtin_palette_file(file_name))
