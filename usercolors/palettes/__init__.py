"""Color override palette exports."""

from usercolors.palettes.constants import SLOT_NAMES
from usercolors.palettes.models import ColorOverrideSet
from usercolors.palettes.registry import OverrideRegistry

__all__ = [
    "SLOT_NAMES",
    "ColorOverrideSet",
    "OverrideRegistry",
]
