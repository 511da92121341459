"""High-contrast transform for color override sets.

Foreground/background slot pairs are measured with the WCAG relative
luminance formula. A foreground that falls short of ``MIN_CONTRAST_RATIO``
against its background is moved toward black or white until it meets the
ratio. Pairs that cannot be measured (unset, unparseable, or a translucent
background) are left untouched, so the result is never less accessible
than the input.
"""

from __future__ import annotations

import re

from PySide6.QtGui import QColor

from usercolors.palettes.constants import CONTRAST_PAIRS, MIN_CONTRAST_RATIO
from usercolors.palettes.models import ColorOverrideSet

_HEX8_RE = re.compile(r"^#([0-9a-fA-F]{6})([0-9a-fA-F]{2})$")
_HEX4_RE = re.compile(r"^#([0-9a-fA-F]{3})([0-9a-fA-F])$")
_FUNC_RE = re.compile(r"^rgba?\(\s*([^)]*)\)$", re.IGNORECASE)
_SEARCH_STEPS = 24

_BLACK = QColor(0, 0, 0)
_WHITE = QColor(255, 255, 255)


def parse_color(value: str) -> QColor | None:
    """Parse a CSS color literal; expressions like ``mix()`` or ``@name`` yield None."""
    text = value.strip()
    match = _HEX8_RE.match(text)
    if match:
        rgb = QColor(f"#{match.group(1)}")
        rgb.setAlpha(int(match.group(2), 16))
        return rgb
    match = _HEX4_RE.match(text)
    if match:
        rgb = QColor(f"#{match.group(1)}")
        rgb.setAlpha(int(match.group(2) * 2, 16))
        return rgb
    match = _FUNC_RE.match(text)
    if match:
        return _parse_rgb_function(match.group(1))
    if text.startswith("@") or "(" in text:
        return None
    color = QColor(text)
    return color if color.isValid() else None


def format_color(color: QColor) -> str:
    if color.alpha() == 255:
        return color.name(QColor.NameFormat.HexRgb)
    alpha = round(color.alphaF(), 3)
    return f"rgba({color.red()}, {color.green()}, {color.blue()}, {alpha:g})"


def relative_luminance(color: QColor) -> float:
    def channel(c: float) -> float:
        return c / 12.92 if c <= 0.04045 else ((c + 0.055) / 1.055) ** 2.4

    return (
        0.2126 * channel(color.redF())
        + 0.7152 * channel(color.greenF())
        + 0.0722 * channel(color.blueF())
    )


def contrast_ratio(foreground: QColor, background: QColor) -> float:
    """Contrast ratio of ``foreground`` composited over an opaque ``background``."""
    fg = composite(foreground, background)
    lighter, darker = sorted(
        (relative_luminance(fg), relative_luminance(background)),
        reverse=True,
    )
    return (lighter + 0.05) / (darker + 0.05)


def composite(foreground: QColor, background: QColor) -> QColor:
    alpha = foreground.alphaF()
    if alpha >= 1.0:
        return QColor(foreground.red(), foreground.green(), foreground.blue())
    return QColor(
        round(foreground.red() * alpha + background.red() * (1 - alpha)),
        round(foreground.green() * alpha + background.green() * (1 - alpha)),
        round(foreground.blue() * alpha + background.blue() * (1 - alpha)),
    )


def to_high_contrast(
    palette: ColorOverrideSet,
    *,
    min_ratio: float = MIN_CONTRAST_RATIO,
) -> ColorOverrideSet:
    """Return a copy of ``palette`` whose paired foregrounds meet ``min_ratio``."""
    result = palette.copy()
    for fg_slot, bg_slot in CONTRAST_PAIRS:
        fg_value = palette.get(fg_slot)
        bg_value = palette.get(bg_slot)
        if fg_value is None or bg_value is None:
            continue
        foreground = parse_color(fg_value)
        background = parse_color(bg_value)
        if foreground is None or background is None or background.alpha() != 255:
            continue
        if contrast_ratio(foreground, background) >= min_ratio:
            continue
        adjusted = _adjust_foreground(composite(foreground, background), background, min_ratio)
        result.set(fg_slot, format_color(adjusted))
    return result


def _adjust_foreground(foreground: QColor, background: QColor, min_ratio: float) -> QColor:
    # Moving away from the background's luminance only ever raises the ratio,
    # so the search along that direction is monotonic.
    if relative_luminance(foreground) >= relative_luminance(background):
        pole, opposite = _WHITE, _BLACK
    else:
        pole, opposite = _BLACK, _WHITE
    if contrast_ratio(pole, background) < min_ratio:
        return QColor(opposite)

    low, high = 0.0, 1.0
    for _ in range(_SEARCH_STEPS):
        mid = (low + high) / 2
        if contrast_ratio(_mix(foreground, pole, mid), background) >= min_ratio:
            high = mid
        else:
            low = mid
    candidate = _mix(foreground, pole, high)
    if contrast_ratio(candidate, background) < min_ratio:
        return QColor(pole)
    return candidate


def _mix(start: QColor, end: QColor, amount: float) -> QColor:
    return QColor(
        round(start.red() + (end.red() - start.red()) * amount),
        round(start.green() + (end.green() - start.green()) * amount),
        round(start.blue() + (end.blue() - start.blue()) * amount),
    )


def _parse_rgb_function(arguments: str) -> QColor | None:
    parts = [part.strip() for part in arguments.split(",")]
    if len(parts) not in (3, 4):
        return None
    try:
        channels = [_parse_channel(part) for part in parts[:3]]
        alpha = _parse_alpha(parts[3]) if len(parts) == 4 else 1.0
    except ValueError:
        return None
    color = QColor(*channels)
    color.setAlphaF(alpha)
    return color


def _parse_channel(text: str) -> int:
    if text.endswith("%"):
        value = float(text[:-1]) * 255 / 100
    else:
        value = float(text)
    if not 0 <= value <= 255:
        raise ValueError(text)
    return round(value)


def _parse_alpha(text: str) -> float:
    value = float(text[:-1]) / 100 if text.endswith("%") else float(text)
    if not 0 <= value <= 1:
        raise ValueError(text)
    return value
