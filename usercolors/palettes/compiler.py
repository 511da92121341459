"""Stylesheet compilation helpers."""

from __future__ import annotations

from usercolors.palettes.models import ColorOverrideSet


def compile_override_stylesheet(palette: ColorOverrideSet, *, high_contrast: bool = False) -> str:
    """Compile the override-only stylesheet written for the toolkit."""
    if high_contrast:
        palette = palette.to_high_contrast()
    return palette.to_stylesheet()


def compile_preview_stylesheet(palette: ColorOverrideSet, *, is_dark: bool) -> str:
    """Compile the baseline for the mode with ``palette`` layered on top."""
    baseline = ColorOverrideSet.default_for(is_dark=is_dark)
    return baseline.merged_with(palette).to_stylesheet()
