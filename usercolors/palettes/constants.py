"""Color override catalog constants."""

from __future__ import annotations

OVERRIDE_FILE_SUFFIX = ".json"
MIN_CONTRAST_RATIO = 4.5

LIGHT_DEFAULT_FILE = "light_default.json"
DARK_DEFAULT_FILE = "dark_default.json"

# Catalog order is the stylesheet emission order.
SLOT_NAMES: tuple[str, ...] = (
    "accent_bg_color",
    "accent_fg_color",
    "accent_color",
    # destructive-action buttons
    "destructive_bg_color",
    "destructive_fg_color",
    "destructive_color",
    # levelbars, entries, labels and infobars
    "success_color",
    "success_bg_color",
    "success_fg_color",
    "warning_color",
    "warning_bg_color",
    "warning_fg_color",
    "error_color",
    "error_bg_color",
    "error_fg_color",
    # main window
    "window_bg_color",
    "window_fg_color",
    # content areas, e.g. text views
    "view_bg_color",
    "view_fg_color",
    # header bar, search bar, tab bar
    "headerbar_bg_color",
    "headerbar_fg_color",
    "headerbar_border_color",
    "headerbar_backdrop_color",
    "headerbar_shade_color",
    # cards, boxed lists
    "card_bg_color",
    "card_fg_color",
    "card_shade_color",
    # popovers
    "popover_bg_color",
    "popover_fg_color",
    # miscellaneous
    "scrollbar_outline_color",
    "shade_color",
)

SLOT_NAME_SET: frozenset[str] = frozenset(SLOT_NAMES)

# (foreground slot, background slot) pairs checked by the high-contrast transform.
CONTRAST_PAIRS: tuple[tuple[str, str], ...] = tuple(
    (f"{prefix}_fg_color", f"{prefix}_bg_color")
    for prefix in (
        "accent",
        "destructive",
        "success",
        "warning",
        "error",
        "window",
        "view",
        "headerbar",
        "card",
        "popover",
    )
)
