"""Locate bundled resources whether running from source or a frozen build."""

from __future__ import annotations

from pathlib import Path
import sys

from usercolors.errors import NotFoundError

_PACKAGE_DIR = Path(__file__).resolve().parent


def is_frozen() -> bool:
    return bool(getattr(sys, "frozen", False))


def package_root() -> Path:
    """Directory holding the package's data files.

    Frozen builds unpack into ``sys._MEIPASS``; data is either under a
    ``usercolors`` subdirectory there or directly at the unpack root.
    """
    meipass = getattr(sys, "_MEIPASS", None) if is_frozen() else None
    if not meipass:
        return _PACKAGE_DIR
    unpacked = Path(meipass)
    nested = unpacked / _PACKAGE_DIR.name
    return nested if nested.exists() else unpacked


def builtin_palettes_root() -> Path:
    return package_root() / "palettes" / "builtin"


def builtin_palette_file(file_name: str) -> Path:
    """Path of one bundled baseline palette; NotFoundError if the build omitted it."""
    path = builtin_palettes_root() / file_name
    if not path.is_file():
        raise NotFoundError(message=f"Bundled palette missing: {file_name}", path=path)
    return path


def runtime_summary() -> dict[str, str]:
    """Values worth logging once at startup."""
    return {
        "frozen": str(is_frozen()),
        "package_root": str(package_root()),
        "python": sys.version.split()[0],
    }
