"""Write the active override to the toolkit and manage its shared import line."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from usercolors.config.paths import GENERATED_STYLESHEET_NAME
from usercolors.config.policy import ActivationPolicy, AdaptivePolicy, wants_global_import
from usercolors.config.store import ConfigStore
from usercolors.errors import (
    ParseError,
    StorageError,
    UserColorsError,
    classify_exception,
    format_error_for_user,
)
from usercolors.fileio import atomic_write_text
from usercolors.palettes.models import ColorOverrideSet

logger = logging.getLogger(__name__)

IMPORT_DIRECTIVE = f'@import url("{GENERATED_STYLESHEET_NAME}");'

STEP_STYLESHEET = "stylesheet"
STEP_AGGREGATE = "aggregate"


@dataclass(frozen=True, slots=True)
class ApplyResult:
    """Outcome of one successful apply."""

    palette: ColorOverrideSet
    stylesheet_path: Path
    aggregate_path: Path
    import_present: bool
    aggregate_changed: bool


def ensure_import_present(path: Path, directive: str = IMPORT_DIRECTIVE) -> bool:
    """Make ``directive`` appear exactly once in ``path``. Returns True if the file changed.

    A missing file is created. Extra occurrences beyond the first are stripped.
    """
    exists = path.exists()
    lines = _read_lines(path) if exists else []
    seen = False
    updated: list[str] = []
    for line in lines:
        if directive not in line:
            updated.append(line)
            continue
        if not seen:
            seen = True
            updated.append(line)
            continue
        kept = _strip_directive(line, directive)
        if kept is not None:
            updated.append(kept)

    if not seen:
        if updated and not updated[-1].endswith(("\n", "\r")):
            updated[-1] += "\n"
        updated.append(directive + "\n")

    if exists and updated == lines:
        return False
    atomic_write_text(path, "".join(updated))
    return True


def ensure_import_absent(path: Path, directive: str = IMPORT_DIRECTIVE) -> bool:
    """Remove every occurrence of ``directive`` from ``path``. Returns True if the file changed.

    Lines that are only the directive are dropped; lines that contain it keep
    the rest of their text. The file is only rewritten when something changed.
    """
    if not path.exists():
        return False
    lines = _read_lines(path)
    updated: list[str] = []
    for line in lines:
        if directive not in line:
            updated.append(line)
            continue
        kept = _strip_directive(line, directive)
        if kept is not None:
            updated.append(kept)
    if updated == lines:
        return False
    atomic_write_text(path, "".join(updated))
    return True


def _strip_directive(line: str, directive: str) -> str | None:
    if line.strip() == directive:
        return None
    return line.replace(directive, "")


def _read_lines(path: Path) -> list[str]:
    try:
        with path.open(encoding="utf-8", newline="") as handle:
            return handle.read().splitlines(keepends=True)
    except UnicodeDecodeError as exc:
        raise ParseError(message=f"Unable to decode {path}: {exc}", path=path) from exc
    except OSError as exc:
        raise classify_exception(exc, path) from exc


class StylesheetApplier:
    """Resolves the active override and projects it onto the toolkit's stylesheets."""

    def __init__(self, store: ConfigStore) -> None:
        self._store = store

    @property
    def stylesheet_path(self) -> Path:
        return self._store.paths.generated_stylesheet

    @property
    def aggregate_path(self) -> Path:
        return self._store.paths.aggregate_stylesheet

    def resolve_palette(self, policy: ActivationPolicy) -> ColorOverrideSet:
        """Load the active override, applying the high-contrast transform when requested."""
        palette = self._store.get_active_override(policy)
        if isinstance(policy, AdaptivePolicy) and policy.is_high_contrast:
            palette = palette.to_high_contrast()
        return palette

    def apply(self, policy: ActivationPolicy) -> ApplyResult:
        palette = self.resolve_palette(policy)

        try:
            atomic_write_text(self.stylesheet_path, palette.to_stylesheet())
        except StorageError as exc:
            exc.details["step"] = STEP_STYLESHEET
            raise

        want_import = wants_global_import(policy)
        try:
            if want_import:
                changed = ensure_import_present(self.aggregate_path)
            else:
                changed = ensure_import_absent(self.aggregate_path)
        except UserColorsError as exc:
            exc.details["step"] = STEP_AGGREGATE
            raise

        logger.info(
            "applied override %r (import %s, aggregate %s)",
            palette.name,
            "present" if want_import else "absent",
            "updated" if changed else "unchanged",
        )
        return ApplyResult(
            palette=palette,
            stylesheet_path=self.stylesheet_path,
            aggregate_path=self.aggregate_path,
            import_present=want_import,
            aggregate_changed=changed,
        )

    def apply_and_report(self, policy: ActivationPolicy) -> tuple[bool, str]:
        """Apply and return ``(ok, message)`` with one user-readable message."""
        try:
            result = self.apply(policy)
        except UserColorsError as exc:
            logger.warning("apply failed: %s", exc.to_dict())
            return False, format_error_for_user(exc)
        return True, f"Applied color override: {result.palette.name}"
