"""Watch override storage and mode flags; emit when the active palette changes."""

from __future__ import annotations

import dataclasses
import logging
from enum import Enum, auto
from pathlib import Path

from PySide6.QtCore import QFileSystemWatcher, QObject, Qt, Signal
from PySide6.QtGui import QStyleHints

from usercolors.config.paths import ensure_storage_dirs
from usercolors.config.policy import ActivationPolicy, AdaptivePolicy, wants_global_import
from usercolors.config.store import ConfigStore
from usercolors.core.stylesheet import StylesheetApplier
from usercolors.errors import (
    NoActiveOverrideError,
    NotFoundError,
    ParseError,
    UserColorsError,
    WatchError,
)
from usercolors.palettes.models import ColorOverrideSet

logger = logging.getLogger(__name__)


class WatcherState(Enum):
    READY = auto()
    WATCHING = auto()
    ERRORED = auto()


class _Unresolved:
    """Marker for 'no palette computed yet'."""


_UNRESOLVED = _Unresolved()


class ChangeWatcher(QObject):
    """Re-resolves the active palette on storage or mode changes.

    Usage:
        watcher = ChangeWatcher(store)
        watcher.palette_changed.connect(on_palette)
        watcher.scope_changed.connect(on_scope)
        watcher.errored.connect(on_error)
        watcher.connect_style_hints(app.styleHints())
        watcher.start()

    ``palette_changed`` carries the resolved ColorOverrideSet, or ``None``
    when no override resolves. It fires only when the value differs from the
    last one seen. ``scope_changed`` fires when the policy starts or stops
    asking for the global import line while the palette stays the same.
    ``errored`` fires once; afterwards the watcher is inert and a new
    instance must be created.

    The watcher only reads the config file. A record that does not parse
    (often an editor mid-save) is skipped until the next change.
    """

    palette_changed = Signal(object)
    scope_changed = Signal(bool)
    errored = Signal(str)

    def __init__(self, store: ConfigStore, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._store = store
        self._applier = StylesheetApplier(store)
        self._fs_watcher: QFileSystemWatcher | None = None
        self._state = WatcherState.READY
        self._last: ColorOverrideSet | None | _Unresolved = _UNRESOLVED
        self._last_policy: ActivationPolicy | None = None
        self._is_dark: bool | None = None
        self._is_high_contrast: bool | None = None

    @property
    def state(self) -> WatcherState:
        return self._state

    @property
    def current_palette(self) -> ColorOverrideSet | None:
        if isinstance(self._last, _Unresolved):
            return None
        return self._last

    @property
    def current_policy(self) -> ActivationPolicy | None:
        """The effective policy from the last successful resolve."""
        return self._last_policy

    def watched_paths(self) -> list[str]:
        if self._fs_watcher is None:
            return []
        return sorted(self._fs_watcher.directories() + self._fs_watcher.files())

    # -- lifecycle --

    def start(self) -> bool:
        """Subscribe to storage changes and record the current palette without emitting."""
        if self._state is not WatcherState.READY:
            return self._state is WatcherState.WATCHING
        try:
            ensure_storage_dirs(self._store.paths)
        except OSError as exc:
            self._fail(WatchError(message=f"Could not create storage directories: {exc}"))
            return False

        self._fs_watcher = QFileSystemWatcher(self)
        self._fs_watcher.directoryChanged.connect(self._on_path_changed)
        self._fs_watcher.fileChanged.connect(self._on_path_changed)
        missing = self._sync_paths()
        if missing:
            self._fail(WatchError(message="Could not watch: " + ", ".join(missing)))
            return False

        self._state = WatcherState.WATCHING
        try:
            self._last_policy, self._last = self._resolve()
        except ParseError as exc:
            logger.warning("record unreadable at start: %s", exc.message)
        except UserColorsError as exc:
            self._fail(exc)
            return False
        logger.debug("watching %s", self.watched_paths())
        return True

    def stop(self) -> None:
        """Unsubscribe; no events are emitted afterwards until ``start`` is called again."""
        self._detach()
        if self._state is WatcherState.WATCHING:
            self._state = WatcherState.READY

    # -- environment inputs --

    def connect_style_hints(self, hints: QStyleHints) -> None:
        """Follow the platform color scheme and, where Qt reports it, the contrast preference.

        On Qt builds without ``QStyleHints.accessibility()`` the caller feeds
        ``set_high_contrast`` itself.
        """
        hints.colorSchemeChanged.connect(self._on_color_scheme_changed)
        self._on_color_scheme_changed(hints.colorScheme())
        if not hasattr(hints, "accessibility"):
            return
        accessibility = hints.accessibility()
        accessibility.contrastPreferenceChanged.connect(self._on_contrast_preference_changed)
        self._on_contrast_preference_changed(accessibility.contrastPreference())

    def set_dark(self, is_dark: bool) -> None:
        if self._is_dark == is_dark:
            return
        self._is_dark = is_dark
        self.refresh()

    def set_high_contrast(self, is_high_contrast: bool) -> None:
        if self._is_high_contrast == is_high_contrast:
            return
        self._is_high_contrast = is_high_contrast
        self.refresh()

    # -- resolve / compare / emit --

    def refresh(self) -> bool:
        """Recompute the palette; emit and return True only if something changed."""
        if self._state is not WatcherState.WATCHING:
            return False
        try:
            policy, palette = self._resolve()
        except ParseError as exc:
            logger.warning("ignoring unreadable record: %s", exc.message)
            return False
        except UserColorsError as exc:
            self._fail(exc)
            return False

        previous_policy = self._last_policy
        self._last_policy = policy
        if isinstance(self._last, _Unresolved) or palette != self._last:
            self._last = palette
            self.palette_changed.emit(palette)
            return True

        wants_import = wants_global_import(policy)
        if previous_policy is not None and wants_import != wants_global_import(previous_policy):
            self.scope_changed.emit(wants_import)
            return True
        return False

    def effective_policy(self) -> ActivationPolicy:
        """The persisted policy with the observed mode flags laid over it.

        Raises ParseError while the config file does not parse.
        """
        policy = self._store.peek()
        if isinstance(policy, AdaptivePolicy):
            changes: dict[str, bool] = {}
            if self._is_dark is not None:
                changes["is_dark"] = self._is_dark
            if self._is_high_contrast is not None:
                changes["is_high_contrast"] = self._is_high_contrast
            policy = dataclasses.replace(policy, **changes)
        return policy

    def _resolve(self) -> tuple[ActivationPolicy, ColorOverrideSet | None]:
        policy = self.effective_policy()
        try:
            return policy, self._applier.resolve_palette(policy)
        except (NoActiveOverrideError, NotFoundError):
            return policy, None

    # -- internals --

    def _on_path_changed(self, path: str) -> None:
        if self._state is not WatcherState.WATCHING:
            return
        logger.debug("change observed: %s", path)
        missing = self._sync_paths()
        if missing:
            logger.warning("could not re-watch: %s", ", ".join(missing))
        self.refresh()

    def _on_color_scheme_changed(self, scheme: Qt.ColorScheme) -> None:
        if scheme == Qt.ColorScheme.Unknown:
            return
        self.set_dark(scheme == Qt.ColorScheme.Dark)

    def _on_contrast_preference_changed(self, preference) -> None:
        self.set_high_contrast(preference == Qt.ContrastPreference.HighContrast)

    def _sync_paths(self) -> list[str]:
        """Watch the storage directories, their subdirectories and files.

        Atomic replaces drop file watches, so this runs after every event.
        Returns the paths that could not be added.
        """
        if self._fs_watcher is None:
            return []
        paths = self._store.paths
        wanted: set[str] = set()
        for root in (paths.config_dir, paths.overrides_dir):
            wanted.add(str(root))
            wanted.update(str(p) for p in _walk(root))
        current = set(self._fs_watcher.directories()) | set(self._fs_watcher.files())
        stale = sorted(current - wanted)
        if stale:
            self._fs_watcher.removePaths(stale)
        new = sorted(wanted - current)
        if not new:
            return []
        failed = self._fs_watcher.addPaths(new)
        return [p for p in failed if Path(p).exists()]

    def _detach(self) -> None:
        if self._fs_watcher is None:
            return
        watched = self._fs_watcher.directories() + self._fs_watcher.files()
        if watched:
            self._fs_watcher.removePaths(watched)
        self._fs_watcher.deleteLater()
        self._fs_watcher = None

    def _fail(self, error: UserColorsError) -> None:
        if not isinstance(error, WatchError):
            error = WatchError(message=error.message, path=error.path, details=error.details)
        logger.error("watcher stopped: %s", error.to_dict())
        self._detach()
        self._state = WatcherState.ERRORED
        self.errored.emit(error.message)


def _walk(root: Path) -> list[Path]:
    found: list[Path] = []
    try:
        entries = sorted(root.iterdir())
    except OSError:
        return found
    for entry in entries:
        if entry.name.startswith(".") or entry.is_symlink():
            continue
        found.append(entry)
        if entry.is_dir():
            found.extend(_walk(entry))
    return found
