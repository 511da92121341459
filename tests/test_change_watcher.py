"""Tests for the ChangeWatcher QObject."""

from __future__ import annotations

import time

import pytest
from PySide6.QtCore import QObject, Qt, Signal

from usercolors.errors import StorageError
from usercolors.palettes.models import ColorOverrideSet
from usercolors.workers.change_watcher import ChangeWatcher, WatcherState

from conftest import write_record


class _FakeHints(QObject):
    colorSchemeChanged = Signal(object)

    def __init__(self, scheme):
        super().__init__()
        self._scheme = scheme

    def colorScheme(self):
        return self._scheme


class _FakeAccessibility(QObject):
    contrastPreferenceChanged = Signal(object)

    def __init__(self, preference):
        super().__init__()
        self._preference = preference

    def contrastPreference(self):
        return self._preference


class _FakeHintsWithAccessibility(_FakeHints):
    def __init__(self, scheme, accessibility):
        super().__init__(scheme)
        self._accessibility = accessibility

    def accessibility(self):
        return self._accessibility


@pytest.fixture
def seeded(store, storage):
    write_record(storage.overrides_dir, "Day", window_bg_color="#ffffff")
    write_record(storage.overrides_dir, "Night", window_bg_color="#000000")
    store.set_adaptive(light="Day", dark="Night")
    return store


@pytest.fixture
def watcher(qapp, seeded):
    watcher = ChangeWatcher(seeded)
    watcher.events = []
    watcher.errors = []
    watcher.palette_changed.connect(watcher.events.append)
    watcher.errored.connect(watcher.errors.append)
    assert watcher.start() is True
    yield watcher
    watcher.stop()


class TestLifecycle:
    """Tests for ChangeWatcher start and stop."""

    def test_start_is_silent_and_watching(self, watcher, storage):
        """Test start subscribes and records the palette without emitting."""
        assert watcher.state is WatcherState.WATCHING
        assert watcher.events == []
        assert watcher.current_palette.name == "Night"
        assert str(storage.overrides_dir) in watcher.watched_paths()
        assert str(storage.config_dir) in watcher.watched_paths()

    def test_stop_silences_events(self, watcher, storage):
        watcher.stop()
        assert watcher.state is WatcherState.READY
        assert watcher.watched_paths() == []
        write_record(storage.overrides_dir, "Night", window_bg_color="#111111")
        assert watcher.refresh() is False
        assert watcher.events == []

    def test_start_with_unusable_storage_errors(self, qapp, tmp_path):
        from usercolors.config.paths import StoragePaths
        from usercolors.config.store import ConfigStore

        blocker = tmp_path / "data"
        blocker.write_text("not a directory", encoding="utf-8")
        store = ConfigStore(StoragePaths(config_home=tmp_path / "config", data_home=blocker))
        watcher = ChangeWatcher(store)
        errors = []
        watcher.errored.connect(errors.append)

        assert watcher.start() is False
        assert watcher.state is WatcherState.ERRORED
        assert len(errors) == 1


class TestChangeDetection:
    """Tests for palette re-resolution on storage and mode events."""

    def test_inactive_record_change_is_ignored(self, watcher, storage):
        path = write_record(storage.overrides_dir, "Day", window_bg_color="#eeeeee")
        watcher._on_path_changed(str(path))
        assert watcher.events == []

    def test_new_unrelated_record_is_ignored(self, watcher, storage):
        path = write_record(storage.overrides_dir, "Sunset", accent_bg_color="#ff8800")
        watcher._on_path_changed(str(path))
        assert watcher.events == []
        assert str(path) in watcher.watched_paths()

    def test_active_record_change_emits_once(self, watcher, storage):
        path = write_record(storage.overrides_dir, "Night", window_bg_color="#111111")
        watcher._on_path_changed(str(path))
        watcher._on_path_changed(str(storage.overrides_dir))

        assert len(watcher.events) == 1
        assert watcher.events[0] == ColorOverrideSet("Night", {"window_bg_color": "#111111"})

    def test_rewrite_with_same_content_is_ignored(self, watcher, storage):
        """Test an identical rewrite of the active record is debounced."""
        path = write_record(storage.overrides_dir, "Night", window_bg_color="#000000")
        watcher._on_path_changed(str(path))
        assert watcher.events == []

    def test_mode_switch_emits_light_palette(self, watcher):
        watcher.set_dark(False)
        assert [p.name for p in watcher.events] == ["Day"]
        watcher.set_dark(False)
        assert len(watcher.events) == 1

    def test_high_contrast_flag_emits_transformed_palette(self, watcher, storage):
        write_record(
            storage.overrides_dir, "Night", window_fg_color="#777777", window_bg_color="#888888"
        )
        watcher.refresh()
        watcher.set_high_contrast(True)
        assert len(watcher.events) == 2
        assert watcher.events[1].get("window_fg_color") != "#777777"

    def test_policy_change_emits(self, watcher, seeded, storage):
        seeded.set_static("Day")
        watcher._on_path_changed(str(storage.config_file))
        assert [p.name for p in watcher.events] == ["Day"]

    def test_deleting_active_record_emits_none(self, watcher, storage):
        path = storage.overrides_dir / "Night.json"
        path.unlink()
        watcher._on_path_changed(str(storage.overrides_dir))
        assert watcher.events == [None]
        assert watcher.current_palette is None

    def test_malformed_active_record_is_skipped(self, watcher, storage):
        """Test a half-written record is ignored until it parses again."""
        path = storage.overrides_dir / "Night.json"
        path.write_text("{ not json", encoding="utf-8")
        watcher._on_path_changed(str(path))
        assert watcher.events == []
        assert watcher.state is WatcherState.WATCHING

        write_record(storage.overrides_dir, "Night", window_bg_color="#222222")
        watcher._on_path_changed(str(path))
        assert len(watcher.events) == 1

    def test_effective_policy_overlays_observed_mode(self, watcher):
        watcher.set_dark(False)
        assert watcher.effective_policy().is_dark is False

    def test_apply_all_flip_emits_scope_change(self, qapp, store, storage):
        """Test a scope-only policy change is reported without a palette event."""
        write_record(storage.overrides_dir, "Ocean", accent_bg_color="#336699")
        store.set_static("Ocean", apply_all=True)
        watcher = ChangeWatcher(store)
        events, scopes = [], []
        watcher.palette_changed.connect(events.append)
        watcher.scope_changed.connect(scopes.append)
        assert watcher.start() is True

        store.set_apply_all(False)
        watcher._on_path_changed(str(storage.config_file))
        watcher._on_path_changed(str(storage.config_file))

        assert events == []
        assert scopes == [False]
        watcher.stop()


class TestConfigIsReadOnly:
    """Tests that watching never rewrites the user's config."""

    def test_half_written_config_is_left_untouched(self, watcher, storage):
        """Test an unparseable config is skipped and kept as the user left it."""
        partial = "mode: adaptive\nlight: [Day\n"
        storage.config_file.write_text(partial, encoding="utf-8")
        watcher._on_path_changed(str(storage.config_file))

        assert watcher.events == []
        assert watcher.state is WatcherState.WATCHING
        assert storage.config_file.read_text(encoding="utf-8") == partial
        assert watcher.current_palette.name == "Night"

    def test_config_finished_after_partial_write_resumes(self, watcher, seeded, storage):
        storage.config_file.write_text("mode: static\nname: [Da\n", encoding="utf-8")
        watcher._on_path_changed(str(storage.config_file))
        seeded.set_static("Day")
        watcher._on_path_changed(str(storage.config_file))
        assert [p.name for p in watcher.events] == ["Day"]

    def test_missing_config_reads_as_default_without_writing(self, watcher, storage):
        storage.config_file.unlink()
        watcher._on_path_changed(str(storage.config_dir))
        assert watcher.events == [None]
        assert not storage.config_file.exists()


class TestEnvironmentInputs:
    """Tests for real file system events and Qt style hints."""

    def test_file_system_event_reaches_refresh(self, qapp, watcher, storage):
        write_record(storage.overrides_dir, "Night", window_bg_color="#111111")
        deadline = time.monotonic() + 5.0
        while not watcher.events and time.monotonic() < deadline:
            qapp.processEvents()
            time.sleep(0.01)
        assert watcher.events == [ColorOverrideSet("Night", {"window_bg_color": "#111111"})]

    def test_color_scheme_drives_dark_flag(self, watcher):
        hints = _FakeHints(Qt.ColorScheme.Dark)
        watcher.connect_style_hints(hints)
        assert watcher.events == []

        hints.colorSchemeChanged.emit(Qt.ColorScheme.Light)
        assert [p.name for p in watcher.events] == ["Day"]

    def test_contrast_preference_drives_high_contrast(self, watcher, storage):
        if not hasattr(Qt, "ContrastPreference"):
            pytest.skip("Qt build does not report a contrast preference")
        write_record(
            storage.overrides_dir, "Night", window_fg_color="#777777", window_bg_color="#888888"
        )
        watcher.refresh()
        accessibility = _FakeAccessibility(Qt.ContrastPreference.NoPreference)
        watcher.connect_style_hints(_FakeHintsWithAccessibility(Qt.ColorScheme.Dark, accessibility))
        assert len(watcher.events) == 1

        accessibility.contrastPreferenceChanged.emit(Qt.ContrastPreference.HighContrast)
        assert len(watcher.events) == 2
        assert watcher.events[1].get("window_fg_color") != "#777777"


class TestTerminalErrors:
    """Tests for the Errored state."""

    def test_storage_failure_is_terminal(self, watcher, seeded, storage, monkeypatch):
        """Test errored fires once and nothing is emitted afterwards."""
        def broken_read():
            raise StorageError(message="config unreadable", path=storage.config_file)

        monkeypatch.setattr(seeded, "read", broken_read)
        watcher._on_path_changed(str(storage.config_file))

        assert watcher.state is WatcherState.ERRORED
        assert watcher.errors == ["config unreadable"]
        assert watcher.watched_paths() == []

        watcher._on_path_changed(str(storage.config_file))
        watcher.set_dark(False)
        assert watcher.events == []
        assert len(watcher.errors) == 1

    def test_errored_watcher_cannot_restart(self, watcher, seeded, storage, monkeypatch):
        def broken_read():
            raise StorageError(message="gone")

        monkeypatch.setattr(seeded, "read", broken_read)
        watcher.refresh()
        assert watcher.start() is False
        assert watcher.state is WatcherState.ERRORED
