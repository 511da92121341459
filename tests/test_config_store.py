"""Tests for usercolors.config (activation policy and ConfigStore)."""

from __future__ import annotations

import pytest
import yaml

from usercolors.config.paths import StoragePaths
from usercolors.config.policy import (
    AdaptivePolicy,
    StaticPolicy,
    active_name,
    policy_from_record,
    wants_global_import,
)
from usercolors.config.store import ConfigStore
from usercolors.errors import NoActiveOverrideError, NotFoundError, ParseError, StorageError
from usercolors.palettes.models import ColorOverrideSet


class TestResolution:
    def test_adaptive_dark(self):
        policy = AdaptivePolicy(light="A", dark="B", is_dark=True)
        assert active_name(policy) == "B"

    def test_adaptive_light(self):
        policy = AdaptivePolicy(light="A", dark="B", is_dark=False)
        assert active_name(policy) == "A"

    def test_static_ignores_dark_flag(self):
        assert active_name(StaticPolicy(name="C")) == "C"
        assert ConfigStore.active_name(StaticPolicy(name="C", apply_all=True)) == "C"

    def test_empty_name_is_no_active_override(self):
        assert active_name(AdaptivePolicy(light="A", dark="", is_dark=True)) is None
        assert active_name(StaticPolicy()) is None

    def test_global_import_wanted(self):
        assert wants_global_import(AdaptivePolicy()) is True
        assert wants_global_import(StaticPolicy(name="C", apply_all=True)) is True
        assert wants_global_import(StaticPolicy(name="C", apply_all=False)) is False


class TestPolicyRecord:
    def test_unknown_mode_rejected(self):
        with pytest.raises(ParseError):
            policy_from_record({"mode": "sometimes"}, context="test")

    def test_other_mode_fields_rejected(self):
        with pytest.raises(ParseError, match="unsupported keys"):
            policy_from_record({"mode": "static", "name": "C", "light": "A"}, context="test")

    def test_wrong_type_rejected(self):
        with pytest.raises(ParseError):
            policy_from_record({"mode": "adaptive", "is_dark": "yes please"}, context="test")

    def test_missing_fields_take_defaults(self):
        assert policy_from_record({"mode": "adaptive"}, context="test") == AdaptivePolicy()

    def test_null_names_read_as_empty(self):
        policy = policy_from_record({"mode": "static", "name": None}, context="test")
        assert policy == StaticPolicy(name="")


class TestConfigStoreLoad:
    def test_default_policy(self):
        assert ConfigStore.default() == AdaptivePolicy(
            light="", dark="", is_dark=True, is_high_contrast=False
        )

    def test_fresh_load_bootstraps_and_persists_default(self, store):
        assert not store.config_path.exists()
        policy = store.load()
        assert policy == ConfigStore.default()
        assert store.config_path.exists()

    def test_second_load_reads_without_rebootstrap(self, store, monkeypatch):
        store.load()

        def fail_save(policy):
            raise AssertionError("save should not be called")

        monkeypatch.setattr(store, "save", fail_save)
        assert store.load() == ConfigStore.default()

    def test_persisted_yaml_is_readable(self, store):
        store.save(StaticPolicy(name="Ocean", apply_all=True))
        data = yaml.safe_load(store.config_path.read_text(encoding="utf-8"))
        assert data == {"mode": "static", "name": "Ocean", "apply_all": True}

    def test_save_load_round_trip(self, store):
        policy = AdaptivePolicy(light="Day", dark="Night", is_dark=False, is_high_contrast=True)
        store.save(policy)
        assert store.load() == policy

    @pytest.mark.parametrize(
        "content",
        ["mode: [unterminated", "", "- just\n- a list\n", "mode: adaptive\nsurprise: 1\n"],
    )
    def test_unparseable_config_self_heals(self, store, content):
        store.config_path.parent.mkdir(parents=True, exist_ok=True)
        store.config_path.write_text(content, encoding="utf-8")
        assert store.load() == ConfigStore.default()
        assert store.read() == ConfigStore.default()

    def test_read_without_bootstrap_raises_not_found(self, store):
        with pytest.raises(NotFoundError):
            store.read()

    def test_save_failure_raises_storage_error(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory", encoding="utf-8")
        store = ConfigStore(StoragePaths(config_home=blocker, data_home=tmp_path / "data"))
        with pytest.raises(StorageError):
            store.save(ConfigStore.default())


class TestConfigStoreMutations:
    def test_set_active_light_and_dark_in_adaptive_mode(self, store):
        store.set_active_light("Day")
        policy = store.set_active_dark("Night")
        assert policy == AdaptivePolicy(light="Day", dark="Night")
        assert store.load() == policy

    def test_setters_target_name_in_static_mode(self, store):
        store.set_static("Old", apply_all=True)
        assert store.set_active_light("Day") == StaticPolicy(name="Day", apply_all=True)
        assert store.set_active_dark("Night") == StaticPolicy(name="Night", apply_all=True)

    def test_switching_to_static_discards_adaptive_fields(self, store):
        store.set_adaptive(light="Day", dark="Night")
        policy = store.set_static()
        assert policy == StaticPolicy(name="", apply_all=False)

    def test_switching_to_adaptive_discards_static_name(self, store):
        store.set_static("Ocean", apply_all=True)
        assert store.set_adaptive() == AdaptivePolicy()

    def test_set_adaptive_keeps_mode_flags(self, store):
        store.save(AdaptivePolicy(is_dark=False, is_high_contrast=True))
        policy = store.set_adaptive(light="Day")
        assert policy.is_dark is False
        assert policy.is_high_contrast is True
        assert policy.light == "Day"

    def test_set_apply_all(self, store):
        store.set_static("Ocean")
        assert store.set_apply_all(True) == StaticPolicy(name="Ocean", apply_all=True)
        assert store.load().apply_all is True

    def test_set_apply_all_ignored_in_adaptive_mode(self, store):
        assert store.set_apply_all(True) == ConfigStore.default()

    def test_set_mode_flags(self, store):
        policy = store.set_mode_flags(is_dark=False, is_high_contrast=True)
        assert policy == AdaptivePolicy(is_dark=False, is_high_contrast=True)
        assert store.load() == policy


class TestActiveOverride:
    def test_resolves_and_loads(self, store, storage):
        ocean = ColorOverrideSet("Ocean", {"accent_bg_color": "#336699"})
        ocean.save(paths=storage)
        assert store.get_active_override(StaticPolicy(name="Ocean")) == ocean

    def test_empty_name_raises_no_active_override(self, store):
        with pytest.raises(NoActiveOverrideError):
            store.get_active_override(AdaptivePolicy(light="Day", dark="", is_dark=True))

    def test_missing_record_raises_not_found(self, store):
        with pytest.raises(NotFoundError):
            store.get_active_override(StaticPolicy(name="Ghost"))


class TestPeek:
    """Tests for the read-only accessor used by observers."""

    def test_missing_config_is_default_and_not_written(self, store):
        assert store.peek() == ConfigStore.default()
        assert not store.config_path.exists()

    def test_malformed_config_raises_and_is_kept(self, store):
        store.config_path.parent.mkdir(parents=True, exist_ok=True)
        store.config_path.write_text("mode: adaptive\nlight: [Day\n", encoding="utf-8")
        with pytest.raises(ParseError):
            store.peek()
        assert store.config_path.read_text(encoding="utf-8") == "mode: adaptive\nlight: [Day\n"
