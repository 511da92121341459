"""Persisted activation policy (config.yaml) with first-run bootstrap."""

from __future__ import annotations

import dataclasses
import logging
from pathlib import Path

import yaml

from usercolors.config.paths import StoragePaths
from usercolors.config.policy import (
    ActivationPolicy,
    AdaptivePolicy,
    StaticPolicy,
    active_name,
    policy_from_record,
    policy_to_record,
)
from usercolors.errors import NoActiveOverrideError, NotFoundError, ParseError, classify_exception
from usercolors.fileio import atomic_write_text
from usercolors.palettes.models import ColorOverrideSet

logger = logging.getLogger(__name__)


class ConfigStore:
    """Loads and saves the singleton ActivationPolicy record.

    Callers own the in-memory policy; every setter is a full
    load -> mutate -> save cycle and returns the saved policy.
    """

    def __init__(self, paths: StoragePaths | None = None) -> None:
        self._paths = paths or StoragePaths.from_environment()

    @property
    def paths(self) -> StoragePaths:
        return self._paths

    @property
    def config_path(self) -> Path:
        return self._paths.config_file

    @staticmethod
    def default() -> ActivationPolicy:
        return AdaptivePolicy(light="", dark="", is_dark=True, is_high_contrast=False)

    def load(self) -> ActivationPolicy:
        """Read the policy; a missing or unreadable record is replaced by the default."""
        try:
            return self.read()
        except (NotFoundError, ParseError) as exc:
            logger.warning("config unavailable (%s); writing defaults to %s", exc.message, self.config_path)
            policy = self.default()
            self.save(policy)
            return policy

    def peek(self) -> ActivationPolicy:
        """Read the policy for observers; never writes.

        A missing record reads as the default. A malformed one raises ParseError.
        """
        try:
            return self.read()
        except NotFoundError:
            return self.default()

    def read(self) -> ActivationPolicy:
        """Read the policy without the bootstrap fallback."""
        path = self.config_path
        try:
            content = path.read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            raise ParseError(message=f"Unable to decode {path}: {exc}", path=path) from exc
        except OSError as exc:
            raise classify_exception(exc, path) from exc
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as exc:
            raise ParseError(message=f"Invalid YAML in {path}: {exc}", path=path) from exc
        return policy_from_record(data, context=str(path))

    def save(self, policy: ActivationPolicy) -> Path:
        text = yaml.safe_dump(policy_to_record(policy), default_flow_style=False, sort_keys=False)
        return atomic_write_text(self.config_path, text)

    # -- mutations --

    def set_active_light(self, name: str) -> ActivationPolicy:
        policy = self.load()
        if isinstance(policy, StaticPolicy):
            policy = dataclasses.replace(policy, name=name)
        else:
            policy = dataclasses.replace(policy, light=name)
        self.save(policy)
        return policy

    def set_active_dark(self, name: str) -> ActivationPolicy:
        policy = self.load()
        if isinstance(policy, StaticPolicy):
            policy = dataclasses.replace(policy, name=name)
        else:
            policy = dataclasses.replace(policy, dark=name)
        self.save(policy)
        return policy

    def set_static(self, name: str = "", *, apply_all: bool = False) -> ActivationPolicy:
        """Switch to Static mode; Adaptive names and flags are discarded."""
        policy = StaticPolicy(name=name, apply_all=apply_all)
        self.save(policy)
        return policy

    def set_adaptive(self, light: str = "", dark: str = "") -> ActivationPolicy:
        """Switch to (or reset) Adaptive mode; a Static name is discarded."""
        current = self.load()
        if isinstance(current, AdaptivePolicy):
            policy = dataclasses.replace(current, light=light, dark=dark)
        else:
            policy = AdaptivePolicy(light=light, dark=dark)
        self.save(policy)
        return policy

    def set_apply_all(self, apply_all: bool) -> ActivationPolicy:
        policy = self.load()
        if not isinstance(policy, StaticPolicy):
            logger.debug("apply_all ignored in %s mode", policy.mode)
            return policy
        policy = dataclasses.replace(policy, apply_all=apply_all)
        self.save(policy)
        return policy

    def set_mode_flags(
        self,
        *,
        is_dark: bool | None = None,
        is_high_contrast: bool | None = None,
    ) -> ActivationPolicy:
        policy = self.load()
        if not isinstance(policy, AdaptivePolicy):
            return policy
        changes: dict[str, bool] = {}
        if is_dark is not None:
            changes["is_dark"] = is_dark
        if is_high_contrast is not None:
            changes["is_high_contrast"] = is_high_contrast
        updated = dataclasses.replace(policy, **changes)
        if updated != policy:
            self.save(updated)
        return updated

    # -- resolution --

    @staticmethod
    def active_name(policy: ActivationPolicy) -> str | None:
        return active_name(policy)

    def get_active_override(self, policy: ActivationPolicy) -> ColorOverrideSet:
        name = active_name(policy)
        if name is None:
            raise NoActiveOverrideError(details={"mode": policy.mode})
        return ColorOverrideSet.load_by_name(name, paths=self._paths)
