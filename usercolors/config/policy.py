"""Activation policy: which override set is active, and under which mode."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Mapping, Union

from usercolors.errors import ParseError

ADAPTIVE_MODE = "adaptive"
STATIC_MODE = "static"


@dataclass(frozen=True, slots=True)
class AdaptivePolicy:
    """Follow the environment: one override for light mode, one for dark mode."""

    mode: ClassVar[str] = ADAPTIVE_MODE

    light: str = ""
    dark: str = ""
    is_dark: bool = True
    is_high_contrast: bool = False


@dataclass(frozen=True, slots=True)
class StaticPolicy:
    """Always use one override; ``apply_all`` imports it toolkit-wide."""

    mode: ClassVar[str] = STATIC_MODE

    name: str = ""
    apply_all: bool = False


ActivationPolicy = Union[AdaptivePolicy, StaticPolicy]

_ADAPTIVE_FIELDS: dict[str, type] = {
    "light": str,
    "dark": str,
    "is_dark": bool,
    "is_high_contrast": bool,
}
_STATIC_FIELDS: dict[str, type] = {
    "name": str,
    "apply_all": bool,
}


def active_name(policy: ActivationPolicy) -> str | None:
    """Resolve the active override name; ``None`` when nothing is selected."""
    if isinstance(policy, StaticPolicy):
        name = policy.name
    else:
        name = policy.dark if policy.is_dark else policy.light
    return name or None


def wants_global_import(policy: ActivationPolicy) -> bool:
    """True when the generated stylesheet should be imported toolkit-wide."""
    if isinstance(policy, StaticPolicy):
        return policy.apply_all
    return True


def policy_to_record(policy: ActivationPolicy) -> dict[str, object]:
    if isinstance(policy, StaticPolicy):
        return {"mode": STATIC_MODE, "name": policy.name, "apply_all": policy.apply_all}
    return {
        "mode": ADAPTIVE_MODE,
        "light": policy.light,
        "dark": policy.dark,
        "is_dark": policy.is_dark,
        "is_high_contrast": policy.is_high_contrast,
    }


def policy_from_record(data: object, *, context: str) -> ActivationPolicy:
    """Build a policy from a decoded config record, rejecting schema drift."""
    if not isinstance(data, Mapping):
        raise ParseError(message=f"{context}: expected a mapping at the top level")
    mode = data.get("mode")
    if mode == ADAPTIVE_MODE:
        fields = _ADAPTIVE_FIELDS
        factory = AdaptivePolicy
    elif mode == STATIC_MODE:
        fields = _STATIC_FIELDS
        factory = StaticPolicy
    else:
        raise ParseError(message=f"{context}: unknown mode {mode!r}")

    unknown = sorted(str(key) for key in data.keys() if key != "mode" and key not in fields)
    if unknown:
        raise ParseError(message=f"{context}: unsupported keys found: {', '.join(unknown)}")

    values: dict[str, object] = {}
    for key, expected in fields.items():
        if key not in data:
            continue
        value = data[key]
        if expected is str and value is None:
            value = ""
        if not isinstance(value, expected):
            raise ParseError(
                message=f"{context}: field {key!r} must be {expected.__name__}, got {type(value).__name__}"
            )
        values[key] = value
    return factory(**values)
