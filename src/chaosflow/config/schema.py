"""
chaosflow — configuration schema and validation.

File: src/chaosflow/config/schema.py

Purpose
- Define authoritative configuration defaults and strict validation rules.

Functional requirements
- Validate config payloads and return structured errors (field path + message).
- Reject unknown sections and fields.
- Credentials never live in this file; they come from the account config it points to.
"""

from __future__ import annotations

import copy
import math
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Final, Literal, TypedDict

from chaosflow.constants import (
    CONFIG_SCHEMA_VERSION,
    DEFAULT_LITMUS_CONFIG,
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_WEIGHTAGE,
    MAX_WEIGHTAGE,
    MIN_WEIGHTAGE,
    WEIGHTAGE_ANNOTATION,
)

ConfigSchemaVersion: Final[int] = CONFIG_SCHEMA_VERSION

_LOG_LEVELS: Final[tuple[str, ...]] = ("DEBUG", "INFO", "WARNING", "ERROR")
_WEIGHT_POLICIES: Final[tuple[str, ...]] = ("constant", "annotation")

# Config paths that should be normalized relative to config file location.
PATH_FIELDS: Final[tuple[tuple[str, ...], ...]] = (
    ("credentials", "litmus_config"),
    ("observability", "log_dir"),
)


class MetaConfig(TypedDict):
    schema_version: int


class BackendConfig(TypedDict):
    timeout_seconds: float


class CredentialsConfig(TypedDict):
    litmus_config: str


class ManifestConfig(TypedDict):
    scan_all_artifacts: bool


class WeightsConfig(TypedDict):
    policy: Literal["constant", "annotation"]
    default: int
    annotation_key: str


class ObservabilityConfig(TypedDict):
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"]
    log_dir: str
    redact_secrets: bool


class ChaosflowConfig(TypedDict):
    meta: MetaConfig
    backend: BackendConfig
    credentials: CredentialsConfig
    manifest: ManifestConfig
    weights: WeightsConfig
    observability: ObservabilityConfig


DEFAULT_CONFIG: Final[ChaosflowConfig] = {
    "meta": {"schema_version": CONFIG_SCHEMA_VERSION},
    "backend": {"timeout_seconds": DEFAULT_TIMEOUT_SECONDS},
    "credentials": {"litmus_config": DEFAULT_LITMUS_CONFIG},
    "manifest": {"scan_all_artifacts": False},
    "weights": {
        "policy": "constant",
        "default": DEFAULT_WEIGHTAGE,
        "annotation_key": WEIGHTAGE_ANNOTATION,
    },
    "observability": {"log_level": "WARNING", "log_dir": "", "redact_secrets": True},
}


@dataclass(frozen=True, slots=True)
class ConfigValidationIssue:
    """Single structured validation failure."""

    path: str
    message: str


@dataclass(frozen=True, slots=True)
class ConfigValidationResult:
    """Validation result with normalized config when no issues were found."""

    config: dict[str, Any] | None
    issues: tuple[ConfigValidationIssue, ...]

    @property
    def is_valid(self) -> bool:
        return self.config is not None and not self.issues


class ConfigValidationError(ValueError):
    """Raised when strict config validation fails."""

    def __init__(self, issues: Sequence[ConfigValidationIssue]) -> None:
        self.issues = tuple(issues)
        if not self.issues:
            rendered = "unknown validation failure"
        else:
            rendered = "\n".join(f"- {item.path}: {item.message}" for item in self.issues)
        super().__init__(f"invalid config:\n{rendered}")


class _IssueCollector:
    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: list[ConfigValidationIssue] = []

    def add(self, path: str, message: str) -> None:
        self._items.append(ConfigValidationIssue(path=path, message=message))

    def items(self) -> tuple[ConfigValidationIssue, ...]:
        return tuple(self._items)

    @property
    def has_issues(self) -> bool:
        return bool(self._items)


_FieldValidator = Callable[[object, str, _IssueCollector], object | None]


def default_config() -> ChaosflowConfig:
    return copy.deepcopy(DEFAULT_CONFIG)


def merge_config(base: Mapping[str, object], overlay: Mapping[str, object]) -> dict[str, Any]:
    """Deterministically deep-merge ``overlay`` onto ``base``."""

    merged = _deep_copy_mapping(base)
    _merge_into(merged, overlay)
    return merged


def validate_config(config: Mapping[str, object] | object) -> ConfigValidationResult:
    """Validate config and return structured issues with deterministic paths."""

    issues = _IssueCollector()
    root = _as_object(config, "<root>", issues)
    if root is None:
        return ConfigValidationResult(config=None, issues=issues.items())

    normalized: dict[str, Any] = {}
    for section_name in sorted(root):
        fields = _SECTION_FIELDS.get(section_name)
        if fields is None:
            issues.add(section_name, "unknown section")
            continue
        section = _as_object(root[section_name], section_name, issues)
        if section is None:
            continue
        out: dict[str, Any] = {}
        for key in sorted(section):
            path = f"{section_name}.{key}"
            validator = fields.get(key)
            if validator is None:
                issues.add(path, "unknown field")
                continue
            parsed = validator(section[key], path, issues)
            if parsed is not None:
                out[key] = parsed
        normalized[section_name] = out

    meta = normalized.get("meta", {})
    version = meta.get("schema_version") if isinstance(meta, Mapping) else None
    if version is not None and version != CONFIG_SCHEMA_VERSION:
        issues.add(
            "meta.schema_version",
            f"unsupported schema version {version}; expected {CONFIG_SCHEMA_VERSION}",
        )

    if issues.has_issues:
        return ConfigValidationResult(config=None, issues=issues.items())
    return ConfigValidationResult(config=normalized, issues=())


def assert_valid_config(config: Mapping[str, object] | object) -> dict[str, Any]:
    """Validate config and raise ``ConfigValidationError`` on failure."""

    result = validate_config(config)
    if result.config is None:
        raise ConfigValidationError(result.issues)
    return result.config


# ---------------------------------------------------------------------------
# Field validators
# ---------------------------------------------------------------------------


def _as_object(value: object, path: str, issues: _IssueCollector) -> dict[str, object] | None:
    if not isinstance(value, Mapping):
        issues.add(path, f"expected object, got {type(value).__name__}")
        return None
    out: dict[str, object] = {}
    for key, item in value.items():
        if not isinstance(key, str):
            issues.add(path, f"object key must be string, got {type(key).__name__}")
            continue
        out[key] = item
    return out


def _as_str(value: object, path: str, issues: _IssueCollector) -> str | None:
    if not isinstance(value, str):
        issues.add(path, f"expected string, got {type(value).__name__}")
        return None
    parsed = value.strip()
    if not parsed:
        issues.add(path, "must not be empty")
        return None
    return parsed


def _as_optional_path(value: object, path: str, issues: _IssueCollector) -> str | None:
    if not isinstance(value, str):
        issues.add(path, f"expected string, got {type(value).__name__}")
        return None
    if "\x00" in value:
        issues.add(path, "must not contain NUL bytes")
        return None
    return value.strip()


def _as_bool(value: object, path: str, issues: _IssueCollector) -> bool | None:
    if isinstance(value, bool):
        return value
    issues.add(path, f"expected boolean, got {type(value).__name__}")
    return None


def _int_between(minimum: int, maximum: int) -> _FieldValidator:
    def validate(value: object, path: str, issues: _IssueCollector) -> int | None:
        if isinstance(value, bool) or not isinstance(value, int):
            issues.add(path, f"expected integer, got {type(value).__name__}")
            return None
        if not minimum <= value <= maximum:
            issues.add(path, f"must be between {minimum} and {maximum}")
            return None
        return value

    return validate


def _positive_float(value: object, path: str, issues: _IssueCollector) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        issues.add(path, f"expected number, got {type(value).__name__}")
        return None
    parsed = float(value)
    if not math.isfinite(parsed) or parsed <= 0:
        issues.add(path, "must be a finite number > 0")
        return None
    return parsed


def _enum(*allowed_values: str) -> _FieldValidator:
    def validate(value: object, path: str, issues: _IssueCollector) -> str | None:
        parsed = _as_str(value, path, issues)
        if parsed is None:
            return None
        if parsed not in allowed_values:
            expected = ", ".join(sorted(allowed_values))
            issues.add(path, f"invalid value {parsed!r}; expected one of: {expected}")
            return None
        return parsed

    return validate


_SECTION_FIELDS: Final[dict[str, dict[str, _FieldValidator]]] = {
    "meta": {"schema_version": _int_between(1, 1_000)},
    "backend": {"timeout_seconds": _positive_float},
    "credentials": {"litmus_config": _as_str},
    "manifest": {"scan_all_artifacts": _as_bool},
    "weights": {
        "policy": _enum(*_WEIGHT_POLICIES),
        "default": _int_between(MIN_WEIGHTAGE, MAX_WEIGHTAGE),
        "annotation_key": _as_str,
    },
    "observability": {
        "log_level": _enum(*_LOG_LEVELS),
        "log_dir": _as_optional_path,
        "redact_secrets": _as_bool,
    },
}


# ---------------------------------------------------------------------------
# Merge helpers
# ---------------------------------------------------------------------------


def _merge_into(target: dict[str, Any], overlay: Mapping[str, object]) -> None:
    for key in sorted(overlay):
        value = overlay[key]
        if isinstance(value, Mapping):
            existing = target.get(key)
            if isinstance(existing, dict):
                _merge_into(existing, value)
            else:
                nested: dict[str, Any] = {}
                _merge_into(nested, value)
                target[key] = nested
        else:
            target[key] = copy.deepcopy(value)


def _deep_copy_mapping(value: Mapping[str, object]) -> dict[str, Any]:
    return {key: copy.deepcopy(value[key]) for key in sorted(value)}


__all__ = [
    "DEFAULT_CONFIG",
    "PATH_FIELDS",
    "ChaosflowConfig",
    "ConfigSchemaVersion",
    "ConfigValidationError",
    "ConfigValidationIssue",
    "ConfigValidationResult",
    "assert_valid_config",
    "default_config",
    "merge_config",
    "validate_config",
]
