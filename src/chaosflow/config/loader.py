"""
chaosflow — runtime config loader.

File: src/chaosflow/config/loader.py

Purpose
- Build the effective config from four layers, later layers winning:
  defaults, ``chaosflow.toml``, ``CHAOSFLOW_<SECTION>_<FIELD>`` env vars, and
  command-line overrides.

Notes
- Relative paths from the file or env layers resolve against the config file's
  directory. Relative paths given on the command line resolve against the
  working directory.
- The merged result is validated once, after every layer is applied.
"""

from __future__ import annotations

import json
import os
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Final

from chaosflow.config.schema import (
    DEFAULT_CONFIG,
    PATH_FIELDS,
    assert_valid_config,
    default_config,
    merge_config,
)

DEFAULT_CONFIG_FILE: Final[str] = "chaosflow.toml"
ENV_PREFIX: Final[str] = "CHAOSFLOW_"

_TRUE: Final[frozenset[str]] = frozenset({"1", "true", "t", "yes", "y", "on"})
_FALSE: Final[frozenset[str]] = frozenset({"0", "false", "f", "no", "n", "off"})


class ConfigLoadError(ValueError):
    """Raised when config cannot be read or an override cannot be applied."""


def load_config(
    config_path: str | Path | None = None,
    *,
    overrides: Mapping[str, object] | None = None,
    environ: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """Return the validated effective config.

    ``overrides`` maps ``"section.field"`` keys to values; ``None`` values are
    ignored so unset command-line flags leave lower layers in place.
    """

    path = (Path(config_path).expanduser() if config_path is not None else Path(DEFAULT_CONFIG_FILE)).resolve()
    env = os.environ if environ is None else environ

    merged = merge_config(default_config(), _read_toml(path, required=config_path is not None))
    merged = merge_config(merged, _env_layer(env))
    merged = normalize_paths(merged, base_dir=path.parent)
    merged = merge_config(merged, _override_layer(overrides or {}))
    return assert_valid_config(merged)


def normalize_paths(config: Mapping[str, object], *, base_dir: Path) -> dict[str, Any]:
    """Make non-empty path fields absolute, relative to ``base_dir``."""

    normalized = merge_config({}, config)
    for section, field in PATH_FIELDS:
        values = normalized.get(section)
        if isinstance(values, dict) and isinstance(values.get(field), str) and values[field]:
            values[field] = _absolute(values[field], base_dir)
    return normalized


def dump_effective_config(config: Mapping[str, object]) -> str:
    return json.dumps(config, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def _read_toml(path: Path, *, required: bool) -> dict[str, Any]:
    if not path.exists():
        if required:
            raise ConfigLoadError(f"config file not found: {path}")
        return {}
    try:
        with path.open("rb") as handle:
            return tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigLoadError(f"invalid TOML in {path}: {exc}") from exc
    except OSError as exc:
        raise ConfigLoadError(f"unable to read config file {path}: {exc}") from exc


def _env_layer(environ: Mapping[str, str]) -> dict[str, Any]:
    layer: dict[str, Any] = {}
    for section, fields in DEFAULT_CONFIG.items():
        for field, default in fields.items():
            name = f"{ENV_PREFIX}{section.upper()}_{field.upper()}"
            raw = environ.get(name)
            if raw is not None:
                layer.setdefault(section, {})[field] = _coerce(raw.strip(), default, name)
    return layer


def _coerce(raw: str, default: object, name: str) -> object:
    # The default's type decides how the text is read.
    if isinstance(default, bool):
        if raw.lower() in _TRUE:
            return True
        if raw.lower() in _FALSE:
            return False
        raise ConfigLoadError(f"{name} must be a boolean (true/false/1/0/yes/no/on/off)")
    if isinstance(default, int):
        try:
            return int(raw)
        except ValueError as exc:
            raise ConfigLoadError(f"{name} must be an integer") from exc
    if isinstance(default, float):
        try:
            return float(raw)
        except ValueError as exc:
            raise ConfigLoadError(f"{name} must be a number") from exc
    return raw


def _override_layer(overrides: Mapping[str, object]) -> dict[str, Any]:
    layer: dict[str, Any] = {}
    cwd = Path.cwd()
    for key in sorted(overrides):
        value = overrides[key]
        if value is None:
            continue
        section, _, field = key.partition(".")
        if not section or not field or "." in field:
            raise ConfigLoadError(f"invalid override key {key!r}; expected section.field")
        if (section, field) in PATH_FIELDS and isinstance(value, str) and value:
            value = _absolute(value, cwd)
        layer.setdefault(section, {})[field] = value
    return layer


def _absolute(raw: str, base_dir: Path) -> str:
    candidate = Path(os.path.expandvars(raw)).expanduser()
    if not candidate.is_absolute():
        candidate = base_dir / candidate
    return Path(os.path.normpath(candidate)).as_posix()


__all__ = [
    "ConfigLoadError",
    "DEFAULT_CONFIG_FILE",
    "ENV_PREFIX",
    "dump_effective_config",
    "load_config",
    "normalize_paths",
]
