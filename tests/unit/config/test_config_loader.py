"""
chaosflow — unit tests for config loader

File: tests/unit/config/test_config_loader.py

Purpose
- Validate deterministic config loading from defaults, TOML, env overrides, and CLI overrides.

What this test file should cover
- Precedence: CLI > env > file > defaults.
- Deterministic env var path mapping and type coercion.
- Path normalization relative to the config file.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from chaosflow.config.loader import ConfigLoadError, dump_effective_config, load_config
from chaosflow.config.schema import ConfigValidationError


def _write_config(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_loader_precedence_default_file_env_cli(tmp_path: Path) -> None:
    default_path = _write_config(tmp_path / "empty.toml", "")
    config_path = _write_config(tmp_path / "chaosflow.toml", "[backend]\ntimeout_seconds = 12\n")

    default_loaded = load_config(default_path, environ={})
    file_loaded = load_config(config_path, environ={})
    env_loaded = load_config(config_path, environ={"CHAOSFLOW_BACKEND_TIMEOUT_SECONDS": "20"})
    cli_loaded = load_config(
        config_path,
        environ={"CHAOSFLOW_BACKEND_TIMEOUT_SECONDS": "20"},
        overrides={"backend.timeout_seconds": 25.0},
    )

    assert default_loaded["backend"]["timeout_seconds"] == 30.0
    assert file_loaded["backend"]["timeout_seconds"] == 12.0
    assert env_loaded["backend"]["timeout_seconds"] == 20.0
    assert cli_loaded["backend"]["timeout_seconds"] == 25.0


def test_defaults_apply_without_a_config_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)

    loaded = load_config(environ={})

    assert loaded["weights"] == {
        "annotation_key": "litmuschaos.io/weightage",
        "default": 10,
        "policy": "constant",
    }
    assert loaded["manifest"]["scan_all_artifacts"] is False
    assert loaded["observability"]["log_dir"] == ""
    assert loaded["credentials"]["litmus_config"].endswith(".litmusconfig")
    assert Path(loaded["credentials"]["litmus_config"]).is_absolute()


def test_env_values_are_coerced_by_default_type(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path / "chaosflow.toml", "")

    loaded = load_config(
        config_path,
        environ={
            "CHAOSFLOW_MANIFEST_SCAN_ALL_ARTIFACTS": "yes",
            "CHAOSFLOW_WEIGHTS_DEFAULT": "25",
            "CHAOSFLOW_WEIGHTS_POLICY": "annotation",
            "CHAOSFLOW_OBSERVABILITY_LOG_LEVEL": "DEBUG",
        },
    )

    assert loaded["manifest"]["scan_all_artifacts"] is True
    assert loaded["weights"]["default"] == 25
    assert loaded["weights"]["policy"] == "annotation"
    assert loaded["observability"]["log_level"] == "DEBUG"


@pytest.mark.parametrize(
    ("name", "value", "message"),
    [
        ("CHAOSFLOW_WEIGHTS_DEFAULT", "ten", "must be an integer"),
        ("CHAOSFLOW_BACKEND_TIMEOUT_SECONDS", "soon", "must be a number"),
        ("CHAOSFLOW_MANIFEST_SCAN_ALL_ARTIFACTS", "maybe", "must be a boolean"),
    ],
)
def test_env_coercion_failures_are_load_errors(
    tmp_path: Path, name: str, value: str, message: str
) -> None:
    config_path = _write_config(tmp_path / "chaosflow.toml", "")

    with pytest.raises(ConfigLoadError, match=message):
        load_config(config_path, environ={name: value})


def test_paths_are_normalized_relative_to_config_file(tmp_path: Path) -> None:
    config_path = _write_config(
        tmp_path / "conf" / "chaosflow.toml",
        '[credentials]\nlitmus_config = "accounts/litmus.yaml"\n\n[observability]\nlog_dir = "logs"\n',
    )

    loaded = load_config(config_path, environ={})

    assert loaded["credentials"]["litmus_config"] == (tmp_path / "conf" / "accounts" / "litmus.yaml").as_posix()
    assert loaded["observability"]["log_dir"] == (tmp_path / "conf" / "logs").as_posix()


def test_explicit_missing_config_file_is_an_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigLoadError, match="config file not found"):
        load_config(tmp_path / "absent.toml", environ={})


def test_invalid_toml_is_an_error(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path / "chaosflow.toml", "[backend\n")

    with pytest.raises(ConfigLoadError, match="invalid TOML"):
        load_config(config_path, environ={})


def test_invalid_values_fail_validation(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path / "chaosflow.toml", "[weights]\ndefault = 500\n")

    with pytest.raises(ConfigValidationError) as excinfo:
        load_config(config_path, environ={})

    assert [issue.path for issue in excinfo.value.issues] == ["weights.default"]


def test_cli_override_keys_require_section(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path / "chaosflow.toml", "")

    with pytest.raises(ConfigLoadError, match="expected section.field"):
        load_config(config_path, environ={}, overrides={"timeout_seconds": 3})


def test_unset_overrides_leave_lower_layers_in_place(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path / "chaosflow.toml", "[manifest]\nscan_all_artifacts = true\n")

    loaded = load_config(
        config_path,
        environ={"CHAOSFLOW_CREDENTIALS_LITMUS_CONFIG": "/env/litmus.yaml"},
        overrides={"manifest.scan_all_artifacts": None, "credentials.litmus_config": None},
    )

    assert loaded["manifest"]["scan_all_artifacts"] is True
    assert loaded["credentials"]["litmus_config"] == "/env/litmus.yaml"


def test_override_beats_env_for_every_field(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path / "chaosflow.toml", "[manifest]\nscan_all_artifacts = true\n")

    loaded = load_config(
        config_path,
        environ={"CHAOSFLOW_CREDENTIALS_LITMUS_CONFIG": "/env/litmus.yaml"},
        overrides={"manifest.scan_all_artifacts": False, "credentials.litmus_config": "/flag/litmus.yaml"},
    )

    assert loaded["manifest"]["scan_all_artifacts"] is False
    assert loaded["credentials"]["litmus_config"] == "/flag/litmus.yaml"


def test_relative_override_paths_resolve_against_working_directory(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    config_path = _write_config(tmp_path / "conf" / "chaosflow.toml", "")
    workdir = tmp_path / "work"
    workdir.mkdir()
    monkeypatch.chdir(workdir)

    loaded = load_config(config_path, environ={}, overrides={"credentials.litmus_config": "litmus.yaml"})

    assert loaded["credentials"]["litmus_config"] == (workdir / "litmus.yaml").as_posix()


def test_invalid_override_value_fails_validation(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path / "chaosflow.toml", "")

    with pytest.raises(ConfigValidationError) as excinfo:
        load_config(config_path, environ={}, overrides={"backend.timeout_seconds": -1.0})

    assert [issue.path for issue in excinfo.value.issues] == ["backend.timeout_seconds"]


def test_effective_config_dump_is_deterministic(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path / "chaosflow.toml", "[weights]\ndefault = 7\n")

    first = dump_effective_config(load_config(config_path, environ={}))
    second = dump_effective_config(load_config(config_path, environ={}))

    assert first == second
    assert json.loads(first)["weights"]["default"] == 7
