"""Unit tests for reading caller credentials from the litmus account config."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from chaosflow.auth.credentials import Credentials, credentials_from_config, load_credentials
from chaosflow.domain.errors import AuthenticationError

ENDPOINT = "https://chaos.example.com/"


def _config(**user_overrides: object) -> dict[str, object]:
    user: dict[str, object] = {"username": "admin", "token": "jwt-token", "expires_in": "2000"}
    user.update(user_overrides)
    return {
        "accounts": [
            {"endpoint": "https://other.example.com", "users": [{"username": "admin", "token": "x"}]},
            {"endpoint": ENDPOINT, "users": [user]},
        ],
        "current-account": ENDPOINT,
        "current-user": "admin",
    }


def _write_yaml(path: Path, payload: object) -> Path:
    path.write_text(yaml.safe_dump(payload), encoding="utf-8")
    return path


def test_load_credentials_selects_current_account(tmp_path: Path) -> None:
    path = _write_yaml(tmp_path / ".litmusconfig", _config())

    credentials = load_credentials(path, now=1000.0)

    assert credentials == Credentials(
        username="admin", token="jwt-token", endpoint="https://chaos.example.com"
    )


def test_token_is_not_in_repr() -> None:
    credentials = Credentials(username="admin", token="jwt-token", endpoint=ENDPOINT)

    assert "jwt-token" not in repr(credentials)


def test_missing_file_is_authentication_error(tmp_path: Path) -> None:
    with pytest.raises(AuthenticationError, match="account config not found"):
        load_credentials(tmp_path / "missing")


def test_invalid_yaml_is_authentication_error(tmp_path: Path) -> None:
    path = tmp_path / ".litmusconfig"
    path.write_text("accounts: [unclosed", encoding="utf-8")

    with pytest.raises(AuthenticationError, match="invalid YAML"):
        load_credentials(path)


def test_expired_token_is_rejected() -> None:
    with pytest.raises(AuthenticationError, match="has expired"):
        credentials_from_config(_config(expires_in="999"), now=1000.0)


def test_missing_expiry_is_accepted() -> None:
    credentials = credentials_from_config(_config(expires_in=None), now=1000.0)

    assert credentials.token == "jwt-token"


@pytest.mark.parametrize(
    ("mutate", "message"),
    [
        (lambda cfg: cfg.pop("current-account"), "no current account"),
        (lambda cfg: cfg.update({"current-user": ""}), "no current user"),
        (lambda cfg: cfg.update({"accounts": "nope"}), "accounts must be a list"),
        (lambda cfg: cfg.update({"current-user": "ghost"}), "not found"),
    ],
)
def test_incomplete_config_is_rejected(mutate, message: str) -> None:
    payload = _config()
    mutate(payload)

    with pytest.raises(AuthenticationError, match=message):
        credentials_from_config(payload, now=1000.0)


def test_empty_token_is_rejected() -> None:
    with pytest.raises(AuthenticationError, match="no token stored"):
        credentials_from_config(_config(token="  "), now=1000.0)


def test_non_numeric_expiry_is_rejected() -> None:
    with pytest.raises(AuthenticationError, match="invalid expires_in"):
        credentials_from_config(_config(expires_in="tomorrow"), now=1000.0)
