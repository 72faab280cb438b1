"""Caller credentials from the litmus account config file.

The file is YAML with this shape::

    accounts:
      - endpoint: https://chaos.example.com
        users:
          - username: admin
            token: <jwt>
            expires_in: "1700000000"
    current-account: https://chaos.example.com
    current-user: admin
"""

from __future__ import annotations

import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import cast

import yaml

from chaosflow.constants import DEFAULT_LITMUS_CONFIG
from chaosflow.domain.errors import AuthenticationError


@dataclass(frozen=True, slots=True)
class Credentials:
    username: str
    token: str = field(repr=False)
    endpoint: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "endpoint", self.endpoint.rstrip("/"))


def load_credentials(
    path: str | Path | None = None,
    *,
    now: float | None = None,
) -> Credentials:
    """Return credentials for the current account and user in the litmus config file."""

    source = Path(path if path is not None else DEFAULT_LITMUS_CONFIG).expanduser()
    try:
        with source.open("r", encoding="utf-8") as handle:
            loaded = cast("object", yaml.safe_load(handle))
    except FileNotFoundError as exc:
        raise AuthenticationError(
            f"account config not found at {source}; log in to a chaos center first"
        ) from exc
    except OSError as exc:
        raise AuthenticationError(f"unable to read account config {source}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise AuthenticationError(f"{source}: invalid YAML ({exc})") from exc

    return credentials_from_config(loaded, source=str(source), now=now)


def credentials_from_config(
    payload: object,
    *,
    source: str = "<config>",
    now: float | None = None,
) -> Credentials:
    if not isinstance(payload, Mapping):
        raise AuthenticationError(f"{source}: expected a mapping at the document root")

    current_account = payload.get("current-account")
    current_user = payload.get("current-user")
    if not isinstance(current_account, str) or not current_account.strip():
        raise AuthenticationError(f"{source}: no current account selected")
    if not isinstance(current_user, str) or not current_user.strip():
        raise AuthenticationError(f"{source}: no current user selected")

    accounts = payload.get("accounts")
    if not isinstance(accounts, list):
        raise AuthenticationError(f"{source}: accounts must be a list")

    for account in accounts:
        if not isinstance(account, Mapping) or account.get("endpoint") != current_account:
            continue
        users = account.get("users")
        if not isinstance(users, list):
            break
        for user in users:
            if not isinstance(user, Mapping) or user.get("username") != current_user:
                continue
            token = user.get("token")
            if not isinstance(token, str) or not token.strip():
                raise AuthenticationError(f"{source}: no token stored for {current_user}")
            _check_expiry(user.get("expires_in"), current_user, source, now)
            return Credentials(username=current_user, token=token.strip(), endpoint=current_account)

    raise AuthenticationError(
        f"{source}: user {current_user!r} not found for account {current_account!r}"
    )


def _check_expiry(raw: object, username: str, source: str, now: float | None) -> None:
    if raw is None or raw == "":
        return
    try:
        expires_at = int(str(raw).strip())
    except ValueError as exc:
        raise AuthenticationError(f"{source}: invalid expires_in for {username}") from exc
    current = time.time() if now is None else now
    if expires_at <= current:
        raise AuthenticationError(f"token for {username} has expired; log in again")


__all__ = ["Credentials", "credentials_from_config", "load_credentials"]
