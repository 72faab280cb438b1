"""Resolution of required identifiers, prompting on a terminal when a flag was left blank."""

from __future__ import annotations

import sys
from collections.abc import Callable

from chaosflow.domain.errors import InputError


def resolve_identifier(
    value: str | None,
    label: str,
    *,
    input_fn: Callable[[str], str] = input,
    interactive: bool | None = None,
) -> str:
    """Return ``value`` or a prompted replacement; raise ``InputError`` if still empty."""

    if value is not None and value.strip():
        return value.strip()

    if interactive is None:
        interactive = sys.stdin.isatty()
    if interactive:
        try:
            value = input_fn(f"\nEnter the {label}: ")
        except EOFError:
            value = ""
        if value.strip():
            return value.strip()

    raise InputError(f"{label} can't be empty")


__all__ = ["resolve_identifier"]
