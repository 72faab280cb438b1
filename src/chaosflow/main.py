"""Executable CLI entrypoint for ``chaosflow``."""

from __future__ import annotations

import sys
import traceback
from enum import IntEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence


class ExitCode(IntEnum):
    """Deterministic process exit-code contract."""

    SUCCESS = 0
    SUBMISSION_REJECTED = 1
    INPUT_ERROR = 2
    ACCESS_ERROR = 3
    UPSTREAM_ERROR = 4
    INTERNAL_ERROR = 5


def cli_entrypoint(argv: Sequence[str] | None = None) -> int:
    """Entrypoint used by ``python -m chaosflow`` and the console script."""

    try:
        from chaosflow.ui.cli import run_cli

        return _normalize_exit_code(run_cli(argv))
    except SystemExit as exc:  # pragma: no cover - argparse exits on --help and usage errors.
        return _normalize_exit_code(exc.code)
    except BaseException as exc:  # noqa: BLE001 - CLI boundary normalization.
        exit_code = route_exception(exc)
        _emit_failure(exc, exit_code)
        return int(exit_code)


def route_exception(exc: BaseException) -> ExitCode:
    """Map an exception (or anything in its cause chain) to an exit code."""

    from chaosflow.config.loader import ConfigLoadError
    from chaosflow.config.schema import ConfigValidationError
    from chaosflow.domain.errors import (
        AuthenticationError,
        AuthorizationError,
        InputError,
        SubmissionRejectedError,
        UpstreamServiceError,
    )

    for item in _iter_exception_chain(exc):
        if isinstance(item, SubmissionRejectedError):
            return ExitCode.SUBMISSION_REJECTED
        if isinstance(item, (InputError, ConfigLoadError, ConfigValidationError)):
            return ExitCode.INPUT_ERROR
        if isinstance(item, (AuthenticationError, AuthorizationError)):
            return ExitCode.ACCESS_ERROR
        if isinstance(item, UpstreamServiceError):
            return ExitCode.UPSTREAM_ERROR
    return ExitCode.INTERNAL_ERROR


def _normalize_exit_code(raw_code: object) -> int:
    if isinstance(raw_code, int) and raw_code in {int(code) for code in ExitCode}:
        return raw_code
    if raw_code is None:
        return int(ExitCode.SUCCESS)
    if isinstance(raw_code, str) and raw_code.strip():
        _write_stderr(raw_code.strip())
    return int(ExitCode.INTERNAL_ERROR)


def _iter_exception_chain(exc: BaseException) -> list[BaseException]:
    seen: set[int] = set()
    items: list[BaseException] = []
    current: BaseException | None = exc
    while current is not None:
        marker = id(current)
        if marker in seen:
            break
        seen.add(marker)
        items.append(current)
        if current.__cause__ is not None:
            current = current.__cause__
            continue
        if current.__context__ is not None and not current.__suppress_context__:
            current = current.__context__
            continue
        break
    return items


def _emit_failure(exc: BaseException, exit_code: ExitCode) -> None:
    if exit_code is ExitCode.INTERNAL_ERROR:
        traceback.print_exception(type(exc), exc, exc.__traceback__, file=sys.stderr)
        return
    _write_stderr(str(exc).strip() or exc.__class__.__name__)


def _write_stderr(message: str) -> None:
    sys.stderr.write(message.rstrip("\n") + "\n")


__all__ = ["ExitCode", "cli_entrypoint", "route_exception"]
