"""Logging for one CLI invocation: JSON lines on stderr and an optional file sink.

Every line carries the invocation id. Fields bound with ``correlation_scope``
are read when the record is formatted, so they appear on each line emitted
inside the scope. Credentials are masked unless redaction is switched off in
the ``[observability]`` config section.
"""

from __future__ import annotations

import contextvars
import json
import logging
import math
import re
import sys
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import Final

JSONScalar = str | int | float | bool | None
JSONValue = JSONScalar | list["JSONValue"] | dict[str, "JSONValue"]
LogRedactor = Callable[[JSONValue], JSONValue]

LOG_FILENAME: Final[str] = "chaosflow.jsonl"
DEFAULT_LOGGER_NAME: Final[str] = "chaosflow"
REDACTED: Final[str] = "***REDACTED***"

_SENSITIVE_KEY_TERMS: Final[tuple[str, ...]] = (
    "secret",
    "token",
    "password",
    "authorization",
    "credential",
    "cookie",
)
_ASSIGNMENT_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"(?i)\b(token|password|secret|authorization)\b\s*([:=])\s*([^\s,;]+)"
)
_BEARER_PATTERN: Final[re.Pattern[str]] = re.compile(r"(?i)\bbearer\s+[A-Za-z0-9._~+/-]+=*")
_JWT_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"\beyJ[A-Za-z0-9_-]{8,}\.[A-Za-z0-9_-]{8,}\.[A-Za-z0-9_-]{8,}\b"
)

# Attributes every LogRecord has; anything else on a record came from ``extra``.
_RECORD_ATTRS: Final[frozenset[str]] = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", None, None).__dict__
) | {"message", "asctime"}

_CORRELATION: contextvars.ContextVar[tuple[tuple[str, str], ...]] = contextvars.ContextVar(
    "chaosflow_correlation", default=()
)


def setup_logging(
    observability_config: Mapping[str, object] | None = None,
    *,
    invocation_id: str,
    verbose: bool = False,
    logger_name: str = DEFAULT_LOGGER_NAME,
) -> logging.Logger:
    """Attach JSON-lines handlers to ``logger_name`` per an ``[observability]`` section.

    Handlers from an earlier call are closed first. ``verbose`` forces DEBUG.
    An empty ``log_dir`` leaves stderr as the only sink.
    """

    cfg = observability_config or {}
    level = logging.DEBUG if verbose else _parse_level(cfg.get("log_level", "WARNING"))
    redact: LogRedactor = default_log_redactor if cfg.get("redact_secrets", True) else _unredacted

    shutdown_logging(logger_name)
    logger = logging.getLogger(logger_name)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    log_dir = cfg.get("log_dir")
    if isinstance(log_dir, str) and log_dir.strip():
        directory = Path(log_dir).expanduser()
        directory.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(directory / LOG_FILENAME, encoding="utf-8"))

    formatter = _JsonLineFormatter(invocation_id=invocation_id, redact=redact)
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
    return logger


def shutdown_logging(logger_name: str = DEFAULT_LOGGER_NAME) -> None:
    """Close the handlers ``setup_logging`` attached and restore propagation."""

    logger = logging.getLogger(logger_name)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


class _JsonLineFormatter(logging.Formatter):
    def __init__(self, *, invocation_id: str, redact: LogRedactor) -> None:
        super().__init__()
        self._invocation_id = invocation_id
        self._redact = redact

    def format(self, record: logging.LogRecord) -> str:
        event: dict[str, JSONValue] = {
            "timestamp": _timestamp(record.created),
            "level": record.levelname,
            "logger": record.name,
            "invocation_id": self._invocation_id,
            "message": _text(self._redact(record.getMessage())),
        }
        event.update(get_correlation_context())

        fields = {
            key: _to_json(value)
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRS and not key.startswith("_")
        }
        if fields:
            event["fields"] = self._redact(fields)
        if record.exc_info:
            event["exception"] = _text(self._redact(self.formatException(record.exc_info)))

        return json.dumps(event, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def get_correlation_context() -> dict[str, str]:
    return dict(_CORRELATION.get())


@contextmanager
def correlation_scope(**fields: str | None) -> Iterator[None]:
    """Bind correlation fields for the duration of the block.

    A ``None`` or blank value unbinds that field inside the block.
    """

    state = get_correlation_context()
    for key, value in fields.items():
        if value is None or not value.strip():
            state.pop(key, None)
        else:
            state[key] = value.strip()
    token = _CORRELATION.set(tuple(state.items()))
    try:
        yield
    finally:
        _CORRELATION.reset(token)


def default_log_redactor(value: JSONValue) -> JSONValue:
    """Mask values under sensitive keys and credentials embedded in free text."""

    if isinstance(value, str):
        return _redact_text(value)
    if isinstance(value, list):
        return [default_log_redactor(item) for item in value]
    if isinstance(value, dict):
        return {
            key: REDACTED if _is_sensitive_key(key) else default_log_redactor(item)
            for key, item in value.items()
        }
    return value


def _unredacted(value: JSONValue) -> JSONValue:
    return value


def _is_sensitive_key(key: str) -> bool:
    lowered = key.lower()
    return any(term in lowered for term in _SENSITIVE_KEY_TERMS)


def _redact_text(text: str) -> str:
    text = _ASSIGNMENT_PATTERN.sub(lambda m: f"{m.group(1)}{m.group(2)}{REDACTED}", text)
    text = _BEARER_PATTERN.sub(f"Bearer {REDACTED}", text)
    return _JWT_PATTERN.sub(REDACTED, text)


def _parse_level(value: object) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        parsed = logging.getLevelName(value.strip().upper())
        if isinstance(parsed, int):
            return parsed
    raise ValueError(f"unsupported logging level {value!r}")


def _timestamp(epoch_seconds: float) -> str:
    moment = datetime.fromtimestamp(epoch_seconds, tz=UTC)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _text(value: JSONValue) -> str:
    if isinstance(value, str):
        return value
    return "" if value is None else json.dumps(value, sort_keys=True)


def _to_json(value: object) -> JSONValue:
    if value is None or isinstance(value, (bool, int, str)):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else str(value)
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    if isinstance(value, Mapping):
        return {str(key): _to_json(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_json(item) for item in value]
    return repr(value)


__all__ = [
    "DEFAULT_LOGGER_NAME",
    "JSONScalar",
    "JSONValue",
    "LOG_FILENAME",
    "LogRedactor",
    "REDACTED",
    "correlation_scope",
    "default_log_redactor",
    "get_correlation_context",
    "setup_logging",
    "shutdown_logging",
]
