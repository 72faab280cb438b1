"""Remote orchestration backend access."""

from chaosflow.backend.client import BackendClient

__all__ = ["BackendClient"]
