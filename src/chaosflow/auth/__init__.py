"""Caller credentials and the workflow-creation authorization gate."""

from chaosflow.auth.credentials import Credentials, credentials_from_config, load_credentials
from chaosflow.auth.gate import (
    NO_ACCESS_MESSAGE,
    AccessDecision,
    AccessReason,
    ProjectDirectory,
    evaluate_access,
    is_authorized,
    require_edit_access,
)

__all__ = [
    "NO_ACCESS_MESSAGE",
    "AccessDecision",
    "AccessReason",
    "Credentials",
    "ProjectDirectory",
    "credentials_from_config",
    "evaluate_access",
    "is_authorized",
    "load_credentials",
    "require_edit_access",
]
