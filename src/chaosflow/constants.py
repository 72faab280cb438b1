"""Stable constants shared across chaosflow components."""

from __future__ import annotations

from typing import Final

# Schema version for the tool configuration file.
CONFIG_SCHEMA_VERSION: Final[int] = 1

# Manifest kinds.
WORKFLOW_KIND: Final[str] = "Workflow"
ENGINE_KIND: Final[str] = "ChaosEngine"

# Weighting.
DEFAULT_WEIGHTAGE: Final[int] = 10
MIN_WEIGHTAGE: Final[int] = 0
MAX_WEIGHTAGE: Final[int] = 100
WEIGHTAGE_ANNOTATION: Final[str] = "litmuschaos.io/weightage"

# Roles allowed to create workflows in a project. Matched case-sensitively.
EDIT_ROLES: Final[frozenset[str]] = frozenset({"Owner", "Editor"})

# Backend access.
DEFAULT_LITMUS_CONFIG: Final[str] = "~/.litmusconfig"
GRAPHQL_PATH: Final[str] = "/api/query"
DEFAULT_TIMEOUT_SECONDS: Final[float] = 30.0

__all__ = [
    "CONFIG_SCHEMA_VERSION",
    "DEFAULT_LITMUS_CONFIG",
    "DEFAULT_TIMEOUT_SECONDS",
    "DEFAULT_WEIGHTAGE",
    "EDIT_ROLES",
    "ENGINE_KIND",
    "GRAPHQL_PATH",
    "MAX_WEIGHTAGE",
    "MIN_WEIGHTAGE",
    "WEIGHTAGE_ANNOTATION",
    "WORKFLOW_KIND",
]
