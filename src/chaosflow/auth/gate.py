"""Authorization gate: role check for workflow creation in a project.

File: src/chaosflow/auth/gate.py

Pure logic. Membership data is supplied by the caller (normally fetched from the
backend) and never mutated here.

Key rule: access is granted only when the caller's membership in the requested
project carries exactly the ``Owner`` or ``Editor`` role. An unknown project, a
missing membership, and any other role are all denials.
"""

from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Final

from chaosflow.constants import EDIT_ROLES
from chaosflow.domain.errors import AuthorizationError
from chaosflow.domain.models import Project, UserDetails

NO_ACCESS_MESSAGE: Final[str] = "User doesn't have edit access to the project"


# ---------------------------------------------------------------------------
# Decision types
# ---------------------------------------------------------------------------


class AccessReason(enum.Enum):
    GRANTED = "granted"
    UNKNOWN_PROJECT = "unknown_project"
    NOT_A_MEMBER = "not_a_member"
    INSUFFICIENT_ROLE = "insufficient_role"


@dataclass(frozen=True, slots=True)
class AccessDecision:
    project_id: str
    user_id: str
    reason: AccessReason
    role: str | None = None

    @property
    def granted(self) -> bool:
        return self.reason is AccessReason.GRANTED


# ---------------------------------------------------------------------------
# Project lookup
# ---------------------------------------------------------------------------


class ProjectDirectory:
    """Project-ID index over the projects reported for a user."""

    def __init__(self, projects: Mapping[str, Project]) -> None:
        self._projects = MappingProxyType(dict(projects))

    @classmethod
    def from_user_details(cls, details: UserDetails) -> ProjectDirectory:
        # Later duplicates replace earlier ones.
        return cls({project.id: project for project in details.projects})

    def get(self, project_id: str) -> Project | None:
        return self._projects.get(project_id)

    def __contains__(self, project_id: object) -> bool:
        return project_id in self._projects

    def __len__(self) -> int:
        return len(self._projects)


# ---------------------------------------------------------------------------
# Gate
# ---------------------------------------------------------------------------


def evaluate_access(details: UserDetails, project_id: str) -> AccessDecision:
    """Decide whether ``details.id`` may create workflows in ``project_id``."""

    project = ProjectDirectory.from_user_details(details).get(project_id)
    if project is None:
        return AccessDecision(project_id, details.id, AccessReason.UNKNOWN_PROJECT)

    role: str | None = None
    for member in project.members:
        if member.user_id != details.id:
            continue
        role = member.role
        if member.role in EDIT_ROLES:
            return AccessDecision(project_id, details.id, AccessReason.GRANTED, member.role)

    if role is None:
        return AccessDecision(project_id, details.id, AccessReason.NOT_A_MEMBER)
    return AccessDecision(project_id, details.id, AccessReason.INSUFFICIENT_ROLE, role)


def is_authorized(details: UserDetails, project_id: str) -> bool:
    return evaluate_access(details, project_id).granted


def require_edit_access(details: UserDetails, project_id: str) -> AccessDecision:
    """Return the granting decision or raise ``AuthorizationError``."""

    decision = evaluate_access(details, project_id)
    if not decision.granted:
        raise AuthorizationError(
            NO_ACCESS_MESSAGE,
            project_id=project_id,
            reason=decision.reason.value,
        )
    return decision


__all__ = [
    "NO_ACCESS_MESSAGE",
    "AccessDecision",
    "AccessReason",
    "ProjectDirectory",
    "evaluate_access",
    "is_authorized",
    "require_edit_access",
]
