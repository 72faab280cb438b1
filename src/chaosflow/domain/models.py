"""Dataclass domain models with strict validation and canonical serialization."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import NoReturn

JSONScalar = str | int | float | bool | None
JSONValue = JSONScalar | list["JSONValue"] | dict[str, "JSONValue"]


def _fail(path: str, message: str) -> NoReturn:
    raise ValueError(f"{path}: {message}")


def canonical_json(value: object) -> str:
    """Deterministic compact JSON used for every serialized text this package emits."""

    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def _as_str(value: object, path: str, *, allow_empty: bool = False) -> str:
    # Returned unchanged; whitespace-only counts as empty.
    if not isinstance(value, str):
        _fail(path, f"expected string, got {type(value).__name__}")
    if not value.strip() and not allow_empty:
        _fail(path, "must not be empty")
    return value


def _as_index(value: object, path: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        _fail(path, f"expected integer, got {type(value).__name__}")
    if value < 0:
        _fail(path, "must be >= 0")
    return value


# ---------------------------------------------------------------------------
# Manifest graph
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class EmbeddedArtifact:
    """Raw data blob attached to a template; may or may not be a chaos experiment."""

    name: str
    raw_data: str | None

    def __post_init__(self) -> None:
        if not isinstance(self.name, str):
            _fail("EmbeddedArtifact.name", f"expected string, got {type(self.name).__name__}")
        if self.raw_data is not None and not isinstance(self.raw_data, str):
            _fail("EmbeddedArtifact.raw_data", "expected string or None")


@dataclass(frozen=True, slots=True)
class Template:
    """One node of the workflow graph. Identity is its position in the document."""

    index: int
    name: str
    artifacts: tuple[EmbeddedArtifact, ...] = ()

    def __post_init__(self) -> None:
        _as_index(self.index, "Template.index")
        if not isinstance(self.name, str):
            _fail("Template.name", f"expected string, got {type(self.name).__name__}")
        object.__setattr__(self, "artifacts", tuple(self.artifacts))


@dataclass(frozen=True, slots=True)
class WorkflowDocument:
    """Deserialized manifest. ``manifest`` holds the full document for re-serialization."""

    name: str
    templates: tuple[Template, ...]
    manifest: Mapping[str, object] = field(default_factory=dict, compare=False, repr=False)
    source: str | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "name", _as_str(self.name, "WorkflowDocument.name"))
        object.__setattr__(self, "templates", tuple(self.templates))
        object.__setattr__(self, "manifest", MappingProxyType(dict(self.manifest)))


# ---------------------------------------------------------------------------
# Experiments and weights
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ExperimentDescriptor:
    name: str
    kind: str
    template_index: int = 0
    template_name: str = ""
    annotations: tuple[tuple[str, str], ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "name", _as_str(self.name, "ExperimentDescriptor.name"))
        object.__setattr__(
            self, "kind", _as_str(self.kind, "ExperimentDescriptor.kind", allow_empty=True)
        )
        _as_index(self.template_index, "ExperimentDescriptor.template_index")
        object.__setattr__(self, "annotations", tuple(sorted(self.annotations)))

    def annotation(self, key: str) -> str | None:
        for item_key, value in self.annotations:
            if item_key == key:
                return value
        return None


@dataclass(frozen=True, slots=True)
class WeightEntry:
    experiment_name: str
    weightage: int

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "experiment_name", _as_str(self.experiment_name, "WeightEntry.experiment_name")
        )
        if isinstance(self.weightage, bool) or not isinstance(self.weightage, int):
            _fail("WeightEntry.weightage", f"expected integer, got {type(self.weightage).__name__}")

    def to_dict(self) -> dict[str, JSONValue]:
        return {"experiment_name": self.experiment_name, "weightage": self.weightage}


# ---------------------------------------------------------------------------
# Projects and membership
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ProjectMember:
    user_id: str
    role: str
    username: str = ""


@dataclass(frozen=True, slots=True)
class Project:
    id: str
    name: str = ""
    members: tuple[ProjectMember, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "members", tuple(self.members))


@dataclass(frozen=True, slots=True)
class UserDetails:
    """Caller identity plus every project the backend reports for that caller."""

    id: str
    username: str = ""
    projects: tuple[Project, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "projects", tuple(self.projects))

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> UserDetails:
        if not isinstance(data, Mapping):
            _fail("UserDetails", f"expected object, got {type(data).__name__}")
        raw_projects = data.get("projects") or []
        if not isinstance(raw_projects, list):
            _fail("UserDetails.projects", "expected array")

        projects: list[Project] = []
        for position, raw_project in enumerate(raw_projects):
            path = f"UserDetails.projects[{position}]"
            if not isinstance(raw_project, Mapping):
                _fail(path, "expected object")
            raw_members = raw_project.get("members") or []
            if not isinstance(raw_members, list):
                _fail(f"{path}.members", "expected array")
            members = []
            for member_position, raw_member in enumerate(raw_members):
                member_path = f"{path}.members[{member_position}]"
                if not isinstance(raw_member, Mapping):
                    _fail(member_path, "expected object")
                members.append(
                    ProjectMember(
                        user_id=_as_str(raw_member.get("user_id"), f"{member_path}.user_id"),
                        role=_as_str(
                            raw_member.get("role") or "", f"{member_path}.role", allow_empty=True
                        ),
                        username=str(raw_member.get("user_name") or ""),
                    )
                )
            projects.append(
                Project(
                    id=_as_str(raw_project.get("id"), f"{path}.id"),
                    name=str(raw_project.get("name") or ""),
                    members=tuple(members),
                )
            )

        return cls(
            id=_as_str(data.get("id"), "UserDetails.id"),
            username=str(data.get("username") or ""),
            projects=tuple(projects),
        )


# ---------------------------------------------------------------------------
# Submission
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SubmissionPayload:
    """Final create request. Built once per invocation and never mutated."""

    project_id: str
    cluster_id: str
    workflow_name: str
    workflow_manifest: str
    weightages: tuple[WeightEntry, ...] = ()
    is_custom_workflow: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "project_id", _as_str(self.project_id, "SubmissionPayload.project_id"))
        object.__setattr__(self, "cluster_id", _as_str(self.cluster_id, "SubmissionPayload.cluster_id"))
        object.__setattr__(
            self, "workflow_name", _as_str(self.workflow_name, "SubmissionPayload.workflow_name")
        )
        if not isinstance(self.workflow_manifest, str) or not self.workflow_manifest:
            _fail("SubmissionPayload.workflow_manifest", "must be a non-empty string")
        object.__setattr__(self, "weightages", tuple(self.weightages))
        if self.is_custom_workflow is not True:
            _fail("SubmissionPayload.is_custom_workflow", "workflows submitted here are always custom")

    def to_dict(self) -> dict[str, JSONValue]:
        return {
            "project_id": self.project_id,
            "cluster_id": self.cluster_id,
            "workflow_name": self.workflow_name,
            "workflow_manifest": self.workflow_manifest,
            "weightages": [entry.to_dict() for entry in self.weightages],
            "is_custom_workflow": self.is_custom_workflow,
        }

    def to_json(self) -> str:
        return canonical_json(self.to_dict())

    def to_graphql_input(self) -> dict[str, JSONValue]:
        """Shape expected by the backend's ``ChaosWorkFlowInput`` type."""

        return {
            "workflow_manifest": self.workflow_manifest,
            "cron_syntax": "",
            "workflow_name": self.workflow_name,
            "workflow_description": "",
            "weightages": [entry.to_dict() for entry in self.weightages],
            "isCustomWorkflow": self.is_custom_workflow,
            "project_id": self.project_id,
            "cluster_id": self.cluster_id,
        }


@dataclass(frozen=True, slots=True)
class WorkflowCreated:
    """Backend acknowledgement of a created workflow."""

    workflow_id: str
    workflow_name: str
    cluster_id: str = ""


__all__ = [
    "EmbeddedArtifact",
    "ExperimentDescriptor",
    "JSONScalar",
    "JSONValue",
    "Project",
    "ProjectMember",
    "SubmissionPayload",
    "Template",
    "UserDetails",
    "WeightEntry",
    "WorkflowCreated",
    "WorkflowDocument",
    "canonical_json",
]
