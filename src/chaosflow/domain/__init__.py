"""
chaosflow — domain layer

File: src/chaosflow/domain/__init__.py

Purpose
- Domain types shared across components: manifest graph, experiment descriptors,
  weights, project membership, submission payload, and the error taxonomy.
- Free of IO side effects.
"""

from chaosflow.domain.errors import (
    AuthenticationError,
    AuthorizationError,
    ChaosflowError,
    InputError,
    MalformedArtifactError,
    ManifestLoadError,
    SubmissionRejectedError,
    UpstreamServiceError,
)
from chaosflow.domain.models import (
    EmbeddedArtifact,
    ExperimentDescriptor,
    Project,
    ProjectMember,
    SubmissionPayload,
    Template,
    UserDetails,
    WeightEntry,
    WorkflowCreated,
    WorkflowDocument,
    canonical_json,
)

__all__ = [
    "AuthenticationError",
    "AuthorizationError",
    "ChaosflowError",
    "EmbeddedArtifact",
    "ExperimentDescriptor",
    "InputError",
    "MalformedArtifactError",
    "ManifestLoadError",
    "Project",
    "ProjectMember",
    "SubmissionPayload",
    "SubmissionRejectedError",
    "Template",
    "UpstreamServiceError",
    "UserDetails",
    "WeightEntry",
    "WorkflowCreated",
    "WorkflowDocument",
    "canonical_json",
]
