"""Submission request construction."""

from __future__ import annotations

from collections.abc import Iterable

from chaosflow.domain.errors import InputError
from chaosflow.domain.models import SubmissionPayload, WeightEntry, WorkflowDocument


def build_submission_payload(
    document: WorkflowDocument,
    manifest_text: str,
    weightages: Iterable[WeightEntry],
    *,
    project_id: str,
    cluster_id: str,
) -> SubmissionPayload:
    """Combine a loaded manifest, its weights, and target identifiers into one payload.

    The workflow name always comes from the manifest's own metadata, and the
    workflow is always marked as custom-authored.
    """

    if not project_id or not project_id.strip():
        raise InputError("Project ID can't be empty")
    if not cluster_id or not cluster_id.strip():
        raise InputError("Cluster ID can't be empty")

    return SubmissionPayload(
        project_id=project_id,
        cluster_id=cluster_id,
        workflow_name=document.name,
        workflow_manifest=manifest_text,
        weightages=tuple(weightages),
        is_custom_workflow=True,
    )


__all__ = ["build_submission_payload"]
