"""
chaosflow — submission pipeline.

File: src/chaosflow/submission/pipeline.py

Purpose
- Run one submission end to end: load the manifest, extract experiments, assign
  weights, build the payload, check authorization, then hand the payload to the
  backend.

Functional requirements
- Identifiers arrive already resolved; no prompting happens here.
- Input and authorization failures halt before the submission call.
- Membership-fetch failures halt before authorization is evaluated.
- Malformed artifacts are absorbed by extraction and only counted.

Non-functional requirements
- Single-threaded and stateless between calls; ``prepare`` performs no network IO.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from chaosflow.auth.gate import AccessDecision, require_edit_access
from chaosflow.domain.errors import InputError
from chaosflow.domain.models import SubmissionPayload, UserDetails, WorkflowCreated, WorkflowDocument
from chaosflow.manifest.extractor import ExtractionReport, extract_experiments
from chaosflow.manifest.loader import load_manifest, serialize_manifest
from chaosflow.manifest.weights import WeightPolicy, assign_weights
from chaosflow.observability.logging import correlation_scope
from chaosflow.submission.builder import build_submission_payload

_LOGGER = logging.getLogger("chaosflow.submission")

FetchUserDetails = Callable[[], UserDetails]
SubmitPayload = Callable[[SubmissionPayload], WorkflowCreated]


@dataclass(frozen=True, slots=True)
class SubmissionRequest:
    manifest_path: str | Path
    project_id: str
    cluster_id: str


@dataclass(frozen=True, slots=True)
class PreparedSubmission:
    document: WorkflowDocument
    payload: SubmissionPayload
    report: ExtractionReport


@dataclass(frozen=True, slots=True)
class SubmissionResult:
    prepared: PreparedSubmission
    decision: AccessDecision
    created: WorkflowCreated | None

    @property
    def submitted(self) -> bool:
        return self.created is not None


class WorkflowSubmitter:
    """Coordinates loader, extractor, weights, gate, and backend for one invocation."""

    def __init__(
        self,
        *,
        fetch_user_details: FetchUserDetails,
        submit: SubmitPayload,
        weight_policy: WeightPolicy | None = None,
        scan_all_artifacts: bool = False,
    ) -> None:
        self._fetch_user_details = fetch_user_details
        self._submit = submit
        self._weight_policy = weight_policy
        self._scan_all_artifacts = scan_all_artifacts

    def prepare(self, request: SubmissionRequest) -> PreparedSubmission:
        _require_identifiers(request)
        document = load_manifest(request.manifest_path)
        experiments = extract_experiments(document, scan_all_artifacts=self._scan_all_artifacts)
        weightages = assign_weights(experiments, self._weight_policy)
        payload = build_submission_payload(
            document,
            serialize_manifest(document),
            weightages,
            project_id=request.project_id,
            cluster_id=request.cluster_id,
        )
        report = experiments.report()
        _LOGGER.info(
            "prepared workflow %s",
            document.name,
            extra={
                "experiments": report.extracted,
                "skipped_artifacts": report.skipped,
                "malformed_artifacts": report.malformed,
            },
        )
        return PreparedSubmission(document=document, payload=payload, report=report)

    def authorize(self, project_id: str) -> AccessDecision:
        details = self._fetch_user_details()
        decision = require_edit_access(details, project_id)
        _LOGGER.info("access granted", extra={"role": decision.role})
        return decision

    def run(self, request: SubmissionRequest, *, dry_run: bool = False) -> SubmissionResult:
        with correlation_scope(project_id=request.project_id, cluster_id=request.cluster_id):
            prepared = self.prepare(request)
            decision = self.authorize(request.project_id)
            if dry_run:
                _LOGGER.info("dry run; workflow not submitted")
                return SubmissionResult(prepared=prepared, decision=decision, created=None)
            created = self._submit(prepared.payload)
            _LOGGER.info(
                "workflow submitted",
                extra={"workflow_id": created.workflow_id, "workflow_name": created.workflow_name},
            )
            return SubmissionResult(prepared=prepared, decision=decision, created=created)


def _require_identifiers(request: SubmissionRequest) -> None:
    if not request.project_id or not request.project_id.strip():
        raise InputError("Project ID can't be empty")
    if not request.cluster_id or not request.cluster_id.strip():
        raise InputError("Cluster ID can't be empty")


__all__ = [
    "FetchUserDetails",
    "PreparedSubmission",
    "SubmissionRequest",
    "SubmissionResult",
    "SubmitPayload",
    "WorkflowSubmitter",
]
