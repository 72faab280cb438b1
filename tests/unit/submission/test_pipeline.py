"""
chaosflow — unit tests for the submission pipeline

File: tests/unit/submission/test_pipeline.py

Purpose
- Validate the load -> extract -> weight -> authorize -> submit ordering.
- Validate that denials and input failures never reach the submit call.
- Validate that preparation is idempotent for identical inputs.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest
import yaml

from chaosflow.domain.errors import (
    AuthorizationError,
    InputError,
    ManifestLoadError,
    UpstreamServiceError,
)
from chaosflow.domain.models import (
    Project,
    ProjectMember,
    SubmissionPayload,
    UserDetails,
    WorkflowCreated,
)
from chaosflow.manifest.weights import AnnotationWeightPolicy
from chaosflow.submission.pipeline import SubmissionRequest, WorkflowSubmitter

EXPERIMENT = "kind: ChaosExperiment\nmetadata:\n  name: pod-delete\n"
ENGINE = "kind: ChaosEngine\nmetadata:\n  name: pod-delete-engine\n"


def _write_manifest(path: Path, *artifact_data: str | None) -> Path:
    templates: list[dict[str, object]] = [{"name": "install", "container": {"image": "busybox"}}]
    for position, data in enumerate(artifact_data):
        artifact: dict[str, object] = {"name": f"artifact-{position}", "path": "/tmp/chaos.yaml"}
        if data is not None:
            artifact["raw"] = {"data": data}
        templates.append({"name": f"step-{position}", "inputs": {"artifacts": [artifact]}})
    manifest = {
        "apiVersion": "argoproj.io/v1alpha1",
        "kind": "Workflow",
        "metadata": {"name": "podtato-chaos"},
        "spec": {"entrypoint": "install", "templates": templates},
    }
    path.write_text(yaml.safe_dump(manifest, sort_keys=False), encoding="utf-8")
    return path


def _details(role: str = "Owner") -> UserDetails:
    return UserDetails(
        id="userA",
        projects=(Project(id="P", members=(ProjectMember(user_id="userA", role=role),)),),
    )


class _Recorder:
    def __init__(self, role: str = "Owner") -> None:
        self.role = role
        self.calls: list[str] = []
        self.submitted: list[SubmissionPayload] = []

    def fetch(self) -> UserDetails:
        self.calls.append("fetch")
        return _details(self.role)

    def submit(self, payload: SubmissionPayload) -> WorkflowCreated:
        self.calls.append("submit")
        self.submitted.append(payload)
        return WorkflowCreated(workflow_id="wf-1", workflow_name=payload.workflow_name)

    def submitter(self, **kwargs: object) -> WorkflowSubmitter:
        return WorkflowSubmitter(fetch_user_details=self.fetch, submit=self.submit, **kwargs)


def _request(path: Path, project_id: str = "P", cluster_id: str = "C") -> SubmissionRequest:
    return SubmissionRequest(manifest_path=path, project_id=project_id, cluster_id=cluster_id)


def test_run_submits_payload_with_extracted_weights(tmp_path: Path) -> None:
    manifest = _write_manifest(tmp_path / "wf.yaml", EXPERIMENT, ENGINE)
    recorder = _Recorder()

    result = recorder.submitter().run(_request(manifest))

    assert recorder.calls == ["fetch", "submit"]
    assert result.submitted
    assert result.created == WorkflowCreated(workflow_id="wf-1", workflow_name="podtato-chaos")
    payload = recorder.submitted[0]
    assert payload.project_id == "P"
    assert payload.cluster_id == "C"
    assert payload.workflow_name == "podtato-chaos"
    assert payload.is_custom_workflow is True
    assert [entry.to_dict() for entry in payload.weightages] == [
        {"experiment_name": "pod-delete", "weightage": 10}
    ]
    assert json.loads(payload.workflow_manifest)["metadata"]["name"] == "podtato-chaos"
    assert (result.prepared.report.extracted, result.prepared.report.skipped) == (1, 1)


def test_manifest_without_experiments_submits_empty_weights(tmp_path: Path) -> None:
    manifest = _write_manifest(tmp_path / "wf.yaml")
    recorder = _Recorder()

    recorder.submitter().run(_request(manifest))

    assert recorder.submitted[0].weightages == ()


def test_malformed_artifact_is_counted_not_fatal(tmp_path: Path) -> None:
    manifest = _write_manifest(tmp_path / "wf.yaml", "kind: [unclosed", EXPERIMENT)
    recorder = _Recorder()

    result = recorder.submitter().run(_request(manifest))

    assert result.prepared.report.malformed == 1
    assert [entry.experiment_name for entry in recorder.submitted[0].weightages] == ["pod-delete"]


def test_denied_caller_never_submits(tmp_path: Path) -> None:
    manifest = _write_manifest(tmp_path / "wf.yaml", EXPERIMENT)
    recorder = _Recorder(role="Viewer")

    with pytest.raises(AuthorizationError):
        recorder.submitter().run(_request(manifest))

    assert recorder.calls == ["fetch"]


def test_unknown_project_never_submits(tmp_path: Path) -> None:
    manifest = _write_manifest(tmp_path / "wf.yaml", EXPERIMENT)
    recorder = _Recorder()

    with pytest.raises(AuthorizationError):
        recorder.submitter().run(_request(manifest, project_id="Q"))

    assert "submit" not in recorder.calls


@pytest.mark.parametrize(
    ("project_id", "cluster_id", "message"),
    [("", "C", "Project ID can't be empty"), ("P", "  ", "Cluster ID can't be empty")],
)
def test_empty_identifiers_fail_before_any_call(
    tmp_path: Path, project_id: str, cluster_id: str, message: str
) -> None:
    manifest = _write_manifest(tmp_path / "wf.yaml", EXPERIMENT)
    recorder = _Recorder()

    with pytest.raises(InputError, match=message):
        recorder.submitter().run(_request(manifest, project_id=project_id, cluster_id=cluster_id))

    assert recorder.calls == []


def test_unreadable_manifest_fails_before_any_call(tmp_path: Path) -> None:
    recorder = _Recorder()

    with pytest.raises(ManifestLoadError):
        recorder.submitter().run(_request(tmp_path / "missing.yaml"))

    assert recorder.calls == []


def test_membership_fetch_failure_halts(tmp_path: Path) -> None:
    manifest = _write_manifest(tmp_path / "wf.yaml", EXPERIMENT)
    submitted: list[SubmissionPayload] = []

    def fetch() -> UserDetails:
        raise UpstreamServiceError("connection refused", operation="get_user")

    def submit(payload: SubmissionPayload) -> WorkflowCreated:
        submitted.append(payload)
        return WorkflowCreated(workflow_id="x", workflow_name="x")

    with pytest.raises(UpstreamServiceError):
        WorkflowSubmitter(fetch_user_details=fetch, submit=submit).run(_request(manifest))

    assert submitted == []


def test_dry_run_authorizes_without_submitting(tmp_path: Path) -> None:
    manifest = _write_manifest(tmp_path / "wf.yaml", EXPERIMENT)
    recorder = _Recorder()

    result = recorder.submitter().run(_request(manifest), dry_run=True)

    assert recorder.calls == ["fetch"]
    assert not result.submitted
    assert result.decision.granted


def test_prepare_is_idempotent(tmp_path: Path) -> None:
    manifest = _write_manifest(tmp_path / "wf.yaml", EXPERIMENT, None, ENGINE)
    submitter = _Recorder().submitter()

    first = submitter.prepare(_request(manifest))
    second = submitter.prepare(_request(manifest))

    assert first.payload == second.payload
    assert first.payload.to_json() == second.payload.to_json()


def test_weight_policy_is_applied(tmp_path: Path) -> None:
    annotated = (
        "kind: ChaosExperiment\n"
        "metadata:\n"
        "  name: cpu-hog\n"
        "  annotations:\n"
        "    litmuschaos.io/weightage: '30'\n"
    )
    manifest = _write_manifest(tmp_path / "wf.yaml", annotated, EXPERIMENT)
    recorder = _Recorder()

    recorder.submitter(weight_policy=AnnotationWeightPolicy()).run(_request(manifest))

    assert [(e.experiment_name, e.weightage) for e in recorder.submitted[0].weightages] == [
        ("cpu-hog", 30),
        ("pod-delete", 10),
    ]
