"""Submission payload construction and the end-to-end submission pipeline."""

from chaosflow.submission.builder import build_submission_payload
from chaosflow.submission.pipeline import (
    PreparedSubmission,
    SubmissionRequest,
    SubmissionResult,
    WorkflowSubmitter,
)

__all__ = [
    "PreparedSubmission",
    "SubmissionRequest",
    "SubmissionResult",
    "WorkflowSubmitter",
    "build_submission_payload",
]
