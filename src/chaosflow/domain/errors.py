"""Error taxonomy for manifest preparation, authorization, and submission."""

from __future__ import annotations


def _normalize_detail(value: object) -> str:
    text = str(value).strip()
    return " ".join(text.split()) or "no detail"


class ChaosflowError(RuntimeError):
    """Base error with a stable machine-readable ``code`` and a user-facing ``detail``."""

    code = "error"

    def __init__(self, detail: str) -> None:
        self.detail = _normalize_detail(detail)
        super().__init__(self.detail)


class InputError(ChaosflowError):
    """Required identifiers are missing, or the manifest is unreadable or malformed."""

    code = "input"


class ManifestLoadError(InputError):
    """Raised when a manifest cannot be read or deserialized into a workflow document."""

    code = "manifest_load"

    def __init__(self, detail: str, *, source: str | None = None) -> None:
        self.source = source
        super().__init__(f"{source}: {detail}" if source else detail)


class AuthenticationError(ChaosflowError):
    """Caller credentials are invalid or cannot be obtained."""

    code = "authentication"


class AuthorizationError(ChaosflowError):
    """Caller is authenticated but lacks a role permitting workflow creation."""

    code = "authorization"

    def __init__(
        self,
        detail: str,
        *,
        project_id: str | None = None,
        reason: str | None = None,
    ) -> None:
        self.project_id = project_id
        self.reason = reason
        super().__init__(detail)


class UpstreamServiceError(ChaosflowError):
    """Membership fetch or submission failed at the transport or service layer."""

    code = "upstream"

    def __init__(
        self,
        detail: str,
        *,
        operation: str = "request",
        http_status: int | None = None,
    ) -> None:
        self.operation = operation
        self.http_status = http_status
        parts = [f"operation={operation}"]
        if http_status is not None:
            parts.append(f"http_status={http_status}")
        parts.append(f"detail={_normalize_detail(detail)}")
        super().__init__(" ".join(parts))


class SubmissionRejectedError(UpstreamServiceError):
    """The backend answered the create call with a structured rejection."""

    code = "rejected"

    def __init__(self, messages: tuple[str, ...]) -> None:
        self.messages = tuple(_normalize_detail(item) for item in messages) or ("rejected",)
        super().__init__("; ".join(self.messages), operation="create_workflow")


class MalformedArtifactError(ChaosflowError):
    """An embedded artifact could not be decoded as a chaos experiment.

    Always absorbed by the extractor; carried inside a ``Malformed`` outcome.
    """

    code = "malformed_artifact"

    def __init__(
        self,
        detail: str,
        *,
        template_index: int,
        template_name: str = "",
        artifact_index: int = 0,
    ) -> None:
        self.template_index = template_index
        self.template_name = template_name
        self.artifact_index = artifact_index
        label = template_name or f"#{template_index}"
        super().__init__(f"template {label} artifact {artifact_index}: {detail}")


__all__ = [
    "AuthenticationError",
    "AuthorizationError",
    "ChaosflowError",
    "InputError",
    "MalformedArtifactError",
    "ManifestLoadError",
    "SubmissionRejectedError",
    "UpstreamServiceError",
]
