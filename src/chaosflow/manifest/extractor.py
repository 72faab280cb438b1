"""Chaos experiment extraction from workflow template artifacts.

Every inspected artifact produces exactly one tagged outcome:

- ``Extracted``: decoded to a document whose kind is not the engine kind.
- ``Skipped``: intentionally not an experiment (engine spec, no inline data).
- ``Malformed``: could not be decoded as an experiment document.

Only ``Extracted`` outcomes become ``ExperimentDescriptor`` values. Malformed
artifacts are logged and absorbed; they never abort a submission.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import cast

import yaml

from chaosflow.constants import ENGINE_KIND
from chaosflow.domain.errors import MalformedArtifactError
from chaosflow.domain.models import (
    EmbeddedArtifact,
    ExperimentDescriptor,
    Template,
    WorkflowDocument,
)

_LOGGER = logging.getLogger("chaosflow.manifest.extractor")

SKIP_ENGINE = "engine_kind"
SKIP_NO_INLINE_DATA = "no_inline_data"


@dataclass(frozen=True, slots=True)
class Extracted:
    descriptor: ExperimentDescriptor


@dataclass(frozen=True, slots=True)
class Skipped:
    template_index: int
    template_name: str
    reason: str


@dataclass(frozen=True, slots=True)
class Malformed:
    error: MalformedArtifactError


ExtractionOutcome = Extracted | Skipped | Malformed


@dataclass(frozen=True, slots=True)
class ExtractionReport:
    extracted: int = 0
    skipped: int = 0
    malformed: int = 0

    @property
    def inspected(self) -> int:
        return self.extracted + self.skipped + self.malformed


def inspect_templates(
    document: WorkflowDocument,
    *,
    scan_all_artifacts: bool = False,
) -> Iterator[ExtractionOutcome]:
    """Yield one outcome per inspected artifact, in template order.

    Templates without artifacts contribute nothing. Unless ``scan_all_artifacts``
    is set, only the first artifact of each template is inspected.
    """

    for template in document.templates:
        artifacts = template.artifacts if scan_all_artifacts else template.artifacts[:1]
        for position, artifact in enumerate(artifacts):
            yield classify_artifact(template, artifact, artifact_index=position)


def classify_artifact(
    template: Template,
    artifact: EmbeddedArtifact,
    *,
    artifact_index: int = 0,
) -> ExtractionOutcome:
    if artifact.raw_data is None:
        return Skipped(template.index, template.name, SKIP_NO_INLINE_DATA)

    def malformed(detail: str) -> Malformed:
        return Malformed(
            MalformedArtifactError(
                detail,
                template_index=template.index,
                template_name=template.name,
                artifact_index=artifact_index,
            )
        )

    try:
        decoded = cast("object", yaml.safe_load(artifact.raw_data))
    except yaml.YAMLError as exc:
        return malformed(f"invalid YAML ({exc})")

    if not isinstance(decoded, Mapping):
        return malformed(f"expected a mapping, got {type(decoded).__name__}")

    # Anything that is not the engine kind counts as an experiment, including
    # documents with no kind at all.
    kind = decoded.get("kind")
    if kind == ENGINE_KIND:
        return Skipped(template.index, template.name, SKIP_ENGINE)
    if kind is None:
        kind = ""
    elif isinstance(kind, (Mapping, list)):
        return malformed(f"kind must be a scalar, got {type(kind).__name__}")

    metadata = decoded.get("metadata")
    if not isinstance(metadata, Mapping):
        return malformed("metadata must be a mapping")
    name = metadata.get("name")
    if not isinstance(name, str) or not name.strip():
        return malformed("metadata.name must be a non-empty string")

    try:
        descriptor = ExperimentDescriptor(
            name=name,
            kind=str(kind),
            template_index=template.index,
            template_name=template.name,
            annotations=_annotations(metadata.get("annotations")),
        )
    except ValueError as exc:
        return malformed(str(exc))
    return Extracted(descriptor)


class ExperimentSequence:
    """Lazy, finite, restartable view of the experiments embedded in a document.

    Each iteration re-walks the templates, so the sequence can be consumed more
    than once with identical results.
    """

    def __init__(self, document: WorkflowDocument, *, scan_all_artifacts: bool = False) -> None:
        self._document = document
        self._scan_all_artifacts = scan_all_artifacts

    @property
    def document(self) -> WorkflowDocument:
        return self._document

    def outcomes(self) -> Iterator[ExtractionOutcome]:
        return inspect_templates(self._document, scan_all_artifacts=self._scan_all_artifacts)

    def __iter__(self) -> Iterator[ExperimentDescriptor]:
        for outcome in self.outcomes():
            if isinstance(outcome, Extracted):
                yield outcome.descriptor
            elif isinstance(outcome, Malformed):
                error = outcome.error
                _LOGGER.warning(
                    "skipping malformed artifact: %s",
                    error.detail,
                    extra={
                        "template_index": error.template_index,
                        "template_name": error.template_name,
                        "artifact_index": error.artifact_index,
                    },
                )

    def report(self) -> ExtractionReport:
        extracted = skipped = malformed = 0
        for outcome in self.outcomes():
            if isinstance(outcome, Extracted):
                extracted += 1
            elif isinstance(outcome, Skipped):
                skipped += 1
            else:
                malformed += 1
        return ExtractionReport(extracted=extracted, skipped=skipped, malformed=malformed)


def extract_experiments(
    document: WorkflowDocument,
    *,
    scan_all_artifacts: bool = False,
) -> ExperimentSequence:
    return ExperimentSequence(document, scan_all_artifacts=scan_all_artifacts)


def _annotations(value: object) -> tuple[tuple[str, str], ...]:
    if not isinstance(value, Mapping):
        return ()
    return tuple(
        (key, str(item))
        for key, item in value.items()
        if isinstance(key, str) and item is not None
    )


__all__ = [
    "SKIP_ENGINE",
    "SKIP_NO_INLINE_DATA",
    "Extracted",
    "ExperimentSequence",
    "ExtractionOutcome",
    "ExtractionReport",
    "Malformed",
    "Skipped",
    "classify_artifact",
    "extract_experiments",
    "inspect_templates",
]
