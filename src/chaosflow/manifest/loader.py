"""
chaosflow — workflow manifest loader.

File: src/chaosflow/manifest/loader.py

Purpose
- Read a workflow manifest (YAML or JSON text) and deserialize it into a
  ``WorkflowDocument`` whose template graph is structurally valid.
- Re-serialize the full manifest into the canonical text sent to the backend.

Functional requirements
- Malformed input is a load-time failure (``ManifestLoadError``), never a
  zero-valued document.
- Artifact payloads are kept as opaque text; decoding them is the extractor's job.

Non-functional requirements
- Same input gives byte-identical serialized output.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from pathlib import Path
from typing import cast

import yaml

from chaosflow.constants import WORKFLOW_KIND
from chaosflow.domain.errors import ManifestLoadError
from chaosflow.domain.models import (
    EmbeddedArtifact,
    Template,
    WorkflowDocument,
    canonical_json,
)


def load_manifest(path: str | Path) -> WorkflowDocument:
    """Load a workflow manifest from ``path``."""

    source = Path(path).expanduser()
    try:
        text = source.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise ManifestLoadError("manifest file not found", source=str(source)) from exc
    except IsADirectoryError as exc:
        raise ManifestLoadError("manifest path is a directory", source=str(source)) from exc
    except UnicodeDecodeError as exc:
        raise ManifestLoadError(f"manifest is not valid UTF-8 ({exc})", source=str(source)) from exc
    except OSError as exc:
        raise ManifestLoadError(f"unable to read manifest ({exc})", source=str(source)) from exc

    return load_manifest_text(text, source=str(source))


def load_manifest_text(text: str, *, source: str | None = None) -> WorkflowDocument:
    """Deserialize manifest ``text`` into a validated ``WorkflowDocument``."""

    try:
        loaded = cast("object", yaml.safe_load(text))
    except yaml.YAMLError as exc:
        raise ManifestLoadError(f"invalid YAML ({exc})", source=source) from exc

    if loaded is None:
        raise ManifestLoadError("manifest is empty", source=source)
    if not isinstance(loaded, Mapping):
        raise ManifestLoadError(
            f"expected a mapping at the document root, got {type(loaded).__name__}",
            source=source,
        )
    manifest = _string_keyed(loaded, "<root>", source)

    kind = manifest.get("kind")
    if kind is not None and kind != WORKFLOW_KIND:
        raise ManifestLoadError(f"expected kind {WORKFLOW_KIND!r}, got {kind!r}", source=source)

    metadata = manifest.get("metadata")
    if not isinstance(metadata, Mapping):
        raise ManifestLoadError("metadata must be a mapping", source=source)
    name = metadata.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ManifestLoadError("metadata.name must be a non-empty string", source=source)

    spec = manifest.get("spec")
    if not isinstance(spec, Mapping):
        raise ManifestLoadError("spec must be a mapping", source=source)
    raw_templates = spec.get("templates")
    if not isinstance(raw_templates, list):
        raise ManifestLoadError("spec.templates must be a list", source=source)

    templates = tuple(
        _parse_template(index, raw, source) for index, raw in enumerate(raw_templates)
    )
    try:
        return WorkflowDocument(
            name=name,
            templates=templates,
            manifest=copy.deepcopy(manifest),
            source=source,
        )
    except ValueError as exc:
        raise ManifestLoadError(str(exc), source=source) from exc


def serialize_manifest(document: WorkflowDocument) -> str:
    """Return the canonical JSON text of the full manifest."""

    return canonical_json(_plain(document.manifest))


def _parse_template(index: int, raw: object, source: str | None) -> Template:
    location = f"spec.templates[{index}]"
    if not isinstance(raw, Mapping):
        raise ManifestLoadError(f"{location} must be a mapping", source=source)

    name = raw.get("name", "")
    if not isinstance(name, str):
        raise ManifestLoadError(f"{location}.name must be a string", source=source)

    inputs = raw.get("inputs")
    if inputs is None:
        return Template(index=index, name=name)
    if not isinstance(inputs, Mapping):
        raise ManifestLoadError(f"{location}.inputs must be a mapping", source=source)

    raw_artifacts = inputs.get("artifacts")
    if raw_artifacts is None:
        return Template(index=index, name=name)
    if not isinstance(raw_artifacts, list):
        raise ManifestLoadError(f"{location}.inputs.artifacts must be a list", source=source)

    artifacts: list[EmbeddedArtifact] = []
    for position, raw_artifact in enumerate(raw_artifacts):
        artifact_location = f"{location}.inputs.artifacts[{position}]"
        if not isinstance(raw_artifact, Mapping):
            raise ManifestLoadError(f"{artifact_location} must be a mapping", source=source)
        artifact_name = raw_artifact.get("name", "")
        if not isinstance(artifact_name, str):
            raise ManifestLoadError(f"{artifact_location}.name must be a string", source=source)
        artifacts.append(
            EmbeddedArtifact(name=artifact_name, raw_data=_raw_data(raw_artifact.get("raw")))
        )

    return Template(index=index, name=name, artifacts=tuple(artifacts))


def _raw_data(raw: object) -> str | None:
    if not isinstance(raw, Mapping):
        return None
    data = raw.get("data")
    return data if isinstance(data, str) else None


def _string_keyed(value: Mapping[object, object], location: str, source: str | None) -> dict[str, object]:
    parsed: dict[str, object] = {}
    for key, item in value.items():
        if not isinstance(key, str):
            raise ManifestLoadError(f"{location}: non-string key {key!r}", source=source)
        parsed[key] = item
    return parsed


def _plain(value: object) -> object:
    # yaml.safe_load may produce dates and other scalars json cannot encode.
    if isinstance(value, Mapping):
        return {str(key): _plain(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return str(value)


__all__ = ["load_manifest", "load_manifest_text", "serialize_manifest"]
