"""Manifest loading, experiment extraction, and weight assignment."""

from chaosflow.manifest.extractor import (
    Extracted,
    ExperimentSequence,
    ExtractionOutcome,
    ExtractionReport,
    Malformed,
    Skipped,
    extract_experiments,
    inspect_templates,
)
from chaosflow.manifest.loader import load_manifest, load_manifest_text, serialize_manifest
from chaosflow.manifest.weights import (
    AnnotationWeightPolicy,
    ConstantWeightPolicy,
    WeightPolicy,
    assign_weights,
    policy_from_config,
)

__all__ = [
    "AnnotationWeightPolicy",
    "ConstantWeightPolicy",
    "ExperimentSequence",
    "Extracted",
    "ExtractionOutcome",
    "ExtractionReport",
    "Malformed",
    "Skipped",
    "WeightPolicy",
    "assign_weights",
    "extract_experiments",
    "inspect_templates",
    "load_manifest",
    "load_manifest_text",
    "policy_from_config",
    "serialize_manifest",
]
