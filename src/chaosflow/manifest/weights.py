"""Weight assignment policies for extracted chaos experiments."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Protocol

from chaosflow.constants import (
    DEFAULT_WEIGHTAGE,
    MAX_WEIGHTAGE,
    MIN_WEIGHTAGE,
    WEIGHTAGE_ANNOTATION,
)
from chaosflow.domain.models import ExperimentDescriptor, WeightEntry

_LOGGER = logging.getLogger("chaosflow.manifest.weights")

POLICY_CONSTANT = "constant"
POLICY_ANNOTATION = "annotation"
POLICY_NAMES: tuple[str, ...] = (POLICY_CONSTANT, POLICY_ANNOTATION)


class WeightPolicy(Protocol):
    def weight_for(self, descriptor: ExperimentDescriptor) -> int: ...


@dataclass(frozen=True, slots=True)
class ConstantWeightPolicy:
    """Same weight for every experiment."""

    weight: int = DEFAULT_WEIGHTAGE

    def weight_for(self, descriptor: ExperimentDescriptor) -> int:
        return self.weight


@dataclass(frozen=True, slots=True)
class AnnotationWeightPolicy:
    """Read the weight from an experiment annotation, falling back when absent or invalid."""

    annotation_key: str = WEIGHTAGE_ANNOTATION
    fallback: WeightPolicy = field(default_factory=ConstantWeightPolicy)

    def weight_for(self, descriptor: ExperimentDescriptor) -> int:
        raw = descriptor.annotation(self.annotation_key)
        if raw is None:
            return self.fallback.weight_for(descriptor)
        try:
            value = int(raw.strip())
        except ValueError:
            value = None
        if value is None or not MIN_WEIGHTAGE <= value <= MAX_WEIGHTAGE:
            _LOGGER.warning(
                "ignoring invalid weight annotation on %s",
                descriptor.name,
                extra={"annotation_key": self.annotation_key, "annotation_value": raw},
            )
            return self.fallback.weight_for(descriptor)
        return value


def assign_weights(
    descriptors: Iterable[ExperimentDescriptor],
    policy: WeightPolicy | None = None,
) -> tuple[WeightEntry, ...]:
    """Map descriptors to weight entries in order. Repeated names are kept."""

    active = policy if policy is not None else ConstantWeightPolicy()
    return tuple(
        WeightEntry(experiment_name=descriptor.name, weightage=active.weight_for(descriptor))
        for descriptor in descriptors
    )


def policy_from_config(config: Mapping[str, object]) -> WeightPolicy:
    """Build the policy selected by the ``[weights]`` config section."""

    section = config.get("weights")
    weights = section if isinstance(section, Mapping) else {}

    default = weights.get("default", DEFAULT_WEIGHTAGE)
    constant = ConstantWeightPolicy(default if isinstance(default, int) else DEFAULT_WEIGHTAGE)

    name = weights.get("policy", POLICY_CONSTANT)
    if name == POLICY_CONSTANT:
        return constant
    if name == POLICY_ANNOTATION:
        key = weights.get("annotation_key", WEIGHTAGE_ANNOTATION)
        return AnnotationWeightPolicy(
            annotation_key=key if isinstance(key, str) and key else WEIGHTAGE_ANNOTATION,
            fallback=constant,
        )
    raise ValueError(f"unknown weight policy {name!r}; expected one of {', '.join(POLICY_NAMES)}")


__all__ = [
    "POLICY_ANNOTATION",
    "POLICY_CONSTANT",
    "POLICY_NAMES",
    "AnnotationWeightPolicy",
    "ConstantWeightPolicy",
    "WeightPolicy",
    "assign_weights",
    "policy_from_config",
]
