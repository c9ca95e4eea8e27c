"""Ontology Kernel data models."""

from ontology_kernel.models.causality import CausalRelation, CauseType
from ontology_kernel.models.config import EngineConfig
from ontology_kernel.models.ontology import Attribute, DataType, Kind, Mode, Substance
from ontology_kernel.models.transition import (
    Actuality,
    Condition,
    ConditionType,
    Potentiality,
    PotentialityStatus,
    ReadinessReport,
    ScalarValue,
    SubstanceEvolution,
)

__all__ = [
    "Actuality",
    "Attribute",
    "CausalRelation",
    "CauseType",
    "Condition",
    "ConditionType",
    "DataType",
    "EngineConfig",
    "Kind",
    "Mode",
    "Potentiality",
    "PotentialityStatus",
    "ReadinessReport",
    "ScalarValue",
    "Substance",
    "SubstanceEvolution",
]
