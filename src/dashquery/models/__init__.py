"""Pydantic models for dashquery."""

from dashquery.models.metric import MetricDefinition, ParameterDeclaration, ParameterType
from dashquery.models.result import (
    MetricResult,
    ResolvedValue,
    RowSet,
    Scalar,
    ScalarKind,
)

__all__ = [
    "MetricDefinition",
    "MetricResult",
    "ParameterDeclaration",
    "ParameterType",
    "ResolvedValue",
    "RowSet",
    "Scalar",
    "ScalarKind",
]
