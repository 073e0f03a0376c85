"""Query orchestration engine."""

from dashquery.engine.orchestrator import Gateway, MetricEngine
from dashquery.engine.params import convert_parameters, convert_value

__all__ = ["Gateway", "MetricEngine", "convert_parameters", "convert_value"]
