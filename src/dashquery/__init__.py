"""dashquery - configuration-driven metrics query engine."""

from dashquery.catalog import Catalog
from dashquery.engine.orchestrator import MetricEngine
from dashquery.executor.duckdb_executor import DuckDBGateway
from dashquery.store import MetricStore

__version__ = "0.1.0"

__all__ = ["Catalog", "DuckDBGateway", "MetricEngine", "MetricStore"]
