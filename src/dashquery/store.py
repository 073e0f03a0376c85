"""Main MetricStore interface for dashquery."""

import asyncio
from collections.abc import Mapping
from pathlib import Path

from dashquery.catalog import Catalog
from dashquery.engine.orchestrator import MetricEngine
from dashquery.executor.duckdb_executor import (
    DEFAULT_MAX_IDLE,
    DEFAULT_MAX_OPEN,
    DuckDBGateway,
)
from dashquery.models.result import MetricResult
from dashquery.parser.loader import lint_definition, load_metrics


class MetricStore:
    """Wires manifest -> catalog -> gateway -> engine.

    the synchronous methods are for scripts and the cli; the http layer talks
    to `store.engine` directly since it already runs inside an event loop.
    """

    def __init__(
        self,
        metrics_path: str | Path,
        database_path: str | None = None,
        max_open: int = DEFAULT_MAX_OPEN,
        max_idle: int = DEFAULT_MAX_IDLE,
    ) -> None:
        """Initialize the metric store.

        Args:
            metrics_path: YAML manifest, or a directory of them.
            database_path: Path to DuckDB file, or None for in-memory.
            max_open: Ceiling on concurrently executing queries.
            max_idle: Idle cursors kept for reuse.
        """
        self.metrics_path = Path(metrics_path)
        # load and validate metrics upfront - fail fast if there are problems
        self.catalog = Catalog(load_metrics(self.metrics_path))
        self.gateway = DuckDBGateway(database_path, max_open=max_open, max_idle=max_idle)
        self.engine = MetricEngine(self.catalog, self.gateway)

    def query(
        self,
        metrics: list[str],
        params: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> list[MetricResult]:
        """Resolve metrics and block until they're done.

        Args:
            metrics: Metric names, in the order results should come back.
            params: Raw parameter values shared by all metrics.
            timeout: Optional limit in seconds for the whole batch.
        """
        return asyncio.run(self.engine.resolve_many(metrics, params or {}, timeout=timeout))

    def list_metrics(self) -> list[dict]:
        """List all available metrics, sorted by name."""
        return [
            {
                "name": m.name,
                "shape": "rows" if m.tabular else "scalar",
                "parameters": [
                    {"name": p.name, "type": p.type.value, "required": p.required}
                    for p in m.parameters
                ],
            }
            for m in sorted(self.catalog.definitions(), key=lambda m: m.name)
        ]

    def validate(self) -> list[str]:
        """Lint every metric query. Returns list of problems."""
        errors = []
        for definition in self.catalog.definitions():
            errors.extend(lint_definition(definition))
        return errors

    def close(self) -> None:
        """Close database connection."""
        self.gateway.close()

    def __enter__(self) -> "MetricStore":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
