"""Data store gateway implementations."""

from dashquery.executor.duckdb_executor import DuckDBGateway

__all__ = ["DuckDBGateway"]
