"""Metric manifest parsing."""

from dashquery.parser.loader import lint_definition, load_catalog, load_metrics

__all__ = ["lint_definition", "load_catalog", "load_metrics"]
