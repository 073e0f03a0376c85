"""YAML manifest loader for dashquery.

turns metric manifests into MetricDefinition objects. syntax-level checks
(non-empty names, known parameter types...) happen here through the pydantic
models; set-level checks (empty, duplicate names) belong to the Catalog.

a manifest looks like:

    metrics:
      - name: rows_by_id
        query: SELECT v FROM t WHERE id = ?
        multi_row: true
        params:
          - name: id
            type: int
            required: true
"""

from pathlib import Path
from typing import Any

import sqlglot
import yaml
from pydantic import ValidationError
from sqlglot import exp
from sqlglot.errors import SqlglotError

from dashquery.catalog import Catalog
from dashquery.errors import ConfigError
from dashquery.models.metric import MetricDefinition


def load_file(path: Path) -> list[MetricDefinition]:
    """Parse a single YAML manifest.

    empty files are silently ignored which is handy for templates.
    """
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise ConfigError(f"failed to parse config file {path}: {exc}") from exc

    if data is None:
        return []  # empty file, no big deal
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: expected a mapping with a 'metrics' key")

    entries = data.get("metrics") or []
    if not isinstance(entries, list):
        raise ConfigError(f"{path}: 'metrics' must be a list")

    definitions = []
    for index, entry in enumerate(entries):
        definitions.append(_parse_metric(path, index, entry))
    return definitions


def _parse_metric(path: Path, index: int, entry: Any) -> MetricDefinition:
    """Validate one manifest entry.

    the error message names the file and the metric (or its position when
    the name itself is what's broken) - pydantic's raw errors alone are hard
    to trace back to a yaml file.
    """
    label = f"#{index}"
    if isinstance(entry, dict) and entry.get("name"):
        label = repr(entry["name"])
    try:
        return MetricDefinition.model_validate(entry)
    except ValidationError as exc:
        raise ConfigError(f"{path}: invalid metric {label}: {exc}") from exc


def load_metrics(path: str | Path) -> list[MetricDefinition]:
    """Load metric definitions from a file or a directory of YAML files.

    directories are searched recursively. files are read in sorted order so
    the resulting list is deterministic.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Metrics config not found: {path}")

    if path.is_file():
        return load_file(path)

    # support both .yaml and .yml - people have opinions about this
    yaml_files = sorted(list(path.glob("**/*.yaml")) + list(path.glob("**/*.yml")))
    if not yaml_files:
        raise ConfigError(f"No YAML files found in {path}")

    definitions: list[MetricDefinition] = []
    for yaml_file in yaml_files:
        definitions.extend(load_file(yaml_file))
    return definitions


def load_catalog(path: str | Path) -> Catalog:
    """Load definitions and build a validated Catalog from them."""
    return Catalog(load_metrics(path))


def count_placeholders(query: str) -> int:
    """Count positional `?` placeholders in a query.

    uses sqlglot rather than counting characters so question marks inside
    string literals or comments don't get counted.
    """
    tree = sqlglot.parse_one(query, read="duckdb")
    if tree is None:
        return 0
    return sum(1 for _ in tree.find_all(exp.Placeholder))


def lint_definition(definition: MetricDefinition) -> list[str]:
    """Static checks for a metric query. Returns a list of problems.

    none of these are enforced at load time - a bad query only fails when it
    runs. this is what `dq validate` uses to catch them earlier.
    """
    try:
        placeholders = count_placeholders(definition.query)
    except SqlglotError as exc:
        return [f"Metric '{definition.name}': query does not parse: {exc}"]

    problems = []
    declared = len(definition.parameters)
    if placeholders != declared:
        problems.append(
            f"Metric '{definition.name}': query has {placeholders} placeholder(s) "
            f"but {declared} parameter(s) are declared"
        )
    return problems
