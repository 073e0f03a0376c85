"""CLI for dashquery."""

import json
from pathlib import Path
from typing import Annotated

import sqlglot
import typer
import uvicorn
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table
from sqlglot.errors import SqlglotError

from dashquery.api.app import create_app
from dashquery.config import Settings, configure_logging
from dashquery.errors import DashQueryError
from dashquery.models.result import MetricResult, RowSet
from dashquery.store import MetricStore

app = typer.Typer(
    name="dq",
    help="dashquery - configuration-driven metrics query engine",
    no_args_is_help=True,
)
console = Console()

DEFAULT_METRICS_PATH = Path("./config/metrics.yaml")


def get_store(metrics_path: Path, db_path: str | None = None) -> MetricStore:
    return MetricStore(metrics_path, db_path)


def _load_store(metrics_path: Path, db_path: str | None = None) -> MetricStore:
    try:
        return get_store(metrics_path, db_path)
    except (OSError, ValueError) as e:
        console.print(f"[red]Error loading metrics: {e}[/red]")
        raise typer.Exit(1)


def _parse_params(pairs: list[str]) -> dict[str, str]:
    """Turn repeated --param key=value options into an input mapping."""
    params: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"expected key=value, got {pair!r}", param_hint="--param")
        params[key] = value
    return params


@app.command("list")
def list_metrics(
    metrics_path: Annotated[
        Path, typer.Option("--dir", "-d", help="Metrics manifest file or directory")
    ] = DEFAULT_METRICS_PATH,
) -> None:
    """List metrics with their result shape and parameters."""
    store = _load_store(metrics_path)
    metrics = store.list_metrics()
    store.close()

    table = Table(title="Metrics")
    table.add_column("Name", style="cyan")
    table.add_column("Shape", style="green")
    table.add_column("Parameters")

    for metric in metrics:
        params = ", ".join(
            f"{p['name']}:{p['type']}" + ("" if p["required"] else "?")
            for p in metric["parameters"]
        )
        table.add_row(metric["name"], metric["shape"], params or "-")

    console.print(table)


@app.command()
def validate(
    metrics_path: Annotated[
        Path, typer.Option("--dir", "-d", help="Metrics manifest file or directory")
    ] = DEFAULT_METRICS_PATH,
) -> None:
    """Validate the manifest and lint every query."""
    store = _load_store(metrics_path)
    errors = store.validate()
    store.close()

    if errors:
        console.print("[red]Validation failed:[/red]")
        for error in errors:
            console.print(f"  - {error}")
        raise typer.Exit(1)

    console.print(f"[green]Validated {len(store.catalog)} metrics successfully![/green]")


@app.command("show-sql")
def show_sql(
    name: Annotated[str, typer.Argument(help="Metric name")],
    metrics_path: Annotated[
        Path, typer.Option("--dir", "-d", help="Metrics manifest file or directory")
    ] = DEFAULT_METRICS_PATH,
) -> None:
    """Show a metric's query, pretty-printed."""
    store = _load_store(metrics_path)
    definition = store.catalog.lookup(name)
    store.close()

    if definition is None:
        console.print(f"[red]Unknown metric: {name}[/red]")
        raise typer.Exit(1)

    try:
        sql = sqlglot.transpile(definition.query, read="duckdb", write="duckdb", pretty=True)[0]
    except SqlglotError:
        # show it as written rather than refuse - the db may accept what sqlglot doesn't
        sql = definition.query

    console.print(Syntax(sql, "sql", theme="monokai", line_numbers=True))
    for position, param in enumerate(definition.parameters, start=1):
        console.print(f"  ?{position} -> {param.name} ({param.type.value})")


@app.command()
def query(
    metrics: Annotated[str, typer.Argument(help="Comma-separated metric names")],
    metrics_path: Annotated[
        Path, typer.Option("--dir", "-d", help="Metrics manifest file or directory")
    ] = DEFAULT_METRICS_PATH,
    db_path: Annotated[str | None, typer.Option("--db", help="DuckDB database path")] = None,
    params: Annotated[
        list[str] | None, typer.Option("--param", "-p", help="Metric input as key=value")
    ] = None,
    output: Annotated[
        str, typer.Option("--output", "-o", help="Output format: table, json")
    ] = "table",
    timeout: Annotated[
        float | None, typer.Option("--timeout", help="Batch timeout in seconds")
    ] = None,
) -> None:
    """Resolve metrics and print their values."""
    configure_logging(Settings().LOG_LEVEL)
    inputs = _parse_params(params or [])
    metric_list = [m.strip() for m in metrics.split(",") if m.strip()]

    store = _load_store(metrics_path, db_path)
    try:
        results = store.query(metric_list, inputs, timeout=timeout)
    except DashQueryError as e:
        console.print(f"[red]Query error: {e}[/red]")
        raise typer.Exit(1)
    finally:
        store.close()

    _output_results(results, output)


def _output_results(results: list[MetricResult], output_format: str) -> None:
    """Output metric results in the specified format."""
    if output_format == "json":
        payload = [r.model_dump(mode="json") for r in results]
        console.print_json(json.dumps(payload))
        return

    for result in results:
        value = result.value
        if not isinstance(value, RowSet):
            console.print(f"[cyan]{result.name}[/cyan]: {value.serialize()}")
            continue

        table = Table(title=f"{result.name} ({len(value)} rows)")
        columns = list(value.rows[0]) if value.rows else []
        for col in columns:
            table.add_column(col)
        for row in value.rows:
            table.add_row(*[str(row[c].serialize()) for c in columns])
        console.print(table)


@app.command()
def serve(
    host: Annotated[str | None, typer.Option("--host", help="Bind address")] = None,
    port: Annotated[int | None, typer.Option("--port", help="Port to listen on")] = None,
) -> None:
    """Run the HTTP API. Everything else comes from the environment / .env."""
    settings = Settings()
    configure_logging(settings.LOG_LEVEL)
    uvicorn.run(
        create_app(settings),
        host=host or settings.HOST,
        port=port or settings.PORT,
        log_config=None,  # keep our logging setup
    )


if __name__ == "__main__":
    app()
