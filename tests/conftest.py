"""Pytest fixtures for dashquery tests."""

from collections.abc import Generator
from pathlib import Path

import pytest

from dashquery.catalog import Catalog
from dashquery.executor.duckdb_executor import DuckDBGateway
from dashquery.parser.loader import load_metrics
from dashquery.store import MetricStore


@pytest.fixture
def sample_metrics_yaml() -> str:
    """Sample metric manifest for testing."""
    return """
metrics:
  - name: total_orders
    query: SELECT COUNT(*) FROM orders

  - name: revenue
    query: SELECT SUM(amount) FROM orders WHERE status = 'completed'

  - name: orders_by_country
    query: >
      SELECT country, COUNT(*) AS order_count
      FROM orders
      GROUP BY country
      ORDER BY order_count DESC, country
    multi_row: true

  - name: orders_for_customer
    query: SELECT order_id, amount FROM orders WHERE customer_id = ? ORDER BY order_id
    multi_row: true
    params:
      - name: customer_id
        type: int
        required: true

  - name: orders_above
    query: SELECT COUNT(*) FROM orders WHERE amount > ? AND status = ?
    params:
      - name: min_amount
        type: float
      - name: status
        type: string

  - name: order_status
    query: SELECT status FROM orders WHERE order_id = ?
    params:
      - name: order_id
        type: int
"""


@pytest.fixture
def metrics_file(tmp_path: Path, sample_metrics_yaml: str) -> Path:
    """Write the sample manifest to a temporary file."""
    path = tmp_path / "metrics.yaml"
    path.write_text(sample_metrics_yaml)
    return path


@pytest.fixture
def catalog(metrics_file: Path) -> Catalog:
    return Catalog(load_metrics(metrics_file))


@pytest.fixture
def sample_orders_data() -> list[tuple]:
    """Sample orders data for testing."""
    return [
        (1, 101, 100.00, "completed", "US", "2024-01-15"),
        (2, 102, 150.00, "completed", "UK", "2024-01-16"),
        (3, 101, 200.00, "pending", "US", "2024-01-17"),
        (4, 103, 75.00, "completed", "US", "2024-01-18"),
        (5, 104, 300.00, "cancelled", "DE", "2024-01-19"),
        (6, 105, 125.00, "completed", "US", "2024-02-01"),
        (7, 102, 175.00, "completed", "UK", "2024-02-15"),
        (8, 106, 250.00, "completed", "US", "2024-02-20"),
        (9, 107, 50.00, "pending", "FR", "2024-03-01"),
        (10, 108, 400.00, "completed", "US", "2024-03-15"),
    ]


ORDERS_DDL = """
    CREATE TABLE orders (
        order_id INTEGER,
        customer_id INTEGER,
        amount DECIMAL(10, 2),
        status VARCHAR,
        country VARCHAR,
        order_date DATE
    )
"""


@pytest.fixture
def orders_gateway(sample_orders_data: list[tuple]) -> Generator[DuckDBGateway, None, None]:
    """In-memory gateway with the orders table loaded."""
    gateway = DuckDBGateway()
    gateway.execute(ORDERS_DDL)
    gateway.executemany("INSERT INTO orders VALUES (?, ?, ?, ?, ?, ?)", sample_orders_data)
    yield gateway
    gateway.close()


@pytest.fixture
def gateway() -> Generator[DuckDBGateway, None, None]:
    """In-memory gateway with a table covering every column type we map."""
    gateway = DuckDBGateway()
    gateway.execute("""
        CREATE TABLE test_data (
            id INTEGER PRIMARY KEY,
            name VARCHAR,
            count BIGINT,
            amount DOUBLE,
            price DECIMAL(10, 2),
            optional VARCHAR
        )
    """)
    gateway.execute("""
        INSERT INTO test_data VALUES
        (1, 'Alice', 100, 50.5, 9.99, 'value1'),
        (2, 'Bob', 200, 100.25, 19.99, NULL),
        (3, 'Charlie', 300, 150.75, 29.99, 'value3')
    """)
    yield gateway
    gateway.close()


@pytest.fixture
def store_with_data(
    metrics_file: Path, sample_orders_data: list[tuple]
) -> Generator[MetricStore, None, None]:
    """Create a MetricStore with loaded data."""
    store = MetricStore(metrics_file)
    store.gateway.execute(ORDERS_DDL)
    store.gateway.executemany("INSERT INTO orders VALUES (?, ?, ?, ?, ?, ?)", sample_orders_data)
    yield store
    store.close()


@pytest.fixture
def orders_db(tmp_path: Path, sample_orders_data: list[tuple]) -> str:
    """File-backed DuckDB with the orders table, for code that opens its own connection."""
    db_path = str(tmp_path / "orders.duckdb")
    with DuckDBGateway(db_path) as gateway:
        gateway.execute(ORDERS_DDL)
        gateway.executemany("INSERT INTO orders VALUES (?, ?, ?, ?, ?, ?)", sample_orders_data)
    return db_path
