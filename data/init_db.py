"""Create a DuckDB database with sample orders for the example manifest."""

import random
import sys
from datetime import date, timedelta

from dashquery.executor.duckdb_executor import DuckDBGateway


def generate_orders(count: int) -> list[tuple]:
    """Generate order records."""
    statuses = ["completed", "completed", "completed", "completed", "pending", "cancelled"]
    countries = ["US", "US", "US", "UK", "UK", "DE", "FR", "CA", "AU"]

    start_date = date(2024, 1, 1)
    date_range = (date(2024, 12, 31) - start_date).days

    orders = []
    for i in range(1, count + 1):
        orders.append(
            (
                i,  # order_id
                random.randint(1, 200),  # customer_id
                round(random.uniform(10, 500), 2),  # amount
                random.choice(statuses),
                random.choice(countries),
                start_date + timedelta(days=random.randint(0, date_range)),
            )
        )
    return orders


def init_database(db_path: str = "data.duckdb", count: int = 1000) -> None:
    random.seed(42)  # Reproducible data

    with DuckDBGateway(db_path) as gateway:
        gateway.execute("""
            CREATE OR REPLACE TABLE orders (
                order_id INTEGER PRIMARY KEY,
                customer_id INTEGER,
                amount DECIMAL(10, 2),
                status VARCHAR,
                country VARCHAR,
                order_date DATE
            )
        """)
        gateway.executemany("INSERT INTO orders VALUES (?, ?, ?, ?, ?, ?)", generate_orders(count))

    print(f"Database initialized at {db_path} with {count} orders")


if __name__ == "__main__":
    init_database(sys.argv[1] if len(sys.argv) > 1 else "data.duckdb")
