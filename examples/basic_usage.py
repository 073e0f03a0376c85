"""Basic usage example for dashquery.

run `python data/init_db.py` first to create data.duckdb.
"""

from dashquery import MetricStore
from dashquery.errors import DashQueryError


def main():
    """Demonstrate dashquery capabilities."""
    store = MetricStore("config/metrics.yaml", "data.duckdb")

    print("=" * 60)
    print("dashquery demo")
    print("=" * 60)

    # 1. Scalar metric
    print("\n1. Total orders:")
    [result] = store.query(["total_orders"])
    print(f"   {result.value.value}")

    # 2. Tabular metric
    print("\n2. Revenue by country:")
    [result] = store.query(["revenue_by_country"])
    for row in result.value.rows:
        print(f"   {row['country'].value}: ${row['revenue'].value:,.2f}")

    # 3. Several metrics at once, sharing inputs
    print("\n3. Batch with parameters:")
    results = store.query(
        ["orders_above", "orders_for_customer"],
        {"min_amount": "250", "status": "completed", "customer_id": "42"},
    )
    for result in results:
        print(f"   {result.model_dump(mode='json')}")

    # 4. Errors come back typed
    print("\n4. Bad input:")
    try:
        store.query(["orders_for_customer"], {"customer_id": "forty-two"})
    except DashQueryError as e:
        print(f"   {e.kind.value}: {e}")

    store.close()


if __name__ == "__main__":
    main()
