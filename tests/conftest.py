"""
Test Suite Configuration
"""
import pytest

import polars as pl

from retail_analytics.analytics.metrics import MetricEngine
from retail_analytics.config import MonthGrouping
from retail_analytics.ingestion.loader import LoadedTables, TableLoader
from retail_analytics.transformation.enrichers import OrderEnricher


@pytest.fixture
def sample_customers_df() -> pl.DataFrame:
    """Raw customers as read from CSV (all text)"""
    return pl.DataFrame({
        "customer_id": ["1", "2", "3", "4"],
        "full_name": ["Ann Lee", " Bob Stone ", "Cara Diaz", "Dan Wu"],
        "gender": ["F", "M", "F", "M"],
        "join_date": ["2023-01-01", "2023-01-15", "2023-02-01", "2023-03-01"],
    })


@pytest.fixture
def sample_products_df() -> pl.DataFrame:
    """Raw products as read from CSV (all text)"""
    return pl.DataFrame({
        "product_id": ["10", "11", "12", "13", "14"],
        "product_name": ["Pen", "Notebook", "Mug", "Plate", "Bowl"],
        "category": ["Office", "Office", "Kitchen", "Kitchen", "Kitchen"],
        "price": ["2.00", "5.50", "8.00", "8.00", "4.00"],
    })


@pytest.fixture
def sample_orders_df() -> pl.DataFrame:
    """Raw orders as read from CSV (all text)"""
    return pl.DataFrame({
        "order_id": ["100", "101", "102", "103", "104", "105", "106"],
        "customer_id": ["1", "1", "2", "2", "3", "1", "3"],
        "product_id": ["10", "10", "11", "12", "13", "12", "14"],
        "quantity": ["3", "2", "1", "1", "2", "1", "1"],
        "order_date": [
            "2023-02-01",
            "2023-03-01",
            "2023-02-01",
            "2023-02-01",
            "2024-02-10",
            "2023-03-01",
            "2024-03-05",
        ],
    })


@pytest.fixture
def loaded_tables(sample_customers_df, sample_products_df, sample_orders_df) -> LoadedTables:
    """Typed entity tables"""
    return TableLoader().load_tables(sample_customers_df, sample_products_df, sample_orders_df)


@pytest.fixture
def enriched_orders(loaded_tables) -> pl.DataFrame:
    """Enriched order view of the sample data"""
    return OrderEnricher().enrich(loaded_tables)


@pytest.fixture
def empty_tables(sample_customers_df, sample_products_df) -> LoadedTables:
    """Customers and products with no orders"""
    return TableLoader().load_tables(sample_customers_df, sample_products_df, [])


@pytest.fixture
def engine() -> MetricEngine:
    """Metric engine with explicit, environment-independent settings"""
    return MetricEngine(
        month_grouping=MonthGrouping.MONTH_NAME,
        top_products_n=3,
        top_customers_n=2,
    )


@pytest.fixture
def write_sample_csvs(tmp_path, sample_customers_df, sample_products_df, sample_orders_df):
    """Write the sample tables as CSV files and return the directory"""
    sample_customers_df.write_csv(tmp_path / "customers.csv")
    sample_products_df.write_csv(tmp_path / "products.csv")
    sample_orders_df.write_csv(tmp_path / "orders.csv")
    return tmp_path
