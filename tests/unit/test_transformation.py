"""
Unit Tests - Order Enrichment
"""
from datetime import date

import pytest
import polars as pl

from retail_analytics.errors import DanglingReferenceError
from retail_analytics.ingestion.loader import LoadedTables
from retail_analytics.transformation.enrichers import ENRICHED_COLUMNS, OrderEnricher, enrich_orders


class TestOrderEnricher:
    """Tests for OrderEnricher"""

    def test_enriched_columns(self, enriched_orders):
        """Test the enriched view carries product and customer attributes"""
        assert enriched_orders.columns == ENRICHED_COLUMNS

        first = enriched_orders.row(0, named=True)
        assert first["order_id"] == 100
        assert first["product_name"] == "Pen"
        assert first["category"] == "Office"
        assert first["gender"] == "F"
        assert first["join_date"] == date(2023, 1, 1)

    def test_line_revenue(self, enriched_orders):
        """Test line revenue is quantity times price"""
        assert enriched_orders["line_revenue"].to_list() == [6.0, 4.0, 5.5, 8.0, 16.0, 8.0, 4.0]
        assert enriched_orders["line_revenue_cents"].to_list() == [600, 400, 550, 800, 1600, 800, 400]

    def test_preserves_order(self, enriched_orders, loaded_tables):
        """Test one row per order in input order"""
        assert enriched_orders["order_id"].to_list() == loaded_tables.orders["order_id"].to_list()

    def test_input_not_mutated(self, loaded_tables):
        """Test source tables are left untouched"""
        before = loaded_tables.orders.clone()

        OrderEnricher().enrich(loaded_tables)

        assert loaded_tables.orders.equals(before)

    def test_dangling_customer(self, loaded_tables):
        """Test an unknown customer aborts the run"""
        orders = loaded_tables.orders.with_columns(
            pl.when(pl.col("order_id") == 104)
            .then(pl.lit(99, dtype=pl.Int64))
            .otherwise(pl.col("customer_id"))
            .alias("customer_id")
        )
        tables = LoadedTables(loaded_tables.customers, loaded_tables.products, orders)

        with pytest.raises(DanglingReferenceError) as exc_info:
            OrderEnricher().enrich(tables)

        error = exc_info.value
        assert error.entity == "customer"
        assert error.order_id == 104
        assert error.field == "customer_id"
        assert error.missing_id == 99

    def test_dangling_product(self, loaded_tables):
        """Test an unknown product aborts the run"""
        tables = LoadedTables(
            loaded_tables.customers,
            loaded_tables.products.filter(pl.col("product_id") != 14),
            loaded_tables.orders,
        )

        with pytest.raises(DanglingReferenceError, match="unknown product") as exc_info:
            OrderEnricher().enrich(tables)

        assert exc_info.value.order_id == 106
        assert exc_info.value.missing_id == 14

    def test_empty_orders(self, empty_tables):
        """Test no orders gives an empty view with all columns"""
        result = enrich_orders(empty_tables)

        assert result.height == 0
        assert result.columns == ENRICHED_COLUMNS
