"""
Unit Tests - Data Quality
"""
from datetime import date, timedelta

import polars as pl

from retail_analytics.ingestion.loader import LoadedTables
from retail_analytics.quality.validators import (
    DataValidator,
    ValidationSeverity,
    ValidationStatus,
    validate_tables,
)


class TestDataValidator:
    """Tests for DataValidator"""

    def test_positive_check_flags_zero(self):
        """Test zero values break the positive check"""
        df = pl.DataFrame({"price": [2.0, 0.0, 3.5]})

        result = DataValidator().add_positive_check("price").validate(df)

        assert result.status == ValidationStatus.PARTIAL
        assert result.checks[0].failed_rows == 1
        assert result.checks[0].total_rows == 3

    def test_not_after_check(self):
        """Test dates later than the limit are counted"""
        df = pl.DataFrame({"order_date": [date(2023, 1, 1), date(2023, 6, 1), date(2023, 6, 2)]})

        result = DataValidator().add_not_after_check("order_date", date(2023, 6, 1)).validate(df)

        assert result.checks[0].failed_rows == 1
        assert "2023-06-01" in result.checks[0].message

    def test_column_order_warning(self):
        """Test date ordering violations are warnings"""
        df = pl.DataFrame({
            "join_date": [date(2023, 1, 1), date(2023, 5, 1)],
            "order_date": [date(2023, 2, 1), date(2023, 4, 1)],
        })

        result = DataValidator().add_column_order_check("join_date", "order_date").validate(df)

        assert result.status == ValidationStatus.PARTIAL
        assert result.checks[0].severity == ValidationSeverity.WARNING
        assert result.failed[0].failed_rows == 1

    def test_coverage_is_informational(self):
        """Test unreferenced rows are reported without changing status"""
        customers = pl.DataFrame({"customer_id": [1, 2, 3]})
        orders = pl.DataFrame({"customer_id": [1, 1, 3]})

        result = DataValidator().add_coverage_check("customer_id", orders).validate(customers)

        assert result.status == ValidationStatus.PASSED
        assert result.checks[0].failed_rows == 1
        assert result.checks[0].severity == ValidationSeverity.INFO

    def test_error_severity_fails(self):
        """Test a failed ERROR check fails the result"""
        df = pl.DataFrame({"quantity": [0]})

        result = (
            DataValidator()
            .add_positive_check("quantity", severity=ValidationSeverity.ERROR)
            .validate(df)
        )

        assert result.status == ValidationStatus.FAILED

    def test_missing_column(self):
        """Test checks on absent columns fail"""
        df = pl.DataFrame({"id": [1]})

        result = DataValidator().add_positive_check("price").validate(df)

        assert not result.checks[0].passed
        assert "not found" in result.checks[0].message


class TestValidateTables:
    """Tests for the retail quality checks"""

    def test_sample_data(self, loaded_tables, enriched_orders):
        """Test the sample dataset only carries informational findings"""
        results = validate_tables(loaded_tables, enriched_orders)

        assert set(results) == {"customers", "products", "orders", "enriched_orders"}
        assert all(r.status == ValidationStatus.PASSED for r in results.values())

        # Customer 4 never ordered
        inactive = results["customers"].failed
        assert [c.name for c in inactive] == ["referenced_customer_id"]
        assert inactive[0].failed_rows == 1

    def test_order_before_join_date(self, loaded_tables, enriched_orders):
        """Test orders placed before the customer joined are flagged"""
        enriched = enriched_orders.with_columns(
            pl.when(pl.col("order_id") == 100)
            .then(pl.lit(date(2022, 12, 1)))
            .otherwise(pl.col("order_date"))
            .alias("order_date")
        )

        result = validate_tables(loaded_tables, enriched)["enriched_orders"]

        assert result.status == ValidationStatus.PARTIAL
        assert result.checks[0].failed_rows == 1

    def test_future_order(self, loaded_tables, enriched_orders):
        """Test orders dated after today are flagged"""
        today = date(2024, 3, 1)

        result = validate_tables(loaded_tables, enriched_orders, today=today)["orders"]

        # Order 106 is dated 2024-03-05
        assert result.status == ValidationStatus.PARTIAL
        assert result.checks[0].failed_rows == 1

    def test_free_product(self, loaded_tables, enriched_orders):
        """Test zero priced products are flagged"""
        products = loaded_tables.products.with_columns(
            pl.when(pl.col("product_id") == 14)
            .then(pl.lit(0.0))
            .otherwise(pl.col("price"))
            .alias("price")
        )
        tables = LoadedTables(loaded_tables.customers, products, loaded_tables.orders)

        result = validate_tables(tables, enriched_orders)["products"]

        assert result.status == ValidationStatus.PARTIAL
        assert result.failed[0].name == "positive_price"

    def test_never_ordered_product(self, loaded_tables, enriched_orders):
        """Test products without orders are informational"""
        orders = loaded_tables.orders.filter(pl.col("product_id") != 11)
        tables = LoadedTables(loaded_tables.customers, loaded_tables.products, orders)

        result = validate_tables(tables, enriched_orders)["products"]

        assert result.status == ValidationStatus.PASSED
        assert result.failed[0].name == "referenced_product_id"

    def test_empty_orders(self, empty_tables):
        """Test no orders leaves every customer unreferenced"""
        enriched = pl.DataFrame(schema={"join_date": pl.Date, "order_date": pl.Date})

        results = validate_tables(empty_tables, enriched, today=date.today() + timedelta(days=1))

        assert results["customers"].checks[0].failed_rows == 4
        assert results["orders"].status == ValidationStatus.PASSED
