"""
Order Enrichment Module

Builds the denormalized enriched-order view: every order joined to its
product (name, category, price) and customer (gender, join date), plus the
computed line revenue.
"""

from typing import List

import polars as pl
import structlog

from retail_analytics.errors import DanglingReferenceError
from retail_analytics.ingestion.loader import LoadedTables

logger = structlog.get_logger(__name__)

ENRICHED_COLUMNS: List[str] = [
    "order_id",
    "customer_id",
    "product_id",
    "quantity",
    "order_date",
    "product_name",
    "category",
    "price",
    "gender",
    "join_date",
    "line_revenue_cents",
    "line_revenue",
]

_ROW_INDEX = "_row_nr"


class OrderEnricher:
    """
    Joins orders to their product and customer attributes.

    Orders whose customer or product id is not loaded abort the run with
    DanglingReferenceError; no order is ever dropped.

    Example:
        enricher = OrderEnricher()
        enriched = enricher.enrich(tables)
    """

    def _check_references(
        self,
        orders: pl.DataFrame,
        reference: pl.DataFrame,
        column: str,
        entity: str,
    ) -> None:
        """Raise on the first order whose reference is not in the lookup table"""
        dangling = orders.join(reference.select(column), on=column, how="anti")
        if dangling.height:
            logger.error(
                "Dangling reference",
                entity=entity,
                field=column,
                orders=dangling.height,
            )
            raise DanglingReferenceError(
                entity=entity,
                order_id=dangling["order_id"][0],
                field=column,
                missing_id=dangling[column][0],
            )

    def enrich(self, tables: LoadedTables) -> pl.DataFrame:
        """
        Produce one enriched row per order, in input order.

        Args:
            tables: Loaded entity tables

        Returns:
            DataFrame with ENRICHED_COLUMNS
        """
        orders = tables.orders
        self._check_references(orders, tables.customers, "customer_id", "customer")
        self._check_references(orders, tables.products, "product_id", "product")

        products = tables.products.select(["product_id", "product_name", "category", "price"])
        customers = tables.customers.select(["customer_id", "gender", "join_date"])

        df = (
            orders.with_row_index(_ROW_INDEX)
            .join(products, on="product_id", how="left")
            .join(customers, on="customer_id", how="left")
            .sort(_ROW_INDEX)
        )

        # Integer cents keep every aggregate exact
        df = df.with_columns(
            (pl.col("quantity") * (pl.col("price") * 100).round(0).cast(pl.Int64))
            .alias("line_revenue_cents")
        ).with_columns(
            (pl.col("line_revenue_cents") / 100).alias("line_revenue")
        )

        logger.info("Enriched orders", rows=df.height)
        return df.select(ENRICHED_COLUMNS)


def enrich_orders(tables: LoadedTables) -> pl.DataFrame:
    """
    Convenience function to build the enriched-order view.

    Args:
        tables: Loaded entity tables

    Returns:
        Enriched orders DataFrame
    """
    return OrderEnricher().enrich(tables)
