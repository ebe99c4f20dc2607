"""
Business Metric Engine

Computes the retail business metrics over the enriched-order view.
Each metric is one method returning a result DataFrame; none of them
mutate their input.

Conventions shared by every metric:
- Groups keep first-encounter order unless a sort is stated
- Every sort is stable, so ties keep encounter order
- Revenue is summed in integer cents and converted to currency at the end
- Month keys follow the configured MonthGrouping
"""

from typing import Callable, Dict, List, Optional, Tuple

import polars as pl
import structlog

from retail_analytics.config import MonthGrouping, get_settings
from retail_analytics.errors import NoDataError, UnknownMetricError

logger = structlog.get_logger(__name__)

_CENTS = "_cents"
_MONTH_ORDER = "_month_order"
_ROW = "_row"


def _currency(expr: pl.Expr) -> pl.Expr:
    """Integer cents to currency units"""
    return expr / 100


def _top_n(n: Optional[int], default: int) -> int:
    """Resolve a top-N argument, rejecting counts below one"""
    n = default if n is None else n
    if n < 1:
        raise ValueError(f"Top-N count must be at least 1, got {n}")
    return n


class MetricEngine:
    """
    Business metric calculator.

    Example:
        engine = MetricEngine(month_grouping=MonthGrouping.YEAR_MONTH)
        totals = engine.total_sales_per_customer(enriched)
        report = {name: engine.compute(name, enriched, products) for name in engine.metric_names}
    """

    def __init__(
        self,
        month_grouping: Optional[MonthGrouping] = None,
        top_products_n: Optional[int] = None,
        top_customers_n: Optional[int] = None,
    ):
        reporting = get_settings().reporting
        self.month_grouping = MonthGrouping(month_grouping or reporting.month_grouping)
        self.top_products_n = _top_n(top_products_n, reporting.top_products_n)
        self.top_customers_n = _top_n(top_customers_n, reporting.top_customers_n)

        self._metrics: Dict[str, Callable[[pl.DataFrame, pl.DataFrame], pl.DataFrame]] = {
            "total_sales_per_customer": lambda e, p: self.total_sales_per_customer(e),
            "orders_per_month": lambda e, p: self.orders_per_month(e),
            "top_products": lambda e, p: self.top_products(e),
            "average_order_value_per_customer": lambda e, p: self.average_order_value_per_customer(e),
            "monthly_revenue": lambda e, p: self.monthly_revenue(e),
            "category_revenue": lambda e, p: self.category_revenue(e),
            "running_total_per_customer": lambda e, p: self.running_total_per_customer(e),
            "product_revenue_rank_by_category": lambda e, p: self.product_revenue_rank_by_category(e),
            "first_order_date": lambda e, p: self.first_order_date(e),
            "last_order_date": lambda e, p: self.last_order_date(e),
            "customer_retention": lambda e, p: self.customer_retention(e),
            "average_days_between_orders": lambda e, p: self.average_days_between_orders(e),
            "highest_revenue_day": lambda e, p: self.highest_revenue_day(e),
            "price_summary_by_category": lambda e, p: self.price_summary_by_category(p),
            "monthly_sales_per_product": lambda e, p: self.monthly_sales_per_product(e),
            "top_revenue_product_per_month": lambda e, p: self.top_revenue_product_per_month(e),
            "revenue_per_gender": lambda e, p: self.revenue_per_gender(e),
            "top_customers": lambda e, p: self.top_customers(e),
            "revenue_percent_contribution": lambda e, p: self.revenue_percent_contribution(e),
            "combo_orders": lambda e, p: self.combo_orders(e),
        }

    @property
    def metric_names(self) -> List[str]:
        """Registered metric names in report order"""
        return list(self._metrics)

    def compute(self, name: str, enriched: pl.DataFrame, products: pl.DataFrame) -> pl.DataFrame:
        """
        Compute a metric by name.

        Args:
            name: Registered metric name
            enriched: Enriched orders DataFrame
            products: Products table, used by product-only metrics

        Raises:
            UnknownMetricError: name is not registered
            NoDataError: single-row metric over empty orders
        """
        metric = self._metrics.get(name)
        if metric is None:
            raise UnknownMetricError(name, available=self._metrics)

        result = metric(enriched, products)
        logger.debug("Metric computed", metric=name, rows=result.height)
        return result

    # =========================================================================
    # Helpers
    # =========================================================================

    def _month_columns(self) -> Tuple[pl.Expr, pl.Expr]:
        """Month key and its calendar sort position"""
        order_date = pl.col("order_date")
        if self.month_grouping == MonthGrouping.YEAR_MONTH:
            return (
                order_date.dt.strftime("%Y-%m").alias("month"),
                (order_date.dt.year().cast(pl.Int32) * 100 + order_date.dt.month().cast(pl.Int32))
                .alias(_MONTH_ORDER),
            )
        return (
            order_date.dt.strftime("%B").alias("month"),
            order_date.dt.month().cast(pl.Int32).alias(_MONTH_ORDER),
        )

    def _with_month(self, enriched: pl.DataFrame) -> pl.DataFrame:
        return enriched.with_columns(list(self._month_columns()))

    @staticmethod
    def _revenue_by(enriched: pl.DataFrame, keys: List[str], *extra: pl.Expr) -> pl.DataFrame:
        """Group revenue in cents by keys, keeping encounter order"""
        return enriched.group_by(keys, maintain_order=True).agg(
            *extra,
            pl.col("line_revenue_cents").sum().alias(_CENTS),
        )

    def _top_by(self, enriched: pl.DataFrame, key: str, n: int, *extra: pl.Expr) -> pl.DataFrame:
        return (
            self._revenue_by(enriched, [key], *extra)
            .sort(_CENTS, descending=True, maintain_order=True)
            .head(n)
        )

    # =========================================================================
    # Customer metrics
    # =========================================================================

    def total_sales_per_customer(self, enriched: pl.DataFrame) -> pl.DataFrame:
        """Sum of line revenue per customer. Customers without orders are absent."""
        return self._revenue_by(enriched, ["customer_id"]).select(
            "customer_id",
            _currency(pl.col(_CENTS)).alias("total_sales"),
        )

    def average_order_value_per_customer(self, enriched: pl.DataFrame) -> pl.DataFrame:
        """Mean line revenue per customer, highest first"""
        return (
            enriched.group_by("customer_id", maintain_order=True)
            .agg(pl.col("line_revenue_cents").mean().alias(_CENTS))
            .sort(_CENTS, descending=True, maintain_order=True)
            .select(
                "customer_id",
                _currency(pl.col(_CENTS)).round(2).alias("avg_order_value"),
            )
        )

    def running_total_per_customer(self, enriched: pl.DataFrame) -> pl.DataFrame:
        """
        Cumulative revenue per customer ordered by date.

        Every row's running total includes all of the customer's rows dated
        on or before it, so orders sharing a date share a running total.
        """
        daily = (
            enriched.group_by(["customer_id", "order_date"])
            .agg(pl.col("line_revenue_cents").sum().alias(_CENTS))
            .sort(["customer_id", "order_date"])
            .with_columns(pl.col(_CENTS).cum_sum().over("customer_id").alias("_running_cents"))
            .select(["customer_id", "order_date", "_running_cents"])
        )

        return (
            enriched.select(["customer_id", "order_id", "order_date"])
            .with_row_index(_ROW)
            .join(daily, on=["customer_id", "order_date"], how="left")
            .sort(["customer_id", "order_date", _ROW])
            .select(
                "customer_id",
                "order_id",
                "order_date",
                _currency(pl.col("_running_cents")).alias("running_total"),
            )
        )

    def first_order_date(self, enriched: pl.DataFrame) -> pl.DataFrame:
        return enriched.group_by("customer_id", maintain_order=True).agg(
            pl.col("order_date").min().alias("first_order_date")
        )

    def last_order_date(self, enriched: pl.DataFrame) -> pl.DataFrame:
        return enriched.group_by("customer_id", maintain_order=True).agg(
            pl.col("order_date").max().alias("last_order_date")
        )

    def customer_retention(self, enriched: pl.DataFrame) -> pl.DataFrame:
        """Distinct active months per customer; retained when more than one"""
        return (
            self._with_month(enriched)
            .group_by("customer_id", maintain_order=True)
            .agg(pl.col("month").n_unique().cast(pl.Int64).alias("active_months"))
            .with_columns((pl.col("active_months") > 1).alias("is_retained"))
        )

    def average_days_between_orders(self, enriched: pl.DataFrame) -> pl.DataFrame:
        """
        Mean gap in days between consecutive orders per customer.

        The first order of each customer has no gap; customers with a single
        order get a null average.
        """
        return (
            enriched.select(["customer_id", "order_date"])
            .with_row_index(_ROW)
            .sort(["customer_id", "order_date", _ROW])
            .with_columns(
                pl.col("order_date").diff().over("customer_id").dt.total_days().alias("_gap_days")
            )
            .group_by("customer_id", maintain_order=True)
            .agg(pl.col("_gap_days").mean().round(2).alias("avg_days_between_orders"))
        )

    def top_customers(self, enriched: pl.DataFrame, n: Optional[int] = None) -> pl.DataFrame:
        """Best customers by revenue; ties keep encounter order"""
        return self._top_by(enriched, "customer_id", _top_n(n, self.top_customers_n)).select(
            "customer_id",
            _currency(pl.col(_CENTS)).alias("revenue"),
        )

    def revenue_per_gender(self, enriched: pl.DataFrame) -> pl.DataFrame:
        return self._revenue_by(enriched, ["gender"]).select(
            "gender",
            _currency(pl.col(_CENTS)).alias("total_revenue"),
        )

    def combo_orders(self, enriched: pl.DataFrame) -> pl.DataFrame:
        """
        Customer/date groups containing more than one distinct product.

        Orders carry no shared header id, so one customer on one date
        counts as a single basket.
        """
        return (
            enriched.group_by(["customer_id", "order_date"], maintain_order=True)
            .agg(pl.col("product_id").n_unique().cast(pl.Int64).alias("num_products"))
            .filter(pl.col("num_products") > 1)
            .select(["order_date", "customer_id", "num_products"])
        )

    # =========================================================================
    # Time metrics
    # =========================================================================

    def orders_per_month(self, enriched: pl.DataFrame) -> pl.DataFrame:
        """Order rows per month key, in calendar order"""
        return (
            self._with_month(enriched)
            .group_by(["month", _MONTH_ORDER], maintain_order=True)
            .agg(pl.len().cast(pl.Int64).alias("total_orders"))
            .sort(_MONTH_ORDER, maintain_order=True)
            .select(["month", "total_orders"])
        )

    def monthly_revenue(self, enriched: pl.DataFrame) -> pl.DataFrame:
        """Revenue per month key, highest first"""
        return (
            self._revenue_by(self._with_month(enriched), ["month", _MONTH_ORDER])
            .sort([_CENTS, _MONTH_ORDER], descending=[True, False], maintain_order=True)
            .select("month", _currency(pl.col(_CENTS)).alias("revenue"))
        )

    def highest_revenue_day(self, enriched: pl.DataFrame) -> pl.DataFrame:
        """
        The single day with the highest revenue.

        Raises:
            NoDataError: no orders to aggregate
        """
        if enriched.is_empty():
            raise NoDataError("highest_revenue_day")

        return (
            self._revenue_by(enriched, ["order_date"])
            .sort(_CENTS, descending=True, maintain_order=True)
            .head(1)
            .select("order_date", _currency(pl.col(_CENTS)).alias("daily_revenue"))
        )

    # =========================================================================
    # Product metrics
    # =========================================================================

    def top_products(self, enriched: pl.DataFrame, n: Optional[int] = None) -> pl.DataFrame:
        """Best selling products by quantity; ties keep encounter order"""
        return (
            enriched.group_by("product_id", maintain_order=True)
            .agg(
                pl.col("product_name").first(),
                pl.col("quantity").sum().alias("total_quantity"),
            )
            .sort("total_quantity", descending=True, maintain_order=True)
            .head(_top_n(n, self.top_products_n))
        )

    def category_revenue(self, enriched: pl.DataFrame) -> pl.DataFrame:
        return self._revenue_by(enriched, ["category"]).select(
            "category",
            _currency(pl.col(_CENTS)).alias("revenue"),
        )

    def product_revenue_rank_by_category(self, enriched: pl.DataFrame) -> pl.DataFrame:
        """
        Rank products by revenue within their category.

        Uses competition ranking: equal revenues share a rank and the next
        rank skips accordingly (1, 1, 3).
        """
        return (
            self._revenue_by(enriched, ["category", "product_id"], pl.col("product_name").first())
            .with_columns(
                pl.col(_CENTS).rank(method="min", descending=True).over("category")
                .cast(pl.Int64)
                .alias("rank")
            )
            .sort(["category", "rank"], maintain_order=True)
            .select(
                "category",
                "product_id",
                "product_name",
                _currency(pl.col(_CENTS)).alias("revenue"),
                "rank",
            )
        )

    def price_summary_by_category(self, products: pl.DataFrame) -> pl.DataFrame:
        """Min, max and mean list price per category (not weighted by sales)"""
        return products.group_by("category", maintain_order=True).agg(
            pl.col("price").min().alias("min_price"),
            pl.col("price").max().alias("max_price"),
            pl.col("price").mean().round(2).alias("avg_price"),
        )

    def monthly_sales_per_product(self, enriched: pl.DataFrame) -> pl.DataFrame:
        return (
            self._with_month(enriched)
            .group_by(["month", _MONTH_ORDER, "product_id"], maintain_order=True)
            .agg(
                pl.col("product_name").first(),
                pl.col("quantity").sum().alias("quantity_sold"),
            )
            .sort(_MONTH_ORDER, maintain_order=True)
            .select(["month", "product_id", "product_name", "quantity_sold"])
        )

    def top_revenue_product_per_month(self, enriched: pl.DataFrame) -> pl.DataFrame:
        """Highest revenue product per month; tied leaders are all kept"""
        return (
            self._revenue_by(
                self._with_month(enriched),
                ["month", _MONTH_ORDER, "product_id"],
                pl.col("product_name").first(),
            )
            .with_columns(
                pl.col(_CENTS).rank(method="min", descending=True).over("month")
                .cast(pl.Int64)
                .alias("rank")
            )
            .filter(pl.col("rank") == 1)
            .sort(_MONTH_ORDER, maintain_order=True)
            .select(
                "month",
                "product_id",
                "product_name",
                _currency(pl.col(_CENTS)).alias("total_revenue"),
                "rank",
            )
        )

    def revenue_percent_contribution(self, enriched: pl.DataFrame) -> pl.DataFrame:
        """
        Share of total revenue per product, as a percentage.

        Rounded half up to 2 decimal places using integer arithmetic.
        Every share is 0.0 when total revenue is zero.
        """
        revenue = self._revenue_by(enriched, ["product_id"], pl.col("product_name").first())
        total = int(revenue[_CENTS].sum() or 0)

        if total == 0:
            percent = pl.lit(0.0)
        else:
            # floor(cents * 10000 / total + 1/2) in hundredths of a percent
            percent = ((pl.col(_CENTS) * 20000 + total) // (2 * total)) / 100

        return (
            revenue.sort(_CENTS, descending=True, maintain_order=True)
            .select(
                "product_id",
                "product_name",
                percent.alias("revenue_percent"),
            )
        )
