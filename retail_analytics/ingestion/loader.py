"""
Entity Table Loader

Reads the three retail entity tables (customers, products, orders) from
CSV, JSON, JSONL or Parquet files, polars DataFrames, or sequences of row
mappings, and coerces them to fixed typed schemas.

Only per-record shape is checked here:
- Required columns present
- Required values present and coercible to the column type
- Quantity positive, price finite and non-negative
- Identifiers unique within their table
"""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import polars as pl
import structlog

from retail_analytics.config import get_settings
from retail_analytics.errors import MalformedRecordError

logger = structlog.get_logger(__name__)

TableSource = Union[str, Path, pl.DataFrame, Sequence[Mapping[str, Any]]]


def _cell_text(value: Any) -> Optional[str]:
    """Render one row-mapping value as the text a CSV file would hold"""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


class FileFormat(str, Enum):
    """Supported file formats"""
    CSV = "csv"
    JSON = "json"
    JSONL = "jsonl"
    PARQUET = "parquet"


@dataclass(frozen=True)
class EntitySchema:
    """Column layout of one entity table"""
    entity: str
    id_column: str
    columns: Dict[str, pl.DataType]


CUSTOMER_SCHEMA = EntitySchema(
    entity="customer",
    id_column="customer_id",
    columns={
        "customer_id": pl.Int64,
        "full_name": pl.Utf8,
        "gender": pl.Utf8,
        "join_date": pl.Date,
    },
)

PRODUCT_SCHEMA = EntitySchema(
    entity="product",
    id_column="product_id",
    columns={
        "product_id": pl.Int64,
        "product_name": pl.Utf8,
        "category": pl.Utf8,
        "price": pl.Float64,
    },
)

ORDER_SCHEMA = EntitySchema(
    entity="order",
    id_column="order_id",
    columns={
        "order_id": pl.Int64,
        "customer_id": pl.Int64,
        "product_id": pl.Int64,
        "quantity": pl.Int64,
        "order_date": pl.Date,
    },
)


@dataclass(frozen=True)
class LoadedTables:
    """Typed entity tables for one reporting run"""
    customers: pl.DataFrame
    products: pl.DataFrame
    orders: pl.DataFrame

    @property
    def row_counts(self) -> Dict[str, int]:
        return {
            "customers": self.customers.height,
            "products": self.products.height,
            "orders": self.orders.height,
        }


class TableLoader:
    """
    Loads and coerces the retail entity tables.

    Example:
        loader = TableLoader()
        tables = loader.load_tables("customers.csv", "products.csv", "orders.csv")
    """

    def __init__(self, null_values: Optional[List[str]] = None):
        self.null_values = null_values or get_settings().data.null_values

    def _read_file(self, path: Path) -> pl.DataFrame:
        """Read file based on its extension"""
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")

        try:
            file_format = FileFormat(path.suffix.lstrip(".").lower())
        except ValueError:
            raise ValueError(f"Unsupported file format: {path.suffix}") from None

        if file_format == FileFormat.CSV:
            # Everything as text; typing happens in _coerce so errors name the record
            return pl.read_csv(path, infer_schema_length=0, null_values=self.null_values)
        if file_format == FileFormat.JSON:
            return pl.read_json(path)
        if file_format == FileFormat.JSONL:
            return pl.read_ndjson(path)
        return pl.read_parquet(path)

    def _to_frame(self, source: TableSource, schema: EntitySchema) -> pl.DataFrame:
        if isinstance(source, pl.DataFrame):
            return source
        if isinstance(source, (str, Path)):
            return self._read_file(Path(source))

        rows = list(source)
        if not rows:
            return pl.DataFrame(schema=schema.columns)

        columns = list(dict.fromkeys(key for row in rows for key in row))
        return pl.DataFrame(
            {
                column: [_cell_text(row.get(column)) for row in rows]
                for column in columns
            },
            schema={column: pl.Utf8 for column in columns},
        )

    @staticmethod
    def _coerce_expr(column: str, current: pl.DataType, target: pl.DataType) -> pl.Expr:
        """Build the expression converting one column to its target type"""
        expr = pl.col(column)
        if current == target:
            return expr.str.strip_chars() if target == pl.Utf8 else expr

        if target == pl.Date:
            if isinstance(current, pl.Datetime):
                return expr.dt.date()
            return expr.cast(pl.Utf8).str.strip_chars().str.to_date("%Y-%m-%d", strict=False)

        if target == pl.Utf8:
            return expr.cast(pl.Utf8).str.strip_chars()

        if current == pl.Utf8:
            expr = expr.str.strip_chars()
        if target.is_integer() and current.is_float():
            # Fractional values would be truncated by the cast
            expr = pl.when(expr == expr.floor()).then(expr).otherwise(None)
        return expr.cast(target, strict=False)

    @staticmethod
    def _blank_mask(series: pl.Series) -> pl.Series:
        mask = series.is_null()
        if series.dtype == pl.Utf8:
            mask = mask | (series.str.strip_chars() == "")
        return mask.fill_null(True)

    def _record_id(self, raw: pl.DataFrame, schema: EntitySchema, index: int) -> Any:
        return raw[schema.id_column][index]

    def _coerce(self, raw: pl.DataFrame, schema: EntitySchema) -> pl.DataFrame:
        """Coerce a raw frame to the entity schema or raise MalformedRecordError"""
        for column in schema.columns:
            if column not in raw.columns:
                raise MalformedRecordError(
                    schema.entity, column, reason="is missing from the source"
                )

        raw = raw.select(list(schema.columns))
        typed = raw.select([
            self._coerce_expr(column, raw.schema[column], dtype).alias(column)
            for column, dtype in schema.columns.items()
        ])

        for column in schema.columns:
            blank = self._blank_mask(raw[column])
            if blank.any():
                index = blank.arg_true()[0]
                raise MalformedRecordError(
                    schema.entity,
                    column,
                    record_id=self._record_id(raw, schema, index),
                    reason="is required",
                )

            unparsed = typed[column].is_null() & ~blank
            if unparsed.any():
                index = unparsed.arg_true()[0]
                raise MalformedRecordError(
                    schema.entity,
                    column,
                    record_id=self._record_id(raw, schema, index),
                    value=raw[column][index],
                    reason=f"could not be parsed as {schema.columns[column]}",
                )

        return typed

    def _check_rules(self, df: pl.DataFrame, schema: EntitySchema) -> None:
        """Per-record value rules and identifier uniqueness"""
        duplicated = df[schema.id_column].is_duplicated()
        if duplicated.any():
            index = duplicated.arg_true()[0]
            record_id = df[schema.id_column][index]
            raise MalformedRecordError(
                schema.entity, schema.id_column, record_id=record_id, reason="is duplicated"
            )

        rules = [
            ("quantity", pl.col("quantity") <= 0, "must be positive"),
            ("price", pl.col("price").is_nan() | pl.col("price").is_infinite(), "must be a finite number"),
            ("price", pl.col("price") < 0, "must not be negative"),
        ]
        for column, violation, reason in rules:
            if column not in df.columns:
                continue
            offending = df.filter(violation)
            if offending.height:
                raise MalformedRecordError(
                    schema.entity,
                    column,
                    record_id=offending[schema.id_column][0],
                    value=offending[column][0],
                    reason=reason,
                )

    def load(self, source: TableSource, schema: EntitySchema) -> pl.DataFrame:
        """
        Load a single entity table.

        Args:
            source: File path, DataFrame, or sequence of row mappings
            schema: Entity schema to coerce to

        Returns:
            DataFrame with exactly the schema columns and types
        """
        raw = self._to_frame(source, schema)
        df = self._coerce(raw, schema)
        self._check_rules(df, schema)

        logger.info(
            "Loaded table",
            entity=schema.entity,
            rows=df.height,
            source=str(source) if isinstance(source, (str, Path)) else type(source).__name__,
        )
        return df

    def load_tables(
        self,
        customers: TableSource,
        products: TableSource,
        orders: TableSource,
    ) -> LoadedTables:
        """Load all three entity tables"""
        return LoadedTables(
            customers=self.load(customers, CUSTOMER_SCHEMA),
            products=self.load(products, PRODUCT_SCHEMA),
            orders=self.load(orders, ORDER_SCHEMA),
        )

    def load_directory(
        self,
        directory: Union[str, Path, None] = None,
        customers_file: Optional[str] = None,
        products_file: Optional[str] = None,
        orders_file: Optional[str] = None,
    ) -> LoadedTables:
        """
        Load the entity tables from a directory.

        File names default to the configured data settings.
        """
        data_settings = get_settings().data
        directory = Path(directory or data_settings.input_dir)

        logger.info("Loading entity tables", directory=str(directory))

        return self.load_tables(
            customers=directory / (customers_file or data_settings.customers_file),
            products=directory / (products_file or data_settings.products_file),
            orders=directory / (orders_file or data_settings.orders_file),
        )


def load_tables(
    customers: TableSource,
    products: TableSource,
    orders: TableSource,
) -> LoadedTables:
    """
    Convenience function to load the three entity tables.

    Args:
        customers: Customers source
        products: Products source
        orders: Orders source

    Returns:
        LoadedTables with typed DataFrames
    """
    return TableLoader().load_tables(customers, products, orders)
