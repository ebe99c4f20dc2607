"""
Data Ingestion Module
"""
from .loader import (
    CUSTOMER_SCHEMA,
    ORDER_SCHEMA,
    PRODUCT_SCHEMA,
    EntitySchema,
    FileFormat,
    LoadedTables,
    TableLoader,
    load_tables,
)

__all__ = [
    "CUSTOMER_SCHEMA",
    "ORDER_SCHEMA",
    "PRODUCT_SCHEMA",
    "EntitySchema",
    "FileFormat",
    "LoadedTables",
    "TableLoader",
    "load_tables",
]
