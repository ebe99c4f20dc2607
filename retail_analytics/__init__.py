"""
Retail Sales Analytics

Batch reporting engine computing business metrics over customers,
products and orders.
"""
from .analytics import MetricEngine
from .errors import (
    DanglingReferenceError,
    MalformedRecordError,
    NoDataError,
    RetailAnalyticsError,
    UnknownMetricError,
)
from .ingestion import LoadedTables, TableLoader, load_tables
from .pipeline import ReportingPipeline, build_report
from .reporting import Report, ReportAssembler, ReportWriter
from .transformation import OrderEnricher, enrich_orders

__version__ = "1.0.0"

__all__ = [
    "DanglingReferenceError",
    "LoadedTables",
    "MalformedRecordError",
    "MetricEngine",
    "NoDataError",
    "OrderEnricher",
    "Report",
    "ReportAssembler",
    "ReportWriter",
    "ReportingPipeline",
    "RetailAnalyticsError",
    "TableLoader",
    "UnknownMetricError",
    "build_report",
    "enrich_orders",
    "load_tables",
]
