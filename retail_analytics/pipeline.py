"""
Reporting Pipeline

Orchestrates one batch reporting run: load the entity tables, check data
quality, build the enriched-order view and assemble the metric report.
"""

from pathlib import Path
from typing import Optional, Union

import structlog

from retail_analytics.config import get_settings
from retail_analytics.ingestion.loader import LoadedTables, TableLoader, TableSource
from retail_analytics.quality.validators import validate_tables
from retail_analytics.reporting.report import Report, ReportAssembler
from retail_analytics.transformation.enrichers import OrderEnricher

logger = structlog.get_logger(__name__)


class ReportingPipeline:
    """
    Batch reporting pipeline.

    Loading and reference errors abort the run; metrics without data are
    recorded on the report and the run continues.

    Example:
        pipeline = ReportingPipeline()
        report = pipeline.run_directory("data/raw")
        report["total_sales_per_customer"]
    """

    def __init__(
        self,
        loader: Optional[TableLoader] = None,
        enricher: Optional[OrderEnricher] = None,
        assembler: Optional[ReportAssembler] = None,
        run_quality_checks: Optional[bool] = None,
    ):
        self.loader = loader or TableLoader()
        self.enricher = enricher or OrderEnricher()
        self.assembler = assembler or ReportAssembler()
        if run_quality_checks is None:
            run_quality_checks = get_settings().reporting.run_quality_checks
        self.run_quality_checks = run_quality_checks

    def run(self, tables: LoadedTables) -> Report:
        """
        Run the pipeline over already loaded tables.

        Pipeline:
        1. Enrich orders with product and customer attributes
        2. Run data quality checks (if enabled)
        3. Compute the configured metrics
        """
        logger.info("Starting reporting run", **tables.row_counts)

        enriched = self.enricher.enrich(tables)

        quality = validate_tables(tables, enriched) if self.run_quality_checks else {}

        report = self.assembler.assemble(enriched, tables.products)
        report.quality = quality

        logger.info(
            "Reporting run complete",
            tables=len(report.tables),
            errors=len(report.errors),
            duration_seconds=round(report.duration_seconds, 3),
        )
        return report

    def run_sources(
        self,
        customers: TableSource,
        products: TableSource,
        orders: TableSource,
    ) -> Report:
        """Load the three sources and run the pipeline"""
        return self.run(self.loader.load_tables(customers, products, orders))

    def run_directory(self, directory: Union[str, Path, None] = None) -> Report:
        """Load the entity files from a directory and run the pipeline"""
        return self.run(self.loader.load_directory(directory))


def build_report(
    customers: TableSource,
    products: TableSource,
    orders: TableSource,
) -> Report:
    """
    Convenience function for a full run with configured defaults.

    Args:
        customers: Customers source
        products: Products source
        orders: Orders source

    Returns:
        Report with every configured metric
    """
    return ReportingPipeline().run_sources(customers, products, orders)
