"""
Report Command Entry Point

Runs the reporting pipeline over a directory of entity files and prints
or writes each result table.
Usage:
    retail-report --data-dir data/raw
    retail-report --data-dir data/raw --output-dir data/reports --format parquet
    retail-report --metrics top_products combo_orders --month-grouping year_month
"""

import argparse
import sys
from typing import List, Optional

import polars as pl

from retail_analytics.analytics.metrics import MetricEngine
from retail_analytics.config import MonthGrouping, OutputFormat, get_settings
from retail_analytics.config.logging import configure_logging, get_logger
from retail_analytics.errors import RetailAnalyticsError
from retail_analytics.pipeline import ReportingPipeline
from retail_analytics.reporting.report import Report, ReportAssembler, ReportWriter


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Retail Sales Analytics Report")
    parser.add_argument(
        "--data-dir",
        default=None,
        help="Directory holding customers, products and orders files"
    )
    parser.add_argument(
        "--output-dir",
        default=None,
        help="Write one file per result table to this directory"
    )
    parser.add_argument(
        "--format",
        choices=[f.value for f in OutputFormat],
        default=None,
        help="Result table format (default: from settings)"
    )
    parser.add_argument(
        "--metrics",
        nargs="+",
        default=None,
        help="Metrics to compute (default: all)"
    )
    parser.add_argument(
        "--month-grouping",
        choices=[m.value for m in MonthGrouping],
        default=None,
        help="Group by month name or by year and month"
    )
    parser.add_argument(
        "--top-products",
        type=_positive_int,
        default=None,
        help="Number of products kept by top_products"
    )
    parser.add_argument(
        "--top-customers",
        type=_positive_int,
        default=None,
        help="Number of customers kept by top_customers"
    )
    parser.add_argument(
        "--skip-quality-checks",
        action="store_true",
        help="Do not run data quality checks"
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Override log level (DEBUG, INFO, WARNING, ERROR)"
    )
    return parser


def print_report(report: Report) -> None:
    """Print every result table to stdout"""
    with pl.Config(tbl_rows=50, tbl_hide_dataframe_shape=True):
        for name, df in report.tables.items():
            print(f"\n=== {name} ({df.height} rows) ===")
            print(df)

    for name, message in report.errors.items():
        print(f"\n=== {name} ===\n{message}")


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    configure_logging(args.log_level)
    log = get_logger(__name__)

    engine = MetricEngine(
        month_grouping=args.month_grouping,
        top_products_n=args.top_products,
        top_customers_n=args.top_customers,
    )

    try:
        pipeline = ReportingPipeline(
            assembler=ReportAssembler(engine, metrics=args.metrics),
            run_quality_checks=False if args.skip_quality_checks else None,
        )
        report = pipeline.run_directory(args.data_dir)
    except (RetailAnalyticsError, FileNotFoundError, ValueError, pl.exceptions.PolarsError) as e:
        log.error("Reporting run failed", error=str(e))
        return 1

    if args.output_dir:
        output_format = args.format or get_settings().data.output_format
        written = ReportWriter(args.output_dir, output_format).write(report)
        print(f"📁 Wrote {len(written)} tables to {args.output_dir}")
    else:
        print_report(report)

    return 0


if __name__ == "__main__":
    sys.exit(main())
