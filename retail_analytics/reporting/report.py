"""
Report Assembly

Runs the configured subset of business metrics and collects their result
tables by name, then optionally serializes them to the output directory.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

import polars as pl
import structlog

from retail_analytics.analytics.metrics import MetricEngine
from retail_analytics.config import OutputFormat, get_settings
from retail_analytics.errors import NoDataError, UnknownMetricError
from retail_analytics.quality.validators import ValidationResult

logger = structlog.get_logger(__name__)


@dataclass
class Report:
    """Result tables of one reporting run"""
    tables: Dict[str, pl.DataFrame]
    started_at: datetime
    completed_at: datetime
    errors: Dict[str, str] = field(default_factory=dict)
    quality: Dict[str, ValidationResult] = field(default_factory=dict)

    @property
    def duration_seconds(self) -> float:
        return (self.completed_at - self.started_at).total_seconds()

    @property
    def metric_names(self) -> List[str]:
        return list(self.tables)

    def __getitem__(self, name: str) -> pl.DataFrame:
        return self.tables[name]

    def __contains__(self, name: object) -> bool:
        return name in self.tables


class ReportAssembler:
    """
    Computes a set of metrics into a Report.

    Metrics are independent and read-only, so execution order never
    changes the result.

    Example:
        assembler = ReportAssembler(MetricEngine(), metrics=["top_products"])
        report = assembler.assemble(enriched, tables.products)
    """

    def __init__(
        self,
        engine: Optional[MetricEngine] = None,
        metrics: Optional[Sequence[str]] = None,
    ):
        self.engine = engine or MetricEngine()
        requested = list(metrics or get_settings().reporting.metrics or self.engine.metric_names)

        unknown = [name for name in requested if name not in self.engine.metric_names]
        if unknown:
            raise UnknownMetricError(unknown[0], available=self.engine.metric_names)

        self.metrics = requested

    def assemble(self, enriched: pl.DataFrame, products: pl.DataFrame) -> Report:
        """
        Run every configured metric.

        A metric raising NoDataError is recorded in Report.errors and the
        remaining metrics still run.
        """
        started_at = datetime.now(timezone.utc)
        tables: Dict[str, pl.DataFrame] = {}
        errors: Dict[str, str] = {}

        logger.info("Assembling report", metrics=len(self.metrics), orders=enriched.height)

        for name in self.metrics:
            try:
                tables[name] = self.engine.compute(name, enriched, products)
            except NoDataError as e:
                logger.warning("Metric skipped", metric=name, reason=str(e))
                errors[name] = str(e)

        completed_at = datetime.now(timezone.utc)
        report = Report(
            tables=tables,
            started_at=started_at,
            completed_at=completed_at,
            errors=errors,
        )

        logger.info(
            "Report assembled",
            tables=len(tables),
            errors=len(errors),
            duration_seconds=round(report.duration_seconds, 3),
        )
        return report


class ReportWriter:
    """Writes each result table of a report to its own file"""

    def __init__(
        self,
        output_path: Union[str, Path, None] = None,
        output_format: Union[OutputFormat, str, None] = None,
    ):
        data_settings = get_settings().data
        self.output_path = Path(output_path or data_settings.output_dir)
        self.output_format = OutputFormat(output_format or data_settings.output_format)

    def _write_table(self, df: pl.DataFrame, output_file: Path) -> None:
        if self.output_format == OutputFormat.CSV:
            df.write_csv(output_file)
        elif self.output_format == OutputFormat.PARQUET:
            df.write_parquet(output_file)
        else:
            df.write_json(output_file)

    def write(self, report: Report) -> Dict[str, Path]:
        """
        Write every table of the report.

        Returns:
            Written file path per metric name
        """
        self.output_path.mkdir(parents=True, exist_ok=True)
        written: Dict[str, Path] = {}

        for name, df in report.tables.items():
            output_file = self.output_path / f"{name}.{self.output_format.value}"
            self._write_table(df, output_file)
            written[name] = output_file
            logger.debug("Wrote result table", metric=name, rows=df.height, file=str(output_file))

        logger.info("Report written", directory=str(self.output_path), files=len(written))
        return written
