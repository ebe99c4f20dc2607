"""
Data Quality Checks

Row-level expectations evaluated after a run's tables are loaded and joined.
Record shape (types, required values, unique ids, references) is already
enforced by the loader and the enricher, so the checks here only cover
conditions those stages accept but that can make a report misleading:
- Orders placed before the customer joined
- Orders dated in the future
- Products priced at zero
- Customers and products that never appear in an order

Checks report; they never modify or drop data.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Callable, Dict, List, Optional

import polars as pl
import structlog

from retail_analytics.ingestion.loader import LoadedTables

logger = structlog.get_logger(__name__)


class ValidationSeverity(str, Enum):
    """Severity levels for validation failures"""
    ERROR = "error"  # Report figures are wrong
    WARNING = "warning"  # Figures are right but likely surprising
    INFO = "info"  # Informational only


class ValidationStatus(str, Enum):
    """Overall validation status"""
    PASSED = "passed"
    FAILED = "failed"
    PARTIAL = "partial"


@dataclass
class ValidationCheck:
    """Single validation check result"""
    name: str
    passed: bool
    severity: ValidationSeverity
    message: str
    failed_rows: int = 0
    total_rows: int = 0


@dataclass
class ValidationResult:
    """All check results for one table"""
    status: ValidationStatus
    checks: List[ValidationCheck] = field(default_factory=list)

    @property
    def failed(self) -> List[ValidationCheck]:
        return [c for c in self.checks if not c.passed]


class DataValidator:
    """
    Counts rows breaking each registered expectation.

    Example:
        validator = DataValidator("orders")
        validator.add_not_after_check("order_date", date.today())
        result = validator.validate(orders)
    """

    def __init__(self, name: str = "dataset"):
        self.name = name
        self._checks: List[Callable[[pl.DataFrame], ValidationCheck]] = []

    def _add_row_check(
        self,
        name: str,
        columns: List[str],
        offending: Callable[[pl.DataFrame], pl.DataFrame],
        describe: str,
        severity: ValidationSeverity,
    ) -> "DataValidator":
        """Register a check failing when `offending(df)` returns any rows"""
        def check(df: pl.DataFrame) -> ValidationCheck:
            missing = [c for c in columns if c not in df.columns]
            if missing:
                return ValidationCheck(
                    name=name,
                    passed=False,
                    severity=severity,
                    message=f"Column '{missing[0]}' not found",
                )

            failed_rows = offending(df).height
            return ValidationCheck(
                name=name,
                passed=failed_rows == 0,
                severity=severity,
                message=f"{failed_rows} rows {describe}",
                failed_rows=failed_rows,
                total_rows=df.height,
            )

        self._checks.append(check)
        return self

    def add_positive_check(
        self,
        column: str,
        severity: ValidationSeverity = ValidationSeverity.WARNING,
    ) -> "DataValidator":
        """Values must be strictly greater than zero"""
        return self._add_row_check(
            f"positive_{column}",
            [column],
            lambda df: df.filter(pl.col(column) <= 0),
            f"have non-positive '{column}'",
            severity,
        )

    def add_not_after_check(
        self,
        column: str,
        limit: date,
        severity: ValidationSeverity = ValidationSeverity.WARNING,
    ) -> "DataValidator":
        """Dates must not be later than limit"""
        return self._add_row_check(
            f"not_after_{column}",
            [column],
            lambda df: df.filter(pl.col(column) > limit),
            f"have '{column}' after {limit.isoformat()}",
            severity,
        )

    def add_column_order_check(
        self,
        earlier: str,
        later: str,
        severity: ValidationSeverity = ValidationSeverity.WARNING,
    ) -> "DataValidator":
        """One column never exceeds another in the same row"""
        return self._add_row_check(
            f"order_{earlier}_before_{later}",
            [earlier, later],
            lambda df: df.filter(pl.col(later) < pl.col(earlier)),
            f"have '{later}' before '{earlier}'",
            severity,
        )

    def add_coverage_check(
        self,
        column: str,
        referencing_df: pl.DataFrame,
        severity: ValidationSeverity = ValidationSeverity.INFO,
    ) -> "DataValidator":
        """Every row should be referenced at least once by referencing_df"""
        return self._add_row_check(
            f"referenced_{column}",
            [column],
            lambda df: df.join(referencing_df.select(column).unique(), on=column, how="anti"),
            f"are never referenced by '{column}'",
            severity,
        )

    def validate(self, df: pl.DataFrame) -> ValidationResult:
        """
        Run all registered checks.

        Failed ERROR checks make the result FAILED, failed WARNING checks
        make it PARTIAL. INFO checks never change the status.
        """
        checks = [check(df) for check in self._checks]

        for check in checks:
            if not check.passed:
                log = logger.info if check.severity == ValidationSeverity.INFO else logger.warning
                log(
                    "Validation check failed",
                    dataset=self.name,
                    check=check.name,
                    message=check.message,
                    severity=check.severity.value,
                )

        severities = {c.severity for c in checks if not c.passed}
        if ValidationSeverity.ERROR in severities:
            status = ValidationStatus.FAILED
        elif ValidationSeverity.WARNING in severities:
            status = ValidationStatus.PARTIAL
        else:
            status = ValidationStatus.PASSED

        logger.info(
            "Validation complete",
            dataset=self.name,
            status=status.value,
            checks=len(checks),
            failed=sum(1 for c in checks if not c.passed),
        )
        return ValidationResult(status=status, checks=checks)


def validate_tables(
    tables: LoadedTables,
    enriched: pl.DataFrame,
    today: Optional[date] = None,
) -> Dict[str, ValidationResult]:
    """
    Run the retail quality checks over one reporting run's data.

    Args:
        tables: Loaded entity tables
        enriched: Enriched orders, for the join date check
        today: Latest acceptable order date (default: current date)

    Returns:
        Validation result per dataset name
    """
    today = today or date.today()

    validators = {
        "customers": DataValidator("customers").add_coverage_check("customer_id", tables.orders),
        "products": (
            DataValidator("products")
            .add_positive_check("price")
            .add_coverage_check("product_id", tables.orders)
        ),
        "orders": DataValidator("orders").add_not_after_check("order_date", today),
        "enriched_orders": DataValidator("enriched_orders").add_column_order_check("join_date", "order_date"),
    }
    frames = {
        "customers": tables.customers,
        "products": tables.products,
        "orders": tables.orders,
        "enriched_orders": enriched,
    }
    return {name: validator.validate(frames[name]) for name, validator in validators.items()}
