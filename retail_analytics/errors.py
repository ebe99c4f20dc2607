"""
Custom exceptions for retail analytics.

This module defines the exception hierarchy:
- RetailAnalyticsError (base)
- MalformedRecordError
- DanglingReferenceError
- NoDataError
- UnknownMetricError
"""

from typing import Any, Dict, Optional

__all__ = [
    "RetailAnalyticsError",
    "MalformedRecordError",
    "DanglingReferenceError",
    "NoDataError",
    "UnknownMetricError",
]


class RetailAnalyticsError(Exception):
    """Base class for all reporting errors.

    Carries a ``details`` mapping so handlers can log the offending
    record without parsing the message.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


class MalformedRecordError(RetailAnalyticsError):
    """A loaded record is missing a required field or fails type coercion.

    Raised when:
    - A required column is absent from the source
    - A required value is null or blank
    - A value cannot be coerced (non-numeric price, unparseable date)
    - A value breaks a per-record rule (quantity <= 0, price < 0)

    Example:
        >>> try:
        ...     load_tables(customers, products, orders)
        ... except MalformedRecordError as e:
        ...     print(e.entity, e.record_id, e.field)
    """

    def __init__(
        self,
        entity: str,
        field: str,
        record_id: Any = None,
        value: Any = None,
        reason: Optional[str] = None,
    ) -> None:
        location = f"{entity} record {record_id}" if record_id is not None else entity
        msg = f"Malformed {location}: field '{field}'"
        if reason:
            msg = f"{msg} {reason}"
        if value is not None:
            msg = f"{msg} (got {value!r})"
        super().__init__(
            msg,
            details={"entity": entity, "field": field, "record_id": record_id, "value": value},
        )
        self.entity = entity
        self.field = field
        self.record_id = record_id
        self.value = value


class DanglingReferenceError(RetailAnalyticsError):
    """An order references a customer or product that was not loaded."""

    def __init__(self, entity: str, order_id: Any, field: str, missing_id: Any) -> None:
        msg = f"Order {order_id} references unknown {entity} ({field}={missing_id})"
        super().__init__(
            msg,
            details={
                "entity": entity,
                "order_id": order_id,
                "field": field,
                "missing_id": missing_id,
            },
        )
        self.entity = entity
        self.order_id = order_id
        self.field = field
        self.missing_id = missing_id


class NoDataError(RetailAnalyticsError):
    """A single-row aggregate was requested over an empty dataset."""

    def __init__(self, metric: str) -> None:
        super().__init__(
            f"Metric '{metric}' needs at least one order",
            details={"metric": metric},
        )
        self.metric = metric


class UnknownMetricError(RetailAnalyticsError, ValueError):
    """A requested metric name is not registered."""

    def __init__(self, metric: str, available: Any = None) -> None:
        super().__init__(
            f"Unknown metric: {metric}",
            details={"metric": metric, "available": list(available or [])},
        )
        self.metric = metric
