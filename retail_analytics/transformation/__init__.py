"""
Data Transformation Module
"""
from .enrichers import ENRICHED_COLUMNS, OrderEnricher, enrich_orders

__all__ = [
    "ENRICHED_COLUMNS",
    "OrderEnricher",
    "enrich_orders",
]
