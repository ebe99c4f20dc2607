"""
Business Metrics Module
"""
from .metrics import MetricEngine

__all__ = ["MetricEngine"]
