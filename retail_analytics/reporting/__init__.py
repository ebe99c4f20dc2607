"""
Reporting Module
"""
from .report import Report, ReportAssembler, ReportWriter

__all__ = [
    "Report",
    "ReportAssembler",
    "ReportWriter",
]
