"""
Retail Sales Analytics
Configuration Module
"""
from .settings import MonthGrouping, OutputFormat, Settings, get_settings

__all__ = ["MonthGrouping", "OutputFormat", "Settings", "get_settings"]
