"""
Retail Sales Analytics
Centralized Configuration Management

This module provides configuration management using Pydantic settings with
environment variable support, validation, and type safety.
"""

from enum import Enum
from functools import lru_cache
from typing import List, Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class MonthGrouping(str, Enum):
    """How order dates are bucketed into months"""
    MONTH_NAME = "month_name"  # "March" - merges the same month across years
    YEAR_MONTH = "year_month"  # "2023-03"


class OutputFormat(str, Enum):
    """Supported result table formats"""
    CSV = "csv"
    PARQUET = "parquet"
    JSON = "json"


class DataSettings(BaseSettings):
    """Input and Output Location Configuration"""

    model_config = SettingsConfigDict(env_prefix="DATA_")

    input_dir: str = Field(default="./data/raw", description="Directory holding the entity files")
    output_dir: str = Field(default="./data/reports", description="Directory for result tables")
    customers_file: str = Field(default="customers.csv", description="Customers file name")
    products_file: str = Field(default="products.csv", description="Products file name")
    orders_file: str = Field(default="orders.csv", description="Orders file name")
    output_format: OutputFormat = Field(default=OutputFormat.CSV, description="Result table format")
    null_values: List[str] = Field(
        default=["", "NULL", "null", "None", "NA", "N/A"],
        description="Strings read as missing values",
    )


class ReportingSettings(BaseSettings):
    """Metric Engine Configuration"""

    model_config = SettingsConfigDict(env_prefix="REPORT_")

    month_grouping: MonthGrouping = Field(
        default=MonthGrouping.MONTH_NAME,
        description="Group by month name or by year and month",
    )
    top_products_n: int = Field(default=5, ge=1, description="Products kept by top_products")
    top_customers_n: int = Field(default=10, ge=1, description="Customers kept by top_customers")
    metrics: List[str] = Field(default_factory=list, description="Metrics to compute, empty for all")
    run_quality_checks: bool = Field(default=True, description="Run data quality checks before reporting")


class MonitoringSettings(BaseSettings):
    """Logging Configuration"""

    model_config = SettingsConfigDict(env_prefix="")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL", description="Logging level")
    log_format: str = Field(default="text", alias="LOG_FORMAT", description="Log format: json or text")
    log_file: Optional[str] = Field(default=None, alias="LOG_FILE", description="Log file path")

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate log format value"""
        if v.lower() not in ("json", "text"):
            raise ValueError("Log format must be 'json' or 'text'")
        return v.lower()


class Settings(BaseSettings):
    """
    Main Application Settings

    Aggregates all configuration sections and provides a single entry point
    for accessing application configuration.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_env: str = Field(default="development", alias="APP_ENV", description="Environment")

    # Subsystem configurations
    data: DataSettings = Field(default_factory=DataSettings)
    reporting: ReportingSettings = Field(default_factory=ReportingSettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment value"""
        allowed = ["development", "staging", "production", "testing"]
        if v.lower() not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v.lower()


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are only loaded once.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
