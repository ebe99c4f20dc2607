"""
Unit Tests - Configuration
"""
import pytest
from pydantic import ValidationError

from retail_analytics.config import MonthGrouping, OutputFormat, Settings
from retail_analytics.config.settings import ReportingSettings


class TestSettings:
    """Tests for Settings"""

    def test_defaults(self, monkeypatch):
        """Test defaults when the environment is empty"""
        for name in ("APP_ENV", "REPORT_MONTH_GROUPING", "DATA_OUTPUT_FORMAT", "LOG_FORMAT"):
            monkeypatch.delenv(name, raising=False)

        settings = Settings(_env_file=None)

        assert settings.app_env == "development"
        assert settings.reporting.month_grouping == MonthGrouping.MONTH_NAME
        assert settings.data.output_format == OutputFormat.CSV
        assert settings.monitoring.log_format == "text"

    def test_environment_overrides(self, monkeypatch):
        """Test prefixed environment variables are read"""
        monkeypatch.setenv("APP_ENV", "Testing")
        monkeypatch.setenv("REPORT_MONTH_GROUPING", "year_month")
        monkeypatch.setenv("REPORT_TOP_PRODUCTS_N", "3")

        settings = Settings(_env_file=None)

        assert settings.app_env == "testing"
        assert settings.reporting.month_grouping == MonthGrouping.YEAR_MONTH
        assert settings.reporting.top_products_n == 3

    def test_invalid_environment(self, monkeypatch):
        """Test unknown environments are rejected"""
        monkeypatch.setenv("APP_ENV", "qa")

        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_invalid_log_format(self, monkeypatch):
        """Test log format must be json or text"""
        monkeypatch.setenv("LOG_FORMAT", "xml")

        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_top_n_must_be_positive(self):
        """Test top-N counts below one are rejected"""
        with pytest.raises(ValidationError):
            ReportingSettings(top_products_n=0)
