"""Tests for configuration management module."""

import logging
import os
from unittest.mock import patch

import pytest

from resort_pricing_extraction.config import Settings, validate_settings_on_startup


class TestSettings:
    """Tests for the Settings class."""

    def test_default_values(self) -> None:
        """Test default configuration values."""
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=None)

        # Locale hints
        assert settings.decimal_separator == "auto"
        assert settings.thousands_separator == "auto"
        assert settings.default_currency == "EUR"

        # Detection thresholds
        assert settings.label_confidence_threshold == 0.5
        assert settings.layout_confidence_threshold == 0.5
        assert settings.max_secondary_layouts == 3
        assert settings.scan_limit is None

        # Plausibility ranges
        assert settings.min_price == 0.0
        assert settings.max_price == 100000.0
        assert (settings.min_nights, settings.max_nights) == (1, 30)
        assert (settings.min_pax, settings.max_pax) == (1, 20)

        # Extraction defaults
        assert settings.default_accommodation_type == "Standard"
        assert "tbc" in settings.placeholder_blacklist
        assert settings.title_scan_rows == 10
        assert settings.inclusions_scan_rows == 30
        assert settings.price_precision == 2
        assert settings.reference_year is None

        # Logging
        assert settings.log_level == "INFO"
        assert settings.debug is False

    def test_environment_variable_prefix(self) -> None:
        """Test that environment variables use RPE_ prefix."""
        env_vars = {
            "RPE_DEFAULT_CURRENCY": "gbp",
            "RPE_MAX_PRICE": "5000",
            "RPE_REFERENCE_YEAR": "2025",
            "RPE_LOG_LEVEL": "DEBUG",
        }
        with patch.dict(os.environ, env_vars, clear=True):
            settings = Settings(_env_file=None)

        assert settings.default_currency == "GBP"
        assert settings.max_price == 5000.0
        assert settings.reference_year == 2025
        assert settings.log_level == "DEBUG"

    def test_placeholder_blacklist_from_json(self) -> None:
        """Test list settings are parsed from JSON and normalized."""
        env_vars = {"RPE_PLACEHOLDER_BLACKLIST": '["TBC", " Pending ", ""]'}
        with patch.dict(os.environ, env_vars, clear=True):
            settings = Settings(_env_file=None)

        assert settings.placeholder_blacklist == ["tbc", "pending"]

    def test_log_level_int_property(self) -> None:
        """Test log_level_int maps to the logging constant."""
        with patch.dict(os.environ, {"RPE_LOG_LEVEL": "warning"}, clear=True):
            settings = Settings(_env_file=None)

        assert settings.log_level_int == logging.WARNING

    def test_to_safe_dict(self) -> None:
        """Test to_safe_dict contains every field."""
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=None)

        safe = settings.to_safe_dict()
        assert safe["default_currency"] == "EUR"
        assert safe["placeholder_blacklist"] == settings.placeholder_blacklist
        assert set(safe) == set(Settings.model_fields)


class TestSettingsValidation:
    """Tests for settings validators."""

    def test_invalid_log_level_raises_error(self) -> None:
        """Test an unknown log level is rejected."""
        with (
            patch.dict(os.environ, {"RPE_LOG_LEVEL": "VERBOSE"}, clear=True),
            pytest.raises(ValueError, match="Invalid log level"),
        ):
            Settings(_env_file=None)

    def test_threshold_must_be_between_0_and_1(self) -> None:
        """Test thresholds outside [0, 1] are rejected."""
        with pytest.raises(ValueError, match="between 0.0 and 1.0"):
            Settings(_env_file=None, layout_confidence_threshold=1.5)
        with pytest.raises(ValueError, match="between 0.0 and 1.0"):
            Settings(_env_file=None, label_confidence_threshold=-0.1)

    def test_decimal_separator_values(self) -> None:
        """Test only auto, point and comma are accepted as decimal separator."""
        assert Settings(_env_file=None, decimal_separator=",").decimal_separator == ","
        with pytest.raises(ValueError, match="decimal_separator"):
            Settings(_env_file=None, decimal_separator=";")

    def test_separators_must_differ(self) -> None:
        """Test decimal and thousands separators cannot be equal."""
        with pytest.raises(ValueError, match="must differ"):
            Settings(_env_file=None, decimal_separator=",", thousands_separator=",")

    def test_default_currency_must_be_three_letters(self) -> None:
        """Test default currency is validated and upper-cased."""
        assert Settings(_env_file=None, default_currency=" usd ").default_currency == "USD"
        with pytest.raises(ValueError, match="3-letter code"):
            Settings(_env_file=None, default_currency="EURO")

    def test_min_must_be_less_than_max(self) -> None:
        """Test min/max pairs are checked."""
        with pytest.raises(ValueError, match="min_price.*must be less than"):
            Settings(_env_file=None, min_price=500.0, max_price=100.0)
        with pytest.raises(ValueError, match="min_pax.*must be less than"):
            Settings(_env_file=None, min_pax=4, max_pax=4)

    def test_row_limits_must_be_positive(self) -> None:
        """Test scan limits below one are rejected."""
        with pytest.raises(ValueError, match="at least 1"):
            Settings(_env_file=None, scan_limit=0)
        assert Settings(_env_file=None, scan_limit=None).scan_limit is None

    def test_empty_default_accommodation_type_rejected(self) -> None:
        """Test the default accommodation type cannot be blank."""
        with pytest.raises(ValueError, match="non-empty"):
            Settings(_env_file=None, default_accommodation_type="  ")


class TestValidateSettingsOnStartup:
    """Tests for startup validation warnings."""

    def test_warns_when_layout_threshold_zero(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test a zero layout threshold is reported."""
        settings = Settings(_env_file=None, layout_confidence_threshold=0.0)
        with caplog.at_level(logging.WARNING):
            validate_settings_on_startup(settings)

        assert "never be flagged" in caplog.text

    def test_warns_when_blacklist_empty(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test an empty placeholder blacklist is reported."""
        settings = Settings(_env_file=None, placeholder_blacklist=[])
        with caplog.at_level(logging.WARNING):
            validate_settings_on_startup(settings)

        assert "placeholder_blacklist is empty" in caplog.text

    def test_no_warning_for_defaults(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test default settings produce no warnings."""
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=None)
        with caplog.at_level(logging.WARNING):
            validate_settings_on_startup(settings)

        assert not [r for r in caplog.records if r.levelno >= logging.WARNING]
