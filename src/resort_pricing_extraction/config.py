"""Configuration management for resort pricing extraction.

This module provides centralized configuration using pydantic-settings.
All configuration options can be set via environment variables with the
RPE_ prefix, or via a .env file in the project root. A ``Settings``
instance is also the optional configuration object accepted by every
parsing entry point.

Environment Variables:
    RPE_DECIMAL_SEPARATOR: "auto", "." or "," (default: auto)
    RPE_THOUSANDS_SEPARATOR: "auto", ",", ".", " " or "'" (default: auto)
    RPE_DEFAULT_CURRENCY: Currency used when a sheet names none (default: EUR)
    RPE_LABEL_CONFIDENCE_THRESHOLD: Min confidence for header labels (default: 0.5)
    RPE_LAYOUT_CONFIDENCE_THRESHOLD: Low-confidence layout cut-off (default: 0.5)
    RPE_MAX_SECONDARY_LAYOUTS: Secondary layout candidates kept (default: 3)
    RPE_SCAN_LIMIT: Rows/columns scanned for headers (default: whole sheet)
    RPE_MIN_PRICE / RPE_MAX_PRICE: Price sanity range (default: 0 - 100000)
    RPE_MIN_NIGHTS / RPE_MAX_NIGHTS: Plausible nights (default: 1 - 30)
    RPE_MIN_PAX / RPE_MAX_PAX: Plausible pax (default: 1 - 20)
    RPE_DEFAULT_ACCOMMODATION_TYPE: Implicit accommodation type (default: Standard)
    RPE_PLACEHOLDER_BLACKLIST: JSON list of inclusion placeholders
    RPE_TITLE_SCAN_ROWS: Rows searched for title cells (default: 10)
    RPE_INCLUSIONS_SCAN_ROWS: Max rows read for inclusions (default: 30)
    RPE_PRICE_PRECISION: Decimal places for prices (default: 2)
    RPE_REFERENCE_YEAR: Year for special periods written without one
    RPE_LOG_LEVEL: Logging level (default: INFO)
    RPE_DEBUG: Enable debug mode (default: false)
"""

import logging
from typing import Any

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_PLACEHOLDER_BLACKLIST = [
    "n/a",
    "na",
    "tbc",
    "tba",
    "tbd",
    "none",
    "nil",
    "-",
    "x",
    "...",
    "?",
]


class Settings(BaseSettings):
    """Engine settings loaded from environment variables.

    Example .env file:
        RPE_DEFAULT_CURRENCY=GBP
        RPE_DECIMAL_SEPARATOR=,
        RPE_MAX_PRICE=50000
    """

    model_config = SettingsConfigDict(
        env_prefix="RPE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # =========================================================================
    # Locale Hints
    # =========================================================================

    decimal_separator: str = "auto"
    """Decimal separator for price text: "auto", "." or ","."""

    thousands_separator: str = "auto"
    """Thousands separator for price text: "auto", ",", ".", " " or "'"."""

    default_currency: str = "EUR"
    """ISO currency code used when a sheet does not name one."""

    # =========================================================================
    # Detection Thresholds
    # =========================================================================

    label_confidence_threshold: float = 0.5
    """Minimum classifier confidence for a cell to count as a header label."""

    layout_confidence_threshold: float = 0.5
    """Primary layouts below this confidence are flagged for review."""

    max_secondary_layouts: int = 3
    """Number of secondary layout candidates retained for review."""

    scan_limit: int | None = None
    """Scan only the first N rows and columns for headers (None scans all)."""

    # =========================================================================
    # Plausibility Ranges
    # =========================================================================

    min_price: float = 0.0
    """Lowest acceptable price."""

    max_price: float = 100000.0
    """Sanity ceiling for a single price."""

    min_nights: int = 1
    """Fewest plausible nights for a stay."""

    max_nights: int = 30
    """Most plausible nights for a stay."""

    min_pax: int = 1
    """Fewest plausible guests."""

    max_pax: int = 20
    """Most plausible guests."""

    # =========================================================================
    # Extraction Defaults
    # =========================================================================

    default_accommodation_type: str = "Standard"
    """Accommodation type used when a sheet names none."""

    placeholder_blacklist: list[str] = list(DEFAULT_PLACEHOLDER_BLACKLIST)
    """Inclusion items matching these (case-insensitive) are discarded."""

    title_scan_rows: int = 10
    """Rows searched for title and validity cells when no pricing block exists."""

    inclusions_scan_rows: int = 30
    """Maximum rows read for an inclusions block."""

    price_precision: int = 2
    """Decimal places prices are rounded to."""

    reference_year: int | None = None
    """Year applied to special-period ranges written without a year."""

    # =========================================================================
    # Logging Settings
    # =========================================================================

    log_level: str = "INFO"
    """Logging level: DEBUG, INFO, WARNING, ERROR, or CRITICAL."""

    debug: bool = False
    """Enable debug mode with additional logging."""

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a valid Python logging level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(
                f"Invalid log level: {v}. Must be one of: {', '.join(valid_levels)}"
            )
        return upper_v

    @field_validator("label_confidence_threshold", "layout_confidence_threshold")
    @classmethod
    def validate_threshold(cls, v: float) -> float:
        """Validate threshold is between 0.0 and 1.0."""
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"Threshold must be between 0.0 and 1.0, got {v}")
        return v

    @field_validator("decimal_separator")
    @classmethod
    def validate_decimal_separator(cls, v: str) -> str:
        """Validate the decimal separator hint."""
        if v not in {"auto", ".", ","}:
            raise ValueError(f"decimal_separator must be 'auto', '.' or ',', got {v!r}")
        return v

    @field_validator("thousands_separator")
    @classmethod
    def validate_thousands_separator(cls, v: str) -> str:
        """Validate the thousands separator hint."""
        if v not in {"auto", ",", ".", " ", "'"}:
            raise ValueError(
                f"thousands_separator must be 'auto', ',', '.', ' ' or \"'\", got {v!r}"
            )
        return v

    @field_validator("default_currency")
    @classmethod
    def validate_default_currency(cls, v: str) -> str:
        """Validate the default currency is a three-letter code."""
        code = v.strip().upper()
        if len(code) != 3 or not code.isalpha():
            raise ValueError(f"default_currency must be a 3-letter code, got {v!r}")
        return code

    @field_validator("default_accommodation_type")
    @classmethod
    def validate_default_accommodation_type(cls, v: str) -> str:
        """Validate the default accommodation type is non-empty."""
        if not v.strip():
            raise ValueError("default_accommodation_type must be a non-empty string")
        return v.strip()

    @field_validator("placeholder_blacklist")
    @classmethod
    def normalize_placeholder_blacklist(cls, v: list[str]) -> list[str]:
        """Lower-case and strip blacklist entries."""
        return [item.strip().lower() for item in v if item.strip()]

    @field_validator("max_secondary_layouts", "price_precision")
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        """Validate counts are not negative."""
        if v < 0:
            raise ValueError(f"Value must be at least 0, got {v}")
        return v

    @field_validator("scan_limit", "title_scan_rows", "inclusions_scan_rows")
    @classmethod
    def validate_row_limit(cls, v: int | None) -> int | None:
        """Validate row and column limits are positive."""
        if v is not None and v < 1:
            raise ValueError(f"Row/column limits must be at least 1, got {v}")
        return v

    @model_validator(mode="after")
    def validate_ranges(self) -> "Settings":
        """Validate every min/max pair and separator combination."""
        for low, high in (
            ("min_price", "max_price"),
            ("min_nights", "max_nights"),
            ("min_pax", "max_pax"),
        ):
            if getattr(self, low) >= getattr(self, high):
                raise ValueError(
                    f"{low} ({getattr(self, low)}) must be less than "
                    f"{high} ({getattr(self, high)})"
                )
        if (
            self.decimal_separator != "auto"
            and self.decimal_separator == self.thousands_separator
        ):
            raise ValueError(
                "decimal_separator and thousands_separator must differ, "
                f"both are {self.decimal_separator!r}"
            )
        return self

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def log_level_int(self) -> int:
        """Get log level as integer for logging module."""
        level: int = getattr(logging, self.log_level)
        return level

    def to_safe_dict(self) -> dict[str, Any]:
        """Convert settings to a dictionary suitable for logging.

        Returns:
            Dictionary representation of all settings.
        """
        return {
            "decimal_separator": self.decimal_separator,
            "thousands_separator": self.thousands_separator,
            "default_currency": self.default_currency,
            "label_confidence_threshold": self.label_confidence_threshold,
            "layout_confidence_threshold": self.layout_confidence_threshold,
            "max_secondary_layouts": self.max_secondary_layouts,
            "scan_limit": self.scan_limit,
            "min_price": self.min_price,
            "max_price": self.max_price,
            "min_nights": self.min_nights,
            "max_nights": self.max_nights,
            "min_pax": self.min_pax,
            "max_pax": self.max_pax,
            "default_accommodation_type": self.default_accommodation_type,
            "placeholder_blacklist": list(self.placeholder_blacklist),
            "title_scan_rows": self.title_scan_rows,
            "inclusions_scan_rows": self.inclusions_scan_rows,
            "price_precision": self.price_precision,
            "reference_year": self.reference_year,
            "log_level": self.log_level,
            "debug": self.debug,
        }


def validate_settings_on_startup(s: Settings) -> None:
    """Log warnings for settings that are legal but likely mistakes.

    Args:
        s: Settings instance to check.
    """
    logger = logging.getLogger(__name__)

    if s.layout_confidence_threshold == 0.0:
        logger.warning(
            "layout_confidence_threshold is 0.0; low-confidence layouts "
            "will never be flagged for review."
        )

    if not s.placeholder_blacklist:
        logger.warning(
            "placeholder_blacklist is empty; placeholder inclusions such as "
            "'TBC' will be kept."
        )

    if s.scan_limit is not None and s.scan_limit < 5:
        logger.warning(
            f"scan_limit={s.scan_limit} is very small; headers outside the "
            "first rows and columns will not be detected."
        )

    logger.info(
        f"Configuration loaded: log_level={s.log_level}, "
        f"default_currency={s.default_currency}, "
        f"decimal_separator={s.decimal_separator}, "
        f"layout_confidence_threshold={s.layout_confidence_threshold}"
    )


# Create the global settings instance
settings = Settings()
