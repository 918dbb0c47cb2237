"""Utilities package for resort pricing extraction.

This package provides:
- Error codes and exception classes (exceptions.py)
- Structured logging utilities (logging.py)
"""

from resort_pricing_extraction.utils.exceptions import (
    ConfigurationError,
    ErrorCode,
    PricingEngineError,
    SheetNotFoundError,
    WorkbookError,
    WorkbookNotFoundError,
    WorkbookReadError,
)
from resort_pricing_extraction.utils.logging import (
    LogContext,
    StructuredLogger,
    configure_logging,
    get_logger,
)

__all__ = [
    # Exceptions
    "ConfigurationError",
    "ErrorCode",
    "PricingEngineError",
    "SheetNotFoundError",
    "WorkbookError",
    "WorkbookNotFoundError",
    "WorkbookReadError",
    # Logging
    "LogContext",
    "StructuredLogger",
    "configure_logging",
    "get_logger",
]
