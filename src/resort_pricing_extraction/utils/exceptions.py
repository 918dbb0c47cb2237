"""Error codes and exception classes for resort pricing extraction.

Data-quality problems found while parsing a sheet are never raised. They are
collected as ``ProcessingError`` issues on the parse result and carry one of
the ``ErrorCode`` values below. Exceptions are reserved for programmer errors
(malformed configuration) and for I/O problems while reading a workbook.

Exception Hierarchy:
    PricingEngineError (base)
    ├── WorkbookError
    │   ├── WorkbookNotFoundError
    │   ├── WorkbookReadError
    │   └── SheetNotFoundError
    └── ConfigurationError

Error Codes:
    All codes are unique strings (e.g., "E1001") shared by exceptions and
    issues, so callers can branch on them programmatically.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Enumeration of all error codes used in the application.

    Error codes are grouped by category:
    - E1xxx: Workbook/file errors (raised) and reading issues
    - E2xxx: Layout detection issues
    - E3xxx: Pricing issues
    - E4xxx: Inclusions issues
    - E5xxx: Metadata issues
    - E9xxx: Internal errors
    """

    # Workbook errors (E1xxx)
    FILE_NOT_FOUND = "E1001"
    FILE_READ_ERROR = "E1002"
    SHEET_NOT_FOUND = "E1003"
    MERGES_UNAVAILABLE = "E1004"

    # Layout issues (E2xxx)
    EMPTY_GRID = "E2001"
    NO_PERIOD_AXIS = "E2002"
    LOW_LAYOUT_CONFIDENCE = "E2003"
    LOW_CONFIDENCE_RECORD = "E2004"
    AMBIGUOUS_ORIENTATION = "E2005"
    DEFAULT_ACCOMMODATION_TYPE = "E2006"
    LAYOUT_OVERRIDE_APPLIED = "E2007"

    # Pricing issues (E3xxx)
    PRICE_NOT_NUMERIC = "E3001"
    DUPLICATE_PRICE_KEY = "E3002"
    PRICE_OUT_OF_RANGE = "E3003"
    NIGHTS_PAX_MISSING = "E3004"
    NIGHTS_OUT_OF_RANGE = "E3005"
    PAX_OUT_OF_RANGE = "E3006"
    MONTH_WITHOUT_PRICES = "E3007"
    MISSING_COMBINATIONS = "E3008"
    NO_PRICING_RECORDS = "E3009"
    INVALID_DATE_RANGE = "E3010"

    # Inclusions issues (E4xxx)
    INCLUSION_DISCARDED = "E4001"
    INCLUSION_DUPLICATE = "E4002"
    NO_INCLUSIONS = "E4003"

    # Metadata issues (E5xxx)
    RESORT_NAME_MISSING = "E5001"
    CURRENCY_DEFAULTED = "E5002"
    CURRENCY_UNRECOGNIZED = "E5003"
    MIXED_CURRENCIES = "E5004"
    VALIDITY_WINDOW_INVALID = "E5005"
    VALIDITY_WINDOW_INCOMPLETE = "E5006"

    # Internal errors (E9xxx)
    INTERNAL_ERROR = "E9001"
    CONFIGURATION_ERROR = "E9002"


class PricingEngineError(Exception):
    """Base exception for all resort pricing extraction errors.

    Attributes:
        message: Human-readable error message.
        error_code: Unique error code from ErrorCode enum.
        details: Optional dictionary with additional error details.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Error code from ErrorCode enum.
            details: Optional additional details about the error.
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert the exception to a dictionary for callers and logs.

        Returns:
            Dictionary with error information.
        """
        result: dict[str, Any] = {
            "error_code": self.error_code.value,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        """Return string representation with error code."""
        return f"[{self.error_code.value}] {self.message}"


# =============================================================================
# Workbook Errors (E1xxx)
# =============================================================================


class WorkbookError(PricingEngineError):
    """Base class for workbook reading errors."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.FILE_READ_ERROR,
        file_path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with file path information.

        Args:
            message: Error message.
            error_code: Error code.
            file_path: Path to the problematic workbook.
            details: Additional details.
        """
        details = details or {}
        if file_path:
            details["file_path"] = file_path
        super().__init__(message, error_code, details)
        self.file_path = file_path


class WorkbookNotFoundError(WorkbookError):
    """Raised when the workbook file does not exist."""

    def __init__(
        self,
        file_path: str,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with file path.

        Args:
            file_path: Path to the workbook that was not found.
            message: Optional custom message.
            details: Additional details.
        """
        message = message or f"Workbook not found: {file_path}"
        super().__init__(
            message=message,
            error_code=ErrorCode.FILE_NOT_FOUND,
            file_path=file_path,
            details=details,
        )


class WorkbookReadError(WorkbookError):
    """Raised when openpyxl cannot open or read the workbook."""

    def __init__(
        self,
        message: str,
        file_path: str | None = None,
        cause: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the underlying cause.

        Args:
            message: Error message.
            file_path: Optional workbook path.
            cause: Description of the underlying exception.
            details: Additional details.
        """
        details = details or {}
        if cause:
            details["cause"] = cause
        super().__init__(
            message=message,
            error_code=ErrorCode.FILE_READ_ERROR,
            file_path=file_path,
            details=details,
        )


class SheetNotFoundError(WorkbookError):
    """Raised when a requested worksheet is not in the workbook."""

    def __init__(
        self,
        sheet_name: str,
        available: list[str] | None = None,
        file_path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the missing sheet name.

        Args:
            sheet_name: Name of the requested sheet.
            available: Sheet names present in the workbook.
            file_path: Optional workbook path.
            details: Additional details.
        """
        details = details or {}
        details["sheet_name"] = sheet_name
        if available is not None:
            details["available_sheets"] = available
        super().__init__(
            message=f"Sheet '{sheet_name}' not found in workbook",
            error_code=ErrorCode.SHEET_NOT_FOUND,
            file_path=file_path,
            details=details,
        )
        self.sheet_name = sheet_name


# =============================================================================
# Configuration Errors (E9xxx)
# =============================================================================


class ConfigurationError(PricingEngineError):
    """Raised when the engine is called with an unusable configuration."""

    def __init__(
        self,
        message: str,
        setting: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the offending setting.

        Args:
            message: Error message.
            setting: Name of the setting that is invalid.
            details: Additional details.
        """
        details = details or {}
        if setting:
            details["setting"] = setting
        super().__init__(
            message=message,
            error_code=ErrorCode.CONFIGURATION_ERROR,
            details=details,
        )
        self.setting = setting
