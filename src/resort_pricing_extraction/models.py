"""Pydantic models for the parse result handed to callers."""

from datetime import date
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from resort_pricing_extraction.cell_grid import CellRange, cell_ref
from resort_pricing_extraction.utils.exceptions import ErrorCode

UNAVAILABLE = "unavailable"


class Severity(str, Enum):
    """Severity of a processing issue."""

    INFO = "info"
    """Cosmetic or expected, e.g. a discarded placeholder inclusion."""

    WARNING = "warning"
    """Degraded confidence or incomplete coverage; result still usable."""

    ERROR = "error"
    """A specific data point is unusable; the rest of the result has value."""

    CRITICAL = "critical"
    """The result is not safe to import."""


class Orientation(str, Enum):
    """How calendar months are laid out on the sheet."""

    MONTHS_IN_ROWS = "months-in-rows"
    """One month per row; months are read down a column."""

    MONTHS_IN_COLUMNS = "months-in-columns"
    """One month per column; months are read along a header row."""

    MIXED = "mixed"
    """Both orientations are equally supported by the sheet."""


class IssueLocation(BaseModel):
    """Where in the workbook an issue applies."""

    sheet: str | None = Field(default=None, description="Worksheet name")
    row: int | None = Field(default=None, description="1-based row number")
    column: str | None = Field(default=None, description="Column letter")
    cell: str | None = Field(default=None, description="A1-style cell reference")

    @classmethod
    def at(cls, sheet: str | None, row: int, col: int) -> "IssueLocation":
        """Build a location from a 0-based grid address."""
        ref = cell_ref(row, col)
        return cls(
            sheet=sheet,
            row=row + 1,
            column=ref.rstrip("0123456789"),
            cell=ref,
        )

    @classmethod
    def for_row(cls, sheet: str | None, row: int) -> "IssueLocation":
        """Build a location naming a whole 0-based row."""
        return cls(sheet=sheet, row=row + 1)


class ProcessingError(BaseModel):
    """A classified data-quality issue. Accumulated on the result, never raised."""

    severity: Severity = Field(..., description="info, warning, error or critical")
    code: ErrorCode = Field(..., description="Stable issue code")
    message: str = Field(..., description="Human-readable description")
    location: IssueLocation | None = Field(
        default=None, description="Cell or row the issue refers to"
    )
    suggestion: str | None = Field(
        default=None, description="Suggested correction for the reviewer"
    )
    recoverable: bool = Field(
        default=True, description="Whether the result is still usable for import"
    )


class PricingRecord(BaseModel):
    """One price for a (month, accommodation type, nights, pax) combination."""

    model_config = ConfigDict(frozen=True)

    month: str = Field(..., description="Calendar month name or special period label")
    accommodation_type: str = Field(..., description="Accommodation type name")
    accommodation_code: str = Field(..., description="Short accommodation type code")
    nights: int | None = Field(default=None, description="Length of stay in nights")
    pax: int | None = Field(default=None, description="Number of guests")
    price: float | Literal["unavailable"] = Field(
        ..., description="Price, or 'unavailable' when the cell was blank or text"
    )
    currency: str = Field(..., description="ISO currency code")
    special_period: str | None = Field(
        default=None, description="Special period label when month is not calendar"
    )
    valid_from: date | None = Field(default=None, description="First valid date")
    valid_to: date | None = Field(default=None, description="Last valid date")
    notes: str | None = Field(default=None, description="Text found in the price cell")

    @property
    def is_available(self) -> bool:
        """Whether the record carries a real price (zero included)."""
        return self.price != UNAVAILABLE

    @property
    def key(self) -> tuple[str, str, int | None, int | None]:
        """Identity of the record within one result."""
        return (self.month, self.accommodation_type, self.nights, self.pax)


class SpecialPeriod(BaseModel):
    """A named, optionally dated pricing period found on the sheet."""

    label: str = Field(..., description="Period label, e.g. Easter")
    period_type: str = Field(..., description="holiday, season or event")
    valid_from: date | None = Field(default=None, description="Start date")
    valid_to: date | None = Field(default=None, description="End date")


class ResortMetadata(BaseModel):
    """Sheet-level facts about the resort and its price list."""

    resort_name: str = Field(default="", description="Resort name, empty if not found")
    resort_name_source: str | None = Field(
        default=None, description="title, sheet_name, first_row or override"
    )
    currency: str = Field(..., description="Sheet currency")
    currency_detected: bool = Field(
        default=False, description="False when the configured default was used"
    )
    season: str | None = Field(default=None, description="Season named in the title")
    valid_from: date | None = Field(default=None, description="Price list start")
    valid_to: date | None = Field(default=None, description="Price list end")
    special_periods: list[SpecialPeriod] = Field(
        default_factory=list, description="Special periods used as pricing axis values"
    )


class ParsedResortData(BaseModel):
    """Everything extracted from one worksheet."""

    sheet_name: str = Field(default="", description="Source worksheet")
    resort_name: str = Field(default="", description="Resort name")
    destination: str | None = Field(default=None, description="Destination, if named")
    pricing: list[PricingRecord] = Field(default_factory=list)
    inclusions: list[str] = Field(default_factory=list)
    exclusions: list[str] | None = Field(default=None)
    inclusions_by_type: dict[str, list[str]] = Field(
        default_factory=dict, description="Inclusions partitioned by accommodation type"
    )
    metadata: ResortMetadata
    issues: list[ProcessingError] = Field(default_factory=list)

    @property
    def has_critical_issues(self) -> bool:
        """Whether any issue is critical."""
        return any(issue.severity == Severity.CRITICAL for issue in self.issues)

    @property
    def is_import_eligible(self) -> bool:
        """Whether the result may be offered for import."""
        return not self.has_critical_issues

    def issues_by_severity(self, severity: Severity) -> list[ProcessingError]:
        """Return the issues of one severity, in the order they were recorded."""
        return [issue for issue in self.issues if issue.severity == severity]

    def issue_counts(self) -> dict[str, int]:
        """Count issues per severity."""
        counts = {severity.value: 0 for severity in Severity}
        for issue in self.issues:
            counts[issue.severity.value] += 1
        return counts

    def summary(self) -> dict[str, Any]:
        """Summarize record and issue counts."""
        available = sum(1 for record in self.pricing if record.is_available)
        return {
            "total_records": len(self.pricing),
            "available_records": available,
            "unavailable_records": len(self.pricing) - available,
            "special_period_records": sum(
                1 for record in self.pricing if record.special_period
            ),
            "accommodation_types": sorted(
                {record.accommodation_type for record in self.pricing}
            ),
            "inclusions": len(self.inclusions),
            "issues": self.issue_counts(),
        }


class LayoutOverride(BaseModel):
    """Reviewer corrections fed back for a second extraction pass."""

    orientation: Orientation | None = Field(
        default=None, description="Force months-in-rows or months-in-columns"
    )
    axis_index: int | None = Field(
        default=None,
        description=(
            "0-based row holding month labels (months-in-columns) or column "
            "holding them (months-in-rows)"
        ),
    )
    pricing_bounds: str | None = Field(
        default=None, description="A1-style range of the whole pricing block"
    )
    accommodation_type: str | None = Field(
        default=None, description="Accommodation type applied to every record"
    )
    currency: str | None = Field(default=None, description="Currency to use")
    resort_name: str | None = Field(default=None, description="Resort name to use")

    @field_validator("pricing_bounds")
    @classmethod
    def validate_pricing_bounds(cls, v: str | None) -> str | None:
        """Validate the bounds parse as a cell range."""
        if v is None:
            return v
        CellRange.from_ref(v)
        return v.strip().upper()

    @field_validator("orientation")
    @classmethod
    def validate_orientation(cls, v: Orientation | None) -> Orientation | None:
        """An override must name a concrete orientation."""
        if v == Orientation.MIXED:
            raise ValueError("orientation override must be months-in-rows or months-in-columns")
        return v

    @field_validator("axis_index")
    @classmethod
    def validate_axis_index(cls, v: int | None) -> int | None:
        """Validate the axis index is not negative."""
        if v is not None and v < 0:
            raise ValueError(f"axis_index must be at least 0, got {v}")
        return v

    @field_validator("currency")
    @classmethod
    def validate_currency(cls, v: str | None) -> str | None:
        """Validate the currency is a three-letter code."""
        if v is None:
            return v
        code = v.strip().upper()
        if len(code) != 3 or not code.isalpha():
            raise ValueError(f"currency must be a 3-letter code, got {v!r}")
        return code

    @property
    def bounds(self) -> CellRange | None:
        """Parsed pricing bounds."""
        return CellRange.from_ref(self.pricing_bounds) if self.pricing_bounds else None
