"""Pricing extraction from a located pricing block.

Every data cell of the block becomes one ``PriceEntry``: the cell's period
comes from its column header, and its accommodation type, nights and pax
from the header band above it and the row labels beside it. Merged price
cells fan out automatically, because the grid resolves every covered
address to the merge's value.
"""

import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Literal

from resort_pricing_extraction.cell_grid import Cell, CellGrid, cell_ref
from resort_pricing_extraction.config import Settings
from resort_pricing_extraction.config import settings as default_settings
from resort_pricing_extraction.models import (
    UNAVAILABLE,
    IssueLocation,
    LayoutOverride,
    ProcessingError,
    Severity,
)
from resort_pricing_extraction.services.content_classifier import (
    PeriodLabel,
    SpecialPeriodMatch,
    classify_accommodation_type,
    classify_currency,
    classify_nights_pax,
    classify_period_label,
    detect_decimal_separator,
    find_currencies,
    is_price_like,
    parse_price_text,
)
from resort_pricing_extraction.services.layout_analyzer import (
    DetectionResult,
    LayoutAnalyzer,
    PricingSection,
    SheetView,
)
from resort_pricing_extraction.utils.exceptions import ErrorCode
from resort_pricing_extraction.utils.logging import get_logger

logger = get_logger(__name__)

PriceValue = float | Literal["unavailable"]


@dataclass(frozen=True)
class PriceCoordinate:
    """Where a price sits in the pricing space."""

    period: str
    """Month name or special period label."""

    accommodation_type: str
    """Resolved accommodation type."""

    nights: int | None
    """Nights, None when no header names them."""

    pax: int | None
    """Guests, None when no header names them."""

    month_number: int | None = None
    """Calendar month for month periods."""

    special_period: SpecialPeriodMatch | None = None
    """Special period details for non-month periods."""

    @property
    def is_special(self) -> bool:
        return self.special_period is not None

    @property
    def key(self) -> tuple[str, str, int | None, int | None]:
        """Identity of the coordinate; at most one record per key."""
        return (self.period, self.accommodation_type, self.nights, self.pax)


@dataclass(frozen=True)
class PriceCell:
    """Interpreted content of one price cell."""

    value: PriceValue
    """Parsed price (zero included) or "unavailable"."""

    currency: str
    """Currency that applies to this cell."""

    notes: str | None = None
    """Text found in the cell besides the number."""

    @property
    def is_available(self) -> bool:
        return self.value != UNAVAILABLE


@dataclass
class PriceEntry:
    """A price cell placed at its coordinate."""

    coordinate: PriceCoordinate
    cell: PriceCell
    row: int
    """0-based grid row of the source cell."""

    col: int
    """0-based grid column of the source cell."""

    merged_range: str | None = None
    """A1 reference of the merge the value came from."""

    currency_source: str = "sheet"
    """"sheet", "header" or "cell"."""

    type_source: str = "header"
    """"header", "label", "default" or "override"."""

    @property
    def ref(self) -> str:
        return cell_ref(self.row, self.col)

    @property
    def is_merged(self) -> bool:
        return self.merged_range is not None


@dataclass
class PriceMatrix:
    """All price entries of a sheet plus what its headers advertise."""

    entries: list[PriceEntry] = field(default_factory=list)
    currency: str = ""
    decimal_separator: str = "."
    accommodation_types: list[str] = field(default_factory=list)
    """Accommodation types resolved for the entries, in scan order."""

    nights_options: list[int] = field(default_factory=list)
    """Night counts advertised by the headers."""

    period_labels: list[str] = field(default_factory=list)
    """Period labels of the axis, in axis order."""

    issues: list[ProcessingError] = field(default_factory=list)

    @property
    def available_count(self) -> int:
        return sum(1 for entry in self.entries if entry.cell.is_available)


@dataclass
class _AxisContext:
    type: str | None = None
    type_confidence: float = 0.0
    type_source: str = "default"
    nights: int | None = None
    pax: int | None = None
    currency: str | None = None
    fallback_type: str | None = None


class PricingExtractor:
    """Turn a located pricing block into price entries."""

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or default_settings
        self._analyzer = LayoutAnalyzer(self._settings)

    @property
    def label_threshold(self) -> float:
        return self._settings.label_confidence_threshold

    def resolve_decimal_separator(self, values: list[Any], currency: str | None = None) -> str:
        """Pick the decimal separator from settings, else from numeric text cues.

        With no cues either way the sheet currency decides.
        """
        if self._settings.decimal_separator != "auto":
            return self._settings.decimal_separator
        if self._settings.thousands_separator == ",":
            return "."
        if self._settings.thousands_separator == ".":
            return ","
        return detect_decimal_separator(values, currency)

    def extract(
        self,
        grid: CellGrid,
        detection: DetectionResult,
        currency: str,
        reference_year: int | None = None,
        override: LayoutOverride | None = None,
    ) -> PriceMatrix:
        """Extract every price cell of the detected pricing block.

        Args:
            grid: Source sheet.
            detection: Layout detection for the sheet.
            currency: Sheet currency, used unless a header or cell names one.
            reference_year: Year for special-period ranges without one.
            override: Reviewer corrections (accommodation type).

        Returns:
            Price matrix; empty when there is no pricing block.
        """
        section = detection.pricing_section
        matrix = PriceMatrix(currency=currency)
        if section is None or not section.data_rows:
            return matrix

        sheet = grid.sheet_name or None
        view = section.view(grid)
        matrix.decimal_separator = self.resolve_decimal_separator(
            [view.get(i, j).raw_value for i in section.data_rows for j in section.data_cols],
            currency,
        )
        matrix.nights_options = list(section.nights_options)
        matrix.period_labels = section.period_labels

        periods = {
            j: self._dated_period(section.column_periods[j], reference_year)
            for j in section.data_cols
        }
        column_contexts = {
            j: self._axis_context(self._header_cells(view, section, j))
            for j in section.data_cols
        }
        forced_type = override.accommodation_type if override else None

        used_default = False
        reported_merges: set[str] = set()
        for i in section.data_rows:
            row_context = self._axis_context(self._label_cells(view, section, i))
            for j in section.data_cols:
                column = column_contexts[j]
                type_name, type_source = self._resolve_type(column, row_context, forced_type)
                used_default = used_default or type_source == "default"
                period = periods[j]
                coordinate = PriceCoordinate(
                    period=period.label,
                    accommodation_type=type_name,
                    nights=column.nights if column.nights is not None else row_context.nights,
                    pax=column.pax if column.pax is not None else row_context.pax,
                    month_number=period.month,
                    special_period=period.special_period,
                )

                header_currency = column.currency or row_context.currency
                cell = view.get(i, j)
                price_cell, cell_currency = self._price_cell(
                    cell, header_currency or currency, matrix.decimal_separator
                )
                if cell_currency:
                    currency_source = "cell"
                elif header_currency:
                    currency_source = "header"
                else:
                    currency_source = "sheet"

                if not price_cell.is_available and price_cell.notes:
                    key = cell.merged_range_id or cell.ref
                    if key not in reported_merges:
                        reported_merges.add(key)
                        matrix.issues.append(
                            ProcessingError(
                                severity=Severity.INFO,
                                code=ErrorCode.PRICE_NOT_NUMERIC,
                                message=(
                                    f"Price cell holds text {price_cell.notes!r}; "
                                    "recorded as unavailable"
                                ),
                                location=IssueLocation.at(sheet, cell.row, cell.col),
                            )
                        )

                matrix.entries.append(
                    PriceEntry(
                        coordinate=coordinate,
                        cell=price_cell,
                        row=cell.row,
                        col=cell.col,
                        merged_range=cell.merged_range_id,
                        currency_source=currency_source,
                        type_source=type_source,
                    )
                )
                if type_name not in matrix.accommodation_types:
                    matrix.accommodation_types.append(type_name)

        if used_default:
            matrix.issues.append(
                ProcessingError(
                    severity=Severity.INFO,
                    code=ErrorCode.DEFAULT_ACCOMMODATION_TYPE,
                    message=(
                        "No accommodation type found in headers; using "
                        f"{self._settings.default_accommodation_type!r}"
                    ),
                    location=IssueLocation(sheet=sheet),
                )
            )

        logger.info(
            "Prices extracted",
            entries=len(matrix.entries),
            available=matrix.available_count,
            decimal_separator=matrix.decimal_separator,
        )
        return matrix

    # ------------------------------------------------------------------ #
    # Coordinates
    # ------------------------------------------------------------------ #

    def _dated_period(self, period: PeriodLabel, year: int | None) -> PeriodLabel:
        if not period.is_special or year is None or not period.text:
            return period
        dated = classify_period_label(period.text, year=year)
        if dated is None or not dated.is_special:
            return period
        return dated

    def _header_cells(self, view: SheetView, section: PricingSection, j: int) -> list[Cell]:
        data_start = section.data_cols[0]
        return [
            cell
            for r in section.header_rows
            if r != section.axis_index
            and (cell := self._analyzer.usable_band_cell(view, r, j, data_start))
            is not None
        ]

    def _label_cells(self, view: SheetView, section: PricingSection, i: int) -> list[Cell]:
        return [
            cell
            for j in section.label_cols
            if (cell := self._analyzer.usable_label(view, i, j, section.axis_index))
            is not None
        ]

    def _axis_context(self, cells: list[Cell]) -> _AxisContext:
        context = _AxisContext()
        for cell in cells:
            value = cell.raw_value
            if not isinstance(value, str):
                continue

            accommodation = classify_accommodation_type(value)
            if (
                accommodation.confidence > self.label_threshold
                and accommodation.confidence > context.type_confidence
            ):
                context.type = accommodation.type
                context.type_confidence = accommodation.confidence

            nights_pax = classify_nights_pax(value)
            is_nights_pax = nights_pax.confidence > self.label_threshold
            if is_nights_pax:
                if context.nights is None:
                    context.nights = nights_pax.nights
                if context.pax is None:
                    context.pax = nights_pax.pax

            if context.currency is None:
                context.currency = classify_currency(value)

            if (
                context.fallback_type is None
                and accommodation.confidence <= self.label_threshold
                and not is_nights_pax
                and not self._is_currency_label(value)
                and not is_price_like(value)
                and classify_period_label(value) is None
            ):
                context.fallback_type = " ".join(value.split())
        return context

    @staticmethod
    def _is_currency_label(text: str) -> bool:
        if not find_currencies(text):
            return False
        return len(re.findall(r"[A-Za-z]+", text)) <= 2

    def _resolve_type(
        self, column: _AxisContext, row: _AxisContext, forced: str | None
    ) -> tuple[str, str]:
        if forced:
            return forced, "override"
        if column.type and column.type_confidence >= row.type_confidence:
            return column.type, "header"
        if row.type:
            return row.type, "header"
        fallback = column.fallback_type or row.fallback_type
        if fallback:
            return fallback, "label"
        return self._settings.default_accommodation_type, "default"

    # ------------------------------------------------------------------ #
    # Price cells
    # ------------------------------------------------------------------ #

    @staticmethod
    def _price_cell(
        cell: Cell, currency: str, decimal_separator: str
    ) -> tuple[PriceCell, str | None]:
        """Interpret one cell; returns the cell and any currency it names itself."""
        value = cell.raw_value
        if cell.is_blank:
            return PriceCell(value=UNAVAILABLE, currency=currency), None
        if cell.is_numeric:
            return PriceCell(value=float(value), currency=currency), None
        if isinstance(value, (datetime, date)):
            return (
                PriceCell(value=UNAVAILABLE, currency=currency, notes=value.isoformat()),
                None,
            )
        if not isinstance(value, str):
            return PriceCell(value=UNAVAILABLE, currency=currency, notes=str(value)), None

        parsed = parse_price_text(value, decimal_separator)
        cell_currency = parsed.currency
        if parsed.value is None:
            return (
                PriceCell(
                    value=UNAVAILABLE,
                    currency=cell_currency or currency,
                    notes=cell.text,
                ),
                cell_currency,
            )
        return (
            PriceCell(
                value=parsed.value,
                currency=cell_currency or currency,
                notes=parsed.notes,
            ),
            cell_currency,
        )


__all__ = [
    "PriceCell",
    "PriceCoordinate",
    "PriceEntry",
    "PriceMatrix",
    "PriceValue",
    "PricingExtractor",
]
