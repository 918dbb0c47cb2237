"""Sheet-level metadata: resort name, destination, currency, validity, season."""

import re
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime

from resort_pricing_extraction.cell_grid import Cell, CellGrid
from resort_pricing_extraction.config import Settings
from resort_pricing_extraction.config import settings as default_settings
from resort_pricing_extraction.models import (
    IssueLocation,
    LayoutOverride,
    ProcessingError,
    ResortMetadata,
    Severity,
    SpecialPeriod,
)
from resort_pricing_extraction.services.content_classifier import (
    MONTH_NAMES,
    classify_accommodation_type,
    classify_nights_pax,
    classify_period_label,
    classify_section_heading,
    find_currencies,
    find_dates,
    is_price_like,
)
from resort_pricing_extraction.services.layout_analyzer import DetectionResult
from resort_pricing_extraction.utils.exceptions import ErrorCode
from resort_pricing_extraction.utils.logging import get_logger

logger = get_logger(__name__)

_NAME_LABEL = re.compile(
    r"^(?:resort|hotel|property|accommodation)(?:\s+name)?\s*[:\-–]\s*(?P<value>.+)$",
    re.I,
)
_NAME_LABEL_ONLY = re.compile(
    r"^(?:resort|hotel|property|accommodation)(?:\s+name)?\s*:?$", re.I
)
_DESTINATION_LABEL = re.compile(
    r"^(?:destination|location|region|area)\s*[:\-–]\s*(?P<value>.+)$", re.I
)
_DESTINATION_LABEL_ONLY = re.compile(r"^(?:destination|location|region|area)\s*:?$", re.I)
_VALIDITY_HINT = re.compile(r"\b(?:valid|validity|from|until|period|dates?)\b", re.I)
_TITLE_SUFFIX = re.compile(
    r"\s*(?:[-–:|]\s*)?\b(?:price\s*list|prices?|pricing|rates?|tariffs?)\b.*$", re.I
)
_TRAILING_YEAR = re.compile(r"\s*[-–]?\s*(?:19|20)\d{2}(?:\s*[/-]\s*\d{2,4})?$")
_SEASON = re.compile(
    r"\b(?P<name>(?:high|low|peak|shoulder)\s+season|summer|winter|spring|autumn|fall)"
    r"(?:\s+(?P<year>(?:19|20)\d{2}(?:\s*[/-]\s*\d{2,4})?))?",
    re.I,
)
_SEASON_YEAR = re.compile(r"\bseason\s+(?P<year>(?:19|20)\d{2}(?:\s*[/-]\s*\d{2,4})?)", re.I)
_GENERIC_SHEET_NAME = re.compile(
    r"^(?:sheet|tabelle|feuil|hoja|foglio|blad)\s*\d*$"
    r"|^(?:data|prices?|pricing|rates?|tariffs?|price\s*list|summary|main|"
    r"import|export|template|untitled)\s*\d*$",
    re.I,
)
_GENERIC_HEADERS = {
    "month",
    "months",
    "period",
    "periods",
    "season",
    "dates",
    "date",
    "room",
    "room type",
    "rooms",
    "accommodation",
    "accommodation type",
    "type",
    "nights",
    "pax",
    "price",
    "prices",
    "rate",
    "rates",
    "currency",
    "notes",
}


@dataclass
class MetadataResult:
    """Metadata for one sheet plus the issues found reading it."""

    metadata: ResortMetadata
    destination: str | None = None
    issues: list[ProcessingError] = field(default_factory=list)

    @property
    def reference_year(self) -> int | None:
        """Year taken from the validity window, if one was found."""
        if self.metadata.valid_from is not None:
            return self.metadata.valid_from.year
        return None


class MetadataExtractor:
    """Read resort-level facts from the title block and headers of a sheet."""

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or default_settings

    def extract(
        self,
        grid: CellGrid,
        detection: DetectionResult,
        override: LayoutOverride | None = None,
    ) -> MetadataResult:
        """Extract metadata.

        Args:
            grid: Source sheet.
            detection: Layout detection for the sheet.
            override: Reviewer corrections (resort name, currency).

        Returns:
            Metadata result. A missing resort name leaves ``resort_name``
            empty; reporting it is left to validation.
        """
        sheet = grid.sheet_name or None
        title_cells = self.title_block(grid, detection)
        result = MetadataResult(
            metadata=ResortMetadata(currency=self._settings.default_currency)
        )

        name, source = self._resort_name(grid, title_cells)
        if override is not None and override.resort_name:
            name, source = override.resort_name.strip(), "override"
        result.metadata.resort_name = name
        result.metadata.resort_name_source = source if name else None
        result.destination = self._labelled_value(
            title_cells, _DESTINATION_LABEL, _DESTINATION_LABEL_ONLY, grid
        )

        self._apply_currency(grid, detection, title_cells, override, result, sheet)
        self._apply_validity(title_cells, result, sheet)
        result.metadata.season = self._season(title_cells)

        year = result.reference_year or self._settings.reference_year
        result.metadata.special_periods = self._special_periods(detection, year)

        logger.info(
            "Metadata extracted",
            resort_name=result.metadata.resort_name or None,
            source=result.metadata.resort_name_source,
            currency=result.metadata.currency,
            currency_detected=result.metadata.currency_detected,
        )
        return result

    # ------------------------------------------------------------------ #
    # Title block
    # ------------------------------------------------------------------ #

    def title_block(self, grid: CellGrid, detection: DetectionResult) -> list[Cell]:
        """Return the text cells above the pricing block, row-major.

        Without a pricing block the first ``title_scan_rows`` rows are used.
        Merged cells contribute once, at their top-left address.
        """
        section = detection.pricing_section
        last = section.bounds.top if section else self._settings.title_scan_rows
        last = min(last, grid.n_rows)
        cells = []
        for row in range(last):
            for col in range(grid.n_cols):
                cell = grid.get(row, col)
                if cell.is_blank:
                    continue
                merge = grid.merge_at(row, col)
                if merge is not None and (merge.top, merge.left) != (row, col):
                    continue
                cells.append(cell)
        return cells

    # ------------------------------------------------------------------ #
    # Resort name and destination
    # ------------------------------------------------------------------ #

    def _resort_name(self, grid: CellGrid, title_cells: list[Cell]) -> tuple[str, str | None]:
        labelled = self._labelled_value(title_cells, _NAME_LABEL, _NAME_LABEL_ONLY, grid)
        if labelled:
            return labelled, "title"

        for cell in title_cells:
            if self._is_title_like(cell):
                name = self.clean_title(cell.text)
                if name:
                    return name, "title"

        sheet_name = grid.sheet_name.strip()
        if sheet_name and not self._is_generic_sheet_name(sheet_name):
            name = self.clean_title(sheet_name)
            if name:
                return name, "sheet_name"

        for cell in grid.row(0) if not grid.is_empty else []:
            if self._is_title_like(cell):
                name = self.clean_title(cell.text)
                if name:
                    return name, "first_row"
        return "", None

    @staticmethod
    def _labelled_value(
        cells: list[Cell],
        inline: re.Pattern[str],
        label_only: re.Pattern[str],
        grid: CellGrid,
    ) -> str | None:
        for cell in cells:
            if not isinstance(cell.raw_value, str):
                continue
            match = inline.match(cell.text)
            if match:
                return " ".join(match.group("value").split())
            if label_only.match(cell.text):
                for col in range(cell.col + 1, grid.n_cols):
                    neighbour = grid.get(cell.row, col)
                    if neighbour.is_blank:
                        continue
                    if cell.is_merged and neighbour.merged_range_id == cell.merged_range_id:
                        continue
                    return " ".join(neighbour.text.split())
        return None

    def _is_title_like(self, cell: Cell) -> bool:
        value = cell.raw_value
        if not isinstance(value, str):
            return False
        text = " ".join(value.split())
        lowered = text.lower().rstrip(":")
        if len(re.findall(r"[A-Za-z]", text)) < 2:
            return False
        if lowered in _GENERIC_HEADERS:
            return False
        if (
            _NAME_LABEL_ONLY.match(text)
            or _DESTINATION_LABEL.match(text)
            or _DESTINATION_LABEL_ONLY.match(text)
        ):
            return False
        if is_price_like(value) or find_dates(value):
            return False
        if _VALIDITY_HINT.search(text) and re.search(r"\d", text):
            return False
        if classify_section_heading(value):
            return False
        threshold = self._settings.label_confidence_threshold
        label = classify_period_label(value)
        if label is not None and label.confidence > threshold:
            return False
        if classify_nights_pax(value).confidence > threshold:
            return False
        if classify_accommodation_type(value).confidence >= 0.95:
            return False
        currencies = find_currencies(value)
        return not (currencies and len(re.findall(r"[A-Za-z]+", text)) <= 2)

    @staticmethod
    def clean_title(text: str) -> str:
        """Strip price-list suffixes and trailing years from a title.

        >>> MetadataExtractor.clean_title("Hotel Sol - Prices 2025")
        'Hotel Sol'
        """
        cleaned = " ".join(text.split())
        cleaned = _TITLE_SUFFIX.sub("", cleaned)
        cleaned = _TRAILING_YEAR.sub("", cleaned)
        return cleaned.strip(" -–:|,")

    @staticmethod
    def _is_generic_sheet_name(name: str) -> bool:
        if _GENERIC_SHEET_NAME.match(name.strip()):
            return True
        if name.strip().isdigit():
            return True
        return name.strip().lower() in {month.lower() for month in MONTH_NAMES}

    # ------------------------------------------------------------------ #
    # Currency
    # ------------------------------------------------------------------ #

    def _apply_currency(
        self,
        grid: CellGrid,
        detection: DetectionResult,
        title_cells: list[Cell],
        override: LayoutOverride | None,
        result: MetadataResult,
        sheet: str | None,
    ) -> None:
        metadata = result.metadata
        if override is not None and override.currency:
            metadata.currency = override.currency
            metadata.currency_detected = True
            return

        counts: Counter[str] = Counter()
        first_seen: dict[str, int] = {}
        for cell in title_cells + self._header_cells(grid, detection):
            for code in find_currencies(cell.raw_value):
                counts[code] += 1
                first_seen.setdefault(code, len(first_seen))

        if counts:
            metadata.currency = min(counts, key=lambda c: (-counts[c], first_seen[c]))
            metadata.currency_detected = True
            return

        metadata.currency = self._settings.default_currency
        metadata.currency_detected = False
        result.issues.append(
            ProcessingError(
                severity=Severity.INFO,
                code=ErrorCode.CURRENCY_DEFAULTED,
                message=(
                    "No currency named on the sheet; using "
                    f"{self._settings.default_currency}"
                ),
                location=IssueLocation(sheet=sheet),
                suggestion="Add the currency to the title or price headers",
            )
        )

    @staticmethod
    def _header_cells(grid: CellGrid, detection: DetectionResult) -> list[Cell]:
        section = detection.pricing_section
        if section is None:
            return []
        cells = []
        for row, col in section.bounds.iter_addresses():
            if section.data_bounds is not None and section.data_bounds.contains(row, col):
                continue
            cell = grid.get(row, col)
            merge = grid.merge_at(row, col)
            if cell.is_blank or (merge is not None and (merge.top, merge.left) != (row, col)):
                continue
            cells.append(cell)
        return cells

    # ------------------------------------------------------------------ #
    # Validity and season
    # ------------------------------------------------------------------ #

    def _apply_validity(
        self, title_cells: list[Cell], result: MetadataResult, sheet: str | None
    ) -> None:
        found: list[tuple[date, Cell]] = []
        for cell in title_cells:
            value = cell.raw_value
            if isinstance(value, datetime):
                found.append((value.date(), cell))
            elif isinstance(value, date):
                found.append((value, cell))
            else:
                found.extend((parsed, cell) for parsed in find_dates(value))
            if len(found) >= 2:
                break

        if not found:
            return
        first_date, first_cell = found[0]
        location = IssueLocation.at(sheet, first_cell.row, first_cell.col)
        if len(found) == 1:
            result.issues.append(
                ProcessingError(
                    severity=Severity.WARNING,
                    code=ErrorCode.VALIDITY_WINDOW_INCOMPLETE,
                    message=f"Only one validity date found ({first_date.isoformat()})",
                    location=location,
                    suggestion="State both the first and last valid date",
                )
            )
            return

        second_date = found[1][0]
        if first_date < second_date:
            result.metadata.valid_from = first_date
            result.metadata.valid_to = second_date
            return
        result.issues.append(
            ProcessingError(
                severity=Severity.WARNING,
                code=ErrorCode.VALIDITY_WINDOW_INVALID,
                message=(
                    f"Validity window {first_date.isoformat()} to "
                    f"{second_date.isoformat()} does not run forwards"
                ),
                location=location,
                suggestion="Check the order of the validity dates",
            )
        )

    @staticmethod
    def _season(title_cells: list[Cell]) -> str | None:
        for cell in title_cells:
            if not isinstance(cell.raw_value, str):
                continue
            match = _SEASON.search(cell.raw_value)
            if match:
                name = " ".join(match.group("name").split()).title()
                year = match.group("year")
                return f"{name} {year.replace(' ', '')}" if year else name
            match = _SEASON_YEAR.search(cell.raw_value)
            if match:
                return f"Season {match.group('year').replace(' ', '')}"
        return None

    @staticmethod
    def _special_periods(detection: DetectionResult, year: int | None) -> list[SpecialPeriod]:
        section = detection.pricing_section
        if section is None:
            return []
        periods: list[SpecialPeriod] = []
        seen: set[str] = set()
        for col in section.data_cols:
            label = section.column_periods[col]
            if not label.is_special or label.label in seen:
                continue
            seen.add(label.label)
            dated = classify_period_label(label.text, year=year) if label.text else None
            match = label.special_period
            if dated is not None and dated.is_special:
                match = dated.special_period
            period_type = match.period_type if match else None
            periods.append(
                SpecialPeriod(
                    label=label.label,
                    period_type=period_type.value if period_type else "event",
                    valid_from=match.date_from if match else None,
                    valid_to=match.date_to if match else None,
                )
            )
        return periods


__all__ = ["MetadataExtractor", "MetadataResult"]
