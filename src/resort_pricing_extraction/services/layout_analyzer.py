"""Layout analysis for supplier pricing sheets.

This module finds the period axis of a sheet (the row or column holding
month and special-period labels), decides the orientation, and locates the
pricing block and the free-text inclusion/exclusion blocks.

All geometry is worked out on a ``SheetView``: a months-in-columns view of
the grid that is transposed when months run down a column. The same code
therefore handles both orientations, and transposing a sheet can never
change what is found, only the orientation it is reported under.
"""

import re
from dataclasses import dataclass, field
from typing import Any

from openpyxl.utils import get_column_letter

from resort_pricing_extraction.cell_grid import Cell, CellGrid, CellRange
from resort_pricing_extraction.config import Settings
from resort_pricing_extraction.config import settings as default_settings
from resort_pricing_extraction.models import (
    IssueLocation,
    LayoutOverride,
    Orientation,
    ProcessingError,
    Severity,
)
from resort_pricing_extraction.services.content_classifier import (
    EXCLUSION_HEADINGS,
    INCLUSION_HEADINGS,
    PeriodLabel,
    PeriodType,
    SpecialPeriodMatch,
    classify_accommodation_type,
    classify_nights_pax,
    classify_period_label,
    classify_section_heading,
    is_month_sequence,
    is_price_like,
    is_price_note,
)
from resort_pricing_extraction.utils.exceptions import ConfigurationError, ErrorCode
from resort_pricing_extraction.utils.logging import get_logger

logger = get_logger(__name__)

_BULLET_PREFIXES = ("•", "◦", "▪", "●", "·", "-", "–", "*", "+", ">")
_NUMBERED_PREFIX = re.compile(r"^\(?\d{1,2}[.)]\s")

# Added to the confidence of an axis whose months run in calendar order.
SEQUENCE_BONUS = 0.25


class SheetView:
    """Months-in-columns view of a grid.

    View row ``i`` and column ``j`` map to grid ``(i, j)``, or to ``(j, i)``
    when the view is transposed. Addresses outside ``window`` read as blank.
    """

    def __init__(
        self, grid: CellGrid, transposed: bool, window: CellRange | None = None
    ) -> None:
        self.grid = grid
        self.transposed = transposed
        self.window = window

    @property
    def orientation(self) -> Orientation:
        """Sheet orientation this view reads in."""
        if self.transposed:
            return Orientation.MONTHS_IN_ROWS
        return Orientation.MONTHS_IN_COLUMNS

    @property
    def n_rows(self) -> int:
        return self.grid.n_cols if self.transposed else self.grid.n_rows

    @property
    def n_cols(self) -> int:
        return self.grid.n_rows if self.transposed else self.grid.n_cols

    def to_grid(self, i: int, j: int) -> tuple[int, int]:
        """Map a view address to a grid address."""
        return (j, i) if self.transposed else (i, j)

    def to_grid_range(self, top: int, left: int, bottom: int, right: int) -> CellRange:
        """Map a view rectangle to a grid range."""
        rect = CellRange(top=top, left=left, bottom=bottom, right=right)
        return rect.transpose() if self.transposed else rect

    def get(self, i: int, j: int) -> Cell:
        row, col = self.to_grid(i, j)
        if self.window is not None and not self.window.contains(row, col):
            return Cell(row=row, col=col, raw_value=None)
        return self.grid.get(row, col)

    def merge_spans(self, i: int, j: int, other_i: int, other_j: int) -> bool:
        """Whether the merge at (i, j) also covers (other_i, other_j)."""
        merge = self.grid.merge_at(*self.to_grid(i, j))
        return merge is not None and merge.contains(*self.to_grid(other_i, other_j))


@dataclass
class AxisCandidate:
    """A row of a ``SheetView`` holding period labels."""

    orientation: Orientation
    """Orientation of the view the row was found in."""

    axis_index: int
    """Grid row (months-in-columns) or grid column (months-in-rows)."""

    positions: list[int]
    """View columns holding labels, ascending."""

    labels: list[PeriodLabel]
    """Labels at ``positions``."""

    occupied: int
    """Non-blank cells between the first and last label."""

    score: float
    """Sum of label confidences."""

    confidence: float = 0.0
    """Layout confidence, set once all candidates are known."""

    @property
    def label_count(self) -> int:
        return len(self.positions)

    @property
    def density(self) -> float:
        """Share of occupied span cells that are period labels."""
        return self.label_count / self.occupied if self.occupied else 0.0

    @property
    def in_sequence(self) -> bool:
        """Whether the month labels run in calendar order.

        Special periods between months are skipped.
        """
        months = [label.month for label in self.labels if label.month is not None]
        return is_month_sequence(months)


@dataclass
class LayoutPattern:
    """A detected arrangement of the period axis."""

    orientation: Orientation
    """Months-in-rows, months-in-columns, or mixed when undecidable."""

    header_band: CellRange
    """Grid range holding the period labels and their sub-headers."""

    confidence: float
    """Detection confidence in [0, 1]."""

    detected_headers: list[str]
    """Period labels found on the axis, in sheet order."""

    axis_index: int
    """0-based grid row or column holding the period labels."""

    label_count: int
    """Number of label cells on the axis."""

    source: str = "detected"
    """"detected", or "override" when forced by a reviewer."""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "orientation": self.orientation.value,
            "header_band": self.header_band.ref,
            "confidence": round(self.confidence, 4),
            "detected_headers": list(self.detected_headers),
            "axis_index": self.axis_index,
            "label_count": self.label_count,
            "source": self.source,
        }


@dataclass
class PricingSection:
    """Located pricing block.

    The grid-level fields describe the block for reviewers; the view-level
    fields are what the pricing extractor walks.
    """

    bounds: CellRange
    """Whole block: header rows, row labels and price cells."""

    header_band: CellRange
    """Header rows of the block."""

    data_bounds: CellRange | None
    """Price cells only; None when the block has headers but no rows."""

    orientation: Orientation
    """Concrete orientation the block is read in."""

    axis_index: int
    """View row holding the period labels."""

    header_rows: list[int]
    """View rows of the header band, axis row included."""

    data_rows: list[int]
    """View rows holding prices."""

    data_cols: list[int]
    """View columns holding prices."""

    label_cols: list[int]
    """View columns holding row labels."""

    column_periods: dict[int, PeriodLabel]
    """Period label for every data column."""

    accommodation_types: list[str] = field(default_factory=list)
    """Accommodation types named in headers and row labels."""

    nights_options: list[int] = field(default_factory=list)
    """Night counts named in headers and row labels."""

    pax_options: list[int] = field(default_factory=list)
    """Guest counts named in headers and row labels."""

    window: CellRange | None = None
    """Override bounds the block was read through."""

    @property
    def transposed(self) -> bool:
        return self.orientation == Orientation.MONTHS_IN_ROWS

    @property
    def period_labels(self) -> list[str]:
        """Distinct period labels in axis order."""
        labels: list[str] = []
        for col in self.data_cols:
            label = self.column_periods[col].label
            if label not in labels:
                labels.append(label)
        return labels

    def view(self, grid: CellGrid) -> SheetView:
        """Return the view the block was located in."""
        return SheetView(grid, self.transposed, self.window)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "bounds": self.bounds.ref,
            "header_band": self.header_band.ref,
            "data_bounds": self.data_bounds.ref if self.data_bounds else None,
            "orientation": self.orientation.value,
            "period_labels": self.period_labels,
            "accommodation_types": list(self.accommodation_types),
            "nights_options": list(self.nights_options),
            "pax_options": list(self.pax_options),
        }


@dataclass
class SourceLine:
    """One row of text read from a free-text block."""

    text: str
    row: int
    col: int


@dataclass
class InclusionsSection:
    """Located free-text inclusions or exclusions block."""

    bounds: CellRange
    """Grid range covered by the block, heading included."""

    kind: str = "inclusions"
    """"inclusions" or "exclusions"."""

    heading: str | None = None
    """Heading text, None when the block was found without one."""

    lines: list[SourceLine] = field(default_factory=list)
    """Text rows of the block in sheet order."""

    @property
    def format(self) -> str:
        """"bullet-points", "numbered" or "plain-text"."""
        stripped = [
            part.strip()
            for line in self.lines
            for part in line.text.splitlines()
            if part.strip()
        ]
        if any(part.startswith(_BULLET_PREFIXES) for part in stripped):
            return "bullet-points"
        if any(_NUMBERED_PREFIX.match(part) for part in stripped):
            return "numbered"
        return "plain-text"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "bounds": self.bounds.ref,
            "kind": self.kind,
            "heading": self.heading,
            "format": self.format,
            "line_count": len(self.lines),
        }


@dataclass
class DetectionResult:
    """Everything the analyzer found on one sheet."""

    primary: LayoutPattern | None = None
    """Best layout pattern, None when no period axis was found."""

    secondary: list[LayoutPattern] = field(default_factory=list)
    """Runner-up patterns kept for review."""

    pricing_section: PricingSection | None = None
    """Located pricing block."""

    inclusions_section: InclusionsSection | None = None
    """Located inclusions block."""

    exclusions_section: InclusionsSection | None = None
    """Located exclusions block."""

    suggestions: list[str] = field(default_factory=list)
    """Hints for reviewers."""

    issues: list[ProcessingError] = field(default_factory=list)
    """Layout-level issues."""

    low_confidence: bool = False
    """Whether the primary pattern fell below the layout threshold."""

    @property
    def confidence(self) -> float:
        return self.primary.confidence if self.primary else 0.0

    @property
    def orientation(self) -> Orientation | None:
        return self.primary.orientation if self.primary else None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "primary": self.primary.to_dict() if self.primary else None,
            "secondary": [pattern.to_dict() for pattern in self.secondary],
            "pricing_section": (
                self.pricing_section.to_dict() if self.pricing_section else None
            ),
            "inclusions_section": (
                self.inclusions_section.to_dict() if self.inclusions_section else None
            ),
            "exclusions_section": (
                self.exclusions_section.to_dict() if self.exclusions_section else None
            ),
            "low_confidence": self.low_confidence,
            "suggestions": list(self.suggestions),
        }


class LayoutAnalyzer:
    """Detect the layout of a pricing sheet.

    Candidates for the period axis are scored as the share of occupied cells
    in the label span that are period labels, scaled by the candidate's
    label count relative to the best candidate. Ties go to months-in-rows;
    an exact tie between orientations is reported as mixed.
    """

    DEFAULT_CONFIDENCE_THRESHOLD = 0.5

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or default_settings

    @property
    def label_threshold(self) -> float:
        return self._settings.label_confidence_threshold

    def analyze(
        self, grid: CellGrid, override: LayoutOverride | None = None
    ) -> DetectionResult:
        """Detect orientation, pricing block and text blocks of a grid.

        Args:
            grid: Sheet to analyze.
            override: Reviewer corrections applied before detection.

        Returns:
            Detection result; never None, even for an empty grid.

        Raises:
            ConfigurationError: If the override does not fit the grid.
        """
        sheet = grid.sheet_name or None
        result = DetectionResult()

        if grid.is_empty:
            result.issues.append(
                ProcessingError(
                    severity=Severity.WARNING,
                    code=ErrorCode.EMPTY_GRID,
                    message="Sheet has no readable cells",
                    location=IssueLocation(sheet=sheet),
                    suggestion="Check that the correct worksheet was selected",
                )
            )
            return result

        window = self._override_window(grid, override)
        forced = override.orientation if override else None
        candidates = self.find_axis_candidates(grid, window=window, orientation=forced)

        if override is not None and override.axis_index is not None:
            forced_candidate = self._forced_candidate(
                grid, window, override, candidates
            )
            candidates = [forced_candidate] + [
                c
                for c in candidates
                if (c.orientation, c.axis_index)
                != (forced_candidate.orientation, forced_candidate.axis_index)
            ]

        if override is not None:
            result.issues.append(self._override_issue(sheet, override))

        if candidates:
            self._apply_primary(grid, window, candidates, override, result)
        else:
            result.issues.append(
                ProcessingError(
                    severity=Severity.WARNING,
                    code=ErrorCode.NO_PERIOD_AXIS,
                    message="No month or special period labels were found",
                    location=IssueLocation(sheet=sheet),
                    suggestion=(
                        "Check that the sheet holds a price grid with month headers, "
                        "or provide a layout override"
                    ),
                )
            )
            result.suggestions.append(
                "No month or special period labels were found. Check that the "
                "sheet contains a price grid with month headers."
            )

        inclusions, exclusions = self.locate_text_sections(grid, result.pricing_section)
        result.inclusions_section = inclusions
        result.exclusions_section = exclusions
        if inclusions is None:
            result.issues.append(
                ProcessingError(
                    severity=Severity.INFO,
                    code=ErrorCode.NO_INCLUSIONS,
                    message="No inclusions block was found",
                    location=IssueLocation(sheet=sheet),
                )
            )
            result.suggestions.append(
                "No inclusions block was found. Add a heading such as "
                "'Package includes' above the inclusions."
            )

        logger.info(
            "Layout analyzed",
            orientation=result.orientation.value if result.orientation else None,
            confidence=f"{result.confidence:.3f}",
            candidates=len(candidates),
            pricing=result.pricing_section.bounds.ref if result.pricing_section else None,
            inclusions=inclusions.bounds.ref if inclusions else None,
        )
        return result

    # ------------------------------------------------------------------ #
    # Axis candidates
    # ------------------------------------------------------------------ #

    def find_axis_candidates(
        self,
        grid: CellGrid,
        window: CellRange | None = None,
        orientation: Orientation | None = None,
    ) -> list[AxisCandidate]:
        """Score every row and column holding period labels, best first.

        Args:
            grid: Sheet to scan.
            window: Only cells inside this grid range are considered.
            orientation: Restrict candidates to one orientation.

        Returns:
            Candidates ranked by confidence, calendar order, label count,
            aggregate label confidence, then months-in-rows before
            months-in-columns.
        """
        cache: dict[tuple[int, int], PeriodLabel | None] = {}
        candidates: list[AxisCandidate] = []
        for transposed in (True, False):
            view = SheetView(grid, transposed, window)
            if orientation is not None and view.orientation != orientation:
                continue
            candidates.extend(self._scan_view(view, cache))

        best = max((c.label_count for c in candidates), default=0)
        for candidate in candidates:
            confidence = candidate.density * candidate.label_count / best
            if candidate.in_sequence:
                confidence = min(1.0, confidence + SEQUENCE_BONUS)
            candidate.confidence = round(confidence, 4)
        candidates.sort(key=self._rank)
        return candidates

    @staticmethod
    def _rank(candidate: AxisCandidate) -> tuple[Any, ...]:
        return (
            -candidate.confidence,
            not candidate.in_sequence,
            -candidate.label_count,
            -candidate.score,
            0 if candidate.orientation == Orientation.MONTHS_IN_ROWS else 1,
            candidate.axis_index,
        )

    def _scan_view(
        self, view: SheetView, cache: dict[tuple[int, int], PeriodLabel | None]
    ) -> list[AxisCandidate]:
        limit = self._settings.scan_limit
        n_rows = view.n_rows if limit is None else min(view.n_rows, limit)
        n_cols = view.n_cols if limit is None else min(view.n_cols, limit)

        found: list[AxisCandidate] = []
        for i in range(n_rows):
            positions: list[int] = []
            labels: list[PeriodLabel] = []
            for j in range(n_cols):
                label = self._period_label_at(view, i, j, cache)
                if label is not None:
                    positions.append(j)
                    labels.append(label)
            if not positions:
                continue
            occupied = sum(
                1
                for j in range(positions[0], positions[-1] + 1)
                if not view.get(i, j).is_blank
            )
            found.append(
                AxisCandidate(
                    orientation=view.orientation,
                    axis_index=i,
                    positions=positions,
                    labels=labels,
                    occupied=occupied,
                    score=sum(label.confidence for label in labels),
                )
            )
        return found

    def _period_label_at(
        self,
        view: SheetView,
        i: int,
        j: int,
        cache: dict[tuple[int, int], PeriodLabel | None],
    ) -> PeriodLabel | None:
        address = view.to_grid(i, j)
        if address not in cache:
            cache[address] = self.period_label(view.get(i, j).raw_value)
        return cache[address]

    def period_label(self, value: Any, year: int | None = None) -> PeriodLabel | None:
        """Classify a value as a period label above the label threshold."""
        if not isinstance(value, str):
            return None
        label = classify_period_label(value, year=year)
        if label is None or label.confidence <= self.label_threshold:
            return None
        return label

    def is_axis_detail(self, value: Any) -> bool:
        """Whether a value names an accommodation type, nights or pax."""
        if not isinstance(value, str):
            return False
        if classify_accommodation_type(value).confidence > self.label_threshold:
            return True
        return classify_nights_pax(value).confidence > self.label_threshold

    @staticmethod
    def _is_mixed(candidates: list[AxisCandidate]) -> bool:
        if len(candidates) < 2:
            return False
        first, second = candidates[0], candidates[1]
        return (
            first.orientation != second.orientation
            and first.label_count == second.label_count >= 2
            and first.in_sequence == second.in_sequence
            and abs(first.confidence - second.confidence) < 1e-9
        )

    # ------------------------------------------------------------------ #
    # Overrides
    # ------------------------------------------------------------------ #

    @staticmethod
    def _override_window(
        grid: CellGrid, override: LayoutOverride | None
    ) -> CellRange | None:
        if override is None or override.bounds is None:
            return None
        window = override.bounds.clip(grid.n_rows, grid.n_cols)
        if window is None:
            raise ConfigurationError(
                f"Pricing bounds {override.pricing_bounds} lie outside the sheet",
                setting="pricing_bounds",
            )
        return window

    def _forced_candidate(
        self,
        grid: CellGrid,
        window: CellRange | None,
        override: LayoutOverride,
        candidates: list[AxisCandidate],
    ) -> AxisCandidate:
        orientation = override.orientation
        if orientation is None:
            orientation = (
                candidates[0].orientation
                if candidates
                else Orientation.MONTHS_IN_COLUMNS
            )
        view = SheetView(grid, orientation == Orientation.MONTHS_IN_ROWS, window)
        axis = override.axis_index
        if axis is None or axis >= view.n_rows:
            raise ConfigurationError(
                f"axis_index {axis} is outside the sheet for {orientation.value}",
                setting="axis_index",
            )

        positions: list[int] = []
        labels: list[PeriodLabel] = []
        for j in range(view.n_cols):
            label = self.period_label(view.get(axis, j).raw_value)
            if label is not None:
                positions.append(j)
                labels.append(label)

        if not positions:
            # Nothing classifies: every text cell on the axis is a named period.
            for j in range(view.n_cols):
                cell = view.get(axis, j)
                if cell.is_blank or not isinstance(cell.raw_value, str):
                    continue
                if is_price_like(cell.raw_value) or self.is_axis_detail(cell.raw_value):
                    continue
                positions.append(j)
                labels.append(
                    PeriodLabel(
                        label=cell.text,
                        confidence=1.0,
                        special_period=SpecialPeriodMatch(
                            label=cell.text,
                            confidence=1.0,
                            period_type=PeriodType.EVENT,
                        ),
                        text=cell.text,
                    )
                )

        if not positions:
            raise ConfigurationError(
                f"No period labels at axis_index {axis} for {orientation.value}",
                setting="axis_index",
            )

        return AxisCandidate(
            orientation=orientation,
            axis_index=axis,
            positions=positions,
            labels=labels,
            occupied=len(positions),
            score=sum(label.confidence for label in labels),
            confidence=1.0,
        )

    @staticmethod
    def _override_issue(sheet: str | None, override: LayoutOverride) -> ProcessingError:
        fields = sorted(override.model_dump(exclude_none=True))
        return ProcessingError(
            severity=Severity.INFO,
            code=ErrorCode.LAYOUT_OVERRIDE_APPLIED,
            message=f"Layout override applied: {', '.join(fields)}",
            location=IssueLocation(sheet=sheet),
        )

    # ------------------------------------------------------------------ #
    # Pricing section
    # ------------------------------------------------------------------ #

    def _apply_primary(
        self,
        grid: CellGrid,
        window: CellRange | None,
        candidates: list[AxisCandidate],
        override: LayoutOverride | None,
        result: DetectionResult,
    ) -> None:
        sheet = grid.sheet_name or None
        chosen = candidates[0]
        forced = override is not None and (
            override.orientation is not None or override.axis_index is not None
        )
        mixed = not forced and self._is_mixed(candidates)

        view = SheetView(grid, chosen.orientation == Orientation.MONTHS_IN_ROWS, window)
        section = self.locate_pricing_section(view, chosen)
        result.pricing_section = section
        result.primary = LayoutPattern(
            orientation=Orientation.MIXED if mixed else chosen.orientation,
            header_band=section.header_band,
            confidence=chosen.confidence,
            detected_headers=section.period_labels,
            axis_index=chosen.axis_index,
            label_count=chosen.label_count,
            source="override" if forced else "detected",
        )

        for candidate in candidates[1 : 1 + self._settings.max_secondary_layouts]:
            result.secondary.append(self._candidate_pattern(grid, window, candidate))
            result.suggestions.append(
                f"Alternative layout: {candidate.orientation.value} at "
                f"{self._axis_name(candidate)} (confidence {candidate.confidence:.2f})"
            )

        if mixed:
            result.issues.append(
                ProcessingError(
                    severity=Severity.WARNING,
                    code=ErrorCode.AMBIGUOUS_ORIENTATION,
                    message=(
                        "Months-in-rows and months-in-columns are equally likely; "
                        "reading the sheet as months-in-rows"
                    ),
                    location=IssueLocation(sheet=sheet),
                    suggestion="Provide an orientation override if this is wrong",
                )
            )

        if chosen.confidence < self._settings.layout_confidence_threshold:
            result.low_confidence = True
            result.issues.append(
                ProcessingError(
                    severity=Severity.WARNING,
                    code=ErrorCode.LOW_LAYOUT_CONFIDENCE,
                    message=(
                        f"Layout detection confidence is low ({chosen.confidence:.2f})"
                    ),
                    location=IssueLocation(sheet=sheet),
                    suggestion=(
                        "Review the detected orientation and pricing block, or "
                        "provide a layout override"
                    ),
                )
            )
            result.suggestions.insert(
                0,
                f"Layout detection confidence is low ({chosen.confidence:.2f}). "
                "Review the detected orientation or provide a layout override.",
            )

    def _candidate_pattern(
        self, grid: CellGrid, window: CellRange | None, candidate: AxisCandidate
    ) -> LayoutPattern:
        view = SheetView(grid, candidate.orientation == Orientation.MONTHS_IN_ROWS, window)
        headers: list[str] = []
        for label in candidate.labels:
            if label.label not in headers:
                headers.append(label.label)
        return LayoutPattern(
            orientation=candidate.orientation,
            header_band=view.to_grid_range(
                candidate.axis_index,
                candidate.positions[0],
                candidate.axis_index,
                candidate.positions[-1],
            ),
            confidence=candidate.confidence,
            detected_headers=headers,
            axis_index=candidate.axis_index,
            label_count=candidate.label_count,
        )

    @staticmethod
    def _axis_name(candidate: AxisCandidate) -> str:
        if candidate.orientation == Orientation.MONTHS_IN_ROWS:
            return f"column {get_column_letter(candidate.axis_index + 1)}"
        return f"row {candidate.axis_index + 1}"

    def locate_pricing_section(
        self, view: SheetView, candidate: AxisCandidate
    ) -> PricingSection:
        """Grow the pricing block around a period axis.

        The block spans the axis labels (blank header cells inherit the
        label to their left), the contiguous label rows around the axis, the
        price rows below them and the row-label columns to their left.
        """
        axis = candidate.axis_index
        label_at = dict(zip(candidate.positions, candidate.labels, strict=True))

        data_cols: list[int] = []
        column_periods: dict[int, PeriodLabel] = {}
        current = candidate.labels[0]
        for j in range(candidate.positions[0], candidate.positions[-1] + 1):
            if j in label_at:
                current = label_at[j]
            elif not view.get(axis, j).is_blank:
                continue
            data_cols.append(j)
            column_periods[j] = current

        data_start = data_cols[0]
        top = axis
        while top > 0 and self._is_band_row(view, top - 1, data_cols, data_start):
            top -= 1
        bottom = axis
        while bottom + 1 < view.n_rows and self._is_band_row(
            view, bottom + 1, data_cols, data_start
        ):
            bottom += 1
        header_rows = list(range(top, bottom + 1))

        # Sub-header columns after the last period label belong to it.
        j = data_cols[-1] + 1
        while (
            j < view.n_cols
            and view.get(axis, j).is_blank
            and any(
                self.is_axis_detail(view.get(r, j).raw_value)
                for r in header_rows
                if r != axis
            )
        ):
            data_cols.append(j)
            column_periods[j] = current
            j += 1

        data_rows: list[int] = []
        i = bottom + 1
        while i < view.n_rows and self._is_pricing_row(view, i, axis, data_cols):
            data_rows.append(i)
            i += 1

        label_cols = [
            j
            for j in range(data_start)
            if any(self.usable_label(view, r, j, axis) is not None for r in data_rows)
        ]

        left = label_cols[0] if label_cols else data_start
        right = data_cols[-1]
        last_row = data_rows[-1] if data_rows else bottom
        section = PricingSection(
            bounds=view.to_grid_range(top, left, last_row, right),
            header_band=view.to_grid_range(top, left, bottom, right),
            data_bounds=(
                view.to_grid_range(data_rows[0], data_start, data_rows[-1], right)
                if data_rows
                else None
            ),
            orientation=view.orientation,
            axis_index=axis,
            header_rows=header_rows,
            data_rows=data_rows,
            data_cols=data_cols,
            label_cols=label_cols,
            column_periods=column_periods,
            window=view.window,
        )
        self._collect_axis_details(view, section)
        logger.debug(
            "Pricing section located",
            bounds=section.bounds.ref,
            data_rows=len(data_rows),
            data_cols=len(data_cols),
            label_cols=len(label_cols),
        )
        return section

    def _is_band_row(
        self, view: SheetView, i: int, data_cols: list[int], data_start: int
    ) -> bool:
        filled = [
            cell
            for j in data_cols
            if (cell := self.usable_band_cell(view, i, j, data_start)) is not None
        ]
        if not filled:
            return False
        if any(is_price_like(cell.raw_value) for cell in filled):
            return False
        return any(self.is_axis_detail(cell.raw_value) for cell in filled)

    @staticmethod
    def usable_band_cell(
        view: SheetView, i: int, j: int, data_start: int
    ) -> Cell | None:
        """Return a header-band cell unless it is blank or a merged title.

        A merge that reaches into the row-label columns is a title spanning
        the sheet, not a column header.
        """
        cell = view.get(i, j)
        if cell.is_blank:
            return None
        if data_start > 0 and view.merge_spans(i, j, i, data_start - 1):
            return None
        return cell

    @staticmethod
    def usable_label(view: SheetView, i: int, j: int, axis: int) -> Cell | None:
        """Return a row-label cell unless it is blank or merged into the axis row."""
        cell = view.get(i, j)
        if cell.is_blank:
            return None
        if i != axis and view.merge_spans(i, j, axis, j):
            return None
        return cell

    def _is_pricing_row(
        self, view: SheetView, i: int, axis: int, data_cols: list[int]
    ) -> bool:
        labels = [
            cell
            for j in range(data_cols[0])
            if (cell := self.usable_label(view, i, j, axis)) is not None
        ]
        filled = [view.get(i, j) for j in data_cols]
        filled = [cell for cell in filled if not cell.is_blank]
        if not labels and not filled:
            return False
        if any(classify_section_heading(cell.raw_value) for cell in labels):
            return False

        has_price = False
        for cell in filled:
            if is_price_like(cell.raw_value):
                has_price = True
                continue
            if self.period_label(cell.raw_value) is not None:
                return False
            if not is_price_note(cell.raw_value):
                return False
        return has_price or any(self.is_axis_detail(cell.raw_value) for cell in labels)

    def _collect_axis_details(self, view: SheetView, section: PricingSection) -> None:
        data_start = section.data_cols[0]
        cells = [
            cell
            for r in section.header_rows
            if r != section.axis_index
            for j in section.data_cols
            if (cell := self.usable_band_cell(view, r, j, data_start)) is not None
        ]
        cells.extend(
            cell
            for r in section.data_rows
            for j in section.label_cols
            if (cell := self.usable_label(view, r, j, section.axis_index)) is not None
        )

        for cell in cells:
            accommodation = classify_accommodation_type(cell.raw_value)
            if (
                accommodation.confidence > self.label_threshold
                and accommodation.type not in section.accommodation_types
            ):
                section.accommodation_types.append(accommodation.type)
            nights_pax = classify_nights_pax(cell.raw_value)
            if nights_pax.confidence > self.label_threshold:
                if nights_pax.nights and nights_pax.nights not in section.nights_options:
                    section.nights_options.append(nights_pax.nights)
                if nights_pax.pax and nights_pax.pax not in section.pax_options:
                    section.pax_options.append(nights_pax.pax)
        section.nights_options.sort()
        section.pax_options.sort()

    # ------------------------------------------------------------------ #
    # Inclusions and exclusions
    # ------------------------------------------------------------------ #

    def locate_text_sections(
        self, grid: CellGrid, section: PricingSection | None
    ) -> tuple[InclusionsSection | None, InclusionsSection | None]:
        """Locate the inclusions and exclusions blocks.

        Headings are searched below the pricing block first, then anywhere
        outside it. Without an inclusions heading, the first run of text rows
        after the pricing block is taken as the inclusions.
        """
        start = section.bounds.bottom + 1 if section else 0
        headings = self._find_headings(grid, start, section)
        if not headings and start > 0:
            headings = self._find_headings(grid, 0, section)

        inclusions: InclusionsSection | None = None
        exclusions: InclusionsSection | None = None
        for cell, kind in headings:
            if kind == "inclusions" and inclusions is None:
                inclusions = self._read_block(grid, cell, kind, section)
            elif kind == "exclusions" and exclusions is None:
                exclusions = self._read_block(grid, cell, kind, section)

        if inclusions is None and section is not None:
            inclusions = self._fallback_block(grid, section)
        return inclusions, exclusions

    @staticmethod
    def _outside(section: PricingSection | None, row: int, col: int) -> bool:
        return section is None or not section.bounds.contains(row, col)

    def _text_cells(
        self, grid: CellGrid, row: int, from_col: int, section: PricingSection | None
    ) -> list[Cell]:
        cells = []
        for col in range(from_col, grid.n_cols):
            cell = grid.get(row, col)
            if cell.is_blank or not self._outside(section, row, col):
                continue
            merge = grid.merge_at(row, col)
            if merge is not None and (merge.top, merge.left) != (row, col):
                continue
            cells.append(cell)
        return cells

    def _find_headings(
        self, grid: CellGrid, start: int, section: PricingSection | None
    ) -> list[tuple[Cell, str]]:
        headings = []
        for row in range(start, grid.n_rows):
            for cell in self._text_cells(grid, row, 0, section):
                kind = classify_section_heading(cell.raw_value)
                if kind is not None:
                    headings.append((cell, kind))
        return headings

    @staticmethod
    def heading_remainder(text: str) -> str:
        """Return content written in the heading cell itself.

        "Package includes: breakfast" and "Includes breakfast" both carry
        "breakfast".
        """
        if ":" in text:
            return text.split(":", 1)[1].strip()
        lowered = text.lower().replace("’", "'")
        keywords = sorted(INCLUSION_HEADINGS + EXCLUSION_HEADINGS, key=len, reverse=True)
        for keyword in keywords:
            if lowered.startswith(keyword):
                return text[len(keyword) :].strip(" -–")
        return ""

    def _read_block(
        self,
        grid: CellGrid,
        heading: Cell,
        kind: str,
        section: PricingSection | None,
    ) -> InclusionsSection:
        lines: list[SourceLine] = []
        remainder = self.heading_remainder(heading.text)
        if remainder:
            lines.append(SourceLine(text=remainder, row=heading.row, col=heading.col))
        for cell in self._text_cells(grid, heading.row, heading.col + 1, section):
            lines.append(SourceLine(text=cell.text, row=cell.row, col=cell.col))

        bottom, right = heading.row, heading.col
        limit = min(grid.n_rows, heading.row + 1 + self._settings.inclusions_scan_rows)
        for row in range(heading.row + 1, limit):
            cells = self._text_cells(grid, row, heading.col, section)
            if not cells:
                if lines:
                    break
                continue
            if any(classify_section_heading(cell.raw_value) for cell in cells):
                break
            if all(is_price_like(cell.raw_value) for cell in cells):
                break
            lines.append(
                SourceLine(
                    text=" ".join(cell.text for cell in cells),
                    row=row,
                    col=cells[0].col,
                )
            )
            bottom = row
            right = max(right, cells[-1].col)

        return InclusionsSection(
            bounds=CellRange(heading.row, heading.col, bottom, right),
            kind=kind,
            heading=heading.text,
            lines=lines,
        )

    def _fallback_block(
        self, grid: CellGrid, section: PricingSection
    ) -> InclusionsSection | None:
        lines: list[SourceLine] = []
        top = left = None
        bottom = right = 0
        start = section.bounds.bottom + 1
        limit = min(grid.n_rows, start + self._settings.inclusions_scan_rows)
        for row in range(start, limit):
            cells = self._text_cells(grid, row, 0, section)
            if not cells:
                if lines:
                    break
                continue
            if all(is_price_like(cell.raw_value) for cell in cells):
                break
            lines.append(
                SourceLine(
                    text=" ".join(cell.text for cell in cells),
                    row=row,
                    col=cells[0].col,
                )
            )
            if top is None:
                top = row
            left = cells[0].col if left is None else min(left, cells[0].col)
            bottom = row
            right = max(right, cells[-1].col)

        if top is None or left is None:
            return None
        return InclusionsSection(
            bounds=CellRange(top, left, bottom, right),
            kind="inclusions",
            heading=None,
            lines=lines,
        )


__all__ = [
    "AxisCandidate",
    "DetectionResult",
    "InclusionsSection",
    "LayoutAnalyzer",
    "LayoutPattern",
    "PricingSection",
    "SheetView",
    "SourceLine",
]
