"""Tests for the layout analyzer."""

import pytest

from resort_pricing_extraction.cell_grid import CellGrid, CellRange
from resort_pricing_extraction.config import Settings
from resort_pricing_extraction.models import LayoutOverride, Orientation, Severity
from resort_pricing_extraction.services.layout_analyzer import LayoutAnalyzer, SheetView
from resort_pricing_extraction.utils.exceptions import ConfigurationError, ErrorCode


def _codes(result) -> list[ErrorCode]:
    return [issue.code for issue in result.issues]


class TestSheetView:
    """Tests for the months-in-columns view."""

    def test_transposed_view_swaps_addresses(self) -> None:
        grid = CellGrid.build([["a", "b"], ["c", "d"], ["e", "f"]])
        view = SheetView(grid, transposed=True)
        assert (view.n_rows, view.n_cols) == (2, 3)
        assert view.get(1, 2).raw_value == "f"
        assert view.to_grid(1, 2) == (2, 1)
        assert view.orientation == Orientation.MONTHS_IN_ROWS

    def test_window_blanks_outside_cells(self) -> None:
        grid = CellGrid.build([["a", "b"], ["c", "d"]])
        view = SheetView(grid, transposed=False, window=CellRange(0, 0, 0, 1))
        assert view.get(0, 1).raw_value == "b"
        assert view.get(1, 0).is_blank


class TestOrientationDetection:
    """Tests for period axis detection."""

    def test_months_in_columns(self, monthly_grid: CellGrid, settings: Settings) -> None:
        """A header row of months is read as months-in-columns."""
        result = LayoutAnalyzer(settings).analyze(monthly_grid)

        assert result.orientation == Orientation.MONTHS_IN_COLUMNS
        assert result.confidence == pytest.approx(1.0)
        assert result.primary.axis_index == 1
        assert result.primary.detected_headers == ["January", "February", "March"]
        assert not result.low_confidence

    def test_runner_up_patterns_are_kept(
        self, monthly_grid: CellGrid, settings: Settings
    ) -> None:
        result = LayoutAnalyzer(settings).analyze(monthly_grid)

        assert len(result.secondary) == 3
        for pattern in result.secondary:
            assert pattern.orientation == Orientation.MONTHS_IN_ROWS
            assert pattern.confidence == pytest.approx(0.3333)
        assert any(s.startswith("Alternative layout") for s in result.suggestions)

    def test_secondary_count_follows_settings(self, monthly_grid: CellGrid) -> None:
        settings = Settings(_env_file=None, max_secondary_layouts=1)
        result = LayoutAnalyzer(settings).analyze(monthly_grid)
        assert len(result.secondary) == 1

    def test_months_in_rows(self, monthly_grid_rows: CellGrid, settings: Settings) -> None:
        """The transposed sheet is read as months-in-rows."""
        result = LayoutAnalyzer(settings).analyze(monthly_grid_rows)

        assert result.orientation == Orientation.MONTHS_IN_ROWS
        assert result.primary.axis_index == 1
        assert result.confidence == pytest.approx(1.0)

    def test_transposing_keeps_the_pricing_block(
        self, monthly_grid: CellGrid, monthly_grid_rows: CellGrid, settings: Settings
    ) -> None:
        """Transposing the sheet transposes the block and nothing else."""
        analyzer = LayoutAnalyzer(settings)
        columns = analyzer.analyze(monthly_grid).pricing_section
        rows = analyzer.analyze(monthly_grid_rows).pricing_section

        assert rows.bounds == columns.bounds.transpose()
        assert rows.data_bounds == columns.data_bounds.transpose()
        assert rows.period_labels == columns.period_labels
        assert rows.nights_options == columns.nights_options
        assert rows.pax_options == columns.pax_options

    def test_equal_orientations_are_mixed(self, settings: Settings) -> None:
        """An exact tie between orientations is reported, read as months-in-rows."""
        grid = CellGrid.build([[None, "Jan", "Feb"], ["Mar", 100, 110], ["Apr", 120, 130]])
        result = LayoutAnalyzer(settings).analyze(grid)

        assert result.orientation == Orientation.MIXED
        assert result.pricing_section.orientation == Orientation.MONTHS_IN_ROWS
        assert ErrorCode.AMBIGUOUS_ORIENTATION in _codes(result)

    def test_low_confidence_is_flagged(self) -> None:
        settings = Settings(_env_file=None, layout_confidence_threshold=0.9)
        grid = CellGrid.build([["Jan", "Notes", "Feb"], [100, None, 120]])
        result = LayoutAnalyzer(settings).analyze(grid)

        assert result.confidence == pytest.approx(0.6667)
        assert result.low_confidence
        assert ErrorCode.LOW_LAYOUT_CONFIDENCE in _codes(result)
        assert result.suggestions[0].startswith("Layout detection confidence is low")

    def test_candidates_ranked_best_first(self, monthly_grid: CellGrid) -> None:
        candidates = LayoutAnalyzer().find_axis_candidates(monthly_grid)
        assert candidates[0].orientation == Orientation.MONTHS_IN_COLUMNS
        assert candidates[0].label_count == 3
        assert [c.axis_index for c in candidates[1:]] == [1, 2, 3]

    def test_ordered_months_beat_scattered_month_words(self, settings: Settings) -> None:
        """A row of months in calendar order wins over a longer row of loose month words."""
        grid = CellGrid.build(
            [
                ["Jun", "Jan", "Oct", "Mar"],
                [None, "Jan", "Feb", "Mar"],
                ["2N/2pax", 100, 110, 120],
            ]
        )
        candidates = LayoutAnalyzer(settings).find_axis_candidates(grid)

        best, runner_up = candidates[0], candidates[1]
        assert best.axis_index == 1
        assert best.in_sequence
        assert best.confidence == pytest.approx(1.0)
        assert runner_up.axis_index == 0
        assert not runner_up.in_sequence
        assert LayoutAnalyzer(settings).analyze(grid).primary.axis_index == 1

    def test_sequence_wraps_into_new_year(self, settings: Settings) -> None:
        grid = CellGrid.build([[None, "Nov", "Dec", "Jan"], ["2N/2pax", 100, 110, 120]])
        candidate = LayoutAnalyzer(settings).find_axis_candidates(grid)[0]
        assert candidate.in_sequence
        assert candidate.axis_index == 0

    def test_scan_limit_restricts_candidates(self, monthly_grid: CellGrid) -> None:
        """Rows and columns beyond the scan limit are not searched."""
        settings = Settings(_env_file=None, scan_limit=1)
        assert LayoutAnalyzer(settings).find_axis_candidates(monthly_grid) == []


class TestDetectionEdgeCases:
    """Tests for sheets without a usable layout."""

    def test_empty_grid(self, settings: Settings) -> None:
        result = LayoutAnalyzer(settings).analyze(CellGrid.build([]))

        assert result.primary is None
        assert result.pricing_section is None
        assert _codes(result) == [ErrorCode.EMPTY_GRID]
        assert result.issues[0].severity == Severity.WARNING

    def test_no_period_axis(self, settings: Settings) -> None:
        grid = CellGrid.build([["Hotel Sol", None], ["Apartment", 100]])
        result = LayoutAnalyzer(settings).analyze(grid)

        assert result.primary is None
        assert result.confidence == 0.0
        assert _codes(result) == [ErrorCode.NO_PERIOD_AXIS, ErrorCode.NO_INCLUSIONS]
        assert any("No month" in s for s in result.suggestions)


class TestPricingSection:
    """Tests for locating the pricing block."""

    def test_block_bounds(self, monthly_grid: CellGrid, settings: Settings) -> None:
        section = LayoutAnalyzer(settings).analyze(monthly_grid).pricing_section

        assert section.bounds.ref == "A2:D4"
        assert section.header_band.ref == "A2:D2"
        assert section.data_bounds.ref == "B3:D4"
        assert section.label_cols == [0]
        assert section.nights_options == [2]
        assert section.pax_options == [2, 4]

    def test_two_label_columns(self, resort_grid: CellGrid, settings: Settings) -> None:
        section = LayoutAnalyzer(settings).analyze(resort_grid).pricing_section

        assert section.bounds.ref == "A3:D6"
        assert section.data_bounds.ref == "C4:D6"
        assert section.label_cols == [0, 1]
        assert section.accommodation_types == ["Apartment", "Villa"]
        assert section.nights_options == [3, 7]

    def test_sub_header_row_extends_period_columns(
        self, header_type_grid: CellGrid, settings: Settings
    ) -> None:
        """Blank axis cells under a period inherit it; trailing sub-headers join."""
        section = LayoutAnalyzer(settings).analyze(header_type_grid).pricing_section

        assert section.header_rows == [0, 1]
        assert section.data_cols == [1, 2, 3, 4]
        assert [section.column_periods[j].label for j in section.data_cols] == [
            "January",
            "January",
            "February",
            "February",
        ]
        assert section.accommodation_types == ["Apartment", "Villa"]

    def test_to_dict(self, monthly_grid: CellGrid, settings: Settings) -> None:
        data = LayoutAnalyzer(settings).analyze(monthly_grid).to_dict()
        assert data["primary"]["orientation"] == "months-in-columns"
        assert data["pricing_section"]["bounds"] == "A2:D4"
        assert data["inclusions_section"] is None


class TestOverrides:
    """Tests for reviewer layout overrides."""

    def test_forced_axis(self, monthly_grid: CellGrid, settings: Settings) -> None:
        override = LayoutOverride(
            orientation=Orientation.MONTHS_IN_COLUMNS, axis_index=1
        )
        result = LayoutAnalyzer(settings).analyze(monthly_grid, override)

        assert result.primary.source == "override"
        assert result.confidence == 1.0
        applied = [i for i in result.issues if i.code == ErrorCode.LAYOUT_OVERRIDE_APPLIED]
        assert len(applied) == 1
        assert applied[0].message == "Layout override applied: axis_index, orientation"

    def test_forced_axis_without_known_labels(self, settings: Settings) -> None:
        """Text on a forced axis is taken as named periods."""
        grid = CellGrid.build([[None, "Period A", "Period B"], ["2N/2pax", 100, 120]])
        override = LayoutOverride(orientation=Orientation.MONTHS_IN_COLUMNS, axis_index=0)
        result = LayoutAnalyzer(settings).analyze(grid, override)

        assert result.primary.detected_headers == ["Period A", "Period B"]
        assert result.pricing_section.data_bounds.ref == "B2:C2"

    def test_axis_outside_sheet(self, monthly_grid: CellGrid, settings: Settings) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            LayoutAnalyzer(settings).analyze(monthly_grid, LayoutOverride(axis_index=10))
        assert exc_info.value.details["setting"] == "axis_index"

    def test_axis_without_labels(self, monthly_grid: CellGrid, settings: Settings) -> None:
        override = LayoutOverride(orientation=Orientation.MONTHS_IN_COLUMNS, axis_index=3)
        with pytest.raises(ConfigurationError):
            LayoutAnalyzer(settings).analyze(monthly_grid, override)

    def test_bounds_outside_sheet(self, monthly_grid: CellGrid, settings: Settings) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            LayoutAnalyzer(settings).analyze(
                monthly_grid, LayoutOverride(pricing_bounds="Z1:Z2")
            )
        assert exc_info.value.details["setting"] == "pricing_bounds"

    def test_bounds_window_limits_the_block(
        self, monthly_grid: CellGrid, settings: Settings
    ) -> None:
        """Cells outside the override bounds are ignored."""
        result = LayoutAnalyzer(settings).analyze(
            monthly_grid, LayoutOverride(pricing_bounds="A2:C4")
        )
        assert result.primary.detected_headers == ["January", "February"]
        assert result.pricing_section.bounds.ref == "A2:C4"

    def test_mixed_override_rejected(self) -> None:
        with pytest.raises(ValueError):
            LayoutOverride(orientation=Orientation.MIXED)


class TestTextSections:
    """Tests for inclusion and exclusion blocks."""

    def test_headed_blocks(self, resort_grid: CellGrid, settings: Settings) -> None:
        result = LayoutAnalyzer(settings).analyze(resort_grid)
        inclusions = result.inclusions_section
        exclusions = result.exclusions_section

        assert inclusions.heading == "Package includes:"
        assert inclusions.bounds.ref == "A8:A11"
        assert inclusions.format == "bullet-points"
        assert [line.text for line in inclusions.lines] == [
            "• Breakfast",
            "• Airport transfers",
            "TBC",
        ]
        assert exclusions.kind == "exclusions"
        assert [line.text for line in exclusions.lines] == ["flights"]
        assert ErrorCode.NO_INCLUSIONS not in _codes(result)

    def test_text_after_block_without_heading(self, settings: Settings) -> None:
        grid = CellGrid.build(
            [
                [None, "Jan", "Feb"],
                ["2N/2pax", 100, 120],
                [None, None, None],
                ["Breakfast and transfers", None, None],
            ]
        )
        inclusions = LayoutAnalyzer(settings).analyze(grid).inclusions_section

        assert inclusions.heading is None
        assert inclusions.bounds.ref == "A4"
        assert inclusions.format == "plain-text"

    def test_missing_inclusions(self, monthly_grid: CellGrid, settings: Settings) -> None:
        result = LayoutAnalyzer(settings).analyze(monthly_grid)
        assert result.inclusions_section is None
        assert ErrorCode.NO_INCLUSIONS in _codes(result)

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("Package includes: breakfast", "breakfast"),
            ("Includes breakfast", "breakfast"),
            ("Inclusions", ""),
            ("Not included - flights", "flights"),
        ],
    )
    def test_heading_remainder(self, text: str, expected: str) -> None:
        assert LayoutAnalyzer.heading_remainder(text) == expected
