"""Tests for sheet metadata extraction."""

from datetime import date

import pytest

from resort_pricing_extraction.cell_grid import CellGrid
from resort_pricing_extraction.config import Settings
from resort_pricing_extraction.models import LayoutOverride
from resort_pricing_extraction.services.layout_analyzer import LayoutAnalyzer
from resort_pricing_extraction.services.metadata_extractor import (
    MetadataExtractor,
    MetadataResult,
)
from resort_pricing_extraction.utils.exceptions import ErrorCode


def _extract(
    grid: CellGrid, settings: Settings, override: LayoutOverride | None = None
) -> MetadataResult:
    detection = LayoutAnalyzer(settings).analyze(grid, override)
    return MetadataExtractor(settings).extract(grid, detection, override)


def _sheet(title_rows: list[list[object]], sheet_name: str = "Sheet1") -> CellGrid:
    """Title rows above a small Jan/Feb price block."""
    width = 3
    rows = [row + [None] * (width - len(row)) for row in title_rows]
    rows += [[None, "Jan", "Feb"], ["2N/2pax", 100, 120]]
    return CellGrid.build(rows, sheet_name=sheet_name)


class TestResortName:
    """Tests for resort name resolution."""

    def test_labelled_title(self, monthly_grid: CellGrid, settings: Settings) -> None:
        result = _extract(monthly_grid, settings)
        assert result.metadata.resort_name == "Hotel Sol"
        assert result.metadata.resort_name_source == "title"

    def test_label_in_separate_cell(self, settings: Settings) -> None:
        result = _extract(_sheet([["Resort name:", "Azul Bay"]]), settings)
        assert result.metadata.resort_name == "Azul Bay"

    def test_title_suffix_removed(self, resort_grid: CellGrid, settings: Settings) -> None:
        result = _extract(resort_grid, settings)
        assert result.metadata.resort_name == "Casa Blanca"
        assert result.metadata.resort_name_source == "title"

    def test_sheet_name_fallback(self, settings: Settings) -> None:
        result = _extract(_sheet([], sheet_name="Hotel Mirador"), settings)
        assert result.metadata.resort_name == "Hotel Mirador"
        assert result.metadata.resort_name_source == "sheet_name"

    def test_no_name_found(self, settings: Settings) -> None:
        """A generic sheet name and no title leave the name empty."""
        result = _extract(_sheet([], sheet_name="Sheet1"), settings)
        assert result.metadata.resort_name == ""
        assert result.metadata.resort_name_source is None
        assert ErrorCode.RESORT_NAME_MISSING not in [i.code for i in result.issues]

    def test_override_name(self, monthly_grid: CellGrid, settings: Settings) -> None:
        override = LayoutOverride(resort_name=" Casa Nova ")
        result = _extract(monthly_grid, settings, override)
        assert result.metadata.resort_name == "Casa Nova"
        assert result.metadata.resort_name_source == "override"

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("Hotel Sol - Prices 2025", "Hotel Sol"),
            ("Villa Mar Price List", "Villa Mar"),
            ("Casa Blanca 2025/26", "Casa Blanca"),
            ("  Azul   Bay  ", "Azul Bay"),
        ],
    )
    def test_clean_title(self, text: str, expected: str) -> None:
        assert MetadataExtractor.clean_title(text) == expected


class TestCurrency:
    """Tests for sheet currency detection."""

    def test_default_currency(self, monthly_grid: CellGrid, settings: Settings) -> None:
        result = _extract(monthly_grid, settings)
        assert result.metadata.currency == "EUR"
        assert not result.metadata.currency_detected
        assert [i.code for i in result.issues] == [ErrorCode.CURRENCY_DEFAULTED]

    def test_configured_default(self, monthly_grid: CellGrid) -> None:
        settings = Settings(_env_file=None, default_currency="CHF")
        assert _extract(monthly_grid, settings).metadata.currency == "CHF"

    def test_currency_in_title(self, resort_grid: CellGrid, settings: Settings) -> None:
        result = _extract(resort_grid, settings)
        assert result.metadata.currency == "EUR"
        assert result.metadata.currency_detected
        assert result.issues == []

    def test_most_frequent_currency_wins(self, settings: Settings) -> None:
        grid = _sheet([["Hotel Sol"], ["Rates in GBP"], ["Prices in £, deposits in EUR"]])
        assert _extract(grid, settings).metadata.currency == "GBP"

    def test_override_currency(self, monthly_grid: CellGrid, settings: Settings) -> None:
        result = _extract(monthly_grid, settings, LayoutOverride(currency="usd"))
        assert result.metadata.currency == "USD"
        assert result.metadata.currency_detected
        assert result.issues == []


class TestValidityAndSeason:
    """Tests for the validity window and season."""

    def test_validity_window(self, settings: Settings) -> None:
        grid = _sheet([["Hotel Sol"], ["Valid 01/04/2025 to 31/10/2025"]])
        result = _extract(grid, settings)

        assert result.metadata.valid_from == date(2025, 4, 1)
        assert result.metadata.valid_to == date(2025, 10, 31)
        assert result.reference_year == 2025

    def test_inverted_window(self, settings: Settings) -> None:
        grid = _sheet([["Hotel Sol"], ["Valid 31/10/2025 to 01/04/2025"]])
        result = _extract(grid, settings)

        assert result.metadata.valid_from is None
        codes = [i.code for i in result.issues]
        assert ErrorCode.VALIDITY_WINDOW_INVALID in codes
        assert result.reference_year is None

    def test_single_date(self, settings: Settings) -> None:
        grid = _sheet([["Hotel Sol"], ["Valid from 01/04/2025"]])
        result = _extract(grid, settings)

        issue = next(
            i for i in result.issues if i.code == ErrorCode.VALIDITY_WINDOW_INCOMPLETE
        )
        assert issue.location.cell == "A2"

    def test_season(self, settings: Settings) -> None:
        grid = _sheet([["Hotel Sol"], ["High Season 2025"]])
        assert _extract(grid, settings).metadata.season == "High Season 2025"

    def test_special_periods(self, settings: Settings) -> None:
        grid = CellGrid.build(
            [
                ["Resort: Hotel Sol", None, None],
                [None, "July", "Easter 18/04/2025 - 21/04/2025"],
                ["3N/2PAX", 400, 450],
            ]
        )
        periods = _extract(grid, settings).metadata.special_periods

        assert len(periods) == 1
        assert periods[0].label == "Easter"
        assert periods[0].period_type == "holiday"
        assert periods[0].valid_from == date(2025, 4, 18)
        assert periods[0].valid_to == date(2025, 4, 21)


class TestTitleBlock:
    """Tests for the title block."""

    def test_rows_above_pricing_block(self, resort_grid: CellGrid, settings: Settings) -> None:
        detection = LayoutAnalyzer(settings).analyze(resort_grid)
        cells = MetadataExtractor(settings).title_block(resort_grid, detection)
        assert [c.text for c in cells] == ["Casa Blanca - Prices 2025", "Prices in EUR"]

    def test_merged_title_counted_once(self, settings: Settings) -> None:
        grid = CellGrid.build(
            [["Hotel Sol", None, None], [None, "Jan", "Feb"], ["2N/2pax", 100, 120]],
            merged_ranges=["A1:C1"],
        )
        detection = LayoutAnalyzer(settings).analyze(grid)
        cells = MetadataExtractor(settings).title_block(grid, detection)
        assert [c.ref for c in cells] == ["A1"]
