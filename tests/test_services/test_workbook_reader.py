"""Tests for the openpyxl workbook reader."""

from __future__ import annotations

from pathlib import Path

import pytest
from openpyxl import Workbook
from openpyxl.chart import BarChart, Reference

from resort_pricing_extraction.cell_grid import CellRange
from resort_pricing_extraction.services.workbook_reader import (
    WorkbookReader,
    WorkbookReaderOptions,
)
from resort_pricing_extraction.utils.exceptions import (
    SheetNotFoundError,
    WorkbookNotFoundError,
    WorkbookReadError,
)


def _make_workbook(directory: Path) -> Path:
    wb = Workbook()
    ws1 = wb.active
    ws1.title = "Hotel Sol"
    ws1["A1"] = "Resort: Hotel Sol"
    ws1["A2"] = "Type"
    ws1["B2"] = "January"
    ws1["C2"] = "February"
    ws1["A3"] = "Apartment"
    ws1["B3"] = 100
    ws1["C3"] = 0
    ws1.merge_cells("A4:C4")
    ws1["A4"] = "Package includes: breakfast"

    ws2 = wb.create_sheet("Villa Mar")
    ws2["A1"] = "Villa Mar"
    file_path = directory / "prices.xlsx"
    wb.save(file_path)
    return file_path


class TestWorkbookReader:
    """Tests for WorkbookReader."""

    def test_reads_every_sheet_in_order(self, tmp_path: Path) -> None:
        """Each worksheet becomes one grid named after the sheet."""
        grids = WorkbookReader().read_path(_make_workbook(tmp_path))
        assert [grid.sheet_name for grid in grids] == ["Hotel Sol", "Villa Mar"]

    def test_values_and_merges(self, tmp_path: Path) -> None:
        """Values keep their types and merged ranges are resolved."""
        grid = WorkbookReader().read_sheet(_make_workbook(tmp_path), "Hotel Sol")
        assert (grid.n_rows, grid.n_cols) == (4, 3)
        assert grid.value(2, 1) == 100
        assert grid.value(2, 2) == 0
        assert not grid.get(2, 2).is_blank
        assert grid.merged_ranges == [CellRange(3, 0, 3, 2)]
        assert grid.merges_known
        assert grid.value(3, 2) == "Package includes: breakfast"

    def test_read_sheet_defaults_to_active(self, tmp_path: Path) -> None:
        grid = WorkbookReader().read_sheet(_make_workbook(tmp_path))
        assert grid.sheet_name == "Hotel Sol"

    def test_streaming_reads_values_without_merges(self, tmp_path: Path) -> None:
        """Read-only mode yields the same values but no merged ranges."""
        grid = WorkbookReader().read_sheet(
            _make_workbook(tmp_path), "Hotel Sol", streaming=True
        )
        assert grid.value(2, 1) == 100
        assert grid.merged_ranges == []
        assert not grid.merges_known
        assert grid.value(3, 0) == "Package includes: breakfast"
        assert grid.value(3, 2) is None

    def test_max_rows(self, tmp_path: Path) -> None:
        grids = WorkbookReader().read_path(
            _make_workbook(tmp_path),
            WorkbookReaderOptions(sheet_name="Hotel Sol", max_rows=2),
        )
        assert grids[0].n_rows == 2

    def test_get_sheet_names(self, tmp_path: Path) -> None:
        names = WorkbookReader().get_sheet_names(_make_workbook(tmp_path))
        assert names == ["Hotel Sol", "Villa Mar"]

    def test_missing_sheet(self, tmp_path: Path) -> None:
        with pytest.raises(SheetNotFoundError) as exc_info:
            WorkbookReader().read_sheet(_make_workbook(tmp_path), "Summer")
        assert exc_info.value.details["available_sheets"] == ["Hotel Sol", "Villa Mar"]

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(WorkbookNotFoundError):
            WorkbookReader().read_path(tmp_path / "missing.xlsx")

    def test_not_a_workbook(self, tmp_path: Path) -> None:
        file_path = tmp_path / "broken.xlsx"
        file_path.write_text("not a spreadsheet")
        with pytest.raises(WorkbookReadError) as exc_info:
            WorkbookReader().read_path(file_path)
        assert "cause" in exc_info.value.details

    @pytest.mark.parametrize("streaming", [False, True])
    def test_chartsheets_are_skipped(self, tmp_path: Path, streaming: bool) -> None:
        wb = Workbook()
        ws = wb.active
        ws.title = "Hotel Sol"
        ws.append([None, "Jan", "Feb"])
        ws.append(["2N/2pax", 150, 160])
        chart = BarChart()
        chart.add_data(Reference(ws, min_col=2, min_row=2, max_col=3, max_row=2))
        wb.create_chartsheet("Chart").add_chart(chart)
        file_path = tmp_path / "charted.xlsx"
        wb.save(file_path)

        reader = WorkbookReader()
        grids = reader.read_path(file_path, WorkbookReaderOptions(streaming=streaming))
        assert [grid.sheet_name for grid in grids] == ["Hotel Sol"]
        assert grids[0].value(1, 1) == 150
        assert reader.get_sheet_names(file_path) == ["Hotel Sol"]
        with pytest.raises(SheetNotFoundError):
            reader.read_sheet(file_path, "Chart", streaming=streaming)
