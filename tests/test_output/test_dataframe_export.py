"""Tests for DataFrame export."""

import math

import pandas as pd
import pytest

from resort_pricing_extraction.cell_grid import CellGrid
from resort_pricing_extraction.config import Settings
from resort_pricing_extraction.models import ParsedResortData, ResortMetadata
from resort_pricing_extraction.output.dataframe_export import (
    ISSUE_COLUMNS,
    RECORD_COLUMNS,
    issues_to_dataframe,
    price_grid,
    records_to_dataframe,
)
from resort_pricing_extraction.services.sheet_processor import SheetProcessor
from resort_pricing_extraction.utils.exceptions import ErrorCode


@pytest.fixture
def result(settings: Settings, monthly_grid: CellGrid) -> ParsedResortData:
    return SheetProcessor(settings).parse(monthly_grid)


@pytest.fixture
def empty_result() -> ParsedResortData:
    return ParsedResortData(metadata=ResortMetadata(currency="EUR"))


class TestRecordsFrame:
    """Tests for the records frame."""

    def test_one_row_per_record(self, result: ParsedResortData) -> None:
        df = records_to_dataframe(result)

        assert list(df.columns) == RECORD_COLUMNS
        assert len(df) == 6
        assert df["nights"].dtype == "Int64"
        assert df.loc[0, "price"] == 150.0
        assert df["available"].tolist() == [True, True, True, False, False, False]

    def test_unavailable_price_is_nan(self, result: ParsedResortData) -> None:
        df = records_to_dataframe(result)
        assert math.isnan(df.loc[3, "price"])

    def test_several_results(self, result: ParsedResortData) -> None:
        df = records_to_dataframe([result, result])
        assert len(df) == 12

    def test_empty(self, empty_result: ParsedResortData) -> None:
        df = records_to_dataframe(empty_result)
        assert df.empty
        assert list(df.columns) == RECORD_COLUMNS


class TestIssuesFrame:
    """Tests for the issues frame."""

    def test_issue_rows(self, result: ParsedResortData) -> None:
        df = issues_to_dataframe(result)

        assert list(df.columns) == ISSUE_COLUMNS
        assert df["code"].tolist()[-1] == ErrorCode.MONTH_WITHOUT_PRICES.value
        assert df["code_name"].tolist()[-1] == "MONTH_WITHOUT_PRICES"
        last = df.iloc[-1]
        assert last["cell"] == "D3"
        assert last["severity"] == "warning"

    def test_empty(self, empty_result: ParsedResortData) -> None:
        df = issues_to_dataframe(empty_result)
        assert df.empty
        assert list(df.columns) == ISSUE_COLUMNS


class TestPriceGrid:
    """Tests for the pivoted price table."""

    def test_pivot(self, result: ParsedResortData) -> None:
        table = price_grid(result)

        assert list(table.index) == ["January", "February"]
        assert list(table.columns) == ["Standard 2N/2P", "Standard 2N/4P"]
        assert table.loc["January", "Standard 2N/4P"] == 280.0
        assert table.loc["February", "Standard 2N/2P"] == 0.0
        assert pd.isna(table.loc["February", "Standard 2N/4P"])

    def test_no_available_prices(self, empty_result: ParsedResortData) -> None:
        assert price_grid(empty_result).empty
