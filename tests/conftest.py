from __future__ import annotations

import os
from unittest.mock import patch

import pytest

from resort_pricing_extraction.cell_grid import CellGrid
from resort_pricing_extraction.config import Settings


@pytest.fixture
def settings() -> Settings:
    """Default settings, isolated from RPE_* environment variables."""
    with patch.dict(os.environ, {}, clear=True):
        return Settings(_env_file=None)


@pytest.fixture
def monthly_grid() -> CellGrid:
    """Months across a header row; Feb holds a real zero, Mar is blank."""
    return CellGrid.build(
        [
            ["Resort: Hotel Sol", None, None, None],
            [None, "Jan", "Feb", "Mar"],
            ["2N/2pax", 150, 0, None],
            ["2N/4pax", 280, None, None],
        ],
        sheet_name="Hotel Sol",
    )


@pytest.fixture
def monthly_grid_rows(monthly_grid: CellGrid) -> CellGrid:
    """The monthly grid with months running down a column."""
    return monthly_grid.transpose()


@pytest.fixture
def resort_grid() -> CellGrid:
    """A fuller sheet: title, currency line, two label columns and text blocks."""
    return CellGrid.build(
        [
            ["Casa Blanca - Prices 2025", None, None, None],
            ["Prices in EUR", None, None, None],
            [None, None, "January", "February"],
            ["Apartment", "3N/2PAX", 300, 320],
            ["Apartment", "7N/2PAX", 650, 700],
            ["Villa", "7N/4PAX", 1200, "On request"],
            [None, None, None, None],
            ["Package includes:", None, None, None],
            ["• Breakfast", None, None, None],
            ["• Airport transfers", None, None, None],
            ["TBC", None, None, None],
            ["Not included: flights", None, None, None],
        ],
        sheet_name="Sheet1",
    )


@pytest.fixture
def header_type_grid() -> CellGrid:
    """Accommodation types in a sub-header row under merged-style month labels."""
    return CellGrid.build(
        [
            [None, "January", None, "February", None],
            [None, "Apartment", "Villa", "Apartment", "Villa"],
            ["3N/2PAX", 300, 500, 320, 520],
        ],
        sheet_name="Casa Blanca",
    )


@pytest.fixture
def merged_price_grid() -> CellGrid:
    """One price merged across two months."""
    return CellGrid.build(
        [
            ["Resort: Villa Sol", None, None],
            [None, "Jan", "Feb"],
            ["Apartment", 100, None],
            ["Villa", 180, 190],
        ],
        merged_ranges=["B3:C3"],
        sheet_name="Villa Sol",
    )
