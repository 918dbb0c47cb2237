"""Uniform 2-D view of a worksheet with merged-range resolution.

Every address inside a merged range resolves to the value stored at the
range's top-left cell, so no component above this module needs to know
about merges. Grids are immutable once built and can be constructed either
eagerly from a list of rows or incrementally, one row at a time, through
``CellGridBuilder``.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from typing import Any

from openpyxl.utils import get_column_letter
from openpyxl.utils.cell import range_boundaries

from resort_pricing_extraction.utils.logging import get_logger

logger = get_logger(__name__)


def cell_ref(row: int, col: int) -> str:
    """Return the A1-style reference for a 0-based (row, col) address."""
    return f"{get_column_letter(col + 1)}{row + 1}"


def is_blank_value(value: Any) -> bool:
    """Return True for None, empty strings and whitespace-only strings."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def is_numeric_value(value: Any) -> bool:
    """Return True for int/float cell values (booleans excluded)."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass(frozen=True)
class CellRange:
    """Rectangular range of cells, 0-based and inclusive on both ends."""

    top: int
    """First row of the range."""

    left: int
    """First column of the range."""

    bottom: int
    """Last row of the range."""

    right: int
    """Last column of the range."""

    @classmethod
    def from_ref(cls, ref: str) -> CellRange:
        """Parse an A1-style range such as ``"B2:D4"`` (or a single ``"B2"``).

        Raises:
            ValueError: If the reference is not a bounded cell range.
        """
        min_col, min_row, max_col, max_row = range_boundaries(ref.strip().upper())
        if None in (min_col, min_row, max_col, max_row):
            raise ValueError(f"Range must have row and column bounds: {ref!r}")
        return cls(
            top=min_row - 1,
            left=min_col - 1,
            bottom=max_row - 1,
            right=max_col - 1,
        )

    @property
    def ref(self) -> str:
        """A1-style reference for the range."""
        start = cell_ref(self.top, self.left)
        if self.top == self.bottom and self.left == self.right:
            return start
        return f"{start}:{cell_ref(self.bottom, self.right)}"

    @property
    def height(self) -> int:
        """Number of rows covered."""
        return self.bottom - self.top + 1

    @property
    def width(self) -> int:
        """Number of columns covered."""
        return self.right - self.left + 1

    @property
    def size(self) -> int:
        """Number of cell addresses covered."""
        return self.height * self.width

    def contains(self, row: int, col: int) -> bool:
        """Check whether an address lies inside the range."""
        return self.top <= row <= self.bottom and self.left <= col <= self.right

    def iter_addresses(self) -> Iterator[tuple[int, int]]:
        """Yield every (row, col) in the range in row-major order."""
        for row in range(self.top, self.bottom + 1):
            for col in range(self.left, self.right + 1):
                yield row, col

    def transpose(self) -> CellRange:
        """Return the same range with rows and columns swapped."""
        return CellRange(
            top=self.left, left=self.top, bottom=self.right, right=self.bottom
        )

    def clip(self, n_rows: int, n_cols: int) -> CellRange | None:
        """Clip the range to grid bounds, or None if nothing remains."""
        if self.top >= n_rows or self.left >= n_cols:
            return None
        return CellRange(
            top=self.top,
            left=self.left,
            bottom=min(self.bottom, n_rows - 1),
            right=min(self.right, n_cols - 1),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "ref": self.ref,
            "top": self.top,
            "left": self.left,
            "bottom": self.bottom,
            "right": self.right,
        }


@dataclass(frozen=True)
class Cell:
    """A single grid address and the value visible there."""

    row: int
    """0-based row index."""

    col: int
    """0-based column index."""

    raw_value: Any
    """Value as read from the worksheet (top-left value for merged cells)."""

    merged_range_id: str | None = None
    """A1 reference of the merged range covering this address, if any."""

    @property
    def ref(self) -> str:
        """A1-style reference for this address."""
        return cell_ref(self.row, self.col)

    @property
    def is_blank(self) -> bool:
        """Whether the cell holds nothing but whitespace."""
        return is_blank_value(self.raw_value)

    @property
    def is_numeric(self) -> bool:
        """Whether the cell holds a native number."""
        return is_numeric_value(self.raw_value)

    @property
    def is_merged(self) -> bool:
        """Whether this address is part of a merged range."""
        return self.merged_range_id is not None

    @property
    def text(self) -> str:
        """Stripped string form of the value ("" for blanks)."""
        if self.is_blank:
            return ""
        return str(self.raw_value).strip()


def _coerce_merge(value: CellRange | str | Sequence[int]) -> CellRange:
    if isinstance(value, CellRange):
        return value
    if isinstance(value, str):
        return CellRange.from_ref(value)
    top, left, bottom, right = (int(v) for v in value)
    return CellRange(top=top, left=left, bottom=bottom, right=right)


class CellGrid:
    """Immutable rectangular grid of worksheet values.

    Addresses outside the grid resolve to blank cells rather than raising,
    and an empty grid (0 rows) means nothing could be read.
    """

    def __init__(
        self,
        rows: list[list[Any]],
        merged_ranges: Iterable[CellRange] = (),
        sheet_name: str = "",
        merges_known: bool = True,
    ) -> None:
        """Initialize from already rectangular rows.

        Prefer ``CellGrid.build`` or ``CellGridBuilder``, which normalize
        ragged input.

        Args:
            rows: Row-major cell values, all rows the same length.
            merged_ranges: Merged ranges already clipped to the grid.
            sheet_name: Name of the source worksheet.
            merges_known: False when the source could not report merged
                ranges, so a merge-free grid may still hide merges.
        """
        self._rows = rows
        self._n_rows = len(rows)
        self._n_cols = len(rows[0]) if rows else 0
        self.sheet_name = sheet_name
        self.merges_known = merges_known
        self._merged_ranges: list[CellRange] = []
        self._canonical: dict[tuple[int, int], CellRange] = {}

        for merge in merged_ranges:
            if any(address in self._canonical for address in merge.iter_addresses()):
                logger.warning(
                    "Ignoring overlapping merged range",
                    sheet=sheet_name,
                    range=merge.ref,
                )
                continue
            self._merged_ranges.append(merge)
            for address in merge.iter_addresses():
                self._canonical[address] = merge

    # ------------------------------------------------------------------ #
    # Construction
    # ------------------------------------------------------------------ #

    @classmethod
    def build(
        cls,
        raw_rows: Any,
        merged_ranges: Iterable[CellRange | str | Sequence[int]] | None = None,
        sheet_name: str = "",
    ) -> CellGrid:
        """Build a grid from raw 2-D values and merge metadata.

        Input without discernible row/column bounds (None, a string, a flat
        list of scalars) produces an empty grid instead of an error.

        Args:
            raw_rows: Iterable of rows, each an iterable of cell values.
            merged_ranges: Merged ranges as CellRange, "A1:B2" strings, or
                (top, left, bottom, right) 0-based tuples.
            sheet_name: Name of the source worksheet.

        Returns:
            The built grid.
        """
        builder = CellGridBuilder(sheet_name=sheet_name)
        if raw_rows is None or isinstance(raw_rows, (str, bytes)):
            return builder.build()
        try:
            row_iter = iter(raw_rows)
        except TypeError:
            return builder.build()

        for row in row_iter:
            if row is None:
                builder.add_row([])
                continue
            if isinstance(row, (str, bytes)) or not isinstance(row, Iterable):
                logger.debug("Raw worksheet rows are not 2-D", sheet=sheet_name)
                return CellGridBuilder(sheet_name=sheet_name).build()
            builder.add_row(row)

        for merge in merged_ranges or ():
            builder.add_merge(merge)
        return builder.build()

    @classmethod
    def empty(cls, sheet_name: str = "") -> CellGrid:
        """Return a grid with no rows."""
        return cls([], sheet_name=sheet_name)

    # ------------------------------------------------------------------ #
    # Access
    # ------------------------------------------------------------------ #

    @property
    def n_rows(self) -> int:
        """Number of rows."""
        return self._n_rows

    @property
    def n_cols(self) -> int:
        """Number of columns."""
        return self._n_cols

    @property
    def is_empty(self) -> bool:
        """Whether the grid has no cells."""
        return self._n_rows == 0 or self._n_cols == 0

    @property
    def merged_ranges(self) -> list[CellRange]:
        """Merged ranges in the order they were registered."""
        return list(self._merged_ranges)

    @property
    def bounds(self) -> CellRange | None:
        """Range covering the whole grid, or None when empty."""
        if self.is_empty:
            return None
        return CellRange(0, 0, self._n_rows - 1, self._n_cols - 1)

    def merge_at(self, row: int, col: int) -> CellRange | None:
        """Return the merged range covering an address, if any."""
        return self._canonical.get((row, col))

    def get(self, row: int, col: int) -> Cell:
        """Return the cell at an address, resolving merges to the top-left value."""
        if not (0 <= row < self._n_rows and 0 <= col < self._n_cols):
            return Cell(row=row, col=col, raw_value=None)
        merge = self._canonical.get((row, col))
        if merge is None:
            return Cell(row=row, col=col, raw_value=self._rows[row][col])
        return Cell(
            row=row,
            col=col,
            raw_value=self._rows[merge.top][merge.left],
            merged_range_id=merge.ref,
        )

    def value(self, row: int, col: int) -> Any:
        """Shortcut for ``get(row, col).raw_value``."""
        return self.get(row, col).raw_value

    def range(
        self, top_left: tuple[int, int], bottom_right: tuple[int, int]
    ) -> list[list[Cell]]:
        """Return the cells of a rectangle as a list of rows."""
        top, left = top_left
        bottom, right = bottom_right
        return [
            [self.get(row, col) for col in range(left, right + 1)]
            for row in range(top, bottom + 1)
        ]

    def row(self, row: int) -> list[Cell]:
        """Return every cell of a row."""
        return [self.get(row, col) for col in range(self._n_cols)]

    def iter_cells(self, skip_blank: bool = True) -> Iterator[Cell]:
        """Yield cells in row-major order."""
        for row in range(self._n_rows):
            for col in range(self._n_cols):
                cell = self.get(row, col)
                if skip_blank and cell.is_blank:
                    continue
                yield cell

    def transpose(self) -> CellGrid:
        """Return a new grid with rows and columns swapped."""
        rows = [
            [self._rows[row][col] for row in range(self._n_rows)]
            for col in range(self._n_cols)
        ]
        return CellGrid(
            rows,
            merged_ranges=[merge.transpose() for merge in self._merged_ranges],
            sheet_name=self.sheet_name,
            merges_known=self.merges_known,
        )

    def to_values(self) -> list[list[Any]]:
        """Return merge-resolved values as a list of rows."""
        return [
            [cell.raw_value for cell in self.row(row)] for row in range(self._n_rows)
        ]

    def __repr__(self) -> str:
        return (
            f"CellGrid(sheet_name={self.sheet_name!r}, rows={self._n_rows}, "
            f"cols={self._n_cols}, merges={len(self._merged_ranges)})"
        )


class CellGridBuilder:
    """Incremental, row-at-a-time construction of a ``CellGrid``.

    Used by the streaming workbook reader so the source workbook never has
    to be resident in memory as a whole.
    """

    def __init__(self, sheet_name: str = "") -> None:
        self.sheet_name = sheet_name
        self._rows: list[list[Any]] = []
        self._merges: list[CellRange] = []
        self._width = 0
        self.merges_known = True

    @property
    def row_count(self) -> int:
        """Rows added so far."""
        return len(self._rows)

    def add_row(self, values: Iterable[Any]) -> None:
        """Append one row of raw cell values."""
        row = [None if is_blank_value(value) else value for value in values]
        self._rows.append(row)
        self._width = max(self._width, len(row))

    def add_merge(self, merge: CellRange | str | Sequence[int]) -> None:
        """Register a merged range; unparseable ranges are logged and skipped."""
        try:
            self._merges.append(_coerce_merge(merge))
        except (TypeError, ValueError) as e:
            logger.warning(
                "Skipping invalid merged range",
                sheet=self.sheet_name,
                range=merge,
                error=str(e),
            )

    def build(self) -> CellGrid:
        """Finish the grid: pad ragged rows, trim trailing blanks, clip merges."""
        n_rows = len(self._rows)
        while n_rows and all(value is None for value in self._rows[n_rows - 1]):
            n_rows -= 1

        n_cols = 0
        for row in self._rows[:n_rows]:
            for idx in range(len(row) - 1, -1, -1):
                if row[idx] is not None:
                    n_cols = max(n_cols, idx + 1)
                    break

        if n_rows == 0 or n_cols == 0:
            return CellGrid(
                [], sheet_name=self.sheet_name, merges_known=self.merges_known
            )

        rows = [
            (row[:n_cols] + [None] * (n_cols - len(row)))[:n_cols]
            for row in self._rows[:n_rows]
        ]
        merges = []
        for merge in self._merges:
            clipped = merge.clip(n_rows, n_cols)
            if clipped is not None and clipped.size > 1:
                merges.append(clipped)
        return CellGrid(
            rows,
            merged_ranges=merges,
            sheet_name=self.sheet_name,
            merges_known=self.merges_known,
        )
