"""Workbook reader turning openpyxl worksheets into ``CellGrid`` objects."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any
from zipfile import BadZipFile

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException
from openpyxl.workbook.workbook import Workbook
from openpyxl.worksheet.worksheet import Worksheet

from resort_pricing_extraction.cell_grid import CellGrid, CellGridBuilder, CellRange
from resort_pricing_extraction.utils.exceptions import (
    SheetNotFoundError,
    WorkbookNotFoundError,
    WorkbookReadError,
)
from resort_pricing_extraction.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class WorkbookReaderOptions:
    """Options controlling how worksheets are read."""

    sheet_name: str | None = None
    streaming: bool = False
    max_rows: int | None = None
    max_columns: int | None = None


class WorkbookReader:
    """Read Excel workbooks into merge-aware cell grids using openpyxl.

    Cached formula results are read (``data_only=True``) so prices computed
    by formulas arrive as numbers. In streaming mode the workbook is opened
    read-only and fed row by row into a ``CellGridBuilder``; openpyxl does
    not expose merged ranges for read-only worksheets, so streamed grids
    carry no merges and are marked ``merges_known=False``. Chartsheets hold
    no cells and are skipped.
    """

    def read_path(
        self, file_path: Path, options: WorkbookReaderOptions | None = None
    ) -> list[CellGrid]:
        """Read every requested worksheet of a workbook.

        Args:
            file_path: Path to the .xlsx/.xlsm workbook.
            options: Sheet selection and streaming options.

        Returns:
            One grid per worksheet, in workbook order; chartsheets are left
            out.

        Raises:
            WorkbookNotFoundError: If the file does not exist.
            WorkbookReadError: If openpyxl cannot open the file.
            SheetNotFoundError: If the requested sheet does not exist.
        """
        opts = options or WorkbookReaderOptions()
        workbook = self._open(file_path, streaming=opts.streaming)
        try:
            sheet_names = [ws.title for ws in workbook.worksheets]
            if opts.sheet_name is not None and opts.sheet_name not in sheet_names:
                raise SheetNotFoundError(
                    opts.sheet_name, available=sheet_names, file_path=str(file_path)
                )
            targets = [opts.sheet_name] if opts.sheet_name else sheet_names

            grids = []
            for name in targets:
                grid = self._read_sheet(workbook[name], opts)
                logger.debug(
                    "Worksheet read",
                    sheet=name,
                    rows=grid.n_rows,
                    cols=grid.n_cols,
                    merges=len(grid.merged_ranges),
                )
                grids.append(grid)
            return grids
        finally:
            workbook.close()

    def read_sheet(
        self,
        file_path: Path,
        sheet_name: str | None = None,
        streaming: bool = False,
    ) -> CellGrid:
        """Read one worksheet (the active sheet when no name is given)."""
        if sheet_name is None:
            workbook = self._open(file_path, streaming=streaming)
            try:
                sheet_name = self._active_worksheet_title(workbook)
            finally:
                workbook.close()
            if sheet_name is None:
                raise WorkbookReadError(
                    "Workbook has no active worksheet", file_path=str(file_path)
                )
        options = WorkbookReaderOptions(sheet_name=sheet_name, streaming=streaming)
        return self.read_path(file_path, options)[0]

    def get_sheet_names(self, file_path: Path) -> list[str]:
        """List the worksheet names in a workbook, chartsheets excluded."""
        workbook = self._open(file_path, streaming=True)
        try:
            return [ws.title for ws in workbook.worksheets]
        finally:
            workbook.close()

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _active_worksheet_title(workbook: Workbook) -> str | None:
        active = workbook.active
        if active is not None and active in workbook.worksheets:
            return active.title
        return workbook.worksheets[0].title if workbook.worksheets else None

    @staticmethod
    def _open(file_path: Path, streaming: bool) -> Workbook:
        if not file_path.exists():
            raise WorkbookNotFoundError(str(file_path))
        try:
            return load_workbook(
                filename=file_path, data_only=True, read_only=streaming
            )
        except (InvalidFileException, BadZipFile, KeyError, OSError) as e:
            raise WorkbookReadError(
                f"Could not open workbook: {file_path.name}",
                file_path=str(file_path),
                cause=str(e),
            ) from e

    def _read_sheet(self, sheet: Any, opts: WorkbookReaderOptions) -> CellGrid:
        builder = CellGridBuilder(sheet_name=sheet.title)
        for values in sheet.iter_rows(
            max_row=opts.max_rows, max_col=opts.max_columns, values_only=True
        ):
            builder.add_row(values)

        if isinstance(sheet, Worksheet):
            for merged in sheet.merged_cells.ranges:
                builder.add_merge(
                    CellRange(
                        top=merged.min_row - 1,
                        left=merged.min_col - 1,
                        bottom=merged.max_row - 1,
                        right=merged.max_col - 1,
                    )
                )
        else:
            builder.merges_known = False
            logger.warning(
                "Merged ranges are not available in streaming mode",
                sheet=sheet.title,
            )
        return builder.build()
