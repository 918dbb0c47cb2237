"""Sheet processor orchestrating the extraction pipeline.

This module runs one worksheet through every stage:
1. Detects the layout (orientation, pricing block, text blocks)
2. Extracts metadata (resort name, currency, validity window)
3. Extracts and normalizes the price matrix
4. Parses inclusions and exclusions
5. Validates the result and assigns recoverability

Data-quality problems never raise; they are returned as issues on the
``ParsedResortData``. Only I/O and configuration problems raise.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from resort_pricing_extraction.cell_grid import CellGrid
from resort_pricing_extraction.config import Settings
from resort_pricing_extraction.config import settings as default_settings
from resort_pricing_extraction.models import (
    IssueLocation,
    LayoutOverride,
    ParsedResortData,
    ProcessingError,
    ResortMetadata,
    Severity,
)
from resort_pricing_extraction.services.inclusions_parser import InclusionsParser
from resort_pricing_extraction.services.layout_analyzer import (
    DetectionResult,
    LayoutAnalyzer,
)
from resort_pricing_extraction.services.metadata_extractor import MetadataExtractor
from resort_pricing_extraction.services.pricing_extractor import PricingExtractor
from resort_pricing_extraction.services.pricing_normalizer import PricingNormalizer
from resort_pricing_extraction.services.pricing_validator import PricingValidator
from resort_pricing_extraction.services.workbook_reader import (
    WorkbookReader,
    WorkbookReaderOptions,
)
from resort_pricing_extraction.utils.exceptions import ErrorCode
from resort_pricing_extraction.utils.logging import (
    LogContext,
    ProgressTracker,
    get_logger,
    timed_operation,
)

logger = get_logger(__name__)


@dataclass
class SheetParseOutcome:
    """Parse result of one sheet together with its layout detection."""

    result: ParsedResortData
    """Extracted data and issues."""

    detection: DetectionResult
    """Layout detection the result was derived from."""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "result": self.result.model_dump(mode="json"),
            "detection": self.detection.to_dict(),
        }


class SheetProcessor:
    """Parse worksheets into ``ParsedResortData``.

    A processor holds no per-sheet state, so one instance can parse any
    number of sheets, and parsing the same grid twice gives equal results.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        reader: WorkbookReader | None = None,
    ) -> None:
        """Initialize the processor and its pipeline stages.

        Args:
            settings: Engine settings; the module-level settings by default.
            reader: Workbook reader used by ``parse_workbook``.
        """
        self._settings = settings or default_settings
        self._reader = reader or WorkbookReader()
        self._analyzer = LayoutAnalyzer(self._settings)
        self._metadata = MetadataExtractor(self._settings)
        self._extractor = PricingExtractor(self._settings)
        self._normalizer = PricingNormalizer(self._settings)
        self._inclusions = InclusionsParser(self._settings)
        self._validator = PricingValidator(self._settings)

    @property
    def settings(self) -> Settings:
        return self._settings

    def parse(
        self, grid: CellGrid, override: LayoutOverride | None = None
    ) -> ParsedResortData:
        """Parse one grid. Shortcut for ``parse_sheet(grid).result``."""
        return self.parse_sheet(grid, override).result

    def parse_sheet(
        self, grid: CellGrid, override: LayoutOverride | None = None
    ) -> SheetParseOutcome:
        """Run every pipeline stage on one grid.

        Args:
            grid: Sheet to parse.
            override: Reviewer corrections for a second pass.

        Returns:
            The parse result with the layout detection behind it.

        Raises:
            ConfigurationError: If ``override`` does not fit the grid.
        """
        sheet = grid.sheet_name or None
        with (
            LogContext(sheet_name=grid.sheet_name),
            timed_operation(logger, "parse_sheet") as metrics,
        ):
            metrics.cells_scanned = grid.n_rows * grid.n_cols

            detection = self._analyzer.analyze(grid, override)
            meta = self._metadata.extract(grid, detection, override)
            year = meta.reference_year or self._settings.reference_year
            matrix = self._extractor.extract(
                grid,
                detection,
                currency=meta.metadata.currency,
                reference_year=year,
                override=override,
            )
            normalized = self._normalizer.normalize(
                matrix, meta.metadata, detection, sheet_name=sheet
            )
            inclusions = self._inclusions.parse(detection.inclusions_section, sheet)
            exclusions = self._inclusions.parse(
                detection.exclusions_section, sheet, group_by_type=False
            )

            resort_name = meta.metadata.resort_name
            report = self._validator.validate(
                resort_name,
                normalized.records,
                meta.metadata,
                sources=normalized.sources,
                matrix=matrix,
                sheet_name=sheet,
            )

            issues = (
                self._reading_issues(grid)
                + detection.issues
                + meta.issues
                + matrix.issues
                + inclusions.issues
                + exclusions.issues
                + normalized.issues
                + report.issues
            )
            issues = self._validator.assign_recoverability(
                issues, report.valid_record_count(normalized.records)
            )

            result = ParsedResortData(
                sheet_name=grid.sheet_name,
                resort_name=resort_name,
                destination=meta.destination,
                pricing=normalized.records,
                inclusions=inclusions.items,
                exclusions=(
                    exclusions.items if detection.exclusions_section is not None else None
                ),
                inclusions_by_type=inclusions.by_type,
                metadata=meta.metadata,
                issues=issues,
            )

            metrics.records_extracted = len(result.pricing)
            metrics.issues_recorded = len(result.issues)
            for issue in result.issues:
                if issue.severity == Severity.INFO:
                    logger.debug(
                        "Info issue", code=issue.code.value, detail=issue.message
                    )

            logger.log_parse_result(
                sheet_name=grid.sheet_name,
                records=len(result.pricing),
                issue_counts=result.issue_counts(),
                import_eligible=result.is_import_eligible,
                confidence=detection.confidence if detection.primary else None,
            )
            return SheetParseOutcome(result=result, detection=detection)

    def parse_grids(
        self,
        grids: list[CellGrid],
        overrides: dict[str, LayoutOverride] | None = None,
    ) -> list[SheetParseOutcome]:
        """Parse several grids independently, one outcome per grid.

        An unexpected exception while parsing one grid becomes a critical
        ``INTERNAL_ERROR`` issue on that grid's outcome; the remaining grids
        are still parsed.
        """
        overrides = overrides or {}
        outcomes: list[SheetParseOutcome] = []
        tracker = ProgressTracker(logger, "Parsing sheets", total=len(grids))
        for grid in grids:
            try:
                outcome = self.parse_sheet(grid, overrides.get(grid.sheet_name))
            except Exception as e:
                logger.exception(
                    "Sheet parse failed", sheet=grid.sheet_name, error=str(e)
                )
                outcome = self._failed_outcome(grid, e)
            outcomes.append(outcome)
            tracker.update(details=grid.sheet_name)
        tracker.complete()
        return outcomes

    def parse_workbook(
        self,
        file_path: Path,
        sheet_name: str | None = None,
        streaming: bool = False,
        overrides: dict[str, LayoutOverride] | None = None,
    ) -> list[SheetParseOutcome]:
        """Read a workbook and parse its sheets.

        Args:
            file_path: Path to the workbook.
            sheet_name: Parse only this sheet.
            streaming: Read row by row in openpyxl read-only mode.
            overrides: Layout overrides keyed by sheet name.

        Returns:
            One outcome per parsed sheet, in workbook order.

        Raises:
            WorkbookNotFoundError: If the file does not exist.
            WorkbookReadError: If the file cannot be read.
            SheetNotFoundError: If ``sheet_name`` is not in the workbook.
        """
        with LogContext(workbook=Path(file_path).name):
            grids = self._reader.read_path(
                Path(file_path),
                WorkbookReaderOptions(sheet_name=sheet_name, streaming=streaming),
            )
            return self.parse_grids(grids, overrides)

    @staticmethod
    def _reading_issues(grid: CellGrid) -> list[ProcessingError]:
        if grid.merges_known:
            return []
        return [
            ProcessingError(
                severity=Severity.WARNING,
                code=ErrorCode.MERGES_UNAVAILABLE,
                message="Merged cells could not be read in streaming mode",
                location=IssueLocation(sheet=grid.sheet_name or None),
                suggestion=(
                    "Parse without streaming if labels or prices span merged cells"
                ),
            )
        ]

    def _failed_outcome(self, grid: CellGrid, error: Exception) -> SheetParseOutcome:
        issue = ProcessingError(
            severity=Severity.CRITICAL,
            code=ErrorCode.INTERNAL_ERROR,
            message=f"Sheet could not be parsed: {error}",
            location=IssueLocation(sheet=grid.sheet_name or None),
            recoverable=False,
        )
        result = ParsedResortData(
            sheet_name=grid.sheet_name,
            metadata=ResortMetadata(currency=self._settings.default_currency),
            issues=[issue],
        )
        return SheetParseOutcome(result=result, detection=DetectionResult())


__all__ = ["SheetParseOutcome", "SheetProcessor"]
