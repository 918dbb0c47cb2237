"""Resort Pricing Extraction - layout detection and pricing extraction for supplier spreadsheets."""

from resort_pricing_extraction.cell_grid import Cell, CellGrid, CellGridBuilder, CellRange
from resort_pricing_extraction.config import Settings, settings
from resort_pricing_extraction.models import (
    LayoutOverride,
    ParsedResortData,
    PricingRecord,
    ProcessingError,
    ResortMetadata,
    Severity,
)
from resort_pricing_extraction.services.sheet_processor import (
    SheetParseOutcome,
    SheetProcessor,
)

__all__ = [
    "Cell",
    "CellGrid",
    "CellGridBuilder",
    "CellRange",
    "LayoutOverride",
    "ParsedResortData",
    "PricingRecord",
    "ProcessingError",
    "ResortMetadata",
    "Settings",
    "Severity",
    "SheetParseOutcome",
    "SheetProcessor",
    "parse_grid",
    "settings",
]
__version__ = "0.1.0"


def parse_grid(
    grid: CellGrid,
    settings: Settings | None = None,
    override: LayoutOverride | None = None,
) -> ParsedResortData:
    """Parse one sheet grid into resort pricing data."""
    return SheetProcessor(settings).parse(grid, override)


def main() -> None:
    """Parse a workbook and print the JSON of every parsed sheet.

    Usage: resort-pricing-extraction <workbook.xlsx> [sheet]

    Exits with 0 when every sheet is import eligible, 1 when any sheet has a
    critical issue and 2 when the workbook cannot be read.
    """
    import sys
    from pathlib import Path

    from resort_pricing_extraction.config import validate_settings_on_startup
    from resort_pricing_extraction.output import JsonGenerator
    from resort_pricing_extraction.utils.exceptions import PricingEngineError
    from resort_pricing_extraction.utils.logging import configure_logging

    args = sys.argv[1:]
    if not args or len(args) > 2 or args[0] in ("-h", "--help"):
        print("Usage: resort-pricing-extraction <workbook.xlsx> [sheet]", file=sys.stderr)
        raise SystemExit(2)

    configure_logging(settings.log_level)
    validate_settings_on_startup(settings)

    processor = SheetProcessor(settings)
    try:
        outcomes = processor.parse_workbook(
            Path(args[0]), sheet_name=args[1] if len(args) > 1 else None
        )
    except PricingEngineError as e:
        print(str(e), file=sys.stderr)
        raise SystemExit(2) from e

    output = JsonGenerator(include_detection=settings.debug).generate_outcomes(outcomes)
    print(output.text)
    if not all(outcome.result.is_import_eligible for outcome in outcomes):
        raise SystemExit(1)
