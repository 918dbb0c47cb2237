"""Services for resort pricing extraction."""

from resort_pricing_extraction.services.inclusions_parser import InclusionsParser
from resort_pricing_extraction.services.layout_analyzer import (
    DetectionResult,
    LayoutAnalyzer,
)
from resort_pricing_extraction.services.metadata_extractor import MetadataExtractor
from resort_pricing_extraction.services.pricing_extractor import PricingExtractor
from resort_pricing_extraction.services.pricing_normalizer import PricingNormalizer
from resort_pricing_extraction.services.pricing_validator import PricingValidator
from resort_pricing_extraction.services.sheet_processor import (
    SheetParseOutcome,
    SheetProcessor,
)
from resort_pricing_extraction.services.workbook_reader import WorkbookReader

__all__ = [
    "DetectionResult",
    "InclusionsParser",
    "LayoutAnalyzer",
    "MetadataExtractor",
    "PricingExtractor",
    "PricingNormalizer",
    "PricingValidator",
    "SheetParseOutcome",
    "SheetProcessor",
    "WorkbookReader",
]
