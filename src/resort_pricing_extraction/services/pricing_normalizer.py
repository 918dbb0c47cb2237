"""Normalize extracted price entries into ordered ``PricingRecord`` objects."""

import re
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from resort_pricing_extraction.config import Settings
from resort_pricing_extraction.config import settings as default_settings
from resort_pricing_extraction.models import (
    UNAVAILABLE,
    IssueLocation,
    PricingRecord,
    ProcessingError,
    ResortMetadata,
    Severity,
)
from resort_pricing_extraction.services.content_classifier import MONTH_NAMES
from resort_pricing_extraction.services.layout_analyzer import DetectionResult
from resort_pricing_extraction.services.pricing_extractor import PriceEntry, PriceMatrix
from resort_pricing_extraction.utils.exceptions import ErrorCode
from resort_pricing_extraction.utils.logging import get_logger

logger = get_logger(__name__)

ACCOMMODATION_CODES = {
    "hotel": "HTL",
    "self-catering": "SC",
    "apartment": "APT",
    "villa": "VIL",
    "hostel": "HST",
    "resort": "RST",
    "b&b": "BB",
    "guesthouse": "GH",
    "lodge": "LDG",
    "cabin": "CAB",
    "standard": "STD",
}

_MONTH_ORDER = {name: idx for idx, name in enumerate(MONTH_NAMES, start=1)}

RecordKey = tuple[str, str, int | None, int | None]


def accommodation_code(type_name: str) -> str:
    """Return the short code for an accommodation type.

    Known types map to fixed codes; anything else uses its first three
    letters or digits, upper-cased.

    >>> accommodation_code("Apartment")
    'APT'
    >>> accommodation_code("Superior Room")
    'SUP'
    """
    known = ACCOMMODATION_CODES.get(type_name.strip().lower())
    if known:
        return known
    letters = re.sub(r"[^A-Za-z0-9]", "", type_name)
    return letters[:3].upper() or "UNK"


@dataclass
class RecordSource:
    """Where a normalized record came from on the sheet."""

    row: int
    col: int
    ref: str
    merged: bool
    currency_source: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "cell": self.ref,
            "merged": self.merged,
            "currency_source": self.currency_source,
        }


@dataclass
class NormalizationResult:
    """Records, their sources and the issues raised while normalizing."""

    records: list[PricingRecord] = field(default_factory=list)
    sources: dict[RecordKey, RecordSource] = field(default_factory=dict)
    issues: list[ProcessingError] = field(default_factory=list)


class PricingNormalizer:
    """Collapse price entries into one record per key, rounded and ordered.

    When two cells map to the same key, a cell's own value beats a value
    fanned out from a merged range; otherwise the later cell in scan order
    wins. Either way the collision is reported as an error.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or default_settings

    def normalize(
        self,
        matrix: PriceMatrix,
        metadata: ResortMetadata,
        detection: DetectionResult | None = None,
        sheet_name: str | None = None,
    ) -> NormalizationResult:
        """Build the final record list.

        Args:
            matrix: Extracted price entries.
            metadata: Sheet metadata supplying the validity window.
            detection: Layout detection; low-confidence layouts tag every record.
            sheet_name: Worksheet name for issue locations.

        Returns:
            Ordered records with their sources and any issues.
        """
        result = NormalizationResult()
        winners: dict[RecordKey, PriceEntry] = {}

        for entry in matrix.entries:
            key = entry.coordinate.key
            previous = winners.get(key)
            if previous is None:
                winners[key] = entry
                continue
            if previous.is_merged and previous.merged_range == entry.merged_range:
                continue
            keep = previous if (entry.is_merged and not previous.is_merged) else entry
            dropped = entry if keep is previous else previous
            winners[key] = keep
            result.issues.append(
                ProcessingError(
                    severity=Severity.ERROR,
                    code=ErrorCode.DUPLICATE_PRICE_KEY,
                    message=(
                        f"Cells {previous.ref} and {entry.ref} both price "
                        f"{self._describe(key)}; keeping {keep.ref}"
                    ),
                    location=IssueLocation.at(sheet_name, dropped.row, dropped.col),
                    suggestion="Check for repeated headers or overlapping merged cells",
                )
            )

        for key, entry in winners.items():
            result.records.append(self._record(entry, metadata))
            result.sources[key] = RecordSource(
                row=entry.row,
                col=entry.col,
                ref=entry.ref,
                merged=entry.is_merged,
                currency_source=entry.currency_source,
            )
        result.records.sort(key=self.sort_key)

        if detection is not None and detection.low_confidence:
            for record in result.records:
                source = result.sources[record.key]
                result.issues.append(
                    ProcessingError(
                        severity=Severity.WARNING,
                        code=ErrorCode.LOW_CONFIDENCE_RECORD,
                        message=(
                            f"Record {self._describe(record.key)} comes from a "
                            f"low-confidence layout ({detection.confidence:.2f})"
                        ),
                        location=IssueLocation.at(sheet_name, source.row, source.col),
                        suggestion="Confirm this value against the sheet",
                    )
                )

        logger.info(
            "Prices normalized",
            records=len(result.records),
            duplicates=sum(
                1 for issue in result.issues if issue.code == ErrorCode.DUPLICATE_PRICE_KEY
            ),
        )
        return result

    def _record(self, entry: PriceEntry, metadata: ResortMetadata) -> PricingRecord:
        coordinate = entry.coordinate
        price = entry.cell.value
        if price != UNAVAILABLE:
            price = round(float(price), self._settings.price_precision)

        valid_from: date | None = metadata.valid_from
        valid_to: date | None = metadata.valid_to
        special = coordinate.special_period
        if special is not None and (special.date_from or special.date_to):
            valid_from, valid_to = special.date_from, special.date_to

        return PricingRecord(
            month=coordinate.period,
            accommodation_type=coordinate.accommodation_type,
            accommodation_code=accommodation_code(coordinate.accommodation_type),
            nights=coordinate.nights,
            pax=coordinate.pax,
            price=price,
            currency=entry.cell.currency,
            special_period=coordinate.period if coordinate.is_special else None,
            valid_from=valid_from,
            valid_to=valid_to,
            notes=entry.cell.notes,
        )

    @staticmethod
    def sort_key(record: PricingRecord) -> tuple[Any, ...]:
        """Calendar months first, then special periods by start date and label."""
        month = _MONTH_ORDER.get(record.month)
        if month is not None and record.special_period is None:
            period: tuple[Any, ...] = (0, month, date.min, "")
        else:
            period = (1, 0, record.valid_from or date.max, record.month)
        return (
            *period,
            record.accommodation_type.lower(),
            record.nights is None,
            record.nights or 0,
            record.pax is None,
            record.pax or 0,
        )

    @staticmethod
    def _describe(key: RecordKey) -> str:
        period, type_name, nights, pax = key
        parts = [period, type_name]
        if nights is not None:
            parts.append(f"{nights}N")
        if pax is not None:
            parts.append(f"{pax}P")
        return "/".join(parts)


__all__ = [
    "ACCOMMODATION_CODES",
    "NormalizationResult",
    "PricingNormalizer",
    "RecordSource",
    "accommodation_code",
]
