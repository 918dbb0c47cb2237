"""Tests for the pricing normalizer."""

from datetime import date

import pytest

from resort_pricing_extraction.cell_grid import CellRange
from resort_pricing_extraction.config import Settings
from resort_pricing_extraction.models import (
    UNAVAILABLE,
    Orientation,
    ResortMetadata,
    Severity,
)
from resort_pricing_extraction.services.content_classifier import (
    PeriodType,
    SpecialPeriodMatch,
)
from resort_pricing_extraction.services.layout_analyzer import (
    DetectionResult,
    LayoutPattern,
)
from resort_pricing_extraction.services.pricing_extractor import (
    PriceCell,
    PriceCoordinate,
    PriceEntry,
    PriceMatrix,
)
from resort_pricing_extraction.services.pricing_normalizer import (
    PricingNormalizer,
    accommodation_code,
)
from resort_pricing_extraction.utils.exceptions import ErrorCode


def _entry(
    period: str,
    price: float | str,
    row: int,
    col: int,
    type_name: str = "Apartment",
    nights: int | None = 3,
    pax: int | None = 2,
    merged_range: str | None = None,
    special: SpecialPeriodMatch | None = None,
) -> PriceEntry:
    return PriceEntry(
        coordinate=PriceCoordinate(
            period=period,
            accommodation_type=type_name,
            nights=nights,
            pax=pax,
            special_period=special,
        ),
        cell=PriceCell(value=price, currency="EUR"),
        row=row,
        col=col,
        merged_range=merged_range,
    )


@pytest.fixture
def metadata() -> ResortMetadata:
    return ResortMetadata(
        resort_name="Hotel Sol",
        currency="EUR",
        valid_from=date(2025, 4, 1),
        valid_to=date(2025, 10, 31),
    )


@pytest.fixture
def normalizer(settings: Settings) -> PricingNormalizer:
    return PricingNormalizer(settings)


class TestAccommodationCode:
    """Tests for accommodation codes."""

    @pytest.mark.parametrize(
        "type_name, expected",
        [
            ("Apartment", "APT"),
            ("villa", "VIL"),
            ("B&B", "BB"),
            ("Self-Catering", "SC"),
            ("Superior Room", "SUP"),
            ("2-bed Suite", "2BE"),
            ("&", "UNK"),
        ],
    )
    def test_codes(self, type_name: str, expected: str) -> None:
        assert accommodation_code(type_name) == expected


class TestRecords:
    """Tests for record construction."""

    def test_prices_rounded_and_unavailable_kept(
        self, normalizer: PricingNormalizer, metadata: ResortMetadata
    ) -> None:
        matrix = PriceMatrix(
            entries=[
                _entry("January", 99.999, 2, 1),
                _entry("February", UNAVAILABLE, 2, 2),
                _entry("March", 0.0, 2, 3),
            ]
        )
        records = normalizer.normalize(matrix, metadata).records

        assert [r.price for r in records] == [100.0, UNAVAILABLE, 0.0]
        assert records[0].accommodation_code == "APT"
        assert records[0].valid_from == date(2025, 4, 1)
        assert records[2].is_available

    def test_special_period_dates_replace_sheet_window(
        self, normalizer: PricingNormalizer, metadata: ResortMetadata
    ) -> None:
        easter = SpecialPeriodMatch(
            label="Easter",
            confidence=0.9,
            period_type=PeriodType.HOLIDAY,
            date_from=date(2025, 4, 18),
            date_to=date(2025, 4, 21),
        )
        matrix = PriceMatrix(entries=[_entry("Easter", 450, 2, 2, special=easter)])
        record = normalizer.normalize(matrix, metadata).records[0]

        assert record.special_period == "Easter"
        assert (record.valid_from, record.valid_to) == (date(2025, 4, 18), date(2025, 4, 21))

    def test_record_sources(
        self, normalizer: PricingNormalizer, metadata: ResortMetadata
    ) -> None:
        matrix = PriceMatrix(entries=[_entry("January", 100, 4, 2, merged_range="C5:D5")])
        result = normalizer.normalize(matrix, metadata)

        source = result.sources[("January", "Apartment", 3, 2)]
        assert source.to_dict() == {
            "cell": "C5",
            "merged": True,
            "currency_source": "sheet",
        }


class TestOrdering:
    """Tests for record order."""

    def test_months_then_special_periods(
        self, normalizer: PricingNormalizer, metadata: ResortMetadata
    ) -> None:
        christmas = SpecialPeriodMatch(
            label="Christmas",
            confidence=0.9,
            period_type=PeriodType.HOLIDAY,
            date_from=date(2025, 12, 20),
            date_to=date(2025, 12, 27),
        )
        easter = SpecialPeriodMatch(
            label="Easter",
            confidence=0.9,
            period_type=PeriodType.HOLIDAY,
            date_from=date(2025, 4, 18),
            date_to=date(2025, 4, 21),
        )
        matrix = PriceMatrix(
            entries=[
                _entry("Christmas", 500, 2, 1, special=christmas),
                _entry("March", 300, 2, 2, type_name="Villa"),
                _entry("March", 200, 3, 2, nights=7),
                _entry("Easter", 400, 2, 3, special=easter),
                _entry("January", 100, 2, 4),
                _entry("March", 250, 4, 2),
            ]
        )
        records = normalizer.normalize(matrix, metadata).records

        assert [(r.month, r.accommodation_type, r.nights) for r in records] == [
            ("January", "Apartment", 3),
            ("March", "Apartment", 3),
            ("March", "Apartment", 7),
            ("March", "Villa", 3),
            ("Easter", "Apartment", 3),
            ("Christmas", "Apartment", 3),
        ]

    def test_missing_counts_sort_last(
        self, normalizer: PricingNormalizer, metadata: ResortMetadata
    ) -> None:
        matrix = PriceMatrix(
            entries=[
                _entry("January", 100, 2, 1, nights=None),
                _entry("January", 90, 3, 1, nights=2),
            ]
        )
        records = normalizer.normalize(matrix, metadata).records
        assert [r.nights for r in records] == [2, None]


class TestDuplicates:
    """Tests for key collisions."""

    def test_later_cell_wins(
        self, normalizer: PricingNormalizer, metadata: ResortMetadata
    ) -> None:
        matrix = PriceMatrix(
            entries=[_entry("January", 100, 2, 1), _entry("January", 120, 5, 1)]
        )
        result = normalizer.normalize(matrix, metadata, sheet_name="Prices")

        assert [r.price for r in result.records] == [120.0]
        assert len(result.issues) == 1
        issue = result.issues[0]
        assert issue.code == ErrorCode.DUPLICATE_PRICE_KEY
        assert issue.severity == Severity.ERROR
        assert issue.location.cell == "B3"
        assert "keeping B6" in issue.message

    def test_own_value_beats_merged_value(
        self, normalizer: PricingNormalizer, metadata: ResortMetadata
    ) -> None:
        matrix = PriceMatrix(
            entries=[
                _entry("January", 100, 2, 1),
                _entry("January", 80, 5, 1, merged_range="B6:C6"),
            ]
        )
        result = normalizer.normalize(matrix, metadata)

        assert [r.price for r in result.records] == [100.0]
        assert result.issues[0].location.cell == "B6"

    def test_same_merge_is_not_a_duplicate(
        self, normalizer: PricingNormalizer, metadata: ResortMetadata
    ) -> None:
        """Addresses of one merged cell give one value, not a collision."""
        matrix = PriceMatrix(
            entries=[
                _entry("January", 100, 2, 1, merged_range="B3:B4"),
                _entry("January", 100, 3, 1, merged_range="B3:B4"),
            ]
        )
        result = normalizer.normalize(matrix, metadata)

        assert len(result.records) == 1
        assert result.issues == []


class TestLowConfidence:
    """Tests for records from low-confidence layouts."""

    def test_every_record_flagged(
        self, normalizer: PricingNormalizer, metadata: ResortMetadata
    ) -> None:
        detection = DetectionResult(
            primary=LayoutPattern(
                orientation=Orientation.MONTHS_IN_COLUMNS,
                header_band=CellRange(0, 0, 0, 2),
                confidence=0.4,
                detected_headers=["January", "February"],
                axis_index=0,
                label_count=2,
            ),
            low_confidence=True,
        )
        matrix = PriceMatrix(
            entries=[_entry("January", 100, 1, 1), _entry("February", 110, 1, 2)]
        )
        result = normalizer.normalize(matrix, metadata, detection, sheet_name="Prices")

        assert [i.code for i in result.issues] == [ErrorCode.LOW_CONFIDENCE_RECORD] * 2
        assert [i.location.cell for i in result.issues] == ["B2", "C2"]
        assert "0.40" in result.issues[0].message
