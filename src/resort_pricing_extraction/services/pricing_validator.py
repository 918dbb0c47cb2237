"""Validation of parsed pricing data.

Rules fall into four groups: shape (a resort name, at least one record, a
known currency), ranges (prices, nights and pax within plausible bounds),
consistency (one currency unless overridden per cell, forward date ranges)
and completeness (every advertised type/nights combination priced, no month
left entirely unpriced). Validation only records issues; it never drops or
rewrites records.
"""

from dataclasses import dataclass, field

from resort_pricing_extraction.config import Settings
from resort_pricing_extraction.config import settings as default_settings
from resort_pricing_extraction.models import (
    IssueLocation,
    PricingRecord,
    ProcessingError,
    ResortMetadata,
    Severity,
)
from resort_pricing_extraction.services.content_classifier import KNOWN_CURRENCIES
from resort_pricing_extraction.services.pricing_extractor import PriceMatrix
from resort_pricing_extraction.services.pricing_normalizer import RecordKey, RecordSource
from resort_pricing_extraction.utils.exceptions import ErrorCode
from resort_pricing_extraction.utils.logging import get_logger

logger = get_logger(__name__)

_MAX_LISTED = 5


@dataclass
class ValidationReport:
    """Issues found by validation plus the records they invalidate."""

    issues: list[ProcessingError] = field(default_factory=list)
    invalid_keys: set[RecordKey] = field(default_factory=set)
    """Keys of records whose price failed a range check."""

    def valid_record_count(self, records: list[PricingRecord]) -> int:
        """Count available records that passed every range check."""
        return sum(
            1
            for record in records
            if record.is_available and record.key not in self.invalid_keys
        )


class PricingValidator:
    """Apply shape, range, consistency and completeness rules to a parse."""

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or default_settings

    def validate(
        self,
        resort_name: str,
        records: list[PricingRecord],
        metadata: ResortMetadata,
        sources: dict[RecordKey, RecordSource] | None = None,
        matrix: PriceMatrix | None = None,
        sheet_name: str | None = None,
    ) -> ValidationReport:
        """Run every rule.

        Args:
            resort_name: Resolved resort name ("" when none was found).
            records: Normalized pricing records.
            metadata: Sheet metadata.
            sources: Source cell per record key, for cell-level locations.
            matrix: Extracted matrix, for advertised types and nights.
            sheet_name: Worksheet name for issue locations.

        Returns:
            Validation report.
        """
        report = ValidationReport()
        context = _RuleContext(sheet_name, sources or {})
        self.check_shape(resort_name, records, metadata, context, report)
        self.check_ranges(records, context, report)
        self.check_consistency(records, metadata, context, report)
        if matrix is not None:
            self.check_completeness(records, matrix, context, report)

        logger.debug(
            "Validation finished",
            issues=len(report.issues),
            invalid_records=len(report.invalid_keys),
        )
        return report

    # ------------------------------------------------------------------ #
    # Shape
    # ------------------------------------------------------------------ #

    def check_shape(
        self,
        resort_name: str,
        records: list[PricingRecord],
        metadata: ResortMetadata,
        context: "_RuleContext",
        report: ValidationReport,
    ) -> None:
        if not resort_name.strip():
            report.issues.append(
                ProcessingError(
                    severity=Severity.CRITICAL,
                    code=ErrorCode.RESORT_NAME_MISSING,
                    message="No resort name found on the sheet",
                    location=IssueLocation(sheet=context.sheet),
                    suggestion=(
                        "Add a title cell such as 'Resort: <name>' or rename the sheet "
                        "after the resort"
                    ),
                )
            )
        if not records:
            report.issues.append(
                ProcessingError(
                    severity=Severity.CRITICAL,
                    code=ErrorCode.NO_PRICING_RECORDS,
                    message="No pricing records could be extracted",
                    location=IssueLocation(sheet=context.sheet),
                    suggestion="Check the month headers or provide a layout override",
                )
            )

        currencies = {metadata.currency} | {record.currency for record in records}
        for code in sorted(currencies):
            if code not in KNOWN_CURRENCIES:
                report.issues.append(
                    ProcessingError(
                        severity=Severity.WARNING,
                        code=ErrorCode.CURRENCY_UNRECOGNIZED,
                        message=f"Currency {code} is not a recognised currency",
                        location=IssueLocation(sheet=context.sheet),
                    )
                )

    # ------------------------------------------------------------------ #
    # Ranges
    # ------------------------------------------------------------------ #

    def check_ranges(
        self,
        records: list[PricingRecord],
        context: "_RuleContext",
        report: ValidationReport,
    ) -> None:
        s = self._settings
        for record in records:
            if not record.is_available:
                continue
            price = float(record.price)
            if price < s.min_price or price > s.max_price:
                report.invalid_keys.add(record.key)
                report.issues.append(
                    ProcessingError(
                        severity=Severity.ERROR,
                        code=ErrorCode.PRICE_OUT_OF_RANGE,
                        message=(
                            f"Price {price:g} is outside {s.min_price:g}-{s.max_price:g}"
                        ),
                        location=context.location(record),
                        suggestion="Check the value for a typo or a misplaced separator",
                    )
                )

        self._check_count_range(
            records, "nights", s.min_nights, s.max_nights,
            ErrorCode.NIGHTS_OUT_OF_RANGE, context, report,
        )
        self._check_count_range(
            records, "pax", s.min_pax, s.max_pax,
            ErrorCode.PAX_OUT_OF_RANGE, context, report,
        )

        missing = [r for r in records if r.nights is None or r.pax is None]
        if missing:
            report.issues.append(
                ProcessingError(
                    severity=Severity.WARNING,
                    code=ErrorCode.NIGHTS_PAX_MISSING,
                    message=(
                        f"{len(missing)} record(s) have no nights or pax in their headers"
                    ),
                    location=context.location(missing[0]),
                    suggestion="Add nights/pax headers such as '3N/2PAX'",
                )
            )

    @staticmethod
    def _check_count_range(
        records: list[PricingRecord],
        attribute: str,
        low: int,
        high: int,
        code: ErrorCode,
        context: "_RuleContext",
        report: ValidationReport,
    ) -> None:
        offending: dict[int, list[PricingRecord]] = {}
        for record in records:
            value = getattr(record, attribute)
            if value is not None and not low <= value <= high:
                offending.setdefault(value, []).append(record)
        for value in sorted(offending):
            affected = offending[value]
            report.issues.append(
                ProcessingError(
                    severity=Severity.WARNING,
                    code=code,
                    message=(
                        f"{attribute} value {value} is outside {low}-{high} "
                        f"({len(affected)} record(s))"
                    ),
                    location=context.location(affected[0]),
                )
            )

    # ------------------------------------------------------------------ #
    # Consistency
    # ------------------------------------------------------------------ #

    def check_consistency(
        self,
        records: list[PricingRecord],
        metadata: ResortMetadata,
        context: "_RuleContext",
        report: ValidationReport,
    ) -> None:
        currencies = {record.currency for record in records}
        if len(currencies) > 1:
            stray = [
                record
                for record in records
                if record.currency != metadata.currency
                and context.currency_source(record) == "cell"
            ]
            if stray:
                cells = [context.ref(record) for record in stray[:_MAX_LISTED]]
                report.issues.append(
                    ProcessingError(
                        severity=Severity.WARNING,
                        code=ErrorCode.MIXED_CURRENCIES,
                        message=(
                            f"Prices use {', '.join(sorted(currencies))}; cells "
                            f"{', '.join(c for c in cells if c)} name their own currency"
                        ),
                        location=context.location(stray[0]),
                        suggestion="Confirm the currency of these cells",
                    )
                )

        reported: set[tuple[object, object]] = set()
        for record in records:
            if record.valid_from is None or record.valid_to is None:
                continue
            if record.valid_from < record.valid_to:
                continue
            window = (record.valid_from, record.valid_to)
            if window in reported:
                continue
            reported.add(window)
            report.issues.append(
                ProcessingError(
                    severity=Severity.ERROR,
                    code=ErrorCode.INVALID_DATE_RANGE,
                    message=(
                        f"Date range {record.valid_from.isoformat()} to "
                        f"{record.valid_to.isoformat()} for {record.month} "
                        "does not run forwards"
                    ),
                    location=context.location(record),
                    suggestion="Check the order of the dates",
                )
            )

    # ------------------------------------------------------------------ #
    # Completeness
    # ------------------------------------------------------------------ #

    def check_completeness(
        self,
        records: list[PricingRecord],
        matrix: PriceMatrix,
        context: "_RuleContext",
        report: ValidationReport,
    ) -> None:
        if not records:
            return

        types = matrix.accommodation_types or [self._settings.default_accommodation_type]
        covered = {
            (record.accommodation_type, record.nights)
            for record in records
            if record.is_available
        }
        if matrix.nights_options:
            missing = [
                f"{type_name}/{nights}N"
                for type_name in types
                for nights in matrix.nights_options
                if (type_name, nights) not in covered
            ]
            if missing:
                listed = ", ".join(missing[:_MAX_LISTED])
                more = f" and {len(missing) - _MAX_LISTED} more" if len(missing) > _MAX_LISTED else ""
                report.issues.append(
                    ProcessingError(
                        severity=Severity.WARNING,
                        code=ErrorCode.MISSING_COMBINATIONS,
                        message=f"No prices for advertised combinations: {listed}{more}",
                        location=IssueLocation(sheet=context.sheet),
                        suggestion="Fill in the missing prices or remove the unused headers",
                    )
                )

        for period in matrix.period_labels:
            period_records = [record for record in records if record.month == period]
            if period_records and not any(r.is_available for r in period_records):
                report.issues.append(
                    ProcessingError(
                        severity=Severity.WARNING,
                        code=ErrorCode.MONTH_WITHOUT_PRICES,
                        message=f"No prices for {period}",
                        location=context.location(period_records[0]),
                        suggestion=f"Fill in the prices for {period} or mark it closed",
                    )
                )

    # ------------------------------------------------------------------ #
    # Recoverability
    # ------------------------------------------------------------------ #

    @staticmethod
    def assign_recoverability(
        issues: list[ProcessingError], valid_record_count: int
    ) -> list[ProcessingError]:
        """Set ``recoverable`` on every issue.

        Info and warning issues are always recoverable, errors only while at
        least one valid record remains, critical issues never.
        """
        updated = []
        for issue in issues:
            if issue.severity == Severity.CRITICAL:
                recoverable = False
            elif issue.severity == Severity.ERROR:
                recoverable = valid_record_count > 0
            else:
                recoverable = True
            updated.append(issue.model_copy(update={"recoverable": recoverable}))
        return updated


class _RuleContext:
    """Resolves issue locations for records."""

    def __init__(self, sheet: str | None, sources: dict[RecordKey, RecordSource]) -> None:
        self.sheet = sheet
        self._sources = sources

    def location(self, record: PricingRecord) -> IssueLocation:
        source = self._sources.get(record.key)
        if source is None:
            return IssueLocation(sheet=self.sheet)
        return IssueLocation.at(self.sheet, source.row, source.col)

    def ref(self, record: PricingRecord) -> str | None:
        source = self._sources.get(record.key)
        return source.ref if source else None

    def currency_source(self, record: PricingRecord) -> str:
        source = self._sources.get(record.key)
        return source.currency_source if source else "sheet"


__all__ = ["PricingValidator", "ValidationReport"]
