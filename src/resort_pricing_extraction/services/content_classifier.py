"""Stateless classifiers for spreadsheet cell text.

Each classifier takes raw cell content and returns a match object with a
confidence score in [0, 1] instead of a boolean, so callers can aggregate
evidence. Classifiers never raise: text that does not match, and values that
are not text at all, yield a confidence of 0.
"""

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any

MONTH_NAMES = [
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
]

_FULL_MONTHS = {name.lower(): idx for idx, name in enumerate(MONTH_NAMES, start=1)}
_ABBREVIATED_MONTHS = {
    "jan": 1,
    "feb": 2,
    "mar": 3,
    "apr": 4,
    "may": 5,
    "jun": 6,
    "jul": 7,
    "aug": 8,
    "sep": 9,
    "sept": 9,
    "oct": 10,
    "nov": 11,
    "dec": 12,
}
_MONTH_LOOKUP = {**_ABBREVIATED_MONTHS, **_FULL_MONTHS}

_RANGE_WORDS = {"to", "until", "till", "from", "st", "nd", "rd", "th"}

_MONTH_PATTERN = re.compile(
    r"^(?P<name>[a-z]+)\.?(?:[\s\-/']*(?P<year>\d{4}|\d{2}))?$", re.IGNORECASE
)


class PeriodType(str, Enum):
    """Kind of named pricing period."""

    HOLIDAY = "holiday"
    """Public or school holiday (Easter, Christmas, half term)."""

    SEASON = "season"
    """Commercial or climatic season (peak season, summer)."""

    EVENT = "event"
    """Any other dated period."""


_SPECIAL_PERIOD_PATTERNS: list[tuple[re.Pattern[str], str, PeriodType]] = [
    (re.compile(r"\beaster\b", re.I), "Easter", PeriodType.HOLIDAY),
    (re.compile(r"\b(?:christmas|xmas)\b", re.I), "Christmas", PeriodType.HOLIDAY),
    (re.compile(r"\bnew\s*year", re.I), "New Year", PeriodType.HOLIDAY),
    (re.compile(r"\bschool\s+holidays?\b", re.I), "School Holidays", PeriodType.HOLIDAY),
    (re.compile(r"\bhalf[\s-]*term\b", re.I), "Half Term", PeriodType.HOLIDAY),
    (re.compile(r"\boff[\s-]*(?:peak|season)\b", re.I), "Off Season", PeriodType.SEASON),
    (re.compile(r"\bpeak(?:\s+season)?\b", re.I), "Peak Season", PeriodType.SEASON),
    (re.compile(r"\bhigh\s+season\b", re.I), "High Season", PeriodType.SEASON),
    (re.compile(r"\bshoulder\s+season\b", re.I), "Shoulder Season", PeriodType.SEASON),
    (re.compile(r"\blow\s+season\b", re.I), "Low Season", PeriodType.SEASON),
    (re.compile(r"\bsummer\b", re.I), "Summer", PeriodType.SEASON),
    (re.compile(r"\bwinter\b", re.I), "Winter", PeriodType.SEASON),
    (re.compile(r"\bspring\b", re.I), "Spring", PeriodType.SEASON),
    (re.compile(r"\b(?:autumn|fall)\b", re.I), "Autumn", PeriodType.SEASON),
]

_ACCOMMODATION_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"\bself[\s-]*catering\b", re.I), "Self-Catering"),
    (re.compile(r"\bb\s*&\s*b\b|\bbed\s+(?:and|&)\s+breakfast\b", re.I), "B&B"),
    (re.compile(r"\bguest\s*houses?\b", re.I), "Guesthouse"),
    (re.compile(r"\bapartments?\b|\bapts?\b", re.I), "Apartment"),
    (re.compile(r"\bstudios?\b", re.I), "Studio"),
    (re.compile(r"\bvillas?\b", re.I), "Villa"),
    (re.compile(r"\bcottages?\b", re.I), "Cottage"),
    (re.compile(r"\bcabins?\b", re.I), "Cabin"),
    (re.compile(r"\bchalets?\b", re.I), "Chalet"),
    (re.compile(r"\bhostels?\b", re.I), "Hostel"),
    (re.compile(r"\blodges?\b", re.I), "Lodge"),
    (re.compile(r"\binns?\b", re.I), "Inn"),
    (re.compile(r"\bhouses?\b", re.I), "House"),
    (re.compile(r"\bresorts?\b", re.I), "Resort"),
    (re.compile(r"\bhotels?\b", re.I), "Hotel"),
    (
        re.compile(
            r"\b(?:single|double|twin|triple|family|standard|superior|deluxe)"
            r"\s+(?:room|suite)s?\b",
            re.I,
        ),
        "",
    ),
    (re.compile(r"\bsuites?\b", re.I), "Suite"),
    (re.compile(r"\b(?:standard|superior|deluxe)\b", re.I), ""),
]

_NIGHT_UNITS = r"(?:nights?|nts?|n)"
_PAX_UNITS = r"(?:pax|persons?|pers|people|adults?|guests?|p)"

_NIGHTS_THEN_PAX = re.compile(
    rf"(?<!\d)(\d{{1,2}})\s*{_NIGHT_UNITS}\b\s*[/,x&+\-]?\s*"
    rf"(\d{{1,2}})\s*{_PAX_UNITS}\b",
    re.I,
)
_PAX_THEN_NIGHTS = re.compile(
    rf"(?<!\d)(\d{{1,2}})\s*{_PAX_UNITS}\b\s*[/,x&+\-]?\s*"
    rf"(\d{{1,2}})\s*{_NIGHT_UNITS}\b",
    re.I,
)
_NIGHTS_ONLY = re.compile(
    rf"(?<!\d)(\d{{1,2}})\s*{_NIGHT_UNITS}\b|\bnights?\s*[:=]?\s*(\d{{1,2}})\b",
    re.I,
)
_PAX_ONLY = re.compile(
    rf"(?<!\d)(\d{{1,2}})\s*{_PAX_UNITS}\b"
    r"|\b(?:pax|persons?|people|adults?|guests?)\s*[:=]?\s*(\d{1,2})\b",
    re.I,
)

CURRENCY_CODES = (
    "GBP",
    "EUR",
    "USD",
    "JPY",
    "INR",
    "CHF",
    "CAD",
    "AUD",
    "NZD",
    "ZAR",
    "AED",
    "SEK",
    "NOK",
    "DKK",
)
KNOWN_CURRENCIES = frozenset(CURRENCY_CODES)

_CURRENCY_CODE_PATTERN = re.compile(
    r"(?<![A-Za-z])(" + "|".join(CURRENCY_CODES) + r")(?![A-Za-z])", re.I
)
_CURRENCY_WORDS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"\beuros?\b", re.I), "EUR"),
    (re.compile(r"\b(?:pounds?\s+sterling|sterling)\b", re.I), "GBP"),
    (re.compile(r"\bswiss\s+francs?\b", re.I), "CHF"),
    (re.compile(r"\bdollars?\b", re.I), "USD"),
]
_CURRENCY_SYMBOLS: list[tuple[str, str]] = [
    ("US$", "USD"),
    ("A$", "AUD"),
    ("C$", "CAD"),
    ("£", "GBP"),
    ("€", "EUR"),
    ("₹", "INR"),
    ("¥", "JPY"),
    ("$", "USD"),
]

INCLUSION_HEADINGS = (
    "package includes",
    "what's included",
    "what is included",
    "included in price",
    "included in the price",
    "price includes",
    "package contains",
    "prices include",
    "services included",
    "inclusions",
    "included",
    "includes",
)
EXCLUSION_HEADINGS = (
    "not included",
    "what's not included",
    "excluded",
    "excludes",
    "exclusions",
)

_NUMERIC_TOKEN = re.compile(r"[-+]?\d[\d.,'\s ]*")
_UNAVAILABLE_TEXT = re.compile(
    r"^(?:n/?a|not available|unavailable|tbc|tba|closed|sold out|full|"
    r"no availability|on request|poa|p\.o\.a\.?|-+|x)$",
    re.I,
)


@dataclass(frozen=True)
class MonthMatch:
    """Result of month classification."""

    month: int | None
    """Calendar month 1-12, or None when unmatched."""

    confidence: float
    """Match confidence."""

    year: int | None = None
    """Year written next to the month, if any ("Jan 2025")."""

    @property
    def name(self) -> str | None:
        """Full English month name."""
        return MONTH_NAMES[self.month - 1] if self.month else None


@dataclass(frozen=True)
class AccommodationMatch:
    """Result of accommodation type classification."""

    type: str | None
    """Canonical type name, or None when unmatched."""

    confidence: float
    """Match confidence."""


@dataclass(frozen=True)
class NightsPaxMatch:
    """Result of nights/pax classification."""

    nights: int | None
    """Number of nights found, if any."""

    pax: int | None
    """Number of guests found, if any."""

    confidence: float
    """Match confidence."""


@dataclass(frozen=True)
class SpecialPeriodMatch:
    """Result of special period classification."""

    label: str | None
    """Canonical period label ("Easter") or the cleaned cell text for bare date ranges."""

    confidence: float
    """Match confidence."""

    period_type: PeriodType | None = None
    """Holiday, season or event."""

    date_from: date | None = None
    """Start of the period, where determinable."""

    date_to: date | None = None
    """End of the period, where determinable."""

    @property
    def has_date_range(self) -> bool:
        """Whether both ends of the range are known."""
        return self.date_from is not None and self.date_to is not None


@dataclass(frozen=True)
class PeriodLabel:
    """A cell that names a pricing period: a calendar month or a special period."""

    label: str
    """Month name ("January") or special period label ("Easter")."""

    confidence: float
    """Classifier confidence."""

    month: int | None = None
    """Calendar month for month labels."""

    special_period: SpecialPeriodMatch | None = None
    """Special period details for non-month labels."""

    text: str = ""
    """Cell text the label was classified from."""

    @property
    def is_special(self) -> bool:
        """Whether the label is a special period rather than a month."""
        return self.special_period is not None


@dataclass(frozen=True)
class PriceText:
    """Decomposition of a price cell written as text."""

    value: float | None
    """Parsed number, or None when the text holds no usable number."""

    currency: str | None
    """Currency named inside the cell, if any."""

    notes: str | None
    """Text other than the number and currency."""


def _as_text(value: Any) -> str:
    if isinstance(value, str):
        return value.strip()
    return ""


def _expand_year(year: int) -> int:
    if year >= 100:
        return year
    return 2000 + year if year < 50 else 1900 + year


# ---------------------------------------------------------------------- #
# Months and special periods
# ---------------------------------------------------------------------- #


def classify_month(text: Any) -> MonthMatch:
    """Classify text as a calendar month.

    Full names score 0.95, abbreviations 0.85; a trailing year ("Jan 2025",
    "Jan-25") costs 0.1.
    """
    candidate = _as_text(text)
    if not candidate:
        return MonthMatch(month=None, confidence=0.0)

    match = _MONTH_PATTERN.match(candidate)
    if not match:
        return MonthMatch(month=None, confidence=0.0)

    name = match.group("name").lower()
    month = _MONTH_LOOKUP.get(name)
    if month is None:
        return MonthMatch(month=None, confidence=0.0)

    confidence = 0.95 if name in _FULL_MONTHS else 0.85
    year = None
    if match.group("year"):
        year = _expand_year(int(match.group("year")))
        confidence -= 0.1
    return MonthMatch(month=month, confidence=confidence, year=year)


def classify_special_period(text: Any, year: int | None = None) -> SpecialPeriodMatch:
    """Classify text as a named special period, with its date range if present.

    Args:
        text: Cell content.
        year: Year applied to ranges written without one ("18-21 Apr").

    Returns:
        The match; a bare date range with no known label is returned with the
        cleaned text as label and a lower confidence.
    """
    candidate = _as_text(text)
    if not candidate:
        return SpecialPeriodMatch(label=None, confidence=0.0)

    label = None
    period_type = None
    for pattern, name, kind in _SPECIAL_PERIOD_PATTERNS:
        if pattern.search(candidate):
            label, period_type = name, kind
            break

    date_from, date_to = extract_date_range(candidate, year=year)

    if label is not None:
        confidence = 0.9 if date_from and date_to else 0.7
        if len(candidate) > 20:
            confidence *= 0.8
        if len(candidate.split()) > 3:
            confidence *= 0.8
        return SpecialPeriodMatch(
            label=label,
            confidence=round(confidence, 4),
            period_type=period_type,
            date_from=date_from,
            date_to=date_to,
        )

    if date_from and date_to and _is_bare_date_range(candidate):
        return SpecialPeriodMatch(
            label=" ".join(candidate.split()),
            confidence=0.6,
            period_type=PeriodType.EVENT,
            date_from=date_from,
            date_to=date_to,
        )

    return SpecialPeriodMatch(label=None, confidence=0.0)


def _is_bare_date_range(text: str) -> bool:
    words = re.findall(r"[A-Za-z]+", text)
    return all(
        word.lower() in _MONTH_LOOKUP or word.lower() in _RANGE_WORDS for word in words
    )


def classify_period_label(text: Any, year: int | None = None) -> PeriodLabel | None:
    """Classify text as a pricing-period axis label (month or special period)."""
    month = classify_month(text)
    if month.month is not None:
        return PeriodLabel(
            label=MONTH_NAMES[month.month - 1],
            confidence=month.confidence,
            month=month.month,
            text=_as_text(text),
        )
    special = classify_special_period(text, year=year)
    if special.label is not None:
        return PeriodLabel(
            label=special.label,
            confidence=special.confidence,
            special_period=special,
            text=_as_text(text),
        )
    return None


def is_month_sequence(months: Sequence[int]) -> bool:
    """Whether three or more months run in calendar order.

    Each month must follow the previous one; December may wrap to January.
    """
    if len(months) < 3:
        return False
    return all((b - a) % 12 == 1 for a, b in zip(months, months[1:]))


# ---------------------------------------------------------------------- #
# Accommodation, nights and pax
# ---------------------------------------------------------------------- #


def classify_accommodation_type(text: Any) -> AccommodationMatch:
    """Classify text as an accommodation type.

    A cell that is exactly a type name scores 0.95; a type mentioned inside
    longer text starts at 0.7 and loses confidence with length.
    """
    candidate = _as_text(text)
    if not candidate:
        return AccommodationMatch(type=None, confidence=0.0)

    cleaned = " ".join(candidate.rstrip(":").split())
    spans: list[tuple[int, int]] = []
    matches: list[tuple[int, str, str]] = []
    for pattern, canonical in _ACCOMMODATION_PATTERNS:
        found = pattern.search(cleaned)
        if found is None:
            continue
        if any(found.start() < end and start < found.end() for start, end in spans):
            continue
        spans.append(found.span())
        matches.append(
            (found.start(), canonical or found.group(0).title(), found.group(0))
        )

    if not matches:
        return AccommodationMatch(type=None, confidence=0.0)

    matches.sort()
    if len(matches) == 1:
        type_name = matches[0][1]
    else:
        type_name = cleaned

    if len(matches) == 1 and matches[0][2].lower() == cleaned.lower():
        return AccommodationMatch(type=type_name, confidence=0.95)

    confidence = 0.7
    if len(cleaned) > 20:
        confidence *= 0.8
    if len(cleaned.split()) > 3:
        confidence *= 0.8
    return AccommodationMatch(type=type_name, confidence=round(confidence, 4))


def classify_nights_pax(text: Any) -> NightsPaxMatch:
    """Classify text as a nights and/or pax header fragment ("3N/2PAX")."""
    candidate = _as_text(text)
    if not candidate:
        return NightsPaxMatch(nights=None, pax=None, confidence=0.0)

    combined = _NIGHTS_THEN_PAX.search(candidate)
    if combined:
        return NightsPaxMatch(
            nights=int(combined.group(1)), pax=int(combined.group(2)), confidence=0.9
        )
    combined = _PAX_THEN_NIGHTS.search(candidate)
    if combined:
        return NightsPaxMatch(
            nights=int(combined.group(2)), pax=int(combined.group(1)), confidence=0.9
        )

    nights_match = _NIGHTS_ONLY.search(candidate)
    pax_match = _PAX_ONLY.search(candidate)
    nights = _first_group_int(nights_match)
    pax = _first_group_int(pax_match)

    if nights is not None and pax is not None:
        return NightsPaxMatch(nights=nights, pax=pax, confidence=0.8)
    if nights is not None or pax is not None:
        return NightsPaxMatch(nights=nights, pax=pax, confidence=0.6)
    return NightsPaxMatch(nights=None, pax=None, confidence=0.0)


def _first_group_int(match: re.Match[str] | None) -> int | None:
    if match is None:
        return None
    for group in match.groups():
        if group is not None:
            value = int(group)
            return value if value > 0 else None
    return None


# ---------------------------------------------------------------------- #
# Currency
# ---------------------------------------------------------------------- #


def find_currencies(text: Any) -> list[str]:
    """Return every currency code named in the text, in order of appearance."""
    candidate = _as_text(text)
    if not candidate:
        return []

    found: list[tuple[int, str]] = []
    for match in _CURRENCY_CODE_PATTERN.finditer(candidate):
        found.append((match.start(), match.group(1).upper()))
    for pattern, code in _CURRENCY_WORDS:
        for match in pattern.finditer(candidate):
            found.append((match.start(), code))

    consumed: list[tuple[int, int]] = []
    for symbol, code in _CURRENCY_SYMBOLS:
        start = candidate.find(symbol)
        while start != -1:
            end = start + len(symbol)
            if not any(s <= start < e for s, e in consumed):
                found.append((start, code))
                consumed.append((start, end))
            start = candidate.find(symbol, end)

    codes: list[str] = []
    for _, code in sorted(found):
        if code not in codes:
            codes.append(code)
    return codes


def classify_currency(text: Any) -> str | None:
    """Return the first currency code named by symbol, code or word, if any."""
    codes = find_currencies(text)
    return codes[0] if codes else None


# ---------------------------------------------------------------------- #
# Dates
# ---------------------------------------------------------------------- #

_NUMERIC_DATE = r"(\d{1,2})[/.\-](\d{1,2})[/.\-](\d{4}|\d{2})(?!\d)"
_ISO_DATE = r"(\d{4})-(\d{1,2})-(\d{1,2})"
_WORD_DATE = r"(\d{1,2})(?:st|nd|rd|th)?\s+([A-Za-z]{3,9})\.?,?\s+(\d{4})"
_DATE_PATTERN = re.compile(
    rf"(?<!\d)(?:{_ISO_DATE}|{_NUMERIC_DATE}|{_WORD_DATE})", re.IGNORECASE
)
_DAY_RANGE_SAME_MONTH = re.compile(
    r"(?<!\d)(\d{1,2})\s*(?:-|–|to)\s*(\d{1,2})(?:st|nd|rd|th)?\s+([A-Za-z]{3,9})\b",
    re.I,
)
_DAY_MONTH_RANGE = re.compile(
    r"(?<!\d)(\d{1,2})(?:st|nd|rd|th)?\s+([A-Za-z]{3,9})\.?\s*(?:-|–|to|until)\s*"
    r"(\d{1,2})(?:st|nd|rd|th)?\s+([A-Za-z]{3,9})\b",
    re.I,
)
_NUMERIC_DAY_MONTH_RANGE = re.compile(
    r"(?<![\d/.])(\d{1,2})[/.](\d{1,2})\s*(?:-|–|to)\s*(\d{1,2})[/.](\d{1,2})(?![\d/.])"
)


def _safe_date(year: int, month: int, day: int) -> date | None:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def find_dates(text: Any) -> list[date]:
    """Return every complete date written in the text, in order of appearance.

    Day-first numeric dates ("31/12/2025"), ISO dates and "1 May 2025" style
    dates are recognised; two-digit years below 50 map to 20xx.
    """
    candidate = _as_text(text)
    if not candidate:
        return []

    dates: list[date] = []
    for match in _DATE_PATTERN.finditer(candidate):
        g = match.groups()
        parsed = None
        if g[0] is not None:
            parsed = _safe_date(int(g[0]), int(g[1]), int(g[2]))
        elif g[3] is not None:
            parsed = _safe_date(_expand_year(int(g[5])), int(g[4]), int(g[3]))
        elif g[6] is not None:
            month = _MONTH_LOOKUP.get(g[7].lower())
            if month is not None:
                parsed = _safe_date(int(g[8]), month, int(g[6]))
        if parsed is not None:
            dates.append(parsed)
    return dates


def parse_date(value: Any) -> date | None:
    """Interpret a cell value as a single date, if it is one."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    dates = find_dates(value)
    return dates[0] if len(dates) == 1 else None


def extract_date_range(text: Any, year: int | None = None) -> tuple[date | None, date | None]:
    """Extract a (from, to) date range from text.

    Complete dates are used first; "15 Jul - 31 Aug", "18-21 Apr" and
    "15/07 - 31/08" need ``year``. A range crossing New Year moves its end
    into the following year. The order is preserved as written, so an
    inverted range is returned inverted.
    """
    candidate = _as_text(text)
    if not candidate:
        return None, None

    dates = find_dates(candidate)
    if len(dates) >= 2:
        return dates[0], dates[1]
    if year is None:
        return None, None

    match = _DAY_MONTH_RANGE.search(candidate)
    if match:
        start_month = _MONTH_LOOKUP.get(match.group(2).lower())
        end_month = _MONTH_LOOKUP.get(match.group(4).lower())
        if start_month and end_month:
            end_year = year + 1 if end_month < start_month else year
            return (
                _safe_date(year, start_month, int(match.group(1))),
                _safe_date(end_year, end_month, int(match.group(3))),
            )

    match = _DAY_RANGE_SAME_MONTH.search(candidate)
    if match:
        month = _MONTH_LOOKUP.get(match.group(3).lower())
        if month:
            return (
                _safe_date(year, month, int(match.group(1))),
                _safe_date(year, month, int(match.group(2))),
            )

    match = _NUMERIC_DAY_MONTH_RANGE.search(candidate)
    if match:
        start_month, end_month = int(match.group(2)), int(match.group(4))
        end_year = year + 1 if end_month < start_month else year
        return (
            _safe_date(year, start_month, int(match.group(1))),
            _safe_date(end_year, end_month, int(match.group(3))),
        )

    return None, None


# ---------------------------------------------------------------------- #
# Numbers and prices
# ---------------------------------------------------------------------- #

_STRICT_POINT_DECIMAL = re.compile(r"\d{1,3}(?:,\d{3})+(?:\.\d+)?|\d+(?:\.\d+)?")
_STRICT_COMMA_DECIMAL = re.compile(r"\d{1,3}(?:\.\d{3})+(?:,\d+)?|\d+(?:,\d+)?")
_PRICE_SHAPE = re.compile(r"[-+]?\d[\d.,'\s ]*\*?")
_COMMA_DECIMAL_CUE = re.compile(r"^\d{1,3}(?:\.\d{3})+,\d{1,2}$|^\d+,\d{1,2}$")
_POINT_DECIMAL_CUE = re.compile(r"^\d{1,3}(?:,\d{3})+\.\d{1,2}$|^\d+\.\d{1,2}$")
_COMMA_GROUPING_CUE = re.compile(r"^\d{1,3}(?:\.\d{3})+$")
_POINT_GROUPING_CUE = re.compile(r"^\d{1,3}(?:,\d{3})+$")
_PRICE_REMAINDER = re.compile(r"(?:\*+|\([^()]*\))(?:\s*(?:\*+|\([^()]*\)))*")

# Currencies whose home locales write "1.250,00".
COMMA_DECIMAL_CURRENCIES = frozenset(
    {
        "ARS", "BGN", "BRL", "CLP", "COP", "CZK", "DKK", "EUR", "HUF", "IDR",
        "ISK", "NOK", "PLN", "RON", "RUB", "SEK", "TRY", "UAH", "VND",
    }
)


def _token_to_float(token: str, decimal_separator: str) -> float | None:
    token = re.sub(r"[\s' ]", "", token)
    sign = -1.0 if token.startswith("-") else 1.0
    token = token.lstrip("+-").rstrip(".,")
    if not token:
        return None

    strict = _STRICT_COMMA_DECIMAL if decimal_separator == "," else _STRICT_POINT_DECIMAL
    if strict.fullmatch(token):
        if decimal_separator == ",":
            return sign * float(token.replace(".", "").replace(",", "."))
        return sign * float(token.replace(",", ""))

    # Mixed formats: a final separator followed by 1-2 digits is the decimal point.
    mixed = re.fullmatch(r"([\d.,]*?)[.,](\d{1,2})", token)
    if mixed:
        whole = re.sub(r"[.,]", "", mixed.group(1)) or "0"
        return sign * float(f"{whole}.{mixed.group(2)}")
    if re.fullmatch(r"[\d.,]+", token):
        return sign * float(re.sub(r"[.,]", "", token))
    return None


def parse_number(value: Any, decimal_separator: str = ".") -> float | None:
    """Parse a native number or numeric text, or return None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    candidate = _as_text(value)
    if not candidate or not re.fullmatch(r"[-+]?[\d.,'\s ]+", candidate):
        return None
    return _token_to_float(candidate, decimal_separator)


def parse_price_text(text: Any, decimal_separator: str = ".") -> PriceText:
    """Split price text such as "€1.250,00 (min 3 nights)" into its parts."""
    candidate = _as_text(text)
    if not candidate:
        return PriceText(value=None, currency=None, notes=None)

    currency = classify_currency(candidate)
    stripped = _strip_currency(candidate)

    if _UNAVAILABLE_TEXT.match(stripped):
        return PriceText(value=None, currency=currency, notes=candidate)

    # The number must open the cell; only markers and bracketed notes may follow.
    token_match = _NUMERIC_TOKEN.match(stripped)
    if token_match is None:
        return PriceText(value=None, currency=currency, notes=candidate)
    remainder = stripped[token_match.end():].strip()
    if remainder and not _PRICE_REMAINDER.fullmatch(remainder):
        return PriceText(value=None, currency=currency, notes=candidate)

    value = _token_to_float(token_match.group(0).strip(), decimal_separator)
    if value is None:
        return PriceText(value=None, currency=currency, notes=candidate)

    bracketed = re.findall(r"\(([^)]*)\)", remainder)
    if bracketed:
        notes = "; ".join(part.strip() for part in bracketed if part.strip())
    else:
        notes = remainder
    notes = " ".join(notes.split()).strip(" -:;,")
    return PriceText(value=value, currency=currency, notes=notes or None)


def _strip_currency(text: str) -> str:
    stripped = _CURRENCY_CODE_PATTERN.sub(" ", text)
    for pattern, _ in _CURRENCY_WORDS:
        stripped = pattern.sub(" ", stripped)
    for symbol, _ in _CURRENCY_SYMBOLS:
        stripped = stripped.replace(symbol, " ")
    return stripped.strip()


def is_price_like(value: Any) -> bool:
    """Whether a cell value is a number, or text that is only a price ("€1.250,00")."""
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return True
    candidate = _as_text(value)
    if not candidate:
        return False
    return _PRICE_SHAPE.fullmatch(_strip_currency(candidate)) is not None


def is_price_note(value: Any) -> bool:
    """Whether text is short enough to be a note inside a price grid ("POA")."""
    candidate = _as_text(value)
    if not candidate or "\n" in candidate:
        return False
    return len(candidate) <= 30 and len(candidate.split()) <= 4


def detect_decimal_separator(values: Iterable[Any], currency: str | None = None) -> str:
    """Decide between "." and "," from numeric text cues across a sheet.

    "99,50" and "1.250" vote for a decimal comma; "99.50" and "1,250" vote
    for a decimal point. Native numbers carry no cue. Ties, including no
    evidence at all, resolve to "," for currencies of comma-decimal locales
    and to "." otherwise.
    """
    comma_votes = 0
    point_votes = 0
    for value in values:
        candidate = _as_text(value)
        if not candidate:
            continue
        for token in _NUMERIC_TOKEN.findall(candidate):
            token = re.sub(r"[\s' ]", "", token).lstrip("+-")
            if _COMMA_DECIMAL_CUE.match(token) or _COMMA_GROUPING_CUE.match(token):
                comma_votes += 1
            elif _POINT_DECIMAL_CUE.match(token) or _POINT_GROUPING_CUE.match(token):
                point_votes += 1
    if comma_votes != point_votes:
        return "," if comma_votes > point_votes else "."
    return "," if currency and currency.upper() in COMMA_DECIMAL_CURRENCIES else "."


# ---------------------------------------------------------------------- #
# Section headings
# ---------------------------------------------------------------------- #


def classify_section_heading(text: Any) -> str | None:
    """Return "exclusions", "inclusions" or None for a possible block heading.

    The heading keyword must open the cell; only short cells (or the part
    before a colon) count as headings.
    """
    candidate = _as_text(text).lower().replace("’", "'")
    if not candidate:
        return None
    head = candidate.split(":", 1)[0].strip()
    if len(head.split()) > 5:
        return None
    for keyword in EXCLUSION_HEADINGS:
        if head.startswith(keyword):
            return "exclusions"
    for keyword in INCLUSION_HEADINGS:
        if head.startswith(keyword):
            return "inclusions"
    return None


__all__ = [
    "COMMA_DECIMAL_CURRENCIES",
    "CURRENCY_CODES",
    "KNOWN_CURRENCIES",
    "MONTH_NAMES",
    "AccommodationMatch",
    "MonthMatch",
    "NightsPaxMatch",
    "PeriodLabel",
    "PeriodType",
    "PriceText",
    "SpecialPeriodMatch",
    "classify_accommodation_type",
    "classify_currency",
    "classify_month",
    "classify_nights_pax",
    "classify_period_label",
    "classify_section_heading",
    "classify_special_period",
    "detect_decimal_separator",
    "extract_date_range",
    "find_currencies",
    "find_dates",
    "is_month_sequence",
    "is_price_like",
    "is_price_note",
    "parse_date",
    "parse_number",
    "parse_price_text",
]
