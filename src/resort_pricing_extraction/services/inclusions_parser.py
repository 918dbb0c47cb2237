"""Split free-text inclusion and exclusion blocks into clean items."""

import re
from dataclasses import dataclass, field

from resort_pricing_extraction.config import Settings
from resort_pricing_extraction.config import settings as default_settings
from resort_pricing_extraction.models import IssueLocation, ProcessingError, Severity
from resort_pricing_extraction.services.content_classifier import (
    classify_accommodation_type,
)
from resort_pricing_extraction.services.layout_analyzer import (
    InclusionsSection,
    SourceLine,
)
from resort_pricing_extraction.utils.exceptions import ErrorCode
from resort_pricing_extraction.utils.logging import get_logger

logger = get_logger(__name__)

GENERAL_GROUP = "general"

_MARKER = re.compile(
    r"^\s*(?:[•◦▪●·\-–—*+>✓✔]+|\(?\d{1,2}[.)](?=\s)|\(?[a-z][.)](?=\s))\s*"
)
_INLINE_BULLET = re.compile(r"\s*[•◦▪●·✓✔]\s*")
_SENTENCE_BREAK = re.compile(r"(?<=[.;!])\s+|;\s*")
_LONE_PUNCTUATION = re.compile(r"^[\W_]+$")


@dataclass
class _Candidate:
    text: str
    row: int
    col: int
    marked: bool


@dataclass
class InclusionsResult:
    """Items parsed from one block."""

    items: list[str] = field(default_factory=list)
    """Every kept item: general items first, then each type's items."""

    by_type: dict[str, list[str]] = field(default_factory=dict)
    """Items per accommodation type; untyped items under "general"."""

    issues: list[ProcessingError] = field(default_factory=list)


class InclusionsParser:
    """Parse inclusion and exclusion text into distinct, cleaned items.

    Items are split on bullet or numbering markers when any are present,
    otherwise on line breaks, otherwise on sentence boundaries (and commas
    for a single list-like line). Placeholders such as "TBC", empty bullets
    and repeats are dropped with an info issue each.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or default_settings

    def parse(
        self,
        section: InclusionsSection | None,
        sheet_name: str | None = None,
        group_by_type: bool = True,
    ) -> InclusionsResult:
        """Parse a located block.

        Args:
            section: Block found by the layout analyzer, or None.
            sheet_name: Worksheet name for issue locations.
            group_by_type: Whether accommodation sub-headings partition items.

        Returns:
            Parsed items; empty when there is no block.
        """
        if section is None:
            return InclusionsResult()
        result = self.parse_lines(section.lines, sheet_name, group_by_type)
        logger.debug(
            "Text block parsed",
            kind=section.kind,
            format=section.format,
            items=len(result.items),
            discarded=len(result.issues),
        )
        return result

    def parse_text(
        self, text: str, sheet_name: str | None = None, group_by_type: bool = True
    ) -> InclusionsResult:
        """Parse a single block of text, e.g. the content of one cell."""
        return self.parse_lines(
            [SourceLine(text=text, row=0, col=0)], sheet_name, group_by_type
        )

    def parse_lines(
        self,
        lines: list[SourceLine],
        sheet_name: str | None = None,
        group_by_type: bool = True,
    ) -> InclusionsResult:
        """Parse text rows into items."""
        result = InclusionsResult()
        groups: dict[str, list[str]] = {GENERAL_GROUP: []}
        seen: dict[str, set[str]] = {GENERAL_GROUP: set()}
        current = GENERAL_GROUP

        for candidate in self.split_candidates(lines):
            location = IssueLocation.at(sheet_name, candidate.row, candidate.col)

            if group_by_type and not candidate.marked:
                heading = self._type_heading(candidate.text)
                if heading is not None:
                    current = heading
                    groups.setdefault(current, [])
                    seen.setdefault(current, set())
                    continue

            item = self.clean_item(candidate.text)
            reason = self._discard_reason(item)
            if reason is not None:
                result.issues.append(
                    ProcessingError(
                        severity=Severity.INFO,
                        code=ErrorCode.INCLUSION_DISCARDED,
                        message=f"Discarded {reason}: {candidate.text.strip()!r}",
                        location=location,
                    )
                )
                continue

            key = item.lower()
            if key in seen[current]:
                result.issues.append(
                    ProcessingError(
                        severity=Severity.INFO,
                        code=ErrorCode.INCLUSION_DUPLICATE,
                        message=f"Duplicate item removed: {item!r}",
                        location=location,
                    )
                )
                continue
            seen[current].add(key)
            groups[current].append(item)

        result.by_type = {name: items for name, items in groups.items() if items}
        result.items = [item for items in groups.values() for item in items]
        return result

    # ------------------------------------------------------------------ #
    # Splitting and cleaning
    # ------------------------------------------------------------------ #

    def split_candidates(self, lines: list[SourceLine]) -> list[_Candidate]:
        """Split text rows into candidate items, keeping each one's source cell."""
        physical = [
            (part, line.row, line.col)
            for line in lines
            for part in line.text.splitlines()
            if part.strip()
        ]
        if not physical:
            return []

        has_markers = any(
            _MARKER.match(text) or len(_INLINE_BULLET.findall(text)) > 1
            for text, _, _ in physical
        )
        if has_markers or len(physical) > 1:
            candidates = []
            for text, row, col in physical:
                parts = [text]
                if len(_INLINE_BULLET.findall(text)) > 1:
                    parts = [p for p in _INLINE_BULLET.split(text) if p.strip()]
                    candidates.extend(_Candidate(p, row, col, True) for p in parts)
                    continue
                candidates.append(
                    _Candidate(text, row, col, _MARKER.match(text) is not None)
                )
            return candidates

        text, row, col = physical[0]
        return [_Candidate(part, row, col, False) for part in self._split_sentences(text)]

    @staticmethod
    def _split_sentences(text: str) -> list[str]:
        parts = [part for part in _SENTENCE_BREAK.split(text.strip()) if part.strip()]
        if len(parts) == 1 and "," in parts[0]:
            parts = [part for part in parts[0].split(",") if part.strip()]
            if len(parts) > 1:
                last = parts[-1].strip()
                if last.lower().startswith("and "):
                    parts[-1] = last[4:]
        return parts

    @staticmethod
    def clean_item(text: str) -> str:
        """Strip list markers, collapse whitespace and capitalize.

        >>> InclusionsParser.clean_item("  •  daily   breakfast.")
        'Daily breakfast'
        """
        cleaned = _MARKER.sub("", text, count=1)
        cleaned = " ".join(cleaned.split())
        cleaned = cleaned.rstrip(".;,").strip()
        if cleaned and cleaned[0].islower():
            cleaned = cleaned[0].upper() + cleaned[1:]
        return cleaned

    def _discard_reason(self, item: str) -> str | None:
        if not item:
            return "empty item"
        if item.lower() in self._settings.placeholder_blacklist:
            return "placeholder"
        if _LONE_PUNCTUATION.match(item):
            return "punctuation-only item"
        return None

    @staticmethod
    def _type_heading(text: str) -> str | None:
        stripped = " ".join(text.split())
        if not stripped:
            return None
        if not (stripped.endswith(":") or len(stripped.split()) <= 3):
            return None
        match = classify_accommodation_type(stripped)
        if match.type is None or match.confidence < 0.9:
            return None
        return match.type


__all__ = ["GENERAL_GROUP", "InclusionsParser", "InclusionsResult"]
