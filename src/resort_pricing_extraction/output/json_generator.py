"""JSON output generator for parse results.

This module serializes ``ParsedResortData`` (and optionally the layout
detection behind it) into deterministic JSON: keys are sorted, dates are
ISO formatted and record order is the normalizer's order, so parsing the
same sheet twice gives byte-identical output. Generated payloads are
checked against the JSON schema of the result model.
"""

import json
from dataclasses import dataclass, field
from typing import Any

from jsonschema import Draft202012Validator

from resort_pricing_extraction.models import ParsedResortData
from resort_pricing_extraction.services.sheet_processor import SheetParseOutcome
from resort_pricing_extraction.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class SchemaCheck:
    """Result of checking a payload against the result schema."""

    is_valid: bool
    """Whether the payload matches the schema."""

    errors: list[str] = field(default_factory=list)
    """Schema violations as "path: message" strings."""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {"is_valid": self.is_valid, "errors": self.errors}


@dataclass
class JsonOutputResult:
    """Serialized output of one or more parsed sheets."""

    data: dict[str, Any] | list[dict[str, Any]]
    """JSON-compatible payload."""

    text: str
    """Serialized JSON text."""

    schema_check: SchemaCheck
    """Schema check of every result in the payload."""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "data": self.data,
            "schema_check": self.schema_check.to_dict(),
        }


class JsonGenerator:
    """Generates deterministic JSON from parse results.

    The payload of a single sheet is the ``ParsedResortData`` dump plus a
    ``summary`` block; with ``include_detection`` the layout detection is
    added under ``detection``.
    """

    def __init__(self, indent: int | None = 2, include_detection: bool = False) -> None:
        """Initialize the JSON generator.

        Args:
            indent: Indentation passed to ``json.dumps``; None for compact output.
            include_detection: Whether outcomes carry their layout detection.
        """
        self.indent = indent
        self.include_detection = include_detection
        self._validator = Draft202012Validator(ParsedResortData.model_json_schema())

    def to_payload(self, result: ParsedResortData) -> dict[str, Any]:
        """Convert one result into a JSON-compatible dictionary."""
        payload = result.model_dump(mode="json")
        payload["summary"] = result.summary()
        return payload

    def outcome_payload(self, outcome: SheetParseOutcome) -> dict[str, Any]:
        """Convert one sheet outcome, adding the detection when enabled."""
        payload = self.to_payload(outcome.result)
        if self.include_detection:
            payload["detection"] = outcome.detection.to_dict()
        return payload

    def check(self, payload: dict[str, Any]) -> SchemaCheck:
        """Check a single-result payload against the result schema.

        Keys added by the generator (``summary``, ``detection``) are ignored.
        """
        data = {k: v for k, v in payload.items() if k not in ("summary", "detection")}
        errors = []
        for error in self._validator.iter_errors(data):
            path = (
                ".".join(str(p) for p in error.absolute_path)
                if error.absolute_path
                else "root"
            )
            errors.append(f"{path}: {error.message}")
        return SchemaCheck(is_valid=not errors, errors=sorted(errors))

    def dumps(self, data: Any) -> str:
        """Serialize with sorted keys so equal payloads give equal text."""
        return json.dumps(data, indent=self.indent, sort_keys=True, ensure_ascii=False)

    def generate(self, result: ParsedResortData) -> JsonOutputResult:
        """Generate JSON output for one parse result."""
        payload = self.to_payload(result)
        schema_check = self.check(payload)
        if not schema_check.is_valid:
            logger.warning(
                "Result does not match its schema",
                sheet_name=result.sheet_name,
                errors=len(schema_check.errors),
            )
        return JsonOutputResult(
            data=payload, text=self.dumps(payload), schema_check=schema_check
        )

    def generate_outcomes(self, outcomes: list[SheetParseOutcome]) -> JsonOutputResult:
        """Generate one JSON array covering every sheet of a workbook."""
        payloads = [self.outcome_payload(outcome) for outcome in outcomes]
        errors = []
        for payload in payloads:
            sheet = payload.get("sheet_name") or "sheet"
            errors.extend(f"{sheet}.{e}" for e in self.check(payload).errors)
        if errors:
            logger.warning("Results do not match their schema", errors=len(errors))
        return JsonOutputResult(
            data=payloads,
            text=self.dumps(payloads),
            schema_check=SchemaCheck(is_valid=not errors, errors=errors),
        )


__all__ = ["JsonGenerator", "JsonOutputResult", "SchemaCheck"]
