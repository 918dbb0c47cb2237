"""Structured logging for resort pricing extraction.

Loggers returned by ``get_logger`` render keyword fields as ``key=value``
pairs after the message. The workbook and sheet being parsed are bound with
``LogContext`` and prefixed to every line by ``ContextFormatter``, so a
message logged deep inside a pipeline stage still names its sheet.

Usage:
    from resort_pricing_extraction.utils.logging import LogContext, get_logger

    logger = get_logger(__name__)

    with LogContext(workbook="prices.xlsx", sheet_name="Hotel Sol"):
        logger.info("Layout detected", orientation="months-in-columns")
"""

import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar, Token
from dataclasses import dataclass
from typing import Any

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(context)s%(message)s"

_parse_context: ContextVar[dict[str, str] | None] = ContextVar(
    "parse_context", default=None
)


def current_context() -> dict[str, str]:
    """Return the fields bound by the enclosing ``LogContext`` blocks."""
    return dict(_parse_context.get() or {})


class LogContext:
    """Bind fields such as ``workbook`` or ``sheet_name`` to every log line.

    Blocks nest; an inner block adds to (or shadows) the outer fields and the
    outer fields come back when it exits. ``None`` values are ignored.

    Usage:
        with LogContext(sheet_name="Prices"):
            logger.info("Normalizing")  # [sheet_name=Prices] Normalizing
    """

    def __init__(self, **context: Any) -> None:
        self._fields = {k: str(v) for k, v in context.items() if v is not None}
        self._token: Token[dict[str, str] | None] | None = None

    def __enter__(self) -> "LogContext":
        self._token = _parse_context.set({**current_context(), **self._fields})
        return self

    def __exit__(self, *args: Any) -> None:
        if self._token is not None:
            _parse_context.reset(self._token)
            self._token = None


class ContextFormatter(logging.Formatter):
    """Formatter that exposes the bound parse context as ``%(context)s``.

    The attribute renders as ``"[workbook=... sheet_name=...] "`` inside a
    ``LogContext`` and as an empty string outside one.
    """

    def __init__(self, fmt: str | None = None, datefmt: str | None = None) -> None:
        super().__init__(fmt or DEFAULT_FORMAT, datefmt)

    def format(self, record: logging.LogRecord) -> str:
        context = current_context()
        pairs = " ".join(f"{k}={v}" for k, v in context.items())
        record.context = f"[{pairs}] " if pairs else ""
        return super().format(record)


@dataclass
class ParseMetrics:
    """Counters collected while an operation runs.

    Attributes:
        operation: Name of the operation being measured.
        started: ``time.perf_counter()`` value at start.
        duration_seconds: Elapsed time, set by ``finish``.
        cells_scanned: Grid cells the operation covered.
        records_extracted: Pricing records produced.
        issues_recorded: Issues attached to the result.
    """

    operation: str
    started: float = 0.0
    duration_seconds: float = 0.0
    cells_scanned: int = 0
    records_extracted: int = 0
    issues_recorded: int = 0

    def __post_init__(self) -> None:
        if not self.started:
            self.started = time.perf_counter()

    def finish(self) -> None:
        """Stop the clock."""
        self.duration_seconds = round(time.perf_counter() - self.started, 6)

    def to_dict(self) -> dict[str, Any]:
        """Operation, duration and the counters that are non-zero."""
        data: dict[str, Any] = {
            "operation": self.operation,
            "duration_seconds": self.duration_seconds,
        }
        for name in ("cells_scanned", "records_extracted", "issues_recorded"):
            if getattr(self, name):
                data[name] = getattr(self, name)
        return data


class StructuredLogger:
    """Logger wrapper that appends keyword fields to the message.

    ``message`` is positional-only, so a field may itself be called
    ``message``.
    """

    def __init__(self, name: str) -> None:
        self._logger = logging.getLogger(name)

    @property
    def logger(self) -> logging.Logger:
        """The wrapped standard library logger."""
        return self._logger

    @staticmethod
    def render(message: str, /, **fields: Any) -> str:
        """Render ``message | k=v, k=v``; the message alone without fields."""
        if not fields:
            return message
        return f"{message} | " + ", ".join(f"{k}={v}" for k, v in fields.items())

    def debug(self, message: str, /, **fields: Any) -> None:
        self._logger.debug(self.render(message, **fields))

    def info(self, message: str, /, **fields: Any) -> None:
        self._logger.info(self.render(message, **fields))

    def warning(self, message: str, /, **fields: Any) -> None:
        self._logger.warning(self.render(message, **fields))

    def error(self, message: str, /, exc_info: bool = False, **fields: Any) -> None:
        self._logger.error(self.render(message, **fields), exc_info=exc_info)

    def exception(self, message: str, /, **fields: Any) -> None:
        """Log at ERROR with the active exception's traceback."""
        self._logger.exception(self.render(message, **fields))

    def log_metrics(self, metrics: ParseMetrics) -> None:
        data = metrics.to_dict()
        operation = data.pop("operation")
        self.debug(f"Timing: {operation}", **data)

    def log_parse_result(
        self,
        sheet_name: str,
        records: int,
        issue_counts: dict[str, int],
        import_eligible: bool,
        confidence: float | None = None,
    ) -> None:
        """Log one summary line per parsed sheet.

        Sheets with a critical issue log at WARNING so they stand out in a
        batch; severities with no issues are left out.
        """
        data: dict[str, Any] = {
            "sheet_name": sheet_name,
            "records": records,
            "import_eligible": import_eligible,
        }
        data.update({severity: n for severity, n in issue_counts.items() if n})
        if confidence is not None:
            data["confidence"] = f"{confidence:.3f}"
        level = logging.INFO if import_eligible else logging.WARNING
        self._logger.log(level, self.render("Sheet parsed", **data))


def get_logger(name: str) -> StructuredLogger:
    """Get a structured logger, typically ``get_logger(__name__)``."""
    return StructuredLogger(name)


@contextmanager
def timed_operation(logger: StructuredLogger, operation: str) -> Iterator[ParseMetrics]:
    """Time a block and log its metrics when it exits, even on error.

    Usage:
        with timed_operation(logger, "parse_sheet") as metrics:
            metrics.records_extracted = len(records)
    """
    metrics = ParseMetrics(operation=operation)
    try:
        yield metrics
    finally:
        metrics.finish()
        logger.log_metrics(metrics)


def configure_logging(level: int | str = logging.INFO, fmt: str | None = None) -> None:
    """Replace the root handlers with one stderr handler using ``ContextFormatter``.

    Args:
        level: Log level, as a number or a name such as ``"DEBUG"``.
        fmt: Format string; must use ``%(context)s`` to show the parse context.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    root = logging.getLogger()
    root.setLevel(level)
    for handler in root.handlers[:]:
        root.removeHandler(handler)
    handler = logging.StreamHandler()
    handler.setFormatter(ContextFormatter(fmt))
    root.addHandler(handler)


class ProgressTracker:
    """Log progress through a known number of items.

    Usage:
        tracker = ProgressTracker(logger, "Parsing sheets", total=len(grids))
        for grid in grids:
            ...
            tracker.update(details=grid.sheet_name)
        tracker.complete()
    """

    def __init__(self, logger: StructuredLogger, stage: str, total: int) -> None:
        self._logger = logger
        self._stage = stage
        self.total = total
        self.current = 0
        self._started = time.perf_counter()

    def update(self, details: str | None = None) -> None:
        """Count one finished item and log the running total."""
        self.current += 1
        data: dict[str, Any] = {"current": self.current, "total": self.total}
        if details:
            data["details"] = details
        self._logger.info(f"Progress: {self._stage}", **data)

    def complete(self) -> float:
        """Log completion and return the elapsed seconds."""
        duration = time.perf_counter() - self._started
        self._logger.info(
            f"Completed: {self._stage}",
            items=self.current,
            duration_seconds=f"{duration:.2f}",
        )
        return duration


__all__ = [
    "ContextFormatter",
    "LogContext",
    "ParseMetrics",
    "ProgressTracker",
    "StructuredLogger",
    "configure_logging",
    "current_context",
    "get_logger",
    "timed_operation",
]
