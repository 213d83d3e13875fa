"""Log leak scanner: safety net that looks for PII in operational logs.

Logs should never contain PII in the first place; this runs after the
fact over persisted lines and reports what slipped through.

Usage:
    from pii_engine import LogLine, scan_lines, parse_log_file

    report = scan_lines(parse_log_file(content))
    for leak in report.leaks:
        print(leak.log_line.line_number, leak.severity.value)
"""

from __future__ import annotations
import logging
import time
from dataclasses import dataclass
from typing import Iterable

from .detector import detect
from .types import LogLine, PiiCategory, PiiLeakResult, PiiScanResult, Severity

logger = logging.getLogger(__name__)

CRITICAL_CATEGORIES: frozenset[PiiCategory] = frozenset({
    PiiCategory.SSN,
    PiiCategory.IBAN,
})
WARNING_CATEGORIES: frozenset[PiiCategory] = frozenset({
    PiiCategory.EMAIL,
    PiiCategory.PHONE,
    PiiCategory.PERSON,
})


@dataclass(frozen=True)
class ScannerConfig:
    """Count thresholds for severity escalation (strictly greater than)."""
    critical_count: int = 10
    warning_count: int = 5


DEFAULT_SCANNER_CONFIG = ScannerConfig()


def scan_line(
    log_line: LogLine,
    config: ScannerConfig = DEFAULT_SCANNER_CONFIG,
) -> PiiLeakResult | None:
    """Scan one log line.  Returns None when the line is clean."""
    detection = detect(log_line.content)
    if not detection.has_pii:
        return None

    pii_types = frozenset(detection.detected_categories)
    return PiiLeakResult(
        log_line=log_line,
        pii_types=pii_types,
        pii_count=detection.total_count,
        severity=classify_severity(pii_types, detection.total_count, config),
    )


def scan_lines(
    log_lines: Iterable[LogLine],
    config: ScannerConfig = DEFAULT_SCANNER_CONFIG,
) -> PiiScanResult:
    """Scan a batch of lines; leaks are reported in input order.

    A line whose scan fails is logged as an operational alert and skipped,
    so one bad line never aborts the batch.
    """
    started = time.perf_counter()
    total = 0
    leaks: list[PiiLeakResult] = []

    for log_line in log_lines:
        total += 1
        try:
            leak = scan_line(log_line, config)
        except Exception:
            # Line content stays out of the record; it may be the leak.
            logger.exception(
                "pii scanner failed on line %s", getattr(log_line, "line_number", "?"),
            )
            continue
        if leak is not None:
            leaks.append(leak)

    return PiiScanResult(
        total_lines=total,
        leak_count=len(leaks),
        leaks=tuple(leaks),
        duration_ms=round((time.perf_counter() - started) * 1000),
    )


def classify_severity(
    pii_types: Iterable[PiiCategory],
    pii_count: int,
    config: ScannerConfig = DEFAULT_SCANNER_CONFIG,
) -> Severity:
    """Severity of a leak.

    Category escalation wins over count escalation:
      - CRITICAL: SSN or IBAN, or more than ``critical_count`` entities
      - WARNING: EMAIL, PHONE or PERSON, or more than ``warning_count``
      - INFO: anything else
    """
    types = set(pii_types)
    if types & CRITICAL_CATEGORIES:
        return Severity.CRITICAL
    if pii_count > config.critical_count:
        return Severity.CRITICAL
    if types & WARNING_CATEGORIES:
        return Severity.WARNING
    if pii_count > config.warning_count:
        return Severity.WARNING
    return Severity.INFO


def parse_log_file(content: str) -> list[LogLine]:
    """Split log content into lines numbered from 1.  No other parsing."""
    return [
        LogLine(content=line, line_number=idx)
        for idx, line in enumerate(content.split("\n"), start=1)
    ]
